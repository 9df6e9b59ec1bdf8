import asyncio
import json

import httpx
import pytest

from clone_intake.client import (
    ChunkedUploadConfig,
    ChunkTransport,
    IntakeApiClient,
    ResumableStateStore,
    upload_submission_video,
)
from clone_intake.client.__main__ import main
from clone_intake.core.errors import NotFoundError, RemoteTransportError, ValidationError
from conftest import FakeChunkEndpoint, make_file

BASE = "http://intake.test"
CHUNK_URL = "https://upload.test/v1_1/demo/video/upload"


class FakeIntakeServer:
    """Answers the intake server's upload endpoints and forwards chunk requests"""

    def __init__(self, threshold: int):
        self.threshold = threshold
        self.chunks = FakeChunkEndpoint()
        self.calls: list[str] = []
        self.finalized: list[dict] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        if str(request.url) == CHUNK_URL:
            return self.chunks.handler(request)

        path = request.url.path
        self.calls.append(path)
        if path.endswith("/upload-params"):
            body = json.loads(request.content)
            if body["submission_id"] == "missing":
                return httpx.Response(404, json={"detail": "Submission not found"})
            return httpx.Response(200, json={
                "success": True,
                "upload_params": {
                    "cloud_name": "demo",
                    "api_key": "key",
                    "timestamp": 1700000000,
                    "signature": "sig",
                    "folder": f"submissions/{body['submission_id']}",
                    "public_id": "1700000000000_take",
                    "upload_url": CHUNK_URL,
                },
                "chunked_upload_threshold": self.threshold,
            })
        if path.endswith("/finalize-upload"):
            body = json.loads(request.content)
            self.finalized.append(body)
            if not body.get("upload_result"):
                return httpx.Response(400, json={"detail": "Missing submissionId or uploadResult"})
            return httpx.Response(200, json={"success": True, "video": {
                "url": body["upload_result"]["secure_url"],
                "size_bytes": body["file_size"],
            }})
        if path.endswith("/upload-video"):
            return httpx.Response(200, json={"success": True, "video": {"url": "https://cdn/direct.mp4", "size_bytes": 10}})
        return httpx.Response(404, json={"detail": "Not Found"})


def upload(server, file, submission_id="sub-1"):
    async def _run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(server.handler)) as client:
            api = IntakeApiClient(BASE, client)
            return await upload_submission_video(
                api,
                submission_id,
                file,
                ResumableStateStore(),
                ChunkedUploadConfig(chunk_size=1000),
                ChunkTransport(client),
            )

    return asyncio.run(_run())


def test_large_file_uses_chunks_then_finalizes(tmp_path):
    server = FakeIntakeServer(threshold=1000)
    file = make_file(tmp_path / "take.mp4", 3500)

    video = upload(server, file)

    assert len(server.chunks.requests) == 4
    assert server.calls == ["/api/v1/uploads/upload-params", "/api/v1/uploads/finalize-upload"]
    finalized = server.finalized[0]
    assert finalized["filename"] == "take.mp4"
    assert finalized["file_size"] == 3500
    assert finalized["upload_result"]["bytes"] == 3500
    assert video["size_bytes"] == 3500


def test_small_file_goes_through_server(tmp_path):
    server = FakeIntakeServer(threshold=1000)
    file = make_file(tmp_path / "take.mp4", 1000)

    video = upload(server, file)

    assert server.chunks.requests == []
    assert server.calls == ["/api/v1/uploads/upload-params", "/api/v1/uploads/upload-video"]
    assert video["url"] == "https://cdn/direct.mp4"


def test_server_errors_map_to_domain_errors(tmp_path):
    file = make_file(tmp_path / "take.mp4", 10)
    with pytest.raises(NotFoundError):
        upload(FakeIntakeServer(threshold=1000), file, submission_id="missing")

    async def finalize_without_result():
        async with httpx.AsyncClient(transport=httpx.MockTransport(FakeIntakeServer(1000).handler)) as client:
            await IntakeApiClient(BASE, client).finalize_upload("sub-1", {}, "take.mp4", 10)

    with pytest.raises(ValidationError):
        asyncio.run(finalize_without_result())


def test_cli_usage(capsys):
    assert main([]) == 1
    assert main(["take.mp4", "sub-1"]) == 1
    assert "Usage" in capsys.readouterr().out


def test_cli_missing_file(tmp_path, capsys):
    assert main([str(tmp_path / "nope.mp4"), "--submission", "sub-1"]) == 1
    assert "Resume with" in capsys.readouterr().out


def test_error_body_that_is_not_an_object(tmp_path):
    def handler(request):
        return httpx.Response(500, json=["unexpected", "shape"])

    async def _run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            await IntakeApiClient(BASE, client).get_upload_params("sub-1", "take.mp4", 10)

    with pytest.raises(RemoteTransportError, match="500"):
        asyncio.run(_run())


def test_cli_server_unreachable_prints_resume_hint(monkeypatch, capsys):
    async def unreachable(file_path, submission_id):
        raise httpx.ConnectError("connection refused")

    monkeypatch.setattr("clone_intake.client.__main__.run", unreachable)

    assert main(["take.mp4", "--submission", "sub-1"]) == 1
    out = capsys.readouterr().out
    assert "connection refused" in out
    assert "Resume with" in out
