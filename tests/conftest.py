import asyncio
import re
from typing import Optional

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from clone_intake.core.database import Base
from clone_intake.core.errors import RemoteOperationError

_CONTENT_RANGE = re.compile(r"bytes (\d+)-(\d+)/(\d+)")


@pytest.fixture
def session_maker(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'intake.db'}", poolclass=NullPool)

    async def _create():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(_create())
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    asyncio.run(engine.dispose())


def upload_result(public_id: str = "submissions/s1/1700000000000_take1", size: int = 1234) -> dict:
    return {
        "public_id": public_id,
        "secure_url": f"https://res.cloudinary.com/demo/video/upload/{public_id}.mp4",
        "url": f"http://res.cloudinary.com/demo/video/upload/{public_id}.mp4",
        "resource_type": "video",
        "format": "mp4",
        "bytes": size,
        "duration": 12.5,
        "width": 1920,
        "height": 1080,
    }


class FakeBlobStore:
    """Server-side stand-in for the media store"""

    def __init__(self):
        self.destroy_result: dict = {"result": "ok"}
        self.destroy_error: Optional[Exception] = None
        self.fetch_error: Optional[Exception] = None
        self.content = b"\x00\x01fake-video-bytes"
        self.destroyed: list[str] = []
        self.uploaded: list[dict] = []
        self.fetched: list[str] = []

    def sign_upload_params(self, folder, public_id, timestamp):
        return {
            "cloud_name": "demo",
            "api_key": "key",
            "timestamp": timestamp,
            "signature": "sig",
            "folder": folder,
            "public_id": public_id,
            "upload_url": "https://api.cloudinary.com/v1_1/demo/video/upload",
        }

    async def upload(self, content, folder, public_id, filename):
        self.uploaded.append({"folder": folder, "public_id": public_id, "filename": filename})
        return upload_result(f"{folder}/{public_id}", len(content))

    async def destroy(self, remote_id, resource_type="video"):
        self.destroyed.append(remote_id)
        if self.destroy_error:
            raise self.destroy_error
        return self.destroy_result

    def signed_url(self, remote_id, resource_type="video", attachment=True):
        return f"https://api.cloudinary.com/v1_1/demo/video/download?public_id={remote_id}"

    async def fetch(self, url):
        self.fetched.append(url)
        if self.fetch_error:
            raise self.fetch_error
        return self.content

    async def aclose(self):
        pass


@pytest.fixture
def blob_store():
    return FakeBlobStore()


class FakeChunkEndpoint:
    """
    Client-side stand-in for the direct upload endpoint.
    
    Records every chunk request and answers the last byte range with the
    complete-object metadata. `fail` maps a chunk start offset to the number
    of times it should fail (None = always).
    """

    def __init__(self, public_id: str = "submissions/s1/1700000000000_take1"):
        self.public_id = public_id
        self.requests: list[dict] = []
        self.fail: dict[int, Optional[int]] = {}
        self.fail_status = 500

    def handler(self, request: httpx.Request) -> httpx.Response:
        start, end, total = (int(g) for g in _CONTENT_RANGE.match(request.headers["Content-Range"]).groups())
        record = {
            "start": start,
            "end": end,
            "total": total,
            "length": end - start + 1,
            "session_id": request.headers["X-Unique-Upload-Id"],
            "body_size": len(request.content),
        }
        self.requests.append(record)

        remaining = self.fail.get(start, 0)
        if remaining is None or remaining > 0:
            if remaining:
                self.fail[start] = remaining - 1
            return httpx.Response(self.fail_status, text="upstream unavailable")

        if end + 1 < total:
            return httpx.Response(200, json={"done": False})
        return httpx.Response(200, json=upload_result(self.public_id, total))

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def chunk_endpoint():
    return FakeChunkEndpoint()


class RecordingSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def fake_sleep():
    return RecordingSleep()


def make_file(path, size: int) -> "LocalFile":
    from clone_intake.client import LocalFile

    with open(path, "wb") as f:
        f.write((bytes(range(251)) * (size // 251 + 1))[:size])
    return LocalFile.from_path(path)


def remote_error(message: str = "boom") -> RemoteOperationError:
    return RemoteOperationError(message)
