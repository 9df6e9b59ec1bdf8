import pytest
from fastapi.testclient import TestClient

from clone_intake.core.config import settings
from clone_intake.core.database import get_db
from clone_intake.main import app
from conftest import upload_result

ADMIN = {"Authorization": "Bearer admin-token"}
SCRIPT = "This is the script I will read on camera."


@pytest.fixture
def client(session_maker, blob_store, monkeypatch):
    async def override_get_db():
        async with session_maker() as session:
            yield session

    monkeypatch.setattr(settings, "ADMIN_TOKEN", "admin-token")
    app.dependency_overrides[get_db] = override_get_db
    app.state.blob_store = blob_store
    yield TestClient(app)
    app.dependency_overrides.clear()
    app.state.blob_store = None


@pytest.fixture
def submission_id(client):
    response = client.post("/api/v1/orders/order-9/submission", json={"script_text": SCRIPT})
    assert response.status_code == 201
    return response.json()["submission_id"]


def finalize(client, submission_id, public_id="submissions/s/1_take", size=5000):
    return client.post("/api/v1/uploads/finalize-upload", json={
        "submission_id": submission_id,
        "upload_result": upload_result(public_id, size),
        "filename": "take.mp4",
        "file_size": size,
    })


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_create_submission(client):
    response = client.post("/api/v1/orders/order-1/submission", json={"script_text": SCRIPT, "green_screen": True})
    assert response.status_code == 201
    assert response.json()["status"] == "awaiting_upload"


@pytest.mark.parametrize("body", [{"script_text": "short"}, {}])
def test_create_submission_rejects_bad_script(client, body):
    assert client.post("/api/v1/orders/order-1/submission", json=body).status_code == 400


def test_upload_params(client, submission_id):
    response = client.post("/api/v1/uploads/upload-params", json={
        "submission_id": submission_id,
        "filename": "take.mp4",
        "file_size": 50 * 1024 * 1024,
    })
    assert response.status_code == 200
    data = response.json()
    assert data["chunked_upload_threshold"] == 20 * 1024 * 1024
    assert data["upload_params"]["folder"] == f"submissions/{submission_id}"


def test_upload_params_errors(client, submission_id):
    bad_type = {"submission_id": submission_id, "filename": "take.avi", "file_size": 10}
    missing = {"submission_id": "nope", "filename": "take.mp4", "file_size": 10}
    assert client.post("/api/v1/uploads/upload-params", json=bad_type).status_code == 400
    assert client.post("/api/v1/uploads/upload-params", json=missing).status_code == 404
    assert client.post("/api/v1/uploads/upload-params", json={"filename": "take.mp4"}).status_code == 400


def test_upload_params_without_media_store(client, submission_id):
    app.state.blob_store = None
    response = client.post("/api/v1/uploads/upload-params", json={
        "submission_id": submission_id, "filename": "take.mp4", "file_size": 10,
    })
    assert response.status_code == 503


def test_direct_upload(client, submission_id, blob_store):
    response = client.post(
        "/api/v1/uploads/upload-video",
        data={"submission_id": submission_id},
        files={"file": ("take.mp4", b"small-video", "video/mp4")},
    )
    assert response.status_code == 200
    assert response.json()["video"]["size_bytes"] == len(b"small-video")
    assert len(blob_store.uploaded) == 1


def test_finalize_upload(client, submission_id):
    response = finalize(client, submission_id)
    assert response.status_code == 200
    assert response.json()["video"]["remote_id"] == "submissions/s/1_take"

    submission = client.get(f"/api/v1/admin/submissions/{submission_id}", headers=ADMIN).json()
    assert submission["status"] == "uploaded"
    assert len(submission["videos"]) == 1
    assert submission["activity_logs"][0]["action"] == "upload"


def test_finalize_errors(client, submission_id):
    assert client.post("/api/v1/uploads/finalize-upload", json={"submission_id": submission_id}).status_code == 400
    assert finalize(client, "nope").status_code == 404


@pytest.mark.parametrize("headers", [{}, {"Authorization": "Bearer wrong"}])
def test_admin_requires_token(client, submission_id, headers):
    response = client.get(f"/api/v1/admin/submissions/{submission_id}", headers=headers)
    assert response.status_code == 401


def test_admin_delete_video(client, submission_id, blob_store):
    url = finalize(client, submission_id).json()["video"]["url"]

    response = client.request(
        "DELETE",
        f"/api/v1/admin/submissions/{submission_id}/delete-video",
        json={"video_url": url},
        headers=ADMIN,
    )
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Video deleted successfully"}
    assert blob_store.destroyed == ["submissions/s/1_take"]

    submission = client.get(f"/api/v1/admin/submissions/{submission_id}", headers=ADMIN).json()
    assert submission["videos"] == []
    assert submission["status"] == "awaiting_upload"


def test_admin_delete_rejected_by_store(client, submission_id, blob_store):
    url = finalize(client, submission_id).json()["video"]["url"]
    blob_store.destroy_result = {"result": "error"}

    response = client.request(
        "DELETE",
        f"/api/v1/admin/submissions/{submission_id}/delete-video",
        json={"video_url": url},
        headers=ADMIN,
    )
    assert response.status_code == 500

    submission = client.get(f"/api/v1/admin/submissions/{submission_id}", headers=ADMIN).json()
    assert len(submission["videos"]) == 1
    assert submission["activity_logs"][-1]["status"] == "failed"


def test_admin_delete_requires_url(client, submission_id):
    response = client.request(
        "DELETE",
        f"/api/v1/admin/submissions/{submission_id}/delete-video",
        json={},
        headers=ADMIN,
    )
    assert response.status_code == 400


def test_admin_download_video(client, submission_id, blob_store):
    url = finalize(client, submission_id).json()["video"]["url"]

    response = client.get(
        f"/api/v1/admin/submissions/{submission_id}/download-video",
        params={"url": url},
        headers=ADMIN,
    )
    assert response.status_code == 200
    assert response.content == blob_store.content
    assert response.headers["content-type"] == "video/mp4"
    assert response.headers["content-disposition"] == 'attachment; filename="take.mp4"'


def test_admin_download_unknown_video(client, submission_id):
    response = client.get(
        f"/api/v1/admin/submissions/{submission_id}/download-video",
        params={"url": "https://elsewhere/x.mp4"},
        headers=ADMIN,
    )
    assert response.status_code == 404
