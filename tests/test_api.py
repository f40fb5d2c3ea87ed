"""HTTP boundary tests: upload, artifact streaming and error mapping."""

import pytest
from fastapi.testclient import TestClient

from streaming_api.main import app
from streaming_api.services import artifact_server as artifact_module
from streaming_api.services import encode_supervisor as supervisor_module
from streaming_api.services import pipeline as pipeline_module
from streaming_api.services import workspace as workspace_module
from streaming_api.services.artifact_server import ArtifactServer


@pytest.fixture
def client(monkeypatch, workspaces, supervisor, pipeline):
    monkeypatch.setattr(workspace_module, "_workspace_manager", workspaces)
    monkeypatch.setattr(supervisor_module, "_encode_supervisor", supervisor)
    monkeypatch.setattr(pipeline_module, "_pipeline", pipeline)
    monkeypatch.setattr(artifact_module, "_artifact_server", ArtifactServer(workspaces))
    with TestClient(app) as test_client:
        yield test_client


def _upload(client, data, name="source.mp4"):
    return client.post("/api/video/upload", files={"file": (name, data, "video/mp4")})


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["active_encodes"] == 0
    assert response.json()["disk_free_gb"] >= 0


def test_upload_returns_job_id_and_manifests_are_served(client, workspaces):
    response = _upload(client, b"STUB:1280:720:2.0")

    assert response.status_code == 200
    job_id = response.json()
    assert isinstance(job_id, str) and len(job_id) == 32
    assert (workspaces.output_root / job_id).is_dir()

    manifest = client.get(f"/api/video/streaming/{job_id}/720p.m3u8")
    assert manifest.status_code == 200
    assert manifest.headers["content-type"].startswith("application/x-mpegURL")
    assert manifest.text.startswith("#EXTM3U")

    segment = client.get(f"/api/video/streaming/{job_id}/720p_000.ts")
    assert segment.status_code == 200
    assert segment.headers["content-type"].startswith("video/MP2T")


def test_fetching_twice_is_byte_identical(client):
    job_id = _upload(client, b"STUB:640:360:2.0").json()

    first = client.get(f"/api/video/streaming/{job_id}/360p.m3u8")
    second = client.get(f"/api/video/streaming/{job_id}/360p.m3u8")

    assert first.status_code == second.status_code == 200
    assert first.content == second.content


def test_tiny_upload_succeeds_with_no_manifests(client, workspaces):
    response = _upload(client, b"STUB:100:100:2.0")

    assert response.status_code == 200
    assert list((workspaces.output_root / response.json()).iterdir()) == []


def test_corrupt_upload_is_rejected(client, workspaces):
    response = _upload(client, b"not a video at all", name="notes.txt")

    assert response.status_code == 422
    assert response.json()["error"] == "PROBE_ERROR"
    for job_dir in workspaces.output_root.iterdir():
        assert list(job_dir.iterdir()) == []


def test_oversized_upload_is_rejected(client):
    response = _upload(client, b"x" * (1024 * 1024 + 10))

    assert response.status_code == 413
    assert response.json()["error"] == "UPLOAD_TOO_LARGE"


def test_missing_artifacts_are_indistinguishable(client):
    job_id = _upload(client, b"STUB:256:144:2.0").json()

    unknown_job = client.get(f"/api/video/streaming/{'0' * 32}/144p.m3u8")
    unknown_file = client.get(f"/api/video/streaming/{job_id}/1080p.m3u8")
    traversal = client.get(f"/api/video/streaming/{job_id}/..%2F..%2Fetc%2Fpasswd")
    nested = client.get(f"/api/video/streaming/{job_id}/sub/144p.m3u8")
    dotdot = client.get(f"/api/video/streaming/{job_id}/..")

    for response in (unknown_job, unknown_file, traversal, nested, dotdot):
        assert response.status_code == 404
        assert response.json() == unknown_file.json()
    assert unknown_file.json()["error"] == "NOT_FOUND"
    assert job_id not in unknown_file.text


def test_unknown_route_uses_not_found_body(client):
    response = client.get("/api/video/streaming")

    assert response.status_code == 404
    assert response.json()["error"] == "NOT_FOUND"
