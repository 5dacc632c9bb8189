import os

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from uploads_api.main import create_app
from tests.consts import (
    TEST_FILE_CONTENT,
    TEST_FILE_CONTENT_TYPE,
    TEST_FILE_NAME,
    TEST_PNG_CONTENT_TYPE,
)
from tests.fixtures.storage_fixtures import content_files, make_settings

UNKNOWN_ID = "3fa85f64-5717-4562-b3fc-2c963f66afa6"


@pytest.fixture
def small_limit_client(storage_root):
    settings = make_settings(storage_root, max_file_size=1024)
    with TestClient(create_app(settings)) as test_client:
        yield test_client


def test_upload_without_files(client: TestClient):
    response = client.post("/upload")

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"error": "No files provided"}


def test_upload_too_large(small_limit_client: TestClient, storage_root):
    response = small_limit_client.post(
        "/upload",
        files=[
            ("files", (TEST_FILE_NAME, TEST_FILE_CONTENT, TEST_FILE_CONTENT_TYPE)),
            ("files", ("big.png", b"\x00" * 2048, TEST_PNG_CONTENT_TYPE)),
        ],
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"error": "file big.png is too large (max 1024 bytes)"}
    assert content_files(storage_root) == []


def test_upload_type_not_allowed(client: TestClient, storage_root):
    response = client.post("/upload", files=[("files", ("data.json", b"{}", "application/json"))])

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"error": "file type application/json is not allowed"}
    assert content_files(storage_root) == []


def test_upload_storage_failure(client: TestClient, storage_root, monkeypatch):
    def fail_replace(src, dst):
        raise PermissionError(13, "Permission denied")

    monkeypatch.setattr(os, "replace", fail_replace)

    response = client.post("/upload", files=[("files", (TEST_FILE_NAME, TEST_FILE_CONTENT, TEST_FILE_CONTENT_TYPE))])

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"error": "Failed to save file"}
    assert content_files(storage_root) == []


def test_upload_overlong_extension_is_stored(client: TestClient, storage_root):
    name = "a." + "x" * 300

    response = client.post("/upload", files=[("files", (name, TEST_FILE_CONTENT, TEST_FILE_CONTENT_TYPE))])

    assert response.status_code == status.HTTP_200_OK
    stored = response.json()["files"][0]
    assert stored["name"] == name
    assert content_files(storage_root) == [storage_root / f"{stored['id']}.txt"]


def test_upload_malformed_files_field(client: TestClient, storage_root):
    response = client.post("/upload", data={"files": "not-a-file"})

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.json()["error"] == "Invalid request"
    assert content_files(storage_root) == []


def test_download_unknown_id(client: TestClient):
    response = client.get(f"/files/{UNKNOWN_ID}/download")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"error": "File not found"}


def test_delete_unknown_id(client: TestClient):
    response = client.delete(f"/files/{UNKNOWN_ID}")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"error": "File not found"}


def test_download_by_id_prefix_is_not_found(client: TestClient):
    response = client.post("/upload", files=[("files", (TEST_FILE_NAME, TEST_FILE_CONTENT, TEST_FILE_CONTENT_TYPE))])
    file_id = response.json()["files"][0]["id"]

    assert client.get(f"/files/{file_id[:8]}/download").status_code == status.HTTP_404_NOT_FOUND
    assert client.delete(f"/files/{file_id[:8]}").status_code == status.HTTP_404_NOT_FOUND
    assert client.get(f"/files/{file_id}/download").status_code == status.HTTP_200_OK


def test_delete_twice(client: TestClient):
    response = client.post("/upload", files=[("files", (TEST_FILE_NAME, TEST_FILE_CONTENT, TEST_FILE_CONTENT_TYPE))])
    file_id = response.json()["files"][0]["id"]

    assert client.delete(f"/files/{file_id}").status_code == status.HTTP_200_OK
    assert client.delete(f"/files/{file_id}").status_code == status.HTTP_404_NOT_FOUND


def test_health_degraded_when_storage_missing(client: TestClient, storage_root):
    storage_root.rmdir()

    response = client.get("/health")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "degraded"
    assert data["ready"] is False
    assert data["components"]["storage"].startswith("error:")
