# tests/test_uploads.py

"""
Tests for presigned URLs, downloads and server-side uploads.
"""

import io
from unittest.mock import Mock

from botocore.response import StreamingBody
from fastapi.testclient import TestClient

from core.errors import NotFoundError
from core.s3_client import ObjectStorage
from routers.uploads import safe_filename


def test_safe_filename():
    assert safe_filename("my report (v2).pdf") == "my_report__v2_.pdf"
    assert safe_filename("../etc/passwd") == ".._etc_passwd"


def test_presign_upload(client: TestClient, login, mock_storage):
    login("member-1")
    response = client.post("/uploads/presigned-url", json={
        "filename": "work sample.pdf",
        "content_type": "application/pdf",
    })

    assert response.status_code == 200
    data = response.json()
    assert data["url"] == "https://storage.example.com/signed"
    assert data["action"] == "upload"
    assert data["key"].endswith("-work_sample.pdf")

    key, action, content_type = mock_storage.presigned_url.call_args.args
    assert (key, action, content_type) == (data["key"], "upload", "application/pdf")


def test_presign_validation(client: TestClient, login, mock_storage):
    login("member-1")
    assert client.post("/uploads/presigned-url", json={"filename": "a.pdf"}).status_code == 400
    assert client.post("/uploads/presigned-url", json={"content_type": "text/plain"}).status_code == 400
    assert client.post("/uploads/presigned-url", json={"filename": "a", "action": "delete"}).status_code == 400
    mock_storage.presigned_url.assert_not_called()


def test_presign_download_uses_existing_key(client: TestClient, login, mock_storage):
    login("member-1")
    response = client.post("/uploads/presigned-url", json={"filename": "abc-a.pdf", "action": "download"})
    assert response.json()["key"] == "abc-a.pdf"
    assert mock_storage.presigned_url.call_args.args[1] == "download"


def test_download(client: TestClient, login, mock_storage):
    body = Mock()
    body.iter_chunks.return_value = iter([b"%PDF", b"-1.4"])
    mock_storage.get.return_value = (body, "application/pdf")
    login("member-1")

    response = client.get("/uploads/download/tasks/abc-a.pdf")

    assert response.status_code == 200
    assert response.content == b"%PDF-1.4"
    assert response.headers["content-type"] == "application/pdf"
    assert 'filename="abc-a.pdf"' in response.headers["content-disposition"]
    mock_storage.get.assert_called_once_with("tasks/abc-a.pdf")
    body.iter_chunks.assert_called_once_with()
    body.read.assert_not_called()


def test_storage_get_returns_unread_body(test_settings):
    raw = io.BytesIO(b"hello world")
    s3 = Mock()
    s3.get_object.return_value = {"Body": StreamingBody(raw, 11), "ContentType": "text/plain"}
    storage = ObjectStorage(test_settings, client=s3, bucket="bucket")

    body, content_type = storage.get("notes.txt")

    assert content_type == "text/plain"
    assert raw.tell() == 0
    assert b"".join(body.iter_chunks(chunk_size=4)) == b"hello world"
    s3.get_object.assert_called_once_with(Bucket="bucket", Key="notes.txt")


def test_download_missing(client: TestClient, login, mock_storage):
    mock_storage.get.side_effect = NotFoundError("File not found.")
    login("member-1")
    response = client.get("/uploads/download/nope.pdf")
    assert response.status_code == 404
    assert response.json() == {"detail": "File not found."}


def test_multipart_upload(client: TestClient, login, mock_storage):
    login("member-1")
    response = client.post(
        "/uploads",
        files={"file": ("notes.txt", b"hello", "text/plain")},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["size"] == 5
    assert data["filename"] == "notes.txt"

    key, body, content_type = mock_storage.put.call_args.args
    assert key == data["key"]
    assert body == b"hello"
    assert content_type == "text/plain"


def test_empty_upload_rejected(client: TestClient, login):
    login("member-1")
    response = client.post("/uploads", files={"file": ("empty.txt", b"", "text/plain")})
    assert response.status_code == 400


def test_uploads_require_authentication(client: TestClient):
    assert client.post("/uploads/presigned-url", json={"filename": "a"}).status_code == 401
