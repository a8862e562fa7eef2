import asyncio
import os
import re
from pathlib import Path

import pytest

from studyhub.core.config import settings
from studyhub.core.exceptions import ValidationError
from studyhub.models.group_files import GroupFile
from studyhub.services import file_service


def _upload(client, group_id, headers, name="notes.pdf", content=b"%PDF-1.4 lecture notes", mime="application/pdf"):
    return client.post(
        f"/api/groups/{group_id}/upload",
        headers=headers,
        files={"file": (name, content, mime)},
    )


def test_upload_stores_file_and_metadata(client, db, make_user, make_group, auth_headers):
    alice = make_user("Alice")
    group = make_group(alice)

    response = _upload(client, group.id, auth_headers(alice))

    assert response.status_code == 201
    data = response.json()
    assert data["original_name"] == "notes.pdf"
    assert data["file_type"] == "application/pdf"
    assert data["user"] == {"id": alice.id, "full_name": "Alice"}
    assert re.fullmatch(r"file-\d+-\d{9}\.pdf", data["stored_name"])
    assert data["url"] == f"/uploads/{data['stored_name']}"

    stored = Path(settings.UPLOAD_DIR) / data["stored_name"]
    assert stored.read_bytes() == b"%PDF-1.4 lecture notes"
    assert db.query(GroupFile).count() == 1

    download = client.get(data["url"])
    assert download.status_code == 200
    assert download.content == b"%PDF-1.4 lecture notes"


def test_upload_is_member_only(client, make_user, make_group, auth_headers):
    alice = make_user()
    outsider = make_user()
    group = make_group(alice)

    assert _upload(client, group.id, auth_headers(outsider)).status_code == 403
    assert _upload(client, 4040, auth_headers(alice)).status_code == 403


def test_upload_without_file(client, make_user, make_group, auth_headers):
    alice = make_user()
    outsider = make_user()
    group = make_group(alice)

    response = client.post(f"/api/groups/{group.id}/upload", headers=auth_headers(alice), data={"note": "x"})
    denied = client.post(f"/api/groups/{group.id}/upload", headers=auth_headers(outsider), data={"note": "x"})

    assert response.status_code == 400
    assert response.json() == {"msg": "No file uploaded."}
    assert denied.status_code == 403


def test_upload_too_large(client, monkeypatch, make_user, make_group, auth_headers):
    monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE_MB", 1)
    alice = make_user()
    group = make_group(alice)
    before = set(os.listdir(settings.UPLOAD_DIR))

    response = _upload(client, group.id, auth_headers(alice), content=b"x" * (1024 * 1024 + 1))

    assert response.status_code == 400
    assert response.json() == {"msg": "File is too large, the limit is 1 MB."}
    assert set(os.listdir(settings.UPLOAD_DIR)) == before


def test_upload_at_the_limit_is_accepted(client, monkeypatch, make_user, make_group, auth_headers):
    monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE_MB", 1)
    alice = make_user()
    group = make_group(alice)

    response = _upload(client, group.id, auth_headers(alice), content=b"x" * (1024 * 1024))

    assert response.status_code == 201


class FakeUpload:
    """Only what the upload service touches"""

    def __init__(self, chunks, size=None, filename="notes.pdf", content_type="application/pdf"):
        self.filename = filename
        self.content_type = content_type
        self.size = size
        self.chunks = list(chunks)
        self.reads = 0

    async def read(self, size=-1):
        self.reads += 1
        return self.chunks.pop(0) if self.chunks else b""


def test_declared_size_over_limit_is_rejected_without_reading(db, monkeypatch, make_user, make_group):
    monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE_MB", 1)
    alice = make_user()
    group = make_group(alice)
    upload = FakeUpload([b"x"], size=50 * 1024 * 1024)

    with pytest.raises(ValidationError):
        asyncio.run(file_service.upload_group_file(db, group.id, alice, upload))

    assert upload.reads == 0
    assert db.query(GroupFile).count() == 0


def test_undeclared_size_is_counted_while_streaming(db, monkeypatch, make_user, make_group):
    monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE_MB", 1)
    alice = make_user()
    group = make_group(alice)
    before = set(os.listdir(settings.UPLOAD_DIR))
    chunk = b"x" * (512 * 1024)
    upload = FakeUpload([chunk, chunk, b"x", chunk])

    with pytest.raises(ValidationError):
        asyncio.run(file_service.upload_group_file(db, group.id, alice, upload))

    # stops at the chunk that crosses the limit
    assert upload.reads == 3
    assert set(os.listdir(settings.UPLOAD_DIR)) == before
    assert db.query(GroupFile).count() == 0


def test_files_listed_newest_first(client, make_user, make_group, auth_headers):
    alice = make_user()
    group = make_group(alice)
    _upload(client, group.id, auth_headers(alice), name="week1.txt", content=b"1", mime="text/plain")
    _upload(client, group.id, auth_headers(alice), name="week2.txt", content=b"2", mime="text/plain")

    response = client.get(f"/api/groups/{group.id}/files", headers=auth_headers(alice))

    assert response.status_code == 200
    assert [f["original_name"] for f in response.json()] == ["week2.txt", "week1.txt"]


def test_files_listing_is_member_only(client, make_user, make_group, auth_headers):
    alice = make_user()
    outsider = make_user()
    group = make_group(alice)

    assert client.get(f"/api/groups/{group.id}/files", headers=auth_headers(outsider)).status_code == 403


def test_upload_notifies_channel(client, make_user, make_group, auth_headers):
    alice = make_user()
    group = make_group(alice)

    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "join group", "data": group.id})
        ws.receive_json()

        response = _upload(client, group.id, auth_headers(alice), name="slides.pptx")
        event = ws.receive_json()

    assert event["type"] == "file uploaded"
    assert event["data"]["id"] == response.json()["id"]
    assert event["data"]["original_name"] == "slides.pptx"


def test_stored_names_keep_extension_and_differ():
    first = file_service.generate_stored_name("Report.Final.DOCX")
    second = file_service.generate_stored_name("Report.Final.DOCX")

    assert first.endswith(".DOCX")
    assert first != second


def test_detect_file_type_falls_back_to_extension():
    assert file_service.detect_file_type("scan.png", None) == "image/png"
    assert file_service.detect_file_type("blob", None) == "application/octet-stream"
    assert file_service.detect_file_type("data.csv", "text/csv") == "text/csv"
