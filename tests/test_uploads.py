# tests/test_uploads.py
import io
import os

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from campusbooks.config import Settings
from campusbooks.errors import UploadError
from campusbooks.uploads import discard_image, save_image
from conftest import book_form, image_file


def make_upload(name, content, content_type):
    return UploadFile(file=io.BytesIO(content), filename=name,
                      headers=Headers({"content-type": content_type}))


@pytest.fixture
def small_settings(tmp_path):
    return Settings(database_url="sqlite://", upload_dir=str(tmp_path / "up"), max_upload_bytes=16)


def test_save_image_writes_file(small_settings):
    url = save_image(make_upload("Cover.JPG", b"jpegdata", "image/jpeg"), small_settings)
    assert url.startswith("/uploads/") and url.endswith(".jpg")
    path = os.path.join(small_settings.upload_dir, os.path.basename(url))
    with open(path, "rb") as fh:
        assert fh.read() == b"jpegdata"


def test_missing_upload_returns_none(small_settings):
    assert save_image(None, small_settings) is None


def test_rejects_disallowed_type(small_settings):
    with pytest.raises(UploadError, match="formats are allowed"):
        save_image(make_upload("notes.pdf", b"%PDF", "application/pdf"), small_settings)


def test_rejects_oversized_file(small_settings):
    with pytest.raises(UploadError, match="too large"):
        save_image(make_upload("big.png", b"x" * 17, "image/png"), small_settings)
    assert not os.path.exists(small_settings.upload_dir) or os.listdir(small_settings.upload_dir) == []


def test_discard_image(small_settings):
    url = save_image(make_upload("a.gif", b"GIF89a", "image/gif"), small_settings)
    discard_image(url, small_settings)
    assert os.listdir(small_settings.upload_dir) == []
    discard_image(url, small_settings)
    discard_image("/elsewhere/file.gif", small_settings)


def test_api_rejects_wrong_type(client, mem_storage):
    res = client.post("/api/books", data=book_form(),
                      files=image_file("notes.txt", b"hello", "text/plain"))
    assert res.status_code == 400
    assert res.json()["message"] == "Only .jpeg, .jpg, .png and .gif formats are allowed!"
    assert mem_storage.get_all_books() == []
