import re

import boto3
import pytest
from botocore.exceptions import ClientError
from botocore.stub import ANY, Stubber

from autohub import config, storage as storage_mod
from autohub.storage import IncomingFile, LocalStorage, S3Storage, discard


def upload(name="car.png", data=b"\x89PNG", content_type="image/png"):
    return IncomingFile(filename=name, content_type=content_type, data=data)


# -------------
# Local storage
# -------------

def test_save_uses_unique_names_under_folder(storage):
    url = storage.save(upload(), "products")
    assert re.match(r"^/products/\d+-\d+\.png$", url)
    assert storage.read(storage.key_for(url)) == b"\x89PNG"
    assert storage.save(upload(), "products") != url


def test_base_url_is_normalized(tmp_path):
    local = LocalStorage(str(tmp_path), "/media")
    assert local.base_url == "/media/"
    assert local.key_for("/media/brands/x.png") == "brands/x.png"
    assert local.key_for("https://cdn.example.com/brands/x.png") is None


def test_delete_removes_file_and_ignores_foreign_urls(storage):
    url = storage.save(upload(), "blogs")
    storage.delete("https://elsewhere.example.com/blogs/x.png")
    assert storage.exists(storage.key_for(url))
    storage.delete(url)
    assert not storage.exists(storage.key_for(url))
    storage.delete(url)


def test_paths_outside_root_are_refused(storage):
    with pytest.raises(ValueError):
        storage.path_for("../outside.png")
    with pytest.raises(ValueError):
        storage.delete("/../../etc/passwd")


def test_incoming_file_properties():
    assert upload().is_image
    assert upload().size == 4
    assert not upload("a.mp4", content_type="video/mp4").is_image
    assert not upload(content_type=None).is_image


# -------
# Discard
# -------

class FlakyStorage:
    def __init__(self):
        self.deleted = []

    def delete(self, url):
        if "fail" in url:
            raise OSError("disk on fire")
        self.deleted.append(url)


def test_discard_skips_placeholders_and_kept_urls():
    flaky = FlakyStorage()
    discard(flaky, ["/a.png", "/placeholder-category.png", None, "", "/b.png"], keep={"/b.png"})
    assert flaky.deleted == ["/a.png"]


def test_discard_continues_after_failures(caplog):
    flaky = FlakyStorage()
    discard(flaky, ["/fail.png", "/ok.png"])
    assert flaky.deleted == ["/ok.png"]
    assert "Could not delete stored file /fail.png" in caplog.text


# ----------
# S3 storage
# ----------

@pytest.fixture
def s3():
    client = boto3.client("s3", region_name="us-east-1",
                          aws_access_key_id="test", aws_secret_access_key="test")
    with Stubber(client) as stubber:
        yield S3Storage("media", "https://cdn.example.com", client), stubber
        stubber.assert_no_pending_responses()


def test_s3_save_returns_public_url(s3):
    bucket, stubber = s3
    stubber.add_response("put_object", {}, {
        "Bucket": "media", "Key": ANY, "Body": b"\x89PNG", "ContentType": "image/png",
    })
    url = bucket.save(upload(), "products")
    assert re.match(r"^https://cdn\.example\.com/products/\d+-\d+\.png$", url)


def test_s3_delete_by_url(s3):
    bucket, stubber = s3
    stubber.add_response("delete_object", {}, {"Bucket": "media", "Key": "brands/logo.png"})
    bucket.delete("https://cdn.example.com/brands/logo.png")
    bucket.delete("/brands/legacy.png")


def test_s3_exists(s3):
    bucket, stubber = s3
    stubber.add_response("head_object", {"ContentLength": 4}, {"Bucket": "media", "Key": "products/a.png"})
    stubber.add_client_error("head_object", service_error_code="404", http_status_code=404,
                             expected_params={"Bucket": "media", "Key": "products/b.png"})
    stubber.add_client_error("head_object", service_error_code="AccessDenied", http_status_code=403,
                             expected_params={"Bucket": "media", "Key": "products/c.png"})
    assert bucket.exists("products/a.png") is True
    assert bucket.exists("products/b.png") is False
    with pytest.raises(ClientError):
        bucket.exists("products/c.png")


def test_s3_backend_requires_bucket(monkeypatch):
    monkeypatch.setattr(config, "S3_BUCKET", None)
    with pytest.raises(RuntimeError):
        storage_mod.s3_storage()


def test_unknown_backend_is_refused(monkeypatch):
    monkeypatch.setattr(config, "STORAGE_BACKEND", "ftp")
    storage_mod.get_storage.cache_clear()
    try:
        with pytest.raises(RuntimeError):
            storage_mod.get_storage()
    finally:
        storage_mod.get_storage.cache_clear()
