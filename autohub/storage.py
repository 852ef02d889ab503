"""File storage backends for uploaded images.

Uploads are stored under `{folder}/{timestamp}-{random}{ext}` and addressed
afterwards only by the public URL `save` returns.
"""
import mimetypes
import os
import random
import time
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

import boto3
from botocore.exceptions import ClientError, ConnectionClosedError, EndpointConnectionError

from . import config
from .utils import get_logger, retry

logger = get_logger("autohub.storage")


@dataclass
class IncomingFile:
    filename: str
    content_type: Optional[str]
    data: bytes

    @property
    def size(self):
        return len(self.data)

    @property
    def is_image(self):
        return bool(self.content_type) and self.content_type.startswith("image/")


def unique_filename(original):
    ext = os.path.splitext(original or "")[1]
    return f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}{ext}"


def guess_content_type(name):
    return mimetypes.guess_type(name)[0] or "application/octet-stream"


class Storage:
    base_url = ""

    def save(self, upload: IncomingFile, folder: str) -> str:
        key = f"{folder}/{unique_filename(upload.filename)}"
        url = self.put(key, upload.data, upload.content_type or guess_content_type(upload.filename))
        logger.info("Stored %s (%d bytes) as %s", upload.filename, upload.size, key)
        return url

    def url_for(self, key):
        return f"{self.base_url}{key}"

    def key_for(self, url):
        if url and self.base_url and url.startswith(self.base_url):
            return url[len(self.base_url):]
        return None

    def put(self, key, data, content_type):
        raise NotImplementedError

    def delete(self, url):
        raise NotImplementedError

    def exists(self, key):
        raise NotImplementedError


class LocalStorage(Storage):
    """Files on disk, served by the web server from `root` under `base_url`."""

    def __init__(self, root, base_url="/"):
        self.root = root
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"

    def path_for(self, key):
        path = os.path.normpath(os.path.join(self.root, key))
        if not path.startswith(os.path.normpath(self.root) + os.sep):
            raise ValueError(f"Refusing path outside media root: {key}")
        return path

    def put(self, key, data, content_type):
        path = self.path_for(key)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as fh:
            fh.write(data)
        return self.url_for(key)

    def read(self, key):
        with open(self.path_for(key), "rb") as fh:
            return fh.read()

    def delete(self, url):
        key = self.key_for(url)
        if key is None:
            return
        path = self.path_for(key)
        if os.path.exists(path):
            os.remove(path)
            logger.info("Deleted %s", key)

    def exists(self, key):
        return os.path.exists(self.path_for(key))


class S3Storage(Storage):
    """Any S3-compatible bucket (AWS S3, Cloudflare R2, MinIO)."""

    def __init__(self, bucket, public_base_url, client):
        self.bucket = bucket
        self.base_url = public_base_url if public_base_url.endswith("/") else public_base_url + "/"
        self.client = client

    @retry((EndpointConnectionError, ConnectionClosedError), tries=3, delay=1, backoff=2, logger=logger)
    def put(self, key, data, content_type):
        self.client.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)
        return self.url_for(key)

    def delete(self, url):
        key = self.key_for(url)
        if key is None:
            return
        self.client.delete_object(Bucket=self.bucket, Key=key)
        logger.info("Deleted s3://%s/%s", self.bucket, key)

    def exists(self, key):
        try:
            self.client.head_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("404", "NoSuchKey", "NotFound"):
                return False
            raise
        return True


def local_storage():
    return LocalStorage(config.MEDIA_ROOT, config.MEDIA_BASE_URL)


def s3_storage():
    if not config.S3_BUCKET:
        raise RuntimeError("S3_BUCKET not set")
    client = boto3.client(
        "s3",
        endpoint_url=config.S3_ENDPOINT_URL,
        aws_access_key_id=config.S3_ACCESS_KEY_ID,
        aws_secret_access_key=config.S3_SECRET_ACCESS_KEY,
        region_name=config.S3_REGION,
    )
    return S3Storage(config.S3_BUCKET, config.S3_PUBLIC_BASE_URL, client)


@lru_cache(maxsize=1)
def get_storage() -> Storage:
    if config.STORAGE_BACKEND == "s3":
        return s3_storage()
    if config.STORAGE_BACKEND != "local":
        raise RuntimeError(f"Unknown STORAGE_BACKEND: {config.STORAGE_BACKEND}")
    return local_storage()


def discard(storage, urls, keep=()):
    """Best-effort removal of stored files; failures are logged and skipped."""
    for url in urls:
        if not url or url in keep or "placeholder" in url:
            continue
        try:
            storage.delete(url)
        except Exception as e:
            logger.warning("Could not delete stored file %s: %s", url, e)
