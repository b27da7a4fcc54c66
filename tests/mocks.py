"""In-memory stand-in for the boto3 S3 client surface the gateway uses."""

from __future__ import annotations

import io
import tarfile
from typing import Iterable, Iterator

from botocore.exceptions import ClientError
from botocore.response import StreamingBody

READ_SIZE = 8192


def _client_error(code: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": "simulated"}}, operation)


class BrokenBody:
    """Body that yields `good` bytes and then fails like a dropped connection."""

    def __init__(self, good: bytes) -> None:
        self._good = io.BytesIO(good)
        self.closed = False

    def read(self, amt: int | None = None) -> bytes:
        data = self._good.read(amt)
        if not data:
            raise ConnectionResetError("simulated reset")
        return data

    def close(self) -> None:
        self.closed = True


class FakePaginator:
    def __init__(self, client: FakeS3Client) -> None:
        self._client = client

    def paginate(self, *, Bucket: str, Prefix: str = "") -> Iterator[dict]:
        self._client.list_calls.append(Prefix)
        if self._client.fail_list:
            raise _client_error("InternalError", "ListObjectsV2")
        keys = sorted(k for k in self._client.objects if k.startswith(Prefix))
        size = self._client.page_size
        if not keys:
            yield {"KeyCount": 0}
            return
        for start in range(0, len(keys), size):
            chunk = keys[start : start + size]
            self._client.pages_served += 1
            yield {
                "KeyCount": len(chunk),
                "Contents": [
                    {"Key": k, "Size": len(self._client.objects[k])} for k in chunk
                ],
            }


class FakeS3Client:
    def __init__(self, page_size: int = 1000) -> None:
        self.objects: dict[str, bytes] = {}
        self.metadata: dict[str, dict[str, str]] = {}
        self.page_size = page_size
        self.fail_put_keys: set[str] = set()
        self.fail_get_keys: set[str] = set()
        self.broken_body_keys: set[str] = set()
        self.fail_list = False
        self.put_calls: list[str] = []
        self.list_calls: list[str] = []
        self.pages_served = 0
        self.largest_read = 0

    def put_object(
        self,
        *,
        Bucket: str,
        Key: str,
        Body,
        ContentLength: int,
        Metadata: dict[str, str] | None = None,
    ) -> dict:
        self.put_calls.append(Key)
        if Key in self.fail_put_keys:
            raise _client_error("InternalError", "PutObject")
        buf = bytearray()
        while True:
            chunk = Body.read(READ_SIZE)
            if not chunk:
                break
            self.largest_read = max(self.largest_read, len(chunk))
            buf += chunk
        if len(buf) != ContentLength:
            raise _client_error("IncompleteBody", "PutObject")
        self.objects[Key] = bytes(buf)
        self.metadata[Key] = dict(Metadata or {})
        return {"ETag": '"fake"'}

    def get_object(self, *, Bucket: str, Key: str) -> dict:
        if Key in self.fail_get_keys:
            raise _client_error("InternalError", "GetObject")
        if Key not in self.objects:
            raise _client_error("NoSuchKey", "GetObject")
        data = self.objects[Key]
        if Key in self.broken_body_keys:
            body = BrokenBody(data[: len(data) // 2])
        else:
            body = StreamingBody(io.BytesIO(data), len(data))
        return {"Body": body, "ContentLength": len(data)}

    def get_paginator(self, name: str) -> FakePaginator:
        assert name == "list_objects_v2"
        return FakePaginator(self)


def make_tar_gz(entries: Iterable[tuple[str, bytes | None]]) -> bytes:
    """Build a .tar.gz in memory. A None payload makes a directory entry."""
    out = io.BytesIO()
    with tarfile.open(fileobj=out, mode="w:gz") as tar:
        for name, payload in entries:
            info = tarfile.TarInfo(name)
            if payload is None:
                info.type = tarfile.DIRTYPE
                info.mode = 0o755
                tar.addfile(info)
            else:
                info.size = len(payload)
                tar.addfile(info, io.BytesIO(payload))
    return out.getvalue()


def read_tar_gz(data: bytes) -> dict[str, bytes]:
    """Return {entry name: content} for every regular file in a .tar.gz."""
    files: dict[str, bytes] = {}
    with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as tar:
        for member in tar.getmembers():
            if member.isfile():
                extracted = tar.extractfile(member)
                assert extracted is not None
                files[member.name] = extracted.read()
    return files
