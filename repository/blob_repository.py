# repository/blob_repository.py
import logging
from dataclasses import dataclass
from typing import Any, BinaryIO, Iterator, Optional
from botocore.exceptions import BotoCoreError, ClientError
from core.entities import ListedObject
from repository.namespaces import NOT_FOUND_CODES, OWNER_METADATA_KEY
from util.enums import ErrorMessage
from util.errors import NotFoundError, UpstreamError

logger = logging.getLogger(__name__)


@dataclass
class BlobStream:
    """An open object body. Callers own it and must close() it."""

    key: str
    body: Any
    content_length: Optional[int] = None

    def iter_chunks(self, chunk_size: int) -> Iterator[bytes]:
        while True:
            chunk = self.body.read(chunk_size)
            if not chunk:
                return
            yield chunk

    def close(self) -> None:
        close = getattr(self.body, "close", None)
        if close is not None:
            close()


def _error_code(exc: ClientError) -> str:
    error = (getattr(exc, "response", None) or {}).get("Error") or {}
    return str(error.get("Code") or "")


class BlobRepository:
    """
    Single-object transfer primitives over an S3-compatible bucket.

    Bodies are streamed both ways: puts always carry the declared size so the
    client never buffers to learn it, gets hand back the open body.
    """

    def __init__(self, client: Any, bucket: str) -> None:
        self._client = client
        self._bucket = bucket

    @property
    def bucket(self) -> str:
        return self._bucket

    def put_object(self, key: str, stream: BinaryIO, size: int, owner: str) -> None:
        try:
            self._client.put_object(
                Bucket=self._bucket,
                Key=key,
                Body=stream,
                ContentLength=size,
                Metadata={OWNER_METADATA_KEY: owner},
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error("blob.put.error key=%s err=%s", key, exc)
            raise UpstreamError.of(ErrorMessage.UPLOAD_FAILED) from exc
        logger.debug("blob.put.ok key=%s bytes=%d", key, size)

    def get_object(self, key: str) -> BlobStream:
        try:
            res = self._client.get_object(Bucket=self._bucket, Key=key)
        except ClientError as exc:
            if _error_code(exc) in NOT_FOUND_CODES:
                logger.info("blob.get.missing key=%s", key)
                raise NotFoundError.of(ErrorMessage.NOT_FOUND) from exc
            logger.error("blob.get.error key=%s err=%s", key, exc)
            raise UpstreamError.of(ErrorMessage.DOWNLOAD_FAILED) from exc
        except BotoCoreError as exc:
            logger.error("blob.get.error key=%s err=%s", key, exc)
            raise UpstreamError.of(ErrorMessage.DOWNLOAD_FAILED) from exc
        return BlobStream(key=key, body=res["Body"], content_length=res.get("ContentLength"))

    def list_prefix(self, prefix: str) -> Iterator[ListedObject]:
        """
        Lazily walk every object under `prefix`, one page at a time.
        Restartable only by calling again.
        """
        paginator = self._client.get_paginator("list_objects_v2")
        pages = paginator.paginate(Bucket=self._bucket, Prefix=prefix)
        try:
            for page in pages:
                for obj in page.get("Contents", []) or []:
                    key = obj.get("Key")
                    if key:
                        yield ListedObject(key=key, size=int(obj.get("Size") or 0))
        except (BotoCoreError, ClientError) as exc:
            logger.error("blob.list.error prefix=%s err=%s", prefix, exc)
            raise UpstreamError.of(ErrorMessage.LIST_FAILED) from exc
