# service/file_service.py
import functools
import logging
import os
import threading
from typing import AsyncIterator, BinaryIO, Iterator, List
import anyio
from starlette.concurrency import run_in_threadpool
from core.archive_builder import build_archive
from core.archive_extractor import extract_archive
from core.key_paths import is_placeholder, normalize, object_key, relative_name, user_prefix
from repository.blob_repository import BlobRepository, BlobStream
from util.enums import ErrorMessage
from util.errors import ValidationError
from util.timing import timed

logger = logging.getLogger(__name__)


def measure_stream(stream: BinaryIO) -> int:
    """Size of a seekable upload spool; leaves the position at 0."""
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(0)
    return size


class FileService:
    """
    Request-facing operations. Identity is always an explicit argument.
    Storage and archive work is blocking, so it runs in worker threads.
    """

    def __init__(self, blobs: BlobRepository, chunk_size: int = 64 * 1024) -> None:
        self._blobs = blobs
        self._chunk_size = chunk_size

    @property
    def bucket(self) -> str:
        return self._blobs.bucket

    # ---------------- Single objects ----------------

    async def push(self, identity: str, filename: str, stream: BinaryIO) -> str:
        key = object_key(identity, filename)
        if key == user_prefix(identity):
            raise ValidationError.of(ErrorMessage.INVALID_FILE_NAME)
        size = measure_stream(stream)
        await run_in_threadpool(self._blobs.put_object, key, stream, size, identity)
        logger.info("push.ok key=%s bytes=%d", key, size)
        return key

    async def pull(self, identity: str, filename: str) -> BlobStream:
        if not normalize(filename):
            raise ValidationError.of(ErrorMessage.FILE_PARAM_REQUIRED)
        key = object_key(identity, filename)
        blob = await run_in_threadpool(self._blobs.get_object, key)
        logger.info("pull.start key=%s bytes=%s", key, blob.content_length)
        return blob

    def stream_blob(self, blob: BlobStream) -> Iterator[bytes]:
        try:
            yield from blob.iter_chunks(self._chunk_size)
        except Exception:
            # Headers are gone already; the client sees a short body.
            logger.error("pull.stream.error key=%s", blob.key, exc_info=True)
        finally:
            blob.close()

    async def list_files(self, identity: str) -> List[str]:
        def _collect() -> List[str]:
            names: List[str] = []
            for obj in self._blobs.list_prefix(user_prefix(identity)):
                name = relative_name(identity, obj.key)
                if name and not is_placeholder(obj.key):
                    names.append(name)
            return names

        names = await run_in_threadpool(_collect)
        logger.info("list.ok user=%s count=%d", identity, len(names))
        return names

    # ---------------- Archives ----------------

    async def push_dir(self, identity: str, stream: BinaryIO, sub_dir: str = "") -> int:
        """
        Store every file of a .tar.gz upload. Returns the number stored;
        per-entry failures only show up in the logs.
        """
        cancel = threading.Event()
        extract = functools.partial(
            extract_archive, stream, identity, self._blobs, sub_dir or "", cancel.is_set
        )
        try:
            with timed(logger, "push_dir", user=identity, sub_dir=normalize(sub_dir) or "-"):
                # abandon_on_cancel: a cancelled request flips the flag the
                # extractor polls instead of waiting for the whole archive.
                result = await anyio.to_thread.run_sync(extract, abandon_on_cancel=True)
        finally:
            cancel.set()
        return result.stored

    async def pull_dir(self, identity: str, dir_name: str = "") -> AsyncIterator[bytes]:
        """Async view over build_archive(); each chunk is produced in a worker thread."""
        cancel = threading.Event()
        chunks = build_archive(
            identity,
            self._blobs,
            dir_name or "",
            cancelled=cancel.is_set,
            chunk_size=self._chunk_size,
        )
        try:
            with timed(logger, "pull_dir", user=identity, dir=normalize(dir_name) or "-"):
                while True:
                    chunk = await run_in_threadpool(next, chunks, None)
                    if chunk is None:
                        break
                    yield chunk
        finally:
            cancel.set()
            chunks.close()
