# core/archive_builder.py
import gzip
import logging
import tarfile
import time
from typing import Final, Iterator, Optional
from core.entities import CancelCheck, never_cancelled
from core.key_paths import (
    is_placeholder,
    normalize,
    normalize_prefix,
    relative_name,
    user_prefix,
)
from repository.blob_repository import BlobRepository
from util.errors import NotFoundError, UpstreamError

logger = logging.getLogger(__name__)

NUL: Final[bytes] = b"\0"
DEFAULT_CHUNK: Final[int] = 64 * 1024
FALLBACK_ARCHIVE_NAME: Final[str] = "archive"


class _ChunkSink:
    """Write target for the gzip layer; the generator drains it after each step."""

    def __init__(self) -> None:
        self._buf = bytearray()

    def write(self, data: bytes) -> int:
        self._buf += data
        return len(data)

    def flush(self) -> None:
        pass

    def drain(self) -> bytes:
        out = bytes(self._buf)
        self._buf.clear()
        return out


class TarStreamWriter:
    """
    Incremental gzip+tar writer. Unlike TarFile.addfile, an entry's content
    is written piecewise, so nothing larger than one chunk is held at once.

    Entries are framed by their declared size: extra bytes are dropped,
    missing bytes are zero-filled on end_entry(), so one bad entry never
    breaks the framing of the ones after it.
    """

    def __init__(self, sink: _ChunkSink, compresslevel: int = 6) -> None:
        self._gz = gzip.GzipFile(fileobj=sink, mode="wb", compresslevel=compresslevel)
        self._offset = 0
        self._size = 0
        self._remaining = 0

    @property
    def remaining(self) -> int:
        return self._remaining

    def _emit(self, data: bytes) -> None:
        self._gz.write(data)
        self._offset += len(data)

    def begin_entry(self, name: str, size: int, mtime: int) -> None:
        info = tarfile.TarInfo(name)
        info.size = size
        info.mode = 0o644
        info.mtime = mtime
        info.type = tarfile.REGTYPE
        self._emit(info.tobuf(tarfile.PAX_FORMAT))
        self._size = size
        self._remaining = size

    def write(self, data: bytes) -> int:
        data = data[: self._remaining]
        if data:
            self._emit(data)
            self._remaining -= len(data)
        return len(data)

    def end_entry(self) -> int:
        """Close the current entry. Returns how many bytes had to be zero-filled."""
        missing = self._remaining
        while self._remaining:
            step = min(self._remaining, DEFAULT_CHUNK)
            self._emit(NUL * step)
            self._remaining -= step
        pad = (-self._size) % tarfile.BLOCKSIZE
        if pad:
            self._emit(NUL * pad)
        self._size = 0
        return missing

    def close(self) -> None:
        # End-of-archive marker, then pad to a full record like tarfile does.
        self._emit(NUL * (tarfile.BLOCKSIZE * 2))
        remainder = self._offset % tarfile.RECORDSIZE
        if remainder:
            self._emit(NUL * (tarfile.RECORDSIZE - remainder))
        self._gz.close()


def archive_filename(dir_name: Optional[str]) -> str:
    """Download name for a pull-dir: the normalized path flattened with `_`."""
    flat = normalize(dir_name).replace("/", "_").replace('"', "")
    return f"{flat or FALLBACK_ARCHIVE_NAME}.tar.gz"


def build_archive(
    identity: str,
    blobs: BlobRepository,
    sub_dir: str = "",
    cancelled: CancelCheck = never_cancelled,
    chunk_size: int = DEFAULT_CHUNK,
    mtime: Optional[int] = None,
) -> Iterator[bytes]:
    """
    Yield a gzip-compressed tar of every object under identity/[sub_dir/].

    Output starts before the listing is known, so nothing after the first
    byte can be reported as an error: a failed get skips the object, a
    failed copy leaves a zero-filled entry, a failed listing ends the
    archive early. All of them are logged.

    Entry names keep the sub_dir segment: "<identity>/photos/a.jpg" is
    archived as "photos/a.jpg".
    """
    prefix = user_prefix(identity) + normalize_prefix(sub_dir)
    stamp = int(time.time()) if mtime is None else mtime
    sink = _ChunkSink()
    writer = TarStreamWriter(sink)
    listing = blobs.list_prefix(prefix)
    archived = 0
    failed = 0

    try:
        while True:
            if cancelled():
                logger.info("pull_dir.cancelled prefix=%s archived=%d", prefix, archived)
                return
            try:
                obj = next(listing, None)
            except UpstreamError:
                logger.error("pull_dir.list.error prefix=%s archived=%d", prefix, archived)
                break
            if obj is None:
                break
            if is_placeholder(obj.key):
                continue

            name = relative_name(identity, obj.key)
            try:
                blob = blobs.get_object(obj.key)
            except (NotFoundError, UpstreamError) as exc:
                logger.error("pull_dir.get.error key=%s err=%s", obj.key, exc.detail)
                failed += 1
                continue

            try:
                writer.begin_entry(name, obj.size, stamp)
                try:
                    for chunk in blob.iter_chunks(chunk_size):
                        writer.write(chunk)
                        out = sink.drain()
                        if out:
                            yield out
                        if writer.remaining == 0 or cancelled():
                            break
                except Exception:
                    logger.error("pull_dir.copy.error key=%s", obj.key, exc_info=True)
                    failed += 1
                else:
                    archived += 1
                missing = writer.end_entry()
                if missing:
                    logger.warning(
                        "pull_dir.entry.short key=%s listed=%d missing=%d",
                        obj.key,
                        obj.size,
                        missing,
                    )
            finally:
                blob.close()

            out = sink.drain()
            if out:
                yield out

        writer.close()
        out = sink.drain()
        if out:
            yield out
        logger.info(
            "pull_dir.complete prefix=%s archived=%d failed=%d", prefix, archived, failed
        )
    finally:
        listing.close()
