# core/entities.py
import gzip
import zlib
import tarfile
from dataclasses import dataclass, field
from typing import BinaryIO, Callable, List, Optional
from util.errors import OperationCancelled

# Anything the gzip/tar readers raise when the inbound bytes are malformed.
DECODE_ERRORS = (tarfile.TarError, gzip.BadGzipFile, zlib.error, EOFError)

CancelCheck = Callable[[], bool]


def never_cancelled() -> bool:
    return False


@dataclass(frozen=True)
class ListedObject:
    key: str
    size: int


@dataclass(frozen=True)
class TransferOutcome:
    key: str
    ok: bool
    error: Optional[str] = None


@dataclass
class ExtractResult:
    stored: int = 0
    outcomes: List[TransferOutcome] = field(default_factory=list)

    @property
    def failed(self) -> List[TransferOutcome]:
        return [o for o in self.outcomes if not o.ok]


class EntryStream:
    """
    Read-only view of one tar member's content while the archive is being
    decoded. Exposes read() only, so upload clients treat it as a
    non-seekable stream and never try to rewind the archive.

    Decode failures raised while the uploader pulls bytes are remembered in
    `decode_error`, since the uploader may wrap or swallow the original.
    """

    def __init__(
        self, raw: BinaryIO, size: int, cancelled: CancelCheck = never_cancelled
    ) -> None:
        self._raw = raw
        self._remaining = size
        self._cancelled = cancelled
        self.decode_error: Optional[BaseException] = None

    def read(self, n: int = -1) -> bytes:
        if self._cancelled():
            raise OperationCancelled("request cancelled during entry upload")
        if self._remaining <= 0 or n == 0:
            return b""
        if n is None or n < 0 or n > self._remaining:
            n = self._remaining
        try:
            data = self._raw.read(n)
        except DECODE_ERRORS as exc:
            self.decode_error = exc
            raise
        if not data:
            self.decode_error = tarfile.ReadError("unexpected end of data")
            raise self.decode_error
        self._remaining -= len(data)
        return data
