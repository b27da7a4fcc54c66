# core/archive_extractor.py
import gzip
import logging
import tarfile
from typing import BinaryIO
from core.entities import (
    DECODE_ERRORS,
    CancelCheck,
    EntryStream,
    ExtractResult,
    TransferOutcome,
    never_cancelled,
)
from core.key_paths import normalize, normalize_prefix, user_prefix
from repository.blob_repository import BlobRepository
from util.enums import ErrorMessage
from util.errors import DecodeError, OperationCancelled, UpstreamError

logger = logging.getLogger(__name__)


def _decode_error(exc: BaseException) -> DecodeError:
    if isinstance(exc, tarfile.TarError):
        return DecodeError.of(ErrorMessage.INVALID_TAR)
    return DecodeError.of(ErrorMessage.INVALID_GZIP)


def extract_archive(
    stream: BinaryIO,
    identity: str,
    blobs: BlobRepository,
    sub_dir: str = "",
    cancelled: CancelCheck = never_cancelled,
) -> ExtractResult:
    """
    Decode a gzip-compressed tar stream entry by entry and store each regular
    file as identity/[sub_dir/]<entry path>.

    - Entries are handled strictly in stream order, one at a time; each
      entry's bytes flow from the decoder straight into the put.
    - Directory markers and other non-regular members are skipped.
    - A failed put is logged and recorded, then the next entry is tried.
    - Malformed gzip/tar data aborts everything with DecodeError.
    - cancelled() is polled between entries and on every entry read.
    """
    base = user_prefix(identity) + normalize_prefix(sub_dir)
    result = ExtractResult()

    gz = gzip.GzipFile(fileobj=stream, mode="rb")
    try:
        tar = tarfile.open(fileobj=gz, mode="r|")
    except DECODE_ERRORS as exc:
        logger.warning("push_dir.decode.error user=%s err=%s", identity, exc)
        gz.close()
        raise _decode_error(exc) from exc

    with gz, tar:
        while True:
            if cancelled():
                raise OperationCancelled("request cancelled between entries")
            try:
                member = tar.next()
            except DECODE_ERRORS as exc:
                logger.warning(
                    "push_dir.decode.error user=%s stored=%d err=%s",
                    identity,
                    result.stored,
                    exc,
                )
                raise _decode_error(exc) from exc
            if member is None:
                break
            # stream mode keeps every TarInfo otherwise
            tar.members = []

            if member.isdir():
                continue
            if not member.isreg():
                logger.debug("push_dir.entry.skip name=%s type=%r", member.name, member.type)
                continue

            relative = normalize(member.name)
            if not relative:
                logger.warning("push_dir.entry.unnamed name=%r", member.name)
                continue
            key = base + relative

            raw = tar.extractfile(member)
            if raw is None:
                continue
            entry = EntryStream(raw, member.size, cancelled)
            try:
                blobs.put_object(key, entry, member.size, identity)
            except UpstreamError as exc:
                if entry.decode_error is not None:
                    raise _decode_error(entry.decode_error) from exc
                if cancelled():
                    raise OperationCancelled("request cancelled during entry upload") from exc
                logger.error("push_dir.entry.error key=%s err=%s", key, exc.__cause__ or exc)
                result.outcomes.append(
                    TransferOutcome(key=key, ok=False, error=str(exc.__cause__ or exc.detail))
                )
                continue
            except DECODE_ERRORS as exc:
                raise _decode_error(exc) from exc

            result.stored += 1
            result.outcomes.append(TransferOutcome(key=key, ok=True))

    logger.info(
        "push_dir.complete user=%s stored=%d failed=%d",
        identity,
        result.stored,
        len(result.failed),
    )
    return result
