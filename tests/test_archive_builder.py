"""Tests for pull-dir: prefix listing to a streamed .tar.gz."""

from __future__ import annotations

import gzip
import io
import random
import tarfile

import pytest

from core.archive_builder import TarStreamWriter, archive_filename, build_archive
from repository.blob_repository import BlobRepository
from tests.mocks import FakeS3Client, read_tar_gz


def _build(blobs: BlobRepository, identity: str = "alice", sub_dir: str = "", **kw) -> bytes:
    return b"".join(build_archive(identity, blobs, sub_dir, **kw))


@pytest.fixture
def stored(s3: FakeS3Client) -> FakeS3Client:
    s3.objects.update(
        {
            "alice/a.txt": b"alpha",
            "alice/photos/summer/img.jpg": b"\xff\xd8jpeg",
            "alice/photos/winter.jpg": b"snow",
            "alice/photos/": b"",
            "alicia/not-mine.txt": b"nope",
            "bob/b.txt": b"beta",
        }
    )
    return s3


class TestBuildArchive:
    def test_whole_namespace(self, blobs: BlobRepository, stored: FakeS3Client) -> None:
        files = read_tar_gz(_build(blobs))

        assert files == {
            "a.txt": b"alpha",
            "photos/summer/img.jpg": b"\xff\xd8jpeg",
            "photos/winter.jpg": b"snow",
        }

    def test_sub_dir_keeps_its_segment(
        self, blobs: BlobRepository, stored: FakeS3Client
    ) -> None:
        files = read_tar_gz(_build(blobs, sub_dir="photos"))

        assert set(files) == {"photos/summer/img.jpg", "photos/winter.jpg"}
        assert stored.list_calls == ["alice/photos/"]

    def test_traversal_sub_dir_stays_in_namespace(
        self, blobs: BlobRepository, stored: FakeS3Client
    ) -> None:
        files = read_tar_gz(_build(blobs, sub_dir="../../bob"))

        assert files == {}
        assert stored.list_calls == ["alice/bob/"]

    def test_entry_headers(self, blobs: BlobRepository, stored: FakeS3Client) -> None:
        data = _build(blobs, sub_dir="photos", mtime=1700000000)

        with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as tar:
            member = tar.getmember("photos/winter.jpg")

        assert member.isreg()
        assert member.size == 4
        assert member.mode == 0o644
        assert member.mtime == 1700000000

    def test_empty_listing_gives_empty_archive(self, blobs: BlobRepository) -> None:
        data = _build(blobs, sub_dir="nothing-here")

        assert read_tar_gz(data) == {}
        assert len(gzip.decompress(data)) % tarfile.RECORDSIZE == 0

    def test_streams_in_small_chunks(self, blobs: BlobRepository, s3: FakeS3Client) -> None:
        payload = random.Random(0).randbytes(2 * 1024 * 1024)
        s3.objects["alice/big.bin"] = payload

        chunks = list(build_archive("alice", blobs, chunk_size=16 * 1024))

        assert len(chunks) > 4
        assert max(len(c) for c in chunks) < 512 * 1024
        assert read_tar_gz(b"".join(chunks)) == {"big.bin": payload}


class TestPartialFailure:
    def test_failed_get_skips_entry(self, blobs: BlobRepository, stored: FakeS3Client) -> None:
        stored.fail_get_keys.add("alice/photos/winter.jpg")

        files = read_tar_gz(_build(blobs))

        assert set(files) == {"a.txt", "photos/summer/img.jpg"}

    def test_failed_copy_keeps_framing(self, blobs: BlobRepository, s3: FakeS3Client) -> None:
        s3.objects.update({"alice/1.txt": b"abcdefgh", "alice/2.txt": b"second"})
        s3.broken_body_keys.add("alice/1.txt")

        files = read_tar_gz(_build(blobs))

        assert files == {"1.txt": b"abcd\0\0\0\0", "2.txt": b"second"}

    def test_listing_failure_still_finalizes(
        self, blobs: BlobRepository, s3: FakeS3Client
    ) -> None:
        s3.fail_list = True

        assert read_tar_gz(_build(blobs)) == {}


class TestCancellation:
    def test_closing_early_closes_listing(
        self, blobs: BlobRepository, stored: FakeS3Client
    ) -> None:
        chunks = build_archive("alice", blobs)
        next(chunks)
        chunks.close()

        assert stored.pages_served == 1

    def test_cancel_flag_stops_output(self, blobs: BlobRepository, stored: FakeS3Client) -> None:
        chunks = list(build_archive("alice", blobs, cancelled=lambda: True))

        assert stored.pages_served == 0
        assert chunks == []


class TestTarStreamWriter:
    def test_truncates_oversized_writes(self) -> None:
        from core.archive_builder import _ChunkSink

        sink = _ChunkSink()
        writer = TarStreamWriter(sink)
        writer.begin_entry("x.txt", 3, 0)
        assert writer.write(b"abcdef") == 3
        assert writer.end_entry() == 0
        writer.close()

        assert read_tar_gz(sink.drain()) == {"x.txt": b"abc"}


class TestArchiveFilename:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("photos", "photos.tar.gz"),
            ("/photos/summer/", "photos_summer.tar.gz"),
            ("a/../b/c", "b_c.tar.gz"),
            ("写真", "写真.tar.gz"),
            ("", "archive.tar.gz"),
            ("..", "archive.tar.gz"),
            ('we"ird', "weird.tar.gz"),
        ],
    )
    def test_names(self, raw: str, expected: str) -> None:
        assert archive_filename(raw) == expected
