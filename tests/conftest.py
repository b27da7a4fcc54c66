"""Shared test fixtures and configuration."""

from __future__ import annotations

import pytest

from config.settings import Settings
from repository.blob_repository import BlobRepository
from tests.mocks import FakeS3Client

BUCKET = "test-bucket"


@pytest.fixture
def settings() -> Settings:
    """Explicit settings so tests never depend on the environment."""
    return Settings(
        APP_ENV="dev",
        R2_ACCOUNT_ID="account",
        R2_ACCESS_KEY="access",
        R2_SECRET_KEY="secret",
        R2_BUCKET=BUCKET,
        MAX_PUSH_MB=1,
        MAX_PUSH_DIR_MB=2,
        STREAM_CHUNK_BYTES=1024,
    )


@pytest.fixture
def s3() -> FakeS3Client:
    """Fake S3 client with small pages so pagination is always exercised."""
    return FakeS3Client(page_size=2)


@pytest.fixture
def blobs(s3: FakeS3Client) -> BlobRepository:
    return BlobRepository(s3, BUCKET)
