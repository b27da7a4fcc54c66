# config/storage.py
from typing import Any
import boto3
from botocore.config import Config
from config.settings import Settings


def build_s3_client(settings: Settings) -> Any:
    """
    One client per process; boto3 clients are safe to share across threads.

    - Single attempt: bulk operations decide for themselves what a failure means.
    - Checksums only when required and no payload signing, so non-seekable
      archive entry streams are sent as-is with their declared Content-Length.
    """
    boto_config = Config(
        region_name=settings.R2_REGION,
        retries={"total_max_attempts": 1, "mode": "standard"},
        request_checksum_calculation="when_required",
        response_checksum_validation="when_required",
        s3={"addressing_style": "path", "payload_signing_enabled": False},
    )
    return boto3.client(
        "s3",
        endpoint_url=settings.storage_endpoint,
        aws_access_key_id=settings.R2_ACCESS_KEY,
        aws_secret_access_key=settings.R2_SECRET_KEY,
        config=boto_config,
    )
