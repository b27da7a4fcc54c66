# config/settings.py
import os
import sys
from dotenv import load_dotenv
from pydantic import ValidationError, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from util.enums import Environment
import logging


if os.getenv("APP_ENV", Environment.DEV) == Environment.DEV:
    load_dotenv()

_log = logging.getLogger("config.settings")


class Settings(BaseSettings):
    """
    Immutable process configuration. Built once by load_settings() and handed
    to the app factory, the logger and the storage client factory.
    """

    model_config = SettingsConfigDict(frozen=True, extra="ignore")

    # App
    APP_ENV: str = Field(default=Environment.DEV.value, validation_alias="APP_ENV")
    HOST: str = Field(default="0.0.0.0", validation_alias="HOST")
    PORT: int = Field(default=8081, validation_alias="PORT")

    # Object storage (Cloudflare R2 or any S3-compatible endpoint)
    R2_ACCOUNT_ID: str = Field(..., min_length=1, validation_alias="R2_ACCOUNT_ID")
    R2_ACCESS_KEY: str = Field(..., min_length=1, validation_alias="R2_ACCESS_KEY")
    R2_SECRET_KEY: str = Field(..., min_length=1, validation_alias="R2_SECRET_KEY")
    R2_BUCKET: str = Field(..., min_length=1, validation_alias="R2_BUCKET")
    R2_ENDPOINT: str = Field(default="", validation_alias="R2_ENDPOINT")
    R2_REGION: str = Field(default="auto", validation_alias="R2_REGION")

    # Limits
    MAX_PUSH_MB: int = Field(default=100, gt=0, validation_alias="MAX_PUSH_MB")
    MAX_PUSH_DIR_MB: int = Field(default=500, gt=0, validation_alias="MAX_PUSH_DIR_MB")
    STREAM_CHUNK_BYTES: int = Field(
        default=64 * 1024, gt=0, validation_alias="STREAM_CHUNK_BYTES"
    )

    # Logging knobs
    LOGGER_NAME: str = "file-gateway"
    LOG_LEVEL: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    LOG_TO_FILE: bool = Field(default=False, validation_alias="LOG_TO_FILE")
    LOG_DIR: str = Field(default="logs", validation_alias="LOG_DIR")
    LOG_FILE_NAME: str = Field(default="app.log", validation_alias="LOG_FILE_NAME")
    LOG_MAX_BYTES: int = Field(
        default=50 * 1024 * 1024, validation_alias="LOG_MAX_BYTES"
    )
    LOG_BACKUP_COUNT: int = Field(default=5, validation_alias="LOG_BACKUP_COUNT")

    @property
    def storage_endpoint(self) -> str:
        if self.R2_ENDPOINT:
            return self.R2_ENDPOINT.rstrip("/")
        return f"https://{self.R2_ACCOUNT_ID}.r2.cloudflarestorage.com"


def load_settings() -> Settings:
    try:
        return Settings()
    except ValidationError as e:
        print("❌ Missing/invalid environment variables:", file=sys.stderr)
        for err in e.errors():
            loc = ".".join(str(x) for x in err.get("loc", []))
            msg = err.get("msg", "")
            print(f" - {loc}: {msg}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"❌ Settings initialization failed: {e}", file=sys.stderr)
        sys.exit(1)
