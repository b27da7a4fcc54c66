# util/enums.py
from enum import Enum
from typing import NamedTuple
from fastapi import status


class Color(str, Enum):
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"
    BOLD = "\033[1m"

    def __str__(self):
        return self.value


class Environment(str, Enum):
    DEV = "dev"
    PROD = "prod"


class ErrorInfo(NamedTuple):
    message: str
    http_status: int


class ErrorMessage(Enum):
    UNAUTHORIZED = ErrorInfo("Unauthorized", status.HTTP_401_UNAUTHORIZED)
    NO_FILE = ErrorInfo("No file provided", status.HTTP_400_BAD_REQUEST)
    FILE_TOO_LARGE = ErrorInfo(
        "File exceeds {max_mb}MiB upload limit", status.HTTP_413_CONTENT_TOO_LARGE
    )
    INVALID_FILE_NAME = ErrorInfo("Invalid file name", status.HTTP_400_BAD_REQUEST)
    FILE_PARAM_REQUIRED = ErrorInfo(
        "File parameter required", status.HTTP_400_BAD_REQUEST
    )
    INVALID_GZIP = ErrorInfo("Invalid gzip file", status.HTTP_400_BAD_REQUEST)
    INVALID_TAR = ErrorInfo("Invalid tar file", status.HTTP_400_BAD_REQUEST)
    NOT_FOUND = ErrorInfo(
        "File not found or access denied", status.HTTP_404_NOT_FOUND
    )
    UPLOAD_FAILED = ErrorInfo(
        "Failed to upload to storage", status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    DOWNLOAD_FAILED = ErrorInfo(
        "Failed to download from storage", status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    LIST_FAILED = ErrorInfo(
        "Failed to list files", status.HTTP_500_INTERNAL_SERVER_ERROR
    )
