from typing import Final


class InternalURIs:
    HEALTH = "/health"
    PUSH = "/push"
    PULL = "/pull"
    LIST = "/list"
    PUSH_DIR = "/push-dir"
    PULL_DIR = "/pull-dir"


class Headers:
    USER_ID = "X-User-ID"
    CONTENT_DISPOSITION = "Content-Disposition"
    CONTENT_LENGTH = "Content-Length"


class MediaTypes:
    OCTET_STREAM = "application/octet-stream"
    GZIP = "application/x-gzip"


MIB: Final[int] = 1024 * 1024
