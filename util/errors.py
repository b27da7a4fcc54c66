# util/errors.py
from fastapi import HTTPException, status
from util.enums import ErrorMessage


class AppError(HTTPException):
    # Flow: raise AppError to short-circuit with a typed status & message.
    def __init__(
        self, message: str, http_status: int = status.HTTP_400_BAD_REQUEST
    ) -> None:
        super().__init__(status_code=http_status, detail=message)

    @classmethod
    def of(cls, error: ErrorMessage, **details: object) -> "AppError":
        # details fill {placeholders} in the message, e.g. the upload limit.
        return cls(error.value.message.format(**details), error.value.http_status)

    @property
    def message(self) -> str:
        return str(self.detail)


class ValidationError(AppError):
    """Missing, oversized or unusable request input. Raised before any storage call."""


class DecodeError(AppError):
    """The uploaded archive cannot be decoded (gzip or tar framing)."""


class NotFoundError(AppError):
    """The requested object does not exist."""


class UpstreamError(AppError):
    """The object store rejected or failed a request."""


class OperationCancelled(Exception):
    """The request driving a bulk transfer went away; stop without compensating."""
