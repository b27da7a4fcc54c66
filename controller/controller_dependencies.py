# controller/controller_dependencies.py
from typing import Awaitable, Callable, Optional
from fastapi import File, Header, Request, UploadFile
from config.settings import Settings
from service.file_service import FileService, measure_stream
from util.constants import Headers, MIB
from util.enums import ErrorMessage
from util.errors import AppError, ValidationError


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_file_service(request: Request) -> FileService:
    return request.app.state.file_service


async def require_identity(
    user_id: Optional[str] = Header(default=None, alias=Headers.USER_ID),
) -> str:
    """Trust boundary: the identity is taken as-is, only its presence is checked."""
    if not user_id:
        raise AppError.of(ErrorMessage.UNAUTHORIZED)
    return user_id


def upload_limit(max_mb_of: Callable[[Settings], int]) -> Callable[..., Awaitable[UploadFile]]:
    """
    Build a dependency that yields the `file` form field, capped at
    max_mb_of(settings). FastAPI has spooled the whole multipart body before
    this runs, so the cap is checked on the spooled file, not Content-Length.
    """

    async def enforce_max_upload_size(
        request: Request, file: Optional[UploadFile] = File(default=None)
    ) -> UploadFile:
        if file is None:
            raise ValidationError.of(ErrorMessage.NO_FILE)

        max_mb = max_mb_of(get_settings(request))
        if measure_stream(file.file) > max_mb * MIB:
            raise ValidationError.of(ErrorMessage.FILE_TOO_LARGE, max_mb=max_mb)
        return file

    return enforce_max_upload_size


enforce_push_limit = upload_limit(lambda s: s.MAX_PUSH_MB)
enforce_push_dir_limit = upload_limit(lambda s: s.MAX_PUSH_DIR_MB)
