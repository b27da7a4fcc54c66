# controller/file_controller.py
from typing import Optional
from urllib.parse import quote
from fastapi import APIRouter, Depends, Query, UploadFile
from fastapi.responses import StreamingResponse
from controller.controller_dependencies import (
    enforce_push_dir_limit,
    enforce_push_limit,
    get_file_service,
    require_identity,
)
from core.archive_builder import archive_filename
from model.api import ApiResponse, FileListResponse
from service.file_service import FileService
from util.constants import Headers, InternalURIs, MediaTypes
from util.enums import ErrorMessage
from util.errors import ValidationError

file_router = APIRouter()


def attachment_header(filename: str) -> str:
    """
    Content-Disposition for a download. Response headers must be latin-1, so
    the quoted `filename` is an ASCII fallback and the real name travels in
    the RFC 6266 `filename*` form.
    """
    fallback = "".join(
        ch if " " <= ch <= "~" and ch not in "\"\\" else "_" for ch in filename
    )
    encoded = quote(filename, safe="")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{encoded}"


@file_router.post(InternalURIs.PUSH, response_model=ApiResponse)
async def push(
    identity: str = Depends(require_identity),
    file: UploadFile = Depends(enforce_push_limit),
    service: FileService = Depends(get_file_service),
) -> ApiResponse:
    key = await service.push(identity, file.filename or "", file.file)
    return ApiResponse(success=True, message=f"File '{key}' uploaded successfully")


@file_router.get(InternalURIs.PULL)
async def pull(
    file: Optional[str] = Query(default=None),
    identity: str = Depends(require_identity),
    service: FileService = Depends(get_file_service),
) -> StreamingResponse:
    if not file:
        raise ValidationError.of(ErrorMessage.FILE_PARAM_REQUIRED)
    headers = {
        Headers.CONTENT_DISPOSITION: attachment_header(file.rstrip("/").rsplit("/", 1)[-1])
    }
    blob = await service.pull(identity, file)
    if blob.content_length is not None:
        headers[Headers.CONTENT_LENGTH] = str(blob.content_length)
    return StreamingResponse(
        service.stream_blob(blob), media_type=MediaTypes.OCTET_STREAM, headers=headers
    )


@file_router.get(InternalURIs.LIST, response_model=FileListResponse)
async def list_files(
    identity: str = Depends(require_identity),
    service: FileService = Depends(get_file_service),
) -> FileListResponse:
    return FileListResponse(files=await service.list_files(identity))


@file_router.post(InternalURIs.PUSH_DIR, response_model=ApiResponse)
async def push_dir(
    name: str = Query(default=""),
    identity: str = Depends(require_identity),
    file: UploadFile = Depends(enforce_push_dir_limit),
    service: FileService = Depends(get_file_service),
) -> ApiResponse:
    stored = await service.push_dir(identity, file.file, name)
    return ApiResponse(
        success=True,
        message=f"Extracted and uploaded {stored} files to {service.bucket}",
    )


@file_router.get(InternalURIs.PULL_DIR)
async def pull_dir(
    dir: str = Query(default=""),
    identity: str = Depends(require_identity),
    service: FileService = Depends(get_file_service),
) -> StreamingResponse:
    # Headers go out before anything is known about the listing.
    return StreamingResponse(
        service.pull_dir(identity, dir),
        media_type=MediaTypes.GZIP,
        headers={Headers.CONTENT_DISPOSITION: attachment_header(archive_filename(dir))},
    )
