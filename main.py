# main.py
import logging
from contextlib import asynccontextmanager
from typing import Any, Optional
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import routes
from config.settings import Settings, load_settings
from config.storage import build_s3_client
from model.api import ApiResponse
from repository.blob_repository import BlobRepository
from service.file_service import FileService
from util.constants import InternalURIs
from util.enums import Color, Environment
from util.errors import AppError
from util.logger import init_logger

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, s3_client: Any = None) -> FastAPI:
    """
    Build the gateway. Settings and the storage client are created once here
    and handed down; tests pass their own.
    """
    settings = settings or load_settings()
    client = s3_client if s3_client is not None else build_s3_client(settings)

    @asynccontextmanager
    async def lifespan(fastApi: FastAPI):
        init_logger(settings)
        print(f"{Color.GREEN}Initializing...{Color.RESET}")
        logger.info(
            "storage endpoint=%s bucket=%s",
            settings.storage_endpoint,
            settings.R2_BUCKET,
        )
        print(f"{Color.BLUE}Server Started{Color.RESET}")
        try:
            yield
        finally:
            print(f"{Color.RED}Server Shutdown{Color.RESET}")

    app: FastAPI = FastAPI(lifespan=lifespan)
    app.state.settings = settings
    app.state.file_service = FileService(
        BlobRepository(client, settings.R2_BUCKET),
        chunk_size=settings.STREAM_CHUNK_BYTES,
    )

    @app.get(InternalURIs.HEALTH, response_model=ApiResponse)
    async def health() -> ApiResponse:
        return ApiResponse(success=True, message="OK")

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return JSONResponse(
            status_code=exc.status_code,
            content=ApiResponse(success=False, message=exc.message).model_dump(),
            headers=exc.headers,
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error("request.unhandled path=%s", request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=500,
            content=ApiResponse(success=False, message="Internal Error").model_dump(),
        )

    routes.register_routes(app)
    return app


if __name__ == "__main__":
    import uvicorn

    _settings = load_settings()
    reload = _settings.APP_ENV == Environment.DEV
    uvicorn.run(
        "main:create_app",
        factory=True,
        host=_settings.HOST,
        port=_settings.PORT,
        reload=reload,
    )
