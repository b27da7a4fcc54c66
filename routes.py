# routes.py
from fastapi import FastAPI
from controller.file_controller import file_router


def register_routes(app: FastAPI) -> None:
    """Register & Access control controllers here."""
    app.include_router(file_router)
