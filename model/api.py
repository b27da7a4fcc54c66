# model/api.py
from typing import List
from pydantic import BaseModel, Field


class ApiResponse(BaseModel):
    success: bool
    message: str


class FileListResponse(BaseModel):
    success: bool = True
    files: List[str] = Field(default_factory=list)
