"""Pydantic schemas for managed files."""
from datetime import datetime
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field

from ...core.enums import FileStatus, USAGE_TYPE_DEFAULT


class FileResponse(BaseModel):
    """Schema for file metadata."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    domain: str
    name: str
    mime: str
    size: int
    hash: str
    status: FileStatus
    created_at: datetime


class FileListResponse(BaseModel):
    """Schema for a page of attached files."""
    files: List[FileResponse]
    total_count: int
    page: int
    page_size: int
    page_count: int


class AttachRequest(BaseModel):
    """Schema for attaching a file to (or detaching it from) an entity."""
    entity_type: str = Field(..., max_length=100)
    entity_id: str = Field(..., max_length=50)
    usage_type: int = USAGE_TYPE_DEFAULT


class AttachResponse(BaseModel):
    """Schema for the result of an attach/detach call."""
    file_id: int
    changed: bool
    msg: str


class ValidationErrorResponse(BaseModel):
    """Schema for rejected uploads."""
    errors: List[Dict[str, Any]]
