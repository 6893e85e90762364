"""
API request and response models for filevault REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Field names follow the wire format existing clients already use
(homeDirectory, files[].name), not Python naming.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Request body for POST /api/login.

    Both fields default to "" so a missing field reaches the handler and gets
    the same 400 "credentials_required" answer as an empty one, rather than a
    422 validation error.
    """

    username: str = Field(default="", max_length=255)
    password: str = Field(default="", max_length=1024)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserInfo(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    uid: str
    dn: str
    home_directory: str = Field(serialization_alias="homeDirectory")


class LoginResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    message: str = "Authenticated successfully"
    user: UserInfo
    token: str
    expires_at: datetime


class UploadResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str = "File uploaded successfully"
    filename: str


class FileEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str


class FileListResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    files: list[FileEntry]


class ViewResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    content: str


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
