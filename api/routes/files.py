"""
api/routes/files.py -- File operations on the caller's own namespace.

Routes:
  POST   /upload               -- multipart field "file"; stores a new file
  GET    /files                -- list stored filenames
  GET    /download/{filename}  -- stream a file as an attachment
  GET    /view/{filename}      -- file content as text
  DELETE /delete/{filename}    -- remove a file

Auth policy: every route requires a bearer session token
(get_identity_context). No route accepts a directory, a storage root or a
path -- only a bare filename, which the gateway resolves inside the caller's
own uploads directory.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, UploadFile
from fastapi.responses import FileResponse

from api.models import ErrorDetail, FileEntry, FileListResponse, MessageResponse, UploadResponse, ViewResponse
from auth.dependencies import get_identity_context
from auth.models import IdentityContext
from storage.gateway import FileGateway

router = APIRouter()


def _gateway(request: Request) -> FileGateway:
    return request.app.state.gateway


@router.post("/upload", response_model=UploadResponse)
async def upload_file(
    request: Request,
    file: UploadFile,
    context: IdentityContext = Depends(get_identity_context),
) -> UploadResponse:
    """Store an uploaded file as <timestamp>-<original name>."""
    max_bytes: int = request.app.state.max_upload_bytes
    # Size guard -- read one byte past the limit; reject if it was reached
    data = await file.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise HTTPException(
            status_code=413,
            detail=ErrorDetail(
                code="file_too_large",
                message=f"Upload must be {max_bytes} bytes or smaller.",
            ).model_dump(),
        )
    stored_name = _gateway(request).upload(context, data, file.filename)
    return UploadResponse(filename=stored_name)


@router.get("/files", response_model=FileListResponse)
def list_files(request: Request, context: IdentityContext = Depends(get_identity_context)) -> FileListResponse:
    names = _gateway(request).list_files(context)
    return FileListResponse(files=[FileEntry(name=n) for n in names])


@router.get("/download/{filename}")
def download_file(
    request: Request,
    filename: str,
    context: IdentityContext = Depends(get_identity_context),
) -> FileResponse:
    path = _gateway(request).download(context, filename)
    return FileResponse(path, filename=path.name, media_type="application/octet-stream")


@router.get("/view/{filename}", response_model=ViewResponse)
def view_file(
    request: Request,
    filename: str,
    context: IdentityContext = Depends(get_identity_context),
) -> ViewResponse:
    return ViewResponse(content=_gateway(request).view(context, filename))


@router.delete("/delete/{filename}", response_model=MessageResponse)
def delete_file(
    request: Request,
    filename: str,
    context: IdentityContext = Depends(get_identity_context),
) -> MessageResponse:
    _gateway(request).delete(context, filename)
    return MessageResponse(message="File deleted successfully")
