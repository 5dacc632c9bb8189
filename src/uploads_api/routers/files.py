import mimetypes
from typing import BinaryIO, Iterator, List, Optional
from urllib.parse import quote

from fastapi import (
    APIRouter,
    Depends,
    File,
    Path,
    UploadFile,
    status
)
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import StreamingResponse

from uploads_api.config.settings import Settings
from uploads_api.dependencies import get_app_settings, get_file_service
from uploads_api.schemas import (
    DeleteFileResponse,
    ErrorResponse,
    StoredFile,
    UploadFilesResponse,
)
from uploads_api.services import FileService, IncomingFile
from uploads_api.validation import validate_upload

DOWNLOAD_CHUNK_SIZE = 64 * 1024

router = APIRouter()


@router.post(
    "/upload",
    response_model=UploadFilesResponse,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse, "description": "A file broke the upload policy."},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse, "description": "Failed to save file."},
    },
)
async def upload_files(
    files: Optional[List[UploadFile]] = File(None, description="The files to upload"),
    settings: Settings = Depends(get_app_settings),
    service: FileService = Depends(get_file_service),
) -> UploadFilesResponse:
    """
    Upload one or more files in a single multipart request.

    The batch is all or nothing: if any file is rejected, none is stored.
    """
    files = files or []

    # Reject oversized parts before reading them into memory
    for upload in files:
        if upload.size is not None:
            validate_upload(upload.filename or "", upload.size, upload.content_type, settings)

    incoming = [
        IncomingFile(
            content=await upload.read(),
            filename=upload.filename or "",
            content_type=upload.content_type,
        )
        for upload in files
    ]
    stored = await run_in_threadpool(service.upload, incoming)

    return UploadFilesResponse(message="Files uploaded successfully", files=stored)


@router.get("/files", response_model=List[StoredFile])
def list_files(service: FileService = Depends(get_file_service)) -> List[StoredFile]:
    """List every stored file."""
    return service.list_all()


@router.get(
    "/files/{file_id}/download",
    responses={
        status.HTTP_404_NOT_FOUND: {
            "model": ErrorResponse,
            "description": "No file has the given `file_id`.",
        },
        status.HTTP_200_OK: {
            "description": "The file content.",
            "content": {
                "application/octet-stream": {
                    "schema": {"type": "string", "format": "binary"},
                },
            },
        },
    },
)
def download_file(
    file_id: str = Path(..., description="The identifier returned at upload"),
    service: FileService = Depends(get_file_service),
) -> StreamingResponse:
    """Download a file under its original name."""
    stored, handle = service.open_download(file_id)
    media_type = stored.content_type or mimetypes.guess_type(stored.name)[0] or "application/octet-stream"
    return StreamingResponse(
        _iter_chunks(handle),
        media_type=media_type,
        headers={
            "Content-Disposition": _content_disposition(stored.name),
        },
    )


@router.delete(
    "/files/{file_id}",
    response_model=DeleteFileResponse,
    responses={
        status.HTTP_404_NOT_FOUND: {
            "model": ErrorResponse,
            "description": "No file has the given `file_id`.",
        },
        status.HTTP_500_INTERNAL_SERVER_ERROR: {
            "model": ErrorResponse,
            "description": "Failed to delete file.",
        },
    },
)
def delete_file(
    file_id: str = Path(..., description="The identifier returned at upload"),
    service: FileService = Depends(get_file_service),
) -> DeleteFileResponse:
    """Delete a file."""
    service.delete(file_id)
    return DeleteFileResponse(message="File deleted successfully")


def _iter_chunks(handle: BinaryIO) -> Iterator[bytes]:
    with handle:
        while chunk := handle.read(DOWNLOAD_CHUNK_SIZE):
            yield chunk


def _content_disposition(filename: str) -> str:
    quoted = quote(filename)
    if quoted != filename:
        return f"attachment; filename*=utf-8''{quoted}"
    return f'attachment; filename="{filename}"'
