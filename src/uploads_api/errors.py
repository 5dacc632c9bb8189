"""Exception taxonomy and FastAPI error handlers."""

import logging
from typing import Union

import pydantic
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class FileServiceError(Exception):
    """Base class for every failure the file service reports."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UploadValidationError(FileServiceError):
    """An uploaded file was rejected by the upload policy."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, filename: str):
        super().__init__(message)
        self.filename = filename


class FileTooLargeError(UploadValidationError):
    """The file is bigger than the configured maximum size."""

    def __init__(self, filename: str, size: int, max_size: int):
        if max_size % (1024 * 1024) == 0:
            limit = f"{max_size // (1024 * 1024)} MB"
        else:
            limit = f"{max_size} bytes"
        super().__init__(f"file {filename} is too large (max {limit})", filename)
        self.size = size
        self.max_size = max_size


class ContentTypeNotAllowedError(UploadValidationError):
    """The declared content type is not in the allow-set."""

    def __init__(self, filename: str, content_type: str):
        super().__init__(f"file type {content_type} is not allowed", filename)
        self.content_type = content_type


class StoredFileNotFoundError(FileServiceError):
    """No stored file has the requested identifier."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, file_id: str):
        super().__init__("File not found")
        self.file_id = file_id


class StorageError(FileServiceError):
    """The filesystem failed while saving, scanning or deleting."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


async def handle_file_service_errors(request: Request, exc: FileServiceError) -> JSONResponse:
    """Map a typed service failure onto its HTTP status code."""
    if isinstance(exc, StorageError):
        logger.error(f"{request.method} {request.url.path} failed: {exc.message} ({exc.__cause__})")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message},
    )


async def handle_pydantic_validation_errors(
    request: Request, exc: Union[pydantic.ValidationError, RequestValidationError]
) -> JSONResponse:
    errors = exc.errors()
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "Invalid request",
            "detail": [
                {
                    "msg": error["msg"],
                    "input": str(error.get("input")),
                }
                for error in errors
            ],
        },
    )


async def handle_broad_exceptions(request: Request, call_next):
    """Handle any exception that goes unhandled by a more specific exception handler."""
    try:
        return await call_next(request)
    except Exception:  # pylint: disable=broad-except
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"},
        )
