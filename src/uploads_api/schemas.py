####################################
# --- Request/response schemas --- #
####################################

from datetime import datetime
from pathlib import Path
from typing import List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
)


class StoredFile(BaseModel):
    """Metadata of a stored file, rebuilt from the storage root on every read."""
    id: str = Field(
        description="Identifier assigned at upload time.",
        json_schema_extra={"example": "3fa85f64-5717-4562-b3fc-2c963f66afa6"},
    )
    name: str = Field(
        description="The file name supplied by the client at upload time.",
        json_schema_extra={"example": "report.pdf"},
    )
    size: int = Field(description="The size of the file in bytes.", ge=0)
    type: str = Field(
        description="Coarse category derived from the file extension.",
        json_schema_extra={"example": "application/pdf"},
    )
    upload_date: datetime = Field(
        alias="uploadDate",
        description="When the file was stored.",
    )
    content_type: Optional[str] = Field(
        default=None,
        exclude=True,
        description="Declared MIME type at upload, if it was recorded.",
    )
    path: Optional[Path] = Field(
        default=None,
        exclude=True,
        description="Server-local location, never exposed.",
    )

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "3fa85f64-5717-4562-b3fc-2c963f66afa6",
                "name": "report.pdf",
                "size": 512,
                "type": "application/pdf",
                "uploadDate": "2024-01-01T00:00:00Z",
            }
        },
    )


class UploadFilesResponse(BaseModel):
    """Response model for `POST /upload`."""
    message: str = Field(description="A message about the operation.")
    files: List[StoredFile]

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "message": "Files uploaded successfully",
                "files": [
                    {
                        "id": "3fa85f64-5717-4562-b3fc-2c963f66afa6",
                        "name": "report.pdf",
                        "size": 512,
                        "type": "application/pdf",
                        "uploadDate": "2024-01-01T00:00:00Z",
                    }
                ],
            }
        }
    )


class DeleteFileResponse(BaseModel):
    """Response model for `DELETE /files/:id`."""
    message: str


class ErrorResponse(BaseModel):
    """Body of every error response."""
    error: str = Field(description="Human readable reason.")


class HealthResponse(BaseModel):
    """Response model for `GET /health`."""
    status: str
    components: dict
    ready: bool
