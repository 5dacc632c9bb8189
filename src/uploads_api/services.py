"""
File service: binds the upload policy to the local store.

This is the boundary the HTTP routers and the CLI talk to. Every failure is
raised as a typed `FileServiceError`, the callers decide how to present it.
"""

import logging
from pathlib import Path
from typing import BinaryIO, List, NamedTuple, Optional, Sequence, Tuple

from uploads_api.config.settings import Settings
from uploads_api.errors import FileServiceError, StorageError, UploadValidationError
from uploads_api.schemas import StoredFile
from uploads_api.storage import LocalFileStore
from uploads_api.validation import validate_upload

logger = logging.getLogger(__name__)


class IncomingFile(NamedTuple):
    """One file of an upload batch, as received from the client."""
    content: bytes
    filename: str
    content_type: Optional[str]


class FileService:
    """Upload, list, download and delete stored files."""

    def __init__(self, settings: Settings, store: Optional[LocalFileStore] = None):
        self.settings = settings
        self.store = store or LocalFileStore(settings.storage_path)

    def upload(self, files: Sequence[IncomingFile]) -> List[StoredFile]:
        """
        Store a batch of files, all or nothing.

        The whole batch is validated before the first byte is written. If a
        save fails part way, the files already saved from this batch are
        removed again before the error propagates.

        Args:
            files: The files of the batch, in upload order

        Returns:
            List[StoredFile]: The stored files, in upload order

        Raises:
            UploadValidationError: No files, or a file breaks the upload policy
            StorageError: The filesystem failed while saving
        """
        if not files:
            raise UploadValidationError("No files provided", filename="")

        for incoming in files:
            validate_upload(incoming.filename, len(incoming.content), incoming.content_type, self.settings)

        saved: List[StoredFile] = []
        try:
            for incoming in files:
                saved.append(self.store.save(incoming.content, incoming.filename, incoming.content_type))
        except StorageError:
            self._rollback(saved)
            raise

        logger.info(f"Uploaded batch of {len(saved)} file(s)")
        return saved

    def list_all(self) -> List[StoredFile]:
        """Every stored file, read fresh from the storage root."""
        return list(self.store.list_files())

    def download_path(self, file_id: str) -> Path:
        return self.store.resolve(file_id).path

    def open_download(self, file_id: str) -> Tuple[StoredFile, BinaryIO]:
        return self.store.open(file_id)

    def delete(self, file_id: str) -> None:
        self.store.delete(file_id)

    def _rollback(self, saved: List[StoredFile]) -> None:
        for stored in saved:
            try:
                self.store.delete(stored.id)
            except FileServiceError as e:
                logger.error(f"Rollback could not remove {stored.id}: {e.message}")
        if saved:
            logger.info(f"Rolled back {len(saved)} file(s) of a failed batch")
