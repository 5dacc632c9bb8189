"""
Local filesystem store for uploaded files.

Layout under the storage root::

    <root>/<id><ext>            file content, one flat file per upload
    <root>/.meta/<id>.json      sidecar record with what the file name cannot carry

The directory is the only source of truth. Nothing is cached between calls:
listing and resolution walk the tree every time.
"""

import json
import logging
import os
import re
import uuid
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import BinaryIO, Dict, Any, Iterator, Optional, Tuple, Union

from uploads_api.categories import (
    classify_extension,
    classify_path,
    extension_for_content_type,
    normalize_content_type,
)
from uploads_api.errors import StorageError, StoredFileNotFoundError
from uploads_api.identity import new_file_id
from uploads_api.schemas import StoredFile

logger = logging.getLogger(__name__)

METADATA_DIR = ".meta"
TEMP_SUFFIX = ".tmp"
MAX_EXTENSION_LENGTH = 16

_SAFE_EXTENSION = re.compile(rf"\.[a-z0-9]{{1,{MAX_EXTENSION_LENGTH}}}")


def display_name(filename: Optional[str]) -> str:
    """Strip any directory components a client put in its file name."""
    name = PurePosixPath((filename or "").replace("\\", "/")).name
    return name or "upload"


def stored_extension(name: str, content_type: Optional[str] = None) -> str:
    """
    Extension to store a file under.

    The client's extension is kept when it is short and alphanumeric. Anything
    else falls back to the canonical extension of the declared content type,
    or to no extension at all.
    """
    extension = Path(name).suffix.lower()
    if _SAFE_EXTENSION.fullmatch(extension):
        return extension
    return extension_for_content_type(content_type or "") or ""


class LocalFileStore:
    """Stores each file as ``<id><ext>`` directly under ``root``."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)
        self.metadata_dir = self.root / METADATA_DIR

    def ensure_root(self) -> None:
        """Create the storage root if it is missing."""
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create storage directory {self.root}") from e

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #

    def save(self, content: bytes, filename: str, content_type: Optional[str] = None) -> StoredFile:
        """
        Persist ``content`` under a freshly allocated identifier.

        The extension comes from the client file name, or from the declared
        content type when the name has no usable one (see ``stored_extension``).

        :raises StorageError: on any filesystem failure. Nothing is left behind.
        """
        name = display_name(filename)
        extension = stored_extension(name, content_type)
        file_id = new_file_id()
        target = self.root / f"{file_id}{extension}"
        uploaded_at = datetime.now(timezone.utc)
        record = {
            "id": file_id,
            "name": name,
            "content_type": normalize_content_type(content_type) or None,
            "type": classify_extension(extension),
            "upload_date": uploaded_at.isoformat(),
        }

        # Record first: a content file is listable the moment it is renamed into place
        record_path = self._record_path(file_id)
        try:
            self.metadata_dir.mkdir(parents=True, exist_ok=True)
            _write_atomic(record_path, json.dumps(record).encode("utf-8"))
            _write_atomic(target, content)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to save {name} as {target.name}: {e}")
            _discard(target)
            _discard(record_path)
            raise StorageError("Failed to save file") from e

        logger.info(f"Saved {name} as {target.name} ({len(content)} bytes)")
        return StoredFile(
            id=file_id,
            name=name,
            size=len(content),
            type=record["type"],
            upload_date=uploaded_at,
            content_type=record["content_type"],
            path=target,
        )

    def delete(self, file_id: str) -> None:
        """
        Remove the file stored under ``file_id`` and its sidecar record.

        :raises StoredFileNotFoundError: when nothing matches, including when the
            file disappears between resolution and removal.
        :raises StorageError: when the content file cannot be removed.
        """
        stored = self.resolve(file_id)
        try:
            stored.path.unlink()
        except FileNotFoundError:
            raise StoredFileNotFoundError(file_id) from None
        except OSError as e:
            logger.error(f"Failed to delete {stored.path}: {e}")
            raise StorageError("Failed to delete file") from e

        try:
            self._record_path(stored.id).unlink(missing_ok=True)
        except OSError as e:
            # An orphaned record is never listed, the content file is what counts
            logger.warning(f"Could not remove metadata record for {stored.id}: {e}")

        logger.info(f"Deleted {stored.path.name}")

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    def list_files(self) -> Iterator[StoredFile]:
        """
        Yield every stored file, rebuilt from the directory on each call.

        Files that vanish while the scan is running are skipped.
        """
        for path in self._iter_content_files():
            try:
                yield self._describe(path)
            except FileNotFoundError:
                logger.debug(f"{path} disappeared during listing")
            except OSError as e:
                raise StorageError("Failed to list files") from e

    def resolve(self, file_id: str) -> StoredFile:
        """
        Find the stored file whose name stem is exactly ``file_id``.

        Candidates are visited in sorted order, so the answer never depends on
        the order the operating system returns directory entries in.

        :raises StoredFileNotFoundError: when no file matches.
        """
        if file_id:
            for path in self._iter_content_files():
                if path.stem != file_id:
                    continue
                try:
                    return self._describe(path)
                except FileNotFoundError:
                    break
                except OSError as e:
                    raise StorageError("Failed to read file") from e
        raise StoredFileNotFoundError(file_id)

    def open(self, file_id: str) -> Tuple[StoredFile, BinaryIO]:
        """
        Resolve ``file_id`` and open the content for reading.

        The caller owns the returned handle. Once opened, a concurrent delete
        no longer affects the read.
        """
        stored = self.resolve(file_id)
        try:
            handle = stored.path.open("rb")
        except FileNotFoundError:
            raise StoredFileNotFoundError(file_id) from None
        except OSError as e:
            raise StorageError("Failed to read file") from e
        return stored, handle

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _record_path(self, file_id: str) -> Path:
        return self.metadata_dir / f"{file_id}.json"

    def _iter_content_files(self) -> Iterator[Path]:
        """Walk the root, skipping hidden entries (records, partial writes)."""
        if not self.root.is_dir():
            return

        def _raise(err: OSError):
            raise err

        try:
            for dirpath, dirnames, filenames in os.walk(self.root, onerror=_raise):
                dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
                for filename in sorted(filenames):
                    if filename.startswith("."):
                        continue
                    yield Path(dirpath) / filename
        except FileNotFoundError:
            # A subdirectory removed mid-walk, whatever was yielded stands
            return
        except OSError as e:
            logger.error(f"Failed to scan {self.root}: {e}")
            raise StorageError("Failed to list files") from e

    def _read_record(self, file_id: str) -> Dict[str, Any]:
        try:
            with open(self._record_path(file_id), "r", encoding="utf-8") as f:
                record = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable metadata record for {file_id}: {e}")
            return {}
        return record if isinstance(record, dict) else {}

    def _describe(self, path: Path) -> StoredFile:
        stat = path.stat()
        file_id = path.stem
        record = self._read_record(file_id)

        upload_date = None
        if record.get("upload_date"):
            try:
                upload_date = datetime.fromisoformat(record["upload_date"])
            except (TypeError, ValueError):
                logger.warning(f"Bad upload_date in metadata record for {file_id}")
        if upload_date is None:
            upload_date = datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)

        return StoredFile(
            id=file_id,
            name=record.get("name") or path.name,
            size=stat.st_size,
            type=classify_path(path),
            upload_date=upload_date,
            content_type=record.get("content_type"),
            path=path,
        )


def _write_atomic(target: Path, data: bytes) -> None:
    """Write to a hidden temporary file beside ``target`` and rename it into place."""
    tmp = target.with_name(f".{target.name}.{uuid.uuid4().hex}{TEMP_SUFFIX}")
    try:
        with open(tmp, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, target)
    except OSError:
        tmp.unlink(missing_ok=True)
        raise


def _discard(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Could not remove partial file {path}: {e}")
