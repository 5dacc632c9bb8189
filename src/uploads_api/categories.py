"""Coarse file categories derived from file extensions."""

from pathlib import Path
from typing import Optional, Union

IMAGE = "image"
PDF = "application/pdf"
TEXT = "text"
DOCUMENT = "document"
UNKNOWN = "unknown"

_EXTENSION_CATEGORIES = {
    ".jpg": IMAGE,
    ".jpeg": IMAGE,
    ".png": IMAGE,
    ".gif": IMAGE,
    ".pdf": PDF,
    ".txt": TEXT,
    ".doc": DOCUMENT,
    ".docx": DOCUMENT,
}

# Canonical extension for each content type in the default allow-set
_CONTENT_TYPE_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "application/pdf": ".pdf",
    "text/plain": ".txt",
    "application/msword": ".doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": ".docx",
}


def classify_extension(extension: str) -> str:
    """Return the category for an extension such as ``.PNG`` or ``.pdf``."""
    return _EXTENSION_CATEGORIES.get(extension.lower(), UNKNOWN)


def classify_path(path: Union[str, Path]) -> str:
    return classify_extension(Path(path).suffix)


def extension_for_content_type(content_type: str) -> Optional[str]:
    """Canonical extension for a declared content type, if one is known."""
    return _CONTENT_TYPE_EXTENSIONS.get(normalize_content_type(content_type))


def normalize_content_type(content_type: Optional[str]) -> str:
    """Lowercase a content type and drop parameters like ``charset``."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()
