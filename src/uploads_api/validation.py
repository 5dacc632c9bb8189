"""Upload policy checks, run before anything touches the disk."""

import logging
from typing import Optional

from uploads_api.categories import normalize_content_type
from uploads_api.config.settings import Settings
from uploads_api.errors import ContentTypeNotAllowedError, FileTooLargeError

logger = logging.getLogger(__name__)


def validate_upload(filename: str, size: int, content_type: Optional[str], settings: Settings) -> None:
    """
    Check a candidate file against the upload policy.

    :param filename: client supplied name, used in the rejection message.
    :param size: size of the file in bytes.
    :param content_type: the declared MIME type, e.g. "image/png".
    :param settings: supplies the size limit and the allow-set.
    :raises FileTooLargeError: when ``size`` exceeds ``settings.max_file_size``.
    :raises ContentTypeNotAllowedError: when the content type is not allowed.
    """
    if size > settings.max_file_size:
        logger.warning(f"Rejected {filename}: {size} bytes exceeds {settings.max_file_size}")
        raise FileTooLargeError(filename, size, settings.max_file_size)

    if normalize_content_type(content_type) not in settings.allowed_content_types:
        logger.warning(f"Rejected {filename}: content type {content_type!r} not allowed")
        raise ContentTypeNotAllowedError(filename, content_type or "")
