"""Identifiers for stored files."""

import uuid


def new_file_id() -> str:
    """
    Allocate a fresh identifier for a stored file.

    UUID4 draws from the OS random source, so concurrent callers need no
    coordination and no counter is persisted.
    """
    return str(uuid.uuid4())