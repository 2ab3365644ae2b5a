"""Identifier and timestamp helpers for blocknote."""

import uuid
from datetime import datetime, timezone


def generate_block_id() -> str:
    """
    Generate a random UUID v4 for a new block or property.

    Returns:
        UUID string in standard format

    Example:
        >>> generate_block_id()
        "f47ac10b-58cc-4372-a567-0e02b2c3d479"
    """
    return str(uuid.uuid4())


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)
