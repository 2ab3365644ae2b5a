"""Pydantic data models for blocknote."""

from blocknote.models.property import (
    BlockProperty,
    PropertyType,
    PropertyValue,
    create_property_value,
)
from blocknote.models.block import (
    MAX_INDENT,
    Block,
    BlockColumn,
    create_block,
    deserialize_blocks,
    serialize_blocks,
)
from blocknote.models.sync_state import SyncState, SyncStatus

__all__ = [
    "MAX_INDENT",
    "Block",
    "BlockColumn",
    "BlockProperty",
    "PropertyType",
    "PropertyValue",
    "SyncState",
    "SyncStatus",
    "create_block",
    "create_property_value",
    "deserialize_blocks",
    "serialize_blocks",
]
