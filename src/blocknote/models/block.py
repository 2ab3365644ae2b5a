"""Block model: one entry of the ordered outline."""

import re
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, Optional

from pydantic import BaseModel, Field, TypeAdapter, field_validator

from blocknote.models.property import WIRE_MODEL_CONFIG, BlockProperty, PropertyType
from blocknote.utils.ids import generate_block_id, utc_now


MAX_INDENT = 5

UNTITLED = "(untitled)"

_TAG_RE = re.compile(r"<[^>]*>")


class BlockColumn(str, Enum):
    """Board column a block lives in."""

    FOCUS = "focus"
    QUEUE = "queue"
    INBOX = "inbox"


class Block(BaseModel):
    """Outline entry; tree depth is the integer ``indent``, not a parent pointer."""

    id: str = Field(
        default_factory=generate_block_id,
        description="Opaque unique identifier"
    )

    name: str = Field(
        default="",
        description="Block title shown in lists"
    )

    content: str = Field(
        default="",
        description="Rich markup body (opaque, never parsed here)"
    )

    indent: int = Field(
        default=0,
        ge=0,
        le=MAX_INDENT,
        description="Depth in the outline (0 = root)"
    )

    is_collapsed: bool = Field(
        default=False,
        description="Whether descendants are hidden"
    )

    is_pinned: bool = Field(
        default=False,
        description="Whether the block is pinned to the top of its column"
    )

    column: BlockColumn = Field(
        default=BlockColumn.INBOX,
        description="Board column"
    )

    properties: list[BlockProperty] = Field(
        default_factory=list,
        description="Ordered properties; duplicate types allowed"
    )

    created_at: datetime = Field(default_factory=utc_now)

    updated_at: datetime = Field(
        default_factory=utc_now,
        description="Refreshed by every mutation; sole diff signal for sync"
    )

    is_deleted: bool = Field(
        default=False,
        description="Tombstone flag carried by remote records; see initial load"
    )

    deleted_at: Optional[datetime] = None

    model_config = WIRE_MODEL_CONFIG

    @field_validator("created_at", "updated_at", "deleted_at")
    @classmethod
    def ensure_timezone(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Treat naive timestamps as UTC so comparisons never mix kinds."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @property
    def display_name(self) -> str:
        """Name if set, else the first line of content without markup."""
        if self.name and self.name.strip():
            return self.name.strip()

        plain = _TAG_RE.sub("", self.content).strip()
        first_line = plain.split("\n")[0].strip() if plain else ""
        return first_line or UNTITLED

    def find_property(self, property_type: PropertyType) -> Optional[BlockProperty]:
        """First property of the given type, if any."""
        for prop in self.properties:
            if prop.property_type == property_type:
                return prop
        return None


def create_block(
    content: str = "",
    indent: int = 0,
    column: BlockColumn = BlockColumn.INBOX,
    name: str = "",
    now: Optional[datetime] = None,
) -> Block:
    """
    Create a fresh block with matching created/updated timestamps.

    Args:
        content: Initial content
        indent: Initial depth
        column: Board column
        name: Initial name
        now: Creation time (defaults to current UTC time)

    Returns:
        New Block with empty properties
    """
    now = now or utc_now()
    return Block(
        name=name,
        content=content,
        indent=indent,
        column=column,
        created_at=now,
        updated_at=now,
    )


_BLOCK_LIST = TypeAdapter(list[Block])


def serialize_blocks(blocks: Iterable[Block]) -> str:
    """Encode a working set as a JSON array with ISO-8601 timestamps."""
    return _BLOCK_LIST.dump_json(
        list(blocks), by_alias=True, exclude_none=True
    ).decode("utf-8")


def deserialize_blocks(blob: str | bytes) -> list[Block]:
    """
    Decode a working set produced by serialize_blocks.

    Raises:
        pydantic.ValidationError: If the blob is not a valid block array
    """
    return _BLOCK_LIST.validate_json(blob)
