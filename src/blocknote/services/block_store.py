"""BlockStore: canonical in-memory working set and its primitive mutations.

Blocks are immutable values. Every mutation builds a new list holding new
Block values for the affected entries, so any list handed out earlier (for
example the sync engine's baseline) keeps describing the state it was taken
from.

Mutations addressed by id are no-ops for unknown ids. An effective mutation
stamps ``updated_at`` on the affected block(s) only and notifies change
listeners with the new working set; no-ops notify nobody.
"""

from datetime import datetime, timedelta
from typing import Any, Callable, Iterable, Optional

from blocknote.models.block import Block, BlockColumn
from blocknote.models.property import (
    BlockProperty,
    CheckboxValue,
    PropertyType,
    PropertyValue,
    UrgentValue,
    create_property_value,
    default_property_name,
)
from blocknote.utils.ids import generate_block_id, utc_now
from blocknote.utils.logging import get_logger


logger = get_logger(__name__)

MAX_URGENT = 3

ChangeListener = Callable[[list[Block]], None]


class BlockStore:
    """
    Ordered collection of blocks; list order is display order.

    Example:
        >>> store = BlockStore(on_change=engine.debounced_sync)
        >>> block_id = store.add_block(content="<p>Buy milk</p>")
        >>> store.add_property(block_id, PropertyType.CHECKBOX)
    """

    def __init__(
        self,
        blocks: Optional[Iterable[Block]] = None,
        clock: Callable[[], datetime] = utc_now,
        on_change: Optional[ChangeListener] = None,
    ) -> None:
        """
        Initialize store.

        Args:
            blocks: Initial working set (adopted as-is, no stamping)
            clock: Source of mutation timestamps (timezone-aware)
            on_change: Optional listener called after every effective mutation
        """
        self._blocks: list[Block] = list(blocks or [])
        self._clock = clock
        self._listeners: list[ChangeListener] = []
        if on_change is not None:
            self._listeners.append(on_change)

    # -- reads ---------------------------------------------------------------

    @property
    def blocks(self) -> tuple[Block, ...]:
        """Current working set (read-only view)."""
        return tuple(self._blocks)

    def __len__(self) -> int:
        return len(self._blocks)

    def index_of(self, block_id: str) -> Optional[int]:
        """Index of a block, or None if unknown."""
        for i, block in enumerate(self._blocks):
            if block.id == block_id:
                return i
        return None

    def get(self, block_id: str) -> Optional[Block]:
        index = self.index_of(block_id)
        return self._blocks[index] if index is not None else None

    def urgent_blocks(self) -> list[Block]:
        """Blocks holding an urgent property, ordered by slot."""
        urgent = [b for b in self._blocks if b.find_property(PropertyType.URGENT)]
        return sorted(urgent, key=lambda b: b.find_property(PropertyType.URGENT).value.slot_index)

    # -- wiring --------------------------------------------------------------

    def subscribe(self, listener: ChangeListener) -> None:
        """Register a listener called with the new working set after each mutation."""
        self._listeners.append(listener)

    def reset(self, blocks: Iterable[Block]) -> None:
        """Adopt a loaded working set without stamping or notifying."""
        self._blocks = list(blocks)

    # -- internals -----------------------------------------------------------

    def _stamp(self, block: Block) -> datetime:
        # updated_at must strictly increase even if the clock has not moved
        now = self._clock()
        if now <= block.updated_at:
            now = block.updated_at + timedelta(microseconds=1)
        return now

    def _changed(self, block: Block, **changes: Any) -> Block:
        data = block.model_dump()
        data.update(changes)
        data["updated_at"] = self._stamp(block)
        return Block.model_validate(data)

    def _commit(self, blocks: list[Block], operation: str, **context: Any) -> list[Block]:
        self._blocks = blocks
        logger.debug("block_store_mutated", operation=operation, count=len(blocks), **context)
        for listener in list(self._listeners):
            listener(list(blocks))
        return list(blocks)

    def _replace(self, block_id: str, operation: str, **changes: Any) -> list[Block]:
        index = self.index_of(block_id)
        if index is None:
            return list(self._blocks)

        new_blocks = list(self._blocks)
        new_blocks[index] = self._changed(new_blocks[index], **changes)
        return self._commit(new_blocks, operation, block_id=block_id)

    def _replace_properties(
        self,
        block_id: str,
        operation: str,
        edit: Callable[[list[BlockProperty]], Optional[list[BlockProperty]]],
    ) -> list[Block]:
        """Apply ``edit`` to a copy of the block's properties; None means no change."""
        block = self.get(block_id)
        if block is None:
            return list(self._blocks)

        properties = edit(list(block.properties))
        if properties is None:
            return list(self._blocks)
        return self._replace(block_id, operation, properties=properties)

    # -- block mutations -----------------------------------------------------

    def add_block(self, after_id: Optional[str] = None, name: str = "", content: str = "") -> str:
        """
        Insert a new empty block.

        With no ``after_id`` (or an unknown one) the block goes to the top at
        indent 0 in the inbox. Otherwise it goes right after ``after_id`` and
        inherits that block's indent and column.

        Returns:
            Id of the new block
        """
        now = self._clock()
        index = self.index_of(after_id) if after_id else None
        new_blocks = list(self._blocks)

        if index is None:
            block = Block(name=name, content=content, created_at=now, updated_at=now)
            new_blocks.insert(0, block)
        else:
            anchor = new_blocks[index]
            block = Block(
                name=name,
                content=content,
                indent=anchor.indent,
                column=anchor.column,
                created_at=now,
                updated_at=now,
            )
            new_blocks.insert(index + 1, block)

        self._commit(new_blocks, "add_block", block_id=block.id)
        return block.id

    def update_content(self, block_id: str, content: str) -> list[Block]:
        return self._replace(block_id, "update_content", content=content)

    def update_name(self, block_id: str, name: str) -> list[Block]:
        return self._replace(block_id, "update_name", name=name)

    def patch(self, block_id: str, **changes: Any) -> list[Block]:
        """
        Replace arbitrary fields of one block (validated).

        Raises:
            pydantic.ValidationError: If the changes violate Block constraints
        """
        return self._replace(block_id, "patch", **changes)

    def delete_block(self, block_id: str) -> list[Block]:
        """Remove a block. The store allows deleting the last block."""
        return self.delete_blocks([block_id])

    def delete_blocks(self, block_ids: Iterable[str]) -> list[Block]:
        ids = set(block_ids)
        new_blocks = [b for b in self._blocks if b.id not in ids]
        if len(new_blocks) == len(self._blocks):
            return list(self._blocks)
        return self._commit(new_blocks, "delete_blocks", removed=len(self._blocks) - len(new_blocks))

    def delete_completed_todos(self) -> list[Block]:
        """Remove every block whose first checkbox property is checked."""
        def is_done(block: Block) -> bool:
            checkbox = block.find_property(PropertyType.CHECKBOX)
            return checkbox is not None and checkbox.value.checked

        return self.delete_blocks([b.id for b in self._blocks if is_done(b)])

    def move_up(self, block_id: str) -> list[Block]:
        """Swap with the previous block; both swapped blocks are stamped."""
        index = self.index_of(block_id)
        if index is None or index == 0:
            return list(self._blocks)
        return self._swap(index - 1, index, "move_up")

    def move_down(self, block_id: str) -> list[Block]:
        """Swap with the next block; both swapped blocks are stamped."""
        index = self.index_of(block_id)
        if index is None or index >= len(self._blocks) - 1:
            return list(self._blocks)
        return self._swap(index, index + 1, "move_down")

    def _swap(self, upper: int, lower: int, operation: str) -> list[Block]:
        new_blocks = list(self._blocks)
        new_blocks[upper], new_blocks[lower] = (
            self._changed(new_blocks[lower]),
            self._changed(new_blocks[upper]),
        )
        return self._commit(new_blocks, operation, block_id=new_blocks[upper].id)

    def duplicate_block(self, block_id: str) -> Optional[str]:
        """
        Insert a copy of a block right after it.

        The copy gets a new id, fresh property ids and fresh timestamps.

        Returns:
            Id of the copy, or None if ``block_id`` is unknown
        """
        index = self.index_of(block_id)
        if index is None:
            return None

        original = self._blocks[index]
        now = self._clock()
        data = original.model_dump()
        data.update(
            id=generate_block_id(),
            properties=[p.model_copy(update={"id": generate_block_id()}) for p in original.properties],
            created_at=now,
            updated_at=now,
        )
        duplicate = Block.model_validate(data)

        new_blocks = list(self._blocks)
        new_blocks.insert(index + 1, duplicate)
        self._commit(new_blocks, "duplicate_block", block_id=block_id, new_block_id=duplicate.id)
        return duplicate.id

    def toggle_pin(self, block_id: str) -> list[Block]:
        block = self.get(block_id)
        if block is None:
            return list(self._blocks)
        return self._replace(block_id, "toggle_pin", is_pinned=not block.is_pinned)

    def move_to_column(self, block_id: str, column: BlockColumn) -> list[Block]:
        return self._replace(block_id, "move_to_column", column=BlockColumn(column))

    # -- property mutations --------------------------------------------------

    def add_property(
        self,
        block_id: str,
        property_type: PropertyType,
        name: Optional[str] = None,
        initial_value: Optional[PropertyValue] = None,
    ) -> list[Block]:
        """
        Append a property (duplicates of the same type are allowed).

        Raises:
            ValueError: If initial_value's type does not match property_type
        """
        property_type = PropertyType(property_type)

        def edit(properties: list[BlockProperty]) -> list[BlockProperty]:
            properties.append(BlockProperty(
                property_type=property_type,
                name=name or default_property_name(property_type),
                value=initial_value if initial_value is not None else create_property_value(property_type),
            ))
            return properties

        return self._replace_properties(block_id, "add_property", edit)

    def update_property(self, block_id: str, property_id: str, value: PropertyValue) -> list[Block]:
        """Replace a property's value wholesale (no partial field patch)."""
        def edit(properties: list[BlockProperty]) -> Optional[list[BlockProperty]]:
            for i, prop in enumerate(properties):
                if prop.id == property_id:
                    properties[i] = _with_value(prop, value)
                    return properties
            return None

        return self._replace_properties(block_id, "update_property", edit)

    def update_property_by_type(
        self, block_id: str, property_type: PropertyType, value: PropertyValue
    ) -> list[Block]:
        """Replace the value of the first property of ``property_type``."""
        property_type = PropertyType(property_type)

        def edit(properties: list[BlockProperty]) -> Optional[list[BlockProperty]]:
            for i, prop in enumerate(properties):
                if prop.property_type == property_type:
                    properties[i] = _with_value(prop, value)
                    return properties
            return None

        return self._replace_properties(block_id, "update_property_by_type", edit)

    def update_property_name(self, block_id: str, property_id: str, name: str) -> list[Block]:
        def edit(properties: list[BlockProperty]) -> Optional[list[BlockProperty]]:
            for i, prop in enumerate(properties):
                if prop.id == property_id:
                    properties[i] = prop.model_copy(update={"name": name})
                    return properties
            return None

        return self._replace_properties(block_id, "update_property_name", edit)

    def remove_property(self, block_id: str, property_id: str) -> list[Block]:
        def edit(properties: list[BlockProperty]) -> Optional[list[BlockProperty]]:
            remaining = [p for p in properties if p.id != property_id]
            return remaining if len(remaining) != len(properties) else None

        return self._replace_properties(block_id, "remove_property", edit)

    def remove_property_by_type(self, block_id: str, property_type: PropertyType) -> list[Block]:
        """Remove only the first property of ``property_type``."""
        property_type = PropertyType(property_type)

        def edit(properties: list[BlockProperty]) -> Optional[list[BlockProperty]]:
            for i, prop in enumerate(properties):
                if prop.property_type == property_type:
                    del properties[i]
                    return properties
            return None

        return self._replace_properties(block_id, "remove_property_by_type", edit)

    def apply_type(
        self,
        block_id: str,
        property_types: list[PropertyType],
        names: Optional[list[str]] = None,
    ) -> list[Block]:
        """Add a default-valued property for each type the block lacks."""
        def edit(properties: list[BlockProperty]) -> Optional[list[BlockProperty]]:
            added = False
            for i, raw_type in enumerate(property_types):
                property_type = PropertyType(raw_type)
                if any(p.property_type == property_type for p in properties):
                    continue
                name = names[i] if names and i < len(names) and names[i] else None
                properties.append(BlockProperty(
                    property_type=property_type,
                    name=name or default_property_name(property_type),
                    value=create_property_value(property_type),
                ))
                added = True
            return properties if added else None

        return self._replace_properties(block_id, "apply_type", edit)

    # -- urgent slots --------------------------------------------------------

    def add_urgent(self, block_id: str, slot_index: Optional[int] = None) -> list[Block]:
        """
        Put a block into an urgent slot.

        Adds an unchecked checkbox if the block has none. No-op when all
        MAX_URGENT slots are taken or the block is already urgent.
        """
        current = self.urgent_blocks()
        if len(current) >= MAX_URGENT:
            return list(self._blocks)

        if slot_index is None:
            used = {b.find_property(PropertyType.URGENT).value.slot_index for b in current}
            slot_index = next(i for i in range(MAX_URGENT) if i not in used)

        today = self._clock().astimezone().date().isoformat()

        def edit(properties: list[BlockProperty]) -> Optional[list[BlockProperty]]:
            if any(p.property_type == PropertyType.URGENT for p in properties):
                return None
            if not any(p.property_type == PropertyType.CHECKBOX for p in properties):
                properties.append(BlockProperty(
                    property_type=PropertyType.CHECKBOX,
                    name=default_property_name(PropertyType.CHECKBOX),
                    value=CheckboxValue(checked=False),
                ))
            properties.append(BlockProperty(
                property_type=PropertyType.URGENT,
                name=default_property_name(PropertyType.URGENT),
                value=UrgentValue(added_at=today, slot_index=slot_index),
            ))
            return properties

        return self._replace_properties(block_id, "add_urgent", edit)

    def remove_urgent(self, block_id: str) -> list[Block]:
        """Drop every urgent property from a block."""
        def edit(properties: list[BlockProperty]) -> Optional[list[BlockProperty]]:
            remaining = [p for p in properties if p.property_type != PropertyType.URGENT]
            return remaining if len(remaining) != len(properties) else None

        return self._replace_properties(block_id, "remove_urgent", edit)


def _with_value(prop: BlockProperty, value: PropertyValue) -> BlockProperty:
    # Rebuild through the constructor so a mismatched tag is rejected
    return BlockProperty(id=prop.id, property_type=prop.property_type, name=prop.name, value=value)
