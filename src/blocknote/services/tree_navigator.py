"""Tree navigation over the flat, indent-encoded block list.

The outline is a flat ordered list where each block's depth is its integer
``indent``. A block's parent is the nearest preceding block with a smaller
indent; its descendants are the following run of blocks with a greater
indent. All queries are linear scans over the current working set.
"""

from typing import Optional, Sequence

from blocknote.models.block import MAX_INDENT, Block
from blocknote.services.block_store import BlockStore


class TreeNavigator:
    """
    Indent/outdent, collapse and visible-neighbor traversal for a BlockStore.

    Example:
        >>> nav = TreeNavigator(store)
        >>> nav.indent(block_id)              # become child of predecessor
        >>> nav.get_next_visible_id(block_id) # skips collapsed subtrees
    """

    def __init__(self, store: BlockStore) -> None:
        self.store = store

    @property
    def _blocks(self) -> Sequence[Block]:
        return self.store.blocks

    # -- mutators ------------------------------------------------------------

    def indent(self, block_id: str) -> list[Block]:
        """
        Increase a block's indent by one.

        Allowed only when the block is not first, its indent is below its
        predecessor's indent + 1, and below MAX_INDENT. A block can therefore
        become a child of its immediate predecessor but never jump deeper.
        """
        blocks = self._blocks
        index = self.store.index_of(block_id)
        if index is None or index == 0:
            return list(blocks)

        block = blocks[index]
        predecessor = blocks[index - 1]
        if block.indent >= predecessor.indent + 1 or block.indent >= MAX_INDENT:
            return list(blocks)

        return self.store.patch(block_id, indent=block.indent + 1)

    def outdent(self, block_id: str) -> list[Block]:
        """Decrease a block's indent by one, down to 0 (no neighbor constraint)."""
        block = self.store.get(block_id)
        if block is None or block.indent == 0:
            return list(self._blocks)
        return self.store.patch(block_id, indent=block.indent - 1)

    def toggle_collapse(self, block_id: str) -> list[Block]:
        block = self.store.get(block_id)
        if block is None:
            return list(self._blocks)
        return self.store.patch(block_id, is_collapsed=not block.is_collapsed)

    # -- queries -------------------------------------------------------------

    def has_children(self, block_id: str) -> bool:
        """True iff the next block exists and is strictly deeper."""
        blocks = self._blocks
        index = self.store.index_of(block_id)
        if index is None or index == len(blocks) - 1:
            return False
        return blocks[index + 1].indent > blocks[index].indent

    def is_hidden_by_collapsed_ancestor(self, index: int) -> bool:
        """
        Whether the block at ``index`` is hidden by a collapsed block above it.

        Predecessors at the block's depth or deeper are siblings or
        descendants and are ignored. Any strictly shallower predecessor that
        is collapsed hides the block.
        """
        blocks = self._blocks
        if index <= 0 or index >= len(blocks):
            return False

        depth = blocks[index].indent
        return any(
            candidate.is_collapsed
            for candidate in blocks[:index]
            if candidate.indent < depth
        )

    def get_prev_visible_id(self, block_id: str) -> Optional[str]:
        """Nearest visible block before ``block_id``, or None."""
        index = self.store.index_of(block_id)
        if index is None:
            return None

        blocks = self._blocks
        for i in range(index - 1, -1, -1):
            if not self.is_hidden_by_collapsed_ancestor(i):
                return blocks[i].id
        return None

    def get_next_visible_id(self, block_id: str) -> Optional[str]:
        """Nearest visible block after ``block_id``, or None."""
        index = self.store.index_of(block_id)
        if index is None:
            return None

        blocks = self._blocks
        for i in range(index + 1, len(blocks)):
            if not self.is_hidden_by_collapsed_ancestor(i):
                return blocks[i].id
        return None

    def visible_blocks(self) -> list[Block]:
        """Blocks without a collapsed ancestor, in display order."""
        return [
            block for i, block in enumerate(self._blocks)
            if not self.is_hidden_by_collapsed_ancestor(i)
        ]
