"""Unit tests for BlockStore mutations."""

import pytest
from pydantic import ValidationError

from blocknote.models.block import BlockColumn
from blocknote.models.property import (
    CheckboxValue,
    DateValue,
    PriorityValue,
    PropertyType,
    TextValue,
    UrgentValue,
)
from blocknote.services.block_store import MAX_URGENT, BlockStore

from conftest import BASE_TIME, make_block


@pytest.fixture
def store(clock):
    return BlockStore([make_block("a"), make_block("b"), make_block("c")], clock=clock)


def ids(blocks):
    return [block.id for block in blocks]


class TestAddBlock:
    """Test block insertion."""

    def test_add_without_anchor_goes_to_top(self, store):
        new_id = store.add_block(content="<p>new</p>")

        assert ids(store.blocks) == [new_id, "a", "b", "c"]
        new_block = store.get(new_id)
        assert new_block.indent == 0
        assert new_block.column == BlockColumn.INBOX
        assert new_block.properties == []

    def test_add_after_inherits_indent_and_column(self, clock):
        store = BlockStore(
            [make_block("a"), make_block("b", indent=2, column=BlockColumn.FOCUS), make_block("c")],
            clock=clock,
        )

        new_id = store.add_block(after_id="b")

        assert ids(store.blocks) == ["a", "b", new_id, "c"]
        assert store.get(new_id).indent == 2
        assert store.get(new_id).column == BlockColumn.FOCUS

    def test_add_after_unknown_id_goes_to_top(self, store):
        new_id = store.add_block(after_id="missing")

        assert store.blocks[0].id == new_id

    def test_new_block_timestamps_match(self, store):
        new_block = store.get(store.add_block())

        assert new_block.created_at == new_block.updated_at


class TestEditing:
    """Test content/name edits and timestamp stamping."""

    def test_update_content_stamps_only_target(self, store):
        before = store.blocks

        store.update_content("b", "<p>edited</p>")

        after = store.blocks
        assert after[1].content == "<p>edited</p>"
        assert after[1].updated_at > before[1].updated_at
        assert after[0] is before[0]
        assert after[2] is before[2]

    def test_previous_lists_are_not_mutated(self, store):
        snapshot = store.blocks

        store.update_name("a", "Renamed")

        assert snapshot[0].name == ""
        assert store.get("a").name == "Renamed"

    def test_unknown_id_is_a_noop(self, store):
        notified = []
        store.subscribe(notified.append)
        before = store.blocks

        result = store.update_content("missing", "<p>x</p>")

        assert store.blocks == before
        assert ids(result) == ["a", "b", "c"]
        assert notified == []

    def test_listeners_receive_new_working_set(self, store):
        notified = []
        store.subscribe(notified.append)

        store.update_content("a", "<p>new</p>")

        assert len(notified) == 1
        assert notified[0][0].content == "<p>new</p>"

    def test_stamp_strictly_increases_with_frozen_clock(self):
        store = BlockStore([make_block("a")], clock=lambda: BASE_TIME)

        store.update_content("a", "<p>1</p>")
        first = store.get("a").updated_at
        store.update_content("a", "<p>2</p>")

        assert first > BASE_TIME
        assert store.get("a").updated_at > first

    def test_patch_validates_indent(self, store):
        with pytest.raises(ValidationError):
            store.patch("a", indent=99)

    def test_toggle_pin(self, store):
        store.toggle_pin("a")
        assert store.get("a").is_pinned

        store.toggle_pin("a")
        assert not store.get("a").is_pinned

    def test_move_to_column(self, store):
        store.move_to_column("c", BlockColumn.QUEUE)

        assert store.get("c").column == BlockColumn.QUEUE


class TestDeletion:
    """Test block removal."""

    def test_delete_block(self, store):
        store.delete_block("b")

        assert ids(store.blocks) == ["a", "c"]

    def test_store_allows_deleting_last_block(self, clock):
        store = BlockStore([make_block("only")], clock=clock)

        store.delete_block("only")

        assert len(store) == 0

    def test_delete_unknown_does_not_notify(self, store):
        notified = []
        store.subscribe(notified.append)

        store.delete_blocks(["nope"])

        assert notified == []

    def test_delete_completed_todos(self, store):
        store.add_property("a", PropertyType.CHECKBOX, initial_value=CheckboxValue(checked=True))
        store.add_property("b", PropertyType.CHECKBOX)

        store.delete_completed_todos()

        assert ids(store.blocks) == ["b", "c"]


class TestReorder:
    """Test move up/down and duplication."""

    def test_move_up_swaps_and_stamps_both(self, store):
        before = {b.id: b.updated_at for b in store.blocks}

        store.move_up("b")

        assert ids(store.blocks) == ["b", "a", "c"]
        assert store.get("a").updated_at > before["a"]
        assert store.get("b").updated_at > before["b"]
        assert store.get("c").updated_at == before["c"]

    def test_move_up_first_is_noop(self, store):
        store.move_up("a")

        assert ids(store.blocks) == ["a", "b", "c"]

    def test_move_down_last_is_noop(self, store):
        store.move_down("c")

        assert ids(store.blocks) == ["a", "b", "c"]

    def test_move_down(self, store):
        store.move_down("a")

        assert ids(store.blocks) == ["b", "a", "c"]

    def test_duplicate_gets_fresh_ids(self, store):
        store.add_property("a", PropertyType.TEXT, initial_value=TextValue(text="hello"))
        original = store.get("a")

        copy_id = store.duplicate_block("a")

        copy = store.get(copy_id)
        assert ids(store.blocks) == ["a", copy_id, "b", "c"]
        assert copy_id != "a"
        assert copy.content == original.content
        assert copy.properties[0].value == TextValue(text="hello")
        assert copy.properties[0].id != original.properties[0].id

    def test_duplicate_unknown_returns_none(self, store):
        assert store.duplicate_block("missing") is None


class TestProperties:
    """Test property mutations."""

    def test_add_property_with_defaults(self, store):
        store.add_property("a", PropertyType.PRIORITY)

        prop = store.get("a").properties[0]
        assert prop.name == "Priority"
        assert prop.value == PriorityValue(level="none")

    def test_duplicate_types_allowed(self, store):
        store.add_property("a", PropertyType.DATE, name="Start")
        store.add_property("a", PropertyType.DATE, name="Due")

        assert [p.name for p in store.get("a").properties] == ["Start", "Due"]

    def test_add_property_rejects_mismatched_initial_value(self, store):
        with pytest.raises(ValueError):
            store.add_property("a", PropertyType.CHECKBOX, initial_value=TextValue(text="x"))

    def test_update_property_replaces_value(self, store):
        store.add_property("a", PropertyType.CHECKBOX)
        prop_id = store.get("a").properties[0].id

        store.update_property("a", prop_id, CheckboxValue(checked=True))

        assert store.get("a").properties[0].value.checked

    def test_update_property_mismatched_value_raises(self, store):
        store.add_property("a", PropertyType.CHECKBOX)
        prop_id = store.get("a").properties[0].id

        with pytest.raises(ValueError):
            store.update_property("a", prop_id, DateValue(date="2025-01-15"))

    def test_update_unknown_property_is_noop(self, store):
        stamped = store.get("a").updated_at

        store.update_property("a", "missing", CheckboxValue(checked=True))

        assert store.get("a").updated_at == stamped

    def test_update_by_type_touches_first_match_only(self, store):
        store.add_property("a", PropertyType.CHECKBOX)
        store.add_property("a", PropertyType.CHECKBOX)

        store.update_property_by_type("a", PropertyType.CHECKBOX, CheckboxValue(checked=True))

        values = [p.value.checked for p in store.get("a").properties]
        assert values == [True, False]

    def test_update_property_name(self, store):
        store.add_property("a", PropertyType.MEMO)
        prop_id = store.get("a").properties[0].id

        store.update_property_name("a", prop_id, "Notes")

        assert store.get("a").properties[0].name == "Notes"

    def test_remove_property(self, store):
        store.add_property("a", PropertyType.MEMO)
        prop_id = store.get("a").properties[0].id

        store.remove_property("a", prop_id)

        assert store.get("a").properties == []

    def test_remove_by_type_removes_first_only(self, store):
        store.add_property("a", PropertyType.TAG, name="first")
        store.add_property("a", PropertyType.TAG, name="second")

        store.remove_property_by_type("a", PropertyType.TAG)

        assert [p.name for p in store.get("a").properties] == ["second"]

    def test_apply_type_skips_existing(self, store):
        store.add_property("a", PropertyType.CHECKBOX)

        store.apply_type("a", [PropertyType.CHECKBOX, PropertyType.DATE], names=["Done", "Due"])

        props = store.get("a").properties
        assert [p.property_type for p in props] == [PropertyType.CHECKBOX, PropertyType.DATE]
        assert props[1].name == "Due"

    def test_apply_type_with_nothing_new_is_noop(self, store):
        store.add_property("a", PropertyType.CHECKBOX)
        stamped = store.get("a").updated_at

        store.apply_type("a", [PropertyType.CHECKBOX])

        assert store.get("a").updated_at == stamped


class TestUrgent:
    """Test urgent slot handling."""

    def test_add_urgent_adds_checkbox_and_slot(self, store):
        store.add_urgent("b")

        block = store.get("b")
        assert block.find_property(PropertyType.CHECKBOX).value == CheckboxValue(checked=False)
        urgent = block.find_property(PropertyType.URGENT).value
        assert isinstance(urgent, UrgentValue)
        assert urgent.slot_index == 0

    def test_add_urgent_keeps_existing_checkbox(self, store):
        store.add_property("b", PropertyType.CHECKBOX, initial_value=CheckboxValue(checked=True))

        store.add_urgent("b")

        checkboxes = [p for p in store.get("b").properties if p.property_type == PropertyType.CHECKBOX]
        assert len(checkboxes) == 1
        assert checkboxes[0].value.checked

    def test_slots_fill_in_order_and_cap(self, clock):
        store = BlockStore([make_block(str(i)) for i in range(MAX_URGENT + 1)], clock=clock)

        for i in range(MAX_URGENT + 1):
            store.add_urgent(str(i))

        urgent = store.urgent_blocks()
        assert [b.id for b in urgent] == [str(i) for i in range(MAX_URGENT)]
        assert store.get(str(MAX_URGENT)).find_property(PropertyType.URGENT) is None

    def test_freed_slot_is_reused(self, store):
        store.add_urgent("a")
        store.add_urgent("b")
        store.remove_urgent("a")

        store.add_urgent("c")

        assert store.get("c").find_property(PropertyType.URGENT).value.slot_index == 0

    def test_add_urgent_twice_is_noop(self, store):
        store.add_urgent("a")
        stamped = store.get("a").updated_at

        store.add_urgent("a")

        assert store.get("a").updated_at == stamped
