"""Unit tests for typed block properties."""

from datetime import date

import pytest
from pydantic import TypeAdapter, ValidationError

from blocknote.models.property import (
    BlockProperty,
    CheckboxValue,
    DateValue,
    DurationValue,
    PriorityValue,
    PropertyType,
    PropertyValue,
    RepeatConfig,
    RepeatValue,
    UrgentValue,
    create_property_value,
    default_property_name,
)


class TestPropertyValue:
    """Test the tagged value union."""

    def test_discriminated_by_type(self):
        """Test decoding picks the variant from the type tag."""
        adapter = TypeAdapter(PropertyValue)

        value = adapter.validate_python({"type": "date", "date": "2025-01-15", "endDate": "2025-01-20"})

        assert isinstance(value, DateValue)
        assert value.end_date == "2025-01-20"

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            TypeAdapter(PropertyValue).validate_python({"type": "mystery"})

    def test_repeat_interval_must_be_positive(self):
        with pytest.raises(ValidationError):
            RepeatConfig(type="weekly", interval=0)

    def test_repeat_value_camel_case_dump(self):
        value = RepeatValue(config=RepeatConfig(type="weekly", end_date="2025-12-31", weekdays=[1, 3]))

        dumped = value.model_dump(mode="json", by_alias=True, exclude_none=True)

        assert dumped == {
            "type": "repeat",
            "config": {"type": "weekly", "interval": 1, "endDate": "2025-12-31", "weekdays": [1, 3]},
        }

    def test_priority_level_restricted(self):
        with pytest.raises(ValidationError):
            PriorityValue(level="urgent")


class TestBlockProperty:
    """Test BlockProperty model."""

    def test_value_must_match_property_type(self):
        """Test a checkbox property cannot carry a date value."""
        with pytest.raises(ValidationError, match="does not match"):
            BlockProperty(property_type=PropertyType.CHECKBOX, value=DateValue(date="2025-01-15"))

    def test_property_ids_are_generated(self):
        a = BlockProperty(property_type=PropertyType.CHECKBOX, value=CheckboxValue())
        b = BlockProperty(property_type=PropertyType.CHECKBOX, value=CheckboxValue())

        assert a.id and b.id and a.id != b.id


class TestCreatePropertyValue:
    """Test default values per property type."""

    @pytest.mark.parametrize("property_type", list(PropertyType))
    def test_default_value_has_matching_tag(self, property_type):
        value = create_property_value(property_type, today=date(2025, 1, 15))

        assert value.type == property_type.value

    def test_date_defaults_to_today(self):
        value = create_property_value(PropertyType.DATE, today=date(2025, 1, 15))

        assert value == DateValue(date="2025-01-15")

    def test_urgent_defaults(self):
        value = create_property_value(PropertyType.URGENT, today=date(2025, 1, 15))

        assert value == UrgentValue(added_at="2025-01-15", slot_index=0)

    def test_duration_defaults_to_fifty_minutes(self):
        assert create_property_value(PropertyType.DURATION) == DurationValue(minutes=50)

    def test_default_names(self):
        assert default_property_name(PropertyType.TAG) == "Tags"
        assert default_property_name(PropertyType.DATE) == "Date"
