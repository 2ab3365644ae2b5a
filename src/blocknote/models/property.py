"""Typed properties attached to blocks.

A property value is a tagged union keyed by its ``type`` field. The wire
encoding (local cache and the remote ``properties`` column) uses camelCase
keys, e.g. ``{"type": "tag", "tagIds": ["t1"]}``.
"""

import datetime as dt
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator
from pydantic.alias_generators import to_camel

from blocknote.utils.ids import generate_block_id


WIRE_MODEL_CONFIG = {
    "alias_generator": to_camel,
    "populate_by_name": True,
    "frozen": True,
}


class PropertyType(str, Enum):
    """Enum for property types."""

    CHECKBOX = "checkbox"
    DATE = "date"
    TAG = "tag"
    TEXT = "text"
    NUMBER = "number"
    SELECT = "select"
    PERSON = "person"
    REPEAT = "repeat"
    PRIORITY = "priority"
    CONTACT = "contact"
    MEMO = "memo"
    URGENT = "urgent"
    DURATION = "duration"


class CheckboxValue(BaseModel):
    type: Literal["checkbox"] = "checkbox"
    checked: bool = False

    model_config = WIRE_MODEL_CONFIG


class DateValue(BaseModel):
    """Calendar date (YYYY-MM-DD) with optional time and range end."""

    type: Literal["date"] = "date"
    date: str
    time: Optional[str] = None
    end_date: Optional[str] = None
    end_time: Optional[str] = None

    model_config = WIRE_MODEL_CONFIG


class TagValue(BaseModel):
    type: Literal["tag"] = "tag"
    tag_ids: list[str] = Field(default_factory=list)

    model_config = WIRE_MODEL_CONFIG


class TextValue(BaseModel):
    type: Literal["text"] = "text"
    text: str = ""

    model_config = WIRE_MODEL_CONFIG


class NumberValue(BaseModel):
    type: Literal["number"] = "number"
    value: float = 0

    model_config = WIRE_MODEL_CONFIG


class SelectValue(BaseModel):
    type: Literal["select"] = "select"
    selected: str = ""

    model_config = WIRE_MODEL_CONFIG


class PersonValue(BaseModel):
    """Links to other blocks (by id) that represent people."""

    type: Literal["person"] = "person"
    block_ids: list[str] = Field(default_factory=list)

    model_config = WIRE_MODEL_CONFIG


class RepeatConfig(BaseModel):
    """Recurrence rule: every ``interval`` days/weeks/months/years."""

    type: Literal["daily", "weekly", "monthly", "yearly"]
    interval: int = Field(default=1, ge=1)
    end_date: Optional[str] = None
    weekdays: Optional[list[int]] = Field(
        default=None,
        description="Weekdays for weekly rules (0=Sunday)"
    )

    model_config = WIRE_MODEL_CONFIG


class RepeatValue(BaseModel):
    type: Literal["repeat"] = "repeat"
    config: Optional[RepeatConfig] = None

    model_config = WIRE_MODEL_CONFIG


class PriorityValue(BaseModel):
    type: Literal["priority"] = "priority"
    level: Literal["high", "medium", "low", "none"] = "none"

    model_config = WIRE_MODEL_CONFIG


class ContactValue(BaseModel):
    type: Literal["contact"] = "contact"
    phone: Optional[str] = None
    email: Optional[str] = None

    model_config = WIRE_MODEL_CONFIG


class MemoValue(BaseModel):
    type: Literal["memo"] = "memo"
    text: str = ""

    model_config = WIRE_MODEL_CONFIG


class UrgentValue(BaseModel):
    """Membership in one of the urgent ("top 3") slots."""

    type: Literal["urgent"] = "urgent"
    added_at: str
    slot_index: int = Field(default=0, ge=0)

    model_config = WIRE_MODEL_CONFIG


class DurationValue(BaseModel):
    type: Literal["duration"] = "duration"
    minutes: int = Field(default=50, ge=0)

    model_config = WIRE_MODEL_CONFIG


PropertyValue = Annotated[
    Union[
        CheckboxValue,
        DateValue,
        TagValue,
        TextValue,
        NumberValue,
        SelectValue,
        PersonValue,
        RepeatValue,
        PriorityValue,
        ContactValue,
        MemoValue,
        UrgentValue,
        DurationValue,
    ],
    Field(discriminator="type"),
]


class BlockProperty(BaseModel):
    """A named, typed attribute attached to a block."""

    id: str = Field(
        default_factory=generate_block_id,
        description="Unique property id (several properties may share a type)"
    )

    property_type: PropertyType = Field(
        ...,
        description="Type tag; must match value.type"
    )

    name: str = Field(
        default="",
        description="User-facing label, e.g. 'Due date'"
    )

    value: PropertyValue = Field(
        ...,
        description="Tagged value, replaced wholesale on update"
    )

    model_config = WIRE_MODEL_CONFIG

    @model_validator(mode="after")
    def check_value_matches_type(self) -> "BlockProperty":
        """Reject values whose tag disagrees with property_type."""
        if self.value.type != self.property_type.value:
            raise ValueError(
                f"Property value of type '{self.value.type}' does not match "
                f"property type '{self.property_type.value}'"
            )
        return self


DEFAULT_PROPERTY_NAMES: dict[PropertyType, str] = {
    PropertyType.CHECKBOX: "Checkbox",
    PropertyType.DATE: "Date",
    PropertyType.TAG: "Tags",
    PropertyType.TEXT: "Text",
    PropertyType.NUMBER: "Number",
    PropertyType.SELECT: "Select",
    PropertyType.PERSON: "People",
    PropertyType.REPEAT: "Repeat",
    PropertyType.PRIORITY: "Priority",
    PropertyType.CONTACT: "Contact",
    PropertyType.MEMO: "Memo",
    PropertyType.URGENT: "Urgent",
    PropertyType.DURATION: "Duration",
}


def default_property_name(property_type: PropertyType) -> str:
    """Catalog name for a property type, falling back to the type tag."""
    return DEFAULT_PROPERTY_NAMES.get(property_type, property_type.value)


def create_property_value(
    property_type: PropertyType,
    today: Optional[dt.date] = None,
) -> PropertyValue:
    """
    Build the default value for a property type.

    Args:
        property_type: Type of property being created
        today: Date used for date/urgent defaults (defaults to local today)

    Returns:
        Default PropertyValue for the type

    Example:
        >>> create_property_value(PropertyType.PRIORITY)
        PriorityValue(type='priority', level='none')
    """
    property_type = PropertyType(property_type)
    today_str = (today or dt.date.today()).isoformat()

    if property_type is PropertyType.DATE:
        return DateValue(date=today_str)
    if property_type is PropertyType.URGENT:
        return UrgentValue(added_at=today_str, slot_index=0)

    factories = {
        PropertyType.CHECKBOX: CheckboxValue,
        PropertyType.TAG: TagValue,
        PropertyType.TEXT: TextValue,
        PropertyType.NUMBER: NumberValue,
        PropertyType.SELECT: SelectValue,
        PropertyType.PERSON: PersonValue,
        PropertyType.REPEAT: RepeatValue,
        PropertyType.PRIORITY: PriorityValue,
        PropertyType.CONTACT: ContactValue,
        PropertyType.MEMO: MemoValue,
        PropertyType.DURATION: DurationValue,
    }
    return factories[property_type]()
