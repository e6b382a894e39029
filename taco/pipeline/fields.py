from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator


# Field type tags, as written in blueprint files
TEXT = "text"
TEXTAREA = "textarea"
DROPDOWN = "searchable-dropdown"
CHECKBOX = "checkbox"
STATIC_TEXT = "static-text"

FIELD_TYPES = (TEXT, TEXTAREA, DROPDOWN, CHECKBOX, STATIC_TEXT)

DEFAULT_FORM_NAME = "New TACO Form"
DEFAULT_SUBTITLE = "A custom-built template for call outputs."
DEFAULT_OPTION_GROUP = "General"


class Option(BaseModel):
    group: str = DEFAULT_OPTION_GROUP
    value: str


class BaseField(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = ""
    label: str = ""
    required: bool = False


class TextField(BaseField):
    type: Literal["text"] = TEXT
    placeholder: str = ""


class TextareaField(BaseField):
    type: Literal["textarea"] = TEXTAREA
    placeholder: str = ""


class DropdownField(BaseField):
    type: Literal["searchable-dropdown"] = DROPDOWN
    placeholder: str = ""
    options: List[Option] = Field(default_factory=list)
    is_multi_select: bool = Field(False, alias="isMultiSelect")


class CheckboxField(BaseField):
    type: Literal["checkbox"] = CHECKBOX
    options: List[Option] = Field(default_factory=list)


class StaticTextField(BaseField):
    type: Literal["static-text"] = STATIC_TEXT
    hover_info: Optional[str] = Field(None, alias="hoverInfo")

    @field_validator("required")
    @classmethod
    def _never_required(cls, v: bool) -> bool:
        return False


def _coerce_unknown_type(data: Any) -> Any:
    # Unknown tags render as plain text everywhere, so store them that way too.
    if isinstance(data, dict) and data.get("type") not in FIELD_TYPES:
        return {**data, "type": TEXT}
    return data


AnyField = Annotated[
    Annotated[
        Union[TextField, TextareaField, DropdownField, CheckboxField, StaticTextField],
        Field(discriminator="type"),
    ],
    BeforeValidator(_coerce_unknown_type),
]

FIELD_CLASSES: Dict[str, type] = {
    TEXT: TextField,
    TEXTAREA: TextareaField,
    DROPDOWN: DropdownField,
    CHECKBOX: CheckboxField,
    STATIC_TEXT: StaticTextField,
}


def blank_field(field_type: str) -> BaseField:
    """A new, not yet labelled field. Everything except static text starts required."""
    cls = FIELD_CLASSES.get(field_type, TextField)
    return cls(required=cls is not StaticTextField)


def is_static(field: BaseField) -> bool:
    return isinstance(field, StaticTextField)


def value_fields(fields: List[BaseField]) -> List[BaseField]:
    """Fields that take part in the output template."""
    return [f for f in fields if not is_static(f)]


def field_to_dict(field: BaseField) -> Dict[str, Any]:
    return field.model_dump(by_alias=True, exclude_none=True)


class Blueprint(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    title: str = Field(DEFAULT_FORM_NAME, alias="formName")
    subtitle: str = Field(DEFAULT_SUBTITLE, alias="formSubtitle")
    fields: List[AnyField] = Field(default_factory=list)

    def snapshot(self, include_id: bool = True) -> Dict[str, Any]:
        """Value copy of this blueprint as a plain record.

        This is the only shape handed to storage or written to disk; the
        live model stays with its owner.
        """
        record: Dict[str, Any] = {}
        if include_id:
            record["id"] = self.id
        record["formName"] = self.title
        record["formSubtitle"] = self.subtitle
        record["fields"] = [field_to_dict(f) for f in self.fields]
        return record

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Blueprint":
        return cls.model_validate(record)

    def duplicate(self) -> "Blueprint":
        """Unsaved, independent copy titled "<title> (Copy)"."""
        return Blueprint.from_record({**self.snapshot(include_id=False), "formName": f"{self.title} (Copy)"})


class LogEntry(BaseModel):
    id: Optional[str] = None
    blueprint_id: str
    timestamp: datetime
    data: Dict[str, Union[str, List[str]]] = Field(default_factory=dict)
    full_output: str

    @field_validator("timestamp")
    @classmethod
    def _aware(cls, v: datetime) -> datetime:
        # naive timestamps are taken as UTC
        return v if v.tzinfo is not None else v.replace(tzinfo=timezone.utc)

    def snapshot(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "blueprint_id": self.blueprint_id,
            "timestamp": self.timestamp.isoformat(),
            "data": {k: list(v) if isinstance(v, list) else v for k, v in self.data.items()},
            "full_output": self.full_output,
        }


def find_duplicate_ids(fields: List[BaseField]) -> List[str]:
    """Ids shared by more than one non-static field, in first-seen order."""
    seen: Dict[str, int] = {}
    for f in value_fields(fields):
        seen[f.id] = seen.get(f.id, 0) + 1
    return [fid for fid, n in seen.items() if n > 1]
