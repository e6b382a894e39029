from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, constr

from taco.pipeline.fields import DEFAULT_FORM_NAME, DEFAULT_SUBTITLE, TEXT, AnyField


UuidStr = constr(strip_whitespace=True, min_length=1)  # DB stores string UUIDs

FieldValue = Union[str, List[str]]


class BlueprintIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(DEFAULT_FORM_NAME, alias="formName")
    subtitle: str = Field(DEFAULT_SUBTITLE, alias="formSubtitle")
    fields: List[AnyField] = Field(default_factory=list)


class BlueprintOut(BlueprintIn):
    id: Optional[UuidStr] = None


class BlueprintBrief(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: UuidStr
    title: str = Field(alias="formName")


class LogIn(BaseModel):
    values: Dict[str, FieldValue] = Field(default_factory=dict)
    timestamp: Optional[datetime] = None


class LogOut(BaseModel):
    id: UuidStr
    blueprint_id: UuidStr
    timestamp: str
    title: str
    data: Dict[str, FieldValue]
    full_output: str


class LogCountOut(BaseModel):
    blueprint_id: UuidStr
    since: str
    count: int


class DeletedOut(BaseModel):
    id: UuidStr
    deleted: bool = True


class PreviewIn(BaseModel):
    fields: List[AnyField] = Field(default_factory=list)
    values: Dict[str, FieldValue] = Field(default_factory=dict)
    mode: Literal["live", "export"] = "live"


class PreviewOut(BaseModel):
    template: str
    output: str
    nodes: List[Dict[str, Any]]


class FieldDraftIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: str = TEXT
    label: str = ""
    required: Optional[bool] = None
    placeholder: Optional[str] = None
    is_multi_select: Optional[bool] = Field(None, alias="isMultiSelect")
    hover_info: Optional[str] = Field(None, alias="hoverInfo")
    options: List[str] = Field(default_factory=list)
    bulk_options: Optional[str] = None
    option_group: str = ""
    # the blueprint the field goes into, for the duplicate id check
    fields: List[AnyField] = Field(default_factory=list)
    index: Optional[int] = None


class FieldDraftOut(BaseModel):
    field: Dict[str, Any]
    template: str
