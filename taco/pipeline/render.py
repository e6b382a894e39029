"""
Renderer dispatch: field descriptor -> render tree.

The same dispatch serves the in-app preview (LIVE) and the standalone export
(EXPORT). The two modes produce the same structure; they differ only in the
element id of the value slot and in LIVE's data-bind markers, which tie a
control to the preview form state.
"""

from __future__ import annotations

from dataclasses import dataclass, field as dc_field
from enum import Enum
from html import escape as _html_escape
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

from taco.pipeline.fields import (
    BaseField,
    CheckboxField,
    DropdownField,
    StaticTextField,
    TextareaField,
)
from taco.pipeline.identifiers import derive_id
from taco.pipeline.markdown import parse_markdown


class RenderMode(str, Enum):
    LIVE = "live"
    EXPORT = "export"


_VOID_TAGS = {"input", "br", "meta", "hr"}


@dataclass
class RenderNode:
    tag: str
    attrs: Dict[str, Any] = dc_field(default_factory=dict)
    children: List["RenderNode"] = dc_field(default_factory=list)
    text: Optional[str] = None
    # pre-rendered, already safe markup (hover help)
    raw_html: Optional[str] = None

    def walk(self) -> Iterator["RenderNode"]:
        yield self
        for child in self.children:
            yield from child.walk()

    def find_all(self, predicate: Callable[["RenderNode"], bool]) -> List["RenderNode"]:
        return [n for n in self.walk() if predicate(n)]

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"tag": self.tag, "attrs": dict(self.attrs)}
        if self.text is not None:
            out["text"] = self.text
        if self.raw_html is not None:
            out["html"] = self.raw_html
        if self.children:
            out["children"] = [c.to_dict() for c in self.children]
        return out

    def to_html(self) -> str:
        parts = [f"<{self.tag}"]
        for name, value in self.attrs.items():
            if value is None or value is False:
                continue
            if value is True:
                parts.append(f" {name}")
            else:
                parts.append(f' {name}="{_html_escape(str(value), quote=True)}"')
        parts.append(">")
        if self.tag in _VOID_TAGS:
            return "".join(parts)
        if self.text is not None:
            parts.append(_html_escape(self.text, quote=False))
        if self.raw_html is not None:
            parts.append(self.raw_html)
        parts.extend(c.to_html() for c in self.children)
        parts.append(f"</{self.tag}>")
        return "".join(parts)


def slot_id(field: BaseField, mode: RenderMode) -> str:
    """Element id of the control that holds a field's committed value."""
    return f"preview-{field.id}" if mode == RenderMode.LIVE else field.id


def search_input_id(field: BaseField) -> str:
    return f"search-input-for-{field.id}"


def tags_container_id(field: BaseField) -> str:
    return f"tags-for-{field.id}"


def checkbox_id(field: BaseField, option_value: str, mode: RenderMode) -> str:
    return f"{slot_id(field, mode)}-{derive_id(option_value)}"


def _label_text(field: BaseField) -> str:
    return f"{field.label} *" if field.required else field.label


def _bound(attrs: Dict[str, Any], field: BaseField, mode: RenderMode) -> Dict[str, Any]:
    if mode == RenderMode.LIVE:
        attrs["data-bind"] = field.id
    return attrs


def _wrapper(field: BaseField, control_id: str) -> RenderNode:
    label = RenderNode("label", {"for": control_id}, text=_label_text(field))
    return RenderNode("div", {"class": "form-group"}, [label])


def _option_list(field: DropdownField) -> RenderNode:
    return RenderNode(
        "div",
        {"class": "searchable-select-options"},
        [
            RenderNode("div", {"class": "searchable-select-option", "data-value": opt.value}, text=opt.value)
            for opt in field.options
        ],
    )


def _hidden_slot(field: BaseField, mode: RenderMode) -> RenderNode:
    attrs = {"type": "hidden", "id": slot_id(field, mode), "name": field.id, "value": ""}
    return RenderNode("input", _bound(attrs, field, mode))


def _search_input(field: DropdownField, default_placeholder: str, mode: RenderMode) -> RenderNode:
    attrs = {
        "type": "text",
        "class": "searchable-select-input",
        "id": search_input_id(field),
        "placeholder": field.placeholder or default_placeholder,
        "autocomplete": "off",
    }
    return RenderNode("input", _bound(attrs, field, mode))


def render_text(field: BaseField, mode: RenderMode) -> RenderNode:
    wrapper = _wrapper(field, slot_id(field, mode))
    attrs = {
        "type": "text",
        "id": slot_id(field, mode),
        "name": field.id,
        "placeholder": getattr(field, "placeholder", "") or "",
    }
    wrapper.children.append(RenderNode("input", _bound(attrs, field, mode)))
    return wrapper


def render_textarea(field: TextareaField, mode: RenderMode) -> RenderNode:
    wrapper = _wrapper(field, slot_id(field, mode))
    attrs = {"id": slot_id(field, mode), "name": field.id, "rows": 3, "placeholder": field.placeholder or ""}
    wrapper.children.append(RenderNode("textarea", _bound(attrs, field, mode), text=""))
    return wrapper


def render_static_text(field: StaticTextField, mode: RenderMode) -> RenderNode:
    wrapper = RenderNode("div", {"class": "label-wrapper"})
    wrapper.children.append(RenderNode("p", {"class": "static-text-element"}, text=field.label))
    if field.hover_info:
        tooltip = RenderNode("span", {"class": "tooltip-text"}, raw_html=parse_markdown(field.hover_info))
        wrapper.children.append(RenderNode("span", {"class": "info-icon"}, [tooltip], text="i"))
    return wrapper


def render_checkbox(field: CheckboxField, mode: RenderMode) -> RenderNode:
    group = RenderNode("div", {"class": "checkbox-group"})
    for opt in field.options:
        box_id = checkbox_id(field, opt.value, mode)
        attrs = {"type": "checkbox", "id": box_id, "name": field.id, "value": opt.value}
        group.children.append(
            RenderNode(
                "div",
                children=[
                    RenderNode("input", _bound(attrs, field, mode)),
                    RenderNode("label", {"for": box_id}, text=opt.value),
                ],
            )
        )
    legend = RenderNode("legend", text=_label_text(field))
    return RenderNode("fieldset", {"class": "form-group", "data-field-id": field.id}, [legend, group])


def render_dropdown(field: DropdownField, mode: RenderMode) -> RenderNode:
    wrapper = _wrapper(field, search_input_id(field))
    container = RenderNode("div", {"class": "searchable-select-container", "data-field-id": field.id})

    if not field.is_multi_select:
        container.children.extend(
            [
                _search_input(field, "Search and select...", mode),
                _hidden_slot(field, mode),
                _option_list(field),
            ]
        )
        wrapper.children.append(container)
        return wrapper

    container.children.extend([_search_input(field, "Search to add...", mode), _option_list(field)])
    add_button = RenderNode(
        "button",
        {"type": "button", "class": "secondary", "data-action": "add-tag", "data-field-id": field.id},
        text="Add",
    )
    wrapper.children.append(RenderNode("div", {"class": "tag-selector-input-group"}, [container, add_button]))

    clear_button = RenderNode(
        "button",
        {
            "type": "button",
            "class": "remove-all-tags-btn",
            "title": "Remove all selected options",
            "data-action": "remove-all-tags",
            "data-field-id": field.id,
        },
        text="Clear All",
    )
    tag_area = RenderNode(
        "div",
        {"class": "tag-area-wrapper"},
        [RenderNode("div", {"class": "tag-container", "id": tags_container_id(field)}), clear_button],
    )
    wrapper.children.append(tag_area)
    wrapper.children.append(_hidden_slot(field, mode))
    return wrapper


def render_field(field: BaseField, mode: RenderMode = RenderMode.LIVE) -> RenderNode:
    match field:
        case StaticTextField():
            return render_static_text(field, mode)
        case CheckboxField():
            return render_checkbox(field, mode)
        case TextareaField():
            return render_textarea(field, mode)
        case DropdownField():
            return render_dropdown(field, mode)
        case _:
            return render_text(field, mode)


def render_form(fields: Sequence[BaseField], mode: RenderMode = RenderMode.LIVE) -> List[RenderNode]:
    return [render_field(f, mode) for f in fields]


def render_form_html(fields: Sequence[BaseField], mode: RenderMode = RenderMode.EXPORT) -> str:
    return "\n".join(node.to_html() for node in render_form(fields, mode))


def render_tag(value: str, field: BaseField) -> RenderNode:
    """A single accepted multi-select tag with its remove button."""
    remove = RenderNode(
        "button", {"type": "button", "data-action": "remove-tag", "data-field-id": field.id}, text="×"
    )
    return RenderNode("span", {"class": "tag", "data-value": value}, [remove], text=value)
