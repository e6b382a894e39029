from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Sequence

from taco.errors import FormValidationError, InvalidOptionError
from taco.pipeline.fields import BaseField, CheckboxField, DropdownField, is_static
from taco.pipeline.template import TRIM_CHARS, RawValue, log_data, render_output

log = logging.getLogger("taco.form_state")


class FormState:
    """
    Control values of the live preview form.

    Every mutation recomputes the output text and hands it to on_change, so the
    preview never lags behind the inputs.
    """

    def __init__(self, fields: Sequence[BaseField], on_change: Optional[Callable[[str], None]] = None):
        self.fields = list(fields)
        self.on_change = on_change
        self._text: Dict[str, str] = {}
        self._query: Dict[str, str] = {}
        self._selected: Dict[str, str] = {}
        self._tags: Dict[str, List[str]] = {}
        self._checked: Dict[str, set] = {}
        self.output = render_output(self.fields, self.values())

    # -- lookups -------------------------------------------------------

    def field(self, field_id: str) -> BaseField:
        for f in self.fields:
            if f.id == field_id and not is_static(f):
                return f
        raise KeyError(f"unknown field: {field_id}")

    def _dropdown(self, field_id: str, multi: Optional[bool] = None) -> DropdownField:
        f = self.field(field_id)
        if not isinstance(f, DropdownField):
            raise TypeError(f"{field_id} is not a dropdown")
        if multi is not None and f.is_multi_select != multi:
            kind = "multi-select" if multi else "single-select"
            raise TypeError(f"{field_id} is not a {kind} dropdown")
        return f

    def _checkbox(self, field_id: str) -> CheckboxField:
        f = self.field(field_id)
        if not isinstance(f, CheckboxField):
            raise TypeError(f"{field_id} is not a checkbox group")
        return f

    @staticmethod
    def _require_option(field: BaseField, value: str) -> None:
        if not any(opt.value == value for opt in getattr(field, "options", [])):
            raise InvalidOptionError(value)

    # -- text ----------------------------------------------------------

    def set_text(self, field_id: str, text: str) -> None:
        f = self.field(field_id)
        if isinstance(f, (DropdownField, CheckboxField)):
            raise TypeError(f"{field_id} is not a text input")
        self._text[field_id] = text
        self._changed()

    # -- dropdowns -----------------------------------------------------

    def query(self, field_id: str) -> str:
        return self._query.get(field_id, "")

    def selection(self, field_id: str) -> str:
        return self._selected.get(field_id, "")

    def tags(self, field_id: str) -> List[str]:
        return list(self._tags.get(field_id, []))

    def type_query(self, field_id: str, text: str) -> None:
        f = self._dropdown(field_id)
        self._query[field_id] = text
        if not f.is_multi_select:
            # typing drops the committed choice until an option is picked again
            self._selected.pop(field_id, None)
        self._changed()

    def choose(self, field_id: str, value: str) -> None:
        f = self._dropdown(field_id)
        self._require_option(f, value)
        self._query[field_id] = value
        if f.is_multi_select:
            # only fills the search box; "Add" commits it
            return
        self._selected[field_id] = value
        self._changed()

    def add_tag(self, field_id: str) -> bool:
        """Commit the search box as a tag. Returns True if a tag was added."""
        f = self._dropdown(field_id, multi=True)
        value = self.query(field_id).strip(TRIM_CHARS)
        if not value:
            return False
        self._require_option(f, value)
        tags = self._tags.setdefault(field_id, [])
        added = value not in tags
        if added:
            tags.append(value)
        self._query[field_id] = ""
        self._changed()
        return added

    def remove_tag(self, field_id: str, value: str) -> None:
        self._dropdown(field_id, multi=True)
        self._tags[field_id] = [t for t in self._tags.get(field_id, []) if t != value]
        self._changed()

    def clear_tags(self, field_id: str) -> None:
        self._dropdown(field_id, multi=True)
        self._tags[field_id] = []
        self._changed()

    def visible_options(self, field_id: str) -> List[str]:
        f = self._dropdown(field_id)
        needle = self.query(field_id).lower()
        taken = set(self._tags.get(field_id, [])) if f.is_multi_select else set()
        return [o.value for o in f.options if needle in o.value.lower() and o.value not in taken]

    # -- checkboxes ----------------------------------------------------

    def toggle(self, field_id: str, value: str, checked: Optional[bool] = None) -> None:
        f = self._checkbox(field_id)
        self._require_option(f, value)
        current = self._checked.setdefault(field_id, set())
        if checked is None:
            checked = value not in current
        if checked:
            current.add(value)
        else:
            current.discard(value)
        self._changed()

    def is_checked(self, field_id: str, value: str) -> bool:
        return value in self._checked.get(field_id, set())

    # -- whole form ----------------------------------------------------

    def clear(self) -> None:
        self._text.clear()
        self._query.clear()
        self._selected.clear()
        self._tags.clear()
        self._checked.clear()
        self._changed()

    def fill(self, values: Dict[str, RawValue]) -> None:
        """Apply submitted values through the same checks as interactive input."""
        for field_id, raw in values.items():
            try:
                f = self.field(field_id)
            except KeyError:
                raise FormValidationError(f"Unknown field: {field_id}") from None
            items = raw if isinstance(raw, list) else [raw]
            if isinstance(f, CheckboxField):
                for v in items:
                    self.toggle(field_id, v, True)
            elif isinstance(f, DropdownField) and f.is_multi_select:
                if isinstance(raw, str):
                    items = [t for t in raw.split(",") if t]
                for v in items:
                    self.type_query(field_id, v)
                    self.add_tag(field_id)
            elif isinstance(f, DropdownField):
                if raw:
                    self.choose(field_id, ", ".join(items))
            else:
                self.set_text(field_id, ", ".join(items))

    def values(self) -> Dict[str, RawValue]:
        """Committed value per field id, as a submitted form would carry it."""
        out: Dict[str, RawValue] = {}
        for f in self.fields:
            if is_static(f) or f.id in out:
                continue
            if isinstance(f, CheckboxField):
                checked = self._checked.get(f.id, set())
                out[f.id] = list(dict.fromkeys(o.value for o in f.options if o.value in checked))
            elif isinstance(f, DropdownField):
                out[f.id] = self.tags(f.id) if f.is_multi_select else self.selection(f.id)
            else:
                out[f.id] = self._text.get(f.id, "")
        return out

    def log_data(self):
        return log_data(self.fields, self.values())

    def _changed(self) -> None:
        self.output = render_output(self.fields, self.values())
        log.debug("form_output_refresh fields=%s chars=%s", len(self.fields), len(self.output))
        if self.on_change is not None:
            self.on_change(self.output)
