from __future__ import annotations

import re
from typing import Dict, List, Mapping, Optional, Sequence, Union

from taco.pipeline.fields import BaseField, CheckboxField, value_fields


NOT_ANSWERED = "N/A"
NONE_CHECKED = "None"

# Exactly the characters String.prototype.trim() removes (WhiteSpace and LineTerminator).
TRIM_CHARS = (
    "\u0009\u000a\u000b\u000c\u000d\u0020\u00a0\u1680"
    "\u2000\u2001\u2002\u2003\u2004\u2005\u2006\u2007\u2008\u2009\u200a"
    "\u2028\u2029\u202f\u205f\u3000\ufeff"
)

RawValue = Union[str, List[str], None]


def placeholder(field_id: str) -> str:
    return "{{" + field_id + "}}"


def compile_template(fields: Sequence[BaseField]) -> str:
    """One "Label: {{id}}" line per non-static field, in field order."""
    return "\n".join(f"{f.label}: {placeholder(f.id)}" for f in value_fields(list(fields)))


def _as_list(raw: RawValue) -> List[str]:
    if raw is None:
        return []
    if isinstance(raw, str):
        return [raw] if raw else []
    return [str(v) for v in raw]


def resolve_value(field: BaseField, raw: RawValue) -> str:
    """Committed control value -> the text that replaces the field's placeholder."""
    if isinstance(field, CheckboxField):
        checked = _as_list(raw)
        return ", ".join(checked) if checked else NONE_CHECKED
    if isinstance(raw, list):
        # multi-select tags, stored the way the hidden input holds them
        raw = ",".join(raw)
    if raw is None or raw.strip(TRIM_CHARS) == "":
        return NOT_ANSWERED
    return raw


def substitute(template: str, fields: Sequence[BaseField], values: Mapping[str, RawValue]) -> str:
    """Replace every placeholder of every non-static field in a single pass.

    Substituted values are never scanned again. If two fields share an id the
    first one in field order supplies the value.
    """
    resolved: Dict[str, str] = {}
    for f in value_fields(list(fields)):
        resolved.setdefault(placeholder(f.id), resolve_value(f, values.get(f.id)))
    if not resolved:
        return template
    tokens = sorted(resolved, key=len, reverse=True)
    pattern = re.compile("|".join(re.escape(t) for t in tokens))
    return pattern.sub(lambda m: resolved[m.group(0)], template)


def render_output(fields: Sequence[BaseField], values: Optional[Mapping[str, RawValue]] = None) -> str:
    # The template is rebuilt from the current field list on every pass.
    return substitute(compile_template(fields), fields, values or {})


def log_data(fields: Sequence[BaseField], values: Mapping[str, RawValue]) -> Dict[str, Union[str, List[str]]]:
    """Per-field record stored on a log entry."""
    data: Dict[str, Union[str, List[str]]] = {}
    for f in value_fields(list(fields)):
        raw = values.get(f.id)
        if isinstance(f, CheckboxField):
            data[f.id] = _as_list(raw)
        elif isinstance(raw, list):
            data[f.id] = ",".join(raw)
        else:
            data[f.id] = raw or ""
    return data
