import re


# ASCII so that word boundaries match the browser builder's behaviour
_WORD_START = re.compile(r"(?:^\w|[A-Z]|\b\w)", re.ASCII)
_WHITESPACE = re.compile(r"\s+")


def derive_id(label: str) -> str:
    """Convert a field label to a camelCase key, e.g. "Caller Name" -> "callerName"."""
    if not label:
        return ""

    def _case(m: "re.Match[str]") -> str:
        # only the very first character of the label is lower-cased
        return m.group(0).lower() if m.start() == 0 else m.group(0).upper()

    return _WHITESPACE.sub("", _WORD_START.sub(_case, label))
