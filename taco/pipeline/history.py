from __future__ import annotations

import csv
import io
from datetime import date, datetime, timezone
from typing import Iterable, List, Optional, Sequence

from taco.pipeline.fields import BaseField, LogEntry, value_fields


def format_timestamp(ts: datetime) -> str:
    """UTC ISO-8601 with milliseconds and a trailing Z."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def csv_filename(today: Optional[date] = None) -> str:
    today = today or datetime.now(timezone.utc).date()
    return f"taco_log_history_{today.isoformat()}.csv"


def csv_export(fields: Sequence[BaseField], logs: Iterable[LogEntry]) -> str:
    """Audit log as CSV. Columns follow the blueprint's current field order."""
    columns = value_fields(list(fields))
    buf = io.StringIO()

    header = csv.writer(buf, lineterminator="\n")
    header.writerow(["Timestamp", *[f.label for f in columns], "Full Output"])

    rows = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for entry in logs:
        row = [format_timestamp(entry.timestamp)]
        for f in columns:
            value = entry.data.get(f.id) or ""
            if isinstance(value, list):
                value = "; ".join(value)
            row.append(value)
        row.append(entry.full_output)
        rows.writerow(row)
    return buf.getvalue()


def log_title(fields: Sequence[BaseField], entry: LogEntry) -> str:
    # Prefer something that looks like a case number, then the first field.
    for f in fields:
        label = (f.label or "").lower()
        if "case" in label and ("number" in label or "id" in label):
            if entry.data.get(f.id):
                return f"Case: {_display(entry.data[f.id])}"
            break
    if fields:
        first = fields[0]
        if entry.data.get(first.id):
            return f"{first.label}: {_display(entry.data[first.id])}"
    return "Log Entry"


def _display(value) -> str:
    return ", ".join(value) if isinstance(value, list) else str(value)


def filter_logs(logs: Iterable[LogEntry], term: str = "") -> List[LogEntry]:
    """Newest first, optionally narrowed by a case-insensitive search of the output."""
    needle = (term or "").lower()
    matched = [e for e in logs if not needle or needle in e.full_output.lower()]
    return sorted(matched, key=lambda e: e.timestamp, reverse=True)


def start_of_day(now: datetime) -> datetime:
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def count_since(logs: Iterable[LogEntry], since: datetime) -> int:
    return sum(1 for e in logs if e.timestamp >= since)
