from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from taco.editor.store import Record, Store
from taco_api.config import settings


def _require_env() -> None:
    if not settings.supabase_url or not settings.supabase_service_role_key:
        raise RuntimeError("Supabase configuration missing: SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are required")


from supabase import Client  # noqa: F401

_client: Optional["Client"] = None


def get_client():
    global _client
    _require_env()
    if _client is None:
        # Local import to avoid hard dependency at module import time during tests
        from supabase import create_client  # type: ignore

        _client = create_client(settings.supabase_url, settings.supabase_service_role_key)
    return _client


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# Helpers for blueprint table
def _blueprint_row(record: Record) -> Dict[str, Any]:
    return {
        "id": record["id"],
        "form_name": record.get("formName"),
        "form_subtitle": record.get("formSubtitle"),
        "fields": record.get("fields") or [],
    }


def _blueprint_record(row: Dict[str, Any]) -> Record:
    return {
        "id": row["id"],
        "formName": row.get("form_name") or "",
        "formSubtitle": row.get("form_subtitle") or "",
        "fields": list(row.get("fields") or []),
    }


def blueprint_get(blueprint_id: str) -> Optional[Record]:
    c = get_client()
    res = (
        c.table(settings.blueprint_table)
        .select("id,form_name,form_subtitle,fields")
        .eq("id", blueprint_id)
        .limit(1)
        .execute()
    )
    return _blueprint_record(res.data[0]) if res.data else None


def blueprint_list() -> List[Record]:
    c = get_client()
    res = c.table(settings.blueprint_table).select("id,form_name,form_subtitle,fields").order("form_name", desc=False).execute()
    return [_blueprint_record(r) for r in res.data or []]


def blueprint_insert(record: Record) -> Record:
    c = get_client()
    row = _blueprint_row(record)
    row["created_at"] = row["updated_at"] = _now()
    c.table(settings.blueprint_table).insert(row).execute()
    return _blueprint_record(row)


def blueprint_update(record: Record) -> Record:
    c = get_client()
    row = _blueprint_row(record)
    row["updated_at"] = _now()
    c.table(settings.blueprint_table).update(row).eq("id", row["id"]).execute()
    return _blueprint_record(row)


def blueprint_delete(blueprint_id: str) -> None:
    c = get_client()
    c.table(settings.blueprint_table).delete().eq("id", blueprint_id).execute()


# Helpers for case_log table
def log_insert(record: Record) -> Record:
    c = get_client()
    c.table(settings.log_table).insert(record).execute()
    return record


def log_list(
    blueprint_id: str,
    since: Optional[datetime] = None,
    until: Optional[datetime] = None,
) -> List[Record]:
    c = get_client()
    q = c.table(settings.log_table).select("id,blueprint_id,timestamp,data,full_output").eq("blueprint_id", blueprint_id)
    if since is not None:
        q = q.gte("timestamp", since.isoformat())
    if until is not None:
        q = q.lt("timestamp", until.isoformat())
    res = q.order("timestamp", desc=False).execute()
    return list(res.data or [])


def log_delete(log_id: str) -> None:
    c = get_client()
    c.table(settings.log_table).delete().eq("id", log_id).execute()


class SupabaseStore(Store):
    """Store over the blueprint and case_log tables."""

    def save_blueprint(self, record: Record) -> str:
        if record.get("id") and blueprint_get(record["id"]) is not None:
            return blueprint_update(record)["id"]
        record = {**record, "id": record.get("id") or str(uuid.uuid4())}
        return blueprint_insert(record)["id"]

    def get_blueprint(self, blueprint_id: str) -> Optional[Record]:
        return blueprint_get(blueprint_id)

    def delete_blueprint(self, blueprint_id: str) -> None:
        blueprint_delete(blueprint_id)

    def list_blueprints(self) -> List[Record]:
        return blueprint_list()

    def add_log(self, record: Record) -> str:
        record = {**record, "id": record.get("id") or str(uuid.uuid4())}
        return log_insert(record)["id"]

    def list_logs(
        self,
        blueprint_id: str,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> List[Record]:
        return log_list(blueprint_id, since, until)

    def delete_log(self, log_id: str) -> None:
        log_delete(log_id)


def get_store() -> Store:
    return SupabaseStore()
