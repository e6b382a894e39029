from __future__ import annotations

import copy
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional


Record = Dict[str, Any]


class Store:
    """
    Persistence collaborator for blueprints and their logs.
    Implemented over Supabase in taco_api.db, or in memory for tests and the CLI.

    Records are plain dicts (Blueprint.snapshot() / LogEntry.snapshot()).
    """

    def save_blueprint(self, record: Record) -> str:
        """Insert or update by id. Returns the stored id."""
        raise NotImplementedError

    def get_blueprint(self, blueprint_id: str) -> Optional[Record]:
        raise NotImplementedError

    def delete_blueprint(self, blueprint_id: str) -> None:
        raise NotImplementedError

    def list_blueprints(self) -> List[Record]:
        """All blueprints ordered by title."""
        raise NotImplementedError

    def add_log(self, record: Record) -> str:
        raise NotImplementedError

    def list_logs(
        self,
        blueprint_id: str,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> List[Record]:
        """Logs of one blueprint, oldest first, optionally limited to [since, until)."""
        raise NotImplementedError

    def delete_log(self, log_id: str) -> None:
        raise NotImplementedError


class MemoryStore(Store):
    """In-memory store."""

    def __init__(self) -> None:
        self.blueprints: Dict[str, Record] = {}
        self.logs: Dict[str, Record] = {}

    def save_blueprint(self, record: Record) -> str:
        bid = record.get("id") or str(uuid.uuid4())
        row = copy.deepcopy(record)
        row["id"] = bid
        self.blueprints[bid] = row
        return bid

    def get_blueprint(self, blueprint_id: str) -> Optional[Record]:
        row = self.blueprints.get(blueprint_id)
        return copy.deepcopy(row) if row is not None else None

    def delete_blueprint(self, blueprint_id: str) -> None:
        self.blueprints.pop(blueprint_id, None)

    def list_blueprints(self) -> List[Record]:
        rows = sorted(self.blueprints.values(), key=lambda r: r.get("formName") or "")
        return copy.deepcopy(rows)

    def add_log(self, record: Record) -> str:
        lid = record.get("id") or str(uuid.uuid4())
        row = copy.deepcopy(record)
        row["id"] = lid
        self.logs[lid] = row
        return lid

    def list_logs(
        self,
        blueprint_id: str,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> List[Record]:
        rows = [r for r in self.logs.values() if r.get("blueprint_id") == blueprint_id]
        if since is not None:
            rows = [r for r in rows if datetime.fromisoformat(r["timestamp"]) >= since]
        if until is not None:
            rows = [r for r in rows if datetime.fromisoformat(r["timestamp"]) < until]
        rows.sort(key=lambda r: datetime.fromisoformat(r["timestamp"]))
        return copy.deepcopy(rows)

    def delete_log(self, log_id: str) -> None:
        self.logs.pop(log_id, None)
