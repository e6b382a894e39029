import copy
import os
import sys
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

import pytest
import warnings


# Ensure project root is on sys.path for `from taco...` imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)


# ---- Fake Supabase client for tests (in-memory) ----


@dataclass
class _Resp:
    data: Optional[List[Dict[str, Any]]] = None
    count: Optional[int] = None


def _cmp_value(v: Any) -> Any:
    # timestamps are stored as ISO strings; compare them as instants
    if isinstance(v, str):
        try:
            return datetime.fromisoformat(v)
        except ValueError:
            return v
    return v


class _Filtered:
    def __init__(self, table: "_Table"):
        self._table = table
        self._filters: List = []

    def eq(self, key: str, value: Any):
        self._filters.append((key, lambda a, b: a == b, value))
        return self

    def gte(self, key: str, value: Any):
        self._filters.append((key, lambda a, b: _cmp_value(a) >= _cmp_value(b), value))
        return self

    def lt(self, key: str, value: Any):
        self._filters.append((key, lambda a, b: _cmp_value(a) < _cmp_value(b), value))
        return self

    def _match(self, row: Dict[str, Any]) -> bool:
        return all(row.get(k) is not None and op(row.get(k), v) for k, op, v in self._filters)


class _Query(_Filtered):
    def __init__(self, table: "_Table"):
        super().__init__(table)
        self._order_key: Optional[str] = None
        self._order_desc: bool = False
        self._limit: Optional[int] = None
        self._count_mode: Optional[str] = None
        self._select_cols: Optional[str] = None

    def select(self, cols: str, **kwargs):
        self._select_cols = cols
        self._count_mode = kwargs.get("count")
        return self

    def order(self, key: str, desc: bool = False):
        self._order_key = key
        self._order_desc = bool(desc)
        return self

    def limit(self, n: int):
        self._limit = n
        return self

    def execute(self) -> _Resp:
        rows = [r for r in self._table._rows if self._match(r)]
        if self._order_key:
            rows.sort(key=lambda r: _cmp_value(r.get(self._order_key)), reverse=self._order_desc)
        if self._limit is not None:
            rows = rows[: self._limit]
        # apply projection if simple list of columns
        if self._select_cols and self._select_cols.strip() != "*":
            cols = [c.strip() for c in self._select_cols.split(",")]
            rows = [{k: r.get(k) for k in cols} for r in rows]
        cnt = len(rows) if self._count_mode == "exact" else None
        return _Resp(data=copy.deepcopy(rows), count=cnt)


class _Update(_Filtered):
    def __init__(self, table: "_Table", values: Dict[str, Any]):
        super().__init__(table)
        self._values = values

    def execute(self) -> _Resp:
        hit = [r for r in self._table._rows if self._match(r)]
        for r in hit:
            r.update(copy.deepcopy(self._values))
        return _Resp(data=copy.deepcopy(hit))


class _Delete(_Filtered):
    def execute(self) -> _Resp:
        hit = [r for r in self._table._rows if self._match(r)]
        self._table._rows[:] = [r for r in self._table._rows if not self._match(r)]
        return _Resp(data=hit)


class _Table:
    def __init__(self, name: str, storage: Dict[str, List[Dict[str, Any]]]):
        self._name = name
        self._storage = storage
        self._rows = storage.setdefault(name, [])
        self._pending_insert: Optional[List[Dict[str, Any]]] = None

    def insert(self, row: Dict[str, Any]):
        # supabase-py supports list insertion as well; handle dict case for tests
        self._pending_insert = [copy.deepcopy(row)]
        return self

    def update(self, values: Dict[str, Any]) -> _Update:
        return _Update(self, values)

    def delete(self) -> _Delete:
        return _Delete(self)

    def execute(self) -> _Resp:
        if self._pending_insert is not None:
            self._rows.extend(self._pending_insert)
            out = _Resp(data=copy.deepcopy(self._pending_insert))
            self._pending_insert = None
            return out
        return _Resp(data=[])

    # query builder
    def select(self, cols: str, **kwargs) -> _Query:
        return _Query(self).select(cols, **kwargs)


class _FakeClient:
    def __init__(self):
        self._storage: Dict[str, List[Dict[str, Any]]] = {}

    def table(self, name: str) -> _Table:
        return _Table(name, self._storage)


@pytest.fixture(autouse=True)
def _supabase_mode(monkeypatch):
    """By default, tests use an in-memory fake Supabase.

    To run tests against a real Supabase project, export SUPABASE_TEST_REAL=true
    and ensure SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are set.
    """
    use_real = os.getenv("SUPABASE_TEST_REAL", "false").lower() in {"1", "true", "yes"}
    if not use_real:
        import taco_api.db as tdb

        fake = _FakeClient()
        monkeypatch.setattr(tdb, "get_client", lambda: fake, raising=True)
        monkeypatch.setattr(tdb, "_require_env", lambda: None, raising=True)

    yield


# Suppress deprecation warnings coming from third-party libs during tests
warnings.filterwarnings("ignore", category=DeprecationWarning, module=r"supabase\..*")
warnings.filterwarnings("ignore", category=DeprecationWarning)
