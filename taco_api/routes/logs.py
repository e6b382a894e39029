from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, HTTPException
import logging

from taco.pipeline.fields import LogEntry
from taco.pipeline.history import format_timestamp, start_of_day
from taco_api.errors import HANDLED, to_http
from taco_api.deps import download, open_session
from taco_api.schemas import DeletedOut, LogCountOut, LogIn, LogOut


router = APIRouter(prefix="/api/blueprints/{blueprint_id}/logs", tags=["logs"])
log = logging.getLogger("taco_api.routes.logs")


def _log_out(session, entry: LogEntry) -> LogOut:
    return LogOut(
        id=entry.id,
        blueprint_id=entry.blueprint_id,
        timestamp=format_timestamp(entry.timestamp),
        title=session.log_title(entry),
        data=entry.data,
        full_output=entry.full_output,
    )


@router.post("", response_model=LogOut)
def commit_log(blueprint_id: str, body: LogIn):
    log.info("log_commit blueprint_id=%s values=%s", blueprint_id, len(body.values))
    session = open_session(blueprint_id)
    try:
        session.form.fill(body.values)
        entry = session.commit_log(now=body.timestamp)
    except HANDLED as e:
        raise to_http(e) from e
    return _log_out(session, entry)


@router.get("", response_model=List[LogOut])
def list_logs(blueprint_id: str, q: str = ""):
    log.info("log_list blueprint_id=%s q=%s", blueprint_id, q)
    session = open_session(blueprint_id)
    try:
        entries = session.logs(q)
    except HANDLED as e:
        raise to_http(e) from e
    return [_log_out(session, e) for e in entries]


@router.get("/today", response_model=LogCountOut)
def cases_today(blueprint_id: str, now: Optional[datetime] = None):
    now = now or datetime.now().astimezone()
    log.info("log_today blueprint_id=%s now=%s", blueprint_id, now.isoformat())
    session = open_session(blueprint_id)
    try:
        count = session.cases_today(now)
    except HANDLED as e:
        raise to_http(e) from e
    return LogCountOut(blueprint_id=blueprint_id, since=start_of_day(now).isoformat(), count=count)


@router.get("/export.csv")
def export_logs_csv(blueprint_id: str):
    log.info("log_export blueprint_id=%s", blueprint_id)
    session = open_session(blueprint_id)
    try:
        filename, content = session.download_csv()
    except HANDLED as e:
        raise to_http(e) from e
    return download(filename, content, "text/csv; charset=utf-8")


@router.delete("/{log_id}", response_model=DeletedOut)
def delete_log(blueprint_id: str, log_id: str, confirm: bool = False):
    log.info("log_delete blueprint_id=%s log_id=%s confirm=%s", blueprint_id, log_id, confirm)
    session = open_session(blueprint_id)
    try:
        if not any(e.id == log_id for e in session.logs()):
            raise HTTPException(status_code=404, detail="log not found for blueprint")
        session.delete_log(log_id, confirmed=confirm)
    except HANDLED as e:
        raise to_http(e) from e
    return DeletedOut(id=log_id)
