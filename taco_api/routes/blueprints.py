from __future__ import annotations

from typing import Any, Dict, List
from fastapi import APIRouter, Body
import logging

from taco.editor.session import EditorSession
from taco.pipeline.fields import Blueprint
from taco_api.db import get_store
from taco_api.deps import download, open_session
from taco_api.errors import HANDLED, to_http
from taco_api.schemas import BlueprintBrief, BlueprintIn, BlueprintOut, DeletedOut


router = APIRouter(prefix="/api/blueprints", tags=["blueprints"])
log = logging.getLogger("taco_api.routes.blueprints")


def _out(bp: Blueprint) -> BlueprintOut:
    return BlueprintOut.model_validate(bp.snapshot())


@router.post("", response_model=BlueprintOut)
def create_blueprint(payload: BlueprintIn):
    log.info("blueprint_create title=%s fields=%s", payload.title, len(payload.fields))
    session = EditorSession(get_store(), blueprint=Blueprint(title=payload.title, subtitle=payload.subtitle, fields=payload.fields))
    try:
        session.save()
    except HANDLED as e:
        raise to_http(e) from e
    return _out(session.blueprint)


@router.get("", response_model=List[BlueprintBrief])
def list_blueprints():
    log.info("blueprint_list")
    session = EditorSession(get_store())
    try:
        rows = session.blueprints()
    except HANDLED as e:
        raise to_http(e) from e
    return [BlueprintBrief(id=bid, title=title) for bid, title in rows]


@router.post("/import", response_model=BlueprintOut)
def import_blueprint(payload: Dict[str, Any] = Body(...)):
    """Validate an exported blueprint document. The result is not saved."""
    log.info("blueprint_import keys=%s", ",".join(sorted(payload)))
    session = EditorSession(get_store())
    try:
        session.import_data(payload)
    except HANDLED as e:
        raise to_http(e) from e
    return _out(session.blueprint)


@router.get("/{blueprint_id}", response_model=BlueprintOut)
def get_blueprint(blueprint_id: str):
    log.info("blueprint_get blueprint_id=%s", blueprint_id)
    return _out(open_session(blueprint_id).blueprint)


@router.put("/{blueprint_id}", response_model=BlueprintOut)
def update_blueprint(blueprint_id: str, payload: BlueprintIn):
    log.info("blueprint_update blueprint_id=%s fields=%s", blueprint_id, len(payload.fields))
    session = open_session(blueprint_id)
    session.set_title(payload.title)
    session.set_subtitle(payload.subtitle)
    session.blueprint.fields = list(payload.fields)
    try:
        session.save()
    except HANDLED as e:
        raise to_http(e) from e
    return _out(session.blueprint)


@router.delete("/{blueprint_id}", response_model=DeletedOut)
def delete_blueprint(blueprint_id: str, confirm: bool = False):
    log.info("blueprint_delete blueprint_id=%s confirm=%s", blueprint_id, confirm)
    session = open_session(blueprint_id)
    try:
        session.delete(confirmed=confirm)
    except HANDLED as e:
        raise to_http(e) from e
    return DeletedOut(id=blueprint_id)


@router.post("/{blueprint_id}/duplicate", response_model=BlueprintOut)
def duplicate_blueprint(blueprint_id: str):
    log.info("blueprint_duplicate blueprint_id=%s", blueprint_id)
    session = open_session(blueprint_id)
    return _out(session.duplicate())


@router.get("/{blueprint_id}/export.json")
def export_blueprint_json(blueprint_id: str):
    log.info("blueprint_export format=json blueprint_id=%s", blueprint_id)
    filename, content = open_session(blueprint_id).export_json()
    return download(filename, content, "application/json")


@router.get("/{blueprint_id}/export.html")
def export_blueprint_html(blueprint_id: str):
    log.info("blueprint_export format=html blueprint_id=%s", blueprint_id)
    filename, content = open_session(blueprint_id).export_html()
    return download(filename, content, "text/html; charset=utf-8")
