from __future__ import annotations

from fastapi import APIRouter, HTTPException
import logging

from taco.editor.session import EditorSession
from taco.editor.store import MemoryStore
from taco.pipeline.fields import FIELD_TYPES, Blueprint, field_to_dict
from taco.pipeline.render import RenderMode, render_form
from taco.pipeline.template import compile_template, render_output
from taco_api.errors import HANDLED, to_http
from taco_api.schemas import FieldDraftIn, FieldDraftOut, PreviewIn, PreviewOut


router = APIRouter(prefix="/api/preview", tags=["preview"])
log = logging.getLogger("taco_api.routes.preview")


@router.post("", response_model=PreviewOut)
def preview(body: PreviewIn):
    """Template, output text and form tree for unsaved fields and raw values."""
    log.info("preview fields=%s values=%s mode=%s", len(body.fields), len(body.values), body.mode)
    nodes = render_form(body.fields, RenderMode(body.mode))
    return PreviewOut(
        template=compile_template(body.fields),
        output=render_output(body.fields, body.values),
        nodes=[n.to_dict() for n in nodes],
    )


@router.post("/fields", response_model=FieldDraftOut)
def commit_field_draft(body: FieldDraftIn):
    log.info("field_draft type=%s label=%s index=%s", body.type, body.label, body.index)
    if body.type not in FIELD_TYPES:
        raise HTTPException(status_code=422, detail=f"unknown field type: {body.type}")
    # Nothing is persisted; the session only supplies the field commit rules
    session = EditorSession(MemoryStore(), blueprint=Blueprint(fields=body.fields))
    if body.index is not None and not 0 <= body.index < len(body.fields):
        raise HTTPException(status_code=404, detail="field index out of range")
    editor = session.edit_field(body.index, body.type)
    try:
        if body.options or body.bulk_options:
            editor.clear_options(confirmed=True)
        for value in body.options:
            editor.add_option(value, body.option_group)
        editor.add_bulk_options(body.bulk_options or "", body.option_group)
        f = editor.commit(
            body.label,
            required=body.required,
            placeholder=body.placeholder,
            is_multi_select=body.is_multi_select,
            hover_info=body.hover_info,
        )
    except TypeError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except HANDLED as e:
        raise to_http(e) from e
    return FieldDraftOut(field=field_to_dict(f), template=session.template)
