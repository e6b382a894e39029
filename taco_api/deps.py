from __future__ import annotations

from fastapi import Response

from taco.editor.session import EditorSession
from taco_api.db import get_store
from taco_api.errors import HANDLED, to_http


def open_session(blueprint_id: str) -> EditorSession:
    """Session over a stored blueprint; 404 if it does not exist."""
    session = EditorSession(get_store())
    try:
        session.load(blueprint_id)
    except HANDLED as e:
        raise to_http(e) from e
    return session


def download(filename: str, content: str, media_type: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
