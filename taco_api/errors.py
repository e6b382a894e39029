from __future__ import annotations

from fastapi import HTTPException

from taco.errors import ConfirmationRequired, FormValidationError, NotFoundError, PersistenceError


def to_http(e: Exception) -> HTTPException:
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ConfirmationRequired):
        return HTTPException(status_code=409, detail=f"{e.action} requires confirm=true")
    if isinstance(e, PersistenceError):
        return HTTPException(status_code=502, detail=str(e))
    if isinstance(e, FormValidationError):
        return HTTPException(status_code=422, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))


HANDLED = (NotFoundError, ConfirmationRequired, PersistenceError, FormValidationError)
