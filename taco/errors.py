from __future__ import annotations

from typing import Optional


class FormValidationError(ValueError):
    """Raised when user input cannot be committed. Nothing is mutated."""


class ImportFormatError(FormValidationError):
    pass


class InvalidOptionError(FormValidationError):
    def __init__(self, value: str):
        super().__init__(f'"{value}" is not a valid option.')
        self.value = value


class MissingIdentityError(FormValidationError):
    """The operation needs a blueprint that has been saved at least once."""


class ConfirmationRequired(Exception):
    def __init__(self, action: str):
        super().__init__(f"{action} requires confirmation")
        self.action = action


class PersistenceError(RuntimeError):
    def __init__(self, action: str, cause: Optional[BaseException] = None):
        msg = f"Error {action}."
        if cause is not None:
            msg = f"Error {action}: {cause}"
        super().__init__(msg)
        self.action = action
        self.cause = cause


class NotFoundError(LookupError):
    pass
