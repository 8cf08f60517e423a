"""
results.py — Structured outcome of every user-facing operation
Expected conditions (limits reached, not found, invalid input) come back as a
failed ActionResult; nothing a caller triggers should raise past a service.
"""

from enum import Enum
from typing import Any, Optional, List

from pydantic import BaseModel


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    CAPACITY = "capacity"
    NOT_FOUND = "not_found"
    EXTERNAL = "external"
    INTEGRITY = "integrity"
    UNEXPECTED = "unexpected"


class ActionResult(BaseModel):
    success: bool
    error: Optional[str] = None
    errors: List[str] = []
    warning: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    data: Optional[Any] = None

    @classmethod
    def ok(cls, data: Any = None, warning: str | None = None) -> "ActionResult":
        return cls(success=True, data=data, warning=warning)

    @classmethod
    def fail(cls, kind: ErrorKind, error: str, errors: list[str] | None = None,
             data: Any = None) -> "ActionResult":
        return cls(success=False, error_kind=kind, error=error, errors=errors or [error], data=data)

    @classmethod
    def invalid(cls, errors: list[str]) -> "ActionResult":
        return cls.fail(ErrorKind.VALIDATION, ". ".join(errors), errors)

    @classmethod
    def not_found(cls, what: str) -> "ActionResult":
        return cls.fail(ErrorKind.NOT_FOUND, f"{what} not found")
