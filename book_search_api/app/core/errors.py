"""
Error types shared by the service layer and the HTTP surface.

Instead of a hierarchy of exception classes every failure raised by a
service is a ``ServiceError`` tagged with an ``ErrorKind``.  The kind
decides how the error is rendered (see ``main.create_app``), the
optional ``field`` names the offending input.
"""

from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorKind(str, Enum):
    VALIDATION = "VALIDATION"
    AUTHENTICATION = "UNAUTHENTICATED"
    NOT_FOUND = "NOT_FOUND"


class ServiceError(Exception):
    """A failure raised by a service, tagged with its kind."""

    def __init__(self, kind: ErrorKind, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.field = field

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message, "code": self.kind.value, "field": self.field}

    def __repr__(self) -> str:
        return f"ServiceError({self.kind.name}, {self.message!r}, field={self.field!r})"


def ValidationError(message: str, field: Optional[str] = None) -> ServiceError:
    return ServiceError(ErrorKind.VALIDATION, message, field)


def AuthenticationError(message: str = "Not Authenticated") -> ServiceError:
    return ServiceError(ErrorKind.AUTHENTICATION, message)


def NotFoundError(message: str, field: Optional[str] = None) -> ServiceError:
    return ServiceError(ErrorKind.NOT_FOUND, message, field)


def ValidationErrorFromPydantic(errors: List[Dict[str, Any]]) -> ServiceError:
    """Build a ``ValidationError`` from the first entry of pydantic's ``errors()``.

    The ``body`` prefix FastAPI puts in front of request body locations
    is dropped, so a missing ``operation`` is reported on ``operation``.
    """
    if not errors:
        return ValidationError("Invalid request")
    error = errors[0]
    loc = [str(part) for part in error.get("loc", ())]
    if loc and loc[0] == "body":
        loc = loc[1:]
    return ValidationError(error.get("msg", "Invalid request"), ".".join(loc) or None)
