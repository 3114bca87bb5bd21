"""Error taxonomy shared by the services and the HTTP layer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class PayrollAdminError(Exception):
    """Base class for errors that map onto a client-facing response."""

    status_code: int = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_body(self) -> dict[str, Any]:
        return {"error": self.message}


@dataclass(frozen=True)
class FieldError:
    """A single violated input field."""

    field: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


class ValidationError(PayrollAdminError):
    """Raised when input is malformed or out of range.

    Carries every violated field, not just the first one found.
    """

    status_code = 400

    def __init__(self, errors: list[FieldError], message: str = "Validation failed"):
        self.errors = errors
        super().__init__(message)

    @classmethod
    def single(cls, field: str, message: str) -> ValidationError:
        return cls([FieldError(field, message)])

    @classmethod
    def from_pydantic(
        cls, errors: list[dict[str, Any]], *, root_field: str = "body"
    ) -> ValidationError:
        """Build from ``pydantic.ValidationError.errors()`` output."""
        field_errors = []
        for err in errors:
            loc = [
                str(part)
                for part in err.get("loc", ())
                if part not in ("body", "query", "path", "header")
            ]
            field_errors.append(FieldError(".".join(loc) or root_field, err.get("msg", "Invalid value")))
        return cls(field_errors)

    def to_body(self) -> dict[str, Any]:
        return {"errors": [e.to_dict() for e in self.errors]}


class InvalidCredentials(PayrollAdminError):
    """Login or token-based account flow rejected."""

    status_code = 400


class Unauthenticated(PayrollAdminError):
    """Missing, malformed, or expired bearer token."""

    status_code = 401


class AccessDenied(PayrollAdminError):
    """The access policy denied the operation."""

    status_code = 403


class NotFound(PayrollAdminError):
    """Resource absent, or its existence is not confirmed to the caller."""

    status_code = 404


class Conflict(PayrollAdminError):
    """The operation clashes with existing state (duplicate email, etc.)."""

    status_code = 409
