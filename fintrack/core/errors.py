"""Error taxonomy shared by every service.

Each error carries a stable ``code`` the transport layer maps to its own
status codes. Unknown filter keys are never errors; they are dropped by the
query builder.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence


class AccessError(Exception):
    """Base error for data-access failures."""

    code = "error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


class NotFoundError(AccessError):
    """A required row (entity, member, namespace, ...) does not exist."""

    code = "not_found"


class UnauthorizedError(AccessError):
    """The actor lacks rights for the requested mutation."""

    code = "unauthorized"


class InvalidOperationError(AccessError):
    """Well-formed but forbidden, e.g. adding the owner as a member."""

    code = "invalid"


class FieldError(AccessError):
    """Base for errors reported per field."""

    def __init__(
        self,
        errors: Mapping[str, Sequence[str]],
        message: str = "",
    ) -> None:
        self.errors = {field: list(msgs) for field, msgs in errors.items()}
        super().__init__(message or _summarize(self.errors))


class ValidationError(FieldError):
    """Malformed input, e.g. an unknown permission value."""

    code = "validation_error"


class ConflictError(FieldError):
    """A uniqueness constraint rejected the write."""

    code = "conflict"


def _summarize(errors: Mapping[str, Sequence[str]]) -> str:
    return "; ".join(f"{field} {', '.join(msgs)}" for field, msgs in errors.items())


def from_pydantic(exc) -> ValidationError:
    """Convert a pydantic ``ValidationError`` into per-field messages."""
    errors: dict[str, list[str]] = {}
    for err in exc.errors():
        field = ".".join(str(part) for part in err["loc"]) or "__root__"
        errors.setdefault(field, []).append(err["msg"])
    return ValidationError(errors)
