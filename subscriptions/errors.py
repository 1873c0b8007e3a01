"""
Error generation and classification shared by every resource service.

Two layers live here:

- The *generator* functions (``required``, ``min_length``, ``duplicate`` ...)
  build an ``ErrorMessage``: a small, client-safe description of what went
  wrong, scoped to a field and/or a resource.
- The *classifier* (``ServiceError`` and its subclasses, ``classify`` and
  ``parse_error``) turns a message into an exception carrying an HTTP-style
  status code, so the transport layer never has to guess.
"""
from __future__ import annotations

from enum import Enum
from typing import Iterable, NoReturn

from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError


class ErrorKind(str, Enum):
    REQUIRED = "required"
    MIN_LENGTH = "min_length"
    MAX_LENGTH = "max_length"
    MIN_VALUE = "min_value"
    MAX_VALUE = "max_value"
    INVALID_CHOICE = "invalid_choice"
    INVALID = "invalid"
    DUPLICATE = "duplicate"
    NOT_FOUND = "not_found"
    UNABLE_TO_SAVE = "unable_to_save"
    UNABLE_TO_DELETE = "unable_to_delete"


class ErrorMessage(BaseModel):
    kind: ErrorKind
    message: str
    field: str | None = None
    resource: str | None = None


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------

def required(field: str, resource: str | None = None) -> ErrorMessage:
    return ErrorMessage(
        kind=ErrorKind.REQUIRED,
        field=field,
        resource=resource,
        message=f"{field} is required",
    )


def min_length(field: str, n: int, resource: str | None = None) -> ErrorMessage:
    return ErrorMessage(
        kind=ErrorKind.MIN_LENGTH,
        field=field,
        resource=resource,
        message=f"{field} must be at least {n} characters",
    )


def max_length(field: str, n: int, resource: str | None = None) -> ErrorMessage:
    return ErrorMessage(
        kind=ErrorKind.MAX_LENGTH,
        field=field,
        resource=resource,
        message=f"{field} must be at most {n} characters",
    )


def min_value(field: str, n, resource: str | None = None) -> ErrorMessage:
    return ErrorMessage(
        kind=ErrorKind.MIN_VALUE,
        field=field,
        resource=resource,
        message=f"{field} must be greater than or equal to {n}",
    )


def max_value(field: str, n, resource: str | None = None) -> ErrorMessage:
    return ErrorMessage(
        kind=ErrorKind.MAX_VALUE,
        field=field,
        resource=resource,
        message=f"{field} must be less than or equal to {n}",
    )


def invalid_choice(field: str, choices: Iterable[str], resource: str | None = None) -> ErrorMessage:
    return ErrorMessage(
        kind=ErrorKind.INVALID_CHOICE,
        field=field,
        resource=resource,
        message=f"{field} must be one of: {', '.join(choices)}",
    )


def invalid(field: str, reason: str, resource: str | None = None) -> ErrorMessage:
    """Catch-all for type / format violations without a dedicated generator."""
    return ErrorMessage(
        kind=ErrorKind.INVALID,
        field=field,
        resource=resource,
        message=f"{field} is invalid: {reason}",
    )


def duplicate(resource: str) -> ErrorMessage:
    return ErrorMessage(
        kind=ErrorKind.DUPLICATE,
        resource=resource,
        message=f"{resource} already exists",
    )


def not_found(resource: str) -> ErrorMessage:
    return ErrorMessage(
        kind=ErrorKind.NOT_FOUND,
        resource=resource,
        message=f"{resource} not found",
    )


def unable_to_save(resource: str) -> ErrorMessage:
    return ErrorMessage(
        kind=ErrorKind.UNABLE_TO_SAVE,
        resource=resource,
        message=f"Unable to save {resource}",
    )


def unable_to_delete(resource: str) -> ErrorMessage:
    return ErrorMessage(
        kind=ErrorKind.UNABLE_TO_DELETE,
        resource=resource,
        message=f"Unable to delete {resource}",
    )


# ---------------------------------------------------------------------------
# Classifier
# ---------------------------------------------------------------------------

class ServiceError(Exception):
    """
    Base class for every error a resource service raises.

    - error: the ``ErrorMessage`` describing the failure (safe for clients)
    - status_code: HTTP-style status the transport layer should answer with
    """

    status_code: int = 400

    def __init__(self, error: ErrorMessage):
        super().__init__(error.message)
        self.error = error

    @property
    def message(self) -> str:
        return self.error.message

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind

    def to_payload(self) -> dict:
        """
        JSON-serializable body for HTTP responses::

            {"detail": "Subscription Plan already exists", "code": "duplicate"}
        """
        payload = {"detail": self.error.message, "code": self.error.kind.value}
        if self.error.resource:
            payload["resource"] = self.error.resource
        return payload


class BadRequestError(ServiceError):
    status_code = 400


class ConflictError(ServiceError):
    status_code = 409


class NotFoundError(ServiceError):
    status_code = 404


class ValidationError(ServiceError):
    """One or more field-level violations, all collected before raising."""

    status_code = 422

    def __init__(self, errors: list[ErrorMessage]):
        self.errors = list(errors)
        fields = ", ".join(e.field for e in self.errors if e.field)
        super().__init__(
            ErrorMessage(
                kind=ErrorKind.INVALID,
                message=f"Invalid input: {fields}" if fields else "Invalid input",
            )
        )

    @property
    def fields(self) -> list[str]:
        return [e.field for e in self.errors if e.field]

    def to_payload(self) -> dict:
        payload = super().to_payload()
        payload["errors"] = [e.model_dump(mode="json", exclude_none=True) for e in self.errors]
        return payload


_KIND_TO_ERROR: dict[ErrorKind, type[ServiceError]] = {
    ErrorKind.DUPLICATE: ConflictError,
    ErrorKind.NOT_FOUND: NotFoundError,
}


def classify(error: ErrorMessage) -> ServiceError:
    """Wrap *error* in the exception class matching its kind (default 400)."""
    return _KIND_TO_ERROR.get(error.kind, BadRequestError)(error)


def parse_error(caught: BaseException, fallback: ErrorMessage) -> NoReturn:
    """
    Re-raise *caught* as a classified ``ServiceError``.

    Already-classified errors pass through untouched. A unique-constraint
    violation from the database means a concurrent write won the race the
    duplicate pre-check could not see, so it becomes a Conflict. Anything
    else is wrapped with *fallback*.
    """
    if isinstance(caught, ServiceError):
        raise caught
    if isinstance(caught, IntegrityError):
        raise ConflictError(duplicate(fallback.resource or "Record")) from caught
    raise classify(fallback) from caught


__all__ = [
    "ErrorKind",
    "ErrorMessage",
    "required",
    "min_length",
    "max_length",
    "min_value",
    "max_value",
    "invalid_choice",
    "invalid",
    "duplicate",
    "not_found",
    "unable_to_save",
    "unable_to_delete",
    "ServiceError",
    "BadRequestError",
    "ConflictError",
    "NotFoundError",
    "ValidationError",
    "classify",
    "parse_error",
]
