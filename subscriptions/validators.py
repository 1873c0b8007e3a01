"""
Input validation for every resource service call.

Each verb has its own pydantic model (Create / Update / Filter). ``validate``
runs the model, collects every violation, and translates pydantic's error
types into ``ErrorMessage`` objects from the error generator so clients get
the same messages regardless of which constraint failed.
"""
import enum
import typing
from datetime import date
from typing import Annotated, Any, Iterable, TypeVar

import pydantic
from pydantic import BaseModel, ConfigDict, Field, StringConstraints, model_validator

from subscriptions import errors
from subscriptions.config import settings
from subscriptions.models import BillingInterval, UserRole

SchemaT = TypeVar("SchemaT", bound=BaseModel)

Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=50)]
Email = Annotated[
    str,
    StringConstraints(
        strip_whitespace=True,
        min_length=10,
        max_length=50,
        pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$",
    ),
]
# Passwords are never trimmed.
RawPassword = Annotated[str, StringConstraints(min_length=6, max_length=20)]
Description = Annotated[str, StringConstraints(strip_whitespace=True, max_length=500)]
Currency = Annotated[
    str, StringConstraints(strip_whitespace=True, to_upper=True, min_length=3, max_length=3)
]
RecordId = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
PriceCents = Annotated[int, Field(ge=0, le=10_000_000)]


class _Input(BaseModel):
    model_config = ConfigDict(extra="forbid", use_enum_values=True, validate_default=True)


class _Patch(_Input):
    @model_validator(mode="after")
    def _not_empty(self):
        if not self.model_fields_set:
            raise ValueError("at least one field must be provided")
        return self


# --- Filter (shared shape) ---

class _Filter(_Input):
    id: RecordId | None = None
    limit: int | None = Field(None, ge=1, le=settings.MAX_LIMIT)
    skip: int | None = Field(None, ge=0)


# --- User ---

class UserCreate(_Input):
    name: Name
    email: Email
    raw_password: RawPassword
    role: UserRole = UserRole.USER
    date_of_birth: date | None = None


class UserUpdate(_Patch):
    name: Name | None = None
    email: Email | None = None
    raw_password: RawPassword | None = None
    role: UserRole | None = None
    date_of_birth: date | None = None


class UserFilter(_Filter):
    pass


# --- Subscription plan ---

class PlanCreate(_Input):
    name: Name
    description: Description | None = None
    price_cents: PriceCents = 0
    currency: Currency = "USD"
    interval: BillingInterval = BillingInterval.MONTH
    is_active: bool = True


class PlanUpdate(_Patch):
    name: Name | None = None
    description: Description | None = None
    price_cents: PriceCents | None = None
    currency: Currency | None = None
    interval: BillingInterval | None = None
    is_active: bool | None = None


class PlanFilter(_Filter):
    pass


# ---------------------------------------------------------------------------
# pydantic error -> ErrorMessage translation
# ---------------------------------------------------------------------------

def _enum_choices(schema: type[BaseModel], field: str) -> list[str]:
    info = schema.model_fields.get(field)
    if info is None:
        return []
    candidates = (info.annotation, *typing.get_args(info.annotation))
    for candidate in candidates:
        if isinstance(candidate, type) and issubclass(candidate, enum.Enum):
            return [str(member.value) for member in candidate]
    return []


def _to_message(schema: type[BaseModel], err: dict, resource: str | None) -> errors.ErrorMessage:
    field = ".".join(str(part) for part in err["loc"]) or "payload"
    kind = err["type"]
    ctx = err.get("ctx") or {}

    if kind == "missing" or (kind.endswith("_type") and err.get("input") is None):
        return errors.required(field, resource)
    if kind == "string_too_short":
        return errors.min_length(field, ctx["min_length"], resource)
    if kind == "string_too_long":
        return errors.max_length(field, ctx["max_length"], resource)
    if kind in ("greater_than_equal", "greater_than"):
        return errors.min_value(field, ctx.get("ge", ctx.get("gt")), resource)
    if kind in ("less_than_equal", "less_than"):
        return errors.max_value(field, ctx.get("le", ctx.get("lt")), resource)
    if kind == "enum":
        return errors.invalid_choice(field, _enum_choices(schema, field), resource)
    if kind == "extra_forbidden":
        return errors.invalid(field, "unknown field", resource)
    if kind == "string_pattern_mismatch":
        return errors.invalid(field, "unexpected format", resource)
    if kind == "value_error":
        return errors.invalid(field, str(ctx.get("error", err["msg"])), resource)
    return errors.invalid(field, err["msg"], resource)


def collect(schema: type[SchemaT], data: Any, resource: str | None = None) -> tuple[SchemaT | None, list[errors.ErrorMessage]]:
    """
    Validate *data* against *schema* without raising.

    Returns ``(model, [])`` on success and ``(None, messages)`` otherwise.
    ``None`` is accepted as an empty payload so optional filters validate.
    """
    if data is None:
        data = {}
    elif isinstance(data, BaseModel):
        data = data.model_dump(exclude_unset=True)
    try:
        return schema.model_validate(data), []
    except pydantic.ValidationError as exc:
        return None, [_to_message(schema, err, resource) for err in exc.errors()]


def validate(schema: type[SchemaT], data: Any, resource: str | None = None) -> SchemaT:
    """Validate *data* against *schema*, raising one ``ValidationError`` with every violation."""
    model, messages = collect(schema, data, resource)
    if messages:
        raise errors.ValidationError(messages)
    return model


def validate_all(pairs: Iterable[tuple[type[BaseModel], Any]], resource: str | None = None) -> list[BaseModel]:
    """
    Validate several payloads at once (e.g. an update's patch and filter)
    and raise a single ``ValidationError`` holding the violations of all of them.
    """
    models: list[BaseModel] = []
    messages: list[errors.ErrorMessage] = []
    for schema, data in pairs:
        model, found = collect(schema, data, resource)
        models.append(model)
        messages.extend(found)
    if messages:
        raise errors.ValidationError(messages)
    return models
