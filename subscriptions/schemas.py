"""
Output shapes: the entities services return and the envelopes around them.

Inputs (create payloads, patches, filters) live in ``validators``; these
models only ever describe data that already passed through the database.
"""
from datetime import date, datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from subscriptions.models import BillingInterval, UserRole

EntityT = TypeVar("EntityT", bound=BaseModel)


# --- User ---

class UserResponse(BaseModel):
    """Public view of a User (no password hash)."""

    id: str
    name: str
    email: str
    date_of_birth: date | None = None
    role: UserRole
    created_at: datetime
    updated_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


class UserEntity(UserResponse):
    """Full User record as returned by the service layer."""

    hashed_password: str


# --- Subscription plan ---

class PlanEntity(BaseModel):
    id: str
    name: str
    slug: str
    description: str | None = None
    price_cents: int
    currency: str
    interval: BillingInterval
    is_active: bool
    created_at: datetime
    updated_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


# --- Query / pagination ---

class Query(BaseModel):
    """
    A filter resolved into exactly what the database service needs:
    equality conditions plus an explicit limit and skip.
    """

    where: dict = Field(default_factory=dict)
    limit: int
    skip: int = 0

    @classmethod
    def from_filter(cls, filter_, default_limit: int) -> "Query":
        """
        Normalize a validated filter (or None).

        Pagination is honored only when ``limit`` and ``skip`` are both
        given; any other shape loads the default page. ``id`` becomes an
        equality condition when present.
        """
        if filter_ is None:
            return cls(limit=default_limit)
        where = {"id": filter_.id} if filter_.id is not None else {}
        if filter_.limit is None or filter_.skip is None:
            return cls(where=where, limit=default_limit)
        return cls(where=where, limit=filter_.limit, skip=filter_.skip)


class PageInfo(BaseModel):
    total: int
    limit: int
    skip: int
    has_more: bool

    @classmethod
    def build(cls, total: int, limit: int, skip: int) -> "PageInfo":
        return cls(total=total, limit=limit, skip=skip, has_more=total > limit + skip)


class Page(BaseModel, Generic[EntityT]):
    edges: list[EntityT]
    page_info: PageInfo


class MutationResult(BaseModel, Generic[EntityT]):
    modified: int
    edges: list[EntityT]


class CountResponse(BaseModel):
    count: int

