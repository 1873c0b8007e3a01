from fastapi import Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from subscriptions.cache import cache
from subscriptions.config import settings
from subscriptions.database import get_db
from subscriptions.services.database_service import DatabaseService
from subscriptions.services.plan_service import SubscriptionPlanService
from subscriptions.services.user_service import UserService


class FilterParams:
    """
    Reusable FastAPI dependency collecting the ``id`` / ``limit`` / ``skip``
    query parameters into the filter mapping the services expect.

    Values are passed on as raw strings; type and range checks happen in the
    service-layer validators, so HTTP callers get the same error body as
    direct callers.
    """

    def __init__(
        self,
        id: str | None = Query(None, description="Restrict results to this record id."),
        limit: str | None = Query(
            None,
            description=f"Page size (default {settings.DEFAULT_LIMIT}, max {settings.MAX_LIMIT}).",
        ),
        skip: str | None = Query(None, description="Number of records to skip."),
    ) -> None:
        self.id = id
        self.limit = limit
        self.skip = skip

    def as_filter(self) -> dict:
        """Only the parameters the caller actually supplied."""
        return {
            key: value
            for key, value in (("id", self.id), ("limit", self.limit), ("skip", self.skip))
            if value is not None
        }


def get_database_service(db: AsyncSession = Depends(get_db)) -> DatabaseService:
    return DatabaseService(db)


def get_user_service(db: DatabaseService = Depends(get_database_service)) -> UserService:
    return UserService(db)


def get_plan_service(db: DatabaseService = Depends(get_database_service)) -> SubscriptionPlanService:
    return SubscriptionPlanService(db, cache=cache)
