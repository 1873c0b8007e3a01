"""
Subscription plan service — CRUD for the Subscription Plan resource.

Design notes
------------
- ``slug`` is derived from ``name`` and is the unique key; it is
  recomputed on every rename and checked against every *other* plan.
- Reads go through an optional cache-aside layer (``CacheManager``). Keys
  encode every dimension of the query; any successful write purges all
  plan keys since it may shift every page.
"""
import logging
import re
from typing import Any

from subscriptions import errors
from subscriptions.cache import CacheManager
from subscriptions.config import settings
from subscriptions.models import SubscriptionPlan
from subscriptions.schemas import MutationResult, Page, PlanEntity, Query
from subscriptions.services.base import ResourceService
from subscriptions.services.database_service import DatabaseService
from subscriptions.validators import PlanCreate, PlanFilter, PlanUpdate, validate, validate_all

logger = logging.getLogger(__name__)

_SLUG_STRIP_RE = re.compile(r"[^\w\s-]")
_SLUG_SPACE_RE = re.compile(r"[\s_]+")
_SLUG_DASH_RE = re.compile(r"-+")


def slugify(text: str) -> str:
    """Return a URL-safe, lowercase slug derived from *text*."""
    text = _SLUG_STRIP_RE.sub("", text.lower().strip())
    text = _SLUG_SPACE_RE.sub("-", text)
    return _SLUG_DASH_RE.sub("-", text).strip("-")


class SubscriptionPlanService(ResourceService[SubscriptionPlan, PlanEntity]):
    model = SubscriptionPlan
    entity = PlanEntity
    filter_schema = PlanFilter
    resource = "Subscription Plan"

    def __init__(self, db: DatabaseService, cache: CacheManager | None = None) -> None:
        super().__init__(db)
        self.cache = cache

    async def _after_write(self) -> None:
        # Runs after flush but before get_db commits. A concurrent read in
        # that window can re-cache the previous row until its TTL expires.
        if self.cache is not None:
            await self.cache.invalidate_plans()

    def _slug_for(self, name: str) -> str:
        slug = slugify(name)
        if not slug:
            raise errors.ValidationError(
                [errors.invalid("name", "must contain at least one letter or digit", self.resource)]
            )
        return slug

    # ------------------------------------------------------------------
    # Cached reads
    # ------------------------------------------------------------------

    async def find_one(self, where: Any) -> PlanEntity:
        if self.cache is None:
            return await super().find_one(where)

        try:
            filter_ = validate(PlanFilter, where, self.resource)
        except errors.ValidationError as exc:
            self._fail(exc, errors.not_found(self.resource), "find_one")

        key = CacheManager.plan_detail_key(filter_.id) if filter_.id is not None else None
        if key is not None:
            cached = await self.cache.get(key)
            if cached is not None:
                return PlanEntity.model_validate(cached)

        plan = await super().find_one(filter_)
        await self.cache.set(key, plan.model_dump(mode="json"), ttl=settings.CACHE_TTL_DETAIL)
        return plan

    async def find_all(self, where: Any = None) -> Page[PlanEntity]:
        if self.cache is None:
            return await super().find_all(where)

        try:
            filter_ = validate(PlanFilter, where, self.resource)
        except errors.ValidationError as exc:
            self._fail(exc, errors.not_found(self.resource), "find_all")

        query = Query.from_filter(filter_, settings.DEFAULT_LIMIT)
        key = CacheManager.plan_list_key(query.where, query.limit, query.skip)
        cached = await self.cache.get(key)
        if cached is not None:
            return Page[PlanEntity].model_validate(cached)

        page = await super().find_all(filter_)
        await self.cache.set(key, page.model_dump(mode="json"), ttl=settings.CACHE_TTL_LIST)
        return page

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(self, payload: Any) -> PlanEntity:
        """
        Create a plan and return it with its assigned id.

        Raises ValidationError for bad input, ConflictError when another plan
        already owns the derived slug and BadRequestError if the insert
        yields no id.
        """
        result = None
        try:
            data = validate(PlanCreate, payload, self.resource)
            slug = self._slug_for(data.name)
            await self._ensure_unique("slug", slug)

            result = await self.db.create(SubscriptionPlan(**data.model_dump(), slug=slug))
            logger.debug("Subscription Plan added: %s (%s)", result.id, slug)
        except Exception as exc:
            self._fail(exc, errors.duplicate(self.resource), "create")

        if result is not None and result.id:
            await self._after_write()
            return self._to_entity(result)
        raise errors.BadRequestError(errors.unable_to_save(self.resource))

    async def update(self, payload: Any, where: Any) -> MutationResult[PlanEntity]:
        """
        Patch the plan identified by ``where.id``.

        Renaming regenerates the slug; keeping a plan's own slug is allowed,
        taking another plan's slug is a Conflict.
        """
        modified = 0
        try:
            patch, filter_ = validate_all(
                [(PlanUpdate, payload), (PlanFilter, where)], self.resource
            )
            plan_id = self._target_id(filter_)

            changes = self._changes(patch)
            if "name" in changes:
                changes["slug"] = self._slug_for(changes["name"])
                await self._ensure_unique("slug", changes["slug"], exclude_id=plan_id)

            rows, modified = await self.db.update(SubscriptionPlan, changes, {"id": plan_id})
            logger.debug("Subscription Plan updated: %s", plan_id)
        except Exception as exc:
            self._fail(exc, errors.duplicate(self.resource), "update")

        if modified > 0:
            await self._after_write()
            return MutationResult[PlanEntity](
                modified=modified, edges=[self._to_entity(r) for r in rows]
            )
        raise errors.NotFoundError(errors.not_found(self.resource))
