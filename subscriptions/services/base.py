"""
Behaviour shared by every resource service.

A resource service validates its input, runs duplicate checks, delegates
to the ``DatabaseService`` and shapes the result into entities and
envelopes. Reads, deletes and counts are identical across resources and
live here; ``create`` and ``update`` depend on each resource's derived and
unique fields and are implemented by the subclasses.

Every public method follows the same error policy: failures are logged,
then passed through ``parse_error`` with a fallback message matching what
the operation was trying to do.
"""
import logging
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from subscriptions import errors
from subscriptions.config import settings
from subscriptions.database import Base
from subscriptions.schemas import MutationResult, Page, PageInfo, Query
from subscriptions.services.database_service import DatabaseService
from subscriptions.validators import validate

ModelT = TypeVar("ModelT", bound=Base)
EntityT = TypeVar("EntityT", bound=BaseModel)

logger = logging.getLogger(__name__)


class ResourceService(Generic[ModelT, EntityT]):
    #: ORM model the service persists.
    model: type[ModelT]
    #: Entity type returned to callers.
    entity: type[EntityT]
    #: Filter schema used to validate ``where`` arguments.
    filter_schema: type[BaseModel]
    #: Human-readable resource name used in error messages.
    resource: str

    def __init__(self, db: DatabaseService) -> None:
        self.db = db

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _to_entity(self, row: ModelT) -> EntityT:
        return self.entity.model_validate(row)

    def _fail(self, exc: Exception, fallback: errors.ErrorMessage, operation: str):
        """Log *exc* at the level its kind deserves, then reclassify it."""
        if isinstance(exc, errors.ServiceError):
            logger.info("%s.%s rejected: %s", self.resource, operation, exc)
        else:
            logger.error("%s.%s failed", self.resource, operation, exc_info=exc)
        errors.parse_error(exc, fallback)

    async def _ensure_unique(self, column: str, value: Any, exclude_id: str | None = None) -> None:
        """
        Raise Conflict if another record already holds *value* in *column*.

        Best-effort only: the database unique constraint is what actually
        guarantees uniqueness under concurrent writes.
        """
        existing = await self.db.find_one(self.model, {column: value})
        if existing is not None and existing.id != exclude_id:
            raise errors.ConflictError(errors.duplicate(self.resource))

    def _changes(self, patch: BaseModel) -> dict:
        """Fields a patch actually sets; nulls mean "leave unchanged"."""
        changes = patch.model_dump(exclude_unset=True, exclude_none=True)
        if not changes:
            raise errors.ValidationError(
                [errors.invalid("payload", "at least one field must be provided", self.resource)]
            )
        return changes

    def _target_id(self, filter_) -> str:
        if filter_ is None or filter_.id is None:
            raise errors.NotFoundError(errors.not_found(self.resource))
        return filter_.id

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def find_one(self, where: Any) -> EntityT:
        """Return the record identified by ``where.id``; NotFound otherwise."""
        try:
            filter_ = validate(self.filter_schema, where, self.resource)
            row = None
            if filter_.id is not None:
                row = await self.db.find_one(self.model, {"id": filter_.id})
        except Exception as exc:
            self._fail(exc, errors.not_found(self.resource), "find_one")

        if row is None:
            raise errors.NotFoundError(errors.not_found(self.resource))
        logger.debug("%s loaded: %s", self.resource, row.id)
        return self._to_entity(row)

    async def find_all(self, where: Any = None) -> Page[EntityT]:
        """
        Return one page of records.

        The filter is normalized into a single ``Query`` (default limit
        ``settings.DEFAULT_LIMIT``, skip 0) and dispatched once. An empty
        page is reported as NotFound.
        """
        try:
            filter_ = validate(self.filter_schema, where, self.resource)
            query = Query.from_filter(filter_, settings.DEFAULT_LIMIT)
            rows, total = await self.db.find_all(self.model, query.where, query.limit, query.skip)
        except Exception as exc:
            self._fail(exc, errors.not_found(self.resource), "find_all")

        if not rows:
            raise errors.NotFoundError(errors.not_found(self.resource))
        logger.debug("%s page loaded: %d of %d", self.resource, len(rows), total)
        return Page[self.entity](
            edges=[self._to_entity(r) for r in rows],
            page_info=PageInfo.build(total, query.limit, query.skip),
        )

    async def count(self, where: Any = None) -> int:
        """Number of records matching ``where`` (pagination fields are ignored)."""
        try:
            filter_ = validate(self.filter_schema, where, self.resource)
            query = Query.from_filter(filter_, settings.DEFAULT_LIMIT)
            return await self.db.count(self.model, query.where)
        except Exception as exc:
            self._fail(exc, errors.not_found(self.resource), "count")

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    async def delete(self, where: Any) -> MutationResult[EntityT]:
        """Delete the record identified by ``where.id``."""
        logger.info("%s delete request: %s", self.resource, where)
        modified = 0
        try:
            filter_ = validate(self.filter_schema, where, self.resource)
            if filter_.id is not None:
                rows, modified = await self.db.delete(self.model, {"id": filter_.id})
        except Exception as exc:
            self._fail(exc, errors.unable_to_delete(self.resource), "delete")

        if modified > 0:
            logger.debug("%s deleted: %d row(s)", self.resource, modified)
            await self._after_write()
            return MutationResult[self.entity](
                modified=modified, edges=[self._to_entity(r) for r in rows]
            )
        raise errors.NotFoundError(errors.not_found(self.resource))

    async def _after_write(self) -> None:
        """Hook run after every successful write."""
