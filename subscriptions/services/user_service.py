"""
User service — CRUD operations for the User resource.

``email`` is the unique key. Raw passwords are accepted on create and
update, hashed immediately with Argon2id, and never stored, logged or
returned.
"""
import logging
from typing import Any

from subscriptions import errors
from subscriptions.models import User
from subscriptions.schemas import MutationResult, UserEntity
from subscriptions.services.base import ResourceService
from subscriptions.validators import UserCreate, UserFilter, UserUpdate, validate, validate_all

logger = logging.getLogger(__name__)


class UserService(ResourceService[User, UserEntity]):
    model = User
    entity = UserEntity
    filter_schema = UserFilter
    resource = "User"

    async def create(self, payload: Any) -> UserEntity:
        """
        Create a User and return it with its assigned id.

        Raises ValidationError for bad input, ConflictError when the email is
        already registered and BadRequestError if the insert yields no id.
        """
        result = None
        try:
            data = validate(UserCreate, payload, self.resource)
            await self._ensure_unique("email", data.email)

            fields = data.model_dump(exclude={"raw_password"})
            fields["hashed_password"] = User.generate_hashed_password(data.raw_password)
            result = await self.db.create(User(**fields))
            logger.debug("User added: %s", result.id)
        except Exception as exc:
            self._fail(exc, errors.duplicate(self.resource), "create")

        if result is not None and result.id:
            return self._to_entity(result)
        raise errors.BadRequestError(errors.unable_to_save(self.resource))

    async def update(self, payload: Any, where: Any) -> MutationResult[UserEntity]:
        """
        Patch the User identified by ``where.id``.

        A new email is checked against every other user; a new raw password
        is re-hashed.
        """
        modified = 0
        try:
            patch, filter_ = validate_all(
                [(UserUpdate, payload), (UserFilter, where)], self.resource
            )
            user_id = self._target_id(filter_)

            changes = self._changes(patch)
            if "email" in changes:
                await self._ensure_unique("email", changes["email"], exclude_id=user_id)
            raw_password = changes.pop("raw_password", None)
            if raw_password is not None:
                changes["hashed_password"] = User.generate_hashed_password(raw_password)

            rows, modified = await self.db.update(User, changes, {"id": user_id})
            logger.debug("User updated: %s", user_id)
        except Exception as exc:
            self._fail(exc, errors.duplicate(self.resource), "update")

        if modified > 0:
            return MutationResult[UserEntity](
                modified=modified, edges=[self._to_entity(r) for r in rows]
            )
        raise errors.NotFoundError(errors.not_found(self.resource))

    async def authenticate(self, email: str, raw_password: str) -> UserEntity:
        """
        Return the User owning *email* if *raw_password* matches its hash.

        Unknown emails and wrong passwords raise the same NotFoundError so
        callers cannot tell which one failed. A hash made with older Argon2
        parameters is replaced on successful login.
        """
        row = await self.db.find_one(User, {"email": email.strip()})
        if row is None or not User.verify_password(row.hashed_password, raw_password):
            logger.info("User authentication failed")
            raise errors.NotFoundError(errors.not_found(self.resource))

        if User.password_needs_rehash(row.hashed_password):
            rows, _ = await self.db.update(
                User,
                {"hashed_password": User.generate_hashed_password(raw_password)},
                {"id": row.id},
            )
            row = rows[0]
            logger.debug("User password rehashed: %s", row.id)
        return self._to_entity(row)
