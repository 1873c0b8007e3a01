from __future__ import annotations

import enum
import uuid
from datetime import date, datetime, timezone
from typing import Optional

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from sqlalchemy import Boolean, Date, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from subscriptions.config import settings
from subscriptions.database import Base

# Argon2id with a fresh random salt per hash; the salt and parameters are
# embedded in the encoded hash string.
_password_hasher = PasswordHasher(
    time_cost=settings.ARGON2_TIME_COST,
    memory_cost=settings.ARGON2_MEMORY_COST,
    parallelism=settings.ARGON2_PARALLELISM,
)


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    USER = "user"


class BillingInterval(str, enum.Enum):
    MONTH = "month"
    YEAR = "year"


# ---------------------------------------------------------------------------
# User
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    date_of_birth: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    role: Mapped[str] = mapped_column(String(20), default=UserRole.USER.value, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False, index=True
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=_utcnow, nullable=True
    )

    @staticmethod
    def generate_hashed_password(raw_password: str) -> str:
        """Return an Argon2id hash of *raw_password*."""
        return _password_hasher.hash(raw_password)

    @staticmethod
    def verify_password(hashed_password: str, candidate: str) -> bool:
        """
        Check *candidate* against *hashed_password* in constant time.

        Mismatches and malformed hashes both return False.
        """
        try:
            return _password_hasher.verify(hashed_password, candidate)
        except (VerificationError, InvalidHashError):
            return False

    @staticmethod
    def password_needs_rehash(hashed_password: str) -> bool:
        """True when the hash was produced with weaker parameters than the current ones."""
        return _password_hasher.check_needs_rehash(hashed_password)


# ---------------------------------------------------------------------------
# Subscription plan
# ---------------------------------------------------------------------------
class SubscriptionPlan(Base):
    __tablename__ = "subscription_plans"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    slug: Mapped[str] = mapped_column(String(60), unique=True, nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    # Minor currency units (cents) to keep arithmetic exact.
    price_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="USD", nullable=False)
    interval: Mapped[str] = mapped_column(
        String(10), default=BillingInterval.MONTH.value, nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False, index=True
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=_utcnow, nullable=True
    )
