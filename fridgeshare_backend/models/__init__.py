"""SQLAlchemy models for FridgeShare."""

from __future__ import annotations

import os
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Literal, Optional

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class that configures UUID primary keys by default."""

    type_annotation_map = {
        uuid.UUID: Uuid(as_uuid=True),
    }


class TimestampMixin:
    """Mixin that provides creation and update timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class DietPreference(str, Enum):
    """Diet preferences a user can declare on their profile."""

    NONE = "NONE"
    VEGETARIAN = "VEGETARIAN"
    VEGAN = "VEGAN"
    PESCATARIAN = "PESCATARIAN"

    @classmethod
    def values(cls) -> set[str]:
        return {entry.value for entry in cls}


class User(TimestampMixin, Base):
    """A FridgeShare user; belongs to at most one fridge at a time."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    firebase_uid: Mapped[Optional[str]] = mapped_column(
        String(128), unique=True
    )
    email: Mapped[Optional[str]] = mapped_column(String(255))
    password_hash: Mapped[Optional[str]] = mapped_column(String(255))
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    photo_url: Mapped[Optional[str]] = mapped_column(String(1024))
    user_name: Mapped[Optional[str]] = mapped_column(String(64), unique=True)
    role: Mapped[Literal["user", "admin"]] = mapped_column(
        String(16), nullable=False, default=UserRole.USER.value
    )
    age: Mapped[Optional[int]] = mapped_column(Integer)
    address_country: Mapped[Optional[str]] = mapped_column(String(120))
    address_city: Mapped[Optional[str]] = mapped_column(String(120))
    address_full: Mapped[Optional[str]] = mapped_column(String(512))
    address_lat: Mapped[Optional[float]] = mapped_column(Float)
    address_lng: Mapped[Optional[float]] = mapped_column(Float)
    allergies: Mapped[list[str]] = mapped_column(
        JSON, nullable=False, default=list
    )
    diet_preference: Mapped[str] = mapped_column(
        String(16), nullable=False, default=DietPreference.NONE.value
    )
    active_fridge_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("fridges.id", ondelete="SET NULL")
    )
    last_login_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True)
    )

    __table_args__ = (
        Index("uq_users_email_lower", func.lower(email), unique=True),
        Index("ix_users_address_city", "address_city"),
        CheckConstraint("role in ('user','admin')", name="ck_users_role"),
        CheckConstraint(
            "diet_preference in ('NONE','VEGETARIAN','VEGAN','PESCATARIAN')",
            name="ck_users_diet_preference",
        ),
        CheckConstraint("age is null or age >= 0", name="ck_users_age"),
    )

    active_fridge: Mapped[Optional["Fridge"]] = relationship(
        foreign_keys=[active_fridge_id]
    )


class Fridge(TimestampMixin, Base):
    """A named household group joined through its invite code."""

    __tablename__ = "fridges"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    invite_code: Mapped[str] = mapped_column(
        String(32), unique=True, nullable=False
    )

    members: Mapped[list["FridgeMember"]] = relationship(
        back_populates="fridge",
        cascade="all, delete-orphan",
        order_by="FridgeMember.id",
    )


class FridgeMember(Base):
    """Membership entry; the surrogate id records join order."""

    __tablename__ = "fridge_members"
    __table_args__ = (
        UniqueConstraint("fridge_id", "user_id", name="uq_fridge_member"),
        Index("ix_fridge_members_user_id", "user_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    fridge_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("fridges.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    fridge: Mapped[Fridge] = relationship(back_populates="members")
    user: Mapped[User] = relationship()


def get_database_url() -> str:
    """Return the configured DATABASE_URL."""

    database_url = os.environ.get("DATABASE_URL")
    if not database_url:
        raise RuntimeError("DATABASE_URL environment variable is not set")
    return normalize_database_url(database_url)


def normalize_database_url(database_url: str) -> str:
    """Point common Postgres URL forms at the installed psycopg v3 driver."""

    if database_url.startswith("postgres://"):
        return "postgresql+psycopg://" + database_url[len("postgres://") :]
    if database_url.startswith("postgresql://"):
        return "postgresql+psycopg://" + database_url[len("postgresql://") :]
    if database_url.startswith("postgresql+psycopg2://"):
        return (
            "postgresql+psycopg://"
            + database_url[len("postgresql+psycopg2://") :]
        )

    return database_url
