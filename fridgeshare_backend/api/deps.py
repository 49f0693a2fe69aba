"""Shared API dependencies and helpers."""

from flask import current_app, g
from sqlalchemy.orm import Session, sessionmaker

from fridgeshare_backend.services.fridges import FridgeSettings


def get_sessionmaker() -> sessionmaker:
    """Return the configured SQLAlchemy session factory."""

    session_factory: sessionmaker | None = current_app.extensions.get(
        "db_sessionmaker"
    )
    if session_factory is None:
        raise RuntimeError("database session factory is not configured")
    return session_factory


def get_db_session() -> Session:
    """Return a database session scoped to the current request context."""

    return get_sessionmaker()()


def get_fridge_settings() -> FridgeSettings:
    """Return the fridge workflow settings built by the app factory."""

    settings: FridgeSettings | None = current_app.extensions.get(
        "fridge_settings"
    )
    if settings is None:
        settings = FridgeSettings.from_mapping(current_app.config)
        current_app.extensions["fridge_settings"] = settings
    return settings


def get_current_user_id() -> str:
    """Return the caller identity attached by the auth middleware."""

    user_id = getattr(g, "user_id", None)
    if user_id is None:
        raise RuntimeError("no authenticated user on request context")
    return user_id
