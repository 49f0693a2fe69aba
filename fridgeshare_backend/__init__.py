import logging
import os
from datetime import datetime, timezone
from typing import Any, Mapping

from flask import Flask, jsonify
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from fridgeshare_backend.api import init_app as init_api
from fridgeshare_backend.config import (
    DEFAULT_AUTH_MODE,
    DEFAULT_INVITE_CODE_LENGTH,
    DEFAULT_INVITE_CODE_MAX_ATTEMPTS,
    DEFAULT_SWITCH_POLICY,
)
from fridgeshare_backend.models import get_database_url, normalize_database_url
from fridgeshare_backend.services.fridges import FridgeSettings


def create_app(config: Mapping[str, Any] | None = None) -> Flask:
    """Application factory for the FridgeShare backend.

    Settings come from the environment; ``config`` overrides them, which is
    how tests point the app at a throwaway database.
    """
    app = Flask(__name__)

    app.config["AUTH_MODE"] = os.environ.get(
        "FRIDGESHARE_AUTH_MODE", DEFAULT_AUTH_MODE
    )
    app.config["AUTH_SECRET"] = os.environ.get("FRIDGESHARE_AUTH_SECRET")
    app.config["INVITE_CODE_LENGTH"] = int(
        os.environ.get(
            "FRIDGESHARE_INVITE_CODE_LENGTH", DEFAULT_INVITE_CODE_LENGTH
        )
    )
    app.config["INVITE_CODE_MAX_ATTEMPTS"] = int(
        os.environ.get(
            "FRIDGESHARE_INVITE_CODE_MAX_ATTEMPTS",
            DEFAULT_INVITE_CODE_MAX_ATTEMPTS,
        )
    )
    app.config["FRIDGE_SWITCH_POLICY"] = os.environ.get(
        "FRIDGESHARE_SWITCH_POLICY", DEFAULT_SWITCH_POLICY
    )
    if config:
        app.config.update(config)

    _configure_logging(app)
    _init_database(app)
    app.extensions["fridge_settings"] = FridgeSettings.from_mapping(app.config)

    @app.get("/health")
    def healthcheck():
        return jsonify(
            status="ok", timestamp=datetime.now(timezone.utc).isoformat()
        )

    init_api(app)

    return app


def _configure_logging(app: Flask) -> None:
    """Ensure application and root loggers emit INFO-level logs."""

    logging.basicConfig(level=logging.INFO)
    logging.getLogger().setLevel(logging.INFO)
    app.logger.setLevel(logging.INFO)


def _init_database(app: Flask) -> None:
    """Configure the SQLAlchemy session factory for request handlers."""

    database_url = app.config.get("DATABASE_URL")
    if database_url:
        database_url = normalize_database_url(database_url)
    else:
        try:
            database_url = get_database_url()
        except RuntimeError:
            app.logger.warning(
                "DATABASE_URL not set; database-backed features disabled"
            )
            return

    engine = create_engine(database_url, pool_pre_ping=True)
    SessionLocal = sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
    )
    app.extensions["db_engine"] = engine
    app.extensions["db_sessionmaker"] = SessionLocal


def close_database(app: Flask) -> None:
    """Dispose of the engine's connection pool; safe to call twice."""

    engine = app.extensions.pop("db_engine", None)
    app.extensions.pop("db_sessionmaker", None)
    if engine is not None:
        engine.dispose()
        app.logger.info("database engine disposed")


app = create_app()

