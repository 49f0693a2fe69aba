"""API package wiring for FridgeShare backend."""

from flask import Flask

from .auth import attach_caller_identity, bp as auth_bp
from .errors import register_error_handlers
from .fridges import bp as fridges_bp
from .users import bp as users_bp


def init_app(app: Flask) -> None:
    """Register all API blueprints on the given application."""

    app.before_request(attach_caller_identity)

    app.register_blueprint(auth_bp)
    app.register_blueprint(fridges_bp)
    app.register_blueprint(users_bp)

    register_error_handlers(app)
