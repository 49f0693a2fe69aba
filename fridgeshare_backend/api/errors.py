"""JSON error responses and the application-wide error boundary."""

from __future__ import annotations

from typing import Any

from flask import Flask, current_app, jsonify
from werkzeug.exceptions import HTTPException

from fridgeshare_backend.services.fridges import FridgeError


def error_response(message: str, code: str, status: int, **extra: Any):
    """Build the ``{error, code}`` body shared by every failing endpoint."""

    return jsonify(error=message, code=code, **extra), status


def validation_error(details: dict[str, str]):
    return error_response(
        "invalid request body", "VALIDATION_ERROR", 400, details=details
    )


def fridge_error_response(exc: FridgeError):
    return error_response(exc.message, exc.code, exc.status)


def register_error_handlers(app: Flask) -> None:
    """Convert anything that escapes a view into a JSON error."""

    @app.errorhandler(FridgeError)
    def handle_fridge_error(exc: FridgeError):
        return fridge_error_response(exc)

    @app.errorhandler(HTTPException)
    def handle_http_exception(exc: HTTPException):
        code = (exc.name or "error").upper().replace(" ", "_")
        return error_response(exc.description or exc.name, code, exc.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        current_app.logger.exception("unhandled error during request")
        return error_response("internal server error", "INTERNAL_ERROR", 500)
