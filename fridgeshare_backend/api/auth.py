"""Caller identity resolution and the register/login endpoints."""

from __future__ import annotations

from datetime import datetime, timezone

import jwt
from flask import Blueprint, current_app, g, jsonify, request
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from werkzeug.security import check_password_hash, generate_password_hash

from fridgeshare_backend.api.deps import get_current_user_id, get_sessionmaker
from fridgeshare_backend.api.errors import error_response, validation_error
from fridgeshare_backend.config import USER_ID_HEADER
from fridgeshare_backend.services.auth_tokens import (
    AuthSettings,
    decode_token,
    issue_access_token,
)
from fridgeshare_backend.services.users import (
    create_user,
    get_user,
    get_user_by_email,
    normalize_email,
    serialize_user,
)

_PROTECTED_PATH_PREFIXES = ("/fridges", "/users")
_PROTECTED_PATHS = {"/auth/me"}
_BEARER_PREFIX = "bearer "
bp = Blueprint("auth", __name__, url_prefix="/auth")


def attach_caller_identity():
    """Resolve the caller identity for protected paths and attach it to ``g``.

    Only the opaque id is resolved here; whether it names an existing user is
    decided by the services that consume it.
    """

    path = request.path or ""
    if not _should_enforce_auth(path):
        return None

    try:
        settings = AuthSettings.load()
    except RuntimeError as exc:
        return error_response(str(exc), "AUTH_NOT_CONFIGURED", 503)

    if settings.mode == "header":
        user_id = (request.headers.get(USER_ID_HEADER) or "").strip()
    else:
        user_id = _user_id_from_bearer_token(settings)

    if not user_id:
        return _unauthorized()

    g.user_id = user_id
    return None


def _should_enforce_auth(path: str) -> bool:
    if path in _PROTECTED_PATHS:
        return True
    return any(
        path == prefix or path.startswith(prefix + "/")
        for prefix in _PROTECTED_PATH_PREFIXES
    )


def _user_id_from_bearer_token(settings: AuthSettings) -> str | None:
    header = request.headers.get("Authorization") or ""
    if not header.lower().startswith(_BEARER_PREFIX):
        return None
    token = header[len(_BEARER_PREFIX) :].strip()
    if not token:
        return None

    try:
        payload = decode_token(token, settings=settings)
    except jwt.ExpiredSignatureError:
        current_app.logger.info("rejected expired bearer token")
        return None
    except (jwt.InvalidTokenError, ValueError) as exc:
        current_app.logger.warning("invalid bearer token: %s", exc)
        return None

    return payload["userId"].strip()


def _unauthorized():
    return error_response("Unauthorized", "UNAUTHORIZED", 401)


@bp.post("/register")
def register():
    """Create a local user and issue a bearer token."""

    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return validation_error({"body": "must be a JSON object"})
    email = normalize_email(payload.get("email"))
    password = payload.get("password")
    display_name = payload.get("displayName")

    details = {}
    if not email:
        details["email"] = "required"
    if not isinstance(password, str) or not password:
        details["password"] = "required"
    if not isinstance(display_name, str) or not display_name.strip():
        details["displayName"] = "required"
    if details:
        return validation_error(details)

    try:
        settings = AuthSettings.load()
    except RuntimeError as exc:
        return error_response(str(exc), "AUTH_NOT_CONFIGURED", 503)

    try:
        session_factory = get_sessionmaker()
    except RuntimeError as exc:
        return error_response(str(exc), "DATABASE_NOT_CONFIGURED", 503)

    try:
        with session_factory() as session:
            if get_user_by_email(session, email):
                return error_response(
                    "User already exists", "USER_EXISTS", 409
                )
            user = create_user(
                session,
                email=email,
                display_name=display_name,
                password_hash=generate_password_hash(password),
            )
            session.commit()
            session.refresh(user)
            body = serialize_user(user)
    except IntegrityError:
        return error_response("User already exists", "USER_EXISTS", 409)
    except SQLAlchemyError:
        current_app.logger.exception("failed to create user")
        return error_response(
            "database failure while creating user", "DATABASE_ERROR", 500
        )

    response = _token_response(body, settings)
    current_app.logger.info("registered user", extra={"user_id": body["id"]})
    return response, 201


@bp.post("/login")
def login():
    """Authenticate a user and record the login timestamp."""

    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return validation_error({"body": "must be a JSON object"})
    email = normalize_email(payload.get("email"))
    password = payload.get("password")

    if not email or not isinstance(password, str) or not password:
        return validation_error({"email": "required", "password": "required"})

    try:
        settings = AuthSettings.load()
        session_factory = get_sessionmaker()
    except RuntimeError as exc:
        return error_response(str(exc), "NOT_CONFIGURED", 503)

    try:
        with session_factory() as session:
            user = get_user_by_email(session, email)
            if (
                not user
                or not user.password_hash
                or not check_password_hash(user.password_hash, password)
            ):
                return error_response(
                    "invalid credentials", "INVALID_CREDENTIALS", 401
                )

            user.last_login_at = datetime.now(timezone.utc)
            session.commit()
            body = serialize_user(user)
    except SQLAlchemyError:
        current_app.logger.exception("failed to authenticate user")
        return error_response(
            "database failure during login", "DATABASE_ERROR", 500
        )

    return _token_response(body, settings)


@bp.get("/me")
def get_me():
    """Return the caller's profile."""

    try:
        session_factory = get_sessionmaker()
    except RuntimeError as exc:
        return error_response(str(exc), "DATABASE_NOT_CONFIGURED", 503)

    try:
        with session_factory() as session:
            user = get_user(session, get_current_user_id())
            if user is None:
                return error_response("User not found", "USER_NOT_FOUND", 404)
            body = serialize_user(user)
    except SQLAlchemyError:
        current_app.logger.exception("failed to load user for request")
        return error_response("failed to load user", "DATABASE_ERROR", 500)

    return jsonify(user=body)


def _token_response(user_body: dict, settings: AuthSettings):
    if not settings.secret:
        # Header mode without a secret has nothing to sign with.
        return jsonify(user=user_body, accessToken=None)
    token = issue_access_token(user_body["id"], settings=settings)
    return jsonify(
        user=user_body,
        accessToken=token.token,
        expiresAt=token.expires_at.isoformat(),
    )
