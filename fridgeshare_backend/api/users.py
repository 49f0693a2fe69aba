"""User profile endpoints."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from fridgeshare_backend.api.deps import get_current_user_id, get_db_session
from fridgeshare_backend.api.errors import error_response, validation_error
from fridgeshare_backend.services.pagination import parse_page_limit
from fridgeshare_backend.services.users import (
    ProfileValidationError,
    get_user,
    list_users,
    parse_user_id,
    serialize_user,
    update_profile,
)

bp = Blueprint("users", __name__, url_prefix="/users")


@bp.get("")
def list_all():
    params = parse_page_limit(request.args)

    try:
        session = get_db_session()
    except RuntimeError as exc:
        return error_response(str(exc), "DATABASE_NOT_CONFIGURED", 503)

    try:
        users, total = list_users(
            session, offset=params.offset, limit=params.limit
        )
        items = [serialize_user(user) for user in users]
    except SQLAlchemyError:
        current_app.logger.exception("failed to list users")
        return error_response("failed to list users", "DATABASE_ERROR", 500)
    finally:
        session.close()

    return jsonify(items=items, total=total, page=params.page, limit=params.limit)


@bp.get("/<user_id>")
def get_one(user_id: str):
    try:
        session = get_db_session()
    except RuntimeError as exc:
        return error_response(str(exc), "DATABASE_NOT_CONFIGURED", 503)

    try:
        user = get_user(session, user_id)
        body = serialize_user(user) if user else None
    except SQLAlchemyError:
        current_app.logger.exception("failed to load user")
        return error_response("failed to load user", "DATABASE_ERROR", 500)
    finally:
        session.close()

    if body is None:
        return error_response("User not found", "USER_NOT_FOUND", 404)
    return jsonify(user=body)


@bp.put("/<user_id>")
def update(user_id: str):
    """Update the caller's own profile fields."""

    target_id = parse_user_id(user_id)
    if target_id is None:
        return error_response("User not found", "USER_NOT_FOUND", 404)
    if parse_user_id(get_current_user_id()) != target_id:
        return error_response(
            "cannot update another user's profile", "FORBIDDEN", 403
        )

    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return validation_error({"body": "must be a JSON object"})

    try:
        session = get_db_session()
    except RuntimeError as exc:
        return error_response(str(exc), "DATABASE_NOT_CONFIGURED", 503)

    try:
        user = get_user(session, target_id)
        if user is None:
            return error_response("User not found", "USER_NOT_FOUND", 404)
        update_profile(user, payload)
        session.commit()
        body = serialize_user(user)
    except ProfileValidationError as exc:
        session.rollback()
        return validation_error({exc.field: exc.message})
    except IntegrityError:
        session.rollback()
        return error_response("userName is already taken", "USER_NAME_TAKEN", 409)
    except SQLAlchemyError:
        session.rollback()
        current_app.logger.exception("failed to update profile")
        return error_response("failed to update profile", "DATABASE_ERROR", 500)
    finally:
        session.close()

    return jsonify(user=body)
