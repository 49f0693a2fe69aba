"""Fridge membership endpoints: create, join, leave and read."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from fridgeshare_backend.api.deps import (
    get_current_user_id,
    get_db_session,
    get_fridge_settings,
)
from fridgeshare_backend.api.errors import (
    error_response,
    fridge_error_response,
    validation_error,
)
from fridgeshare_backend.models import Fridge
from fridgeshare_backend.services.fridges import (
    FridgeError,
    create_fridge,
    get_my_fridge,
    get_my_fridge_members,
    join_by_invite_code,
    leave_current_fridge,
)
from fridgeshare_backend.services.pagination import paginate, parse_page_limit

bp = Blueprint("fridges", __name__, url_prefix="/fridges")

MAX_FRIDGE_NAME_LENGTH = 255


def _serialize_fridge(fridge: Fridge) -> dict[str, object]:
    return {
        "id": str(fridge.id),
        "name": fridge.name,
        "inviteCode": fridge.invite_code,
        "members": [
            {
                "userId": str(member.user_id),
                "joinedAt": member.joined_at.isoformat()
                if member.joined_at
                else None,
            }
            for member in fridge.members
        ],
        "createdAt": fridge.created_at.isoformat()
        if fridge.created_at
        else None,
        "updatedAt": fridge.updated_at.isoformat()
        if fridge.updated_at
        else None,
    }


def _required_string(payload: dict, field: str, max_length: int) -> str | None:
    value = payload.get(field)
    if not isinstance(value, str):
        return None
    value = value.strip()
    if not value or len(value) > max_length:
        return None
    return value


@bp.post("")
def create():
    """Create a fridge owned by the caller and return its invite code."""

    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return validation_error({"body": "must be a JSON object"})
    name = _required_string(payload, "name", MAX_FRIDGE_NAME_LENGTH)
    if name is None:
        return validation_error(
            {"name": f"must be 1-{MAX_FRIDGE_NAME_LENGTH} characters"}
        )

    try:
        session = get_db_session()
    except RuntimeError as exc:
        return error_response(str(exc), "DATABASE_NOT_CONFIGURED", 503)

    user_id = get_current_user_id()
    try:
        fridge = create_fridge(
            session,
            user_id=user_id,
            name=name,
            settings=get_fridge_settings(),
        )
        body = {"fridgeId": str(fridge.id), "inviteCode": fridge.invite_code}
    except FridgeError as exc:
        return fridge_error_response(exc)
    except SQLAlchemyError:
        current_app.logger.exception("failed to create fridge")
        return error_response("failed to create fridge", "DATABASE_ERROR", 500)
    finally:
        session.close()

    current_app.logger.info(
        "fridge created",
        extra={"user_id": user_id, "fridge_id": body["fridgeId"]},
    )
    return jsonify(body), 201


@bp.post("/join")
def join():
    """Join the fridge identified by an invite code."""

    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return validation_error({"body": "must be a JSON object"})
    invite_code = _required_string(payload, "inviteCode", 64)
    if invite_code is None:
        return validation_error({"inviteCode": "required"})

    try:
        session = get_db_session()
    except RuntimeError as exc:
        return error_response(str(exc), "DATABASE_NOT_CONFIGURED", 503)

    user_id = get_current_user_id()
    try:
        fridge = join_by_invite_code(
            session,
            user_id=user_id,
            code=invite_code,
            settings=get_fridge_settings(),
        )
        fridge_id = str(fridge.id)
    except FridgeError as exc:
        return fridge_error_response(exc)
    except SQLAlchemyError:
        current_app.logger.exception("failed to join fridge")
        return error_response("failed to join fridge", "DATABASE_ERROR", 500)
    finally:
        session.close()

    current_app.logger.info(
        "fridge joined", extra={"user_id": user_id, "fridge_id": fridge_id}
    )
    return jsonify(fridgeId=fridge_id)


@bp.post("/leave")
def leave():
    """Leave the caller's active fridge."""

    try:
        session = get_db_session()
    except RuntimeError as exc:
        return error_response(str(exc), "DATABASE_NOT_CONFIGURED", 503)

    user_id = get_current_user_id()
    try:
        leave_current_fridge(session, user_id=user_id)
    except FridgeError as exc:
        return fridge_error_response(exc)
    except SQLAlchemyError:
        current_app.logger.exception("failed to leave fridge")
        return error_response("failed to leave fridge", "DATABASE_ERROR", 500)
    finally:
        session.close()

    current_app.logger.info("fridge left", extra={"user_id": user_id})
    return jsonify(ok=True)


@bp.get("/me")
def me():
    """Return the caller's active fridge."""

    try:
        session = get_db_session()
    except RuntimeError as exc:
        return error_response(str(exc), "DATABASE_NOT_CONFIGURED", 503)

    try:
        fridge = get_my_fridge(session, user_id=get_current_user_id())
        body = _serialize_fridge(fridge)
    except FridgeError as exc:
        return fridge_error_response(exc)
    except SQLAlchemyError:
        current_app.logger.exception("failed to load fridge")
        return error_response("failed to load fridge", "DATABASE_ERROR", 500)
    finally:
        session.close()

    return jsonify(body)


@bp.get("/me/members")
def members():
    """Return one page of member profiles in join order."""

    params = parse_page_limit(request.args)

    try:
        session = get_db_session()
    except RuntimeError as exc:
        return error_response(str(exc), "DATABASE_NOT_CONFIGURED", 503)

    try:
        profiles = get_my_fridge_members(session, user_id=get_current_user_id())
    except FridgeError as exc:
        return fridge_error_response(exc)
    except SQLAlchemyError:
        current_app.logger.exception("failed to load fridge members")
        return error_response(
            "failed to load fridge members", "DATABASE_ERROR", 500
        )
    finally:
        session.close()

    return jsonify(
        items=paginate(profiles, params),
        total=len(profiles),
        page=params.page,
        limit=params.limit,
    )
