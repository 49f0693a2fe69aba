"""User lookup, registration and profile helpers."""

from __future__ import annotations

import uuid
from typing import Any, Mapping

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from fridgeshare_backend.models import DietPreference, User

MAX_ALLERGIES = 50


class ProfileValidationError(ValueError):
    """Raised when a profile update carries an invalid field."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


def parse_user_id(value: object) -> uuid.UUID | None:
    """Return the UUID for an opaque caller identity, or ``None``."""

    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value).strip())
    except (TypeError, ValueError):
        return None


def normalize_email(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    value = value.strip().lower()
    return value or None


def get_user(session: Session, user_id: object) -> User | None:
    user_uuid = parse_user_id(user_id)
    if user_uuid is None:
        return None
    return session.get(User, user_uuid)


def get_user_by_email(session: Session, email: str) -> User | None:
    normalized = normalize_email(email)
    if normalized is None:
        return None
    return session.scalar(
        select(User).where(func.lower(User.email) == normalized)
    )


def create_user(
    session: Session,
    *,
    display_name: str,
    email: str | None = None,
    password_hash: str | None = None,
    firebase_uid: str | None = None,
    photo_url: str | None = None,
) -> User:
    """Add a new user to the session and flush so it has an id."""

    user = User(
        display_name=display_name.strip(),
        email=normalize_email(email),
        password_hash=password_hash,
        firebase_uid=firebase_uid,
        photo_url=photo_url,
        allergies=[],
    )
    session.add(user)
    session.flush()
    return user


def list_users(
    session: Session, *, offset: int, limit: int
) -> tuple[list[User], int]:
    """Return one page of users ordered by creation time, plus the total."""

    total = session.scalar(select(func.count()).select_from(User)) or 0
    users = (
        session.execute(
            select(User)
            .order_by(User.created_at, User.id)
            .offset(offset)
            .limit(limit)
        )
        .scalars()
        .all()
    )
    return list(users), total


def _optional_string(field: str, value: Any, max_length: int) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ProfileValidationError(field, "must be a string")
    value = value.strip()
    if len(value) > max_length:
        raise ProfileValidationError(
            field, f"must be at most {max_length} characters"
        )
    return value or None


def _optional_number(field: str, value: Any) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ProfileValidationError(field, "must be a number")
    return float(value)


def update_profile(user: User, changes: Mapping[str, Any]) -> User:
    """Apply the supported profile fields present in ``changes``.

    Unknown keys are ignored. ``activeFridgeId`` is never writable here; it
    only changes through the fridge membership workflow.
    """

    if "displayName" in changes:
        display_name = _optional_string(
            "displayName", changes["displayName"], 255
        )
        if not display_name:
            raise ProfileValidationError("displayName", "must not be empty")
        user.display_name = display_name

    if "photoUrl" in changes:
        user.photo_url = _optional_string("photoUrl", changes["photoUrl"], 1024)

    if "userName" in changes:
        user_name = _optional_string("userName", changes["userName"], 64)
        user.user_name = user_name.lower() if user_name else None

    if "age" in changes:
        age = changes["age"]
        if age is not None and (
            isinstance(age, bool) or not isinstance(age, int) or age < 0
        ):
            raise ProfileValidationError("age", "must be a non-negative integer")
        user.age = age

    if "address" in changes:
        address = changes["address"] or {}
        if not isinstance(address, Mapping):
            raise ProfileValidationError("address", "must be an object")
        user.address_country = _optional_string(
            "address.country", address.get("country"), 120
        )
        user.address_city = _optional_string(
            "address.city", address.get("city"), 120
        )
        user.address_full = _optional_string(
            "address.fullAddress", address.get("fullAddress"), 512
        )
        user.address_lat = _optional_number("address.lat", address.get("lat"))
        user.address_lng = _optional_number("address.lng", address.get("lng"))

    if "allergies" in changes:
        allergies = changes["allergies"] or []
        if not isinstance(allergies, list) or not all(
            isinstance(entry, str) for entry in allergies
        ):
            raise ProfileValidationError(
                "allergies", "must be a list of strings"
            )
        if len(allergies) > MAX_ALLERGIES:
            raise ProfileValidationError(
                "allergies", f"must have at most {MAX_ALLERGIES} entries"
            )
        user.allergies = [entry.strip() for entry in allergies if entry.strip()]

    if "dietPreference" in changes:
        diet = changes["dietPreference"]
        if diet not in DietPreference.values():
            raise ProfileValidationError(
                "dietPreference",
                "must be one of " + ", ".join(sorted(DietPreference.values())),
            )
        user.diet_preference = diet

    return user


def serialize_user(user: User) -> dict[str, Any]:
    last_login = (
        user.last_login_at.isoformat() if user.last_login_at else None
    )
    address = {
        "country": user.address_country,
        "city": user.address_city,
        "fullAddress": user.address_full,
        "lat": user.address_lat,
        "lng": user.address_lng,
    }
    return {
        "id": str(user.id),
        "email": user.email,
        "displayName": user.display_name,
        "photoUrl": user.photo_url,
        "userName": user.user_name,
        "role": user.role,
        "age": user.age,
        "address": address if any(v is not None for v in address.values()) else None,
        "allergies": list(user.allergies or []),
        "dietPreference": user.diet_preference,
        "activeFridgeId": (
            str(user.active_fridge_id) if user.active_fridge_id else None
        ),
        "lastLoginAt": last_login,
    }
