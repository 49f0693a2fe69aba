"""Fridge membership workflow: create, join by invite code, leave, query.

A user's membership is stored twice: ``User.active_fridge_id`` and a
``FridgeMember`` row. Every mutation here writes both sides and commits them
in a single transaction, rolling back on any failure.
"""

from __future__ import annotations

import logging
import secrets
import uuid
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Mapping, TypedDict

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from fridgeshare_backend.config import (
    DEFAULT_INVITE_CODE_LENGTH,
    DEFAULT_INVITE_CODE_MAX_ATTEMPTS,
    DEFAULT_SWITCH_POLICY,
    INVITE_CODE_ALPHABET,
    SWITCH_POLICIES,
)
from fridgeshare_backend.models import Fridge, FridgeMember, User, utcnow
from fridgeshare_backend.services.users import get_user

logger = logging.getLogger(__name__)


class FridgeError(RuntimeError):
    """Base class for membership workflow failures."""

    status = 400
    code = "FRIDGE_ERROR"
    default_message = "fridge operation failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class UserNotFoundError(FridgeError):
    status = 404
    code = "USER_NOT_FOUND"
    default_message = "User not found"


class InviteNotFoundError(FridgeError):
    status = 404
    code = "INVITE_NOT_FOUND"
    default_message = "Invalid invite code"


class FridgeNotFoundError(FridgeError):
    status = 404
    code = "FRIDGE_NOT_FOUND"
    default_message = "Fridge not found"


class NoActiveFridgeError(FridgeError):
    """The caller is not in any fridge.

    Leaving reports this as a bad request; reads report it as not found.
    """

    code = "NO_ACTIVE_FRIDGE"
    default_message = "User is not in a fridge"

    def __init__(self, message: str | None = None, *, status: int = 400):
        super().__init__(message)
        self.status = status


class AlreadyInFridgeError(FridgeError):
    status = 409
    code = "ALREADY_IN_FRIDGE"
    default_message = "User already in this fridge"


class AlreadyInAnotherFridgeError(FridgeError):
    status = 409
    code = "ALREADY_IN_ANOTHER_FRIDGE"
    default_message = "User must leave their current fridge first"


class InviteCodeExhaustedError(FridgeError):
    status = 503
    code = "INVITE_CODE_EXHAUSTED"
    default_message = "Could not allocate a unique invite code"


@dataclass(frozen=True)
class FridgeSettings:
    """Tunables for invite codes and the fridge switch policy."""

    invite_code_length: int = DEFAULT_INVITE_CODE_LENGTH
    invite_code_max_attempts: int = DEFAULT_INVITE_CODE_MAX_ATTEMPTS
    switch_policy: str = DEFAULT_SWITCH_POLICY

    def __post_init__(self) -> None:
        if self.switch_policy not in SWITCH_POLICIES:
            raise ValueError(
                f"unknown switch policy {self.switch_policy!r}; "
                f"expected one of {SWITCH_POLICIES}"
            )
        if self.invite_code_length <= 0:
            raise ValueError("invite_code_length must be positive")
        if self.invite_code_max_attempts <= 0:
            raise ValueError("invite_code_max_attempts must be positive")

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> "FridgeSettings":
        """Build settings from a Flask config mapping."""

        return cls(
            invite_code_length=int(
                config.get("INVITE_CODE_LENGTH") or DEFAULT_INVITE_CODE_LENGTH
            ),
            invite_code_max_attempts=int(
                config.get("INVITE_CODE_MAX_ATTEMPTS")
                or DEFAULT_INVITE_CODE_MAX_ATTEMPTS
            ),
            switch_policy=(
                config.get("FRIDGE_SWITCH_POLICY") or DEFAULT_SWITCH_POLICY
            ),
        )


class MemberProfile(TypedDict):
    """Lightweight projection of a fridge member."""

    userId: str
    displayName: str
    photoUrl: str | None


def generate_invite_code(
    length: int = DEFAULT_INVITE_CODE_LENGTH,
    alphabet: str = INVITE_CODE_ALPHABET,
) -> str:
    return "".join(secrets.choice(alphabet) for _ in range(length))


def normalize_invite_code(raw: str) -> str:
    return raw.strip().upper()


def create_fridge(
    session: Session,
    *,
    user_id: object,
    name: str,
    settings: FridgeSettings | None = None,
    code_factory: Callable[[], str] | None = None,
) -> Fridge:
    """Create a fridge with the caller as its only member.

    A taken invite code is regenerated up to
    ``settings.invite_code_max_attempts`` times before
    :class:`InviteCodeExhaustedError` is raised.
    """

    settings = settings or FridgeSettings()
    if not isinstance(name, str) or not name.strip():
        raise ValueError("fridge name must not be empty")
    name = name.strip()

    code_factory = code_factory or partial(
        generate_invite_code, settings.invite_code_length
    )

    user = _require_user(session, user_id)

    for attempt in range(1, settings.invite_code_max_attempts + 1):
        code = normalize_invite_code(code_factory())
        if _invite_code_taken(session, code):
            logger.warning(
                "invite code collision; regenerating",
                extra={"attempt": attempt},
            )
            continue

        try:
            _apply_switch_policy(session, user, settings)
            fridge = Fridge(id=uuid.uuid4(), name=name, invite_code=code)
            fridge.members.append(
                FridgeMember(user_id=user.id, joined_at=utcnow())
            )
            session.add(fridge)
            user.active_fridge_id = fridge.id
            session.commit()
        except IntegrityError:
            session.rollback()
            if not _invite_code_taken(session, code):
                raise
            logger.warning(
                "invite code taken concurrently; regenerating",
                extra={"attempt": attempt},
            )
            continue
        except (FridgeError, SQLAlchemyError):
            session.rollback()
            raise

        return fridge

    raise InviteCodeExhaustedError()


def join_by_invite_code(
    session: Session,
    *,
    user_id: object,
    code: str,
    settings: FridgeSettings | None = None,
) -> Fridge:
    """Add the caller to the fridge owning ``code`` and make it active."""

    settings = settings or FridgeSettings()
    fridge = session.scalar(
        select(Fridge)
        .options(selectinload(Fridge.members))
        .where(Fridge.invite_code == normalize_invite_code(code))
    )
    if fridge is None:
        raise InviteNotFoundError()

    user = _require_user(session, user_id)
    if any(member.user_id == user.id for member in fridge.members):
        raise AlreadyInFridgeError()

    fridge_id, member_id = fridge.id, user.id
    try:
        _apply_switch_policy(session, user, settings)
        fridge.members.append(FridgeMember(user_id=user.id, joined_at=utcnow()))
        fridge.updated_at = utcnow()
        user.active_fridge_id = fridge.id
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        if not _is_member(session, fridge_id, member_id):
            raise
        # A concurrent join by the same user won the unique constraint.
        raise AlreadyInFridgeError() from exc
    except (FridgeError, SQLAlchemyError):
        session.rollback()
        raise

    return fridge


def leave_current_fridge(session: Session, *, user_id: object) -> None:
    """Remove the caller from their active fridge; the fridge is kept."""

    user = _require_user(session, user_id)
    if user.active_fridge_id is None:
        raise NoActiveFridgeError(status=400)

    fridge = _load_fridge(session, user.active_fridge_id)
    if fridge is None:
        raise FridgeNotFoundError()

    try:
        _remove_member(fridge, user.id)
        user.active_fridge_id = None
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        raise


def get_my_fridge(session: Session, *, user_id: object) -> Fridge:
    """Return the caller's active fridge with its members loaded."""

    user = _require_user(session, user_id)
    if user.active_fridge_id is None:
        raise NoActiveFridgeError("User has no active fridge", status=404)

    fridge = _load_fridge(session, user.active_fridge_id)
    if fridge is None:
        raise FridgeNotFoundError()
    return fridge


def get_my_fridge_members(
    session: Session, *, user_id: object
) -> list[MemberProfile]:
    """Return member profiles of the caller's fridge in join order."""

    fridge = get_my_fridge(session, user_id=user_id)
    member_ids = [member.user_id for member in fridge.members]
    if not member_ids:
        return []

    users = {
        user.id: user
        for user in session.execute(
            select(User).where(User.id.in_(member_ids))
        ).scalars()
    }

    profiles: list[MemberProfile] = []
    for member_id in member_ids:
        user = users.get(member_id)
        if user is None:
            continue
        profiles.append(
            {
                "userId": str(user.id),
                "displayName": user.display_name,
                "photoUrl": user.photo_url,
            }
        )
    return profiles


def _require_user(session: Session, user_id: object) -> User:
    user = get_user(session, user_id)
    if user is None:
        raise UserNotFoundError()
    return user


def _load_fridge(session: Session, fridge_id: uuid.UUID) -> Fridge | None:
    return session.scalar(
        select(Fridge)
        .options(selectinload(Fridge.members))
        .where(Fridge.id == fridge_id)
    )


def _invite_code_taken(session: Session, code: str) -> bool:
    return (
        session.scalar(select(Fridge.id).where(Fridge.invite_code == code))
        is not None
    )


def _is_member(
    session: Session, fridge_id: uuid.UUID, user_id: uuid.UUID
) -> bool:
    return (
        session.scalar(
            select(FridgeMember.id).where(
                FridgeMember.fridge_id == fridge_id,
                FridgeMember.user_id == user_id,
            )
        )
        is not None
    )


def _remove_member(fridge: Fridge, user_id: uuid.UUID) -> None:
    for member in list(fridge.members):
        if member.user_id == user_id:
            fridge.members.remove(member)
    fridge.updated_at = utcnow()


def _apply_switch_policy(
    session: Session, user: User, settings: FridgeSettings
) -> None:
    """Handle a caller who already has an active fridge.

    Under ``"reject"`` the operation fails; under ``"switch"`` the caller's
    entry in the previous fridge is removed in the current transaction.
    """

    if user.active_fridge_id is None:
        return

    previous = _load_fridge(session, user.active_fridge_id)
    if previous is None:
        # Dangling pointer; nothing to clean up.
        user.active_fridge_id = None
        return

    if settings.switch_policy == "reject":
        raise AlreadyInAnotherFridgeError()

    _remove_member(previous, user.id)
    user.active_fridge_id = None
    logger.info(
        "user switched away from fridge",
        extra={"user_id": str(user.id), "fridge_id": str(previous.id)},
    )
