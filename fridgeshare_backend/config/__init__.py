"""Static configuration shipped with the codebase."""

from .auth import AUTH_MODES, DEFAULT_AUTH_MODE, USER_ID_HEADER
from .fridges import (
    DEFAULT_INVITE_CODE_LENGTH,
    DEFAULT_INVITE_CODE_MAX_ATTEMPTS,
    DEFAULT_SWITCH_POLICY,
    INVITE_CODE_ALPHABET,
    SWITCH_POLICIES,
)
from .pagination import DEFAULT_PAGE, DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT

__all__ = [
    "AUTH_MODES",
    "DEFAULT_AUTH_MODE",
    "DEFAULT_INVITE_CODE_LENGTH",
    "DEFAULT_INVITE_CODE_MAX_ATTEMPTS",
    "DEFAULT_PAGE",
    "DEFAULT_PAGE_LIMIT",
    "DEFAULT_SWITCH_POLICY",
    "INVITE_CODE_ALPHABET",
    "MAX_PAGE_LIMIT",
    "SWITCH_POLICIES",
    "USER_ID_HEADER",
]
