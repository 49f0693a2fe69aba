"""Defaults for caller identity resolution."""

# "jwt" verifies a bearer token; "header" trusts x-user-id verbatim.
AUTH_MODES = ("jwt", "header")
DEFAULT_AUTH_MODE = "jwt"

USER_ID_HEADER = "x-user-id"
