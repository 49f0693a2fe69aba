"""Defaults for fridge membership and invite codes that are tracked in Git."""

import string

# Invite codes are short and meant to be typed by hand.
DEFAULT_INVITE_CODE_LENGTH = 6
INVITE_CODE_ALPHABET = string.ascii_uppercase + string.digits

# How many fresh codes to try before giving up on a collision streak.
DEFAULT_INVITE_CODE_MAX_ATTEMPTS = 5

# "switch" leaves the previous fridge before joining; "reject" refuses.
SWITCH_POLICIES = ("switch", "reject")
DEFAULT_SWITCH_POLICY = "switch"
