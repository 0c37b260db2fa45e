"""
Short human-shareable room identifiers: 6 characters from [A-Z0-9].
"""

import random
import re
import secrets
import string
from typing import Optional

CODE_LENGTH = 6
CODE_ALPHABET = string.ascii_uppercase + string.digits

_CODE_PATTERN = re.compile(rf"[A-Z0-9]{{{CODE_LENGTH}}}")


def generate(rng: Optional[random.Random] = None) -> str:
    """
    Draw a code uniformly from the 36-symbol alphabet.

    Uses `secrets` unless a seeded `random.Random` is passed in.
    Collision handling is the caller's job (see RoomStore).
    """
    choice = rng.choice if rng is not None else secrets.choice
    return "".join(choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


def canonicalize(code: str) -> str:
    """Trim surrounding whitespace and uppercase a user-supplied code."""
    return (code or "").strip().upper()


def is_valid(code: str) -> bool:
    """True iff `code` is exactly 6 characters of [A-Z0-9] (already canonical)."""
    if not isinstance(code, str):
        return False
    return _CODE_PATTERN.fullmatch(code) is not None
