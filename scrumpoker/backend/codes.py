"""Random identifiers: shareable room codes and connection ids."""

from __future__ import annotations

import secrets
import string
from collections.abc import Callable, Container

from .errors import CapacityExhausted

ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits
ROOM_CODE_LENGTH = 5
MAX_CODE_ATTEMPTS = 1000
CONNECTION_ID_BYTES = 12


def generate_connection_id() -> str:
    """Generate a URL-safe id for a transport connection."""
    return secrets.token_urlsafe(CONNECTION_ID_BYTES)


def generate_room_code(
    existing_codes: Container[str],
    choice: Callable[[str], str] = secrets.choice,
    max_attempts: int = MAX_CODE_ATTEMPTS,
) -> str:
    """Draw a 5 character code that is not present in ``existing_codes``."""
    for _ in range(max_attempts):
        code = "".join(choice(ROOM_CODE_ALPHABET) for _ in range(ROOM_CODE_LENGTH))
        if code not in existing_codes:
            return code
    raise CapacityExhausted(max_attempts)


def normalize_room_code(code: str) -> str:
    return code.strip().upper()
