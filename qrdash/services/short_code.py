import logging
import secrets
from typing import Callable

logger = logging.getLogger(__name__)

SHORT_CODE_ALPHABET = "abcdefghijklmnopqrstuvwxyz0123456789"
SHORT_CODE_LENGTH = 6
FALLBACK_LENGTH = 8
MAX_ATTEMPTS = 10


def generate_short_code(length: int = SHORT_CODE_LENGTH) -> str:
    return "".join(secrets.choice(SHORT_CODE_ALPHABET) for _ in range(length))


def generate_unique_short_code(exists_check: Callable[[str], bool]) -> str:
    """Return a 6-character code that ``exists_check`` reports as free.

    After MAX_ATTEMPTS collisions an 8-character code is returned without
    asking ``exists_check`` again; the unique index on ``qr_codes.short_code``
    is the only guard left at that point.
    """
    for _ in range(MAX_ATTEMPTS):
        code = generate_short_code()
        if not exists_check(code):
            return code

    logger.warning("Short code space congested after %d attempts, using %d-char code", MAX_ATTEMPTS, FALLBACK_LENGTH)
    return generate_short_code(FALLBACK_LENGTH)
