import logging
import secrets
from functools import lru_cache

import bcrypt

from backend.core import config

logger = logging.getLogger(__name__)

# bcrypt only consumes the first 72 bytes; newer releases reject longer input.
BCRYPT_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=config.BCRYPT_ROUNDS)
    return bcrypt.hashpw(_encode(password), salt).decode("utf-8")


def verify_password(password: str, hashed_password: str | None) -> bool:
    if not password or not hashed_password:
        return False
    try:
        return bcrypt.checkpw(_encode(password), hashed_password.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


@lru_cache(maxsize=1)
def dummy_password_hash() -> str:
    """Throwaway hash checked in place of a real one when no account matches."""
    return hash_password(secrets.token_urlsafe(16))
