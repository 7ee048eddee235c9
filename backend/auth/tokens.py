"""Opaque single-use tokens for email verification and password reset.

These are random strings stored beside their expiry on the user record,
not signed claims, so a leaked token can be revoked by clearing one column.
"""

import secrets
from datetime import datetime, timedelta, timezone

EMAIL_VERIFICATION_LIFETIME = timedelta(hours=24)
PASSWORD_RESET_LIFETIME = timedelta(hours=1)

TOKEN_BYTES = 32


def utcnow() -> datetime:
    # Stored datetimes are naive UTC.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def generate_secure_token() -> str:
    return secrets.token_hex(TOKEN_BYTES)


def issue_single_use_token(lifetime: timedelta, now: datetime | None = None) -> tuple[str, datetime]:
    issued_at = now or utcnow()
    return generate_secure_token(), issued_at + lifetime
