from datetime import datetime, timedelta, timezone

import jwt

from backend.core import config


def session_claims(user) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "emailVerified": bool(user.email_verified),
        "twoFactorEnabled": bool(user.two_factor_enabled),
    }


def encode_token(claims: dict, lifetime: timedelta, now: datetime | None = None) -> str:
    issued_at = now or datetime.now(timezone.utc)
    payload = {**claims, "iat": issued_at, "exp": issued_at + lifetime}
    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_token(token: str) -> dict | None:
    try:
        return jwt.decode(token, config.JWT_SECRET_KEY, algorithms=[config.JWT_ALGORITHM])
    except jwt.PyJWTError:
        return None


def create_session_token(user, now: datetime | None = None) -> str:
    return encode_token(session_claims(user), timedelta(days=config.SESSION_EXPIRES_DAYS), now=now)


def decode_session_token(token: str | None) -> dict | None:
    """Return the session claims, or None for a bad signature, expiry or missing claims."""
    if not token:
        return None
    payload = decode_token(token)
    if payload is None or not payload.get("id") or not payload.get("email"):
        return None
    if payload.get("purpose"):
        # Purpose-scoped tokens (2FA setup) are not sessions.
        return None
    return payload
