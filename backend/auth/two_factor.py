"""
TOTP two-factor authentication helpers.

Secrets and provisioning URIs follow RFC 6238 via pyotp and work with
Google Authenticator, Authy and similar apps. Backup codes are uppercase
hex strings, each usable once.

Enrollment is two-step. ``generate_secret`` produces a candidate secret
and backup codes which are handed to the client inside a signed setup
token; nothing is written to the user record until a code generated from
that secret verifies.
"""
import base64
import io
import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta

import pyotp
import qrcode

from backend.auth import jwt_handler
from backend.core import config

logger = logging.getLogger(__name__)

TOTP_DIGITS = 6
# +-2 time steps (+-60s) to absorb clock drift.
TOTP_VALID_WINDOW = 2
BACKUP_CODE_COUNT = 8
BACKUP_CODE_LENGTH = 8
SETUP_TOKEN_PURPOSE = "2fa-setup"


@dataclass
class TwoFactorSetup:
    secret: str
    provisioning_uri: str
    backup_codes: list[str] = field(default_factory=list)


def generate_backup_codes(count: int = BACKUP_CODE_COUNT, length: int = BACKUP_CODE_LENGTH) -> list[str]:
    """
    Generate single-use backup codes.

    Args:
        count: Number of codes.
        length: Characters per code (even).

    Returns:
        List of uppercase hex codes, e.g. ``["3F9A01BC", ...]``.
    """
    return [secrets.token_hex(length // 2).upper() for _ in range(count)]


def normalize_backup_code(code: str | None) -> str:
    if not code:
        return ""
    return code.replace("-", "").replace(" ", "").strip().upper()


def generate_secret(identity_label: str, issuer: str | None = None) -> TwoFactorSetup:
    """
    Start an enrollment for ``identity_label`` (the user's email).

    Returns:
        A fresh base32 secret, its otpauth:// URI and a batch of backup codes.
    """
    secret = pyotp.random_base32(length=32)
    uri = pyotp.TOTP(secret).provisioning_uri(
        name=identity_label,
        issuer_name=issuer or config.TWO_FACTOR_ISSUER,
    )
    return TwoFactorSetup(secret=secret, provisioning_uri=uri, backup_codes=generate_backup_codes())


def render_provisioning_qr(uri: str) -> str:
    """Encode the provisioning URI as a PNG data URI ready for an <img> tag."""
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=10,
        border=4,
    )
    qr.add_data(uri)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode("utf-8")
    return f"data:image/png;base64,{encoded}"


def verify_code(code: str | None, secret: str | None, for_time: datetime | int | None = None) -> bool:
    """
    Check a 6-digit TOTP code against ``secret``.

    Never raises: malformed codes, malformed secrets and library errors all
    count as an invalid code.
    """
    if not code or not secret:
        return False

    # Only whitespace is forgiven; anything else makes the code malformed.
    cleaned = "".join(str(code).split())
    if len(cleaned) != TOTP_DIGITS or not (cleaned.isascii() and cleaned.isdigit()):
        return False

    try:
        totp = pyotp.TOTP(secret)
        if for_time is None:
            return totp.verify(cleaned, valid_window=TOTP_VALID_WINDOW)
        return totp.verify(cleaned, for_time=for_time, valid_window=TOTP_VALID_WINDOW)
    except Exception:
        logger.warning("TOTP verification failed with a malformed secret or code")
        return False


def create_setup_token(user_id: str, setup: TwoFactorSetup) -> str:
    claims = {
        "sub": user_id,
        "purpose": SETUP_TOKEN_PURPOSE,
        "secret": setup.secret,
        "backupCodes": setup.backup_codes,
    }
    return jwt_handler.encode_token(claims, timedelta(minutes=config.TWO_FACTOR_SETUP_MINUTES))


def read_setup_token(token: str | None, user_id: str) -> TwoFactorSetup | None:
    """Return the pending enrollment carried by ``token`` if it is live and belongs to ``user_id``."""
    if not token:
        return None
    payload = jwt_handler.decode_token(token)
    if payload is None:
        return None
    if payload.get("purpose") != SETUP_TOKEN_PURPOSE or payload.get("sub") != user_id:
        return None

    secret = payload.get("secret")
    backup_codes = payload.get("backupCodes")
    if not isinstance(secret, str) or not isinstance(backup_codes, list):
        return None

    return TwoFactorSetup(
        secret=secret,
        provisioning_uri="",
        backup_codes=[normalize_backup_code(code) for code in backup_codes],
    )
