"""
Authentication flows: registration, login, password reset, email
verification and two-factor enrollment.

Each flow is a straight sequence of checks that stops at the first
failure by raising one of the errors in ``backend.core.errors``. The
gateway owns no state of its own; it composes the credential store, the
mailer, password hashing, the token helpers and the TOTP helpers.
"""
import logging
import re
from dataclasses import dataclass, field
from urllib.parse import urlencode

from fastapi.concurrency import run_in_threadpool

from backend.auth import jwt_handler, two_factor
from backend.auth.challenge import ChallengeProvider, get_challenge_provider
from backend.auth.passwords import dummy_password_hash, hash_password, verify_password
from backend.auth.tokens import (
    EMAIL_VERIFICATION_LIFETIME,
    PASSWORD_RESET_LIFETIME,
    issue_single_use_token,
)
from backend.core import config
from backend.core.errors import (
    DuplicateEmail,
    InvalidCredentials,
    MailDeliveryError,
    NotFound,
    ValidationError,
)
from backend.schemas.user import UserPublic, UserRecord
from backend.services.mailer import Mailer
from backend.services.user_store import UserStore, normalize_email

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6
MAX_NAME_LENGTH = 50

FORGOT_PASSWORD_MESSAGE = "If an account with this email exists, a password reset link has been sent."
REGISTERED_MESSAGE = "Account created successfully. Please check your email to verify your account."
INVALID_RESET_TOKEN = "Invalid or expired reset token"
INVALID_VERIFICATION_TOKEN = "Invalid or expired verification token"
TWO_FACTOR_ALREADY_ENABLED = "Two-factor authentication is already enabled"


@dataclass
class AuthResult:
    user: UserPublic
    token: str


@dataclass
class LoginResult:
    requires_two_factor: bool = False
    user: UserPublic | None = None
    token: str | None = None
    # Set only when a backup code was spent.
    backup_codes_remaining: int | None = None


@dataclass
class TwoFactorEnrollment:
    secret: str
    qr_code: str
    backup_codes: list[str] = field(default_factory=list)
    setup_token: str = ""


def _public(record: UserRecord) -> UserPublic:
    return UserPublic.model_validate(record)


def _validate_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")


class AuthGateway:
    def __init__(self, store: UserStore, mailer: Mailer, challenge: ChallengeProvider | None = None):
        self.store = store
        self.mailer = mailer
        self.challenge = challenge or get_challenge_provider()

    def _require_record(self, user_id: str) -> UserRecord:
        record = self.store.get_record(user_id)
        if record is None:
            raise NotFound("User not found")
        return record

    async def register(self, email: str | None, password: str | None, name: str | None) -> AuthResult:
        if not email or not password or not name:
            raise ValidationError("Email, password, and name are required")

        email = normalize_email(email)
        name = name.strip()
        if not EMAIL_PATTERN.match(email):
            raise ValidationError("Invalid email format")
        _validate_password(password)
        if not name:
            raise ValidationError("Email, password, and name are required")
        if len(name) > MAX_NAME_LENGTH:
            raise ValidationError(f"Name cannot exceed {MAX_NAME_LENGTH} characters")

        if await run_in_threadpool(self.store.find_by_email, email) is not None:
            raise DuplicateEmail()

        hashed = await run_in_threadpool(hash_password, password)
        record = await run_in_threadpool(self.store.create, email, name, hashed)
        logger.info("Registered user %s", record.id)

        token, expires_at = issue_single_use_token(EMAIL_VERIFICATION_LIFETIME)
        await run_in_threadpool(self.store.set_verification_token, record.id, token, expires_at)
        verification_url = f"{config.API_BASE_URL}/auth/verify-email?{urlencode({'token': token})}"

        try:
            await self.mailer.send_verification_email(record.email, record.name, verification_url)
        except Exception:
            # Registration stands even if the email never goes out.
            logger.exception("Failed to send verification email to user %s", record.id)

        record = await run_in_threadpool(self._require_record, record.id)
        return AuthResult(user=_public(record), token=jwt_handler.create_session_token(record))

    async def login(
        self,
        email: str | None,
        password: str | None,
        two_factor_code: str | None = None,
        is_backup_code: bool = False,
        challenge: dict | None = None,
    ) -> LoginResult:
        self.challenge.validate(challenge)

        if not email or not password:
            raise ValidationError("Email and password are required")

        record = await run_in_threadpool(self.store.find_by_email, email)
        # Unknown emails still pay for one bcrypt check.
        hashed_password = record.hashed_password if record else dummy_password_hash()
        password_ok = await run_in_threadpool(verify_password, password, hashed_password)
        if record is None or not password_ok:
            logger.warning("Failed login attempt for %s", normalize_email(email))
            raise InvalidCredentials()

        backup_codes_remaining = None
        if record.two_factor_enabled:
            if not two_factor_code:
                return LoginResult(requires_two_factor=True)

            if is_backup_code:
                accepted = await run_in_threadpool(
                    self.store.consume_backup_code,
                    record.id,
                    two_factor.normalize_backup_code(two_factor_code),
                )
                if accepted:
                    backup_codes_remaining = await run_in_threadpool(self.store.count_backup_codes, record.id)
                    logger.info("Backup code used for user %s, %d left", record.id, backup_codes_remaining)
            else:
                accepted = two_factor.verify_code(two_factor_code, record.two_factor_secret)

            if not accepted:
                logger.warning("Invalid two-factor code for user %s", record.id)
                raise InvalidCredentials("Invalid two-factor code")

        await run_in_threadpool(self.store.touch_last_login, record.id)
        record = await run_in_threadpool(self._require_record, record.id)
        return LoginResult(
            user=_public(record),
            token=jwt_handler.create_session_token(record),
            backup_codes_remaining=backup_codes_remaining,
        )

    def current_user(self, user_id: str) -> UserPublic:
        user = self.store.find_by_id(user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    async def forgot_password(self, email: str | None) -> str:
        if not email:
            raise ValidationError("Email is required")

        token, expires_at = issue_single_use_token(PASSWORD_RESET_LIFETIME)
        record = await run_in_threadpool(self.store.set_reset_token, email, token, expires_at)
        if record is None:
            logger.info("Password reset requested for unknown email")
            return FORGOT_PASSWORD_MESSAGE

        reset_url = f"{config.APP_BASE_URL}/reset-password?{urlencode({'token': token})}"
        try:
            await self.mailer.send_password_reset_email(record.email, record.name, reset_url)
        except MailDeliveryError as exc:
            raise MailDeliveryError("Failed to send reset email") from exc

        logger.info("Password reset link issued for user %s", record.id)
        return FORGOT_PASSWORD_MESSAGE

    async def reset_password(self, token: str | None, password: str | None, confirm_password: str | None) -> str:
        if not token or not password or not confirm_password:
            raise ValidationError("Token, password, and confirmation are required")
        if password != confirm_password:
            raise ValidationError("Passwords do not match")
        _validate_password(password)

        if await run_in_threadpool(self.store.find_by_reset_token, token) is None:
            raise ValidationError(INVALID_RESET_TOKEN)

        hashed = await run_in_threadpool(hash_password, password)
        if not await run_in_threadpool(self.store.consume_reset_token, token, hashed):
            raise ValidationError(INVALID_RESET_TOKEN)

        logger.info("Password reset completed")
        return "Password has been reset successfully"

    def verify_email(self, token: str | None) -> UserPublic:
        if not token:
            raise ValidationError("Verification token is required")

        record = self.store.consume_verification_token(token)
        if record is None:
            raise ValidationError(INVALID_VERIFICATION_TOKEN)

        logger.info("Email verified for user %s", record.id)
        return _public(record)

    def begin_two_factor_setup(self, user_id: str) -> TwoFactorEnrollment:
        record = self._require_record(user_id)
        if record.two_factor_enabled:
            raise ValidationError(TWO_FACTOR_ALREADY_ENABLED)

        setup = two_factor.generate_secret(record.email)
        return TwoFactorEnrollment(
            secret=setup.secret,
            qr_code=two_factor.render_provisioning_qr(setup.provisioning_uri),
            backup_codes=setup.backup_codes,
            setup_token=two_factor.create_setup_token(record.id, setup),
        )

    def enable_two_factor(self, user_id: str, code: str | None, setup_token: str | None) -> AuthResult:
        """Persist the pending secret only once a code generated from it has verified."""
        if not code or not setup_token:
            raise ValidationError("Verification code and setup token are required")

        record = self._require_record(user_id)
        if record.two_factor_enabled:
            raise ValidationError(TWO_FACTOR_ALREADY_ENABLED)

        setup = two_factor.read_setup_token(setup_token, record.id)
        if setup is None:
            raise ValidationError("Two-factor setup has expired. Please start again")

        if not two_factor.verify_code(code, setup.secret):
            raise ValidationError("Invalid verification code")

        if not self.store.enable_two_factor(record.id, setup.secret, setup.backup_codes):
            # Another request enabled it between the read and the write.
            raise ValidationError(TWO_FACTOR_ALREADY_ENABLED)

        logger.info("Two-factor authentication enabled for user %s", record.id)
        record = self._require_record(record.id)
        return AuthResult(user=_public(record), token=jwt_handler.create_session_token(record))

    def disable_two_factor(self, user_id: str) -> AuthResult:
        # Authenticated session only; no fresh password or code is asked for.
        if not self.store.disable_two_factor(user_id):
            raise NotFound("User not found")

        logger.info("Two-factor authentication disabled for user %s", user_id)
        record = self._require_record(user_id)
        return AuthResult(user=_public(record), token=jwt_handler.create_session_token(record))

    def seed_default_users(self, users: list[dict], password: str) -> list[str]:
        return self.store.seed_default_users(users, hash_password(password))
