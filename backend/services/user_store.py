"""
Credential store backed by SQLAlchemy.

The store is handed to the gateway explicitly; there is no module-level
user collection. Single-use consumption (verification token, reset
token, backup code) is done with one conditional UPDATE or DELETE whose
row count decides the outcome, so two concurrent requests cannot both
consume the same credential.
"""
import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from backend.auth.tokens import utcnow
from backend.core.errors import DuplicateEmail
from backend.models.user import BackupCode, User
from backend.schemas.user import UserPublic, UserRecord

logger = logging.getLogger(__name__)


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def _to_record(user: User) -> UserRecord:
    return UserRecord(
        id=user.id,
        email=user.email,
        name=user.name,
        hashed_password=user.hashed_password,
        email_verified=bool(user.email_verified),
        two_factor_enabled=bool(user.two_factor_enabled),
        two_factor_secret=user.two_factor_secret,
        email_verification_token=user.email_verification_token,
        email_verification_expires=user.email_verification_expires,
        password_reset_token=user.password_reset_token,
        password_reset_expires=user.password_reset_expires,
        last_login=user.last_login,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


class UserStore:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def _session(self) -> Session:
        return self._session_factory()

    # Lookups

    def find_by_email(self, email: str) -> UserRecord | None:
        with self._session() as db:
            user = db.query(User).filter(User.email == normalize_email(email)).first()
            return _to_record(user) if user else None

    def get_record(self, user_id: str) -> UserRecord | None:
        with self._session() as db:
            user = db.query(User).filter(User.id == user_id).first()
            return _to_record(user) if user else None

    def find_by_id(self, user_id: str) -> UserPublic | None:
        """Sanitized projection: no password hash, tokens, secret or backup codes."""
        with self._session() as db:
            user = db.query(User).filter(User.id == user_id).first()
            return UserPublic.model_validate(user) if user else None

    def find_by_reset_token(self, token: str, now: datetime | None = None) -> UserRecord | None:
        if not token:
            return None
        with self._session() as db:
            user = db.query(User).filter(
                User.password_reset_token == token,
                User.password_reset_expires > (now or utcnow()),
            ).first()
            return _to_record(user) if user else None

    def count_backup_codes(self, user_id: str) -> int:
        with self._session() as db:
            return db.query(BackupCode).filter(BackupCode.user_id == user_id).count()

    # Mutations

    def create(self, email: str, name: str, hashed_password: str, email_verified: bool = False) -> UserRecord:
        normalized = normalize_email(email)
        with self._session() as db:
            if db.query(User.id).filter(User.email == normalized).first():
                raise DuplicateEmail()

            now = utcnow()
            user = User(
                email=normalized,
                name=name.strip(),
                hashed_password=hashed_password,
                email_verified=email_verified,
                two_factor_enabled=False,
                created_at=now,
                updated_at=now,
            )
            db.add(user)
            try:
                db.commit()
            except IntegrityError as exc:
                # Lost a race against a concurrent registration.
                db.rollback()
                raise DuplicateEmail() from exc
            db.refresh(user)
            return _to_record(user)

    def set_verification_token(self, user_id: str, token: str, expires_at: datetime) -> bool:
        with self._session() as db:
            updated = db.query(User).filter(User.id == user_id).update(
                {
                    User.email_verification_token: token,
                    User.email_verification_expires: expires_at,
                    User.updated_at: utcnow(),
                },
                synchronize_session=False,
            )
            db.commit()
            return updated == 1

    def consume_verification_token(self, token: str, now: datetime | None = None) -> UserRecord | None:
        """Mark the owner of a live verification token as verified and clear the token."""
        if not token:
            return None
        now = now or utcnow()
        with self._session() as db:
            match = db.query(User.id).filter(
                User.email_verification_token == token,
                User.email_verification_expires > now,
            ).first()
            if match is None:
                return None

            updated = db.query(User).filter(
                User.id == match.id,
                User.email_verification_token == token,
                User.email_verification_expires > now,
            ).update(
                {
                    User.email_verified: True,
                    User.email_verification_token: None,
                    User.email_verification_expires: None,
                    User.updated_at: now,
                },
                synchronize_session=False,
            )
            db.commit()
            if updated != 1:
                return None

            user = db.query(User).filter(User.id == match.id).first()
            return _to_record(user) if user else None

    def set_reset_token(self, email: str, token: str, expires_at: datetime) -> UserRecord | None:
        with self._session() as db:
            user = db.query(User).filter(User.email == normalize_email(email)).first()
            if user is None:
                return None
            user.password_reset_token = token
            user.password_reset_expires = expires_at
            user.updated_at = utcnow()
            db.commit()
            db.refresh(user)
            return _to_record(user)

    def consume_reset_token(self, token: str, hashed_password: str, now: datetime | None = None) -> bool:
        """Replace the password and clear the reset token in one statement."""
        if not token:
            return False
        now = now or utcnow()
        with self._session() as db:
            updated = db.query(User).filter(
                User.password_reset_token == token,
                User.password_reset_expires > now,
            ).update(
                {
                    User.hashed_password: hashed_password,
                    User.password_reset_token: None,
                    User.password_reset_expires: None,
                    User.updated_at: now,
                },
                synchronize_session=False,
            )
            db.commit()
            return updated == 1

    def enable_two_factor(self, user_id: str, secret: str, backup_codes: list[str]) -> bool:
        """Switch 2FA on for a user who has it off; False if missing or already enabled."""
        with self._session() as db:
            updated = db.query(User).filter(
                User.id == user_id,
                User.two_factor_enabled.is_(False),
            ).update(
                {
                    User.two_factor_enabled: True,
                    User.two_factor_secret: secret,
                    User.updated_at: utcnow(),
                },
                synchronize_session=False,
            )
            if updated != 1:
                db.rollback()
                return False

            db.query(BackupCode).filter(BackupCode.user_id == user_id).delete(synchronize_session=False)
            db.add_all(BackupCode(user_id=user_id, code=code) for code in dict.fromkeys(backup_codes))
            db.commit()
            return True

    def disable_two_factor(self, user_id: str) -> bool:
        with self._session() as db:
            user = db.query(User).filter(User.id == user_id).first()
            if user is None:
                return False

            db.query(BackupCode).filter(BackupCode.user_id == user_id).delete(synchronize_session=False)
            user.two_factor_enabled = False
            user.two_factor_secret = None
            user.updated_at = utcnow()
            db.commit()
            return True

    def consume_backup_code(self, user_id: str, code: str) -> bool:
        """Remove ``code`` from the user's set if present; True only for the request that removed it."""
        if not code:
            return False
        with self._session() as db:
            deleted = db.query(BackupCode).filter(
                BackupCode.user_id == user_id,
                BackupCode.code == code,
            ).delete(synchronize_session=False)
            if deleted == 1:
                db.query(User).filter(User.id == user_id).update(
                    {User.updated_at: utcnow()},
                    synchronize_session=False,
                )
            db.commit()
            return deleted == 1

    def touch_last_login(self, user_id: str, now: datetime | None = None) -> None:
        now = now or utcnow()
        with self._session() as db:
            db.query(User).filter(User.id == user_id).update(
                {User.last_login: now, User.updated_at: now},
                synchronize_session=False,
            )
            db.commit()

    def seed_default_users(self, users: list[dict], hashed_password: str) -> list[str]:
        """Create any missing default users as verified accounts; returns the emails created."""
        created = []
        for entry in users:
            try:
                self.create(entry["email"], entry["name"], hashed_password, email_verified=True)
            except DuplicateEmail:
                logger.info("Seed user %s already exists", entry["email"])
                continue
            created.append(normalize_email(entry["email"]))
        return created
