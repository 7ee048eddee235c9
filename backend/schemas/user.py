"""Public user projections returned to clients."""

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


@dataclass(frozen=True)
class UserRecord:
    """Full user row as seen by the gateway. Never serialized to clients."""
    id: str
    email: str
    name: str
    hashed_password: str
    email_verified: bool
    two_factor_enabled: bool
    two_factor_secret: str | None
    email_verification_token: str | None
    email_verification_expires: datetime | None
    password_reset_token: str | None
    password_reset_expires: datetime | None
    last_login: datetime | None
    created_at: datetime
    updated_at: datetime


class UserPublic(BaseModel):
    id: str
    email: str
    name: str
    email_verified: bool = False
    two_factor_enabled: bool = False
    last_login: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True

    def to_response(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
