from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from backend.auth import jwt_handler
from backend.core import config
from backend.core.errors import Unauthenticated
from backend.database import SessionLocal
from backend.services.auth_gateway import AuthGateway
from backend.services.mailer import Mailer
from backend.services.user_store import UserStore

security = HTTPBearer(auto_error=False)


def get_user_store() -> UserStore:
    return UserStore(SessionLocal)


def get_mailer() -> Mailer:
    return Mailer()


def get_auth_gateway(
    store: UserStore = Depends(get_user_store),
    mailer: Mailer = Depends(get_mailer),
) -> AuthGateway:
    return AuthGateway(store, mailer)


def get_session_claims(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> dict:
    """Session claims from the bearer header, falling back to the session cookie."""
    token = credentials.credentials if credentials else request.cookies.get(config.SESSION_COOKIE_NAME)
    payload = jwt_handler.decode_session_token(token)
    if payload is None:
        raise Unauthenticated()
    return payload


def get_current_user_id(claims: dict = Depends(get_session_claims)) -> str:
    return claims["id"]
