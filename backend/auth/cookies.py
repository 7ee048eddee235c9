from fastapi import Response

from backend.core import config


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=config.SESSION_COOKIE_NAME,
        value=token,
        max_age=config.SESSION_EXPIRES_DAYS * 24 * 60 * 60,
        path="/",
        httponly=True,
        secure=config.is_production(),
        samesite="strict",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=config.SESSION_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=config.is_production(),
        samesite="strict",
    )
