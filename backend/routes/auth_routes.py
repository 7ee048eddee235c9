from typing import Any

from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, field_validator
from pydantic.alias_generators import to_camel

from backend.auth.cookies import clear_session_cookie, set_session_cookie
from backend.auth.dependencies import get_auth_gateway, get_current_user_id
from backend.core import config
from backend.services.auth_gateway import REGISTERED_MESSAGE, AuthGateway

router = APIRouter(tags=['auth'])


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


class RegisterRequest(CamelModel):
    email: str | None = None
    password: str | None = None
    name: str | None = None

    @field_validator('email', 'name')
    @classmethod
    def strip_value(cls, value: str | None) -> str | None:
        return value.strip() if isinstance(value, str) else value


class LoginRequest(CamelModel):
    email: str | None = None
    password: str | None = None
    two_factor_code: str | None = None
    is_backup_code: bool = False
    puzzle_data: dict[str, Any] | None = None

    @field_validator('email', 'two_factor_code')
    @classmethod
    def strip_value(cls, value: str | None) -> str | None:
        return value.strip() if isinstance(value, str) else value


class ForgotPasswordRequest(CamelModel):
    email: str | None = None


class ResetPasswordRequest(CamelModel):
    token: str | None = None
    password: str | None = None
    confirm_password: str | None = None


@router.post('/register')
async def register(
    data: RegisterRequest,
    response: Response,
    gateway: AuthGateway = Depends(get_auth_gateway),
):
    result = await gateway.register(data.email, data.password, data.name)
    set_session_cookie(response, result.token)
    return {
        'user': result.user.to_response(),
        'token': result.token,
        'message': REGISTERED_MESSAGE,
    }


@router.post('/login')
async def login(
    data: LoginRequest,
    response: Response,
    gateway: AuthGateway = Depends(get_auth_gateway),
):
    result = await gateway.login(
        data.email,
        data.password,
        two_factor_code=data.two_factor_code,
        is_backup_code=data.is_backup_code,
        challenge=data.puzzle_data,
    )
    if result.requires_two_factor:
        return {'requiresTwoFactor': True, 'message': 'Two-factor authentication required'}

    set_session_cookie(response, result.token)
    body = {'user': result.user.to_response(), 'token': result.token}
    if result.backup_codes_remaining is not None:
        body['backupCodesRemaining'] = result.backup_codes_remaining
    return body


@router.post('/logout')
def logout(response: Response):
    # Stateless sessions: tokens already handed out stay valid until they expire.
    clear_session_cookie(response)
    return {'success': True}


@router.get('/me')
def me(
    user_id: str = Depends(get_current_user_id),
    gateway: AuthGateway = Depends(get_auth_gateway),
):
    return gateway.current_user(user_id).to_response()


@router.post('/forgot-password')
async def forgot_password(data: ForgotPasswordRequest, gateway: AuthGateway = Depends(get_auth_gateway)):
    message = await gateway.forgot_password(data.email)
    return {'message': message}


@router.post('/reset-password')
async def reset_password(data: ResetPasswordRequest, gateway: AuthGateway = Depends(get_auth_gateway)):
    message = await gateway.reset_password(data.token, data.password, data.confirm_password)
    return {'message': message}


@router.get('/verify-email')
def verify_email(
    token: str | None = Query(default=None),
    gateway: AuthGateway = Depends(get_auth_gateway),
):
    gateway.verify_email(token)
    return RedirectResponse(url=f'{config.APP_BASE_URL}/login?verified=true')
