from fastapi import APIRouter, Depends, Response

from backend.auth.cookies import set_session_cookie
from backend.auth.dependencies import get_auth_gateway, get_current_user_id
from backend.routes.auth_routes import CamelModel
from backend.services.auth_gateway import AuthGateway

router = APIRouter(tags=['two-factor'])


class EnableTwoFactorRequest(CamelModel):
    code: str | None = None
    setup_token: str | None = None


@router.get('/setup')
def setup(
    user_id: str = Depends(get_current_user_id),
    gateway: AuthGateway = Depends(get_auth_gateway),
):
    enrollment = gateway.begin_two_factor_setup(user_id)
    return {
        'secret': enrollment.secret,
        'qrCode': enrollment.qr_code,
        'backupCodes': enrollment.backup_codes,
        'setupToken': enrollment.setup_token,
    }


@router.post('/verify')
def verify(
    data: EnableTwoFactorRequest,
    response: Response,
    user_id: str = Depends(get_current_user_id),
    gateway: AuthGateway = Depends(get_auth_gateway),
):
    result = gateway.enable_two_factor(user_id, data.code, data.setup_token)
    set_session_cookie(response, result.token)
    return {
        'message': 'Two-factor authentication has been enabled successfully',
        'user': result.user.to_response(),
        'token': result.token,
    }


@router.post('/disable')
def disable(
    response: Response,
    user_id: str = Depends(get_current_user_id),
    gateway: AuthGateway = Depends(get_auth_gateway),
):
    result = gateway.disable_two_factor(user_id)
    set_session_cookie(response, result.token)
    return {
        'message': 'Two-factor authentication has been disabled successfully',
        'user': result.user.to_response(),
        'token': result.token,
    }
