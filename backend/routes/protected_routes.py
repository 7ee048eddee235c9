from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from backend.auth.dependencies import get_auth_gateway, get_current_user_id
from backend.services.auth_gateway import AuthGateway

router = APIRouter(tags=['protected'])


@router.get('/profile')
def profile(
    user_id: str = Depends(get_current_user_id),
    gateway: AuthGateway = Depends(get_auth_gateway),
):
    return {
        'message': 'This is a protected route',
        'user': gateway.current_user(user_id).to_response(),
        'timestamp': datetime.now(timezone.utc).isoformat(),
    }
