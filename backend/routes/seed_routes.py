import logging

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

from backend.auth.dependencies import get_auth_gateway
from backend.core import config
from backend.core.errors import Forbidden
from backend.services.auth_gateway import AuthGateway

router = APIRouter(tags=['seed'])

logger = logging.getLogger(__name__)

DEFAULT_PASSWORD = 'password123'
DEFAULT_USERS = [
    {'email': 'test@example.com', 'name': 'Test User'},
    {'email': 'admin@example.com', 'name': 'Admin User'},
]


@router.post('')
async def seed(gateway: AuthGateway = Depends(get_auth_gateway)):
    if config.is_production():
        raise Forbidden('Database seeding is not allowed in production')

    logger.info('Seeding database with default users')
    created = await run_in_threadpool(gateway.seed_default_users, DEFAULT_USERS, DEFAULT_PASSWORD)
    return {
        'message': 'Database seeded successfully',
        'created': created,
        'users': [{'email': user['email'], 'password': DEFAULT_PASSWORD} for user in DEFAULT_USERS],
    }
