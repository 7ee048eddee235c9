import os

os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('APP_ENV', 'test')
os.environ.setdefault('JWT_SECRET_KEY', 'test-secret-key-with-enough-length-for-hs256')
os.environ['BCRYPT_ROUNDS'] = '4'

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from backend.auth.challenge import NoChallenge  # noqa: E402
from backend.auth.dependencies import get_mailer, get_user_store  # noqa: E402
from backend.core.errors import MailDeliveryError  # noqa: E402
from backend.database import Base  # noqa: E402
from backend.main import app  # noqa: E402
from backend.models.user import BackupCode, User  # noqa: E402
from backend.services.auth_gateway import AuthGateway  # noqa: E402
from backend.services.mailer import Mailer  # noqa: E402
from backend.services.user_store import UserStore  # noqa: E402


class RecordingMailer(Mailer):
    def __init__(self, fail: bool = False):
        super().__init__(deliver=False)
        self.fail = fail
        self.sent = []

    async def send(self, to_email, email):
        if self.fail:
            raise MailDeliveryError()
        self.sent.append((to_email, email))


@pytest.fixture
def session_factory():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine, tables=[User.__table__, BackupCode.__table__])
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        Base.metadata.drop_all(bind=engine, tables=[BackupCode.__table__, User.__table__])
        engine.dispose()


@pytest.fixture
def store(session_factory) -> UserStore:
    return UserStore(session_factory)


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def failing_mailer() -> RecordingMailer:
    return RecordingMailer(fail=True)


@pytest.fixture
def gateway(store, mailer) -> AuthGateway:
    return AuthGateway(store, mailer, challenge=NoChallenge())


@pytest.fixture
def client(store, mailer):
    app.dependency_overrides[get_user_store] = lambda: store
    app.dependency_overrides[get_mailer] = lambda: mailer
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
