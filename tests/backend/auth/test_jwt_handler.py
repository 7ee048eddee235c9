from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from backend.auth import jwt_handler, two_factor


def _user(**overrides):
    values = {
        'id': 'a' * 32,
        'email': 'a@b.com',
        'name': 'A',
        'email_verified': False,
        'two_factor_enabled': False,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def test_session_token_carries_user_claims() -> None:
    token = jwt_handler.create_session_token(_user(email_verified=True))

    payload = jwt_handler.decode_session_token(token)

    assert payload['id'] == 'a' * 32
    assert payload['email'] == 'a@b.com'
    assert payload['name'] == 'A'
    assert payload['emailVerified'] is True
    assert payload['twoFactorEnabled'] is False
    assert payload['exp'] - payload['iat'] == 7 * 24 * 60 * 60


def test_expired_session_token_is_rejected() -> None:
    issued = datetime.now(timezone.utc) - timedelta(days=8)

    token = jwt_handler.create_session_token(_user(), now=issued)

    assert jwt_handler.decode_session_token(token) is None


def test_tampered_session_token_is_rejected() -> None:
    token = jwt_handler.create_session_token(_user())
    header, payload, signature = token.split('.')
    tampered = '.'.join([header, payload, signature[:-2] + ('AA' if signature[-2:] != 'AA' else 'BB')])

    assert jwt_handler.decode_session_token(tampered) is None
    assert jwt_handler.decode_session_token('not-a-token') is None
    assert jwt_handler.decode_session_token(None) is None


def test_setup_token_is_not_accepted_as_session() -> None:
    setup = two_factor.TwoFactorSetup(secret='JBSWY3DPEHPK3PXP', provisioning_uri='', backup_codes=['ABCD1234'])
    token = two_factor.create_setup_token('a' * 32, setup)

    assert jwt_handler.decode_session_token(token) is None
