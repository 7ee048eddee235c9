import pytest

from backend.core import config


def test_root_reports_status(client) -> None:
    assert client.get('/').json() == {'status': 'Auth API Running'}


def test_protected_profile_returns_current_user(client) -> None:
    assert client.get('/protected/profile').status_code == 401

    client.post('/auth/register', json={'email': 'a@b.com', 'password': 'secret1', 'name': 'A'})
    response = client.get('/protected/profile')

    assert response.status_code == 200
    assert response.json()['message'] == 'This is a protected route'
    assert response.json()['user']['email'] == 'a@b.com'


def test_seed_creates_verified_default_users(client, store) -> None:
    response = client.post('/seed')

    assert response.status_code == 200
    assert response.json()['created'] == ['test@example.com', 'admin@example.com']
    assert store.find_by_email('test@example.com').email_verified is True

    login = client.post('/auth/login', json={'email': 'test@example.com', 'password': 'password123'})
    assert login.status_code == 200


def test_seed_is_forbidden_in_production(client, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, 'APP_ENV', 'production')

    response = client.post('/seed')

    assert response.status_code == 403
    assert response.json() == {'error': 'Database seeding is not allowed in production'}
