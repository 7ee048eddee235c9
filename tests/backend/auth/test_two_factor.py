import re

import pyotp
import pytest

from backend.auth import two_factor
from backend.core import config

SECRET = 'JBSWY3DPEHPK3PXPJBSWY3DPEHPK3PXP'
T = 1_767_600_000


@pytest.mark.parametrize('offset', [-60, -30, 0, 30, 60])
def test_verify_code_accepts_codes_within_tolerance(offset: int) -> None:
    code = pyotp.TOTP(SECRET).at(T)

    assert two_factor.verify_code(code, SECRET, for_time=T + offset)


@pytest.mark.parametrize('offset', [-180, 180])
def test_verify_code_rejects_codes_outside_tolerance(offset: int) -> None:
    code = pyotp.TOTP(SECRET).at(T)

    assert not two_factor.verify_code(code, SECRET, for_time=T + offset)


@pytest.mark.parametrize(
    ('code', 'secret'),
    [
        (None, SECRET),
        ('', SECRET),
        ('12345', SECRET),
        ('abcdef', SECRET),
        ('1x2x3x4x5x6zz', SECRET),
        ('12-34-56', SECRET),
        ('123456', None),
        ('123456', 'not base32 !!'),
    ],
)
def test_verify_code_fails_closed(code, secret) -> None:
    assert two_factor.verify_code(code, secret) is False


def test_verify_code_rejects_junk_around_the_right_digits() -> None:
    code = pyotp.TOTP(SECRET).at(T)
    padded = 'x'.join(code) + 'zz'

    assert two_factor.verify_code(f' {code[:3]} {code[3:]} ', SECRET, for_time=T) is True
    assert two_factor.verify_code(padded, SECRET, for_time=T) is False


def test_setup_token_expires(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, 'TWO_FACTOR_SETUP_MINUTES', -1)
    setup = two_factor.TwoFactorSetup(secret=SECRET, provisioning_uri='', backup_codes=['AB12CD34'])

    token = two_factor.create_setup_token('user-1', setup)

    assert two_factor.read_setup_token(token, 'user-1') is None


def test_generate_secret_builds_provisioning_uri_and_backup_codes() -> None:
    setup = two_factor.generate_secret('a@b.com', issuer='NextLogin')

    assert setup.provisioning_uri.startswith('otpauth://totp/')
    assert 'issuer=NextLogin' in setup.provisioning_uri
    assert f'secret={setup.secret}' in setup.provisioning_uri
    assert len(setup.backup_codes) == 8
    assert all(re.fullmatch(r'[0-9A-F]{8}', code) for code in setup.backup_codes)


def test_normalize_backup_code_uppercases_and_strips_separators() -> None:
    assert two_factor.normalize_backup_code(' ab12-cd34 ') == 'AB12CD34'
    assert two_factor.normalize_backup_code(None) == ''


def test_render_provisioning_qr_returns_png_data_uri() -> None:
    image = two_factor.render_provisioning_qr('otpauth://totp/NextLogin:a%40b.com?secret=JBSWY3DPEHPK3PXP')

    assert image.startswith('data:image/png;base64,')


def test_setup_token_round_trips_for_owner_only() -> None:
    setup = two_factor.TwoFactorSetup(secret=SECRET, provisioning_uri='', backup_codes=['ab12cd34'])
    token = two_factor.create_setup_token('user-1', setup)

    restored = two_factor.read_setup_token(token, 'user-1')

    assert restored.secret == SECRET
    assert restored.backup_codes == ['AB12CD34']
    assert two_factor.read_setup_token(token, 'user-2') is None
    assert two_factor.read_setup_token('garbage', 'user-1') is None
