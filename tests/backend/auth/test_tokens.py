from datetime import datetime

from backend.auth.tokens import (
    EMAIL_VERIFICATION_LIFETIME,
    PASSWORD_RESET_LIFETIME,
    generate_secure_token,
    issue_single_use_token,
)


def test_generate_secure_token_is_random_hex() -> None:
    first = generate_secure_token()
    second = generate_secure_token()

    assert len(first) == 64
    int(first, 16)
    assert first != second


def test_issue_single_use_token_sets_expiry_from_lifetime() -> None:
    now = datetime(2026, 1, 5, 9, 0)

    _, verification_expiry = issue_single_use_token(EMAIL_VERIFICATION_LIFETIME, now=now)
    _, reset_expiry = issue_single_use_token(PASSWORD_RESET_LIFETIME, now=now)

    assert verification_expiry == datetime(2026, 1, 6, 9, 0)
    assert reset_expiry == datetime(2026, 1, 5, 10, 0)
