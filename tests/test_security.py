from datetime import date, datetime, timedelta

import pytest
from jose import JWTError

from lunarlink.core.security import (
    create_session_token,
    decode_session_token,
    get_today_password,
    validate_login,
)
from lunarlink.schemas.auth import Role
from tests.conftest import ADMIN_PASSWORD


def test_today_password_format():
    assert get_today_password(date(2026, 2, 16)) == "16feb2026"
    assert get_today_password(date(2026, 10, 3)) == "03oct2026"


def test_user_password_is_trimmed_and_case_insensitive():
    today = date(2026, 2, 16)

    assert validate_login("16feb2026", today) == Role.USER
    assert validate_login("  16FEB2026 ", today) == Role.USER
    assert validate_login("15feb2026", today) is None


def test_admin_password_is_exact():
    assert validate_login(ADMIN_PASSWORD) == Role.ADMIN
    assert validate_login(ADMIN_PASSWORD.upper()) is None
    assert validate_login(f" {ADMIN_PASSWORD}") is None


def test_empty_password():
    assert validate_login("") is None


def test_session_token_round_trip():
    token = create_session_token(Role.USER)

    session = decode_session_token(token)

    assert session.role == Role.USER
    assert session.session_id
    assert session.expires_at > session.issued_at


def test_each_login_gets_its_own_session():
    first = decode_session_token(create_session_token(Role.USER))
    second = decode_session_token(create_session_token(Role.USER))

    assert first.session_id != second.session_id


def test_expired_token_rejected():
    token = create_session_token(Role.ADMIN, now=datetime.utcnow() - timedelta(days=1))

    with pytest.raises(JWTError):
        decode_session_token(token)


def test_tampered_token_rejected():
    token = create_session_token(Role.USER)

    with pytest.raises(JWTError):
        decode_session_token(token[:-2] + ("AA" if token[-2:] != "AA" else "BB"))
