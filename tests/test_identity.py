"""Tests for streaky/identity.py, streaky/config.py and streaky/session.py."""

import pytest

from streaky.config import load_settings
from streaky.errors import AuthError
from streaky.identity import (
    check_token_version,
    decode_access_token,
    decode_refresh_token,
    hash_password,
    sign_access_token,
    sign_refresh_token,
    verify_password,
)
from streaky.session import Session

USER = {"_id": "65a1f0c2e4b0a1b2c3d4e5f6", "email": "asha@example.com", "tokenVersion": 2}


def test_password_hashing():
    hashed = hash_password("hunter22")
    assert hashed != "hunter22"
    assert verify_password("hunter22", hashed) is True
    assert verify_password("wrong", hashed) is False
    assert verify_password("hunter22", "not-a-hash") is False


def test_tokens_use_separate_secrets(workspace):
    settings = load_settings(workspace)
    access = sign_access_token(USER, settings)
    refresh = sign_refresh_token(USER, settings)

    claims = decode_access_token(access, settings)
    assert claims["sub"] == USER["_id"]
    assert claims["email"] == USER["email"]
    assert decode_refresh_token(refresh, settings)["tv"] == 2

    with pytest.raises(AuthError):
        decode_access_token(refresh, settings)
    with pytest.raises(AuthError):
        decode_refresh_token(access, settings)


def test_expired_token_rejected(workspace):
    settings = load_settings(workspace)
    settings.access_token_minutes = -1
    with pytest.raises(AuthError, match="expired"):
        decode_access_token(sign_access_token(USER, settings), settings)


def test_token_version_check():
    check_token_version({"tv": 2}, USER)
    with pytest.raises(AuthError):
        check_token_version({"tv": 1}, USER)
    with pytest.raises(AuthError):
        check_token_version({"tv": 2}, None)


def test_settings_env_overrides_yaml(workspace, monkeypatch):
    assert load_settings(workspace).api_url == "http://testserver"
    monkeypatch.setenv("STREAKY_API_URL", "https://streaky.example.com/")
    monkeypatch.setenv("STREAKY_HTTP_TIMEOUT", "3")
    settings = load_settings(workspace)
    assert settings.api_url == "https://streaky.example.com"
    assert settings.http_timeout == 3.0
    assert settings.jwt_access_secret == "test-access-secret"


def test_session_persists_refresh_token_and_day(workspace):
    session = Session(workspace)
    assert session.is_authenticated() is False
    session.set_tokens(access_token="a", refresh_token="r")
    session.remember_day("2024-01-10")

    reopened = Session(workspace)
    assert reopened.access_token is None
    assert reopened.refresh_token == "r"
    assert reopened.is_authenticated() is True

    reopened.clear()
    assert reopened.refresh_token is None
    assert reopened.day_key == "2024-01-10"
