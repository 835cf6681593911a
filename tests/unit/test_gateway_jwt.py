"""Unit tests for JWT handler."""

from datetime import timedelta

import pytest
from jose import jwt

from config.settings import settings
from src.mb_common.errors import InvalidCredentialsError
from src.mb_gateway.auth.jwt_handler import (
    ROLE_OPERATOR,
    ROLE_USER,
    create_access_token,
    decode_token,
)


def test_access_token_contains_correct_claims() -> None:
    token = create_access_token("user-123")
    payload = jwt.get_unverified_claims(token)
    assert payload["sub"] == "user-123"
    assert payload["type"] == "access"
    assert payload["role"] == ROLE_USER


def test_operator_role_round_trips() -> None:
    payload = decode_token(create_access_token("op-1", role=ROLE_OPERATOR))
    assert payload["role"] == ROLE_OPERATOR


def test_expired_token_raises_credentials_error() -> None:
    token = create_access_token("user-abc", expires_in=timedelta(seconds=-1))
    with pytest.raises(InvalidCredentialsError):
        decode_token(token)


def test_tampered_token_raises_error() -> None:
    token = create_access_token("user-abc")
    with pytest.raises(InvalidCredentialsError):
        decode_token(token[:-4] + "xxxx")


def test_non_access_token_rejected() -> None:
    """A refresh token from the platform auth service must not authorize API calls."""
    token = jwt.encode(
        {"sub": "user-abc", "type": "refresh"},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    with pytest.raises(InvalidCredentialsError):
        decode_token(token)


def test_token_without_subject_rejected() -> None:
    token = jwt.encode({"type": "access"}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    with pytest.raises(InvalidCredentialsError):
        decode_token(token)
