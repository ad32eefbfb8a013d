"""
Unit tests for core.security module.
Tests password hashing and session token creation/validation.
"""
import pytest
import datetime as dt
import uuid

import jwt

from marefa.core.security import (
    hash_password,
    verify_password,
    create_access_token,
    decode_access_token,
    SESSION_MAX_AGE,
)


class TestPasswordHashing:
    """Tests for password hashing and verification."""

    def test_hash_password_returns_different_hash_each_time(self):
        """Password hashing should produce different hashes (salt included)."""
        password = "TestPassword123"
        assert hash_password(password) != hash_password(password)

    def test_hash_password_produces_valid_hash(self):
        password = "TestPassword123"
        hashed = hash_password(password)
        assert isinstance(hashed, str)
        assert hashed != password  # Should not be plain text
        assert hashed.startswith("$argon2")

    def test_verify_password_correct_password(self):
        hashed = hash_password("TestPassword123")
        assert verify_password("TestPassword123", hashed) is True

    def test_verify_password_incorrect_password(self):
        hashed = hash_password("TestPassword123")
        assert verify_password("WrongPassword456", hashed) is False


class TestSessionTokens:
    """Tests for session token creation and validation."""

    def test_token_carries_user_role_and_session(self):
        user_id = str(uuid.uuid4())
        session_id = str(uuid.uuid4())
        token = create_access_token(user_id, "admin", session_id)
        payload = decode_access_token(token)
        assert payload["sub"] == user_id
        assert payload["role"] == "admin"
        assert payload["jti"] == session_id

    def test_default_expiry_matches_session_max_age(self):
        token = create_access_token("u", "user", "s")
        payload = decode_access_token(token)
        diff = payload["exp"] - payload["iat"]
        # Allow small tolerance for timing
        assert abs(diff - SESSION_MAX_AGE.total_seconds()) < 5

    def test_explicit_expiry(self):
        expires_at = dt.datetime.now(dt.timezone.utc) + dt.timedelta(minutes=5)
        token = create_access_token("u", "user", "s", expires_at=expires_at)
        payload = decode_access_token(token)
        assert payload["exp"] == int(expires_at.timestamp())

    def test_expired_token_rejected(self):
        expires_at = dt.datetime.now(dt.timezone.utc) - dt.timedelta(seconds=1)
        token = create_access_token("u", "user", "s", expires_at=expires_at)
        with pytest.raises(jwt.ExpiredSignatureError):
            decode_access_token(token)

    def test_decode_access_token_invalid_token(self):
        with pytest.raises(jwt.InvalidTokenError):
            decode_access_token("invalid.token.here")

    def test_decode_access_token_wrong_secret(self):
        token = jwt.encode({"sub": "u", "jti": "s"}, "wrong-secret", algorithm="HS256")
        with pytest.raises(jwt.InvalidSignatureError):
            decode_access_token(token)

    def test_different_sessions_get_different_tokens(self):
        token1 = create_access_token("same-user", "user", "session-1")
        token2 = create_access_token("same-user", "user", "session-2")
        assert token1 != token2
