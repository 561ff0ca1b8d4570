"""
Unit Tests for Security Module
Tests for: password hashing, temporary passwords, JWT tokens
"""
import pytest
from datetime import timedelta
from jose import jwt
from fastapi import HTTPException

from laborhours.core.security import (
    verify_password,
    get_password_hash,
    generate_password,
    create_access_token,
    decode_token,
    LOWERCASE,
    UPPERCASE,
    DIGITS,
    SPECIAL_CHARACTERS,
)
from laborhours.core.config import settings


class TestPasswordHashing:
    """Test password hashing functions"""

    def test_verify_password_correct(self):
        hashed = get_password_hash("testpassword123")

        assert hashed != "testpassword123"
        assert verify_password("testpassword123", hashed) is True

    def test_verify_password_incorrect(self):
        hashed = get_password_hash("testpassword123")

        assert verify_password("wrongpassword", hashed) is False

    def test_verify_password_without_hash(self):
        assert verify_password("anything", None) is False

    def test_hash_long_password_truncated(self):
        """Bcrypt has a 72 byte limit"""
        long_password = "a" * 100
        hashed = get_password_hash(long_password)

        assert verify_password(long_password, hashed) is True


class TestGeneratePassword:
    """Composition rules for temporary passwords"""

    @pytest.mark.parametrize("attempt", range(200))
    def test_contains_every_character_class(self, attempt):
        password = generate_password()

        assert len(password) == 8
        assert any(c in LOWERCASE for c in password)
        assert any(c in UPPERCASE for c in password)
        assert any(c in DIGITS for c in password)
        assert any(c in SPECIAL_CHARACTERS for c in password)

    def test_only_known_characters(self):
        alphabet = set(LOWERCASE + UPPERCASE + DIGITS + SPECIAL_CHARACTERS)
        for _ in range(100):
            assert set(generate_password()) <= alphabet

    def test_custom_length(self):
        assert len(generate_password(16)) == 16
        assert len(generate_password(4)) == 4

    def test_too_short_rejected(self):
        with pytest.raises(ValueError):
            generate_password(3)

    def test_class_positions_vary(self):
        """The lowercase character is not pinned to the first position"""
        first_chars = {generate_password()[0] in LOWERCASE for _ in range(200)}
        assert first_chars == {True, False}

    def test_passwords_differ(self):
        passwords = {generate_password() for _ in range(50)}
        assert len(passwords) == 50


class TestAccessTokens:
    """JWT creation and decoding"""

    def test_round_trip_claims(self):
        token = create_access_token({"sub": "user-1", "email": "a@x.com"})
        payload = decode_token(token)

        assert payload["sub"] == "user-1"
        assert payload["type"] == "access"
        assert "exp" in payload

    def test_custom_expiry(self):
        token = create_access_token({"sub": "user-1"}, expires_delta=timedelta(minutes=5))
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])

        assert payload["sub"] == "user-1"

    def test_expired_token_rejected(self):
        token = create_access_token({"sub": "user-1"}, expires_delta=timedelta(seconds=-1))

        with pytest.raises(HTTPException) as exc_info:
            decode_token(token)
        assert exc_info.value.status_code == 401

    def test_garbage_token_rejected(self):
        with pytest.raises(HTTPException):
            decode_token("not-a-jwt")
