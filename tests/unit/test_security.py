"""
Tests for password hashing and access tokens (security.py).
"""

from datetime import timedelta

import jwt
import pytest

from config import settings
from src.utils.datetime_utils import utc_now, to_aware_utc
from src.utils.errors import AppError
from src.utils.security import (
    parse_duration,
    hash_password,
    verify_password,
    create_access_token,
    decode_access_token,
)


class TestParseDuration:

    @pytest.mark.parametrize("value,seconds", [
        ("1d", 86400),
        ("12h", 43200),
        ("30m", 1800),
        ("45s", 45),
        ("2w", 1209600),
        ("3600", 3600),
        (" 7D ", 604800),
    ])
    def test_valid_durations(self, value, seconds):
        assert parse_duration(value) == seconds

    @pytest.mark.parametrize("value", ["", "1y", "abc", "-1h", "0", "1.5h"])
    def test_invalid_durations(self, value):
        with pytest.raises(ValueError):
            parse_duration(value)


class TestPasswords:

    def test_hash_and_verify(self):
        hashed = hash_password("Password123!", rounds=4)

        assert hashed != "Password123!"
        assert hashed.startswith("$2")
        assert verify_password("Password123!", hashed)
        assert not verify_password("password123!", hashed)

    def test_same_password_different_hashes(self):
        assert hash_password("Password123!", rounds=4) != hash_password("Password123!", rounds=4)

    def test_malformed_hash_is_a_mismatch(self):
        assert verify_password("Password123!", "not-a-bcrypt-hash") is False


class TestTokens:

    def test_round_trip(self):
        token = create_access_token("user-1", "ADMIN")
        payload = decode_access_token(token)

        assert payload["userId"] == "user-1"
        assert payload["role"] == "ADMIN"

    def test_lifetime_from_argument(self):
        payload = decode_access_token(create_access_token("user-1", "MEMBER", expires_in="2h"))
        assert payload["exp"] - payload["iat"] == 7200

    def test_expired_token(self):
        issued = to_aware_utc(utc_now() - timedelta(days=2))
        token = jwt.encode(
            {"userId": "user-1", "role": "MEMBER", "iat": issued, "exp": issued + timedelta(days=1)},
            settings.jwt_secret,
            algorithm="HS256",
        )

        with pytest.raises(AppError) as exc:
            decode_access_token(token)
        assert exc.value.status_code == 401
        assert exc.value.message == "Invalid or expired token."

    def test_tampered_token(self):
        token = create_access_token("user-1", "MEMBER")
        header, payload, signature = token.split(".")
        tampered = ".".join([header, payload, signature[::-1]])

        with pytest.raises(AppError) as exc:
            decode_access_token(tampered)
        assert exc.value.status_code == 401

    def test_token_without_user_id(self):
        now = to_aware_utc(utc_now())
        token = jwt.encode(
            {"role": "ADMIN", "iat": now, "exp": now + timedelta(hours=1)},
            settings.jwt_secret,
            algorithm="HS256",
        )

        with pytest.raises(AppError):
            decode_access_token(token)

    def test_token_without_expiry(self):
        token = jwt.encode({"userId": "user-1", "role": "MEMBER"}, settings.jwt_secret, algorithm="HS256")

        with pytest.raises(AppError):
            decode_access_token(token)

    def test_missing_secret_is_a_server_error(self, monkeypatch):
        monkeypatch.setattr(settings, "jwt_secret", "")

        with pytest.raises(AppError) as exc:
            create_access_token("user-1", "MEMBER")
        assert exc.value.status_code == 500
