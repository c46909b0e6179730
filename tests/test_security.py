"""Tests for password hashing, bearer tokens and generated keys."""

import re

import jwt
import pytest

from invest_api.services import security


class TestPasswords:
    def test_hash_and_verify(self):
        hashed = security.hash_password("Secret123")

        assert hashed != "Secret123"
        assert security.verify_password("Secret123", hashed)
        assert not security.verify_password("secret123", hashed)

    def test_empty_hash_never_matches(self):
        assert not security.verify_password("anything", "")


class TestTokens:
    def test_round_trip(self):
        token = security.create_access_token("user-1")
        assert security.decode_access_token(token) == "user-1"

    def test_expired_token(self):
        token = security.create_access_token("user-1", expires_minutes=-1)
        with pytest.raises(jwt.ExpiredSignatureError):
            security.decode_access_token(token)

    def test_bad_signature(self):
        token = jwt.encode({"sub": "user-1"}, "some-other-secret", algorithm="HS256")
        with pytest.raises(jwt.InvalidTokenError):
            security.decode_access_token(token)

    def test_garbage(self):
        with pytest.raises(jwt.InvalidTokenError):
            security.decode_access_token("not.a.token")


class TestGeneratedKeys:
    def test_activation_key_format(self):
        assert re.fullmatch(r"[A-Z0-9]{6}", security.generate_activation_key())

    def test_reset_token_format(self):
        assert re.fullmatch(r"[0-9a-f]{64}", security.generate_reset_token())

    def test_transaction_id_format(self):
        assert re.fullmatch(r"TXN\d{13}[A-Z0-9]{6}", security.generate_transaction_id())

    def test_transaction_ids_differ(self):
        ids = {security.generate_transaction_id() for _ in range(50)}
        assert len(ids) == 50
