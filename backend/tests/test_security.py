"""
Blue Whale Backend: Password & Token Tests
============================================

What:  bcrypt hashing round trip and bearer token verification.
"""

from datetime import timedelta
from uuid import uuid4

import jwt
import pytest

from bluewhale.config import settings
from bluewhale.exceptions import AuthenticationError
from bluewhale.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)


class TestPasswordHashing:

    def test_hash_is_not_plain_text(self):
        hashed = hash_password("password123")
        assert hashed != "password123"
        assert hashed.startswith("$2")

    def test_verify_correct_password(self):
        assert verify_password("password123", hash_password("password123"))

    def test_verify_wrong_password(self):
        assert not verify_password("password124", hash_password("password123"))

    @pytest.mark.parametrize("plain,hashed", [(None, "x"), ("", "x"), ("password123", None)])
    def test_verify_missing_inputs(self, plain, hashed):
        assert verify_password(plain, hashed) is False

    def test_verify_malformed_hash(self):
        assert verify_password("password123", "not-a-bcrypt-hash") is False


class TestAccessTokens:

    def test_round_trip(self):
        user_id = uuid4()
        assert decode_access_token(create_access_token(user_id)) == user_id

    def test_expired_token(self):
        token = create_access_token(uuid4(), expires_delta=timedelta(seconds=-1))
        with pytest.raises(AuthenticationError, match="expired"):
            decode_access_token(token)

    def test_tampered_token(self):
        token = create_access_token(uuid4())
        header, payload, signature = token.split(".")
        tampered = ".".join([header, payload, signature[::-1]])
        with pytest.raises(AuthenticationError, match="Invalid"):
            decode_access_token(tampered)

    def test_wrong_secret(self):
        token = jwt.encode(
            {"sub": str(uuid4()), "type": "access", "exp": 9999999999},
            "some-other-secret-that-is-long-enough-for-hs256",
            algorithm="HS256",
        )
        with pytest.raises(AuthenticationError, match="Invalid"):
            decode_access_token(token)

    def test_wrong_token_type(self):
        token = jwt.encode(
            {"sub": str(uuid4()), "type": "refresh", "exp": 9999999999},
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(AuthenticationError, match="Invalid"):
            decode_access_token(token)

    def test_subject_not_a_uuid(self):
        token = jwt.encode(
            {"sub": "42", "type": "access", "exp": 9999999999},
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(AuthenticationError, match="Invalid"):
            decode_access_token(token)

    def test_garbage(self):
        with pytest.raises(AuthenticationError):
            decode_access_token("not.a.token")
