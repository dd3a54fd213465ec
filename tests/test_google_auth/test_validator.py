"""Tests for Firebase ID token validation and identity extraction."""

import time
from unittest.mock import patch

import jwt
import pytest
import requests
from cryptography.hazmat.primitives.asymmetric import rsa
from jwt.algorithms import RSAAlgorithm
from jwt.api_jwk import PyJWK

from app.google_auth.config import GoogleAuthConfig
from app.google_auth.validator import FirebaseTokenValidator, ValidationError, _extract_identity

PROJECT = "cep-console"
KID = "test-key-1"


def _config() -> GoogleAuthConfig:
    return GoogleAuthConfig(
        project_id=PROJECT,
        clock_skew_seconds=60,
        jwks_cache_ttl_seconds=3600,
        credentials_path=None,
        delegated_admin=None,
    )


@pytest.fixture(scope="module")
def private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def signing_jwk(private_key):
    jwk = RSAAlgorithm.to_jwk(private_key.public_key(), as_dict=True)
    jwk["kid"] = KID
    return PyJWK.from_dict(jwk, algorithm="RS256")


def _token(private_key, **overrides) -> str:
    now = int(time.time())
    payload = {
        "iss": f"https://securetoken.google.com/{PROJECT}",
        "aud": PROJECT,
        "sub": "uid-1",
        "user_id": "uid-1",
        "email": "admin@example.com",
        "email_verified": True,
        "iat": now - 10,
        "exp": now + 3600,
    }
    payload.update(overrides)
    payload = {k: v for k, v in payload.items() if v is not None}
    return jwt.encode(payload, private_key, algorithm="RS256", headers={"kid": KID})


def _validate(token, signing_jwk):
    with patch("app.google_auth.validator.JWKSCache") as mock_cache:
        mock_cache.return_value.get_signing_key.return_value = signing_jwk
        return FirebaseTokenValidator(config=_config()).validate_and_extract(token)


def test_extract_identity():
    ctx = _extract_identity({"user_id": "u1", "sub": "u1", "email": "a@example.com", "email_verified": True, "name": "A"})
    assert ctx.uid == "u1"
    assert ctx.email == "a@example.com"
    assert ctx.email_verified is True
    assert ctx.name == "A"


def test_extract_identity_without_email():
    ctx = _extract_identity({"sub": "u2"})
    assert ctx.uid == "u2"
    assert ctx.email is None
    assert ctx.email_verified is False


def test_valid_token_roundtrip(private_key, signing_jwk):
    ctx = _validate(_token(private_key), signing_jwk)
    assert ctx.uid == "uid-1"
    assert ctx.email == "admin@example.com"


def test_expired_token(private_key, signing_jwk):
    now = int(time.time())
    with pytest.raises(ValidationError, match="expired"):
        _validate(_token(private_key, iat=now - 7200, exp=now - 3600), signing_jwk)


def test_wrong_audience(private_key, signing_jwk):
    with pytest.raises(ValidationError, match="audience"):
        _validate(_token(private_key, aud="other-project"), signing_jwk)


def test_wrong_issuer(private_key, signing_jwk):
    with pytest.raises(ValidationError, match="issuer"):
        _validate(_token(private_key, iss="https://accounts.google.com"), signing_jwk)


def test_missing_subject(private_key, signing_jwk):
    with pytest.raises(ValidationError):
        _validate(_token(private_key, sub=None), signing_jwk)


def test_not_a_jwt():
    with pytest.raises(ValidationError):
        FirebaseTokenValidator(config=_config()).validate_and_extract("not-a-jwt")


def test_unknown_signing_key(private_key):
    with pytest.raises(ValidationError, match="unknown signing key"):
        _validate(_token(private_key), None)


def test_key_fetch_failure(private_key):
    with patch("app.google_auth.validator.JWKSCache") as mock_cache:
        mock_cache.return_value.get_signing_key.side_effect = requests.ConnectionError("down")
        with pytest.raises(ValidationError, match="unavailable"):
            FirebaseTokenValidator(config=_config()).validate_and_extract(_token(private_key))
