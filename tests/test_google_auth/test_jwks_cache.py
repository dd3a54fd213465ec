"""Tests for the signing-key cache (mocked HTTP)."""

from unittest.mock import MagicMock, patch

from cryptography.hazmat.primitives.asymmetric import rsa
from jwt.algorithms import RSAAlgorithm

from app.google_auth.jwks_cache import JWKSCache, _max_age


def _jwk(kid: str) -> dict:
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048).public_key()
    jwk = RSAAlgorithm.to_jwk(key, as_dict=True)
    jwk["kid"] = kid
    jwk["alg"] = "RS256"
    return jwk


def _response(keys: list[dict], cache_control: str | None = None) -> MagicMock:
    resp = MagicMock()
    resp.json.return_value = {"keys": keys}
    resp.headers = {"Cache-Control": cache_control} if cache_control else {}
    return resp


def test_max_age_parsing():
    assert _max_age({"Cache-Control": "public, max-age=21600, must-revalidate"}) == 21600
    assert _max_age({"Cache-Control": "no-cache"}) is None
    assert _max_age({}) is None


@patch("app.google_auth.jwks_cache.requests.get")
def test_known_kid_served_from_cache(mock_get):
    mock_get.return_value = _response([_jwk("k1")], "max-age=600")
    cache = JWKSCache("https://keys", ttl_seconds=3600)
    assert cache.get_signing_key("k1") is not None
    assert cache.get_signing_key("k1") is not None
    assert mock_get.call_count == 1


@patch("app.google_auth.jwks_cache.requests.get")
def test_unknown_kid_refreshes_once(mock_get):
    mock_get.side_effect = [_response([_jwk("old")]), _response([_jwk("old"), _jwk("new")])]
    cache = JWKSCache("https://keys", ttl_seconds=3600)
    assert cache.get_signing_key("new") is not None
    assert mock_get.call_count == 2


@patch("app.google_auth.jwks_cache.requests.get")
def test_unknown_kid_after_refresh_returns_none(mock_get):
    mock_get.return_value = _response([_jwk("k1")])
    cache = JWKSCache("https://keys", ttl_seconds=3600)
    assert cache.get_signing_key("nope") is None
    assert mock_get.call_count == 2


@patch("app.google_auth.jwks_cache.requests.get")
def test_forced_refresh_is_rate_limited(mock_get):
    mock_get.return_value = _response([_jwk("k1")], "max-age=600")
    cache = JWKSCache("https://keys", ttl_seconds=3600, min_forced_refresh_seconds=60)
    with patch("app.google_auth.jwks_cache.time.monotonic", return_value=1000.0):
        assert cache.get_signing_key("forged-1") is None
        assert cache.get_signing_key("forged-2") is None
        assert cache.get_signing_key("k1") is not None
    assert mock_get.call_count == 2

    with patch("app.google_auth.jwks_cache.time.monotonic", return_value=1061.0):
        assert cache.get_signing_key("forged-3") is None
    assert mock_get.call_count == 3
