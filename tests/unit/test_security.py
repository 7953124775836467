"""
Unit tests for the security module.
Tests identity token verification and claim mapping.
"""
import pytest
from datetime import timedelta
from jose import jwt

from eventconnect.core.security import (
    create_identity_token,
    decode_identity_token,
    profile_from_claims,
)
from eventconnect.core.config import settings


@pytest.mark.unit
class TestIdentityTokens:
    """Test identity token verification."""

    def test_decode_valid_token(self):
        token = create_identity_token({"sub": "user-42", "email": "u42@example.com"})
        payload = decode_identity_token(token)

        assert payload["sub"] == "user-42"
        assert payload["email"] == "u42@example.com"
        assert "exp" in payload

    def test_expired_token_rejected(self):
        token = create_identity_token({"sub": "user-42"}, expires_delta=timedelta(seconds=-5))

        with pytest.raises(ValueError, match="expired"):
            decode_identity_token(token)

    def test_token_signed_with_other_key_rejected(self):
        token = jwt.encode({"sub": "user-42"}, "some-other-key", algorithm=settings.OIDC_ALGORITHM)

        with pytest.raises(ValueError, match="Invalid token"):
            decode_identity_token(token)

    def test_token_without_subject_rejected(self):
        token = create_identity_token({"email": "nobody@example.com"})

        with pytest.raises(ValueError, match="sub"):
            decode_identity_token(token)

    def test_garbage_rejected(self):
        with pytest.raises(ValueError):
            decode_identity_token("not-a-jwt")

    def test_audience_checked_when_configured(self, monkeypatch):
        monkeypatch.setattr(settings, "OIDC_AUDIENCE", "eventconnect")
        good = create_identity_token({"sub": "user-42"})
        assert decode_identity_token(good)["sub"] == "user-42"

        wrong = jwt.encode(
            {"sub": "user-42", "aud": "someone-else"},
            settings.OIDC_SIGNING_KEY,
            algorithm=settings.OIDC_ALGORITHM,
        )
        with pytest.raises(ValueError):
            decode_identity_token(wrong)


@pytest.mark.unit
class TestProfileFromClaims:

    def test_custom_claim_names(self):
        profile = profile_from_claims({
            "sub": "abc",
            "email": "a@example.com",
            "first_name": "Ada",
            "last_name": "Lovelace",
            "profile_image_url": "https://img.example.com/a.png",
        })

        assert profile == {
            "id": "abc",
            "email": "a@example.com",
            "first_name": "Ada",
            "last_name": "Lovelace",
            "profile_image_url": "https://img.example.com/a.png",
        }

    def test_standard_oidc_claim_names(self):
        profile = profile_from_claims({
            "sub": 1234,
            "given_name": "Grace",
            "family_name": "Hopper",
            "picture": "https://img.example.com/g.png",
        })

        assert profile["id"] == "1234"
        assert profile["first_name"] == "Grace"
        assert profile["last_name"] == "Hopper"
        assert profile["profile_image_url"] == "https://img.example.com/g.png"
        assert profile["email"] is None
