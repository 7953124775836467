"""
Identity token handling.

Users sign in through an external OpenID Connect provider. The provider hands
the client a signed JWT whose claims identify the user; this module verifies
those tokens and turns their claims into the fields the user store needs.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict
from jose import jwt, JWTError
from eventconnect.core.config import settings


def decode_identity_token(token: str) -> Dict:
    """
    Decode and validate an identity token issued by the OIDC provider.

    Issuer and audience are verified only when they are configured.

    Args:
        token: Bearer token sent by the client

    Returns:
        Decoded claims

    Raises:
        ValueError: If the token is invalid, expired or lacks a subject
    """
    kwargs = {}
    if settings.OIDC_AUDIENCE:
        kwargs["audience"] = settings.OIDC_AUDIENCE
    if settings.OIDC_ISSUER:
        kwargs["issuer"] = settings.OIDC_ISSUER

    try:
        payload = jwt.decode(
            token,
            settings.OIDC_SIGNING_KEY,
            algorithms=[settings.OIDC_ALGORITHM],
            options={"verify_aud": bool(settings.OIDC_AUDIENCE)},
            **kwargs,
        )
    except jwt.ExpiredSignatureError:
        raise ValueError("Token has expired")
    except JWTError as e:
        raise ValueError(f"Invalid token: {str(e)}")

    if not payload.get("sub"):
        raise ValueError("Invalid token payload: missing 'sub' field")

    return payload


def create_identity_token(claims: Dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Mint a token shaped like the ones the identity provider issues.

    Only local tooling and the test-suite use this; production tokens come
    from the provider.
    """
    to_encode = claims.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.IDENTITY_TOKEN_EXPIRE_MINUTES)
    )
    to_encode["exp"] = expire
    if settings.OIDC_ISSUER:
        to_encode.setdefault("iss", settings.OIDC_ISSUER)
    if settings.OIDC_AUDIENCE:
        to_encode.setdefault("aud", settings.OIDC_AUDIENCE)
    return jwt.encode(to_encode, settings.OIDC_SIGNING_KEY, algorithm=settings.OIDC_ALGORITHM)


def profile_from_claims(payload: Dict) -> Dict:
    """Map standard identity claims onto user columns."""
    return {
        "id": str(payload["sub"]),
        "email": payload.get("email"),
        "first_name": payload.get("first_name") or payload.get("given_name"),
        "last_name": payload.get("last_name") or payload.get("family_name"),
        "profile_image_url": payload.get("profile_image_url") or payload.get("picture"),
    }
