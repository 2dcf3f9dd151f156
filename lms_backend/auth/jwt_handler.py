from datetime import datetime, timedelta, timezone

import jwt

from lms_backend.core import config

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def _encode(payload: dict, lifetime: timedelta) -> str:
    issued_at = datetime.now(timezone.utc)
    payload = {
        **payload,
        "iat": issued_at,
        "exp": issued_at + lifetime,
        "iss": config.JWT_ISSUER,
        "aud": config.JWT_AUDIENCE,
    }
    return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def create_access_token(claims: dict, expires_minutes: int | None = None) -> str:
    expire_minutes = expires_minutes or config.JWT_ACCESS_EXPIRES_MINUTES
    return _encode({**claims, "type": ACCESS_TOKEN_TYPE}, timedelta(minutes=expire_minutes))


def create_refresh_token(subject: str, expires_days: int | None = None) -> str:
    expire_days = expires_days or config.JWT_REFRESH_EXPIRES_DAYS
    return _encode({"sub": subject, "type": REFRESH_TOKEN_TYPE}, timedelta(days=expire_days))


def decode_token(token: str) -> dict:
    """Verify signature, expiry, issuer and audience; raises ``jwt.InvalidTokenError``."""
    return jwt.decode(
        token,
        config.JWT_SECRET,
        algorithms=[config.JWT_ALGORITHM],
        issuer=config.JWT_ISSUER,
        audience=config.JWT_AUDIENCE,
        options={"require": ["exp", "iat", "sub"]},
    )


def access_token_lifetime_seconds() -> int:
    return config.JWT_ACCESS_EXPIRES_MINUTES * 60
