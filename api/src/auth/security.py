"""Security utilities for authentication.

Provides:
- JWT access token creation and validation
- Signed OAuth state tokens (CSRF protection + post-login redirect)
"""

import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from src.config.settings import get_settings


OAUTH_STATE_LIFETIME = timedelta(minutes=10)


def _encode(data: dict[str, Any], token_type: str, lifetime: timedelta) -> str:
    settings = get_settings()
    now = datetime.now(UTC)
    to_encode = data.copy()
    to_encode.update({"exp": now + lifetime, "iat": now, "type": token_type})
    return jwt.encode(
        to_encode,
        settings.auth_secret_key,
        algorithm=settings.auth_algorithm,
    )


def _decode(token: str, token_type: str) -> dict[str, Any]:
    settings = get_settings()
    payload = jwt.decode(
        token,
        settings.auth_secret_key,
        algorithms=[settings.auth_algorithm],
    )
    if payload.get("type") != token_type:
        msg = f"Invalid token type: expected '{token_type}'"
        raise JWTError(msg)
    return payload


def create_access_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT access token.

    Args:
        data: Payload data (typically {"sub": user_id, "email": email, "role": role})
        expires_delta: Token lifetime (default from settings)

    Returns:
        Encoded JWT string with exp, iat and type="access" claims added
    """
    settings = get_settings()
    return _encode(
        data,
        "access",
        expires_delta or timedelta(minutes=settings.auth_access_token_expire_minutes),
    )


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode and validate an access token.

    Raises:
        JWTError: If token is invalid, expired, or wrong type
    """
    return _decode(token, "access")


def create_oauth_state(next_path: str) -> str:
    """Create a short-lived signed state value for the OAuth round trip."""
    return _encode(
        {"next": next_path, "nonce": secrets.token_urlsafe(16)},
        "oauth_state",
        OAUTH_STATE_LIFETIME,
    )


def decode_oauth_state(state: str) -> dict[str, Any]:
    """Validate an OAuth state value.

    Raises:
        JWTError: If the state is forged, expired, or wrong type
    """
    return _decode(state, "oauth_state")


def safe_redirect_path(next_path: str | None, default: str = "/") -> str:
    """Only allow same-site relative redirect targets."""
    if not next_path or not next_path.startswith("/") or next_path.startswith("//"):
        return default
    return next_path
