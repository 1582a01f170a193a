"""FastAPI dependencies for authentication and authorization.

Provides dependency injection for:
- Current user extraction from JWT
- Profile loading
- Capability checks (the single authorization gate for admin endpoints)
"""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError

from src.auth.models import Profile
from src.auth.oauth import GoogleOAuthClient
from src.auth.permissions import Capability, has_capability
from src.auth.schemas import AuthenticatedUser
from src.auth.security import decode_access_token
from src.auth.service import ProfileService
from src.core.context import set_user_id


# ==============================================================================
# Service Getters (set by main.py)
# ==============================================================================

_profile_service_getter: Callable[[], ProfileService] | None = None
_oauth_client_getter: Callable[[], GoogleOAuthClient] | None = None


def set_profile_service_getter(getter: Callable[[], ProfileService]) -> None:
    """Set the profile service getter function."""
    global _profile_service_getter
    _profile_service_getter = getter


def set_oauth_client_getter(getter: Callable[[], GoogleOAuthClient]) -> None:
    """Set the OAuth client getter function."""
    global _oauth_client_getter
    _oauth_client_getter = getter


def get_profile_service() -> ProfileService:
    """Get ProfileService instance from app state."""
    if _profile_service_getter is None:
        msg = "ProfileService not configured"
        raise RuntimeError(msg)
    return _profile_service_getter()


def get_oauth_client() -> GoogleOAuthClient:
    """Get GoogleOAuthClient instance from app state."""
    if _oauth_client_getter is None:
        msg = "GoogleOAuthClient not configured"
        raise RuntimeError(msg)
    return _oauth_client_getter()


ProfileServiceDep = Annotated[ProfileService, Depends(get_profile_service)]
OAuthClientDep = Annotated[GoogleOAuthClient, Depends(get_oauth_client)]


# ==============================================================================
# Token Authentication
# ==============================================================================


def get_token_from_header(request: Request) -> str | None:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    expected_parts = 2
    parts = auth_header.split()
    if len(parts) != expected_parts or parts[0].lower() != "bearer":
        return None

    return parts[1]


def _user_from_token(token: str) -> AuthenticatedUser:
    payload = decode_access_token(token)
    user = AuthenticatedUser(
        id=payload["sub"],
        email=payload.get("email", ""),
        role=payload.get("role", "student"),
    )
    set_user_id(user.id)
    return user


async def get_current_user(
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> AuthenticatedUser:
    """Get current authenticated user from JWT token.

    Raises:
        HTTPException(401): If token is missing, invalid, or expired
    """
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return _user_from_token(token)
    except (JWTError, KeyError, ValueError) as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


async def get_current_user_optional(
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> AuthenticatedUser | None:
    """Get current user if authenticated, None otherwise."""
    if not token:
        return None
    try:
        return _user_from_token(token)
    except (JWTError, KeyError, ValueError):
        return None


CurrentUser = Annotated[AuthenticatedUser, Depends(get_current_user)]
OptionalUser = Annotated[AuthenticatedUser | None, Depends(get_current_user_optional)]


# ==============================================================================
# Profile and Capability Checks
# ==============================================================================


async def get_current_profile(
    user: CurrentUser,
    profile_service: ProfileServiceDep,
) -> Profile:
    """Load the caller's profile; the stored role is authoritative."""
    profile = await profile_service.get_profile(user.id)
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Profile not found",
        )
    return profile


CurrentProfile = Annotated[Profile, Depends(get_current_profile)]


def require_capability(capability: Capability):
    """Create a dependency requiring a capability on the caller's profile.

    Example:
        @router.post("/kits")
        async def create_kit(
            admin: Annotated[Profile, Depends(require_capability(Capability.MANAGE_CATALOG))]
        ):
            ...
    """

    async def capability_checker(profile: CurrentProfile) -> Profile:
        if not has_capability(profile.role, capability):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Forbidden",
            )
        return profile

    return capability_checker


# Admin catalog management (kits, codes, official courses)
CatalogAdmin = Annotated[Profile, Depends(require_capability(Capability.MANAGE_CATALOG))]
