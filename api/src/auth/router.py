"""Authentication API endpoints.

Provides routes for:
- Google OAuth sign-in (redirect + callback)
- Session/layout data for the signed-in user
"""

from fastapi import APIRouter, status
from fastapi.responses import RedirectResponse
from jose import JWTError

from src.auth.dependencies import OAuthClientDep, OptionalUser, ProfileServiceDep
from src.auth.oauth import OAuthError
from src.auth.permissions import is_admin
from src.auth.schemas import AuthenticatedUser, ProfileResponse, SessionResponse
from src.auth.security import (
    create_access_token,
    create_oauth_state,
    decode_oauth_state,
    safe_redirect_path,
)
from src.config.settings import get_settings
from src.core.errors import DatabaseError
from src.core.logging import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _site_redirect(path: str) -> RedirectResponse:
    settings = get_settings()
    return RedirectResponse(
        url=f"{settings.site_url.rstrip('/')}{path}",
        status_code=status.HTTP_303_SEE_OTHER,
    )


@router.get("/google", summary="Start Google sign-in")
async def google_sign_in(
    oauth_client: OAuthClientDep,
    next: str | None = None,  # noqa: A002
) -> RedirectResponse:
    """Redirect to Google's consent screen."""
    if not get_settings().google_oauth_configured:
        logger.warning("oauth_not_configured")
        return _site_redirect("/login?error=auth_unavailable")

    state = create_oauth_state(safe_redirect_path(next))
    return RedirectResponse(
        url=oauth_client.authorization_url(state),
        status_code=status.HTTP_303_SEE_OTHER,
    )


@router.get("/callback", summary="Google sign-in callback")
async def google_callback(
    oauth_client: OAuthClientDep,
    profile_service: ProfileServiceDep,
    code: str | None = None,
    state: str | None = None,
    next: str | None = None,  # noqa: A002
) -> RedirectResponse:
    """Exchange the code, provision the profile and hand the token to the site.

    The access token is delivered in the URL fragment so it never reaches
    server logs.
    """
    if not code:
        return _site_redirect("/login")

    # The signed state issued by /auth/google is mandatory
    if not state:
        logger.warning("oauth_state_missing")
        return _site_redirect("/login?error=auth_failed")
    try:
        next_path = safe_redirect_path(next or decode_oauth_state(state).get("next"))
    except JWTError:
        logger.warning("oauth_state_invalid")
        return _site_redirect("/login?error=auth_failed")

    try:
        info = await oauth_client.exchange_code(code)
        profile = await profile_service.upsert_from_google(info)
    except (OAuthError, DatabaseError) as e:
        logger.warning("oauth_callback_failed", error=e.message)
        return _site_redirect("/login?error=auth_failed")

    token = create_access_token(
        {"sub": str(profile.id), "email": profile.email, "role": profile.role.value}
    )
    logger.info("user_signed_in", profile_id=str(profile.id))
    return _site_redirect(f"{next_path}#access_token={token}")


@router.get("/session", response_model=SessionResponse, summary="Current session")
async def get_session(
    user: OptionalUser,
    profile_service: ProfileServiceDep,
) -> SessionResponse:
    """Return the signed-in user, their profile and whether they are admin."""
    if user is None:
        return SessionResponse()

    profile = await profile_service.get_profile(user.id)
    return SessionResponse(
        user=AuthenticatedUser(
            id=user.id,
            email=profile.email if profile else user.email,
            role=profile.role.value if profile else user.role,
        ),
        profile=ProfileResponse.from_profile(profile) if profile else None,
        is_admin=is_admin(profile.role) if profile else False,
    )
