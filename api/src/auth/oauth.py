"""Google OAuth 2.0 (authorization code flow) client."""

from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from src.auth.schemas import GoogleUserInfo
from src.config.settings import Settings
from src.core.errors import AppError
from src.core.logging import get_logger


logger = get_logger(__name__)

OAUTH_SCOPES = ("openid", "email", "profile")


class OAuthError(AppError):
    """Raised when the provider rejects the exchange or is unreachable."""

    def __init__(self, message: str = "OAuth sign-in failed"):
        super().__init__(message, "oauth_failed")


class GoogleOAuthClient:
    """Builds the consent URL and exchanges codes for user info."""

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self.settings = settings
        self._transport = transport

    @property
    def redirect_uri(self) -> str:
        return f"{self.settings.site_url.rstrip('/')}/auth/callback"

    def authorization_url(self, state: str) -> str:
        """URL of Google's consent screen for this application."""
        params = {
            "client_id": self.settings.google_oauth_client_id or "",
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": " ".join(OAUTH_SCOPES),
            "access_type": "online",
            "prompt": "select_account",
            "state": state,
        }
        return f"{self.settings.google_oauth_authorize_url}?{urlencode(params)}"

    async def exchange_code(self, code: str) -> GoogleUserInfo:
        """Exchange an authorization code and fetch the user's identity.

        Raises:
            OAuthError: If the token exchange or userinfo request fails.
        """
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.google_oauth_timeout,
                transport=self._transport,
            ) as client:
                token_response = await client.post(
                    self.settings.google_oauth_token_url,
                    data={
                        "code": code,
                        "client_id": self.settings.google_oauth_client_id,
                        "client_secret": self.settings.google_oauth_client_secret,
                        "redirect_uri": self.redirect_uri,
                        "grant_type": "authorization_code",
                    },
                )
                if token_response.status_code != httpx.codes.OK:
                    logger.warning(
                        "oauth_token_exchange_failed",
                        status_code=token_response.status_code,
                        response_text=token_response.text[:500],
                    )
                    raise OAuthError

                access_token = token_response.json().get("access_token")
                if not access_token:
                    raise OAuthError

                userinfo_response = await client.get(
                    self.settings.google_oauth_userinfo_url,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
                if userinfo_response.status_code != httpx.codes.OK:
                    logger.warning(
                        "oauth_userinfo_failed",
                        status_code=userinfo_response.status_code,
                    )
                    raise OAuthError

                return GoogleUserInfo.model_validate(userinfo_response.json())
        except httpx.TimeoutException as e:
            logger.error("oauth_timeout", error=str(e))
            raise OAuthError from e
        except httpx.RequestError as e:
            logger.error("oauth_request_error", error=str(e))
            raise OAuthError from e
        except ValidationError as e:
            logger.warning("oauth_userinfo_invalid", error=str(e))
            raise OAuthError from e
