"""
Social login providers (Google, GitHub).

Strategies are plain objects built from settings at start-up and kept in an
OAuthRegistry on app.state; routes receive the registry through a dependency.
"""
import logging
from abc import ABC, abstractmethod
from typing import Optional, Dict, List
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel

from projecthub.config import Settings
from projecthub.core.exceptions import ExternalServiceError, raise_not_found
from projecthub.models.user import LoginType

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

class OAuthConfig(BaseModel):
    """OAuth client configuration for one provider."""
    client_id: str
    client_secret: str
    redirect_uri: str
    scopes: List[str] = []


class OAuthProfile(BaseModel):
    """What the rest of the app needs to know about a social account."""
    email: str
    name: str = ""
    avatar_url: Optional[str] = None


# =============================================================================
# STRATEGIES
# =============================================================================

class OAuthStrategy(ABC):
    """Authorization code flow for one provider."""

    name: str
    login_type: str
    AUTH_URL: str
    TOKEN_URL: str

    def __init__(self, config: OAuthConfig, client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self.client = client or httpx.AsyncClient(timeout=10.0)

    def get_auth_url(self, state: str) -> str:
        """URL the user is redirected to for consent."""
        params = {
            "client_id": self.config.client_id,
            "redirect_uri": self.config.redirect_uri,
            "response_type": "code",
            "scope": " ".join(self.config.scopes),
            "state": state,
        }
        return f"{self.AUTH_URL}?{urlencode(params)}"

    async def exchange_code_for_token(self, code: str) -> str:
        """Exchange the callback code for a provider access token."""
        response = await self.client.post(
            self.TOKEN_URL,
            data={
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.config.redirect_uri,
                "client_id": self.config.client_id,
                "client_secret": self.config.client_secret,
            },
            headers={"Accept": "application/json"}
        )
        if response.status_code != 200:
            logger.error("%s token exchange failed: %s", self.name, response.text)
            raise ExternalServiceError(self.name, "token exchange failed")

        access_token = response.json().get("access_token")
        if not access_token:
            raise ExternalServiceError(self.name, "no access token in response")
        return access_token

    @abstractmethod
    async def fetch_profile(self, access_token: str) -> OAuthProfile:
        pass

    async def authenticate(self, code: str) -> OAuthProfile:
        try:
            access_token = await self.exchange_code_for_token(code)
            return await self.fetch_profile(access_token)
        except httpx.HTTPError as exc:
            logger.exception("%s request failed", self.name)
            raise ExternalServiceError(self.name, str(exc)) from exc

    async def close(self):
        await self.client.aclose()


class GoogleOAuthStrategy(OAuthStrategy):
    name = "google"
    login_type = LoginType.GOOGLE
    AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"
    USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"

    async def fetch_profile(self, access_token: str) -> OAuthProfile:
        response = await self.client.get(
            self.USERINFO_URL,
            headers={"Authorization": f"Bearer {access_token}"}
        )
        if response.status_code != 200:
            raise ExternalServiceError(self.name, "failed to get profile")

        data = response.json()
        if not data.get("email"):
            raise ExternalServiceError(self.name, "account has no email")
        return OAuthProfile(
            email=data["email"],
            name=data.get("name") or "",
            avatar_url=data.get("picture")
        )


class GitHubOAuthStrategy(OAuthStrategy):
    name = "github"
    login_type = LoginType.GITHUB
    AUTH_URL = "https://github.com/login/oauth/authorize"
    TOKEN_URL = "https://github.com/login/oauth/access_token"
    API_URL = "https://api.github.com"

    def _headers(self, access_token: str) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/vnd.github+json",
        }

    async def _primary_email(self, access_token: str) -> Optional[str]:
        # Accounts with a private email only expose it here
        response = await self.client.get(
            f"{self.API_URL}/user/emails",
            headers=self._headers(access_token)
        )
        if response.status_code != 200:
            return None
        for entry in response.json():
            if entry.get("primary") and entry.get("verified"):
                return entry.get("email")
        return None

    async def fetch_profile(self, access_token: str) -> OAuthProfile:
        response = await self.client.get(f"{self.API_URL}/user", headers=self._headers(access_token))
        if response.status_code != 200:
            raise ExternalServiceError(self.name, "failed to get profile")

        data = response.json()
        email = data.get("email") or await self._primary_email(access_token)
        if not email:
            raise ExternalServiceError(self.name, "account has no verified email")
        return OAuthProfile(
            email=email,
            name=data.get("name") or data.get("login") or "",
            avatar_url=data.get("avatar_url")
        )


# =============================================================================
# REGISTRY
# =============================================================================

class OAuthRegistry:
    """Providers available to this process, keyed by name."""

    def __init__(self, strategies: Optional[List[OAuthStrategy]] = None):
        self._strategies: Dict[str, OAuthStrategy] = {}
        for strategy in strategies or []:
            self.register(strategy)

    def register(self, strategy: OAuthStrategy) -> None:
        self._strategies[strategy.name] = strategy

    def get(self, name: str) -> OAuthStrategy:
        strategy = self._strategies.get(name)
        if strategy is None:
            raise_not_found("Login provider", name)
        return strategy

    @property
    def providers(self) -> List[str]:
        return list(self._strategies)

    async def close(self) -> None:
        for strategy in self._strategies.values():
            await strategy.close()

    @classmethod
    def from_settings(cls, settings: Settings) -> "OAuthRegistry":
        """Build a registry with every provider that has credentials configured."""
        callback_base = f"{settings.BACKEND_URL}{settings.API_PREFIX}/users"
        strategies: List[OAuthStrategy] = []

        if settings.GOOGLE_CLIENT_ID and settings.GOOGLE_CLIENT_SECRET:
            strategies.append(GoogleOAuthStrategy(OAuthConfig(
                client_id=settings.GOOGLE_CLIENT_ID,
                client_secret=settings.GOOGLE_CLIENT_SECRET,
                redirect_uri=settings.GOOGLE_CALLBACK_URL or f"{callback_base}/google/callback",
                scopes=["openid", "profile", "email"]
            )))

        if settings.GITHUB_CLIENT_ID and settings.GITHUB_CLIENT_SECRET:
            strategies.append(GitHubOAuthStrategy(OAuthConfig(
                client_id=settings.GITHUB_CLIENT_ID,
                client_secret=settings.GITHUB_CLIENT_SECRET,
                redirect_uri=settings.GITHUB_CALLBACK_URL or f"{callback_base}/github/callback",
                scopes=["read:user", "user:email"]
            )))

        logger.info("Social login providers: %s", [s.name for s in strategies] or "none")
        return cls(strategies)
