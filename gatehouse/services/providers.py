"""OAuth provider clients.

The linker only needs three capabilities from a provider: build an
authorization URL, exchange an authorization code for tokens, and fetch the
user's profile with those tokens.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Protocol
from urllib.parse import urlencode

import httpx

from gatehouse.config import AuthConfig
from gatehouse.database import utcnow
from gatehouse.exceptions import OAuthExchangeFailedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OAuthTokens:
    access_token: str
    refresh_token: str | None = None
    access_token_expires_at: datetime | None = None
    refresh_token_expires_at: datetime | None = None
    scope: str | None = None


@dataclass(frozen=True)
class ProviderProfile:
    provider_account_id: str
    email: str | None
    name: str | None = None
    avatar_url: str | None = None
    email_verified: bool = False


class OAuthProvider(Protocol):
    id: str

    def authorization_url(self, state: str, redirect_uri: str) -> str: ...

    async def exchange_code(self, code: str, redirect_uri: str) -> OAuthTokens: ...

    async def fetch_profile(self, tokens: OAuthTokens) -> ProviderProfile: ...


def _expiry(seconds) -> datetime | None:
    if not seconds:
        return None
    return utcnow() + timedelta(seconds=int(seconds))


def _json(response: httpx.Response, expected: type):
    """Decode a provider response, failing the exchange on an unexpected shape."""
    try:
        payload = response.json()
    except ValueError as e:
        raise OAuthExchangeFailedError() from e
    if not isinstance(payload, expected):
        logger.warning(
            "Unexpected %s payload from %s", type(payload).__name__, response.request.url
        )
        raise OAuthExchangeFailedError()
    return payload


class GitHubProvider:
    """GitHub OAuth app client."""

    id = "github"
    AUTHORIZE_URL = "https://github.com/login/oauth/authorize"
    TOKEN_URL = "https://github.com/login/oauth/access_token"
    API_URL = "https://api.github.com"
    SCOPES = ("read:user", "user:email")

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self._http_client = http_client
        self.timeout = timeout

    def authorization_url(self, state: str, redirect_uri: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": redirect_uri,
            "scope": " ".join(self.SCOPES),
            "state": state,
            "allow_signup": "true",
        }
        return f"{self.AUTHORIZE_URL}?{urlencode(params)}"

    def _client(self) -> httpx.AsyncClient:
        if self._http_client is not None:
            return self._http_client
        return httpx.AsyncClient(timeout=self.timeout)

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        client = self._client()
        try:
            response = await client.request(method, url, **kwargs)
            response.raise_for_status()
            return response
        except httpx.HTTPError as e:
            logger.warning("GitHub request to %s failed: %s", url, e)
            raise OAuthExchangeFailedError() from e
        finally:
            if client is not self._http_client:
                await client.aclose()

    async def exchange_code(self, code: str, redirect_uri: str) -> OAuthTokens:
        response = await self._request(
            "POST",
            self.TOKEN_URL,
            data={
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "code": code,
                "redirect_uri": redirect_uri,
            },
            headers={"Accept": "application/json"},
        )
        payload = _json(response, dict)
        # GitHub reports bad codes as 200 with an "error" field.
        if "error" in payload or "access_token" not in payload:
            logger.warning("GitHub code exchange rejected: %s", payload.get("error", "no access_token"))
            raise OAuthExchangeFailedError(payload.get("error_description") or None)
        return OAuthTokens(
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token"),
            access_token_expires_at=_expiry(payload.get("expires_in")),
            refresh_token_expires_at=_expiry(payload.get("refresh_token_expires_in")),
            scope=payload.get("scope"),
        )

    async def fetch_profile(self, tokens: OAuthTokens) -> ProviderProfile:
        headers = {
            "Authorization": f"Bearer {tokens.access_token}",
            "Accept": "application/vnd.github+json",
        }
        user = _json(await self._request("GET", f"{self.API_URL}/user", headers=headers), dict)

        email = user.get("email")
        verified = False
        # A private primary email is only visible through /user/emails.
        emails = _json(await self._request("GET", f"{self.API_URL}/user/emails", headers=headers), list)
        primary = next((e for e in emails if isinstance(e, dict) and e.get("primary")), None)
        if primary is not None:
            email = email or primary.get("email")
            verified = bool(primary.get("verified")) and primary.get("email") == email

        try:
            account_id = str(user["id"])
        except KeyError as e:
            raise OAuthExchangeFailedError() from e
        return ProviderProfile(
            provider_account_id=account_id,
            email=email,
            name=user.get("name") or user.get("login"),
            avatar_url=user.get("avatar_url"),
            email_verified=verified,
        )


def build_providers(config: AuthConfig) -> dict[str, OAuthProvider]:
    """Instantiate the providers that have credentials configured."""
    providers: dict[str, OAuthProvider] = {}
    github = config.providers.get("github")
    if github is not None:
        providers["github"] = GitHubProvider(github.client_id, github.client_secret)
    return providers
