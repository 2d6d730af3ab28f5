"""Discord OAuth2 authorization code flow with PKCE."""

import time
from urllib.parse import urlencode

import httpx
from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from discord_auth.core.constants import (
    ACCESS_TOKEN_NAME,
    CLAIM_DISCORD_AVATAR_URL,
    CLAIM_DISCORD_GLOBAL_NAME,
    CLAIM_DISCORD_LOCALE,
    CLAIM_DISCORD_VERIFIED,
    CLAIM_EMAIL,
    CLAIM_NAME,
    CLAIM_NAME_IDENTIFIER,
    EXTERNAL_AUTHENTICATION_TYPE,
)
from discord_auth.core.models.claims import ClaimsPrincipal
from discord_auth.core.models.discord import DiscordUser
from discord_auth.core.services.discord.api_client import DiscordApiClient
from discord_auth.runtime.config.config_data import DiscordConfig


class OAuthError(Exception):
    """Raised when the code exchange or the profile lookup fails."""


class TokenResponse(BaseModel):
    """Discord token endpoint response."""

    access_token: str = Field(repr=False)
    token_type: str = "Bearer"
    expires_in: int = 0
    refresh_token: str | None = Field(default=None, repr=False)
    scope: str = ""

    @property
    def expires_at(self) -> int:
        """Calculate absolute expiry timestamp."""
        return int(time.time()) + self.expires_in


def map_user_claims(user: DiscordUser) -> ClaimsPrincipal:
    """Map the ``users/@me`` payload onto the external principal's claims.

    Optional fields that Discord leaves out produce no claim.
    """
    return ClaimsPrincipal.from_pairs(
        EXTERNAL_AUTHENTICATION_TYPE,
        [
            (CLAIM_NAME_IDENTIFIER, user.id),
            (CLAIM_NAME, user.username),
            (CLAIM_EMAIL, user.email),
            (CLAIM_DISCORD_GLOBAL_NAME, user.global_name),
            (CLAIM_DISCORD_LOCALE, user.locale),
            (CLAIM_DISCORD_VERIFIED, "true" if user.verified else "false"),
            (CLAIM_DISCORD_AVATAR_URL, user.avatar_url),
        ],
    )


class DiscordOAuthClientService:
    """Talks to Discord's authorize and token endpoints."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_client: DiscordApiClient,
        config: DiscordConfig,
        redirect_uri: str,
    ) -> None:
        self._http = http_client
        self._api = api_client
        self._config = config
        self._redirect_uri = redirect_uri

    @property
    def redirect_uri(self) -> str:
        return self._redirect_uri

    def build_authorization_url(self, state: str, code_challenge: str | None = None) -> str:
        """URL of Discord's consent screen for this application."""
        params = {
            "response_type": "code",
            "client_id": self._config.client_id,
            "redirect_uri": self._redirect_uri,
            "scope": " ".join(self._config.scopes),
            "state": state,
        }
        if code_challenge:
            params["code_challenge"] = code_challenge
            params["code_challenge_method"] = "S256"
        return f"{self._config.authorization_endpoint}?{urlencode(params)}"

    async def exchange_code_for_tokens(
        self, code: str, code_verifier: str | None = None
    ) -> TokenResponse:
        """Exchange an authorization code for tokens.

        Raises:
            OAuthError: If Discord rejects the exchange or answers garbage.
        """
        token_data = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self._redirect_uri,
        }
        if code_verifier:
            token_data["code_verifier"] = code_verifier

        try:
            response = await self._http.post(
                self._config.token_endpoint,
                data=token_data,
                auth=(self._config.client_id, self._config.client_secret),
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as e:
            logger.error("Discord token exchange failed: {}", e)
            raise OAuthError("Token exchange failed") from e

        if not response.is_success:
            logger.error(
                "Discord token exchange rejected: {} {}", response.status_code, response.text
            )
            raise OAuthError(f"Token exchange rejected with status {response.status_code}")

        try:
            return TokenResponse.model_validate_json(response.content)
        except ValidationError as e:
            logger.error("Discord token response could not be parsed")
            raise OAuthError("Malformed token response") from e

    async def authenticate(
        self, code: str, code_verifier: str | None = None
    ) -> tuple[ClaimsPrincipal, dict[str, str]]:
        """Run the code exchange and build the external principal.

        Returns:
            The external principal and the tokens to keep with it
        """
        tokens = await self.exchange_code_for_tokens(code, code_verifier)

        user = await self._api.get_user(tokens.access_token)
        if user is None:
            raise OAuthError("Discord user profile could not be retrieved")

        logger.info("Discord sign-in for user {}", user.id)
        return map_user_claims(user), {ACCESS_TOKEN_NAME: tokens.access_token}
