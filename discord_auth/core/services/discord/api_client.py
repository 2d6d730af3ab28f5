"""Discord REST API client for calls made on behalf of a logged-in user."""

import asyncio
from functools import lru_cache
from typing import Any

import httpx
from loguru import logger
from pydantic import TypeAdapter, ValidationError

from discord_auth.core.constants import GUILD_PAGE_SIZE
from discord_auth.core.models.discord import DiscordGuild, DiscordUser
from discord_auth.core.services.discord.guild_cache import GuildCache
from discord_auth.runtime.config.config_data import DiscordConfig

DEFAULT_RETRY_AFTER_SECONDS = 5.0


def build_discord_http_client(config: DiscordConfig, **kwargs: Any) -> httpx.AsyncClient:
    """HTTP client preconfigured with the API base address and User-Agent."""
    base_url = config.api_base_url if config.api_base_url.endswith("/") else config.api_base_url + "/"
    return httpx.AsyncClient(
        base_url=base_url,
        headers={"User-Agent": config.user_agent},
        timeout=config.http_timeout_seconds,
        **kwargs,
    )


@lru_cache(maxsize=None)
def _adapter_for(response_type: Any) -> TypeAdapter:
    return TypeAdapter(response_type)


def _retry_after_seconds(response: httpx.Response) -> float:
    value = response.headers.get("Retry-After")
    if value is None:
        return DEFAULT_RETRY_AFTER_SECONDS
    try:
        return float(value)
    except ValueError:
        return DEFAULT_RETRY_AFTER_SECONDS


class DiscordApiClient:
    """Executes authorized requests against the Discord REST API.

    Recoverable failures (rate limiting, rejected tokens, other error statuses)
    yield ``None``. Transport and deserialization errors are logged and
    re-raised.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        guild_cache: GuildCache,
        config: DiscordConfig,
    ) -> None:
        self._http = http_client
        self._guild_cache = guild_cache
        self._max_wait = config.rate_limit_max_wait_seconds
        self._retry_buffer = config.rate_limit_retry_buffer_seconds

    async def execute(self, access_token: str, endpoint: str, response_type: Any) -> Any:
        """GET ``endpoint`` with the user's bearer token.

        Args:
            access_token: The user's Discord OAuth2 access token
            endpoint: Path relative to the API base; a leading ``/`` is ignored
            response_type: ``str`` for the raw body, otherwise any type a
                pydantic ``TypeAdapter`` accepts

        Returns:
            The decoded body, or None when Discord did not return a success
        """
        path = endpoint.lstrip("/")
        headers = {"Authorization": f"Bearer {access_token}"}
        retried = False

        try:
            while True:
                response = await self._http.get(path, headers=headers)

                if response.status_code == 429:
                    wait = _retry_after_seconds(response)
                    if wait < self._max_wait and not retried:
                        retried = True
                        logger.warning(
                            "Discord rate limit on {}, retrying in {:.2f}s", path, wait
                        )
                        await asyncio.sleep(wait + self._retry_buffer)
                        continue
                    logger.warning(
                        "Discord rate limit on {}, retry after {:.2f}s, giving up", path, wait
                    )
                    return None

                if response.status_code in (401, 403):
                    logger.warning(
                        "Discord rejected the access token for {}: {}",
                        path,
                        response.status_code,
                    )
                    return None

                if not response.is_success:
                    logger.error(
                        "Discord API error on {}: {} {}",
                        path,
                        response.status_code,
                        response.text,
                    )
                    return None

                if response_type is str:
                    return response.text
                return _adapter_for(response_type).validate_json(response.content)
        except (httpx.HTTPError, ValidationError):
            logger.exception("Discord API request to {} failed", path)
            raise

    async def get_user(self, access_token: str) -> DiscordUser | None:
        return await self.execute(access_token, "users/@me", DiscordUser)

    async def get_user_raw(self, access_token: str) -> str | None:
        return await self.execute(access_token, "users/@me", str)

    async def get_guilds_raw(self, access_token: str) -> str | None:
        """First page of the user's guilds as raw JSON."""
        return await self.execute(
            access_token, f"users/@me/guilds?limit={GUILD_PAGE_SIZE}", str
        )

    async def fetch_all_guilds(self, access_token: str) -> list[DiscordGuild] | None:
        """Walk every page of the user's guilds.

        Returns None when the first page fails. A failure on a later page ends
        the walk and returns the guilds collected so far.
        """
        guilds: list[DiscordGuild] = []
        after: str | None = None

        while True:
            endpoint = f"users/@me/guilds?limit={GUILD_PAGE_SIZE}"
            if after is not None:
                endpoint += f"&after={after}"

            batch = await self.execute(access_token, endpoint, list[DiscordGuild])
            if batch is None:
                if not guilds:
                    return None
                logger.warning(
                    "Guild pagination stopped early after {} guilds", len(guilds)
                )
                break

            guilds.extend(batch)
            if len(batch) < GUILD_PAGE_SIZE:
                break
            after = batch[-1].id

        return guilds

    async def get_guilds(self, access_token: str) -> list[DiscordGuild] | None:
        """All of the user's guilds, served from the guild cache when fresh."""
        return await self._guild_cache.get_or_fetch(
            access_token, lambda: self.fetch_all_guilds(access_token)
        )
