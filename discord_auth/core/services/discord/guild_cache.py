"""Short-lived read-through cache for a user's guild list."""

import hashlib
import threading
import time
from collections.abc import Awaitable, Callable

from cachetools import TTLCache
from loguru import logger

from discord_auth.core.models.discord import DiscordGuild

KEY_PREFIX = "discord_guilds_"


def guild_cache_key(access_token: str) -> str:
    """Cache key derived from a digest of the access token."""
    digest = hashlib.sha256(access_token.encode("utf-8")).hexdigest()
    return f"{KEY_PREFIX}{digest[:16]}"


class GuildCache:
    """In-process TTL cache keyed per access token identity.

    Concurrent misses for the same key may both fetch; the last write wins.
    """

    def __init__(
        self,
        ttl_seconds: int = 120,
        max_entries: int = 1024,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._cache: TTLCache[str, list[DiscordGuild]] = TTLCache(
            maxsize=max_entries, ttl=ttl_seconds, timer=timer
        )
        self._lock = threading.Lock()

    def get(self, access_token: str) -> list[DiscordGuild] | None:
        with self._lock:
            return self._cache.get(guild_cache_key(access_token))

    def set(self, access_token: str, guilds: list[DiscordGuild]) -> None:
        with self._lock:
            self._cache[guild_cache_key(access_token)] = guilds

    def invalidate(self, access_token: str) -> None:
        with self._lock:
            self._cache.pop(guild_cache_key(access_token), None)

    async def get_or_fetch(
        self,
        access_token: str,
        fetch: Callable[[], Awaitable[list[DiscordGuild] | None]],
    ) -> list[DiscordGuild] | None:
        """Return the cached list, or fetch, store and return a fresh one.

        A ``None`` fetch result is returned as-is and not cached.
        """
        cached = self.get(access_token)
        if cached is not None:
            logger.debug("Guild cache hit for {}", guild_cache_key(access_token))
            return cached

        guilds = await fetch()
        if guilds is not None:
            self.set(access_token, guilds)
        return guilds

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
