"""Tests for the guild list cache."""

from unittest.mock import AsyncMock

import pytest

from discord_auth.core.models.discord import DiscordGuild
from discord_auth.core.services.discord.guild_cache import GuildCache, guild_cache_key


class FakeTimer:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestGuildCacheKey:
    def test_key_shape(self):
        key = guild_cache_key("token")

        assert key.startswith("discord_guilds_")
        assert len(key) == len("discord_guilds_") + 16

    def test_key_hides_token(self):
        assert "secret-token" not in guild_cache_key("secret-token")

    def test_distinct_tokens_get_distinct_keys(self):
        assert guild_cache_key("a") != guild_cache_key("b")


class TestGuildCache:
    """Test TTL behavior and read-through fetching."""

    def setup_method(self):
        self.timer = FakeTimer()
        self.cache = GuildCache(ttl_seconds=120, max_entries=10, timer=self.timer)
        self.guilds = [DiscordGuild(id="1", name="one")]

    def test_set_and_get(self):
        self.cache.set("tok", self.guilds)

        assert self.cache.get("tok") == self.guilds
        assert self.cache.get("other") is None

    def test_entry_expires_after_ttl(self):
        self.cache.set("tok", self.guilds)

        self.timer.now = 119
        assert self.cache.get("tok") == self.guilds

        self.timer.now = 121
        assert self.cache.get("tok") is None

    def test_invalidate(self):
        self.cache.set("tok", self.guilds)
        self.cache.invalidate("tok")

        assert self.cache.get("tok") is None
        assert len(self.cache) == 0

    @pytest.mark.asyncio
    async def test_get_or_fetch_caches_result(self):
        fetch = AsyncMock(return_value=self.guilds)

        first = await self.cache.get_or_fetch("tok", fetch)
        second = await self.cache.get_or_fetch("tok", fetch)

        assert first == second == self.guilds
        fetch.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_fetch_is_not_cached(self):
        fetch = AsyncMock(side_effect=[None, self.guilds])

        assert await self.cache.get_or_fetch("tok", fetch) is None
        assert await self.cache.get_or_fetch("tok", fetch) == self.guilds
        assert fetch.await_count == 2

    @pytest.mark.asyncio
    async def test_empty_list_is_cached(self):
        fetch = AsyncMock(return_value=[])

        await self.cache.get_or_fetch("tok", fetch)
        await self.cache.get_or_fetch("tok", fetch)

        fetch.assert_awaited_once()
