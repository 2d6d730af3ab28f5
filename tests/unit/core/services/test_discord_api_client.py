"""Tests for the Discord REST API client."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest
from pydantic import ValidationError

from discord_auth.core.models.discord import DiscordGuild, DiscordUser
from discord_auth.core.services.discord.api_client import DiscordApiClient, _adapter_for
from tests.fixtures.discord import ACCESS_TOKEN

USER_PATH = "/api/users/@me"
GUILDS_PATH = "/api/users/@me/guilds"


@pytest.fixture
def mock_sleep():
    with patch(
        "discord_auth.core.services.discord.api_client.asyncio.sleep", new_callable=AsyncMock
    ) as sleep:
        yield sleep


class TestExecute:
    """Test request building and status handling."""

    @pytest.mark.asyncio
    async def test_sends_bearer_token_and_user_agent(
        self, api_client, discord_stub, discord_user_payload, test_config
    ):
        discord_stub.add("GET", USER_PATH, httpx.Response(200, json=discord_user_payload))

        await api_client.execute(ACCESS_TOKEN, "users/@me", DiscordUser)

        request = discord_stub.requests[0]
        assert request.headers["Authorization"] == f"Bearer {ACCESS_TOKEN}"
        assert request.headers["User-Agent"] == test_config.discord.user_agent

    @pytest.mark.asyncio
    async def test_leading_slash_is_ignored(self, api_client, discord_stub, discord_user_payload):
        discord_stub.add("GET", USER_PATH, httpx.Response(200, json=discord_user_payload))

        user = await api_client.execute(ACCESS_TOKEN, "/users/@me", DiscordUser)

        assert user.id == discord_user_payload["id"]
        assert discord_stub.requests[0].url.path == USER_PATH

    @pytest.mark.asyncio
    async def test_raw_string_response(self, api_client, discord_stub):
        discord_stub.add("GET", USER_PATH, httpx.Response(200, text='{"id": "1"}'))

        assert await api_client.execute(ACCESS_TOKEN, "users/@me", str) == '{"id": "1"}'

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [401, 403, 404, 500, 503])
    async def test_error_status_returns_none(self, api_client, discord_stub, status_code):
        discord_stub.add("GET", USER_PATH, httpx.Response(status_code, json={"message": "no"}))

        assert await api_client.get_user(ACCESS_TOKEN) is None
        assert len(discord_stub.requests) == 1

    @pytest.mark.asyncio
    async def test_transport_error_is_raised(self, test_config, guild_cache):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        http_client = httpx.AsyncClient(
            base_url=test_config.discord.api_base_url, transport=httpx.MockTransport(handler)
        )
        client = DiscordApiClient(http_client, guild_cache, test_config.discord)

        with pytest.raises(httpx.ConnectError):
            await client.get_user(ACCESS_TOKEN)

    @pytest.mark.asyncio
    async def test_malformed_body_is_raised(self, api_client, discord_stub):
        discord_stub.add("GET", USER_PATH, httpx.Response(200, json={"unexpected": True}))

        with pytest.raises(ValidationError):
            await api_client.get_user(ACCESS_TOKEN)


class TestRateLimiting:
    """Test the single bounded retry on 429."""

    @pytest.mark.asyncio
    async def test_short_retry_after_is_retried_once(
        self, api_client, discord_stub, discord_user_payload, mock_sleep
    ):
        discord_stub.add(
            "GET",
            USER_PATH,
            httpx.Response(429, headers={"Retry-After": "1"}),
            httpx.Response(200, json=discord_user_payload),
        )

        user = await api_client.get_user(ACCESS_TOKEN)

        assert user is not None
        assert len(discord_stub.requests) == 2
        mock_sleep.assert_awaited_once_with(1.5)

    @pytest.mark.asyncio
    async def test_second_429_gives_up(self, api_client, discord_stub, mock_sleep):
        discord_stub.add("GET", USER_PATH, httpx.Response(429, headers={"Retry-After": "1"}))

        assert await api_client.get_user(ACCESS_TOKEN) is None
        assert len(discord_stub.requests) == 2
        mock_sleep.assert_awaited_once()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("retry_after", ["3", "5", "10"])
    async def test_long_retry_after_is_not_retried(
        self, api_client, discord_stub, mock_sleep, retry_after
    ):
        discord_stub.add(
            "GET", USER_PATH, httpx.Response(429, headers={"Retry-After": retry_after})
        )

        assert await api_client.get_user(ACCESS_TOKEN) is None
        assert len(discord_stub.requests) == 1
        mock_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_retry_after_defaults_to_five_seconds(
        self, api_client, discord_stub, mock_sleep
    ):
        discord_stub.add("GET", USER_PATH, httpx.Response(429))

        assert await api_client.get_user(ACCESS_TOKEN) is None
        assert len(discord_stub.requests) == 1
        mock_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_fractional_retry_after(
        self, api_client, discord_stub, discord_user_payload, mock_sleep
    ):
        discord_stub.add(
            "GET",
            USER_PATH,
            httpx.Response(429, headers={"Retry-After": "0.25"}),
            httpx.Response(200, json=discord_user_payload),
        )

        assert await api_client.get_user(ACCESS_TOKEN) is not None
        mock_sleep.assert_awaited_once_with(0.75)


class TestGuildPagination:
    """Test walking users/@me/guilds."""

    @pytest.mark.asyncio
    async def test_walks_every_page(self, api_client, discord_stub, guild_factory):
        discord_stub.add(
            "GET",
            GUILDS_PATH,
            httpx.Response(200, json=guild_factory(200)),
            httpx.Response(200, json=guild_factory(200, start=200)),
            httpx.Response(200, json=guild_factory(47, start=400)),
        )

        guilds = await api_client.fetch_all_guilds(ACCESS_TOKEN)

        assert len(guilds) == 447
        assert len(discord_stub.requests) == 3
        params = [r.url.params for r in discord_stub.requests]
        assert params[0]["limit"] == "200"
        assert "after" not in params[0]
        assert params[1]["after"] == "100199"
        assert params[2]["after"] == "100399"

    @pytest.mark.asyncio
    async def test_pages_share_one_validator(self, api_client, discord_stub, guild_factory):
        discord_stub.add(
            "GET",
            GUILDS_PATH,
            httpx.Response(200, json=guild_factory(200)),
            httpx.Response(200, json=guild_factory(200, start=200)),
            httpx.Response(200, json=guild_factory(47, start=400)),
        )
        _adapter_for.cache_clear()

        await api_client.fetch_all_guilds(ACCESS_TOKEN)

        info = _adapter_for.cache_info()
        assert info.misses == 1
        assert info.hits == 2

    @pytest.mark.asyncio
    async def test_short_first_page_is_the_only_call(
        self, api_client, discord_stub, guild_factory
    ):
        discord_stub.add("GET", GUILDS_PATH, httpx.Response(200, json=guild_factory(12)))

        guilds = await api_client.fetch_all_guilds(ACCESS_TOKEN)

        assert len(guilds) == 12
        assert len(discord_stub.requests) == 1

    @pytest.mark.asyncio
    async def test_exactly_one_full_page_asks_once_more(
        self, api_client, discord_stub, guild_factory
    ):
        discord_stub.add(
            "GET",
            GUILDS_PATH,
            httpx.Response(200, json=guild_factory(200)),
            httpx.Response(200, json=[]),
        )

        guilds = await api_client.fetch_all_guilds(ACCESS_TOKEN)

        assert len(guilds) == 200
        assert len(discord_stub.requests) == 2

    @pytest.mark.asyncio
    async def test_first_page_failure_returns_none(self, api_client, discord_stub):
        discord_stub.add("GET", GUILDS_PATH, httpx.Response(500))

        assert await api_client.fetch_all_guilds(ACCESS_TOKEN) is None

    @pytest.mark.asyncio
    async def test_later_page_failure_returns_partial_list(
        self, api_client, discord_stub, guild_factory
    ):
        discord_stub.add(
            "GET",
            GUILDS_PATH,
            httpx.Response(200, json=guild_factory(200)),
            httpx.Response(403),
        )

        guilds = await api_client.fetch_all_guilds(ACCESS_TOKEN)
        assert len(guilds) == 200

    @pytest.mark.asyncio
    async def test_get_guilds_raw_returns_first_page_body(
        self, api_client, discord_stub, guild_factory
    ):
        discord_stub.add("GET", GUILDS_PATH, httpx.Response(200, json=guild_factory(2)))

        raw = await api_client.get_guilds_raw(ACCESS_TOKEN)

        assert '"Guild 0"' in raw
        assert discord_stub.requests[0].url.params["limit"] == "200"


class TestGetGuilds:
    """Test the cached guild lookup."""

    @pytest.mark.asyncio
    async def test_second_call_is_served_from_cache(
        self, api_client, discord_stub, guild_factory
    ):
        discord_stub.add("GET", GUILDS_PATH, httpx.Response(200, json=guild_factory(3)))

        first = await api_client.get_guilds(ACCESS_TOKEN)
        second = await api_client.get_guilds(ACCESS_TOKEN)

        assert first == second
        assert all(isinstance(g, DiscordGuild) for g in second)
        assert len(discord_stub.requests) == 1

    @pytest.mark.asyncio
    async def test_other_token_is_fetched_separately(
        self, api_client, discord_stub, guild_factory
    ):
        discord_stub.add("GET", GUILDS_PATH, httpx.Response(200, json=guild_factory(3)))

        await api_client.get_guilds(ACCESS_TOKEN)
        await api_client.get_guilds("another-token")

        assert len(discord_stub.requests) == 2

    @pytest.mark.asyncio
    async def test_failure_is_not_cached(self, api_client, discord_stub, guild_factory):
        discord_stub.add(
            "GET",
            GUILDS_PATH,
            httpx.Response(500),
            httpx.Response(200, json=guild_factory(1)),
        )

        assert await api_client.get_guilds(ACCESS_TOKEN) is None
        assert len(await api_client.get_guilds(ACCESS_TOKEN)) == 1
