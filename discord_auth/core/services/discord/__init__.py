from discord_auth.core.services.discord.api_client import (
    DiscordApiClient,
    build_discord_http_client,
)
from discord_auth.core.services.discord.guild_cache import GuildCache, guild_cache_key
from discord_auth.core.services.discord.oauth_client import (
    DiscordOAuthClientService,
    OAuthError,
    TokenResponse,
    map_user_claims,
)

__all__ = [
    "DiscordApiClient",
    "DiscordOAuthClientService",
    "GuildCache",
    "OAuthError",
    "TokenResponse",
    "build_discord_http_client",
    "guild_cache_key",
    "map_user_claims",
]
