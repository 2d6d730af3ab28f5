from discord_auth.api.http.routers.discord_api import router as discord_api_router
from discord_auth.api.http.routers.discord_auth import create_discord_auth_router
from discord_auth.api.http.routers.health import router as health_router

__all__ = ["create_discord_auth_router", "discord_api_router", "health_router"]
