"""Discord data for the signed-in user, read with their stored access token."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status

from discord_auth.api.http.deps import (
    get_account_store,
    get_discord_api_client,
    require_user_session,
)
from discord_auth.core.constants import ACCESS_TOKEN_NAME, PROVIDER_NAME
from discord_auth.core.models.discord import DiscordUser
from discord_auth.core.models.session import UserSession
from discord_auth.core.services import AccountStore, DiscordApiClient

router = APIRouter(prefix="/discord", tags=["discord"])


async def get_discord_access_token(
    user_session: UserSession = Depends(require_user_session),
    account_store: AccountStore = Depends(get_account_store),
) -> str:
    """Access token stored for the session's account at its last Discord login."""
    token = await account_store.get_authentication_token(
        user_session.account_id, PROVIDER_NAME, ACCESS_TOKEN_NAME
    )
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="No Discord token for this account"
        )
    return token


@router.get("/user", response_model=DiscordUser)
async def get_user(
    access_token: str = Depends(get_discord_access_token),
    api_client: DiscordApiClient = Depends(get_discord_api_client),
) -> DiscordUser:
    user = await api_client.get_user(access_token)
    if user is None:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Discord user unavailable")
    return user


@router.get("/guilds")
async def get_guilds(
    access_token: str = Depends(get_discord_access_token),
    api_client: DiscordApiClient = Depends(get_discord_api_client),
) -> list[dict[str, Any]]:
    """Every guild of the user, cached briefly per token."""
    guilds = await api_client.get_guilds(access_token)
    if guilds is None:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Discord guilds unavailable")
    return [{**guild.model_dump(), "icon_url": guild.icon_url()} for guild in guilds]
