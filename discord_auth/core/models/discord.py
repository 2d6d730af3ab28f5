"""Discord REST API payload models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

CDN_BASE_URL = "https://cdn.discordapp.com"


def _snowflake_to_str(value: Any) -> Any:
    # Discord sends ids and permission bitsets as strings, some proxies as numbers
    if isinstance(value, bool):
        raise ValueError("expected a string or an integer")
    if isinstance(value, int):
        return str(value)
    return value


def _asset_extension(asset_hash: str) -> str:
    return "gif" if asset_hash.startswith("a_") else "png"


def build_avatar_url(user_id: str, avatar_hash: str | None) -> str | None:
    """CDN URL of a user's avatar, or None when the user has no custom avatar."""
    if not avatar_hash:
        return None
    return f"{CDN_BASE_URL}/avatars/{user_id}/{avatar_hash}.{_asset_extension(avatar_hash)}"


class DiscordUser(BaseModel):
    """The authenticated user, as returned by ``GET users/@me``."""

    model_config = ConfigDict(extra="ignore")

    id: str
    username: str
    global_name: str | None = None
    email: str | None = None
    avatar: str | None = None
    locale: str | None = None
    verified: bool = False

    _normalize_id = field_validator("id", mode="before")(_snowflake_to_str)

    @computed_field
    @property
    def avatar_url(self) -> str | None:
        return build_avatar_url(self.id, self.avatar)


class DiscordGuild(BaseModel):
    """A partial guild, as returned by ``GET users/@me/guilds``."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    icon: str | None = None
    owner: bool = False
    permissions: str | None = None
    features: list[str] = Field(default_factory=list)

    _normalize_ids = field_validator("id", "permissions", mode="before")(
        _snowflake_to_str
    )

    def icon_url(self) -> str:
        """CDN URL of the guild icon, or an empty string when there is none."""
        if not self.icon:
            return ""
        return f"{CDN_BASE_URL}/icons/{self.id}/{self.icon}.{_asset_extension(self.icon)}"
