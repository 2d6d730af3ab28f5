"""Local account domain entities."""

from typing import Any

from pydantic import Field

from discord_auth.entities._base import Entity


def normalize_email(email: str) -> str:
    """Canonical form used for the unique email lookup."""
    return email.strip().lower()


class Account(Entity):
    """A local user account.

    Accounts are keyed by normalized email and are created lazily on the first
    external login with an unseen address.
    """

    user_name: str = Field(description="Login name, the email address on creation")
    email: str = Field(description="Email address as provided")
    normalized_email: str = Field(default="", description="Lookup key for email")
    email_confirmed: bool = Field(default=False, description="Email confirmed flag")

    def model_post_init(self, context: Any) -> None:
        if not self.normalized_email:
            self.normalized_email = normalize_email(self.email)


class AccountLogin(Entity):
    """Link between a local account and an external provider identity."""

    account_id: str = Field(description="Owning account ID")
    provider: str = Field(description="Login provider, e.g. discord")
    provider_key: str = Field(description="Stable user id at the provider")
    provider_display_name: str | None = Field(
        default=None, description="Human readable provider name"
    )


class AccountToken(Entity):
    """Authentication token stored for an account and provider."""

    account_id: str = Field(description="Owning account ID")
    provider: str = Field(description="Provider that issued the token")
    name: str = Field(description="Token name, e.g. access_token")
    value: str = Field(repr=False, description="Token value")
