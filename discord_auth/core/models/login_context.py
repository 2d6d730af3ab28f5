"""Canonical description of one Discord login attempt."""

from pydantic import BaseModel, Field, SecretStr, field_validator

from discord_auth.core.models.claims import Claim


class LoginContext(BaseModel):
    """Claims and token produced by a verified Discord login.

    ``discord_id``, ``username``, ``email`` and the token must be non-empty; a
    context without them is a programming error on the caller's side and fails
    validation.
    """

    discord_id: str = Field(description="Stable Discord user id (snowflake)")
    email: str = Field(description="Email address, used to find the local account")
    username: str = Field(description="Discord username, display only")
    avatar_url: str | None = Field(default=None, description="Avatar CDN URL")
    locale: str | None = Field(default=None, description="Discord locale, e.g. en-US")
    verified: bool | None = Field(default=None, description="Discord email verified flag")
    access_token: SecretStr = Field(description="Discord OAuth2 access token")
    original_claims: list[Claim] = Field(
        default_factory=list, description="Every claim of the external principal"
    )

    @field_validator("discord_id", "username", "email", "access_token")
    @classmethod
    def _require_value(cls, value):
        raw = value.get_secret_value() if isinstance(value, SecretStr) else value
        if not raw or not raw.strip():
            raise ValueError("must not be empty")
        return value

    def first_claim_value(self, claim_type: str) -> str | None:
        """Value of the first original claim of ``claim_type``."""
        return next(
            (claim.value for claim in self.original_claims if claim.type == claim_type),
            None,
        )
