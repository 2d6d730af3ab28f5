"""Account store database table models."""

from sqlalchemy import Boolean, Column, String, Text, UniqueConstraint
from sqlmodel import Field

from discord_auth.entities._base import EntityTable


class AccountTable(EntityTable, table=True):
    """Database persistence model for local accounts."""

    user_name: str = Field(sa_column=Column(String(256), nullable=False))
    email: str = Field(sa_column=Column(String(256), nullable=False))
    normalized_email: str = Field(
        sa_column=Column(String(256), nullable=False, unique=True, index=True)
    )
    email_confirmed: bool = Field(
        default=False, sa_column=Column(Boolean, nullable=False, default=False)
    )


class AccountLoginTable(EntityTable, table=True):
    """Database persistence model for external logins.

    An account has at most one login per provider, and a provider identity
    belongs to at most one account.
    """

    __table_args__ = (
        UniqueConstraint("provider", "provider_key", name="uq_login_provider_key"),
        UniqueConstraint("account_id", "provider", name="uq_login_account_provider"),
    )

    account_id: str = Field(foreign_key="accounttable.id", index=True)
    provider: str = Field(sa_column=Column(String(128), nullable=False))
    provider_key: str = Field(sa_column=Column(String(256), nullable=False))
    provider_display_name: str | None = Field(
        default=None, sa_column=Column(String(256), nullable=True)
    )


class AccountClaimTable(EntityTable, table=True):
    """Database persistence model for account claims."""

    account_id: str = Field(foreign_key="accounttable.id", index=True)
    claim_type: str = Field(sa_column=Column(String(256), nullable=False, index=True))
    claim_value: str = Field(sa_column=Column(Text, nullable=False))


class AccountTokenTable(EntityTable, table=True):
    """Database persistence model for stored provider tokens."""

    __table_args__ = (
        UniqueConstraint("account_id", "provider", "name", name="uq_token_account_provider_name"),
    )

    account_id: str = Field(foreign_key="accounttable.id", index=True)
    provider: str = Field(sa_column=Column(String(128), nullable=False))
    name: str = Field(sa_column=Column(String(128), nullable=False))
    value: str = Field(sa_column=Column(Text, nullable=False))
