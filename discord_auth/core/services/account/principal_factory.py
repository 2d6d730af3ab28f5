"""Builds the local principal for an account."""

from discord_auth.core.constants import (
    APPLICATION_AUTHENTICATION_TYPE,
    CLAIM_EMAIL,
    CLAIM_NAME,
    CLAIM_NAME_IDENTIFIER,
)
from discord_auth.core.models.claims import ClaimsPrincipal
from discord_auth.core.services.account.account_store import AccountStore
from discord_auth.entities.core.account import Account


class AccountPrincipalFactory:
    """Creates the principal a local session is issued for."""

    def __init__(self, account_store: AccountStore) -> None:
        self._store = account_store

    async def create(self, account: Account) -> ClaimsPrincipal:
        """Standard identity claims followed by the account's stored claims."""
        principal = ClaimsPrincipal.from_pairs(
            APPLICATION_AUTHENTICATION_TYPE,
            [
                (CLAIM_NAME_IDENTIFIER, account.id),
                (CLAIM_NAME, account.user_name),
                (CLAIM_EMAIL, account.email),
            ],
        )
        principal.claims.extend(await self._store.get_claims(account))
        return principal
