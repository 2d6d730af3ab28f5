"""Maps a verified Discord login onto a local account."""

from abc import ABC, abstractmethod
from collections.abc import Callable

from loguru import logger

from discord_auth.core.constants import (
    ACCESS_TOKEN_NAME,
    CLAIM_DISCORD_AVATAR_URL,
    CLAIM_DISCORD_GLOBAL_NAME,
    PROVIDER_DISPLAY_NAME,
    PROVIDER_NAME,
)
from discord_auth.core.models.claims import Claim, ClaimsPrincipal
from discord_auth.core.models.login_context import LoginContext
from discord_auth.core.models.result import DUPLICATE_EMAIL, StoreError, StoreResult
from discord_auth.core.services.account.account_store import AccountStore
from discord_auth.core.services.account.principal_factory import AccountPrincipalFactory
from discord_auth.entities.core.account import Account


class ReconciliationError(Exception):
    """A store operation failed while reconciling a login."""

    def __init__(self, step: str, errors: list[StoreError]) -> None:
        self.step = step
        self.errors = errors
        detail = "; ".join(f"{e.code}: {e.description}" for e in errors) or "unknown error"
        super().__init__(f"Reconciliation failed at '{step}': {detail}")


class AccountConflictError(ReconciliationError):
    """Another login created an account for the same email first."""


class DiscordAuthHandler(ABC):
    """Application hook that turns a Discord login into a local principal."""

    @abstractmethod
    async def on_discord_login(self, context: LoginContext) -> ClaimsPrincipal:
        """Return the principal to sign in for ``context``."""


# Claims copied from Discord on every login, with how each value is read
SYNCED_CLAIMS: dict[str, Callable[[LoginContext], str | None]] = {
    CLAIM_DISCORD_AVATAR_URL: lambda context: context.avatar_url,
    CLAIM_DISCORD_GLOBAL_NAME: lambda context: context.first_claim_value(
        CLAIM_DISCORD_GLOBAL_NAME
    ),
}


class IdentityReconciler(DiscordAuthHandler):
    """Find-or-create the account by email, link Discord, store the token, sync claims."""

    def __init__(
        self,
        account_store: AccountStore,
        principal_factory: AccountPrincipalFactory,
        synced_claims: dict[str, Callable[[LoginContext], str | None]] | None = None,
    ) -> None:
        self._store = account_store
        self._principal_factory = principal_factory
        self._synced_claims = SYNCED_CLAIMS if synced_claims is None else synced_claims

    async def on_discord_login(self, context: LoginContext) -> ClaimsPrincipal:
        return await self.reconcile(context)

    async def reconcile(self, context: LoginContext) -> ClaimsPrincipal:
        """Reconcile one Discord login with the account store.

        Raises:
            AccountConflictError: If the account was created concurrently.
            ReconciliationError: If any other store operation fails.
        """
        account = await self._find_or_create_account(context.email)
        await self._link_login(account, context.discord_id)

        self._ensure(
            await self._store.set_authentication_token(
                account,
                PROVIDER_NAME,
                ACCESS_TOKEN_NAME,
                context.access_token.get_secret_value(),
            ),
            "set_token",
        )

        await self._sync_claims(account, context)

        logger.info("Discord user {} reconciled with account {}", context.discord_id, account.id)
        return await self._principal_factory.create(account)

    async def _find_or_create_account(self, email: str) -> Account:
        account = await self._store.find_by_email(email)
        if account is not None:
            return account

        account = Account(user_name=email, email=email, email_confirmed=True)
        result = await self._store.create(account)
        if result.has_error(DUPLICATE_EMAIL):
            raise AccountConflictError("create_account", result.errors)
        self._ensure(result, "create_account")

        logger.info("Created account {} for a first Discord login", account.id)
        return account

    async def _link_login(self, account: Account, discord_id: str) -> None:
        logins = await self._store.get_logins(account)
        existing = next((login for login in logins if login.provider == PROVIDER_NAME), None)

        if existing is None:
            self._ensure(
                await self._store.add_login(
                    account, PROVIDER_NAME, discord_id, PROVIDER_DISPLAY_NAME
                ),
                "add_login",
            )
        elif existing.provider_key != discord_id:
            logger.warning(
                "Account {} is linked to Discord user {}, login came from {}",
                account.id,
                existing.provider_key,
                discord_id,
            )

    async def _sync_claims(self, account: Account, context: LoginContext) -> None:
        current = await self._store.get_claims(account)

        for claim_type, extract in self._synced_claims.items():
            candidate = extract(context)
            if not candidate:
                continue

            existing = next((c for c in current if c.type == claim_type), None)
            if existing is not None and existing.value == candidate:
                continue

            if existing is not None:
                self._ensure(await self._store.remove_claim(account, existing), "remove_claim")
            self._ensure(
                await self._store.add_claim(account, Claim(type=claim_type, value=candidate)),
                "add_claim",
            )

    @staticmethod
    def _ensure(result: StoreResult, step: str) -> None:
        if not result.succeeded:
            logger.error("Account store step {} failed: {}", step, result)
            raise ReconciliationError(step, result.errors)
