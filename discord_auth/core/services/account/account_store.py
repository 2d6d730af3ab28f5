"""Account store: find-or-create accounts and manage their logins, claims and tokens."""

from collections.abc import Callable

from loguru import logger
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session

from discord_auth.core.models.claims import Claim
from discord_auth.core.models.result import (
    DUPLICATE_EMAIL,
    DUPLICATE_LOGIN,
    DUPLICATE_TOKEN,
    STORE_FAILURE,
    StoreResult,
)
from discord_auth.entities.core.account import (
    Account,
    AccountLogin,
    AccountRepository,
)


class AccountStore:
    """Account persistence with result-based error reporting.

    Every mutation commits on its own and returns a ``StoreResult``. Constraint
    violations and database errors are reported as failed results so that the
    caller decides how to react.
    """

    def __init__(self, session: Session) -> None:
        self._session = session
        self._repository = AccountRepository(session)

    async def find_by_email(self, email: str) -> Account | None:
        return self._repository.get_by_email(email)

    async def create(self, account: Account) -> StoreResult:
        if self._repository.get_by_email(account.email) is not None:
            return StoreResult.failed(
                DUPLICATE_EMAIL, f"Email '{account.email}' is already taken."
            )
        return self._commit(
            lambda: self._repository.add(account),
            DUPLICATE_EMAIL,
            f"Email '{account.email}' is already taken.",
        )

    async def get_logins(self, account: Account) -> list[AccountLogin]:
        return self._repository.list_logins(account.id)

    async def add_login(
        self,
        account: Account,
        provider: str,
        provider_key: str,
        provider_display_name: str | None = None,
    ) -> StoreResult:
        existing = self._repository.get_login(provider, provider_key)
        if existing is not None:
            return StoreResult.failed(
                DUPLICATE_LOGIN, f"A user with this {provider} login already exists."
            )
        login = AccountLogin(
            account_id=account.id,
            provider=provider,
            provider_key=provider_key,
            provider_display_name=provider_display_name,
        )
        return self._commit(
            lambda: self._repository.add_login(login),
            DUPLICATE_LOGIN,
            f"Account already has a {provider} login.",
        )

    async def get_claims(self, account: Account) -> list[Claim]:
        return self._repository.list_claims(account.id)

    async def add_claim(self, account: Account, claim: Claim) -> StoreResult:
        return self._commit(
            lambda: self._repository.add_claim(account.id, claim),
            STORE_FAILURE,
            f"Could not add claim '{claim.type}'.",
        )

    async def remove_claim(self, account: Account, claim: Claim) -> StoreResult:
        return self._commit(
            lambda: self._repository.remove_claim(account.id, claim),
            STORE_FAILURE,
            f"Could not remove claim '{claim.type}'.",
        )

    async def set_authentication_token(
        self, account: Account, provider: str, name: str, value: str
    ) -> StoreResult:
        return self._commit(
            lambda: self._repository.set_token(account.id, provider, name, value),
            DUPLICATE_TOKEN,
            f"Token '{name}' for {provider} was written concurrently.",
        )

    async def get_authentication_token(
        self, account_id: str, provider: str, name: str
    ) -> str | None:
        token = self._repository.get_token(account_id, provider, name)
        return token.value if token else None

    def _commit(
        self, operation: Callable[[], object], conflict_code: str, conflict_message: str
    ) -> StoreResult:
        try:
            operation()
            self._session.commit()
        except IntegrityError as e:
            self._session.rollback()
            logger.warning("Account store constraint violation: {}", e.orig)
            return StoreResult.failed(conflict_code, conflict_message)
        except SQLAlchemyError as e:
            self._session.rollback()
            # str(e) embeds the statement's bound parameters, tokens included
            detail = f"{type(e).__name__}: {getattr(e, 'orig', None) or 'database error'}"
            logger.error("Account store operation failed: {}", detail)
            return StoreResult.failed(STORE_FAILURE, detail)
        return StoreResult.success()
