"""Account repository for data access operations."""

from sqlmodel import Session, select

from discord_auth.core.models.claims import Claim
from discord_auth.entities.core.account.entity import (
    Account,
    AccountLogin,
    AccountToken,
    normalize_email,
)
from discord_auth.entities.core.account.table import (
    AccountClaimTable,
    AccountLoginTable,
    AccountTable,
    AccountTokenTable,
)


class AccountRepository:
    """Data-access layer for accounts and their logins, claims and tokens.

    The repository never commits; transaction boundaries belong to the caller.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_email(self, email: str) -> Account | None:
        statement = select(AccountTable).where(
            AccountTable.normalized_email == normalize_email(email)
        )
        row = self._session.exec(statement).first()
        if row is None:
            return None
        return Account.model_validate(row, from_attributes=True)

    def add(self, account: Account) -> None:
        self._session.add(AccountTable.model_validate(account.model_dump()))

    def list_logins(self, account_id: str) -> list[AccountLogin]:
        statement = select(AccountLoginTable).where(
            AccountLoginTable.account_id == account_id
        )
        return [
            AccountLogin.model_validate(row, from_attributes=True)
            for row in self._session.exec(statement)
        ]

    def get_login(self, provider: str, provider_key: str) -> AccountLogin | None:
        statement = select(AccountLoginTable).where(
            (AccountLoginTable.provider == provider)
            & (AccountLoginTable.provider_key == provider_key)
        )
        row = self._session.exec(statement).first()
        if row is None:
            return None
        return AccountLogin.model_validate(row, from_attributes=True)

    def add_login(self, login: AccountLogin) -> None:
        self._session.add(AccountLoginTable.model_validate(login.model_dump()))

    def list_claims(self, account_id: str) -> list[Claim]:
        statement = (
            select(AccountClaimTable)
            .where(AccountClaimTable.account_id == account_id)
            .order_by(AccountClaimTable.created_at)
        )
        return [
            Claim(type=row.claim_type, value=row.claim_value)
            for row in self._session.exec(statement)
        ]

    def add_claim(self, account_id: str, claim: Claim) -> None:
        self._session.add(
            AccountClaimTable(
                account_id=account_id, claim_type=claim.type, claim_value=claim.value
            )
        )

    def remove_claim(self, account_id: str, claim: Claim) -> int:
        """Delete every row matching ``claim`` exactly; returns the number removed."""
        statement = select(AccountClaimTable).where(
            (AccountClaimTable.account_id == account_id)
            & (AccountClaimTable.claim_type == claim.type)
            & (AccountClaimTable.claim_value == claim.value)
        )
        rows = list(self._session.exec(statement))
        for row in rows:
            self._session.delete(row)
        return len(rows)

    def get_token(self, account_id: str, provider: str, name: str) -> AccountToken | None:
        row = self._get_token_row(account_id, provider, name)
        if row is None:
            return None
        return AccountToken.model_validate(row, from_attributes=True)

    def set_token(self, account_id: str, provider: str, name: str, value: str) -> None:
        """Insert or overwrite the token identified by (account, provider, name)."""
        row = self._get_token_row(account_id, provider, name)
        if row is None:
            row = AccountTokenTable(
                account_id=account_id, provider=provider, name=name, value=value
            )
        else:
            row.value = value
        self._session.add(row)

    def _get_token_row(
        self, account_id: str, provider: str, name: str
    ) -> AccountTokenTable | None:
        statement = select(AccountTokenTable).where(
            (AccountTokenTable.account_id == account_id)
            & (AccountTokenTable.provider == provider)
            & (AccountTokenTable.name == name)
        )
        return self._session.exec(statement).first()
