"""Tests for reconciling Discord logins with local accounts."""

from unittest.mock import AsyncMock, patch

import pytest
from loguru import logger
from sqlalchemy import text

from discord_auth.core.constants import (
    CLAIM_DISCORD_AVATAR_URL,
    CLAIM_DISCORD_GLOBAL_NAME,
    CLAIM_NAME_IDENTIFIER,
)
from discord_auth.core.models.claims import Claim
from discord_auth.core.models.result import DUPLICATE_EMAIL, STORE_FAILURE, StoreResult
from discord_auth.core.services.login.identity_reconciler import (
    AccountConflictError,
    IdentityReconciler,
    ReconciliationError,
)
from discord_auth.entities.core.account import Account

AVATAR_V1 = "https://cdn.discordapp.com/avatars/1/v1.png"
AVATAR_V2 = "https://cdn.discordapp.com/avatars/1/v2.png"


def synced(claims):
    return {
        c.type: c.value
        for c in claims
        if c.type in (CLAIM_DISCORD_AVATAR_URL, CLAIM_DISCORD_GLOBAL_NAME)
    }


class TestFirstLogin:
    """Test a login from an unknown email."""

    @pytest.mark.asyncio
    async def test_creates_linked_account(
        self, identity_reconciler, account_store, login_context_factory
    ):
        principal = await identity_reconciler.reconcile(
            login_context_factory(avatar_url=AVATAR_V1)
        )

        account = await account_store.find_by_email("nelly@example.com")
        assert account is not None
        assert account.email_confirmed is True
        assert account.user_name == "nelly@example.com"
        assert principal.find_first(CLAIM_NAME_IDENTIFIER) == account.id

        logins = await account_store.get_logins(account)
        assert [(l.provider, l.provider_key, l.provider_display_name) for l in logins] == [
            ("discord", "80351110224678912", "Discord")
        ]
        assert (
            await account_store.get_authentication_token(account.id, "discord", "access_token")
            == "discord-access-token"
        )
        assert synced(await account_store.get_claims(account)) == {
            CLAIM_DISCORD_AVATAR_URL: AVATAR_V1,
            CLAIM_DISCORD_GLOBAL_NAME: "Nelly",
        }

    @pytest.mark.asyncio
    async def test_principal_carries_synced_claims(
        self, identity_reconciler, login_context_factory
    ):
        principal = await identity_reconciler.reconcile(
            login_context_factory(avatar_url=AVATAR_V1)
        )

        assert principal.find_first(CLAIM_DISCORD_AVATAR_URL) == AVATAR_V1
        assert principal.find_first(CLAIM_DISCORD_GLOBAL_NAME) == "Nelly"

    @pytest.mark.asyncio
    async def test_on_discord_login_delegates(self, identity_reconciler, login_context_factory):
        principal = await identity_reconciler.on_discord_login(login_context_factory())
        assert principal.find_first("email") == "nelly@example.com"


class TestReturningLogin:
    """Test repeated logins for the same account."""

    @pytest.mark.asyncio
    async def test_login_link_is_idempotent(
        self, identity_reconciler, account_store, login_context_factory
    ):
        first = await identity_reconciler.reconcile(login_context_factory())
        second = await identity_reconciler.reconcile(login_context_factory())

        assert first.find_first(CLAIM_NAME_IDENTIFIER) == second.find_first(CLAIM_NAME_IDENTIFIER)
        account = await account_store.find_by_email("nelly@example.com")
        assert len(await account_store.get_logins(account)) == 1

    @pytest.mark.asyncio
    async def test_token_is_overwritten(
        self, identity_reconciler, account_store, login_context_factory
    ):
        await identity_reconciler.reconcile(login_context_factory(access_token="old"))
        await identity_reconciler.reconcile(login_context_factory(access_token="new"))

        account = await account_store.find_by_email("nelly@example.com")
        assert (
            await account_store.get_authentication_token(account.id, "discord", "access_token")
            == "new"
        )

    @pytest.mark.asyncio
    async def test_changed_claim_is_replaced(
        self, identity_reconciler, account_store, login_context_factory
    ):
        await identity_reconciler.reconcile(login_context_factory(avatar_url=AVATAR_V1))
        await identity_reconciler.reconcile(login_context_factory(avatar_url=AVATAR_V2))

        account = await account_store.find_by_email("nelly@example.com")
        claims = await account_store.get_claims(account)
        avatars = [c.value for c in claims if c.type == CLAIM_DISCORD_AVATAR_URL]
        assert avatars == [AVATAR_V2]

    @pytest.mark.asyncio
    async def test_unchanged_claim_is_left_alone(
        self, identity_reconciler, account_store, login_context_factory
    ):
        await identity_reconciler.reconcile(login_context_factory(avatar_url=AVATAR_V1))

        with patch.object(account_store, "remove_claim", wraps=account_store.remove_claim) as rm:
            with patch.object(account_store, "add_claim", wraps=account_store.add_claim) as add:
                await identity_reconciler.reconcile(login_context_factory(avatar_url=AVATAR_V1))

        rm.assert_not_called()
        add.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_value_keeps_stored_claim(
        self, identity_reconciler, account_store, login_context_factory
    ):
        await identity_reconciler.reconcile(login_context_factory(avatar_url=AVATAR_V1))
        await identity_reconciler.reconcile(
            login_context_factory(avatar_url=None, global_name=None)
        )

        account = await account_store.find_by_email("nelly@example.com")
        assert synced(await account_store.get_claims(account)) == {
            CLAIM_DISCORD_AVATAR_URL: AVATAR_V1,
            CLAIM_DISCORD_GLOBAL_NAME: "Nelly",
        }

    @pytest.mark.asyncio
    async def test_existing_account_gets_linked(
        self, identity_reconciler, account_store, login_context_factory
    ):
        existing = Account(user_name="legacy", email="NELLY@example.com")
        await account_store.create(existing)

        principal = await identity_reconciler.reconcile(login_context_factory())

        assert principal.find_first(CLAIM_NAME_IDENTIFIER) == existing.id
        assert len(await account_store.get_logins(existing)) == 1

    @pytest.mark.asyncio
    async def test_different_discord_id_keeps_existing_link(
        self, identity_reconciler, account_store, login_context_factory
    ):
        await identity_reconciler.reconcile(login_context_factory())
        await identity_reconciler.reconcile(login_context_factory(discord_id="999"))

        account = await account_store.find_by_email("nelly@example.com")
        logins = await account_store.get_logins(account)
        assert [l.provider_key for l in logins] == ["80351110224678912"]


class TestFailures:
    """Test that store failures stop the login."""

    @pytest.mark.asyncio
    async def test_concurrent_account_creation_is_a_conflict(
        self, identity_reconciler, account_store, login_context_factory
    ):
        failed = StoreResult.failed(DUPLICATE_EMAIL, "taken")
        with patch.object(account_store, "create", AsyncMock(return_value=failed)):
            with pytest.raises(AccountConflictError) as exc_info:
                await identity_reconciler.reconcile(login_context_factory())

        assert exc_info.value.step == "create_account"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "method,step",
        [
            ("add_login", "add_login"),
            ("set_authentication_token", "set_token"),
            ("add_claim", "add_claim"),
        ],
    )
    async def test_failed_step_raises(
        self, identity_reconciler, account_store, login_context_factory, method, step
    ):
        failed = StoreResult.failed(STORE_FAILURE, "boom")
        with patch.object(account_store, method, AsyncMock(return_value=failed)):
            with pytest.raises(ReconciliationError) as exc_info:
                await identity_reconciler.reconcile(login_context_factory())

        assert exc_info.value.step == step
        assert not isinstance(exc_info.value, AccountConflictError)

    @pytest.mark.asyncio
    async def test_failed_claim_removal_raises(
        self, identity_reconciler, account_store, login_context_factory
    ):
        await identity_reconciler.reconcile(login_context_factory(avatar_url=AVATAR_V1))

        failed = StoreResult.failed(STORE_FAILURE, "boom")
        with patch.object(account_store, "remove_claim", AsyncMock(return_value=failed)):
            with pytest.raises(ReconciliationError) as exc_info:
                await identity_reconciler.reconcile(login_context_factory(avatar_url=AVATAR_V2))

        assert exc_info.value.step == "remove_claim"

    @pytest.mark.asyncio
    async def test_failed_token_write_keeps_token_out_of_logs_and_errors(
        self, identity_reconciler, db_service, login_context_factory
    ):
        secret = "SUPER-SECRET-TOKEN-123"
        with db_service.engine.begin() as conn:
            conn.execute(
                text(
                    "CREATE TRIGGER reject_token BEFORE INSERT ON accounttokentable "
                    "BEGIN SELECT RAISE(ABORT, 'token writes are disabled'); END"
                )
            )

        messages = []
        sink_id = logger.add(lambda message: messages.append(str(message)), level="DEBUG")
        try:
            with pytest.raises(ReconciliationError) as exc_info:
                await identity_reconciler.reconcile(login_context_factory(access_token=secret))
        finally:
            logger.remove(sink_id)

        assert exc_info.value.step == "set_token"
        assert secret not in str(exc_info.value)
        assert messages
        assert not [m for m in messages if secret in m]


class TestCustomSyncedClaims:
    @pytest.mark.asyncio
    async def test_custom_claim_set(self, account_store, principal_factory, login_context_factory):
        reconciler = IdentityReconciler(
            account_store,
            principal_factory,
            synced_claims={"urn:test:locale": lambda context: context.locale},
        )

        principal = await reconciler.reconcile(login_context_factory())

        assert principal.find_first("urn:test:locale") == "en-US"
        assert principal.find_first(CLAIM_DISCORD_AVATAR_URL) is None
        assert Claim(type="urn:test:locale", value="en-US") in principal.claims
