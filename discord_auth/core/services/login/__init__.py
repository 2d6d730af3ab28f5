from discord_auth.core.services.login.callback_orchestrator import (
    CallbackOrchestrator,
    CallbackOutcome,
    CallbackState,
)
from discord_auth.core.services.login.context_builder import (
    LoginContextError,
    build_login_context,
)
from discord_auth.core.services.login.identity_reconciler import (
    SYNCED_CLAIMS,
    AccountConflictError,
    DiscordAuthHandler,
    IdentityReconciler,
    ReconciliationError,
)

__all__ = [
    "SYNCED_CLAIMS",
    "AccountConflictError",
    "CallbackOrchestrator",
    "CallbackOutcome",
    "CallbackState",
    "DiscordAuthHandler",
    "IdentityReconciler",
    "LoginContextError",
    "ReconciliationError",
    "build_login_context",
]
