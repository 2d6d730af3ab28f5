from discord_auth.core.services.account.account_store import AccountStore
from discord_auth.core.services.account.principal_factory import AccountPrincipalFactory

__all__ = ["AccountPrincipalFactory", "AccountStore"]
