"""Account entity module.

- Account, AccountLogin, AccountToken: domain entities
- AccountTable, AccountLoginTable, AccountClaimTable, AccountTokenTable: persistence models
- AccountRepository: data access layer
"""

from .entity import Account, AccountLogin, AccountToken, normalize_email
from .repository import AccountRepository
from .table import AccountClaimTable, AccountLoginTable, AccountTable, AccountTokenTable

__all__ = [
    "Account",
    "AccountLogin",
    "AccountToken",
    "AccountTable",
    "AccountLoginTable",
    "AccountClaimTable",
    "AccountTokenTable",
    "AccountRepository",
    "normalize_email",
]
