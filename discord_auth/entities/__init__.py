"""Entities organized by business concept.

Each entity package contains:
- entity.py: Domain model
- table.py: Database persistence model
- repository.py: Data access layer
"""

from .core.account import (
    Account,
    AccountClaimTable,
    AccountLogin,
    AccountLoginTable,
    AccountRepository,
    AccountTable,
    AccountToken,
    AccountTokenTable,
)

__all__ = [
    "Account",
    "AccountLogin",
    "AccountToken",
    "AccountTable",
    "AccountLoginTable",
    "AccountClaimTable",
    "AccountTokenTable",
    "AccountRepository",
]
