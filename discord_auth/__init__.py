"""Discord OAuth2 login integration for FastAPI.

Reconciles Discord identities with local accounts, keeps a small set of
Discord claims in sync and exposes a rate-limit aware Discord API client.
"""

__version__ = "0.1.0"
