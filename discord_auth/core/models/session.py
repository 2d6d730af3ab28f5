"""Session models for the Discord login flow."""

import time

from pydantic import BaseModel, Field

from discord_auth.core.models.claims import Claim, ClaimsPrincipal


class AuthorizationSession(BaseModel):
    """Pending authorization request, created when a login starts."""

    id: str = Field(description="Session identifier")
    state: str = Field(description="CSRF state parameter")
    pkce_verifier: str | None = Field(default=None, description="PKCE code verifier")
    return_to: str = Field(description="Sanitized post-login redirect URL")
    created_at: int = Field(description="Creation timestamp")
    expires_at: int = Field(description="Expiration timestamp")
    used: bool = Field(default=False, description="Whether session has been used")

    @classmethod
    def create(
        cls,
        session_id: str,
        state: str,
        return_to: str,
        pkce_verifier: str | None = None,
        ttl_seconds: int = 600,
    ) -> "AuthorizationSession":
        now = int(time.time())
        return cls(
            id=session_id,
            state=state,
            pkce_verifier=pkce_verifier,
            return_to=return_to,
            created_at=now,
            expires_at=now + ttl_seconds,
        )

    def is_expired(self) -> bool:
        return time.time() > self.expires_at

    def mark_used(self) -> None:
        """Mark session as used (for single-use enforcement)."""
        self.used = True


class ExternalSession(BaseModel):
    """Transient result of a successful Discord sign-in.

    Lives only between the code exchange and the callback that turns it into a
    local session.
    """

    id: str = Field(description="Session identifier")
    claims: list[Claim] = Field(default_factory=list, description="External claims")
    tokens: dict[str, str] = Field(
        default_factory=dict, repr=False, description="OAuth2 tokens by name"
    )
    properties: dict[str, str] = Field(
        default_factory=dict, description="Authentication properties, e.g. returnUrl"
    )
    authentication_type: str = Field(description="Scheme that produced the session")
    created_at: int = Field(description="Creation timestamp")
    expires_at: int = Field(description="Expiration timestamp")

    @classmethod
    def create(
        cls,
        session_id: str,
        principal: ClaimsPrincipal,
        tokens: dict[str, str],
        properties: dict[str, str] | None = None,
        ttl_seconds: int = 300,
    ) -> "ExternalSession":
        now = int(time.time())
        return cls(
            id=session_id,
            claims=list(principal.claims),
            tokens=dict(tokens),
            properties=dict(properties or {}),
            authentication_type=principal.authentication_type,
            created_at=now,
            expires_at=now + ttl_seconds,
        )

    def is_expired(self) -> bool:
        return time.time() > self.expires_at

    def to_principal(self) -> ClaimsPrincipal:
        return ClaimsPrincipal(
            authentication_type=self.authentication_type, claims=list(self.claims)
        )

    def get_token(self, name: str) -> str | None:
        return self.tokens.get(name)


class UserSession(BaseModel):
    """Local session issued after a successful reconciliation."""

    id: str = Field(description="Session identifier")
    account_id: str = Field(description="Local account ID")
    provider: str = Field(description="Login provider that created the session")
    claims: list[Claim] = Field(default_factory=list, description="Local principal claims")
    created_at: int = Field(description="Creation timestamp")
    last_accessed_at: int = Field(description="Last access timestamp")
    expires_at: int = Field(description="Session expiration timestamp")

    @classmethod
    def create(
        cls,
        session_id: str,
        account_id: str,
        provider: str,
        claims: list[Claim],
        session_max_age: int = 3600,
    ) -> "UserSession":
        """Create a new user session with timestamps."""
        now = int(time.time())
        return cls(
            id=session_id,
            account_id=account_id,
            provider=provider,
            claims=list(claims),
            created_at=now,
            last_accessed_at=now,
            expires_at=now + session_max_age,
        )

    def is_expired(self) -> bool:
        """Check if session is expired."""
        return time.time() > self.expires_at

    def update_access(self) -> None:
        self.last_accessed_at = int(time.time())
