"""Claim and principal models."""

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field


class Claim(BaseModel):
    """A single (type, value) statement about a user."""

    model_config = ConfigDict(frozen=True)

    type: str = Field(description="Claim type identifier")
    value: str = Field(description="Claim value")


class ClaimsPrincipal(BaseModel):
    """An authenticated identity described by an ordered list of claims."""

    authentication_type: str = Field(description="Scheme that produced this principal")
    claims: list[Claim] = Field(default_factory=list)

    @classmethod
    def from_pairs(
        cls, authentication_type: str, pairs: Iterable[tuple[str, str | None]]
    ) -> "ClaimsPrincipal":
        """Build a principal, skipping pairs whose value is None."""
        return cls(
            authentication_type=authentication_type,
            claims=[Claim(type=t, value=v) for t, v in pairs if v is not None],
        )

    def find_first(self, claim_type: str) -> str | None:
        """Return the value of the first claim of ``claim_type``, if any."""
        for claim in self.claims:
            if claim.type == claim_type:
                return claim.value
        return None
