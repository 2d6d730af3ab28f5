"""Result type returned by account store mutations."""

from pydantic import BaseModel, Field


class StoreError(BaseModel):
    """A single failure reported by the account store."""

    code: str = Field(description="Machine readable error code")
    description: str = Field(description="Human readable description")


class StoreResult(BaseModel):
    """Outcome of an account store operation.

    Expected failures such as uniqueness violations are reported here instead
    of being raised, so callers must check ``succeeded``.
    """

    succeeded: bool
    errors: list[StoreError] = Field(default_factory=list)

    @classmethod
    def success(cls) -> "StoreResult":
        return cls(succeeded=True)

    @classmethod
    def failed(cls, code: str, description: str) -> "StoreResult":
        return cls(succeeded=False, errors=[StoreError(code=code, description=description)])

    def has_error(self, code: str) -> bool:
        return any(error.code == code for error in self.errors)

    def __str__(self) -> str:
        if self.succeeded:
            return "Succeeded"
        return "Failed: " + ", ".join(error.code for error in self.errors)


# Error codes
DUPLICATE_EMAIL = "DuplicateEmail"
DUPLICATE_LOGIN = "DuplicateLogin"
DUPLICATE_TOKEN = "DuplicateToken"
STORE_FAILURE = "StoreFailure"
