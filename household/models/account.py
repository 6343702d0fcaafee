"""
Account Context

DESIGN DECISION: The account a facade works for is an explicit value,
handed to every facade constructor. There is no module-level "current
user"; signing in simply means building facades with a new context.
"""

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator


GUEST_ACCOUNT_ID = "guest"

# Reserved by the document store, or unsafe as a directory name
RESERVED_ACCOUNT_ID = re.compile(r"^(\.{1,2}|__.*__)$")


class AccountContext(BaseModel):
    """Identifies the account partition every read and write is scoped to."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    account_id: str = Field(
        default=GUEST_ACCOUNT_ID,
        min_length=1,
        max_length=128,
        # Becomes a path segment on both backends
        pattern=r"^[^/\\]+$",
        description="Authenticated user id, or 'guest'"
    )

    @field_validator('account_id')
    @classmethod
    def reject_reserved_ids(cls, v: str) -> str:
        if RESERVED_ACCOUNT_ID.match(v):
            raise ValueError(f"Reserved account id: {v!r}")
        return v

    @property
    def is_guest(self) -> bool:
        return self.account_id == GUEST_ACCOUNT_ID

    @classmethod
    def guest(cls) -> "AccountContext":
        return cls()
