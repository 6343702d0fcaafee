"""
Core Record Models for Household Manager

These models define the strict schemas for every record the household
keeps. They are designed to:
1. Enforce field constraints at runtime (non-empty names, positive amounts)
2. Hold the cross-field invariants (a bill is paid iff it has a paid date)
3. Serialize to the JSON shape both storage backends persist
4. Decode whatever a backend hands back

DESIGN DECISION: Python attributes are snake_case, the stored shape is
camelCase. One alias generator keeps the two in sync, so the same model
reads old local snapshots and remote documents alike.
"""

import time
from datetime import date
from typing import Any, Iterable, Optional, TypeVar
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel
from pydantic_core import to_jsonable_python


UNKNOWN_PAYER = "Unknown"


def new_record_id() -> str:
    """Client-generated identifier, valid for both backends."""
    return uuid4().hex


def now_ms() -> int:
    """Current time as epoch milliseconds (the createdAt unit)."""
    return int(time.time() * 1000)


# =============================================================================
# BASE RECORD
# =============================================================================

class Record(BaseModel):
    """
    Fields shared by every stored record.

    `created_at` is the implicit ordering key of the remote views.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str = Field(
        default_factory=new_record_id,
        min_length=1,
        description="Record identifier (document id on the remote store)"
    )
    created_at: int = Field(
        default_factory=now_ms,
        ge=0,
        description="Creation time, epoch milliseconds"
    )


# =============================================================================
# RECORD KINDS
# =============================================================================

class MissingItem(Record):
    """Something that ran out at home."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="What is missing"
    )
    category: Optional[str] = Field(default=None, max_length=100)
    note: Optional[str] = Field(default=None, max_length=500)

    @field_validator('category', 'note')
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class ShoppingItem(Record):
    """A line on the shopping list."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="What to buy"
    )
    category: Optional[str] = Field(default=None, max_length=100)
    is_done: bool = Field(
        default=False,
        description="Ticked off while shopping"
    )

    @field_validator('category')
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class Bill(Record):
    """
    A bill to pay, one-off or recurring monthly.

    CRITICAL: `paid_date` is present exactly when `is_paid` is true.
    Use `toggle_patch` to flip the status; never set one field alone.
    """

    name: str = Field(..., min_length=1, max_length=200)
    amount: float = Field(
        ...,
        gt=0,
        allow_inf_nan=False,
        description="Amount due"
    )
    due_date: date = Field(
        ...,
        description="Calendar date the bill is due"
    )
    is_paid: bool = False
    paid_date: Optional[date] = Field(
        default=None,
        description="Local calendar date the bill was marked paid"
    )
    is_recurring: bool = Field(
        default=False,
        description="Monthly recurring bill"
    )

    @model_validator(mode='after')
    def validate_paid_date(self) -> 'Bill':
        """A paid bill carries its paid date; an unpaid one never does."""
        if self.is_paid and self.paid_date is None:
            raise ValueError("Paid bill must have a paid date")
        if not self.is_paid and self.paid_date is not None:
            raise ValueError("Unpaid bill cannot have a paid date")
        return self

    def toggle_patch(self, today: date) -> dict[str, Any]:
        """Patch that flips the paid status, stamping or clearing the paid date."""
        if self.is_paid:
            return {"is_paid": False, "paid_date": None}
        return {"is_paid": True, "paid_date": today}

    def is_overdue(self, today: date) -> bool:
        """Due strictly before today and still unpaid."""
        return not self.is_paid and self.due_date < today


class Expense(Record):
    """Money spent, attributed to whoever paid."""

    description: str = Field(..., min_length=1, max_length=200)
    amount: float = Field(
        ...,
        gt=0,
        allow_inf_nan=False,
        description="Amount spent"
    )
    category: Optional[str] = Field(default=None, max_length=100)
    # Stored as "date"; the attribute name avoids shadowing datetime.date
    spent_on: date = Field(
        ...,
        alias="date",
        description="Calendar date of the expense"
    )
    paid_by: str = Field(
        default=UNKNOWN_PAYER,
        min_length=1,
        max_length=100,
        description="Payer name"
    )

    @field_validator('category')
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @field_validator('paid_by', mode='before')
    @classmethod
    def default_payer(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return UNKNOWN_PAYER
        return v

    @property
    def month(self) -> str:
        """YYYY-MM bucket used by the monthly views."""
        return self.spent_on.strftime("%Y-%m")


class Payer(Record):
    """Someone who pays for shared expenses."""

    name: str = Field(..., min_length=1, max_length=100)


class UserProfile(BaseModel):
    """Display profile of an authenticated account."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    name: str = Field(default="", max_length=100)
    email: Optional[str] = None
    created_at: int = Field(default_factory=now_ms, ge=0)

    @classmethod
    def for_sign_up(cls, email: str, name: Optional[str] = None) -> 'UserProfile':
        """Profile written on sign-up; the name falls back to the email's local part."""
        display_name = (name or "").strip() or email.split("@")[0]
        return cls(name=display_name, email=email)


# =============================================================================
# ENCODING HELPERS
# =============================================================================

RecordT = TypeVar("RecordT", bound=Record)


def new_record(model: type[RecordT], fields: dict[str, Any]) -> RecordT:
    """
    Canonical constructor for a brand new record.

    Fills `id` and `createdAt` when the caller did not supply them and
    validates everything else. Raises pydantic.ValidationError on bad input.
    """
    return model.model_validate(dict(fields))


def encode_record(record: Record) -> dict[str, Any]:
    """JSON-shaped, camelCase dict with explicit nulls for unset optionals."""
    return record.model_dump(mode="json", by_alias=True)


def encode_document(record: Record) -> dict[str, Any]:
    """Document body for the remote store (the id lives in the document path)."""
    data = encode_record(record)
    data.pop("id", None)
    return data


def encode_patch(model: type[Record], patch: dict[str, Any]) -> dict[str, Any]:
    """Translate a snake_case patch into stored field names and JSON values."""
    encoded = {}
    for name, value in patch.items():
        field = model.model_fields.get(name)
        if field is None:
            raise ValueError(f"Unknown field for {model.__name__}: {name}")
        encoded[field.alias or name] = to_jsonable_python(value)
    return encoded


def apply_patch(record: RecordT, patch: dict[str, Any]) -> RecordT:
    """Return a re-validated copy of `record` with `patch` applied."""
    data = record.model_dump()
    data.update(patch)
    return type(record).model_validate(data)


def decode_document(model: type[RecordT], doc_id: str, data: dict[str, Any]) -> RecordT:
    """Build a record from a remote document id and body."""
    return model.model_validate({**data, "id": doc_id})


def find_payer(payers: Iterable[Payer], name: str) -> Optional[Payer]:
    """Case-insensitive match on the trimmed payer name."""
    wanted = name.strip().lower()
    for payer in payers:
        if payer.name.lower() == wanted:
            return payer
    return None
