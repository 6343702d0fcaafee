"""
Data Models Package

This package contains all Pydantic models used in the Household Manager.
Every record read from or written to storage conforms to these schemas.
"""

from household.models.account import GUEST_ACCOUNT_ID, AccountContext
from household.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from household.models.entities import (
    UNKNOWN_PAYER,
    Bill,
    Expense,
    MissingItem,
    Payer,
    Record,
    ShoppingItem,
    UserProfile,
    apply_patch,
    decode_document,
    encode_document,
    encode_patch,
    encode_record,
    find_payer,
    new_record,
)
from household.models.validation import ValidationIssue, ValidationResult

__all__ = [
    # Account
    "AccountContext",
    "GUEST_ACCOUNT_ID",
    # Records
    "Bill",
    "Expense",
    "MissingItem",
    "Payer",
    "Record",
    "ShoppingItem",
    "UNKNOWN_PAYER",
    "UserProfile",
    # Encoding helpers
    "apply_patch",
    "decode_document",
    "encode_document",
    "encode_patch",
    "encode_record",
    "find_payer",
    "new_record",
    # Validation
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
