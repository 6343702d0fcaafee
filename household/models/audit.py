"""
Audit Models for Household Manager

Every mutation and every notable storage event is logged.
This provides:
1. Traceability of what changed in which account partition
2. Debugging information when a remote write fails
3. A record of input that was silently ignored

DESIGN DECISION: Audit events are structured values, not free-form log
strings. The logger decides how to render them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Mutations
    RECORD_ADDED = "record_added"
    RECORD_UPDATED = "record_updated"
    RECORD_DELETED = "record_deleted"
    MUTATION_FAILED = "mutation_failed"
    BATCH_DELETE_FAILED = "batch_delete_failed"

    # Input handling
    INPUT_REJECTED = "input_rejected"
    PAYER_REUSED = "payer_reused"

    # Subscriptions
    SUBSCRIPTION_OPENED = "subscription_opened"
    SUBSCRIPTION_CLOSED = "subscription_closed"
    RECORD_SKIPPED = "record_skipped"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - which partition and record is this about?
    account_id: Optional[str] = None
    collection: Optional[str] = Field(
        default=None,
        description="Logical collection name (e.g., 'bills', 'shoppingList')"
    )
    record_id: Optional[str] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    # Error information (if applicable)
    error_type: Optional[str] = None
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "account_id": self.account_id,
            "collection": self.collection,
            "record_id": self.record_id,
            "description": self.description,
            "details": self.details,
            "error_type": self.error_type,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.record_added("guest", "bills", bill.id)
        event = AuditEventBuilder.input_rejected("guest", "bills", issues)
    """

    @staticmethod
    def record_added(account_id: str, collection: str, record_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_ADDED,
            account_id=account_id,
            collection=collection,
            record_id=record_id,
            description=f"Record added to {collection}",
            is_user_action=True,
        )

    @staticmethod
    def record_updated(
        account_id: str,
        collection: str,
        record_id: str,
        fields: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_UPDATED,
            account_id=account_id,
            collection=collection,
            record_id=record_id,
            description=f"Record updated in {collection}",
            details={"fields": fields},
            is_user_action=True,
        )

    @staticmethod
    def record_deleted(account_id: str, collection: str, record_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_DELETED,
            account_id=account_id,
            collection=collection,
            record_id=record_id,
            description=f"Record deleted from {collection}",
            is_user_action=True,
        )

    @staticmethod
    def mutation_failed(
        account_id: str,
        collection: str,
        operation: str,
        error: Exception,
        record_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MUTATION_FAILED,
            severity=AuditSeverity.ERROR,
            account_id=account_id,
            collection=collection,
            record_id=record_id,
            description=f"{operation.capitalize()} on {collection} failed",
            details={"operation": operation},
            error_type=type(error).__name__,
            error_message=str(error),
        )

    @staticmethod
    def batch_delete_failed(
        account_id: str,
        collection: str,
        failed_ids: list[str],
        attempted: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BATCH_DELETE_FAILED,
            severity=AuditSeverity.ERROR,
            account_id=account_id,
            collection=collection,
            description=f"{len(failed_ids)} of {attempted} deletes failed in {collection}",
            details={"failed_ids": failed_ids, "attempted": attempted},
        )

    @staticmethod
    def input_rejected(
        account_id: str,
        collection: str,
        issues: list[dict],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INPUT_REJECTED,
            severity=AuditSeverity.WARNING,
            account_id=account_id,
            collection=collection,
            description=f"Input ignored with {len(issues)} issues",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def payer_reused(account_id: str, payer_id: str, name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAYER_REUSED,
            account_id=account_id,
            collection="payers",
            record_id=payer_id,
            description=f"Payer already exists: {name}",
            details={"name": name},
            is_user_action=True,
        )

    @staticmethod
    def subscription_opened(account_id: str, collection: str, backend: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUBSCRIPTION_OPENED,
            severity=AuditSeverity.DEBUG,
            account_id=account_id,
            collection=collection,
            description=f"Subscribed to {collection}",
            details={"backend": backend},
        )

    @staticmethod
    def subscription_closed(account_id: str, collection: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUBSCRIPTION_CLOSED,
            severity=AuditSeverity.DEBUG,
            account_id=account_id,
            collection=collection,
            description=f"Unsubscribed from {collection}",
        )

    @staticmethod
    def record_skipped(
        account_id: str,
        collection: str,
        record_id: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_SKIPPED,
            severity=AuditSeverity.WARNING,
            account_id=account_id,
            collection=collection,
            record_id=record_id,
            description="Stored record could not be decoded and was left out of the view",
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_type=error_type,
            error_message=error_message,
            details=details or {},
        )
