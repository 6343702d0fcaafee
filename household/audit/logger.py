"""
Audit Logger

DESIGN DECISION: Every mutation the facade performs is logged, along with
input that was ignored and storage events worth knowing about.
This provides:
1. Traceability per account partition
2. Debugging capability for remote write failures
3. Visibility into silently ignored form input

The audit logger:
- Renders structured JSON lines through structlog
- Never raises into the caller (a failed log line must not fail a write)
"""

import logging
import sys
from typing import Optional

import structlog

from household.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


def configure_logging(log_level: str = "INFO") -> None:
    """
    Configure structlog and the stdlib root logger.

    Safe to call more than once; the last call wins.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
        force=True,
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()


class AuditLogger:
    """
    Central audit logging service.

    One instance is shared by all facades of a household; the account and
    collection travel on each event.
    """

    def __init__(self, logger_name: str = "household.audit"):
        self._logger = structlog.get_logger(logger_name)

    def log(self, event: AuditEvent) -> None:
        """Log an audit event at the level matching its severity."""
        log_dict = event.to_log_dict()
        try:
            if event.severity == AuditSeverity.ERROR:
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            # Logging must never break a mutation
            print(f"WARNING: Failed to write audit event: {e}", file=sys.stderr)

    def log_record_added(self, account_id: str, collection: str, record_id: str) -> None:
        self.log(AuditEventBuilder.record_added(account_id, collection, record_id))

    def log_record_updated(
        self,
        account_id: str,
        collection: str,
        record_id: str,
        fields: list[str],
    ) -> None:
        self.log(AuditEventBuilder.record_updated(account_id, collection, record_id, fields))

    def log_record_deleted(self, account_id: str, collection: str, record_id: str) -> None:
        self.log(AuditEventBuilder.record_deleted(account_id, collection, record_id))

    def log_mutation_failed(
        self,
        account_id: str,
        collection: str,
        operation: str,
        error: Exception,
        record_id: Optional[str] = None,
    ) -> None:
        """Log a backend error surfaced by an add, update or delete."""
        self.log(AuditEventBuilder.mutation_failed(
            account_id=account_id,
            collection=collection,
            operation=operation,
            error=error,
            record_id=record_id,
        ))

    def log_batch_delete_failed(
        self,
        account_id: str,
        collection: str,
        failed_ids: list[str],
        attempted: int,
    ) -> None:
        self.log(AuditEventBuilder.batch_delete_failed(
            account_id, collection, failed_ids, attempted,
        ))

    def log_input_rejected(
        self,
        account_id: str,
        collection: str,
        issues: list[dict],
    ) -> None:
        self.log(AuditEventBuilder.input_rejected(account_id, collection, issues))

    def log_payer_reused(self, account_id: str, payer_id: str, name: str) -> None:
        self.log(AuditEventBuilder.payer_reused(account_id, payer_id, name))

    def log_subscription_opened(self, account_id: str, collection: str, backend: str) -> None:
        self.log(AuditEventBuilder.subscription_opened(account_id, collection, backend))

    def log_subscription_closed(self, account_id: str, collection: str) -> None:
        self.log(AuditEventBuilder.subscription_closed(account_id, collection))

    def log_record_skipped(
        self,
        account_id: str,
        collection: str,
        record_id: str,
        error_message: str,
    ) -> None:
        self.log(AuditEventBuilder.record_skipped(
            account_id, collection, record_id, error_message,
        ))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        self.log(AuditEventBuilder.system_error(error_type, error_message, details))
