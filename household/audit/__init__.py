"""Audit logging package."""

from household.audit.logger import AuditLogger, configure_logging

__all__ = ["AuditLogger", "configure_logging"]
