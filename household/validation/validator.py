"""
Form Input Validation

DESIGN DECISION: Raw form input is checked here, before anything reaches
a storage backend:
- Required text present after trimming
- Amounts numeric and greater than zero
- Dates real calendar dates (YYYY-MM-DD)

Input that fails is not an error for the caller. The facade logs the
issues and performs no write, the same as a form that refuses to submit.
"""

import math
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union

from household.models.entities import UNKNOWN_PAYER
from household.models.validation import ValidationIssue, ValidationResult


AmountInput = Union[str, int, float, Decimal, None]
DateInput = Union[str, date, None]


class InputValidator:
    """
    Validates and normalizes the fields of each add form.

    Every `validate_*` method returns a ValidationResult whose `cleaned`
    dict uses the record attribute names.
    """

    def _require_text(
        self,
        field: str,
        value: Optional[str],
        issues: list[ValidationIssue],
    ) -> str:
        cleaned = (value or "").strip()
        if not cleaned:
            issues.append(ValidationIssue(
                field=field,
                issue_type="missing",
                message=f"{field.replace('_', ' ').capitalize()} is required",
            ))
        return cleaned

    def _optional_text(self, value: Optional[str]) -> Optional[str]:
        cleaned = (value or "").strip()
        return cleaned or None

    def parse_amount(self, value: AmountInput) -> Optional[float]:
        """Numeric value of an amount field, or None if it is not a number."""
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, str):
            value = value.strip()
            if not value:
                return None
        try:
            amount = float(Decimal(str(value)))
        except (InvalidOperation, ValueError):
            return None
        if math.isnan(amount) or math.isinf(amount):
            return None
        return amount

    def _require_amount(
        self,
        field: str,
        value: AmountInput,
        issues: list[ValidationIssue],
    ) -> Optional[float]:
        amount = self.parse_amount(value)
        if amount is None:
            issues.append(ValidationIssue(
                field=field,
                issue_type="not_a_number",
                message=f"Amount is not a number: {value!r}",
            ))
        elif amount <= 0:
            issues.append(ValidationIssue(
                field=field,
                issue_type="not_positive",
                message="Amount must be greater than zero",
            ))
            amount = None
        return amount

    def parse_calendar_date(self, value: DateInput) -> Optional[date]:
        """Calendar date from a date object or a YYYY-MM-DD string."""
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            try:
                return date.fromisoformat(value.strip())
            except ValueError:
                return None
        return None

    def _require_date(
        self,
        field: str,
        value: DateInput,
        issues: list[ValidationIssue],
    ) -> Optional[date]:
        parsed = self.parse_calendar_date(value)
        if parsed is None:
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_date",
                message=f"Not a calendar date (YYYY-MM-DD): {value!r}",
            ))
        return parsed

    def _result(self, issues: list[ValidationIssue], cleaned: dict[str, Any]) -> ValidationResult:
        if issues:
            return ValidationResult(issues=issues)
        return ValidationResult(cleaned=cleaned)

    def validate_missing_item(
        self,
        name: Optional[str],
        category: Optional[str] = None,
        note: Optional[str] = None,
    ) -> ValidationResult:
        issues: list[ValidationIssue] = []
        cleaned = {
            "name": self._require_text("name", name, issues),
            "category": self._optional_text(category),
            "note": self._optional_text(note),
        }
        return self._result(issues, cleaned)

    def validate_shopping_item(
        self,
        name: Optional[str],
        category: Optional[str] = None,
    ) -> ValidationResult:
        issues: list[ValidationIssue] = []
        cleaned = {
            "name": self._require_text("name", name, issues),
            "category": self._optional_text(category),
            "is_done": False,
        }
        return self._result(issues, cleaned)

    def validate_bill(
        self,
        name: Optional[str],
        amount: AmountInput,
        due_date: DateInput,
        is_recurring: bool = False,
    ) -> ValidationResult:
        issues: list[ValidationIssue] = []
        cleaned = {
            "name": self._require_text("name", name, issues),
            "amount": self._require_amount("amount", amount, issues),
            "due_date": self._require_date("due_date", due_date, issues),
            "is_paid": False,
            "paid_date": None,
            "is_recurring": bool(is_recurring),
        }
        return self._result(issues, cleaned)

    def validate_expense(
        self,
        description: Optional[str],
        amount: AmountInput,
        category: Optional[str],
        spent_on: DateInput,
        paid_by: Optional[str],
    ) -> ValidationResult:
        issues: list[ValidationIssue] = []
        cleaned = {
            "description": self._require_text("description", description, issues),
            "amount": self._require_amount("amount", amount, issues),
            "category": self._optional_text(category),
            "spent_on": self._require_date("date", spent_on, issues),
            "paid_by": self._optional_text(paid_by) or UNKNOWN_PAYER,
        }
        return self._result(issues, cleaned)

    def validate_payer(self, name: Optional[str]) -> ValidationResult:
        issues: list[ValidationIssue] = []
        cleaned = {"name": self._require_text("name", name, issues)}
        return self._result(issues, cleaned)
