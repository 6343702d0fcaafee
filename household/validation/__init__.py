"""Input validation package."""

from household.validation.validator import InputValidator

__all__ = ["InputValidator"]
