"""Validation package."""

from xpense.validation.validator import TransactionValidator, is_submittable, validate

__all__ = ["TransactionValidator", "is_submittable", "validate"]
