"""Validation package."""

from household_ledger.validation.validator import (
    LedgerValidationError,
    LedgerValidator,
    issues_from_pydantic,
)

__all__ = ["LedgerValidationError", "LedgerValidator", "issues_from_pydantic"]
