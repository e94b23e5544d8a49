"""Exception hierarchy for the loan ledger.

Services raise these; ``main.py`` maps each class to an HTTP status.
"""
from __future__ import annotations

from typing import Any


class LedgerError(Exception):
    """Base exception for all ledger errors."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message}


class EntryNotFoundError(LedgerError):
    """Raised when an entry id does not exist."""

    status_code = 404

    def __init__(self, entry_id: int) -> None:
        super().__init__(f"Entry {entry_id} not found")
        self.entry_id = entry_id


class BusinessRuleError(LedgerError):
    """Raised when operation arguments violate a lending rule (e.g. amount below principal)."""

    status_code = 400


class InvalidEntryStateError(LedgerError):
    """Raised when an entry is in the wrong status for the operation."""

    status_code = 409


class PreconditionFailedError(LedgerError):
    """Raised when a conditional write matched zero rows.

    The entry changed status between read and write, usually because another
    session settled, renewed, revoked or deleted it.
    """

    status_code = 409

    def __init__(self, entry_id: int, expected_status: str) -> None:
        super().__init__(
            f"Entry {entry_id} changed since it was read (expected {expected_status}); refresh and retry"
        )
        self.entry_id = entry_id
        self.expected_status = expected_status


class ImportValidationError(LedgerError):
    """Raised when an import batch fails validation. Nothing is inserted."""

    status_code = 422

    def __init__(self, message: str, violations: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.violations = violations or []

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message, "violations": self.violations}


class AuthenticationError(LedgerError):
    """Raised when the bearer token is missing, invalid, expired or signed out."""

    status_code = 401
