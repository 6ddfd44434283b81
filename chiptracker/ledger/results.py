"""Typed results for ledger operations."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from chiptracker.ledger.models import Participant, Transaction


class LedgerError(str, Enum):
    """Why a ledger operation was rejected."""
    UNKNOWN_PARTICIPANT = "unknown_participant"
    INVALID_INPUT = "invalid_input"
    EMPTY_CONTRIBUTION = "empty_contribution"
    EMPTY_RETURN = "empty_return"
    READ_ONLY = "read_only"


class LedgerWarning(str, Enum):
    """Non-fatal conditions reported alongside a successful result."""
    NEGATIVE_CHIP_TOTAL = "negative_chip_total"


@dataclass
class OperationResult:
    """Outcome of a mutating ledger operation.

    ``changed`` tells the caller whether the session state was modified and
    may need persisting. A failed result never changes state.
    """

    success: bool
    changed: bool = False
    error: Optional[LedgerError] = None
    error_message: Optional[str] = None
    participant: Optional[Participant] = None
    transaction: Optional[Transaction] = None
    warnings: list[LedgerWarning] = field(default_factory=list)

    @classmethod
    def failure(cls, error: LedgerError, message: str) -> "OperationResult":
        return cls(success=False, error=error, error_message=message)
