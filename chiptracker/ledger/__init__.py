"""Ledger module for participants, transactions and chip math."""
from .models import (
    ChipColor,
    ChipValueMode,
    InvalidSessionConfig,
    Participant,
    SessionConfig,
    SessionState,
    Transaction,
    TransactionKind,
    create_session,
    display_name,
)
from .results import LedgerError, LedgerWarning, OperationResult
from .ledger import Ledger, ParticipantView

__all__ = [
    "ChipColor",
    "ChipValueMode",
    "InvalidSessionConfig",
    "Participant",
    "SessionConfig",
    "SessionState",
    "Transaction",
    "TransactionKind",
    "create_session",
    "display_name",
    "LedgerError",
    "LedgerWarning",
    "OperationResult",
    "Ledger",
    "ParticipantView",
]
