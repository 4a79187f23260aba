"""Ledger layer – SQLite storage, Pydantic records and error taxonomy."""

from ledger.database import DebateLedger
from ledger.errors import (
    DebateNotFound,
    DuplicateVote,
    InvalidChoice,
    LedgerAlreadyInitialized,
    LedgerError,
    LedgerNotInitialized,
)
from ledger.models import (
    Choice,
    DebateRecord,
    DialogueLine,
    Figure,
    Tally,
    VoteRecord,
)

__all__ = [
    "Choice",
    "DebateLedger",
    "DebateNotFound",
    "DebateRecord",
    "DialogueLine",
    "DuplicateVote",
    "Figure",
    "InvalidChoice",
    "LedgerAlreadyInitialized",
    "LedgerError",
    "LedgerNotInitialized",
    "Tally",
    "VoteRecord",
]
