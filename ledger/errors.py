"""Errors raised by the ledger and the services built on it.

Every error aborts the current call before the ledger is written to.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for all ledger failures."""


class LedgerNotInitialized(LedgerError):
    def __init__(self) -> None:
        super().__init__("Ledger has not been initialized. Run initialize() first.")


class LedgerAlreadyInitialized(LedgerError):
    def __init__(self, owner_id: str) -> None:
        self.owner_id = owner_id
        super().__init__(f"Ledger is already initialized (owner: {owner_id})")


class DebateNotFound(LedgerError):
    def __init__(self, debate_id: int) -> None:
        self.debate_id = debate_id
        super().__init__(f"Debate #{debate_id} not found")


class InvalidChoice(LedgerError):
    def __init__(self, choice: object) -> None:
        self.choice = choice
        super().__init__(f"Invalid choice {choice!r}. Choose 1 or 2.")


class DuplicateVote(LedgerError):
    def __init__(self, debate_id: int, voter: str) -> None:
        self.debate_id = debate_id
        self.voter = voter
        super().__init__(f"{voter} has already voted in debate #{debate_id}")
