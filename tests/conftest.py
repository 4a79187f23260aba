"""Shared fixtures for the test suite.

Every test gets its own SQLite ledger under ``tmp_path`` plus a handful of
call contexts with fixed timestamps, so results are fully deterministic.
"""

from __future__ import annotations

import pytest
import pytest_asyncio

from ledger.database import DebateLedger
from ledger.models import DialogueLine, Figure
from services import CallContext, DebateService, QueryService, VotingService

OWNER = "owner.near"


# ---------------------------------------------------------------------------
# Ledger fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def fresh_ledger(tmp_path) -> DebateLedger:
    """Connected but not yet initialized ledger."""
    ledger = DebateLedger(db_path=tmp_path / "test_ledger.db")
    await ledger.connect()
    yield ledger
    await ledger.close()


@pytest_asyncio.fixture
async def ledger(fresh_ledger: DebateLedger) -> DebateLedger:
    """Ledger initialized with ``OWNER``."""
    await fresh_ledger.initialize(OWNER)
    return fresh_ledger


@pytest.fixture
def debates(ledger: DebateLedger) -> DebateService:
    return DebateService(ledger)


@pytest.fixture
def voting(ledger: DebateLedger) -> VotingService:
    return VotingService(ledger)


@pytest.fixture
def queries(ledger: DebateLedger) -> QueryService:
    return QueryService(ledger)


# ---------------------------------------------------------------------------
# Callers and sample data
# ---------------------------------------------------------------------------

@pytest.fixture
def alice() -> CallContext:
    return CallContext(caller="alice.near", timestamp_ms=1_700_000_000_000)


@pytest.fixture
def bob() -> CallContext:
    return CallContext(caller="bob.near", timestamp_ms=1_700_000_060_000)


@pytest.fixture
def carol() -> CallContext:
    return CallContext(caller="carol.near", timestamp_ms=1_700_000_120_000)


@pytest.fixture
def figures() -> tuple[Figure, Figure]:
    return (
        Figure(name="Socrates", image_url="https://img.example/socrates.png"),
        Figure(name="Nietzsche", image_url="https://img.example/nietzsche.png"),
    )


@pytest.fixture
def sample_dialogue() -> list[DialogueLine]:
    return [
        DialogueLine(speaker="Socrates", line="What is the good life?", metadata="opening"),
        DialogueLine(speaker="Nietzsche", line="Become who you are.", metadata="rebuttal"),
        DialogueLine(speaker="Socrates", line="And who is that?"),
    ]
