"""DebateService – records new debates in the ledger."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from ledger.database import DebateLedger
from ledger.models import DebateRecord, DialogueLine, Figure
from services.context import CallContext

logger = logging.getLogger(__name__)


class DebateService:
    """Creates debates. Holds no state of its own beyond the ledger handle.

    Parameters
    ----------
    ledger : DebateLedger
        Connected, initialized ledger shared with the other services.
    """

    def __init__(self, ledger: DebateLedger) -> None:
        self.ledger = ledger

    async def create_debate(
        self,
        ctx: CallContext,
        topic: str,
        figure_one: Figure,
        figure_two: Figure,
        dialogue: Iterable[DialogueLine | Any] = (),
    ) -> int:
        """Store an immutable debate and return its id.

        The write path is permissive: empty topics and empty dialogues are
        accepted as-is, and image URLs are not checked.
        """
        lines = tuple(DialogueLine.from_raw(d) for d in dialogue)

        async with self.ledger.transaction() as ledger:
            debate_id = await ledger.next_debate_id()
            record = DebateRecord(
                id=debate_id,
                topic=topic,
                creator=ctx.caller,
                created_at=ctx.timestamp_ms,
                figure_one=figure_one,
                figure_two=figure_two,
                dialogue=lines,
            )
            await ledger.insert_debate(debate_id, record)

        logger.info("Debate %d created successfully", debate_id)
        return debate_id
