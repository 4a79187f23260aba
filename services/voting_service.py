"""VotingService – one vote per participant per debate."""

from __future__ import annotations

import logging

from ledger.database import DebateLedger
from ledger.errors import DebateNotFound, DuplicateVote, InvalidChoice
from ledger.models import Choice, VoteRecord
from services.context import CallContext

logger = logging.getLogger(__name__)


def parse_choice(choice: object) -> Choice:
    """Map ``1``/``2`` to a :class:`Choice`; anything else is ``InvalidChoice``."""
    if isinstance(choice, bool) or not isinstance(choice, int):
        raise InvalidChoice(choice)
    try:
        return Choice(choice)
    except ValueError:
        raise InvalidChoice(choice) from None


class VotingService:
    """Validates and records votes."""

    def __init__(self, ledger: DebateLedger) -> None:
        self.ledger = ledger

    async def vote_in_debate(self, ctx: CallContext, debate_id: int, choice: int) -> int:
        """Cast *ctx.caller*'s vote and return the new vote id.

        Checks run in a fixed order (debate exists, choice valid, no earlier
        vote) and all of them happen before anything is written.
        """
        async with self.ledger.transaction() as ledger:
            if await ledger.get_debate(debate_id) is None:
                logger.warning("Vote rejected: debate #%d not found", debate_id)
                raise DebateNotFound(debate_id)

            try:
                parsed = parse_choice(choice)
            except InvalidChoice:
                logger.warning("Vote rejected: invalid choice %r", choice)
                raise

            if await ledger.find_vote(debate_id, ctx.caller) is not None:
                logger.warning(
                    "Vote rejected: %s already voted in debate #%d",
                    ctx.caller,
                    debate_id,
                )
                raise DuplicateVote(debate_id, ctx.caller)

            vote_id = await ledger.next_vote_id()
            await ledger.insert_vote(
                vote_id,
                VoteRecord(
                    id=vote_id,
                    debate_id=debate_id,
                    voter=ctx.caller,
                    voted_at=ctx.timestamp_ms,
                    choice=parsed,
                ),
            )

        logger.info(
            "%s voted for choice %d in debate %d", ctx.caller, parsed, debate_id
        )
        return vote_id
