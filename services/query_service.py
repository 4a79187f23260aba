"""QueryService – read-only views with tallies computed on read."""

from __future__ import annotations

from ledger.database import DebateLedger
from ledger.models import Tally
from services.context import CallContext
from services.results import DebateDetail, DebateSummary, UserVote


class QueryService:
    """Lists debates, fetches one debate, and resolves the caller's own vote.

    Missing data is reported as ``None`` or an empty list, never as an error.
    """

    def __init__(self, ledger: DebateLedger) -> None:
        self.ledger = ledger

    async def list_debates(self) -> list[DebateSummary]:
        """Every debate in ascending id order, with its current tally."""
        async with self.ledger.read() as ledger:
            tallies = await ledger.tallies()
            return [
                DebateSummary.build(debate_id, debate, tallies.get(debate_id, Tally()))
                async for debate_id, debate in ledger.iterate_debates()
            ]

    async def get_debate_detail(self, debate_id: int) -> DebateDetail | None:
        async with self.ledger.read() as ledger:
            debate = await ledger.get_debate(debate_id)
            if debate is None:
                return None
            tally = (await ledger.tallies(debate_id)).get(debate_id, Tally())
            return DebateDetail.build(debate_id, debate, tally)

    async def get_user_vote(self, ctx: CallContext, debate_id: int) -> UserVote | None:
        """The caller's vote in *debate_id*; other participants' votes are unreachable."""
        async with self.ledger.read() as ledger:
            vote = await ledger.find_vote(debate_id, ctx.caller)
        if vote is None:
            return None
        return UserVote(choice=vote.choice, voted_at=vote.voted_at)
