"""Tests for VotingService."""

from __future__ import annotations

import asyncio

import pytest

from ledger.database import DebateLedger
from ledger.errors import DebateNotFound, DuplicateVote, InvalidChoice
from ledger.models import Choice
from services import CallContext, VotingService, parse_choice


class TestParseChoice:
    def test_valid(self):
        assert parse_choice(1) is Choice.FIGURE_ONE
        assert parse_choice(2) is Choice.FIGURE_TWO
        assert parse_choice(Choice.FIGURE_TWO) is Choice.FIGURE_TWO

    @pytest.mark.parametrize("bad", [0, 3, -1, 255, "1", 1.0, None, True])
    def test_invalid(self, bad):
        with pytest.raises(InvalidChoice):
            parse_choice(bad)


class TestVoteInDebate:
    @pytest.mark.asyncio
    async def test_vote_returns_id(self, debates, voting: VotingService, alice, bob, figures):
        debate_id = await debates.create_debate(alice, "t", *figures)
        assert await voting.vote_in_debate(bob, debate_id, 1) == 1

    @pytest.mark.asyncio
    async def test_vote_ids_independent_of_debate_ids(
        self, debates, voting: VotingService, alice, bob, carol, figures
    ):
        for i in range(3):
            await debates.create_debate(alice, f"t{i}", *figures)
        ids = [
            await voting.vote_in_debate(alice, 3, 1),
            await voting.vote_in_debate(bob, 3, 2),
            await voting.vote_in_debate(carol, 1, 1),
            await voting.vote_in_debate(alice, 2, 2),
        ]
        assert ids == [1, 2, 3, 4]

    @pytest.mark.asyncio
    async def test_stores_vote(self, debates, voting: VotingService, ledger: DebateLedger, alice, bob, figures):
        debate_id = await debates.create_debate(alice, "t", *figures)
        await voting.vote_in_debate(bob, debate_id, 2)
        stored = await ledger.find_vote(debate_id, "bob.near")
        assert stored is not None
        assert stored.choice is Choice.FIGURE_TWO
        assert stored.voted_at == bob.timestamp_ms

    @pytest.mark.asyncio
    @pytest.mark.parametrize("choice", [1, 2, 0, 7])
    async def test_unknown_debate(self, voting: VotingService, alice, choice):
        with pytest.raises(DebateNotFound) as exc_info:
            await voting.vote_in_debate(alice, 42, choice)
        assert exc_info.value.debate_id == 42

    @pytest.mark.asyncio
    @pytest.mark.parametrize("choice", [0, 3, -5])
    async def test_invalid_choice(self, debates, voting: VotingService, alice, figures, choice):
        debate_id = await debates.create_debate(alice, "t", *figures)
        with pytest.raises(InvalidChoice):
            await voting.vote_in_debate(alice, debate_id, choice)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("second_choice", [1, 2])
    async def test_duplicate_vote(self, debates, voting: VotingService, alice, bob, figures, second_choice):
        debate_id = await debates.create_debate(alice, "t", *figures)
        await voting.vote_in_debate(bob, debate_id, 1)
        later = CallContext(caller=bob.caller, timestamp_ms=bob.timestamp_ms + 1)
        with pytest.raises(DuplicateVote) as exc_info:
            await voting.vote_in_debate(later, debate_id, second_choice)
        assert exc_info.value.voter == "bob.near"

    @pytest.mark.asyncio
    async def test_invalid_choice_checked_before_duplicate(
        self, debates, voting: VotingService, alice, figures
    ):
        debate_id = await debates.create_debate(alice, "t", *figures)
        await voting.vote_in_debate(alice, debate_id, 1)
        with pytest.raises(InvalidChoice):
            await voting.vote_in_debate(alice, debate_id, 9)

    @pytest.mark.asyncio
    async def test_same_voter_in_different_debates(self, debates, voting: VotingService, alice, figures):
        first = await debates.create_debate(alice, "a", *figures)
        second = await debates.create_debate(alice, "b", *figures)
        assert await voting.vote_in_debate(alice, first, 1) == 1
        assert await voting.vote_in_debate(alice, second, 2) == 2

    @pytest.mark.asyncio
    async def test_failures_do_not_consume_ids(self, debates, voting: VotingService, alice, bob, figures):
        debate_id = await debates.create_debate(alice, "t", *figures)
        await voting.vote_in_debate(alice, debate_id, 1)
        for bad in [(999, 1), (debate_id, 5), (debate_id, 2)]:
            with pytest.raises((DebateNotFound, InvalidChoice, DuplicateVote)):
                await voting.vote_in_debate(alice, *bad)
        assert await voting.vote_in_debate(bob, debate_id, 2) == 2
        assert [i async for i, _ in voting.ledger.iterate_votes()] == [1, 2]

    @pytest.mark.asyncio
    async def test_concurrent_duplicates_yield_one_vote(
        self, debates, voting: VotingService, alice, figures
    ):
        debate_id = await debates.create_debate(alice, "t", *figures)
        results = await asyncio.gather(
            *(voting.vote_in_debate(alice, debate_id, 1 + i % 2) for i in range(10)),
            return_exceptions=True,
        )
        successes = [r for r in results if isinstance(r, int)]
        duplicates = [r for r in results if isinstance(r, DuplicateVote)]
        assert successes == [1]
        assert len(duplicates) == 9

    @pytest.mark.asyncio
    async def test_concurrent_distinct_voters_get_distinct_ids(
        self, debates, voting: VotingService, alice, figures
    ):
        debate_id = await debates.create_debate(alice, "t", *figures)
        voters = [CallContext(caller=f"voter{i}.near", timestamp_ms=i) for i in range(20)]
        ids = await asyncio.gather(
            *(voting.vote_in_debate(v, debate_id, 1) for v in voters)
        )
        assert sorted(ids) == list(range(1, 21))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("debate_id", [2**63, 2**64 - 1])
    async def test_unstorable_debate_id_is_not_found(
        self, debates, voting: VotingService, alice, figures, debate_id
    ):
        await debates.create_debate(alice, "t", *figures)
        with pytest.raises(DebateNotFound) as exc_info:
            await voting.vote_in_debate(alice, debate_id, 1)
        assert exc_info.value.debate_id == debate_id
        assert [i async for i, _ in voting.ledger.iterate_votes()] == []
