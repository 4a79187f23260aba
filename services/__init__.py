"""Service layer – debate creation, voting and queries over the ledger."""

from services.context import CallContext
from services.debate_service import DebateService
from services.query_service import QueryService
from services.results import DebateDetail, DebateSummary, UserVote
from services.voting_service import VotingService, parse_choice

__all__ = [
    "CallContext",
    "DebateDetail",
    "DebateService",
    "DebateSummary",
    "QueryService",
    "UserVote",
    "VotingService",
    "parse_choice",
]
