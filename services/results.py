"""Named result records returned by the query service."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ledger.models import Choice, DebateRecord, DialogueLine, Tally


@dataclass(frozen=True)
class DebateSummary:
    """One row of ``list_debates``: debate fields plus live tallies."""

    debate_id: int
    topic: str
    creator: str
    created_at: int
    figure_one_name: str
    figure_one_image_url: str
    figure_two_name: str
    figure_two_image_url: str
    figure_one_votes: int = 0
    figure_two_votes: int = 0

    @classmethod
    def build(cls, debate_id: int, debate: DebateRecord, tally: Tally) -> DebateSummary:
        return cls(
            debate_id=debate_id,
            topic=debate.topic,
            creator=debate.creator,
            created_at=debate.created_at,
            figure_one_name=debate.figure_one.name,
            figure_one_image_url=debate.figure_one.image_url,
            figure_two_name=debate.figure_two.name,
            figure_two_image_url=debate.figure_two.image_url,
            figure_one_votes=tally.figure_one_votes,
            figure_two_votes=tally.figure_two_votes,
        )

    @property
    def total_votes(self) -> int:
        return self.figure_one_votes + self.figure_two_votes

    def to_dict(self) -> dict[str, Any]:
        return {
            "debate_id": self.debate_id,
            "topic": self.topic,
            "creator": self.creator,
            "created_at": self.created_at,
            "figure_one": {
                "name": self.figure_one_name,
                "image_url": self.figure_one_image_url,
            },
            "figure_two": {
                "name": self.figure_two_name,
                "image_url": self.figure_two_image_url,
            },
            "figure_one_votes": self.figure_one_votes,
            "figure_two_votes": self.figure_two_votes,
        }


@dataclass(frozen=True)
class DebateDetail(DebateSummary):
    """``DebateSummary`` plus the full scripted dialogue."""

    dialogue: tuple[DialogueLine, ...] = field(default_factory=tuple)

    @classmethod
    def build(cls, debate_id: int, debate: DebateRecord, tally: Tally) -> DebateDetail:
        summary = DebateSummary.build(debate_id, debate, tally)
        return cls(**vars(summary), dialogue=tuple(debate.dialogue))

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["dialogue"] = [d.model_dump() for d in self.dialogue]
        return data


@dataclass(frozen=True)
class UserVote:
    """The calling participant's own vote in one debate."""

    choice: Choice
    voted_at: int

    def to_dict(self) -> dict[str, Any]:
        return {"choice": int(self.choice), "voted_at": self.voted_at}
