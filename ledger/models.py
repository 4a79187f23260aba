"""Pydantic models mirroring the ledger's SQLite schema."""

from __future__ import annotations

import json
from enum import IntEnum
from typing import Any

from pydantic import BaseModel, ConfigDict


class Choice(IntEnum):
    """Which figure a vote supports."""

    FIGURE_ONE = 1
    FIGURE_TWO = 2


class Figure(BaseModel):
    """One side of a debate."""

    model_config = ConfigDict(frozen=True)

    name: str
    image_url: str


class DialogueLine(BaseModel):
    """A single scripted line: who says it, what, and free-form metadata."""

    model_config = ConfigDict(frozen=True)

    speaker: str
    line: str
    metadata: str = ""

    @classmethod
    def from_raw(cls, raw: Any) -> DialogueLine:
        """Accept either a mapping or a ``[speaker, line, metadata]`` triple."""
        if isinstance(raw, DialogueLine):
            return raw
        if isinstance(raw, dict):
            return cls.model_validate(raw)
        if isinstance(raw, (list, tuple)) and 2 <= len(raw) <= 3:
            return cls(
                speaker=raw[0],
                line=raw[1],
                metadata=raw[2] if len(raw) == 3 else "",
            )
        raise ValueError(f"Cannot read dialogue line from {raw!r}")


class DebateRecord(BaseModel):
    """Row in the ``debates`` table."""

    model_config = ConfigDict(frozen=True)

    id: int | None = None
    topic: str
    creator: str
    created_at: int  # epoch milliseconds
    figure_one: Figure
    figure_two: Figure
    dialogue: tuple[DialogueLine, ...] = ()

    @property
    def dialogue_json(self) -> str:
        return json.dumps([d.model_dump() for d in self.dialogue])


class VoteRecord(BaseModel):
    """Row in the ``votes`` table."""

    model_config = ConfigDict(frozen=True)

    id: int | None = None
    debate_id: int
    voter: str
    voted_at: int  # epoch milliseconds
    choice: Choice


class Tally(BaseModel):
    """Vote counts for one debate, computed on read."""

    figure_one_votes: int = 0
    figure_two_votes: int = 0

    @property
    def total(self) -> int:
        return self.figure_one_votes + self.figure_two_votes
