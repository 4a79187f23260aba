"""Per-call identity and clock."""

from __future__ import annotations

import time
from dataclasses import dataclass


def now_ms() -> int:
    return time.time_ns() // 1_000_000


@dataclass(frozen=True)
class CallContext:
    """Who is calling and when.

    Supplied by whatever delivers the call (CLI, tests, a web layer) and
    trusted as-is. Services never read identity or time from anywhere else.
    """

    caller: str
    timestamp_ms: int

    @classmethod
    def now(cls, caller: str) -> CallContext:
        return cls(caller=caller, timestamp_ms=now_ms())
