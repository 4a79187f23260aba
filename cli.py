#!/usr/bin/env python3
"""Command-line interface for the debate ledger.

Usage examples:
    python cli.py init --owner admin.near
    python cli.py --caller alice create-debate --topic "Tabs vs Spaces" \\
        --figure-one Tabs --figure-one-image https://img/tabs.png \\
        --figure-two Spaces --figure-two-image https://img/spaces.png \\
        --dialogue dialogue.yaml
    python cli.py --caller bob vote --debate-id 1 --choice 2
    python cli.py list-debates
    python cli.py show --debate-id 1 --json
    python cli.py --caller bob my-vote --debate-id 1
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, AsyncIterator

import click
import yaml

from ledger.database import DebateLedger
from ledger.errors import LedgerError
from ledger.models import DialogueLine, Figure
from services import (
    CallContext,
    DebateService,
    QueryService,
    VotingService,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _load_config(config_path: str = "config/default.yaml") -> dict[str, Any]:
    """Load and return the YAML config."""
    p = Path(config_path)
    if not p.exists():
        click.echo(f"Config not found: {p}. Using defaults.", err=True)
        return {}
    with open(p) as f:
        return yaml.safe_load(f) or {}


def _setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _load_dialogue(path: str | None) -> list[DialogueLine]:
    """Read a YAML/JSON list of dialogue lines (mappings or triples)."""
    if path is None:
        return []
    with open(path) as f:
        raw = yaml.safe_load(f) or []
    if not isinstance(raw, list):
        raise click.BadParameter("Dialogue file must contain a list", param_hint="--dialogue")
    try:
        return [DialogueLine.from_raw(item) for item in raw]
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--dialogue") from exc


def _require_caller(ctx: click.Context) -> CallContext:
    caller = ctx.obj["caller"]
    if not caller:
        raise click.UsageError(
            "No caller identity. Pass --caller or set DEBATE_LEDGER_CALLER."
        )
    return CallContext.now(caller)


@asynccontextmanager
async def _open_ledger(cfg: dict[str, Any]) -> AsyncIterator[DebateLedger]:
    db_path = (cfg.get("database") or {}).get("path", "data/ledger.db")
    ledger = DebateLedger(db_path)
    await ledger.connect()
    try:
        yield ledger
    except LedgerError as exc:
        raise click.ClickException(str(exc)) from exc
    finally:
        await ledger.close()


def _fmt_ms(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

@click.group()
@click.option("--config", default="config/default.yaml", help="Path to YAML config")
@click.option("--log-level", default=None, help="Logging level (overrides config)")
@click.option(
    "--caller",
    envvar="DEBATE_LEDGER_CALLER",
    default=None,
    help="Identity of the participant making the call",
)
@click.pass_context
def cli(ctx: click.Context, config: str, log_level: str | None, caller: str | None) -> None:
    """Debate Ledger – record debates and collect one vote per participant."""
    ctx.ensure_object(dict)
    cfg = _load_config(config)
    _setup_logging(log_level or (cfg.get("logging") or {}).get("level", "INFO"))
    ctx.obj["config"] = cfg
    ctx.obj["config_path"] = config
    ctx.obj["caller"] = caller


# ---- init -----------------------------------------------------------------

@cli.command()
@click.option("--owner", required=True, help="Owner identity recorded in the ledger")
@click.pass_context
def init(ctx: click.Context, owner: str) -> None:
    """Initialize a new ledger. Can only be done once per ledger file."""
    cfg = ctx.obj["config"]

    async def _run() -> None:
        async with _open_ledger(cfg) as ledger:
            await ledger.initialize(owner)
        click.echo(f"Ledger initialized (owner: {owner})")

    asyncio.run(_run())


# ---- create-debate --------------------------------------------------------

@cli.command("create-debate")
@click.option("--topic", required=True, help="Debate topic")
@click.option("--figure-one", "figure_one_name", required=True, help="First figure's name")
@click.option("--figure-one-image", "figure_one_image", default="", help="First figure's image URL")
@click.option("--figure-two", "figure_two_name", required=True, help="Second figure's name")
@click.option("--figure-two-image", "figure_two_image", default="", help="Second figure's image URL")
@click.option(
    "--dialogue",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="YAML/JSON file with the scripted dialogue",
)
@click.pass_context
def create_debate(
    ctx: click.Context,
    topic: str,
    figure_one_name: str,
    figure_one_image: str,
    figure_two_name: str,
    figure_two_image: str,
    dialogue: str | None,
) -> None:
    """Create a debate between two figures."""
    cfg = ctx.obj["config"]
    call = _require_caller(ctx)
    lines = _load_dialogue(dialogue)

    async def _run() -> None:
        async with _open_ledger(cfg) as ledger:
            debate_id = await DebateService(ledger).create_debate(
                call,
                topic=topic,
                figure_one=Figure(name=figure_one_name, image_url=figure_one_image),
                figure_two=Figure(name=figure_two_name, image_url=figure_two_image),
                dialogue=lines,
            )
        click.echo(f"Debate #{debate_id} created")

    asyncio.run(_run())


# ---- vote -----------------------------------------------------------------

@cli.command()
@click.option("--debate-id", required=True, type=int, help="Debate to vote in")
@click.option("--choice", required=True, type=int, help="1 for the first figure, 2 for the second")
@click.pass_context
def vote(ctx: click.Context, debate_id: int, choice: int) -> None:
    """Cast your vote in a debate."""
    cfg = ctx.obj["config"]
    call = _require_caller(ctx)

    async def _run() -> None:
        async with _open_ledger(cfg) as ledger:
            vote_id = await VotingService(ledger).vote_in_debate(call, debate_id, choice)
        click.echo(f"Vote #{vote_id} recorded for choice {choice} in debate #{debate_id}")

    asyncio.run(_run())


# ---- list-debates ---------------------------------------------------------

@cli.command("list-debates")
@click.option("--json", "as_json", is_flag=True, help="Emit JSON instead of a table")
@click.pass_context
def list_debates(ctx: click.Context, as_json: bool) -> None:
    """List all debates with their current tallies."""
    cfg = ctx.obj["config"]

    async def _run() -> None:
        async with _open_ledger(cfg) as ledger:
            debates = await QueryService(ledger).list_debates()

        if as_json:
            click.echo(json.dumps([d.to_dict() for d in debates], indent=2))
            return
        if not debates:
            click.echo("No debates found.")
            return

        click.echo(f"{'ID':>5}  {'Votes':>9}  {'Figures':<30} {'Topic'}")
        click.echo(f"{'─' * 5}  {'─' * 9}  {'─' * 30} {'─' * 40}")
        for d in debates:
            figures = f"{d.figure_one_name} vs {d.figure_two_name}"
            votes = f"{d.figure_one_votes}-{d.figure_two_votes}"
            click.echo(f"{d.debate_id:>5}  {votes:>9}  {figures[:30]:<30} {d.topic[:40]}")

    asyncio.run(_run())


# ---- show -----------------------------------------------------------------

@cli.command()
@click.option("--debate-id", required=True, type=int, help="Debate to show")
@click.option("--json", "as_json", is_flag=True, help="Emit JSON")
@click.pass_context
def show(ctx: click.Context, debate_id: int, as_json: bool) -> None:
    """Show one debate with its dialogue and tally."""
    cfg = ctx.obj["config"]

    async def _run() -> None:
        async with _open_ledger(cfg) as ledger:
            detail = await QueryService(ledger).get_debate_detail(debate_id)

        if detail is None:
            click.echo(f"Debate #{debate_id} not found.", err=True)
            return
        if as_json:
            click.echo(json.dumps(detail.to_dict(), indent=2))
            return

        click.echo(f"\n{'=' * 60}")
        click.echo(f"  DEBATE #{detail.debate_id}: {detail.topic}")
        click.echo(f"{'=' * 60}")
        click.echo(f"  Creator : {detail.creator}")
        click.echo(f"  Created : {_fmt_ms(detail.created_at)} UTC")
        click.echo(f"  [1] {detail.figure_one_name:<20} {detail.figure_one_votes} votes")
        click.echo(f"  [2] {detail.figure_two_name:<20} {detail.figure_two_votes} votes")
        if detail.dialogue:
            click.echo()
            for line in detail.dialogue:
                click.echo(f"  {line.speaker}: {line.line}")

    asyncio.run(_run())


# ---- my-vote --------------------------------------------------------------

@cli.command("my-vote")
@click.option("--debate-id", required=True, type=int, help="Debate to look up")
@click.pass_context
def my_vote(ctx: click.Context, debate_id: int) -> None:
    """Show the vote you cast in a debate, if any."""
    cfg = ctx.obj["config"]
    call = _require_caller(ctx)

    async def _run() -> None:
        async with _open_ledger(cfg) as ledger:
            user_vote = await QueryService(ledger).get_user_vote(call, debate_id)

        if user_vote is None:
            click.echo(f"{call.caller} has not voted in debate #{debate_id}.")
            return
        click.echo(
            f"{call.caller} voted for choice {int(user_vote.choice)} "
            f"at {_fmt_ms(user_vote.voted_at)} UTC"
        )

    asyncio.run(_run())


# ---------------------------------------------------------------------------

if __name__ == "__main__":
    cli()
