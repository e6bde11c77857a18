"""Replay subcommand: run a wager log through the market state store."""

from pathlib import Path

import typer

from lmsrengine.cache.store import MarketStateStore
from lmsrengine.replay.engine import replay_wagers

app = typer.Typer(help="Deterministic replay of a wager log")


@app.command("run")
def run_replay(
    ctx: typer.Context,
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON-lines wager file"),
) -> None:
    """Feed wagers through the cache and print final probabilities per market."""
    settings = ctx.obj["settings"]
    store = MarketStateStore(settings.cache_settings())
    summary = replay_wagers(store, path)
    typer.echo(f"Applied {summary.wagers_applied} wagers ({summary.wagers_rejected} rejected, {summary.flagged} flagged)")
    for market_id, probs in sorted(summary.final_probabilities.items()):
        typer.echo(f"  {market_id}  " + "  ".join(f"{p:.6f}" for p in probs))
