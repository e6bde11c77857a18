"""Kernel subcommand: prices, price, cost, risk, quote."""

from __future__ import annotations

import typer

from lmsrengine.errors import LMSRError
from lmsrengine.kernel import (
    assess_market_risk,
    calculate_cost,
    calculate_exact_cost,
    calculate_price,
    calculate_probabilities,
    simulate_market_making,
)

app = typer.Typer(help="Stateless pricing from per-outcome volumes")

VOLUMES_ARG = typer.Argument(..., help="Staked volume per outcome, in outcome order")
LIQUIDITY_OPT = typer.Option(None, "--liquidity", "-b", help="Liquidity parameter (default from config)")


def _liquidity(ctx: typer.Context, liquidity: float | None) -> float:
    return liquidity if liquidity is not None else ctx.obj["settings"].liquidity_param


def _fail(e: LMSRError) -> None:
    typer.echo(f"Error: {e}", err=True)
    raise typer.Exit(1)


def _fmt(values: list[float]) -> str:
    return "  ".join(f"{v:.6f}" for v in values)


@app.command("prices")
def prices(
    ctx: typer.Context,
    volumes: list[float] = VOLUMES_ARG,
    liquidity: float | None = LIQUIDITY_OPT,
) -> None:
    """Probability of every outcome."""
    try:
        probs = calculate_probabilities(_liquidity(ctx, liquidity), volumes)
    except LMSRError as e:
        _fail(e)
    for i, p in enumerate(probs):
        typer.echo(f"  [{i}]  {p:.6f}")


@app.command("price")
def price(
    ctx: typer.Context,
    volumes: list[float] = VOLUMES_ARG,
    outcome: int = typer.Option(..., "--outcome", "-o", help="Outcome index"),
    liquidity: float | None = LIQUIDITY_OPT,
) -> None:
    """Price of one outcome."""
    try:
        p = calculate_price(_liquidity(ctx, liquidity), volumes, outcome)
    except LMSRError as e:
        _fail(e)
    typer.echo(f"{p:.6f}")


@app.command("cost")
def cost(
    ctx: typer.Context,
    volumes: list[float] = VOLUMES_ARG,
    outcome: int = typer.Option(..., "--outcome", "-o", help="Outcome index"),
    shares: float = typer.Option(..., "--shares", "-s", help="Stake to add"),
    liquidity: float | None = LIQUIDITY_OPT,
    exact: bool = typer.Option(False, "--exact", help="Use the LMSR cost difference instead of the midpoint approximation"),
) -> None:
    """Cost of adding stake to an outcome."""
    b = _liquidity(ctx, liquidity)
    fn = calculate_exact_cost if exact else calculate_cost
    try:
        c = fn(b, volumes, outcome, shares)
    except LMSRError as e:
        _fail(e)
    typer.echo(f"{c:.6f}")


@app.command("risk")
def risk(
    ctx: typer.Context,
    volumes: list[float] = VOLUMES_ARG,
    liquidity: float | None = LIQUIDITY_OPT,
) -> None:
    """Entropy, concentration, volatility and liquidity risk."""
    try:
        r = assess_market_risk(_liquidity(ctx, liquidity), volumes)
    except LMSRError as e:
        _fail(e)
    typer.echo(f"Probabilities: {_fmt(r.probabilities)}")
    typer.echo(f"Entropy (bits): {r.entropy:.6f}")
    typer.echo(f"Concentration: {r.concentration:.6f}")
    typer.echo(f"Expected volatility: {r.expected_volatility:.6f}")
    typer.echo(f"Liquidity risk: {r.liquidity_risk:.6f}")


@app.command("quote")
def quote(
    ctx: typer.Context,
    volumes: list[float] = VOLUMES_ARG,
    liquidity: float | None = LIQUIDITY_OPT,
) -> None:
    """Advisory bid/ask per outcome."""
    settings = ctx.obj["settings"]
    try:
        q = simulate_market_making(
            _liquidity(ctx, liquidity),
            volumes,
            base_half_spread=settings.base_half_spread,
            min_half_spread=settings.min_half_spread,
        )
    except LMSRError as e:
        _fail(e)
    for i, (bid, ask) in enumerate(zip(q.bid_prices, q.ask_prices)):
        typer.echo(f"  [{i}]  bid {bid:.6f}  ask {ask:.6f}")
    typer.echo(f"Spread: {q.spread:.6f}")
    typer.echo(f"Recommended liquidity: {q.recommended_liquidity:.4f}")
