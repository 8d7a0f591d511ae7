"""Typer CLI: goal-edge track, settle, stats, recent, calibration."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="goal-edge",
    help="Live goal-signal settlement and calibration",
    no_args_is_help=True,
)
console = Console()


@app.command()
def track(
    fixture_id: int = typer.Argument(help="Upstream fixture ID"),
    match_name: str = typer.Argument(help='Match label, e.g. "Arsenal vs Chelsea"'),
    minute: int = typer.Option(..., "--minute", "-m", help="Match minute of the trigger"),
    strength: float = typer.Option(..., "--strength", "-s", help="Signal strength (0-100)"),
    tier: str = typer.Option("watch", "--tier", "-t", help="Tier: high, watch, low"),
    reason: Optional[List[str]] = typer.Option(
        None, "--reason", "-r", help="Trigger reason (repeatable, first 3 kept)",
    ),
    odds: Optional[float] = typer.Option(None, "--odds", help="Odds at trigger"),
    line: str = typer.Option("", "--line", help="Market line at trigger"),
) -> None:
    """Record a new pending signal."""

    async def _run() -> None:
        from goal_edge.signals.resolver import track_signal

        signal = await track_signal(
            fixture_id=fixture_id,
            match_name=match_name,
            minute=minute,
            signal_strength=strength,
            tier=tier,
            reasons=reason or [],
            odds=odds,
            line=line,
        )
        console.print(f"[green]Tracking signal {signal.id}[/green]")

    asyncio.run(_run())


@app.command()
def settle(
    updates_file: Path = typer.Argument(
        help="JSON file: {fixture_id: {minute, goals: [{minute, team}], status}}",
    ),
) -> None:
    """Settle pending signals against a batch of match updates."""
    from goal_edge.signals.goals import parse_match_updates

    try:
        updates = parse_match_updates(json.loads(updates_file.read_text()))
    except (OSError, json.JSONDecodeError, AttributeError, KeyError, ValueError, TypeError) as exc:
        console.print(f"[red]Cannot read match updates: {exc}[/red]")
        raise typer.Exit(code=1)

    async def _run() -> None:
        from goal_edge.signals.resolver import run_settlement_sweep

        result = await run_settlement_sweep(updates)

        if not result.changed:
            console.print("[dim]No signals newly settled.[/dim]")
            return

        console.print(f"[bold]Settled {len(result.newly_settled)} signal(s):[/bold]")
        for s in result.new_hits:
            console.print(f"  [green]HIT[/green]  {s.match_name} {s.trigger_minute}' - {s.settlement_note}")
        for s in result.new_misses:
            console.print(f"  [red]MISS[/red] {s.match_name} {s.trigger_minute}' - {s.settlement_note}")

    asyncio.run(_run())


@app.command()
def stats(
    today: bool = typer.Option(False, "--today", help="Only signals triggered today"),
) -> None:
    """Show signal hit-rate statistics."""

    async def _run() -> None:
        from goal_edge.signals.formatters import format_stats_table
        from goal_edge.signals.resolver import today_start
        from goal_edge.signals.stats import calculate_hit_rate, hit_rate_by_tier
        from goal_edge.signals.tracker import SignalTracker

        signals = await SignalTracker().load()
        if today:
            since = today_start()
            signals = [s for s in signals if s.triggered_at >= since]

        overall = calculate_hit_rate(signals)
        format_stats_table(
            overall,
            hit_rate_by_tier(signals),
            console,
            title="Today's Hit Rate" if today else "Signal Hit Rate",
        )
        if not overall.settled:
            console.print("  Hit rate: N/A (no settled signals)")

    asyncio.run(_run())


@app.command()
def recent(
    limit: int = typer.Option(20, "--limit", "-l", help="Number of signals to show"),
    output: str = typer.Option("table", "--output", "-o", help="Output format: table, json"),
) -> None:
    """List the most recent signals."""

    async def _run() -> None:
        from goal_edge.signals.formatters import format_json, format_table
        from goal_edge.signals.resolver import get_recent_signals

        signals = await get_recent_signals(limit)
        if output == "json":
            console.print(format_json(signals))
        else:
            format_table(signals, console)

    asyncio.run(_run())


@app.command()
def calibration(
    recalculate: bool = typer.Option(
        False, "--recalculate", help="Rebuild the bucket table from the calibration log",
    ),
    fit: bool = typer.Option(
        False, "--fit", help="Fit Platt scaling on the calibration log",
    ),
) -> None:
    """Show calibration progress per signal-strength bucket."""

    async def _run() -> None:
        from goal_edge.calibration.buckets import calibration_summary, default_table, recalculate_table
        from goal_edge.calibration.platt import MIN_FIT_SAMPLES, fit_platt
        from goal_edge.calibration.recorder import CalibrationStore

        store = CalibrationStore()
        records = await store.load()
        if recalculate:
            table = recalculate_table(records)
            await store.save_table(table)
            console.print(f"[green]Recalculated table {table.version}[/green]")
        else:
            table = await store.load_table() or default_table()

        summary = calibration_summary(records, table)
        console.print("[bold]Calibration Summary[/bold]")
        console.print(f"  Records:  {summary.total_records}")
        console.print(f"  Hits:     {summary.total_hits}")
        console.print(f"  Misses:   {summary.total_misses}")
        console.print(f"  Hit rate: {summary.overall_hit_rate}%")
        console.print(
            f"  Ready:    {'yes' if summary.ready_for_calibration else 'no'}"
        )

        bucket_table = Table(title=f"Buckets ({table.version})")
        bucket_table.add_column("Strength")
        bucket_table.add_column("Samples", justify="right")
        bucket_table.add_column("Goal rate", justify="right")
        bucket_table.add_column("Calibrated")

        platt = fit_platt(records) if fit else None
        if platt is not None:
            bucket_table.add_column("Platt", justify="right")

        for b, bucket in zip(summary.buckets, table.buckets):
            row = [b.range, str(b.samples), f"{b.hit_rate}%", "yes" if b.is_calibrated else "no"]
            if platt is not None:
                midpoint = (bucket.signal_min + bucket.signal_max) / 2
                row.append(f"{platt.goal_probability(midpoint):.0%}")
            bucket_table.add_row(*row)
        console.print(bucket_table)

        if fit and platt is None:
            console.print(
                f"[yellow]Not enough records to fit (need {MIN_FIT_SAMPLES})[/yellow]"
            )
        elif platt is not None:
            console.print(
                f"  Platt fit: slope={platt.slope:.3f} intercept={platt.intercept:.3f} "
                f"({platt.samples} records)"
            )

    asyncio.run(_run())


@app.command(name="calibration-export")
def calibration_export(
    path: Path = typer.Argument(help="Destination JSON file"),
) -> None:
    """Export the calibration table and log to a JSON file."""

    async def _run() -> None:
        from goal_edge.calibration.recorder import CalibrationStore

        path.write_text(await CalibrationStore().export_json())
        console.print(f"[green]Exported calibration data to {path}[/green]")

    asyncio.run(_run())


if __name__ == "__main__":
    app()
