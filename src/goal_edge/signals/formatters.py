"""Signal output formatters: Rich tables, JSON, Telegram scorecard."""

from __future__ import annotations

import json

from rich.console import Console
from rich.table import Table

from goal_edge.signals.models import SignalRecord, SignalStatus, SignalTier
from goal_edge.signals.settlement import SettlementResult
from goal_edge.signals.stats import HitRateStats

_STATUS_STYLE = {
    SignalStatus.PENDING: "yellow",
    SignalStatus.HIT: "green",
    SignalStatus.MISS: "red",
    SignalStatus.EXPIRED: "dim",
}


def format_table(signals: list[SignalRecord], console: Console | None = None) -> None:
    """Print signals as a Rich table, in stored (most recent first) order."""
    if console is None:
        console = Console()

    if not signals:
        console.print("[yellow]No signals recorded.[/yellow]")
        return

    table = Table(title="Goal Signals", show_lines=True)
    table.add_column("Status", width=8)
    table.add_column("Match", width=28, no_wrap=False)
    table.add_column("Min", justify="right", width=4)
    table.add_column("Strength", justify="right", width=8)
    table.add_column("Tier", width=6)
    table.add_column("Odds", justify="right", width=6)
    table.add_column("Line", width=8)
    table.add_column("Note", width=36, no_wrap=False)

    for s in signals:
        style = _STATUS_STYLE[s.status]
        table.add_row(
            f"[{style}]{s.status.value}[/{style}]",
            s.match_name[:60],
            f"{s.trigger_minute}'",
            f"{s.signal_strength:.0f}",
            s.tier.value,
            f"{s.odds_at_trigger:.2f}" if s.odds_at_trigger is not None else "-",
            s.line_at_trigger,
            s.settlement_note or "",
        )

    console.print(table)
    console.print(f"\n[dim]{len(signals)} signal(s) shown[/dim]")


def format_stats_table(
    overall: HitRateStats,
    by_tier: dict[SignalTier, HitRateStats],
    console: Console | None = None,
    title: str = "Signal Hit Rate",
) -> None:
    if console is None:
        console = Console()

    table = Table(title=title)
    table.add_column("Scope", width=8)
    table.add_column("Total", justify="right")
    table.add_column("Hits", justify="right")
    table.add_column("Misses", justify="right")
    table.add_column("Pending", justify="right")
    table.add_column("Hit rate", justify="right")

    rows = [("all", overall)] + [(tier.value, stats) for tier, stats in by_tier.items()]
    for scope, stats in rows:
        table.add_row(
            scope,
            str(stats.total),
            str(stats.hits),
            str(stats.misses),
            str(stats.pending),
            f"{stats.hit_rate}%" if stats.settled else "N/A",
        )

    console.print(table)


def format_json(signals: list[SignalRecord]) -> str:
    """Format signals as a JSON string."""
    return json.dumps([s.to_dict() for s in signals], indent=2)


def format_telegram_scorecard(result: SettlementResult, stats: HitRateStats) -> str:
    """Format newly settled signals and the running record for Telegram (Markdown)."""
    lines = [f"⚽ *Settled {len(result.newly_settled)} signal(s)*", ""]

    for s in result.new_hits:
        lines.append(f"✓ {_short(s.match_name)} {s.trigger_minute}' → goal {s.goal_minute}'")
    for s in result.new_misses:
        lines.append(f"✗ {_short(s.match_name)} {s.trigger_minute}' → {s.settlement_note}")

    if stats.settled:
        lines.append("")
        lines.append(f"Record: {stats.hits}/{stats.settled} ({stats.hit_rate}%)")
    return "\n".join(lines)


def _short(text: str, limit: int = 40) -> str:
    if len(text) > limit:
        return text[: limit - 3] + "..."
    return text
