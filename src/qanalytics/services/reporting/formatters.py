"""Rich console formatters for backtest reports.

Provides terminal display of the combined report with tables, colors, and
formatting using the Rich library. Infinity sentinels render as ∞.
"""

import math
from datetime import datetime, timezone
from typing import Literal

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from qanalytics.libraries.diagnostics.models import AlgoMetrics
from qanalytics.libraries.performance.models import AllMetrics, ExitReason
from qanalytics.services.reporting.models import BacktestReport

INFINITY_SYMBOL = "∞"


def _format_pct(value: float, precision: int = 2) -> str:
    """Format a fraction (0.0523) as a percentage (5.23%)."""
    if math.isinf(value):
        return INFINITY_SYMBOL if value > 0 else f"-{INFINITY_SYMBOL}"
    return f"{value * 100:.{precision}f}%"


def _format_currency(value: float, precision: int = 2) -> str:
    """Format currency value."""
    if value < 0:
        return f"-${abs(value):,.{precision}f}"
    return f"${value:,.{precision}f}"


def _format_number(value: int | float, precision: int = 0) -> str:
    """Format numeric value."""
    if isinstance(value, int):
        return f"{value:,}"
    return f"{value:,.{precision}f}"


def _format_ratio(value: float, precision: int = 2) -> str:
    """Format a ratio, keeping infinity sentinels visible."""
    if math.isinf(value):
        return INFINITY_SYMBOL if value > 0 else f"-{INFINITY_SYMBOL}"
    return f"{value:.{precision}f}"


def _format_date(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d")


def _get_color(value: float) -> str:
    """Get color based on positive/negative value."""
    if value > 0:
        return "green"
    elif value < 0:
        return "red"
    return "white"


def _ratio_color(value: float, good: float = 1.0) -> str:
    if value > good:
        return "green"
    elif value > 0:
        return "yellow"
    return "red"


def _create_summary_table(report: BacktestReport) -> Table:
    """Create summary metrics table."""
    summary = report.metrics.summary
    additional = report.metrics.additional

    table = Table(title="📊 Performance Summary", show_header=False, box=None, padding=(0, 2))

    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    duration_days = (report.end_time - report.start_time) / 86400
    table.add_row("Period", f"{_format_date(report.start_time)} to {_format_date(report.end_time)}")
    table.add_row("Duration", f"{duration_days:.1f} days ({_format_number(report.total_bars)} bars)")
    table.add_row("", "")  # Spacer

    table.add_row("Initial Capital", _format_currency(report.initial_capital))
    table.add_row("Final Equity", _format_currency(report.final_equity))

    pnl_color = _get_color(summary.total_pnl_usd)
    table.add_row("Total P&L", f"[{pnl_color}]{_format_currency(summary.total_pnl_usd)}[/{pnl_color}]")

    return_color = _get_color(report.total_return_pct)
    table.add_row("Total Return", f"[{return_color}]{_format_pct(report.total_return_pct)}[/{return_color}]")

    cagr_color = _get_color(additional.cagr)
    table.add_row("CAGR", f"[{cagr_color}]{_format_pct(additional.cagr)}[/{cagr_color}]")
    table.add_row("Annualized Return", _format_pct(additional.annualized_return_pct))

    return table


def _create_risk_table(metrics: AllMetrics) -> Table:
    """Create risk and risk-adjusted metrics table."""
    summary = metrics.summary
    additional = metrics.additional

    table = Table(title="⚠️  Risk Metrics", show_header=False, box=None, padding=(0, 2))

    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Volatility (Daily)", _format_pct(additional.daily_volatility))
    table.add_row("Volatility (Annual)", _format_pct(additional.annualized_volatility))
    table.add_row("Max Drawdown", f"[red]{_format_pct(summary.max_equity_drawdown_pct)}[/red]")
    table.add_row("Max Drawdown ($)", f"[red]{_format_currency(additional.max_drawdown_usd)}[/red]")
    table.add_row("Max DD Duration", f"{additional.max_drawdown_duration_seconds / 86400:.1f} days")
    table.add_row("Max Run-up", f"[green]{_format_pct(summary.max_equity_runup_pct)}[/green]")
    table.add_row("", "")  # Spacer

    for label, value in (
        ("Sharpe Ratio", summary.sharpe_ratio),
        ("Sortino Ratio", summary.sortino_ratio),
        ("Calmar Ratio", additional.calmar_ratio),
    ):
        color = _ratio_color(value)
        table.add_row(label, f"[{color}]{_format_ratio(value)}[/{color}]")

    return table


def _create_trade_stats_table(metrics: AllMetrics) -> Table:
    """Create trade statistics table with long/short columns."""
    stats = metrics.analysis.statistics
    pnl = metrics.analysis.profit_loss
    duration = metrics.analysis.duration

    table = Table(title="💼 Trade Statistics", box=None, padding=(0, 2))

    table.add_column("Metric", style="cyan")
    table.add_column("Long", justify="right")
    table.add_column("Short", justify="right")

    table.add_row(
        "Winning Trades",
        f"[green]{_format_number(int(stats.winning_trades_count.long))}[/green]",
        f"[green]{_format_number(int(stats.winning_trades_count.short))}[/green]",
    )
    table.add_row(
        "Losing Trades",
        f"[red]{_format_number(int(stats.losing_trades_count.long))}[/red]",
        f"[red]{_format_number(int(stats.losing_trades_count.short))}[/red]",
    )
    table.add_row(
        "Percent Profitable",
        _format_pct(stats.percent_profitable.long),
        _format_pct(stats.percent_profitable.short),
    )
    table.add_row("Avg P&L", _format_currency(pnl.avg_pnl.long), _format_currency(pnl.avg_pnl.short))
    table.add_row(
        "Avg Win",
        f"[green]{_format_currency(pnl.avg_winning_trade.long)}[/green]",
        f"[green]{_format_currency(pnl.avg_winning_trade.short)}[/green]",
    )
    table.add_row(
        "Avg Loss",
        f"[red]{_format_currency(pnl.avg_losing_trade.long)}[/red]",
        f"[red]{_format_currency(pnl.avg_losing_trade.short)}[/red]",
    )
    table.add_row(
        "Largest Win",
        _format_currency(pnl.largest_winning_trade.long),
        _format_currency(pnl.largest_winning_trade.short),
    )
    table.add_row(
        "Largest Loss",
        _format_currency(pnl.largest_losing_trade.long),
        _format_currency(pnl.largest_losing_trade.short),
    )
    table.add_row(
        "Avg Duration (bars)",
        _format_number(duration.avg_trade_duration_bars.long, 1),
        _format_number(duration.avg_trade_duration_bars.short, 1),
    )

    return table


def _create_totals_table(metrics: AllMetrics) -> Table:
    """Create whole-book trade totals table."""
    summary = metrics.summary
    additional = metrics.additional

    table = Table(title="🧮 Trade Totals", show_header=False, box=None, padding=(0, 2))

    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Total Trades", _format_number(summary.number_of_trades))

    win_rate_color = "green" if summary.win_rate > 0.5 else "yellow" if summary.win_rate > 0.4 else "red"
    table.add_row("Win Rate", f"[{win_rate_color}]{_format_pct(summary.win_rate)}[/{win_rate_color}]")

    pf_color = _ratio_color(additional.profit_factor, good=2.0)
    table.add_row("Profit Factor", f"[{pf_color}]{_format_ratio(additional.profit_factor)}[/{pf_color}]")

    expectancy_color = _get_color(additional.expectancy)
    table.add_row("Expectancy", f"[{expectancy_color}]{_format_currency(additional.expectancy)}[/{expectancy_color}]")
    table.add_row("Trades per Day", _format_number(additional.trades_per_day, 2))
    table.add_row("Largest Win", f"[green]{_format_currency(summary.largest_win_usd)}[/green]")
    table.add_row("Largest Loss", f"[red]{_format_currency(summary.largest_loss_usd)}[/red]")

    return table


def _create_exit_reason_table(metrics: AllMetrics) -> Table | None:
    """Create exit reason table (omitted when there are no trades)."""
    exits = metrics.additional.exits_by_reason
    total = sum(exits.values())
    if total == 0:
        return None

    table = Table(title="🚪 Exits by Reason", box=None, padding=(0, 1))

    table.add_column("Reason", style="cyan")
    table.add_column("Count", justify="right")
    table.add_column("Share", justify="right")

    for reason in ExitReason:
        count = exits.get(reason, 0)
        table.add_row(reason.value, _format_number(count), _format_pct(count / total, 1))

    return table


def _create_indicator_table(algo: AlgoMetrics, max_rows: int = 10) -> Table | None:
    """Create indicator usefulness ranking table."""
    if not algo.indicator_analysis:
        return None

    rows = algo.indicator_analysis[:max_rows]
    table = Table(title=f"🔬 Top {len(rows)} Indicators", box=None, padding=(0, 1))

    table.add_column("Indicator", style="cyan")
    table.add_column("Condition")
    table.add_column("Req", justify="center")
    table.add_column("Flips", justify="right")
    table.add_column("% True", justify="right")
    table.add_column("Trig", justify="right")
    table.add_column("Block", justify="right")
    table.add_column("Score", justify="right")

    for row in rows:
        score_color = "green" if row.usefulness_score >= 65 else "yellow" if row.usefulness_score >= 40 else "red"
        table.add_row(
            row.indicator_key,
            row.condition_type,
            "✓" if row.is_required else "",
            _format_number(row.flip_count),
            _format_pct(row.pct_time_true, 1),
            _format_number(row.triggering_flip_count),
            _format_number(row.blocking_count),
            f"[{score_color}]{row.usefulness_score:.0f}[/{score_color}]",
        )

    return table


def _create_near_miss_table(algo: AlgoMetrics) -> Table | None:
    """Create near-miss summary table."""
    if not algo.near_miss_analysis:
        return None

    table = Table(title="🎯 Near Misses", box=None, padding=(0, 1))

    table.add_column("Condition", style="cyan")
    table.add_column("Evaluations", justify="right")
    table.add_column("Triggers", justify="right")
    table.add_column("Closest (no trigger)", justify="right")
    table.add_column("Approaches", justify="right")
    table.add_column("Triggered", justify="right")

    for row in algo.near_miss_analysis:
        triggered = sum(1 for seq in row.approach_sequences if seq.triggered)
        table.add_row(
            row.condition_type,
            _format_number(row.total_evaluations),
            _format_number(row.trigger_count),
            _format_number(row.closest_approach_without_trigger),
            _format_number(len(row.approach_sequences)),
            _format_number(triggered),
        )

    return table


def _create_state_table(algo: AlgoMetrics) -> Table:
    """Create position state distribution table."""
    dist = algo.state_distribution

    table = Table(title="⏱️  Time in Market", box=None, padding=(0, 1))

    table.add_column("State", style="cyan")
    table.add_column("% Time", justify="right")
    table.add_column("Avg Stay (bars)", justify="right")

    table.add_row("Flat", _format_pct(dist.pct_time_flat, 1), _format_number(dist.avg_time_flat_bars, 1))
    table.add_row("Long", _format_pct(dist.pct_time_long, 1), _format_number(dist.avg_time_long_bars, 1))
    table.add_row("Short", _format_pct(dist.pct_time_short, 1), _format_number(dist.avg_time_short_bars, 1))

    return table


def display_backtest_report(
    report: BacktestReport,
    detail_level: Literal["summary", "standard", "full"] = "standard",
    console: Console | None = None,
) -> None:
    """
    Display a backtest report in Rich-formatted console output.

    Args:
        report: Combined backtest report
        detail_level: Level of detail to display:
            - "summary": Key metrics only (returns, P&L)
            - "standard": Summary + risk + trade totals + exit reasons
            - "full": Everything including direction breakdown and diagnostics
        console: Rich Console instance (creates new if None)

    Example:
        >>> report = ReportingService().build_report(...)
        >>> display_backtest_report(report, detail_level="full")
    """
    if console is None:
        console = Console()

    metrics = report.metrics
    console.print()  # Blank line

    # Always show summary
    console.print(_create_summary_table(report))
    console.print()

    if detail_level in ["standard", "full"]:
        console.print(_create_risk_table(metrics))
        console.print()

        if metrics.summary.number_of_trades > 0:
            console.print(_create_totals_table(metrics))
            console.print()

        exit_table = _create_exit_reason_table(metrics)
        if exit_table:
            console.print(exit_table)
            console.print()

        if report.swap_metrics is not None:
            console.print(
                Panel(
                    f"Total Fees: {_format_currency(report.swap_metrics.total_fees_usd)}\n"
                    f"Total Slippage: {_format_currency(report.swap_metrics.total_slippage_usd)}",
                    title="💰 Costs",
                    border_style="yellow",
                )
            )
            console.print()

    if detail_level == "full":
        if metrics.summary.number_of_trades > 0:
            console.print(_create_trade_stats_table(metrics))
            console.print()

        algo = report.algo_metrics
        for table in (_create_indicator_table(algo), _create_near_miss_table(algo)):
            if table:
                console.print(table)
                console.print()

        console.print(_create_state_table(algo))
        console.print()

    # Final summary panel
    summary_text = Text()
    summary_text.append("🏁 Backtest Complete: ", style="bold")
    summary_text.append(
        f"{_format_currency(report.initial_capital)} → {_format_currency(report.final_equity)}", style="bold cyan"
    )
    summary_text.append(
        f" ({_format_pct(report.total_return_pct)})", style=f"bold {_get_color(report.total_return_pct)}"
    )

    console.print(Panel(summary_text, border_style="green" if report.total_return_pct > 0 else "red"))
    console.print()
