"""Rich renderers shared by ChartJournal commands."""

from typing import Optional

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from chartjournal.models import AIAnalysis, JournalStats, PriceQuote, TradeEntry, TradeParameters


def format_price(value: Optional[float]) -> str:
    """Format a price with precision suited to its magnitude."""
    if value is None:
        return "-"
    if abs(value) >= 1:
        return f"{value:,.2f}"
    return f"{value:.8g}"


def format_signed(value: Optional[float], suffix: str = "") -> str:
    if value is None:
        return "-"
    color = "green" if value > 0 else "red"
    sign = "+" if value > 0 else ""
    return f"[{color}]{sign}{value:,.2f}{suffix}[/{color}]"


def render_analysis(analysis: AIAnalysis) -> Panel:
    """Render an analysis as a card."""
    if analysis.is_empty():
        return Panel(
            "[dim]No analysis yet. Run [cyan]chartjournal analyze[/cyan] on a chart image.[/dim]",
            title="[bold]AI Analysis[/bold]",
            border_style="dim",
        )

    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Field", style="bold cyan")
    table.add_column("Value")

    if analysis.pattern:
        table.add_row("Pattern", analysis.pattern)
    if analysis.trend:
        trend_color = "green" if "bullish" in analysis.trend.lower() else "red"
        table.add_row("Trend", f"[{trend_color}]{analysis.trend}[/{trend_color}]")
    if analysis.support:
        table.add_row("Support", ", ".join(format_price(level) for level in analysis.support))
    if analysis.resistance:
        table.add_row("Resistance", ", ".join(format_price(level) for level in analysis.resistance))
    if analysis.risk_reward_ratio:
        table.add_row("Risk/Reward", f"{analysis.risk_reward_ratio:.2f}")

    parts = [table]

    if analysis.technical_indicators:
        indicators = Table(title="Technical Indicators", show_header=True, header_style="bold cyan")
        indicators.add_column("Indicator", style="bold")
        indicators.add_column("Value")
        indicators.add_column("Interpretation")
        for indicator in analysis.technical_indicators:
            indicators.add_row(indicator.name, indicator.value, indicator.interpretation)
        parts.append(indicators)

    if analysis.recommendation:
        parts.append(Text.from_markup(f"\n[bold]Recommendation:[/bold] {analysis.recommendation}"))

    return Panel(Group(*parts), title="[bold]AI Analysis[/bold]", border_style="cyan")


def render_plan(plan: TradeParameters, symbol: str) -> Panel:
    """Render a leveraged trade plan."""
    if not plan.is_valid:
        return Panel(
            "[yellow]No trade plan: the trend must mention bullish or bearish "
            "and the price must be positive.[/yellow]",
            title=f"[bold]Trade Plan: {symbol}[/bold]",
            border_style="yellow",
        )

    side_color = "green" if plan.direction == "long" else "red"
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Field", style="bold cyan")
    table.add_column("Value", justify="right")

    table.add_row("Direction", f"[{side_color}]{plan.direction.upper()}[/{side_color}]")
    table.add_row("Leverage", f"{plan.leverage:g}x")
    table.add_row("Entry", format_price(plan.entry_price))
    table.add_row("Stop Loss", f"[red]{format_price(plan.stop_loss)}[/red]")
    table.add_row("Take Profit", f"[green]{format_price(plan.take_profit)}[/green]")
    table.add_row("Risk/Reward", f"{plan.risk_reward_ratio:.2f}")
    table.add_row("Leveraged Risk", f"[red]-{plan.risk_percent:.2f}%[/red]")
    table.add_row("Leveraged Reward", f"[green]+{plan.reward_percent:.2f}%[/green]")
    table.add_row("Liquidation", format_price(plan.liquidation_price))

    return Panel(table, title=f"[bold]Trade Plan: {symbol}[/bold]", border_style=side_color)


def render_quote(quote: PriceQuote) -> Panel:
    source_labels = {
        "manual": "[bold]entered manually[/bold]",
        "live": "[green]live price API[/green]",
        "chart": "[cyan]chart reading[/cyan]",
        "table": "[yellow]static price table[/yellow]",
        "default": "[red]default price[/red]",
    }
    return Panel(
        f"[bold]{format_price(quote.price)}[/bold] USD\n\n"
        f"[dim]Coin id:[/dim] {quote.coin_id}\n"
        f"[dim]Source:[/dim] {source_labels[quote.source]}",
        title=f"[bold]{quote.symbol}[/bold]",
        border_style="cyan",
    )


def render_entries(entries: list[TradeEntry]) -> Table:
    """Render journal entries as a table."""
    table = Table(title="Trade Journal", show_header=True, header_style="bold cyan")

    table.add_column("ID", style="bold")
    table.add_column("Date")
    table.add_column("Symbol", style="bold")
    table.add_column("Side")
    table.add_column("Entry", justify="right")
    table.add_column("Exit", justify="right")
    table.add_column("Profit", justify="right")
    table.add_column("Pattern", max_width=24)

    for entry in entries:
        side = {"long": "Long", "short": "Short"}.get(entry.position, "Unspecified")
        profit = "-"
        if entry.profit is not None:
            profit = format_signed(entry.profit)
            if entry.profit_percentage is not None:
                profit += f" ({format_signed(entry.profit_percentage, '%')})"
        table.add_row(
            entry.id,
            entry.created_at.strftime("%b %d, %Y"),
            entry.symbol,
            side,
            format_price(entry.entry_price),
            format_price(entry.exit_price),
            profit,
            entry.ai_analysis.pattern or "-",
        )

    return table


def render_stats(stats: JournalStats) -> Panel:
    factor_color = "green" if stats.profit_factor >= 1 else "red"
    return Panel(
        f"[bold]Completed trades:[/bold] {stats.total_trades}\n"
        f"[bold]Win rate:[/bold] {stats.win_rate:.2f}%\n"
        f"[bold]Average profit:[/bold] {format_signed(stats.average_profit) if stats.average_profit else '0.00'}\n"
        f"[bold]Profit factor:[/bold] [{factor_color}]{stats.profit_factor:.2f}[/{factor_color}]",
        title="[bold]Journal Stats[/bold]",
        border_style="cyan",
    )


def render_entry(entry: TradeEntry, console: Console) -> None:
    """Print the detail view of one entry."""
    side = {"long": "Long", "short": "Short"}.get(entry.position, "Unspecified")
    sentiment = (entry.sentiment or "unspecified").capitalize()
    chart = entry.chart_image_url
    if chart.startswith("data:"):
        chart = f"embedded image ({len(chart) // 1024} KB)"

    lines = [
        f"[dim]{entry.created_at.strftime('%A, %B %d, %Y')}[/dim]",
        "",
        f"[bold]Position:[/bold] {side}    [bold]Sentiment:[/bold] {sentiment}",
        f"[bold]Entry:[/bold] {format_price(entry.entry_price)}    "
        f"[bold]Exit:[/bold] {format_price(entry.exit_price)}",
    ]
    if entry.profit is not None:
        lines.append(
            f"[bold]Profit:[/bold] {format_signed(entry.profit)} "
            f"({format_signed(entry.profit_percentage, '%')})"
        )
    lines.append(f"[bold]Chart:[/bold] {chart}")
    if entry.notes:
        lines.extend(["", f"[bold]Notes:[/bold] {entry.notes}"])

    console.print(Panel(
        "\n".join(lines),
        title=f"[bold]{entry.symbol}[/bold] [dim]#{entry.id}[/dim]",
        border_style="cyan",
    ))
    console.print(render_analysis(entry.ai_analysis))
