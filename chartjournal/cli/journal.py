"""Journal commands for ChartJournal CLI.

Handles creating, listing, viewing, editing, and deleting trade entries,
plus journal statistics.
"""

from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel

from chartjournal import config as settings
from chartjournal.cli.display import render_entries, render_entry, render_stats
from chartjournal.entries import EntryValidationError, build_entry, prepare_updates

console = Console()

POSITION_CHOICES = click.Choice(["long", "short"], case_sensitive=False)
SENTIMENT_CHOICES = click.Choice(["bullish", "bearish"], case_sensitive=False)
# --clear names mapped to entry fields
CLEARABLE_FIELDS = {
    "entry": "entry_price",
    "exit": "exit_price",
    "notes": "notes",
    "position": "position",
    "sentiment": "sentiment",
}


def _error_panel(message: str, title: str = "Error") -> Panel:
    return Panel(
        f"[red]{message}[/red]",
        title=f"[bold red]{title}[/bold red]",
        border_style="red",
    )


def run_checklist() -> bool:
    """Walk the trader through the pre-trade checklist.

    Returns:
        True if every item was confirmed.
    """
    from chartjournal.trading.checklist import CHECKLIST_ITEMS, Checklist

    checklist = Checklist()
    console.print("[bold]Pre-Trade Checklist[/bold]")
    for item in CHECKLIST_ITEMS:
        if click.confirm(f"  {item.label}: {item.description}?", default=False):
            checklist.confirm(item.id)

    color = "green" if checklist.is_complete else "yellow"
    console.print(f"[{color}]{checklist.status}[/{color}]")
    return checklist.is_complete


@click.command("new")
@click.argument("symbol", required=False, default="")
@click.option("--chart", "chart", default=None, help="Chart screenshot path or http(s) URL.")
@click.option("--position", type=POSITION_CHOICES, default=None, help="Position side.")
@click.option("--sentiment", type=SENTIMENT_CHOICES, default=None, help="Your market sentiment.")
@click.option("--entry", "entry_price", type=float, default=None, help="Entry price.")
@click.option("--exit", "exit_price", type=float, default=None, help="Exit price.")
@click.option("--notes", default=None, help="Trade notes.")
@click.option("--analyze", "with_analysis", is_flag=True, default=False, help="Analyze the chart before saving.")
@click.option("--price", type=float, default=None, help="Current price for the analysis.")
@click.option("--chart-price", type=float, default=None, help="Price read off the chart for the analysis.")
@click.option("--offline", is_flag=True, default=False, help="Skip the live price API.")
@click.option("--checklist", "with_checklist", is_flag=True, default=False, help="Confirm the pre-trade checklist first.")
def new_entry(
    symbol: str,
    chart: Optional[str],
    position: Optional[str],
    sentiment: Optional[str],
    entry_price: Optional[float],
    exit_price: Optional[float],
    notes: Optional[str],
    with_analysis: bool,
    price: Optional[float],
    chart_price: Optional[float],
    offline: bool,
    with_checklist: bool,
) -> None:
    """Create a journal entry.

    SYMBOL and --chart are required.

    \b
    Examples:
      chartjournal new BTC/USD --chart btc.png --position long --entry 43250
      chartjournal new SOL/USDT --chart sol.png --analyze --checklist
    """
    if not symbol.strip() or not chart:
        console.print(_error_panel("Please provide a symbol and upload a chart image"))
        raise SystemExit(1)

    from chartjournal.cli.analyze import load_image_argument, resolve_price, run_analysis

    try:
        chart_url = load_image_argument(chart)
    except OSError as e:
        console.print(_error_panel(f"Failed to upload chart: {e}"))
        raise SystemExit(1)

    if with_checklist and not run_checklist():
        console.print(Panel(
            "[yellow]Confirm every checklist item before logging the trade.[/yellow]",
            title="[bold yellow]Confirmation Required[/bold yellow]",
            border_style="yellow",
        ))
        raise SystemExit(1)

    config = settings.load_config()
    store = settings.open_journal_store(config)

    analysis = None
    if with_analysis:
        quote = resolve_price(symbol, price, chart_price, offline, config)
        outcome = run_analysis(chart_url, symbol, quote.price, store.get_user().gemini_api_key, config)
        analysis = outcome.analysis

    try:
        draft = build_entry(
            symbol,
            chart_url,
            position=position.lower() if position else None,
            sentiment=sentiment.lower() if sentiment else None,
            entry_price=entry_price,
            exit_price=exit_price,
            notes=notes,
            ai_analysis=analysis,
        )
    except EntryValidationError as e:
        console.print(_error_panel(str(e)))
        raise SystemExit(1)

    saved = store.add_entry(draft)
    console.print(f"[green]✓ Trade entry saved successfully[/green] [dim](id {saved.id})[/dim]")
    render_entry(saved, console)


@click.command("list")
@click.option("--search", "-q", default=None, help="Filter by symbol substring.")
def list_entries(search: Optional[str]) -> None:
    """Show the journal with summary statistics.

    \b
    Examples:
      chartjournal list
      chartjournal list -q btc
    """
    store = settings.open_journal_store()
    entries = store.search_entries(search) if search else store.get_entries()

    console.print(render_stats(store.get_stats()))

    if not entries:
        message = f"No entries matching '{search}'" if search else "No journal entries yet"
        console.print(Panel(
            f"[dim]{message}[/dim]\n\n"
            "Create one with [cyan]chartjournal new SYMBOL --chart IMAGE[/cyan]",
            title="[bold]Trade Journal[/bold]",
            border_style="dim",
        ))
        return

    console.print(render_entries(entries))


@click.command("show")
@click.argument("entry_id")
def show_entry(entry_id: str) -> None:
    """Show one journal entry with its analysis."""
    store = settings.open_journal_store()
    entry = store.get_entry(entry_id)

    if entry is None:
        console.print(_error_panel(
            "The trade entry you're looking for doesn't exist.", title="Entry Not Found"
        ))
        raise SystemExit(1)

    render_entry(entry, console)


@click.command("edit")
@click.argument("entry_id")
@click.option("--symbol", default=None, help="New symbol.")
@click.option("--position", type=POSITION_CHOICES, default=None, help="Position side.")
@click.option("--sentiment", type=SENTIMENT_CHOICES, default=None, help="Your market sentiment.")
@click.option("--entry", "entry_price", type=float, default=None, help="Entry price.")
@click.option("--exit", "exit_price", type=float, default=None, help="Exit price.")
@click.option("--notes", default=None, help="Trade notes.")
@click.option(
    "--clear",
    "clear_fields",
    type=click.Choice(sorted(CLEARABLE_FIELDS), case_sensitive=False),
    multiple=True,
    help="Unset a field (repeatable).",
)
def edit_entry(
    entry_id: str,
    symbol: Optional[str],
    position: Optional[str],
    sentiment: Optional[str],
    entry_price: Optional[float],
    exit_price: Optional[float],
    notes: Optional[str],
    clear_fields: tuple[str, ...],
) -> None:
    """Edit a journal entry. Profit is recomputed from the prices.

    \b
    Examples:
      chartjournal edit a1b2c3d --exit 45100
      chartjournal edit a1b2c3d --position short --notes "Faded the breakout"
      chartjournal edit a1b2c3d --clear exit --clear notes
    """
    updates = {
        key: value
        for key, value in (
            ("symbol", symbol),
            ("position", position.lower() if position else None),
            ("sentiment", sentiment.lower() if sentiment else None),
            ("entry_price", entry_price),
            ("exit_price", exit_price),
            ("notes", notes),
        )
        if value is not None
    }

    for name in clear_fields:
        field = CLEARABLE_FIELDS[name.lower()]
        if field in updates:
            raise click.UsageError(f"Cannot both set and clear {name.lower()}")
        updates[field] = None

    if not updates:
        console.print("[yellow]Nothing to update.[/yellow]")
        return

    store = settings.open_journal_store()
    entry = store.get_entry(entry_id)
    if entry is None:
        console.print(_error_panel(f"No journal entry with id {entry_id}", title="Entry Not Found"))
        raise SystemExit(1)

    try:
        updated = store.update_entry(entry_id, prepare_updates(entry, updates))
    except EntryValidationError as e:
        console.print(_error_panel(str(e)))
        raise SystemExit(1)

    console.print(f"[green]✓ Entry {entry_id} updated[/green]")
    render_entry(updated, console)


@click.command("delete")
@click.argument("entry_id")
@click.option("--yes", "-y", is_flag=True, default=False, help="Skip the confirmation prompt.")
def delete_entry(entry_id: str, yes: bool) -> None:
    """Delete a journal entry."""
    if not yes and not click.confirm("Are you sure you want to delete this entry?", default=False):
        console.print("[dim]Cancelled[/dim]")
        return

    store = settings.open_journal_store()
    if not store.delete_entry(entry_id):
        console.print(_error_panel(f"No journal entry with id {entry_id}", title="Entry Not Found"))
        raise SystemExit(1)

    console.print(f"[green]✓ Entry {entry_id} deleted[/green]")


@click.command("stats")
def stats() -> None:
    """Show win rate, average profit and profit factor."""
    store = settings.open_journal_store()
    console.print(render_stats(store.get_stats()))
