"""Analysis commands for ChartJournal CLI.

Handles chart analysis, price lookup, and leveraged trade planning.
"""

from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel

from chartjournal import config as settings
from chartjournal.cli.display import render_analysis, render_plan, render_quote
from chartjournal.models import AnalysisOutcome, PriceQuote

console = Console()


def resolve_price(
    symbol: str,
    price: Optional[float] = None,
    chart_price: Optional[float] = None,
    offline: bool = False,
    config: Optional[dict] = None,
) -> PriceQuote:
    """Resolve the price used to anchor analysis and plans.

    An explicit ``price`` wins; otherwise the live API, the chart reading,
    and the static table are tried in turn.
    """
    from chartjournal.pricing import PriceResolver, normalize_symbol

    if price is not None and price > 0:
        return PriceQuote(symbol=symbol, coin_id=normalize_symbol(symbol), price=price, source="manual")

    pricing = settings.get_pricing_settings(config)
    resolver = PriceResolver(
        api_url=pricing["api_url"],
        timeout=pricing["timeout"],
        use_live=not offline,
    )
    if chart_price is not None:
        resolver.observe_chart_price(symbol, chart_price)
    return resolver.resolve(symbol)


def load_image_argument(image: str) -> str:
    """Turn a path or URL argument into something analyze_chart accepts."""
    from chartjournal.analysis.images import is_remote_url, load_chart_image

    if is_remote_url(image):
        return image
    return load_chart_image(Path(image))


def run_analysis(
    image: str,
    symbol: str,
    current_price: Optional[float],
    user_key: Optional[str] = None,
    config: Optional[dict] = None,
) -> AnalysisOutcome:
    """Analyze a chart, announcing progress and any fallback."""
    from chartjournal.analysis import analyze_chart

    config = settings.load_config() if config is None else config
    gemini = settings.get_gemini_settings(config)

    with console.status(f"[dim]Analyzing {symbol} chart...[/dim]"):
        outcome = analyze_chart(
            image,
            symbol,
            api_key=settings.get_gemini_api_key(config, user_key=user_key),
            current_price=current_price,
            model=gemini["model"],
            base_url=gemini["base_url"],
            timeout=gemini["timeout"],
        )

    if outcome.error:
        console.print(
            f"[yellow]⚠ {outcome.error}: showing a generated analysis instead. "
            "Check your Gemini API key and connection.[/yellow]"
        )
    return outcome


@click.command()
@click.argument("image")
@click.option("--symbol", "-s", required=True, help="Symbol shown on the chart (e.g., BTC/USD).")
@click.option("--price", type=float, default=None, help="Current price; skips the price lookup.")
@click.option("--chart-price", type=float, default=None, help="Price read off the chart, used if the live lookup fails.")
@click.option("--offline", is_flag=True, default=False, help="Skip the live price API.")
@click.option("--leverage", type=click.FloatRange(min=1.0), default=None, help="Leverage for the trade plan (default from config).")
@click.option("--save", "save_id", default=None, help="Store the analysis on this journal entry.")
def analyze(
    image: str,
    symbol: str,
    price: Optional[float],
    chart_price: Optional[float],
    offline: bool,
    leverage: Optional[float],
    save_id: Optional[str],
) -> None:
    """Analyze a chart screenshot with the vision model.

    IMAGE is a path to a chart screenshot or an http(s) URL.

    \b
    Examples:
      chartjournal analyze btc.png -s BTC/USD
      chartjournal analyze sol.png -s BINANCE:SOLUSDT --chart-price 142.5
      chartjournal analyze eth.png -s ETH/USD --save a1b2c3d
    """
    from chartjournal.trading import calculate_leveraged_trade_parameters

    config = settings.load_config()

    try:
        chart = load_image_argument(image)
    except OSError as e:
        console.print(Panel(
            f"[red]Could not read chart image:[/red]\n\n{e}",
            title="[bold red]Error[/bold red]",
            border_style="red",
        ))
        raise SystemExit(1)

    store = settings.open_journal_store(config)
    quote = resolve_price(symbol, price, chart_price, offline, config)
    console.print(f"[dim]Price {quote.price:g} USD ({quote.source})[/dim]")

    outcome = run_analysis(chart, symbol, quote.price, store.get_user().gemini_api_key, config)
    analysis = outcome.analysis
    console.print(render_analysis(analysis))

    plan = calculate_leveraged_trade_parameters(
        analysis.trend,
        quote.price,
        analysis.support,
        analysis.resistance,
        leverage=leverage or settings.get_leverage(config),
    )
    console.print(render_plan(plan, symbol))

    if save_id:
        updated = store.update_entry(save_id, {"ai_analysis": analysis})
        if updated is None:
            console.print(f"[red]No journal entry with id {save_id}[/red]")
            raise SystemExit(1)
        console.print(f"[green]✓ Analysis saved to entry {save_id}[/green]")


@click.command()
@click.argument("symbol")
@click.option("--chart-price", type=float, default=None, help="Price read off the chart, used if the live lookup fails.")
@click.option("--offline", is_flag=True, default=False, help="Skip the live price API.")
def price(symbol: str, chart_price: Optional[float], offline: bool) -> None:
    """Look up the current USD price of a symbol.

    \b
    Examples:
      chartjournal price BTC/USD
      chartjournal price BINANCE:SOLUSDT --offline
    """
    quote = resolve_price(symbol, chart_price=chart_price, offline=offline)
    console.print(render_quote(quote))


@click.command()
@click.argument("symbol")
@click.option("--trend", "-t", required=True, help="Trend description containing bullish or bearish.")
@click.option("--support", type=float, multiple=True, help="Support level (repeatable).")
@click.option("--resistance", type=float, multiple=True, help="Resistance level (repeatable).")
@click.option("--price", type=float, default=None, help="Current price; skips the price lookup.")
@click.option("--offline", is_flag=True, default=False, help="Skip the live price API.")
@click.option("--leverage", type=click.FloatRange(min=1.0), default=None, help="Leverage multiple (default from config).")
def plan(
    symbol: str,
    trend: str,
    support: tuple[float, ...],
    resistance: tuple[float, ...],
    price: Optional[float],
    offline: bool,
    leverage: Optional[float],
) -> None:
    """Plan a leveraged trade from support and resistance levels.

    \b
    Examples:
      chartjournal plan BTC/USD -t bullish --price 100 --support 95 --resistance 110
      chartjournal plan ETH/USD -t "bearish breakdown" --support 3300 --resistance 3650
    """
    from chartjournal.trading import calculate_leveraged_trade_parameters

    config = settings.load_config()
    quote = resolve_price(symbol, price=price, offline=offline, config=config)

    trade_plan = calculate_leveraged_trade_parameters(
        trend,
        quote.price,
        list(support),
        list(resistance),
        leverage=leverage or settings.get_leverage(config),
    )
    console.print(render_plan(trade_plan, symbol))
    if not trade_plan.is_valid:
        raise SystemExit(1)
