"""Configuration and user commands for ChartJournal CLI."""

from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel

from chartjournal import config as settings

console = Console()


def _mask(secret: Optional[str]) -> str:
    if not secret:
        return "[dim]not set[/dim]"
    if len(secret) <= 8:
        return "****"
    return f"{secret[:4]}...{secret[-4:]}"


@click.command("init")
@click.option("--force", is_flag=True, default=False, help="Overwrite an existing config file.")
def init(force: bool) -> None:
    """Create the configuration file.

    Writes a template to ~/.config/chartjournal/config.toml (or
    $CHARTJOURNAL_HOME/config.toml). Secrets are left empty; set
    GEMINI_API_KEY or edit the file.
    """
    config_path = settings.get_config_path()

    if config_path.exists() and not force:
        console.print(f"[yellow]Config already exists at {config_path}[/yellow]")
        console.print("[dim]Use --force to overwrite it.[/dim]")
        return

    config_path = settings.create_template_config()
    console.print(Panel(
        f"[green]✓[/green] Configuration file created at:\n"
        f"[cyan]{config_path}[/cyan]\n\n"
        "[dim]Add your Gemini API key under [gemini], or set GEMINI_API_KEY.[/dim]",
        title="[bold green]Initialized[/bold green]",
        border_style="green",
    ))


@click.group("user")
def user() -> None:
    """View and update the journal owner.

    \b
    Examples:
      chartjournal user show
      chartjournal user set --name "Ada" --email ada@example.com
      chartjournal user set --gemini-key AIza...
    """
    pass


@user.command("show")
def show_user() -> None:
    """Show the stored user record."""
    store = settings.open_journal_store()
    current = store.get_user()
    effective_key = settings.get_gemini_api_key(user_key=current.gemini_api_key)

    console.print(Panel(
        f"[bold]Name:[/bold] {current.name}\n"
        f"[bold]Email:[/bold] {current.email}\n"
        f"[bold]Gemini key (stored):[/bold] {_mask(current.gemini_api_key)}\n"
        f"[bold]Gemini key (effective):[/bold] {_mask(effective_key)}",
        title=f"[bold]User #{current.id}[/bold]",
        border_style="cyan",
    ))


@user.command("set")
@click.option("--name", default=None, help="Display name.")
@click.option("--email", default=None, help="Contact email.")
@click.option("--gemini-key", default=None, help="Gemini API key to store on the user record.")
def set_user(name: Optional[str], email: Optional[str], gemini_key: Optional[str]) -> None:
    """Update fields of the user record."""
    updates = {
        key: value
        for key, value in (("name", name), ("email", email), ("gemini_api_key", gemini_key))
        if value is not None
    }

    if not updates:
        console.print("[yellow]Nothing to update. Pass --name, --email or --gemini-key.[/yellow]")
        return

    store = settings.open_journal_store()
    updated = store.update_user(updates)
    console.print(f"[green]✓ Updated user {updated.name} <{updated.email}>[/green]")
