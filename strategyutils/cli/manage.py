"""Setup commands: config template, token list and table columns."""

from typing import Optional

import click
from rich.table import Table

from strategyutils.cli.common import console, error_panel, get_config
from strategyutils.config import create_template_config, get_config_path, save_hidden_columns
from strategyutils.render.format import short_addr
from strategyutils.render.table import COLUMN_KEYS


@click.command()
@click.option("--force", is_flag=True, help="Overwrite an existing config file")
def init(force: bool) -> None:
    """Write a template config file with the default settings."""
    path = get_config_path()
    if path.exists() and not force:
        console.print(f"[yellow]Config already exists:[/yellow] {path}")
        console.print("[dim]Use --force to overwrite it.[/dim]")
        return

    written = create_template_config(path)
    console.print(f"[green]✓[/green] Wrote config to {written}")


@click.command()
def strategies() -> None:
    """List the configured Strategy tokens."""
    config = get_config()
    table = Table(title="Strategies", show_header=True, header_style="bold cyan")
    table.add_column("Name", style="bold")
    table.add_column("Contract")
    table.add_column("Short", style="dim")

    for name, address in config.get("strategies", {}).items():
        table.add_row(name, address, short_addr(address))

    console.print(table)
    console.print(f"[dim]Network: {config['api']['network']}[/dim]")


@click.command()
@click.option("--hide", "hide", default=None, help="Comma-separated columns to hide")
@click.option("--show-all", is_flag=True, help="Show every column again")
def columns(hide: Optional[str], show_all: bool) -> None:
    """Show or change which table columns are hidden.

    \b
    Examples:
      strategyutils columns                      # Current setting
      strategyutils columns --hide unix,volume   # Hide two columns
      strategyutils columns --show-all
    """
    config = get_config()

    if show_all:
        save_hidden_columns([])
        console.print("[green]✓[/green] All columns shown")
        return

    if hide is None:
        hidden = set(config["view"].get("hidden_columns", []))
        for key in COLUMN_KEYS:
            mark = "[dim]hidden[/dim]" if key in hidden else "[green]shown[/green]"
            console.print(f"{key:<14} {mark}")
        return

    keys = [k.strip() for k in hide.split(",") if k.strip()]
    unknown = [k for k in keys if k not in COLUMN_KEYS]
    if unknown:
        error_panel(f"Unknown columns: {', '.join(unknown)}\n\n[dim]Columns: {', '.join(COLUMN_KEYS)}[/dim]")
        raise SystemExit(1)

    path = save_hidden_columns(keys)
    console.print(f"[green]✓[/green] Hidden: {', '.join(keys) or 'none'} [dim]({path})[/dim]")
