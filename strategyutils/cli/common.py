"""Helpers shared by the command modules."""

from datetime import datetime
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel

from strategyutils.clients import GeckoTerminalClient, RateMeter
from strategyutils.config import load_config, resolve_token
from strategyutils.pipeline import METRICS, STEPS, LoadOutcome, LoadState, TokenRef

console = Console()

VALID_STEPS = list(STEPS)


def get_config() -> dict:
    """Lazily load configuration (defaults when no file exists)."""
    return load_config()


def make_client(config: dict) -> GeckoTerminalClient:
    """GeckoTerminal client configured from the [api] table."""
    api = config.get("api", {})
    timeout = api.get("timeout") or None
    return GeckoTerminalClient(
        api_root=api.get("root", "https://api.geckoterminal.com/api/v2"),
        rate_meter=RateMeter(limit=int(api.get("rate_limit_per_min", 30))),
        timeout=float(timeout) if timeout else None,
    )


def error_panel(message: str, title: str = "Error") -> None:
    console.print(Panel(
        f"[red]{message}[/red]",
        title=f"[bold red]{title}[/bold red]",
        border_style="red",
    ))


def warning_panel(message: str, title: str = "Warning") -> None:
    console.print(Panel(
        f"[yellow]{message}[/yellow]",
        title=f"[bold yellow]{title}[/bold yellow]",
        border_style="yellow",
    ))


def to_token_ref(name_or_address: str, config: dict) -> TokenRef:
    """Resolve a strategy name or 0x address, exiting with a panel if unknown."""
    try:
        key, address = resolve_token(name_or_address, config)
    except KeyError:
        names = ", ".join(config.get("strategies", {})) or "none"
        error_panel(
            f"Unknown token: {name_or_address}\n\n"
            f"[dim]Use a 0x address or one of: {names}[/dim]"
        )
        raise SystemExit(1)
    return TokenRef(key=key, address=address)


def parse_start(value: Optional[str]) -> Optional[int]:
    """ISO date/time to unix seconds. A value without offset is local time."""
    if not value:
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return int(datetime.fromisoformat(text).timestamp())
    except ValueError:
        raise click.BadParameter(f"not an ISO date/time: {value}", param_hint="--start")


def parse_series(value: Optional[str], default: list[str]) -> list[str]:
    """Comma-separated metric keys, validated against METRICS."""
    if not value:
        return list(default)
    keys = [k.strip().lower() for k in value.split(",") if k.strip()]
    unknown = [k for k in keys if k not in METRICS]
    if unknown:
        raise click.BadParameter(
            f"unknown series {', '.join(unknown)} (choose from {', '.join(METRICS)})",
            param_hint="--series",
        )
    return keys


def print_outcome(outcome: LoadOutcome) -> None:
    """Status line for a finished load; stops the command on failure."""
    if outcome.state == LoadState.ABORTED:
        console.print(f"[dim]{outcome.message}[/dim]")
        raise SystemExit(1)

    if outcome.state == LoadState.FAILED:
        details = "\n".join(f"{key}: {err}" for key, err in outcome.errors.items())
        error_panel(outcome.message + (f"\n\n[dim]{details}[/dim]" if details else ""))
        raise SystemExit(1)

    style = "yellow" if outcome.state == LoadState.PARTIAL_READY else "green"
    console.print(f"[{style}]{outcome.message}[/{style}]")
    for warning in outcome.warnings:
        console.print(f"[yellow]{warning}[/yellow]")


def print_rate(meter: RateMeter) -> None:
    console.print(f"[dim]API calls (60s): {meter}[/dim]")


def chart_target(chart: Optional[str], open_chart: bool, config: dict) -> Optional[Path]:
    """Where to write the chart, if anywhere."""
    if chart:
        return Path(chart).expanduser()
    if open_chart:
        return Path(config.get("view", {}).get("chart_path", "strategy-chart.html")).expanduser()
    return None
