"""Table rows and rich renderables for datasets."""

import time
from typing import Iterable, Optional

from pydantic import BaseModel, Field
from rich.panel import Panel
from rich.table import Table

from strategyutils.models import Dataset, TokenInfo
from strategyutils.pipeline.grid import METRICS, metric_value
from strategyutils.pipeline.session import ViewSession
from strategyutils.render.format import (
    MISSING,
    fmt,
    fmt_multiple,
    fmt_percent,
    fmt_ts,
    fmt_usd,
    human_age,
    short_addr,
)

# (key, header, justify, style)
COLUMNS = (
    ("timestamp", "Date/Time", "left", "dim"),
    ("unix", "Unix", "right", "dim"),
    ("open", "Open", "right", None),
    ("high", "High", "right", "green"),
    ("low", "Low", "right", "red"),
    ("close", "Close", "right", None),
    ("volume", "Volume", "right", "dim"),
    ("mcap", "Market Cap", "right", "magenta"),
    ("fee", "Fee", "right", "bright_green"),
    ("breakeven", "Breakeven x", "right", "red"),
    ("breakeven_mc", "Breakeven MC", "right", "purple"),
)

COLUMN_KEYS = tuple(c[0] for c in COLUMNS)


class TableRow(BaseModel):
    """One table row; every value may be unknown."""

    index: int = Field(..., ge=1, description="1-based row number")
    unix: int = Field(..., description="Candle start, unix seconds")
    open: Optional[float] = None
    high: Optional[float] = None
    low: Optional[float] = None
    close: Optional[float] = None
    volume: Optional[float] = None
    mcap: Optional[float] = None
    fee: Optional[float] = None
    breakeven: Optional[float] = None
    breakeven_mc: Optional[float] = None

    model_config = {"frozen": True}

    def cells(self, hidden: frozenset = frozenset()) -> list[str]:
        formatted = {
            "timestamp": fmt_ts(self.unix),
            "unix": str(self.unix),
            "open": fmt(self.open),
            "high": fmt(self.high),
            "low": fmt(self.low),
            "close": fmt(self.close),
            "volume": fmt(self.volume),
            "mcap": fmt_usd(self.mcap),
            "fee": fmt_percent(self.fee),
            "breakeven": fmt_multiple(self.breakeven),
            "breakeven_mc": fmt_usd(self.breakeven_mc),
        }
        return [str(self.index)] + [formatted[k] for k in COLUMN_KEYS if k not in hidden]


def build_table_rows(dataset: Dataset) -> list[TableRow]:
    """Flat per-row structure with the derived market cap, fee and breakeven columns."""
    rows = []
    for i, candle in enumerate(dataset.rows, start=1):
        values = {
            metric: metric_value(dataset, candle, metric)
            for metric in METRICS
        }
        rows.append(TableRow(index=i, unix=candle.timestamp, **values))
    return rows


def render_table(
    dataset: Dataset,
    hidden_columns: Iterable[str] = (),
    limit: Optional[int] = None,
) -> Table:
    """Rich table of a dataset's rows.

    Args:
        dataset: Dataset to show.
        hidden_columns: Column keys to leave out.
        limit: Show only the first ``limit`` rows.
    """
    hidden = frozenset(hidden_columns)
    rows = build_table_rows(dataset)
    shown = rows[:limit] if limit else rows

    table = Table(
        title=f"{dataset.key} - {dataset.step} ({len(rows)} rows)",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("#", justify="right", style="dim")
    for key, header, justify, style in COLUMNS:
        if key not in hidden:
            table.add_column(header, justify=justify, style=style)

    for row in shown:
        table.add_row(*row.cells(hidden))

    if not rows:
        table.caption = "No rows in the requested range."
    elif len(shown) < len(rows):
        table.caption = f"Showing first {len(shown)} of {len(rows)} rows"
    return table


def render_token_info(
    info: TokenInfo,
    explorer_url: Optional[str] = None,
    now: Optional[float] = None,
) -> Panel:
    """Info bar: name, launch, liquidity, volume, market cap and contract."""
    token = info.token
    now = time.time() if now is None else now

    if token.market_cap_usd is not None:
        mcap_text = fmt_usd(token.market_cap_usd)
    elif token.fdv_usd is not None:
        mcap_text = f"{fmt_usd(token.fdv_usd)} (FDV)"
    else:
        mcap_text = MISSING

    liquidity = token.total_reserve_in_usd
    if liquidity is None:
        liquidity = info.pool.reserve_usd

    lines = [
        f"[bold]{token.name or MISSING}[/bold] [dim]({token.symbol or MISSING})[/dim]",
        "",
        f"[dim]Launch:[/dim]     {fmt_ts(info.launch_ts)}",
        f"[dim]Age:[/dim]        {human_age(info.launch_ts, now=now)}",
        f"[dim]Liquidity:[/dim]  {fmt_usd(liquidity)}",
        f"[dim]24h Volume:[/dim] {fmt_usd(token.volume_usd.h24)}",
        f"[dim]Market Cap:[/dim] {mcap_text}",
        f"[dim]Supply:[/dim]     {fmt(info.supply)}",
        f"[dim]Pool:[/dim]       {short_addr(info.pool.pool_address)} on {info.pool.dex_name} "
        f"({info.pool.side})",
        f"[dim]Contract:[/dim]   {short_addr(info.address)}",
    ]
    if explorer_url:
        lines.append(f"[dim]Explorer:[/dim]   [link={explorer_url}]{explorer_url}[/link]")

    return Panel(
        "\n".join(lines),
        title=f"[bold cyan]{info.key}[/bold cyan]",
        border_style="cyan",
    )


def render_compare_summary(view: ViewSession) -> Table:
    """One line per token of a compare-mode view, plus skipped tokens."""
    table = Table(
        title=f"Compare - {view.step} ({len(view.grid)} points)",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("Token", style="bold")
    table.add_column("Rows", justify="right")
    table.add_column("Launch", style="dim")
    table.add_column("Supply", justify="right")
    table.add_column("Last Close", justify="right")
    table.add_column("Last MC", justify="right", style="magenta")
    table.add_column("Status", style="dim")

    for key, dataset in view.datasets.items():
        last = dataset.rows[-1] if dataset.rows else None
        marker = "[bold]▶[/bold] " if key == view.active_tab else ""
        status = "ok" if not dataset.is_short else f"only {len(dataset.rows)}/{dataset.max_rows}"
        table.add_row(
            f"{marker}{key}",
            str(len(dataset.rows)),
            fmt_ts(dataset.launch_ts),
            fmt(dataset.supply),
            fmt(metric_value(dataset, last, "close")),
            fmt_usd(metric_value(dataset, last, "mcap")),
            status,
        )

    for key, error in view.errors.items():
        table.add_row(key, "0", MISSING, MISSING, MISSING, MISSING, f"[red]{error}[/red]")

    return table
