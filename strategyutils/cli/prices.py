"""Single-token commands.

`info` shows the token panel from one token request; `prices` loads the
dataset, prints the price table and optionally writes the chart.
"""

import asyncio
from typing import Optional

import click

from strategyutils.cli.common import (
    VALID_STEPS,
    chart_target,
    console,
    error_panel,
    get_config,
    make_client,
    parse_series,
    parse_start,
    print_outcome,
    print_rate,
    to_token_ref,
)
from strategyutils.clients import RateMeter
from strategyutils.errors import StrategyUtilsError
from strategyutils.models import TokenInfo
from strategyutils.pipeline import LoadOutcome, TokenRef, Viewer, load_token_info, renderable_series
from strategyutils.render import build_figure, render_table, render_token_info, write_chart


async def _load_info(config: dict, token: TokenRef) -> tuple[TokenInfo, RateMeter]:
    async with make_client(config) as client:
        info = await load_token_info(client, token.key, token.address, network=config["api"]["network"])
        return info, client.rate_meter


async def _load(config: dict, token: TokenRef, **kwargs) -> tuple[LoadOutcome, RateMeter]:
    async with make_client(config) as client:
        viewer = Viewer(client, network=config["api"]["network"])
        outcome = await viewer.load_single(token, **kwargs)
        return outcome, client.rate_meter


def _explorer_url(config: dict, address: str) -> Optional[str]:
    template = config.get("explorer", {}).get("token_url")
    return template.format(address=address) if template else None


@click.command()
@click.argument("token")
def info(token: str) -> None:
    """Show token info: name, launch, liquidity, volume and market cap.

    TOKEN is a configured strategy name (e.g. PunkStrategy) or a 0x address.
    """
    config = get_config()
    ref = to_token_ref(token, config)

    console.print(f"[dim]Loading {ref.key}...[/dim]")
    try:
        details, meter = asyncio.run(_load_info(config, ref))
    except KeyboardInterrupt:
        console.print("[dim]Stopped.[/dim]")
        raise SystemExit(1)
    except StrategyUtilsError as e:
        error_panel(f"Error: {e}")
        raise SystemExit(1)

    console.print(render_token_info(details, explorer_url=_explorer_url(config, details.address)))
    print_rate(meter)


@click.command()
@click.argument("token")
@click.option("-s", "--step", default=None, type=click.Choice(VALID_STEPS), help="Candle step (default from config)")
@click.option("-n", "--rows", default=None, type=click.IntRange(1, 1000), help="Rows to show (1-1000)")
@click.option("--start", default=None, help="Range start, ISO date/time (default: 1 hour ago)")
@click.option("--at-launch", is_flag=True, help="Start at the token's launch time")
@click.option("--series", default=None, help="Chart series, comma-separated (e.g. close,mcap,fee)")
@click.option("--chart", default=None, type=click.Path(dir_okay=False), help="Write the chart to this HTML file")
@click.option("--open", "open_chart", is_flag=True, help="Open the chart in a browser")
def prices(
    token: str,
    step: Optional[str],
    rows: Optional[int],
    start: Optional[str],
    at_launch: bool,
    series: Optional[str],
    chart: Optional[str],
    open_chart: bool,
) -> None:
    """Price, market cap and fee table for one token.

    TOKEN is a configured strategy name (e.g. PunkStrategy) or a 0x address.

    \b
    Examples:
      strategyutils prices punkstrategy                 # Last hour, 1h steps
      strategyutils prices punkstrategy -s 10m -n 200   # 10-minute candles
      strategyutils prices birbstrategy --at-launch -s 1m --open
    """
    config = get_config()
    view_cfg = config["view"]
    ref = to_token_ref(token, config)

    step = step or view_cfg["step"]
    rows = rows or int(view_cfg["rows"])
    series_keys = parse_series(series, view_cfg["series"])
    start_unix = parse_start(start)

    console.print(f"[dim]Loading {ref.key} ({step}, {rows} rows)...[/dim]")
    try:
        outcome, meter = asyncio.run(_load(
            config,
            ref,
            step=step,
            max_rows=rows,
            start_unix=start_unix,
            start_at_launch=at_launch,
            series_keys=series_keys,
        ))
    except KeyboardInterrupt:
        console.print("[dim]Stopped.[/dim]")
        raise SystemExit(1)

    print_outcome(outcome)
    view = outcome.view
    dataset = view.active_dataset

    console.print(render_token_info(dataset, explorer_url=_explorer_url(config, dataset.address)))
    console.print(render_table(dataset, hidden_columns=view_cfg.get("hidden_columns", [])))

    target = chart_target(chart, open_chart, config)
    if target is not None:
        fig = build_figure(renderable_series(view), title=f"{dataset.key} - {step}")
        path = write_chart(fig, target)
        console.print(f"[green]✓[/green] Chart written to {path}")
        if open_chart:
            click.launch(str(path.resolve()))

    print_rate(meter)
