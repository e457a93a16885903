"""Compare command: every configured token on one shared time grid."""

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
from strategyutils.pipeline import LoadOutcome, SelectTab, TokenRef, Viewer, renderable_series
from strategyutils.render import build_figure, render_compare_summary, render_table, write_chart


async def _load(
    config: dict,
    tokens: list[TokenRef],
    **kwargs,
) -> tuple[LoadOutcome, Viewer, RateMeter]:
    async with make_client(config) as client:
        viewer = Viewer(client, network=config["api"]["network"])
        with console.status("[bold green]Loading tokens...") as status:
            outcome = await viewer.load_compare(
                tokens,
                on_progress=lambda text: status.update(f"[bold green]{text}"),
                **kwargs,
            )
        return outcome, viewer, client.rate_meter


@click.command()
@click.argument("tokens", nargs=-1)
@click.option("-s", "--step", default=None, type=click.Choice(VALID_STEPS), help="Candle step (default from config)")
@click.option("-n", "--rows", default=None, type=click.IntRange(1, 1000), help="Grid points per token (1-1000)")
@click.option("--start", default=None, help="Shared range start, ISO date/time (default: 1 hour ago)")
@click.option("--series", default=None, help="Chart series, comma-separated (e.g. close,mcap)")
@click.option("--tab", default=None, help="Token whose table is shown (default: first loaded)")
@click.option("--chart", default=None, type=click.Path(dir_okay=False), help="Write the chart to this HTML file")
@click.option("--open", "open_chart", is_flag=True, help="Open the chart in a browser")
def compare(
    tokens: tuple[str, ...],
    step: Optional[str],
    rows: Optional[int],
    start: Optional[str],
    series: Optional[str],
    tab: Optional[str],
    chart: Optional[str],
    open_chart: bool,
) -> None:
    """Compare tokens on one shared time grid.

    TOKENS are strategy names or 0x addresses; all configured strategies
    when omitted. Tokens that fail to load are skipped.

    \b
    Examples:
      strategyutils compare                           # All strategies, last hour
      strategyutils compare punk birb -s 10m -n 60
      strategyutils compare --series mcap --open
    """
    config = get_config()
    view_cfg = config["view"]

    names = list(tokens) or list(config.get("strategies", {}))
    if not names:
        error_panel("No tokens given and none configured.")
        raise SystemExit(1)
    refs = [to_token_ref(name, config) for name in names]

    if tab is not None:
        tab = to_token_ref(tab, config).key
        if tab not in {r.key for r in refs}:
            error_panel(f"--tab {tab} is not one of the compared tokens.")
            raise SystemExit(1)

    step = step or view_cfg["step"]
    rows = rows or int(view_cfg["rows"])
    series_keys = parse_series(series, view_cfg["series"])
    start_unix = parse_start(start)

    try:
        outcome, viewer, meter = asyncio.run(_load(
            config,
            refs,
            step=step,
            max_rows=rows,
            start_unix=start_unix,
            series_keys=series_keys,
        ))
    except KeyboardInterrupt:
        console.print("[dim]Stopped.[/dim]")
        raise SystemExit(1)

    print_outcome(outcome)
    if tab is not None:
        try:
            viewer.dispatch(SelectTab(key=tab))
        except ValueError as e:
            console.print(f"[yellow]{e}; showing {viewer.view.active_tab}[/yellow]")
    view = viewer.view

    console.print(render_compare_summary(view))
    dataset = view.active_dataset
    if dataset is not None:
        console.print(render_table(dataset, hidden_columns=view_cfg.get("hidden_columns", [])))

    target = chart_target(chart, open_chart, config)
    if target is not None:
        fig = build_figure(renderable_series(view), title=f"Compare - {step}")
        path = write_chart(fig, target)
        console.print(f"[green]✓[/green] Chart written to {path}")
        if open_chart:
            click.launch(str(path.resolve()))

    print_rate(meter)
