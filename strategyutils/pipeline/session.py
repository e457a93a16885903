"""Load sessions and view state.

Every load builds a new immutable ViewSession and swaps it into the Viewer
only if the load was not aborted in the meantime, so a stale response can
never overwrite the view. Series and tab toggles are pure functions of the
current view.
"""

import logging
import time
from enum import Enum
from typing import Callable, Literal, Optional, Sequence, Union

from pydantic import BaseModel, Field

from strategyutils.clients.base import BaseMarketClient
from strategyutils.errors import (
    AbortedError,
    InsufficientDataWarning,
    StrategyUtilsError,
)
from strategyutils.models import Dataset
from strategyutils.pipeline.dataset import (
    DEFAULT_LOOKBACK_SECONDS,
    DatasetRequest,
    align_start,
    get_step,
    load_dataset,
    range_end,
)
from strategyutils.pipeline.grid import METRICS, build_grid, build_series, project_onto_grid
from strategyutils.signal import AbortSignal

logger = logging.getLogger(__name__)

DEFAULT_SERIES = ("close", "mcap")


class LoadState(str, Enum):
    """Lifecycle of one load."""

    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    PARTIAL_READY = "partial_ready"
    ABORTED = "aborted"
    FAILED = "failed"


class TokenRef(BaseModel):
    """A token to load: display key plus contract address."""

    key: str = Field(..., min_length=1, description="Display key")
    address: str = Field(..., min_length=1, description="Token contract address")

    model_config = {"frozen": True}


def _ordered_metrics(metrics) -> tuple[str, ...]:
    unknown = [m for m in metrics if m not in METRICS]
    if unknown:
        raise ValueError(f"Unknown series: {unknown}. Must be among {list(METRICS)}")
    selected = set(metrics)
    return tuple(m for m in METRICS if m in selected)


class ViewSession(BaseModel):
    """Everything one load produced plus the current series/tab selection."""

    mode: Literal["single", "compare"] = Field(..., description="Single token or compare-all")
    step: str = Field(..., description="Step key")
    max_rows: int = Field(..., ge=1, description="Rows requested per token")
    start_unix: int = Field(..., description="Range start")
    end_unix: int = Field(..., description="Range end")
    datasets: dict[str, Dataset] = Field(default_factory=dict, description="Loaded tokens, in load order")
    errors: dict[str, str] = Field(default_factory=dict, description="Skipped tokens and why")
    grid: tuple[int, ...] = Field(default=(), description="Shared x-axis timestamps")
    series_keys: tuple[str, ...] = Field(default=DEFAULT_SERIES, description="Selected metrics")
    token_keys: tuple[str, ...] = Field(default=(), description="Tokens shown on the chart")
    active_tab: Optional[str] = Field(default=None, description="Token whose table is shown")

    model_config = {"frozen": True}

    @property
    def active_dataset(self) -> Optional[Dataset]:
        if self.active_tab is None:
            return None
        return self.datasets.get(self.active_tab)


class RenderableSeries(BaseModel):
    """Chart input: one x-axis and ordered y-series of equal length."""

    mode: Literal["single", "compare"]
    timestamps: tuple[int, ...] = ()
    series: dict[str, list[Optional[float]]] = Field(default_factory=dict)

    model_config = {"frozen": True}


class LoadOutcome(BaseModel):
    """Result of one Viewer load."""

    state: LoadState
    view: Optional[ViewSession] = None
    message: str = ""
    errors: dict[str, str] = Field(default_factory=dict)
    warnings: list[InsufficientDataWarning] = Field(default_factory=list)

    model_config = {"frozen": True, "arbitrary_types_allowed": True}


# ---- view events ----

class ToggleSeries(BaseModel):
    metric: str
    enabled: bool = True

    model_config = {"frozen": True}


class SetSeries(BaseModel):
    metrics: tuple[str, ...] = ()

    model_config = {"frozen": True}


class SelectTab(BaseModel):
    key: str

    model_config = {"frozen": True}


class ToggleToken(BaseModel):
    key: str
    enabled: bool = True

    model_config = {"frozen": True}


ViewEvent = Union[ToggleSeries, SetSeries, SelectTab, ToggleToken]


def apply_event(view: ViewSession, event: ViewEvent) -> ViewSession:
    """Return the view with ``event`` applied. The input is left untouched."""
    if isinstance(event, ToggleSeries):
        _ordered_metrics([event.metric])
        current = set(view.series_keys)
        if event.enabled:
            current.add(event.metric)
        else:
            current.discard(event.metric)
        return view.model_copy(update={"series_keys": _ordered_metrics(current)})

    if isinstance(event, SetSeries):
        return view.model_copy(update={"series_keys": _ordered_metrics(event.metrics)})

    if isinstance(event, SelectTab):
        if event.key not in view.datasets:
            raise ValueError(f"No dataset loaded for {event.key}")
        return view.model_copy(update={"active_tab": event.key})

    if isinstance(event, ToggleToken):
        if event.key not in view.datasets:
            raise ValueError(f"No dataset loaded for {event.key}")
        shown = set(view.token_keys)
        if event.enabled:
            shown.add(event.key)
        else:
            shown.discard(event.key)
        return view.model_copy(update={"token_keys": tuple(k for k in view.datasets if k in shown)})

    raise TypeError(f"Unsupported view event: {event!r}")


def renderable_series(view: ViewSession) -> RenderableSeries:
    """Chart series for a view. Pure; the active tab never changes the result."""
    if view.mode == "single":
        dataset = next(iter(view.datasets.values()), None)
        if dataset is None:
            return RenderableSeries(mode="single")
        return RenderableSeries(
            mode="single",
            timestamps=tuple(c.timestamp for c in dataset.rows),
            series=build_series(dataset, view.series_keys),
        )

    return RenderableSeries(
        mode="compare",
        timestamps=view.grid,
        series=project_onto_grid(view.datasets, view.grid, view.series_keys, view.token_keys),
    )


# ---- loading ----

class Viewer:
    """Owns the current view and the one in-flight load.

    Starting a load aborts the previous one; only the latest load may swap
    its ViewSession in.
    """

    def __init__(self, client: BaseMarketClient, network: str = "eth"):
        self.client = client
        self.network = network
        self.view: Optional[ViewSession] = None
        self.state = LoadState.IDLE
        self._signal: Optional[AbortSignal] = None

    @property
    def busy(self) -> bool:
        return self._signal is not None

    def cancel(self, reason: str = "Stopped.") -> None:
        """Abort the in-flight load, if any."""
        if self._signal is not None:
            self._signal.abort(reason)

    def _begin(self) -> AbortSignal:
        self.cancel("Superseded by a new load.")
        signal = AbortSignal()
        self._signal = signal
        self.state = LoadState.LOADING
        return signal

    def _finish(self, signal: AbortSignal, outcome: LoadOutcome) -> LoadOutcome:
        if signal.aborted and outcome.state != LoadState.ABORTED:
            logger.info("Discarding results of an aborted load")
            outcome = LoadOutcome(state=LoadState.ABORTED, message="Stopped.")

        if outcome.view is not None:
            self.view = outcome.view
        if self._signal is signal:
            self._signal = None
            self.state = outcome.state
        return outcome

    def dispatch(self, event: ViewEvent) -> RenderableSeries:
        """Apply a view event to the current view and return the new chart series."""
        if self.view is None:
            raise RuntimeError("Nothing loaded yet")
        self.view = apply_event(self.view, event)
        return renderable_series(self.view)

    async def load_single(
        self,
        token: TokenRef,
        step: str = "1h",
        max_rows: int = 100,
        start_unix: Optional[int] = None,
        start_at_launch: bool = False,
        series_keys: Sequence[str] = DEFAULT_SERIES,
        now: Optional[int] = None,
    ) -> LoadOutcome:
        """Load one token. Any error fails the whole load."""
        series = _ordered_metrics(series_keys)
        get_step(step)
        signal = self._begin()

        request = DatasetRequest(
            key=token.key,
            network=self.network,
            address=token.address,
            step=step,
            max_rows=max_rows,
            start_unix=start_unix,
            start_at_launch=start_at_launch,
            now=now,
        )
        try:
            dataset = await load_dataset(self.client, request, signal)
        except AbortedError:
            return self._finish(signal, LoadOutcome(state=LoadState.ABORTED, message="Stopped."))
        except StrategyUtilsError as e:
            logger.warning("Load failed for %s: %s", token.key, e)
            return self._finish(
                signal,
                LoadOutcome(state=LoadState.FAILED, message=f"Error: {e}", errors={token.key: str(e)}),
            )

        view = ViewSession(
            mode="single",
            step=step,
            max_rows=max_rows,
            start_unix=dataset.start_unix,
            end_unix=dataset.end_unix,
            datasets={token.key: dataset},
            grid=tuple(c.timestamp for c in dataset.rows),
            series_keys=series,
            token_keys=(token.key,),
            active_tab=token.key,
        )

        warnings = []
        note = ""
        if dataset.is_short:
            warnings.append(InsufficientDataWarning(token.key, len(dataset.rows), max_rows))
            note = f" (only {len(dataset.rows)} available)"

        return self._finish(
            signal,
            LoadOutcome(
                state=LoadState.READY,
                view=view,
                message=f"Done. {len(dataset.rows)} rows shown{note}.",
                warnings=warnings,
            ),
        )

    async def load_compare(
        self,
        tokens: Sequence[TokenRef],
        step: str = "1h",
        max_rows: int = 100,
        start_unix: Optional[int] = None,
        series_keys: Sequence[str] = DEFAULT_SERIES,
        now: Optional[int] = None,
        on_progress: Optional[Callable[[str], None]] = None,
    ) -> LoadOutcome:
        """Load every token in turn on one shared range.

        Tokens are fetched one at a time to stay under the API rate limit.
        A token that fails is skipped; the load fails only if none loaded.
        """
        series = _ordered_metrics(series_keys)
        step_spec = get_step(step)
        signal = self._begin()

        if start_unix is None:
            start_unix = (now if now is not None else int(time.time())) - DEFAULT_LOOKBACK_SECONDS
        start_unix = align_start(start_unix, step_spec)
        end_unix = range_end(start_unix, max_rows, step_spec)

        datasets: dict[str, Dataset] = {}
        errors: dict[str, str] = {}
        warnings: list[InsufficientDataWarning] = []

        for i, token in enumerate(tokens, start=1):
            if on_progress is not None:
                on_progress(f"Loading {token.key} ({i}/{len(tokens)})…")
            request = DatasetRequest(
                key=token.key,
                network=self.network,
                address=token.address,
                step=step,
                max_rows=max_rows,
                start_unix=start_unix,
                now=now,
            )
            try:
                dataset = await load_dataset(self.client, request, signal)
            except AbortedError:
                return self._finish(signal, LoadOutcome(state=LoadState.ABORTED, message="Stopped."))
            except StrategyUtilsError as e:
                logger.warning("Skipping %s: %s", token.key, e)
                errors[token.key] = str(e)
                continue

            datasets[token.key] = dataset
            if dataset.is_short:
                warnings.append(InsufficientDataWarning(token.key, len(dataset.rows), max_rows))

        if not datasets:
            return self._finish(
                signal,
                LoadOutcome(
                    state=LoadState.FAILED,
                    message="Error: no tokens could be loaded.",
                    errors=errors,
                ),
            )

        keys = tuple(datasets)
        view = ViewSession(
            mode="compare",
            step=step,
            max_rows=max_rows,
            start_unix=start_unix,
            end_unix=end_unix,
            datasets=datasets,
            errors=errors,
            grid=build_grid(start_unix, end_unix, step_spec.seconds),
            series_keys=series,
            token_keys=keys,
            active_tab=keys[0],
        )

        message = f"Done. {len(datasets)}/{len(tokens)} tokens loaded, {len(view.grid)} points."
        if errors:
            message += f" Skipped: {', '.join(errors)}."
        if warnings:
            message += f" Short data: {', '.join(w.key for w in warnings)}."

        return self._finish(
            signal,
            LoadOutcome(
                state=LoadState.PARTIAL_READY if errors else LoadState.READY,
                view=view,
                message=message,
                errors=errors,
                warnings=warnings,
            ),
        )
