"""Shared selection state and the update cycle between the three views.

Changes flow one way: an event updates the selection or the timeline
transform, the inputs it touched are marked dirty, and ``flush`` recomputes
and re-renders only the views that read those inputs. Pan/zoom gestures only
mark the transform dirty, so a burst of them costs one render per flush.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional, Tuple

import pandas as pd

from medals.aggregation import country_lookup, discipline_matrix, timeline_series, top_disciplines
from medals.data import DashboardData, LoadError, MedalStore
from medals.selection import SelectionState, default_selection, resolve_country_name
from medals.settings import DashboardSettings
from medals.transform import IDENTITY, ViewTransform
from medals.view_detail import DetailController, compute_detail
from medals.view_overview import OverviewController, compute_overview
from medals.view_timeline import TimelineController, compute_timeline

logger = logging.getLogger(__name__)

VIEWS = ("overview", "timeline", "detail")
VIEW_INPUTS = {
    "overview": frozenset({"data", "country"}),
    "timeline": frozenset({"data", "country", "discipline", "transform"}),
    "detail": frozenset({"data", "country", "discipline"}),
}
MAX_CACHE_ENTRIES = 256

Listener = Callable[[Dict[str, Any]], None]


class Coordinator:
    """Owns the selection, the timeline transform, the loaded data and the
    aggregation cache.

    All of that state is read and written under ``self._lock``: the API shell
    calls in from worker threads while reloads finish on the event loop.
    """

    def __init__(self, store: Optional[MedalStore] = None, settings: Optional[DashboardSettings] = None):
        self.settings = settings or DashboardSettings()
        self.store = store or MedalStore()
        self.selection: SelectionState = default_selection(self.settings)
        self.transform: ViewTransform = IDENTITY
        self.data: Optional[DashboardData] = None
        self._listeners: Dict[str, List[Listener]] = {v: [] for v in VIEWS}
        self._dirty: set = set()
        self._cache: Dict[Tuple[Any, ...], Any] = {}
        self._load_ticket = 0
        self._lock = threading.RLock()

        self.overview = OverviewController(self.select_country, self.countries)
        self.timeline = TimelineController(
            self.set_transform,
            lambda: self.transform,
            self.settings.scale_extent,
            series=self.timeline_series,
        )
        self.detail = DetailController(self.select_discipline, lambda: self.selection.discipline)

    # ---------- subscriptions ----------
    def subscribe(self, view: str, listener: Listener) -> Callable[[], None]:
        if view not in VIEW_INPUTS:
            raise KeyError(f"Unknown view: {view}")
        with self._lock:
            self._listeners[view].append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners[view]:
                    self._listeners[view].remove(listener)

        return unsubscribe

    # ---------- transitions ----------
    def select_country(self, code: str, name: Optional[str] = None) -> Dict[str, Dict[str, Any]]:
        with self._lock:
            name = resolve_country_name(code, name, self.countries())
            self.selection = self.selection.select_country(code, name)
            self.transform = IDENTITY
            self._mark("country", "discipline", "transform")
            logger.debug("Selected country %s (%s)", code, name)
            return self.flush()

    def select_discipline(self, discipline: Optional[str]) -> Dict[str, Dict[str, Any]]:
        with self._lock:
            updated = self.selection.select_discipline(discipline)
            if updated == self.selection:
                return {}
            self.selection = updated
            self._mark("discipline")
            logger.debug("Selected discipline %s for %s", updated.discipline, updated.country_code)
            return self.flush()

    def restore_selection(self, selection: SelectionState) -> Dict[str, Dict[str, Any]]:
        """Jump to a complete selection (deep links, API clients); the zoom resets."""
        with self._lock:
            self.selection = selection
            self.transform = IDENTITY
            self._mark("country", "discipline", "transform")
            return self.flush()

    def set_transform(self, transform: ViewTransform) -> None:
        with self._lock:
            transform = transform.constrained(self.settings.scale_extent)
            if transform == self.transform:
                return
            self.transform = transform
            self._mark("transform")

    def zoom(self, factor: float, anchor: float = 0.5) -> None:
        with self._lock:
            self.timeline.zoom(factor, anchor)

    def pan(self, dx: float) -> None:
        with self._lock:
            self.timeline.pan(dx)

    def set_window(self, k: float, start: float) -> None:
        with self._lock:
            self.timeline.set_window(k, start)

    # ---------- render cycle ----------
    def _mark(self, *inputs: str) -> None:
        self._dirty.update(inputs)

    @property
    def pending(self) -> frozenset:
        with self._lock:
            return frozenset(self._dirty)

    def flush(self) -> Dict[str, Dict[str, Any]]:
        """Re-render every view whose inputs changed since the last flush."""
        with self._lock:
            if self.data is None or not self._dirty:
                return {}
            dirty, self._dirty = self._dirty, set()
            rendered: Dict[str, Dict[str, Any]] = {}
            for view in VIEWS:
                if VIEW_INPUTS[view] & dirty:
                    payload = self.render(view)
                    rendered[view] = payload
                    for listener in list(self._listeners[view]):
                        listener(payload)
            return rendered

    def render(self, view: str) -> Dict[str, Any]:
        if view not in VIEW_INPUTS:
            raise KeyError(f"Unknown view: {view}")
        with self._lock:
            if self.data is None:
                return {"view": view, "status": "loading", "message": "Loading medal data...", "charts": {}}
            error = self.data.error
            if view == "overview":
                return compute_overview(self.selection, self.data.totals, settings=self.settings, error=error)
            if view == "timeline":
                return compute_timeline(
                    self.selection,
                    self.timeline_series(),
                    self.transform,
                    settings=self.settings,
                    error=error,
                )
            disciplines, matrix = self.discipline_slice()
            return compute_detail(self.selection, disciplines, matrix, settings=self.settings, error=error)

    def render_all(self) -> Dict[str, Dict[str, Any]]:
        with self._lock:
            return {view: self.render(view) for view in VIEWS}

    # ---------- memoized aggregation ----------
    def _memo(self, key: Tuple[Any, ...], compute: Callable[[], Any]) -> Any:
        # held across compute so a result is never stored after _install cleared the cache
        with self._lock:
            if key not in self._cache:
                if len(self._cache) >= MAX_CACHE_ENTRIES:
                    self._cache.clear()
                self._cache[key] = compute()
            return self._cache[key]

    @property
    def medals(self) -> pd.DataFrame:
        data = self.data
        return data.medals if data is not None else DashboardData.empty().medals

    @property
    def totals(self) -> pd.DataFrame:
        data = self.data
        return data.totals if data is not None else DashboardData.empty().totals

    def countries(self) -> Dict[str, str]:
        return self._memo(("countries",), lambda: country_lookup(self.totals))

    def timeline_series(self) -> pd.DataFrame:
        with self._lock:
            code, discipline = self.selection.country_code, self.selection.discipline
            return self._memo(("timeline", code, discipline), lambda: timeline_series(self.medals, code, discipline))

    def discipline_slice(self) -> Tuple[List[str], pd.DataFrame]:
        with self._lock:
            code = self.selection.country_code

            def compute() -> Tuple[List[str], pd.DataFrame]:
                disciplines = top_disciplines(self.medals, code, self.settings.top_disciplines)
                return disciplines, discipline_matrix(self.medals, code, disciplines)

            return self._memo(("detail", code), compute)

    def country_disciplines(self) -> List[str]:
        with self._lock:
            code = self.selection.country_code
            return self._memo(("disciplines", code), lambda: top_disciplines(self.medals, code, limit=len(self.medals)))

    def timeline_readout(self, position: float) -> Optional[Dict[str, Any]]:
        with self._lock:
            return self.timeline.readout(position)

    # ---------- loading ----------
    def _fetch(self, force: bool) -> DashboardData:
        try:
            return self.store.load(force=force)
        except LoadError as exc:
            logger.warning("Medal data unavailable: %s", exc)
            return DashboardData.empty(error=str(exc))

    def _install(self, data: DashboardData) -> None:
        with self._lock:
            self.data = data
            self._cache.clear()
            name = self.countries().get(self.selection.country_code)
            if name and name != self.selection.country_name:
                self.selection = replace(self.selection, country_name=name)
            self._mark("data")
            self.flush()

    def _next_ticket(self) -> int:
        with self._lock:
            self._load_ticket += 1
            return self._load_ticket

    def load(self, *, force: bool = False) -> DashboardData:
        """Load synchronously (startup path of the Streamlit shell)."""
        self._next_ticket()
        data = self._fetch(force)
        self._install(data)
        return data

    async def reload(self, *, force: bool = True) -> bool:
        """Load on a worker thread; a result overtaken by a newer load is dropped."""
        ticket = self._next_ticket()
        data = await asyncio.to_thread(self._fetch, force)
        with self._lock:
            if ticket != self._load_ticket:
                logger.info("Discarding superseded load #%d (latest is #%d)", ticket, self._load_ticket)
                return False
            self._install(data)
            return True
