from __future__ import annotations

import queue
import threading
from typing import Any, Callable, Optional

from zone01_profile.client import QueryError
from zone01_profile.orchestrator import (
    AnalyticsOrchestrator,
    DashboardState,
    DatasetSnapshot,
)


FetchStart = Callable[[str], None]
FetchProgress = Callable[[str], None]
FetchCompletion = Callable[[DashboardState], None]


def _as_query_error(e: Exception) -> QueryError:
    if isinstance(e, QueryError):
        return e
    return QueryError(f"unexpected {type(e).__name__}", context=str(e) or None)


def refresh_sync(orchestrator: AnalyticsOrchestrator, category: Optional[str] = None) -> DashboardState:
    return orchestrator.refresh(category)


class DashboardRunner:
    """
    Runs dataset fetches off the UI thread.

    Network work happens on a worker thread; results are drained on the UI
    dispatch loop where the orchestrator recomputes the views. A request made
    while a fetch is running is parked (latest wins) and started afterwards.
    Results for a category that is no longer selected are dropped.
    """

    def __init__(
        self,
        orchestrator: AnalyticsOrchestrator,
        *,
        ui_dispatch: Callable[[Callable[[], None], Optional[int]], None],
        drain_ms: int = 50,
        on_started: Optional[FetchStart] = None,
        on_progress: Optional[FetchProgress] = None,
        on_completed: Optional[FetchCompletion] = None,
    ) -> None:
        self.orchestrator = orchestrator
        self.ui_dispatch = ui_dispatch
        self.drain_ms = drain_ms
        self.on_started = on_started
        self.on_progress = on_progress
        self.on_completed = on_completed

        self._worker_busy = False
        self._pending: Optional[str] = None
        self._draining = False
        self._results_q: "queue.Queue[tuple[str, Any]]" = queue.Queue()

    # -------- public controls --------

    @property
    def busy(self) -> bool:
        return self._worker_busy

    def start(self) -> None:
        """Load folders, then the dataset for the current selection."""
        self._launch(self.orchestrator.selected)

    def request(self, category: str) -> None:
        self.orchestrator.select(category)
        if self._worker_busy:
            self._pending = category
            self._emit_progress(f"queued ({category})")
            return
        self._launch(category)

    def _launch(self, category: str) -> None:
        self._worker_busy = True
        self._pending = None
        self._emit_started(category)
        # no dataset is fetched until the folders have resolved
        if self.orchestrator.folders is None:
            threading.Thread(target=self._worker_initial, daemon=True).start()
        else:
            threading.Thread(target=self._worker_fetch, args=(category,), daemon=True).start()
        self._ensure_draining()

    def _ensure_draining(self) -> None:
        if self._draining:
            return
        self._draining = True
        self.ui_dispatch(self._drain_results_queue, self.drain_ms)

    # -------- worker --------

    def _worker_initial(self) -> None:
        try:
            self.orchestrator.load_taxonomy()
            self._results_q.put(("log", "folders loaded"))
            self._results_q.put(("ok", self.orchestrator.fetch_dataset()))
        except Exception as e:
            self._results_q.put(("err", e))

    def _worker_fetch(self, category: str) -> None:
        try:
            self._results_q.put(("ok", self.orchestrator.fetch_dataset(category)))
        except Exception as e:
            self._results_q.put(("err", e))

    def _drain_results_queue(self) -> None:
        try:
            while True:
                kind, payload = self._results_q.get_nowait()

                if kind == "log":
                    self._emit_progress(str(payload))
                elif kind == "err":
                    self._worker_busy = False
                    error = _as_query_error(payload)
                    self._emit_completed(DashboardState(ok=False, status=error.status, error=error))
                elif kind == "ok":
                    self._worker_busy = False
                    self._complete(payload)

                if (not self._worker_busy) and self._pending is not None:
                    category = self._pending
                    self._pending = None
                    self.request(category)
        except queue.Empty:
            pass

        self.ui_dispatch(self._drain_results_queue, self.drain_ms)

    def _complete(self, snapshot: DatasetSnapshot) -> None:
        view = self.orchestrator.apply(snapshot)
        if view is None:
            self._emit_progress(f"dropped stale result ({snapshot.category})")
            return
        self._emit_completed(DashboardState(ok=True, status=f"done ({len(view.series)} xp records)", view=view))

    # -------- callbacks --------

    def _emit_started(self, category: str) -> None:
        if self.on_started:
            self.on_started(category)

    def _emit_progress(self, msg: str) -> None:
        if self.on_progress:
            self.on_progress(msg)

    def _emit_completed(self, state: DashboardState) -> None:
        if self.on_completed:
            self.on_completed(state)
