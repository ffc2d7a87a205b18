from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Literal, Optional, Tuple

from zone01_profile.charts import IDLE, ZoomState
from zone01_profile.core import ALL_FOLDERS
from zone01_profile.orchestrator import XP_CHART, CHARTS, DashboardState, DashboardView


FieldName = Literal["folders", "selected", "chart", "status", "view", "zoom"]
Subscriber = Callable[[object], None]


class DashboardViewModel:
    """
    Observable view-model for a dashboard front-end.

    Exposes:
      - folders: Tuple[str, ...]  ("all" first)
      - selected: str
      - chart: "xp" | "skills"
      - status: str
      - view: Optional[DashboardView]  (None after an error)
      - zoom: ZoomState of the XP chart
    Subscribers can listen to individual fields and receive updates when values change.
    """

    def __init__(self) -> None:
        self.folders: Tuple[str, ...] = (ALL_FOLDERS,)
        self.selected: str = ALL_FOLDERS
        self.chart: str = XP_CHART
        self.status: str = ""
        self.view: Optional[DashboardView] = None
        self.zoom: ZoomState = IDLE
        self._subscribers: Dict[FieldName, List[Subscriber]] = {
            "folders": [],
            "selected": [],
            "chart": [],
            "status": [],
            "view": [],
            "zoom": [],
        }

    def subscribe(self, field: FieldName, fn: Subscriber) -> Callable[[], None]:
        """
        Subscribe to a field; returns an unsubscribe callable.
        Invokes the callback immediately with the current value.
        """
        if field not in self._subscribers:
            raise ValueError(f"Unknown field '{field}'")

        self._subscribers[field].append(fn)
        fn(getattr(self, field))

        def unsubscribe() -> None:
            try:
                self._subscribers[field].remove(fn)
            except ValueError:
                pass

        return unsubscribe

    # ---- mutations ----

    def set_folders(self, folders: Iterable[str]) -> None:
        ordered = tuple(folders)
        if ordered == self.folders:
            return
        self.folders = ordered
        self._notify("folders")

    def set_selected(self, category: str) -> None:
        if category == self.selected:
            return
        self.selected = category
        self._notify("selected")

    def set_chart(self, chart: str) -> None:
        if chart not in CHARTS:
            raise ValueError(f"Unknown chart '{chart}'")
        if chart == self.chart:
            return
        self.chart = chart
        self._notify("chart")

    def set_status(self, status: str) -> None:
        if status == self.status:
            return
        self.status = status
        self._notify("status")

    def set_zoom(self, state: ZoomState) -> None:
        if state == self.zoom:
            return
        self.zoom = state
        self._notify("zoom")

    def apply_state(self, state: DashboardState) -> None:
        """Errors clear the view; no partial chart is left on screen."""
        self.set_status(state.status)
        self.view = state.view if state.ok else None
        if self.view is not None:
            self.set_folders(self.view.folders.ordered())
        self._notify("view")

    # ---- internal ----

    def _notify(self, field: FieldName) -> None:
        value = getattr(self, field)
        for fn in list(self._subscribers[field]):
            fn(value)
