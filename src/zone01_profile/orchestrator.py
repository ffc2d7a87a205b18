from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Union

from zone01_profile.aggregate import (
    XPSummary,
    cumulative_series,
    recent_activity,
    summarize,
)
from zone01_profile.charts import (
    IDLE,
    RadarLayout,
    TimeSeriesChart,
    TimeSeriesGeometry,
    ZoomController,
    ZoomState,
    layout_radar,
)
from zone01_profile.charts.zoom import Timer
from zone01_profile.client import QueryClient, QueryError
from zone01_profile.config import AppConfig
from zone01_profile.core import (
    ALL_FOLDERS,
    ChartPoint,
    DashboardPayload,
    FolderTaxonomy,
    ProgressRecord,
    TransactionRecord,
)
from zone01_profile.filters import TransactionFilter, build_filter
from zone01_profile.folders import extract_folders
from zone01_profile.skills import SkillRanking, normalize_skills


XP_CHART = "xp"
SKILLS_CHART = "skills"
CHARTS = (XP_CHART, SKILLS_CHART)


@dataclass(frozen=True)
class DatasetSnapshot:
    """Dataset plus the category that was selected when it was requested."""

    category: str
    payload: DashboardPayload


@dataclass(frozen=True)
class DashboardView:
    category: str
    folders: FolderTaxonomy
    login: str
    total_xp: int
    summary: XPSummary
    recent: Tuple[TransactionRecord, ...]
    series: Tuple[ChartPoint, ...]
    skills: SkillRanking
    radar: RadarLayout
    progresses: Tuple[ProgressRecord, ...]


@dataclass(frozen=True)
class DashboardState:
    ok: bool
    status: str
    view: Optional[DashboardView] = None
    error: Optional[QueryError] = None


def build_view(
    category: str,
    folders: FolderTaxonomy,
    payload: DashboardPayload,
    *,
    config: AppConfig,
) -> DashboardView:
    """Recompute every derived view from scratch; no state is carried over."""
    transactions = payload.transactions
    ranking = normalize_skills(payload.skills, top_n=config.top_skills)
    summary = summarize(transactions, scale=config.xp_scale)
    return DashboardView(
        category=category,
        folders=folders,
        login=payload.login,
        total_xp=summary.total,
        summary=summary,
        recent=tuple(recent_activity(transactions, config.recent_limit)),
        series=tuple(cumulative_series(transactions, scale=config.xp_scale)),
        skills=ranking,
        radar=layout_radar(ranking.skills, size=config.radar_size, max_skills=config.radar_max_skills),
        progresses=payload.progresses,
    )


class AnalyticsOrchestrator:
    """
    Sequences the two fetches and the computation stages.

    Flow: folder records -> taxonomy -> (selected category) filter -> dataset
    -> aggregation/normalization -> chart geometry.
    """

    def __init__(
        self,
        client: QueryClient,
        *,
        config: Optional[AppConfig] = None,
        logger: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.client = client
        self.config = config or AppConfig()
        self.logger = logger

        self._folders: Optional[FolderTaxonomy] = None
        self._selected = ALL_FOLDERS
        self._lock = threading.Lock()

    def _log(self, msg: str) -> None:
        if self.logger:
            self.logger(msg)

    # ---- selection ----

    @property
    def folders(self) -> Optional[FolderTaxonomy]:
        return self._folders

    @property
    def selected(self) -> str:
        with self._lock:
            return self._selected

    def select(self, category: str) -> None:
        if self._folders is not None and category not in self._folders:
            raise ValueError(f"Unknown folder '{category}'")
        with self._lock:
            self._selected = category

    # ---- network steps ----

    def load_taxonomy(self) -> FolderTaxonomy:
        records = self.client.fetch_folder_records()
        self._folders = extract_folders(records, root=self.config.root_segment)
        self._log(f"folders: {', '.join(self._folders.ordered())}")
        return self._folders

    def filter_for(self, category: str) -> TransactionFilter:
        return build_filter(
            category,
            root=self.config.root_segment,
            division=self.config.division,
            checkpoint=self.config.checkpoint,
        )

    def fetch_dataset(self, category: Optional[str] = None) -> DatasetSnapshot:
        wanted = self.selected if category is None else category
        payload = self.client.fetch_dashboard(self.filter_for(wanted), progress_limit=self.config.progress_limit)
        return DatasetSnapshot(category=wanted, payload=payload)

    # ---- computation ----

    def apply(self, snapshot: DatasetSnapshot) -> Optional[DashboardView]:
        """Build the view, or return None when the snapshot's category is stale."""
        if snapshot.category != self.selected:
            self._log(f"discarding stale dataset for '{snapshot.category}' (selected '{self.selected}')")
            return None
        folders = self._folders if self._folders is not None else FolderTaxonomy()
        return build_view(snapshot.category, folders, snapshot.payload, config=self.config)

    def refresh(self, category: Optional[str] = None) -> DashboardState:
        try:
            if self._folders is None:
                self._log("loading folders")
                self.load_taxonomy()
            if category is not None:
                self.select(category)

            self._log(f"loading dataset ({self.selected})")
            view = self.apply(self.fetch_dataset())
        except QueryError as e:
            self._log(f"error: {e.status}")
            return DashboardState(ok=False, status=e.status, error=e)

        if view is None:
            return DashboardState(ok=False, status="stale: selection changed during fetch")
        return DashboardState(ok=True, status=f"done ({len(view.series)} xp records)", view=view)

    # ---- rendering boundary ----

    def xp_chart(self, view: DashboardView) -> TimeSeriesChart:
        return TimeSeriesChart(
            view.series,
            self.config.chart_dimensions,
            zoom_window=self.config.zoom_window,
        )

    def zoom_controller(
        self,
        view: DashboardView,
        *,
        timer: Optional[Timer] = None,
        on_change: Optional[Callable[[ZoomState], None]] = None,
    ) -> ZoomController:
        """Hover-zoom controller for the XP chart, tuned by the chart config."""
        return ZoomController(
            self.xp_chart(view),
            timer,
            zoom_scale=self.config.zoom_scale,
            exit_delay=self.config.zoom_exit_delay,
            on_change=on_change,
        )

    def render(
        self,
        view: DashboardView,
        chart: str = XP_CHART,
        *,
        state: ZoomState = IDLE,
    ) -> Union[TimeSeriesGeometry, RadarLayout]:
        if chart == XP_CHART:
            return self.xp_chart(view).geometry(state)
        if chart == SKILLS_CHART:
            return view.radar
        raise ValueError(f"Unknown chart '{chart}'")
