from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional, Sequence, Tuple

import numpy as np

from zone01_profile.charts.zoom import IDLE, ZoomState
from zone01_profile.core import ChartPoint


DEFAULT_ZOOM_WINDOW = timedelta(days=3)
TICK_INTERVALS = 5


def _fmt(v: float) -> str:
    return f"{v:.2f}"


def _round_half_up(v: float) -> int:
    return int(np.floor(v + 0.5))


@dataclass(frozen=True)
class ChartDimensions:
    width: int = 800
    height: int = 400
    margin_top: int = 20
    margin_right: int = 40
    margin_bottom: int = 60
    margin_left: int = 80

    @property
    def chart_width(self) -> int:
        return self.width - self.margin_left - self.margin_right

    @property
    def chart_height(self) -> int:
        return self.height - self.margin_top - self.margin_bottom


@dataclass(frozen=True)
class Tick:
    position: float
    label: str
    value: float


@dataclass(frozen=True)
class GridLine:
    x1: float
    y1: float
    x2: float
    y2: float


@dataclass(frozen=True)
class PlotPoint:
    index: int
    x: float
    y: float
    value: float
    amount: int
    label: str
    timestamp: datetime
    hovered: bool = False


@dataclass(frozen=True)
class TimeSeriesGeometry:
    """Everything a renderer needs for one frame of the XP chart."""

    dims: ChartDimensions
    state: ZoomState
    points: Tuple[PlotPoint, ...] = ()
    line_path: str = ""
    area_path: str = ""
    x_ticks: Tuple[Tick, ...] = ()
    y_ticks: Tuple[Tick, ...] = ()
    grid: Tuple[GridLine, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not self.points

    def as_json(self) -> dict:
        return {
            "width": self.dims.width,
            "height": self.dims.height,
            "offset": [self.dims.margin_left, self.dims.margin_top],
            "zoom": {
                "scale": self.state.scale,
                "focal": [self.state.focal_x, self.state.focal_y],
                "zoomed": self.state.zoomed,
            },
            "points": [
                {
                    "x": p.x,
                    "y": p.y,
                    "value": p.value,
                    "amount": p.amount,
                    "label": p.label,
                    "timestamp": p.timestamp.isoformat(),
                    "hovered": p.hovered,
                }
                for p in self.points
            ],
            "line": self.line_path,
            "area": self.area_path,
            "x_ticks": [{"x": t.position, "label": t.label} for t in self.x_ticks],
            "y_ticks": [{"y": t.position, "label": t.label} for t in self.y_ticks],
            "grid": [[g.x1, g.y1, g.x2, g.y2] for g in self.grid],
        }


class TimeSeriesChart:
    """
    Cumulative XP chart: coordinate mapping, ticks and hover neighbourhoods.

    Base (unzoomed) mapping:
      x: [first, last timestamp] -> [0, chart_width]
      y: [0, max value]          -> [chart_height, 0]
    ``project`` then applies the zoom state's scale-about-focal-point transform.
    """

    def __init__(
        self,
        points: Sequence[ChartPoint],
        dims: Optional[ChartDimensions] = None,
        *,
        zoom_window: timedelta = DEFAULT_ZOOM_WINDOW,
        reference_year: Optional[int] = None,
    ) -> None:
        self.points: Tuple[ChartPoint, ...] = tuple(sorted(points, key=lambda p: p.timestamp))
        self.dims = dims or ChartDimensions()
        self.zoom_window = zoom_window
        self.reference_year = reference_year

        self._stamps = np.array([p.timestamp.timestamp() for p in self.points], dtype=float)
        self.min_ts: float = float(self._stamps.min()) if self.points else 0.0
        self.max_ts: float = float(self._stamps.max()) if self.points else 0.0
        self.max_value: float = max((p.value for p in self.points), default=0.0)

    def __len__(self) -> int:
        return len(self.points)

    # ---- base scales ----

    def base_x(self, ts: float) -> float:
        span = self.max_ts - self.min_ts
        if span <= 0:
            return self.dims.chart_width / 2
        return (ts - self.min_ts) / span * self.dims.chart_width

    def base_y(self, value: float) -> float:
        h = self.dims.chart_height
        if self.max_value <= 0:
            return float(h)
        return h - (value / self.max_value) * h

    def base_coords(self, index: int) -> Tuple[float, float]:
        p = self.points[index]
        return self.base_x(p.timestamp.timestamp()), self.base_y(p.value)

    @staticmethod
    def project(x: float, y: float, state: ZoomState) -> Tuple[float, float]:
        if not state.zoomed:
            return x, y
        s = state.scale
        return state.focal_x + (x - state.focal_x) * s, state.focal_y + (y - state.focal_y) * s

    # ---- hover neighbourhood ----

    def has_neighbour(self, index: int) -> bool:
        if not 0 <= index < len(self.points):
            return False
        window = self.zoom_window.total_seconds()
        gaps = np.abs(self._stamps - self._stamps[index])
        gaps[index] = np.inf
        return bool((gaps <= window).any())

    # ---- ticks ----

    def _date_label(self, ts: float) -> str:
        d = datetime.fromtimestamp(ts, tz=timezone.utc)
        ref = self.reference_year if self.reference_year is not None else date.today().year
        label = f"{d:%b} {d.day}"
        if d.year != ref:
            label += f", {d.year}"
        return label

    def x_ticks(self, state: ZoomState = IDLE) -> List[Tick]:
        if not self.points:
            return []
        if self.max_ts == self.min_ts:
            stamps = [self.min_ts]
        else:
            stamps = np.linspace(self.min_ts, self.max_ts, TICK_INTERVALS + 1).tolist()
        baseline = self.base_y(0)
        return [
            Tick(position=self.project(self.base_x(ts), baseline, state)[0], label=self._date_label(ts), value=ts)
            for ts in stamps
        ]

    def y_ticks(self, state: ZoomState = IDLE) -> List[Tick]:
        if not self.points:
            return []
        out: List[Tick] = []
        for value in np.linspace(0.0, self.max_value, TICK_INTERVALS + 1).tolist():
            _, y = self.project(0.0, self.base_y(value), state)
            out.append(Tick(position=y, label=f"{_round_half_up(value)}k", value=value))
        return out

    # ---- frame ----

    def geometry(self, state: ZoomState = IDLE) -> TimeSeriesGeometry:
        if not self.points:
            return TimeSeriesGeometry(dims=self.dims, state=state)

        w, h = self.dims.chart_width, self.dims.chart_height

        plotted: List[PlotPoint] = []
        for i, p in enumerate(self.points):
            x, y = self.project(*self.base_coords(i), state)
            plotted.append(
                PlotPoint(
                    index=i,
                    x=x,
                    y=y,
                    value=p.value,
                    amount=p.amount,
                    label=p.label,
                    timestamp=p.timestamp,
                    hovered=state.hovered == i,
                )
            )

        line = " ".join(f"{'M' if p.index == 0 else 'L'} {_fmt(p.x)} {_fmt(p.y)}" for p in plotted)
        area = f"{line} L {_fmt(w)} {_fmt(h)} L 0.00 {_fmt(h)} Z"

        x_ticks = self.x_ticks(state)
        y_ticks = self.y_ticks(state)
        grid = [GridLine(0.0, t.position, float(w), t.position) for t in y_ticks]
        grid += [GridLine(t.position, 0.0, t.position, float(h)) for t in x_ticks]

        return TimeSeriesGeometry(
            dims=self.dims,
            state=state,
            points=tuple(plotted),
            line_path=line,
            area_path=area,
            x_ticks=tuple(x_ticks),
            y_ticks=tuple(y_ticks),
            grid=tuple(grid),
        )
