from zone01_profile.charts.radar import RadarLayout, Spoke, layout_radar  # noqa: F401
from zone01_profile.charts.timeseries import (  # noqa: F401
    ChartDimensions,
    GridLine,
    PlotPoint,
    Tick,
    TimeSeriesChart,
    TimeSeriesGeometry,
)
from zone01_profile.charts.zoom import (  # noqa: F401
    IDLE,
    CancelTimer,
    Hover,
    Leave,
    StartTimer,
    ThreadingTimer,
    TimerFired,
    ZoomController,
    ZoomState,
    transition,
)

__all__ = [
    "IDLE",
    "CancelTimer",
    "ChartDimensions",
    "GridLine",
    "Hover",
    "Leave",
    "PlotPoint",
    "RadarLayout",
    "Spoke",
    "StartTimer",
    "ThreadingTimer",
    "Tick",
    "TimeSeriesChart",
    "TimeSeriesGeometry",
    "TimerFired",
    "ZoomController",
    "ZoomState",
    "layout_radar",
    "transition",
]
