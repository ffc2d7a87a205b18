from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from zone01_profile.charts import ChartDimensions, TimeSeriesChart, ZoomState
from zone01_profile.core import ChartPoint


T0 = datetime(2024, 3, 1, tzinfo=timezone.utc)


def _points(*rows):
    """rows: (day offset, cumulative value)"""
    return [
        ChartPoint(timestamp=T0 + timedelta(days=d), value=v, label=f"p{i}", amount=1000)
        for i, (d, v) in enumerate(rows)
    ]


def test_dimensions_derive_plot_area():
    dims = ChartDimensions()
    assert (dims.chart_width, dims.chart_height) == (680, 320)


def test_base_mapping_spans_the_plot_area():
    chart = TimeSeriesChart(_points((0, 1.0), (5, 2.0), (10, 4.0)))

    assert chart.base_coords(0) == (0.0, pytest.approx(240.0))
    assert chart.base_coords(1) == (pytest.approx(340.0), pytest.approx(160.0))
    assert chart.base_coords(2) == (pytest.approx(680.0), pytest.approx(0.0))


def test_points_are_sorted_on_construction():
    pts = _points((4, 3.0), (0, 1.0))
    chart = TimeSeriesChart(pts)
    assert [p.label for p in chart.points] == ["p1", "p0"]


def test_single_point_sits_in_the_middle():
    chart = TimeSeriesChart(_points((0, 5.0)))

    x, y = chart.base_coords(0)
    assert x == 340.0
    assert y == 0.0
    assert len(chart.x_ticks()) == 1


def test_zero_values_map_to_baseline():
    chart = TimeSeriesChart(_points((0, 0.0), (1, 0.0)))
    assert chart.base_y(0.0) == 320.0


def test_project_scales_about_focal_point():
    state = ZoomState(scale=2.0, focal_x=100.0, focal_y=50.0, zoomed=True)

    assert TimeSeriesChart.project(100.0, 50.0, state) == (100.0, 50.0)
    assert TimeSeriesChart.project(150.0, 70.0, state) == (200.0, 90.0)
    assert TimeSeriesChart.project(150.0, 70.0, ZoomState()) == (150.0, 70.0)


def test_neighbours_use_the_zoom_window():
    chart = TimeSeriesChart(_points((0, 1.0), (1, 2.0), (11, 3.0)))

    assert chart.has_neighbour(0)
    assert chart.has_neighbour(1)
    assert not chart.has_neighbour(2)
    assert not chart.has_neighbour(7)


def test_x_ticks_labels_and_year_suffix():
    chart = TimeSeriesChart(_points((0, 1.0), (10, 2.0)), reference_year=2024)

    ticks = chart.x_ticks()

    assert len(ticks) == 6
    assert ticks[0].label == "Mar 1"
    assert ticks[-1].label == "Mar 11"
    assert ticks[0].position == 0.0
    assert ticks[-1].position == pytest.approx(680.0)

    other_year = TimeSeriesChart(_points((0, 1.0), (10, 2.0)), reference_year=2025)
    assert other_year.x_ticks()[0].label == "Mar 1, 2024"


def test_y_ticks_are_rounded_kilo_labels():
    chart = TimeSeriesChart(_points((0, 1.0), (1, 12.5)))

    labels = [t.label for t in chart.y_ticks()]

    assert labels == ["0k", "3k", "5k", "8k", "10k", "13k"]


def test_geometry_paths_and_hover_flag():
    chart = TimeSeriesChart(_points((0, 0.0), (10, 4.0)))
    state = ZoomState(hovered=1)

    geo = chart.geometry(state)

    assert geo.line_path == "M 0.00 320.00 L 680.00 0.00"
    assert geo.area_path == "M 0.00 320.00 L 680.00 0.00 L 680.00 320.00 L 0.00 320.00 Z"
    assert [p.hovered for p in geo.points] == [False, True]
    assert len(geo.grid) == len(geo.x_ticks) + len(geo.y_ticks)
    assert geo.as_json()["offset"] == [80, 20]


def test_empty_chart_geometry():
    geo = TimeSeriesChart([]).geometry()

    assert geo.is_empty
    assert geo.line_path == ""
    assert geo.x_ticks == ()
