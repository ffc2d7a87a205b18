from __future__ import annotations

import pytest

from zone01_profile.auth import StaticCredentials
from zone01_profile.charts import RadarLayout, TimeSeriesGeometry, ZoomState
from zone01_profile.client import QueryClient
from zone01_profile.config import AppConfig
from zone01_profile.orchestrator import SKILLS_CHART, XP_CHART, AnalyticsOrchestrator


def _orchestrator(session, token="tok", logger=None):
    client = QueryClient(StaticCredentials(token), session=session)
    return AnalyticsOrchestrator(client, config=AppConfig(), logger=logger)


def test_refresh_builds_every_view(make_session, respond, folders_payload, dashboard_payload):
    session = make_session(respond(folders_payload), respond(dashboard_payload))
    orch = _orchestrator(session)

    state = orch.refresh()

    assert state.ok, state.status
    assert state.status == "done (3 xp records)"
    view = state.view
    assert view.folders.ordered() == ["all", "div-01", "piscine-js"]
    assert view.login == "learner"
    assert view.total_xp == 39
    assert [p.value for p in view.series] == [9.0, 14.0, 39.0]
    assert [r.label for r in view.recent] == ["ascii-art", "go-reloaded", "ex"]
    assert [s.name for s in view.skills.top] == ["Golang", "JavaScript"]
    assert len(view.radar.points) == 2
    assert view.progresses[0].grade == 1.2


def test_refresh_with_category_sends_that_filter(make_session, respond, folders_payload, dashboard_payload):
    session = make_session(respond(folders_payload), respond(dashboard_payload))
    orch = _orchestrator(session)

    state = orch.refresh("piscine-js")

    assert state.ok
    assert state.view.category == "piscine-js"
    where = session.calls[1]["json"]["variables"]["where"]
    assert where == orch.filter_for("piscine-js").to_where()


def test_unknown_folder_rejected_once_taxonomy_is_known(make_session, respond, folders_payload):
    orch = _orchestrator(make_session(respond(folders_payload)))
    orch.load_taxonomy()

    with pytest.raises(ValueError):
        orch.select("no-such-folder")
    assert orch.selected == "all"


def test_query_failure_becomes_error_state(make_session, respond):
    orch = _orchestrator(make_session(respond(None, status_code=500)))

    state = orch.refresh()

    assert not state.ok
    assert state.view is None
    assert state.error.stage == "transport"
    assert state.status == "transport: HTTP error (status=500)"


def test_missing_token_becomes_credentials_state(make_session):
    session = make_session()
    orch = _orchestrator(session, token=None)

    state = orch.refresh()

    assert state.error.stage == "credentials"
    assert session.calls == []


def test_stale_snapshot_is_dropped(make_session, respond, folders_payload, dashboard_payload):
    lines = []
    orch = _orchestrator(make_session(respond(folders_payload), respond(dashboard_payload)), logger=lines.append)
    orch.load_taxonomy()

    snapshot = orch.fetch_dataset("piscine-js")
    assert orch.selected == "all"

    assert orch.apply(snapshot) is None
    assert any("stale" in line for line in lines)


def test_render_both_charts(make_session, respond, folders_payload, dashboard_payload):
    orch = _orchestrator(make_session(respond(folders_payload), respond(dashboard_payload)))
    view = orch.refresh().view

    geo = orch.render(view, XP_CHART)
    assert isinstance(geo, TimeSeriesGeometry)
    assert len(geo.points) == 3

    zoomed = orch.render(view, XP_CHART, state=ZoomState(scale=2.0, focal_x=0.0, focal_y=0.0, zoomed=True))
    assert zoomed.points[-1].x == pytest.approx(geo.points[-1].x * 2)

    radar = orch.render(view, SKILLS_CHART)
    assert isinstance(radar, RadarLayout)

    with pytest.raises(ValueError):
        orch.render(view, "pie")


def test_empty_dataset_is_not_an_error(make_session, respond, folders_payload):
    empty = {"data": {"user": [{"id": 1, "login": "new", "xpTransactions": [], "skillTransactions": [], "progresses": []}]}}
    orch = _orchestrator(make_session(respond(folders_payload), respond(empty)))

    state = orch.refresh()

    assert state.ok
    assert state.view.total_xp == 0
    assert state.view.series == ()
    assert state.view.skills.is_empty
    assert state.view.radar.is_empty
    assert orch.render(state.view).is_empty


class _RecordingTimer:
    def __init__(self):
        self.delays = []

    def start(self, delay, callback):
        self.delays.append(delay)
        return self

    def cancel(self):
        pass


def test_zoom_controller_uses_chart_config(make_session, respond, folders_payload, dashboard_payload):
    client = QueryClient(StaticCredentials("tok"), session=make_session(respond(folders_payload), respond(dashboard_payload)))
    orch = AnalyticsOrchestrator(client, config=AppConfig(zoom_scale=3.0, zoom_exit_delay_ms=250))
    view = orch.refresh().view
    timer = _RecordingTimer()

    ctl = orch.zoom_controller(view, timer=timer)
    # Mar 4 and Mar 5 are a day apart
    state = ctl.hover(2)
    ctl.leave()

    assert state.zoomed
    assert state.scale == 3.0
    assert (state.focal_x, state.focal_y) == orch.xp_chart(view).base_coords(2)
    assert timer.delays == [0.25]
