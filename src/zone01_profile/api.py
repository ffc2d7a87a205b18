from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

import requests

from zone01_profile.aggregate import activity_units
from zone01_profile.auth import CredentialProvider, EnvCredentials
from zone01_profile.client import QueryClient
from zone01_profile.config import AppConfig, load_app_config
from zone01_profile.core import ALL_FOLDERS
from zone01_profile.orchestrator import XP_CHART, AnalyticsOrchestrator, DashboardState, DashboardView
from zone01_profile.runtime import refresh_sync


@dataclass(frozen=True)
class ActivityRow:
    name: str
    units: int
    created_at: str


@dataclass(frozen=True)
class SkillRow:
    name: str
    level: int


@dataclass(frozen=True)
class ProgressRow:
    name: str
    grade: Optional[float]
    updated_at: str


@dataclass(frozen=True)
class DashboardResult:
    folder: str
    status: str
    ok: bool
    error_stage: Optional[str]
    folders: Tuple[str, ...]
    login: str
    total_xp: int
    transactions: int
    top_skills: Tuple[SkillRow, ...]
    recent: Tuple[ActivityRow, ...]
    progresses: Tuple[ProgressRow, ...]
    chart: str
    geometry: Optional[dict]
    logs: Tuple[str, ...]

    def as_json(self) -> dict:
        return {
            "folder": self.folder,
            "status": self.status,
            "ok": self.ok,
            "folders": list(self.folders),
            "login": self.login,
            "total_xp": self.total_xp,
            "transactions": self.transactions,
            "top_skills": [{"name": s.name, "level": s.level} for s in self.top_skills],
            "recent": [
                {"name": a.name, "units": a.units, "created_at": a.created_at}
                for a in self.recent
            ],
            "progresses": [
                {"name": p.name, "grade": p.grade, "updated_at": p.updated_at}
                for p in self.progresses
            ],
            "chart": self.chart,
            "geometry": self.geometry,
            "logs": list(self.logs),
        }


def _resolve_config(app_config: Optional[AppConfig], config_path: Optional[Path]) -> AppConfig:
    cfg = app_config or load_app_config(override_path=Path(config_path) if config_path else None)
    cfg.validate()
    return cfg


def make_orchestrator(
    app_config: AppConfig,
    *,
    credentials: Optional[CredentialProvider] = None,
    session: Optional[requests.Session] = None,
    logger=None,
) -> AnalyticsOrchestrator:
    client = QueryClient(
        credentials or EnvCredentials(app_config.token_env),
        endpoint=app_config.endpoint,
        timeout_s=app_config.timeout_s,
        session=session,
        logger=logger,
    )
    return AnalyticsOrchestrator(client, config=app_config, logger=logger)


def list_folders(
    *,
    app_config: Optional[AppConfig] = None,
    config_path: Optional[Path] = None,
    credentials: Optional[CredentialProvider] = None,
    session: Optional[requests.Session] = None,
) -> List[str]:
    cfg = _resolve_config(app_config, config_path)
    orchestrator = make_orchestrator(cfg, credentials=credentials, session=session)
    return orchestrator.load_taxonomy().ordered()


def _result_from_state(
    orchestrator: AnalyticsOrchestrator,
    state: DashboardState,
    *,
    folder: str,
    chart: str,
    logs: List[str],
) -> DashboardResult:
    view: Optional[DashboardView] = state.view
    if view is None:
        folders = orchestrator.folders.ordered() if orchestrator.folders is not None else [ALL_FOLDERS]
        return DashboardResult(
            folder=folder,
            status=state.status,
            ok=False,
            error_stage=state.error.stage if state.error is not None else None,
            folders=tuple(folders),
            login="",
            total_xp=0,
            transactions=0,
            top_skills=(),
            recent=(),
            progresses=(),
            chart=chart,
            geometry=None,
            logs=tuple(logs),
        )

    scale = orchestrator.config.xp_scale
    return DashboardResult(
        folder=view.category,
        status=state.status,
        ok=True,
        error_stage=None,
        folders=tuple(view.folders.ordered()),
        login=view.login,
        total_xp=view.total_xp,
        transactions=view.summary.transactions,
        top_skills=tuple(SkillRow(name=s.name, level=s.level) for s in view.skills.top),
        recent=tuple(
            ActivityRow(
                name=r.label,
                units=activity_units(r.amount, scale=scale),
                created_at=r.created_at.isoformat() if r.created_at else "",
            )
            for r in view.recent
        ),
        progresses=tuple(
            ProgressRow(
                name=p.object.name if p.object else "Unknown",
                grade=p.grade,
                updated_at=p.updated_at.isoformat() if p.updated_at else "",
            )
            for p in view.progresses
        ),
        chart=chart,
        geometry=orchestrator.render(view, chart).as_json(),
        logs=tuple(logs),
    )


def build_dashboard(
    folder: str = ALL_FOLDERS,
    *,
    chart: str = XP_CHART,
    app_config: Optional[AppConfig] = None,
    config_path: Optional[Path] = None,
    credentials: Optional[CredentialProvider] = None,
    session: Optional[requests.Session] = None,
) -> DashboardResult:
    cfg = _resolve_config(app_config, config_path)
    logs: List[str] = []

    def logger(msg: str) -> None:
        logs.append(msg)

    orchestrator = make_orchestrator(cfg, credentials=credentials, session=session, logger=logger)
    state = refresh_sync(orchestrator, folder)
    return _result_from_state(orchestrator, state, folder=folder, chart=chart, logs=logs)


def load_view(
    folder: str = ALL_FOLDERS,
    *,
    app_config: Optional[AppConfig] = None,
    config_path: Optional[Path] = None,
    credentials: Optional[CredentialProvider] = None,
    session: Optional[requests.Session] = None,
) -> DashboardState:
    """Same as ``build_dashboard`` but returns the raw state (for export)."""
    cfg = _resolve_config(app_config, config_path)
    orchestrator = make_orchestrator(cfg, credentials=credentials, session=session)
    return refresh_sync(orchestrator, folder)
