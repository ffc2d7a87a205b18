from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

try:  # Python <3.11 fallback
    import tomllib  # type: ignore
except ModuleNotFoundError:  # pragma: no cover - fallback path
    import tomli as tomllib  # type: ignore

from zone01_profile.auth import DEFAULT_TOKEN_ENV
from zone01_profile.charts.timeseries import ChartDimensions
from zone01_profile.client import DEFAULT_ENDPOINT, DEFAULT_TIMEOUT_S
from zone01_profile.filters import DEFAULT_CHECKPOINT, DEFAULT_DIVISION
from zone01_profile.folders import DEFAULT_ROOT, validate_depth_rules
from zone01_profile.skills import validate_display_names

try:
    import yaml  # type: ignore
except Exception:  # pragma: no cover - import guard
    yaml = None


TOOL_KEY = "zone01_profile"
SECTIONS = ("chart", "aggregate")


def _load_pyproject_config(project_root: Path) -> Dict[str, Any]:
    pyproject_path = project_root / "pyproject.toml"
    if not pyproject_path.exists():
        return {}

    with pyproject_path.open("rb") as f:
        data = tomllib.load(f)
    return data.get("tool", {}).get(TOOL_KEY, {}) or {}


def _ensure_mapping(obj: Any, ctx: str) -> Dict[str, Any]:
    if obj is None:
        return {}
    if not isinstance(obj, dict):
        raise ValueError(f"{ctx} must be a mapping/object")
    return obj


def _load_override_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config override not found: {path}")

    suffix = path.suffix.lower()
    if suffix == ".json":
        return _ensure_mapping(json.loads(path.read_text(encoding="utf-8")), "JSON config")
    if suffix in {".yaml", ".yml"}:
        if yaml is None:
            raise RuntimeError("PyYAML is required for YAML config overrides")
        return _ensure_mapping(yaml.safe_load(path.read_text(encoding="utf-8")), "YAML config")
    if suffix == ".toml":
        with path.open("rb") as f:
            return _ensure_mapping(tomllib.load(f), "TOML config")

    raise ValueError(f"Unsupported config override format: {path}")


def _merge_section(base: Mapping[str, Any], override: Mapping[str, Any], key: str) -> Dict[str, Any]:
    merged = dict(_ensure_mapping(base.get(key), f"{key} section"))
    merged.update(_ensure_mapping(override.get(key), f"{key} section"))
    return merged


def _merge_top(base: Mapping[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    merged.update(override)
    for key in SECTIONS:
        merged.pop(key, None)
    return merged


@dataclass(frozen=True)
class AppConfig:
    endpoint: str = DEFAULT_ENDPOINT
    timeout_s: float = DEFAULT_TIMEOUT_S
    token_env: str = DEFAULT_TOKEN_ENV
    root_segment: str = DEFAULT_ROOT
    division: str = DEFAULT_DIVISION
    checkpoint: str = DEFAULT_CHECKPOINT

    chart_width: int = 800
    chart_height: int = 400
    zoom_scale: float = 2.0
    zoom_window_days: float = 3.0
    zoom_exit_delay_ms: int = 500
    radar_size: int = 400
    radar_max_skills: int = 12

    xp_scale: int = 1000
    recent_limit: int = 3
    top_skills: int = 3
    progress_limit: int = 3

    @property
    def chart_dimensions(self) -> ChartDimensions:
        return ChartDimensions(width=self.chart_width, height=self.chart_height)

    @property
    def zoom_window(self) -> timedelta:
        return timedelta(days=self.zoom_window_days)

    @property
    def zoom_exit_delay(self) -> float:
        return self.zoom_exit_delay_ms / 1000.0

    def validate(self, *, strict: bool = True) -> Dict[str, str]:
        issues: Dict[str, str] = {}

        if not self.endpoint.startswith(("http://", "https://")):
            issues["endpoint"] = f"endpoint must be an http(s) URL: {self.endpoint}"
        if not self.root_segment or "/" in self.root_segment:
            issues["root_segment"] = "root_segment must be a single non-empty path segment"
        if self.timeout_s <= 0:
            issues["timeout_s"] = "timeout_s must be positive"
        if self.xp_scale <= 0:
            issues["xp_scale"] = "xp_scale must be positive"
        if self.zoom_scale < 1:
            issues["zoom_scale"] = "zoom_scale must be >= 1"
        if self.zoom_exit_delay_ms < 0:
            issues["zoom_exit_delay_ms"] = "zoom_exit_delay_ms must be >= 0"
        if self.radar_max_skills < 1:
            issues["radar_max_skills"] = "radar_max_skills must be >= 1"

        dims = self.chart_dimensions
        if dims.chart_width <= 0 or dims.chart_height <= 0:
            issues["chart"] = f"chart area too small: {self.chart_width}x{self.chart_height}"

        for idx, msg in enumerate(validate_depth_rules(strict=False)):
            issues[f"depth_rules_{idx}"] = msg
        for idx, msg in enumerate(validate_display_names(strict=False)):
            issues[f"skill_names_{idx}"] = msg

        if strict and issues:
            details = "\n- ".join(f"{k}: {v}" for k, v in issues.items())
            raise ValueError("Config validation failed:\n- " + details)
        return issues

    @classmethod
    def _from_maps(
        cls,
        *,
        top: Mapping[str, Any],
        chart: Mapping[str, Any],
        aggregate: Mapping[str, Any],
    ) -> "AppConfig":
        d = cls()
        return cls(
            endpoint=str(top.get("endpoint", d.endpoint)),
            timeout_s=float(top.get("timeout_s", d.timeout_s)),
            token_env=str(top.get("token_env", d.token_env)),
            root_segment=str(top.get("root_segment", d.root_segment)),
            division=str(top.get("division", d.division)),
            checkpoint=str(top.get("checkpoint", d.checkpoint)),
            chart_width=int(chart.get("width", d.chart_width)),
            chart_height=int(chart.get("height", d.chart_height)),
            zoom_scale=float(chart.get("zoom_scale", d.zoom_scale)),
            zoom_window_days=float(chart.get("zoom_window_days", d.zoom_window_days)),
            zoom_exit_delay_ms=int(chart.get("zoom_exit_delay_ms", d.zoom_exit_delay_ms)),
            radar_size=int(chart.get("radar_size", d.radar_size)),
            radar_max_skills=int(chart.get("radar_max_skills", d.radar_max_skills)),
            xp_scale=int(aggregate.get("xp_scale", d.xp_scale)),
            recent_limit=int(aggregate.get("recent_limit", d.recent_limit)),
            top_skills=int(aggregate.get("top_skills", d.top_skills)),
            progress_limit=int(aggregate.get("progress_limit", d.progress_limit)),
        )


def load_app_config(*, project_root: Optional[Path] = None, override_path: Optional[Path] = None) -> AppConfig:
    root = Path(project_root) if project_root else Path.cwd()

    base = _load_pyproject_config(root)
    override = _load_override_file(override_path) if override_path else {}

    top = _merge_top(base, override)
    chart = _merge_section(base, override, "chart")
    aggregate = _merge_section(base, override, "aggregate")

    return AppConfig._from_maps(top=top, chart=chart, aggregate=aggregate)
