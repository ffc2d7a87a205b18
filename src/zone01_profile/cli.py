from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from zone01_profile import api
from zone01_profile.auth import CredentialProvider, StaticCredentials
from zone01_profile.client import QueryError
from zone01_profile.core import ALL_FOLDERS
from zone01_profile.exporter import ExportError, build_export, export_to_json, write_csv, write_csv_stream
from zone01_profile.orchestrator import CHARTS, XP_CHART


EXIT_OK = 0
EXIT_QUERY_FAILED = 1
EXIT_USAGE = 2


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(
        prog="zone01-profile",
        description="Headless XP timeline, folder filter and skill radar for a Zone01 profile.",
    )
    subparsers = ap.add_subparsers(dest="command", required=True)

    folders = subparsers.add_parser("folders", help="List filterable folders.")
    _add_common_args(folders)
    folders.add_argument("--json", action="store_true", help="Emit a JSON list instead of one folder per line.")
    folders.set_defaults(func=_cmd_folders)

    dashboard = subparsers.add_parser("dashboard", help="Summary plus chart geometry for one folder.")
    _add_common_args(dashboard)
    _add_folder_arg(dashboard)
    dashboard.add_argument("--chart", choices=CHARTS, default=XP_CHART, help="Chart geometry to emit.")
    dashboard.add_argument("--json", action="store_true", help="Emit JSON (stable schema) instead of text.")
    dashboard.add_argument("--verbose", "-v", action="store_true", help="Print progress messages to stderr.")
    dashboard.epilog = _DASHBOARD_EPILOG
    dashboard.set_defaults(func=_cmd_dashboard)

    export = subparsers.add_parser("export", help="Write XP timeline and skills as CSV/JSON.")
    _add_common_args(export)
    _add_folder_arg(export)
    export.add_argument("--output", "-o", default=None, help="Output path (CSV). If omitted, CSV is printed to stdout.")
    export.add_argument("--json", action="store_true", help="Emit export JSON instead of CSV.")
    export.set_defaults(func=_cmd_export)

    args = ap.parse_args(argv)
    return args.func(args)


# ---------------- CLI subcommands ----------------


def _add_common_args(ap: argparse.ArgumentParser) -> None:
    ap.add_argument("--config", default=None, help="Optional YAML/JSON/TOML config override (merged with pyproject.toml).")
    ap.add_argument("--token", default=None, help="Bearer token (default: taken from the configured environment variable).")


def _add_folder_arg(ap: argparse.ArgumentParser) -> None:
    ap.add_argument("--folder", default=ALL_FOLDERS, help="Folder to filter by (see `folders`).")


def _credentials(args: argparse.Namespace) -> Optional[CredentialProvider]:
    return StaticCredentials(args.token) if args.token else None


def _config_path(args: argparse.Namespace) -> Optional[Path]:
    return Path(args.config) if args.config else None


def _cmd_folders(args: argparse.Namespace) -> int:
    try:
        folders = api.list_folders(config_path=_config_path(args), credentials=_credentials(args))
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return EXIT_USAGE
    except QueryError as e:
        print(e.status, file=sys.stderr)
        return EXIT_USAGE if e.stage == "credentials" else EXIT_QUERY_FAILED

    if args.json:
        print(json.dumps(folders, indent=2))
    else:
        for name in folders:
            print(name)
    return EXIT_OK


def _cmd_dashboard(args: argparse.Namespace) -> int:
    try:
        result = api.build_dashboard(
            args.folder,
            chart=args.chart,
            config_path=_config_path(args),
            credentials=_credentials(args),
        )
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return EXIT_USAGE

    if args.verbose:
        for line in result.logs:
            print(line, file=sys.stderr)

    if args.json:
        print(json.dumps(result.as_json(), indent=2))
    else:
        _emit_dashboard_text(result)

    if result.ok:
        return EXIT_OK
    return EXIT_USAGE if result.error_stage == "credentials" else EXIT_QUERY_FAILED


def _cmd_export(args: argparse.Namespace) -> int:
    try:
        state = api.load_view(args.folder, config_path=_config_path(args), credentials=_credentials(args))
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return EXIT_USAGE

    try:
        export_result = build_export(state.view)
    except ExportError as e:
        print(f"{e}: {state.status}", file=sys.stderr)
        if state.error is not None and state.error.stage == "credentials":
            return EXIT_USAGE
        return EXIT_QUERY_FAILED

    if args.json:
        print(json.dumps(export_to_json(export_result), indent=2))
        return EXIT_OK

    if args.output:
        write_csv(export_result, Path(args.output))
    else:
        write_csv_stream(export_result)
    return EXIT_OK


def _emit_dashboard_text(result: api.DashboardResult) -> None:
    if not result.ok:
        print(f"error: {result.status}")
        return

    folder = "All Folders" if result.folder == ALL_FOLDERS else result.folder
    print(f"{result.login} - {folder}")
    print(f"Total XP: {result.total_xp:,} kB ({result.transactions} transactions)")

    print("Top skills:")
    if not result.top_skills:
        print("  (no skills data available)")
    for s in result.top_skills:
        print(f"  {s.name}: {s.level}%")

    print("Recent activity:")
    if not result.recent:
        print("  (no recent activity)")
    for a in result.recent:
        print(f"  {a.name}: +{a.units} kB")

    if result.progresses:
        print("Latest progress:")
        for p in result.progresses:
            grade = "-" if p.grade is None else f"{p.grade:.2f}"
            print(f"  {p.name}: {grade}")


_DASHBOARD_EPILOG = """examples:
  zone01-profile dashboard --folder piscine-js
  zone01-profile dashboard --chart skills --json > radar.json

stable JSON schema (dashboard):
  {
    "folder": "<folder>",
    "status": "<string status>",
    "ok": true | false,
    "folders": ["all", ...],
    "total_xp": <int kB>,
    "top_skills": [{"name": "<skill>", "level": <int>}],
    "recent": [{"name": "<object>", "units": <int kB>, "created_at": "<iso>"}],
    "geometry": {...} | null,
    "logs": ["<progress message>", ...]
  }
"""


if __name__ == "__main__":
    raise SystemExit(main())
