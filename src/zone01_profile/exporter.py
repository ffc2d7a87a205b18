# exporter.py
from __future__ import annotations

import csv
import sys
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from pathlib import Path
from typing import IO, List, Optional

from zone01_profile.orchestrator import DashboardView


# Cumulative kB keeps 3 decimals (one raw XP unit)
_Q3 = Decimal("0.001")


@dataclass(frozen=True)
class ExportXP:
    timestamp: str
    name: str
    amount: int
    cumulative: Decimal


@dataclass(frozen=True)
class ExportSkill:
    name: str
    code: str
    level: int


@dataclass(frozen=True)
class ExportTotals:
    label: str
    total: int


@dataclass(frozen=True)
class ExportResult:
    folder: str
    xp: List[ExportXP]
    skills: List[ExportSkill]
    totals: List[ExportTotals]


class ExportError(Exception):
    """Raised when export preconditions fail (e.g., the dashboard errored)."""


def _q3(x: float) -> Decimal:
    return Decimal(str(x)).quantize(_Q3, rounding=ROUND_HALF_UP)


def build_export(view: Optional[DashboardView]) -> ExportResult:
    if view is None:
        raise ExportError("no dashboard data to export")

    xp = [
        ExportXP(
            timestamp=p.timestamp.isoformat(),
            name=p.label,
            amount=p.amount,
            cumulative=_q3(p.value),
        )
        for p in view.series
    ]
    skills = [ExportSkill(name=s.name, code=s.code, level=s.level) for s in view.skills.skills]

    # "Total" must be FIRST
    totals = [
        ExportTotals(label="Total", total=view.total_xp),
        ExportTotals(label="Transactions", total=view.summary.transactions),
        ExportTotals(label="Skills", total=len(skills)),
    ]
    return ExportResult(folder=view.category, xp=xp, skills=skills, totals=totals)


def _rows(result: ExportResult) -> List[List[str]]:
    out: List[List[str]] = []

    out.append(["[XP]"])
    for x in result.xp:
        out.append([x.timestamp, x.name, str(x.amount), format(x.cumulative, ".3f")])
    out.append([])

    if result.skills:
        out.append(["[Skills]"])
        for s in result.skills:
            out.append([s.name, str(s.level), s.code])
        out.append([])

    out.append(["[Totals]"])
    for t in result.totals:
        out.append([t.label, str(t.total)])
    return out


def write_csv(result: ExportResult, path: Path) -> None:
    path = Path(path)
    with path.open("w", newline="", encoding="utf-8") as f:
        csv.writer(f).writerows(_rows(result))


def write_csv_stream(result: ExportResult, stream: Optional[IO[str]] = None) -> None:
    csv.writer(stream or sys.stdout).writerows(_rows(result))


def export_to_json(result: ExportResult) -> dict:
    return {
        "folder": result.folder,
        "xp": [
            {"timestamp": x.timestamp, "name": x.name, "amount": x.amount, "cumulative": float(x.cumulative)}
            for x in result.xp
        ],
        "skills": [{"name": s.name, "code": s.code, "level": s.level} for s in result.skills],
        "totals": [{"label": t.label, "total": t.total} for t in result.totals],
    }
