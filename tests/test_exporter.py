import io
from decimal import Decimal
from pathlib import Path

import pytest

from zone01_profile.config import AppConfig
from zone01_profile.core import DashboardPayload, FolderTaxonomy
from zone01_profile.exporter import ExportError, build_export, export_to_json, write_csv, write_csv_stream
from zone01_profile.orchestrator import build_view


def _view(make_tx, skills=()):
    payload = DashboardPayload(
        user_id=1,
        login="learner",
        transactions=(
            make_tx(1500, day=1, name="second"),
            make_tx(250, day=0, name="first"),
        ),
        skills=tuple(skills),
    )
    return build_view("div-01", FolderTaxonomy(), payload, config=AppConfig())


def test_build_export_orders_xp_and_ranks_skills(make_tx, skill_records):
    result = build_export(_view(make_tx, skill_records))

    assert result.folder == "div-01"
    assert [x.name for x in result.xp] == ["first", "second"]
    assert [x.cumulative for x in result.xp] == [Decimal("0.250"), Decimal("1.750")]
    assert [s.name for s in result.skills] == ["Golang", "JavaScript"]
    assert result.totals[0].label == "Total"
    assert result.totals[0].total == 2


def test_build_export_fails_without_view():
    with pytest.raises(ExportError):
        build_export(None)


def test_write_csv_sections(tmp_path: Path, make_tx, skill_records):
    result = build_export(_view(make_tx, skill_records))
    out = tmp_path / "xp.csv"
    write_csv(result, out)

    content = out.read_text(encoding="utf-8").strip().splitlines()
    assert content[0] == "[XP]"
    assert content[1].endswith(",first,250,0.250")
    assert content[2].endswith(",second,1500,1.750")
    assert "[Skills]" in content
    assert "Golang,70,skill_go" in content
    assert content[-4:] == ["[Totals]", "Total,2", "Transactions,2", "Skills,2"]


def test_skills_section_omitted_when_empty(make_tx):
    buf = io.StringIO()
    write_csv_stream(build_export(_view(make_tx)), buf)

    lines = buf.getvalue().splitlines()
    assert "[Skills]" not in lines
    assert "Skills,0" in lines


def test_export_to_json(make_tx, skill_records):
    payload = export_to_json(build_export(_view(make_tx, skill_records)))

    assert payload["xp"][1]["cumulative"] == 1.75
    assert payload["totals"][0] == {"label": "Total", "total": 2}
