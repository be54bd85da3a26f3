from __future__ import annotations

from pathlib import Path

import orjson
import pytest
from typer.testing import CliRunner

from app.cli import app
from tests.helpers.system_payloads import legacy_pentad_payload

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)


def test_layout_writes_geometry(tmp_path: Path) -> None:
    output = tmp_path / "layout.json"

    result = runner.invoke(app, ["layout", "4", "--output", str(output)])

    assert result.exit_code == 0, result.output
    payload = orjson.loads(output.read_bytes())
    assert [node["number"] for node in payload["nodes"]] == [1, 2, 3, 4]
    assert payload["nodes"][0] == {"number": 1, "x": 800.0, "y": 800.0 - 1400.0 * 0.38}
    assert len(payload["edges"]) == 6


def test_layout_rejects_unsupported_size() -> None:
    result = runner.invoke(app, ["layout", "13"])

    assert result.exit_code == 1
    assert "Unsupported system size" in result.output


def test_normalize_file(tmp_path: Path) -> None:
    source = tmp_path / "pentad.json"
    source.write_bytes(orjson.dumps(legacy_pentad_payload()))
    output = tmp_path / "model.json"

    result = runner.invoke(app, ["normalize", str(source), "--output", str(output)])

    assert result.exit_code == 0, result.output
    payload = orjson.loads(output.read_bytes())
    assert payload["system_id"] == "pentad"
    assert len(payload["edges"]) == 5


def test_normalize_reports_parse_errors(tmp_path: Path) -> None:
    source = tmp_path / "broken.json"
    source.write_text("{broken", encoding="utf-8")

    result = runner.invoke(app, ["normalize", str(source)])

    assert result.exit_code == 1
    assert "Parse error" in result.output


def test_normalize_missing_file(tmp_path: Path) -> None:
    result = runner.invoke(app, ["normalize", str(tmp_path / "absent.json")])

    assert result.exit_code == 1
    assert "File not found" in result.output


def test_view_with_selection(tmp_path: Path) -> None:
    output = tmp_path / "view.json"

    result = runner.invoke(
        app, ["view", "dyad", "--edge", "2,1", "--labels", "--output", str(output)]
    )

    assert result.exit_code == 0, result.output
    payload = orjson.loads(output.read_bytes())
    assert payload["selection"]["selected_edge"] == [0, 1]
    assert [label["text"] for label in payload["labels"]] == ["Polarity"]
    assert len(payload["circles"]) == 2


def test_view_unknown_system() -> None:
    result = runner.invoke(app, ["view", "tridecad"])

    assert result.exit_code == 1
    assert "Not found" in result.output


def test_systems_table() -> None:
    result = runner.invoke(app, ["systems"])

    assert result.exit_code == 0, result.output
    assert "tetrad" in result.output
    assert "dodecad" in result.output
