"""Tests for the python -m dockstart entry point."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from dockstart.__main__ import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("DOCKSTART_DEBUG", "DOCKSTART_LOG_LEVEL", "DOCKSTART_DISABLED_DETECTORS"):
        monkeypatch.delenv(name, raising=False)


def _node_project(tmp_path: Path) -> Path:
    (tmp_path / "package.json").write_text(json.dumps({
        "name": "web",
        "engines": {"node": ">=18.0.0 <21.0.0"},
        "dependencies": {"pino": "^8", "winston": "^3"},
    }))
    return tmp_path


class TestCli:
    def test_prints_primary_detection(self, tmp_path):
        result = runner.invoke(app, [str(_node_project(tmp_path))])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["language"] == "node"
        assert data["version"] == "18"
        assert data["log_format"] == "json"

    def test_all_flag_prints_project(self, tmp_path):
        _node_project(tmp_path)
        (tmp_path / "requirements.txt").write_text("flask\n")
        result = runner.invoke(app, [str(tmp_path), "--all"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["name"] == tmp_path.name
        assert [d["language"] for d in data["detections"]] == ["node", "python"]

    def test_nothing_detected_exits_1(self, tmp_path):
        result = runner.invoke(app, [str(tmp_path)])
        assert result.exit_code == 1

    def test_missing_directory_exits_1(self, tmp_path):
        result = runner.invoke(app, [str(tmp_path / "nope")])
        assert result.exit_code == 1

    def test_disabled_detector_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DOCKSTART_DISABLED_DETECTORS", '["node"]')
        result = runner.invoke(app, [str(_node_project(tmp_path))])
        assert result.exit_code == 1

    def test_debug_flag(self, tmp_path):
        result = runner.invoke(app, [str(_node_project(tmp_path)), "--debug"])
        assert result.exit_code == 0
