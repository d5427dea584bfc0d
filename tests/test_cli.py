"""Tests for the click CLI."""

import json
from pathlib import Path

from click.testing import CliRunner

from mp_prune import __version__
from mp_prune.cli import cli


def _make_project(root: Path, files: dict) -> Path:
    root = root.resolve()
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if not isinstance(content, str):
            content = json.dumps(content)
        path.write_text(content, encoding="utf-8")
    return root


def _project(tmp_path):
    return _make_project(tmp_path, {
        "app.js": "App({})",
        "app.json": {"pages": ["pages/index/index"]},
        "pages/index/index.js": "require('../../utils/util')",
        "pages/index/index.wxml": "<view/>",
        "utils/util.js": "",
        "old/legacy.js": "",
        "unused-script.js": "",
    })


def test_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_list_unused_text(tmp_path):
    root = _project(tmp_path)
    result = CliRunner().invoke(cli, ["list-unused", str(root)])
    assert result.exit_code == 0, result.output
    assert "Found 2 unused file(s)" in result.output
    assert "old/legacy.js" in result.output
    assert "unused-script.js" in result.output
    assert "utils/util.js" not in result.output


def test_list_unused_json(tmp_path):
    root = _project(tmp_path)
    out = tmp_path / "report.json"
    result = CliRunner().invoke(cli, ["list-unused", str(root), "--format", "json", "-o", str(out)])
    assert result.exit_code == 0, result.output
    payload = json.loads(out.read_text(encoding="utf-8"))
    assert payload["unusedFiles"] == ["old/legacy.js", "unused-script.js"]
    assert payload["summary"]["unusedFiles"] == 2


def test_list_unused_options(tmp_path):
    root = _project(tmp_path)
    result = CliRunner().invoke(cli, ["list-unused", str(root), "--keep", "old/**", "-x", "unused-script.js"])
    assert result.exit_code == 0, result.output
    assert "No unused files found." in result.output


def test_list_unused_reads_config_file(tmp_path):
    root = _project(tmp_path)
    (root / "mp-prune.config.json").write_text(json.dumps({"keepAssets": ["old/**"]}))
    result = CliRunner().invoke(cli, ["list-unused", str(root)])
    assert result.exit_code == 0, result.output
    assert "old/legacy.js" not in result.output
    assert "unused-script.js" in result.output


def test_bad_config_file(tmp_path):
    root = _project(tmp_path)
    (root / "mp-prune.config.json").write_text("{ broken")
    result = CliRunner().invoke(cli, ["list-unused", str(root)])
    assert result.exit_code != 0
    assert "config" in result.output.lower()


def test_no_entry_points(tmp_path):
    root = _make_project(tmp_path, {"lib/x.js": ""})
    result = CliRunner().invoke(cli, ["list-unused", str(root)])
    assert result.exit_code != 0
    assert "No entry points" in result.output


def test_graph(tmp_path):
    root = _project(tmp_path)
    out = tmp_path / "graph.json"
    result = CliRunner().invoke(cli, ["graph", str(root), "-o", str(out)])
    assert result.exit_code == 0, result.output
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["rootNodeId"] == "app"
    assert any(n["id"] == "page:pages/index/index" for n in data["nodes"])
    assert any(l["type"] == "Import" for l in data["links"])
