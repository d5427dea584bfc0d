"""End-to-end tests for analyze_project on small projects built in tmp_path."""

import json
import logging
from pathlib import Path

import pytest

from mp_prune.errors import ConfigurationError, EntryPointError
from mp_prune.log import TRACE
from mp_prune.models import AnalyzerConfig
from mp_prune.pipeline import analyze_project, extract_file, run_extraction


# ── Helpers ───────────────────────────────────────────────────

def _make_project(root: Path, files: dict) -> Path:
    """Write files; dict values are dumped as JSON, bytes are written raw."""
    root = root.resolve()
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
            continue
        if not isinstance(content, str):
            content = json.dumps(content)
        path.write_text(content, encoding="utf-8")
    return root


def _unused(result, root):
    return {p.relative_to(root).as_posix() for p in result.unused_files}


def _basic_project(root: Path) -> Path:
    return _make_project(root, {
        "app.js": "App({})",
        "app.json": {"pages": ["pages/index/index"]},
        "pages/index/index.js": "const util = require('../../utils/util.js')\nPage({})",
        "pages/index/index.wxml": "<view>{{msg}}</view>",
        "pages/index/index.wxss": ".title { color: red; }",
        "pages/index/index.json": {},
        "utils/util.js": "module.exports = {}",
        "isolated/a.js": "require('./b')",
        "isolated/b.js": "require('./c')",
        "isolated/c.js": "require('./a')",
        "unused-script.js": "",
    })


# ── Scenario ──────────────────────────────────────────────────

def test_basic_project(tmp_path):
    root = _basic_project(tmp_path)
    result = analyze_project(AnalyzerConfig(root_dir=root))
    assert _unused(result, root) == {
        "isolated/a.js",
        "isolated/b.js",
        "isolated/c.js",
        "unused-script.js",
    }
    assert "app" in result.entry_ids
    assert str(root / "utils/util.js") in result.reachable_ids


def test_idempotent(tmp_path):
    root = _basic_project(tmp_path)
    first = analyze_project(AnalyzerConfig(root_dir=root))
    second = analyze_project(AnalyzerConfig(root_dir=root))
    assert first.unused_files == second.unused_files


def test_single_worker_matches_pool(tmp_path):
    root = _basic_project(tmp_path)
    pooled = analyze_project(AnalyzerConfig(root_dir=root))
    serial = analyze_project(AnalyzerConfig(root_dir=root, max_workers=1))
    assert pooled.unused_files == serial.unused_files


def test_keep_assets(tmp_path):
    root = _basic_project(tmp_path)
    result = analyze_project(AnalyzerConfig(root_dir=root, keep_assets=["isolated/**"]))
    assert _unused(result, root) == {"unused-script.js"}


def test_exclude_patterns(tmp_path):
    root = _basic_project(tmp_path)
    result = analyze_project(AnalyzerConfig(root_dir=root, exclude_patterns=["isolated/**"]))
    assert _unused(result, root) == {"unused-script.js"}
    assert not any("isolated" in n.id for n in result.structure.nodes)


def test_essential_files(tmp_path):
    root = _basic_project(tmp_path)
    result = analyze_project(AnalyzerConfig(root_dir=root, essential_files=["isolated/a.js"]))
    # a.js is a seed, and the cycle makes b.js and c.js reachable from it
    assert _unused(result, root) == {"unused-script.js"}


def test_file_types(tmp_path):
    root = _basic_project(tmp_path)
    result = analyze_project(AnalyzerConfig(root_dir=root, file_types=["wxml", "wxss"]))
    assert _unused(result, root) == set()
    assert {n.properties["ext"] for n in result.structure.module_nodes()} == {"wxml", "wxss"}


# ── Manifest features ─────────────────────────────────────────

def test_miniapp_root(tmp_path):
    root = _make_project(tmp_path, {
        "package.json": {"name": "demo"},
        "tools/build.js": "",
        "miniprogram/app.json": {"pages": ["pages/a/a"]},
        "miniprogram/pages/a/a.js": "require('/utils/u')",
        "miniprogram/utils/u.js": "",
        "miniprogram/old.js": "",
    })
    result = analyze_project(AnalyzerConfig(root_dir=root, miniapp_root=Path("miniprogram")))
    assert _unused(result, root) == {"miniprogram/old.js"}


def test_components_and_subpackages(tmp_path):
    root = _make_project(tmp_path, {
        "app.json": {
            "pages": ["pages/index/index"],
            "subPackages": [{"root": "packageA", "pages": ["pages/cat/cat"]}],
            "usingComponents": {"nav": "/components/nav/nav"},
        },
        "pages/index/index.js": "",
        "pages/index/index.json": {"usingComponents": {
            "card": "/components/card/card",
            "map": "plugin://myPlugin/map",
        }},
        "packageA/pages/cat/cat.js": "",
        "components/nav/nav.js": "",
        "components/card/card.js": "",
        "components/card/card.json": {"component": True, "usingComponents": {"icon": "../icon/index"}},
        "components/icon/index.js": "",
        "components/icon/index.wxml": "",
        "components/unused/unused.js": "",
    })
    result = analyze_project(AnalyzerConfig(root_dir=root))
    assert _unused(result, root) == {"components/unused/unused.js"}
    assert not any("plugin" in w for w in result.warnings)


def test_template_and_style_chains(tmp_path):
    root = _make_project(tmp_path, {
        "app.json": {"pages": ["pages/a/a"]},
        "app.wxss": '@import "./styles/base.wxss";',
        "styles/base.wxss": '@import "./vars.wxss";\n.x { color: red; }',
        "styles/vars.wxss": ".y { color: blue; }",
        "styles/orphan.wxss": "",
        "pages/a/a.wxml": '<import src="../../templates/item.wxml"/><wxs src="../../utils/fmt.wxs" module="f"/>',
        "templates/item.wxml": '<template name="item"><image src="{{icon}}"/></template>',
        "utils/fmt.wxs": "module.exports = {}",
    })
    result = analyze_project(AnalyzerConfig(root_dir=root))
    assert _unused(result, root) == {"styles/orphan.wxss"}
    assert result.warnings == []


def test_assets(tmp_path):
    root = _make_project(tmp_path, {
        "app.json": {
            "pages": ["pages/a/a"],
            "tabBar": {"list": [{"pagePath": "pages/a/a", "iconPath": "images/tab.png"}]},
        },
        "pages/a/a.wxml": '<image src="/images/logo.png"/>',
        "pages/a/a.wxss": '.bg { background: url("../../images/bg.jpg"); }',
        "images/logo.png": b"\x89PNG",
        "images/tab.png": b"\x89PNG",
        "images/bg.jpg": b"\xff\xd8",
        "images/stale.png": b"\x89PNG",
    })
    without = analyze_project(AnalyzerConfig(root_dir=root))
    assert _unused(without, root) == set()

    with_assets = analyze_project(AnalyzerConfig(root_dir=root, include_assets=True))
    assert _unused(with_assets, root) == {"images/stale.png"}


def test_extensionless_markup_references(tmp_path):
    root = _make_project(tmp_path, {
        "app.json": {"pages": ["pages/a/a"]},
        "pages/a/a.wxml": (
            '<wxs src="../../utils/fmt" module="f"/>'
            '<include src="../../templates/header"/>'
            '<image src="/images/logo"/>'
        ),
        "utils/fmt.wxs": "module.exports = {}",
        "utils/fmt.wxml": "",
        "templates/header.wxml": "",
        "images/logo.png": b"\x89PNG",
    })
    result = analyze_project(AnalyzerConfig(root_dir=root, include_assets=True))
    assert _unused(result, root) == {"utils/fmt.wxml"}
    assert result.warnings == []


def test_expression_comparison_in_markup(tmp_path):
    root = _make_project(tmp_path, {
        "app.json": {"pages": ["pages/a/a"]},
        "pages/a/a.wxml": (
            '<view wx:if="{{a<b}}">{{count<max ? "x" : "y"}}<image src="/images/a.png"/></view>'
            '<import src="../../templates/tpl.wxml"/>'
        ),
        "templates/tpl.wxml": "",
        "images/a.png": b"\x89PNG",
        "images/b.png": b"\x89PNG",
    })
    result = analyze_project(AnalyzerConfig(root_dir=root, include_assets=True))
    assert _unused(result, root) == {"images/b.png"}


def test_workers_and_theme(tmp_path):
    root = _make_project(tmp_path, {
        "app.json": {"pages": [], "workers": "workers", "themeLocation": "theme.json"},
        "theme.json": {"light": {}},
        "workers/index.js": "require('./lib/helper')",
        "workers/lib/helper.js": "",
        "workers/lib/other.js": "",
        "stray.js": "",
    })
    result = analyze_project(AnalyzerConfig(root_dir=root))
    assert _unused(result, root) == {"stray.js"}


def test_tsconfig_aliases(tmp_path):
    root = _make_project(tmp_path, {
        "tsconfig.json": {"compilerOptions": {"baseUrl": ".", "paths": {"@/*": ["src/*"]}}},
        "app.json": {"pages": ["pages/a/a"]},
        "pages/a/a.ts": "import { fmt } from '@/utils/format'\nimport type { T } from '@/types/t'",
        "src/utils/format.ts": "export const fmt = 1",
        "src/types/t.ts": "export type T = string",
        "typings/wx.d.ts": "declare const wx: any;",
    })
    result = analyze_project(AnalyzerConfig(root_dir=root))
    assert _unused(result, root) == {"src/types/t.ts"}


def test_configured_aliases_override_tsconfig(tmp_path):
    root = _make_project(tmp_path, {
        "tsconfig.json": {"compilerOptions": {"paths": {"@/*": ["wrong/*"]}}},
        "app.json": {"pages": ["pages/a/a"]},
        "pages/a/a.js": "require('@/x')",
        "right/x.js": "",
    })
    result = analyze_project(AnalyzerConfig(root_dir=root, aliases={"@": ["right"]}))
    assert _unused(result, root) == set()


def test_entry_content(tmp_path):
    root = _make_project(tmp_path, {
        "app.json": {"pages": ["pages/a/a"]},
        "pages/a/a.js": "",
        "pages/b/b.js": "",
    })
    result = analyze_project(AnalyzerConfig(root_dir=root, entry_content={"pages": ["pages/b/b"]}))
    assert _unused(result, root) == {"pages/a/a.js"}


def test_entry_content_without_app_json(tmp_path):
    root = _make_project(tmp_path, {"app.js": "require('./lib')", "lib.js": "", "x.js": ""})
    result = analyze_project(AnalyzerConfig(root_dir=root, entry_content={"pages": []}))
    assert "app" in result.entry_ids
    assert _unused(result, root) == {"x.js"}


# ── Errors ────────────────────────────────────────────────────

def test_missing_project_dir(tmp_path):
    with pytest.raises(ConfigurationError):
        analyze_project(AnalyzerConfig(root_dir=tmp_path / "missing"))


def test_missing_miniapp_dir(tmp_path):
    with pytest.raises(ConfigurationError):
        analyze_project(AnalyzerConfig(root_dir=tmp_path, miniapp_root=Path("nope")))


def test_no_entry_points(tmp_path):
    root = _make_project(tmp_path, {"lib/x.js": "", "lib/y.js": ""})
    with pytest.raises(EntryPointError):
        analyze_project(AnalyzerConfig(root_dir=root))


def test_unreadable_file_is_isolated(tmp_path):
    root = _basic_project(tmp_path)
    (root / "broken.js").write_bytes(b"\xff\xfe\x00\x80 not utf-8")
    result = analyze_project(AnalyzerConfig(root_dir=root))
    assert any("broken.js" in w for w in result.warnings)
    assert "broken.js" in _unused(result, root)
    assert "utils/util.js" not in _unused(result, root)


def test_broken_app_json(tmp_path):
    root = _make_project(tmp_path, {"app.json": "{ nope", "app.js": "require('./lib')", "lib.js": "", "x.js": ""})
    result = analyze_project(AnalyzerConfig(root_dir=root))
    assert _unused(result, root) == {"x.js"}
    assert result.warnings


# ── Plumbing ──────────────────────────────────────────────────

def test_progress_callback(tmp_path):
    root = _basic_project(tmp_path)
    calls = []
    analyze_project(AnalyzerConfig(root_dir=root), progress=lambda s, c, t: calls.append((s, c, t)))
    stages = [c[0] for c in calls]
    for stage in ("Scanning", "Extracting", "Building graph", "Reachability"):
        assert stage in stages
    extracting = [c for c in calls if c[0] == "Extracting"]
    assert extracting[-1][1] == extracting[-1][2]


def test_custom_logger(tmp_path, caplog):
    root = _make_project(tmp_path, {"app.js": "", "x.js": ""})
    custom = logging.getLogger("host.app")
    with caplog.at_level(logging.WARNING, logger="host.app"):
        analyze_project(AnalyzerConfig(root_dir=root, logger=custom))
    assert any(r.name == "host.app" and "app.json" in r.getMessage() for r in caplog.records)


def test_run_extraction_collects_warnings(tmp_path):
    good = tmp_path / "a.js"
    good.write_text("require('./b')")
    bad = tmp_path / "b.js"
    bad.write_bytes(b"\xff\xff")
    skipped = tmp_path / "c.json"
    skipped.write_text("{}")
    refs, warnings = run_extraction([good, bad, skipped], max_workers=2)
    assert refs[good] == [("./b", None)]
    assert refs[bad] == []
    assert skipped not in refs
    assert len(warnings) == 1


def test_extract_file(tmp_path):
    path = tmp_path / "a.wxml"
    path.write_text('<include src="./b.wxml"/>')
    assert extract_file(path) == [("./b.wxml", "include")]

