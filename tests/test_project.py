"""Tests for tsconfig discovery, file selection and session building."""

from pathlib import Path

import pytest

from fos.analysis.runner import analyze_project
from fos.core.errors import ProjectConfigError, ProjectConfigNotFoundError
from fos.ingestion.project import find_tsconfig, load_project, parse_jsonc, read_tsconfig
from fos.ingestion.walker import walk_project
from fos.presets import DEFAULT_SETTINGS, load_settings


def test_parse_jsonc_strips_comments_and_trailing_commas():
    data = parse_jsonc(
        '{\n'
        '  // line comment\n'
        '  "compilerOptions": { "baseUrl": "http://example.com/*x*/", },\n'
        '  /* block\n comment */\n'
        '  "include": ["src",],\n'
        '}\n'
    )
    assert data == {"compilerOptions": {"baseUrl": "http://example.com/*x*/"}, "include": ["src"]}


def test_find_tsconfig_walks_up(ts_project):
    root = ts_project()
    nested = root / "src" / "utils"
    assert find_tsconfig(nested) == (root / "tsconfig.json").resolve()


def test_read_tsconfig_defaults(tmp_path):
    cfg_path = tmp_path / "tsconfig.json"
    cfg_path.write_text('{"compilerOptions": {"allowJs": true}}', encoding="utf-8")
    config = read_tsconfig(cfg_path)
    assert config.include == ["**/*"]
    assert "node_modules" in config.exclude
    assert config.allow_js
    assert config.project_root == tmp_path


def test_invalid_tsconfig_raises(tmp_path):
    cfg_path = tmp_path / "tsconfig.json"
    cfg_path.write_text("{ not json", encoding="utf-8")
    with pytest.raises(ProjectConfigError):
        read_tsconfig(cfg_path)


def test_missing_tsconfig_raises(tmp_path):
    with pytest.raises(ProjectConfigNotFoundError):
        load_project(tmp_path / "nowhere")


def test_load_project_selects_included_sources(ts_project):
    root = ts_project()
    (root / "scripts").mkdir()
    (root / "scripts" / "build.ts").write_text("function build() {}\n", encoding="utf-8")
    (root / "src" / "legacy.js").write_text("function old() {}\n", encoding="utf-8")

    project = load_project(root)
    paths = sorted(f.path.as_posix() for f in project.files)
    assert paths == ["src/index.ts", "src/utils/format.ts"]
    assert project.root == (root / "tsconfig.json").resolve().parent


def test_walk_uses_stat_without_reading_sources(ts_project, monkeypatch):
    root = ts_project()

    def _no_read(self, *args, **kwargs):
        raise AssertionError(f"walker read {self}")

    monkeypatch.setattr(Path, "read_text", _no_read)
    metas = walk_project(root, ["src"], ["node_modules"], max_bytes=1_000_000)
    assert [m.path.as_posix() for m in metas] == ["src/index.ts", "src/utils/format.ts"]
    index = metas[0]
    assert index.bytes == (root / "src" / "index.ts").stat().st_size
    assert index.language == "typescript"


def test_exclude_globs_prune_directories(ts_project):
    root = ts_project()
    metas = walk_project(root, ["**/*"], ["src/utils"], max_bytes=1_000_000)
    assert [m.path.as_posix() for m in metas] == ["src/index.ts"]


def test_settings_file_extends_excludes(ts_project):
    root = ts_project()
    (root / ".fos.yaml").write_text(
        "exclude:\n  - src/utils\ncomplexity:\n  warn_at: 4\n", encoding="utf-8"
    )
    project = load_project(root / "tsconfig.json")
    assert [f.path.as_posix() for f in project.files] == ["src/index.ts"]
    assert project.settings["complexity"]["warn_at"] == 4
    assert project.settings["flow"]["default_depth"] == DEFAULT_SETTINGS["flow"]["default_depth"]


def test_unreadable_settings_fall_back_to_defaults(tmp_path):
    bad = tmp_path / ".fos.yaml"
    bad.write_text("complexity: [unclosed", encoding="utf-8")
    assert load_settings(bad) == DEFAULT_SETTINGS


def test_explicit_files_bypass_include(ts_project):
    root = ts_project(
        files={"lib/only.ts": "export function only() {}\n", "lib/other.ts": "function other() {}\n"},
        tsconfig='{"files": ["lib/only.ts"]}',
    )
    project = load_project(root)
    assert [f.path.as_posix() for f in project.files] == ["lib/only.ts"]


def test_analyze_project_builds_session(ts_project):
    root = ts_project()
    session = analyze_project(root)
    names = [r.name for r in session.functions]
    assert names == ["greet", "main", "formatName", "useForm", "reuseCache", "useAuth"]
    assert "vendored" not in names
    assert session.files_analyzed == 2
    assert session.types.get("User").file_path == "src/index.ts"

    greet = session.functions.find_by_name("greet")[0]
    assert greet.is_async
    assert greet.return_type == "Promise<string>"
    assert session.functions.project_calls_of(greet) == ["formatName"]
    assert "function greet" in session.read_source(greet)


def test_empty_project_is_valid(ts_project):
    root = ts_project(files={"src/types.ts": "export type Id = string;\n"})
    session = analyze_project(root)
    assert len(session.functions) == 0
    assert len(session.types) == 1
