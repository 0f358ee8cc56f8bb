"""End-to-end CLI tests through typer's CliRunner on a small TypeScript project."""

import json

import pytest
from typer.testing import CliRunner

from fos.cli.main import app

from conftest import SAMPLE_FILES

runner = CliRunner()


@pytest.fixture
def project(ts_project):
    return ts_project()


def _run(project, *args):
    return runner.invoke(app, ["--project", str(project), *args])


def test_missing_project_configuration_exits_nonzero(tmp_path):
    result = runner.invoke(app, ["--project", str(tmp_path / "empty"), "list"])
    assert result.exit_code == 1


def test_list_prints_function_universe(project):
    result = _run(project, "list")
    assert result.exit_code == 0
    assert "=== FUNCTION UNIVERSE ===" in result.stdout
    assert "greet:" in result.stdout
    assert "location: src/index.ts:8-12" in result.stdout
    assert "Leaf Functions (no calls):" in result.stdout
    assert "vendored" not in result.stdout


def test_list_module_and_exports_filter(project):
    result = _run(project, "list", "format", "--exports")
    assert result.exit_code == 0
    assert "=== MODULE: format ===" in result.stdout
    assert "File: src/utils/format.ts" in result.stdout
    assert "formatName:" in result.stdout
    assert "reuseCache:" not in result.stdout
    assert "greet:" not in result.stdout


def test_list_json_schema(project):
    result = _run(project, "list", "--json")
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["total_functions"] == 6
    assert payload["files_analyzed"] == 2
    greet = next(f for f in payload["functions"] if f["name"] == "greet")
    assert greet["project_calls"] == ["formatName"]
    assert greet["parameters"][0] == {"name": "user", "type": "User", "optional": False, "default": None}
    assert set(payload["modules"]) == {"src", "src/utils"}


def test_find_uses_case_insensitive_regex(project):
    result = _run(project, "find", "^USE")
    assert result.exit_code == 0
    assert "useAuth:" in result.stdout
    assert "useForm:" in result.stdout
    assert "reuseCache:" not in result.stdout


def test_find_invalid_regex_falls_back(project):
    result = _run(project, "find", "format(")
    assert result.exit_code == 0
    assert "Invalid regex, using string match: format(" in result.stdout


def test_find_invalid_regex_lists_substring_hits(ts_project):
    root = ts_project(
        files={
            **SAMPLE_FILES,
            "src/handlers.ts": 'export const handlers = {\n  "format(raw)": () => formatName("x"),\n};\n',
        }
    )
    result = runner.invoke(app, ["-p", str(root), "find", "FORMAT("])
    assert result.exit_code == 0
    assert "Invalid regex, using string match: FORMAT(" in result.stdout
    assert "format(raw):" in result.stdout
    assert "formatName:" not in result.stdout


def test_info_shows_callers_and_link(project):
    result = _run(project, "info", "formatName")
    assert result.exit_code == 0
    assert "Function: formatName" in result.stdout
    assert "Location: src/utils/format.ts:1-3 (3 lines)" in result.stdout
    assert "last: string (optional)" in result.stdout
    assert "greet (index.ts)" in result.stdout
    assert "Direct Access: file://" in result.stdout


def test_info_dead_code_and_not_found(project):
    result = _run(project, "info", "reuseCache")
    assert "None (potential dead code)" in result.stdout

    result = _run(project, "info", "doesNotExist")
    assert result.exit_code == 0
    assert 'Function "doesNotExist" not found' in result.stdout


def test_deps_and_callers(project):
    result = _run(project, "deps", "greet")
    assert result.exit_code == 0
    assert "formatName (format.ts:1)" in result.stdout
    assert "main (index.ts:14)" in result.stdout
    assert "console.log" not in result.stdout

    result = _run(project, "callers", "useAuth")
    assert "useForm (format.ts:9)" in result.stdout


def test_type_lookup(project):
    result = _run(project, "type", "User")
    assert result.exit_code == 0
    assert "Location: src/index.ts:3" in result.stdout
    assert "export interface User" in result.stdout

    result = _run(project, "type", "Nope")
    assert result.exit_code == 0
    assert 'Type "Nope" not found' in result.stdout


def test_flow_with_depth(project):
    result = _run(project, "flow", "main", "--depth", "1")
    assert result.exit_code == 0
    lines = [l for l in result.stdout.splitlines() if l.strip()]
    assert any(l.startswith("main") for l in lines)
    greet_line = next(l for l in lines if "→ greet" in l)
    assert greet_line.rstrip().endswith("...")
    assert "formatName" not in result.stdout


def test_graph_formats(project):
    result = _run(project, "graph")
    assert "main → greet" in result.stdout

    result = _run(project, "graph", "greet", "--format", "mermaid")
    assert result.stdout.startswith("graph TD")
    assert '"formatName"' in result.stdout

    result = _run(project, "graph", "--format", "dot")
    assert '"useForm" -> "useAuth";' in result.stdout

    result = _run(project, "graph", "--format", "png")
    assert result.exit_code == 2


def test_tree_and_stats(project):
    result = _run(project, "tree")
    assert result.exit_code == 0
    assert "format.ts" in result.stdout
    assert "greet" in result.stdout

    result = _run(project, "stats")
    assert result.exit_code == 0
    assert "Functions" in result.stdout
    assert "No functions at or above complexity 10" in result.stdout


def test_stats_reports_duplicate_type_names(ts_project):
    root = ts_project(
        files={
            "src/a.ts": "export interface Config { a: number }\nexport function load() {}\n",
            "src/b.ts": "export interface Config { b: string }\n",
        }
    )
    result = runner.invoke(app, ["-p", str(root), "stats"])
    assert result.exit_code == 0
    assert "Duplicate type names" in result.stdout
    assert "Type Config defined in: src/a.ts, src/b.ts" in result.stdout


def test_analyze_components(project):
    result = _run(project, "analyze", "--json")
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["components"] == [["greet", "main", "formatName", "useForm", "useAuth"]]
    assert payload["isolated"] == ["reuseCache"]
    assert payload["isolated_count"] == 1

    result = _run(project, "analyze")
    assert "Isolated functions: 1" in result.stdout


def test_read_prints_source(project):
    result = _run(project, "read", "useForm", "missing")
    assert result.exit_code == 0
    assert "export function useForm() {" in result.stdout
    assert "return useAuth();" in result.stdout
    assert 'Function "missing" not found' in result.stdout


def test_ai_digest_modes(project):
    result = _run(project, "ai")
    assert result.exit_code == 0
    assert "## src/index.ts" in result.stdout
    assert "+ `async greet(user: User): Promise<string>` L8-12 -> formatName" in result.stdout

    result = _run(project, "ai", "--module")
    assert "## src/utils" in result.stdout
    assert "### Used by" in result.stdout
    assert "- src (1 call)" in result.stdout


def test_empty_project_lists_nothing(ts_project):
    root = ts_project(files={"src/types.ts": "export type Id = string;\n"})
    result = runner.invoke(app, ["-p", str(root), "list"])
    assert result.exit_code == 0
    assert "No functions found in the codebase." in result.stdout
