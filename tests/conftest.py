"""Shared fixtures: small TypeScript projects written into tmp_path, and hand-built records."""

from pathlib import Path
from typing import Callable, Dict, Optional

import pytest

from fos.analysis.registry import FunctionRegistry
from fos.parsing.extractor import extract_functions
from fos.parsing.ir import FunctionRecord, make_function_id
from fos.parsing.ts_parser import SourceFile, parse_source


DEFAULT_TSCONFIG = """{
  // comments and trailing commas are legal in tsconfig
  "compilerOptions": { "strict": true, "outDir": "dist", },
  "include": ["src"],
}
"""

SAMPLE_FILES = {
    "src/utils/format.ts": """\
export function formatName(first: string, last?: string): string {
  return `${first} ${last ?? ""}`.trim();
}

export const useAuth = () => {
  return formatName("a");
};

export function useForm() {
  return useAuth();
}

function reuseCache() {
  return 1;
}
""",
    "src/index.ts": """\
import { formatName } from "./utils/format";

export interface User {
  id: string;
  name: string;
}

export async function greet(user: User): Promise<string> {
  const msg = formatName(user.name);
  console.log(msg);
  return msg;
}

export function main() {
  greet({ id: "1", name: "x" });
}
""",
    "node_modules/lib/index.ts": "export function vendored() {}\n",
}


def parse_ts(code: str, path: str = "src/sample.ts", lang: str = "typescript") -> SourceFile:
    return parse_source(Path(path), code, lang)


def extract(code: str, path: str = "src/sample.ts", lang: str = "typescript") -> list[FunctionRecord]:
    return extract_functions(parse_ts(code, path, lang), path)


def by_name(records, name: str) -> FunctionRecord:
    matches = [r for r in records if r.name == name]
    assert matches, f"{name} not extracted; got {[r.name for r in records]}"
    return matches[0]


def make_record(
    name: str,
    calls=(),
    file_path: str = "src/a.ts",
    scope: Optional[str] = None,
    line: int = 1,
    exported: bool = False,
    complexity: int = 1,
) -> FunctionRecord:
    return FunctionRecord(
        id=make_function_id(file_path, name, scope),
        name=name,
        kind="function",
        file_path=file_path,
        start_line=line,
        end_line=line + 2,
        enclosing_scope=scope,
        is_exported=exported,
        callee_names=tuple(calls),
        complexity=complexity,
    )


def make_registry(*records: FunctionRecord) -> FunctionRegistry:
    registry = FunctionRegistry()
    for r in records:
        registry.add(r)
    return registry


@pytest.fixture
def ts_project(tmp_path) -> Callable[..., Path]:
    """Write files (relative path -> text) plus a tsconfig.json and return the project dir."""

    def _make(files: Optional[Dict[str, str]] = None, tsconfig: str = DEFAULT_TSCONFIG) -> Path:
        root = tmp_path / "project"
        root.mkdir(exist_ok=True)
        if tsconfig is not None:
            (root / "tsconfig.json").write_text(tsconfig, encoding="utf-8")
        for rel, text in (SAMPLE_FILES if files is None else files).items():
            fpath = root / rel
            fpath.parent.mkdir(parents=True, exist_ok=True)
            fpath.write_text(text, encoding="utf-8")
        return root

    return _make
