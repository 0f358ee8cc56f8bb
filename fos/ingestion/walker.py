from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
import logging
import os

import pathspec

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class FileMeta:
    path: Path
    bytes: int
    language: str

_TS_LANG_MAP = {
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
}

_JS_LANG_MAP = {
    ".js": "typescript",
    ".mjs": "typescript",
    ".cjs": "typescript",
    ".jsx": "tsx",
}

HARD_EXCLUDE_DIRS = {
    ".git", ".hg", ".svn",
    "node_modules",
    "dist", "build", ".next", ".turbo", ".nuxt",
    ".idea", ".vscode",
    ".cache",
}

def detect_language(path: Path, allow_js: bool = False) -> str | None:
    suffix = path.suffix.lower()
    if suffix in _TS_LANG_MAP:
        return _TS_LANG_MAP[suffix]
    if allow_js and suffix in _JS_LANG_MAP:
        return _JS_LANG_MAP[suffix]
    return None

def _normalize(pattern: str) -> str:
    p = pattern.strip().replace("\\", "/")
    while p.startswith("./"):
        p = p[2:]
    return p

def _anchor(pattern: str) -> str:
    # tsconfig globs are relative to the config directory
    p = _normalize(pattern)
    if not p or p.startswith("/") or p.startswith("**"):
        return p
    return "/" + p

def compile_patterns(patterns: list[str]) -> pathspec.PathSpec:
    return pathspec.PathSpec.from_lines("gitignore", [_anchor(p) for p in patterns if p.strip()])

def walk_project(
    root: Path,
    include: list[str],
    exclude: list[str],
    max_bytes: int,
    files: list[str] | None = None,
    allow_js: bool = False,
) -> list[FileMeta]:
    """Enumerate the TypeScript sources a tsconfig selects under root."""
    root = root.resolve()
    include_spec = compile_patterns(include)
    exclude_spec = compile_patterns(exclude)
    explicit = {_normalize(f) for f in (files or [])}
    results: list[FileMeta] = []

    for dirpath, dirnames, filenames in os.walk(root):
        dir_rel = Path(dirpath).relative_to(root)

        pruned = []
        for d in list(dirnames):
            if d in HARD_EXCLUDE_DIRS:
                pruned.append(d); continue
            if exclude_spec.match_file((dir_rel / d).as_posix() + "/"):
                pruned.append(d); continue
        for d in pruned:
            dirnames.remove(d)

        for fname in filenames:
            fpath = Path(dirpath, fname)
            rel = fpath.relative_to(root)
            rel_str = rel.as_posix()

            language = detect_language(fpath, allow_js=allow_js)
            if language is None:
                continue
            if rel_str not in explicit:
                if exclude_spec.match_file(rel_str):
                    continue
                if not include_spec.match_file(rel_str):
                    continue

            try:
                size = fpath.stat().st_size
            except FileNotFoundError:
                continue
            if size > max_bytes:
                logger.info("Skipping %s (%d bytes > max_bytes %d)", rel_str, size, max_bytes)
                continue

            results.append(FileMeta(
                path=rel,
                bytes=int(size),
                language=language,
            ))
    return sorted(results, key=lambda fm: str(fm.path))
