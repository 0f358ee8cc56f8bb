from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator
import json
import logging
import re

from fos.core.config import AnalyzeConfig, DEFAULT_EXCLUDE, DEFAULT_INCLUDE
from fos.core.errors import ProjectConfigError, ProjectConfigNotFoundError
from fos.ingestion.walker import FileMeta, walk_project
from fos.parsing.ts_parser import SourceFile, parse_source
from fos.presets import load_settings

logger = logging.getLogger(__name__)

TSCONFIG_NAME = "tsconfig.json"

_JSONC_COMMENT_RE = re.compile(r'("(?:\\.|[^"\\])*")|//[^\n]*|/\*.*?\*/', re.DOTALL)
_JSONC_TRAILING_COMMA_RE = re.compile(r'("(?:\\.|[^"\\])*")|,(?=\s*[}\]])')


def _keep_strings(m: re.Match) -> str:
    return m.group(1) or ""


def parse_jsonc(text: str) -> dict:
    """json.loads for tsconfig files, which allow comments and trailing commas."""
    cleaned = _JSONC_COMMENT_RE.sub(_keep_strings, text)
    cleaned = _JSONC_TRAILING_COMMA_RE.sub(_keep_strings, cleaned)
    data = json.loads(cleaned or "{}")
    if not isinstance(data, dict):
        raise ValueError("top level must be an object")
    return data


def find_tsconfig(start: Path) -> Path | None:
    current = start.resolve()
    for directory in (current, *current.parents):
        candidate = directory / TSCONFIG_NAME
        if candidate.is_file():
            return candidate
    return None


def read_tsconfig(tsconfig_path: Path) -> AnalyzeConfig:
    try:
        data = parse_jsonc(tsconfig_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise ProjectConfigError(tsconfig_path, str(e)) from e

    options = data.get("compilerOptions") or {}
    files = [str(f) for f in data.get("files") or []]
    if "include" in data:
        include = [str(p) for p in data.get("include") or []]
    else:
        # tsc only falls back to "everything" when no explicit file list is given
        include = [] if files else list(DEFAULT_INCLUDE)
    exclude = [str(p) for p in data.get("exclude", DEFAULT_EXCLUDE) or []]
    out_dir = options.get("outDir")
    if out_dir and "exclude" not in data:
        exclude.append(str(out_dir))

    return AnalyzeConfig(
        tsconfig_path=tsconfig_path,
        include=include,
        exclude=exclude,
        files=files,
        allow_js=bool(options.get("allowJs", False)),
    )


@dataclass
class Project:
    config: AnalyzeConfig
    files: list[FileMeta] = field(default_factory=list)
    settings: dict = field(default_factory=lambda: load_settings(None))

    @property
    def root(self) -> Path:
        return self.config.project_root

    def source_files(self) -> Iterator[SourceFile]:
        """Parse each selected file lazily; unreadable files are logged and skipped."""
        for meta in self.files:
            fpath = self.root / meta.path
            try:
                text = fpath.read_text(encoding="utf-8", errors="ignore")
            except OSError as e:
                logger.warning("Skipping %s: %s", meta.path.as_posix(), e)
                continue
            yield parse_source(meta.path, text, meta.language)


def load_project(config_path: Path | None = None, cwd: Path | None = None) -> Project:
    """
    Locate and read a tsconfig.json, then enumerate the files it selects.

    config_path may name the tsconfig file itself or a directory holding one.
    When omitted, the search starts at cwd and walks up to the filesystem root.
    An optional .fos.yaml next to the tsconfig adds excludes and limits.
    """
    start = Path(cwd or Path.cwd())
    if config_path is not None:
        config_path = Path(config_path)
        if config_path.is_dir():
            config_path = config_path / TSCONFIG_NAME
        if not config_path.is_file():
            raise ProjectConfigNotFoundError(config_path.parent)
        tsconfig = config_path.resolve()
    else:
        found = find_tsconfig(start)
        if found is None:
            raise ProjectConfigNotFoundError(start)
        tsconfig = found
    logger.debug("Using project configuration %s", tsconfig)

    config = read_tsconfig(tsconfig)
    settings = load_settings(config.resolve_settings_path())
    config.exclude.extend(str(p) for p in settings.get("exclude") or [])
    config.max_bytes = int(settings.get("max_bytes") or config.max_bytes)

    files = walk_project(
        config.project_root,
        config.include,
        config.exclude,
        config.max_bytes,
        files=config.files,
        allow_js=config.allow_js,
    )
    logger.debug("Selected %d source files under %s", len(files), config.project_root)
    return Project(config=config, files=files, settings=settings)
