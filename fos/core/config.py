from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

DEFAULT_INCLUDE = ["**/*"]
DEFAULT_EXCLUDE = ["node_modules", "bower_components", "jspm_packages"]

@dataclass
class AnalyzeConfig:
    tsconfig_path: Path
    include: List[str] = field(default_factory=lambda: list(DEFAULT_INCLUDE))
    exclude: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE))
    files: List[str] = field(default_factory=list)
    allow_js: bool = False
    max_bytes: int = 2_000_000
    settings_path: Path | None = None

    @property
    def project_root(self) -> Path:
        return self.tsconfig_path.parent

    def resolve_settings_path(self) -> Path:
        return self.settings_path or (self.project_root / ".fos.yaml")
