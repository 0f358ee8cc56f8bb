from __future__ import annotations
from pathlib import Path


class FosError(Exception):
    """Base class for errors that stop an analysis run before any query executes."""


class ProjectConfigNotFoundError(FosError):
    def __init__(self, start: Path):
        self.start = start
        super().__init__(
            f"No tsconfig.json found in {start} or any parent directory"
        )


class ProjectConfigError(FosError):
    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid project configuration {path}: {reason}")
