from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import logging

from fos.analysis.registry import FunctionRegistry
from fos.analysis.types import TypeRegistry
from fos.ingestion.project import Project, load_project
from fos.parsing.extractor import extract_functions
from fos.parsing.ir import FunctionRecord
from fos.parsing.type_defs import extract_type_definitions

logger = logging.getLogger(__name__)


@dataclass
class AnalysisSession:
    """
    Everything one invocation knows about a project. Built once by
    run_analysis and treated as read-only by every query afterwards.
    """

    project: Project
    functions: FunctionRegistry
    types: TypeRegistry
    files_analyzed: int = 0

    @property
    def root(self) -> Path:
        return self.project.root

    @property
    def settings(self) -> dict:
        return self.project.settings

    def read_source(self, record: FunctionRecord) -> str:
        lines = (self.root / record.file_path).read_text(encoding="utf-8", errors="ignore").splitlines()
        return "\n".join(lines[record.start_line - 1:record.end_line])


def run_analysis(project: Project) -> AnalysisSession:
    functions = FunctionRegistry()
    types = TypeRegistry()
    files_analyzed = 0

    for source in project.source_files():
        rel = source.path.as_posix()
        extracted = extract_functions(source, rel)
        for record in extracted:
            functions.add(record)
        for type_record in extract_type_definitions(source, rel):
            types.add(type_record)
        files_analyzed += 1
        logger.debug("%s: %d functions", rel, len(extracted))

    logger.info(
        "Indexed %d functions and %d types from %d files",
        len(functions), len(types), files_analyzed,
    )
    return AnalysisSession(project=project, functions=functions, types=types, files_analyzed=files_analyzed)


def analyze_project(config_path: Path | None = None, cwd: Path | None = None) -> AnalysisSession:
    return run_analysis(load_project(config_path, cwd=cwd))
