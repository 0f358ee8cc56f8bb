from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable
from fos.parsing.ir import FunctionRecord

@dataclass(frozen=True)
class ComplexityFinding:
    id: str
    name: str
    message: str
    file: str
    start_line: int
    end_line: int
    value: int
    threshold: int

def detect_complexity(functions: Iterable[FunctionRecord], warn_at: int = 10) -> list[ComplexityFinding]:
    findings: list[ComplexityFinding] = []
    for fn in functions:
        if fn.complexity >= warn_at:
            findings.append(ComplexityFinding(
                id=f"{fn.id}#complexity",
                name=fn.qualified_name,
                message=f"High complexity: {fn.complexity} (>= {warn_at})",
                file=fn.file_path,
                start_line=fn.start_line,
                end_line=fn.end_line,
                value=fn.complexity,
                threshold=int(warn_at),
            ))
    findings.sort(key=lambda f: (-f.value, f.file, f.start_line))
    return findings
