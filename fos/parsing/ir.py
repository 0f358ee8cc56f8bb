from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Literal

FunctionKind = Literal["function", "arrow", "method", "constructor", "getter", "setter"]
MutationKind = Literal["assign", "update", "delete", "write"]
TypeKind = Literal["interface", "type", "enum"]

ANONYMOUS = "anonymous"

@dataclass(frozen=True)
class Parameter:
    name: str
    type: str
    optional: bool
    default: Optional[str] = None

@dataclass(frozen=True)
class CallDetail:
    function_name: str
    arguments: tuple[str, ...] = ()

@dataclass(frozen=True)
class StateModification:
    kind: MutationKind
    target: str

@dataclass(frozen=True)
class FunctionRecord:
    id: str
    name: str
    kind: FunctionKind
    file_path: str
    start_line: int
    end_line: int
    enclosing_scope: Optional[str] = None
    is_async: bool = False
    is_exported: bool = False
    parameters: tuple[Parameter, ...] = ()
    return_type: str = "void"
    callee_names: tuple[str, ...] = ()
    call_details: tuple[CallDetail, ...] = ()
    state_modifications: tuple[StateModification, ...] = ()
    complexity: int = 1

    @property
    def size_lines(self) -> int:
        return self.end_line - self.start_line + 1

    @property
    def qualified_name(self) -> str:
        return f"{self.enclosing_scope}.{self.name}" if self.enclosing_scope else self.name

    @property
    def location(self) -> str:
        return f"{self.file_path}:{self.start_line}-{self.end_line}"

    @property
    def signature(self) -> str:
        params = ", ".join(
            f"{p.name}{'?' if p.optional else ''}: {p.type}" for p in self.parameters
        )
        prefix = "async " if self.is_async else ""
        return f"{prefix}{self.qualified_name}({params}): {self.return_type}"

@dataclass(frozen=True)
class TypeRecord:
    name: str
    kind: TypeKind
    file_path: str
    start_line: int
    definition_text: str

def make_function_id(file_path: str, name: str, enclosing_scope: Optional[str] = None) -> str:
    return f"{file_path}:{enclosing_scope}.{name}" if enclosing_scope else f"{file_path}:{name}"
