from __future__ import annotations
from typing import List, Dict, Literal, Optional
from pydantic import BaseModel, Field

FunctionKindJSON = Literal["function", "arrow", "method", "constructor", "getter", "setter"]

class ParameterJSON(BaseModel):
    name: str
    type: str = Field(..., description="Source-level type text, 'any' when unannotated")
    optional: bool
    default: Optional[str] = Field(None, description="Default value source text")

class CallDetailJSON(BaseModel):
    function: str
    arguments: List[str] = Field(default_factory=list)

class StateModificationJSON(BaseModel):
    kind: Literal["assign", "update", "delete", "write"]
    target: str

class FunctionJSON(BaseModel):
    id: str = Field(..., description="Qualified id: <file>:<scope>.<name>")
    name: str
    kind: FunctionKindJSON
    enclosing_scope: Optional[str] = None
    file: str = Field(..., description="Relative path from the project root")
    start_line: int = Field(..., ge=1, description="1-based start line")
    end_line: int = Field(..., ge=1, description="1-based end line (inclusive)")
    size: int = Field(..., ge=1)
    is_async: bool
    is_exported: bool
    parameters: List[ParameterJSON] = Field(default_factory=list)
    return_type: str
    calls: List[str] = Field(default_factory=list)
    project_calls: List[str] = Field(default_factory=list, description="Calls resolving to project functions")
    call_details: List[CallDetailJSON] = Field(default_factory=list)
    state_modifications: List[StateModificationJSON] = Field(default_factory=list)
    complexity: int = Field(..., ge=1)

class UniverseJSON(BaseModel):
    project_root: str
    files_analyzed: int = Field(..., ge=0)
    total_functions: int = Field(..., ge=0)
    modules: Dict[str, List[str]] = Field(default_factory=dict, description="Directory -> function ids")
    functions: List[FunctionJSON]

class AnalyzeJSON(BaseModel):
    total_functions: int = Field(..., ge=0)
    components: List[List[str]] = Field(..., description="Connected components (size > 1), largest first")
    isolated_count: int = Field(..., ge=0)
    isolated: List[str] = Field(default_factory=list)
    cycles: List[List[str]] = Field(default_factory=list, description="Call cycles (truncated)")
