from __future__ import annotations
from typing import Iterable, Literal
import json
import re
import networkx as nx

from fos.analysis.call_graph import ComponentReport, build_call_graph, call_subgraph
from fos.analysis.registry import FunctionRegistry
from fos.analysis.runner import AnalysisSession
from fos.parsing.ir import FunctionRecord
from fos.reporting.schema import (
    AnalyzeJSON, CallDetailJSON, FunctionJSON, ParameterJSON, StateModificationJSON, UniverseJSON,
)

GraphFormat = Literal["text", "mermaid", "dot"]
GRAPH_FORMATS = ("text", "mermaid", "dot")

_MERMAID_UNSAFE = re.compile(r'["\[\]{}()<>]')

def function_json(record: FunctionRecord, registry: FunctionRegistry) -> FunctionJSON:
    return FunctionJSON(
        id=record.id,
        name=record.name,
        kind=record.kind,
        enclosing_scope=record.enclosing_scope,
        file=record.file_path,
        start_line=record.start_line,
        end_line=record.end_line,
        size=record.size_lines,
        is_async=record.is_async,
        is_exported=record.is_exported,
        parameters=[ParameterJSON(name=p.name, type=p.type, optional=p.optional, default=p.default)
                    for p in record.parameters],
        return_type=record.return_type,
        calls=list(record.callee_names),
        project_calls=registry.project_calls_of(record),
        call_details=[CallDetailJSON(function=d.function_name, arguments=list(d.arguments))
                      for d in record.call_details],
        state_modifications=[StateModificationJSON(kind=m.kind, target=m.target)
                             for m in record.state_modifications],
        complexity=record.complexity,
    )

def export_universe_json(session: AnalysisSession, records: Iterable[FunctionRecord]) -> str:
    records = list(records)
    ids = {r.id for r in records}
    modules = {
        module: [i for i in members if i in ids]
        for module, members in session.functions.modules_grouping().items()
    }
    payload = UniverseJSON(
        project_root=str(session.root),
        files_analyzed=session.files_analyzed,
        total_functions=len(records),
        modules={m: members for m, members in modules.items() if members},
        functions=[function_json(r, session.functions) for r in records],
    )
    return json.dumps(payload.model_dump(), indent=2)

def export_components_json(registry: FunctionRegistry, report: ComponentReport) -> str:
    payload = AnalyzeJSON(
        total_functions=len(registry),
        components=report.components,
        isolated_count=report.isolated_count,
        isolated=report.isolated,
        cycles=report.cycles,
    )
    return json.dumps(payload.model_dump(), indent=2)

# ---------- call graph rendering ----------

def _render_text(G: nx.DiGraph) -> str:
    lines = [f"{n} → {', '.join(G.successors(n))}" for n in G.nodes if G.out_degree(n)]
    if not lines:
        return "(no project-internal calls)"
    return "\n".join(lines)

def _mermaid_label(name: str) -> str:
    return _MERMAID_UNSAFE.sub("_", name)

def _render_mermaid(G: nx.DiGraph) -> str:
    ids = {n: f"n{i}" for i, n in enumerate(G.nodes)}
    lines = ["graph TD"]
    for n, nid in ids.items():
        lines.append(f'  {nid}["{_mermaid_label(n)}"]')
    for u, v in G.edges:
        lines.append(f"  {ids[u]} --> {ids[v]}")
    return "\n".join(lines)

def _dot_quote(name: str) -> str:
    return '"' + name.replace("\\", "\\\\").replace('"', '\\"') + '"'

def _render_dot(G: nx.DiGraph) -> str:
    lines = ["digraph calls {", "  rankdir=LR;", "  node [shape=box];"]
    for n in G.nodes:
        if G.degree(n) == 0:
            lines.append(f"  {_dot_quote(n)};")
    for u, v in G.edges:
        lines.append(f"  {_dot_quote(u)} -> {_dot_quote(v)};")
    lines.append("}")
    return "\n".join(lines)

_RENDERERS = {"text": _render_text, "mermaid": _render_mermaid, "dot": _render_dot}

def render_call_graph(registry: FunctionRegistry, name: str | None = None, fmt: GraphFormat = "text") -> str:
    """Project-internal call graph for the whole registry, or one function's neighbourhood."""
    if fmt not in _RENDERERS:
        raise ValueError(f"Unknown graph format {fmt!r}; expected one of {', '.join(GRAPH_FORMATS)}")
    G = build_call_graph(registry)
    if name is not None:
        G = call_subgraph(G, name)
    else:
        # the whole-project view only draws functions that take part in a call
        G = G.subgraph([n for n in G.nodes if G.degree(n)]).copy()
    return _RENDERERS[fmt](G)
