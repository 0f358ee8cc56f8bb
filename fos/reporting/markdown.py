from __future__ import annotations
from pathlib import Path
from typing import Dict, List, Literal, Tuple

from fos.analysis.registry import FunctionRegistry, module_of
from fos.analysis.detectors.complexity import ComplexityFinding
from fos.parsing.ir import FunctionRecord

DigestMode = Literal["module", "function"]


# ---------- helpers ----------

def _by_file(records: List[FunctionRecord]) -> Dict[str, List[FunctionRecord]]:
    files: Dict[str, List[FunctionRecord]] = {}
    for r in records:
        files.setdefault(r.file_path, []).append(r)
    return files

def _cross_module_edges(registry: FunctionRegistry) -> Dict[Tuple[str, str], int]:
    """(caller module, callee module) -> number of project calls crossing that boundary."""
    edges: Dict[Tuple[str, str], int] = {}
    for r in registry:
        src = module_of(r.file_path)
        for call in registry.project_calls_of(r):
            targets = registry.resolve_call(call)
            dst = module_of(targets[0].file_path)
            if dst != src:
                edges[(src, dst)] = edges.get((src, dst), 0) + 1
    return edges

def _header(registry: FunctionRegistry, root: Path | None) -> List[str]:
    lines: List[str] = []
    lines.append("# Function index\n")
    if root is not None:
        lines.append(f"\nProject: `{root}`\n")
    files = {r.file_path for r in registry}
    lines.append(f"\n- Functions: {len(registry)}\n")
    lines.append(f"- Files: {len(files)}\n")
    lines.append(f"- Modules: {len(registry.modules_grouping())}\n")
    return lines


# ---------- digests ----------

def _module_digest(registry: FunctionRegistry) -> List[str]:
    lines: List[str] = []
    grouping = registry.modules_grouping()
    edges = _cross_module_edges(registry)
    for module in sorted(grouping):
        members = [registry.get(i) for i in grouping[module]]
        exported = [r for r in members if r.is_exported]
        lines.append(f"\n## {module}\n")
        lines.append(f"\n{len(members)} functions, {len(exported)} exported\n")
        if exported:
            lines.append("\n### Exported API\n")
            for r in exported:
                lines.append(f"- `{r.signature}` ({r.file_path}:{r.start_line})\n")
        outgoing = sorted((dst, n) for (src, dst), n in edges.items() if src == module)
        if outgoing:
            lines.append("\n### Uses\n")
            for dst, n in outgoing:
                lines.append(f"- {dst} ({n} call{'s' if n != 1 else ''})\n")
        incoming = sorted((src, n) for (src, dst), n in edges.items() if dst == module)
        if incoming:
            lines.append("\n### Used by\n")
            for src, n in incoming:
                lines.append(f"- {src} ({n} call{'s' if n != 1 else ''})\n")
    return lines

def _function_digest(registry: FunctionRegistry) -> List[str]:
    lines: List[str] = []
    for path, records in sorted(_by_file(registry.all_functions()).items()):
        lines.append(f"\n## {path}\n\n")
        for r in records:
            marker = "+" if r.is_exported else "-"
            calls = registry.project_calls_of(r)
            suffix = f" -> {', '.join(calls)}" if calls else ""
            lines.append(f"{marker} `{r.signature}` L{r.start_line}-{r.end_line}{suffix}\n")
    return lines

def render_ai_digest(
    registry: FunctionRegistry,
    mode: DigestMode = "function",
    root: Path | None = None,
    hotspots: List[ComplexityFinding] | None = None,
) -> str:
    """
    Compact Markdown view of the project for an AI agent. `module` mode summarises
    each directory's exported API and cross-module edges; `function` mode lists
    every function as a one-line signature with its project-internal calls.
    """
    lines = _header(registry, root)
    if len(registry) == 0:
        lines.append("\nNo functions found.\n")
        return "".join(lines)
    if mode == "module":
        lines.extend(_module_digest(registry))
    else:
        lines.extend(_function_digest(registry))
    if hotspots:
        lines.append("\n## Complexity hotspots\n\n")
        lines.append("| Function | Complexity | Location |\n")
        lines.append("|---|---:|---|\n")
        for h in hotspots[:10]:
            lines.append(f"| {h.name} | {h.value} | {h.file}:{h.start_line}-{h.end_line} |\n")
    return "".join(lines)
