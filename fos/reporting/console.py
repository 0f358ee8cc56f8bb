"""
Terminal rendering for query results (rich markup).

Every function takes the target Console so commands can print to stdout and
tests can capture output through typer's CliRunner.
"""
from __future__ import annotations
from pathlib import Path
from typing import Dict, List

from rich.console import Console
from rich.markup import escape
from rich.tree import Tree

from fos.analysis.flow import FlowNode
from fos.analysis.registry import FunctionRegistry
from fos.parsing.ir import FunctionRecord, TypeRecord

RULE = "=" * 50


def direct_link(root: Path, file_path: str, line: int) -> str:
    return f"file://{(root / file_path).resolve()}:{line}:1"


def _param_text(record: FunctionRecord) -> List[str]:
    out = []
    for p in record.parameters:
        default = f" = {p.default}" if p.default else ""
        out.append(f"{p.name}: {p.type}{'?' if p.optional else ''}{default}")
    return out


# ---------- function universe ----------

def print_function(console: Console, r: FunctionRecord) -> None:
    console.print(f"[bold]{escape(r.name)}[/]:")
    if r.enclosing_scope:
        console.print(f"  scope: {escape(r.enclosing_scope)}")
    console.print(f"  type: {r.kind}")
    console.print(f"  async: {str(r.is_async).lower()}")
    console.print(f"  exported: {str(r.is_exported).lower()}")
    console.print(f"  location: {escape(r.location)}")
    if r.parameters:
        console.print("  params:")
        for text in _param_text(r):
            console.print(f"    [dim]├─[/] {escape(text)}")
    console.print(f"  returns: {escape(r.return_type)}")
    if r.callee_names:
        console.print("  calls:")
        for call in r.callee_names:
            console.print(f"    [yellow]→[/] {escape(call)}")
    with_args = [d for d in r.call_details if d.arguments]
    if with_args:
        console.print("  data flow:")
        for d in with_args:
            console.print(f"    {escape(d.function_name)}({escape(', '.join(d.arguments))})")
    if r.state_modifications:
        console.print("  modifies:")
        for m in r.state_modifications:
            console.print(f"    [red]⤵[/] {m.kind}: {escape(m.target)}")
    console.print(f"  complexity: {r.complexity}")
    console.print()


def print_universe(console: Console, records: List[FunctionRecord]) -> None:
    """Every record in full, then relationship sections computed over the same records."""
    if not records:
        console.print("[yellow]No functions found in the codebase.[/]")
        return

    console.print("\n[cyan]=== FUNCTION UNIVERSE ===[/]\n")
    console.print("[yellow]All Functions:[/]\n")
    for r in records:
        print_function(console, r)

    console.print("[yellow]Function Call Graph:[/]\n")
    for r in records:
        if r.call_details:
            for d in r.call_details:
                console.print(f"{escape(r.name)} [yellow]→[/] {escape(d.function_name)}({escape(', '.join(d.arguments))})")
        else:
            for call in r.callee_names:
                console.print(f"{escape(r.name)} [yellow]→[/] {escape(call)}")

    console.print("\n[yellow]Reverse Dependencies:[/]\n")
    called_by: Dict[str, List[str]] = {}
    for r in records:
        for call in r.callee_names:
            called_by.setdefault(call, []).append(r.name)
    for name, callers in called_by.items():
        console.print(f"{escape(name)} [yellow]←[/] {escape('[' + ', '.join(callers) + ']')}", highlight=False)

    console.print("\n[yellow]Leaf Functions (no calls):[/]\n")
    for r in records:
        if not r.callee_names:
            console.print(f"[dim]└─[/] {escape(r.name)}")

    console.print("\n[yellow]Root Functions (not called):[/]\n")
    for r in records:
        if r.name not in called_by:
            console.print(f"[yellow]⤴[/] {escape(r.name)}")

    console.print("\n[yellow]State-Modifying Functions:[/]\n")
    for r in records:
        if r.state_modifications:
            console.print(f"{escape(r.name)}:")
            for m in r.state_modifications:
                console.print(f"  [red]⤵[/] {m.kind} [yellow]→[/] {escape(m.target)}")

    console.print("\n[yellow]Async Functions:[/]\n")
    for r in records:
        if r.is_async:
            calls = f" [yellow]→[/] {escape('[' + ', '.join(r.callee_names) + ']')}" if r.callee_names else ""
            console.print(f"[cyan]⟳[/] {escape(r.name)}{calls}")

    console.print("\n[yellow]Exported Functions:[/]\n")
    for r in records:
        if r.is_exported:
            console.print(f"[green]↗[/] {escape(r.name)}")

    console.print("\n[yellow]Internal Functions:[/]\n")
    for r in records:
        if not r.is_exported:
            console.print(f"[dim]├─[/] {escape(r.name)}")


# ---------- single-function views ----------

def print_info(console: Console, registry: FunctionRegistry, r: FunctionRecord, root: Path) -> None:
    console.print(f"\n[bold]Function: {escape(r.name)}[/]")
    console.print(RULE)
    qualifiers = " ".join(q for q in ("Exported" if r.is_exported else "Internal", "Async" if r.is_async else "") if q)
    console.print(f"Type: {qualifiers} {r.kind}")
    if r.enclosing_scope:
        console.print(f"Scope: {escape(r.enclosing_scope)}")
    console.print(f"Location: {escape(r.location)} ({r.size_lines} lines)")

    if r.parameters:
        console.print("\nParameters:")
        for p in r.parameters:
            opt = " (optional)" if p.optional else ""
            default = f" = {p.default}" if p.default else ""
            console.print(f"  {escape(f'{p.name}: {p.type}{opt}{default}')}")

    console.print(f"\nReturns: {escape(r.return_type)}")

    if r.callee_names:
        console.print("\nCalls:")
        for call in r.callee_names[:10]:
            console.print(f"  [yellow]→[/] {escape(call)}")
        if len(r.callee_names) > 10:
            console.print(f"  ... and {len(r.callee_names) - 10} more")

    callers = registry.callers_of_record(r)
    if callers:
        console.print("\nCalled by:")
        for c in callers:
            console.print(f"  [yellow]←[/] {escape(c.name)} ({escape(Path(c.file_path).name)})")
    elif r.is_exported:
        console.print("\nCalled by: [green]↗[/] External consumers (exported function)")
    else:
        console.print("\nCalled by: [red]×[/] None (potential dead code)")

    console.print(f"\n[blue]Direct Access: [underline]{escape(direct_link(root, r.file_path, r.start_line))}[/][/]")


def _print_callers(console: Console, callers: List[FunctionRecord]) -> None:
    if not callers:
        console.print("  [red]×[/] (none)")
        return
    for c in callers:
        console.print(f"  [yellow]←[/] {escape(c.name)} ({escape(Path(c.file_path).name)}:{c.start_line})")


def print_deps(console: Console, registry: FunctionRegistry, r: FunctionRecord) -> None:
    console.print(f"\n[bold]Dependencies: {escape(r.name)}[/]")
    console.print(RULE)
    console.print("\nCalls:")
    calls = registry.project_calls_of(r)
    if not calls:
        console.print("  [red]×[/] (none)")
    for call in calls:
        target = registry.resolve_call(call)[0]
        console.print(f"  [yellow]→[/] {escape(call)} ({escape(Path(target.file_path).name)}:{target.start_line})")
    console.print("\nCalled by:")
    _print_callers(console, registry.callers_of_record(r))


def print_callers(console: Console, registry: FunctionRegistry, r: FunctionRecord) -> None:
    console.print(f"\n[bold]Functions calling: {escape(r.name)}[/]")
    console.print(RULE)
    _print_callers(console, registry.callers_of_record(r))


def print_type(console: Console, t: TypeRecord, root: Path) -> None:
    console.print(f"\n[bold]Type: {escape(t.name)}[/] ({t.kind})")
    console.print(RULE)
    console.print(f"Location: {escape(t.file_path)}:{t.start_line}")
    console.print(f"Definition: {escape(t.definition_text)}", highlight=False)
    console.print(f"\n[blue]Direct Access: [underline]{escape(direct_link(root, t.file_path, t.start_line))}[/][/]")


# ---------- trees ----------

def print_flow(console: Console, node: FlowNode) -> None:
    indent = "  " * node.depth
    arrow = "" if node.depth == 0 else "→ "
    where = f" [dim]({escape(node.record.file_path)}:{node.record.start_line})[/]" if node.record else ""
    if node.circular:
        console.print(f"{indent}{arrow}{escape(node.name)} [red](circular)[/]")
        return
    marker = " ..." if node.truncated else ""
    console.print(f"{indent}{arrow}{escape(node.name)}{where}{marker}")
    for child in node.children:
        print_flow(console, child)


def build_file_tree(registry: FunctionRegistry, label: str) -> Tree:
    """directory -> file -> function, directories and files sorted, functions in source order."""
    tree = Tree(f"[bold]{escape(label)}[/]")
    grouping = registry.modules_grouping()
    for module in sorted(grouping):
        branch = tree.add(f"[blue]{escape(module)}/[/]")
        files: Dict[str, List[FunctionRecord]] = {}
        for fid in grouping[module]:
            r = registry.get(fid)
            files.setdefault(r.file_path, []).append(r)
        for path in sorted(files):
            leaf = branch.add(f"[cyan]{escape(Path(path).name)}[/]")
            for r in sorted(files[path], key=lambda x: x.start_line):
                mark = "[green]↗[/] " if r.is_exported else ""
                leaf.add(f"{mark}{escape(r.qualified_name)} [dim]({r.kind}, L{r.start_line})[/]")
    return tree
