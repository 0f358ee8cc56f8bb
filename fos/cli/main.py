from __future__ import annotations

from dotenv import load_dotenv
load_dotenv()

from pathlib import Path
from typing import List, Optional
import logging
import os
import statistics
import typer

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

# Analysis pipeline
from fos.core.errors import FosError, ProjectConfigNotFoundError
from fos.analysis.runner import AnalysisSession, analyze_project
from fos.analysis.call_graph import connected_components
from fos.analysis.detectors.complexity import detect_complexity
from fos.analysis.flow import DEFAULT_DEPTH, trace_flow
from fos.parsing.ir import FunctionRecord

# Reporting
from fos.reporting.console import (
    build_file_tree,
    print_callers,
    print_deps,
    print_flow,
    print_info,
    print_type,
    print_universe,
)
from fos.reporting.exporters import (
    GRAPH_FORMATS,
    export_components_json,
    export_universe_json,
    render_call_graph,
)
from fos.reporting.markdown import render_ai_digest


app = typer.Typer(add_completion=False, help="Function Operating System: a TypeScript function index for AI agents")
console = Console(soft_wrap=True)
err_console = Console(stderr=True)


def _configure_logging(verbose: bool) -> None:
    level = "DEBUG" if verbose else os.environ.get("FOS_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False, show_time=False)],
        force=True,
    )


def _load_session(ctx: typer.Context) -> AnalysisSession:
    project = (ctx.obj or {}).get("project")
    try:
        return analyze_project(project)
    except ProjectConfigNotFoundError as e:
        typer.secho(f"{e}. Run inside a TypeScript project or pass --project.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    except FosError as e:
        typer.secho(str(e), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


def _resolve(session: AnalysisSession, name: str) -> Optional[FunctionRecord]:
    """First match in discovery order; other candidates are listed so the choice is never silent."""
    res = session.functions.resolve(name)
    if not res.found:
        typer.secho(f'Function "{name}" not found', fg=typer.colors.RED)
        return None
    if res.ambiguous:
        others = ", ".join(c.id for c in res.candidates[1:])
        typer.secho(
            f'"{name}" matches {len(res.candidates)} functions; showing {res.record.id}. '
            f"Use a qualified name to pick another: {others}",
            fg=typer.colors.YELLOW,
            err=True,
        )
    return res.record


def _list(ctx: typer.Context, module: Optional[str], exports: bool, as_json: bool) -> None:
    session = _load_session(ctx)
    records = session.functions.all_functions()
    if module:
        selection = session.functions.select_module(module)
        records = selection.records
        if not as_json:
            console.print(f"\n[cyan]=== MODULE: {escape(selection.module)} ===[/]\n")
            if not records:
                console.print(f"[yellow]No functions found in module: {escape(selection.module)}[/]")
                return
            if selection.is_single_file:
                console.print(f"[yellow]File: {escape(selection.matched_paths[0])}[/]")
            else:
                console.print(f"[yellow]Matched {len(selection.matched_paths)} files in {escape(selection.module)}[/]")
            console.print(f"[yellow]Total functions: {len(records)}[/]\n")
    if exports:
        records = [r for r in records if r.is_exported]
    if as_json:
        typer.echo(export_universe_json(session, records))
        return
    print_universe(console, records)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    project: Optional[Path] = typer.Option(
        None, "--project", "-p", help="tsconfig.json or the directory holding it (default: search upward from cwd)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging on stderr"),
) -> None:
    _configure_logging(verbose)
    ctx.obj = {"project": project}
    if ctx.invoked_subcommand is None:
        _list(ctx, module=None, exports=False, as_json=False)


@app.command("list")
def list_functions(
    ctx: typer.Context,
    module: Optional[str] = typer.Argument(None, help="File, directory, file stem or folder name"),
    module_opt: Optional[str] = typer.Option(None, "--module", "-m", help="Same as the positional module argument"),
    exports: bool = typer.Option(False, "--exports", "-e", help="Show only exported functions"),
    as_json: bool = typer.Option(False, "--json", help="Emit the JSON report instead of text"),
) -> None:
    """List every function with its full record (the function universe)."""
    _list(ctx, module or module_opt, exports, as_json)


@app.command("find")
def find(
    ctx: typer.Context,
    pattern: str = typer.Argument(..., help="Case-insensitive regex matched against function names"),
    as_json: bool = typer.Option(False, "--json", help="Emit the JSON report instead of text"),
) -> None:
    """Search functions by name."""
    session = _load_session(ctx)
    match = session.functions.find_by_pattern(pattern)
    if match.used_substring_fallback:
        typer.secho(f"Invalid regex, using string match: {pattern}", fg=typer.colors.YELLOW)
    if as_json:
        typer.echo(export_universe_json(session, match.records))
        return
    print_universe(console, match.records)


@app.command("info")
def info(ctx: typer.Context, name: str = typer.Argument(..., help="Function name or qualified name")) -> None:
    """Show detailed information about a function."""
    session = _load_session(ctx)
    record = _resolve(session, name)
    if record is not None:
        print_info(console, session.functions, record, session.root)


@app.command("deps")
def deps(ctx: typer.Context, name: str = typer.Argument(..., help="Function name or qualified name")) -> None:
    """Show project-internal calls and callers of a function."""
    session = _load_session(ctx)
    record = _resolve(session, name)
    if record is not None:
        print_deps(console, session.functions, record)


@app.command("callers")
def callers(ctx: typer.Context, name: str = typer.Argument(..., help="Function name or qualified name")) -> None:
    """Show functions that call this function."""
    session = _load_session(ctx)
    record = _resolve(session, name)
    if record is not None:
        print_callers(console, session.functions, record)


@app.command("type")
def type_def(ctx: typer.Context, name: str = typer.Argument(..., help="Interface, type alias or enum name")) -> None:
    """Show a type definition."""
    session = _load_session(ctx)
    defs = session.types.definitions(name)
    if not defs:
        typer.secho(f'Type "{name}" not found', fg=typer.colors.RED)
        return
    if len(defs) > 1:
        typer.secho(
            f'"{name}" is defined in {len(defs)} files: {", ".join(d.file_path for d in defs)}',
            fg=typer.colors.YELLOW,
            err=True,
        )
    for d in defs:
        print_type(console, d, session.root)


@app.command("flow")
def flow(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Function to start from"),
    depth: Optional[int] = typer.Option(None, "--depth", "-d", min=0, help="Maximum call depth (default from .fos.yaml, else 3)"),
) -> None:
    """Trace the project-internal call tree below a function."""
    session = _load_session(ctx)
    if depth is None:
        depth = int(session.settings.get("flow", {}).get("default_depth", DEFAULT_DEPTH))
    if _resolve(session, name) is None:
        return
    root = trace_flow(session.functions, name, max_depth=depth)
    console.print(f"\n[bold]Call flow: {escape(name)}[/] (depth {depth})")
    console.print("=" * 50)
    print_flow(console, root)


@app.command("graph")
def graph(
    ctx: typer.Context,
    name: Optional[str] = typer.Argument(None, help="Limit the graph to one function's callers and callees"),
    fmt: str = typer.Option("text", "--format", "-f", help=f"One of: {', '.join(GRAPH_FORMATS)}"),
) -> None:
    """Render the project-internal call graph."""
    if fmt not in GRAPH_FORMATS:
        typer.secho(f"Unknown format {fmt!r}; expected one of {', '.join(GRAPH_FORMATS)}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)
    session = _load_session(ctx)
    node = None
    if name is not None:
        record = _resolve(session, name)
        if record is None:
            return
        node = record.name
    typer.echo(render_call_graph(session.functions, node, fmt))


@app.command("tree")
def tree(ctx: typer.Context) -> None:
    """Show functions grouped by directory and file."""
    session = _load_session(ctx)
    if len(session.functions) == 0:
        console.print("[yellow]No functions found in the codebase.[/]")
        return
    console.print(build_file_tree(session.functions, str(session.root)))


@app.command("stats")
def stats(ctx: typer.Context) -> None:
    """Summary counts, averages and complexity hotspots."""
    session = _load_session(ctx)
    records = session.functions.all_functions()

    table = Table(title="Project statistics")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Files analyzed", str(session.files_analyzed))
    table.add_row("Functions", str(len(records)))
    table.add_row("Types", str(len(session.types)))
    duplicate_types = session.types.duplicates()
    table.add_row("Duplicate type names", str(len(duplicate_types)))
    table.add_row("Exported", str(sum(1 for r in records if r.is_exported)))
    table.add_row("Async", str(sum(1 for r in records if r.is_async)))
    kinds: dict[str, int] = {}
    for r in records:
        kinds[r.kind] = kinds.get(r.kind, 0) + 1
    for kind, n in sorted(kinds.items()):
        table.add_row(f"kind: {kind}", str(n))
    if records:
        table.add_row("Average size (lines)", f"{statistics.mean(r.size_lines for r in records):.1f}")
        table.add_row("Average complexity", f"{statistics.mean(r.complexity for r in records):.1f}")
    console.print(table)
    for name, defs in duplicate_types.items():
        console.print(f"[yellow]Type {escape(name)} defined in: {escape(', '.join(d.file_path for d in defs))}[/]")

    warn_at =int(session.settings.get("complexity", {}).get("warn_at", 10))
    hotspots = detect_complexity(records, warn_at=warn_at)
    if not hotspots:
        console.print(f"[green]No functions at or above complexity {warn_at}[/]")
        return
    hot = Table(title=f"Complexity hotspots (>= {warn_at})")
    hot.add_column("Function", overflow="fold")
    hot.add_column("Complexity", justify="right")
    hot.add_column("Location", overflow="fold")
    for h in hotspots:
        hot.add_row(escape(h.name), str(h.value), escape(f"{h.file}:{h.start_line}-{h.end_line}"))
    console.print(hot)


@app.command("analyze")
def analyze(
    ctx: typer.Context,
    as_json: bool = typer.Option(False, "--json", help="Emit the JSON report instead of text"),
) -> None:
    """Connected components of the call graph."""
    session = _load_session(ctx)
    report = connected_components(session.functions)
    if as_json:
        typer.echo(export_components_json(session.functions, report))
        return

    console.rule("[bold]Connected components")
    console.print(f"Functions: {len(session.functions)}")
    console.print(f"Components: {len(report.components)}")
    for i, comp in enumerate(report.components, 1):
        console.print(f"\n[cyan]Component {i}[/] ({len(comp)} functions)")
        for fn in comp:
            console.print(f"  [dim]├─[/] {escape(fn)}")
    console.print(f"\nIsolated functions: {report.isolated_count}")
    if report.cycles:
        console.print("\n[yellow]Call cycles:[/]")
        for cyc in report.cycles:
            console.print(f"  [red]↻[/] {escape(' → '.join(cyc + cyc[:1]))}")


@app.command("read")
def read(
    ctx: typer.Context,
    names: List[str] = typer.Argument(..., help="One or more function names"),
) -> None:
    """Print the source text of functions."""
    session = _load_session(ctx)
    for name in names:
        record = _resolve(session, name)
        if record is None:
            continue
        typer.secho(f"// {record.qualified_name} ({record.location})", fg=typer.colors.CYAN)
        try:
            typer.echo(session.read_source(record))
        except OSError as e:
            typer.secho(f"Could not read {record.file_path}: {e}", fg=typer.colors.RED, err=True)
        typer.echo("")


@app.command("ai")
def ai(
    ctx: typer.Context,
    module: bool = typer.Option(False, "--module", help="Summarise per module: exported API and cross-module edges"),
    function: bool = typer.Option(False, "--function", help="One line per function with its calls (default)"),
) -> None:
    """Markdown digest of the codebase for AI agents."""
    if module and function:
        typer.secho("Choose one of --module or --function", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)
    session = _load_session(ctx)
    warn_at = int(session.settings.get("complexity", {}).get("warn_at", 10))
    typer.echo(render_ai_digest(
        session.functions,
        mode="module" if module else "function",
        root=session.root,
        hotspots=detect_complexity(session.functions, warn_at=warn_at),
    ))


if __name__ == "__main__":
    app()
