from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Tuple
import networkx as nx

from fos.analysis.registry import FunctionRegistry

@dataclass(frozen=True)
class CallEdge:
    src: str
    dst: str

@dataclass
class ComponentReport:
    components: List[List[str]] = field(default_factory=list)
    isolated: List[str] = field(default_factory=list)
    cycles: List[List[str]] = field(default_factory=list)

    @property
    def isolated_count(self) -> int:
        return len(self.isolated)

def project_edges(registry: FunctionRegistry) -> List[CallEdge]:
    """Project-internal call edges by function name, in discovery order."""
    edges: Dict[Tuple[str, str], None] = {}
    for record in registry.all_functions():
        for call in registry.project_calls_of(record):
            for target in registry.resolve_call(call):
                edges.setdefault((record.name, target.name), None)
    return [CallEdge(src=s, dst=d) for s, d in edges]

def build_call_graph(registry: FunctionRegistry) -> nx.DiGraph:
    G = nx.DiGraph()
    for record in registry.all_functions():
        G.add_node(record.name)
    for e in project_edges(registry):
        G.add_edge(e.src, e.dst)
    return G

def call_subgraph(G: nx.DiGraph, name: str) -> nx.DiGraph:
    """One function with its direct callees and callers."""
    H = nx.DiGraph()
    if name not in G:
        return H
    H.add_node(name)
    for pred in G.predecessors(name):
        H.add_edge(pred, name)
    for succ in G.successors(name):
        H.add_edge(name, succ)
    return H

def connected_components(registry: FunctionRegistry, max_cycles: int = 10) -> ComponentReport:
    """
    Undirected components over project-internal edges. Components of size > 1
    come back largest first; functions with no edges (self-calls ignored) are
    reported as isolated.
    """
    G = build_call_graph(registry)
    order = {n: i for i, n in enumerate(G.nodes)}
    U = G.to_undirected()
    U.remove_edges_from(list(nx.selfloop_edges(U)))

    groups: List[List[str]] = []
    isolated: List[str] = []
    for comp in nx.connected_components(U):
        members = sorted(comp, key=order.__getitem__)
        if len(members) > 1:
            groups.append(members)
        else:
            isolated.extend(members)
    groups.sort(key=lambda c: (-len(c), order[c[0]]))
    isolated.sort(key=order.__getitem__)

    D = G.copy()
    D.remove_edges_from(list(nx.selfloop_edges(D)))
    cycles: List[List[str]] = []
    for cyc in nx.simple_cycles(D):
        cycles.append([str(x) for x in cyc[:8]])
        if len(cycles) >= max_cycles:
            break
    return ComponentReport(components=groups, isolated=isolated, cycles=cycles)
