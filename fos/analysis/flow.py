"""
Depth-bounded call-flow tracing over project-internal edges.

The visited set is per path: a function already on the current path is marked
circular and not expanded again, while the same function reached through a
different branch is expanded in full.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import FrozenSet, Iterator, List, Optional

from fos.analysis.registry import FunctionRegistry
from fos.parsing.ir import FunctionRecord

DEFAULT_DEPTH = 3


@dataclass
class FlowNode:
    name: str
    depth: int
    record: Optional[FunctionRecord] = None
    circular: bool = False
    truncated: bool = False
    children: List["FlowNode"] = field(default_factory=list)


def _expand(
    registry: FunctionRegistry,
    label: str,
    record: FunctionRecord,
    depth: int,
    max_depth: int,
    path: FrozenSet[str],
) -> FlowNode:
    node = FlowNode(name=label, depth=depth, record=record)
    calls = registry.project_calls_of(record)
    if depth >= max_depth:
        node.truncated = bool(calls)
        return node
    on_path = path | {record.id}
    for call in calls:
        target = registry.resolve_call(call)[0]
        if target.id in on_path:
            node.children.append(FlowNode(name=call, depth=depth + 1, record=target, circular=True))
        else:
            node.children.append(_expand(registry, call, target, depth + 1, max_depth, on_path))
    return node


def trace_flow(registry: FunctionRegistry, name: str, max_depth: int = DEFAULT_DEPTH) -> Optional[FlowNode]:
    start = registry.resolve(name).record
    if start is None:
        return None
    return _expand(registry, start.name, start, 0, max(0, int(max_depth)), frozenset())


def iter_flow(node: FlowNode) -> Iterator[FlowNode]:
    yield node
    for child in node.children:
        yield from iter_flow(child)
