"""
Outgoing call references, state-mutation markers and complexity for one function body.

Resolution is purely lexical: `foo()` and `obj.method()` are recorded, while
deeper member chains, `this.x()`, computed access and immediately-invoked
expressions are skipped. Mutation markers are textual heuristics and may both
over- and under-report.
"""
from __future__ import annotations
from dataclasses import dataclass
import re

from tree_sitter import Node

from fos.parsing.ir import CallDetail, StateModification
from fos.parsing.ts_parser import SourceFile

# decision points counted for the complexity score (1 + count)
BRANCH_NODES = {
    "if_statement",
    "ternary_expression",
    "for_statement",
    "for_in_statement",
    "while_statement",
    "do_statement",
    "switch_case",
}

ASSIGN_OPERATORS = {"=", "+=", "-="}

_STATE_SETTER_RE = re.compile(r"^set[A-Z]\w*$")
_QUOTES = "'\"`"


@dataclass(frozen=True)
class CallScan:
    callee_names: tuple[str, ...]
    call_details: tuple[CallDetail, ...]
    state_modifications: tuple[StateModification, ...]
    complexity: int


def _argument_nodes(call: Node) -> list[Node]:
    args = call.child_by_field_name("arguments")
    if args is None or args.type != "arguments":
        return []
    return [a for a in args.named_children if a.type != "comment"]


def _callee_reference(source: SourceFile, call: Node) -> tuple[str | None, bool]:
    """Return (reference, is_plain_identifier) for a call_expression."""
    callee = call.child_by_field_name("function")
    if callee is None:
        return None, False
    if callee.type == "import":
        args = _argument_nodes(call)
        if not args:
            return None, False
        return f"import({source.text(args[0]).strip(_QUOTES)})", False
    if callee.type == "identifier":
        return source.text(callee), True
    if callee.type == "member_expression":
        obj = callee.child_by_field_name("object")
        prop = callee.child_by_field_name("property")
        if obj is not None and prop is not None and obj.type == "identifier":
            return f"{source.text(obj)}.{source.text(prop)}", False
    return None, False


def _call_mutations(source: SourceFile, call: Node) -> list[StateModification]:
    callee = call.child_by_field_name("function")
    if callee is None:
        return []
    text = source.text(callee)
    mods: list[StateModification] = []
    if ".push" in text or ".pop" in text or ".splice" in text:
        mods.append(StateModification("update", text.split(".")[0]))
    if ".set" in text or "setState" in text or _STATE_SETTER_RE.match(text):
        mods.append(StateModification("update", text))
    if ".delete" in text or ".remove" in text:
        mods.append(StateModification("delete", text))
    if "writeFile" in text or ".write" in text:
        mods.append(StateModification("write", "file"))
    return mods


def _assignment_operator(node: Node) -> str:
    op = node.child_by_field_name("operator")
    if op is not None:
        return op.type
    for child in node.children:
        if not child.is_named and child.type.endswith("="):
            return child.type
    return ""


def scan_body(source: SourceFile, function_node: Node) -> CallScan:
    body = function_node.child_by_field_name("body")
    if body is None:
        return CallScan((), (), (), 1)

    callees: dict[str, None] = {}
    details: list[CallDetail] = []
    mods: list[StateModification] = []
    branches = 0

    for node in source.walk(body):
        kind = node.type
        if kind in BRANCH_NODES:
            branches += 1
        elif kind == "call_expression":
            ref, plain = _callee_reference(source, node)
            if ref:
                callees.setdefault(ref, None)
                if plain:
                    args = tuple(source.text(a) for a in _argument_nodes(node))
                    details.append(CallDetail(ref, args))
            mods.extend(_call_mutations(source, node))
        elif kind in ("assignment_expression", "augmented_assignment_expression"):
            if _assignment_operator(node) in ASSIGN_OPERATORS:
                left = node.child_by_field_name("left")
                mods.append(StateModification("assign", source.text(left)))

    return CallScan(
        callee_names=tuple(callees),
        call_details=tuple(details),
        state_modifications=tuple(mods),
        complexity=1 + branches,
    )
