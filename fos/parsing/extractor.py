"""
Function extraction over one parsed TypeScript file.

Discovery order per file:
  1. top-level function declarations
  2. top-level variable bindings initialised with an arrow/function expression
  3. class members (constructors, methods, accessors, function-valued fields)
  4. functions nested in object literals or inside other function bodies
  5. functions in namespace bodies or top-level blocks, scoped by namespace

Constructs without a resolvable name are skipped. Missing type annotations
default to "any" for parameters and "void" for return types.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Union
import re

from tree_sitter import Node

from fos.parsing.calls import scan_body
from fos.parsing.ir import ANONYMOUS, FunctionKind, FunctionRecord, Parameter, make_function_id
from fos.parsing.ts_parser import SourceFile, end_line, start_line

FUNCTION_DECLARATION_TYPES = {"function_declaration", "generator_function_declaration"}
FUNCTION_VALUE_TYPES = {"arrow_function", "function_expression", "function", "generator_function"}
FUNCTION_LIKE_TYPES = FUNCTION_DECLARATION_TYPES | FUNCTION_VALUE_TYPES | {"method_definition"}
CLASS_TYPES = {"class_declaration", "abstract_class_declaration", "class"}
NAMESPACE_TYPES = {"internal_module", "module"}
VARIABLE_STATEMENT_TYPES = {"lexical_declaration", "variable_declaration"}

UNTYPED = "any"
NO_RETURN = "void"
MAX_TYPE_LENGTH = 100

_IMPORT_QUALIFIER_RE = re.compile(r"import\([^)]+\)\.")
_REACT_FC_RE = re.compile(r"React\.FC<(.+)>")
_REACT_BARE_TYPES = ("ReactElement", "ReactNode")


def clean_type(text: str) -> str:
    t = _IMPORT_QUALIFIER_RE.sub("", text)
    t = _REACT_FC_RE.sub(r"FC<\1>", t)
    for bare in _REACT_BARE_TYPES:
        t = t.replace(f"React.{bare}", bare)
    t = " ".join(t.split())
    if len(t) > MAX_TYPE_LENGTH:
        return t[: MAX_TYPE_LENGTH - 3] + "..."
    return t


@dataclass(frozen=True)
class DeclarationNode:
    """A function backed by a real declaration in the tree."""

    node: Node
    name: str
    function_node: Node
    exported: bool = False

    @property
    def start_line(self) -> int:
        return start_line(self.node)

    @property
    def end_line(self) -> int:
        return end_line(self.node)


@dataclass(frozen=True)
class SynthesizedProperty:
    """A `key: () => {}` object property; it spans the key through the initializer."""

    property_node: Node
    name: str
    function_node: Node
    exported: bool = False

    @property
    def start_line(self) -> int:
        return start_line(self.property_node)

    @property
    def end_line(self) -> int:
        return max(end_line(self.function_node), self.start_line)


DeclarationSource = Union[DeclarationNode, SynthesizedProperty]


def _is_function_value(node: Node | None) -> bool:
    return node is not None and node.is_named and node.type in FUNCTION_VALUE_TYPES


def _unwrap(node: Node | None) -> Node | None:
    while node is not None and node.type == "parenthesized_expression" and node.named_children:
        node = node.named_children[0]
    return node


def _is_program_statement(node: Node | None) -> bool:
    parent = node.parent if node is not None else None
    if parent is not None and parent.type == "export_statement":
        parent = parent.parent
    return parent is not None and parent.type == "program"


def _has_token(node: Node, token: str) -> bool:
    return any(not c.is_named and c.type == token for c in node.children)


class FunctionExtractor:
    def __init__(self, source: SourceFile, file_path: str):
        self.source = source
        self.file_path = file_path
        self.records: List[FunctionRecord] = []
        self._ids: set[str] = set()
        self._exported_names = self._collect_export_clause_names()

    # ---------- naming ----------

    def _property_name(self, node: Node | None) -> Optional[str]:
        if node is None or node.type == "computed_property_name":
            return None
        name = self.source.text(node).strip()
        if node.type == "string":
            name = name.strip("'\"`")
        return name or None

    def _binding_name(self, fn: Node) -> Optional[str]:
        """Name a function value through what it is bound to."""
        parent = fn.parent
        while parent is not None and parent.type == "parenthesized_expression":
            parent = parent.parent
        if parent is not None:
            if parent.type == "variable_declarator":
                name = parent.child_by_field_name("name")
                if name is not None and name.type == "identifier":
                    return self.source.text(name)
            elif parent.type == "pair":
                return self._property_name(parent.child_by_field_name("key"))
            elif parent.type == "public_field_definition":
                return self._property_name(parent.child_by_field_name("name"))
            elif parent.type == "assignment_expression":
                return self.source.text(parent.child_by_field_name("left")) or None
        own = fn.child_by_field_name("name")
        return self.source.text(own) if own is not None else None

    def _function_name(self, node: Node) -> Optional[str]:
        if node.type in FUNCTION_DECLARATION_TYPES or node.type == "method_definition":
            return self._property_name(node.child_by_field_name("name"))
        return self._binding_name(node)

    def _enclosing_function_name(self, node: Node) -> Optional[str]:
        """Name of the nearest nameable function-like ancestor, None at top level."""
        found_any = False
        parent = node.parent
        while parent is not None:
            if parent.is_named and parent.type in FUNCTION_LIKE_TYPES:
                found_any = True
                name = self._function_name(parent)
                if name:
                    return name
            parent = parent.parent
        return ANONYMOUS if found_any else None

    def _class_name(self, node: Node) -> Optional[str]:
        name = self._property_name(node.child_by_field_name("name"))
        if name or node.type != "class":
            return name
        # class expressions take the name they are bound to
        return self._binding_name(node)

    def _namespace_scope(self, node: Node) -> tuple[Optional[str], bool]:
        """Enclosing namespace names joined outer-first, and whether every one is exported."""
        names: list[str] = []
        exported = True
        parent = node.parent
        while parent is not None:
            if parent.type in NAMESPACE_TYPES:
                names.insert(0, self._property_name(parent.child_by_field_name("name")) or ANONYMOUS)
                holder = parent.parent
                exported = exported and holder is not None and holder.type == "export_statement"
            parent = parent.parent
        if not names:
            return None, False
        return ".".join(names), exported

    def _object_name(self, obj: Node) -> str:
        parts: list[str] = []
        node = obj.parent
        while node is not None:
            kind = node.type
            if kind == "variable_declarator":
                name = node.child_by_field_name("name")
                if name is not None and name.type == "identifier":
                    return ".".join([self.source.text(name), *parts])
            elif kind == "pair":
                key = node.child_by_field_name("key")
                parts.insert(0, self._property_name(key) or self.source.text(key))
            elif kind == "public_field_definition":
                parts.insert(0, self.source.text(node.child_by_field_name("name")))
            elif kind == "assignment_expression":
                return ".".join([self.source.text(node.child_by_field_name("left")), *parts])
            elif kind in CLASS_TYPES:
                return ".".join([self._class_name(node) or ANONYMOUS, *parts])
            node = node.parent
        return ".".join([ANONYMOUS, *parts])

    def _collect_export_clause_names(self) -> set[str]:
        names: set[str] = set()
        for stmt in self.source.root.named_children:
            if stmt.type != "export_statement" or stmt.child_by_field_name("source") is not None:
                continue
            value = stmt.child_by_field_name("value")
            if value is not None and value.type == "identifier":
                names.add(self.source.text(value))
            for clause in stmt.named_children:
                if clause.type != "export_clause":
                    continue
                for specifier in clause.named_children:
                    local = specifier.child_by_field_name("name")
                    if specifier.type == "export_specifier" and local is not None:
                        names.add(self.source.text(local))
        return names

    # ---------- signature pieces ----------

    def _annotation(self, node: Node | None) -> str:
        if node is None:
            return ""
        return self.source.text(node).strip().lstrip(":").strip()

    def _parameters(self, fn: Node) -> tuple[Parameter, ...]:
        single = fn.child_by_field_name("parameter")
        if single is not None:
            return (Parameter(name=self.source.text(single), type=UNTYPED, optional=False),)
        params_node = fn.child_by_field_name("parameters")
        if params_node is None:
            return ()
        params: list[Parameter] = []
        for p in params_node.named_children:
            if p.type in ("comment", "decorator"):
                continue
            if p.type in ("required_parameter", "optional_parameter"):
                pattern = p.child_by_field_name("pattern")
                value = p.child_by_field_name("value")
                type_text = clean_type(self._annotation(p.child_by_field_name("type")))
                optional = (
                    p.type == "optional_parameter"
                    or value is not None
                    or (pattern is not None and pattern.type == "rest_pattern")
                )
                name = self.source.text(pattern) if pattern is not None else self.source.text(p)
            elif p.type == "assignment_pattern":
                pattern = p.child_by_field_name("left")
                value = p.child_by_field_name("right")
                name, type_text, optional = self.source.text(pattern), "", True
            else:
                value = None
                name, type_text, optional = self.source.text(p), "", p.type == "rest_pattern"
            params.append(Parameter(
                name=name,
                type=type_text or UNTYPED,
                optional=optional,
                default=self.source.text(value) if value is not None else None,
            ))
        return tuple(params)

    def _return_type(self, fn: Node) -> str:
        return clean_type(self._annotation(fn.child_by_field_name("return_type"))) or NO_RETURN

    # ---------- emission ----------

    def _unique_id(self, base_id: str, line: int) -> str:
        if base_id not in self._ids:
            return base_id
        candidate = f"{base_id}@{line}"
        n = 2
        while candidate in self._ids:
            candidate = f"{base_id}@{line}.{n}"
            n += 1
        return candidate

    def _emit(self, decl: DeclarationSource, kind: FunctionKind, scope: Optional[str] = None) -> None:
        fn = decl.function_node
        scan = scan_body(self.source, fn)
        rid = self._unique_id(make_function_id(self.file_path, decl.name, scope), decl.start_line)
        self._ids.add(rid)
        self.records.append(FunctionRecord(
            id=rid,
            name=decl.name,
            kind=kind,
            file_path=self.file_path,
            start_line=decl.start_line,
            end_line=max(decl.end_line, decl.start_line),
            enclosing_scope=scope,
            is_async=_has_token(fn, "async"),
            is_exported=decl.exported,
            parameters=self._parameters(fn),
            return_type=self._return_type(fn),
            callee_names=scan.callee_names,
            call_details=scan.call_details,
            state_modifications=scan.state_modifications,
            complexity=scan.complexity,
        ))

    def _top_level_statements(self):
        """Yield (statement, exported) pairs with export wrappers unwrapped."""
        for stmt in self.source.root.named_children:
            if stmt.type == "export_statement":
                decl = stmt.child_by_field_name("declaration")
                if decl is not None:
                    yield decl, True
            else:
                yield stmt, False

    def _extract_top_level_functions(self) -> None:
        for stmt, exported in self._top_level_statements():
            if stmt.type not in FUNCTION_DECLARATION_TYPES:
                continue
            name = self._property_name(stmt.child_by_field_name("name"))
            if not name:
                continue
            self._emit(DeclarationNode(stmt, name, stmt, exported or name in self._exported_names), "function")

    def _extract_top_level_variables(self) -> None:
        for stmt, exported in self._top_level_statements():
            if stmt.type not in VARIABLE_STATEMENT_TYPES:
                continue
            for declarator in stmt.named_children:
                if declarator.type != "variable_declarator":
                    continue
                name_node = declarator.child_by_field_name("name")
                value = _unwrap(declarator.child_by_field_name("value"))
                if name_node is None or name_node.type != "identifier" or not _is_function_value(value):
                    continue
                name = self.source.text(name_node)
                self._emit(
                    DeclarationNode(declarator, name, value, exported or name in self._exported_names),
                    "arrow",
                )

    def _method_kind(self, method: Node, name: str) -> FunctionKind:
        if name == "constructor":
            return "constructor"
        if _has_token(method, "get"):
            return "getter"
        if _has_token(method, "set"):
            return "setter"
        return "method"

    def _extract_classes(self) -> None:
        for node in self.source.walk():
            if not node.is_named or node.type not in CLASS_TYPES:
                continue
            class_name = self._class_name(node)
            body = node.child_by_field_name("body")
            if not class_name or body is None:
                continue
            for member in body.named_children:
                if member.type == "method_definition":
                    if member.child_by_field_name("body") is None:
                        continue
                    name = self._property_name(member.child_by_field_name("name"))
                    if name:
                        self._emit(DeclarationNode(member, name, member), self._method_kind(member, name), class_name)
                elif member.type == "public_field_definition":
                    value = _unwrap(member.child_by_field_name("value"))
                    name = self._property_name(member.child_by_field_name("name"))
                    if name and _is_function_value(value):
                        self._emit(DeclarationNode(member, name, value), "arrow", class_name)

    def _extract_nested(self) -> None:
        for node in self.source.walk():
            kind = node.type
            parent = node.parent

            if kind == "method_definition" and parent is not None and parent.type == "object":
                name = self._property_name(node.child_by_field_name("name"))
                if name and node.child_by_field_name("body") is not None:
                    method_kind = self._method_kind(node, name)
                    if method_kind == "constructor":
                        method_kind = "method"
                    self._emit(DeclarationNode(node, name, node), method_kind, self._object_name(parent))

            elif kind == "pair":
                value = _unwrap(node.child_by_field_name("value"))
                name = self._property_name(node.child_by_field_name("key"))
                if name and _is_function_value(value) and parent is not None:
                    self._emit(SynthesizedProperty(node, name, value), "arrow", self._object_name(parent))

            elif kind in FUNCTION_DECLARATION_TYPES:
                name = self._property_name(node.child_by_field_name("name"))
                if not name:
                    continue
                scope = self._enclosing_function_name(node)
                if scope:
                    self._emit(DeclarationNode(node, name, node), "function", scope)
                elif not _is_program_statement(node):
                    self._emit_outside_functions(node, name, node, "function")

            elif kind == "variable_declarator":
                value = _unwrap(node.child_by_field_name("value"))
                name_node = node.child_by_field_name("name")
                if not _is_function_value(value) or name_node is None or name_node.type != "identifier":
                    continue
                scope = self._enclosing_function_name(node)
                if scope:
                    self._emit(DeclarationNode(node, self.source.text(name_node), value), "arrow", scope)
                elif not _is_program_statement(node.parent):
                    self._emit_outside_functions(node, self.source.text(name_node), value, "arrow")

    def _emit_outside_functions(self, node: Node, name: str, fn: Node, kind: FunctionKind) -> None:
        """Declarations in namespace bodies or blocks that no function encloses."""
        scope, namespace_exported = self._namespace_scope(node)
        statement = node.parent if node.type == "variable_declarator" else node
        exported = (
            namespace_exported
            and statement is not None
            and statement.parent is not None
            and statement.parent.type == "export_statement"
        )
        self._emit(DeclarationNode(node, name, fn, exported), kind, scope)

    def extract(self) -> List[FunctionRecord]:
        self._extract_top_level_functions()
        self._extract_top_level_variables()
        self._extract_classes()
        self._extract_nested()
        return self.records


def extract_functions(source: SourceFile, file_path: str | None = None) -> List[FunctionRecord]:
    path = file_path if file_path is not None else source.path.as_posix()
    return FunctionExtractor(source, path).extract()
