from __future__ import annotations
from typing import List

from fos.parsing.ir import TypeKind, TypeRecord
from fos.parsing.ts_parser import SourceFile, start_line

TYPE_DECLARATIONS: dict[str, TypeKind] = {
    "interface_declaration": "interface",
    "type_alias_declaration": "type",
    "enum_declaration": "enum",
}

def extract_type_definitions(source: SourceFile, file_path: str | None = None) -> List[TypeRecord]:
    """Top-level interfaces, type aliases and enums, including exported and declared ones."""
    path = file_path if file_path is not None else source.path.as_posix()
    records: List[TypeRecord] = []
    for stmt in source.root.named_children:
        decl = stmt
        if stmt.type == "export_statement":
            decl = stmt.child_by_field_name("declaration")
        elif stmt.type == "ambient_declaration":
            decl = next((c for c in stmt.named_children if c.type in TYPE_DECLARATIONS), None)
        if decl is None or decl.type not in TYPE_DECLARATIONS:
            continue
        name = decl.child_by_field_name("name")
        if name is None:
            continue
        records.append(TypeRecord(
            name=source.text(name),
            kind=TYPE_DECLARATIONS[decl.type],
            file_path=path,
            start_line=start_line(stmt),
            definition_text=source.text(stmt),
        ))
    return records
