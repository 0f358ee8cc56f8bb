"""Tests for type definition extraction and the type registry."""

from fos.analysis.types import TypeRegistry
from fos.parsing.ir import TypeRecord
from fos.parsing.type_defs import extract_type_definitions

from conftest import parse_ts


def test_extracts_interfaces_aliases_and_enums():
    source = parse_ts(
        "export interface User {\n  id: string;\n}\n"
        "type Id = string | number;\n"
        "enum Color { Red, Green }\n"
        "declare enum Flag { On }\n"
        "function notAType() {}\n"
    )
    records = extract_type_definitions(source, "src/types.ts")
    assert [(t.name, t.kind) for t in records] == [
        ("User", "interface"),
        ("Id", "type"),
        ("Color", "enum"),
        ("Flag", "enum"),
    ]
    user = records[0]
    assert user.start_line == 1
    assert user.definition_text.startswith("export interface User")
    assert user.file_path == "src/types.ts"


def test_nested_types_are_not_collected():
    source = parse_ts("function f() {\n  interface Local { x: number }\n}\n")
    assert extract_type_definitions(source) == []


def _type(name: str, path: str) -> TypeRecord:
    return TypeRecord(name=name, kind="interface", file_path=path, start_line=1, definition_text=f"interface {name} {{}}")


def test_registry_keeps_every_definition_and_returns_last():
    registry = TypeRegistry()
    registry.add(_type("Config", "src/a.ts"))
    registry.add(_type("Config", "src/b.ts"))
    registry.add(_type("User", "src/a.ts"))

    assert registry.get("Config").file_path == "src/b.ts"
    assert [d.file_path for d in registry.definitions("Config")] == ["src/a.ts", "src/b.ts"]
    assert list(registry.duplicates()) == ["Config"]
    assert len(registry) == 3
    assert registry.get("Missing") is None


def test_same_file_redefinition_replaces():
    registry = TypeRegistry()
    registry.add(_type("Config", "src/a.ts"))
    registry.add(_type("Config", "src/a.ts"))
    assert len(registry.definitions("Config")) == 1
    assert registry.duplicates() == {}
