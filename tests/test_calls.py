"""Tests for call references, mutation markers and complexity scoring."""

from fos.parsing.ir import StateModification

from conftest import by_name, extract


def _single(body: str, params: str = ""):
    return by_name(extract(f"function subject({params}) {{\n{body}\n}}\n"), "subject")


def test_identifier_and_member_calls():
    fn = _single("helper(a, 'b');\napi.get(url);\nhelper(c);")
    assert fn.callee_names == ("helper", "api.get")
    assert [(d.function_name, d.arguments) for d in fn.call_details] == [
        ("helper", ("a", "'b'")),
        ("helper", ("c",)),
    ]


def test_unresolvable_callee_shapes_are_skipped():
    fn = _single("this.save();\na.b.c();\nhandlers[key]();\n(() => run())();")
    # only the call inside the immediately-invoked arrow has a plain callee
    assert fn.callee_names == ("run",)


def test_dynamic_import_reference():
    fn = _single("const mod = await import('./plugins/loader');")
    assert "import(./plugins/loader)" in fn.callee_names


def test_assignment_mutations():
    fn = _single("count = 1;\ntotal += 2;\nstate.value -= 3;\nratio *= 2;")
    assigns = [m for m in fn.state_modifications if m.kind == "assign"]
    assert [m.target for m in assigns] == ["count", "total", "state.value"]


def test_call_mutation_markers():
    fn = _single(
        "arr.push(x);\n"
        "cache.delete(k);\n"
        "setUser(u);\n"
        "fs.writeFile(path, data);"
    )
    mods = fn.state_modifications
    assert StateModification("update", "arr") in mods
    assert StateModification("delete", "cache.delete") in mods
    assert StateModification("update", "setUser") in mods
    assert StateModification("write", "file") in mods


def test_setter_convention_requires_uppercase_after_set():
    fn = _single("settle();")
    assert fn.state_modifications == ()


def test_complexity_counts_branches_at_any_depth():
    fn = _single(
        "if (a) {\n"
        "  for (const x of xs) {\n"
        "    while (x) { x--; }\n"
        "  }\n"
        "}\n"
        "const y = a ? 1 : 2;\n"
        "switch (y) {\n"
        "  case 1: break;\n"
        "  case 2: break;\n"
        "  default: break;\n"
        "}\n"
        "do { a = false; } while (a);",
        params="a, xs",
    )
    # if + for + while + ternary + 2 cases + do = 7 decision points
    assert fn.complexity == 8


def test_straight_line_function_has_baseline_complexity():
    assert _single("return 1;").complexity == 1
