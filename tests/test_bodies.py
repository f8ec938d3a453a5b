# tests/test_bodies.py
"""
Tests for function/lambda body extraction and statement splitting.
"""

import pytest

from noblanks.bodies import (
    FunctionBody,
    Position,
    body_from_scope,
    extract_function_bodies,
    scope_function_name,
    split_statements,
)
from tests.conftest import (
    MockFunction,
    MockScope,
    make_cfg_from_source,
    make_token_chain,
)


def _body(source, name=None):
    bodies = extract_function_bodies(make_cfg_from_source(source))
    if name is None:
        return bodies
    matches = [b for b in bodies if b.name == name]
    assert len(matches) == 1
    return matches[0]


def _start_lines(body: FunctionBody):
    return [s.start.line for s in body.statements]


class TestStatementSplitting:

    def test_simple_statements(self):
        src = (
            "void f(void)\n"
            "{\n"
            "    a();\n"
            "    b = 2;\n"
            "    return;\n"
            "}\n"
        )
        body = _body(src, "f")
        assert _start_lines(body) == [3, 4, 5]
        first = body.statements[0]
        assert first.start == Position("test.c", 3, 5)
        # ';' sits in column 8, the statement ends just past it
        assert first.end == Position("test.c", 3, 9)

    def test_control_blocks_are_single_statements(self):
        src = (
            "int main(void)\n"
            "{\n"
            "    int a = 1;\n"
            "    if (a) {\n"
            "        a++;\n"
            "    } else {\n"
            "        a--;\n"
            "    }\n"
            "    do {\n"
            "        a++;\n"
            "    } while (a < 3);\n"
            "    return a;\n"
            "}\n"
        )
        body = _body(src, "main")
        assert _start_lines(body) == [3, 4, 9, 12]
        assert [s.end.line for s in body.statements] == [3, 8, 11, 12]

    def test_while_after_block_is_a_new_statement(self):
        src = (
            "void f(void)\n"
            "{\n"
            "    while (a) {\n"
            "        a--;\n"
            "    }\n"
            "    while (b) {\n"
            "        b--;\n"
            "    }\n"
            "}\n"
        )
        assert _start_lines(_body(src, "f")) == [3, 6]

    def test_try_catch(self):
        src = (
            "void h()\n"
            "{\n"
            "    try {\n"
            "        run();\n"
            "    } catch (int e) {\n"
            "        fail();\n"
            "    }\n"
            "    done();\n"
            "}\n"
        )
        assert _start_lines(_body(src, "h")) == [3, 8]

    def test_initializer_list_is_part_of_statement(self):
        src = (
            "void k()\n"
            "{\n"
            "    int arr[] = {\n"
            "        1,\n"
            "\n"
            "        2\n"
            "    };\n"
            "    use(arr);\n"
            "}\n"
        )
        body = _body(src, "k")
        assert _start_lines(body) == [3, 8]
        assert body.statements[0].end.line == 7

    def test_bare_block(self):
        src = (
            "void b()\n"
            "{\n"
            "    {\n"
            "        x();\n"
            "    }\n"
            "    y();\n"
            "}\n"
        )
        assert _start_lines(_body(src, "b")) == [3, 6]

    def test_labeled_block(self):
        src = (
            "void f(void)\n"
            "{\n"
            "    a();\n"
            "out: {\n"
            "        x();\n"
            "    }\n"
            "    b();\n"
            "}\n"
        )
        body = _body(src, "f")
        assert _start_lines(body) == [3, 4, 7]
        assert body.statements[1].end.line == 6

    def test_missing_terminator_forms_last_statement(self):
        src = "void m() {\n    a();\n    b()\n}\n"
        body = _body(src, "m")
        assert _start_lines(body) == [2, 3]
        assert body.statements[1].end.line == 3

    def test_empty_body(self):
        assert _body("void e() {}\n", "e").statements == ()

    def test_broken_link_raises(self):
        tokens = make_token_chain([
            {"str": "{", "linenr": 1},
            {"str": "a", "linenr": 2},
            {"str": "(", "linenr": 2},
            {"str": ")", "linenr": 2},
            {"str": ";", "linenr": 2},
            {"str": "}", "linenr": 3},
        ])
        with pytest.raises(ValueError):
            split_statements(tokens[0], tokens[-1])


class TestLambdas:

    SRC = (
        "void f(void)\n"
        "{\n"
        "    auto g = [](int x) {\n"
        "        int y = x;\n"
        "        return y;\n"
        "    };\n"
        "    g(1);\n"
        "}\n"
    )

    def test_lambda_is_separate_body(self):
        bodies = _body(self.SRC)
        kinds = sorted(b.kind for b in bodies)
        assert kinds == ["Function", "Lambda"]

    def test_outer_body_treats_lambda_as_expression(self):
        outer = _body(self.SRC, "f")
        assert _start_lines(outer) == [3, 7]
        assert outer.statements[0].end.line == 6

    def test_lambda_body_statements(self):
        lam = [b for b in _body(self.SRC) if b.kind == "Lambda"][0]
        assert lam.name is None
        assert lam.display_name == "anonymous"
        assert _start_lines(lam) == [4, 5]

    def test_capture_only_lambda(self):
        src = (
            "void f(void)\n"
            "{\n"
            "    run([&] {\n"
            "        a();\n"
            "        b();\n"
            "    });\n"
            "}\n"
        )
        lam = [b for b in _body(src) if b.kind == "Lambda"][0]
        assert _start_lines(lam) == [4, 5]


class TestExtraction:

    def test_control_and_global_scopes_ignored(self):
        src = (
            "void f(void)\n"
            "{\n"
            "    if (x) {\n"
            "        y();\n"
            "    }\n"
            "}\n"
            "void g(void)\n"
            "{\n"
            "}\n"
        )
        bodies = _body(src)
        assert [b.name for b in bodies] == ["f", "g"]

    def test_body_location_is_opening_brace(self):
        body = _body("void f(void)\n{\n    a();\n}\n", "f")
        assert body.location == Position("test.c", 2, 1)
        assert body.file == "test.c"

    def test_scope_without_body_skipped(self):
        assert body_from_scope(MockScope(type="Function", className="decl")) is None

    def test_name_falls_back_to_function(self):
        scope = MockScope(type="Function", className="",
                          function=MockFunction("fallback"))
        assert scope_function_name(scope) == "fallback"

    def test_unnamed_function_scope(self):
        assert scope_function_name(MockScope(type="Function")) is None

    def test_broken_body_skipped(self):
        tokens = make_token_chain([
            {"str": "{", "linenr": 1},
            {"str": "(", "linenr": 2},
            {"str": "}", "linenr": 3},
        ])
        scope = MockScope(type="Function", className="bad",
                          bodyStart=tokens[0], bodyEnd=tokens[-1])
        assert body_from_scope(scope) is None

    def test_empty_configuration(self):
        assert extract_function_bodies(object()) == []
