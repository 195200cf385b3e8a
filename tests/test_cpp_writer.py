"""Tests for C-like code generation."""

from __future__ import annotations

import pytest

from j2c.errors import ConfigError, SubsetError
from tests.helpers import INHERITANCE, XML_TEST, translate

INCLUDES = "#include <math.h>\n#include <string.h>\n"


def _kernel(body: str, params: str = "", members: str = "", ret: str = "void") -> str:
    return f"public class Main {{ {members} public {ret} run({params}) {{ {body} }} }}"


def _source(body: str, params: str = "", members: str = "", ret: str = "void",
            extra: dict[str, str] | None = None) -> str:
    sources = {"Main": _kernel(body, params, members, ret)}
    sources.update(extra or {})
    return translate(sources, "Main", "run").source


class TestXmlTest:
    def test_main_kernel(self):
        result = translate({"XMLTest": XML_TEST}, "XMLTest", "main")
        assert result.header == INCLUDES
        assert result.source == INCLUDES + '#include "XMLTest.h"\n' + """
void main(String* args);
int** compute(int N, int* a);

void main(String* args) {
    int* a = new int[10];
    for (int i = 0; i < 10; i++)
        a[i] = i;
    int** b = compute(10, a);
}

int** compute(int N, int* a) {
    int** b = new int[N][N + 10];
    for (int i = 0; i < N; i++) {
        for (int j = 0; j < N + 10; j++)
            b[i][j] = a[i] + 5 + j;
    }
    return b;
}
"""
        assert result.warnings == []

    def test_kernel_returns_through_parameter(self):
        result = translate({"XMLTest": XML_TEST}, "XMLTest", "compute")
        assert result.source == INCLUDES + '#include "XMLTest.h"\n' + """
void compute(int N, int* a, int** compute_ret);

void compute(int N, int* a, int** compute_ret) {
    int** b = new int[N][N + 10];
    for (int i = 0; i < N; i++) {
        for (int j = 0; j < N + 10; j++)
            b[i][j] = a[i] + 5 + j;
    }
    compute_ret = b;
}
"""

    def test_length_override(self):
        result = translate({"XMLTest": XML_TEST}, "XMLTest", "main",
                           {"b": {"length": "10,20"}})
        assert "    int** b = new int[10][20];\n" in result.source
        assert "    int** b = compute(10, a);\n" in result.source

    def test_length_override_arity_mismatch(self):
        with pytest.raises(ConfigError) as exc:
            translate({"XMLTest": XML_TEST}, "XMLTest", "main", {"b": {"length": "10"}})
        assert exc.value.code == "E403"

    def test_deterministic(self):
        first = translate({"XMLTest": XML_TEST}, "XMLTest", "main")
        second = translate({"XMLTest": XML_TEST}, "XMLTest", "main")
        assert (first.header, first.source) == (second.header, second.source)


class TestClasses:
    def test_single_inheritance_header(self):
        result = translate(INHERITANCE, "Main", "run")
        assert result.header == INCLUDES + """
class BaseClass {
public:
    int val;

    BaseClass(int v) {
        this->val = v;
    }
};

class DerivedClass : public BaseClass {
public:
    DerivedClass(int v) : BaseClass(v) {
    }

    int calc() {
        return this->val + 5;
    }
};
"""

    def test_single_inheritance_entry(self):
        result = translate(INHERITANCE, "Main", "run")
        assert "void run(int v, int run_ret);\n" in result.source
        assert "    DerivedClass d = new DerivedClass(v);\n" in result.source
        assert "    run_ret = d.calc();\n" in result.source

    def test_unused_members_and_classes_omitted(self):
        result = translate(INHERITANCE, "Main", "run")
        assert "other" not in result.header
        assert "unused" not in result.header
        assert "Unrelated" not in result.header

    def test_template_class(self):
        sources = {
            "Main": _kernel("Integer v = b.get();", "Box<Integer> b"),
            "Box": "class Box<T> { T item; T get() { return item; } }",
        }
        header = translate(sources, "Main", "run").header
        assert "template <typename T>\nclass Box {\n" in header
        assert "    T item;\n" in header
        assert "    T get() {\n        return item;\n    }\n" in header

    def test_static_members(self):
        sources = {
            "Main": _kernel("return Util.twice(x) + Util.BASE;", "int x", ret="int"),
            "Util": """
            class Util {
                static int BASE = 3;
                static int twice(int a) { return 2 * a; }
            }
            """,
        }
        result = translate(sources, "Main", "run")
        assert "    static int BASE = 3;\n" in result.header
        assert "    static int twice(int a) {\n" in result.header
        assert "    run_ret = Util::twice(x) + Util::BASE;\n" in result.source

    def test_nested_class_in_entry_rejected(self):
        with pytest.raises(SubsetError) as exc:
            _source("", members="static class Inner {}")
        assert exc.value.code == "E302"


class TestEntryFlattening:
    SOURCE = """
    public class Flat {
        int scale;
        double unused;
        int[] data;
        public void kernel(int n) {
            for (int i = 0; i < n; i++)
                data[i] = data[i] * scale;
            helper(n);
        }
        void helper(int n) { scale = n; }
    }
    """

    def test_fields_become_trailing_params(self):
        source = translate({"Flat": self.SOURCE}, "Flat", "kernel").source
        assert "void kernel(int n, int* data, int scale);\n" in source
        assert "void helper(int n, int* data, int scale);\n" in source
        assert "unused" not in source

    def test_own_calls_pass_fields_along(self):
        source = translate({"Flat": self.SOURCE}, "Flat", "kernel").source
        assert "    helper(n, data, scale);\n" in source
        assert "        data[i] = data[i] * scale;\n" in source
        assert "    scale = n;\n" in source

    def test_instantiating_kernel_class_rejected(self):
        with pytest.raises(SubsetError) as exc:
            _source("Main m = new Main();")
        assert exc.value.code == "E313"


class TestExpressions:
    def test_literals(self):
        source = _source("long a = 1_000L; double d = 2.5d; char f = true ? 'x' : 'y'; "
                         "Object o = null;")
        assert "long a = 1000L;" in source
        assert "double d = 2.5;" in source
        assert "char f = true ? 'x' : 'y';" in source
        assert "Object o = NULL;" in source

    def test_boolean_lowers_to_char(self):
        assert "void run(char flag)" in _source("", "boolean flag")

    def test_math(self):
        source = _source("double y = Math.sqrt(x) * Math.PI;", "double x")
        assert "double y = sqrt(x) * M_PI;" in source

    def test_array_initializers(self):
        source = _source("int[] a = {1, 2, 3}; int[] b = new int[] {4, 5};")
        assert "int* a = new int[3] { 1, 2, 3 };" in source
        assert "int* b = new int[2] { 4, 5 };" in source

    def test_cast(self):
        assert "int y = (int) x;" in _source("int y = (int) x;", "double x")

    def test_unsigned_shift_warns(self):
        result = translate({"Main": _kernel("int y = x >>> 2;", "int x")}, "Main", "run")
        assert "int y = x >> 2;" in result.source
        assert [w.code for w in result.warnings] == ["W106"]

    def test_instanceof_rejected(self):
        with pytest.raises(SubsetError) as exc:
            _source("boolean r = o instanceof String;", "Object o")
        assert exc.value.code == "E314"


class TestStatements:
    def test_control_flow(self):
        source = _source(
            "int s = 0; while (s < n) { s++; } do s--; while (s > 0); "
            "if (s == 0) s = 1; else if (s == 1) s = 2; else { s = 3; } "
            "switch (s) { case 1: s = 4; break; default: s = 5; }",
            "int n",
        )
        assert "    while (s < n) {\n        s++;\n    }\n" in source
        assert "    do\n        s--;\n    while (s > 0);\n" in source
        assert "    if (s == 0)\n        s = 1;\n    else if (s == 1)\n        s = 2;\n" in source
        assert "    else {\n        s = 3;\n    }\n" in source
        assert ("    switch (s) {\n        case 1:\n            s = 4;\n            break;\n"
                "        default:\n            s = 5;\n    }\n") in source

    def test_assert_adds_include(self):
        source = _source("assert n > 0;", "int n")
        assert "#include <assert.h>\n" in source
        assert "    assert(n > 0);\n" in source

    def test_throw_dropped_with_warning(self):
        result = translate({"Main": _kernel("throw new RuntimeException();")}, "Main", "run")
        assert "    ;\n" in result.source
        assert [w.code for w in result.warnings] == ["W101"]

    def test_catch_dropped_with_warning(self):
        result = translate(
            {"Main": _kernel("try { n = 1; } catch (Exception e) { n = 2; } finally { n = 3; }",
                             "int n")},
            "Main", "run")
        assert "    {\n        n = 1;\n    }\n    {\n        n = 3;\n    }\n" in result.source
        assert "n = 2" not in result.source
        assert [w.code for w in result.warnings] == ["W102"]

    def test_throws_and_annotations_warn_once(self):
        source = ("public class Main { @Deprecated public void run() throws Exception { } }")
        result = translate({"Main": source}, "Main", "run")
        assert sorted(w.code for w in result.warnings) == ["W103", "W104"]

    def test_initializer_block_warns(self):
        result = translate({"Main": _kernel("", members="{ }")}, "Main", "run")
        assert [w.code for w in result.warnings] == ["W105"]

    @pytest.mark.parametrize("body,params,code", [
        ("for (int v : a) { }", "int[] a", "E310"),
        ("outer: while (true) { break outer; }", "", "E315"),
        ("synchronized (o) { }", "Object o", "E304"),
    ])
    def test_unsupported(self, body, params, code):
        with pytest.raises(SubsetError) as exc:
            _source(body, params)
        assert exc.value.code == code

    def test_varargs_rejected(self):
        with pytest.raises(SubsetError) as exc:
            _source("", "int... xs")
        assert exc.value.code == "E306"


class TestComments:
    HELPER = """
class Helper {
    // scale factor
    int k;

    /**
     * Scaled value.
     */
    int scale(int v) { return v * k; }

    // never called
    int unused() { return 1 + /* gone */ 2; }
}
"""

    def test_kernel_comments_kept(self):
        body = ("// scale\n int s = n * 2; "
                "while (s > 10) { s--; // shrink\n }")
        source = ("public class Main {\n    /** Shrinks n. */\n"
                  f"    public void run(int n) {{ {body} }}\n}}\n")
        result = translate({"Main": source}, "Main", "run")
        assert "void run(int n);\n\n/** Shrinks n. */\nvoid run(int n) {\n" in result.source
        assert "    // scale\n    int s = n * 2;\n" in result.source
        assert "    while (s > 10) {\n        s--;\n        // shrink\n    }\n" in result.source
        assert result.warnings == []

    def test_member_comments_in_header(self):
        sources = {"Main": _kernel("int r = h.scale(x);", "Helper h, int x"), "Helper": self.HELPER}
        result = translate(sources, "Main", "run")
        assert ("public:\n    // scale factor\n    int k;\n\n"
                "    /**\n     * Scaled value.\n     */\n    int scale(int v) {\n") in result.header
        assert "never called" not in result.header
        assert result.warnings == []

    def test_comment_inside_expression_warns(self):
        result = translate({"Main": _kernel("int y = x + /* half */ 1;", "int x")}, "Main", "run")
        assert "    int y = x + 1;\n" in result.source
        assert "half" not in result.source
        assert [w.code for w in result.warnings] == ["W107"]
        assert result.warnings[0].labels[0].span.start_line == 1
