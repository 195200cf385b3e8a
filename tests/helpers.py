"""Shared test helpers for the j2c test suite."""

from __future__ import annotations

from j2c.ast_nodes import ClassDecl, CompilationUnit, MethodDecl
from j2c.builder import Translation, translate_kernel
from j2c.closure import ClosureBuilder
from j2c.errors import ResolutionError
from j2c.models import Program
from j2c.parser import parse_source


def parse(source: str) -> CompilationUnit:
    return parse_source(source, "<test>")


def parse_class(source: str, name: str | None = None) -> ClassDecl:
    """Parse source and return the named (or first) top-level class."""
    unit = parse(source)
    if name is None:
        decl = unit.types[0]
        assert isinstance(decl, ClassDecl)
        return decl
    decl = unit.find_class(name)
    assert decl is not None, f"no class {name}"
    return decl


def method(decl: ClassDecl, name: str) -> MethodDecl:
    for member in decl.members:
        if isinstance(member, MethodDecl) and member.name == name:
            return member
    raise AssertionError(f"no method {name} in {decl.name}")


class MemoryResolver:
    """Resolves classes from a ``{name: source}`` mapping and records lookups."""

    def __init__(self, sources: dict[str, str]) -> None:
        self.sources = sources
        self.requested: list[str] = []

    def resolve(self, name: str) -> ClassDecl:
        self.requested.append(name)
        source = self.sources.get(name)
        if source is None:
            raise ResolutionError.from_message("E101", f"cannot find class '{name}'")
        decl = parse_source(source, f"{name}.java").find_class(name)
        assert decl is not None, f"{name}.java does not declare {name}"
        return decl


def build(sources: dict[str, str], entry: str, kernel: str) -> Program:
    """Run the closure for ``entry.kernel`` over in-memory sources."""
    resolver = MemoryResolver(sources)
    entry_decl = resolver.resolve(entry)
    return ClosureBuilder(resolver, entry_decl, method(entry_decl, kernel)).build()


def translate(sources: dict[str, str], entry: str, kernel: str,
              attributes: dict[str, dict[str, str]] | None = None) -> Translation:
    """Closure plus code generation for ``entry.kernel``."""
    resolver = MemoryResolver(sources)
    entry_decl = resolver.resolve(entry)
    return translate_kernel(entry_decl, method(entry_decl, kernel), resolver, attributes,
                            header_name=f"{entry}.h")


# Sources shared by the closure and code generation tests.
XML_TEST = """
public class XMLTest {

    public static void main(String[] args) {
        int[] a = new int[10];
        for (int i = 0; i < 10; i++)
            a[i] = i;

        int[][] b = compute(10, a);
    }

    public static int[][] compute(int N, int[] a) {
        int[][] b = new int[N][N + 10];
        for (int i = 0; i < N; i++) {
            for (int j = 0; j < N + 10; j++)
                b[i][j] = a[i] + 5 + j;
        }
        return b;
    }
}
"""

INHERITANCE = {
    "Main": """
    public class Main {
        public static int run(int v) {
            DerivedClass d = new DerivedClass(v);
            return d.calc();
        }
    }
    """,
    "BaseClass": """
    class BaseClass {
        int val;
        int other;
        BaseClass(int v) { this.val = v; }
        void unused() { other = 1; }
    }
    """,
    "DerivedClass": """
    class DerivedClass extends BaseClass {
        DerivedClass(int v) { super(v); }
        int calc() { return this.val + 5; }
    }
    """,
    "Unrelated": "class Unrelated { void f() {} }",
}
