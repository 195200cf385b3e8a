"""Closure data model: classes, methods and fields reached from the kernel.

A class or method model starts as an unresolved placeholder carrying only a
name or signature. Resolution attaches the declaration and the type
environment; members are only queried through ``decl`` once resolved.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from j2c.ast_nodes import CallableDecl, ClassDecl, ConstructorDecl
from j2c.signatures import signature_name, signatures_equivalent
from j2c.types import Type


@dataclass(frozen=True)
class Unresolved:
    key: str


@dataclass(frozen=True)
class ResolvedClass:
    decl: ClassDecl


@dataclass(frozen=True)
class ResolvedMethod:
    decl: CallableDecl


ClassState = Unresolved | ResolvedClass
MethodState = Unresolved | ResolvedMethod


class UnresolvedModelError(RuntimeError):
    """A declaration was read from a model that has not been resolved."""


@dataclass
class FieldModel:
    name: str
    type: Type


class MethodModel:
    """One method or constructor of a class, keyed by its signature."""

    def __init__(self, owner: ClassModel, signature: str) -> None:
        self.owner = owner
        self.signature = signature
        self.state: MethodState = Unresolved(signature)
        self.type_env: dict[str, Type] = {}
        self.local_names: set[str] = set()
        self.is_kernel = False

    def __repr__(self) -> str:
        return f"MethodModel({self.owner.name}.{self.signature}, resolved={self.is_resolved})"

    @property
    def is_resolved(self) -> bool:
        return isinstance(self.state, ResolvedMethod)

    @property
    def decl(self) -> CallableDecl:
        if isinstance(self.state, ResolvedMethod):
            return self.state.decl
        raise UnresolvedModelError(
            f"method '{self.signature}' of '{self.owner.name}' is not resolved")

    @property
    def is_constructor(self) -> bool:
        return isinstance(self.decl, ConstructorDecl)

    @property
    def name(self) -> str:
        if isinstance(self.state, ResolvedMethod):
            return self.state.decl.name
        return signature_name(self.signature)

    def resolve(self, decl: CallableDecl) -> None:
        self.state = ResolvedMethod(decl)


class ClassModel:
    """A class reached by the closure, with the members actually used."""

    def __init__(self, name: str, decl: ClassDecl | None = None) -> None:
        self.name = name
        self.state: ClassState = ResolvedClass(decl) if decl is not None else Unresolved(name)
        self.methods: dict[str, MethodModel] = {}
        self.fields: dict[str, FieldModel] = {}
        self.bases: list[ClassModel] = []
        self.interfaces: list[str] = []
        self.type_env: dict[str, Type] = {}
        self.requested_fields: dict[str, None] = {}
        self.kernel: MethodModel | None = None

    def __repr__(self) -> str:
        return f"ClassModel({self.name}, resolved={self.is_resolved})"

    @property
    def is_resolved(self) -> bool:
        return isinstance(self.state, ResolvedClass)

    @property
    def is_synthetic(self) -> bool:
        return False

    @property
    def decl(self) -> ClassDecl:
        if isinstance(self.state, ResolvedClass):
            return self.state.decl
        raise UnresolvedModelError(f"class '{self.name}' is not resolved")

    @property
    def base(self) -> ClassModel | None:
        return self.bases[0] if self.bases else None

    def resolve(self, decl: ClassDecl) -> None:
        self.state = ResolvedClass(decl)

    def has_pending_work(self) -> bool:
        if not self.is_resolved:
            return True
        return any(not m.is_resolved for m in self.methods.values())

    def add_declared_method(self, signature: str, decl: CallableDecl) -> MethodModel:
        """Register an already-located declaration, e.g. the kernel."""
        method = MethodModel(self, signature)
        method.resolve(decl)
        self.methods[signature] = method
        return method

    def add_field(self, name: str, ty: Type) -> FieldModel:
        existing = self.fields.get(name)
        if existing is not None:
            return existing
        model = FieldModel(name, ty)
        self.fields[name] = model
        return model

    def find_method(self, signature: str) -> MethodModel | None:
        """Look up a registered method here, then along the base chain.

        An exact key wins over a wildcard-equivalent one.
        """
        for cls in [self, *self.ancestors()]:
            method = cls.methods.get(signature)
            if method is not None:
                return method
            for key, candidate in cls.methods.items():
                if signatures_equivalent(key, signature):
                    return candidate
        return None

    def ancestors(self) -> list[ClassModel]:
        """Base chain from the direct base upwards."""
        chain: list[ClassModel] = []
        current = self.base
        while current is not None and current not in chain:
            chain.append(current)
            current = current.base
        return chain

    def find_field_owner(self, name: str) -> ClassModel | None:
        """The class in self's chain whose own environment declares *name*."""
        for cls in [self, *self.ancestors()]:
            if cls.is_resolved and _declares_field(cls.decl, name):
                return cls
        return None


class SyntheticClassModel(ClassModel):
    """The module pseudo-class; always resolved and never emitted."""

    def __init__(self, name: str) -> None:
        super().__init__(name)

    @property
    def is_resolved(self) -> bool:
        return True

    @property
    def is_synthetic(self) -> bool:
        return True

    def has_pending_work(self) -> bool:
        return False


@dataclass
class Program:
    """Result of the closure.

    ``classes`` maps every model reached by name, the entry class and the
    synthetic module included.
    """

    entry: ClassModel
    classes: dict[str, ClassModel] = field(default_factory=dict)
    iterations: int = 0

    @property
    def kernel(self) -> MethodModel:
        assert self.entry.kernel is not None
        return self.entry.kernel

    def emitted_classes(self) -> list[ClassModel]:
        """Resolved non-entry classes, every base before its subclasses."""
        ordered: list[ClassModel] = []

        def visit(cls: ClassModel) -> None:
            if cls in ordered or cls.is_synthetic or not cls.is_resolved:
                return
            for base in cls.bases:
                visit(base)
            if cls is not self.entry:
                ordered.append(cls)

        for cls in self.classes.values():
            visit(cls)
        return ordered


def _declares_field(decl: ClassDecl, name: str) -> bool:
    for field_decl in decl.field_decls:
        for declarator in field_decl.declarators:
            if declarator.name == name:
                return True
    return False
