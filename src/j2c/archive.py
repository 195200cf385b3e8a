"""Locating and parsing Java sources inside archives and directories."""

from __future__ import annotations

import logging
import zipfile
from dataclasses import dataclass
from pathlib import Path

from j2c.ast_nodes import ClassDecl, CompilationUnit, MethodDecl
from j2c.errors import ResolutionError
from j2c.parser import parse_source

logger = logging.getLogger(__name__)

ARCHIVE_SEPARATOR = ";"
ARCHIVE_SUFFIXES = (".jar", ".zip")


@dataclass(frozen=True)
class SourceLocation:
    """A ``.java`` file, either inside an archive or under a directory."""

    container: Path
    entry: str
    in_archive: bool = True

    def __str__(self) -> str:
        if self.in_archive:
            return f"{self.container}!{self.entry}"
        return str(self.container / self.entry)

    def read_text(self) -> str:
        if self.in_archive:
            with zipfile.ZipFile(self.container) as archive:
                return archive.read(self.entry).decode("utf-8")
        return (self.container / self.entry).read_text(encoding="utf-8")


def _qualified_name(entry: str, suffix: str) -> str:
    return entry[: -len(suffix)].replace("/", ".")


class SourceIndex:
    """Maps class names to the source file that declares them.

    Classes are indexed by their fully qualified name (from the path inside
    the container) and by their simple name. When two containers provide
    the same class the first one listed wins.
    """

    def __init__(self) -> None:
        self.sources: dict[str, SourceLocation] = {}
        self.simple_names: dict[str, str] = {}
        self.bytecode_only: set[str] = set()

    @classmethod
    def from_paths(cls, paths: str | list[Path]) -> SourceIndex:
        """Index a ``;``-separated list (or a list) of archives and directories."""
        if isinstance(paths, str):
            paths = [Path(p.strip()) for p in paths.split(ARCHIVE_SEPARATOR) if p.strip()]
        index = cls()
        for path in paths:
            if path.is_dir():
                index.add_directory(path)
            elif path.is_file() and path.suffix in ARCHIVE_SUFFIXES:
                index.add_archive(path)
            else:
                raise ResolutionError.from_message(
                    "E107", f"'{path}' is neither a .jar/.zip archive nor a directory")
        return index

    def add_archive(self, path: Path) -> None:
        try:
            with zipfile.ZipFile(path) as archive:
                names = archive.namelist()
        except (OSError, zipfile.BadZipFile) as e:
            raise ResolutionError.from_message("E107", f"cannot open archive '{path}': {e}") from e
        for entry in names:
            self._add_entry(entry, SourceLocation(path, entry))

    def add_directory(self, path: Path) -> None:
        for file in sorted(path.rglob("*")):
            if file.is_file():
                entry = file.relative_to(path).as_posix()
                self._add_entry(entry, SourceLocation(path, entry, in_archive=False))

    def _add_entry(self, entry: str, location: SourceLocation) -> None:
        if entry.endswith(".java"):
            name = _qualified_name(entry, ".java")
            if name in self.sources:
                return
            self.sources[name] = location
            self.simple_names.setdefault(name.rsplit(".", 1)[-1], name)
            logger.debug("indexed %s -> %s", name, location)
        elif entry.endswith(".class") and "$" not in entry:
            self.bytecode_only.add(_qualified_name(entry, ".class"))

    def lookup(self, name: str) -> SourceLocation | None:
        """Find a class by qualified name, falling back to its simple name."""
        location = self.sources.get(name)
        if location is not None:
            return location
        qualified = self.simple_names.get(name.rsplit(".", 1)[-1])
        return self.sources.get(qualified) if qualified is not None else None

    def has_bytecode(self, name: str) -> bool:
        simple = name.rsplit(".", 1)[-1]
        return any(n == name or n.rsplit(".", 1)[-1] == simple for n in self.bytecode_only)


class ArchiveResolver:
    """Resolves class names to parsed declarations, caching each source file."""

    def __init__(self, index: SourceIndex) -> None:
        self.index = index
        self._units: dict[SourceLocation, CompilationUnit] = {}

    def unit(self, location: SourceLocation) -> CompilationUnit:
        unit = self._units.get(location)
        if unit is None:
            logger.debug("parsing %s", location)
            unit = parse_source(location.read_text(), str(location))
            self._units[location] = unit
        return unit

    def resolve(self, name: str) -> ClassDecl:
        location = self.index.lookup(name)
        if location is None:
            if self.index.has_bytecode(name):
                raise ResolutionError.from_message(
                    "E105", f"class '{name}' is only available as bytecode; "
                    "the archive must contain its .java source")
            raise ResolutionError.from_message(
                "E101", f"cannot find class '{name}' in the given archives")
        simple = name.rsplit(".", 1)[-1]
        decl = self.unit(location).find_class(simple)
        if decl is None:
            raise ResolutionError.from_message(
                "E101", f"{location} does not declare a class named '{simple}'")
        return decl

    def find_kernel(self, entry: ClassDecl, name: str) -> MethodDecl:
        """The first method of *entry* called *name*."""
        for member in entry.members:
            if isinstance(member, MethodDecl) and member.name == name:
                return member
        raise ResolutionError.from_message(
            "E104", f"cannot find kernel method '{name}' in class '{entry.name}'", entry.span)
