"""Full pipeline: archives + kernel config -> .h / .cpp pair."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from j2c.archive import ArchiveResolver, SourceIndex
from j2c.ast_nodes import ClassDecl, MethodDecl
from j2c.closure import ClassResolver, ClosureBuilder
from j2c.config import Attributes, load_config
from j2c.cpp_writer import CppWriter
from j2c.errors import CompileError, Diagnostic
from j2c.models import Program

logger = logging.getLogger(__name__)


@dataclass
class Translation:
    """In-memory result of translating one kernel."""

    program: Program
    header: str
    source: str
    warnings: list[Diagnostic] = field(default_factory=list)


@dataclass
class BuildResult:
    """Outcome of a build."""

    ok: bool
    header_path: Path | None = None
    source_path: Path | None = None
    diagnostics: list[Diagnostic] = field(default_factory=list)
    program: Program | None = None


def translate_kernel(
    entry_decl: ClassDecl,
    kernel_decl: MethodDecl,
    resolver: ClassResolver,
    attributes: Attributes | None = None,
    *,
    header_name: str | None = None,
) -> Translation:
    """Run closure and code generation. Raises CompileError on fatal problems."""
    program = ClosureBuilder(resolver, entry_decl, kernel_decl).build()
    output = CppWriter(program, attributes, header_name=header_name).write()
    return Translation(program, output.header, output.source, output.warnings)


def compile_kernel(archives: str, config_path: Path, output_base: Path) -> BuildResult:
    """Index *archives*, load the kernel config and write ``<output_base>.h/.cpp``.

    Nothing is written unless every stage succeeds.
    """
    output_base = Path(output_base)
    try:
        config = load_config(Path(config_path))
        logger.info("kernel %s.%s", config.entry_class, config.kernel_name)

        index = SourceIndex.from_paths(archives)
        logger.info("indexed %d source file(s)", len(index.sources))
        resolver = ArchiveResolver(index)

        entry_decl = resolver.resolve(config.entry_class)
        kernel_decl = resolver.find_kernel(entry_decl, config.kernel_name)

        header_path = output_base.with_name(output_base.name + ".h")
        source_path = output_base.with_name(output_base.name + ".cpp")
        translation = translate_kernel(
            entry_decl, kernel_decl, resolver, config.attributes(),
            header_name=header_path.name,
        )
    except CompileError as e:
        return BuildResult(ok=False, diagnostics=list(e.diagnostics))

    header_path.parent.mkdir(parents=True, exist_ok=True)
    header_path.write_text(translation.header)
    source_path.write_text(translation.source)
    logger.info("wrote %s and %s", header_path, source_path)
    return BuildResult(
        ok=True,
        header_path=header_path,
        source_path=source_path,
        diagnostics=translation.warnings,
        program=translation.program,
    )
