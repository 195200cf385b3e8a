"""j2c command line."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from pygments import highlight
from pygments.formatters import TerminalFormatter
from pygments.lexers import CppLexer

from j2c import __version__
from j2c.builder import compile_kernel
from j2c.errors import DiagnosticRenderer, Severity


def _configure_logging(verbosity: int) -> None:
    """Attach a stderr handler to the ``j2c`` logger.

    0 -> WARNING, 1 -> INFO, 2+ -> DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root = logging.getLogger("j2c")
    root.handlers.clear()
    root.setLevel(level)
    root.addHandler(handler)


def _show(path: Path, color: bool) -> None:
    text = path.read_text()
    click.echo(f"// {path.name}")
    if color:
        click.echo(highlight(text, CppLexer(), TerminalFormatter()), nl=False)
    else:
        click.echo(text, nl=False)


@click.command()
@click.argument("archives")
@click.argument("config", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("output", type=click.Path(dir_okay=False, path_type=Path))
@click.option("-v", "--verbose", count=True, help="-v for progress, -vv for closure details.")
@click.option("--no-color", is_flag=True, help="Disable ANSI colors in diagnostics and --show.")
@click.option("--show", is_flag=True, help="Print the generated units after writing them.")
@click.version_option(__version__, prog_name="j2c")
def main(archives: str, config: Path, output: Path, verbose: int, no_color: bool,
         show: bool) -> None:
    """Translate a Java kernel method into C-like OUTPUT.h and OUTPUT.cpp.

    ARCHIVES is a ';'-separated list of .jar/.zip archives or source
    directories. CONFIG names the kernel (TOML or XML).
    """
    _configure_logging(verbose)
    result = compile_kernel(archives, config, output)

    renderer = DiagnosticRenderer(color=not no_color)
    for diag in result.diagnostics:
        click.echo(renderer.render(diag), err=True)

    if not result.ok:
        errors = sum(1 for d in result.diagnostics if d.severity == Severity.ERROR)
        click.echo(f"error: translation failed with {errors} error(s)", err=True)
        raise SystemExit(1)

    click.echo(f"wrote {result.header_path} and {result.source_path}")
    if show:
        _show(result.header_path, not no_color)
        _show(result.source_path, not no_color)
