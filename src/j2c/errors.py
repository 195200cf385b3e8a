"""Diagnostics, their rendering, and the fatal error hierarchy."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

import click

if TYPE_CHECKING:
    from j2c.source import Span


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"
    NOTE = "note"


_STYLES: dict[Severity, dict[str, object]] = {
    Severity.ERROR: {"fg": "red", "bold": True},
    Severity.WARNING: {"fg": "yellow", "bold": True},
    Severity.NOTE: {"fg": "cyan", "bold": True},
}
_GUTTER: dict[str, object] = {"fg": "blue", "bold": True}


@dataclass(frozen=True)
class DiagnosticLabel:
    """Points to a specific source location."""

    span: Span
    message: str = ""


@dataclass
class Diagnostic:
    """A single diagnostic message with optional labels and notes."""

    severity: Severity
    code: str
    message: str
    labels: list[DiagnosticLabel] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)

    @classmethod
    def error(cls, code: str, message: str,
              span: Span | None = None) -> Diagnostic:
        labels = [DiagnosticLabel(span)] if span is not None else []
        return cls(Severity.ERROR, code, message, labels)

    @classmethod
    def warning(cls, code: str, message: str,
                span: Span | None = None) -> Diagnostic:
        labels = [DiagnosticLabel(span)] if span is not None else []
        return cls(Severity.WARNING, code, message, labels)


class DiagnosticRenderer:
    """Renders diagnostics Rust-style: header, location, source excerpt, notes.

    Labels whose span covers several lines are underlined from the start
    column to the end of the first line.
    """

    def __init__(self, *, color: bool = True) -> None:
        self.color = color
        self._sources: dict[str, list[str]] = {}

    def _paint(self, text: str, **style: object) -> str:
        return click.style(text, **style) if self.color else text

    def _line(self, filename: str, number: int) -> str | None:
        if filename not in self._sources:
            path = Path(filename)
            try:
                text = path.read_text() if path.is_file() else ""
            except OSError:
                text = ""
            self._sources[filename] = text.splitlines()
        source = self._sources[filename]
        return source[number - 1] if 0 < number <= len(source) else None

    def _label(self, label: DiagnosticLabel, severity: Severity) -> list[str]:
        span = label.span
        if span.start_line < 1:
            return []
        gutter = self._paint("     |", **_GUTTER)
        out = [f"  {self._paint('-->', **_GUTTER)} "
               f"{span.file}:{span.start_line}:{span.start_col}"]
        text = self._line(span.file, span.start_line)
        if text is None:
            return out
        last = span.end_col if span.end_line == span.start_line else len(text)
        width = max(1, last - span.start_col + 1)
        underline = " " * (span.start_col - 1) + "^" * width
        out += [
            gutter,
            f"{self._paint(f'{span.start_line:>5} |', **_GUTTER)} {text}",
            f"{gutter} {self._paint(underline, **_STYLES[severity])}",
        ]
        if label.message:
            out.append(f"{gutter}   {self._paint(label.message, **_STYLES[severity])}")
        return out

    def render(self, diag: Diagnostic) -> str:
        header = self._paint(f"{diag.severity.value}[{diag.code}]", **_STYLES[diag.severity])
        out = [header + self._paint(f": {diag.message}", bold=True)]
        for label in diag.labels:
            out.extend(self._label(label, diag.severity))
        out.extend(f"  {self._paint('=', **_GUTTER)} note: {note}" for note in diag.notes)
        return "\n".join(out)


class CompileError(Exception):
    """Fatal translation failure carrying one or more diagnostics."""

    def __init__(self, diagnostics: list[Diagnostic]) -> None:
        self.diagnostics = diagnostics
        messages = [d.message for d in diagnostics]
        super().__init__(f"{len(diagnostics)} error(s): {'; '.join(messages)}")

    @classmethod
    def from_message(cls, code: str, message: str,
                     span: Span | None = None) -> CompileError:
        return cls([Diagnostic.error(code, message, span)])

    @property
    def code(self) -> str:
        return self.diagnostics[0].code if self.diagnostics else ""


class ResolutionError(CompileError):
    """A class, method, field or entry point could not be found (E1xx)."""


class InferenceError(CompileError):
    """An expression's type was required but could not be determined (E2xx)."""


class SubsetError(CompileError):
    """A construct outside the translatable Java subset (E3xx)."""


class ConfigError(CompileError):
    """Malformed or inconsistent kernel configuration (E4xx)."""
