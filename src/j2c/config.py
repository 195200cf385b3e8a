"""Kernel configuration: which method to translate and per-variable overrides.

Two layouts are accepted. TOML::

    [kernel]
    name = "pkg.Compute.run"

    [variables.a]
    length = "10,20"

and the legacy XML form::

    <kernel name="pkg.Compute.run">
      <variable><name>a</name><length>10,20</length></variable>
    </kernel>
"""

from __future__ import annotations

import tomllib
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path

from j2c.errors import ConfigError

RECOGNIZED_ATTRIBUTES = ("length",)

# Attribute table handed to the code generator: {variable: {attribute: value}}.
Attributes = dict[str, dict[str, str]]


@dataclass
class VariableConfig:
    name: str
    length: str | None = None  # comma-separated, one entry per dimension


@dataclass
class KernelConfig:
    entry_class: str
    kernel_name: str
    variables: list[VariableConfig] = field(default_factory=list)

    def attributes(self) -> Attributes:
        table: Attributes = {}
        for var in self.variables:
            if var.length is not None:
                table.setdefault(var.name, {})["length"] = var.length
        return table


def split_qualifier(qualifier: str) -> tuple[str, str]:
    """Split ``pkg.Class.method`` at its last dot into class and method."""
    qualifier = qualifier.strip()
    class_name, dot, method = qualifier.rpartition(".")
    if not dot or not class_name or not method:
        raise ConfigError.from_message(
            "E401", f"kernel qualifier '{qualifier}' must have the form 'Class.method'")
    return class_name, method


def load_config(path: Path) -> KernelConfig:
    """Load a kernel configuration, choosing the format by file suffix."""
    path = Path(path)
    if path.suffix == ".toml":
        return _load_toml(path)
    if path.suffix == ".xml":
        return _load_xml(path)
    raise ConfigError.from_message(
        "E401", f"unsupported configuration format '{path.suffix or path.name}' "
        "(expected .toml or .xml)")


def _load_toml(path: Path) -> KernelConfig:
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except OSError as e:
        raise ConfigError.from_message("E401", f"cannot read {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError.from_message("E401", f"{path}: {e}") from e

    kernel = data.get("kernel")
    if not isinstance(kernel, dict) or "name" not in kernel:
        raise ConfigError.from_message("E401", f"{path}: missing [kernel] name")
    entry_class, kernel_name = split_qualifier(str(kernel["name"]))

    variables: list[VariableConfig] = []
    for name, attrs in data.get("variables", {}).items():
        if not isinstance(attrs, dict):
            raise ConfigError.from_message(
                "E401", f"{path}: [variables.{name}] must be a table")
        variables.append(_variable(path, name, {k: str(v) for k, v in attrs.items()}))
    return KernelConfig(entry_class, kernel_name, variables)


def _load_xml(path: Path) -> KernelConfig:
    try:
        root = ET.parse(path).getroot()
    except OSError as e:
        raise ConfigError.from_message("E401", f"cannot read {path}: {e}") from e
    except ET.ParseError as e:
        raise ConfigError.from_message("E401", f"{path}: {e}") from e

    if root.tag != "kernel":
        raise ConfigError.from_message(
            "E401", f"{path}: root element must be <kernel>, found <{root.tag}>")
    qualifier = root.get("name")
    if not qualifier:
        raise ConfigError.from_message("E401", f"{path}: <kernel> has no name attribute")
    entry_class, kernel_name = split_qualifier(qualifier)

    variables: list[VariableConfig] = []
    for element in root.findall("variable"):
        name = (element.findtext("name") or "").strip()
        if not name:
            raise ConfigError.from_message("E401", f"{path}: <variable> without a <name>")
        attrs: dict[str, str] = {}
        for child in element:
            if child.tag == "name":
                continue
            attrs[child.tag] = (child.text or "").strip()
        variables.append(_variable(path, name, attrs))
    return KernelConfig(entry_class, kernel_name, variables)


def _variable(path: Path, name: str, attrs: dict[str, str]) -> VariableConfig:
    for key in attrs:
        if key not in RECOGNIZED_ATTRIBUTES:
            raise ConfigError.from_message(
                "E402", f"{path}: unknown attribute '{key}' for variable '{name}'")
    length = attrs.get("length")
    if length is not None and not length.strip():
        raise ConfigError.from_message(
            "E402", f"{path}: empty length for variable '{name}'")
    return VariableConfig(name, length)
