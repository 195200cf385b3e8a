"""Shared pytest fixtures for the j2c test suite."""

from __future__ import annotations

import zipfile

import pytest

from tests.helpers import XML_TEST


@pytest.fixture
def make_jar(tmp_path):
    """Write ``{entry: text}`` into a jar under tmp_path and return its path."""

    def _make(entries: dict[str, str], name: str = "classes.jar"):
        path = tmp_path / name
        with zipfile.ZipFile(path, "w") as jar:
            for entry, text in entries.items():
                jar.writestr(entry, text)
        return path

    return _make


@pytest.fixture
def xml_test_jar(make_jar):
    return make_jar({"framework/XMLTest.java": XML_TEST})


@pytest.fixture
def kernel_toml(tmp_path):
    """A TOML config naming XMLTest.main, with an optional variables table."""

    def _make(kernel: str = "framework.XMLTest.main", variables: str = ""):
        path = tmp_path / "kernel.toml"
        path.write_text(f'[kernel]\nname = "{kernel}"\n{variables}')
        return path

    return _make
