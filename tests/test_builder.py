"""Tests for the end-to-end build pipeline."""

from __future__ import annotations

from j2c.builder import compile_kernel


class TestCompileKernel:
    def test_creates_output_directory(self, tmp_path, xml_test_jar, kernel_toml):
        result = compile_kernel(str(xml_test_jar), kernel_toml(), tmp_path / "out" / "xml")
        assert result.ok
        assert (tmp_path / "out" / "xml.h").exists()
        assert (tmp_path / "out" / "xml.cpp").exists()

    def test_success(self, tmp_path, xml_test_jar, kernel_toml):
        base = tmp_path / "xmltest"
        result = compile_kernel(str(xml_test_jar), kernel_toml(), base)
        assert result.ok
        assert result.header_path == tmp_path / "xmltest.h"
        assert result.source_path == tmp_path / "xmltest.cpp"
        source = result.source_path.read_text()
        assert '#include "xmltest.h"\n' in source
        assert "int** compute(int N, int* a);\n" in source
        assert result.program.iterations == 1

    def test_overrides_from_config(self, tmp_path, xml_test_jar, kernel_toml):
        config = kernel_toml(variables='[variables.b]\nlength = "10,20"\n')
        result = compile_kernel(str(xml_test_jar), config, tmp_path / "xmltest")
        assert result.ok
        assert "new int[10][20]" in result.source_path.read_text()

    def test_failure_writes_nothing(self, tmp_path, xml_test_jar, kernel_toml):
        result = compile_kernel(str(xml_test_jar), kernel_toml("framework.XMLTest.absent"),
                                tmp_path / "xmltest")
        assert not result.ok
        assert [d.code for d in result.diagnostics] == ["E104"]
        assert not (tmp_path / "xmltest.h").exists()
        assert not (tmp_path / "xmltest.cpp").exists()

    def test_config_error_reported(self, tmp_path, xml_test_jar, kernel_toml):
        config = kernel_toml(variables='[variables.b]\nlength = "10"\n')
        result = compile_kernel(str(xml_test_jar), config, tmp_path / "xmltest")
        assert not result.ok
        assert result.diagnostics[0].code == "E403"
