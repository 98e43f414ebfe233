"""Tests for PDF/A conversion through Ghostscript."""

import shutil

import pytest

from conftest import FakeLocator, output_file_arg
from pdf_joiner.core import converter as converter_module
from pdf_joiner.core.converter import PdfaConverter
from pdf_joiner.core.errors import ConversionError, ToolNotFoundError
from pdf_joiner.core.ghostscript import GhostscriptService


def copying_gs(args):
    """Pretend to convert by copying the input to the output file."""
    shutil.copyfile(args[-1], output_file_arg(args))
    return 0, "", ""


@pytest.fixture
def service():
    return GhostscriptService(locator=FakeLocator((True, "gs")))


class TestPdfaConverter:
    """Tests for PdfaConverter.convert."""

    def test_missing_ghostscript_spawns_nothing(self, fake_run, make_pdf, tmp_path):
        source = make_pdf("in.pdf", [100])
        converter = PdfaConverter(GhostscriptService(locator=FakeLocator((False, None))))

        with pytest.raises(ToolNotFoundError):
            converter.convert(source, tmp_path / "out.pdf")
        assert fake_run.calls == []

    def test_command_line(self, fake_run, service, make_pdf, tmp_path):
        fake_run.handler = copying_gs
        source = make_pdf("in.pdf", [100])
        output = tmp_path / "out.pdf"

        PdfaConverter(service).convert(source, output)

        args = fake_run.calls[0]
        assert args[0] == "gs"
        assert args[1] == "-dPDFA=2"
        for flag in (
            "-dBATCH", "-dNOPAUSE", "-sDEVICE=pdfwrite",
            "-sColorConversionStrategy=UseDeviceIndependentColor",
            "-sProcessColorModel=DeviceCMYK", "-dPDFACompatibilityPolicy=1",
            "-dAutoFilterColorImages=false", "-dAutoFilterGrayImages=false",
            "-dColorImageFilter=/FlateEncode", "-dGrayImageFilter=/FlateEncode",
        ):
            assert flag in args
        assert f"-sOutputFile={output}" in args
        assert args[-1] == str(source)

    def test_pdfa_level_configurable(self, fake_run, service, make_pdf, tmp_path):
        fake_run.handler = copying_gs
        PdfaConverter(service, pdfa_level=3).convert(make_pdf("in.pdf", [100]), tmp_path / "o.pdf")
        assert fake_run.calls[0][1] == "-dPDFA=3"

    def test_result_without_markers_warns(self, fake_run, service, make_pdf, tmp_path):
        fake_run.handler = copying_gs
        source = make_pdf("in.pdf", [100, 200])
        output = tmp_path / "out.pdf"

        result = PdfaConverter(service).convert(source, output)

        assert result.output_path == output
        assert result.input_size_bytes == source.stat().st_size
        assert result.output_size_bytes == output.stat().st_size
        assert not result.pdfa_markers_found
        assert len(result.warnings) == 1

    def test_result_with_markers(self, fake_run, service, make_pdf, tmp_path, monkeypatch):
        fake_run.handler = copying_gs
        monkeypatch.setattr(converter_module, "has_pdfa_markers", lambda path: True)

        result = PdfaConverter(service).convert(make_pdf("in.pdf", [100]), tmp_path / "out.pdf")

        assert result.pdfa_markers_found
        assert result.warnings == []

    def test_input_untouched(self, fake_run, service, make_pdf, tmp_path):
        fake_run.handler = copying_gs
        source = make_pdf("in.pdf", [100])
        before = source.read_bytes()

        PdfaConverter(service).convert(source, tmp_path / "out.pdf")

        assert source.read_bytes() == before

    def test_non_zero_exit(self, fake_run, service, make_pdf, tmp_path):
        fake_run.handler = lambda args: (1, "", "Unrecoverable error")

        with pytest.raises(ConversionError) as exc_info:
            PdfaConverter(service).convert(make_pdf("in.pdf", [100]), tmp_path / "out.pdf")
        assert exc_info.value.details == "Unrecoverable error"

    def test_undecodable_stderr(self, fake_run, service, make_pdf, tmp_path):
        fake_run.handler = lambda args: (1, b"", b"Error reading \xff\xfe.pdf")

        with pytest.raises(ConversionError) as exc_info:
            PdfaConverter(service).convert(make_pdf("in.pdf", [100]), tmp_path / "out.pdf")
        assert exc_info.value.details.startswith("Error reading ")
        assert "\ufffd" in exc_info.value.details

    def test_spawn_failure(self, fake_run, service, make_pdf, tmp_path):
        def missing(args):
            raise FileNotFoundError(args[0])

        fake_run.handler = missing
        with pytest.raises(ConversionError):
            PdfaConverter(service).convert(make_pdf("in.pdf", [100]), tmp_path / "out.pdf")

    def test_missing_input(self, fake_run, service, tmp_path):
        with pytest.raises(ConversionError):
            PdfaConverter(service).convert(tmp_path / "missing.pdf", tmp_path / "out.pdf")
        assert fake_run.calls == []
