"""Tests for the typed command dispatcher."""

import pytest

from conftest import FakeLocator
from pdf_joiner.core.commands import (
    Command,
    ConvertRequest,
    InstallRequest,
    MergeRequest,
    PageCountRequest,
    ThumbnailRequest,
    ToolOrchestrator,
)
from pdf_joiner.core.errors import ErrorCode
from pdf_joiner.core.ghostscript import GhostscriptService
from pdf_joiner.core.models import MergeResult, SequenceEntry


@pytest.fixture
def orchestrator():
    return ToolOrchestrator(GhostscriptService(locator=FakeLocator((False, None))))


class TestToolOrchestrator:
    """Tests for ToolOrchestrator.handle."""

    def test_page_count(self, orchestrator, make_pdf):
        response = orchestrator.handle(
            Command.GET_PAGE_COUNT, PageCountRequest(make_pdf("a.pdf", [100, 110, 120]))
        )
        assert response.ok
        assert response.value == 3

    def test_page_count_missing_file(self, orchestrator, tmp_path):
        response = orchestrator.handle(
            Command.GET_PAGE_COUNT, PageCountRequest(tmp_path / "missing.pdf")
        )
        assert not response.ok
        assert response.error_code == ErrorCode.FILE_NOT_FOUND
        assert response.error_message

    def test_merge_sequence(self, orchestrator, make_pdf, tmp_path):
        a = make_pdf("a.pdf", [100, 110])
        output = tmp_path / "merged.pdf"
        response = orchestrator.handle(
            Command.MERGE_SEQUENCE,
            MergeRequest(output_path=output, entries=[SequenceEntry(a, 1), SequenceEntry(a, 0)])
        )
        assert response.ok
        assert isinstance(response.value, MergeResult)
        assert response.value.total_pages == 2
        assert output.exists()

    def test_merge_bad_index_is_failed_response(self, orchestrator, make_pdf, tmp_path):
        a = make_pdf("a.pdf", [100])
        response = orchestrator.handle(
            Command.MERGE_SEQUENCE,
            MergeRequest(output_path=tmp_path / "m.pdf", entries=[SequenceEntry(a, 5)])
        )
        assert not response.ok
        assert response.error_code == ErrorCode.MERGE_FAILED

    def test_convert_without_ghostscript(self, orchestrator, make_pdf, tmp_path):
        response = orchestrator.handle(
            Command.CONVERT_TO_PDFA,
            ConvertRequest(make_pdf("a.pdf", [100]), tmp_path / "out.pdf")
        )
        assert not response.ok
        assert response.error_code == ErrorCode.TOOL_NOT_FOUND

    def test_failed_conversion_carries_ghostscript_output(self, fake_run, make_pdf, tmp_path):
        fake_run.handler = lambda args: (1, "", "Error: /undefined in pdfmark\n")
        orchestrator = ToolOrchestrator(GhostscriptService(locator=FakeLocator((True, "gs"))))

        response = orchestrator.handle(
            Command.CONVERT_TO_PDFA,
            ConvertRequest(make_pdf("a.pdf", [100]), tmp_path / "out.pdf")
        )

        assert not response.ok
        assert response.error_code == ErrorCode.CONVERSION_FAILED
        assert response.error_message == "Ghostscript exited with code 1"
        assert response.details == "Error: /undefined in pdfmark"

    def test_details_empty_for_errors_without_output(self, orchestrator, tmp_path):
        response = orchestrator.handle(
            Command.GET_PAGE_COUNT, PageCountRequest(tmp_path / "missing.pdf")
        )
        assert response.details == ""

    def test_thumbnail_without_ghostscript(self, orchestrator, make_pdf):
        response = orchestrator.handle(
            Command.GENERATE_THUMBNAIL, ThumbnailRequest(make_pdf("a.pdf", [100]), 1)
        )
        assert response.error_code == ErrorCode.TOOL_NOT_FOUND

    def test_check_and_status(self, orchestrator):
        assert orchestrator.handle(Command.CHECK_GHOSTSCRIPT).value is False
        status = orchestrator.handle(Command.GHOSTSCRIPT_STATUS).value
        assert not status.available

    def test_decline_and_reset(self, orchestrator):
        orchestrator.handle(Command.DECLINE_INSTALL)
        assert orchestrator.handle(Command.GHOSTSCRIPT_STATUS).value.declined
        orchestrator.handle(Command.RESET_PREFERENCE)
        assert not orchestrator.handle(Command.GHOSTSCRIPT_STATUS).value.declined

    def test_install_without_provisioner(self, orchestrator):
        response = orchestrator.handle(Command.INSTALL_GHOSTSCRIPT, InstallRequest())
        assert not response.ok
        assert response.error_code == ErrorCode.INSTALL_FAILED

    def test_install_payload_optional(self, orchestrator):
        response = orchestrator.handle(Command.INSTALL_GHOSTSCRIPT)
        assert response.error_code == ErrorCode.INSTALL_FAILED

    def test_wrong_payload_type(self, orchestrator, tmp_path):
        with pytest.raises(TypeError):
            orchestrator.handle(Command.GET_PAGE_COUNT, ConvertRequest(tmp_path, tmp_path))

    def test_missing_payload(self, orchestrator):
        with pytest.raises(TypeError):
            orchestrator.handle(Command.MERGE_SEQUENCE)

    def test_unexpected_payload(self, orchestrator, tmp_path):
        with pytest.raises(TypeError):
            orchestrator.handle(Command.CHECK_GHOSTSCRIPT, PageCountRequest(tmp_path))
