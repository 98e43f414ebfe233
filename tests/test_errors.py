"""Tests for the error hierarchy."""

from pdf_joiner.core.errors import (
    ConversionError,
    DownloadError,
    ErrorCode,
    InstallError,
    MergeError,
    PDFJoinerError,
    ProvisioningBusyError,
    ToolNotFoundError,
    UserCancelledError,
)


class TestErrors:
    """Tests for error codes and formatting."""

    def test_str_with_file(self):
        error = MergeError("Page 4 requested", "/tmp/a.pdf")
        assert str(error) == "[MERGE_FAILED] Page 4 requested (file: /tmp/a.pdf)"

    def test_str_without_file(self):
        assert str(ToolNotFoundError()) == "[TOOL_NOT_FOUND] Ghostscript is not available"

    def test_busy_is_an_install_error(self):
        error = ProvisioningBusyError()
        assert isinstance(error, InstallError)
        assert error.code == ErrorCode.INSTALL_IN_PROGRESS

    def test_install_error_custom_code(self):
        error = InstallError("not detected", ErrorCode.INSTALL_NOT_VERIFIED)
        assert error.code == ErrorCode.INSTALL_NOT_VERIFIED

    def test_conversion_error_details(self):
        error = ConversionError("Ghostscript exited with code 1", "/tmp/a.pdf", details="stderr")
        assert error.details == "stderr"
        assert error.code == ErrorCode.CONVERSION_FAILED

    def test_all_share_base(self):
        for error in (DownloadError("x"), UserCancelledError(), ToolNotFoundError()):
            assert isinstance(error, PDFJoinerError)
        assert UserCancelledError().code == ErrorCode.USER_CANCELLED
