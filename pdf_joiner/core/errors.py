"""
Custom exceptions and error codes for PDF Joiner.
"""
from enum import Enum, auto
from typing import Optional


class ErrorCode(Enum):
    """Error codes for structured error handling."""
    UNKNOWN = auto()
    FILE_NOT_FOUND = auto()
    NOT_A_PDF = auto()
    PDF_ENCRYPTED = auto()
    PDF_CORRUPT = auto()
    OUTPUT_WRITE_FAILED = auto()
    MERGE_FAILED = auto()
    TOOL_NOT_FOUND = auto()
    DOWNLOAD_FAILED = auto()
    INSTALL_FAILED = auto()
    INSTALL_IN_PROGRESS = auto()
    INSTALL_NOT_VERIFIED = auto()
    CONVERSION_FAILED = auto()
    THUMBNAIL_FAILED = auto()
    USER_CANCELLED = auto()


class PDFJoinerError(Exception):
    """Base exception for PDF Joiner."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.UNKNOWN,
        file_path: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.file_path = file_path

    def __str__(self) -> str:
        if self.file_path:
            return f"[{self.code.name}] {self.message} (file: {self.file_path})"
        return f"[{self.code.name}] {self.message}"


class PDFValidationError(PDFJoinerError):
    """Raised when PDF validation fails."""
    pass


class PDFEncryptedError(PDFJoinerError):
    """Raised when a PDF is encrypted and cannot be read."""

    def __init__(self, file_path: str, message: str = "PDF is encrypted"):
        super().__init__(message, ErrorCode.PDF_ENCRYPTED, file_path)


class PDFCorruptError(PDFJoinerError):
    """Raised when a PDF is corrupt or unreadable."""

    def __init__(self, file_path: str, message: str = "PDF is corrupt or unreadable"):
        super().__init__(message, ErrorCode.PDF_CORRUPT, file_path)


class MergeError(PDFJoinerError):
    """Raised when composing the output document fails."""

    def __init__(self, message: str, file_path: Optional[str] = None):
        super().__init__(message, ErrorCode.MERGE_FAILED, file_path)


class OutputWriteError(PDFJoinerError):
    """Raised when output file cannot be written."""

    def __init__(self, message: str, file_path: str):
        super().__init__(message, ErrorCode.OUTPUT_WRITE_FAILED, file_path)


class ToolNotFoundError(PDFJoinerError):
    """Raised when no working Ghostscript executable can be located."""

    def __init__(self, message: str = "Ghostscript is not available"):
        super().__init__(message, ErrorCode.TOOL_NOT_FOUND)


class DownloadError(PDFJoinerError):
    """Raised when the Ghostscript installer cannot be downloaded."""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.DOWNLOAD_FAILED)


class InstallError(PDFJoinerError):
    """Raised when the Ghostscript installer fails or the install is not detected."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.INSTALL_FAILED):
        super().__init__(message, code)


class ProvisioningBusyError(InstallError):
    """Raised when an installation is requested while another one is running."""

    def __init__(self, message: str = "Ghostscript installation already in progress"):
        super().__init__(message, ErrorCode.INSTALL_IN_PROGRESS)


class ConversionError(PDFJoinerError):
    """Raised when Ghostscript fails to produce a PDF/A file."""

    def __init__(
        self,
        message: str,
        file_path: Optional[str] = None,
        details: str = ""
    ):
        super().__init__(message, ErrorCode.CONVERSION_FAILED, file_path)
        self.details = details


class ThumbnailError(PDFJoinerError):
    """Raised when a single page cannot be rasterised."""

    def __init__(self, message: str, file_path: Optional[str] = None):
        super().__init__(message, ErrorCode.THUMBNAIL_FAILED, file_path)


class UserCancelledError(PDFJoinerError):
    """Raised when the user dismisses an open/save dialog.

    Callers treat this as a normal early return, not a failure.
    """

    def __init__(self, message: str = "Operation cancelled by user"):
        super().__init__(message, ErrorCode.USER_CANCELLED)
