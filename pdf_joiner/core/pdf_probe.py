"""
PDF validation and probing for PDF Joiner.

Page counting for newly selected files and a marker check for converted
PDF/A output. All parsing is done by pypdf.
"""
from pathlib import Path
from typing import Optional, Tuple

from pypdf import PdfReader
from pypdf.errors import PdfReadError, FileNotDecryptedError

from .errors import (
    PDFValidationError,
    PDFEncryptedError,
    PDFCorruptError,
    PDFJoinerError,
    ErrorCode
)
from .sanitize import get_logger, sanitize_path_for_log


logger = get_logger()

# XMP namespace prefix written by Ghostscript's PDF/A output
PDFA_ID_MARKER = b"pdfaid:part"


def is_pdf_file(file_path: Path) -> bool:
    """
    Quick check if a file appears to be a PDF based on magic bytes.

    Args:
        file_path: Path to file to check

    Returns:
        True if file starts with PDF magic bytes
    """
    try:
        with open(file_path, 'rb') as f:
            header = f.read(8)
            return header.startswith(b'%PDF-')
    except (IOError, OSError):
        return False


def open_reader(file_path: Path) -> PdfReader:
    """
    Open a PDF with pypdf, unlocking files protected by an empty user password.

    Raises:
        PDFEncryptedError: if the file needs a real password
        PDFCorruptError: if pypdf cannot parse the file
    """
    try:
        reader = PdfReader(file_path)
        if reader.is_encrypted:
            try:
                if not reader.decrypt(""):
                    raise PDFEncryptedError(str(file_path))
            except (NotImplementedError, PdfReadError) as e:
                raise PDFEncryptedError(str(file_path), f"PDF is encrypted: {e}")
        return reader
    except FileNotDecryptedError:
        raise PDFEncryptedError(str(file_path))
    except PdfReadError as e:
        raise PDFCorruptError(str(file_path), f"PDF is corrupt or unreadable: {e}")


def get_page_count(file_path: Path) -> int:
    """
    Get the number of pages of a PDF.

    Args:
        file_path: Path to PDF file

    Returns:
        Page count

    Raises:
        PDFValidationError: if the file is missing or not a PDF
        PDFEncryptedError: if the file is password protected
        PDFCorruptError: if the file cannot be parsed
    """
    file_path = Path(file_path)
    safe_path = sanitize_path_for_log(file_path)

    if not file_path.exists():
        raise PDFValidationError("File not found", ErrorCode.FILE_NOT_FOUND, str(file_path))

    if not is_pdf_file(file_path):
        raise PDFValidationError("Not a PDF file", ErrorCode.NOT_A_PDF, str(file_path))

    reader = open_reader(file_path)
    try:
        page_count = len(reader.pages)
    except (PdfReadError, KeyError, ValueError) as e:
        raise PDFCorruptError(str(file_path), f"Cannot read page tree: {e}")

    logger.debug(f"Probed PDF with pypdf: {safe_path}, pages={page_count}")
    return page_count


def probe_pdf(file_path: Path) -> Tuple[bool, Optional[int], str]:
    """
    Probe a PDF file to check validity and get page count.

    Args:
        file_path: Path to PDF file

    Returns:
        Tuple of (is_valid, page_count, error_message)
        page_count is None if couldn't be determined
    """
    try:
        page_count = get_page_count(file_path)
    except PDFJoinerError as e:
        logger.warning(f"Probe failed for {sanitize_path_for_log(file_path)}: {e.message}")
        return False, None, e.message
    except Exception as e:
        logger.warning(f"Unexpected error probing {sanitize_path_for_log(file_path)}: {e}")
        return False, None, f"Error reading PDF: {type(e).__name__}"

    if page_count == 0:
        return False, 0, "PDF has no pages"
    return True, page_count, ""


def has_pdfa_markers(file_path: Path) -> bool:
    """
    Check whether a PDF declares PDF/A conformance in its XMP metadata.

    This only looks for the identification schema; it is not a validator.

    Args:
        file_path: Path to PDF

    Returns:
        True if the document catalog carries pdfaid metadata
    """
    try:
        reader = open_reader(Path(file_path))
        root = reader.trailer["/Root"]
        if "/Metadata" not in root:
            return False
        metadata = root["/Metadata"].get_object().get_data()
        return PDFA_ID_MARKER in metadata
    except Exception as e:
        logger.debug(f"PDF/A marker check failed for {sanitize_path_for_log(file_path)}: {e}")
        return False
