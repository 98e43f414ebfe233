"""
PDF/A conversion service for PDF Joiner.

Rewrites a PDF through Ghostscript's pdfwrite device with PDF/A output
enabled. The input file is never modified.
"""
import subprocess
import time
from pathlib import Path
from typing import List

from .errors import ConversionError
from .ghostscript import GhostscriptService
from .models import ConversionResult
from .pdf_probe import has_pdfa_markers
from .sanitize import get_logger, sanitize_path_for_log
from .utils import file_size, subprocess_kwargs


logger = get_logger()


class PdfaConverter:
    """
    Converts PDFs to PDF/A using Ghostscript.

    Args:
        service: Provides the Ghostscript executable
        pdfa_level: PDF/A part passed as -dPDFA (1, 2 or 3)
    """

    def __init__(self, service: GhostscriptService, pdfa_level: int = 2):
        self.service = service
        self.pdfa_level = pdfa_level

    def build_command(self, gs_path: str, input_path: Path, output_path: Path) -> List[str]:
        return [
            gs_path,
            f"-dPDFA={self.pdfa_level}",
            "-dBATCH",
            "-dNOPAUSE",
            "-sDEVICE=pdfwrite",
            "-sColorConversionStrategy=UseDeviceIndependentColor",
            "-sProcessColorModel=DeviceCMYK",
            "-dPDFACompatibilityPolicy=1",
            # Lossless images so conversion never degrades scans
            "-dAutoFilterColorImages=false",
            "-dAutoFilterGrayImages=false",
            "-dColorImageFilter=/FlateEncode",
            "-dGrayImageFilter=/FlateEncode",
            f"-sOutputFile={output_path}",
            str(input_path),
        ]

    def convert(self, input_path: Path, output_path: Path) -> ConversionResult:
        """
        Convert input_path to PDF/A at output_path.

        Returns:
            ConversionResult with sizes, timing and marker check outcome

        Raises:
            ToolNotFoundError: if Ghostscript is not available
            ConversionError: if the input is missing or Ghostscript fails
        """
        gs_path = self.service.require_path()

        input_path = Path(input_path)
        output_path = Path(output_path)
        if not input_path.is_file():
            raise ConversionError("Input file not found", str(input_path))

        logger.info(
            f"Converting {sanitize_path_for_log(input_path)} to PDF/A-{self.pdfa_level}b "
            f"at {sanitize_path_for_log(output_path)}"
        )
        start_time = time.time()

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            completed = subprocess.run(
                self.build_command(gs_path, input_path, output_path),
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                **subprocess_kwargs()
            )
        except OSError as e:
            raise ConversionError(f"Failed to start Ghostscript: {e}", str(input_path))

        if completed.returncode != 0:
            details = (completed.stderr or completed.stdout or "").strip()
            logger.error(f"Ghostscript exited with {completed.returncode}: {details}")
            raise ConversionError(
                f"Ghostscript exited with code {completed.returncode}",
                str(input_path),
                details=details
            )

        result = ConversionResult(
            input_path=input_path,
            output_path=output_path,
            input_size_bytes=file_size(input_path),
            output_size_bytes=file_size(output_path),
            duration_seconds=time.time() - start_time,
            pdfa_markers_found=has_pdfa_markers(output_path)
        )
        if not result.pdfa_markers_found:
            result.warnings.append(
                "The output does not declare PDF/A conformance in its metadata"
            )
            logger.warning(f"No PDF/A markers in {sanitize_path_for_log(output_path)}")

        logger.info(f"Conversion finished in {result.duration_seconds:.1f}s")
        return result
