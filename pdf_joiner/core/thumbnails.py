"""
Page thumbnails for the reorder grid.

Pages are rasterized one at a time by Ghostscript into a temporary PNG and
returned as data URLs. When a page cannot be rendered an SVG placeholder
showing the file name and page number is used instead.
"""
import base64
import os
import subprocess
import tempfile
from pathlib import Path
from typing import Iterator
from xml.sax.saxutils import escape

from .errors import PDFJoinerError, ThumbnailError
from .ghostscript import GhostscriptService
from .models import DocumentRef, ThumbnailResult
from .sanitize import get_logger, sanitize_path_for_log
from .utils import subprocess_kwargs


logger = get_logger()


PLACEHOLDER_TEMPLATE = (
    '<svg xmlns="http://www.w3.org/2000/svg" width="150" height="200" viewBox="0 0 150 200">'
    '<rect width="150" height="200" fill="#f0f0f0" stroke="#ccc"/>'
    '<text x="75" y="100" text-anchor="middle" font-family="Arial" font-size="14" '
    'fill="#666">{file_name}</text>'
    '<text x="75" y="120" text-anchor="middle" font-family="Arial" font-size="12" '
    'fill="#999">Page {page_number}</text>'
    '</svg>'
)


def to_data_url(data: bytes, mime_type: str) -> str:
    """Encode raw image bytes as a base64 data URL."""
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


class ThumbnailRenderer:
    """Renders single PDF pages to PNG data URLs with Ghostscript."""

    def __init__(self, service: GhostscriptService, resolution: int = 72):
        self.service = service
        self.resolution = resolution

    def build_command(self, gs_path: str, pdf_path: Path, page_number: int, output: Path) -> list:
        return [
            gs_path,
            "-sDEVICE=pngalpha",
            f"-dFirstPage={page_number}",
            f"-dLastPage={page_number}",
            "-dTextAlphaBits=4",
            "-dGraphicsAlphaBits=4",
            f"-r{self.resolution}",
            f"-sOutputFile={output}",
            "-dNOPAUSE",
            "-dBATCH",
            str(pdf_path),
        ]

    def render(self, pdf_path: Path, page_number: int) -> str:
        """
        Render one page.

        Args:
            pdf_path: Source PDF
            page_number: 1-based page number

        Returns:
            PNG data URL

        Raises:
            ToolNotFoundError: if Ghostscript is not available
            ThumbnailError: if Ghostscript fails or produces no image
        """
        gs_path = self.service.require_path()

        fd, temp_name = tempfile.mkstemp(suffix=".png")
        os.close(fd)
        temp_path = Path(temp_name)
        try:
            command = self.build_command(gs_path, Path(pdf_path), page_number, temp_path)
            try:
                completed = subprocess.run(
                    command,
                    capture_output=True,
                    encoding="utf-8",
                    errors="replace",
                    **subprocess_kwargs()
                )
            except OSError as e:
                raise ThumbnailError(f"Failed to start Ghostscript: {e}", str(pdf_path))

            if completed.returncode != 0:
                raise ThumbnailError(
                    f"Ghostscript exited with code {completed.returncode} "
                    f"rendering page {page_number}: {completed.stderr.strip()}",
                    str(pdf_path)
                )

            data = temp_path.read_bytes()
            if not data:
                raise ThumbnailError(f"No image produced for page {page_number}", str(pdf_path))
            return to_data_url(data, "image/png")
        finally:
            try:
                temp_path.unlink()
            except OSError:
                pass

    @staticmethod
    def placeholder(file_name: str, page_index: int) -> str:
        """SVG data URL showing the file name and 1-based page number."""
        svg = PLACEHOLDER_TEMPLATE.format(
            file_name=escape(file_name, {'"': "&quot;", "'": "&apos;"}),
            page_number=page_index + 1
        )
        return to_data_url(svg.encode("utf-8"), "image/svg+xml")

    def iter_document(self, document: DocumentRef, page_count: int) -> Iterator[ThumbnailResult]:
        """
        Yield a thumbnail for every page of a document, in page order.

        A page that cannot be rendered yields a placeholder; nothing is raised.
        """
        tool_missing = False
        for page_index in range(page_count):
            if not tool_missing:
                try:
                    url = self.render(document.file_path, page_index + 1)
                except (PDFJoinerError, OSError) as e:
                    reason = getattr(e, "message", None) or str(e)
                    tool_missing = not self.service.is_available
                    logger.warning(
                        f"Thumbnail failed for page {page_index + 1} of "
                        f"{sanitize_path_for_log(document.file_path)}: {reason}"
                    )
                else:
                    yield ThumbnailResult(document.file_name, page_index, url)
                    continue
            else:
                reason = "Ghostscript not available"

            yield ThumbnailResult(
                document.file_name,
                page_index,
                self.placeholder(document.file_name, page_index),
                is_placeholder=True,
                reason=reason
            )
