"""
PDF composing service for PDF Joiner.

Copies pages, in sequence order, from any number of source files into one
new document. Handles the core merge logic without any Qt dependencies for
testability.
"""
import io
import shutil
import tempfile
import time
from pathlib import Path
from typing import Dict, Sequence

from pypdf import PdfWriter, PdfReader

from .errors import MergeError, OutputWriteError, PDFJoinerError
from .models import MergeResult, SequenceEntry
from .pdf_probe import open_reader
from .sanitize import get_logger, sanitize_path_for_log
from .version import __app_name__


logger = get_logger()


class PdfComposer:
    """
    Service for composing a page sequence into a single PDF.

    This class is designed to be UI-agnostic and can be used from
    command line, tests, or Qt applications.
    """

    def __init__(self, normalize_metadata: bool = True):
        """
        Initialize composer.

        Args:
            normalize_metadata: Replace producer/creator/title in the output
        """
        self.normalize_metadata = normalize_metadata

    def _build_writer(self, entries: Sequence[SequenceEntry]) -> PdfWriter:
        if not entries:
            raise MergeError("No pages to merge")

        writer = PdfWriter()
        # Each distinct source is parsed once, however many of its pages are used
        readers: Dict[Path, PdfReader] = {}

        for position, entry in enumerate(entries):
            source = Path(entry.file_path)
            reader = readers.get(source)
            if reader is None:
                try:
                    reader = open_reader(source)
                except PDFJoinerError as e:
                    raise MergeError(f"Cannot read source: {e.message}", str(source))
                except OSError as e:
                    raise MergeError(f"Cannot open source: {e}", str(source))
                readers[source] = reader
                logger.debug(f"Opened source {sanitize_path_for_log(source)}")

            try:
                page_count = len(reader.pages)
            except Exception as e:
                raise MergeError(f"Cannot read page tree: {e}", str(source))
            if not 0 <= entry.page_index < page_count:
                raise MergeError(
                    f"Page {entry.page_index + 1} requested at position {position + 1}, "
                    f"but the file has {page_count} page(s)",
                    str(source)
                )

            try:
                writer.add_page(reader.pages[entry.page_index])
            except Exception as e:
                raise MergeError(
                    f"Failed to copy page {entry.page_index + 1}: {e}", str(source)
                )

        logger.info(f"Composed {len(entries)} page(s) from {len(readers)} source file(s)")
        return writer

    def compose(self, entries: Sequence[SequenceEntry]) -> bytes:
        """
        Compose the sequence into a new PDF.

        Args:
            entries: Pages in output order

        Returns:
            Serialized PDF bytes

        Raises:
            MergeError: if a source cannot be read or a page index is invalid
        """
        writer = self._build_writer(entries)
        buffer = io.BytesIO()
        writer.write(buffer)
        return buffer.getvalue()

    def write(
        self,
        entries: Sequence[SequenceEntry],
        output_path: Path
    ) -> MergeResult:
        """
        Compose the sequence and write it to output_path.

        Args:
            entries: Pages in output order
            output_path: Path for output file

        Returns:
            MergeResult with details of the operation

        Raises:
            MergeError: if composing fails
            OutputWriteError: if the file cannot be written
        """
        start_time = time.time()
        output_path = Path(output_path)
        safe_output = sanitize_path_for_log(output_path)
        logger.info(f"Starting merge of {len(entries)} page(s) to {safe_output}")

        writer = self._build_writer(entries)

        if self.normalize_metadata:
            writer.add_metadata({
                '/Producer': __app_name__,
                '/Creator': __app_name__,
                '/Title': output_path.stem,
            })

        # Write output atomically (to temp file, then rename)
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            temp_fd, temp_name = tempfile.mkstemp(suffix='.pdf')
            temp_path = Path(temp_name)
            try:
                with open(temp_fd, 'wb') as f:
                    writer.write(f)
                shutil.move(str(temp_path), str(output_path))
            except Exception:
                if temp_path.exists():
                    temp_path.unlink()
                raise
        except Exception as e:
            logger.error(f"Write error: {e}")
            raise OutputWriteError(f"Failed to write output: {e}", str(output_path))

        logger.info(f"Output written to {safe_output}")

        duration = time.time() - start_time
        sources = {Path(entry.file_path) for entry in entries}
        return MergeResult(
            success=True,
            output_path=output_path,
            source_count=len(sources),
            total_pages=len(entries),
            total_size_bytes=output_path.stat().st_size,
            duration_seconds=duration
        )

