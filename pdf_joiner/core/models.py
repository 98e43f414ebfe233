"""
Data models for PDF Joiner.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .utils import format_size


@dataclass(frozen=True)
class DocumentRef:
    """A selected source PDF."""

    file_path: Path
    file_name: str = ""

    def __post_init__(self):
        """Initialize computed fields."""
        if not self.file_name:
            object.__setattr__(self, "file_name", self.file_path.name)

    @classmethod
    def from_path(cls, path) -> "DocumentRef":
        """Create a reference from a user-selected path, made absolute."""
        return cls(file_path=Path(path).resolve())


@dataclass(frozen=True)
class PageRef:
    """One page of one selected document, by position in the document list."""

    document_index: int
    page_index: int

    @property
    def id(self) -> str:
        """Unique identifier within a page sequence."""
        return f"{self.document_index}-{self.page_index}"

    @property
    def page_number(self) -> int:
        """1-based page number for display and Ghostscript."""
        return self.page_index + 1


@dataclass(frozen=True)
class SequenceEntry:
    """A page to copy into the merged output."""

    file_path: Path
    page_index: int


@dataclass
class ThumbnailResult:
    """Rendered preview of a single page."""

    file_name: str
    page_index: int
    image_url: str
    is_placeholder: bool = False
    reason: str = ""


@dataclass
class GhostscriptStatus:
    """Snapshot of the Ghostscript service state."""

    available: bool = False
    path: Optional[str] = None
    installing: bool = False
    declined: bool = False
    can_install: bool = False

    @property
    def status_display(self) -> str:
        """Get human-readable status."""
        if self.available:
            return "Installed"
        if self.installing:
            return "Installing..."
        return "Not installed"


@dataclass
class MergeResult:
    """Result of a merge operation."""

    success: bool
    output_path: Optional[Path] = None
    source_count: int = 0
    total_pages: int = 0
    total_size_bytes: int = 0
    error_message: str = ""
    duration_seconds: float = 0.0

    @property
    def summary(self) -> str:
        """Get summary text for display."""
        if self.success:
            return (
                f"Merged {self.total_pages} page(s) from {self.source_count} file(s)\n"
                f"Output size: {format_size(self.total_size_bytes)}\n"
                f"Duration: {self.duration_seconds:.1f}s"
            )
        return f"Merge failed: {self.error_message}"


@dataclass
class ConversionResult:
    """Result of a PDF/A conversion."""

    input_path: Path
    output_path: Path
    input_size_bytes: int = 0
    output_size_bytes: int = 0
    duration_seconds: float = 0.0
    pdfa_markers_found: bool = False
    warnings: list = field(default_factory=list)

    @property
    def size_change_percent(self) -> float:
        """Size reduction relative to the input (negative when it grew)."""
        if self.input_size_bytes == 0:
            return 0.0
        return (self.input_size_bytes - self.output_size_bytes) / self.input_size_bytes * 100

    @property
    def summary(self) -> str:
        """Get summary text for display."""
        text = (
            f"Saved to: {self.output_path}\n"
            f"Size: {format_size(self.input_size_bytes)} -> "
            f"{format_size(self.output_size_bytes)} "
            f"({self.size_change_percent:.1f}% reduction)"
        )
        if self.warnings:
            text += "\n" + "\n".join(self.warnings)
        return text
