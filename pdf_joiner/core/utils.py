"""
Utility functions for PDF Joiner.
"""
import platform
import re
import subprocess
import sys
from pathlib import Path
from typing import Any, Dict, Optional


# Windows process creation flag that keeps console tools from flashing a window
CREATE_NO_WINDOW = 0x08000000


def subprocess_kwargs() -> Dict[str, Any]:
    """Extra keyword arguments for subprocess.run on the current platform."""
    if sys.platform.startswith('win'):
        return {'creationflags': CREATE_NO_WINDOW}
    return {}


def is_64bit_machine(machine: Optional[str] = None) -> bool:
    """
    Check whether the host CPU architecture is 64-bit.

    Args:
        machine: Machine string to test (defaults to platform.machine())

    Returns:
        True for x86-64 and ARM64 hosts
    """
    if machine is None:
        machine = platform.machine()
    return machine.lower() in ('amd64', 'x86_64', 'x64', 'arm64', 'aarch64')


def sanitize_filename(filename: str) -> str:
    """
    Sanitize a filename by removing invalid characters.

    Args:
        filename: Original filename

    Returns:
        Sanitized filename safe for Windows/Unix
    """
    # Remove or replace invalid characters
    invalid_chars = r'[<>:"/\\|?*]'
    sanitized = re.sub(invalid_chars, '_', filename)

    # Remove leading/trailing spaces and dots
    sanitized = sanitized.strip(' .')

    # Ensure not empty
    if not sanitized:
        sanitized = "output.pdf"

    return sanitized


def suggest_output_path(directory: str, filename: str) -> str:
    """
    Build the default path offered by a save dialog.

    Args:
        directory: Last used save directory (may be empty)
        filename: Suggested file name

    Returns:
        Path string for the dialog
    """
    filename = sanitize_filename(filename)
    if not filename.lower().endswith('.pdf'):
        filename += '.pdf'
    if directory and Path(directory).is_dir():
        return str(Path(directory) / filename)
    return filename


def format_size(size_bytes: int) -> str:
    """Get human-readable file size."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    return f"{size_bytes / (1024 * 1024):.2f} MB"


def is_valid_pdf_extension(file_path: Path) -> bool:
    """Check if file has a PDF extension."""
    return file_path.suffix.lower() == '.pdf'


def file_size(file_path: Path) -> int:
    """Size of a file in bytes, 0 when it cannot be read."""
    try:
        return file_path.stat().st_size
    except OSError:
        return 0
