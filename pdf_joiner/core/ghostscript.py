"""
Ghostscript discovery for PDF Joiner.

GhostscriptLocator finds a working executable. GhostscriptService owns the
resolved path, the install-in-progress state and the user's "don't ask
again" answer for the lifetime of the application; one instance is created
at start-up and handed to everything that needs the tool.
"""
import os
import subprocess
import sys
from typing import Callable, List, Optional, Sequence, Tuple

from .errors import InstallError, PDFJoinerError, ToolNotFoundError
from .models import GhostscriptStatus
from .sanitize import get_logger, sanitize_path_for_log
from .utils import subprocess_kwargs


logger = get_logger()


DEFAULT_COMMAND = "gs"

WINDOWS_CANDIDATES = [
    "C:\\Program Files\\gs\\gs10.00.0\\bin\\gswin64c.exe",
    "C:\\Program Files\\gs\\gs10.00.0\\bin\\gswin32c.exe",
    "C:\\Program Files (x86)\\gs\\gs10.00.0\\bin\\gswin32c.exe",
    "C:\\Program Files\\gs\\gs9.56.1\\bin\\gswin64c.exe",
    "C:\\Program Files\\gs\\gs9.56.1\\bin\\gswin32c.exe",
    "C:\\Program Files (x86)\\gs\\gs9.56.1\\bin\\gswin32c.exe",
    "C:\\Program Files\\gs\\gs10.05.1\\bin\\gswin64c.exe",
    "C:\\Program Files\\gs\\gs10.05.1\\bin\\gswin32c.exe",
    "C:\\Program Files (x86)\\gs\\gs10.05.1\\bin\\gswin32c.exe",
]

MACOS_CANDIDATES = [
    "/opt/homebrew/bin/gs",
    "/usr/local/bin/gs",
    "/opt/local/bin/gs",
]

LINUX_CANDIDATES = [
    "/usr/bin/gs",
    "/usr/local/bin/gs",
    "/snap/bin/gs",
]


def default_candidates(platform: Optional[str] = None) -> List[str]:
    """Well-known Ghostscript locations for the host operating system."""
    platform = platform or sys.platform
    if platform.startswith('win'):
        return list(WINDOWS_CANDIDATES)
    if platform == 'darwin':
        return list(MACOS_CANDIDATES)
    return list(LINUX_CANDIDATES)


def probe_executable(command: str) -> bool:
    """
    Run `<command> --version` and report whether it exited successfully.

    Args:
        command: Executable name or path

    Returns:
        True if the process exited with code 0
    """
    try:
        completed = subprocess.run(
            [command, "--version"],
            capture_output=True,
            encoding="utf-8",
            errors="replace",
            timeout=15,
            **subprocess_kwargs()
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug(f"Ghostscript probe failed for {sanitize_path_for_log(command)}: {e}")
        return False

    if completed.returncode != 0:
        logger.debug(
            f"Ghostscript probe for {sanitize_path_for_log(command)} "
            f"exited with {completed.returncode}"
        )
        return False

    logger.info(
        f"Ghostscript found at {sanitize_path_for_log(command)}, "
        f"version {completed.stdout.strip()}"
    )
    return True


class GhostscriptLocator:
    """
    Finds a working Ghostscript executable.

    The default command is tried first; only if it fails are the candidate
    paths checked, in order. Nothing is cached here.
    """

    def __init__(
        self,
        default_command: str = DEFAULT_COMMAND,
        candidates: Optional[Sequence[str]] = None,
        preferred_path: str = ""
    ):
        self.default_command = default_command
        candidate_list = list(candidates) if candidates is not None else default_candidates()
        if preferred_path:
            candidate_list.insert(0, preferred_path)
        # Keep the first occurrence of each path
        self.candidates = list(dict.fromkeys(candidate_list))

    def locate(self) -> Tuple[bool, Optional[str]]:
        """
        Look for Ghostscript.

        Returns:
            Tuple of (found, path); path is None when not found
        """
        if probe_executable(self.default_command):
            return True, self.default_command

        for candidate in self.candidates:
            if not os.path.exists(candidate):
                continue
            if probe_executable(candidate):
                return True, candidate

        logger.info(
            f"Ghostscript not found via '{self.default_command}' "
            f"or {len(self.candidates)} known location(s)"
        )
        return False, None


ProgressCallback = Callable[[float], None]


class GhostscriptService:
    """
    Owner of the resolved Ghostscript handle.

    The handle is set once on the first successful locate or install and is
    kept for the rest of the process. The provisioner is optional; without
    one, installation is unavailable.
    """

    def __init__(
        self,
        locator: Optional[GhostscriptLocator] = None,
        provisioner=None,
        auto_install: bool = True
    ):
        self.locator = locator or GhostscriptLocator()
        self.provisioner = provisioner
        self.auto_install = auto_install
        self._path: Optional[str] = None
        self._declined = False

    @property
    def path(self) -> Optional[str]:
        """Resolved executable, or None if not (yet) found."""
        return self._path

    @property
    def is_available(self) -> bool:
        return self._path is not None

    @property
    def is_installing(self) -> bool:
        return self.provisioner is not None and self.provisioner.is_running

    @property
    def can_install(self) -> bool:
        return self.provisioner is not None and self.provisioner.supported

    @property
    def declined(self) -> bool:
        return self._declined

    def check(self) -> bool:
        """
        Return True if Ghostscript is usable, locating it if needed.

        A failed search is not remembered; the next call searches again.
        """
        if self._path:
            return True

        found, path = self.locator.locate()
        if found:
            self._path = path
        return found

    def require_path(self) -> str:
        """
        Get the executable, re-probing once if it has not been found yet.

        Raises:
            ToolNotFoundError: if Ghostscript cannot be located
        """
        if not self.check():
            raise ToolNotFoundError("Ghostscript not available")
        return self._path

    def ensure_available(self, on_progress: Optional[ProgressCallback] = None) -> bool:
        """
        Make Ghostscript available, installing it automatically if allowed.

        Automatic installation is skipped while another install is running,
        after the user declined it, when disabled in settings, and on
        platforms without an installer.

        Returns:
            True if Ghostscript is usable afterwards
        """
        if self._path:
            return True

        if self.is_installing or self._declined:
            return False

        if self.check():
            return True

        if not self.auto_install or not self.can_install:
            return False

        try:
            self.provision(on_progress)
        except PDFJoinerError as e:
            logger.error(f"Failed to install Ghostscript: {e}")
            return False
        return True

    def provision(self, on_progress: Optional[ProgressCallback] = None) -> str:
        """
        Download and install Ghostscript on explicit user request.

        Ignores the "don't ask again" answer.

        Returns:
            Path of the installed executable

        Raises:
            InstallError: if no installer is available or installation fails
            ProvisioningBusyError: if an installation is already running
            DownloadError: if the installer cannot be downloaded
        """
        if self.provisioner is None:
            raise InstallError("Automatic Ghostscript installation is not available")

        path = self.provisioner.provision(on_progress)
        self._path = path
        return path

    def decline_installation(self) -> None:
        """Stop offering automatic installation for the rest of this session."""
        self._declined = True
        logger.info("Ghostscript installation declined by user")

    def reset_preference(self) -> None:
        """Offer automatic installation again."""
        self._declined = False
        logger.info("Ghostscript installation preference reset")

    def status(self) -> GhostscriptStatus:
        """Snapshot of the current state."""
        return GhostscriptStatus(
            available=self.is_available,
            path=self._path,
            installing=self.is_installing,
            declined=self._declined,
            can_install=self.can_install
        )
