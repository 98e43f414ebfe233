"""
Ghostscript installer download and silent installation (Windows).

The provisioner downloads the official Ghostscript installer for the host
architecture, runs it unattended and waits until the locator can see the
new executable. Only one provisioning run may be active at a time.
"""
import subprocess
import sys
import tempfile
import threading
import time
from pathlib import Path
from typing import Callable, List, Optional
from urllib.parse import urljoin

import requests

from .errors import DownloadError, ErrorCode, InstallError, ProvisioningBusyError
from .ghostscript import GhostscriptLocator
from .sanitize import get_logger, sanitize_path_for_log
from .settings import AppSettings, default_install_dir
from .utils import is_64bit_machine, subprocess_kwargs


logger = get_logger()


GHOSTSCRIPT_URLS = {
    "x64": "https://github.com/ArtifexSoftware/ghostpdl-downloads/releases/download/gs1000/gs1000w64.exe",
    "x86": "https://github.com/ArtifexSoftware/ghostpdl-downloads/releases/download/gs1000/gs1000w32.exe",
}

REDIRECT_STATUSES = (301, 302, 303, 307, 308)

CHUNK_SIZE = 64 * 1024

ProgressCallback = Callable[[float], None]


def installed_executables(install_dir: str) -> List[str]:
    """Console executables the installer puts under install_dir."""
    bin_dir = Path(install_dir) / "bin"
    return [str(bin_dir / "gswin64c.exe"), str(bin_dir / "gswin32c.exe")]


def installer_url(machine: Optional[str] = None) -> str:
    """Installer URL matching the host CPU architecture."""
    if is_64bit_machine(machine):
        return GHOSTSCRIPT_URLS["x64"]
    return GHOSTSCRIPT_URLS["x86"]


class GhostscriptProvisioner:
    """
    Downloads and silently installs Ghostscript.

    Args:
        locator: Used to verify the installation
        install_dir: Target directory passed to the installer
        max_redirects: Longest redirect chain followed before giving up
        download_timeout: Socket timeout for each HTTP request, in seconds
        verify_timeout: How long to keep looking for the installed executable
        poll_interval: Delay between verification attempts
        platform: Host platform (defaults to sys.platform)
        machine: Host CPU architecture (defaults to platform.machine())
        session_factory: Creates the HTTP session (requests.Session)
    """

    def __init__(
        self,
        locator: Optional[GhostscriptLocator] = None,
        install_dir: str = "",
        max_redirects: int = 10,
        download_timeout: float = 60.0,
        verify_timeout: float = 10.0,
        poll_interval: float = 1.0,
        platform: Optional[str] = None,
        machine: Optional[str] = None,
        session_factory: Callable[[], requests.Session] = requests.Session
    ):
        self.locator = locator or GhostscriptLocator()
        self.install_dir = install_dir or default_install_dir()
        self.max_redirects = max_redirects
        self.download_timeout = download_timeout
        self.verify_timeout = verify_timeout
        self.poll_interval = poll_interval
        self.platform = platform or sys.platform
        self.machine = machine
        self.session_factory = session_factory
        self._lock = threading.Lock()

    @classmethod
    def from_settings(
        cls,
        settings: AppSettings,
        locator: Optional[GhostscriptLocator] = None
    ) -> "GhostscriptProvisioner":
        """Build a provisioner configured from application settings."""
        return cls(
            locator=locator,
            install_dir=settings.install_dir,
            max_redirects=settings.max_redirects,
            download_timeout=settings.download_timeout,
            verify_timeout=settings.install_verify_timeout,
            poll_interval=settings.install_poll_interval
        )

    @property
    def supported(self) -> bool:
        """Silent installation is only available on Windows."""
        return self.platform.startswith('win')

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    def provision(self, on_progress: Optional[ProgressCallback] = None) -> str:
        """
        Download, install and verify Ghostscript.

        Args:
            on_progress: Called with download percentage (0-100) when the
                server reports a Content-Length

        Returns:
            Path of the detected executable

        Raises:
            ProvisioningBusyError: if another provisioning run is active
            DownloadError: if the installer cannot be downloaded
            InstallError: if installation fails or cannot be verified
        """
        if not self._lock.acquire(blocking=False):
            raise ProvisioningBusyError()

        try:
            if not self.supported:
                raise InstallError(
                    f"Automatic Ghostscript installation is not supported on {self.platform}"
                )

            url = installer_url(self.machine)
            destination = Path(tempfile.gettempdir()) / url.rsplit("/", 1)[-1]

            logger.info(f"Downloading Ghostscript installer from {url}")
            installer_path = self.download(url, destination, on_progress)
            try:
                self.install(installer_path)
            finally:
                try:
                    installer_path.unlink()
                except OSError as e:
                    logger.debug(f"Could not remove installer: {e}")

            return self.verify()
        finally:
            self._lock.release()

    def download(
        self,
        url: str,
        destination: Path,
        on_progress: Optional[ProgressCallback] = None
    ) -> Path:
        """
        Stream url to destination, following redirects.

        Raises:
            DownloadError: on network errors, bad status, or too many redirects
        """
        current_url = url
        try:
            with self.session_factory() as session:
                for _ in range(self.max_redirects + 1):
                    with session.get(
                        current_url,
                        stream=True,
                        allow_redirects=False,
                        timeout=self.download_timeout
                    ) as response:
                        if response.status_code in REDIRECT_STATUSES:
                            location = response.headers.get("Location")
                            if not location:
                                raise DownloadError(
                                    f"HTTP {response.status_code} redirect without a Location header"
                                )
                            current_url = urljoin(current_url, location)
                            logger.debug(f"Redirected to {current_url}")
                            continue

                        if response.status_code != 200:
                            raise DownloadError(
                                f"HTTP {response.status_code}: {response.reason}"
                            )

                        self._save_body(response, destination, on_progress)
                        return destination
        except requests.RequestException as e:
            raise DownloadError(f"Failed to download Ghostscript: {e}")

        raise DownloadError(f"Too many redirects (more than {self.max_redirects})")

    def _save_body(
        self,
        response,
        destination: Path,
        on_progress: Optional[ProgressCallback]
    ) -> None:
        try:
            total_size = int(response.headers.get("Content-Length") or 0)
        except ValueError:
            total_size = 0

        downloaded = 0
        try:
            with open(destination, "wb") as f:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if not chunk:
                        continue
                    f.write(chunk)
                    downloaded += len(chunk)
                    if total_size > 0 and on_progress:
                        on_progress(min(downloaded / total_size * 100, 100.0))
        except (OSError, requests.RequestException) as e:
            if destination.exists():
                destination.unlink()
            raise DownloadError(f"Failed to save installer: {e}")

        logger.info(
            f"Installer saved to {sanitize_path_for_log(destination)} ({downloaded:,} bytes)"
        )

    def install(self, installer_path: Path) -> None:
        """
        Run the NSIS installer silently into install_dir.

        Raises:
            InstallError: if the installer cannot run or exits non-zero
        """
        # NSIS requires /D to be last and unquoted
        command = [str(installer_path), "/S", f"/D={self.install_dir}"]
        logger.info(f"Running Ghostscript installer into {sanitize_path_for_log(self.install_dir)}")

        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                **subprocess_kwargs()
            )
        except OSError as e:
            raise InstallError(f"Failed to start the Ghostscript installer: {e}")

        if completed.returncode != 0:
            details = (completed.stderr or completed.stdout or "").strip()
            raise InstallError(
                f"Ghostscript installer exited with code {completed.returncode}"
                + (f": {details}" if details else "")
            )

    def verify(self) -> str:
        """
        Wait until the installed executable can be located.

        Raises:
            InstallError: if it is still not found after verify_timeout
        """
        deadline = time.monotonic() + self.verify_timeout
        while True:
            found, path = self.locator.locate()
            if found:
                logger.info(f"Ghostscript installed at {sanitize_path_for_log(path)}")
                return path
            if time.monotonic() >= deadline:
                raise InstallError(
                    "Ghostscript installation completed but the program was not found",
                    ErrorCode.INSTALL_NOT_VERIFIED
                )
            time.sleep(self.poll_interval)
