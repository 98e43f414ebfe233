"""
Typed command dispatch between the UI and the core services.

Each Command takes at most one payload dataclass and produces a Response.
Application errors never escape handle(); they come back as a failed
Response with their ErrorCode so the caller can decide how to present them.
"""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .composer import PdfComposer
from .converter import PdfaConverter
from .errors import ErrorCode, PDFJoinerError
from .ghostscript import GhostscriptService
from .models import SequenceEntry
from .pdf_probe import get_page_count
from .sanitize import get_logger, safe_log_dict
from .thumbnails import ThumbnailRenderer


logger = get_logger()


class Command(Enum):
    CHECK_GHOSTSCRIPT = "check_ghostscript"
    GHOSTSCRIPT_STATUS = "ghostscript_status"
    INSTALL_GHOSTSCRIPT = "install_ghostscript"
    DECLINE_INSTALL = "decline_install"
    RESET_PREFERENCE = "reset_preference"
    GET_PAGE_COUNT = "get_page_count"
    GENERATE_THUMBNAIL = "generate_thumbnail"
    MERGE_SEQUENCE = "merge_sequence"
    CONVERT_TO_PDFA = "convert_to_pdfa"


@dataclass
class PageCountRequest:
    file_path: Path


@dataclass
class ThumbnailRequest:
    file_path: Path
    page_number: int


@dataclass
class MergeRequest:
    output_path: Path
    entries: List[SequenceEntry] = field(default_factory=list)


@dataclass
class ConvertRequest:
    input_path: Path
    output_path: Path


@dataclass
class InstallRequest:
    on_progress: Optional[Callable[[float], None]] = None


@dataclass
class Response:
    """Outcome of a command."""

    ok: bool
    value: Any = None
    error_code: Optional[ErrorCode] = None
    error_message: str = ""
    details: str = ""

    @classmethod
    def success(cls, value: Any = None) -> "Response":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: PDFJoinerError) -> "Response":
        return cls(
            ok=False,
            error_code=error.code,
            error_message=error.message,
            details=getattr(error, "details", "")
        )


# Payload type expected by each command; None means no payload
PAYLOAD_TYPES: Dict[Command, Optional[type]] = {
    Command.CHECK_GHOSTSCRIPT: None,
    Command.GHOSTSCRIPT_STATUS: None,
    Command.INSTALL_GHOSTSCRIPT: InstallRequest,
    Command.DECLINE_INSTALL: None,
    Command.RESET_PREFERENCE: None,
    Command.GET_PAGE_COUNT: PageCountRequest,
    Command.GENERATE_THUMBNAIL: ThumbnailRequest,
    Command.MERGE_SEQUENCE: MergeRequest,
    Command.CONVERT_TO_PDFA: ConvertRequest,
}


class ToolOrchestrator:
    """
    Routes commands to the Ghostscript service, renderer, composer and converter.

    Args:
        service: Shared Ghostscript service
        composer: Page composer (a default one is created if omitted)
        converter: PDF/A converter (built on service if omitted)
        renderer: Thumbnail renderer (built on service if omitted)
    """

    def __init__(
        self,
        service: GhostscriptService,
        composer: Optional[PdfComposer] = None,
        converter: Optional[PdfaConverter] = None,
        renderer: Optional[ThumbnailRenderer] = None
    ):
        self.service = service
        self.composer = composer or PdfComposer()
        self.converter = converter or PdfaConverter(service)
        self.renderer = renderer or ThumbnailRenderer(service)

        self._handlers: Dict[Command, Callable[[Any], Any]] = {
            Command.CHECK_GHOSTSCRIPT: lambda _: self.service.check(),
            Command.GHOSTSCRIPT_STATUS: lambda _: self.service.status(),
            Command.INSTALL_GHOSTSCRIPT: lambda p: self.service.provision(p.on_progress),
            Command.DECLINE_INSTALL: lambda _: self.service.decline_installation(),
            Command.RESET_PREFERENCE: lambda _: self.service.reset_preference(),
            Command.GET_PAGE_COUNT: lambda p: get_page_count(p.file_path),
            Command.GENERATE_THUMBNAIL: lambda p: self.renderer.render(p.file_path, p.page_number),
            Command.MERGE_SEQUENCE: lambda p: self.composer.write(p.entries, p.output_path),
            Command.CONVERT_TO_PDFA: lambda p: self.converter.convert(p.input_path, p.output_path),
        }

    def handle(self, command: Command, payload: Any = None) -> Response:
        """
        Run a command.

        Raises:
            TypeError: if the payload does not match the command
        """
        expected = PAYLOAD_TYPES[command]
        if expected is None:
            if payload is not None:
                raise TypeError(f"{command.name} takes no payload")
        elif payload is None and expected is InstallRequest:
            payload = InstallRequest()
        elif not isinstance(payload, expected):
            raise TypeError(
                f"{command.name} expects {expected.__name__}, got {type(payload).__name__}"
            )

        if payload is not None:
            logger.debug(
                f"Command {command.name}: "
                f"{safe_log_dict(vars(payload))}"
            )
        else:
            logger.debug(f"Command {command.name}")

        try:
            return Response.success(self._handlers[command](payload))
        except PDFJoinerError as e:
            logger.error(f"Command {command.name} failed: {e}")
            return Response.failure(e)
