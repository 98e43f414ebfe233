"""Shared fixtures for PDF Joiner tests.

PDFs are generated on the fly with pypdf. Every page is blank and gets a
distinct width so tests can tell pages apart after merging. Ghostscript and
the network are never touched: subprocess.run is replaced by FakeRun.
"""

import subprocess
from pathlib import Path
from typing import Callable, List, Optional

import pytest
from pypdf import PdfWriter

PAGE_HEIGHT = 200


@pytest.fixture
def make_pdf(tmp_path):
    """Factory writing a PDF with one blank page per given width."""

    def _make(name: str, widths: List[int]) -> Path:
        writer = PdfWriter()
        for width in widths:
            writer.add_blank_page(width=width, height=PAGE_HEIGHT)
        path = tmp_path / name
        with open(path, "wb") as f:
            writer.write(f)
        return path

    return _make


def _decode(output, kwargs):
    if not isinstance(output, bytes):
        return output
    return output.decode(kwargs.get("encoding") or "utf-8", kwargs.get("errors") or "strict")


class FakeRun:
    """Stand-in for subprocess.run that records every command.

    The handler receives the argument list and returns
    (returncode, stdout, stderr) or raises to simulate a spawn failure.
    Byte output is decoded with the caller's encoding and errors arguments,
    so undecodable tool output fails here as it would in subprocess.run.
    """

    def __init__(self, handler: Optional[Callable] = None):
        self.calls: List[List[str]] = []
        self.kwargs: List[dict] = []
        self.handler = handler or (lambda args: (0, "10.00.0\n", ""))

    def __call__(self, args, **kwargs):
        self.calls.append(list(args))
        self.kwargs.append(kwargs)
        returncode, stdout, stderr = self.handler(list(args))
        return subprocess.CompletedProcess(
            args, returncode, _decode(stdout, kwargs), _decode(stderr, kwargs)
        )


@pytest.fixture
def fake_run(monkeypatch):
    """Install a FakeRun; tests set .handler to control results."""
    runner = FakeRun()
    monkeypatch.setattr(subprocess, "run", runner)
    return runner


class FakeLocator:
    """Locator returning a fixed sequence of results, then the last one forever."""

    def __init__(self, *results):
        self.results = list(results) or [(False, None)]
        self.calls = 0

    def locate(self):
        index = min(self.calls, len(self.results) - 1)
        self.calls += 1
        return self.results[index]


@pytest.fixture
def found_locator():
    return FakeLocator((True, "gs"))


@pytest.fixture
def missing_locator():
    return FakeLocator((False, None))


def output_file_arg(args: List[str]) -> Path:
    """Path given to Ghostscript with -sOutputFile=."""
    for arg in args:
        if arg.startswith("-sOutputFile="):
            return Path(arg.split("=", 1)[1])
    raise AssertionError(f"No -sOutputFile in {args}")
