"""Tests for composing page sequences into a single PDF."""

import io

import pytest
from pypdf import PdfReader

from pdf_joiner.core import composer as composer_module
from pdf_joiner.core.composer import PdfComposer
from pdf_joiner.core.errors import ErrorCode, MergeError, OutputWriteError
from pdf_joiner.core.models import DocumentRef, SequenceEntry
from pdf_joiner.core.sequencer import PageSequencer


def widths_of(reader: PdfReader):
    return [int(float(page.mediabox.width)) for page in reader.pages]


@pytest.fixture
def sources(make_pdf):
    return make_pdf("a.pdf", [100, 110, 120]), make_pdf("b.pdf", [200, 210])


class TestCompose:
    """Tests for PdfComposer.compose."""

    def test_pages_in_sequence_order(self, sources):
        a, b = sources
        sequencer = PageSequencer()
        sequencer.append(DocumentRef(a), 3)
        sequencer.append(DocumentRef(b), 2)
        sequencer.reorder("1-0", "0-0")

        data = PdfComposer().compose(sequencer.entries())

        reader = PdfReader(io.BytesIO(data))
        assert widths_of(reader) == [200, 100, 110, 120, 210]

    def test_page_count_matches_sequence(self, sources):
        a, b = sources
        entries = [SequenceEntry(b, 1), SequenceEntry(a, 2), SequenceEntry(a, 2)]
        reader = PdfReader(io.BytesIO(PdfComposer().compose(entries)))
        assert widths_of(reader) == [210, 120, 120]

    def test_page_index_out_of_range(self, sources):
        a, _ = sources
        with pytest.raises(MergeError) as exc_info:
            PdfComposer().compose([SequenceEntry(a, 3)])
        assert exc_info.value.code == ErrorCode.MERGE_FAILED
        assert exc_info.value.file_path == str(a)

    def test_negative_page_index(self, sources):
        a, _ = sources
        with pytest.raises(MergeError):
            PdfComposer().compose([SequenceEntry(a, -1)])

    def test_empty_sequence(self):
        with pytest.raises(MergeError):
            PdfComposer().compose([])

    def test_unreadable_source(self, tmp_path):
        broken = tmp_path / "broken.pdf"
        broken.write_bytes(b"%PDF-1.4\nthis is not really a pdf")
        with pytest.raises(MergeError) as exc_info:
            PdfComposer().compose([SequenceEntry(broken, 0)])
        assert exc_info.value.file_path == str(broken)

    def test_missing_source(self, tmp_path):
        with pytest.raises(MergeError):
            PdfComposer().compose([SequenceEntry(tmp_path / "gone.pdf", 0)])

    def test_each_source_parsed_once(self, sources, monkeypatch):
        a, b = sources
        opened = []
        real_open_reader = composer_module.open_reader

        def counting_open_reader(path):
            opened.append(path)
            return real_open_reader(path)

        monkeypatch.setattr(composer_module, "open_reader", counting_open_reader)
        entries = [SequenceEntry(a, 0), SequenceEntry(b, 0), SequenceEntry(a, 1),
                   SequenceEntry(b, 1), SequenceEntry(a, 2)]
        PdfComposer().compose(entries)

        assert sorted(p.name for p in opened) == ["a.pdf", "b.pdf"]


class TestWrite:
    """Tests for PdfComposer.write."""

    def test_writes_file_and_reports(self, sources, tmp_path):
        a, b = sources
        output = tmp_path / "out" / "merged.pdf"
        entries = [SequenceEntry(a, 0), SequenceEntry(b, 0)]

        result = PdfComposer().write(entries, output)

        assert result.success
        assert result.output_path == output
        assert result.total_pages == 2
        assert result.source_count == 2
        assert result.total_size_bytes == output.stat().st_size
        assert widths_of(PdfReader(output)) == [100, 200]

    def test_metadata_normalized(self, sources, tmp_path):
        a, _ = sources
        output = tmp_path / "report.pdf"
        PdfComposer().write([SequenceEntry(a, 0)], output)
        metadata = PdfReader(output).metadata
        assert metadata.title == "report"
        assert metadata.producer == "PDF Joiner"

    def test_unwritable_destination(self, sources, tmp_path):
        a, _ = sources
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        with pytest.raises(OutputWriteError):
            PdfComposer().write([SequenceEntry(a, 0)], blocker / "merged.pdf")

    def test_failed_compose_leaves_no_file(self, sources, tmp_path):
        a, _ = sources
        output = tmp_path / "merged.pdf"
        with pytest.raises(MergeError):
            PdfComposer().write([SequenceEntry(a, 9)], output)
        assert not output.exists()
