"""Tests for page sequencing and drag reordering."""

import random
from pathlib import Path

import pytest

from pdf_joiner.core.models import DocumentRef, PageRef
from pdf_joiner.core.sequencer import PageSequencer, move_element


def ids(pages):
    return [page.id for page in pages]


def doc(name: str) -> DocumentRef:
    return DocumentRef(Path("/data") / name)


@pytest.fixture
def a3_b2():
    """Document A with 3 pages followed by document B with 2 pages."""
    sequencer = PageSequencer()
    sequencer.append(doc("a.pdf"), 3)
    sequencer.append(doc("b.pdf"), 2)
    return sequencer


class TestMoveElement:
    """Tests for move_element."""

    def test_move_backward_lands_before_target(self):
        pages = [PageRef(0, 0), PageRef(0, 1), PageRef(0, 2), PageRef(1, 0), PageRef(1, 1)]
        result = move_element(pages, "1-0", "0-0")
        assert ids(result) == ["1-0", "0-0", "0-1", "0-2", "1-1"]

    def test_move_forward_lands_after_target(self):
        pages = [PageRef(0, 0), PageRef(0, 1), PageRef(0, 2)]
        result = move_element(pages, "0-0", "0-2")
        assert ids(result) == ["0-1", "0-2", "0-0"]

    def test_adjacent_forward_swaps(self):
        pages = [PageRef(0, 0), PageRef(0, 1), PageRef(0, 2)]
        result = move_element(pages, "0-0", "0-1")
        assert ids(result) == ["0-1", "0-0", "0-2"]

    def test_same_id_is_noop(self):
        pages = [PageRef(0, 0), PageRef(0, 1)]
        assert move_element(pages, "0-1", "0-1") == pages

    def test_input_not_modified(self):
        pages = [PageRef(0, 0), PageRef(0, 1), PageRef(0, 2)]
        move_element(pages, "0-2", "0-0")
        assert ids(pages) == ["0-0", "0-1", "0-2"]

    def test_unknown_moved_id(self):
        with pytest.raises(KeyError):
            move_element([PageRef(0, 0)], "9-9", "0-0")

    def test_unknown_target_id(self):
        with pytest.raises(KeyError):
            move_element([PageRef(0, 0)], "0-0", "9-9")

    def test_random_moves_are_permutations(self):
        rng = random.Random(1234)
        pages = [PageRef(d, p) for d in range(3) for p in range(4)]
        original = sorted(ids(pages))
        for _ in range(200):
            moved, target = rng.choice(pages), rng.choice(pages)
            pages = move_element(pages, moved.id, target.id)
            assert sorted(ids(pages)) == original


class TestPageSequencerAppend:
    """Tests for adding documents."""

    def test_pages_appended_in_order(self, a3_b2):
        assert ids(a3_b2.pages) == ["0-0", "0-1", "0-2", "1-0", "1-1"]

    def test_length_is_sum_of_page_counts(self, a3_b2):
        assert len(a3_b2) == 5
        assert a3_b2.page_count_for(0) == 3
        assert a3_b2.page_count_for(1) == 2

    def test_append_returns_new_pages(self):
        sequencer = PageSequencer()
        sequencer.append(doc("a.pdf"), 1)
        added = sequencer.append(doc("b.pdf"), 2)
        assert ids(added) == ["1-0", "1-1"]

    def test_same_file_twice_is_independent(self):
        sequencer = PageSequencer()
        sequencer.append(doc("a.pdf"), 2)
        sequencer.append(doc("a.pdf"), 2)
        assert len(sequencer.documents) == 2
        assert ids(sequencer.pages) == ["0-0", "0-1", "1-0", "1-1"]

    def test_zero_page_document(self):
        sequencer = PageSequencer()
        sequencer.append(doc("empty.pdf"), 0)
        assert len(sequencer) == 0
        assert not sequencer.is_empty()

    def test_negative_page_count_rejected(self):
        with pytest.raises(ValueError):
            PageSequencer().append(doc("a.pdf"), -1)


class TestPageSequencerReorder:
    """Tests for reorder."""

    def test_drag_b_first_page_onto_a_first_page(self, a3_b2):
        a3_b2.reorder("1-0", "0-0")
        assert ids(a3_b2.pages) == ["1-0", "0-0", "0-1", "0-2", "1-1"]

    def test_entries_follow_visual_order(self, a3_b2):
        a3_b2.reorder("1-0", "0-0")
        entries = a3_b2.entries()
        assert [(e.file_path.name, e.page_index) for e in entries] == [
            ("b.pdf", 0), ("a.pdf", 0), ("a.pdf", 1), ("a.pdf", 2), ("b.pdf", 1)
        ]

    def test_unknown_id_leaves_order(self, a3_b2):
        with pytest.raises(KeyError):
            a3_b2.reorder("5-0", "0-0")
        assert ids(a3_b2.pages) == ["0-0", "0-1", "0-2", "1-0", "1-1"]


class TestPageSequencerRemove:
    """Tests for remove_document."""

    def test_remove_first_renumbers_later_documents(self, a3_b2):
        removed = a3_b2.remove_document(0)
        assert removed.file_name == "a.pdf"
        assert ids(a3_b2.pages) == ["0-0", "0-1"]
        assert a3_b2.documents[0].file_name == "b.pdf"

    def test_survivors_keep_current_order(self):
        sequencer = PageSequencer()
        sequencer.append(doc("a.pdf"), 2)
        sequencer.append(doc("b.pdf"), 2)
        sequencer.append(doc("c.pdf"), 2)
        sequencer.reorder("2-1", "0-0")
        sequencer.reorder("0-1", "2-0")
        before = [(sequencer.document_for(p).file_name, p.page_index) for p in sequencer.pages]

        sequencer.remove_document(1)

        after = [(sequencer.document_for(p).file_name, p.page_index) for p in sequencer.pages]
        assert after == [entry for entry in before if entry[0] != "b.pdf"]
        assert len(sequencer) == 4

    def test_remove_out_of_range(self, a3_b2):
        with pytest.raises(IndexError):
            a3_b2.remove_document(2)
        with pytest.raises(IndexError):
            a3_b2.remove_document(-1)

    def test_clear(self, a3_b2):
        a3_b2.clear()
        assert a3_b2.is_empty()
        assert a3_b2.pages == []
        assert a3_b2.entries() == []
