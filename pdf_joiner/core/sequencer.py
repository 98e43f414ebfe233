"""
Page sequencing for PDF Joiner.

Holds the selected documents and the user's current page arrangement across
all of them. Has no Qt dependencies; the thumbnail grid only calls into it.
"""
from typing import Iterable, List

from .models import DocumentRef, PageRef, SequenceEntry
from .sanitize import get_logger, sanitize_path_for_log


logger = get_logger()


def _index_of(sequence: List[PageRef], page_id: str) -> int:
    for index, page in enumerate(sequence):
        if page.id == page_id:
            return index
    raise KeyError(page_id)


def move_element(sequence: Iterable[PageRef], from_id: str, to_id: str) -> List[PageRef]:
    """
    Move one page onto the position of another.

    The moved page is taken out and reinserted at the target's original
    position, so it lands after the target when it started before it and
    before the target when it started after it. All other pages keep their
    relative order.

    Args:
        sequence: Current page order
        from_id: Id of the page being dragged
        to_id: Id of the page it was dropped on

    Returns:
        New list with the page moved (the input is not modified)

    Raises:
        KeyError: if either id is not in the sequence
    """
    result = list(sequence)
    if from_id == to_id:
        _index_of(result, from_id)
        return result

    from_index = _index_of(result, from_id)
    to_index = _index_of(result, to_id)

    moved = result.pop(from_index)
    result.insert(to_index, moved)
    return result


class PageSequencer:
    """
    Ordered documents plus the ordered pages drawn from them.

    Documents are index-addressed; every PageRef points at a document by its
    index, so removing a document renumbers the ones after it.
    """

    def __init__(self):
        self._documents: List[DocumentRef] = []
        self._page_counts: List[int] = []
        self._pages: List[PageRef] = []

    @property
    def documents(self) -> List[DocumentRef]:
        """Selected documents in selection order."""
        return list(self._documents)

    @property
    def pages(self) -> List[PageRef]:
        """Pages in visual order."""
        return list(self._pages)

    def __len__(self) -> int:
        return len(self._pages)

    def is_empty(self) -> bool:
        return not self._documents

    def page_count_for(self, document_index: int) -> int:
        """Number of pages contributed by a document."""
        return self._page_counts[document_index]

    def document_for(self, page: PageRef) -> DocumentRef:
        """Document a page belongs to."""
        return self._documents[page.document_index]

    def append(self, document: DocumentRef, page_count: int) -> List[PageRef]:
        """
        Add a newly selected document and all of its pages.

        Args:
            document: The selected file
            page_count: Number of pages in the file

        Returns:
            The PageRefs appended to the end of the sequence
        """
        if page_count < 0:
            raise ValueError(f"Invalid page count: {page_count}")

        document_index = len(self._documents)
        self._documents.append(document)
        self._page_counts.append(page_count)

        new_pages = [PageRef(document_index, page_index) for page_index in range(page_count)]
        self._pages.extend(new_pages)

        logger.info(
            f"Added {sanitize_path_for_log(document.file_path)} "
            f"as document {document_index + 1} with {page_count} page(s)"
        )
        return new_pages

    def remove_document(self, index: int) -> DocumentRef:
        """
        Remove a document and all of its pages.

        Surviving pages keep their current relative order; documents after
        the removed one move up by one index.

        Args:
            index: Position of the document in the selection

        Returns:
            The removed document

        Raises:
            IndexError: if index is out of range
        """
        if not 0 <= index < len(self._documents):
            raise IndexError(f"Document index out of range: {index}")

        removed = self._documents.pop(index)
        self._page_counts.pop(index)

        rebuilt: List[PageRef] = []
        for page in self._pages:
            if page.document_index == index:
                continue
            if page.document_index > index:
                page = PageRef(page.document_index - 1, page.page_index)
            rebuilt.append(page)
        self._pages = rebuilt

        logger.info(f"Removed document {index + 1}: {removed.file_name}")
        return removed

    def reorder(self, moved_id: str, target_id: str) -> None:
        """
        Move the page with moved_id onto the position of target_id.

        Raises:
            KeyError: if either id is unknown
        """
        self._pages = move_element(self._pages, moved_id, target_id)
        logger.debug(f"Moved page {moved_id} onto {target_id}")

    def clear(self) -> None:
        """Drop every document and page."""
        self._documents.clear()
        self._page_counts.clear()
        self._pages.clear()

    def entries(self) -> List[SequenceEntry]:
        """Pages in visual order as (source file, page index) for merging."""
        return [
            SequenceEntry(self._documents[page.document_index].file_path, page.page_index)
            for page in self._pages
        ]
