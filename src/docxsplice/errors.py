from __future__ import annotations


class DocxspliceError(Exception):
    """Base class for errors raised by docxsplice."""


class PageIndexError(DocxspliceError, IndexError):
    def __init__(self, index: int, page_count: int) -> None:
        self.index = index
        self.page_count = page_count
        super().__init__(f"Page index out of bounds: {index}. Document has {page_count} page(s).")
