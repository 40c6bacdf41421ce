from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Union

from .document_xml import build_document_xml, parse_document_xml
from .errors import PageIndexError
from .merge import merge_into
from .models import MergeOptions, PageInfo, TemplateOptions
from .package import DOCUMENT_XML_PATH, PartStore, build_package, ensure_default_parts, open_package
from .pages import make_page_break_paragraph, removal_range, segment_pages
from .template import render_document

Source = Union["Document", str, "os.PathLike[str]", bytes, bytearray]

_logger = logging.getLogger(__name__)


class Document:
    """A .docx package edited at body-element level.

    Pages are delimited by explicit page breaks only; nothing here performs layout.
    Instances are not thread-safe.
    """

    def __init__(self) -> None:
        self.parts = PartStore()
        self.body_elements: list[Any] = []
        self.section_properties: Any | None = None
        self.namespace_declarations: dict[str, str] = {}
        self.root_attributes: dict[str, str] = {}
        self.dirty = False

    # --- construction -----------------------------------------------------

    @classmethod
    def create(cls) -> Document:
        doc = cls()
        doc.dirty = True
        return doc

    @classmethod
    def from_bytes(cls, data: bytes) -> Document:
        doc = cls()
        doc.parts = open_package(bytes(data))
        document_xml = doc.parts.get(DOCUMENT_XML_PATH)
        if document_xml:
            parsed = parse_document_xml(document_xml)
            doc.body_elements = parsed.body_elements
            doc.section_properties = parsed.section_properties
            doc.namespace_declarations = parsed.namespace_declarations
            doc.root_attributes = parsed.root_attributes
        else:
            _logger.debug("Package has no %s; opened as empty document", DOCUMENT_XML_PATH)
        return doc

    @classmethod
    def from_path(cls, path: str | os.PathLike[str]) -> Document:
        _logger.debug("Loading %s", path)
        return cls.from_bytes(Path(path).read_bytes())

    # --- saving -----------------------------------------------------------

    def to_bytes(self) -> bytes:
        self._update_parts()
        return build_package(self.parts)

    def save(self, path: str | os.PathLike[str]) -> None:
        out_path = Path(path)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_bytes(self.to_bytes())
        _logger.info("Saved %s (%d page(s))", out_path, self.page_count)

    def _update_parts(self) -> None:
        if not self.dirty and len(self.parts) > 0:
            return
        ensure_default_parts(self.parts)
        self.parts[DOCUMENT_XML_PATH] = build_document_xml(
            self.body_elements,
            self.section_properties,
            self.namespace_declarations,
            self.root_attributes,
        )

    # --- pages ------------------------------------------------------------

    def get_pages(self) -> list[PageInfo]:
        return segment_pages(self.body_elements)

    def get_page_count(self) -> int:
        return len(self.get_pages())

    @property
    def page_count(self) -> int:
        return self.get_page_count()

    def add_page_break(self) -> None:
        """Append a paragraph holding a page break to the end of the body."""
        self.dirty = True
        self.body_elements.append(make_page_break_paragraph())

    def remove_page(self, index: int) -> None:
        """Remove page ``index`` (0-based) and its content.

        Raises PageIndexError for an index outside [0, page_count); the document is left as is.
        """
        pages = self.get_pages()
        if index < 0 or index >= len(pages):
            raise PageIndexError(index, len(pages))

        self.dirty = True
        span = removal_range(pages, index)
        if span is None:
            return
        start, stop = span
        del self.body_elements[start:stop]
        _logger.debug("Removed page %d (body elements %d..%d)", index, start, stop - 1)

    # --- merge / render ---------------------------------------------------

    def merge(self, source: Source, options: MergeOptions | None = None, **kwargs: Any) -> None:
        """Append pages of ``source`` (a Document, a path or raw bytes) to this document.

        Keyword arguments are shorthand for MergeOptions fields.
        """
        if options is None:
            options = MergeOptions(**kwargs)
        elif kwargs:
            raise TypeError("Pass either options or keyword arguments, not both")

        source_doc = self._resolve_source(source)
        self.dirty = True
        merge_into(self, source_doc, options)

    def render(
        self,
        data: Mapping[str, Any],
        options: TemplateOptions | None = None,
        **kwargs: Any,
    ) -> int:
        """Substitute placeholders in the body and in header/footer parts.

        Returns the number of placeholders replaced (or removed).
        """
        if options is None:
            options = TemplateOptions(**kwargs)
        elif kwargs:
            raise TypeError("Pass either options or keyword arguments, not both")

        self.dirty = True
        count = render_document(self, data, options)
        _logger.info("Rendered %d placeholder(s)", count)
        return count

    @staticmethod
    def _resolve_source(source: Source) -> Document:
        if isinstance(source, Document):
            return source
        if isinstance(source, (bytes, bytearray)):
            return Document.from_bytes(bytes(source))
        if isinstance(source, (str, os.PathLike)):
            return Document.from_path(source)
        raise TypeError(f"Cannot merge from {type(source).__name__}")

    def __repr__(self) -> str:
        return f"<Document body_elements={len(self.body_elements)} parts={len(self.parts)} dirty={self.dirty}>"
