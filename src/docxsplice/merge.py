from __future__ import annotations

import logging
from collections.abc import Mapping, MutableMapping, Sequence
from typing import TYPE_CHECKING

from .models import MergeOptions, PageInfo
from .oxml import clone, clone_all
from .package import DOCUMENT_XML_PATH
from .pages import make_page_break_paragraph

if TYPE_CHECKING:
    from .document import Document

_logger = logging.getLogger(__name__)


def merge_first_wins(target: MutableMapping[str, str], source: Mapping[str, str]) -> list[str]:
    """Add keys missing from ``target``; existing entries are never overwritten."""
    added: list[str] = []
    for key, value in source.items():
        if key not in target:
            target[key] = value
            added.append(key)
    return added


def is_pristine(doc: Document) -> bool:
    """Never parsed from a package and never given body content."""
    return not doc.body_elements and len(doc.parts) == 0


def copy_document_structure(target: Document, source: Document) -> list[str]:
    """Seed an empty target with the source's sectPr and every part except the main document.

    Styles, numbering, fonts, headers/footers and their relationships come along verbatim.
    Returns the copied part paths.
    """
    if source.section_properties is not None and target.section_properties is None:
        target.section_properties = clone(source.section_properties)

    copied: list[str] = []
    for path, content in source.parts.items():
        if path == DOCUMENT_XML_PATH or path in target.parts:
            continue
        target.parts[path] = content
        copied.append(path)
    return copied


def select_pages(pages: Sequence[PageInfo], requested: Sequence[int] | None) -> list[PageInfo]:
    """Resolve requested 0-based indices in caller order, dropping unknown and repeated ones."""
    if requested is None:
        selected = list(pages)
    else:
        selected = []
        seen: set[int] = set()
        for idx in requested:
            if idx in seen:
                continue
            seen.add(idx)
            if 0 <= idx < len(pages):
                selected.append(pages[idx])
            else:
                _logger.debug("Skipping page %d: source has %d page(s)", idx, len(pages))
    return [page for page in selected if not page.is_empty]


def merge_into(target: Document, source: Document, options: MergeOptions) -> int:
    """Append clones of the selected source pages to ``target``; returns the element count added."""
    added_ns = merge_first_wins(target.namespace_declarations, source.namespace_declarations)
    merge_first_wins(target.root_attributes, source.root_attributes)
    if added_ns:
        _logger.debug("Adopted namespace declarations: %s", ", ".join(added_ns))

    if is_pristine(target):
        copied = copy_document_structure(target, source)
        _logger.debug("Seeded document structure with %d part(s)", len(copied))

    pages = select_pages(source.get_pages(), options.pages)
    if not pages:
        _logger.debug("Nothing to merge")
        return 0

    if options.add_page_break_before and target.body_elements:
        target.body_elements.append(make_page_break_paragraph())

    added = 0
    for page in pages:
        elements = source.body_elements[page.start_element : page.end_element + 1]
        target.body_elements.extend(clone_all(elements))
        added += page.element_count
    _logger.info("Merged %d page(s), %d body element(s)", len(pages), added)
    return added
