"""Conversion between ``word/document.xml`` bytes and the body element list."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from docx.oxml.ns import qn
from lxml import etree

from .oxml import NS, clone, clone_all, find_first, is_element, make_element, parse_xml, serialize_xml

W_DOCUMENT = qn("w:document")
W_BODY = qn("w:body")
W_SECTPR = qn("w:sectPr")

XMLNS = "xmlns"

# Letter, 1 inch margins (twips).
DEFAULT_PAGE_SIZE = {"w:w": "12240", "w:h": "15840"}
DEFAULT_PAGE_MARGINS = {
    "w:top": "1440",
    "w:right": "1440",
    "w:bottom": "1440",
    "w:left": "1440",
    "w:header": "720",
    "w:footer": "720",
    "w:gutter": "0",
}

_logger = logging.getLogger(__name__)


@dataclass
class ParsedDocument:
    body_elements: list[Any] = field(default_factory=list)
    section_properties: Any | None = None
    # "xmlns:w" -> uri, "xmlns" for a default namespace
    namespace_declarations: dict[str, str] = field(default_factory=dict)
    # Clark name -> value for the other root attributes (mc:Ignorable...)
    root_attributes: dict[str, str] = field(default_factory=dict)


def declaration_key(prefix: str | None) -> str:
    return XMLNS if prefix is None else f"{XMLNS}:{prefix}"


def declarations_to_nsmap(declarations: Mapping[str, str]) -> dict[str | None, str]:
    nsmap: dict[str | None, str] = {}
    for key, uri in declarations.items():
        if key == XMLNS:
            nsmap[None] = uri
        elif key.startswith(f"{XMLNS}:"):
            nsmap[key[len(XMLNS) + 1 :]] = uri
    return nsmap


def default_namespace_declarations() -> dict[str, str]:
    return {declaration_key(prefix): uri for prefix, uri in NS.items()}


def default_section_properties() -> Any:
    return make_element(
        "w:sectPr",
        children=[
            make_element("w:pgSz", DEFAULT_PAGE_SIZE),
            make_element("w:pgMar", DEFAULT_PAGE_MARGINS),
        ],
    )


def parse_document_xml(data: bytes | str) -> ParsedDocument:
    """Split a main document part into body elements, sectPr and root metadata.

    A part without ``w:document`` or ``w:body`` gives an empty result.
    """
    result = ParsedDocument()
    root = parse_xml(data)
    if not is_element(root, "w:document"):
        _logger.debug("Document part has no w:document root (found %r)", root.tag)
        return result

    for prefix, uri in root.nsmap.items():
        result.namespace_declarations[declaration_key(prefix)] = uri
    result.root_attributes = dict(root.attrib)

    body = find_first(root, "w:body")
    if body is None:
        _logger.debug("Document part has no w:body")
        return result

    for child in body:
        if child.tag == W_SECTPR:
            if result.section_properties is None:
                result.section_properties = child
            continue
        result.body_elements.append(child)
    return result


def build_document_xml(
    body_elements: Sequence[Any],
    section_properties: Any | None,
    namespace_declarations: Mapping[str, str],
    root_attributes: Mapping[str, str] | None = None,
) -> bytes:
    """Serialize the main document part. Inputs are copied, never re-parented."""
    sect_pr = clone(section_properties) if section_properties is not None else default_section_properties()
    declarations = dict(namespace_declarations) or default_namespace_declarations()

    root = etree.Element(W_DOCUMENT, nsmap=declarations_to_nsmap(declarations))
    for name, value in (root_attributes or {}).items():
        root.set(name, value)
    body = etree.SubElement(root, W_BODY)
    for element in clone_all(body_elements):
        body.append(element)
    body.append(sect_pr)
    return serialize_xml(root)
