"""Thin helpers over lxml elements used as the document node model.

Nodes are plain lxml elements: children keep document order, attributes live in the element's
attribute map and text leaves (``w:t``, ``w:instrText``...) carry their value in ``.text``.
Comments and processing instructions are kept as lxml comment/PI nodes, so anything the helpers do
not touch round-trips unchanged.

Tag and attribute names may be given prefixed (``"w:p"``) or in Clark notation (``"{uri}p"``).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from copy import deepcopy
from typing import Any

from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from lxml import etree

W_NS = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
R_NS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
PKG_REL_NS = "http://schemas.openxmlformats.org/package/2006/relationships"
CT_NS = "http://schemas.openxmlformats.org/package/2006/content-types"
XML_NS = "http://www.w3.org/XML/1998/namespace"

NS = {"w": W_NS, "r": R_NS}

_PARSER = etree.XMLParser(
    remove_blank_text=False,
    remove_comments=False,
    remove_pis=False,
    strip_cdata=False,
    resolve_entities=False,
    huge_tree=True,
)


def clark(name: str) -> str:
    if name.startswith("{") or ":" not in name:
        return name
    return qn(name)


def local_name(tag: Any) -> str:
    if not isinstance(tag, str):
        return ""
    if "}" in tag:
        return tag.rsplit("}", 1)[1]
    if ":" in tag:
        return tag.split(":", 1)[1]
    return tag


def is_element(node: Any, tag: str) -> bool:
    return isinstance(node.tag, str) and node.tag == clark(tag)


def parse_xml(data: bytes | str) -> Any:
    """Parse a part into its root element; malformed input raises ``etree.XMLSyntaxError``."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return etree.fromstring(data, parser=_PARSER)


def serialize_xml(root: Any) -> bytes:
    """Serialize the whole tree of ``root`` with an XML declaration and no pretty-printing."""
    return etree.tostring(root.getroottree(), xml_declaration=True, encoding="UTF-8", standalone=True)


def find_first(parent: Any, tag: str) -> Any | None:
    return parent.find(clark(tag))


def find_all(parent: Any, tag: str) -> list[Any]:
    return parent.findall(clark(tag))


def get_attr(node: Any, name: str) -> str | None:
    return node.get(clark(name))


def set_attr(node: Any, name: str, value: str) -> None:
    node.set(clark(name), value)


def get_text(node: Any, tag: str) -> str | None:
    """Return the text of the first ``tag`` child of ``node``."""
    child = find_first(node, tag)
    if child is None:
        return None
    return child.text


def clone(node: Any) -> Any:
    return deepcopy(node)


def clone_all(nodes: Iterable[Any]) -> list[Any]:
    return [deepcopy(node) for node in nodes]


def make_element(
    tag: str,
    attrs: Mapping[str, str] | None = None,
    children: Sequence[Any] | None = None,
    *,
    nsmap: Mapping[str | None, str] | None = None,
) -> Any:
    """Build an element; no attribute is written when ``attrs`` is empty."""
    if nsmap is None and not tag.startswith("{") and ":" in tag:
        element = OxmlElement(tag)
    else:
        element = etree.Element(clark(tag), nsmap=dict(nsmap) if nsmap else None)
    for name, value in (attrs or {}).items():
        element.set(clark(name), str(value))
    for child in children or ():
        element.append(child)
    return element
