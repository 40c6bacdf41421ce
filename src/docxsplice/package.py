from __future__ import annotations

import io
import logging
import zipfile
from collections.abc import Iterator, MutableMapping

from .oxml import CT_NS, PKG_REL_NS, make_element, serialize_xml

CONTENT_TYPES_PATH = "[Content_Types].xml"
PACKAGE_RELS_PATH = "_rels/.rels"
DOCUMENT_XML_PATH = "word/document.xml"
DOCUMENT_RELS_PATH = "word/_rels/document.xml.rels"

RELS_CONTENT_TYPE = "application/vnd.openxmlformats-package.relationships+xml"
DOCUMENT_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document.main+xml"
OFFICE_DOCUMENT_REL_TYPE = "http://schemas.openxmlformats.org/officeDocument/2006/relationships/officeDocument"

_logger = logging.getLogger(__name__)


class PartStore(MutableMapping[str, bytes]):
    """Archive path -> raw bytes for every part of a package, in archive order."""

    def __init__(self, parts: dict[str, bytes] | None = None) -> None:
        self._parts: dict[str, bytes] = dict(parts or {})

    def __getitem__(self, path: str) -> bytes:
        return self._parts[path]

    def __setitem__(self, path: str, content: bytes) -> None:
        self._parts[path] = bytes(content)

    def __delitem__(self, path: str) -> None:
        del self._parts[path]

    def __iter__(self) -> Iterator[str]:
        return iter(self._parts)

    def __len__(self) -> int:
        return len(self._parts)

    def __repr__(self) -> str:
        return f"PartStore({list(self._parts)!r})"


def _is_skipped_entry(path: str, content: bytes | None) -> bool:
    return path.endswith("/") or not content


def open_package(data: bytes) -> PartStore:
    """Read a ZIP container; directory and zero-length entries are dropped.

    A corrupt container raises ``zipfile.BadZipFile``.
    """
    parts = PartStore()
    with zipfile.ZipFile(io.BytesIO(data)) as z:
        for info in z.infolist():
            if info.is_dir():
                continue
            content = z.read(info)
            if _is_skipped_entry(info.filename, content):
                continue
            parts[info.filename] = content
    _logger.debug("Opened package with %d part(s)", len(parts))
    return parts


def build_package(parts: PartStore) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as z:
        for path, content in parts.items():
            if _is_skipped_entry(path, content):
                continue
            z.writestr(path, content)
    return buffer.getvalue()


def default_content_types() -> bytes:
    types = make_element(
        f"{{{CT_NS}}}Types",
        children=[
            make_element(f"{{{CT_NS}}}Default", {"Extension": "rels", "ContentType": RELS_CONTENT_TYPE}),
            make_element(f"{{{CT_NS}}}Default", {"Extension": "xml", "ContentType": "application/xml"}),
            make_element(
                f"{{{CT_NS}}}Override",
                {"PartName": f"/{DOCUMENT_XML_PATH}", "ContentType": DOCUMENT_CONTENT_TYPE},
            ),
        ],
        nsmap={None: CT_NS},
    )
    return serialize_xml(types)


def default_package_rels() -> bytes:
    rels = make_element(
        f"{{{PKG_REL_NS}}}Relationships",
        children=[
            make_element(
                f"{{{PKG_REL_NS}}}Relationship",
                {"Id": "rId1", "Type": OFFICE_DOCUMENT_REL_TYPE, "Target": DOCUMENT_XML_PATH},
            )
        ],
        nsmap={None: PKG_REL_NS},
    )
    return serialize_xml(rels)


def default_document_rels() -> bytes:
    return serialize_xml(make_element(f"{{{PKG_REL_NS}}}Relationships", nsmap={None: PKG_REL_NS}))


def ensure_default_parts(parts: PartStore) -> list[str]:
    """Add the structural parts a package needs to open; returns the paths that were created."""
    created: list[str] = []
    defaults = (
        (CONTENT_TYPES_PATH, default_content_types),
        (PACKAGE_RELS_PATH, default_package_rels),
        (DOCUMENT_RELS_PATH, default_document_rels),
    )
    for path, factory in defaults:
        if path not in parts:
            parts[path] = factory()
            created.append(path)
    if created:
        _logger.debug("Created default parts: %s", ", ".join(created))
    return created
