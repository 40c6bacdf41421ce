"""Placeholder substitution in the body and in header/footer parts.

Word splits text into runs on every formatting or editing boundary, so ``{name}`` may arrive as
``{na`` + ``me}``, and the halves may sit in a hyperlink, a tracked insertion or an inline content
control. Matching therefore runs on the joined text of every ``w:t`` owned by the paragraph. A
paragraph whose text changes is written back as one consolidated run: the first text run (and its
``w:rPr``) receives the whole text, the other ``w:t`` nodes are dropped, and runs left empty are
removed along with hyperlink/insertion wrappers that no longer hold a run. Formatting of the later
runs is lost for that paragraph. Breaks, tabs and drawings stay in place. Paragraphs inside text
boxes are rendered on their own, and placeholders that cross a paragraph boundary are not matched.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from docx.oxml.ns import qn

from .models import TemplateOptions
from .oxml import XML_NS, find_all, local_name, parse_xml, serialize_xml, set_attr
from .package import DOCUMENT_XML_PATH
from .rels import HEADER_FOOTER_KINDS, filter_by_kind, part_relationships

if TYPE_CHECKING:
    from .document import Document

W_P = qn("w:p")
W_R = qn("w:r")
W_T = qn("w:t")
XML_SPACE = f"{{{XML_NS}}}space"

# Inline containers that are dropped once their last run is gone.
_RUN_WRAPPERS = {"hyperlink", "ins", "smartTag"}

_MISSING = object()
_logger = logging.getLogger(__name__)


def lookup(data: Mapping[str, Any], key: str) -> Any:
    """Exact key first, then a dotted path through nested mappings ("customer.name")."""
    if key in data:
        return data[key]
    if "." not in key:
        return _MISSING
    current: Any = data
    for part in key.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return _MISSING
        current = current[part]
    return current


def to_text(value: Any, key: str, options: TemplateOptions) -> str:
    if options.transform is not None:
        return str(options.transform(value, key))
    if value is None:
        return ""
    return str(value)


def substitute_text(text: str, data: Mapping[str, Any], options: TemplateOptions) -> tuple[str, int]:
    """Replace every placeholder in ``text``; returns (new text, substitutions made)."""
    count = 0

    def _repl(m: Any) -> str:
        nonlocal count
        key = m.group(1)
        if key is None:
            return m.group(0)
        value = lookup(data, key)
        if value is _MISSING:
            if options.remove_missing:
                count += 1
                return ""
            return m.group(0)
        count += 1
        return to_text(value, key, options)

    return options.regex.sub(_repl, text), count


def _owning_paragraph(node: Any) -> Any | None:
    return next(node.iterancestors(W_P), None)


def _text_nodes(paragraph: Any) -> list[Any]:
    """``w:t`` leaves of runs owned by ``paragraph``, in document order.

    Text of a text box nested in the paragraph belongs to the text box's own ``w:p``.
    """
    return [
        t
        for t in paragraph.iter(W_T)
        if t.getparent().tag == W_R and _owning_paragraph(t) is paragraph
    ]


def _is_empty_wrapper(element: Any) -> bool:
    if local_name(element.tag) not in _RUN_WRAPPERS:
        return False
    return all(local_name(child.tag).endswith("Pr") for child in element if isinstance(child.tag, str))


def _remove_empty_run(paragraph: Any, run: Any) -> None:
    parent = run.getparent()
    parent.remove(run)
    while parent is not paragraph and _is_empty_wrapper(parent):
        grandparent = parent.getparent()
        grandparent.remove(parent)
        parent = grandparent


def _consolidate(paragraph: Any, text_nodes: list[Any], text: str) -> None:
    first = text_nodes[0]
    first.text = text
    set_attr(first, XML_SPACE, "preserve")

    touched_runs: list[Any] = []
    for t in text_nodes[1:]:
        run = t.getparent()
        run.remove(t)
        if run not in touched_runs:
            touched_runs.append(run)

    first_run = first.getparent()
    for run in touched_runs:
        if run is first_run:
            continue
        if len(run) == len(find_all(run, "w:rPr")):
            _remove_empty_run(paragraph, run)


def render_paragraph(paragraph: Any, data: Mapping[str, Any], options: TemplateOptions) -> tuple[int, bool]:
    """Returns (substitutions, whether the paragraph was rewritten)."""
    text_nodes = _text_nodes(paragraph)
    if not text_nodes:
        return 0, False
    text = "".join(t.text or "" for t in text_nodes)
    new_text, count = substitute_text(text, data, options)
    if new_text == text:
        return count, False
    _consolidate(paragraph, text_nodes, new_text)
    return count, True


def render_elements(
    elements: Iterable[Any], data: Mapping[str, Any], options: TemplateOptions
) -> tuple[int, bool]:
    """Render every paragraph inside ``elements``, including table cells and text boxes."""
    count = 0
    changed = False
    for element in elements:
        if not isinstance(element.tag, str):
            continue
        for paragraph in list(element.iter(W_P)):
            p_count, p_changed = render_paragraph(paragraph, data, options)
            count += p_count
            changed = changed or p_changed
    return count, changed


def render_part(data: bytes, values: Mapping[str, Any], options: TemplateOptions) -> tuple[bytes | None, int]:
    """Render a header/footer part; the new bytes are None when no text changed."""
    root = parse_xml(data)
    count, changed = render_elements([root], values, options)
    if not changed:
        return None, count
    return serialize_xml(root), count


def render_document(doc: Document, data: Mapping[str, Any], options: TemplateOptions) -> int:
    count, _ = render_elements(doc.body_elements, data, options)

    related = filter_by_kind(part_relationships(doc.parts, DOCUMENT_XML_PATH), HEADER_FOOTER_KINDS)
    seen: set[str] = set()
    for rel in related:
        path = rel.part_path
        if path is None or path in seen:
            continue
        seen.add(path)
        content = doc.parts.get(path)
        if not content:
            _logger.debug("Relationship %s points to missing part %s", rel.r_id, path)
            continue
        rendered, part_count = render_part(content, data, options)
        count += part_count
        if rendered is not None:
            doc.parts[path] = rendered
            _logger.debug("Rendered %d placeholder(s) in %s", part_count, path)
    return count
