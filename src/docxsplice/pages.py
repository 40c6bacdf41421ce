from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from .models import PageInfo
from .oxml import find_all, get_attr, is_element, make_element


def paragraph_has_page_break(paragraph: Any) -> bool:
    """True when a direct run of the paragraph holds <w:br w:type="page"/>.

    Breaks nested deeper (table cells, text boxes) do not split body pages.
    """
    return any(
        get_attr(br, "w:type") == "page"
        for run in find_all(paragraph, "w:r")
        for br in find_all(run, "w:br")
    )


def has_page_break(element: Any) -> bool:
    return is_element(element, "w:p") and paragraph_has_page_break(element)


def make_page_break_paragraph() -> Any:
    """<w:p><w:r><w:br w:type="page"/></w:r></w:p>"""
    br = make_element("w:br", {"w:type": "page"})
    return make_element("w:p", children=[make_element("w:r", children=[br])])


def segment_pages(body_elements: Sequence[Any]) -> list[PageInfo]:
    """Split body elements into pages; a break element closes the page it sits on.

    Always returns at least one page. A document ending with a break gets an empty
    (-1, -1) trailing page, as does an empty document.
    """
    pages: list[PageInfo] = []
    current_start = 0

    for i, element in enumerate(body_elements):
        if not has_page_break(element):
            continue
        pages.append(PageInfo(index=len(pages), start_element=current_start, end_element=i))
        current_start = i + 1

    if current_start < len(body_elements):
        pages.append(PageInfo(index=len(pages), start_element=current_start, end_element=len(body_elements) - 1))
    else:
        pages.append(PageInfo(index=len(pages), start_element=-1, end_element=-1))
    return pages


def removal_range(pages: Sequence[PageInfo], index: int) -> tuple[int, int] | None:
    """Body slice [start, stop) to delete when page ``index`` is removed.

    Removing the last page also drops the break that closes the previous page, so the
    page count drops by one. None means there is nothing to delete.
    """
    page = pages[index]
    is_last = index == len(pages) - 1
    if is_last and index > 0:
        prev_break = pages[index - 1].end_element
        stop = page.end_element + 1 if not page.is_empty else prev_break + 1
        return prev_break, stop
    if page.is_empty:
        return None
    return page.start_element, page.end_element + 1


def _page_numbers(part: str) -> range:
    left, dash, right = part.partition("-")
    start = int(left)
    end = int(right) if dash else start
    if start <= 0 or end <= 0:
        raise ValueError(f"Page numbers must be >= 1: {part}")
    if start > end:
        raise ValueError(f"Invalid page range: {part}")
    return range(start, end + 1)


def parse_pages_spec(spec: str) -> list[int]:
    """Parse a 1-based page list such as "3,1,5-7" in the order written.

    Ranges expand in place; a page named twice keeps its first position.
    """
    ordered: dict[int, None] = {}
    for chunk in spec.split(","):
        part = chunk.strip()
        if part:
            ordered.update(dict.fromkeys(_page_numbers(part)))
    return list(ordered)
