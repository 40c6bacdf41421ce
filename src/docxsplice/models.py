from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Pattern

# {name}, {customer.name}, {due-date}
DEFAULT_PATTERN = r"\{([A-Za-z0-9_.\-]+)\}"


@dataclass(frozen=True)
class PageInfo:
    """A page derived from explicit page breaks in the body.

    start_element/end_element are inclusive indices into the body element list.
    (-1, -1) marks a page without body content.
    """

    index: int
    start_element: int
    end_element: int

    @property
    def is_empty(self) -> bool:
        return self.start_element < 0

    @property
    def element_count(self) -> int:
        if self.is_empty:
            return 0
        return self.end_element - self.start_element + 1


@dataclass(frozen=True)
class MergeOptions:
    # 0-based source page indices in the order they should be appended; None means all pages.
    pages: Sequence[int] | None = None
    add_page_break_before: bool = True


@dataclass(frozen=True)
class TemplateOptions:
    pattern: str | Pattern[str] = DEFAULT_PATTERN
    remove_missing: bool = False
    transform: Callable[[Any, str], str] | None = None
    regex: Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        regex = self.pattern if isinstance(self.pattern, re.Pattern) else re.compile(self.pattern)
        if regex.groups != 1:
            raise ValueError(
                f"Template pattern must have exactly one capture group, got {regex.groups}: {regex.pattern!r}"
            )
        object.__setattr__(self, "regex", regex)
