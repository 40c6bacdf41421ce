"""Reading relationship records (``*.rels`` parts) of a package."""

from __future__ import annotations

import posixpath
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from docx.opc.constants import RELATIONSHIP_TYPE as RT

from .oxml import PKG_REL_NS, get_attr, parse_xml

_RELATIONSHIP_TAG = f"{{{PKG_REL_NS}}}Relationship"
HEADER_FOOTER_KINDS = (RT.HEADER.rsplit("/", 1)[-1], RT.FOOTER.rsplit("/", 1)[-1])


@dataclass(frozen=True)
class Relationship:
    r_id: str
    rel_type: str
    target: str
    is_external: bool = False
    # Archive path of the target part; None for external targets.
    part_path: str | None = None

    @property
    def kind(self) -> str:
        """Last path segment of the relationship type, e.g. 'header'."""
        return self.rel_type.rsplit("/", 1)[-1]


def rels_path_for(part_path: str) -> str:
    """word/document.xml -> word/_rels/document.xml.rels"""
    folder, _, name = part_path.rpartition("/")
    if folder:
        return f"{folder}/_rels/{name}.rels"
    return f"_rels/{name}.rels"


def resolve_target(source_part: str, target: str) -> str:
    if target.startswith("/"):
        return posixpath.normpath(target.lstrip("/"))
    base_dir = posixpath.dirname(source_part)
    return posixpath.normpath(posixpath.join(base_dir, target))


def parse_relationships(data: bytes, source_part: str) -> list[Relationship]:
    root = parse_xml(data)
    result: list[Relationship] = []
    for rel_el in root.iter(_RELATIONSHIP_TAG):
        target = get_attr(rel_el, "Target") or ""
        is_external = get_attr(rel_el, "TargetMode") == "External"
        part_path = None
        if target and not is_external:
            part_path = resolve_target(source_part, target)
        result.append(
            Relationship(
                r_id=get_attr(rel_el, "Id") or "",
                rel_type=get_attr(rel_el, "Type") or "",
                target=target,
                is_external=is_external,
                part_path=part_path,
            )
        )
    return result


def part_relationships(parts: Mapping[str, bytes], source_part: str) -> list[Relationship]:
    data = parts.get(rels_path_for(source_part))
    if not data:
        return []
    return parse_relationships(data, source_part)


def filter_by_kind(relationships: Iterable[Relationship], kinds: Iterable[str]) -> list[Relationship]:
    """Keep internal relationships whose type ends with one of ``kinds``.

    Matching on the last type segment covers both transitional and strict OOXML type URIs.
    """
    wanted = set(kinds)
    return [rel for rel in relationships if not rel.is_external and rel.part_path and rel.kind in wanted]
