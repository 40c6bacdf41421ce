from __future__ import annotations

from docx.oxml.ns import qn

from docxsplice.document_xml import (
    build_document_xml,
    declarations_to_nsmap,
    parse_document_xml,
)
from docxsplice.oxml import R_NS, W_NS, parse_xml

W14_NS = "http://schemas.microsoft.com/office/word/2010/wordml"
MC_NS = "http://schemas.openxmlformats.org/markup-compatibility/2006"

_DOCUMENT_XML = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
    f'<w:document xmlns:w="{W_NS}" xmlns:r="{R_NS}" xmlns:w14="{W14_NS}" xmlns:mc="{MC_NS}" '
    'mc:Ignorable="w14">'
    "<w:body>"
    "<w:p><w:r><w:t>first</w:t></w:r></w:p>"
    "<w:tbl><w:tr><w:tc><w:p/></w:tc></w:tr></w:tbl>"
    "<w:p><w:r><w:t>last</w:t></w:r></w:p>"
    '<w:sectPr><w:pgSz w:w="11906" w:h="16838"/></w:sectPr>'
    "</w:body>"
    "</w:document>"
).encode("utf-8")


def test_parse_splits_body_and_section_properties():
    parsed = parse_document_xml(_DOCUMENT_XML)

    assert [el.tag for el in parsed.body_elements] == [qn("w:p"), qn("w:tbl"), qn("w:p")]
    assert parsed.section_properties is not None
    assert parsed.section_properties.find(qn("w:pgSz")).get(qn("w:w")) == "11906"
    assert all(el.tag != qn("w:sectPr") for el in parsed.body_elements)


def test_parse_collects_namespace_declarations_and_root_attributes():
    parsed = parse_document_xml(_DOCUMENT_XML)
    assert parsed.namespace_declarations == {
        "xmlns:w": W_NS,
        "xmlns:r": R_NS,
        "xmlns:w14": W14_NS,
        "xmlns:mc": MC_NS,
    }
    assert parsed.root_attributes == {f"{{{MC_NS}}}Ignorable": "w14"}


def test_parse_without_document_root_is_empty():
    parsed = parse_document_xml(b"<other/>")
    assert parsed.body_elements == []
    assert parsed.section_properties is None
    assert parsed.namespace_declarations == {}


def test_parse_without_body_is_empty_but_keeps_namespaces():
    parsed = parse_document_xml(f'<w:document xmlns:w="{W_NS}"/>')
    assert parsed.body_elements == []
    assert parsed.namespace_declarations == {"xmlns:w": W_NS}


def test_build_uses_default_namespaces_and_section_properties():
    data = build_document_xml([], None, {})
    assert data.startswith(b"<?xml")

    root = parse_xml(data)
    assert root.tag == qn("w:document")
    assert root.nsmap == {"w": W_NS, "r": R_NS}

    body = root.find(qn("w:body"))
    assert len(body) == 1
    sect_pr = body[0]
    assert sect_pr.tag == qn("w:sectPr")
    pg_sz = sect_pr.find(qn("w:pgSz"))
    pg_mar = sect_pr.find(qn("w:pgMar"))
    assert (pg_sz.get(qn("w:w")), pg_sz.get(qn("w:h"))) == ("12240", "15840")
    assert pg_mar.get(qn("w:top")) == "1440"
    assert pg_mar.get(qn("w:header")) == "720"
    assert pg_mar.get(qn("w:gutter")) == "0"


def test_build_does_not_reparent_or_duplicate_section_properties():
    parsed = parse_document_xml(_DOCUMENT_XML)
    first_parent = parsed.body_elements[0].getparent()

    once = build_document_xml(
        parsed.body_elements,
        parsed.section_properties,
        parsed.namespace_declarations,
        parsed.root_attributes,
    )
    twice = build_document_xml(
        parsed.body_elements,
        parsed.section_properties,
        parsed.namespace_declarations,
        parsed.root_attributes,
    )

    assert once == twice
    assert parsed.body_elements[0].getparent() is first_parent
    body = parse_xml(twice).find(qn("w:body"))
    assert len(body.findall(qn("w:sectPr"))) == 1
    assert body[-1].tag == qn("w:sectPr")


def test_round_trip_keeps_body_namespaces_and_root_attributes():
    parsed = parse_document_xml(_DOCUMENT_XML)
    again = parse_document_xml(
        build_document_xml(
            parsed.body_elements,
            parsed.section_properties,
            parsed.namespace_declarations,
            parsed.root_attributes,
        )
    )

    assert again.namespace_declarations == parsed.namespace_declarations
    assert again.root_attributes == parsed.root_attributes
    assert ["".join(el.itertext()) for el in again.body_elements] == ["first", "", "last"]
    assert again.section_properties.find(qn("w:pgSz")).get(qn("w:h")) == "16838"


def test_declarations_to_nsmap_handles_default_namespace():
    assert declarations_to_nsmap({"xmlns": "urn:a", "xmlns:b": "urn:b", "other": "x"}) == {
        None: "urn:a",
        "b": "urn:b",
    }
