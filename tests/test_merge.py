from __future__ import annotations

import io

import pytest
from docx import Document as DocxDocument
from docx.shared import Inches

from docxsplice import Document, MergeOptions
from docxsplice.merge import merge_first_wins, merge_into, select_pages
from docxsplice.models import PageInfo
from docxsplice.oxml import get_text
from docxsplice.package import DOCUMENT_XML_PATH


def _docx_bytes(doc) -> bytes:
    buffer = io.BytesIO()
    doc.save(buffer)
    return buffer.getvalue()


def _paged_docx(*pages: str) -> bytes:
    """One paragraph per page, separated by page-break paragraphs."""
    src = DocxDocument()
    for i, text in enumerate(pages):
        if i:
            src.add_page_break()
        src.add_paragraph(text)
    return _docx_bytes(src)


def _texts(doc: Document) -> list[str]:
    return [t for t in ("".join(el.itertext()) for el in doc.body_elements) if t]


def test_merge_first_wins_keeps_existing_values():
    target = {"xmlns:w": "urn:target"}
    added = merge_first_wins(target, {"xmlns:w": "urn:source", "xmlns:w14": "urn:w14"})
    assert added == ["xmlns:w14"]
    assert target == {"xmlns:w": "urn:target", "xmlns:w14": "urn:w14"}


def test_select_pages_keeps_caller_order_and_drops_unknown():
    pages = [PageInfo(0, 0, 1), PageInfo(1, 2, 3), PageInfo(2, 4, 4)]
    assert select_pages(pages, [2, 0, 7, -1, 2]) == [pages[2], pages[0]]
    assert select_pages(pages, None) == pages
    assert select_pages(pages, []) == []


def test_select_pages_skips_empty_pages():
    pages = [PageInfo(0, 0, 0), PageInfo(1, -1, -1)]
    assert select_pages(pages, None) == [pages[0]]


def test_merge_all_pages_from_document():
    doc1 = Document.create()
    doc1.add_page_break()
    doc2 = Document.create()
    doc2.add_page_break()

    doc1.merge(doc2)
    # [break] + [inserted break] + [break]
    assert doc1.get_page_count() == 4


def test_merge_one_page_target_with_three_page_source():
    target = Document.from_bytes(_paged_docx("intro"))
    assert target.get_page_count() == 1
    source = Document.from_bytes(_paged_docx("a", "b", "c"))
    assert source.get_page_count() == 3

    target.merge(source)

    assert target.get_page_count() == 4
    assert _texts(target) == ["intro", "a", "b", "c"]


def test_merge_selected_pages_in_requested_order():
    target = Document.from_bytes(_paged_docx("intro"))
    source = Document.from_bytes(_paged_docx("a", "b", "c"))

    target.merge(source, MergeOptions(pages=[2, 0]))

    assert _texts(target) == ["intro", "c", "a"]


def test_merge_accepts_keyword_options():
    target = Document.from_bytes(_paged_docx("intro"))
    target.merge(_paged_docx("a", "b"), pages=[1], add_page_break_before=False)
    assert _texts(target) == ["intro", "b"]
    assert target.get_page_count() == 1


def test_merge_rejects_options_and_keywords_together():
    target = Document.create()
    with pytest.raises(TypeError):
        target.merge(Document.create(), MergeOptions(), pages=[0])


@pytest.mark.parametrize("pages", [[], [10, 20, 30]])
def test_merge_without_resolvable_pages_is_a_no_op(pages):
    doc1 = Document.create()
    doc2 = Document.create()
    doc2.add_page_break()

    doc1.merge(doc2, MergeOptions(pages=pages))

    assert doc1.get_page_count() == 1
    assert doc1.body_elements == []


def test_merge_two_empty_documents_without_break():
    doc1 = Document.create()
    doc1.merge(Document.create(), MergeOptions(add_page_break_before=False))
    assert doc1.get_page_count() == 1


def test_no_leading_break_when_target_is_empty():
    target = Document.create()
    target.merge(_paged_docx("a"))
    assert target.get_page_count() == 1
    assert _texts(target) == ["a"]


def test_merge_from_bytes_and_path(tmp_path):
    path = tmp_path / "source.docx"
    path.write_bytes(_paged_docx("from path"))

    target = Document.create()
    target.merge(_paged_docx("from bytes"))
    target.merge(str(path))
    target.merge(path)

    assert _texts(target) == ["from bytes", "from path", "from path"]
    assert target.get_page_count() == 3


def test_merge_rejects_unknown_source_type():
    with pytest.raises(TypeError):
        Document.create().merge(42)  # type: ignore[arg-type]


def test_failed_source_resolution_leaves_target_untouched(tmp_path):
    target = Document.create()
    target.add_page_break()
    before = list(target.body_elements)

    with pytest.raises(FileNotFoundError):
        target.merge(tmp_path / "missing.docx")

    assert target.body_elements == before
    assert len(target.parts) == 0


def test_merged_elements_are_clones():
    source = Document.from_bytes(_paged_docx("shared"))
    target = Document.create()
    target.merge(source)

    assert all(el not in source.body_elements for el in target.body_elements)
    run = target.body_elements[0].find(
        "{http://schemas.openxmlformats.org/wordprocessingml/2006/main}r"
    )
    run[-1].text = "changed"

    assert _texts(source) == ["shared"]
    assert get_text(run, "w:t") == "changed"


def test_first_merge_seeds_parts_and_section_properties():
    src = DocxDocument()
    src.sections[0].page_width = Inches(5)
    src.sections[0].header.paragraphs[0].text = "Header text"
    src.add_paragraph("body")
    source = Document.from_bytes(_docx_bytes(src))

    target = Document.create()
    target.merge(source)

    assert DOCUMENT_XML_PATH not in target.parts
    assert "word/styles.xml" in target.parts
    assert any(path.startswith("word/header") for path in target.parts)
    assert target.section_properties is not None
    assert target.section_properties is not source.section_properties

    reopened = DocxDocument(io.BytesIO(target.to_bytes()))
    assert reopened.sections[0].page_width == Inches(5)
    assert reopened.sections[0].header.paragraphs[0].text == "Header text"
    assert [p.text for p in reopened.paragraphs] == ["body"]


def test_later_merges_contribute_body_only():
    target = Document.from_bytes(_paged_docx("intro"))
    styles_before = target.parts["word/styles.xml"]

    other = DocxDocument()
    other.add_paragraph("extra")
    other_bytes = _docx_bytes(other)
    source = Document.from_bytes(other_bytes)
    source.parts["word/custom.xml"] = b"<custom/>"

    target.merge(source)

    assert "word/custom.xml" not in target.parts
    assert target.parts["word/styles.xml"] == styles_before


def test_namespaces_union_with_target_winning():
    target = Document.create()
    target.namespace_declarations["xmlns:w"] = "urn:target-w"
    source = Document.create()
    source.namespace_declarations.update({"xmlns:w": "urn:source-w", "xmlns:w14": "urn:w14"})

    target.merge(source)

    assert target.namespace_declarations == {"xmlns:w": "urn:target-w", "xmlns:w14": "urn:w14"}


def test_merged_document_saves_and_reloads():
    main = Document.create()
    main.add_page_break()
    appendix = Document.create()
    appendix.add_page_break()
    appendix.add_page_break()

    main.merge(appendix, MergeOptions(pages=[0, 2]))
    loaded = Document.from_bytes(main.to_bytes())

    assert loaded.get_page_count() == main.get_page_count()
    assert loaded.get_page_count() >= 3


def test_merge_into_reports_element_count():
    target = Document.from_bytes(_paged_docx("intro"))
    source = Document.from_bytes(_paged_docx("a", "b", "c"))

    # page 0 is "a" plus its break paragraph, page 2 is "c"
    assert merge_into(target, source, MergeOptions(pages=[0, 2])) == 3
    assert merge_into(target, source, MergeOptions(pages=[9])) == 0
