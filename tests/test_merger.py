from __future__ import annotations

from io import BytesIO

import pytest
from pypdf import PdfReader

from pdfjoin.merge import MergedDocument, PageCopyError, SerializationError, load_document


def test_append_copies_pages_in_order(pdf_a: bytes, pdf_b: bytes, page_labels) -> None:
    merged = MergedDocument()

    assert merged.append(load_document("a.pdf", pdf_a)) == 2
    assert merged.append(load_document("b.pdf", pdf_b)) == 3

    assert merged.page_count == 5
    assert merged.sources == ["a.pdf", "b.pdf"]
    assert page_labels(merged.serialize()) == ["A1", "A2", "B1", "B2", "B3"]


def test_append_preserves_page_geometry(pdf_a: bytes, pdf_b: bytes) -> None:
    merged = MergedDocument()
    merged.append(load_document("a.pdf", pdf_a))
    merged.append(load_document("b.pdf", pdf_b))

    reader = PdfReader(BytesIO(merged.serialize()))
    widths = [float(page.mediabox.width) for page in reader.pages]
    assert widths == [200, 200, 300, 300, 300]


def test_append_does_not_deduplicate(pdf_a: bytes, page_labels) -> None:
    merged = MergedDocument()
    merged.append(load_document("a.pdf", pdf_a))
    merged.append(load_document("a-again.pdf", pdf_a))

    assert page_labels(merged.serialize()) == ["A1", "A2", "A1", "A2"]


def test_unreadable_page_fails_before_anything_is_added(
    monkeypatch: pytest.MonkeyPatch, pdf_a: bytes, pdf_b: bytes
) -> None:
    merged = MergedDocument()
    merged.append(load_document("a.pdf", pdf_a))

    calls: list[object] = []

    def flaky_resolve(page: object) -> None:
        calls.append(page)
        if len(calls) == 2:
            raise ValueError("broken page tree entry")

    monkeypatch.setattr("pdfjoin.merge.merger._resolve_page", flaky_resolve)

    with pytest.raises(PageCopyError) as excinfo:
        merged.append(load_document("b.pdf", pdf_b))

    assert excinfo.value.filename == "b.pdf"
    assert "page 2" in excinfo.value.reason
    assert merged.page_count == 2
    assert merged.sources == ["a.pdf"]


def test_failed_copy_rolls_back_partial_source(
    monkeypatch: pytest.MonkeyPatch, pdf_a: bytes, pdf_b: bytes, page_labels
) -> None:
    merged = MergedDocument()
    merged.append(load_document("a.pdf", pdf_a))

    writer = merged._writer
    original_add_page = writer.add_page
    calls: list[object] = []

    def flaky_add_page(page, *args, **kwargs):
        calls.append(page)
        if len(calls) == 3:
            raise RuntimeError("copy failed")
        return original_add_page(page, *args, **kwargs)

    monkeypatch.setattr(writer, "add_page", flaky_add_page)

    with pytest.raises(PageCopyError) as excinfo:
        merged.append(load_document("b.pdf", pdf_b))

    assert "page 3" in excinfo.value.reason
    assert merged.page_count == 2
    monkeypatch.undo()
    assert page_labels(merged.serialize()) == ["A1", "A2"]


def test_serialize_empty_document_has_no_pages() -> None:
    data = MergedDocument().serialize()

    assert data.startswith(b"%PDF-")
    assert len(PdfReader(BytesIO(data)).pages) == 0


def test_zero_page_source_adds_nothing(pdf_a: bytes, empty_pdf: bytes, page_labels) -> None:
    merged = MergedDocument()
    merged.append(load_document("a.pdf", pdf_a))

    assert merged.append(load_document("empty.pdf", empty_pdf)) == 0

    assert merged.sources == ["a.pdf", "empty.pdf"]
    assert page_labels(merged.serialize()) == ["A1", "A2"]


def test_corrupt_page_tree_entry_is_rejected_whole(
    pdf_a: bytes, broken_page_pdf: bytes, page_labels
) -> None:
    merged = MergedDocument()
    merged.append(load_document("a.pdf", pdf_a))

    with pytest.raises(PageCopyError) as excinfo:
        merged.append(load_document("broken.pdf", broken_page_pdf))

    assert excinfo.value.filename == "broken.pdf"
    assert excinfo.value.reason.startswith("page 2 could not be read")
    assert merged.page_count == 2
    assert page_labels(merged.serialize()) == ["A1", "A2"]


def test_serialize_checks_written_page_count(monkeypatch: pytest.MonkeyPatch, pdf_a: bytes) -> None:
    merged = MergedDocument()
    merged.append(load_document("a.pdf", pdf_a))

    class TruncatedReader:
        def __init__(self, *_: object, **__: object) -> None:
            self.pages = ["only-one"]

    monkeypatch.setattr("pdfjoin.merge.merger.PdfReader", TruncatedReader)

    with pytest.raises(SerializationError) as excinfo:
        merged.serialize()

    assert "holds 1 page(s), expected 2" in excinfo.value.reason
