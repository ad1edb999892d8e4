from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import Callable, Sequence
import sys

import pytest
from pypdf import PageObject, PdfReader, PdfWriter
from pypdf.generic import DictionaryObject, NameObject, NumberObject, StreamObject

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

PdfFactory = Callable[..., bytes]


def _add_labelled_page(writer: PdfWriter, label: str, width: float) -> PageObject:
    page = writer.add_blank_page(width=width, height=200)
    font_dict = DictionaryObject(
        {
            NameObject("/Type"): NameObject("/Font"),
            NameObject("/Subtype"): NameObject("/Type1"),
            NameObject("/BaseFont"): NameObject("/Helvetica"),
        }
    )
    font_ref = writer._add_object(font_dict)
    page[NameObject("/Resources")] = DictionaryObject(
        {NameObject("/Font"): DictionaryObject({NameObject("/F1"): font_ref})}
    )
    content_bytes = f"BT /F1 12 Tf 20 100 Td ({label}) Tj ET".encode("latin-1")
    stream = StreamObject()
    stream[NameObject("/Length")] = NumberObject(len(content_bytes))
    stream._data = content_bytes
    page[NameObject("/Contents")] = writer._add_object(stream)
    return page


@pytest.fixture()
def pdf_factory() -> PdfFactory:
    """Build an in-memory PDF with one text page per label."""

    def _create(
        labels: Sequence[str],
        *,
        width: float = 200,
        user_password: str | None = None,
        owner_password: str | None = None,
    ) -> bytes:
        writer = PdfWriter()
        for label in labels:
            _add_labelled_page(writer, label, width)
        writer.add_metadata({"/Producer": "pdfjoin-tests", "/Title": "Fixture"})
        if user_password is not None:
            writer.encrypt(user_password=user_password, owner_password=owner_password)
        buffer = BytesIO()
        writer.write(buffer)
        return buffer.getvalue()

    return _create


@pytest.fixture()
def page_labels() -> Callable[[bytes], list[str]]:
    """Return the text of every page of a PDF, in order."""

    def _read(data: bytes) -> list[str]:
        reader = PdfReader(BytesIO(data))
        return [page.extract_text().strip() for page in reader.pages]

    return _read


@pytest.fixture()
def pdf_a(pdf_factory: PdfFactory) -> bytes:
    return pdf_factory(["A1", "A2"], width=200)


@pytest.fixture()
def pdf_b(pdf_factory: PdfFactory) -> bytes:
    return pdf_factory(["B1", "B2", "B3"], width=300)


@pytest.fixture()
def corrupt_pdf() -> bytes:
    return b"this is not a pdf document at all"


@pytest.fixture()
def empty_pdf(pdf_factory: PdfFactory) -> bytes:
    return pdf_factory([])


@pytest.fixture()
def broken_page_pdf() -> bytes:
    """A parseable PDF whose second page has a /MediaBox that is not an array."""

    writer = PdfWriter()
    _add_labelled_page(writer, "C1", 200)
    broken = _add_labelled_page(writer, "C2", 200)
    broken[NameObject("/MediaBox")] = NumberObject(5)
    buffer = BytesIO()
    writer.write(buffer)
    return buffer.getvalue()
