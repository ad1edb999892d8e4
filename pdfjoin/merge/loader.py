"""Parse uploaded bytes into :class:`LoadedDocument` objects."""

from __future__ import annotations

from io import BytesIO
import logging

from pypdf import PasswordType, PdfReader

from .exceptions import PdfParseError
from .types import LoadedDocument

LOGGER = logging.getLogger("pdfjoin.merge")

# Readers accept a header anywhere in the first kilobyte.
HEADER_SEARCH_WINDOW = 1024


def _open_reader(name: str, data: bytes) -> PdfReader:
    if not data:
        raise PdfParseError("file is empty", filename=name)
    if b"%PDF-" not in data[:HEADER_SEARCH_WINDOW]:
        raise PdfParseError("missing %PDF- header, not a PDF document", filename=name)

    try:
        return PdfReader(BytesIO(data), strict=False)
    except Exception as exc:
        LOGGER.error("Failed to read PDF %s: %s", name, exc)
        raise PdfParseError(str(exc) or exc.__class__.__name__, filename=name) from exc


def _unlock(name: str, reader: PdfReader) -> None:
    """Open an encrypted document with the empty user password."""

    LOGGER.debug("Attempting to decrypt encrypted PDF %s", name)
    try:
        result = reader.decrypt("")
    except Exception as exc:  # pragma: no cover - decrypt errors vary
        LOGGER.error("Failed to decrypt PDF %s: %s", name, exc)
        raise PdfParseError(f"unable to decrypt document: {exc}", filename=name) from exc

    if result == PasswordType.NOT_DECRYPTED:
        LOGGER.warning("Encrypted PDF %s requires a password", name)
        raise PdfParseError("document is encrypted and requires a password", filename=name)


def load_document(name: str, data: bytes) -> LoadedDocument:
    """Parse *data* into a :class:`LoadedDocument`.

    Parsing is permissive: documents that carry an encryption dictionary but
    open with an empty user password are accepted, and the document
    information dictionary is left untouched. Every page is returned in page
    tree order.

    Raises:
        PdfParseError: If *data* is not a readable PDF.
    """

    reader = _open_reader(name, data)
    if reader.is_encrypted:
        _unlock(name, reader)

    try:
        pages = list(reader.pages)
    except Exception as exc:
        LOGGER.error("Failed to read page tree of %s: %s", name, exc)
        raise PdfParseError(str(exc) or exc.__class__.__name__, filename=name) from exc

    document = LoadedDocument(name=name, reader=reader, pages=pages)
    LOGGER.debug("Loaded %s with %d page(s)", name, document.page_count)
    return document


__all__ = ["load_document", "HEADER_SEARCH_WINDOW"]
