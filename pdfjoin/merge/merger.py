"""Page copying for the :mod:`pdfjoin.merge` package."""

from __future__ import annotations

from io import BytesIO
import logging

from pypdf import PageObject, PdfReader, PdfWriter

from .exceptions import PageCopyError, SerializationError
from .types import LoadedDocument

LOGGER = logging.getLogger("pdfjoin.merge")


def _resolve_page(page: PageObject) -> None:
    """Touch everything :meth:`PdfWriter.add_page` will need from *page*.

    Corrupt page tree entries usually only blow up once an attribute is
    dereferenced, so doing it up front lets a source fail before any of its
    pages reach the target.
    """

    page.mediabox
    page.get("/Resources")
    page.get_contents()


class MergedDocument:
    """The output document a merge accumulates pages into.

    Pages are appended whole-source at a time with :meth:`append`. Either every
    page of a source lands at the end of the page sequence or none does.
    """

    def __init__(self) -> None:
        self._writer = PdfWriter()
        self._sources: list[str] = []

    @property
    def page_count(self) -> int:
        return len(self._writer.pages)

    @property
    def sources(self) -> list[str]:
        return list(self._sources)

    def append(self, source: LoadedDocument) -> int:
        """Copy every page of *source* in order and return how many were added.

        Raises:
            PageCopyError: If a page cannot be resolved or copied. The target is
                left exactly as it was before the call.
        """

        for index, page in enumerate(source.pages):
            try:
                _resolve_page(page)
            except Exception as exc:
                LOGGER.error("Page %d of %s is unreadable: %s", index + 1, source.name, exc)
                raise PageCopyError(
                    f"page {index + 1} could not be read: {exc}", filename=source.name
                ) from exc

        start = self.page_count
        for index, page in enumerate(source.pages):
            LOGGER.debug("Adding page %s from %s", index, source.name)
            try:
                self._writer.add_page(page)
            except Exception as exc:
                LOGGER.error("Failed to copy page %d of %s: %s", index + 1, source.name, exc)
                self._rollback(start)
                raise PageCopyError(
                    f"page {index + 1} could not be copied: {exc}", filename=source.name
                ) from exc

        self._sources.append(source.name)
        return source.page_count

    def _rollback(self, page_count: int) -> None:
        while self.page_count > page_count:
            del self._writer.pages[self.page_count - 1]

    def serialize(self) -> bytes:
        """Write the merged document and return its bytes.

        Raises:
            SerializationError: If writing fails or the written document does
                not hold exactly the pages that were copied.
        """

        expected = self.page_count
        buffer = BytesIO()
        try:
            self._writer.write(buffer)
        except Exception as exc:  # pragma: no cover - IO errors vary
            LOGGER.error("Failed to write merged PDF: %s", exc)
            raise SerializationError(f"failed to write merged PDF: {exc}") from exc

        data = buffer.getvalue()
        try:
            written = len(PdfReader(BytesIO(data)).pages)
        except Exception as exc:
            LOGGER.error("Merged PDF cannot be read back: %s", exc)
            raise SerializationError(f"merged PDF cannot be read back: {exc}") from exc

        if written != expected:
            raise SerializationError(
                f"merged PDF holds {written} page(s), expected {expected}"
            )
        return data


__all__ = ["MergedDocument"]
