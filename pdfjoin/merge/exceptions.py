"""Custom exceptions for the :mod:`pdfjoin.merge` package."""

from __future__ import annotations


class PdfMergeError(Exception):
    """Base class for every failure raised while merging a batch.

    ``reason`` holds the bare diagnostic, ``filename`` names the upload that
    caused it when the failure is tied to a single file.
    """

    def __init__(self, reason: str, *, filename: str | None = None) -> None:
        self.reason = reason
        self.filename = filename
        if filename is None:
            message = reason
        else:
            message = f"Failed to process file {filename}: {reason}"
        super().__init__(message)


class BatchValidationError(PdfMergeError):
    """Raised when the batch violates a count or size limit."""


class PdfParseError(PdfMergeError):
    """Raised when an upload cannot be parsed as a PDF document."""


class PageCopyError(PdfMergeError):
    """Raised when a page cannot be copied into the merged document."""


class SerializationError(PdfMergeError):
    """Raised when the merged document cannot be written out."""


class InternalMergeError(PdfMergeError):
    """Raised for failures nobody anticipated."""


class MergeCancelledError(PdfMergeError):
    """Raised when a merge is abandoned before completion."""
