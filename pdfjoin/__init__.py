"""PDF merge toolkit: batch validation, tolerant loading and page concatenation."""

from __future__ import annotations

from . import merge
from .merge import (
    DEFAULT_LIMITS,
    BatchValidationError,
    InternalMergeError,
    MergeCancelledError,
    MergeFailure,
    MergeLimits,
    MergeMetrics,
    MergeOrchestrator,
    MergeState,
    MergeSuccess,
    PageCopyError,
    PdfMergeError,
    PdfParseError,
    SerializationError,
    UploadedFile,
    load_document,
    merge_pdf_bytes,
    validate_batch,
)

__version__ = "1.0.0"

__all__ = [
    "merge",
    "merge_pdf_bytes",
    "load_document",
    "validate_batch",
    "MergeOrchestrator",
    "UploadedFile",
    "MergeMetrics",
    "MergeState",
    "MergeSuccess",
    "MergeFailure",
    "MergeLimits",
    "DEFAULT_LIMITS",
    "PdfMergeError",
    "BatchValidationError",
    "PdfParseError",
    "PageCopyError",
    "SerializationError",
    "InternalMergeError",
    "MergeCancelledError",
]
