"""Merge orchestration for the :mod:`pdfjoin` toolkit."""

from __future__ import annotations

from .exceptions import (
    BatchValidationError,
    InternalMergeError,
    MergeCancelledError,
    PageCopyError,
    PdfMergeError,
    PdfParseError,
    SerializationError,
)
from .loader import load_document
from .merger import MergedDocument
from .orchestrator import MergeOrchestrator, merge_pdf_bytes
from .types import (
    LoadedDocument,
    MergeFailure,
    MergeMetrics,
    MergeOutcome,
    MergeState,
    MergeSuccess,
    UploadedFile,
)
from .validators import (
    DEFAULT_LIMITS,
    BatchCheck,
    BatchViolation,
    MergeLimits,
    check_batch,
    validate_batch,
)

__all__ = [
    "merge_pdf_bytes",
    "load_document",
    "check_batch",
    "validate_batch",
    "MergeOrchestrator",
    "MergedDocument",
    "LoadedDocument",
    "UploadedFile",
    "MergeMetrics",
    "MergeState",
    "MergeSuccess",
    "MergeFailure",
    "MergeOutcome",
    "MergeLimits",
    "DEFAULT_LIMITS",
    "BatchCheck",
    "BatchViolation",
    "PdfMergeError",
    "BatchValidationError",
    "PdfParseError",
    "PageCopyError",
    "SerializationError",
    "InternalMergeError",
    "MergeCancelledError",
]
