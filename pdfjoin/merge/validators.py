"""Batch validation for the :mod:`pdfjoin.merge` package."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
from typing import Sequence

from .exceptions import BatchValidationError
from .types import UploadedFile
from .utils import format_size

LOGGER = logging.getLogger("pdfjoin.merge")

MIB = 1024 * 1024


@dataclass(frozen=True)
class MergeLimits:
    """Count and size bounds applied to a merge request."""

    min_files: int = 2
    max_files: int = 20
    max_file_bytes: int = 200 * MIB
    max_total_bytes: int = 200 * MIB


DEFAULT_LIMITS = MergeLimits()


class BatchViolation(str, Enum):
    """Reasons a batch can be rejected before parsing."""

    TOO_FEW_FILES = "too_few_files"
    TOO_MANY_FILES = "too_many_files"
    FILE_TOO_LARGE = "file_too_large"
    TOTAL_TOO_LARGE = "total_too_large"


@dataclass(frozen=True)
class BatchCheck:
    """Result of :func:`check_batch`. ``violation`` is ``None`` when valid."""

    violation: BatchViolation | None
    file_count: int
    total_bytes: int
    offending_file: str | None = None

    @property
    def is_valid(self) -> bool:
        return self.violation is None


def check_batch(
    files: Sequence[UploadedFile],
    limits: MergeLimits = DEFAULT_LIMITS,
) -> BatchCheck:
    """Return the first limit *files* violates, looking only at declared sizes.

    Checks run in a fixed order: file count lower bound, upper bound, the
    per-file cap and finally the aggregate cap.
    """

    count = len(files)
    total = sum(upload.declared_size for upload in files)

    if count < limits.min_files:
        return BatchCheck(BatchViolation.TOO_FEW_FILES, count, total)
    if count > limits.max_files:
        return BatchCheck(BatchViolation.TOO_MANY_FILES, count, total)

    for upload in files:
        if upload.declared_size > limits.max_file_bytes:
            return BatchCheck(
                BatchViolation.FILE_TOO_LARGE, count, total, offending_file=upload.name
            )

    if total > limits.max_total_bytes:
        return BatchCheck(BatchViolation.TOTAL_TOO_LARGE, count, total)

    return BatchCheck(None, count, total)


def _describe(check: BatchCheck, limits: MergeLimits) -> str:
    if check.violation is BatchViolation.TOO_FEW_FILES:
        return f"At least {limits.min_files} PDF files are required for merging"
    if check.violation is BatchViolation.TOO_MANY_FILES:
        return f"Too many files for merging (maximum {limits.max_files})"
    if check.violation is BatchViolation.FILE_TOO_LARGE:
        return (
            f"File {check.offending_file} exceeds the maximum size of "
            f"{format_size(limits.max_file_bytes)}"
        )
    return (
        f"Total upload size {format_size(check.total_bytes)} exceeds the maximum of "
        f"{format_size(limits.max_total_bytes)}"
    )


def validate_batch(
    files: Sequence[UploadedFile],
    limits: MergeLimits = DEFAULT_LIMITS,
) -> BatchCheck:
    """Raise :class:`BatchValidationError` unless *files* satisfies *limits*."""

    check = check_batch(files, limits)
    if not check.is_valid:
        message = _describe(check, limits)
        LOGGER.info("Rejected merge batch (%s): %s", check.violation.value, message)
        raise BatchValidationError(message)

    LOGGER.debug(
        "Validated merge batch of %d file(s), %d bytes", check.file_count, check.total_bytes
    )
    return check


__all__ = [
    "MIB",
    "MergeLimits",
    "DEFAULT_LIMITS",
    "BatchViolation",
    "BatchCheck",
    "check_batch",
    "validate_batch",
]
