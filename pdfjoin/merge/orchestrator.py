"""Sequencing of a full merge: validate, load, copy, serialize."""

from __future__ import annotations

import logging
import threading
import time
from typing import Iterable, Sequence

from .exceptions import (
    InternalMergeError,
    MergeCancelledError,
    PdfMergeError,
)
from .loader import load_document
from .merger import MergedDocument
from .types import (
    MergeFailure,
    MergeMetrics,
    MergeOutcome,
    MergeState,
    MergeSuccess,
    UploadedFile,
)
from .utils import elapsed_ms, ensure_uploads
from .validators import DEFAULT_LIMITS, MergeLimits, validate_batch

LOGGER = logging.getLogger("pdfjoin.merge")


class MergeOrchestrator:
    """Run one merge request through its states.

    ``IDLE -> VALIDATING -> (LOADING -> COPYING) per file -> SERIALIZING``
    ends in ``DONE`` or ``FAILED``. :meth:`run` never raises for merge
    failures; it returns a :class:`MergeSuccess` or a :class:`MergeFailure`
    and the caller branches on ``outcome.state``.

    An orchestrator holds the state of a single run and must not be shared
    between requests.
    """

    def __init__(self, limits: MergeLimits = DEFAULT_LIMITS) -> None:
        self.limits = limits
        self.state = MergeState.IDLE
        self.current_index: int | None = None

    def _enter(self, state: MergeState, index: int | None = None) -> None:
        self.state = state
        self.current_index = index
        if index is None:
            LOGGER.debug("Merge state -> %s", state.value)
        else:
            LOGGER.debug("Merge state -> %s[%d]", state.value, index)

    @staticmethod
    def _check_cancelled(cancel_event: threading.Event | None) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise MergeCancelledError("merge cancelled before completion")

    def run(
        self,
        files: Sequence[UploadedFile],
        *,
        cancel_event: threading.Event | None = None,
    ) -> MergeOutcome:
        """Merge *files* in submission order.

        Args:
            files: Uploads to merge. Their order defines the output page order.
            cancel_event: Optional event checked between steps; once set the
                run stops and fails with :class:`MergeCancelledError`.
        """

        if self.state is not MergeState.IDLE:
            raise RuntimeError("MergeOrchestrator instances run a single merge")

        started = time.perf_counter()
        self._enter(MergeState.VALIDATING)
        try:
            output, total_pages = self._execute(files, cancel_event)
        except PdfMergeError as exc:
            return self._fail(exc, started)
        except Exception as exc:
            LOGGER.exception("Unexpected error while merging PDFs")
            filename = files[self.current_index].name if self.current_index is not None else None
            return self._fail(
                InternalMergeError(str(exc) or exc.__class__.__name__, filename=filename),
                started,
            )

        metrics = MergeMetrics(
            total_input_files=len(files),
            total_input_bytes=sum(upload.declared_size for upload in files),
            total_pages=total_pages,
            output_bytes=len(output),
            elapsed_ms=elapsed_ms(started),
        )
        self._enter(MergeState.DONE)
        LOGGER.info(
            "Merged %d PDFs into %d page(s), %d bytes in %dms",
            metrics.total_input_files,
            metrics.total_pages,
            metrics.output_bytes,
            metrics.elapsed_ms,
        )
        return MergeSuccess(output=output, metrics=metrics)

    def _execute(
        self,
        files: Sequence[UploadedFile],
        cancel_event: threading.Event | None,
    ) -> tuple[bytes, int]:
        validate_batch(files, self.limits)

        merged = MergedDocument()
        total_pages = 0
        for index, upload in enumerate(files):
            self._check_cancelled(cancel_event)

            self._enter(MergeState.LOADING, index)
            document = load_document(upload.name, upload.data)

            self._enter(MergeState.COPYING, index)
            total_pages += merged.append(document)

        self._check_cancelled(cancel_event)
        self._enter(MergeState.SERIALIZING)
        return merged.serialize(), total_pages

    def _fail(self, error: PdfMergeError, started: float) -> MergeFailure:
        failed_during = self.state
        index = self.current_index
        self._enter(MergeState.FAILED)

        if isinstance(error, MergeCancelledError):
            LOGGER.info("Merge abandoned during %s", failed_during.value)
        elif error.filename is not None:
            LOGGER.warning("Merge failed during %s: %s", failed_during.value, error)
        else:
            LOGGER.warning("Merge rejected during %s: %s", failed_during.value, error)

        return MergeFailure(
            error=error,
            failed_during=failed_during,
            elapsed_ms=elapsed_ms(started),
            file_index=index,
        )


def merge_pdf_bytes(
    files: Iterable[UploadedFile | tuple[str, bytes]],
    *,
    limits: MergeLimits = DEFAULT_LIMITS,
) -> tuple[bytes, MergeMetrics]:
    """Merge *files* and return the output bytes with their metrics.

    Convenience wrapper around :class:`MergeOrchestrator` for callers that
    prefer exceptions over inspecting the outcome.

    Raises:
        PdfMergeError: The error captured by the failed run.
    """

    outcome = MergeOrchestrator(limits).run(ensure_uploads(files))
    if isinstance(outcome, MergeFailure):
        raise outcome.error
    return outcome.output, outcome.metrics


__all__ = ["MergeOrchestrator", "merge_pdf_bytes"]
