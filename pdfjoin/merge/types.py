"""Data structures shared by the :mod:`pdfjoin.merge` components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence, Union

from pypdf import PageObject, PdfReader

from .exceptions import PdfMergeError


@dataclass(frozen=True)
class UploadedFile:
    """One file submitted for merging.

    ``declared_size`` is the size reported by the transport. Batch limits are
    enforced against it so validation never has to look at ``data``.
    """

    name: str
    data: bytes = field(repr=False)
    declared_size: int

    @classmethod
    def from_bytes(cls, name: str, data: bytes) -> "UploadedFile":
        return cls(name=name, data=data, declared_size=len(data))


@dataclass
class LoadedDocument:
    """A parsed source document and its pages in original order."""

    name: str
    reader: PdfReader = field(repr=False)
    pages: Sequence[PageObject] = field(repr=False)

    @property
    def page_count(self) -> int:
        return len(self.pages)


@dataclass(frozen=True)
class MergeMetrics:
    """Operational figures reported alongside a merged document."""

    total_input_files: int
    total_input_bytes: int
    total_pages: int
    output_bytes: int
    elapsed_ms: int

    @property
    def compression_ratio(self) -> float:
        """Merged size divided by the sum of the input sizes."""

        if self.total_input_bytes <= 0:
            return 0.0
        return self.output_bytes / self.total_input_bytes

    def as_headers(self) -> dict[str, str]:
        return {
            "X-Total-Pages": str(self.total_pages),
            "X-Total-Size": str(self.output_bytes),
            "X-Processing-Time": f"{self.elapsed_ms}ms",
            "X-Compression-Ratio": f"{self.compression_ratio:.2f}",
        }


class MergeState(str, Enum):
    """Lifecycle of a single merge run."""

    IDLE = "idle"
    VALIDATING = "validating"
    LOADING = "loading"
    COPYING = "copying"
    SERIALIZING = "serializing"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class MergeSuccess:
    """Terminal ``DONE`` outcome carrying the merged bytes."""

    output: bytes = field(repr=False)
    metrics: MergeMetrics

    @property
    def state(self) -> MergeState:
        return MergeState.DONE


@dataclass(frozen=True)
class MergeFailure:
    """Terminal ``FAILED`` outcome carrying the captured error.

    ``failed_during`` records the state the orchestrator was in when the
    error surfaced, ``file_index`` the zero-based position of the offending
    upload for per-file failures.
    """

    error: PdfMergeError
    failed_during: MergeState
    elapsed_ms: int
    file_index: int | None = None

    @property
    def state(self) -> MergeState:
        return MergeState.FAILED

    @property
    def failing_file_name(self) -> str | None:
        return self.error.filename

    @property
    def reason(self) -> str:
        return self.error.reason


MergeOutcome = Union[MergeSuccess, MergeFailure]


__all__ = [
    "UploadedFile",
    "LoadedDocument",
    "MergeMetrics",
    "MergeState",
    "MergeSuccess",
    "MergeFailure",
    "MergeOutcome",
]
