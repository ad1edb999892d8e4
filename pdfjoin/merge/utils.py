"""Utility helpers for the :mod:`pdfjoin.merge` package."""

from __future__ import annotations

import time
from typing import Iterable

from .types import UploadedFile


def format_size(num_bytes: int) -> str:
    """Return *num_bytes* as a short human readable string (``200 MiB``)."""

    value = float(num_bytes)
    for unit in ("B", "KiB", "MiB"):
        if value < 1024:
            return f"{value:g} {unit}"
        value /= 1024
    return f"{value:g} GiB"


def ensure_uploads(files: Iterable[UploadedFile | tuple[str, bytes]]) -> list[UploadedFile]:
    """Normalise ``(name, data)`` pairs into :class:`UploadedFile` objects."""

    uploads: list[UploadedFile] = []
    for item in files:
        if isinstance(item, UploadedFile):
            uploads.append(item)
        else:
            name, data = item
            uploads.append(UploadedFile.from_bytes(name, data))
    return uploads


def elapsed_ms(started: float) -> int:
    """Milliseconds since *started*, a :func:`time.perf_counter` reading."""

    return int(round((time.perf_counter() - started) * 1000))


__all__ = ["format_size", "ensure_uploads", "elapsed_ms"]
