"""FastAPI application exposing the PDF merge service."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging
import threading
import time
from typing import AsyncIterator, List, Optional

from fastapi import FastAPI, File, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import Receive, Scope, Send
import uvicorn

from pdfjoin import MergeOrchestrator, UploadedFile
from pdfjoin.core.utils import configure_logging
from pdfjoin.merge import (
    DEFAULT_LIMITS,
    BatchValidationError,
    MergeCancelledError,
    MergeFailure,
    MergeLimits,
    PageCopyError,
    PdfParseError,
    validate_batch,
)

from .config import Settings
from .monitor import MemoryWatchdog, memory_snapshot
from .ratelimit import RateLimiter
from .schemas import ErrorResponse, HealthStatus, MemoryUsage, MergeFailureResponse

LOGGER = logging.getLogger("pdfjoin.service")

API_PREFIX = "/api"
MERGE_PATH = f"{API_PREFIX}/merge"
PDF_MEDIA_TYPE = "application/pdf"
CLIENT_CLOSED_REQUEST = 499
DISCONNECT_POLL_INTERVAL = 0.25

ALLOWED_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
ALLOWED_HEADERS = [
    "X-CSRF-Token",
    "X-Requested-With",
    "Accept",
    "Accept-Version",
    "Content-Length",
    "Content-MD5",
    "Content-Type",
    "Date",
    "X-Api-Version",
    "X-Device-Type",
    "X-Client-Memory",
    "X-Total-Size",
    "X-Priority",
]
EXPOSED_HEADERS = [
    "Content-Disposition",
    "X-Total-Pages",
    "X-Total-Size",
    "X-Processing-Time",
    "X-Compression-Ratio",
]

_STARTED_AT = time.monotonic()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


def _failure_response(failure: MergeFailure) -> JSONResponse:
    """Translate a failed merge into the HTTP error body clients expect."""

    error = failure.error
    if isinstance(error, (BatchValidationError, PdfParseError, PageCopyError)):
        return _error(400, str(error))
    if isinstance(error, MergeCancelledError):
        return _error(CLIENT_CLOSED_REQUEST, "Client closed request")

    LOGGER.error(
        "Merge failed during %s after %dms: %s",
        failure.failed_during.value,
        failure.elapsed_ms,
        error.reason,
    )
    body = MergeFailureResponse(
        error="Failed to merge PDFs",
        details=error.reason,
        processing_time=f"{failure.elapsed_ms}ms",
    )
    return JSONResponse(status_code=500, content=body.model_dump(by_alias=True))


def _part_name(upload: UploadFile, index: int) -> str:
    return upload.filename or f"document_{index}.pdf"


def _check_parts(files: List[UploadFile], limits: MergeLimits) -> JSONResponse | None:
    """Reject the batch from part headers alone, before any part is read."""

    declared = [
        UploadedFile(name=_part_name(upload, index), data=b"", declared_size=upload.size or 0)
        for index, upload in enumerate(files, start=1)
    ]
    try:
        validate_batch(declared, limits)
    except BatchValidationError as exc:
        return _error(400, str(exc))

    for index, upload in enumerate(files, start=1):
        if upload.content_type != PDF_MEDIA_TYPE:
            return _error(
                400,
                f"File {_part_name(upload, index)} is not a PDF "
                f"(received {upload.content_type or 'no content type'})",
            )
    return None


async def _read_uploads(files: List[UploadFile]) -> list[UploadedFile]:
    uploads: list[UploadedFile] = []
    for index, upload in enumerate(files, start=1):
        data = await upload.read()
        declared = upload.size if upload.size is not None else len(data)
        uploads.append(UploadedFile(name=_part_name(upload, index), data=data, declared_size=declared))
    return uploads


class MergeAwareGZipMiddleware(GZipMiddleware):
    """Gzip responses except those of the merge endpoint, which serves PDF bytes."""

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and scope["path"] == MERGE_PATH:
            await self.app(scope, receive, send)
            return
        await super().__call__(scope, receive, send)


async def _watch_disconnect(request: Request, cancel_event: threading.Event) -> None:
    """Set *cancel_event* once the client goes away."""

    while not cancel_event.is_set():
        if await request.is_disconnected():
            LOGGER.info("Client disconnected, cancelling merge")
            cancel_event.set()
            return
        await asyncio.sleep(DISCONNECT_POLL_INTERVAL)


def create_app(settings: Settings | None = None, limits: MergeLimits = DEFAULT_LIMITS) -> FastAPI:
    """Build the service application for *settings* (read from the environment by default)."""

    settings = settings or Settings.from_env()
    limiter = RateLimiter(settings.rate_limit_max_requests, settings.rate_limit_window_seconds)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging(settings.log_level)
        watchdog = MemoryWatchdog(settings.memory_warning_bytes, settings.memory_check_interval)
        watchdog.start()
        app.state.watchdog = watchdog
        LOGGER.info("Backend server running on port %s (%s)", settings.port, settings.environment)
        try:
            yield
        finally:
            await watchdog.stop()
            LOGGER.info("Backend server shut down")

    app = FastAPI(title="pdfjoin merge service", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.rate_limiter = limiter

    @app.middleware("http")
    async def rate_limit(request: Request, call_next):
        if request.url.path.startswith(API_PREFIX) and request.method != "OPTIONS":
            client = request.client.host if request.client else "unknown"
            retry_after = limiter.hit(client)
            if retry_after is not None:
                LOGGER.warning("Rate limit exceeded for %s", client)
                response = _error(429, "Too many requests, please try again later.")
                response.headers["Retry-After"] = str(int(retry_after) + 1)
                return response
        return await call_next(request)

    app.add_middleware(MergeAwareGZipMiddleware, minimum_size=1024)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=ALLOWED_METHODS,
        allow_headers=ALLOWED_HEADERS,
        expose_headers=EXPOSED_HEADERS,
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = "Endpoint not found" if exc.status_code == 404 else str(exc.detail)
        response = _error(exc.status_code, message)
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg')}"
            for error in exc.errors()
        )
        return _error(400, f"Invalid request: {problems}")

    @app.get(f"{API_PREFIX}/healthcheck", response_model=HealthStatus)
    async def healthcheck() -> HealthStatus:
        """Report liveness along with uptime and memory figures."""

        return HealthStatus(
            status="ok",
            timestamp=datetime.now(timezone.utc).isoformat(),
            uptime=round(time.monotonic() - _STARTED_AT, 3),
            memory=MemoryUsage(**memory_snapshot()),
            environment=settings.environment,
        )

    @app.post(MERGE_PATH, response_class=Response)
    async def merge(
        request: Request,
        files: Optional[List[UploadFile]] = File(None, description="PDF files to merge, in order"),
    ) -> Response:
        """Merge the uploaded PDFs, in submission order, into one document.

        Uploads are held in memory only. The merge runs in a worker thread and
        is abandoned if the client disconnects before it finishes.
        """

        files = files or []
        rejected = _check_parts(files, limits)
        if rejected is not None:
            return rejected
        read = await _read_uploads(files)

        cancel_event = threading.Event()
        watcher = asyncio.create_task(_watch_disconnect(request, cancel_event))
        try:
            outcome = await run_in_threadpool(
                MergeOrchestrator(limits).run, read, cancel_event=cancel_event
            )
        finally:
            watcher.cancel()
            await asyncio.gather(watcher, return_exceptions=True)

        if isinstance(outcome, MergeFailure):
            return _failure_response(outcome)

        headers = {
            "Content-Disposition": "attachment; filename=merged.pdf",
            "Cache-Control": "no-store, must-revalidate",
            **outcome.metrics.as_headers(),
        }
        return Response(content=outcome.output, media_type=PDF_MEDIA_TYPE, headers=headers)

    return app


app = create_app()


def run() -> None:
    """Serve :data:`app` with uvicorn until SIGINT/SIGTERM."""

    settings: Settings = app.state.settings
    configure_logging(settings.log_level)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


__all__ = ["app", "create_app", "run"]


if __name__ == "__main__":
    run()
