"""Pydantic models describing the JSON bodies returned by the service."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class MemoryUsage(BaseModel):
    """Resident and virtual memory of the server process, in bytes."""

    rss: int
    vms: int


class HealthStatus(BaseModel):
    """Payload returned by the health check."""

    status: str
    timestamp: str
    uptime: float
    memory: MemoryUsage
    environment: str


class ErrorResponse(BaseModel):
    """Error body shared by all failing requests."""

    error: str


class MergeFailureResponse(ErrorResponse):
    """Body returned when a merge fails unexpectedly."""

    details: str
    processing_time: str = Field(..., alias="processingTime")

    model_config = ConfigDict(populate_by_name=True)


__all__ = ["MemoryUsage", "HealthStatus", "ErrorResponse", "MergeFailureResponse"]
