from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    ok: int = Field(description="Always 1 while the process is serving")
    up: float = Field(description="Process uptime in seconds")


class CheckResponse(BaseModel):
    url: str
    online: bool
    code: int = Field(ge=0, description="HTTP status code, 0 when no response")
    time: int = Field(ge=0, description="Probe wall-clock time in milliseconds")
    cached: bool


class CheckMultipleRequest(BaseModel):
    urls: list[str]


class CheckSummary(BaseModel):
    total: int
    online: int
    offline: int


class CheckMultipleResponse(BaseModel):
    results: list[CheckResponse]
    summary: CheckSummary


class CacheEntryResponse(BaseModel):
    url: str
    online: bool
    age: int = Field(ge=0, description="Milliseconds since the result was stored")


class CacheResponse(BaseModel):
    size: int
    ttl: int = Field(description="Cache time-to-live in milliseconds")
    entries: list[CacheEntryResponse]


class CacheClearedResponse(BaseModel):
    cleared: int


class ErrorResponse(BaseModel):
    detail: Any
