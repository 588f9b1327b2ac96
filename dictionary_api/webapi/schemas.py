"""Pydantic response models for the web API."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """Public body returned for every failed lookup."""

    title: str
    message: str
    resolution: Optional[str] = None


class CacheStatsPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    hits: int
    misses: int
    keys: int
    hit_rate: float = Field(alias="hitRate")


class FormattedCacheStatsPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    hits: int
    misses: int
    keys: int
    hit_rate: str = Field(alias="hitRate")


class AdmissionStatsPayload(BaseModel):
    enabled: bool
    tracked_clients: int = 0
    max_requests: Optional[int] = None
    window_seconds: Optional[float] = None


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    uptime: float
    cache: CacheStatsPayload


class StatsResponse(BaseModel):
    cache: FormattedCacheStatsPayload
    admission: AdmissionStatsPayload
    uptime: float


__all__ = [
    "AdmissionStatsPayload",
    "CacheStatsPayload",
    "ErrorResponse",
    "FormattedCacheStatsPayload",
    "HealthResponse",
    "StatsResponse",
]
