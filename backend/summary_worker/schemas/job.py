"""Pydantic schemas for the processing API."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class ProcessVideoRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    summaryId: Optional[str] = None
    videoUrl: Optional[str] = None
    platform: Optional[str] = None

    def missing_fields(self) -> list[str]:
        return [
            name
            for name in ("summaryId", "videoUrl", "platform")
            if not str(getattr(self, name) or "").strip()
        ]


class ProcessVideoResponse(BaseModel):
    success: bool = True
    data: dict[str, Any]


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    processingTimeMs: Optional[int] = None
    stage: Optional[str] = None


class HealthResponse(BaseModel):
    ok: bool = True
    version: str
    ffmpeg_available: bool
    ytdlp_available: bool
