"""FastAPI route definitions."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from summary_worker.core.errors import PipelineError
from summary_worker.core.settings import APP_VERSION
from summary_worker.schemas.config import AppConfig
from summary_worker.schemas.job import ErrorResponse, HealthResponse, ProcessVideoRequest, ProcessVideoResponse
from summary_worker.services.config_store import load_config
from summary_worker.services.media import tool_available, ytdlp_available
from summary_worker.services.pipeline import PipelineRunner

router = APIRouter(tags=["worker"])


def get_config(request: Request) -> AppConfig:
    config = getattr(request.app.state, "config", None)
    return config if isinstance(config, AppConfig) else load_config()


def get_runner(config: AppConfig = Depends(get_config)) -> PipelineRunner:
    return PipelineRunner(config)


def _error(status_code: int, body: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


@router.get("/health", response_model=HealthResponse)
def health(config: AppConfig = Depends(get_config)) -> HealthResponse:
    return HealthResponse(
        ok=True,
        version=APP_VERSION,
        ffmpeg_available=tool_available(config.media.ffmpeg_bin),
        ytdlp_available=ytdlp_available(config.media.ytdlp_bin),
    )


@router.post("/process-video", response_model=ProcessVideoResponse)
async def process_video(request: Request, runner: PipelineRunner = Depends(get_runner)) -> Any:
    try:
        payload = await request.json()
    except ValueError:
        payload = None
    try:
        body = ProcessVideoRequest.model_validate(payload if isinstance(payload, dict) else {})
    except ValidationError:
        return _error(400, ErrorResponse(error="summaryId, videoUrl and platform must be strings"))
    missing = body.missing_fields()
    if missing:
        return _error(400, ErrorResponse(error=f"Missing {' | '.join(missing)}"))

    summary_id = str(body.summaryId).strip()
    try:
        data = await runner.run(summary_id, str(body.videoUrl).strip(), body.platform)
    except PipelineError as exc:
        return _error(
            500,
            ErrorResponse(error=exc.message, processingTimeMs=exc.elapsed_ms, stage=exc.stage.value),
        )
    return ProcessVideoResponse(success=True, data=data)
