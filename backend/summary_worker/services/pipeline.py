"""End-to-end job execution pipeline."""

from __future__ import annotations

import asyncio
import logging
import shutil
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from summary_worker.core import constants as c
from summary_worker.core.constants import JobState, Platform, ProgressStage
from summary_worker.core.errors import PipelineError, WorkerError
from summary_worker.core.settings import PATHS
from summary_worker.schemas.config import AppConfig
from summary_worker.services import acquisition, audio
from summary_worker.services.classifier import JsonCompleter, classify_content
from summary_worker.services.clients import LLMClient, SpeechClient
from summary_worker.services.platform import resolve_platform
from summary_worker.services.progress import ProgressReporter
from summary_worker.services.synthesizer import SummarySynthesizer
from summary_worker.services.transcription import ChunkTranscriber, TranscriptionOrchestrator, word_count

logger = logging.getLogger(__name__)


@dataclass
class Job:
    id: str
    url: str
    platform: Platform
    work_dir: Path
    state: JobState = JobState.CREATED
    started_at: float = field(default_factory=time.monotonic)

    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.started_at) * 1000)


def _set_stage(job: Job, state: JobState) -> None:
    logger.info("[%s] %s -> %s", job.id, job.state.value, state.value)
    job.state = state


def _safe_dir_name(summary_id: str) -> str:
    cleaned = "".join(ch if ch.isalnum() or ch in "-_" else "_" for ch in summary_id)
    return cleaned[:64] or "job"


class PipelineRunner:
    def __init__(
        self,
        config: AppConfig,
        *,
        speech_client: Optional[ChunkTranscriber] = None,
        llm_client: Optional[JsonCompleter] = None,
        jobs_root: Optional[Path] = None,
    ):
        self.config = config
        self.speech_client = speech_client or SpeechClient(config.speech)
        self.llm_client = llm_client or LLMClient(config.llm)
        self.jobs_root = jobs_root or PATHS.jobs_root

    def _new_job(self, summary_id: str, url: str, platform_hint: Optional[str]) -> Job:
        work_dir = self.jobs_root / f"{_safe_dir_name(summary_id)}-{time.time_ns()}"
        work_dir.mkdir(parents=True, exist_ok=True)
        return Job(id=summary_id, url=url, platform=resolve_platform(url, platform_hint), work_dir=work_dir)

    def _cleanup(self, job: Job) -> None:
        if self.config.pipeline.keep_artifacts:
            logger.info("[%s] keeping artifacts in %s", job.id, job.work_dir)
            return
        shutil.rmtree(job.work_dir, ignore_errors=True)

    async def run(self, summary_id: str, url: str, platform_hint: Optional[str] = None) -> dict[str, Any]:
        job = self._new_job(summary_id, url, platform_hint)
        progress = ProgressReporter(self.config.progress, summary_id)
        progress.start()
        try:
            return await self._execute(job, progress)
        except Exception as exc:  # noqa: BLE001
            stage = job.state
            message = exc.message if isinstance(exc, WorkerError) else str(exc) or type(exc).__name__
            elapsed = job.elapsed_ms()
            _set_stage(job, JobState.FAILED)
            logger.exception("[%s] job failed during %s after %dms", job.id, stage.value, elapsed)
            progress.report(
                ProgressStage.FAILED,
                c.PROGRESS_FAILED,
                f"{message} (after {elapsed}ms)",
                {"error": message, "processingTimeMs": elapsed, "stage": stage.value},
            )
            raise PipelineError(stage, message, elapsed) from exc
        finally:
            await progress.aclose()
            self._cleanup(job)

    async def _execute(self, job: Job, progress: ProgressReporter) -> dict[str, Any]:
        media_cfg = self.config.media
        pipeline_cfg = self.config.pipeline

        _set_stage(job, JobState.ACQUIRING)
        progress.report(ProgressStage.FETCHING_AUDIO, c.PROGRESS_FETCHING_AUDIO, "Resolving audio stream")
        metadata = await asyncio.to_thread(acquisition.resolve_metadata, job.url, job.platform, media_cfg)
        progress.report(ProgressStage.DOWNLOADING, c.PROGRESS_DOWNLOADING, f"Downloading {job.platform.value} audio")
        raw_asset = await asyncio.to_thread(acquisition.acquire_audio, job.url, job.platform, job.work_dir, media_cfg)

        _set_stage(job, JobState.NORMALIZING)
        progress.report(ProgressStage.TRANSCODING, c.PROGRESS_TRANSCODING, "Ensuring size for ASR")
        asset = await asyncio.to_thread(audio.normalize_asset, raw_asset, media_cfg)

        _set_stage(job, JobState.SEGMENTING)
        progress.report(
            ProgressStage.CHUNKING,
            c.PROGRESS_CHUNKING,
            f"Slicing audio into {media_cfg.segment_seconds}s parts",
        )
        chunks = await asyncio.to_thread(audio.segment_asset, asset, job.work_dir, media_cfg)

        orchestrator = TranscriptionOrchestrator(
            self.speech_client,
            max_concurrency=pipeline_cfg.max_parallel_transcriptions,
            early_count=pipeline_cfg.early_chunk_count,
        )

        _set_stage(job, JobState.TRANSCRIBING_EARLY)
        progress.report(ProgressStage.TRANSCRIBING, c.PROGRESS_TRANSCRIBING_EARLY, "Transcribing first chunks")
        early = await orchestrator.transcribe_early(chunks)
        progress.report(
            ProgressStage.TRANSCRIBING,
            c.PROGRESS_EARLY_READY,
            "Early transcript ready",
            {"transcript": early},
        )

        _set_stage(job, JobState.CLASSIFYING)
        progress.report(ProgressStage.CLASSIFYING, c.PROGRESS_CLASSIFYING, "Detecting content type")
        classification = await classify_content(
            early,
            metadata.title,
            self.llm_client,
            prefix_chars=pipeline_cfg.classify_prefix_chars,
            temperature=self.config.llm.classify_temperature,
        )
        progress.report(
            ProgressStage.CLASSIFYING,
            c.PROGRESS_CLASSIFIED,
            f"Type: {classification.type.value}",
            {"contentType": classification.type.value},
        )

        _set_stage(job, JobState.TRANSCRIBING_REST)
        remaining = len(chunks) - orchestrator.early_size(chunks)
        progress.report(
            ProgressStage.TRANSCRIBING,
            c.PROGRESS_TRANSCRIBING_REST,
            f"Transcribing remaining {remaining} chunk(s)",
        )
        full = await orchestrator.transcribe_rest(chunks, early)
        progress.report(
            ProgressStage.TRANSCRIBED,
            c.PROGRESS_TRANSCRIBED,
            "Full transcript ready",
            {"transcript": full},
        )

        _set_stage(job, JobState.STRUCTURING)
        progress.report(ProgressStage.STRUCTURING, c.PROGRESS_STRUCTURING, f"Building {classification.type.value} summary")
        synthesizer = SummarySynthesizer(self.llm_client, pipeline_cfg, temperature=self.config.llm.temperature)
        summary = await synthesizer.synthesize(full, metadata, classification)
        progress.report(ProgressStage.NORMALIZING, c.PROGRESS_NORMALIZING, "Summary normalized")

        _set_stage(job, JobState.FINALIZING)
        progress.report(ProgressStage.FINALIZING, c.PROGRESS_FINALIZING, "Packaging result")
        video_info = metadata.to_dict()
        video_info["platform"] = job.platform.value
        result = {
            "videoInfo": video_info,
            "transcription": full,
            "summary": summary,
            "wordCount": word_count(full),
            "processingMethod": c.PROCESSING_METHOD,
            "analysis": classification.to_dict(),
            "processingTimeMs": job.elapsed_ms(),
        }
        _set_stage(job, JobState.DONE)
        return result
