"""Size normalization and fixed-window segmentation of acquired audio."""

from __future__ import annotations

import logging
from pathlib import Path

from summary_worker.core.errors import NormalizationError, SegmentationError
from summary_worker.schemas.config import MediaConfig
from summary_worker.services import media
from summary_worker.services.media import AudioAsset, Chunk, MediaError

logger = logging.getLogger(__name__)


def normalize_asset(asset: AudioAsset, cfg: MediaConfig) -> AudioAsset:
    """Return an asset no larger than ``cfg.max_audio_bytes``, re-encoding once if needed."""
    if asset.size_bytes <= cfg.max_audio_bytes:
        return asset

    output = asset.path.with_name(f"{asset.path.stem}_compressed.mp3")
    logger.info(
        "Audio %s is %d bytes (ceiling %d); re-encoding",
        asset.path.name,
        asset.size_bytes,
        cfg.max_audio_bytes,
    )
    try:
        media.transcode_compact(
            asset.path,
            output,
            sample_rate=cfg.compress_sample_rate,
            bitrate=cfg.compress_bitrate,
            ffmpeg_bin=cfg.ffmpeg_bin,
            timeout=cfg.transcode_timeout_s,
        )
    except MediaError as exc:
        raise NormalizationError(f"audio re-encode failed: {exc}") from exc

    if not output.exists():
        raise NormalizationError("audio re-encode produced no file")

    compressed = AudioAsset.from_path(output)
    if compressed.size_bytes > cfg.max_audio_bytes:
        raise NormalizationError(
            f"audio still {compressed.size_bytes} bytes after re-encode (ceiling {cfg.max_audio_bytes})"
        )
    return compressed


def segment_asset(asset: AudioAsset, work_dir: Path, cfg: MediaConfig) -> list[Chunk]:
    if asset.size_bytes > cfg.max_audio_bytes:
        raise SegmentationError(f"audio exceeds ceiling before segmentation: {asset.size_bytes} bytes")

    chunks_dir = work_dir / "chunks"
    try:
        parts = media.split_segments(
            asset.path,
            chunks_dir,
            segment_seconds=cfg.segment_seconds,
            ffmpeg_bin=cfg.ffmpeg_bin,
            timeout=cfg.transcode_timeout_s,
        )
    except MediaError as exc:
        raise SegmentationError(f"audio split failed: {exc}") from exc

    if not parts:
        raise SegmentationError("no chunks produced")

    chunks: list[Chunk] = []
    for index, part in enumerate(parts):
        duration = float(cfg.segment_seconds)
        if index == len(parts) - 1:
            measured = media.probe_duration(part, cfg.ffprobe_bin)
            if measured is not None:
                duration = min(duration, measured)
        chunks.append(Chunk(index=index, path=part, duration_s=duration))
    return chunks
