"""Media processing helpers powered by ffmpeg/ffprobe/yt-dlp subprocesses."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class MediaError(RuntimeError):
    pass


@dataclass
class MediaMetadata:
    title: str
    duration: Optional[float] = None
    thumbnail: Optional[str] = None

    def to_dict(self) -> dict[str, object]:
        return {"title": self.title, "duration": self.duration, "thumbnail": self.thumbnail}


@dataclass(frozen=True)
class AudioAsset:
    path: Path
    size_bytes: int
    sample_format: str

    @classmethod
    def from_path(cls, path: Path) -> "AudioAsset":
        return cls(path=path, size_bytes=path.stat().st_size, sample_format=path.suffix.lstrip(".").lower() or "wav")


@dataclass(frozen=True)
class Chunk:
    index: int
    path: Path
    duration_s: float


def run_tool(cmd: list[str], timeout: Optional[float] = None) -> subprocess.CompletedProcess[str]:
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except subprocess.TimeoutExpired as exc:
        raise MediaError(f"Command timed out after {timeout}s: {cmd[0]}") from exc
    except OSError as exc:
        raise MediaError(f"Command could not start: {cmd[0]}: {exc}") from exc
    if proc.returncode != 0:
        stderr = (proc.stderr or "").strip()
        raise MediaError(f"Command failed (rc={proc.returncode}): {cmd[0]}\n{stderr[:400]}")
    return proc


def tool_available(binary: str) -> bool:
    try:
        run_tool([binary, "-version"], timeout=15)
        return True
    except MediaError:
        return False


def ytdlp_available(binary: str = "yt-dlp") -> bool:
    try:
        run_tool([binary, "--version"], timeout=15)
        return True
    except MediaError:
        return False


def probe_duration(path: Path, ffprobe_bin: str = "ffprobe") -> Optional[float]:
    """Return the duration of ``path`` in seconds, or None when ffprobe cannot tell."""
    try:
        proc = run_tool(
            [
                ffprobe_bin,
                "-v",
                "error",
                "-show_entries",
                "format=duration",
                "-of",
                "default=noprint_wrappers=1:nokey=1",
                str(path),
            ],
            timeout=30,
        )
        return float(proc.stdout.strip())
    except (MediaError, ValueError):
        return None


def transcode_compact(
    source: Path,
    output: Path,
    *,
    sample_rate: int,
    bitrate: str,
    ffmpeg_bin: str = "ffmpeg",
    timeout: Optional[float] = None,
) -> None:
    output.parent.mkdir(parents=True, exist_ok=True)
    run_tool(
        [
            ffmpeg_bin,
            "-y",
            "-i",
            str(source),
            "-ac",
            "1",
            "-ar",
            str(sample_rate),
            "-codec:a",
            "libmp3lame",
            "-b:a",
            bitrate,
            str(output),
        ],
        timeout=timeout,
    )


def split_segments(
    source: Path,
    chunks_dir: Path,
    *,
    segment_seconds: int,
    ffmpeg_bin: str = "ffmpeg",
    timeout: Optional[float] = None,
) -> list[Path]:
    """Split ``source`` into fixed-length stream-copied parts, returned in lexical order."""
    chunks_dir.mkdir(parents=True, exist_ok=True)
    suffix = source.suffix or ".wav"
    pattern = chunks_dir / f"part_%03d{suffix}"
    run_tool(
        [
            ffmpeg_bin,
            "-hide_banner",
            "-loglevel",
            "error",
            "-i",
            str(source),
            "-f",
            "segment",
            "-segment_time",
            str(max(1, int(segment_seconds))),
            "-c",
            "copy",
            str(pattern),
        ],
        timeout=timeout,
    )
    parts = sorted(p for p in chunks_dir.iterdir() if p.is_file() and p.name.startswith("part_"))
    logger.info("Split %s into %d parts", source.name, len(parts))
    return parts
