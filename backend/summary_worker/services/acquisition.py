"""Platform-aware metadata resolution and audio download via yt-dlp."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from summary_worker.core.constants import UNTITLED_VIDEO, Platform
from summary_worker.core.errors import AcquisitionError
from summary_worker.schemas.config import MediaConfig
from summary_worker.services import media
from summary_worker.services.media import AudioAsset, MediaError, MediaMetadata

logger = logging.getLogger(__name__)

UA_DESKTOP = "Mozilla/5.0 (Windows NT 10.0; Win64; x64)"
UA_DESKTOP_WEBKIT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
UA_DESKTOP_CHROME = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)
UA_IPHONE_14 = "Mozilla/5.0 (iPhone; CPU iPhone OS 14_0 like Mac OS X) AppleWebKit/605.1.15"
UA_IPHONE_15 = "Mozilla/5.0 (iPhone; CPU iPhone OS 15_0 like Mac OS X)"
UA_ANDROID = "Mozilla/5.0 (Linux; Android 10; SM-G973F)"
UA_INSTAGRAM_APP = "Instagram 219.0.0.12.117 Android"

AUDIO_STEM = "audio"


@dataclass(frozen=True)
class InvocationProfile:
    user_agent: Optional[str] = None
    extractor_args: Optional[str] = None

    def args(self) -> list[str]:
        args: list[str] = []
        if self.user_agent:
            args.extend(["--user-agent", self.user_agent])
        if self.extractor_args:
            args.extend(["--extractor-args", self.extractor_args])
        return args


@dataclass(frozen=True)
class ExtractionStrategy:
    name: str
    format_selector: Optional[str] = None
    profile: InvocationProfile = InvocationProfile()

    def command(self, url: str, output_template: str, ytdlp_bin: str = "yt-dlp") -> list[str]:
        cmd = [ytdlp_bin, "--no-playlist"]
        if self.format_selector:
            cmd.extend(["-f", self.format_selector])
        cmd.extend(["--extract-audio", "--audio-format", "wav"])
        cmd.extend(self.profile.args())
        cmd.extend(["-o", output_template, url])
        return cmd


GENERIC_STRATEGY = ExtractionStrategy(name="generic")

METADATA_PROFILES: dict[Platform, InvocationProfile] = {
    Platform.INSTAGRAM: InvocationProfile(user_agent=UA_IPHONE_14),
    Platform.TIKTOK: InvocationProfile(user_agent=UA_ANDROID),
    Platform.FACEBOOK: InvocationProfile(user_agent=UA_DESKTOP_CHROME),
    Platform.YOUTUBE: InvocationProfile(
        user_agent=UA_DESKTOP_WEBKIT,
        extractor_args="youtube:player_client=android,web",
    ),
}
DEFAULT_METADATA_PROFILE = METADATA_PROFILES[Platform.YOUTUBE]

# Tried strictly in order; the last entry of every list is the format-agnostic fallback.
EXTRACTION_STRATEGIES: dict[Platform, tuple[ExtractionStrategy, ...]] = {
    Platform.INSTAGRAM: (
        ExtractionStrategy(
            name="instagram_app",
            format_selector="best[ext=mp4]",
            profile=InvocationProfile(user_agent=UA_INSTAGRAM_APP),
        ),
        ExtractionStrategy(
            name="instagram_mobile_web",
            format_selector="best",
            profile=InvocationProfile(user_agent=UA_IPHONE_15),
        ),
        GENERIC_STRATEGY,
    ),
    Platform.TIKTOK: (
        ExtractionStrategy(
            name="tiktok_android",
            format_selector="best",
            profile=InvocationProfile(user_agent=UA_ANDROID),
        ),
        GENERIC_STRATEGY,
    ),
    Platform.FACEBOOK: (
        ExtractionStrategy(
            name="facebook_720p",
            format_selector="best[height<=720]",
            profile=InvocationProfile(user_agent=UA_DESKTOP),
        ),
        GENERIC_STRATEGY,
    ),
    Platform.YOUTUBE: (
        ExtractionStrategy(
            name="youtube_android_client",
            format_selector="bestaudio/best",
            profile=InvocationProfile(
                user_agent=UA_DESKTOP,
                extractor_args="youtube:player_client=android",
            ),
        ),
        GENERIC_STRATEGY,
    ),
    Platform.UNKNOWN: (GENERIC_STRATEGY,),
}


def strategies_for(platform: Platform) -> tuple[ExtractionStrategy, ...]:
    return EXTRACTION_STRATEGIES.get(platform, EXTRACTION_STRATEGIES[Platform.UNKNOWN])


def placeholder_metadata(platform: Platform) -> MediaMetadata:
    return MediaMetadata(title=f"{platform.value} video")


def _safe_duration(value: object) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        duration = float(value)
    except (TypeError, ValueError):
        return None
    return duration if duration > 0 else None


def parse_metadata(stdout: str, platform: Platform) -> MediaMetadata:
    # --print-json may emit one object per line for multi-entry URLs; the first wins.
    first_line = next((line for line in stdout.splitlines() if line.strip()), "")
    try:
        info = json.loads(first_line)
    except json.JSONDecodeError:
        return placeholder_metadata(platform)
    if not isinstance(info, dict):
        return placeholder_metadata(platform)

    title = info.get("title")
    thumbnail = info.get("thumbnail")
    return MediaMetadata(
        title=title.strip() if isinstance(title, str) and title.strip() else UNTITLED_VIDEO,
        duration=_safe_duration(info.get("duration")),
        thumbnail=thumbnail if isinstance(thumbnail, str) and thumbnail else None,
    )


def resolve_metadata(url: str, platform: Platform, cfg: MediaConfig) -> MediaMetadata:
    profile = METADATA_PROFILES.get(platform, DEFAULT_METADATA_PROFILE)
    cmd = [cfg.ytdlp_bin, "--no-download", "--print-json", "--no-warnings", "--no-playlist"]
    cmd.extend(profile.args())
    cmd.append(url)
    try:
        proc = media.run_tool(cmd, timeout=cfg.metadata_timeout_s)
    except MediaError as exc:
        logger.warning("%s metadata lookup failed: %s", platform.value, str(exc)[:400])
        return placeholder_metadata(platform)
    return parse_metadata(proc.stdout, platform)


def _clear_outputs(work_dir: Path) -> None:
    for leftover in work_dir.glob(f"{AUDIO_STEM}*"):
        if leftover.is_file():
            leftover.unlink(missing_ok=True)


def _find_output(work_dir: Path) -> Optional[Path]:
    produced = sorted(p for p in work_dir.glob(f"{AUDIO_STEM}*") if p.is_file())
    if not produced:
        return None
    # yt-dlp may leave the pre-conversion container next to the wav.
    wavs = [p for p in produced if p.suffix.lower() == ".wav"]
    return (wavs or produced)[0]


def acquire_audio(url: str, platform: Platform, work_dir: Path, cfg: MediaConfig) -> AudioAsset:
    """Run the platform's extraction strategies in order until one yields real audio."""
    work_dir.mkdir(parents=True, exist_ok=True)
    output_template = str(work_dir / f"{AUDIO_STEM}.%(ext)s")
    strategies = strategies_for(platform)
    failures: list[str] = []

    for attempt, strategy in enumerate(strategies, start=1):
        _clear_outputs(work_dir)
        cmd = strategy.command(url, output_template, cfg.ytdlp_bin)
        try:
            media.run_tool(cmd, timeout=cfg.download_timeout_s)
        except MediaError as exc:
            logger.info("Audio strategy %s failed (%d/%d), trying next", strategy.name, attempt, len(strategies))
            failures.append(f"{strategy.name}: {str(exc)[:200]}")
            continue

        produced = _find_output(work_dir)
        if produced is None:
            failures.append(f"{strategy.name}: no output file")
            continue

        size = produced.stat().st_size
        if size <= cfg.min_audio_bytes:
            failures.append(f"{strategy.name}: output too small ({size} bytes)")
            continue

        logger.info("Audio acquired with strategy %s: %s (%d bytes)", strategy.name, produced.name, size)
        return AudioAsset.from_path(produced)

    _clear_outputs(work_dir)
    raise AcquisitionError("acquisition exhausted: " + " | ".join(failures)[:1200])
