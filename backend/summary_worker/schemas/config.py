"""Pydantic schemas for worker configuration."""

from __future__ import annotations

from pydantic import BaseModel, Field


class SpeechConfig(BaseModel):
    base_url: str = "https://api.openai.com"
    api_key: str = ""
    model: str = "whisper-1"
    timeout_s: int = 180
    max_retries: int = 3
    retry_base_delay_s: float = 1.0


class LLMConfig(BaseModel):
    base_url: str = "https://api.openai.com"
    api_key: str = ""
    model: str = "gpt-4o-mini"
    timeout_s: int = 120
    temperature: float = 0.2
    classify_temperature: float = 0.1
    system_prompt: str = "You are a careful assistant. Reply with a single JSON object and nothing else."


class ProgressConfig(BaseModel):
    url: str = ""
    token: str = ""
    timeout_s: float = 5.0
    drain_timeout_s: float = 5.0

    @property
    def enabled(self) -> bool:
        return bool(self.url.strip() and self.token.strip())


class MediaConfig(BaseModel):
    ytdlp_bin: str = "yt-dlp"
    ffmpeg_bin: str = "ffmpeg"
    ffprobe_bin: str = "ffprobe"
    metadata_timeout_s: int = 60
    download_timeout_s: int = 300
    transcode_timeout_s: int = 300
    max_audio_bytes: int = 24 * 1024 * 1024
    min_audio_bytes: int = 4 * 1024
    segment_seconds: int = 60
    compress_sample_rate: int = 16000
    compress_bitrate: str = "32k"


class PipelineConfig(BaseModel):
    early_chunk_count: int = Field(default=2, ge=1)
    max_parallel_transcriptions: int = Field(default=4, ge=1)
    classify_prefix_chars: int = 1400
    summary_max_chars: int = 12000
    readable_window_chars: int = 4000
    keep_artifacts: bool = False


class AppConfig(BaseModel):
    speech: SpeechConfig = Field(default_factory=SpeechConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    progress: ProgressConfig = Field(default_factory=ProgressConfig)
    media: MediaConfig = Field(default_factory=MediaConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
