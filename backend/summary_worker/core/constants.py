"""Project-wide constants and state definitions."""

from __future__ import annotations

from enum import Enum


class Platform(str, Enum):
    INSTAGRAM = "instagram"
    TIKTOK = "tiktok"
    FACEBOOK = "facebook"
    YOUTUBE = "youtube"
    UNKNOWN = "unknown"


class JobState(str, Enum):
    CREATED = "created"
    ACQUIRING = "acquiring"
    NORMALIZING = "normalizing"
    SEGMENTING = "segmenting"
    TRANSCRIBING_EARLY = "transcribing_early"
    CLASSIFYING = "classifying"
    TRANSCRIBING_REST = "transcribing_rest"
    STRUCTURING = "structuring"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"


class ContentType(str, Enum):
    RECIPE = "recipe"
    TUTORIAL = "tutorial"
    STORY = "story"


DEFAULT_CONTENT_TYPE = ContentType.STORY


class ProgressStage(str, Enum):
    FETCHING_AUDIO = "fetching_audio"
    DOWNLOADING = "downloading"
    TRANSCODING = "transcoding"
    CHUNKING = "chunking"
    TRANSCRIBING = "transcribing"
    CLASSIFYING = "classifying"
    TRANSCRIBED = "transcribed"
    STRUCTURING = "structuring"
    NORMALIZING = "normalizing"
    FINALIZING = "finalizing"
    FAILED = "failed"


# Percent checkpoints reported at each stage boundary.
PROGRESS_FETCHING_AUDIO = 5
PROGRESS_DOWNLOADING = 10
PROGRESS_TRANSCODING = 15
PROGRESS_CHUNKING = 20
PROGRESS_TRANSCRIBING_EARLY = 30
PROGRESS_EARLY_READY = 40
PROGRESS_CLASSIFYING = 45
PROGRESS_CLASSIFIED = 50
PROGRESS_TRANSCRIBING_REST = 55
PROGRESS_TRANSCRIBED = 70
PROGRESS_STRUCTURING = 80
PROGRESS_NORMALIZING = 90
PROGRESS_FINALIZING = 95
PROGRESS_FAILED = 0

PROCESSING_METHOD = "audio-only+chunked"

STEP_PLACEHOLDER = "No clear steps detected."
SYNTHESIS_FAILED_INSTRUCTION = "Summary generation failed. Please try again."
UNTITLED_VIDEO = "Untitled Video"
