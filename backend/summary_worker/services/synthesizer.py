"""Schema-specific summary generation with local failure recovery."""

from __future__ import annotations

import asyncio
import logging
import re
import textwrap
from typing import Any, Awaitable, Callable, Optional

from summary_worker.core.constants import ContentType
from summary_worker.schemas.config import PipelineConfig
from summary_worker.services.classifier import Classification, JsonCompleter
from summary_worker.services.media import MediaMetadata
from summary_worker.services.summary_schema import (
    SCHEMA_DESCRIPTIONS,
    fallback_document,
    normalize_document,
)

logger = logging.getLogger(__name__)

_WORD_RE = re.compile(r"[^\W_]+", flags=re.UNICODE)

RECIPE_GUIDANCE = (
    "Write a practical recipe card. List every ingredient with its quantity when one is said. "
    "Steps must be in cooking order. Put substitutions, storage and serving hints in notes."
)
TUTORIAL_GUIDANCE = (
    "Write a step-by-step guide. List required tools and materials. "
    "Steps must be actionable and in order. Put shortcuts in tips and safety issues in warnings."
)


def split_windows(text: str, max_chars: int) -> list[str]:
    """Split ``text`` on whitespace into windows of at most ``max_chars`` (single words may exceed it)."""
    windows: list[str] = []
    current: list[str] = []
    size = 0
    for word in text.split():
        extra = len(word) + (1 if current else 0)
        if current and size + extra > max_chars:
            windows.append(" ".join(current))
            current, size = [], 0
            extra = len(word)
        current.append(word)
        size += extra
    if current:
        windows.append(" ".join(current))
    return windows


def preserves_words(original: str, rewritten: str) -> bool:
    """True when ``rewritten`` has the same word sequence as ``original`` ignoring case and punctuation."""
    return _WORD_RE.findall(original.lower()) == _WORD_RE.findall(rewritten.lower())


def build_structured_prompt(
    content_type: ContentType,
    transcript: str,
    metadata: MediaMetadata,
    classification: Classification,
) -> str:
    guidance = RECIPE_GUIDANCE if content_type == ContentType.RECIPE else TUTORIAL_GUIDANCE
    return textwrap.dedent(
        """
        {guidance}
        Only use information present in the transcript. Use empty arrays when nothing applies.

        Video title: "{title}"
        Detected type: {content_type} ({rationale})

        Return JSON only, matching this schema:
        {schema}

        TRANSCRIPT:
        {transcript}
        """
    ).strip().format(
        guidance=guidance,
        title=metadata.title,
        content_type=content_type.value,
        rationale=classification.rationale or "no rationale",
        schema=SCHEMA_DESCRIPTIONS[content_type],
        transcript=transcript,
    )


def build_readable_prompt(window: str) -> str:
    return textwrap.dedent(
        """
        Reformat this raw speech transcript so it is easy to read.
        Add punctuation, capitalization and paragraph breaks only.
        Do not add, remove, reorder or reword any words.

        Return JSON only, matching this schema:
        {schema}

        TRANSCRIPT:
        {window}
        """
    ).strip().format(schema=SCHEMA_DESCRIPTIONS[ContentType.STORY], window=window)


Handler = Callable[[str, MediaMetadata, Classification], Awaitable[dict[str, Any]]]


class SummarySynthesizer:
    """Produce a normalized summary document for the classified content type.

    ``synthesize`` never raises: collaborator and parsing failures are turned
    into a degraded document of the same type carrying an ``error`` note.
    """

    def __init__(self, llm: JsonCompleter, cfg: Optional[PipelineConfig] = None, temperature: float = 0.2):
        self.llm = llm
        self.cfg = cfg or PipelineConfig()
        self.temperature = temperature
        self._handlers: dict[ContentType, Handler] = {
            ContentType.RECIPE: self._structured,
            ContentType.TUTORIAL: self._structured,
            ContentType.STORY: self._story,
        }

    async def _structured(
        self,
        transcript: str,
        metadata: MediaMetadata,
        classification: Classification,
    ) -> dict[str, Any]:
        prompt = build_structured_prompt(
            classification.type,
            transcript[: self.cfg.summary_max_chars],
            metadata,
            classification,
        )
        return await self.llm.generate_json(user_prompt=prompt, temperature=self.temperature)

    async def _readable_window(self, window: str) -> str:
        payload = await self.llm.generate_json(user_prompt=build_readable_prompt(window), temperature=0.0)
        readable = payload.get("readable")
        if not isinstance(readable, str) or not readable.strip():
            raise ValueError("readable transcript missing from llm output")
        if not preserves_words(window, readable):
            logger.info("Readable window altered the wording; keeping verbatim text")
            return window
        return readable.strip()

    async def _story(
        self,
        transcript: str,
        metadata: MediaMetadata,
        classification: Classification,
    ) -> dict[str, Any]:
        verbatim = transcript.strip()
        windows = split_windows(verbatim, self.cfg.readable_window_chars)
        readable_parts = await asyncio.gather(*(self._readable_window(w) for w in windows))
        return {
            "title": metadata.title,
            "transcript": {"verbatim": verbatim, "readable": "\n\n".join(readable_parts)},
        }

    async def synthesize(
        self,
        transcript: str,
        metadata: MediaMetadata,
        classification: Classification,
    ) -> dict[str, Any]:
        content_type = classification.type
        handler = self._handlers.get(content_type, self._story)
        try:
            payload = await handler(transcript, metadata, classification)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Summary generation for %s failed: %s", content_type.value, exc)
            return fallback_document(
                content_type,
                metadata.title,
                f"Summary generation failed: {exc}"[:300],
                transcript=transcript,
            )
        return normalize_document(payload, content_type, metadata.title)
