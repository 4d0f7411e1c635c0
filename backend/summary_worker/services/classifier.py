"""Route an early transcript to one of the supported content types."""

from __future__ import annotations

import logging
import textwrap
from dataclasses import dataclass
from typing import Any, Protocol

from summary_worker.core.constants import DEFAULT_CONTENT_TYPE, ContentType

logger = logging.getLogger(__name__)

DEFAULT_PREFIX_CHARS = 1400


class JsonCompleter(Protocol):
    async def generate_json(self, *, user_prompt: str, **kwargs: Any) -> dict[str, Any]: ...


@dataclass(frozen=True)
class Classification:
    type: ContentType
    confidence: float = 0.0
    rationale: str = ""

    def to_dict(self) -> dict[str, object]:
        return {"contentType": self.type.value, "confidence": self.confidence, "rationale": self.rationale}


def parse_label(value: object) -> ContentType:
    raw = str(value or "").strip().lower()
    for content_type in ContentType:
        if content_type.value == raw:
            return content_type
    return DEFAULT_CONTENT_TYPE


def _clamp_confidence(value: object) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        return 0.0
    if confidence != confidence:  # NaN
        return 0.0
    return max(0.0, min(1.0, confidence))


def parse_classification(payload: dict[str, Any]) -> Classification:
    label = payload.get("contentType", payload.get("type"))
    rationale = payload.get("rationale")
    content_type = parse_label(label)
    # A defaulted label carries no model confidence.
    chosen = str(label or "").strip().lower() == content_type.value
    return Classification(
        type=content_type,
        confidence=_clamp_confidence(payload.get("confidence")) if chosen else 0.0,
        rationale=rationale.strip() if isinstance(rationale, str) else "",
    )


def build_classify_prompt(early: str, title: str, prefix_chars: int = DEFAULT_PREFIX_CHARS) -> str:
    excerpt = early[: max(0, prefix_chars)]
    return textwrap.dedent(
        """
        Decide what kind of video this transcript comes from.

        Title: "{title}"
        TRANSCRIPT (first {limit} chars):
        {excerpt}

        Choose exactly one contentType:
        - recipe: cooking or preparing food or drink
        - tutorial: teaching how to make, fix, or do something step by step
        - story: anything else (narrative, vlog, commentary, review)

        Return JSON only: {{"contentType": "recipe|tutorial|story", "confidence": 0.0-1.0, "rationale": "short reason"}}
        """
    ).strip().format(title=title, limit=prefix_chars, excerpt=excerpt)


async def classify_content(
    early: str,
    title: str,
    llm: JsonCompleter,
    *,
    prefix_chars: int = DEFAULT_PREFIX_CHARS,
    temperature: float = 0.1,
) -> Classification:
    if not early.strip():
        return Classification(type=DEFAULT_CONTENT_TYPE, rationale="empty transcript")

    prompt = build_classify_prompt(early, title, prefix_chars)
    try:
        payload = await llm.generate_json(user_prompt=prompt, temperature=temperature)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Classification failed, defaulting to %s: %s", DEFAULT_CONTENT_TYPE.value, exc)
        return Classification(type=DEFAULT_CONTENT_TYPE, rationale=f"classification unavailable: {exc}"[:200])
    return parse_classification(payload)
