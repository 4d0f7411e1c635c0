"""Shapes and normalization for generated summary documents."""

from __future__ import annotations

from typing import Any, Callable, Optional

from summary_worker.core.constants import (
    STEP_PLACEHOLDER,
    SYNTHESIS_FAILED_INSTRUCTION,
    ContentType,
)

RECIPE_ARRAY_FIELDS = ("ingredients", "notes")
TUTORIAL_ARRAY_FIELDS = ("materials", "tips", "warnings")
STEP_TEXT_KEYS = ("instruction", "text", "description", "step_text")

CATEGORY_BY_TYPE = {
    ContentType.RECIPE: "recipe",
    ContentType.TUTORIAL: "tutorial",
    ContentType.STORY: "general",
}

# Human readable contracts handed to the completion endpoint.
SCHEMA_DESCRIPTIONS = {
    ContentType.RECIPE: (
        '{"title": string, "intro": string, "ingredients": string[], '
        '"steps": [{"step": number, "instruction": string}], "notes": string[]}'
    ),
    ContentType.TUTORIAL: (
        '{"title": string, "intro": string, "materials": string[], '
        '"steps": [{"step": number, "instruction": string}], "tips": string[], "warnings": string[]}'
    ),
    ContentType.STORY: '{"readable": string}',
}


def _as_dict(value: object) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, dict):
        return " ".join(_as_text(v) for v in value.values() if _as_text(v))
    if isinstance(value, list):
        return " ".join(_as_text(v) for v in value if _as_text(v))
    return str(value).strip()


def normalize_string_list(value: object) -> list[str]:
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if not isinstance(value, list):
        return []
    items: list[str] = []
    for item in value:
        text = _as_text(item)
        if text:
            items.append(text)
    return items


def _step_instruction(item: object) -> str:
    if isinstance(item, dict):
        for key in STEP_TEXT_KEYS:
            text = _as_text(item.get(key))
            if text:
                return text
        return ""
    return _as_text(item)


def normalize_steps(value: object) -> list[dict[str, Any]]:
    raw = value if isinstance(value, list) else []
    instructions = [text for text in (_step_instruction(item) for item in raw) if text]
    if not instructions:
        instructions = [STEP_PLACEHOLDER]
    return [{"step": number, "instruction": text} for number, text in enumerate(instructions, start=1)]


def _base_fields(payload: dict[str, Any], content_type: ContentType, default_title: str) -> dict[str, Any]:
    doc: dict[str, Any] = {
        "type": content_type.value,
        "title": _as_text(payload.get("title")) or default_title,
        "category": CATEGORY_BY_TYPE[content_type],
    }
    return doc


def _carry_error(payload: dict[str, Any], doc: dict[str, Any]) -> dict[str, Any]:
    error = _as_text(payload.get("error"))
    if error:
        doc["error"] = error
    return doc


def normalize_recipe(payload: dict[str, Any], default_title: str = "") -> dict[str, Any]:
    doc = _base_fields(payload, ContentType.RECIPE, default_title)
    doc["intro"] = _as_text(payload.get("intro"))
    doc["ingredients"] = normalize_string_list(payload.get("ingredients"))
    doc["steps"] = normalize_steps(payload.get("steps"))
    doc["notes"] = normalize_string_list(payload.get("notes"))
    return _carry_error(payload, doc)


def normalize_tutorial(payload: dict[str, Any], default_title: str = "") -> dict[str, Any]:
    doc = _base_fields(payload, ContentType.TUTORIAL, default_title)
    doc["intro"] = _as_text(payload.get("intro"))
    doc["materials"] = normalize_string_list(payload.get("materials"))
    doc["steps"] = normalize_steps(payload.get("steps"))
    doc["tips"] = normalize_string_list(payload.get("tips"))
    doc["warnings"] = normalize_string_list(payload.get("warnings"))
    return _carry_error(payload, doc)


def normalize_story(payload: dict[str, Any], default_title: str = "") -> dict[str, Any]:
    doc = _base_fields(payload, ContentType.STORY, default_title)
    transcript = _as_dict(payload.get("transcript"))
    verbatim = _as_text(transcript.get("verbatim"))
    readable = _as_text(transcript.get("readable")) or verbatim
    doc["transcript"] = {"verbatim": verbatim, "readable": readable}
    return _carry_error(payload, doc)


Normalizer = Callable[[dict[str, Any], str], dict[str, Any]]

NORMALIZERS: dict[ContentType, Normalizer] = {
    ContentType.RECIPE: normalize_recipe,
    ContentType.TUTORIAL: normalize_tutorial,
    ContentType.STORY: normalize_story,
}


def normalize_document(payload: object, content_type: ContentType, default_title: str = "") -> dict[str, Any]:
    return NORMALIZERS[content_type](_as_dict(payload), default_title)


def fallback_document(
    content_type: ContentType,
    title: str,
    note: str,
    transcript: Optional[str] = None,
) -> dict[str, Any]:
    """Minimal valid document of ``content_type`` describing a synthesis failure."""
    payload: dict[str, Any] = {"title": title, "error": note}
    if content_type == ContentType.RECIPE:
        payload["steps"] = [{"step": 1, "instruction": SYNTHESIS_FAILED_INSTRUCTION}]
        payload["notes"] = [note]
    elif content_type == ContentType.TUTORIAL:
        payload["steps"] = [{"step": 1, "instruction": SYNTHESIS_FAILED_INSTRUCTION}]
        payload["warnings"] = [note]
    else:
        text = (transcript or "").strip()
        payload["transcript"] = {"verbatim": text, "readable": text}
    return normalize_document(payload, content_type, title)
