from __future__ import annotations

import pytest

from summary_worker.core.constants import ContentType
from summary_worker.services.summary_schema import (
    NORMALIZERS,
    fallback_document,
    normalize_document,
    normalize_steps,
    normalize_string_list,
)

RECIPE_ARRAYS = ("ingredients", "steps", "notes")
TUTORIAL_ARRAYS = ("materials", "steps", "tips", "warnings")


def test_normalize_recipe_fills_missing_fields() -> None:
    doc = normalize_document({"title": "Shakshuka", "ingredients": None}, ContentType.RECIPE, "Video")

    assert doc["type"] == "recipe"
    assert doc["category"] == "recipe"
    assert doc["title"] == "Shakshuka"
    assert doc["intro"] == ""
    for field in RECIPE_ARRAYS:
        assert isinstance(doc[field], list)
    assert doc["ingredients"] == []
    assert doc["steps"] == [{"step": 1, "instruction": "No clear steps detected."}]


def test_normalize_tutorial_renumbers_and_drops_empty_steps() -> None:
    payload = {
        "title": None,
        "intro": 42,
        "materials": "sandpaper",
        "steps": [
            {"step": 7, "instruction": "Sand the edge"},
            {"step": 2, "instruction": "   "},
            "Apply the stain",
            {"text": "Let it dry"},
            None,
        ],
        "tips": ["", "work in thin coats"],
    }
    doc = normalize_document(payload, ContentType.TUTORIAL, "Refinishing a chair")

    assert doc["title"] == "Refinishing a chair"
    assert doc["intro"] == "42"
    assert doc["materials"] == ["sandpaper"]
    assert doc["steps"] == [
        {"step": 1, "instruction": "Sand the edge"},
        {"step": 2, "instruction": "Apply the stain"},
        {"step": 3, "instruction": "Let it dry"},
    ]
    assert doc["tips"] == ["work in thin coats"]
    assert doc["warnings"] == []
    for field in TUTORIAL_ARRAYS:
        assert isinstance(doc[field], list)


def test_normalize_story_defaults_readable_to_verbatim() -> None:
    doc = normalize_document({"transcript": {"verbatim": "once upon a time"}}, ContentType.STORY, "A tale")

    assert doc == {
        "type": "story",
        "title": "A tale",
        "category": "general",
        "transcript": {"verbatim": "once upon a time", "readable": "once upon a time"},
    }


def test_normalize_accepts_non_dict_payload() -> None:
    doc = normalize_document(["not", "a", "dict"], ContentType.RECIPE, "T")
    assert doc["ingredients"] == []
    assert doc["steps"][0]["step"] == 1


@pytest.mark.parametrize("content_type", list(ContentType))
def test_normalization_is_idempotent(content_type: ContentType) -> None:
    messy = {
        "title": " Title ",
        "intro": None,
        "ingredients": [{"item": "egg", "amount": "2"}, "", "salt"],
        "materials": None,
        "steps": ["", {"instruction": "Do it"}, {"description": "Then this"}],
        "notes": "one note",
        "tips": [1, 2],
        "warnings": [None],
        "transcript": {"verbatim": "hello there", "readable": ""},
        "error": "upstream timeout",
    }
    once = normalize_document(messy, content_type, "Default")
    twice = normalize_document(once, content_type, "Default")
    assert once == twice


def test_string_list_flattens_dict_items() -> None:
    assert normalize_string_list([{"item": "egg", "amount": "2"}]) == ["egg 2"]
    assert normalize_string_list(7) == []


def test_steps_are_contiguous_from_one() -> None:
    steps = normalize_steps([{"step": 9, "instruction": "a"}, {"step": 3, "instruction": "b"}, "c"])
    assert [s["step"] for s in steps] == [1, 2, 3]


def test_fallback_tutorial_document() -> None:
    doc = fallback_document(ContentType.TUTORIAL, "Fix a tap", "Summary generation failed: bad json")

    assert doc["type"] == "tutorial"
    assert doc["steps"] == [{"step": 1, "instruction": "Summary generation failed. Please try again."}]
    assert doc["materials"] == []
    assert doc["tips"] == []
    assert doc["warnings"] == ["Summary generation failed: bad json"]
    assert doc["error"] == "Summary generation failed: bad json"


def test_fallback_story_keeps_transcript() -> None:
    doc = fallback_document(ContentType.STORY, "Vlog", "failed", transcript=" hi all ")
    assert doc["transcript"] == {"verbatim": "hi all", "readable": "hi all"}


def test_registry_covers_every_content_type() -> None:
    assert set(NORMALIZERS) == set(ContentType)
