from __future__ import annotations

import asyncio
import json
from pathlib import Path

import httpx
import pytest

from summary_worker.schemas.config import LLMConfig, SpeechConfig
from summary_worker.services.clients import (
    CollaboratorError,
    LLMClient,
    SpeechClient,
    extract_first_json_object,
    parse_llm_text,
    parse_transcription_text,
)


def test_parse_transcription_text_from_text() -> None:
    assert parse_transcription_text({"text": "  hello world "}) == "hello world"


def test_parse_transcription_text_from_segments() -> None:
    payload = {"segments": [{"text": " first "}, {"text": ""}, {"text": "second"}]}
    assert parse_transcription_text(payload) == "first second"


def test_parse_llm_text_from_choices_message() -> None:
    payload = {"choices": [{"message": {"role": "assistant", "content": " output "}}]}
    assert parse_llm_text(payload) == "output"


def test_extract_json_with_fence_and_prose() -> None:
    assert extract_first_json_object('```json\n{"a": 1}\n```') == {"a": 1}
    assert extract_first_json_object('Sure! Here it is: {"a": {"b": 2}} hope it helps') == {"a": {"b": 2}}


def test_extract_json_rejects_missing_object() -> None:
    with pytest.raises(ValueError):
        extract_first_json_object("no braces here")
    with pytest.raises(ValueError):
        extract_first_json_object("   ")


def _audio(tmp_path: Path) -> Path:
    path = tmp_path / "part_000.wav"
    path.write_bytes(b"RIFF" + bytes(32))
    return path


def test_speech_client_retries_transient_status(tmp_path: Path) -> None:
    statuses = [429, 503, 200]
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        status = statuses.pop(0)
        if status != 200:
            return httpx.Response(status, text="slow down")
        return httpx.Response(200, json={"text": "chunk words"})

    cfg = SpeechConfig(api_key="k", base_url="https://speech.test/", retry_base_delay_s=0)
    client = SpeechClient(cfg, transport=httpx.MockTransport(handler))

    assert asyncio.run(client.transcribe(_audio(tmp_path))) == "chunk words"
    assert len(seen) == 3
    assert str(seen[0].url) == "https://speech.test/v1/audio/transcriptions"
    assert seen[0].headers["Authorization"] == "Bearer k"


def test_speech_client_fails_fast_on_client_error(tmp_path: Path) -> None:
    calls: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(400, text="bad audio")

    cfg = SpeechConfig(api_key="k", retry_base_delay_s=0)
    client = SpeechClient(cfg, transport=httpx.MockTransport(handler))

    with pytest.raises(CollaboratorError, match="400"):
        asyncio.run(client.transcribe(_audio(tmp_path)))
    assert len(calls) == 1


def test_speech_client_gives_up_after_max_retries(tmp_path: Path) -> None:
    calls: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(500, text="down")

    cfg = SpeechConfig(api_key="k", max_retries=2, retry_base_delay_s=0)
    client = SpeechClient(cfg, transport=httpx.MockTransport(handler))

    with pytest.raises(CollaboratorError):
        asyncio.run(client.transcribe(_audio(tmp_path)))
    assert len(calls) == 3


def test_speech_client_requires_api_key(tmp_path: Path) -> None:
    with pytest.raises(CollaboratorError, match="api_key"):
        asyncio.run(SpeechClient(SpeechConfig()).transcribe(_audio(tmp_path)))


def test_llm_client_generate_json() -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        content = 'Here you go:\n```json\n{"contentType": "recipe", "confidence": 0.9}\n```'
        return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})

    client = LLMClient(LLMConfig(api_key="k", model="m"), transport=httpx.MockTransport(handler))

    result = asyncio.run(client.generate_json(user_prompt="classify", temperature=0.1))

    assert result == {"contentType": "recipe", "confidence": 0.9}
    assert bodies[0]["model"] == "m"
    assert bodies[0]["temperature"] == 0.1
    assert bodies[0]["messages"][-1] == {"role": "user", "content": "classify"}


def test_llm_client_error_status() -> None:
    client = LLMClient(
        LLMConfig(api_key="k"),
        transport=httpx.MockTransport(lambda request: httpx.Response(401, text="nope")),
    )
    with pytest.raises(CollaboratorError, match="401"):
        asyncio.run(client.generate_text(user_prompt="hi"))
