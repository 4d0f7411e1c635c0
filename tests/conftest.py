from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Callable

import pytest

from summary_worker.services.media import Chunk


class FakeSpeech:
    """Speech client returning canned text per chunk file name."""

    def __init__(self, texts: dict[str, str], delays: dict[str, float] | None = None, fail_on: set[str] | None = None):
        self.texts = texts
        self.delays = delays or {}
        self.fail_on = fail_on or set()
        self.calls: list[str] = []
        self.completed: list[str] = []

    async def transcribe(self, audio_file: Path) -> str:
        self.calls.append(audio_file.name)
        await asyncio.sleep(self.delays.get(audio_file.name, 0))
        if audio_file.name in self.fail_on:
            raise RuntimeError(f"boom on {audio_file.name}")
        self.completed.append(audio_file.name)
        return self.texts[audio_file.name]


class FakeLLM:
    """Completion client answering with the first responder whose marker appears in the prompt."""

    def __init__(self, responders: list[tuple[str, Callable[[str], Any]]]):
        self.responders = responders
        self.prompts: list[str] = []

    async def generate_json(self, *, user_prompt: str, **kwargs: Any) -> dict[str, Any]:
        self.prompts.append(user_prompt)
        for marker, responder in self.responders:
            if marker in user_prompt:
                result = responder(user_prompt)
                if isinstance(result, Exception):
                    raise result
                if isinstance(result, str):
                    return json.loads(result)
                return result
        raise ValueError("no json object found in llm output")


@pytest.fixture
def make_chunks(tmp_path: Path) -> Callable[[int], list[Chunk]]:
    def _make(count: int) -> list[Chunk]:
        chunk_dir = tmp_path / "chunks"
        chunk_dir.mkdir(exist_ok=True)
        chunks = []
        for index in range(count):
            path = chunk_dir / f"part_{index:03d}.wav"
            path.write_bytes(b"RIFF" + bytes(64))
            chunks.append(Chunk(index=index, path=path, duration_s=60.0))
        return chunks

    return _make


@pytest.fixture
def fake_speech() -> type[FakeSpeech]:
    return FakeSpeech


@pytest.fixture
def fake_llm() -> type[FakeLLM]:
    return FakeLLM
