from __future__ import annotations

import asyncio

import pytest

from summary_worker.core.errors import TranscriptionError
from summary_worker.services.transcription import TranscriptionOrchestrator, word_count


def test_three_chunk_scenario(make_chunks, fake_speech) -> None:
    chunks = make_chunks(3)
    speech = fake_speech(
        {"part_000.wav": "add the flour", "part_001.wav": "then the eggs", "part_002.wav": "bake it well"},
        delays={"part_000.wav": 0.03},
    )
    orchestrator = TranscriptionOrchestrator(speech, max_concurrency=4)

    async def run() -> tuple[str, list[str], str]:
        early = await orchestrator.transcribe_early(chunks)
        early_calls = list(speech.calls)
        full = await orchestrator.transcribe_rest(chunks, early)
        return early, early_calls, full

    early, early_calls, full = asyncio.run(run())

    assert sorted(early_calls) == ["part_000.wav", "part_001.wav"]
    assert speech.calls[2:] == ["part_002.wav"]
    assert early == "add the flour then the eggs"
    assert full == "add the flour then the eggs bake it well"
    assert full.startswith(early)
    assert word_count(full) == len(full.split()) == 9


def test_results_reassembled_by_index_not_completion(make_chunks, fake_speech) -> None:
    chunks = make_chunks(2)
    speech = fake_speech(
        {"part_000.wav": "first", "part_001.wav": "second"},
        delays={"part_000.wav": 0.05, "part_001.wav": 0.0},
    )
    early = asyncio.run(TranscriptionOrchestrator(speech).transcribe_early(chunks))
    assert early == "first second"


def test_single_chunk_full_equals_early(make_chunks, fake_speech) -> None:
    chunks = make_chunks(1)
    speech = fake_speech({"part_000.wav": " only chunk "})
    orchestrator = TranscriptionOrchestrator(speech)

    async def run() -> tuple[str, str]:
        early = await orchestrator.transcribe_early(chunks)
        return early, await orchestrator.transcribe_rest(chunks, early)

    early, full = asyncio.run(run())
    assert early == full == "only chunk"
    assert speech.calls == ["part_000.wav"]


def test_chunk_failure_is_fatal(make_chunks, fake_speech) -> None:
    chunks = make_chunks(4)
    speech = fake_speech({f"part_00{i}.wav": "x" for i in range(4)}, fail_on={"part_003.wav"})
    orchestrator = TranscriptionOrchestrator(speech)

    async def run() -> str:
        early = await orchestrator.transcribe_early(chunks)
        return await orchestrator.transcribe_rest(chunks, early)

    with pytest.raises(TranscriptionError, match="chunk 3"):
        asyncio.run(run())


def test_full_always_extends_early(make_chunks, fake_speech) -> None:
    chunks = make_chunks(5)
    texts = {f"part_00{i}.wav": ("" if i == 3 else f"w{i} w{i}b") for i in range(5)}
    orchestrator = TranscriptionOrchestrator(fake_speech(texts), max_concurrency=2)

    async def run() -> tuple[str, str]:
        early = await orchestrator.transcribe_early(chunks)
        return early, await orchestrator.transcribe_rest(chunks, early)

    early, full = asyncio.run(run())
    assert len(full) >= len(early)
    assert full.startswith(early)
    assert full == "w0 w0b w1 w1b w2 w2b w4 w4b"


def test_word_count_ignores_extra_whitespace() -> None:
    assert word_count("") == 0
    assert word_count("  one\ttwo\n\nthree  ") == 3


def test_chunk_failure_cancels_sibling_chunks(make_chunks, fake_speech) -> None:
    chunks = make_chunks(2)
    speech = fake_speech(
        {"part_000.wav": "a", "part_001.wav": "b"},
        delays={"part_001.wav": 0.2},
        fail_on={"part_000.wav"},
    )
    orchestrator = TranscriptionOrchestrator(speech)

    async def run() -> list[asyncio.Task]:
        with pytest.raises(TranscriptionError, match="chunk 0"):
            await orchestrator.transcribe_early(chunks)
        leftovers = [t for t in asyncio.all_tasks() if t is not asyncio.current_task()]
        await asyncio.sleep(0.4)
        return leftovers

    leftovers = asyncio.run(run())
    assert leftovers == []
    assert speech.completed == []
