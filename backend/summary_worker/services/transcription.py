"""Two-phase chunk transcription: an early barrier, then the remainder."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Protocol, Sequence

from summary_worker.core.errors import TranscriptionError
from summary_worker.services.media import Chunk

logger = logging.getLogger(__name__)


class ChunkTranscriber(Protocol):
    async def transcribe(self, audio_file: Path) -> str: ...


def word_count(text: str) -> int:
    return len([token for token in text.split() if token])


def join_parts(parts: Sequence[str]) -> str:
    return " ".join(part for part in parts if part).strip()


class TranscriptionOrchestrator:
    """Fan chunk transcription out to the speech client and reassemble by index.

    ``transcribe_early`` is a barrier: it returns only once every early chunk
    has been transcribed. ``transcribe_rest`` covers the remaining chunks and
    appends them to the early text, so the full transcript always starts with
    the early one.
    """

    def __init__(self, transcriber: ChunkTranscriber, max_concurrency: int = 4, early_count: int = 2):
        self.transcriber = transcriber
        self.early_count = max(1, int(early_count))
        self._semaphore = asyncio.Semaphore(max(1, int(max_concurrency)))

    def early_size(self, chunks: Sequence[Chunk]) -> int:
        return min(self.early_count, len(chunks))

    async def _transcribe_chunk(self, chunk: Chunk) -> str:
        async with self._semaphore:
            try:
                text = await self.transcriber.transcribe(chunk.path)
            except Exception as exc:  # noqa: BLE001
                raise TranscriptionError(f"chunk {chunk.index} transcription failed: {exc}") from exc
        logger.debug("Chunk %d transcribed (%d chars)", chunk.index, len(text))
        return text.strip()

    async def _transcribe_all(self, chunks: Sequence[Chunk]) -> list[str]:
        ordered = sorted(chunks, key=lambda c: c.index)
        tasks = [asyncio.create_task(self._transcribe_chunk(c)) for c in ordered]
        if not tasks:
            return []
        try:
            await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        finally:
            # Siblings of a failed chunk are cancelled so none outlives the job.
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
        failures = [task.exception() for task in tasks if not task.cancelled() and task.exception()]
        if failures:
            raise failures[0]
        # Task list order matches chunk index order.
        return [task.result() for task in tasks]

    async def transcribe_early(self, chunks: Sequence[Chunk]) -> str:
        early_chunks = list(chunks[: self.early_size(chunks)])
        parts = await self._transcribe_all(early_chunks)
        return join_parts(parts)

    async def transcribe_rest(self, chunks: Sequence[Chunk], early: str) -> str:
        rest_chunks = list(chunks[self.early_size(chunks) :])
        if not rest_chunks:
            return early
        parts = await self._transcribe_all(rest_chunks)
        rest = join_parts(parts)
        if not rest:
            return early
        return f"{early} {rest}".strip()
