"""HTTP clients for the speech-to-text and chat-completion endpoints."""

from __future__ import annotations

import asyncio
import json
import logging
import random
import re
from pathlib import Path
from typing import Any, Optional

import httpx

from summary_worker.schemas.config import LLMConfig, SpeechConfig

logger = logging.getLogger(__name__)

TRANSCRIPTIONS_PATH = "/v1/audio/transcriptions"
CHAT_COMPLETIONS_PATH = "/v1/chat/completions"

AUDIO_CONTENT_TYPES = {
    "wav": "audio/wav",
    "mp3": "audio/mpeg",
    "m4a": "audio/mp4",
    "webm": "audio/webm",
    "ogg": "audio/ogg",
}


class CollaboratorError(RuntimeError):
    def __init__(self, message: str, retryable: bool = False):
        super().__init__(message)
        self.retryable = retryable


def _deep_find(data: Any, keys: set[str]) -> list[Any]:
    found: list[Any] = []
    if isinstance(data, dict):
        for k, v in data.items():
            if k in keys:
                found.append(v)
            found.extend(_deep_find(v, keys))
    elif isinstance(data, list):
        for item in data:
            found.extend(_deep_find(item, keys))
    return found


def _first_string(values: list[Any]) -> Optional[str]:
    for value in values:
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def parse_transcription_text(payload: dict[str, Any]) -> str:
    direct = payload.get("text")
    if isinstance(direct, str):
        return direct.strip()

    segments = payload.get("segments")
    if isinstance(segments, list):
        parts = [
            row["text"].strip()
            for row in segments
            if isinstance(row, dict) and isinstance(row.get("text"), str) and row["text"].strip()
        ]
        if parts:
            return " ".join(parts)

    return _first_string(_deep_find(payload, {"text", "transcript"})) or ""


def parse_llm_text(payload: dict[str, Any]) -> str:
    choices = payload.get("choices")
    if isinstance(choices, list) and choices:
        first = choices[0]
        if isinstance(first, dict):
            message = first.get("message")
            if isinstance(message, dict):
                content = message.get("content")
                if isinstance(content, str):
                    return content.strip()
            content = first.get("text")
            if isinstance(content, str):
                return content.strip()

    output_text = payload.get("output_text")
    if isinstance(output_text, str):
        return output_text.strip()

    candidates = _deep_find(payload, {"text", "content"})
    content = _first_string(candidates)
    return content or ""


def extract_first_json_object(text: str) -> dict[str, Any]:
    text = text.strip()
    if not text:
        raise ValueError("empty llm output")

    if text.startswith("```"):
        text = re.sub(r"^```(?:json)?", "", text).strip()
        text = re.sub(r"```$", "", text).strip()

    try:
        parsed = json.loads(text)
        if isinstance(parsed, dict):
            return parsed
    except json.JSONDecodeError:
        pass

    # Greedy: spans from the first "{" to the last "}".
    match = re.search(r"\{.*\}", text, flags=re.DOTALL)
    if not match:
        raise ValueError("no json object found in llm output")

    parsed = json.loads(match.group(0))
    if not isinstance(parsed, dict):
        raise ValueError("llm output json must be object")
    return parsed


def _is_retryable_status(status_code: int) -> bool:
    return status_code == 429 or status_code >= 500


class SpeechClient:
    def __init__(self, cfg: SpeechConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.cfg = cfg
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.cfg.timeout_s, transport=self._transport)

    async def _post_once(self, audio_file: Path) -> dict[str, Any]:
        url = f"{self.cfg.base_url.rstrip('/')}{TRANSCRIPTIONS_PATH}"
        headers = {"Authorization": f"Bearer {self.cfg.api_key}"}
        content_type = AUDIO_CONTENT_TYPES.get(audio_file.suffix.lower().lstrip("."), "application/octet-stream")
        try:
            async with self._client() as client:
                with audio_file.open("rb") as fh:
                    resp = await client.post(
                        url,
                        headers=headers,
                        data={"model": self.cfg.model},
                        files={"file": (audio_file.name, fh, content_type)},
                    )
        except httpx.TimeoutException as exc:
            raise CollaboratorError(f"transcription request timed out: {audio_file.name}", retryable=True) from exc
        except httpx.TransportError as exc:
            raise CollaboratorError(f"transcription transport error: {exc}", retryable=True) from exc

        if resp.status_code >= 400:
            raise CollaboratorError(
                f"transcription failed: {resp.status_code} {resp.text[:200]}",
                retryable=_is_retryable_status(resp.status_code),
            )
        try:
            return resp.json()
        except ValueError as exc:
            raise CollaboratorError("transcription response is not JSON") from exc

    async def transcribe(self, audio_file: Path) -> str:
        """Transcribe one audio file, retrying transient failures with exponential backoff."""
        if not self.cfg.api_key:
            raise CollaboratorError("speech api_key is required")

        attempts = max(0, int(self.cfg.max_retries)) + 1
        for attempt in range(attempts):
            try:
                payload = await self._post_once(audio_file)
                return parse_transcription_text(payload)
            except CollaboratorError as exc:
                if not exc.retryable or attempt == attempts - 1:
                    raise
                delay = self.cfg.retry_base_delay_s * (2**attempt)
                delay *= 1 + random.uniform(-0.1, 0.1)
                logger.warning(
                    "Transcription of %s failed (%s); retrying in %.1fs (attempt %d/%d)",
                    audio_file.name,
                    exc,
                    delay,
                    attempt + 1,
                    attempts - 1,
                )
                await asyncio.sleep(max(0.0, delay))

        raise CollaboratorError("transcription exhausted retries")


class LLMClient:
    def __init__(self, cfg: LLMConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.cfg = cfg
        self._transport = transport

    async def generate_text(
        self,
        *,
        user_prompt: str,
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> str:
        if not self.cfg.api_key:
            raise CollaboratorError("llm api_key is required")

        url = f"{self.cfg.base_url.rstrip('/')}{CHAT_COMPLETIONS_PATH}"
        payload = {
            "model": self.cfg.model,
            "messages": [
                {"role": "system", "content": system_prompt or self.cfg.system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": self.cfg.temperature if temperature is None else temperature,
        }
        headers = {"Authorization": f"Bearer {self.cfg.api_key}", "Content-Type": "application/json"}

        try:
            async with httpx.AsyncClient(timeout=self.cfg.timeout_s, transport=self._transport) as client:
                resp = await client.post(url, headers=headers, json=payload)
        except httpx.HTTPError as exc:
            raise CollaboratorError(f"LLM request error: {exc}", retryable=True) from exc

        if resp.status_code >= 400:
            raise CollaboratorError(
                f"LLM request failed: {resp.status_code} {resp.text[:500]}",
                retryable=_is_retryable_status(resp.status_code),
            )
        try:
            payload_json = resp.json()
        except ValueError as exc:
            raise CollaboratorError("LLM response is not JSON") from exc
        return parse_llm_text(payload_json)

    async def generate_json(
        self,
        *,
        user_prompt: str,
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> dict[str, Any]:
        text = await self.generate_text(
            user_prompt=user_prompt,
            system_prompt=system_prompt,
            temperature=temperature,
        )
        return extract_first_json_object(text)
