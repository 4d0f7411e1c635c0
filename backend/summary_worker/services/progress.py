"""Best-effort progress events pushed to an external sink."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from summary_worker.core.constants import ProgressStage
from summary_worker.schemas.config import ProgressConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressEvent:
    summary_id: str
    stage: str
    percent: int
    note: Optional[str] = None
    partial: Optional[dict[str, Any]] = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "summaryId": self.summary_id,
            "stage": self.stage,
            "percent": self.percent,
            "note": self.note,
            "partial": self.partial,
        }


class ProgressReporter:
    """Queue progress events for one job and post them from a dedicated sender task.

    ``report`` never blocks and never raises. Delivery failures are logged and
    dropped. Nothing is sent when the sink URL or token is not configured.
    """

    def __init__(
        self,
        cfg: ProgressConfig,
        summary_id: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.cfg = cfg
        self.summary_id = summary_id
        self._transport = transport
        self._queue: Optional[asyncio.Queue[Optional[ProgressEvent]]] = None
        self._sender: Optional[asyncio.Task[None]] = None
        self._last_percent = 0
        self.sent: list[ProgressEvent] = []

    @property
    def enabled(self) -> bool:
        return self.cfg.enabled

    def start(self) -> None:
        if not self.enabled or self._sender is not None:
            return
        self._queue = asyncio.Queue()
        self._sender = asyncio.get_running_loop().create_task(self._run())

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.cfg.token}",
            "x-worker-token": self.cfg.token,
        }

    def _clamp(self, stage: str, percent: int) -> int:
        if stage == ProgressStage.FAILED.value:
            return 0
        value = max(0, min(100, int(percent)))
        if value < self._last_percent:
            value = self._last_percent
        self._last_percent = value
        return value

    def report(
        self,
        stage: ProgressStage | str,
        percent: int,
        note: Optional[str] = None,
        partial: Optional[dict[str, Any]] = None,
    ) -> None:
        stage_name = stage.value if isinstance(stage, ProgressStage) else str(stage)
        event = ProgressEvent(self.summary_id, stage_name, self._clamp(stage_name, percent), note, partial)
        logger.info("[%s] %s %d%% %s", self.summary_id, event.stage, event.percent, note or "")
        if self._queue is None:
            return
        self._queue.put_nowait(event)

    async def _post(self, client: httpx.AsyncClient, event: ProgressEvent) -> None:
        try:
            resp = await client.post(self.cfg.url, headers=self._headers(), json=event.to_payload())
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("Progress post failed for %s/%s: %s", event.summary_id, event.stage, exc)
            return
        if resp.status_code >= 400:
            logger.warning(
                "Progress sink rejected %s/%s: %d %s",
                event.summary_id,
                event.stage,
                resp.status_code,
                resp.text[:200],
            )
            return
        self.sent.append(event)

    async def _run(self) -> None:
        assert self._queue is not None
        async with httpx.AsyncClient(timeout=self.cfg.timeout_s, transport=self._transport) as client:
            while True:
                event = await self._queue.get()
                if event is None:
                    return
                await self._post(client, event)

    async def aclose(self) -> None:
        """Flush queued events for at most ``drain_timeout_s`` seconds, then stop the sender."""
        if self._sender is None or self._queue is None:
            return
        self._queue.put_nowait(None)
        try:
            await asyncio.wait_for(asyncio.shield(self._sender), timeout=self.cfg.drain_timeout_s)
        except asyncio.TimeoutError:
            logger.warning("Progress sink drain timed out; dropping remaining events")
            self._sender.cancel()
        except Exception as exc:  # noqa: BLE001
            logger.warning("Progress sender stopped with error: %s", exc)
        finally:
            self._sender = None
            self._queue = None
