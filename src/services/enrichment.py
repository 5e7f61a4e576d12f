from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional
from uuid import UUID

import httpx

from src.app.config import Settings, get_settings
from src.app.domain.models import EnrichmentJob

log = logging.getLogger("enrichment")

SECRET_HEADER = "X-Enrichment-Secret"


def build_mock_enrichment(video_id: str) -> Dict[str, Any]:
    """Fixed synthetic enrichment result; the video content is not inspected."""
    return {
        "video_id": video_id,
        "title": "목데이터 영상제목",
        "name": "목데이터 레시피이름",
        "channel": "목데이터 영상채널",
        "item": [
            "1. 김치를 꺼내요",
            "2. 된장을 꺼내요",
            "3. 아무튼 물을 넣고 끓여요",
            "4. 접시에 담아요",
        ],
        "ingredients": [
            {"name": "김치", "amount": "한포기"},
            {"name": "된장", "amount": "100g"},
            {"name": "시래기", "amount": "한단"},
        ],
    }


class EnrichmentClient:
    """Outbound calls of the enrichment hand-off."""

    def __init__(
        self,
        start_url: str,
        callback_url: str,
        timeout: float = 10.0,
        callback_secret: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.start_url = start_url
        self.callback_url = callback_url
        self.timeout = timeout
        self.callback_secret = callback_secret
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "EnrichmentClient":
        return cls(
            start_url=settings.ENRICHMENT_START_URL,
            callback_url=settings.ENRICHMENT_CALLBACK_URL,
            timeout=settings.ENRICHMENT_TIMEOUT_SECONDS,
            callback_secret=settings.ENRICHMENT_CALLBACK_SECRET,
        )

    async def _post(self, url: str, body: Dict[str, Any], headers: Dict[str, str]) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            return await client.post(url, json=body, headers=headers)

    async def request_enrichment(self, video_id: str, recipe_id: Any) -> bool:
        """Ask the producer to enrich a new recipe. Failures are logged, never raised."""
        try:
            response = await self._post(
                self.start_url,
                {"video_id": video_id, "recipe_id": recipe_id},
                {},
            )
        except httpx.HTTPError as exc:
            log.error("enrichment.request_fail recipe=%s video=%s error=%s", recipe_id, video_id, exc)
            return False
        if not response.is_success:
            log.error(
                "enrichment.request_rejected recipe=%s video=%s status=%s",
                recipe_id,
                video_id,
                response.status_code,
            )
            return False
        log.info("enrichment.requested recipe=%s video=%s", recipe_id, video_id)
        return True

    async def deliver_result(self, job: EnrichmentJob) -> bool:
        """Post the synthetic result for ``job`` to the callback receiver."""
        body = {"recipe_id": job.recipe_id, **build_mock_enrichment(job.video_id)}
        headers = {SECRET_HEADER: self.callback_secret} if self.callback_secret else {}
        try:
            response = await self._post(self.callback_url, body, headers)
        except httpx.HTTPError as exc:
            log.error("enrichment.deliver_fail job=%s recipe=%s error=%s", job.id, job.recipe_id, exc)
            return False
        if not response.is_success:
            log.error(
                "enrichment.deliver_rejected job=%s recipe=%s status=%s",
                job.id,
                job.recipe_id,
                response.status_code,
            )
            return False
        log.info("enrichment.delivered job=%s video=%s", job.id, job.video_id)
        return True


async def _deliver_with_current_settings(job: EnrichmentJob) -> None:
    await EnrichmentClient.from_settings(get_settings()).deliver_result(job)


class EnrichmentScheduler:
    """
    Runs each job once, ``job.delay_seconds`` after it is scheduled.

    Jobs are held in memory only. There is no retry and no public cancel;
    ``shutdown`` drops whatever is still pending.
    """

    def __init__(self, deliver: Callable[[EnrichmentJob], Awaitable[Any]] = _deliver_with_current_settings):
        self._deliver = deliver
        self._tasks: Dict[UUID, tuple[EnrichmentJob, asyncio.Task]] = {}

    def schedule(self, job: EnrichmentJob) -> EnrichmentJob:
        task = asyncio.get_running_loop().create_task(self._run(job), name=f"enrichment-{job.id}")
        self._tasks[job.id] = (job, task)
        log.info(
            "enrichment.scheduled job=%s recipe=%s video=%s due_at=%s",
            job.id,
            job.recipe_id,
            job.video_id,
            job.due_at.isoformat(),
        )
        return job

    def pending(self) -> List[EnrichmentJob]:
        return [job for job, _ in self._tasks.values()]

    async def _run(self, job: EnrichmentJob) -> None:
        try:
            await asyncio.sleep(job.delay_seconds)
            await self._deliver(job)
        except asyncio.CancelledError:
            raise
        except Exception:
            log.exception("enrichment.job_error job=%s recipe=%s", job.id, job.recipe_id)
        finally:
            self._tasks.pop(job.id, None)

    async def shutdown(self) -> None:
        entries = list(self._tasks.values())
        for job, task in entries:
            log.warning("enrichment.dropped job=%s recipe=%s", job.id, job.recipe_id)
            task.cancel()
        if entries:
            await asyncio.gather(*(task for _, task in entries), return_exceptions=True)
        self._tasks.clear()


_SCHEDULER: Optional[EnrichmentScheduler] = None


def get_scheduler() -> EnrichmentScheduler:
    global _SCHEDULER
    if _SCHEDULER is None:
        _SCHEDULER = EnrichmentScheduler()
    return _SCHEDULER
