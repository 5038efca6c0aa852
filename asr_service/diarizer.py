from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

import httpx

from common.config import PyannoteSettings
from common.errors import DiarizationFailedError, DiarizationSubmitError, DiarizationTimeoutError
from common.schemas import DiarizationInterval, DiarizationJob, JobStatus

logger = logging.getLogger(__name__)


class PyannoteDiarizer:
    """Client for the pyannote.ai asynchronous diarization API.

    The service fetches the audio itself, so it needs a publicly reachable URL.
    """

    def __init__(
        self,
        settings: PyannoteSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.settings = settings or PyannoteSettings()
        self._transport = transport
        self._sleep = sleep

    @property
    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.settings.api_key}"}

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.settings.base_url.rstrip("/"),
            headers=self._headers,
            timeout=self.settings.timeout_s,
            transport=self._transport,
        )

    async def diarize(self, public_url: str) -> list[DiarizationInterval]:
        job_id = await self.submit(public_url)
        logger.info("Diarization job submitted: %s", job_id)
        intervals = await self.poll(job_id)
        logger.info("Diarization complete: %d turns", len(intervals))
        return intervals

    async def submit(self, public_url: str) -> str:
        logger.info("Submitting diarization for %s", public_url)
        try:
            async with self._client() as client:
                resp = await client.post("/diarize", json={"url": public_url})
        except httpx.HTTPError as exc:
            raise DiarizationSubmitError("Diarization submit failed", str(exc)) from exc

        if not resp.is_success:
            logger.error("Pyannote API error (%d): %s", resp.status_code, resp.text)
            raise DiarizationSubmitError(f"Diarization submit failed with status {resp.status_code}", resp.text)

        try:
            return DiarizationJob.model_validate(resp.json()).job_id
        except ValueError as exc:
            raise DiarizationSubmitError("Diarization submit returned no job id", resp.text) from exc

    async def poll(self, job_id: str) -> list[DiarizationInterval]:
        """Wait for ``job_id`` to finish.

        Fixed interval, no backoff. Transport and HTTP errors are not retried;
        they abort the wait immediately.
        """
        attempts = self.settings.max_attempts
        async with self._client() as client:
            for attempt in range(1, attempts + 1):
                resp = await client.get(f"/jobs/{job_id}")
                resp.raise_for_status()
                job = DiarizationJob.model_validate(resp.json())

                if job.status == JobStatus.succeeded:
                    return parse_intervals(job.output)
                if job.status == JobStatus.failed:
                    raise DiarizationFailedError(f"Diarization job {job_id} failed", _describe(job.output))

                logger.info("Diarization job %s is %s (attempt %d/%d)", job_id, job.status, attempt, attempts)
                await self._sleep(self.settings.poll_interval_s)

        raise DiarizationTimeoutError(
            f"Diarization job {job_id} did not finish after {attempts} polls",
            f"waited {attempts * self.settings.poll_interval_s:g}s",
        )


def parse_intervals(output: dict | None) -> list[DiarizationInterval]:
    turns = (output or {}).get("diarization") or []
    return [DiarizationInterval.model_validate(t) for t in turns]


def _describe(output: dict | None) -> str | None:
    if not output:
        return None
    error = output.get("error")
    return str(error) if error else None
