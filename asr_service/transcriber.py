from __future__ import annotations

import logging
import os

import httpx

from asr_service.models import AudioChunk
from asr_service.transcoder import Transcoder, cleanup_files
from common.config import WhisperSettings
from common.errors import TranscriptionError
from common.schemas import TranscriptSegment

logger = logging.getLogger(__name__)


class WhisperTranscriber:
    """Client for a Whisper-compatible ``/audio/transcriptions`` endpoint.

    Files at or above ``size_limit_bytes`` are cut into fixed windows,
    transcribed one after another and stitched back onto a single timeline.
    """

    def __init__(
        self,
        settings: WhisperSettings | None = None,
        transcoder: Transcoder | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings or WhisperSettings()
        self.transcoder = transcoder or Transcoder()
        self._transport = transport

    async def transcribe(self, path: str) -> list[TranscriptSegment]:
        size = os.path.getsize(path)
        if size < self.settings.size_limit_bytes:
            segments = await self._transcribe_file(path)
            logger.info("Transcribed %s: %d segments", os.path.basename(path), len(segments))
            return segments

        logger.info(
            "%s is %d bytes (limit %d), transcribing in %ds chunks",
            os.path.basename(path), size, self.settings.size_limit_bytes, self.settings.chunk_duration_s,
        )
        chunks = await self.transcoder.split_into_chunks(path, self.settings.chunk_duration_s)
        return await self._transcribe_chunks(chunks)

    async def _transcribe_chunks(self, chunks: list[AudioChunk]) -> list[TranscriptSegment]:
        scratch_dirs = sorted({os.path.dirname(c.path) for c in chunks})
        results: list[TranscriptSegment] = []
        try:
            for chunk in chunks:
                try:
                    segments = await self._transcribe_file(chunk.path)
                finally:
                    cleanup_files([chunk.path])
                shift = chunk.index * self.settings.chunk_duration_s
                logger.info("Transcribed chunk %d/%d: %d segments", chunk.index + 1, len(chunks), len(segments))
                results.extend(
                    TranscriptSegment(start=seg.start + shift, end=seg.end + shift, text=seg.text)
                    for seg in segments
                )
        finally:
            # Chunks never reached after a failure, then the emptied scratch dir
            cleanup_files([c.path for c in chunks], remove_empty_dirs=scratch_dirs)
        return results

    async def _transcribe_file(self, path: str) -> list[TranscriptSegment]:
        url = f"{self.settings.base_url.rstrip('/')}/audio/transcriptions"
        data = {"model": self.settings.model, "response_format": "verbose_json"}
        if self.settings.language:
            data["language"] = self.settings.language

        with open(path, "rb") as f:
            content = f.read()
        files = {"file": (os.path.basename(path), content, "audio/wav")}
        headers = {"Authorization": f"Bearer {self.settings.api_key}"}

        try:
            async with httpx.AsyncClient(timeout=None, transport=self._transport) as client:
                resp = await client.post(url, headers=headers, data=data, files=files)
                resp.raise_for_status()
                body = resp.json()
        except httpx.HTTPStatusError as exc:
            logger.error("Whisper API error: %s", exc.response.text)
            raise TranscriptionError("Transcription request failed", exc.response.text) from exc
        except httpx.HTTPError as exc:
            logger.error("Whisper API error: %s", exc)
            raise TranscriptionError("Transcription request failed", str(exc)) from exc
        except ValueError as exc:
            raise TranscriptionError("Transcription response was not JSON", str(exc)) from exc

        return parse_segments(body)


def parse_segments(body: dict) -> list[TranscriptSegment]:
    """Extract ``segments`` from a verbose_json transcription response."""
    try:
        return [
            TranscriptSegment(start=float(s["start"]), end=float(s["end"]), text=s.get("text", ""))
            for s in body.get("segments") or []
        ]
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise TranscriptionError("Malformed transcription response", str(exc)) from exc
