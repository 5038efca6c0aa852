from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import quote

from asr_service.alignment import align
from asr_service.diarizer import PyannoteDiarizer
from asr_service.models import CleanupReport
from asr_service.transcoder import Transcoder, cleanup_files
from asr_service.transcriber import WhisperTranscriber
from common.config import AppSettings
from common.errors import ConfigurationError, NotFoundError, ValidationError
from common.schemas import AlignedEntry, DiarizationInterval, TranscriptSegment
from gateway.store import ResultStore, file_timestamp

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = (".mp3", ".wav", ".ogg", ".m4a", ".webm", ".mp4")
UPLOADS_ROUTE = "/uploads"


@dataclass
class PipelineResult:
    entries: list[AlignedEntry]
    saved_file: str
    cleanup: CleanupReport = field(default_factory=CleanupReport)


class AudioPipeline:
    """upload -> wav -> {transcription, diarization} -> alignment -> result store."""

    def __init__(
        self,
        settings: AppSettings,
        transcoder: Transcoder,
        transcriber: WhisperTranscriber,
        diarizer: PyannoteDiarizer,
        store: ResultStore,
    ) -> None:
        self.settings = settings
        self.transcoder = transcoder
        self.transcriber = transcriber
        self.diarizer = diarizer
        self.store = store
        self.uploads_dir = Path(settings.gateway.uploads_dir)

    def resolve_upload(self, filename: str | None) -> Path:
        if not filename:
            raise ValidationError("Filename is required in request body")
        if Path(filename).name != filename or filename in (".", ".."):
            raise ValidationError("Invalid filename", filename)

        path = self.uploads_dir / filename
        if not path.is_file():
            raise NotFoundError("File not found in uploads directory", filename)
        if path.suffix.lower() not in SUPPORTED_FORMATS:
            raise ValidationError("Unsupported file format", path.suffix)
        return path

    def public_url(self, path: str | Path) -> str:
        base = self.settings.gateway.public_base_url.rstrip("/")
        if not base:
            raise ConfigurationError("PUBLIC_BASE_URL is not configured; the diarization service cannot fetch audio")
        return f"{base}{UPLOADS_ROUTE}/{quote(Path(path).name)}"

    async def process(self, filename: str | None) -> PipelineResult:
        input_path = self.resolve_upload(filename)
        logger.info("Processing %s", input_path)

        wav_path: str | None = None
        converted = input_path.suffix.lower() != ".wav"
        try:
            if converted:
                wav_path = str(self._converted_path(input_path))
                await self.transcoder.convert(str(input_path), wav_path)
            else:
                wav_path = str(input_path)

            segments, intervals = await self._transcribe_and_diarize(wav_path)
            entries = align(segments, intervals)
            logger.info("Aligned %d segments against %d speaker turns", len(entries), len(intervals))
            saved_file = self.store.save(input_path.name, entries)
        except Exception:
            if converted:
                self._cleanup(wav_path)
            raise

        cleanup = self._cleanup(wav_path) if converted else CleanupReport()
        return PipelineResult(entries=entries, saved_file=saved_file, cleanup=cleanup)

    async def _transcribe_and_diarize(
        self, wav_path: str
    ) -> tuple[list[TranscriptSegment], list[DiarizationInterval]]:
        public_url = self.public_url(wav_path)

        if self.settings.pipeline.concurrent_stages:
            tasks = [
                asyncio.create_task(self.transcriber.transcribe(wav_path)),
                asyncio.create_task(self.diarizer.diarize(public_url)),
            ]
            try:
                segments, intervals = await asyncio.gather(*tasks)
            except BaseException:
                # stop the other stage before the failure propagates
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)
                raise
            return segments, intervals

        segments = await self.transcriber.transcribe(wav_path)
        logger.info("Transcription completed: %d segments", len(segments))
        intervals = await self.diarizer.diarize(public_url)
        return segments, intervals

    @staticmethod
    def _converted_path(input_path: Path) -> Path:
        """``talk.mp3`` -> ``talk.wav``, unless an uploaded ``talk.wav`` is already there."""
        wav_path = input_path.with_suffix(".wav")
        if wav_path.exists():
            wav_path = input_path.with_name(f"{input_path.stem}_{file_timestamp()}.wav")
            logger.info("%s already exists, converting to %s", input_path.with_suffix(".wav").name, wav_path.name)
        return wav_path

    def _cleanup(self, wav_path: str | None) -> CleanupReport:
        report = cleanup_files([wav_path])
        if not report.ok:
            logger.warning("Intermediate files left behind: %s", ", ".join(report.failed))
        return report
