from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable

from asr_service.models import AudioChunk, CleanupReport
from common.config import AudioSettings
from common.errors import ConversionError, ProbeError

logger = logging.getLogger(__name__)


class Transcoder:
    """Normalise any audio/video container to 16kHz mono 16-bit PCM WAV.

    Shells out to ffmpeg/ffprobe without blocking the event loop.
    """

    def __init__(self, settings: AudioSettings | None = None) -> None:
        self.settings = settings or AudioSettings()

    async def convert(
        self,
        input_path: str,
        output_path: str | None = None,
        start: float | None = None,
        duration: float | None = None,
    ) -> str:
        """Convert ``input_path`` to WAV next to it (only the extension changes)."""
        output_path = output_path or str(Path(input_path).with_suffix(".wav"))
        if os.path.abspath(output_path) == os.path.abspath(input_path):
            raise ConversionError(f"Refusing to overwrite input file {input_path}")

        cmd = [self.settings.ffmpeg_path, "-hide_banner", "-loglevel", "error", "-y"]
        if start is not None:
            cmd += ["-ss", _seconds(start)]
        if duration is not None:
            cmd += ["-t", _seconds(duration)]
        cmd += [
            "-i", input_path,
            "-acodec", "pcm_s16le",
            "-ac", "1",
            "-ar", str(self.settings.sample_rate),
            output_path,
        ]

        returncode, _, stderr = await self._run(cmd)
        if returncode != 0:
            detail = stderr.decode(errors="replace").strip()
            logger.error("Conversion of %s failed: %s", input_path, detail)
            raise ConversionError(f"Audio conversion failed for {os.path.basename(input_path)}", detail)
        return output_path

    async def duration(self, path: str) -> float:
        cmd = [
            self.settings.ffprobe_path,
            "-v", "error",
            "-show_entries", "format=duration",
            "-of", "default=noprint_wrappers=1:nokey=1",
            path,
        ]
        returncode, stdout, stderr = await self._run(cmd)
        if returncode != 0:
            raise ProbeError(
                f"Could not probe {os.path.basename(path)}",
                stderr.decode(errors="replace").strip(),
            )
        raw = stdout.decode(errors="replace").strip()
        try:
            return float(raw.splitlines()[0])
        except (IndexError, ValueError):
            raise ProbeError(f"Unparseable duration for {os.path.basename(path)}", raw or None)

    async def split_into_chunks(self, input_path: str, chunk_duration_s: float = 600) -> list[AudioChunk]:
        """Cut ``input_path`` into fixed windows of ``chunk_duration_s`` seconds.

        Chunks land in a fresh scratch directory; deleting them is the
        caller's job. The final chunk may be shorter than the window.
        """
        if chunk_duration_s <= 0:
            raise ValueError("chunk_duration_s must be positive")

        total = await self.duration(input_path)
        scratch = tempfile.mkdtemp(prefix="chunks_")
        chunks: list[AudioChunk] = []
        index = 0
        offset = 0.0
        try:
            while offset < total:
                chunk_path = os.path.join(scratch, f"chunk_{index:03d}.wav")
                await self.convert(input_path, chunk_path, start=offset, duration=chunk_duration_s)
                chunks.append(AudioChunk(path=chunk_path, index=index, offset=offset))
                index += 1
                offset = index * chunk_duration_s
        except Exception:
            cleanup_files([c.path for c in chunks], remove_empty_dirs=[scratch])
            raise

        if not chunks:
            cleanup_files([], remove_empty_dirs=[scratch])
        logger.info("Split %s (%.1fs) into %d chunks", input_path, total, len(chunks))
        return chunks

    async def _run(self, cmd: list[str]) -> tuple[int, bytes, bytes]:
        logger.debug("Running %s", " ".join(cmd))
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await proc.communicate()
        return proc.returncode, stdout, stderr


def cleanup_files(paths: Iterable[str | None], remove_empty_dirs: Iterable[str] = ()) -> CleanupReport:
    """Best-effort removal; failures are logged and reported, never raised."""
    report = CleanupReport()
    for path in paths:
        if not path or not os.path.exists(path):
            continue
        try:
            os.remove(path)
            report.removed.append(path)
        except OSError as exc:
            logger.warning("Cleanup error for %s: %s", path, exc)
            report.failed[path] = str(exc)

    for directory in remove_empty_dirs:
        try:
            if os.path.isdir(directory) and not os.listdir(directory):
                os.rmdir(directory)
                report.removed.append(directory)
        except OSError as exc:
            logger.warning("Cleanup error for %s: %s", directory, exc)
            report.failed[directory] = str(exc)
    return report


def _seconds(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:.3f}"
