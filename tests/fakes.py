"""Stand-ins for the transcoder, remote clients and analyzer used across tests."""

from __future__ import annotations

import asyncio
from pathlib import Path

from asr_service.models import AudioChunk
from asr_service.transcoder import Transcoder
from common.config import AudioSettings
from common.schemas import AlignedEntry


class RecordingTranscoder(Transcoder):
    """Transcoder whose ffmpeg/ffprobe calls are recorded instead of executed."""

    def __init__(self, probe_output: bytes = b"1500.000000\n", fail_on_call: int | None = None):
        super().__init__(AudioSettings(ffmpeg_path="ffmpeg", ffprobe_path="ffprobe"))
        self.probe_output = probe_output
        self.fail_on_call = fail_on_call
        self.calls: list[list[str]] = []

    async def _run(self, cmd):
        self.calls.append(cmd)
        if cmd[0] == "ffprobe":
            return 0, self.probe_output, b""
        if self.fail_on_call is not None and len(self.calls) == self.fail_on_call:
            return 1, b"", b"Invalid data found when processing input"
        Path(cmd[-1]).write_bytes(b"RIFF....WAVE")
        return 0, b"", b""


class ChunkingTranscoder(Transcoder):
    """Hands out pre-made chunk files instead of running ffmpeg."""

    def __init__(self, scratch: Path, count: int):
        super().__init__(AudioSettings())
        self.scratch = scratch
        self.count = count
        self.split_calls: list[tuple[str, float]] = []

    async def split_into_chunks(self, input_path, chunk_duration_s=600):
        self.split_calls.append((input_path, chunk_duration_s))
        self.scratch.mkdir(exist_ok=True)
        chunks = []
        for i in range(self.count):
            path = self.scratch / f"chunk_{i:03d}.wav"
            path.write_bytes(b"chunk")
            chunks.append(AudioChunk(path=str(path), index=i, offset=i * chunk_duration_s))
        return chunks


class FakeTranscoder:
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.converted: list[tuple[str, str]] = []

    async def convert(self, input_path, output_path=None, start=None, duration=None):
        output_path = output_path or str(Path(input_path).with_suffix(".wav"))
        self.converted.append((input_path, output_path))
        Path(output_path).write_bytes(b"RIFF....WAVE")
        if self.error:
            raise self.error
        return output_path


class FakeTranscriber:
    def __init__(self, segments=None, error: Exception | None = None):
        self.segments = segments or []
        self.error = error
        self.paths: list[str] = []

    async def transcribe(self, path):
        self.paths.append(path)
        if self.error:
            raise self.error
        return self.segments


class FakeDiarizer:
    def __init__(self, intervals=None, error: Exception | None = None):
        self.intervals = intervals or []
        self.error = error
        self.urls: list[str] = []

    async def diarize(self, public_url):
        self.urls.append(public_url)
        if self.error:
            raise self.error
        return self.intervals


class SlowDiarizer:
    """Diarizer that keeps polling until cancelled."""

    def __init__(self, delay: float = 5.0):
        self.delay = delay
        self.cancelled = False
        self.finished = False

    async def diarize(self, public_url):
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        self.finished = True
        return []


class FakeAnalyzer:
    def __init__(self, analysis: str = "", error: Exception | None = None):
        self.analysis = analysis
        self.error = error
        self.calls: list[list[AlignedEntry]] = []

    async def analyze(self, entries):
        self.calls.append(list(entries))
        if self.error:
            raise self.error
        return self.analysis


