from __future__ import annotations

from typing import Iterable, Sequence

from common.schemas import UNKNOWN_SPEAKER, AlignedEntry, DiarizationInterval, TranscriptSegment


def align(
    segments: Iterable[TranscriptSegment],
    intervals: Sequence[DiarizationInterval],
) -> list[AlignedEntry]:
    """Label each transcript segment with a speaker from the diarization.

    First match wins: intervals are scanned in the order given, and ties are
    not broken by overlap length. Segments matching nothing get ``unknown``.
    Timestamps and text are copied from the segment untouched.
    """
    entries = []
    for seg in segments:
        interval = find_speaker_interval(seg, intervals)
        entries.append(
            AlignedEntry(
                speaker=interval.speaker if interval and interval.speaker else UNKNOWN_SPEAKER,
                text=seg.text,
                start=seg.start,
                end=seg.end,
            )
        )
    return entries


def find_speaker_interval(
    seg: TranscriptSegment,
    intervals: Sequence[DiarizationInterval],
) -> DiarizationInterval | None:
    for interval in intervals:
        if interval.start <= seg.start < interval.end:
            return interval
        if interval.start < seg.end <= interval.end:
            return interval
        # segment spans the whole turn
        if seg.start <= interval.start and seg.end >= interval.end:
            return interval
    return None
