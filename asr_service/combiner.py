from __future__ import annotations

from typing import Iterable

from common.schemas import AlignedEntry


def combine(entries: Iterable[AlignedEntry]) -> list[AlignedEntry]:
    """Merge consecutive entries of the same speaker into one turn."""
    combined: list[AlignedEntry] = []
    current: AlignedEntry | None = None

    for entry in entries:
        if current is not None and entry.speaker == current.speaker:
            current.text = f"{current.text} {entry.text}"
            current.end = entry.end
            continue
        if current is not None:
            combined.append(current)
        current = entry.model_copy()

    if current is not None:
        combined.append(current)
    return combined
