"""Internal models for audio processing."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class AudioChunk:
    path: str
    index: int
    offset: float


@dataclass
class CleanupReport:
    removed: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed

    def merge(self, other: CleanupReport) -> CleanupReport:
        self.removed.extend(other.removed)
        self.failed.update(other.failed)
        return self
