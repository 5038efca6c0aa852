from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional, Sequence

from common.errors import NotFoundError, ValidationError
from common.schemas import AlignedEntry, ResultRecord

logger = logging.getLogger(__name__)

Mutation = Callable[[ResultRecord], Optional[ResultRecord]]


def file_timestamp(now: datetime | None = None) -> str:
    """UTC ISO-8601 timestamp with ``:`` and ``.`` made filesystem-safe."""
    now = now or datetime.now(timezone.utc)
    iso = now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return iso.replace(":", "-").replace(".", "-")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ResultStore:
    """One JSON file per processed recording. Last writer wins on update."""

    def __init__(self, results_dir: str | os.PathLike) -> None:
        self.results_dir = Path(results_dir)

    def path_for(self, filename: str) -> Path:
        if not filename or Path(filename).name != filename or filename in (".", ".."):
            raise ValidationError(f"Invalid result filename: {filename!r}")
        return self.results_dir / filename

    def exists(self, filename: str) -> bool:
        return self.path_for(filename).is_file()

    def save(self, original_filename: str, entries: Sequence[AlignedEntry]) -> str:
        stem = Path(original_filename).stem
        filename = f"{stem}_{file_timestamp()}.json"
        record = ResultRecord(original_file=original_filename, processed_at=_now_iso(), transcription=list(entries))
        self._write(filename, record)
        return filename

    def save_combined(self, stored_filename: str, entries: Sequence[AlignedEntry]) -> str:
        source = self.load(stored_filename)
        filename = f"{Path(stored_filename).stem}_combined.json"
        record = ResultRecord(original_file=source.original_file, processed_at=_now_iso(), transcription=list(entries))
        self._write(filename, record)
        return filename

    def load(self, filename: str) -> ResultRecord:
        path = self.path_for(filename)
        if not path.is_file():
            raise NotFoundError("Result file not found", filename)
        return ResultRecord.model_validate_json(path.read_text(encoding="utf-8"))

    def update(self, filename: str, mutation: Mutation) -> ResultRecord:
        record = self.load(filename)
        updated = mutation(record) or record
        self._write(filename, updated)
        return updated

    def _write(self, filename: str, record: ResultRecord) -> None:
        path = self.path_for(filename)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(record.to_json(), encoding="utf-8")
        logger.info("Result saved: %s", path)
