from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from sowgen.models.error_record import DegradationRecord

"""Degradation log buffering.

Records are buffered in memory during a run and written as JSON Lines to
``logs/degradations-YYYYMMDD-HHMMSS.log`` (UTC) on flush. The file is only
created when there is something to write.
"""

__all__ = [
    "DegradationLog",
    "DegradationRecord",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class DegradationLog:
    """In-memory buffer of degradation records. Serial use only."""

    def __init__(self, logs_dir: Path | None = None) -> None:
        self._records: list[DegradationRecord] = []
        self._file_path: Path | None = None
        self._logs_dir = logs_dir or LOGS_DIR

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._logs_dir / f"degradations-{stamp}.log"
        return self._file_path

    @property
    def records(self) -> list[DegradationRecord]:
        return list(self._records)

    def append(self, record: DegradationRecord) -> None:
        self._records.append(record)

    def record(self, document: str, stage: str, error_type: str, message: str) -> DegradationRecord:
        rec = DegradationRecord.create(document, stage, error_type, message)
        self._records.append(rec)
        return rec

    def __len__(self) -> int:
        return len(self._records)

    def flush(self) -> Path | None:
        """Append buffered records to the log file; None when nothing was buffered."""
        if not self._records:
            return None
        fp = self.file_path
        fp.parent.mkdir(parents=True, exist_ok=True)
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp
