from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""DegradationRecord model for soft-failure logging.

A degradation is a pipeline stage that could not do its work but did not stop
the run: an appendix whose anchor was missing, a template without a body part,
an unsupported appendix file. The document is still produced; the record says
what it is missing.
"""

__all__ = [
    "DegradationRecord",
]


@dataclass(frozen=True)
class DegradationRecord:
    """Structured record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        document: output document name (e.g. SOW_Customer.docx)
        stage: pipeline stage that degraded (e.g. append_vertical_notes)
        error_type: classification in UPPER_SNAKE_CASE format
        message: human-readable description
    """
    timestamp: str
    document: str
    stage: str
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(document: str, stage: str, error_type: str, message: str) -> DegradationRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return DegradationRecord(
            timestamp=ts,
            document=document,
            stage=stage,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
