from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

"""Generation result models: per-document stats and the run aggregate used for
the SUMMARY line."""

__all__ = [
    "DocumentStat",
    "GenerationResult",
]


@dataclass(frozen=True)
class DocumentStat:
    """Per-document outcome."""
    doc_type: str  # SOW_Customer / SOW_SUB_Quoting / SOW_SUB_Project
    status: str  # generated / skipped / failed
    size_bytes: int = 0
    fallbacks: int = 0  # degraded stages for this document
    elapsed_seconds: float = 0.0
    message: str = ""


@dataclass(frozen=True)
class GenerationResult:
    """Aggregated outcome of one generation run."""
    generated: int
    skipped: int  # no template configured
    failed: int  # template unreadable
    fallbacks: int  # degraded stages across all documents
    items: int  # BOM line items used, 0 without a BOM
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    document_stats: list[DocumentStat] | None = None

    @property
    def degraded(self) -> bool:
        return self.failed > 0 or self.fallbacks > 0
