"""Domain models for the BOM to scope-of-work generator."""

from .bom import ColumnMap, LineItem, ParsedBom
from .error_record import DegradationRecord
from .generation_result import DocumentStat, GenerationResult
from .project import DOCX_MIME_TYPE, DocumentType, ProjectInfo
from .sow_state import SectionTemplate, SowBuilderState

__all__ = [
    # Spreadsheet models
    "ColumnMap",
    "LineItem",
    "ParsedBom",
    # Project models
    "DOCX_MIME_TYPE",
    "DocumentType",
    "ProjectInfo",
    "SectionTemplate",
    "SowBuilderState",
    # Result models
    "DegradationRecord",
    "DocumentStat",
    "GenerationResult",
]
