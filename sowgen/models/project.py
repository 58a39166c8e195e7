from __future__ import annotations

from dataclasses import dataclass, fields, replace
from datetime import date
from enum import Enum
from typing import Any

"""Project information and document-type models.

ProjectInfo is the shared project data the wizard collects. Each of the three
generated documents may override any subset of its fields.
"""

__all__ = [
    "DocumentType",
    "ProjectInfo",
    "DOCX_MIME_TYPE",
    "today_string",
]

DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


class DocumentType(Enum):
    """The three scope-of-work documents generated per project, in export order."""
    SOW_CUSTOMER = "SOW_Customer"
    SOW_SUB_QUOTING = "SOW_SUB_Quoting"
    SOW_SUB_PROJECT = "SOW_SUB_Project"

    @property
    def file_name(self) -> str:
        return f"{self.value}.docx"


@dataclass(frozen=True)
class ProjectInfo:
    """Project-level values that fill template placeholders."""
    project_name: str = ""
    opp_number: str = ""
    project_number: str = ""
    date: str = ""  # filled with today_string() when neither user nor BOM supplies one
    company_name: str = ""
    company_address: str = ""
    city_state_zip: str = ""
    customer_name: str = ""
    customer_contact: str = ""
    customer_email: str = ""
    customer_phone: str = ""
    solution_architect: str = ""
    scope: str = ""  # material list text
    scope_of_work: str = ""
    notes: str = ""
    programming_notes: str = ""
    estimated_workdays: str = ""
    vertical: str = ""  # K12 / HEW / MED / BIZ / GOV
    lift_required: bool = False
    lift_height: str = ""
    lift_environment: str = ""  # "indoor" / "outdoor" / ""

    def merged(self, overrides: dict[str, Any] | None) -> ProjectInfo:
        """Apply per-document overrides; unknown keys are ignored."""
        if not overrides:
            return self
        known = {f.name for f in fields(self)}
        return replace(self, **{k: v for k, v in overrides.items() if k in known})

    def with_updates(self, **updates: Any) -> ProjectInfo:
        return replace(self, **updates)


def today_string() -> str:
    """Today as a US short date, e.g. 3/7/2025."""
    d = date.today()
    return f"{d.month}/{d.day}/{d.year}"
