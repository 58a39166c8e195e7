from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..models.project import ProjectInfo
from ..sow.numbers import spell_numeric

"""Template field map: every accepted placeholder spelling -> its value.

Templates authored over the years spell the same field several ways
(``{{Project_Name}}``, ``{{project_name}}``, ``{{OPP Number}}``). All aliases of
one logical field resolve to the same value within a render. Aliases may be
added here but never removed, or older templates stop resolving.
"""

__all__ = [
    "FIELD_ALIASES",
    "MULTILINE_FIELDS",
    "WORDS_ALIASES",
    "build_field_map",
    "compact_text",
    "multiline_values",
]

# ProjectInfo attribute -> accepted placeholder spellings
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "project_name": ("Project_Name", "project_name", "ProjectName", "PROJECT_NAME"),
    "opp_number": ("OPP Number", "OPP_Number", "OPP_NUMBER", "Opp_Number", "opp_number"),
    "project_number": ("Project_Number", "project_number", "PROJECT_NUMBER"),
    "date": ("Date", "DATE", "date"),
    "company_name": ("Company_Name", "company_name", "COMPANY_NAME"),
    "company_address": ("Company_Address", "company_address", "COMPANY_ADDRESS"),
    "city_state_zip": ("City_State_Zip", "city_state_zip", "CITY_STATE_ZIP"),
    "customer_name": ("Customer_Name", "customer_name", "CUSTOMER_NAME"),
    "customer_contact": ("Customer_Contact", "customer_contact", "CUSTOMER_CONTACT"),
    "customer_email": ("Customer_Email", "customer_email", "CUSTOMER_EMAIL"),
    "customer_phone": ("Customer_Phone", "customer_phone", "CUSTOMER_PHONE"),
    "solution_architect": ("SOLUTION_ARCHITECT", "Solution_Architect", "solution_architect"),
    "scope": ("SCOPE", "Scope", "scope", "Material_List", "MATERIAL_LIST"),
    "scope_of_work": ("SCOPE_OF_WORK", "Scope_Of_Work", "Scope_of_Work", "scope_of_work"),
    "notes": ("Notes", "NOTES", "notes"),
    "programming_notes": ("Programming_Notes", "PROGRAMMING_NOTES", "programming_notes"),
    "estimated_workdays": ("Estimated_Workdays", "ESTIMATED_WORKDAYS", "Workdays", "WORKDAYS"),
    "vertical": ("Vertical", "VERTICAL"),
}

# Spelled-out forms of numeric fields: "five" / "five (5)".
WORDS_ALIASES: dict[str, tuple[str, ...]] = {
    "estimated_workdays": ("Estimated_Workdays_Words", "WORKDAYS_WORDS", "Workdays_Words"),
}
SPELLED_ALIASES: dict[str, tuple[str, ...]] = {
    "estimated_workdays": ("Estimated_Workdays_Spelled", "WORKDAYS_SPELLED"),
}

# Long text fields whose substituted lines get the unbold fix-up.
MULTILINE_FIELDS = ("scope", "scope_of_work", "programming_notes", "notes")


def compact_text(text: str) -> str:
    """Strip trailing whitespace from each line and drop blank lines."""
    lines = (line.rstrip() for line in text.replace("\r\n", "\n").split("\n"))
    return "\n".join(line for line in lines if line.strip())


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    return str(value)


def _words(value: str) -> str:
    text = value.strip()
    if not text:
        return ""
    spelled = spell_numeric(text, with_digits=False)
    return spelled if spelled != text else text


def build_field_map(info: ProjectInfo, overrides: Mapping[str, Any] | None = None) -> dict[str, str]:
    """Resolve every alias against ``info`` with per-document ``overrides`` applied."""
    merged = info.merged(dict(overrides or {}))
    fields: dict[str, str] = {}
    for attr, aliases in FIELD_ALIASES.items():
        value = _as_text(getattr(merged, attr))
        if attr in MULTILINE_FIELDS:
            value = compact_text(value)
        for alias in aliases:
            fields[alias] = value

    workdays = _as_text(merged.estimated_workdays)
    for alias in WORDS_ALIASES["estimated_workdays"]:
        fields[alias] = _words(workdays)
    for alias in SPELLED_ALIASES["estimated_workdays"]:
        fields[alias] = spell_numeric(workdays) if workdays.strip() else ""

    fields["Lift_Required"] = "Yes" if merged.lift_required else "No"
    return fields


def multiline_values(fields: Mapping[str, str]) -> list[str]:
    """Values of the multi-line fields, one entry per field, from ``fields``."""
    values = []
    for attr in MULTILINE_FIELDS:
        alias = FIELD_ALIASES[attr][0]
        if fields.get(alias):
            values.append(fields[alias])
    return values
