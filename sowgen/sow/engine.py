from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from ..models.sow_state import SowBuilderState
from .numbers import spell_numeric
from .templates import get_section

"""Scope-of-work text generation.

Each enabled section body is rendered line by line. A line that references a
variable whose value is empty, ``"0"`` or missing is dropped entirely, which is
how optional clauses ("12 exterior cameras") disappear when their count is unset.
"""

__all__ = [
    "PLACEHOLDER_RE",
    "RenderedLine",
    "render_body",
    "render_line",
    "generate_sow_text",
    "resolve_sow_text",
]

logger = logging.getLogger(__name__)

PLACEHOLDER_RE = re.compile(r"\{\{(\w+)\}\}")
INDENT = "    "


@dataclass(frozen=True)
class RenderedLine:
    text: str
    has_unresolved_var: bool


def _resolve(key: str, variables: Mapping[str, str], spelled: frozenset[str]) -> str | None:
    value = (variables.get(key) or "").strip()
    if not value or value == "0":
        return None
    if key in spelled:
        return spell_numeric(value)
    return value


def render_line(line: str, variables: Mapping[str, str], spelled: frozenset[str] = frozenset()) -> RenderedLine:
    unresolved = False
    parts: list[str] = []
    pos = 0
    for match in PLACEHOLDER_RE.finditer(line):
        parts.append(line[pos:match.start()])
        value = _resolve(match.group(1), variables, spelled)
        if value is None:
            unresolved = True
        else:
            parts.append(value)
        pos = match.end()
    parts.append(line[pos:])
    return RenderedLine("".join(parts), unresolved)


def render_body(body: str, variables: Mapping[str, str], spelled: Iterable[str] = ()) -> list[str]:
    """Substitute variables and drop lines with unset placeholders."""
    spelled_set = frozenset(spelled)
    rendered = [render_line(line, variables, spelled_set) for line in body.split("\n")]
    return [r.text for r in rendered if not r.has_unresolved_var]


def generate_sow_text(
    section_order: Iterable[str],
    enabled_sections: Iterable[str],
    variables: Mapping[str, str],
    custom_templates: Mapping[str, str] | None = None,
    spelled_variables: Iterable[str] = (),
) -> str:
    """Build numbered scope-of-work text from the enabled sections.

    Sections are numbered in ``section_order`` sequence; ids that are disabled or
    unknown to the catalog are skipped without consuming a number. Same inputs
    always give byte-identical output. The output is not valid template input.
    """
    enabled = set(enabled_sections)
    custom_templates = custom_templates or {}
    parts: list[str] = []
    number = 0
    for section_id in section_order:
        if section_id not in enabled:
            continue
        section = get_section(section_id)
        if section is None:
            logger.debug(f"unknown section id skipped: {section_id}")
            continue
        number += 1
        body = custom_templates.get(section_id, section.body)
        lines = render_body(body, variables, spelled_variables)
        indented = "\n".join(f"{INDENT}{line}" if line.strip() else "" for line in lines)
        parts.append(f"{number}. {section.title}\n\n{indented}")
    return "\n\n".join(parts)


def resolve_sow_text(state: SowBuilderState, spelled_variables: Iterable[str] = ()) -> str:
    """Hand-edited text when present, generated text otherwise."""
    if state.custom_sow_text is not None:
        return state.custom_sow_text
    return generate_sow_text(
        state.section_order,
        state.enabled_sections,
        state.variables,
        state.custom_templates,
        spelled_variables,
    )
