from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace

"""Scope-of-work section templates and builder state."""

__all__ = [
    "SectionTemplate",
    "SowBuilderState",
]


@dataclass(frozen=True)
class SectionTemplate:
    """A named, parameterized block of scope-of-work text.

    ``id`` values are persisted in project files and must never be renamed.
    """
    id: str
    title: str
    body: str  # text with {{VAR_NAME}} placeholders


@dataclass(frozen=True)
class SowBuilderState:
    """Section selection, variable values and overrides for one project.

    Every edit returns a new state. Edits to order, selection or variables reset
    ``custom_sow_text`` so hand-edited text never goes stale silently.
    """
    section_order: tuple[str, ...] = ()
    enabled_sections: frozenset[str] = frozenset()
    variables: dict[str, str] = field(default_factory=dict)
    custom_templates: dict[str, str] = field(default_factory=dict)
    custom_sow_text: str | None = None  # None = use generated text

    def ensure_section_order(self, catalog_ids: Iterable[str]) -> SowBuilderState:
        """Append catalog ids missing from a persisted order (new sections)."""
        order = list(dict.fromkeys(self.section_order))
        missing = [sid for sid in catalog_ids if sid not in order]
        if not missing and len(order) == len(self.section_order):
            return self
        return replace(self, section_order=tuple(order + missing))

    def with_order(self, order: Iterable[str]) -> SowBuilderState:
        return replace(self, section_order=tuple(dict.fromkeys(order)), custom_sow_text=None)

    def with_enabled(self, enabled: Iterable[str]) -> SowBuilderState:
        return replace(self, enabled_sections=frozenset(enabled), custom_sow_text=None)

    def with_variable(self, key: str, value: str) -> SowBuilderState:
        return replace(self, variables={**self.variables, key: value}, custom_sow_text=None)

    def with_variables(self, variables: dict[str, str]) -> SowBuilderState:
        return replace(self, variables=dict(variables), custom_sow_text=None)

    def with_custom_text(self, text: str | None) -> SowBuilderState:
        return replace(self, custom_sow_text=text)
