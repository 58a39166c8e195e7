from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping

from .fields import multiline_values
from .package import DOCUMENT_PATH, DocxError, DocxPackage
from .xml import escape_xml

"""Placeholder substitution over a .docx template.

Word often splits a typed ``{{Project_Name}}`` over several runs (spell check,
revision marks, formatting changes). Before substitution each paragraph's text
is re-flowed so every placeholder lives inside a single ``<w:t>``; the run that
held the opening braces keeps its formatting for the whole token.
"""

__all__ = [
    "TemplateError",
    "merge_split_placeholders",
    "render_template",
    "substitute_placeholders",
    "unbold_field_runs",
]

logger = logging.getLogger(__name__)

_TEXT_RE = re.compile(r"(<w:t(?:\s[^>]*)?>)(.*?)(</w:t>)", re.DOTALL)
_PARAGRAPH_CLOSE = "</w:p>"
_TOKEN_RE = re.compile(r"\{\{[^{}]{1,100}?\}\}")
_PLACEHOLDER_RE = re.compile(r"\{\{\s*([^{}<>]{1,100}?)\s*\}\}")
_RUN_RE = re.compile(r"<w:r(?:\s[^>]*)?>.*?</w:r>", re.DOTALL)
_BOLD_RE = re.compile(r"<w:b(?:Cs)?(?:\s[^>]*)?/>")
_HEADER_FOOTER_RE = re.compile(r"^word/(header|footer)\d*\.xml$")
LINE_BREAK = '</w:t><w:br/><w:t xml:space="preserve">'


class TemplateError(Exception):
    """Raised when a template buffer is not a .docx container at all."""


def _preserve(tag: str) -> str:
    if "xml:space" in tag:
        return tag
    return tag[:-1] + ' xml:space="preserve">'


def _merge_group(xml: str, matches: list[re.Match[str]], edits: list[tuple[int, int, str]]) -> None:
    texts = [m.group(2) for m in matches]
    joined = "".join(texts)
    if "{{" not in joined:
        return

    owner: list[int] = []
    for i, text in enumerate(texts):
        owner.extend([i] * len(text))
    changed = False
    for token in _TOKEN_RE.finditer(joined):
        first = owner[token.start()]
        for j in range(token.start(), token.end()):
            if owner[j] != first:
                owner[j] = first
                changed = True
    if not changed:
        return

    rebuilt = [[] for _ in texts]
    for ch, i in zip(joined, owner):
        rebuilt[i].append(ch)
    for m, chars in zip(matches, rebuilt):
        new_text = "".join(chars)
        if new_text != m.group(2):
            edits.append((m.start(), m.end(), _preserve(m.group(1)) + new_text + m.group(3)))


def merge_split_placeholders(xml: str) -> str:
    """Move every ``{{...}}`` token into the ``<w:t>`` where it starts.

    Text elements are grouped per paragraph; tokens never span paragraphs.
    """
    edits: list[tuple[int, int, str]] = []
    group: list[re.Match[str]] = []
    last_end = 0
    for m in _TEXT_RE.finditer(xml):
        if group and _PARAGRAPH_CLOSE in xml[last_end:m.start()]:
            _merge_group(xml, group, edits)
            group = []
        group.append(m)
        last_end = m.end()
    if group:
        _merge_group(xml, group, edits)

    if not edits:
        return xml
    out = []
    pos = 0
    for start, end, replacement in edits:
        out.append(xml[pos:start])
        out.append(replacement)
        pos = end
    out.append(xml[pos:])
    return "".join(out)


def _field_value(name: str, fields: Mapping[str, str]) -> str:
    value = fields.get(name)
    if value is None:
        logger.debug(f"unresolved placeholder rendered empty: {name}")
        return ""
    return escape_xml(str(value)).replace("\r\n", "\n").replace("\n", LINE_BREAK)


def substitute_placeholders(xml: str, fields: Mapping[str, str]) -> str:
    """Replace ``{{Name}}`` tokens; unknown names become empty text, never an error."""
    xml = _TEXT_RE.sub(
        lambda m: _preserve(m.group(1)) + m.group(2) + m.group(3) if "{{" in m.group(2) else m.group(0),
        xml,
    )
    return _PLACEHOLDER_RE.sub(lambda m: _field_value(m.group(1), fields), xml)


def _field_lines(values: Iterable[str]) -> set[str]:
    lines = set()
    for value in values:
        for line in value.split("\n"):
            if line.strip():
                lines.add(escape_xml(line.strip()))
    return lines


def unbold_field_runs(xml: str, values: Iterable[str]) -> str:
    """Strip bold from runs whose every text line is a line of ``values``.

    A bold placeholder run would otherwise make every substituted line of a
    material list or notes field bold.
    """
    lines = _field_lines(values)
    if not lines:
        return xml

    def fix(m: re.Match[str]) -> str:
        run = m.group(0)
        if "<w:b" not in run:
            return run
        texts = [t.group(2).strip() for t in _TEXT_RE.finditer(run)]
        texts = [t for t in texts if t]
        if texts and all(t in lines for t in texts):
            return _BOLD_RE.sub("", run)
        return run

    return _RUN_RE.sub(fix, xml)


def _render_part(xml: str, fields: Mapping[str, str], unbold_values: list[str]) -> str:
    xml = merge_split_placeholders(xml)
    xml = substitute_placeholders(xml, fields)
    if unbold_values:
        xml = unbold_field_runs(xml, unbold_values)
    return xml


def render_template(
    template: bytes,
    fields: Mapping[str, str],
    unbold_fields: Iterable[str] | None = None,
) -> bytes:
    """Fill a .docx template and return the new document bytes.

    ``unbold_fields`` lists the multi-line values whose lines get the unbold
    fix-up; by default those of the material list, scope of work and notes
    fields in ``fields``. Pass ``()`` to disable it.

    Raises:
        TemplateError: ``template`` is not a zip container
    """
    try:
        pkg = DocxPackage.from_bytes(template)
    except DocxError as e:
        raise TemplateError(f"template is not a .docx file: {e}") from e

    if not pkg.has(DOCUMENT_PATH):
        logger.warning(f"template has no {DOCUMENT_PATH}; returned unchanged")
        return template

    pkg.strip_custom_xml()
    unbold_values = list(multiline_values(fields) if unbold_fields is None else unbold_fields)

    parts = [DOCUMENT_PATH] + sorted(n for n in pkg.names() if _HEADER_FOOTER_RE.match(n))
    for name in parts:
        pkg.write(name, _render_part(pkg.read_text(name), fields, unbold_values))
    return pkg.to_bytes()
