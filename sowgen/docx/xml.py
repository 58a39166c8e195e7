from __future__ import annotations

from collections.abc import Iterable, Sequence

from .package import AnchorNotFoundError

"""WordprocessingML fragment builders.

Appendix transforms build their XML here and splice it in through
``insert_before_body_close``, the single insertion seam. All user text goes
through ``escape_xml`` before it reaches a fragment.
"""

__all__ = [
    "BODY_CLOSE",
    "W_NAMESPACE",
    "bordered_table",
    "escape_xml",
    "heading",
    "insert_before_body_close",
    "page_break",
    "paragraph",
]

BODY_CLOSE = "</w:body>"
W_NAMESPACE = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"

# half-points
HEADING_SIZE = 28
SUBHEADING_SIZE = 22
BODY_SIZE = 20
BULLET = "•"


def escape_xml(text: str) -> str:
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def _run(text: str, size: int, bold: bool = False) -> str:
    bold_xml = "<w:b/>" if bold else ""
    return (
        f'<w:r><w:rPr>{bold_xml}<w:sz w:val="{size}"/><w:szCs w:val="{size}"/></w:rPr>'
        f'<w:t xml:space="preserve">{escape_xml(text)}</w:t></w:r>'
    )


def page_break() -> str:
    return '<w:p><w:r><w:br w:type="page"/></w:r></w:p>'


def heading(text: str, size: int = HEADING_SIZE, spacing_after: int = 120) -> str:
    return f'<w:p><w:pPr><w:spacing w:after="{spacing_after}"/></w:pPr>{_run(text, size, bold=True)}</w:p>'


def paragraph(text: str, bullet: bool = False, size: int = BODY_SIZE) -> str:
    if bullet:
        return (
            f'<w:p><w:pPr><w:ind w:left="360"/><w:spacing w:after="60"/></w:pPr>'
            f"{_run(f'{BULLET}  {text}', size)}</w:p>"
        )
    return f'<w:p><w:pPr><w:spacing w:after="60"/></w:pPr>{_run(text, size)}</w:p>'


def _cell(text: str, bold: bool) -> str:
    borders = "".join(
        f'<w:{side} w:val="single" w:sz="4" w:space="0" w:color="000000"/>'
        for side in ("top", "left", "bottom", "right")
    )
    return (
        f"<w:tc><w:tcPr><w:tcBorders>{borders}</w:tcBorders></w:tcPr>"
        f"<w:p>{_run(text, BODY_SIZE, bold=bold)}</w:p></w:tc>"
    )


def bordered_table(rows: Sequence[Sequence[str]]) -> str:
    """Bordered table; the first row is the bold header row.

    Short rows are padded so every row has the same number of cells.
    """
    if not rows:
        return ""
    width = max(len(r) for r in rows)
    body = []
    for i, row in enumerate(rows):
        cells = list(row) + [""] * (width - len(row))
        body.append("<w:tr>" + "".join(_cell(str(c), bold=(i == 0)) for c in cells) + "</w:tr>")
    grid = "".join("<w:gridCol/>" for _ in range(width))
    return (
        '<w:tbl><w:tblPr><w:tblW w:w="0" w:type="auto"/></w:tblPr>'
        f"<w:tblGrid>{grid}</w:tblGrid>{''.join(body)}</w:tbl>"
        # Word requires a paragraph after a table before the section properties
        "<w:p/>"
    )


def join_fragments(fragments: Iterable[str]) -> str:
    return "\n".join(f for f in fragments if f)


def insert_before_body_close(xml: str, fragment: str) -> str:
    """Splice ``fragment`` at the end of the document body.

    The fragment lands before the last ``</w:body>``, or before the body-level
    ``<w:sectPr>`` when one closes the body, since it must stay the last child.

    Raises:
        AnchorNotFoundError: the document has no closing body tag
    """
    idx = xml.rfind(BODY_CLOSE)
    if idx == -1:
        raise AnchorNotFoundError("closing </w:body> tag not found")
    sect = xml.rfind("<w:sectPr", 0, idx)
    if sect != -1:
        tail = xml[sect:idx].rstrip()
        # a paragraph-level sectPr is followed by </w:pPr></w:p>
        closed = tail.endswith("</w:sectPr>") and tail.count("</w:sectPr>") == 1
        empty = tail.endswith("/>") and tail.count("<") == 1
        if (closed or empty) and "</w:p>" not in tail:
            idx = sect
    return xml[:idx] + fragment + xml[idx:]
