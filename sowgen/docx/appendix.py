from __future__ import annotations

import io
import logging
import mimetypes
import re
from collections.abc import Callable, Iterable, Mapping, Sequence
from pathlib import PurePosixPath

from PIL import Image, UnidentifiedImageError

from sowgen.excel.reader import SpreadsheetReadError, read_table_rows
from sowgen.logging.error_log import DegradationLog

from .package import (
    DOCUMENT_PATH,
    IMAGE_REL_TYPE,
    AnchorNotFoundError,
    DocxError,
    DocxPackage,
    MissingPartError,
    parse_attributes,
)
from .verticals import VerticalNotes, get_vertical_notes
from .xml import (
    BODY_CLOSE,
    SUBHEADING_SIZE,
    bordered_table,
    heading,
    insert_before_body_close,
    join_fragments,
    page_break,
    paragraph,
)

"""Appendix transforms: document bytes in, new document bytes out.

Every transform appends after everything inserted so far, so the order in which
they run is the order of the appendices in the document. A transform that
cannot do its work (missing ``word/document.xml``, no ``</w:body>``, unreadable
source) returns its input object unchanged; an appendix never costs the base
document.
"""

__all__ = [
    "IMAGE_BOX_EMU",
    "IMAGE_CONTENT_TYPES",
    "TABLE_EXTENSIONS",
    "append_docx",
    "append_image",
    "append_lift_notes",
    "append_programming_notes",
    "append_table",
    "append_text_appendix",
    "append_to_docs",
    "append_vertical_notes",
]

logger = logging.getLogger(__name__)

# 6.5in x 8.7in: page width and most of the page height inside default margins
IMAGE_BOX_EMU = (5943600, 7943600)
IMAGE_CONTENT_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "webp": "image/webp",
}
TABLE_EXTENSIONS = frozenset({"xlsx", "xlsm", "xls", "csv"})
MERGED_REL_START = 900
HYPERLINK_REL_TYPE = "http://schemas.openxmlformats.org/officeDocument/2006/relationships/hyperlink"
REL_NAMESPACE = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"

LIFT_TITLE = "Appendix - Lift / Equipment Requirements"
PROGRAMMING_TITLE = "Appendix - Programming Notes"
SITE_TITLE = "Appendix - Site Requirements"
HARDWARE_TITLE = "Appendix - Hardware Schedule"

_ROOT_RE = re.compile(r"<w:document\b[^>]*>")
_BODY_RE = re.compile(r"<w:body\b[^>]*>(.*)</w:body>", re.DOTALL)
_SECTPR_RE = re.compile(r"<w:sectPr\b[^>]*/>|<w:sectPr\b.*?</w:sectPr>", re.DOTALL)
_XMLNS_RE = re.compile(r'xmlns:(\w+)="([^"]*)"')
_DOCPR_ID_RE = re.compile(r'<wp:docPr\b[^>]*\bid="(\d+)"')
_REF_CONTAINER_RE = re.compile(r"<w:(drawing|object|pict)\b[^>]*>.*?</w:\1>", re.DOTALL)

_ERROR_TYPES = {
    MissingPartError: "MISSING_PART",
    AnchorNotFoundError: "ANCHOR_NOT_FOUND",
}


def _error_type(e: Exception) -> str:
    for cls, name in _ERROR_TYPES.items():
        if isinstance(e, cls):
            return name
    return "INVALID_DOCX"


def _apply(
    blob: bytes,
    stage: str,
    edit: Callable[[DocxPackage, str], str],
    errors: DegradationLog | None,
    document: str,
) -> bytes:
    try:
        pkg = DocxPackage.from_bytes(blob)
        xml = edit(pkg, pkg.document_xml())
        pkg.write(DOCUMENT_PATH, xml)
        return pkg.to_bytes()
    except DocxError as e:
        logger.warning(f"{stage} skipped for '{document or 'document'}': {e}")
        if errors is not None:
            errors.record(document, stage, _error_type(e), str(e))
        return blob


def append_text_appendix(
    blob: bytes,
    title: str,
    lines: Iterable[str],
    bullets: bool = False,
    subtitle: str | None = None,
    *,
    errors: DegradationLog | None = None,
    document: str = "",
    stage: str = "append_text_appendix",
) -> bytes:
    """Page break, bold heading, optional bold subtitle, one paragraph per line."""
    lines = [line for line in lines if line.strip()]
    fragment = join_fragments(
        [
            page_break(),
            heading(title),
            heading(subtitle, size=SUBHEADING_SIZE, spacing_after=100) if subtitle else "",
            *(paragraph(line, bullet=bullets) for line in lines),
        ]
    )
    return _apply(blob, stage, lambda pkg, xml: insert_before_body_close(xml, fragment), errors, document)


def append_lift_notes(
    blob: bytes,
    lift_height: str,
    lift_environment: str,
    *,
    errors: DegradationLog | None = None,
    document: str = "",
) -> bytes:
    lines = ["A lift / aerial equipment is required for this project."]
    if lift_height.strip():
        lines.append(f"Height of install: {lift_height.strip()} ft")
    if lift_environment:
        lines.append(f"Environment: {lift_environment.capitalize()}")
    return append_text_appendix(
        blob, LIFT_TITLE, lines, errors=errors, document=document, stage="append_lift_notes"
    )


def append_programming_notes(
    blob: bytes,
    programming_notes: str,
    *,
    errors: DegradationLog | None = None,
    document: str = "",
) -> bytes:
    """No-op when the notes are blank."""
    if not programming_notes.strip():
        return blob
    lines = programming_notes.strip().split("\n")
    return append_text_appendix(
        blob, PROGRAMMING_TITLE, lines, errors=errors, document=document, stage="append_programming_notes"
    )


def append_vertical_notes(
    blob: bytes,
    vertical: str,
    overrides: Mapping[str, VerticalNotes] | None = None,
    *,
    errors: DegradationLog | None = None,
    document: str = "",
) -> bytes:
    """No-op for an unknown or empty vertical."""
    entry = get_vertical_notes(vertical, overrides) if vertical else None
    if entry is None:
        if vertical:
            logger.info(f"no site notes for vertical '{vertical}'")
        return blob
    return append_text_appendix(
        blob,
        SITE_TITLE,
        entry.bullets,
        bullets=True,
        subtitle=entry.title,
        errors=errors,
        document=document,
        stage="append_vertical_notes",
    )


def append_table(
    blob: bytes,
    rows: Sequence[Sequence[str]],
    title: str | None = HARDWARE_TITLE,
    *,
    errors: DegradationLog | None = None,
    document: str = "",
) -> bytes:
    """Bordered table after a page break; the first row is the header."""
    if not rows:
        logger.info("table appendix has no rows; skipped")
        return blob
    fragment = join_fragments([page_break(), heading(title) if title else "", bordered_table(rows)])
    return _apply(blob, "append_table", lambda pkg, xml: insert_before_body_close(xml, fragment), errors, document)


def _image_extent(image: bytes) -> tuple[int, int]:
    """Largest size inside IMAGE_BOX_EMU with the image's aspect ratio.

    Falls back to the full box when the image cannot be read.
    """
    box_cx, box_cy = IMAGE_BOX_EMU
    try:
        with Image.open(io.BytesIO(image)) as img:
            width, height = img.size
    except (UnidentifiedImageError, OSError, ValueError) as e:
        logger.debug(f"image size unavailable, using full box: {e}")
        return IMAGE_BOX_EMU
    if width <= 0 or height <= 0:
        return IMAGE_BOX_EMU
    scale = min(box_cx / width, box_cy / height)
    return int(width * scale), int(height * scale)


def _free_name(pkg: DocxPackage, directory: str, stem: str, ext: str) -> str:
    name = f"{stem}.{ext}"
    n = 2
    while pkg.has(f"{directory}/{name}"):
        name = f"{stem}_{n}.{ext}"
        n += 1
    return name


def _free_rel_id(taken: set[str], base: str) -> str:
    if base not in taken:
        return base
    n = 2
    while f"{base}{n}" in taken:
        n += 1
    return f"{base}{n}"


def _drawing(rel_id: str, cx: int, cy: int, doc_pr_id: int) -> str:
    return f"""<w:p><w:pPr><w:jc w:val="center"/></w:pPr><w:r><w:rPr/><w:drawing>
<wp:inline distT="0" distB="0" distL="0" distR="0" xmlns:wp="http://schemas.openxmlformats.org/drawingml/2006/wordprocessingDrawing">
<wp:extent cx="{cx}" cy="{cy}"/><wp:effectExtent l="0" t="0" r="0" b="0"/>
<wp:docPr id="{doc_pr_id}" name="AppendixImage{doc_pr_id}"/><wp:cNvGraphicFramePr/>
<a:graphic xmlns:a="http://schemas.openxmlformats.org/drawingml/2006/main">
<a:graphicData uri="http://schemas.openxmlformats.org/drawingml/2006/picture">
<pic:pic xmlns:pic="http://schemas.openxmlformats.org/drawingml/2006/picture">
<pic:nvPicPr><pic:cNvPr id="0" name="AppendixImage{doc_pr_id}"/><pic:cNvPicPr/></pic:nvPicPr>
<pic:blipFill><a:blip r:embed="{rel_id}" xmlns:r="{REL_NAMESPACE}"/><a:stretch><a:fillRect/></a:stretch></pic:blipFill>
<pic:spPr><a:xfrm><a:off x="0" y="0"/><a:ext cx="{cx}" cy="{cy}"/></a:xfrm><a:prstGeom prst="rect"><a:avLst/></a:prstGeom></pic:spPr>
</pic:pic></a:graphicData></a:graphic></wp:inline></w:drawing></w:r></w:p>"""


def append_image(
    blob: bytes,
    image: bytes,
    ext: str,
    *,
    errors: DegradationLog | None = None,
    document: str = "",
) -> bytes:
    """Embed ``image`` centered on a new page."""
    ext = ext.lower().lstrip(".")
    content_type = IMAGE_CONTENT_TYPES.get(ext, "image/png")
    cx, cy = _image_extent(image)

    def edit(pkg: DocxPackage, xml: str) -> str:
        media_name = _free_name(pkg, "word/media", "appendix_image", ext)
        rel_id = _free_rel_id(pkg.relationship_ids(), "rIdAppendixImage")
        doc_pr_id = max((int(i) for i in _DOCPR_ID_RE.findall(xml)), default=0) + 1
        fragment = page_break() + _drawing(rel_id, cx, cy, doc_pr_id)
        # anchor first so a failed insert leaves no orphan parts
        new_xml = insert_before_body_close(xml, fragment)
        pkg.write(f"word/media/{media_name}", image)
        pkg.ensure_default_content_type(ext, content_type)
        pkg.add_relationship(rel_id, IMAGE_REL_TYPE, f"media/{media_name}")
        return new_xml

    return _apply(blob, "append_image", edit, errors, document)


def _namespaces(root_tag: str) -> dict[str, str]:
    return dict(_XMLNS_RE.findall(root_tag))


def _carry_namespaces(host_xml: str, source_xml: str) -> str:
    host_root = _ROOT_RE.search(host_xml)
    source_root = _ROOT_RE.search(source_xml)
    if host_root is None or source_root is None:
        return host_xml
    host_ns = _namespaces(host_root.group(0))
    missing = {p: uri for p, uri in _namespaces(source_root.group(0)).items() if p not in host_ns}
    if not missing:
        return host_xml
    extra = "".join(f' xmlns:{p}="{uri}"' for p, uri in missing.items())
    tag = host_root.group(0)
    new_tag = tag[:-2] + extra + "/>" if tag.endswith("/>") else tag[:-1] + extra + ">"
    return host_xml[: host_root.start()] + new_tag + host_xml[host_root.end():]


def _remap_rel_ids(body: str, prefix: str, id_map: Mapping[str, str]) -> str:
    if not id_map:
        return body
    pattern = re.compile(rf'(\b{re.escape(prefix)}:(?:embed|id|link|pict)=")([^"]+)(")')
    return pattern.sub(lambda m: m.group(1) + id_map.get(m.group(2), m.group(2)) + m.group(3), body)


def _drop_unmapped_refs(body: str, prefix: str, kept_ids: Iterable[str]) -> tuple[str, list[str]]:
    """Remove content whose relationship was not carried into the host.

    Charts, SmartArt and OLE objects live in drawing/object/pict containers,
    which are dropped whole. Any other leftover reference attribute is removed.
    Returns the cleaned body and the dropped relationship ids.
    """
    kept = set(kept_ids)
    attr_re = re.compile(rf'\s{re.escape(prefix)}:[A-Za-z]+="([^"]+)"')
    dropped: list[str] = []

    def unmapped(fragment: str) -> list[str]:
        return [v for v in attr_re.findall(fragment) if v not in kept]

    def strip_container(m: re.Match[str]) -> str:
        ids = unmapped(m.group(0))
        if not ids:
            return m.group(0)
        dropped.extend(ids)
        return ""

    body = _REF_CONTAINER_RE.sub(strip_container, body)

    def strip_attr(m: re.Match[str]) -> str:
        if m.group(1) in kept:
            return m.group(0)
        dropped.append(m.group(1))
        return ""

    body = attr_re.sub(strip_attr, body)
    return body, dropped


def _content_type_for(source: DocxPackage, ext: str) -> str:
    try:
        ct_xml = source.read_text("[Content_Types].xml")
    except MissingPartError:
        ct_xml = ""
    m = re.search(rf'<Default\b[^>]*Extension="{re.escape(ext)}"[^>]*/>', ct_xml, re.IGNORECASE)
    if m:
        ct = parse_attributes(m.group(0)).get("ContentType")
        if ct:
            return ct
    return IMAGE_CONTENT_TYPES.get(ext.lower()) or mimetypes.guess_type(f"x.{ext}")[0] or "application/octet-stream"


def append_docx(
    blob: bytes,
    appendix: bytes,
    *,
    errors: DegradationLog | None = None,
    document: str = "",
) -> bytes:
    """Merge another document's body after a page break.

    The appendix's own section properties are dropped so the host keeps its page
    setup. Image relationships get fresh ids (rId900 and up) and their media is
    copied, renamed when the host already has a part with the same name.
    External hyperlinks are carried over; other relationship kinds are not.
    """

    def edit(pkg: DocxPackage, xml: str) -> str:
        source = DocxPackage.from_bytes(appendix)
        source_xml = source.document_xml()
        body_match = _BODY_RE.search(source_xml)
        if body_match is None:
            raise AnchorNotFoundError("appendix document has no <w:body>")
        body = _SECTPR_RE.sub("", body_match.group(1))

        source_root = _ROOT_RE.search(source_xml)
        prefix = "r"
        if source_root is not None:
            for p, uri in _namespaces(source_root.group(0)).items():
                if uri == REL_NAMESPACE:
                    prefix = p

        if BODY_CLOSE not in xml:
            raise AnchorNotFoundError("closing </w:body> tag not found")
        taken = pkg.relationship_ids()
        counter = MERGED_REL_START
        id_map: dict[str, str] = {}
        for rel in source.relationships():
            old_id = rel.get("Id", "")
            rel_type = rel.get("Type", "")
            target = rel.get("Target", "")
            if not old_id or old_id not in body:
                continue
            while f"rId{counter}" in taken:
                counter += 1
            new_id = f"rId{counter}"

            if rel_type == IMAGE_REL_TYPE and rel.get("TargetMode") != "External":
                media_path = f"word/{target}"
                if not source.has(media_path):
                    logger.debug(f"appendix media missing: {media_path}")
                    continue
                target_path = PurePosixPath(target)
                ext = target_path.suffix.lstrip(".")
                name = _free_name(pkg, f"word/{target_path.parent}", target_path.stem, ext)
                new_target = str(target_path.parent / name)
                pkg.write(f"word/{new_target}", source.read(media_path))
                pkg.ensure_default_content_type(ext, _content_type_for(source, ext))
                pkg.add_relationship(new_id, IMAGE_REL_TYPE, new_target)
            elif rel_type == HYPERLINK_REL_TYPE:
                pkg.add_relationship(new_id, rel_type, target, target_mode=rel.get("TargetMode"))
            else:
                continue
            id_map[old_id] = new_id
            taken.add(new_id)
            counter += 1

        body = _remap_rel_ids(body, prefix, id_map)
        body, dropped = _drop_unmapped_refs(body, prefix, id_map.values())
        if dropped:
            logger.warning(f"appendix content without a carried relationship removed: {sorted(set(dropped))}")
        new_xml = _carry_namespaces(xml, source_xml)
        return insert_before_body_close(new_xml, page_break() + body)

    return _apply(blob, "append_docx", edit, errors, document)


def append_to_docs(
    blob: bytes,
    filename: str,
    data: bytes,
    *,
    errors: DegradationLog | None = None,
    document: str = "",
) -> bytes:
    """Append a file as an appendix according to its extension.

    docx is merged, images are embedded, spreadsheets become a table. Any other
    file type returns ``blob`` unchanged.
    """
    ext = PurePosixPath(filename.lower()).suffix.lstrip(".")
    if ext == "docx":
        return append_docx(blob, data, errors=errors, document=document)
    if ext in IMAGE_CONTENT_TYPES:
        return append_image(blob, data, ext, errors=errors, document=document)
    if ext in TABLE_EXTENSIONS:
        try:
            rows = read_table_rows(data, filename)
        except SpreadsheetReadError as e:
            logger.warning(f"appendix table '{filename}' unreadable: {e}")
            if errors is not None:
                errors.record(document, "append_table", "UNREADABLE_APPENDIX", str(e))
            return blob
        return append_table(blob, rows, errors=errors, document=document)

    logger.warning(f"appendix '{filename}' has unsupported type; document left unchanged")
    if errors is not None:
        errors.record(document, "append_to_docs", "UNSUPPORTED_APPENDIX", f"unsupported appendix type: {filename}")
    return blob
