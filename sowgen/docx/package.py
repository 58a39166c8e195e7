from __future__ import annotations

import io
import logging
import re
import zipfile

"""In-memory .docx (OOXML zip) container.

A DocxPackage is opened from bytes, edited part by part and written back out as
new bytes; the source buffer is never modified. All zip and relationship
bookkeeping used by the renderer and the appendix composer lives here.
"""

__all__ = [
    "AnchorNotFoundError",
    "CONTENT_TYPES_PATH",
    "DOCUMENT_PATH",
    "DOCUMENT_RELS_PATH",
    "DocxError",
    "DocxPackage",
    "IMAGE_REL_TYPE",
    "MissingPartError",
]

logger = logging.getLogger(__name__)

DOCUMENT_PATH = "word/document.xml"
DOCUMENT_RELS_PATH = "word/_rels/document.xml.rels"
CONTENT_TYPES_PATH = "[Content_Types].xml"
IMAGE_REL_TYPE = "http://schemas.openxmlformats.org/officeDocument/2006/relationships/image"
COMPRESS_LEVEL = 6

_EMPTY_RELS = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'
    '<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships"></Relationships>'
)
_RELATIONSHIP_RE = re.compile(r"<Relationship\b[^>]*?/>|<Relationship\b[^>]*?>.*?</Relationship>", re.DOTALL)
_OVERRIDE_RE = re.compile(r"<Override\b[^>]*?/>|<Override\b[^>]*?>.*?</Override>", re.DOTALL)
_ATTR_RE = re.compile(r'([\w:]+)\s*=\s*"([^"]*)"')


class DocxError(Exception):
    """Base error for document container problems."""


class MissingPartError(DocxError):
    """Raised when a required zip part (e.g. word/document.xml) is absent."""


class AnchorNotFoundError(DocxError):
    """Raised when an XML insertion point cannot be located."""


def parse_attributes(tag: str) -> dict[str, str]:
    return dict(_ATTR_RE.findall(tag))


class DocxPackage:
    """Mutable working copy of a .docx zip."""

    def __init__(self, parts: dict[str, bytes]) -> None:
        self._parts = parts

    @classmethod
    def from_bytes(cls, data: bytes) -> DocxPackage:
        try:
            with zipfile.ZipFile(io.BytesIO(data)) as zf:
                parts = {info.filename: zf.read(info) for info in zf.infolist() if not info.is_dir()}
        except (zipfile.BadZipFile, ValueError, OSError) as e:
            raise DocxError(f"not a valid .docx container: {e}") from e
        return cls(parts)

    def names(self) -> list[str]:
        return list(self._parts)

    def has(self, name: str) -> bool:
        return name in self._parts

    def read(self, name: str) -> bytes:
        try:
            return self._parts[name]
        except KeyError:
            raise MissingPartError(f"missing part: {name}") from None

    def read_text(self, name: str) -> str:
        return self.read(name).decode("utf-8")

    def write(self, name: str, data: bytes | str) -> None:
        self._parts[name] = data.encode("utf-8") if isinstance(data, str) else data

    def remove(self, name: str) -> None:
        self._parts.pop(name, None)

    def document_xml(self) -> str:
        return self.read_text(DOCUMENT_PATH)

    def to_bytes(self) -> bytes:
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=COMPRESS_LEVEL) as zf:
            # [Content_Types].xml first, as Word writes it
            ordered = sorted(self._parts, key=lambda n: n != CONTENT_TYPES_PATH)
            for name in ordered:
                zf.writestr(name, self._parts[name])
        return buf.getvalue()

    # relationships / content types

    def relationships(self, rels_path: str = DOCUMENT_RELS_PATH) -> list[dict[str, str]]:
        if not self.has(rels_path):
            return []
        return [parse_attributes(m.group(0)) for m in _RELATIONSHIP_RE.finditer(self.read_text(rels_path))]

    def relationship_ids(self, rels_path: str = DOCUMENT_RELS_PATH) -> set[str]:
        return {r["Id"] for r in self.relationships(rels_path) if "Id" in r}

    def add_relationship(
        self,
        rel_id: str,
        rel_type: str,
        target: str,
        rels_path: str = DOCUMENT_RELS_PATH,
        target_mode: str | None = None,
    ) -> None:
        xml = self.read_text(rels_path) if self.has(rels_path) else _EMPTY_RELS
        if f'Id="{rel_id}"' in xml:
            return
        mode = f' TargetMode="{target_mode}"' if target_mode else ""
        entry = f'<Relationship Id="{rel_id}" Type="{rel_type}" Target="{target}"{mode}/>'
        self.write(rels_path, xml.replace("</Relationships>", entry + "</Relationships>"))

    def add_content_type_override(self, part_name: str, content_type: str) -> None:
        xml = self.read_text(CONTENT_TYPES_PATH)
        if f'PartName="{part_name}"' in xml:
            return
        entry = f'<Override PartName="{part_name}" ContentType="{content_type}"/>'
        self.write(CONTENT_TYPES_PATH, xml.replace("</Types>", entry + "</Types>"))

    def ensure_default_content_type(self, extension: str, content_type: str) -> None:
        xml = self.read_text(CONTENT_TYPES_PATH)
        if re.search(rf'<Default\b[^>]*Extension="{re.escape(extension)}"', xml, re.IGNORECASE):
            return
        entry = f'<Default Extension="{extension}" ContentType="{content_type}"/>'
        self.write(CONTENT_TYPES_PATH, xml.replace("</Types>", entry + "</Types>"))

    def strip_custom_xml(self) -> int:
        """Remove customXml/ parts with their overrides and relationships.

        Stale custom XML (data bindings, old template metadata) frequently breaks
        placeholder rendering. Returns the number of parts removed.
        """
        doomed = [n for n in self._parts if n.startswith("customXml/")]
        for name in doomed:
            self.remove(name)

        if self.has(CONTENT_TYPES_PATH):
            xml = self.read_text(CONTENT_TYPES_PATH)
            cleaned = _OVERRIDE_RE.sub(
                lambda m: "" if parse_attributes(m.group(0)).get("PartName", "").startswith("/customXml/") else m.group(0),
                xml,
            )
            if cleaned != xml:
                self.write(CONTENT_TYPES_PATH, cleaned)

        for name in [n for n in self._parts if n.endswith(".rels")]:
            xml = self.read_text(name)
            cleaned = _RELATIONSHIP_RE.sub(
                lambda m: "" if "customXml/" in parse_attributes(m.group(0)).get("Target", "") else m.group(0),
                xml,
            )
            if cleaned != xml:
                self.write(name, cleaned)

        if doomed:
            logger.debug(f"removed {len(doomed)} customXml parts")
        return len(doomed)
