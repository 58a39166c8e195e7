from __future__ import annotations

import io
import zipfile

import pytest

from sowgen.docx.package import (
    CONTENT_TYPES_PATH,
    DOCUMENT_RELS_PATH,
    IMAGE_REL_TYPE,
    DocxError,
    DocxPackage,
    MissingPartError,
    parse_attributes,
)


def test_from_bytes_rejects_non_zip():
    with pytest.raises(DocxError):
        DocxPackage.from_bytes(b"not a zip")


def test_read_missing_part(ooxml):
    pkg = DocxPackage.from_bytes(ooxml.build())
    with pytest.raises(MissingPartError):
        pkg.read("word/nothing.xml")


def test_round_trip_keeps_parts_and_content_types_first(ooxml):
    blob = ooxml.build("<w:p/>", extra_parts={"word/styles.xml": "<w:styles/>"})
    pkg = DocxPackage.from_bytes(blob)
    pkg.write("word/new.xml", "<x/>")
    out = pkg.to_bytes()
    names = ooxml.names(out)
    assert names[0] == CONTENT_TYPES_PATH
    assert {"word/document.xml", "word/styles.xml", "word/new.xml"} <= set(names)
    # source bytes untouched
    assert "word/new.xml" not in ooxml.names(blob)


def test_add_relationship_is_idempotent(ooxml):
    pkg = DocxPackage.from_bytes(ooxml.build())
    pkg.add_relationship("rId7", IMAGE_REL_TYPE, "media/a.png")
    pkg.add_relationship("rId7", IMAGE_REL_TYPE, "media/other.png")
    rels = pkg.relationships()
    assert rels == [{"Id": "rId7", "Type": IMAGE_REL_TYPE, "Target": "media/a.png"}]
    assert pkg.relationship_ids() == {"rId7"}


def test_add_relationship_creates_missing_rels_part(ooxml):
    pkg = DocxPackage.from_bytes(ooxml.build())
    pkg.remove(DOCUMENT_RELS_PATH)
    assert pkg.relationships() == []
    pkg.add_relationship("rId1", "t", "https://example.com", target_mode="External")
    assert pkg.relationships()[0]["TargetMode"] == "External"


def test_content_type_helpers(ooxml):
    pkg = DocxPackage.from_bytes(ooxml.build())
    pkg.ensure_default_content_type("png", "image/png")
    pkg.ensure_default_content_type("PNG", "image/png")
    pkg.add_content_type_override("/word/x.xml", "application/xml")
    pkg.add_content_type_override("/word/x.xml", "application/xml")
    xml = pkg.read_text(CONTENT_TYPES_PATH)
    assert xml.count('Extension="png"') == 1
    assert xml.count('PartName="/word/x.xml"') == 1


def test_strip_custom_xml(ooxml):
    content_types = ooxml.content_types.replace(
        "</Types>",
        '<Override PartName="/customXml/itemProps1.xml" ContentType="application/vnd.openxmlformats-officedocument.customXmlProperties+xml"/></Types>',
    )
    rels = (
        '<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">'
        '<Relationship Id="rId1" Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/customXml" Target="../customXml/item1.xml"/>'
        '<Relationship Id="rId2" Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/styles" Target="styles.xml"/>'
        "</Relationships>"
    )
    blob = ooxml.build(
        content_types=content_types,
        rels=rels,
        extra_parts={"customXml/item1.xml": "<a/>", "customXml/itemProps1.xml": "<b/>"},
    )
    pkg = DocxPackage.from_bytes(blob)
    assert pkg.strip_custom_xml() == 2
    assert not any(n.startswith("customXml/") for n in pkg.names())
    assert "/customXml/" not in pkg.read_text(CONTENT_TYPES_PATH)
    assert pkg.relationship_ids() == {"rId2"}
    assert pkg.strip_custom_xml() == 0


def test_to_bytes_is_a_valid_zip(ooxml):
    out = DocxPackage.from_bytes(ooxml.build()).to_bytes()
    with zipfile.ZipFile(io.BytesIO(out)) as zf:
        assert zf.testzip() is None


def test_parse_attributes():
    assert parse_attributes('<Relationship Id="rId1" r:embed="x"/>') == {"Id": "rId1", "r:embed": "x"}
