from __future__ import annotations

import io

from PIL import Image

from sowgen.docx.appendix import (
    IMAGE_BOX_EMU,
    append_docx,
    append_image,
    append_lift_notes,
    append_programming_notes,
    append_table,
    append_text_appendix,
    append_to_docs,
    append_vertical_notes,
)
from sowgen.docx.verticals import DEFAULT_VERTICAL_NOTES, VerticalNotes, all_vertical_notes, get_vertical_notes
from sowgen.logging.error_log import DegradationLog

R_NS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
IMAGE_REL = "http://schemas.openxmlformats.org/officeDocument/2006/relationships/image"
HYPERLINK_REL = "http://schemas.openxmlformats.org/officeDocument/2006/relationships/hyperlink"


def _png(width: int, height: int) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), "white").save(buf, format="PNG")
    return buf.getvalue()


def test_text_appendix_lands_before_section_properties(ooxml):
    blob = ooxml.build(ooxml.paragraph("Body"))
    out = append_text_appendix(blob, "Appendix - Test", ["one", "", "two"], subtitle="SUB")
    doc = ooxml.read(out, "word/document.xml")
    assert doc.index("Body") < doc.index('w:type="page"') < doc.index("Appendix - Test") < doc.index("SUB")
    assert doc.index("two") < doc.index("<w:sectPr>")
    assert doc.count("<w:p><w:pPr><w:spacing w:after=\"60\"/>") == 2


def test_appendices_stack_in_call_order(ooxml):
    blob = ooxml.build()
    blob = append_lift_notes(blob, "24", "indoor")
    blob = append_programming_notes(blob, "Cameras at 15 fps")
    doc = ooxml.read(blob, "word/document.xml")
    assert doc.index("Appendix - Lift / Equipment Requirements") < doc.index("Appendix - Programming Notes")
    assert "Height of install: 24 ft" in doc
    assert "Environment: Indoor" in doc


def test_lift_notes_without_details(ooxml):
    doc = ooxml.read(append_lift_notes(ooxml.build(), " ", ""), "word/document.xml")
    assert "A lift / aerial equipment is required for this project." in doc
    assert "Height of install" not in doc
    assert "Environment" not in doc


def test_blank_programming_notes_is_a_no_op(ooxml):
    blob = ooxml.build()
    assert append_programming_notes(blob, "  \n ") is blob


def test_vertical_notes_bullets_and_override(ooxml):
    blob = ooxml.build()
    doc = ooxml.read(append_vertical_notes(blob, "K12"), "word/document.xml")
    assert "Appendix - Site Requirements" in doc
    assert "K-12 / SCHOOL CAMPUSES" in doc
    assert doc.count("•  ") == len(DEFAULT_VERTICAL_NOTES["K12"].bullets)

    custom = {"K12": VerticalNotes("DISTRICT 9", ("Badge at the front office.",))}
    doc = ooxml.read(append_vertical_notes(blob, "K12", custom), "word/document.xml")
    assert "DISTRICT 9" in doc
    assert "K-12" not in doc


def test_unknown_or_empty_vertical_is_a_no_op(ooxml):
    blob = ooxml.build()
    assert append_vertical_notes(blob, "") is blob
    assert append_vertical_notes(blob, "ZZZ") is blob


def test_vertical_lookup():
    assert get_vertical_notes("MED").title == "HEALTHCARE / CLINICS / HOSPITALS"
    assert get_vertical_notes("nope") is None
    assert set(all_vertical_notes()) == {"K12", "HEW", "MED", "BIZ", "GOV"}
    notes = VerticalNotes.from_dict({"title": "T", "bullets": ["a", 2]})
    assert notes.bullets == ("a", "2")


def test_missing_anchor_returns_input_and_records(ooxml):
    blob = ooxml.build(document="<w:document><w:body></w:document>")
    errors = DegradationLog()
    out = append_lift_notes(blob, "10", "outdoor", errors=errors, document="SOW_Customer.docx")
    assert out is blob
    [rec] = errors.records
    assert rec.error_type == "ANCHOR_NOT_FOUND"
    assert rec.stage == "append_lift_notes"
    assert rec.document == "SOW_Customer.docx"


def test_missing_document_part_is_recorded(ooxml):
    blob = ooxml.build(include_document=False)
    errors = DegradationLog()
    assert append_table(blob, [["a"]], errors=errors) is blob
    assert errors.records[0].error_type == "MISSING_PART"


def test_table_appendix(ooxml):
    out = append_table(ooxml.build(), [["Location", "Device"], ["Lobby"]])
    doc = ooxml.read(out, "word/document.xml")
    assert "Appendix - Hardware Schedule" in doc
    assert doc.count("<w:tc>") == 4
    assert append_table(out, []) is out


def test_image_appendix_aspect_fit(ooxml):
    out = append_image(ooxml.build(), _png(200, 100), "PNG")
    doc = ooxml.read(out, "word/document.xml")
    box_cx, _ = IMAGE_BOX_EMU
    assert f'<wp:extent cx="{box_cx}" cy="{box_cx // 2}"/>' in doc
    assert 'r:embed="rIdAppendixImage"' in doc
    assert "word/media/appendix_image.png" in ooxml.names(out)
    assert 'Extension="png"' in ooxml.read(out, "[Content_Types].xml")
    assert 'Target="media/appendix_image.png"' in ooxml.read(out, "word/_rels/document.xml.rels")


def test_second_image_gets_fresh_names_and_ids(ooxml):
    out = append_image(ooxml.build(), _png(10, 10), "png")
    out = append_image(out, _png(10, 10), "png")
    doc = ooxml.read(out, "word/document.xml")
    assert "word/media/appendix_image_2.png" in ooxml.names(out)
    assert 'r:embed="rIdAppendixImage2"' in doc
    assert '<wp:docPr id="1"' in doc and '<wp:docPr id="2"' in doc


def test_unreadable_image_uses_full_box(ooxml):
    out = append_image(ooxml.build(), b"garbage", "jpg")
    cx, cy = IMAGE_BOX_EMU
    assert f'<wp:extent cx="{cx}" cy="{cy}"/>' in ooxml.read(out, "word/document.xml")


def _appendix_docx(ooxml) -> bytes:
    body = (
        '<w:p><w:r><w:t>Appendix body</w:t></w:r></w:p>'
        '<w:p><w:r><w:drawing><a:blip xmlns:a="urn:a" rel:embed="rId5"/></w:drawing></w:r></w:p>'
        '<w:p><w:hyperlink rel:id="rId6"><w:r><w:t>site</w:t></w:r></w:hyperlink></w:p>'
        '<w:sectPr><w:pgSz w:w="15840" w:h="12240"/></w:sectPr>'
    )
    document = (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'
        '<w:document xmlns:w="http://schemas.openxmlformats.org/wordprocessingml/2006/main" '
        f'xmlns:rel="{R_NS}" xmlns:w14="urn:w14"><w:body>{body}</w:body></w:document>'
    )
    rels = (
        '<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">'
        f'<Relationship Id="rId5" Type="{IMAGE_REL}" Target="media/image1.png"/>'
        f'<Relationship Id="rId6" Type="{HYPERLINK_REL}" Target="https://example.com" TargetMode="External"/>'
        '<Relationship Id="rId7" Type="urn:styles" Target="styles.xml"/>'
        "</Relationships>"
    )
    return ooxml.build(document=document, rels=rels, extra_parts={"word/media/image1.png": _png(4, 4)})


def test_append_docx_merges_body_media_and_links(ooxml):
    host = ooxml.build(ooxml.paragraph("Host"), extra_parts={"word/media/image1.png": b"host image"})
    out = append_docx(host, _appendix_docx(ooxml))
    doc = ooxml.read(out, "word/document.xml")
    rels = ooxml.read(out, "word/_rels/document.xml.rels")

    assert doc.index("Host") < doc.index("Appendix body")
    # only the host's section properties survive
    assert doc.count("<w:sectPr>") == 1
    assert 'w:w="15840"' not in doc
    assert 'rel:embed="rId900"' in doc
    assert 'rel:id="rId901"' in doc
    assert 'xmlns:rel="' in doc and 'xmlns:w14="urn:w14"' in doc
    assert 'Id="rId900"' in rels and 'Target="media/image1_2.png"' in rels
    assert 'Id="rId901"' in rels and 'TargetMode="External"' in rels
    assert "styles.xml" not in rels
    assert ooxml.read(out, "word/media/image1.png") == "host image"
    assert "word/media/image1_2.png" in ooxml.names(out)


def test_append_docx_drops_content_with_uncarried_relationships(ooxml):
    body = (
        "<w:p><w:r><w:t>Chart follows</w:t></w:r></w:p>"
        '<w:p><w:r><w:drawing><c:chart xmlns:c="urn:c" rel:id="rId8"/></w:drawing></w:r></w:p>'
        '<w:p><w:r><w:object><o:OLEObject xmlns:o="urn:o" rel:id="rId9"/></w:object></w:r></w:p>'
        '<w:altChunk rel:id="rId10"/>'
        '<w:p><w:r><w:drawing><a:blip xmlns:a="urn:a" rel:embed="rId5"/></w:drawing></w:r></w:p>'
    )
    document = (
        '<w:document xmlns:w="http://schemas.openxmlformats.org/wordprocessingml/2006/main" '
        f'xmlns:rel="{R_NS}"><w:body>{body}</w:body></w:document>'
    )
    rels = (
        '<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">'
        f'<Relationship Id="rId5" Type="{IMAGE_REL}" Target="media/image1.png"/>'
        '<Relationship Id="rId8" Type="urn:chart" Target="charts/chart1.xml"/>'
        '<Relationship Id="rId9" Type="urn:oleObject" Target="embeddings/ole1.bin"/>'
        '<Relationship Id="rId10" Type="urn:aFChunk" Target="chunk.html"/>'
        "</Relationships>"
    )
    appendix = ooxml.build(document=document, rels=rels, extra_parts={"word/media/image1.png": _png(4, 4)})
    host = ooxml.build(ooxml.paragraph("Host"))
    doc = ooxml.read(append_docx(host, appendix), "word/document.xml")

    assert "Chart follows" in doc
    assert "c:chart" not in doc
    assert "OLEObject" not in doc
    assert "<w:altChunk/>" in doc
    for stale in ("rId8", "rId9", "rId10"):
        assert f'"{stale}"' not in doc
    assert 'rel:embed="rId900"' in doc


def test_append_docx_with_broken_appendix_records(ooxml):
    errors = DegradationLog()
    host = ooxml.build()
    assert append_docx(host, b"nope", errors=errors, document="d.docx") is host
    assert errors.records[0].error_type == "INVALID_DOCX"


def test_append_to_docs_dispatch(ooxml, make_workbook):
    host = ooxml.build()
    errors = DegradationLog()

    table = append_to_docs(host, "schedule.xlsx", make_workbook({"S": [["Loc", "Qty"], ["Lobby", 2]]}), errors=errors)
    assert "Appendix - Hardware Schedule" in ooxml.read(table, "word/document.xml")

    image = append_to_docs(host, "floor.JPEG", _png(3, 3), errors=errors)
    assert "word/media/appendix_image.jpeg" in ooxml.names(image)

    merged = append_to_docs(host, "extra.docx", _appendix_docx(ooxml), errors=errors)
    assert "Appendix body" in ooxml.read(merged, "word/document.xml")
    assert len(errors) == 0

    assert append_to_docs(host, "notes.pdf", b"%PDF", errors=errors, document="d") is host
    assert append_to_docs(host, "bad.xlsx", b"not a workbook", errors=errors, document="d") is host
    assert [r.error_type for r in errors.records] == ["UNSUPPORTED_APPENDIX", "UNREADABLE_APPENDIX"]
