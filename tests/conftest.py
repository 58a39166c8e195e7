# Shared pytest fixtures
from __future__ import annotations

import io
import tempfile
import zipfile
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Callable

import pandas as pd
import pytest

from sowgen.logging.init import reset_logging

W_NS = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
R_NS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"

CONTENT_TYPES = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'
    '<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">'
    '<Default Extension="rels" ContentType="application/vnd.openxmlformats-package.relationships+xml"/>'
    '<Default Extension="xml" ContentType="application/xml"/>'
    '<Override PartName="/word/document.xml" '
    'ContentType="application/vnd.openxmlformats-officedocument.wordprocessingml.document.main+xml"/>'
    "</Types>"
)
PACKAGE_RELS = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'
    '<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">'
    '<Relationship Id="rId1" Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/officeDocument" '
    'Target="word/document.xml"/></Relationships>'
)
EMPTY_DOCUMENT_RELS = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'
    '<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships"></Relationships>'
)
SECT_PR = '<w:sectPr><w:pgSz w:w="12240" w:h="15840"/></w:sectPr>'

# 1x1 transparent PNG
PNG_1X1 = bytes.fromhex(
    "89504e470d0a1a0a0000000d4948445200000001000000010806000000"
    "1f15c4890000000d49444154789c6300010000000500010d0a2db40000000049454e44ae426082"
)


def paragraph_xml(*runs: str, bold: bool = False) -> str:
    """One paragraph; each argument becomes its own run."""
    rpr = "<w:rPr><w:b/></w:rPr>" if bold else ""
    return "<w:p>" + "".join(f"<w:r>{rpr}<w:t>{text}</w:t></w:r>" for text in runs) + "</w:p>"


def document_xml(body: str, sect_pr: bool = True, extra_ns: str = "") -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'
        f'<w:document xmlns:w="{W_NS}" xmlns:r="{R_NS}"{extra_ns}>'
        f"<w:body>{body}{SECT_PR if sect_pr else ''}</w:body></w:document>"
    )


def build_docx(
    body: str = "",
    *,
    document: str | None = None,
    extra_parts: dict[str, bytes | str] | None = None,
    rels: str | None = None,
    content_types: str | None = None,
    include_document: bool = True,
) -> bytes:
    """Minimal .docx container built in memory."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        zf.writestr("[Content_Types].xml", content_types or CONTENT_TYPES)
        zf.writestr("_rels/.rels", PACKAGE_RELS)
        if include_document:
            zf.writestr("word/document.xml", document if document is not None else document_xml(body))
        zf.writestr("word/_rels/document.xml.rels", rels or EMPTY_DOCUMENT_RELS)
        for name, data in (extra_parts or {}).items():
            zf.writestr(name, data)
    return buf.getvalue()


def read_part(blob: bytes, name: str) -> str:
    with zipfile.ZipFile(io.BytesIO(blob)) as zf:
        return zf.read(name).decode("utf-8")


def part_names(blob: bytes) -> list[str]:
    with zipfile.ZipFile(io.BytesIO(blob)) as zf:
        return zf.namelist()


def build_workbook(sheets: dict[str, list[list[Any]]]) -> bytes:
    """xlsx bytes with one sheet per entry, written without a header row."""
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        for sheet, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=sheet, header=False, index=False)
    return buf.getvalue()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "templates").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def ooxml() -> SimpleNamespace:
    """Builders and readers for in-memory .docx files."""
    return SimpleNamespace(
        build=build_docx,
        read=read_part,
        names=part_names,
        paragraph=paragraph_xml,
        document=document_xml,
        content_types=CONTENT_TYPES,
        sect_pr=SECT_PR,
    )


@pytest.fixture()
def make_workbook() -> Callable[[dict[str, list[list[Any]]]], bytes]:
    return build_workbook


@pytest.fixture()
def png_bytes() -> bytes:
    return PNG_1X1


@pytest.fixture()
def scenario_rows() -> list[list[Any]]:
    return [
        ["Description", "Qty", "Part #"],
        ["Dome Camera X1", 4, "CAM-100"],
        ["Cat6 Cable 1000ft", 2, "CBL-6"],
        ["Subtotal", "", ""],
    ]


@pytest.fixture()
def clean_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def write_project(temp_workdir: Path) -> Callable[..., Path]:
    """Write config/sowgen.yml, a template for each document type and a project file."""

    def _write(project_yaml: str, template: bytes | None = None, config_extra: str = "") -> Path:
        tpl = template if template is not None else build_docx(
            paragraph_xml("{{Project_Name}}") + paragraph_xml("{{SCOPE_OF_WORK}}")
        )
        for name in ("SOW_Customer", "SOW_SUB_Quoting", "SOW_SUB_Project"):
            (temp_workdir / "templates" / f"{name}.docx").write_bytes(tpl)
        (temp_workdir / "config" / "sowgen.yml").write_text(
            "templates:\n"
            "  SOW_Customer: ../templates/SOW_Customer.docx\n"
            "  SOW_SUB_Quoting: ../templates/SOW_SUB_Quoting.docx\n"
            "  SOW_SUB_Project: ../templates/SOW_SUB_Project.docx\n"
            "output_directory: ../output\n" + config_extra,
            encoding="utf-8",
        )
        project = temp_workdir / "project.yml"
        project.write_text(project_yaml, encoding="utf-8")
        return project

    return _write
