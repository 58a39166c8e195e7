from __future__ import annotations

import io
import logging
import re
import zipfile
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Any

from ..docx.appendix import (
    append_lift_notes,
    append_programming_notes,
    append_to_docs,
    append_vertical_notes,
)
from ..docx.fields import build_field_map
from ..docx.renderer import TemplateError, render_template
from ..docx.verticals import VerticalNotes
from ..excel.extractor import merge_metadata
from ..logging.error_log import DegradationLog
from ..models.bom import ParsedBom
from ..models.generation_result import DocumentStat, GenerationResult
from ..models.project import DOCX_MIME_TYPE, DocumentType, ProjectInfo, today_string
from ..models.sow_state import SowBuilderState
from ..sow.autofill import auto_fill_from_bom, merge_auto_fill
from ..sow.engine import resolve_sow_text
from .progress import ProgressTracker

"""Document generation service.

Runs the per-document pipeline and the three-document batch:

1. ``prepare_project`` folds BOM metadata, the material list, auto-filled
   variables and the generated scope-of-work text into the project
2. ``generate_document`` renders one template and appends, in this order,
   vertical site notes, lift notes, the appendix file and programming notes
3. ``generate_all`` runs the document types sequentially and aggregates stats
4. ``bundle_documents`` packs the results into one zip

Stage failures after rendering degrade the document (recorded in the
DegradationLog) but never stop the run. A template that is not a .docx fails
only its own document.
"""

__all__ = [
    "DEFAULT_BUNDLE_FOLDER",
    "GeneratedDocument",
    "GenerationOptions",
    "bundle_documents",
    "bundle_file_name",
    "generate_all",
    "generate_document",
    "prepare_project",
]

logger = logging.getLogger(__name__)

DEFAULT_BUNDLE_FOLDER = "SOW_Documents"


@dataclass(frozen=True)
class GenerationOptions:
    spelled_variables: tuple[str, ...] = ()
    custom_templates: dict[str, str] = field(default_factory=dict)
    vertical_overrides: dict[str, VerticalNotes] = field(default_factory=dict)
    appendix_name: str | None = None
    appendix_data: bytes | None = None


@dataclass(frozen=True)
class GeneratedDocument:
    doc_type: DocumentType
    file_name: str
    data: bytes
    mime_type: str = DOCX_MIME_TYPE
    fallbacks: int = 0


def prepare_project(
    info: ProjectInfo,
    sow_state: SowBuilderState,
    bom: ParsedBom | None = None,
    *,
    auto_fill: bool = True,
    options: GenerationOptions | None = None,
) -> tuple[ProjectInfo, SowBuilderState]:
    """Fold BOM results and scope-of-work text into the project.

    Values the user already entered always win: metadata and auto-filled
    variables only fill empty fields, and a non-empty ``scope`` or
    ``scope_of_work`` is kept as is. A date still empty after the BOM merge
    becomes today.
    """
    options = options or GenerationOptions()
    state = sow_state
    if options.custom_templates:
        state = replace(state, custom_templates={**options.custom_templates, **state.custom_templates})

    if bom is not None:
        updates = merge_metadata(info, bom.metadata)
        if not info.scope.strip() and bom.scope_text:
            updates["scope"] = bom.scope_text
        if updates:
            logger.info(f"project fields filled from BOM: {sorted(updates)}")
            info = info.with_updates(**updates)

        if auto_fill and state.custom_sow_text is None:
            merged = merge_auto_fill(state.variables, auto_fill_from_bom(bom.items))
            if merged != state.variables:
                filled = sorted(k for k in merged if k not in state.variables or merged[k] != state.variables[k])
                logger.info(f"auto-filled variables: {filled}")
                state = state.with_variables(merged)
        elif auto_fill:
            logger.info("custom scope-of-work text present; auto-fill skipped")

    if not info.date.strip():
        info = info.with_updates(date=today_string())

    if not info.scope_of_work.strip():
        text = resolve_sow_text(state, options.spelled_variables)
        if text:
            info = info.with_updates(scope_of_work=text)
    return info, state


def generate_document(
    template: bytes,
    info: ProjectInfo,
    doc_type: DocumentType,
    overrides: Mapping[str, Any] | None = None,
    options: GenerationOptions | None = None,
    errors: DegradationLog | None = None,
) -> GeneratedDocument:
    """Render one document and append its appendices.

    Raises:
        TemplateError: ``template`` is not a .docx file
    """
    options = options or GenerationOptions()
    errors = errors if errors is not None else DegradationLog()
    name = doc_type.file_name
    before = len(errors)

    doc_info = info.merged(dict(overrides or {}))
    fields = build_field_map(info, overrides)
    data = render_template(template, fields)
    if data is template:
        errors.record(name, "render_template", "MISSING_PART", "template has no word/document.xml")

    data = append_vertical_notes(data, doc_info.vertical, options.vertical_overrides, errors=errors, document=name)
    if doc_info.lift_required:
        data = append_lift_notes(data, doc_info.lift_height, doc_info.lift_environment, errors=errors, document=name)
    if options.appendix_name and options.appendix_data is not None:
        data = append_to_docs(data, options.appendix_name, options.appendix_data, errors=errors, document=name)
    data = append_programming_notes(data, doc_info.programming_notes, errors=errors, document=name)

    fallbacks = len(errors) - before
    logger.info(f"{name}: {len(data)} bytes, fallbacks={fallbacks}")
    return GeneratedDocument(doc_type=doc_type, file_name=name, data=data, fallbacks=fallbacks)


def generate_all(
    templates: Mapping[DocumentType, bytes | None],
    info: ProjectInfo,
    overrides: Mapping[DocumentType, Mapping[str, Any]] | None = None,
    options: GenerationOptions | None = None,
    errors: DegradationLog | None = None,
    items: int = 0,
) -> tuple[list[GeneratedDocument], GenerationResult]:
    """Generate every document type that has a template, in export order."""
    overrides = overrides or {}
    errors = errors if errors is not None else DegradationLog()
    start = datetime.now(UTC)
    documents: list[GeneratedDocument] = []
    stats: list[DocumentStat] = []
    skipped = failed = 0

    doc_types = list(DocumentType)
    with ProgressTracker(len(doc_types)) as progress:
        for doc_type in doc_types:
            progress.start_document(doc_type.file_name)
            doc_start = datetime.now(UTC)
            template = templates.get(doc_type)
            if template is None:
                skipped += 1
                logger.info(f"{doc_type.file_name}: no template, skipped")
                stats.append(DocumentStat(doc_type.value, "skipped"))
                progress.finish_document(success=False)
                continue
            try:
                doc = generate_document(template, info, doc_type, overrides.get(doc_type), options, errors)
            except TemplateError as e:
                failed += 1
                logger.error(f"{doc_type.file_name}: {e}")
                errors.record(doc_type.file_name, "render_template", "INVALID_TEMPLATE", str(e))
                stats.append(DocumentStat(doc_type.value, "failed", message=str(e)))
                progress.finish_document(success=False)
                continue
            documents.append(doc)
            elapsed = (datetime.now(UTC) - doc_start).total_seconds()
            stats.append(DocumentStat(doc_type.value, "generated", len(doc.data), doc.fallbacks, elapsed))
            progress.set_postfix(generated=len(documents))
            progress.finish_document(success=True)

    end = datetime.now(UTC)
    result = GenerationResult(
        generated=len(documents),
        skipped=skipped,
        failed=failed,
        fallbacks=sum(d.fallbacks for d in documents),
        items=items,
        start_time=start,
        end_time=end,
        elapsed_seconds=(end - start).total_seconds(),
        document_stats=stats,
    )
    return documents, result


_UNSAFE_NAME_RE = re.compile(r'[\\/:*?"<>|]+')


def _folder_name(project_name: str) -> str:
    name = _UNSAFE_NAME_RE.sub("_", project_name).strip().strip(".")
    return name or DEFAULT_BUNDLE_FOLDER


def bundle_file_name(project_name: str) -> str:
    return f"{_folder_name(project_name)}.zip"


def bundle_documents(
    documents: list[GeneratedDocument],
    project_name: str = "",
    extra_files: Mapping[str, bytes] | None = None,
) -> bytes:
    """Zip the documents (plus e.g. the hardware schedule) under one folder."""
    folder = _folder_name(project_name)
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for doc in documents:
            zf.writestr(f"{folder}/{doc.file_name}", doc.data)
        for name, data in (extra_files or {}).items():
            zf.writestr(f"{folder}/{name}", data)
    return buf.getvalue()
