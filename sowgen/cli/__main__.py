from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from sowgen.config.loader import AppConfig, ConfigError, ProjectFile, load_config, load_project, resolve_config_path
from sowgen.docx.appendix import TABLE_EXTENSIONS
from sowgen.excel.column_mapper import HEADER_SCAN_ROWS
from sowgen.excel.extractor import BomParseError, parse_bom
from sowgen.excel.normalize import format_quantity
from sowgen.logging.error_log import DegradationLog
from sowgen.logging.init import log_summary, setup_logging
from sowgen.models.bom import ParsedBom
from sowgen.models.project import DocumentType
from sowgen.services.generator import (
    GenerationOptions,
    bundle_documents,
    bundle_file_name,
    generate_all,
    prepare_project,
)
from sowgen.services.summary import render_summary_line
from sowgen.sow.autofill import auto_fill_from_bom

"""CLI entrypoint.

Subcommands:
- ``parse BOM``: show what the parser finds in a BOM workbook
- ``generate --project FILE``: run the full pipeline and write the documents

Exit codes: 0 success, 2 generated with degradations or failed documents,
1 fatal (configuration, project file or BOM error).
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1


def _load_env_file(path: Path) -> None:
    """Load .env (e.g. SOWGEN_CONFIG) without overriding the real environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=False)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="sowgen", description="BOM spreadsheet to scope-of-work document generator")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--config", type=Path, default=None, help="Config file (default: $SOWGEN_CONFIG or config/sowgen.yml)")
    sub = p.add_subparsers(dest="command", required=True)

    parse_p = sub.add_parser("parse", help="Print items, metadata and auto-filled variables of a BOM")
    parse_p.add_argument("bom", type=Path, help="BOM workbook (.xlsx/.xlsm/.xls)")
    parse_p.add_argument("--header-scan-rows", type=int, default=HEADER_SCAN_ROWS)

    gen_p = sub.add_parser("generate", help="Generate the scope-of-work documents for a project")
    gen_p.add_argument("--project", type=Path, required=True, help="Project file (YAML)")
    gen_p.add_argument("--bom", type=Path, default=None, help="BOM workbook; overrides the project file's bom")
    gen_p.add_argument("--bundle", action="store_true", help="Write one zip instead of separate documents")
    gen_p.add_argument("--output", type=Path, default=None, help="Output directory; overrides the config")
    return p.parse_args(argv)


def _print_bom(bom: ParsedBom) -> None:
    header = bom.column_map.header_row if bom.column_map is not None else None
    print(f"sheet: {bom.sheet_name}")
    print(f"header_row: {header if header is not None else 'none (positional columns)'}")
    print("metadata:")
    for key, value in sorted(bom.metadata.items()):
        print(f"  {key}: {value}")
    print(f"items: {len(bom.items)}")
    for item in bom.items:
        pn = f" [{item.part_number}]" if item.part_number else ""
        print(f"  {format_quantity(item.quantity)} x {item.description}{pn}")
    print("auto-fill:")
    for key, value in sorted(auto_fill_from_bom(bom.items).items()):
        print(f"  {key}={value}")


def _run_parse(args: argparse.Namespace, logger: logging.Logger) -> int:
    try:
        bom = parse_bom(args.bom, header_scan_rows=args.header_scan_rows)
    except BomParseError as e:
        logger.error(f"bom: {e}")
        return EXIT_FATAL
    _print_bom(bom)
    return EXIT_SUCCESS_ALL


def _read_templates(cfg: AppConfig, errors: DegradationLog, logger: logging.Logger) -> dict[DocumentType, bytes | None]:
    templates: dict[DocumentType, bytes | None] = {}
    for doc_type in DocumentType:
        path = cfg.templates.get(doc_type)
        if path is None:
            templates[doc_type] = None
            continue
        try:
            templates[doc_type] = path.read_bytes()
        except OSError as e:
            logger.error(f"template {doc_type.value}: {e}")
            errors.record(doc_type.file_name, "read_template", "TEMPLATE_NOT_FOUND", str(e))
            templates[doc_type] = None
    return templates


def _read_appendix(project: ProjectFile, logger: logging.Logger, errors: DegradationLog) -> tuple[str | None, bytes | None]:
    if project.appendix_path is None:
        return None, None
    try:
        return project.appendix_path.name, project.appendix_path.read_bytes()
    except OSError as e:
        logger.warning(f"appendix skipped: {e}")
        errors.record("", "read_appendix", "APPENDIX_NOT_FOUND", str(e))
        return None, None


def _run_generate(args: argparse.Namespace, logger: logging.Logger) -> int:
    config_path = resolve_config_path(args.config)
    try:
        cfg = load_config(config_path)
        project = load_project(args.project)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    bom = None
    bom_path = args.bom or project.bom_path
    if bom_path is not None:
        try:
            bom = parse_bom(bom_path, header_scan_rows=cfg.header_scan_rows)
        except BomParseError as e:
            logger.error(f"bom: {e}")
            return EXIT_FATAL

    errors = DegradationLog()
    appendix_name, appendix_data = _read_appendix(project, logger, errors)
    options = GenerationOptions(
        spelled_variables=cfg.spelled_variables,
        custom_templates=cfg.custom_templates,
        vertical_overrides=cfg.vertical_overrides,
        appendix_name=appendix_name,
        appendix_data=appendix_data,
    )
    info, _state = prepare_project(project.info, project.sow_state, bom, auto_fill=project.auto_fill, options=options)
    templates = _read_templates(cfg, errors, logger)

    documents, result = generate_all(
        templates,
        info,
        project.overrides,
        options,
        errors,
        items=len(bom.items) if bom is not None else 0,
    )

    output_dir = args.output or cfg.output_directory
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        if args.bundle:
            extra = {}
            if appendix_name and Path(appendix_name).suffix.lower().lstrip(".") in TABLE_EXTENSIONS:
                extra[appendix_name] = appendix_data
            target = output_dir / bundle_file_name(info.project_name)
            target.write_bytes(bundle_documents(documents, info.project_name, extra))
            logger.info(f"wrote {target}")
        else:
            for doc in documents:
                target = output_dir / doc.file_name
                target.write_bytes(doc.data)
                logger.info(f"wrote {target}")
    except OSError as e:
        logger.error(f"output: {e}")
        return EXIT_FATAL

    degraded = result.degraded or len(errors) > 0
    log_path = errors.flush()
    if log_path is not None:
        logger.warning(f"degradations logged to {log_path}")

    # log_summary adds the "SUMMARY " prefix
    log_summary(render_summary_line(len(DocumentType), result)[len("SUMMARY "):])
    return EXIT_PARTIAL_FAILURE if degraded else EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    # argv=[] from tests must not fall back to sys.argv
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(logging.DEBUG if args.debug else logging.INFO)
    logger.debug("debug mode enabled")
    _load_env_file(Path(".env"))

    if args.command == "parse":
        return _run_parse(args, logger)
    return _run_generate(args, logger)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
