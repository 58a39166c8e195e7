from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from sowgen.docx.verticals import VerticalNotes
from sowgen.excel.column_mapper import HEADER_SCAN_ROWS
from sowgen.models.project import DocumentType, ProjectInfo
from sowgen.models.sow_state import SowBuilderState
from sowgen.sow.templates import DEFAULT_ENABLED_SECTIONS, catalog_ids

"""Configuration and project file loading.

Responsibilities:
- Load YAML ``config/sowgen.yml`` (templates, output directory, parser and
  engine settings) and a per-project YAML file (project info, per-document
  overrides, scope-of-work builder state, appendix)
- Validate both against the JSON schemas shipped in ``sowgen/config/schemas``
- Apply defaults and resolve relative paths against the file's directory
"""

__all__ = [
    "CONFIG_ENV_VAR",
    "DEFAULT_CONFIG_PATH",
    "AppConfig",
    "ConfigError",
    "ProjectFile",
    "load_config",
    "load_project",
    "resolve_config_path",
]

SCHEMA_DIR = Path(__file__).parent / "schemas"
CONFIG_SCHEMA_PATH = SCHEMA_DIR / "config_schema.json"
PROJECT_SCHEMA_PATH = SCHEMA_DIR / "project_schema.json"

DEFAULT_CONFIG_PATH = Path("config/sowgen.yml")
CONFIG_ENV_VAR = "SOWGEN_CONFIG"
DEFAULT_OUTPUT_DIRECTORY = "./output"


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class AppConfig:
    templates: dict[DocumentType, Path]
    output_directory: Path
    header_scan_rows: int = HEADER_SCAN_ROWS
    spelled_variables: tuple[str, ...] = ()
    custom_templates: dict[str, str] = field(default_factory=dict)
    vertical_overrides: dict[str, VerticalNotes] = field(default_factory=dict)


@dataclass(frozen=True)
class ProjectFile:
    info: ProjectInfo
    overrides: dict[DocumentType, dict[str, Any]]
    sow_state: SowBuilderState
    bom_path: Path | None = None
    appendix_path: Path | None = None
    auto_fill: bool = True


def _load_schema(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"schema not found: {path}")
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e


def _validate(data: Any, schema_path: Path, what: str) -> None:
    """Validate ``data`` against a JSON schema.

    Raises:
        ConfigError: schema file missing or invalid, or validation failed
    """
    schema = _load_schema(schema_path)
    try:
        jsonschema.validate(data, schema)
    except ValidationError as e:
        location = "/".join(str(p) for p in e.absolute_path)
        suffix = f" (at {location})" if location else ""
        raise ConfigError(f"{what} validation failed: {e.message}{suffix}") from e


def _read_yaml(path: Path, what: str) -> Any:
    if not path.exists():
        raise ConfigError(f"{what} not found: {path}")
    try:
        return yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e


def _plain_scalars(value: Any) -> Any:
    # YAML turns 2025-03-07 into a date; project fields are text
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return f"{value.month}/{value.day}/{value.year}"
    if isinstance(value, dict):
        return {k: _plain_scalars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain_scalars(v) for v in value]
    return value


def _resolve(base: Path, raw: str) -> Path:
    path = Path(os.path.expanduser(raw))
    return path if path.is_absolute() else base / path


def resolve_config_path(path: Path | None = None) -> Path:
    """Explicit path, else $SOWGEN_CONFIG, else config/sowgen.yml."""
    if path is not None:
        return path
    env = os.environ.get(CONFIG_ENV_VAR)
    return Path(env) if env else DEFAULT_CONFIG_PATH


def load_config(path: Path) -> AppConfig:
    data = _read_yaml(path, "config file")
    _validate(data, CONFIG_SCHEMA_PATH, "config")

    base = path.parent
    templates = {DocumentType(key): _resolve(base, value) for key, value in data["templates"].items()}
    overrides = {
        key: VerticalNotes.from_dict(value) for key, value in (data.get("vertical_overrides") or {}).items()
    }
    return AppConfig(
        templates=templates,
        output_directory=_resolve(base, data.get("output_directory", DEFAULT_OUTPUT_DIRECTORY)),
        header_scan_rows=data.get("header_scan_rows", HEADER_SCAN_ROWS),
        spelled_variables=tuple(data.get("spelled_variables") or ()),
        custom_templates=dict(data.get("custom_templates") or {}),
        vertical_overrides=overrides,
    )


def _project_fields(raw: dict[str, Any]) -> dict[str, Any]:
    fields = dict(raw)
    for key in ("estimated_workdays", "lift_height"):
        if key in fields and fields[key] is not None:
            value = fields[key]
            # 10.0 -> "10"
            if isinstance(value, float) and value.is_integer():
                value = int(value)
            fields[key] = str(value)
    return fields


def _sow_state(raw: dict[str, Any]) -> SowBuilderState:
    order = raw.get("section_order")
    enabled = raw.get("enabled_sections")
    state = SowBuilderState(
        section_order=tuple(order) if order else tuple(catalog_ids()),
        enabled_sections=frozenset(enabled if enabled is not None else DEFAULT_ENABLED_SECTIONS),
        variables={k: str(v) for k, v in (raw.get("variables") or {}).items()},
        custom_templates=dict(raw.get("custom_templates") or {}),
        custom_sow_text=raw.get("custom_sow_text"),
    )
    # new catalog sections are appended to a persisted order
    return state.ensure_section_order(catalog_ids())


def load_project(path: Path) -> ProjectFile:
    """Load a project file.

    ``bom`` and ``appendix.file`` are resolved relative to the project file.
    """
    data = _plain_scalars(_read_yaml(path, "project file"))
    _validate(data, PROJECT_SCHEMA_PATH, "project")

    base = path.parent
    info = ProjectInfo(**_project_fields(data["project"]))
    overrides = {
        DocumentType(key): _project_fields(value or {})
        for key, value in (data.get("overrides") or {}).items()
    }
    sow_raw = data.get("sow") or {}
    appendix = (data.get("appendix") or {}).get("file")
    bom = data.get("bom")
    return ProjectFile(
        info=info,
        overrides=overrides,
        sow_state=_sow_state(sow_raw),
        bom_path=_resolve(base, bom) if bom else None,
        appendix_path=_resolve(base, appendix) if appendix else None,
        auto_fill=sow_raw.get("auto_fill", True),
    )
