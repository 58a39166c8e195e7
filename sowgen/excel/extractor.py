from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

from ..models.bom import ColumnMap, LineItem, ParsedBom
from .column_mapper import FIELD_KEYWORDS, HEADER_SCAN_ROWS, POSITIONAL_DEFAULTS, detect_columns
from .normalize import cell_text, format_quantity, normalize_header, parse_numeric_value
from .reader import CellGrid, SpreadsheetReadError, read_workbook

"""BOM structural extraction: line items and project metadata.

Two independent phases per worksheet:

1. ``detect_columns`` (column_mapper) finds the header row, or gives up.
2. ``extract_items`` walks the data rows with the detected map or the positional
   defaults. ``extract_metadata`` reads the header block of the sheet.

Across sheets the longest item list wins; lists are never merged because the
material list normally lives on a single sheet and other sheets (labor, pricing
summaries) would only add noise.
"""

__all__ = [
    "ANCHOR_ROW",
    "BomParseError",
    "EmptySpreadsheetError",
    "NoItemsFoundError",
    "build_scope_text",
    "extract_items",
    "extract_metadata",
    "is_total_row",
    "merge_metadata",
    "parse_bom",
    "parse_workbook",
]

logger = logging.getLogger(__name__)

# Data never starts above this row; row 0 of a header-less sheet is usually a title.
ANCHOR_ROW = 1
METADATA_SCAN_ROWS = 15
TOTAL_MARKERS = frozenset({"subtotal", "grand total"})
SHORT_TOTAL_LENGTH = 20

# Label/value pairs in the standard quote template: (row, col) of the value cell,
# accepted only when the cell to its left carries one of the labels.
FIXED_METADATA_CELLS: dict[str, tuple[int, int]] = {
    "oppNumber": (1, 1),
    "customerName": (2, 1),
    "projectName": (3, 1),
    "solutionArchitect": (4, 1),
    "date": (5, 1),
    "cityStateZip": (6, 1),
}

METADATA_LABELS: dict[str, tuple[str, ...]] = {
    "oppNumber": ("opp #", "opp#", "opp number", "opp no", "opportunity", "opportunity #", "opp"),
    "customerName": ("customer name", "customer", "client", "end user"),
    "projectName": ("job name", "project name", "project", "job"),
    "solutionArchitect": ("solution architect", "sales engineer", "architect", "sa"),
    "date": ("quote date", "date"),
    "cityStateZip": ("city, state", "city/state", "city state", "location", "city"),
}

_OPP_RE = re.compile(r"\bOPP[-\s#]*(\d{3,})\b", re.IGNORECASE)


class BomParseError(Exception):
    """Raised when a BOM spreadsheet cannot be turned into line items."""


class EmptySpreadsheetError(BomParseError):
    """Raised when the workbook holds no data at all."""


class NoItemsFoundError(BomParseError):
    """Raised when no sheet yields a single line item."""


def _expected_vocabulary() -> str:
    return (
        f"expected a header row with a description column ({', '.join(FIELD_KEYWORDS['description'])}) "
        f"and a quantity column ({', '.join(FIELD_KEYWORDS['quantity'])})"
    )


def is_total_row(description: str) -> bool:
    """Subtotal / total marker rows.

    Descriptions shorter than 20 characters that contain "total" are treated as
    markers. This is an approximation: a genuine short item such as
    "Total Station Mount" would be dropped.
    """
    lower = description.lower()
    if lower in TOTAL_MARKERS:
        return True
    return "total" in lower and len(description) < SHORT_TOTAL_LENGTH


def _optional_text(value: Any) -> str | None:
    text = cell_text(value)
    if not text or text == "undefined":
        return None
    return text


def _has_text(grid: CellGrid, col: int, start: int) -> bool:
    for row in range(start, grid.n_rows):
        value = grid.cell(row, col)
        if cell_text(value) and parse_numeric_value(value) is None:
            return True
    return False


def _fallback_description_column(grid: CellGrid, columns: dict[str, int], start: int) -> int:
    """Positional description column, else the first unclaimed column holding text."""
    claimed = set(columns.values())
    candidates = [POSITIONAL_DEFAULTS["description"], *range(grid.n_cols)]
    for col in candidates:
        if col < grid.n_cols and col not in claimed and _has_text(grid, col, start):
            return col
    return -1


def extract_items(grid: CellGrid, column_map: ColumnMap | None) -> list[LineItem]:
    """Walk data rows of one sheet into LineItems.

    Never raises on unstructured sheets; an unusable sheet simply yields [].
    """
    if column_map is not None:
        columns = {name: column_map.column(name) for name in column_map.found_fields}
        start = max(column_map.header_row + 1, ANCHOR_ROW)
    else:
        columns = dict(POSITIONAL_DEFAULTS)
        start = ANCHOR_ROW

    desc_col = columns.get("description", -1)
    if desc_col < 0:
        desc_col = _fallback_description_column(grid, columns, start)
        if desc_col < 0:
            return []
        logger.debug(f"sheet '{grid.name}': no description header, using column {desc_col}")

    def value(row: int, field_name: str) -> Any:
        col = columns.get(field_name, -1)
        return grid.cell(row, col) if col >= 0 else None

    items: list[LineItem] = []
    for row in range(start, grid.n_rows):
        description = cell_text(grid.cell(row, desc_col))
        if not description or description == "undefined":
            continue
        if is_total_row(description):
            continue
        quantity = parse_numeric_value(value(row, "quantity"))
        items.append(
            LineItem(
                description=description,
                quantity=quantity if quantity is not None else 0,
                part_number=_optional_text(value(row, "partNumber")),
                unit_price=parse_numeric_value(value(row, "unitPrice")),
                total_price=parse_numeric_value(value(row, "totalPrice")),
                vendor=_optional_text(value(row, "vendor")),
            )
        )
    return items


def _label_matches(field_name: str, label: str) -> bool:
    # "Customer" and "Customer Name:" are labels, "Project Management" is an item.
    has_colon = label.endswith(":")
    label = label.rstrip(":").strip()
    if not label:
        return False
    for keyword in METADATA_LABELS[field_name]:
        if label == keyword:
            return True
        if has_colon and label.startswith(keyword + " "):
            return True
    return False


def _next_value_right(grid: CellGrid, row: int, col: int) -> str | None:
    for c in range(col + 1, grid.n_cols):
        text = cell_text(grid.cell(row, c))
        if text:
            return text
    return None


def extract_metadata(grid: CellGrid, found: dict[str, str] | None = None) -> dict[str, str]:
    """Read project metadata from the header block of one sheet.

    Only fields missing from ``found`` (already supplied by a higher-priority
    sheet) are added. Returns the newly discovered fields.

    Order of precedence inside a sheet: fixed template cells, labeled cells,
    then an ``OPP-<digits>`` pattern anywhere in the region.
    """
    found = found or {}
    discovered: dict[str, str] = {}

    def missing(field_name: str) -> bool:
        return field_name not in found and field_name not in discovered

    for field_name, (row, col) in FIXED_METADATA_CELLS.items():
        if not missing(field_name):
            continue
        label = normalize_header(grid.cell(row, col - 1))
        text = cell_text(grid.cell(row, col))
        if text and _label_matches(field_name, label):
            discovered[field_name] = text

    limit = min(grid.n_rows, METADATA_SCAN_ROWS)
    for row in range(limit):
        for col, raw in enumerate(grid.row(row)):
            label = normalize_header(raw)
            if not label or len(label) > 40:
                continue
            for field_name in METADATA_LABELS:
                if missing(field_name) and _label_matches(field_name, label):
                    text = _next_value_right(grid, row, col)
                    if text:
                        discovered[field_name] = text
                    break

    if missing("oppNumber"):
        for row in range(limit):
            match = next((m for m in (_OPP_RE.search(cell_text(v)) for v in grid.row(row)) if m), None)
            if match:
                discovered["oppNumber"] = f"OPP-{match.group(1)}"
                break

    if "oppNumber" in discovered:
        opp = _OPP_RE.search(discovered["oppNumber"])
        if opp:
            discovered["oppNumber"] = f"OPP-{opp.group(1)}"
    return discovered


def parse_workbook(grids: dict[str, CellGrid], header_scan_rows: int = HEADER_SCAN_ROWS) -> ParsedBom:
    """Pick the material list out of already-read sheets.

    Raises:
        EmptySpreadsheetError: no sheet holds any data
        NoItemsFoundError: data exists but no sheet yields a line item
    """
    non_empty = [g for g in grids.values() if not g.is_empty()]
    if not non_empty:
        raise EmptySpreadsheetError("No data found in spreadsheet")

    metadata: dict[str, str] = {}
    best: list[LineItem] = []
    best_sheet: str | None = None
    best_map: ColumnMap | None = None
    for grid in non_empty:
        metadata.update(extract_metadata(grid, metadata))
        column_map = detect_columns(grid, max_rows=header_scan_rows)
        items = extract_items(grid, column_map)
        logger.debug(
            f"sheet '{grid.name}': header_row={column_map.header_row if column_map else None} items={len(items)}"
        )
        if len(items) > len(best):
            best, best_sheet, best_map = items, grid.name, column_map

    if not best:
        raise NoItemsFoundError(f"No items found in spreadsheet: {_expected_vocabulary()}")

    logger.info(f"BOM sheet '{best_sheet}': {len(best)} items, metadata fields={sorted(metadata)}")
    return ParsedBom(
        items=best,
        metadata=metadata,
        sheet_name=best_sheet,
        column_map=best_map,
        scope_text=build_scope_text(best),
    )


def parse_bom(source: bytes | Path, header_scan_rows: int = HEADER_SCAN_ROWS) -> ParsedBom:
    """Read a BOM workbook and extract its line items and metadata."""
    try:
        grids = read_workbook(source)
    except SpreadsheetReadError as e:
        raise BomParseError(f"Failed to parse spreadsheet: {e}") from e
    return parse_workbook(grids, header_scan_rows=header_scan_rows)


def build_scope_text(items: list[LineItem]) -> str:
    """Material list text, one bullet per item: ``• 4x Dome Camera (CAM-100)``."""
    lines = []
    for item in items:
        suffix = f" ({item.part_number})" if item.part_number else ""
        lines.append(f"• {format_quantity(item.quantity)}x {item.description}{suffix}")
    return "\n".join(lines)


# Metadata keys map onto ProjectInfo attribute names.
_METADATA_TO_INFO = {
    "oppNumber": "opp_number",
    # The quote's "Customer" cell names the organization; ProjectInfo.customer_name
    # is the point-of-contact person.
    "customerName": "company_name",
    "projectName": "project_name",
    "solutionArchitect": "solution_architect",
    "date": "date",
    "cityStateZip": "city_state_zip",
}


def merge_metadata(info: Any, metadata: dict[str, str]) -> dict[str, str]:
    """Return ProjectInfo updates for fields that are still empty on ``info``.

    A user-supplied non-empty value is never overwritten.
    """
    updates: dict[str, str] = {}
    for key, value in metadata.items():
        attr = _METADATA_TO_INFO.get(key)
        if attr is None or not value:
            continue
        current = getattr(info, attr, "")
        if not (current or "").strip():
            updates[attr] = value
    return updates
