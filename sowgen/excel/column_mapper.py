from __future__ import annotations

import logging
import re

from ..models.bom import ColumnMap
from .normalize import normalize_header
from .reader import CellGrid

"""Heuristic header-row detection for material lists.

BOM spreadsheets have no fixed schema: the header may sit below a title block,
columns come in any order and each vendor spells them differently. The mapper
scans the top of the sheet for the first row whose cells look like material-list
headers and reports which column holds each logical field.
"""

__all__ = [
    "FIELD_KEYWORDS",
    "HEADER_SCAN_ROWS",
    "POSITIONAL_DEFAULTS",
    "detect_columns",
    "match_header_row",
]

logger = logging.getLogger(__name__)

HEADER_SCAN_ROWS = 25

# Synonyms per field, strongest first. Fields are listed in the order they claim
# cells, so "Total Price" is taken by totalPrice before unitPrice sees "price".
FIELD_KEYWORDS: dict[str, tuple[str, ...]] = {
    "totalPrice": ("total price", "ext price", "extended", "line total", "total cost", "total", "amount"),
    "unitPrice": ("unit price", "unit cost", "price each", "unit sell", "price", "cost"),
    "partNumber": ("part number", "part #", "part#", "part no", "mfr part", "model number", "model", "sku", "catalog", "pn"),
    "quantity": ("quantity", "qty", "qnty", "count", "units"),
    "vendor": ("manufacturer", "vendor", "brand", "mfr", "mfg", "make"),
    "description": ("description", "desc", "product", "material", "equipment", "item", "name"),
}

# Positional fallback for sheets without a recognizable header row.
POSITIONAL_DEFAULTS: dict[str, int] = {"quantity": 0, "description": 1}

_SHORT_KEYWORD = 3
# Only ever a whole header cell; "Customer Name" is a metadata label, not a column.
_WHOLE_HEADER_KEYWORDS = frozenset({"name"})


def _keyword_in(keyword: str, header: str) -> bool:
    if keyword in _WHOLE_HEADER_KEYWORDS:
        return header == keyword
    if len(keyword) <= _SHORT_KEYWORD:
        return re.search(r"(?<![a-z0-9])" + re.escape(keyword), header) is not None
    return keyword in header


def match_header_row(cells: tuple) -> dict[str, int]:
    """Return field -> column index for one candidate row (only matched fields)."""
    headers = [normalize_header(v) for v in cells]
    claimed: set[int] = set()
    found: dict[str, int] = {}
    for field_name, keywords in FIELD_KEYWORDS.items():
        for keyword in keywords:
            col = next(
                (i for i, h in enumerate(headers) if h and i not in claimed and _keyword_in(keyword, h)),
                None,
            )
            if col is not None:
                found[field_name] = col
                claimed.add(col)
                break
    return found


def _qualifies(found: dict[str, int]) -> bool:
    if "description" in found:
        return True
    core = [f for f in found if f != "vendor"]
    return len(core) >= 2


def detect_columns(grid: CellGrid, max_rows: int = HEADER_SCAN_ROWS) -> ColumnMap | None:
    """Locate the header row of a material list.

    A row qualifies when it matches the description field, or at least two other
    distinct fields. The first qualifying row inside the scan window wins.

    Returns:
        ColumnMap, or None when no row qualifies (callers use POSITIONAL_DEFAULTS)
    """
    limit = min(grid.n_rows, max_rows)
    for row_index in range(limit):
        found = match_header_row(grid.row(row_index))
        if found and _qualifies(found):
            logger.debug(f"header row {row_index} in sheet '{grid.name}': {found}")
            return ColumnMap.from_columns(row_index, found)
    logger.debug(f"no header row in first {limit} rows of sheet '{grid.name}'")
    return None
