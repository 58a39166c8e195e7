from __future__ import annotations

import io
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd

from .normalize import cell_text, is_blank

"""Workbook reader producing raw cell grids.

Sheets are read with ``header=None`` so that no row is assumed to be the header;
header detection happens later in the column mapper. Empty cells become None.
"""

__all__ = [
    "CellGrid",
    "SpreadsheetReadError",
    "read_workbook",
    "read_table_rows",
]


class SpreadsheetReadError(Exception):
    """Raised when a buffer cannot be opened as a spreadsheet."""


@dataclass(frozen=True)
class CellGrid:
    """Immutable (row, column) -> scalar view of one worksheet."""
    name: str
    rows: tuple[tuple[Any, ...], ...]

    @property
    def n_rows(self) -> int:
        return len(self.rows)

    @property
    def n_cols(self) -> int:
        return max((len(r) for r in self.rows), default=0)

    def cell(self, row: int, col: int) -> Any:
        if row < 0 or col < 0 or row >= len(self.rows):
            return None
        values = self.rows[row]
        if col >= len(values):
            return None
        return values[col]

    def row(self, row: int) -> tuple[Any, ...]:
        if row < 0 or row >= len(self.rows):
            return ()
        return self.rows[row]

    def is_empty(self) -> bool:
        return all(is_blank(v) for r in self.rows for v in r)

    @classmethod
    def from_rows(cls, name: str, rows: list[list[Any]]) -> CellGrid:
        return cls(name=name, rows=tuple(tuple(None if is_blank(v) else v for v in r) for r in rows))

    @classmethod
    def from_dataframe(cls, name: str, df: pd.DataFrame) -> CellGrid:
        rows = []
        for raw in df.itertuples(index=False, name=None):
            rows.append(tuple(None if _is_na(v) else v for v in raw))
        return cls(name=name, rows=tuple(rows))


def _is_na(value: Any) -> bool:
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _open_excel(source: bytes | Path) -> pd.ExcelFile:
    if isinstance(source, (bytes, bytearray)):
        return pd.ExcelFile(io.BytesIO(source))
    return pd.ExcelFile(source)


def read_workbook(source: bytes | Path) -> dict[str, CellGrid]:
    """Read every sheet of a workbook into a CellGrid keyed by sheet name.

    Parameters
    ----------
    source: raw workbook bytes (xlsx/xlsm/xls) or a path to one

    Raises
    ------
    SpreadsheetReadError: the buffer is not a readable workbook
    """
    try:
        xls = _open_excel(source)
        grids: dict[str, CellGrid] = {}
        for name in xls.sheet_names:
            df = xls.parse(name, header=None, dtype=object)
            grids[str(name)] = CellGrid.from_dataframe(str(name), df)
    except (ValueError, OSError, KeyError, ImportError) as e:
        raise SpreadsheetReadError(str(e)) from e
    except Exception as e:  # zip/xml errors from the engines surface with their own types
        raise SpreadsheetReadError(f"{type(e).__name__}: {e}") from e
    return grids


def read_table_rows(source: bytes | Path, filename: str = "") -> list[list[str]]:
    """Read the first non-empty sheet (or a CSV) into rows of display strings.

    Rows and columns that are entirely empty are dropped so that the result can be
    rendered as a compact table.
    """
    suffix = Path(filename).suffix.lower() if filename else ""
    if suffix == ".csv":
        buf = io.BytesIO(source) if isinstance(source, (bytes, bytearray)) else source
        try:
            df = pd.read_csv(buf, header=None, dtype=object, keep_default_na=False)
        except (ValueError, OSError, pd.errors.ParserError) as e:
            raise SpreadsheetReadError(str(e)) from e
        grids = [CellGrid.from_dataframe(filename, df)]
    else:
        grids = list(read_workbook(source).values())

    for grid in grids:
        if grid.is_empty():
            continue
        rows = [[cell_text(v) for v in r] for r in grid.rows]
        rows = [r for r in rows if any(rows_cell for rows_cell in r)]
        width = max(len(r) for r in rows)
        keep = [c for c in range(width) if any(c < len(r) and r[c] for r in rows)]
        return [[r[c] if c < len(r) else "" for c in keep] for r in rows]
    return []
