from __future__ import annotations

from dataclasses import dataclass, field

"""BOM domain models: column maps, line items and parse results."""

__all__ = [
    "FIELD_NAMES",
    "ColumnMap",
    "LineItem",
    "ParsedBom",
]

# Logical columns of a material list. ``vendor`` is optional and never required
# for a header row to qualify on its own.
FIELD_NAMES: tuple[str, ...] = (
    "description",
    "quantity",
    "partNumber",
    "unitPrice",
    "totalPrice",
    "vendor",
)


@dataclass(frozen=True)
class ColumnMap:
    """Column index per logical field plus the row the header was found on.

    ``-1`` means the field is not present in the sheet.
    """
    header_row: int
    description: int = -1
    quantity: int = -1
    part_number: int = -1
    unit_price: int = -1
    total_price: int = -1
    vendor: int = -1

    _ATTRS = {
        "description": "description",
        "quantity": "quantity",
        "partNumber": "part_number",
        "unitPrice": "unit_price",
        "totalPrice": "total_price",
        "vendor": "vendor",
    }

    def column(self, field_name: str) -> int:
        return getattr(self, self._ATTRS[field_name])

    @property
    def found_fields(self) -> list[str]:
        return [name for name in FIELD_NAMES if self.column(name) >= 0]

    @classmethod
    def from_columns(cls, header_row: int, columns: dict[str, int]) -> ColumnMap:
        kwargs = {cls._ATTRS[name]: index for name, index in columns.items()}
        return cls(header_row=header_row, **kwargs)


@dataclass(frozen=True)
class LineItem:
    """One material-list row. ``description`` is always non-empty and trimmed."""
    description: str
    quantity: int | float = 0
    part_number: str | None = None
    unit_price: int | float | None = None
    total_price: int | float | None = None
    vendor: str | None = None


@dataclass(frozen=True)
class ParsedBom:
    """Result of parsing a BOM workbook."""
    items: list[LineItem]
    metadata: dict[str, str] = field(default_factory=dict)
    sheet_name: str | None = None  # sheet the items came from
    column_map: ColumnMap | None = None  # None when positional defaults were used
    scope_text: str = ""
