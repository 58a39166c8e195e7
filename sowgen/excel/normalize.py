from __future__ import annotations

import math
import re
import unicodedata
from typing import Any

"""Header and numeric cell normalization shared by the column mapper and extractor.

Spreadsheets arrive from many vendors and locales, so header text is folded to a
comparable form and number cells accept both ``1,234.56`` and ``1.234,56``.
"""

__all__ = [
    "normalize_header",
    "parse_numeric_value",
    "cell_text",
    "is_blank",
    "format_quantity",
]

_WHITESPACE_RE = re.compile(r"\s+")
_CURRENCY_RE = re.compile(r"[\s$€R]")
# Leading numeric prefix, the same way a browser's parseFloat reads a string.
_NUMERIC_PREFIX_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def is_blank(value: Any) -> bool:
    """True for None, NaN and whitespace-only strings."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def cell_text(value: Any) -> str:
    """Render a cell value as trimmed text (integral floats lose their ``.0``)."""
    if is_blank(value):
        return ""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def normalize_header(raw: Any) -> str:
    """Trim, lowercase, strip diacritics and collapse internal whitespace."""
    text = cell_text(raw)
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _WHITESPACE_RE.sub(" ", stripped.lower()).strip()


def parse_numeric_value(raw: Any) -> int | float | None:
    """Parse a cell into a number, or None when it holds nothing numeric.

    Native numbers pass through unchanged. For strings the separator that occurs
    last is treated as the decimal point and the other one is dropped, which
    accepts both US (``1,234.56``) and European (``1.234,56``) formatting.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        if isinstance(raw, float) and math.isnan(raw):
            return None
        return raw
    if not isinstance(raw, str):
        # numpy scalars and the like
        try:
            value = float(raw)
        except (TypeError, ValueError):
            return None
        return None if math.isnan(value) else value

    cleaned = _CURRENCY_RE.sub("", raw)
    if not cleaned:
        return None
    last_dot = cleaned.rfind(".")
    last_comma = cleaned.rfind(",")
    if last_comma > last_dot:
        cleaned = cleaned.replace(".", "").replace(",", ".")
    else:
        cleaned = cleaned.replace(",", "")

    match = _NUMERIC_PREFIX_RE.match(cleaned)
    if not match:
        return None
    return float(match.group(0))


def format_quantity(value: int | float) -> str:
    """Format a quantity for narrative text: ``4.0`` -> ``"4"``, ``2.5`` -> ``"2.5"``."""
    if isinstance(value, int):
        return str(value)
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}".rstrip("0").rstrip(".")
