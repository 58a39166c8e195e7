from __future__ import annotations

"""Spelled-out English numbers for contract text ("twelve (12) workdays")."""

__all__ = [
    "number_to_words",
    "spell_numeric",
]

_ONES = (
    "zero", "one", "two", "three", "four", "five", "six", "seven", "eight", "nine",
    "ten", "eleven", "twelve", "thirteen", "fourteen", "fifteen", "sixteen",
    "seventeen", "eighteen", "nineteen",
)
_TENS = ("", "", "twenty", "thirty", "forty", "fifty", "sixty", "seventy", "eighty", "ninety")
_SCALES = ((1_000_000_000, "billion"), (1_000_000, "million"), (1_000, "thousand"))


def number_to_words(n: int) -> str:
    if n < 0:
        return "negative " + number_to_words(-n)
    if n < 20:
        return _ONES[n]
    if n < 100:
        tens, rest = divmod(n, 10)
        return _TENS[tens] + (f"-{_ONES[rest]}" if rest else "")
    if n < 1000:
        hundreds, rest = divmod(n, 100)
        return f"{_ONES[hundreds]} hundred" + (f" {number_to_words(rest)}" if rest else "")
    for scale, name in _SCALES:
        if n >= scale:
            head, rest = divmod(n, scale)
            return f"{number_to_words(head)} {name}" + (f" {number_to_words(rest)}" if rest else "")
    return str(n)  # unreachable


def _as_int(value: str) -> int | None:
    text = value.strip().replace(",", "")
    try:
        number = float(text)
    except ValueError:
        return None
    if not number.is_integer():
        return None
    return int(number)


def spell_numeric(value: str, with_digits: bool = True) -> str:
    """``"12"`` -> ``"twelve (12)"``; non-integral input is returned unchanged."""
    n = _as_int(value)
    if n is None:
        return value
    words = number_to_words(n)
    return f"{words} ({value.strip()})" if with_digits else words
