"""Date normalization for ordering-ambiguous export dates.

A date string is reduced to three numeric tokens (after English month names
are replaced by their numbers) and the tokens are assigned to year/month/day
slots according to one of six field orders. Undelimited dates such as
``20250715`` are sliced by fixed widths instead. Two-digit years are taken as
``20yy``.
"""

from __future__ import annotations

import re
from datetime import date

from ..models import DATE_FORMATS, DateFormat

_MONTH_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = tuple(
    (re.compile(pattern, re.IGNORECASE), number)
    for pattern, number in (
        (r"\bjan(\.|uary)?\b", "01"),
        (r"\bfeb(\.|ruary)?\b", "02"),
        (r"\bmar(\.|ch)?\b", "03"),
        (r"\bapr(\.|il)?\b", "04"),
        (r"\bmay\.?\b", "05"),
        (r"\bjun(\.|e)?\b", "06"),
        (r"\bjul(\.|y)?\b", "07"),
        (r"\baug(\.|ust)?\b", "08"),
        (r"\bsep(\.|tember)?\b", "09"),
        (r"\boct(\.|ober)?\b", "10"),
        (r"\bnov(\.|ember)?\b", "11"),
        (r"\bdec(\.|ember)?\b", "12"),
    )
)

_NON_DIGITS_RE = re.compile(r"[^0-9]+")
_ISO_DAY_RE = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")

# Field order -> (slot names in token order, width of the first two slots when
# the value has no separators).
_LAYOUTS: dict[DateFormat, tuple[tuple[str, str, str], tuple[int, int]]] = {
    "yyyy mm dd": (("year", "month", "day"), (4, 2)),
    "yy mm dd": (("yy", "month", "day"), (2, 2)),
    "mm dd yyyy": (("month", "day", "year"), (2, 2)),
    "mm dd yy": (("month", "day", "yy"), (2, 2)),
    "dd mm yyyy": (("day", "month", "year"), (2, 2)),
    "dd mm yy": (("day", "month", "yy"), (2, 2)),
}


def _replace_month_names(text: str) -> str:
    for pattern, number in _MONTH_PATTERNS:
        text = pattern.sub(number, text, count=1)
    return text


def _tokens(text: str, widths: tuple[int, int]) -> list[str]:
    digits = [t for t in _NON_DIGITS_RE.split(text) if t]
    if len(digits) >= 3:
        return digits[:3]
    packed = _NON_DIGITS_RE.sub("", text)
    a, b = widths
    return [packed[:a], packed[a : a + b], packed[a + b :]]


def format_iso_day(year: str, month: str, day: str) -> str | None:
    """Zero-pad the parts and return ``YYYY-MM-DD`` if it is a real date."""

    normalized = f"{year.zfill(4)}-{month.zfill(2)}-{day.zfill(2)}"
    if not _ISO_DAY_RE.match(normalized):
        return None
    try:
        date.fromisoformat(normalized)
    except ValueError:
        return None
    return normalized


def parse_date(value: object, order: DateFormat) -> str | None:
    """Normalize ``value`` to ``YYYY-MM-DD`` reading its fields in ``order``.

    Returns ``None`` for non-strings, blank strings and impossible dates.
    """

    if not isinstance(value, str):
        return None
    source = value.strip()
    if not source:
        return None

    slots, widths = _LAYOUTS.get(order, _LAYOUTS["mm dd yyyy"])
    parts = dict(zip(slots, _tokens(_replace_month_names(source), widths), strict=True))
    year = parts["year"] if "year" in parts else f"20{parts['yy']}"
    return format_iso_day(year, parts["month"], parts["day"])


def detect_date_format(sample: str | None) -> DateFormat | None:
    """Return the first field order (in :data:`DATE_FORMATS` order) that parses ``sample``.

    ``"01/02/2025"`` therefore resolves to ``mm dd yyyy``; the fixed order is
    the tie-break for ambiguous samples.
    """

    if not sample:
        return None
    for fmt in DATE_FORMATS:
        if parse_date(sample, fmt) is not None:
            return fmt
    return None


__all__ = ["detect_date_format", "format_iso_day", "parse_date"]
