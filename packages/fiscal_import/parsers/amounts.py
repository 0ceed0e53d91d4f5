"""Amount parsing and amount-field composition.

Two parsers live here:

- :func:`parse_loose_amount` for human-formatted amounts from CSV/QIF, where
  the decimal mark may be ``.`` or ``,`` and thousands groupings vary by
  locale. The *last* separator followed by 1-2 or 4-9 digits is taken as the
  decimal mark; a trailing group of exactly three digits is a thousands group.
- :func:`parse_statement_amount` for OFX/QFX ``TRNAMT`` values, which are
  machine-formatted and only need stray symbols removed.

:func:`compose_amount` reconciles the three CSV amount layouts (signed amount
column, inflow/outflow columns, amount plus in/out marker column) into one
signed value.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import NamedTuple

# Magnitudes whose minor units (value * 100) exceed this are rejected.
MAX_SAFE_INTEGER = 2**53 - 1

_DECIMAL_TAIL_RE = re.compile(r"[.,]([^.,]{4,9}|[^.,]{1,2})$")
_NON_NUMERIC_RE = re.compile(r"[^0-9-]")
_STATEMENT_NOISE_RE = re.compile(r"[^0-9.-]")
_LEADING_FLOAT_RE = re.compile(r"\s*([+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)")
_EXPONENT_RE = re.compile(r"^[+-]?[0-9]+(?:\.[0-9]+)?[eE][+-]?[0-9]+$")


def leading_float(text: str) -> float | None:
    """Parse the longest numeric prefix of ``text``; ``None`` when there is none.

    ``"12-3"`` gives ``12.0``; ``"-"``, ``"--5"`` and ``""`` give ``None``.
    """

    m = _LEADING_FLOAT_RE.match(text)
    if m is None:
        return None
    return float(m.group(1))


def _safe_amount(value: float | None) -> float | None:
    if value is None or math.isnan(value):
        return None
    cents = value * 100
    if cents > MAX_SAFE_INTEGER or cents < -MAX_SAFE_INTEGER:
        return None
    return value


def parse_loose_amount(text: object) -> float | None:
    """Parse a locale-ambiguous amount string into a signed float.

    >>> parse_loose_amount("1.234,56")
    1234.56
    >>> parse_loose_amount("(12.50)")
    -12.5
    """

    if not isinstance(text, str):
        return None
    amount = text.strip()
    if not amount:
        return None

    if amount.startswith("(") and amount.endswith(")"):
        amount = amount.replace("\u2212", "")
        amount = amount.replace("(", "-", 1).replace(")", "", 1)
    else:
        amount = amount.replace("\u2212", "-")

    # Python float rendering of tiny or huge values, e.g. "1e-05".
    if _EXPONENT_RE.match(amount):
        return _safe_amount(float(amount))

    m = _DECIMAL_TAIL_RE.search(amount)
    if m is None:
        return _safe_amount(leading_float(_NON_NUMERIC_RE.sub("", amount)))

    left = _NON_NUMERIC_RE.sub("", amount[: m.start()])
    right = _NON_NUMERIC_RE.sub("", amount[m.start() + 1 :])
    return _safe_amount(leading_float(f"{left}.{right}"))


def parse_statement_amount(text: object) -> float | None:
    """Parse a bank-statement (OFX ``TRNAMT``) amount.

    Parenthesized values are negative. Everything except digits, ``.`` and
    ``-`` is dropped, and only the first ``.`` survives as the decimal point.
    """

    if not isinstance(text, str) or not text:
        return None

    cleaned = text.strip()
    if cleaned.startswith("(") and cleaned.endswith(")"):
        cleaned = "-" + cleaned[1:-1]

    cleaned = _STATEMENT_NOISE_RE.sub("", cleaned)
    before, dot, after = cleaned.partition(".")
    if dot:
        cleaned = f"{before}.{after.replace('.', '')}"

    if cleaned in {"", "-", "."}:
        return None
    value = leading_float(cleaned)
    if value is None or math.isnan(value):
        return None
    return value


# ---------------------------------------------------------------------------
# Amount-field composition
# ---------------------------------------------------------------------------


class AmountComposition(NamedTuple):
    """Composed amount; ``outflow``/``inflow`` are ``None`` outside split mode."""

    amount: float | None
    outflow: float | None
    inflow: float | None


def _parse_cell(value: object) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        return parse_loose_amount(value)
    return None


def _neg_abs(value: float) -> float:
    # ``-abs(0.0)`` is ``-0.0``; keep zero legs unsigned.
    return -abs(value) or 0.0


def compose_amount(
    fields: Mapping[str, object],
    split_mode: bool,
    in_out_mode: bool,
    out_marker_value: str,
    flip_sign: bool,
    multiplier_text: str,
) -> AmountComposition:
    """Combine the amount-bearing cells of one row into a signed amount.

    ``fields`` holds the raw cells under the keys ``amount``, ``outflow``,
    ``inflow`` and ``in_out`` (missing keys read as empty).

    - split mode (and not in/out mode): outflow leg is ``-abs(outflow)``; the
      inflow cell is consulted only when the outflow leg is zero.
    - otherwise the signed ``amount`` cell picks the leg by its sign.
    - in/out mode: the non-zero leg's magnitude is reassigned by comparing the
      marker cell with ``out_marker_value``, ignoring the original sign.
    - ``flip_sign`` swaps the legs, then both legs are scaled by the
      multiplier (``1`` when ``multiplier_text`` does not parse or is zero).
    """

    multiplier = leading_float(multiplier_text or "") or 1.0
    outflow = 0.0
    inflow = 0.0

    if split_mode and not in_out_mode:
        parsed_out = _parse_cell(fields.get("outflow"))
        outflow = _neg_abs(parsed_out) if parsed_out else 0.0
        if not outflow:
            parsed_in = _parse_cell(fields.get("inflow"))
            inflow = abs(parsed_in) if parsed_in else 0.0
    else:
        amount = _parse_cell(fields.get("amount")) or 0.0
        if amount >= 0:
            inflow = amount
        else:
            outflow = amount

    if in_out_mode:
        magnitude = outflow or inflow
        marker = fields.get("in_out")
        if ("" if marker is None else str(marker)) == out_marker_value:
            outflow = _neg_abs(magnitude)
            inflow = 0.0
        else:
            inflow = abs(magnitude)
            outflow = 0.0

    if flip_sign:
        inflow, outflow = abs(outflow), _neg_abs(inflow)

    inflow *= multiplier
    outflow *= multiplier

    if split_mode:
        return AmountComposition(amount=outflow or inflow, outflow=outflow, inflow=inflow)
    return AmountComposition(amount=outflow or inflow, outflow=None, inflow=None)


__all__ = [
    "AmountComposition",
    "compose_amount",
    "leading_float",
    "parse_loose_amount",
    "parse_statement_amount",
]
