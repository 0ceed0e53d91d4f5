"""Delimited-text (CSV/TSV) reading and column-role detection.

Parsing follows RFC 4180 quoting via the stdlib :mod:`csv` module (quoted
fields with embedded delimiters/newlines, doubled quotes) with relaxed column
counts: short and long rows are kept as-is rather than rejected.

Rows are either ``IndexedRow`` lists (no header) or ``NamedRow`` dicts (header
present). :func:`read_cell` resolves a column reference against either shape,
so a :class:`~fiscal_import.models.ColumnMapping` built from the first row
applies unchanged to every row.
"""

from __future__ import annotations

import csv
import re
from collections.abc import Callable, Sequence
from io import StringIO

from ..errors import LineSkipError
from ..models import ColumnMapping, RawRow

_BOM = "\ufeff"
_LINE_BREAK_RE = re.compile(r"\r?\n")
_INDEX_RE = re.compile(r"^[0-9]+$")


def parse_delimited(
    contents: str, *, has_header: bool = True, delimiter: str = ","
) -> list[RawRow]:
    """Tokenize ``contents`` into rows.

    - a leading byte-order mark is dropped;
    - cells are whitespace-trimmed;
    - rows whose cells are all blank are skipped;
    - with ``has_header`` the first remaining row names the columns and each
      later row becomes a dict (a repeated header name keeps the last cell;
      cells beyond the header width are dropped, missing cells are absent).
    """

    if contents.startswith(_BOM):
        contents = contents[len(_BOM) :]

    reader = csv.reader(
        StringIO(contents, newline=""),
        delimiter=delimiter,
        quotechar='"',
        skipinitialspace=True,
    )
    rows: list[list[str]] = []
    for raw in reader:
        cells = [cell.strip() for cell in raw]
        if all(cell == "" for cell in cells):
            continue
        rows.append(cells)

    if not has_header:
        return list(rows)
    if not rows:
        return []

    header, *body = rows
    named: list[RawRow] = []
    for cells in body:
        record: dict[str, str] = {}
        for name, value in zip(header, cells, strict=False):
            record[name] = value
        named.append(record)
    return named


def apply_line_skips(contents: str, skip_start: int = 0, skip_end: int = 0) -> str:
    """Drop ``skip_start`` leading and ``skip_end`` trailing lines.

    Raises :class:`~fiscal_import.errors.LineSkipError` when the skips would
    consume every line. Remaining lines are rejoined with CRLF.
    """

    start = max(0, skip_start)
    end = max(0, skip_end)
    if start == 0 and end == 0:
        return contents

    lines = _LINE_BREAK_RE.split(contents)
    if start + end >= len(lines):
        raise LineSkipError(f"Cannot skip {start + end} lines from file with {len(lines)} lines")

    stop = len(lines) - end if end > 0 else len(lines)
    return "\r\n".join(lines[start:stop])


# ---------------------------------------------------------------------------
# Cell lookup
# ---------------------------------------------------------------------------


def row_keys(row: RawRow) -> list[str]:
    """Column references of ``row`` in column order (index strings for lists)."""

    if isinstance(row, list):
        return [str(i) for i in range(len(row))]
    return list(row.keys())


def read_cell(row: RawRow, ref: str | None) -> str | None:
    """Return the cell ``ref`` points at, or ``None``.

    ``ref`` may be a header name or an index string. For named rows the name is
    tried first and a numeric ``ref`` then falls back to the column position.
    """

    if ref is None:
        return None
    trimmed = ref.strip()
    index = int(trimmed) if _INDEX_RE.match(trimmed) else None

    if isinstance(row, list):
        if index is None or index >= len(row):
            return None
        return row[index]

    if trimmed in row:
        return row[trimmed]
    if index is not None:
        keys = list(row.keys())
        if index < len(keys):
            return row[keys[index]]
    return None


# ---------------------------------------------------------------------------
# Column-role detection
# ---------------------------------------------------------------------------

_DATE_SHAPE_RE = re.compile(r"^\d+[-/]\d+[-/]\d+$")
_AMOUNT_SHAPE_RE = re.compile(r"^-?[.,\d]+$")


def _header_has(*needles: str) -> Callable[[str, str], bool]:
    def _match(name: str, _value: str) -> bool:
        lowered = name.lower()
        return any(needle in lowered for needle in needles)

    return _match


def _any_of(*predicates: Callable[[str, str], bool]) -> Callable[[str, str], bool]:
    return lambda name, value: any(p(name, value) for p in predicates)


# Role -> predicate over (header name, first-row cell). Each role takes the
# first column, in file order, whose predicate holds.
ROLE_RULES: dict[str, Callable[[str, str], bool]] = {
    "date": _any_of(_header_has("date"), lambda _n, v: bool(_DATE_SHAPE_RE.match(v))),
    "amount": _any_of(_header_has("amount"), lambda _n, v: bool(_AMOUNT_SHAPE_RE.match(v))),
    "category": _header_has("category"),
    "payee": _header_has("payee"),
    "notes": _header_has("note", "memo"),
    "outflow": _header_has("outflow", "debit"),
    "inflow": _header_has("inflow", "credit"),
    "in_out": _header_has("in/out"),
}


def detect_column_mapping(rows: Sequence[RawRow]) -> ColumnMapping:
    """Guess each column role from the first row's header names and cells.

    Only ``rows[0]`` is inspected. Roles are independent, so one column may
    fill several roles.
    """

    if not rows:
        return ColumnMapping()

    first = rows[0]
    entries = [(key, read_cell(first, key) or "") for key in row_keys(first)]
    found: dict[str, str | None] = {}
    for role, predicate in ROLE_RULES.items():
        found[role] = next((name for name, value in entries if predicate(name, value)), None)
    return ColumnMapping(**found)


def columns_hint(rows: Sequence[RawRow]) -> str:
    """Describe the columns of ``rows[0]`` for error messages."""

    if not rows:
        return "Found columns: (none)."
    first = rows[0]
    keys = row_keys(first)
    if isinstance(first, list):
        return f"Found columns by index: {', '.join(keys) or '(none)'}."
    return f"Found columns: {', '.join(keys) or '(none)'}."


__all__ = [
    "ROLE_RULES",
    "apply_line_skips",
    "columns_hint",
    "detect_column_mapping",
    "parse_delimited",
    "read_cell",
    "row_keys",
]
