"""Caller-side normalization of parsed files into insertable transactions.

The readers in :mod:`fiscal_import.parsers` only drop rows they cannot read at
all. This layer applies the import options, resolves CSV column roles and
records a human-readable reason for every row it skips, so a host can show
"3 of 120 rows skipped" with the reasons.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from .errors import ColumnMappingError
from .logging_setup import get_logger
from .models import (
    DATE_FORMATS,
    ColumnMapping,
    DateFormat,
    ImportOptions,
    RawRow,
    StructuredTransaction,
)
from .parsers.amounts import compose_amount
from .parsers.dates import detect_date_format, parse_date
from .parsers.delimited import columns_hint, detect_column_mapping, read_cell

_logger = get_logger("fiscal_import.normalize")

_CATEGORY_ID_RE = re.compile(r"^[a-f0-9-]{20,}$", re.IGNORECASE)
_FALLBACK_DATE_FORMAT: DateFormat = "mm dd yyyy"

NO_AMOUNT_ERROR = "Transaction has no amount"
DATE_FORMAT_HINT = (
    f"Supported formats: {' | '.join(DATE_FORMATS)}. Use --date-format <format> to override."
)


def date_error(raw: object) -> str:
    return f"Unable to parse date: {'' if raw is None else raw}. {DATE_FORMAT_HINT}"


@dataclass(slots=True)
class NormalizedBatch:
    transactions: list[StructuredTransaction] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def map_category_id(
    value: object, categories_by_name: Mapping[str, str] | None = None
) -> str | None:
    """Resolve a category cell to a category id.

    Id-shaped values (20+ hex digits and dashes) pass through. Anything else is
    looked up case-insensitively in ``categories_by_name`` (keys lowercased);
    without a table the trimmed name itself is returned.
    """

    if not isinstance(value, str) or not value.strip():
        return None
    trimmed = value.strip()
    if _CATEGORY_ID_RE.match(trimmed):
        return trimmed
    if categories_by_name is None:
        return trimmed
    return categories_by_name.get(trimmed.lower())


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


# ---------------------------------------------------------------------------
# Delimited rows
# ---------------------------------------------------------------------------


def resolve_column_mapping(rows: Sequence[RawRow], options: ImportOptions) -> ColumnMapping:
    """Detected roles from the first row, with explicit column options winning per role."""

    return detect_column_mapping(rows).with_overrides(options.column_overrides())


def normalize_csv_rows(
    rows: Sequence[RawRow],
    options: ImportOptions | None = None,
    categories_by_name: Mapping[str, str] | None = None,
) -> NormalizedBatch:
    """Turn delimited rows into transactions.

    Raises :class:`~fiscal_import.errors.ColumnMappingError` when no date
    column, or neither an amount column nor an inflow/outflow column, can be
    resolved. Rows without an amount or with an unreadable date are skipped
    and reported in ``errors``.
    """

    options = options or ImportOptions()
    mapping = resolve_column_mapping(rows, options)

    if mapping.date is None:
        raise ColumnMappingError(
            "CSV date column not detected. Specify --csv-date-col <name|index>. "
            f"{columns_hint(rows)}"
        )
    if mapping.amount is None and not mapping.split_mode:
        raise ColumnMappingError(
            "CSV amount column not detected. Specify --csv-amount-col or "
            f"--csv-inflow-col/--csv-outflow-col. {columns_hint(rows)}"
        )

    sample = read_cell(rows[0], mapping.date) if rows else None
    date_format = options.date_format or detect_date_format(sample) or _FALLBACK_DATE_FORMAT

    batch = NormalizedBatch()
    for row in rows:
        composed = compose_amount(
            {
                "amount": read_cell(row, mapping.amount),
                "outflow": read_cell(row, mapping.outflow),
                "inflow": read_cell(row, mapping.inflow),
                "in_out": read_cell(row, mapping.in_out),
            },
            mapping.split_mode,
            mapping.in_out_mode,
            options.out_value,
            options.flip_amount,
            options.multiplier,
        )
        if composed.amount is None:
            batch.errors.append(NO_AMOUNT_ERROR)
            continue

        raw_date = read_cell(row, mapping.date)
        day = parse_date(raw_date, date_format)
        if day is None:
            batch.errors.append(date_error(raw_date))
            continue

        payee = _clean(read_cell(row, mapping.payee))
        notes = _clean(read_cell(row, mapping.notes)) if options.import_notes else None
        batch.transactions.append(
            StructuredTransaction(
                date=day,
                amount=composed.amount,
                payee_name=payee,
                imported_payee=payee,
                notes=notes,
                category=map_category_id(read_cell(row, mapping.category), categories_by_name),
            )
        )

    if batch.errors:
        _logger.debug("Skipped %d of %d CSV row(s)", len(batch.errors), len(rows))
    return batch


# ---------------------------------------------------------------------------
# Structured records (QIF, OFX, CAMT)
# ---------------------------------------------------------------------------


def normalize_structured(
    transactions: Sequence[StructuredTransaction],
    options: ImportOptions | None = None,
    categories_by_name: Mapping[str, str] | None = None,
) -> NormalizedBatch:
    """Apply notes suppression and category mapping to reader output.

    Records without an amount or date are reported and skipped, the same way
    :func:`normalize_csv_rows` reports them.
    """

    options = options or ImportOptions()
    batch = NormalizedBatch()
    for tx in transactions:
        if tx.amount is None:
            batch.errors.append(NO_AMOUNT_ERROR)
            continue
        if not tx.date:
            batch.errors.append(date_error(tx.date))
            continue
        batch.transactions.append(
            StructuredTransaction(
                date=tx.date,
                amount=tx.amount,
                payee_name=tx.payee_name,
                imported_payee=tx.imported_payee,
                notes=tx.notes if options.import_notes else None,
                category=map_category_id(tx.category, categories_by_name),
                imported_id=tx.imported_id,
            )
        )
    return batch


__all__ = [
    "DATE_FORMAT_HINT",
    "NO_AMOUNT_ERROR",
    "NormalizedBatch",
    "date_error",
    "map_category_id",
    "normalize_csv_rows",
    "normalize_structured",
    "resolve_column_mapping",
]
