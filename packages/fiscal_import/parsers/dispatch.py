"""Extension-based dispatch to the format readers.

:func:`parse_file` is the single boundary where reader exceptions become
:class:`~fiscal_import.models.ParseError` values: it never raises. File-level
failures yield exactly one error and no transactions; row-level failures in
QIF/OFX/CAMT drop the row and keep the rest.

Delimited files come back as raw rows (the caller owns column mapping); the
other formats come back as :class:`~fiscal_import.models.StructuredTransaction`
records.
"""

from __future__ import annotations

import traceback
from collections.abc import Callable
from pathlib import Path

from ..logging_setup import get_logger
from ..models import (
    DateFormat,
    FileType,
    ImportOptions,
    ParseError,
    ParseResult,
    RawRow,
    StructuredTransaction,
)
from .amounts import parse_loose_amount, parse_statement_amount
from .camt import camt_entries
from .dates import detect_date_format, parse_date
from .delimited import apply_line_skips, parse_delimited
from .ofx import OfxTransaction, parse_ofx
from .qif import QifTransaction, parse_qif

_logger = get_logger("fiscal_import.parsers.dispatch")

_ENCODINGS = ("utf-8-sig", "utf-8", "latin-1")


def read_text(path: Path) -> str:
    """Read ``path`` whole, trying UTF-8 (BOM-aware) before latin-1."""

    data = path.read_bytes()
    for encoding in _ENCODINGS:
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
    # latin-1 maps every byte, so this is unreachable in practice.
    return data.decode("utf-8", errors="replace")


# ---------------------------------------------------------------------------
# Per-format readers (may raise)
# ---------------------------------------------------------------------------


def _read_delimited(text: str, options: ImportOptions) -> list[RawRow]:
    contents = apply_line_skips(text, options.skip_start_lines, options.skip_end_lines)
    return parse_delimited(
        contents, has_header=options.has_header_row, delimiter=options.delimiter or ","
    )


def _qif_to_structured(
    tx: QifTransaction, date_format: DateFormat | None, options: ImportOptions
) -> StructuredTransaction:
    return StructuredTransaction(
        date=parse_date(tx.date, date_format) if date_format else None,
        amount=parse_loose_amount(tx.amount),
        payee_name=tx.payee or None,
        imported_payee=tx.payee or None,
        notes=(tx.memo or None) if options.import_notes else None,
        category=tx.category or None,
    )


def _read_qif(text: str, options: ImportOptions) -> list[StructuredTransaction]:
    parsed = parse_qif(text)
    first_date = next((tx.date for tx in parsed.transactions if tx.date), None)
    date_format = options.date_format or detect_date_format(first_date)
    return [_qif_to_structured(tx, date_format, options) for tx in parsed.transactions]


def _ofx_to_structured(tx: OfxTransaction, options: ImportOptions) -> StructuredTransaction:
    payee = tx.name or (tx.memo if options.fallback_missing_payee_to_memo else "")
    return StructuredTransaction(
        date=tx.date or None,
        amount=parse_statement_amount(tx.amount),
        payee_name=payee or None,
        imported_payee=payee or None,
        notes=(tx.memo or None) if options.import_notes else None,
        imported_id=tx.fit_id or None,
    )


def _read_ofx(text: str, options: ImportOptions) -> list[StructuredTransaction]:
    document = parse_ofx(text)
    return [_ofx_to_structured(tx, options) for tx in document.transactions]


def _read_camt(text: str, options: ImportOptions) -> list[StructuredTransaction]:
    transactions = camt_entries(text)
    if options.import_notes:
        return transactions
    return [StructuredTransaction(**{**tx.to_dict(), "notes": None}) for tx in transactions]


# suffix -> (file type, user-facing failure message, reader)
_READERS: dict[str, tuple[FileType, str, Callable[[str, ImportOptions], list]]] = {
    ".csv": ("csv", "Failed parsing CSV: {error}", _read_delimited),
    ".tsv": ("csv", "Failed parsing CSV: {error}", _read_delimited),
    ".qif": ("qif", "Failed parsing: doesn't look like a valid QIF file.", _read_qif),
    ".ofx": ("ofx", "Failed importing OFX file", _read_ofx),
    ".qfx": ("ofx", "Failed importing OFX file", _read_ofx),
    ".xml": ("camt", "Failed importing CAMT file", _read_camt),
}


def parse_file(path: str | Path, options: ImportOptions | None = None) -> ParseResult:
    """Read ``path`` with the reader its extension selects.

    Parameters
    ----------
    path:
        File to import. Only the lowercased suffix selects the reader:
        ``.csv``/``.tsv``, ``.qif``, ``.ofx``/``.qfx`` or ``.xml`` (CAMT).
    options:
        Import options; defaults apply when ``None``.

    Returns
    -------
    ParseResult
        ``errors`` is empty on success. On failure it holds one entry whose
        ``internal`` carries the formatted traceback, and ``transactions`` is
        empty.
    """

    path = Path(path)
    options = options or ImportOptions()
    suffix = path.suffix.lower()

    entry = _READERS.get(suffix)
    if entry is None:
        _logger.warning("Unsupported file type %r for %s", suffix, path)
        return ParseResult(errors=[ParseError("Invalid file type", "")], file_type="unknown")

    file_type, failure_message, reader = entry
    if suffix == ".tsv" and not options.delimiter:
        options = options.model_copy(update={"delimiter": "\t"})

    try:
        text = read_text(path)
        records = reader(text, options)
    except Exception as e:
        message = failure_message.format(error=e)
        _logger.warning("%s (%s): %s", message, path, e)
        return ParseResult(
            errors=[ParseError(message, traceback.format_exc())],
            file_type=file_type,
        )

    if file_type == "csv":
        return ParseResult(transactions=records, file_type=file_type)

    kept = [tx for tx in records if tx.is_complete]
    dropped = len(records) - len(kept)
    if dropped:
        _logger.debug(
            "Dropped %d %s row(s) without a date or amount from %s", dropped, file_type, path
        )
    return ParseResult(transactions=kept, file_type=file_type)


__all__ = ["parse_file", "read_text"]
