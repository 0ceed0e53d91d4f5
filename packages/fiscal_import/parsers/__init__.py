"""Format readers and the leaf normalizers they share.

Each reader module raises on unreadable input; :func:`parse_file` in
:mod:`fiscal_import.parsers.dispatch` is the only caller that converts those
exceptions into ``ParseError`` results.
"""

from .amounts import compose_amount, parse_loose_amount, parse_statement_amount
from .camt import parse_camt
from .dates import detect_date_format, parse_date
from .delimited import apply_line_skips, detect_column_mapping, parse_delimited, read_cell
from .dispatch import parse_file
from .ofx import parse_ofx
from .qif import parse_qif

__all__ = [
    "apply_line_skips",
    "compose_amount",
    "detect_column_mapping",
    "detect_date_format",
    "parse_camt",
    "parse_date",
    "parse_delimited",
    "parse_file",
    "parse_loose_amount",
    "parse_ofx",
    "parse_qif",
    "parse_statement_amount",
    "read_cell",
]
