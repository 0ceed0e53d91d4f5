"""Exception taxonomy for the import pipeline.

Every reader raises one of these (or lets a lower-level error escape); only
``fiscal_import.parsers.dispatch.parse_file`` converts them into
``ParseError`` values. All of them are ``ValueError`` subclasses so callers
that already guard numeric/format conversion keep working.
"""

from __future__ import annotations


class StatementParseError(ValueError):
    """Base class for a file that cannot be turned into transactions."""


class LineSkipError(StatementParseError):
    """Requested banner/footer skips consume the whole file."""


class QifFormatError(StatementParseError):
    """QIF input without a ``!Type:`` header or with an unknown detail code."""


class OfxParseError(StatementParseError):
    """OFX/QFX body that is neither XML nor repairable SGML."""


class CamtParseError(StatementParseError):
    """CAMT document that is not well-formed XML."""


class ColumnMappingError(StatementParseError):
    """CSV rows lack a usable date or amount column after detection/overrides."""


__all__ = [
    "CamtParseError",
    "ColumnMappingError",
    "LineSkipError",
    "OfxParseError",
    "QifFormatError",
    "StatementParseError",
]
