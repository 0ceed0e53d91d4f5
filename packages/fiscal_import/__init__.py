"""Public interface for the ``fiscal_import`` package.

This module exposes the package's API functions and public models/types as the
stable import surface. There is no runtime logic here, only symbol re-exports.
"""

from .api import import_file, import_files
from .errors import (
    CamtParseError,
    ColumnMappingError,
    LineSkipError,
    OfxParseError,
    QifFormatError,
    StatementParseError,
)
from .models import (
    DATE_FORMATS,
    ColumnMapping,
    DateFormat,
    FileType,
    ImportBatch,
    ImportOptions,
    IndexedRow,
    NamedRow,
    ParseError,
    ParseResult,
    RawRow,
    StructuredTransaction,
)
from .normalize import map_category_id, normalize_csv_rows, normalize_structured
from .parsers.dispatch import parse_file

__all__ = [
    # API
    "import_file",
    "import_files",
    "parse_file",
    "normalize_csv_rows",
    "normalize_structured",
    "map_category_id",
    # Models / types
    "DATE_FORMATS",
    "ColumnMapping",
    "DateFormat",
    "FileType",
    "ImportBatch",
    "ImportOptions",
    "IndexedRow",
    "NamedRow",
    "ParseError",
    "ParseResult",
    "RawRow",
    "StructuredTransaction",
    # Errors
    "StatementParseError",
    "LineSkipError",
    "QifFormatError",
    "OfxParseError",
    "CamtParseError",
    "ColumnMappingError",
]
