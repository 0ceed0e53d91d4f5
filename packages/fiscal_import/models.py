"""Data models and type aliases for ``fiscal_import``.

Readers produce one of two shapes:

- delimited files yield :data:`RawRow` values (an ``IndexedRow`` list when the
  file has no header, a ``NamedRow`` dict keyed by header otherwise); the
  caller maps them to transactions via a :class:`ColumnMapping`;
- QIF, OFX/QFX and CAMT yield :class:`StructuredTransaction` records directly.

:class:`ParseResult` is what the dispatcher hands back for either shape, and
:class:`ImportOptions` carries every option the CLI (or a host application)
can pass in.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Literal, TypeAlias

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------------------------------------------------------------------------
# Raw delimited rows
# ---------------------------------------------------------------------------

IndexedRow: TypeAlias = list[str]
"""Cells of a header-less row, in file order."""

NamedRow: TypeAlias = dict[str, str]
"""Cells of a row keyed by header name, in header order."""

RawRow: TypeAlias = IndexedRow | NamedRow
"""One record from a delimited file; which variant depends on ``has_header_row``."""


FileType: TypeAlias = Literal["csv", "qif", "ofx", "camt", "unknown"]

DateFormat = Literal[
    "yyyy mm dd",
    "yy mm dd",
    "mm dd yyyy",
    "mm dd yy",
    "dd mm yyyy",
    "dd mm yy",
]

# Try order used by date-format detection; ambiguous samples resolve to the
# first format that parses.
DATE_FORMATS: tuple[DateFormat, ...] = (
    "yyyy mm dd",
    "yy mm dd",
    "mm dd yyyy",
    "mm dd yy",
    "dd mm yyyy",
    "dd mm yy",
)


def normalize_field_ref(ref: str | int | None) -> str | None:
    """Trim a column reference; blank references count as absent."""

    if ref is None:
        return None
    return str(ref).strip() or None


# ---------------------------------------------------------------------------
# Column mapping
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ColumnMapping:
    """Logical role -> column reference (header name or index string).

    A reference resolves to the same cell position for every row of one file,
    whether the rows are ``IndexedRow`` or ``NamedRow`` values.
    """

    date: str | None = None
    amount: str | None = None
    payee: str | None = None
    notes: str | None = None
    category: str | None = None
    outflow: str | None = None
    inflow: str | None = None
    in_out: str | None = None

    def with_overrides(self, overrides: ColumnMapping) -> ColumnMapping:
        """Return a mapping where every non-empty role of ``overrides`` wins."""

        merged = {
            f.name: normalize_field_ref(getattr(overrides, f.name)) or getattr(self, f.name)
            for f in fields(self)
        }
        return ColumnMapping(**merged)

    @property
    def split_mode(self) -> bool:
        """Separate inflow/outflow columns are configured."""

        return bool(self.inflow or self.outflow)

    @property
    def in_out_mode(self) -> bool:
        """A direction marker column is configured."""

        return bool(self.in_out)

    def to_dict(self) -> dict[str, str | None]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Structured output
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class StructuredTransaction:
    """A single transaction ready for the ledger collaborator.

    ``date`` is canonical ``YYYY-MM-DD`` and ``amount`` a signed float
    (negative = money leaving the account). The dispatcher and the normalizers
    only emit records where both are present; the other fields are optional.
    """

    date: str | None
    amount: float | None
    payee_name: str | None = None
    imported_payee: str | None = None
    notes: str | None = None
    category: str | None = None
    imported_id: str | None = None

    @property
    def is_complete(self) -> bool:
        return self.date is not None and self.amount is not None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class ParseError:
    """A file-level failure: ``message`` for users, ``internal`` for logs."""

    message: str
    internal: str = ""


@dataclass(slots=True)
class ParseResult:
    """Outcome of dispatching one file to a reader.

    Non-empty ``errors`` means the caller must not proceed to insertion; the
    ``transactions`` list is empty in that case.
    """

    errors: list[ParseError] = field(default_factory=list)
    transactions: list[StructuredTransaction] | list[RawRow] = field(default_factory=list)
    file_type: FileType = "unknown"

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass(slots=True)
class ImportBatch:
    """Parsed and normalized transactions for one file, plus error strings."""

    path: str
    file_type: FileType
    transactions: list[StructuredTransaction] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------


class ImportOptions(BaseModel):
    """Every option the importer recognizes.

    Column overrides accept a header name or a zero-based index (as ``int`` or
    string); blank strings mean "use detection". ``date_format`` of ``None``
    means "detect from the first row".
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    has_header_row: bool = True
    delimiter: str | None = None
    skip_start_lines: int = Field(default=0, ge=0)
    skip_end_lines: int = Field(default=0, ge=0)
    date_format: DateFormat | None = None
    multiplier: str = "1"
    flip_amount: bool = False
    out_value: str = ""
    fallback_missing_payee_to_memo: bool = False
    import_notes: bool = True

    date_column: str | None = None
    amount_column: str | None = None
    payee_column: str | None = None
    notes_column: str | None = None
    category_column: str | None = None
    inflow_column: str | None = None
    outflow_column: str | None = None
    in_out_column: str | None = None

    @field_validator("date_format", mode="before")
    @classmethod
    def _normalize_date_format(cls, v: object) -> object:
        if v is None:
            return None
        if isinstance(v, str):
            text = " ".join(v.lower().split())
            if not text:
                return None
            if text not in DATE_FORMATS:
                raise ValueError(
                    f"unsupported date format {v!r}; expected one of: " + " | ".join(DATE_FORMATS)
                )
            return text
        return v

    @field_validator("delimiter", mode="before")
    @classmethod
    def _empty_delimiter_is_default(cls, v: object) -> object:
        # Whitespace delimiters (tab) are meaningful; only "" means default.
        if v == "":
            return None
        return v

    @field_validator(
        "date_column",
        "amount_column",
        "payee_column",
        "notes_column",
        "category_column",
        "inflow_column",
        "outflow_column",
        "in_out_column",
        mode="before",
    )
    @classmethod
    def _normalize_column_ref(cls, v: object) -> object:
        if v is None or isinstance(v, (str, int)) and not isinstance(v, bool):
            return normalize_field_ref(v)
        return v

    def column_overrides(self) -> ColumnMapping:
        return ColumnMapping(
            date=self.date_column,
            amount=self.amount_column,
            payee=self.payee_column,
            notes=self.notes_column,
            category=self.category_column,
            outflow=self.outflow_column,
            inflow=self.inflow_column,
            in_out=self.in_out_column,
        )


__all__ = [
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
    "normalize_field_ref",
]
