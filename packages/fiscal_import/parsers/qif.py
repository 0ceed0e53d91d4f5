"""QIF (Quicken Interchange Format) reader.

A QIF file starts with a ``!Type:<kind>`` header and then lists records one
field per line. The first character of a line is its detail code; a line of
exactly ``^`` ends the record. Split (division) lines ``S``/``E``/``$`` build
sub-records; the ``$`` line closes the current division.

Unknown detail codes are fatal: they indicate a corrupt file or an
unsupported QIF variant, and the whole file is rejected.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, fields

from ..errors import QifFormatError
from .amounts import leading_float

_TYPE_HEADER_RE = re.compile(r"!Type:([^$]*)$")


@dataclass(slots=True)
class QifDivision:
    """One split line group (``S``/``E``/``$``) of a transaction."""

    category: str | None = None
    subcategory: str | None = None
    description: str | None = None
    amount: float | None = None


@dataclass(slots=True)
class QifTransaction:
    """Raw field values of one QIF record; nothing is parsed except splits."""

    date: str | None = None
    amount: str | None = None
    number: str | None = None
    memo: str | None = None
    address: list[str] = field(default_factory=list)
    cleared_status: str | None = None
    category: str | None = None
    subcategory: str | None = None
    payee: str | None = None
    divisions: list[QifDivision] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not any(getattr(self, f.name) for f in fields(self))


@dataclass(slots=True)
class QifFile:
    type: str
    transactions: list[QifTransaction] = field(default_factory=list)


def _split_category(value: str) -> tuple[str, str | None]:
    parts = value.split(":")
    return parts[0], (parts[1] if len(parts) > 1 else None)


def parse_qif(text: str) -> QifFile:
    """Parse QIF ``text`` into raw records.

    Raises :class:`~fiscal_import.errors.QifFormatError` when the first
    non-blank line is not a ``!Type:`` header or when a line carries an
    unknown detail code. A trailing record without ``^`` is kept if any field
    was set.
    """

    lines = [line.strip() for line in text.split("\n")]
    lines = [line for line in lines if line]
    header = lines[0] if lines else ""
    m = _TYPE_HEADER_RE.search(header)
    if m is None:
        raise QifFormatError(f"File does not appear to be a valid qif file: {header}")

    qif = QifFile(type=m.group(1))
    tx = QifTransaction()
    division = QifDivision()

    for line in lines[1:]:
        if line == "^":
            qif.transactions.append(tx)
            tx = QifTransaction()
            continue

        code, value = line[0], line[1:]
        match code:
            case "D":
                tx.date = value
            case "T":
                tx.amount = value
            case "N":
                tx.number = value
            case "M":
                tx.memo = value
            case "A":
                tx.address.append(value)
            case "P":
                tx.payee = value.replace("&amp;", "&")
            case "L":
                tx.category, tx.subcategory = _split_category(value)
            case "C":
                tx.cleared_status = value
            case "S":
                division.category, division.subcategory = _split_category(value)
            case "E":
                division.description = value
            case "$":
                division.amount = leading_float(value)
                tx.divisions.append(division)
                division = QifDivision()
            case _:
                raise QifFormatError(f"Unknown Detail Code: {code}")

    if not tx.is_empty():
        qif.transactions.append(tx)

    return qif


__all__ = ["QifDivision", "QifFile", "QifTransaction", "parse_qif"]
