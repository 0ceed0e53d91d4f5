"""CAMT (ISO 20022 ``camt.053``/``camt.054``) statement reader.

Banks wrap entries in many incompatible ways (``BkToCstmrStmt/Stmt``,
``BkToCstmrDbtCdtNtfctn/Ntfctn``, vendor-specific envelopes, several schema
versions), so entries are located by tag name at any depth instead of by
path. Namespaces are ignored for the same reason.

An entry (``Ntry``) with several ``TxDtls`` is a batch booking: it becomes one
transaction per detail record, each carrying its own amount and parties.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET

from ..errors import CamtParseError
from ..models import StructuredTransaction
from .xmltree import child, child_text, children, descendants, first_descendant, path

_DECIMAL_RE = re.compile(r"^[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?$")


def _number(text: str | None) -> float | None:
    if text is None or not _DECIMAL_RE.match(text.strip()):
        return None
    return float(text.strip())


def _day(date_ref: ET.Element | None) -> str | None:
    """``DtTm`` (date part) wins over ``Dt`` within one date element."""

    if date_ref is None:
        return None
    date_time = child_text(date_ref, "DtTm")
    if date_time is not None:
        return date_time[:10]
    return child_text(date_ref, "Dt")


def _payee_name(details: ET.Element | None, is_debit: bool) -> str | None:
    # Money leaving the account went to the creditor, incoming money came from the debtor.
    party = path(details, "RltdPties", "Cdtr" if is_debit else "Dbtr")
    if party is None:
        return None
    for name in descendants(party, "Nm"):
        if name.text and name.text.strip():
            return name.text.strip()
    return None


def _notes(details: ET.Element | None) -> str | None:
    remittance = child(details, "RmtInf")
    if remittance is None:
        return None
    lines = [u.text.strip() for u in children(remittance, "Ustrd") if u.text and u.text.strip()]
    return " ".join(lines) or None


def _signed(amount: float | None, is_debit: bool) -> float | None:
    if amount is None:
        return None
    return -amount if is_debit else amount


def _entry_transactions(entry: ET.Element) -> list[StructuredTransaction]:
    is_debit = child_text(entry, "CdtDbtInd") == "DBIT"
    date = _day(child(entry, "ValDt")) or _day(child(entry, "BookgDt"))
    details = [tx for dtls in children(entry, "NtryDtls") for tx in children(dtls, "TxDtls")]

    if len(details) > 1:
        batch: list[StructuredTransaction] = []
        for sub in details:
            amount_node = first_descendant(sub, "Amt")
            amount = _number(amount_node.text) if amount_node is not None else None
            payee = _payee_name(sub, is_debit)
            batch.append(
                StructuredTransaction(
                    date=date,
                    amount=_signed(amount, is_debit),
                    payee_name=payee,
                    imported_payee=payee,
                    notes=_notes(sub),
                )
            )
        return batch

    single = details[0] if details else None
    extra_info = child_text(entry, "AddtlNtryInf")
    payee = _payee_name(single, is_debit)
    notes = _notes(single)
    if not payee and extra_info:
        payee = extra_info
    if not notes and extra_info and extra_info != payee:
        notes = extra_info
    if not payee and not notes:
        notes = child_text(entry, "NtryRef")
    if payee and notes and notes in payee:
        notes = None

    return [
        StructuredTransaction(
            date=date,
            amount=_signed(_number(child_text(entry, "Amt")), is_debit),
            payee_name=payee,
            imported_payee=payee,
            notes=notes,
            imported_id=child_text(entry, "AcctSvcrRef"),
        )
    ]


def camt_entries(text: str) -> list[StructuredTransaction]:
    """Every transaction of every ``Ntry``, including ones without a date or amount.

    Raises :class:`~fiscal_import.errors.CamtParseError` for malformed XML.
    """

    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise CamtParseError(f"Malformed CAMT XML: {e}") from e

    return [tx for entry in descendants(root, "Ntry") for tx in _entry_transactions(entry)]


def parse_camt(text: str) -> list[StructuredTransaction]:
    """Parse a CAMT document into transactions that have a date and an amount."""

    return [tx for tx in camt_entries(text) if tx.is_complete]


__all__ = ["camt_entries", "parse_camt"]
