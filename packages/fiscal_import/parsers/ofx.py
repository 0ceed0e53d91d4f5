"""OFX/QFX statement reader.

An OFX file is a ``KEY:VALUE`` header block followed by an ``<OFX>``-rooted
body. OFX 1.x bodies are SGML: leaf elements such as ``<TRNAMT>-12.50`` are
never closed, so the body is first tried as XML and, failing that, rewritten
by :func:`sgml_to_xml` and tried once more.

Transactions are read from the first message set present, in this order:

================  =====================================================
credit card       ``CREDITCARDMSGSRSV1/CCSTMTTRNRS/CCSTMTRS/BANKTRANLIST``
investment        ``INVSTMTMSGSRSV1/INVSTMTTRNRS/INVSTMTRS/INVTRANLIST/INVBANKTRAN``
banking           ``BANKMSGSRSV1/STMTTRNRS/STMTRS/BANKTRANLIST``
================  =====================================================

Every level may repeat (several statements in one file), so each one is
flattened.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from datetime import datetime
from typing import NamedTuple

from ..errors import OfxParseError
from .xmltree import child_text, children

_OFX_ROOT_RE = re.compile(r"<OFX\s?>")
_LINE_BREAK_RE = re.compile(r"\r?\n")

# (message set, path of repeating containers down to the STMTTRN parents)
_MESSAGE_SETS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("CREDITCARDMSGSRSV1", ("CCSTMTTRNRS", "CCSTMTRS", "BANKTRANLIST")),
    ("INVSTMTMSGSRSV1", ("INVSTMTTRNRS", "INVSTMTRS", "INVTRANLIST", "INVBANKTRAN")),
    ("BANKMSGSRSV1", ("STMTTRNRS", "STMTRS", "BANKTRANLIST")),
)

# Applied in order; the last two steps close every ``<TAG>text`` leaf and then
# fold a synthesized close tag into an explicit one that already follows.
_SGML_REWRITES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"&"), "&#038;"),
    (re.compile(r">\s+<"), "><"),
    (re.compile(r"\s+<"), "<"),
    (re.compile(r">\s+"), ">"),
    (re.compile(r"\.(?=[^<>]*>)"), ""),
    (re.compile(r"<(\w+?)>([^<]+)"), r"<\1>\2</<added>\1>"),
    (re.compile(r"</<added>(\w+?)>(</\1>)?"), r"</\1>"),
)

_HTML_ENTITIES: tuple[tuple[str, str], ...] = (
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&#39;", "'"),
    ("&quot;", '"'),
    ("&amp;", "&"),
    ("&#038;", "&"),
)


@dataclass(frozen=True, slots=True)
class OfxTransaction:
    """One ``STMTTRN`` with text fields as found; ``date`` is ``YYYY-MM-DD`` or ``""``."""

    amount: str
    fit_id: str
    name: str
    date: str
    memo: str
    type: str


@dataclass(slots=True)
class OfxDocument:
    headers: dict[str, str | None] = field(default_factory=dict)
    transactions: list[OfxTransaction] = field(default_factory=list)


class _ParseAttempt(NamedTuple):
    root: ET.Element | None
    error: str | None


def sgml_to_xml(sgml: str) -> str:
    """Rewrite an SGML OFX body into well-formed XML."""

    for pattern, replacement in _SGML_REWRITES:
        sgml = pattern.sub(replacement, sgml)
    return sgml


def html_to_plain(value: str | None) -> str:
    """Undo the HTML escaping banks apply to ``NAME``/``MEMO``; ampersands last."""

    if not value:
        return ""
    for entity, char in _HTML_ENTITIES:
        value = value.replace(entity, char)
    return value


def _try_parse(body: str) -> _ParseAttempt:
    try:
        return _ParseAttempt(ET.fromstring(body), None)
    except ET.ParseError as e:
        return _ParseAttempt(None, str(e))


def _parse_body(body: str) -> ET.Element:
    first = _try_parse(body)
    if first.root is not None:
        return first.root
    second = _try_parse(sgml_to_xml(body))
    if second.root is not None:
        return second.root
    raise OfxParseError(
        f"OFX body is neither XML ({first.error}) nor repairable SGML ({second.error})"
    )


def parse_headers(block: str) -> dict[str, str | None]:
    """``KEY:VALUE`` lines to a dict; a line without a colon maps to ``None``."""

    headers: dict[str, str | None] = {}
    for line in _LINE_BREAK_RE.split(block):
        if not line:
            continue
        key, colon, value = line.partition(":")
        headers[key] = value if colon else None
    return headers


def _statement_transactions(root: ET.Element) -> list[ET.Element]:
    for message_set, containers in _MESSAGE_SETS:
        level = children(root, message_set)
        if not level:
            continue
        for name in containers:
            level = [c for node in level for c in children(node, name)]
        return [tx for node in level for tx in children(node, "STMTTRN")]
    return []


def _posted_day(dt_posted: str | None) -> str:
    if not dt_posted:
        return ""
    try:
        return datetime.strptime(dt_posted[:8], "%Y%m%d").date().isoformat()
    except ValueError:
        return ""


def _leaf(node: ET.Element, name: str) -> str:
    return child_text(node, name) or ""


def _to_transaction(node: ET.Element) -> OfxTransaction:
    return OfxTransaction(
        amount=_leaf(node, "TRNAMT"),
        fit_id=_leaf(node, "FITID"),
        name=html_to_plain(_leaf(node, "NAME")),
        date=_posted_day(child_text(node, "DTPOSTED")),
        memo=html_to_plain(_leaf(node, "MEMO")),
        type=_leaf(node, "TRNTYPE"),
    )


def parse_ofx(text: str) -> OfxDocument:
    """Parse an OFX/QFX document into headers and raw transactions.

    Raises :class:`~fiscal_import.errors.OfxParseError` when there is no
    ``<OFX>`` root or when the body cannot be parsed even after SGML repair.
    """

    parts = _OFX_ROOT_RE.split(text, maxsplit=1)
    if len(parts) < 2:
        raise OfxParseError("No <OFX> root element found")

    headers = parse_headers(parts[0])
    root = _parse_body(f"<OFX>{parts[1]}")

    return OfxDocument(
        headers=headers,
        transactions=[_to_transaction(node) for node in _statement_transactions(root)],
    )


__all__ = [
    "OfxDocument",
    "OfxTransaction",
    "html_to_plain",
    "parse_headers",
    "parse_ofx",
    "sgml_to_xml",
]
