# ruff: noqa: E501
import textwrap

import pytest

from fiscal_import.errors import OfxParseError
from fiscal_import.parsers.ofx import html_to_plain, parse_headers, parse_ofx, sgml_to_xml


def _dedent(s: str) -> str:
    return textwrap.dedent(s).lstrip("\n")


SGML_BANK = _dedent(
    """
    OFXHEADER:100
    DATA:OFXSGML
    VERSION:102
    SECURITY:NONE

    <OFX>
    <SIGNONMSGSRSV1>
    <SONRS>
    <STATUS>
    <CODE>0
    <SEVERITY>INFO
    </STATUS>
    <DTSERVER>20250716
    </SONRS>
    </SIGNONMSGSRSV1>
    <BANKMSGSRSV1>
    <STMTTRNRS>
    <STMTRS>
    <BANKTRANLIST>
    <STMTTRN>
    <TRNTYPE>DEBIT
    <TRNAMT>-12.50
    <FITID>abc123
    <NAME>Coffee Shop
    <DTPOSTED>20250715120000
    </STMTTRN>
    <STMTTRN>
    <TRNTYPE>CREDIT
    <DTPOSTED>20250716
    <TRNAMT>100.00
    <FITID>def456
    <NAME>AT&T Refund
    <MEMO>Ben &amp; Jerry&#39;s
    </STMTTRN>
    </BANKTRANLIST>
    </STMTRS>
    </STMTTRNRS>
    </BANKMSGSRSV1>
    </OFX>
    """
)


def test_sgml_body_is_repaired_and_read():
    doc = parse_ofx(SGML_BANK)
    assert doc.headers["OFXHEADER"] == "100"
    assert doc.headers["DATA"] == "OFXSGML"
    assert len(doc.transactions) == 2

    first = doc.transactions[0]
    assert first.amount == "-12.50"
    assert first.fit_id == "abc123"
    assert first.name == "Coffee Shop"
    assert first.date == "2025-07-15"
    assert first.memo == ""
    assert first.type == "DEBIT"

    second = doc.transactions[1]
    assert second.name == "AT&T Refund"
    assert second.memo == "Ben & Jerry's"
    assert second.date == "2025-07-16"


XML_CREDIT_CARD = _dedent(
    """
    <?xml version="1.0" encoding="UTF-8"?>
    <?OFX OFXHEADER="200" VERSION="220"?>
    <OFX>
      <CREDITCARDMSGSRSV1>
        <CCSTMTTRNRS>
          <CCSTMTRS>
            <BANKTRANLIST>
              <STMTTRN><TRNAMT>-1.00</TRNAMT><FITID>cc1</FITID><NAME>One</NAME><DTPOSTED>20250101</DTPOSTED></STMTTRN>
              <STMTTRN><TRNAMT>-2.00</TRNAMT><FITID>cc2</FITID><NAME>Two</NAME><DTPOSTED>20250102</DTPOSTED></STMTTRN>
            </BANKTRANLIST>
          </CCSTMTRS>
        </CCSTMTTRNRS>
        <CCSTMTTRNRS>
          <CCSTMTRS>
            <BANKTRANLIST>
              <STMTTRN><TRNAMT>-3.00</TRNAMT><FITID>cc3</FITID><NAME>Three</NAME><DTPOSTED>20250103</DTPOSTED></STMTTRN>
            </BANKTRANLIST>
          </CCSTMTRS>
        </CCSTMTTRNRS>
      </CREDITCARDMSGSRSV1>
      <BANKMSGSRSV1>
        <STMTTRNRS><STMTRS><BANKTRANLIST>
          <STMTTRN><TRNAMT>-9.00</TRNAMT><FITID>bank</FITID></STMTTRN>
        </BANKTRANLIST></STMTRS></STMTTRNRS>
      </BANKMSGSRSV1>
    </OFX>
    """
)


def test_xml_credit_card_statements_take_priority_and_flatten():
    doc = parse_ofx(XML_CREDIT_CARD)
    assert [t.fit_id for t in doc.transactions] == ["cc1", "cc2", "cc3"]
    assert [t.date for t in doc.transactions] == ["2025-01-01", "2025-01-02", "2025-01-03"]


def test_investment_bank_transactions():
    text = _dedent(
        """
        OFXHEADER:100

        <OFX>
        <INVSTMTMSGSRSV1>
        <INVSTMTTRNRS>
        <INVSTMTRS>
        <INVTRANLIST>
        <INVBANKTRAN>
        <STMTTRN>
        <TRNAMT>25.00
        <FITID>inv1
        <NAME>Dividend
        <DTPOSTED>20250301
        </STMTTRN>
        <SUBACCTFUND>CASH
        </INVBANKTRAN>
        </INVTRANLIST>
        </INVSTMTRS>
        </INVSTMTTRNRS>
        </INVSTMTMSGSRSV1>
        </OFX>
        """
    )
    (tx,) = parse_ofx(text).transactions
    assert tx.fit_id == "inv1"
    assert tx.amount == "25.00"


def test_missing_message_sets_yield_no_transactions():
    doc = parse_ofx("OFXHEADER:100\n<OFX><SIGNONMSGSRSV1></SIGNONMSGSRSV1></OFX>")
    assert doc.transactions == []


def test_invalid_posted_date_becomes_empty():
    text = "<OFX><BANKMSGSRSV1><STMTTRNRS><STMTRS><BANKTRANLIST><STMTTRN><TRNAMT>1<DTPOSTED>20251345</STMTTRN></BANKTRANLIST></STMTRS></STMTTRNRS></BANKMSGSRSV1></OFX>"
    (tx,) = parse_ofx(text).transactions
    assert tx.date == ""


def test_document_without_ofx_root_is_rejected():
    with pytest.raises(OfxParseError, match="No <OFX> root"):
        parse_ofx("OFXHEADER:100\nDATA:OFXSGML\n")


def test_unrepairable_body_is_rejected():
    with pytest.raises(OfxParseError, match="neither XML"):
        parse_ofx("<OFX>\n<BANKMSGSRSV1>\n</OFX>")


def test_parse_headers_splits_on_first_colon():
    headers = parse_headers("OFXHEADER:100\r\nURL:https://bank.example\nNOCOLON\n\n")
    assert headers == {"OFXHEADER": "100", "URL": "https://bank.example", "NOCOLON": None}


def test_sgml_to_xml_closes_leaf_elements():
    assert sgml_to_xml("<A>\n  <B>1.5\n</A>") == "<A><B>1.5</B></A>"
    assert sgml_to_xml("<B>x</B>") == "<B>x</B>"


def test_html_to_plain_unescapes_ampersand_last():
    assert html_to_plain("&lt;b&gt; Joe&#39;s &quot;Diner&quot; &amp; Bar") == '<b> Joe\'s "Diner" & Bar'
    assert html_to_plain("&amp;lt;") == "&lt;"
    assert html_to_plain(None) == ""
