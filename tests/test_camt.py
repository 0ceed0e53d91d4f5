import textwrap

import pytest

from fiscal_import.errors import CamtParseError
from fiscal_import.models import StructuredTransaction
from fiscal_import.parsers.camt import camt_entries, parse_camt


def _dedent(s: str) -> str:
    return textwrap.dedent(s).lstrip("\n")


def _document(entries: str) -> str:
    return _dedent(
        """
        <?xml version="1.0" encoding="UTF-8"?>
        <Document xmlns="urn:iso:std:iso:20022:tech:xsd:camt.053.001.02">
          <BkToCstmrStmt>
            <Stmt>
              <Id>STMT-1</Id>
        {entries}
            </Stmt>
          </BkToCstmrStmt>
        </Document>
        """
    ).format(entries=entries)


DEBIT_WITH_PARTIES = """
<Ntry>
  <NtryRef>NREF-1</NtryRef>
  <Amt Ccy="EUR">45.99</Amt>
  <CdtDbtInd>DBIT</CdtDbtInd>
  <BookgDt><Dt>2025-07-14</Dt></BookgDt>
  <ValDt><Dt>2025-07-15</Dt></ValDt>
  <AcctSvcrRef>REF-1</AcctSvcrRef>
  <NtryDtls>
    <TxDtls>
      <RltdPties>
        <Dbtr><Nm>Account Holder</Nm></Dbtr>
        <Cdtr><Nm>Whole Foods</Nm></Cdtr>
      </RltdPties>
      <RmtInf><Ustrd>Order 1</Ustrd><Ustrd>Store 22</Ustrd></RmtInf>
    </TxDtls>
  </NtryDtls>
</Ntry>
"""

CREDIT_WITH_EXTRA_INFO = """
<Ntry>
  <Amt Ccy="EUR">2500.00</Amt>
  <CdtDbtInd>CRDT</CdtDbtInd>
  <BookgDt><DtTm>2025-07-16T08:00:00</DtTm><Dt>2025-07-01</Dt></BookgDt>
  <AcctSvcrRef>REF-2</AcctSvcrRef>
  <NtryDtls>
    <TxDtls>
      <RltdPties>
        <Dbtr><Pty><Nm>Employer GmbH</Nm></Pty></Dbtr>
        <Cdtr><Nm>Account Holder</Nm></Cdtr>
      </RltdPties>
    </TxDtls>
  </NtryDtls>
  <AddtlNtryInf>SALARY JULY</AddtlNtryInf>
</Ntry>
"""


def test_debit_entry_uses_creditor_and_value_date():
    (tx,) = parse_camt(_document(DEBIT_WITH_PARTIES))
    assert tx == StructuredTransaction(
        date="2025-07-15",
        amount=-45.99,
        payee_name="Whole Foods",
        imported_payee="Whole Foods",
        notes="Order 1 Store 22",
        imported_id="REF-1",
    )


def test_credit_entry_uses_debtor_and_booking_datetime():
    (tx,) = parse_camt(_document(CREDIT_WITH_EXTRA_INFO))
    assert tx.date == "2025-07-16"
    assert tx.amount == 2500.0
    assert tx.payee_name == "Employer GmbH"
    assert tx.notes == "SALARY JULY"
    assert tx.imported_id == "REF-2"


def test_additional_info_becomes_payee_without_parties():
    entry = """
    <Ntry>
      <Amt>3.20</Amt><CdtDbtInd>DBIT</CdtDbtInd>
      <ValDt><Dt>2025-07-17</Dt></ValDt>
      <NtryRef>NREF-3</NtryRef>
      <AddtlNtryInf>CARD PAYMENT COFFEE</AddtlNtryInf>
    </Ntry>
    """
    (tx,) = parse_camt(_document(entry))
    assert tx.payee_name == "CARD PAYMENT COFFEE"
    assert tx.notes is None
    assert tx.imported_id is None


def test_entry_reference_is_last_resort_notes():
    entry = """
    <Ntry>
      <Amt>1.00</Amt><CdtDbtInd>CRDT</CdtDbtInd>
      <ValDt><Dt>2025-07-18</Dt></ValDt>
      <NtryRef>NREF-9</NtryRef>
    </Ntry>
    """
    (tx,) = parse_camt(_document(entry))
    assert tx.payee_name is None
    assert tx.notes == "NREF-9"


def test_notes_contained_in_payee_are_dropped():
    entry = """
    <Ntry>
      <Amt>9.00</Amt><CdtDbtInd>DBIT</CdtDbtInd>
      <ValDt><Dt>2025-07-19</Dt></ValDt>
      <NtryDtls><TxDtls>
        <RltdPties><Cdtr><Nm>ACME Corp Berlin</Nm></Cdtr></RltdPties>
        <RmtInf><Ustrd>ACME Corp</Ustrd></RmtInf>
      </TxDtls></NtryDtls>
    </Ntry>
    """
    (tx,) = parse_camt(_document(entry))
    assert tx.payee_name == "ACME Corp Berlin"
    assert tx.notes is None


def test_batch_entry_expands_per_detail_record():
    entry = """
    <Ntry>
      <Amt>60.00</Amt><CdtDbtInd>DBIT</CdtDbtInd>
      <ValDt><Dt>2025-07-20</Dt></ValDt>
      <AcctSvcrRef>BATCH-1</AcctSvcrRef>
      <NtryDtls>
        <Btch><NbOfTxs>3</NbOfTxs></Btch>
        <TxDtls>
          <AmtDtls><TxAmt><Amt>10.00</Amt></TxAmt></AmtDtls>
          <RltdPties><Cdtr><Nm>Alpha</Nm></Cdtr></RltdPties>
          <RmtInf><Ustrd>Invoice A</Ustrd></RmtInf>
        </TxDtls>
        <TxDtls>
          <AmtDtls><TxAmt><Amt>20.00</Amt></TxAmt></AmtDtls>
          <RltdPties><Cdtr><Nm>Beta</Nm></Cdtr></RltdPties>
        </TxDtls>
        <TxDtls>
          <Amt>30.00</Amt>
          <RltdPties><Cdtr><Nm>Gamma</Nm></Cdtr></RltdPties>
        </TxDtls>
      </NtryDtls>
    </Ntry>
    """
    txs = parse_camt(_document(entry))
    assert [t.amount for t in txs] == [-10.0, -20.0, -30.0]
    assert [t.payee_name for t in txs] == ["Alpha", "Beta", "Gamma"]
    assert [t.notes for t in txs] == ["Invoice A", None, None]
    assert {t.date for t in txs} == {"2025-07-20"}
    assert all(t.imported_id is None for t in txs)


def test_entries_found_at_any_depth_without_namespace():
    text = _dedent(
        """
        <Envelope>
          <Payload>
            <Report>
              <Ntry>
                <Amt>5.00</Amt><CdtDbtInd>CRDT</CdtDbtInd>
                <BookgDt><Dt>2025-08-01</Dt></BookgDt>
                <AddtlNtryInf>Interest</AddtlNtryInf>
              </Ntry>
            </Report>
          </Payload>
          <Ntry>
            <Amt>6.00</Amt><CdtDbtInd>CRDT</CdtDbtInd>
            <BookgDt><Dt>2025-08-02</Dt></BookgDt>
          </Ntry>
        </Envelope>
        """
    )
    assert [t.amount for t in parse_camt(text)] == [5.0, 6.0]


def test_entries_without_date_or_amount_are_filtered():
    entries = """
    <Ntry><Amt>1.00</Amt><CdtDbtInd>CRDT</CdtDbtInd></Ntry>
    <Ntry><Amt>n/a</Amt><CdtDbtInd>CRDT</CdtDbtInd><ValDt><Dt>2025-07-01</Dt></ValDt></Ntry>
    <Ntry><Amt>2.00</Amt><CdtDbtInd>CRDT</CdtDbtInd><ValDt><Dt>2025-07-02</Dt></ValDt></Ntry>
    """
    text = _document(entries)
    assert len(camt_entries(text)) == 3
    assert [t.amount for t in parse_camt(text)] == [2.0]


def test_malformed_xml_is_rejected():
    with pytest.raises(CamtParseError):
        parse_camt("<Document><Ntry></Document>")


@pytest.mark.parametrize("amount", ["NaN", "inf", "-Infinity", "1_000", "12,50", ""])
def test_non_decimal_amounts_are_incomplete(amount):
    entries = f"""
    <Ntry><Amt>{amount}</Amt><CdtDbtInd>DBIT</CdtDbtInd><ValDt><Dt>2025-07-01</Dt></ValDt></Ntry>
    """
    text = _document(entries)
    (entry,) = camt_entries(text)
    assert entry.amount is None
    assert parse_camt(text) == []
