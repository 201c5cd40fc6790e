from __future__ import annotations

from decimal import Decimal

import pytest

from decoders.csv_decoder import CsvDecoder
from models.errors import ParseError
from models.records import TxStatus, TxType

HEADER = "TX_ID,TX_TYPE,FROM_USER_ID,TO_USER_ID,AMOUNT,CURRENCY,TIMESTAMP,STATUS,DESCRIPTION\n"


def test_decode_preserves_source_order(csv_bytes: bytes) -> None:
    records = CsvDecoder().decode(csv_bytes)

    assert [record.id for record in records] == ["1001", "1002", "1003"]
    assert records[1].tx_type is TxType.transfer
    assert records[1].currency == "USD"
    assert records[1].description == "Payment for services, invoice #123"
    assert records[2].status is TxStatus.pending
    assert records[2].amount == Decimal("10.00")


def test_decode_is_deterministic(csv_bytes: bytes) -> None:
    decoder = CsvDecoder()

    assert decoder.decode(csv_bytes) == decoder.decode(csv_bytes)


@pytest.mark.parametrize("payload", [b"", b"   \n\n", HEADER.encode("utf-8")])
def test_empty_input_yields_no_records(payload: bytes) -> None:
    assert CsvDecoder().decode(payload) == []


def test_header_columns_may_be_reordered_and_recased() -> None:
    body = (
        " description ,tx_id,tx_type,from_user_id,to_user_id,amount,currency,timestamp,status\n"
        "Coffee,7,DEPOSIT,0,1,3.50,EUR,2024-05-01,SUCCESS\n"
    )

    (record,) = CsvDecoder().decode(body.encode("utf-8"))

    assert record.id == "7"
    assert record.description == "Coffee"
    assert record.currency == "EUR"


def test_missing_header_column_is_rejected() -> None:
    body = "TX_ID,TX_TYPE,FROM_USER_ID,TO_USER_ID,AMOUNT,TIMESTAMP,STATUS,DESCRIPTION\n"

    with pytest.raises(ParseError) as excinfo:
        CsvDecoder().decode(body.encode("utf-8"))

    assert excinfo.value.line == 1
    assert "CURRENCY" in excinfo.value.message


def test_unknown_header_column_is_rejected() -> None:
    body = HEADER.rstrip("\n") + ",NOTES\n"

    with pytest.raises(ParseError) as excinfo:
        CsvDecoder().decode(body.encode("utf-8"))

    assert excinfo.value.line == 1
    assert "NOTES" in excinfo.value.message


def test_malformed_amount_reports_line_and_stops() -> None:
    body = (
        HEADER
        + "1,DEPOSIT,0,1,1.00,USD,2024-01-01T00:00:00Z,SUCCESS,ok\n"
        + "2,DEPOSIT,0,1,ten,USD,2024-01-01T00:00:00Z,SUCCESS,bad\n"
        + "3,DEPOSIT,0,1,oops,USD,2024-01-01T00:00:00Z,SUCCESS,never reached\n"
    )

    with pytest.raises(ParseError) as excinfo:
        CsvDecoder().decode(body.encode("utf-8"))

    assert excinfo.value.line == 3
    assert excinfo.value.field == "amount"
    assert "line 3" in str(excinfo.value)


def test_wrong_column_count_is_rejected() -> None:
    body = HEADER + "1,DEPOSIT,0,1,1.00,USD\n"

    with pytest.raises(ParseError) as excinfo:
        CsvDecoder().decode(body.encode("utf-8"))

    assert excinfo.value.line == 2
    assert "expected 9 columns" in excinfo.value.message


def test_quoted_description_keeps_reserved_characters_verbatim() -> None:
    body = (
        HEADER
        + '1,DEPOSIT,0,1,1.00,USD,2024-01-01T00:00:00Z,SUCCESS," says ""hi"", then\nleaves "\n'
        + "2,DEPOSIT,0,1,2.00,USD,2024-01-01T00:00:00Z,SUCCESS,second\n"
    )

    first, second = CsvDecoder().decode(body.encode("utf-8"))

    assert first.description == ' says "hi", then\nleaves '
    assert second.id == "2"


def test_error_line_points_at_row_start_after_multiline_cell() -> None:
    body = (
        HEADER
        + '1,DEPOSIT,0,1,1.00,USD,2024-01-01T00:00:00Z,SUCCESS,"multi\nline"\n'
        + "2,DEPOSIT,0,1,1.00,USD,not-a-date,SUCCESS,x\n"
    )

    with pytest.raises(ParseError) as excinfo:
        CsvDecoder().decode(body.encode("utf-8"))

    assert excinfo.value.line == 4
    assert excinfo.value.field == "timestamp"


def test_blank_lines_between_and_after_rows_are_ignored() -> None:
    body = (
        HEADER
        + "1,DEPOSIT,0,1,1.00,USD,2024-01-01T00:00:00Z,SUCCESS,a\n"
        + "\n"
        + "   \n"
        + "2,DEPOSIT,0,1,2.00,USD,2024-01-01T00:00:00Z,SUCCESS,b\n"
        + "\n\n"
    )

    records = CsvDecoder().decode(body.encode("utf-8"))

    assert [record.id for record in records] == ["1", "2"]


def test_invalid_utf8_is_located() -> None:
    body = HEADER.encode("utf-8") + b"1,DEPOSIT,0,1,1.00,USD,2024-01-01,SUCCESS,\xff\n"

    with pytest.raises(ParseError) as excinfo:
        CsvDecoder().decode(body)

    assert excinfo.value.line == 2
    assert excinfo.value.offset == body.index(b"\xff")


def test_byte_order_mark_is_accepted(csv_bytes: bytes) -> None:
    records = CsvDecoder().decode(b"\xef\xbb\xbf" + csv_bytes)

    assert len(records) == 3


def test_oversized_epoch_timestamp_is_a_located_parse_error() -> None:
    body = HEADER + "1,DEPOSIT,0,1,1.00,USD," + "9" * 5000 + ",SUCCESS,ok\n"

    with pytest.raises(ParseError) as excinfo:
        CsvDecoder().decode(body.encode("utf-8"))

    assert excinfo.value.line == 2
    assert excinfo.value.field == "timestamp"
    assert "out of range" in excinfo.value.message
