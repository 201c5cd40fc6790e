"""Shared codec capability and helpers used by every format."""

from __future__ import annotations

import codecs
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple

from models.errors import FieldError, ParseError
from models.records import RECORD_FIELDS, TransactionRecord

# Upper-case keys used by the CSV header and the text format.
COLUMN_NAMES: Dict[str, str] = {
    "TX_ID": "id",
    "TX_TYPE": "tx_type",
    "FROM_USER_ID": "from_user_id",
    "TO_USER_ID": "to_user_id",
    "AMOUNT": "amount",
    "CURRENCY": "currency",
    "TIMESTAMP": "timestamp",
    "STATUS": "status",
    "DESCRIPTION": "description",
}
FIELD_COLUMNS: Dict[str, str] = {field: column for column, field in COLUMN_NAMES.items()}
EXPECTED_COLUMNS: Tuple[str, ...] = tuple(FIELD_COLUMNS[field] for field in RECORD_FIELDS)


class Decoder(Protocol):
    """Pure conversion between one file's bytes and canonical records.

    ``decode`` raises :class:`ParseError`; ``encode`` raises
    :class:`EncodeError` for a record the format cannot represent.
    """

    format_name: str

    def decode(self, data: bytes) -> List[TransactionRecord]:
        ...

    def encode(self, records: Sequence[TransactionRecord]) -> bytes:
        ...


def decode_text(data: bytes) -> str:
    """Decode UTF-8 input, tolerating a leading byte order mark."""
    skip = len(codecs.BOM_UTF8) if data.startswith(codecs.BOM_UTF8) else 0
    try:
        return data[skip:].decode("utf-8")
    except UnicodeDecodeError as exc:
        offset = skip + exc.start
        raise ParseError(
            f"invalid UTF-8 byte sequence: {exc.reason}",
            line=data.count(b"\n", 0, offset) + 1,
            offset=offset,
        ) from exc


def build_record(
    values: Mapping[str, Any],
    line: Optional[int] = None,
    offset: Optional[int] = None,
    record: Optional[int] = None,
) -> TransactionRecord:
    """Canonicalize ``values`` keyed by record field, locating any failure."""
    try:
        return TransactionRecord.from_fields(**values)
    except FieldError as exc:
        raise ParseError(
            f"{exc.reason} (got {exc.value!r})",
            line=line,
            field=exc.field,
            offset=offset,
            record=record,
        ) from exc


def is_blank(text: str) -> bool:
    return not text.strip()


def format_amount(amount: Decimal) -> str:
    # Plain notation, never an exponent: Decimal("1E+2") is written as "100".
    return format(amount, "f")


def format_timestamp(timestamp: datetime) -> str:
    return timestamp.isoformat().replace("+00:00", "Z")


def record_values(record: TransactionRecord) -> Dict[str, str]:
    """Render ``record`` as text values keyed by field, in canonical order."""
    values = {
        "id": record.id,
        "tx_type": record.tx_type.value,
        "from_user_id": record.from_user_id,
        "to_user_id": record.to_user_id,
        "amount": format_amount(record.amount),
        "currency": record.currency,
        "timestamp": format_timestamp(record.timestamp),
        "status": record.status.value,
        "description": record.description,
    }
    return {field: values[field] for field in RECORD_FIELDS}
