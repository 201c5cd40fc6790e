"""Binary ledger codec.

Records are concatenated without separators; integers are big-endian::

    magic       4s   b"YPBN"
    body_size   u32  bytes following this field
    tx_id       u64
    tx_type     u8   0 deposit, 1 transfer, 2 withdrawal
    from_user   u64
    to_user     u64
    amount      i64  minor units
    scale       u8   amount = minor / 10 ** scale
    currency    3s   ASCII
    timestamp   u64  epoch milliseconds
    status      u8   0 success, 1 failure, 2 pending
    desc_len    u32
    description desc_len bytes of UTF-8
"""

from __future__ import annotations

import re
import struct
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import List, Optional, Sequence

from decoders.base import build_record
from models.errors import EncodeError, ParseError
from models.records import TransactionRecord, TxStatus, TxType

MAGIC = b"YPBN"
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_PREFIX = struct.Struct(">4sI")
_FIXED_BODY = struct.Struct(">QBQQqB3sQBI")

TX_TYPE_CODES = {0: TxType.deposit, 1: TxType.transfer, 2: TxType.withdrawal}
STATUS_CODES = {0: TxStatus.success, 1: TxStatus.failure, 2: TxStatus.pending}

_U64_MAX = 2**64 - 1
_I64_MIN, _I64_MAX = -(2**63), 2**63 - 1
_DIGITS = re.compile(r"[0-9]+")


class BinaryDecoder:
    format_name = "bin"

    def decode(self, data: bytes) -> List[TransactionRecord]:
        records: list[TransactionRecord] = []
        view = memoryview(data)
        offset = 0
        ordinal = 0
        while offset < len(view):
            ordinal += 1
            record, offset = self._decode_one(view, offset, ordinal)
            records.append(record)
        return records

    def encode(self, records: Sequence[TransactionRecord]) -> bytes:
        return b"".join(
            encode_record(record, ordinal) for ordinal, record in enumerate(records, start=1)
        )

    def _decode_one(self, view: memoryview, start: int, ordinal: int) -> tuple[TransactionRecord, int]:
        if len(view) - start < _PREFIX.size:
            raise ParseError("truncated record header", offset=start)
        magic, body_size = _PREFIX.unpack_from(view, start)
        if magic != MAGIC:
            raise ParseError(f"invalid magic number {bytes(magic)!r}", offset=start)
        if body_size < _FIXED_BODY.size:
            raise ParseError(
                f"record body size {body_size} is below the fixed {_FIXED_BODY.size} bytes",
                offset=start,
            )

        body_start = start + _PREFIX.size
        body_end = body_start + body_size
        if body_end > len(view):
            raise ParseError(
                f"truncated record: expected {body_size} body bytes, "
                f"found {len(view) - body_start}",
                offset=start,
            )

        (
            tx_id,
            tx_type_code,
            from_user_id,
            to_user_id,
            minor_units,
            scale,
            currency_raw,
            timestamp_ms,
            status_code,
            desc_len,
        ) = _FIXED_BODY.unpack_from(view, body_start)

        if _FIXED_BODY.size + desc_len != body_size:
            raise ParseError(
                f"description length {desc_len} disagrees with body size {body_size}",
                offset=start,
                field="description",
            )

        tx_type = TX_TYPE_CODES.get(tx_type_code)
        if tx_type is None:
            raise ParseError(f"unknown tx_type code {tx_type_code}", offset=start, field="tx_type")
        status = STATUS_CODES.get(status_code)
        if status is None:
            raise ParseError(f"unknown status code {status_code}", offset=start, field="status")

        try:
            currency = bytes(currency_raw).decode("ascii")
        except UnicodeDecodeError as exc:
            raise ParseError("currency is not ASCII", offset=start, field="currency") from exc

        desc_start = body_start + _FIXED_BODY.size
        try:
            description = bytes(view[desc_start:body_end]).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ParseError(
                f"description is not valid UTF-8: {exc.reason}",
                offset=desc_start + exc.start,
                field="description",
            ) from exc

        record = build_record(
            {
                "id": tx_id,
                "tx_type": tx_type,
                "from_user_id": from_user_id,
                "to_user_id": to_user_id,
                "amount": Decimal(minor_units).scaleb(-scale),
                "currency": currency,
                "timestamp": timestamp_ms,
                "status": status,
                "description": description,
            },
            offset=start,
            record=ordinal,
        )
        return record, body_end


def encode_record(record: TransactionRecord, ordinal: Optional[int] = None) -> bytes:
    """Serialize ``record`` in the layout :class:`BinaryDecoder` reads.

    Raises :class:`EncodeError` when a value does not fit the fixed-width
    layout: identifiers must be unsigned 64-bit integers and timestamps whole
    milliseconds after the epoch.
    """
    minor_units, scale = _minor_units(record.amount)
    if not _I64_MIN <= minor_units <= _I64_MAX or scale > 255:
        raise EncodeError("amount does not fit 64-bit minor units", record=ordinal, field="amount")

    elapsed = record.timestamp - _EPOCH
    if elapsed.microseconds % 1000:
        raise EncodeError("timestamp has sub-millisecond precision", record=ordinal, field="timestamp")
    timestamp_ms = elapsed // timedelta(milliseconds=1)
    if not 0 <= timestamp_ms <= _U64_MAX:
        raise EncodeError("timestamp is before the epoch", record=ordinal, field="timestamp")

    description = record.description.encode("utf-8")
    try:
        body = _FIXED_BODY.pack(
            _unsigned(record.id, "id", ordinal),
            _code_for(TX_TYPE_CODES, record.tx_type),
            _unsigned(record.from_user_id, "from_user_id", ordinal),
            _unsigned(record.to_user_id, "to_user_id", ordinal),
            minor_units,
            scale,
            record.currency.encode("ascii"),
            timestamp_ms,
            _code_for(STATUS_CODES, record.status),
            len(description),
        ) + description
    except struct.error as exc:
        raise EncodeError(str(exc), record=ordinal) from exc
    return _PREFIX.pack(MAGIC, len(body)) + body


def _minor_units(amount: Decimal) -> tuple[int, int]:
    # Exact integer arithmetic; Decimal.scaleb would round at context precision.
    sign, digits, exponent = amount.as_tuple()
    minor = int("".join(map(str, digits)) or "0")
    if exponent > 0:
        minor *= 10**exponent
    return (-minor if sign else minor), max(0, -exponent)


def _unsigned(value: str, field: str, ordinal: Optional[int]) -> int:
    if not _DIGITS.fullmatch(value) or int(value) > _U64_MAX:
        raise EncodeError(f"{value!r} is not an unsigned 64-bit identifier", record=ordinal, field=field)
    return int(value)


def _code_for(codes: dict, member: object) -> int:
    return next(code for code, value in codes.items() if value is member)
