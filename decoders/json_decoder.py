"""Structured-markup decoders: a JSON array document and JSON Lines."""

from __future__ import annotations

import json
from decimal import Decimal
from typing import Any, List, Optional, Sequence

from decoders.base import build_record, decode_text, is_blank, record_values
from models.errors import ParseError
from models.records import RECORD_FIELDS, TransactionRecord


class _ExponentLiteral(str):
    """A JSON number written with an exponent, kept as its source text."""


def _loads(text: str) -> Any:
    # Decimal keeps amounts exact; NaN/Infinity literals are refused outright.
    return json.loads(text, parse_float=_parse_number, parse_constant=_reject_constant)


def _parse_number(text: str) -> Any:
    if "e" in text or "E" in text:
        return _ExponentLiteral(text)
    return Decimal(text)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-finite number {name} is not allowed")


def _object_to_record(
    item: Any,
    line: Optional[int] = None,
    record: Optional[int] = None,
) -> TransactionRecord:
    if not isinstance(item, dict):
        raise ParseError(
            f"expected a JSON object, got {type(item).__name__}", line=line, record=record
        )
    unknown = sorted(key for key in item if key not in RECORD_FIELDS)
    if unknown:
        raise ParseError(
            f"unknown key {unknown[0]!r}", line=line, field=unknown[0], record=record
        )
    for field in RECORD_FIELDS:
        if field not in item:
            raise ParseError(f"missing key {field!r}", line=line, field=field, record=record)
        if isinstance(item[field], _ExponentLiteral):
            raise ParseError(
                f"exponent notation is not allowed (got {item[field]})",
                line=line,
                field=field,
                record=record,
            )
    return build_record(item, line=line, record=record)


class JsonDecoder:
    """Decode a top-level JSON array of transaction objects."""

    format_name = "json"

    def decode(self, data: bytes) -> List[TransactionRecord]:
        text = decode_text(data)
        if is_blank(text):
            return []
        try:
            document = _loads(text)
        except json.JSONDecodeError as exc:
            raise ParseError(f"invalid JSON: {exc.msg}", line=exc.lineno, offset=exc.pos) from exc
        except ValueError as exc:
            raise ParseError(f"invalid JSON: {exc}") from exc

        if not isinstance(document, list):
            raise ParseError("expected a top-level JSON array of transactions", line=1)
        return [
            _object_to_record(item, record=ordinal)
            for ordinal, item in enumerate(document, start=1)
        ]

    def encode(self, records: Sequence[TransactionRecord]) -> bytes:
        # Amounts are written as strings so no reader turns them into floats.
        document = [record_values(record) for record in records]
        return (json.dumps(document, indent=2, ensure_ascii=False) + "\n").encode("utf-8")


class JsonLinesDecoder:
    """Decode one JSON object per line; blank lines are skipped."""

    format_name = "jsonl"

    def decode(self, data: bytes) -> List[TransactionRecord]:
        text = decode_text(data)
        records: list[TransactionRecord] = []
        for line_number, line in enumerate(text.split("\n"), start=1):
            if is_blank(line):
                continue
            try:
                item = _loads(line)
            except json.JSONDecodeError as exc:
                raise ParseError(f"invalid JSON: {exc.msg}", line=line_number) from exc
            except ValueError as exc:
                raise ParseError(f"invalid JSON: {exc}", line=line_number) from exc
            records.append(_object_to_record(item, line=line_number))
        return records

    def encode(self, records: Sequence[TransactionRecord]) -> bytes:
        return "".join(
            json.dumps(record_values(record), ensure_ascii=False) + "\n" for record in records
        ).encode("utf-8")
