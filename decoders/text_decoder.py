"""Key/value text decoder.

Each record is a block of ``KEY: value`` lines; blocks are separated by one
or more blank lines and lines starting with ``#`` are comments::

    # opening balance
    TX_ID: 1001
    TX_TYPE: DEPOSIT
    FROM_USER_ID: 0
    TO_USER_ID: 501
    AMOUNT: 500.00
    CURRENCY: USD
    TIMESTAMP: 2023-01-01T00:00:00Z
    STATUS: SUCCESS
    DESCRIPTION: "Initial account funding"
"""

from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

from decoders.base import (
    COLUMN_NAMES,
    EXPECTED_COLUMNS,
    FIELD_COLUMNS,
    decode_text,
    is_blank,
    record_values,
)
from models.errors import EncodeError, FieldError, ParseError
from models.records import TransactionRecord

_ESCAPES = {'"': '"', "\\": "\\", "n": "\n", "t": "\t", "r": "\r"}
_ESCAPED = {char: "\\" + code for code, char in _ESCAPES.items()}


class TextDecoder:
    format_name = "text"

    def decode(self, data: bytes) -> List[TransactionRecord]:
        text = decode_text(data)
        records: list[TransactionRecord] = []
        block: list[Tuple[int, str]] = []

        for line_number, line in enumerate(text.split("\n"), start=1):
            line = line.removesuffix("\r")
            if is_blank(line):
                if block:
                    records.append(self._decode_block(block))
                    block = []
                continue
            if line.lstrip().startswith("#"):
                continue
            block.append((line_number, line))

        if block:
            records.append(self._decode_block(block))
        return records

    def encode(self, records: Sequence[TransactionRecord]) -> bytes:
        blocks: list[str] = []
        for ordinal, record in enumerate(records, start=1):
            lines: list[str] = []
            for field, value in record_values(record).items():
                column = FIELD_COLUMNS[field]
                if field == "description":
                    escaped = "".join(_ESCAPED.get(char, char) for char in value)
                    lines.append(f'{column}: "{escaped}"')
                    continue
                if "\n" in value or "\r" in value or value != value.strip():
                    raise EncodeError(
                        f"{column} value {value!r} does not fit on one line",
                        record=ordinal,
                        field=field,
                    )
                lines.append(f"{column}: {value}")
            blocks.append("\n".join(lines) + "\n")
        return "\n".join(blocks).encode("utf-8")

    def _decode_block(self, block: List[Tuple[int, str]]) -> TransactionRecord:
        values: Dict[str, str] = {}
        lines: Dict[str, int] = {}
        for line_number, line in block:
            key, separator, raw_value = line.partition(":")
            if not separator:
                raise ParseError(f"expected 'KEY: value', got {line!r}", line=line_number)
            column = key.strip().upper()
            field = COLUMN_NAMES.get(column)
            if field is None:
                raise ParseError(f"unknown key {key.strip()!r}", line=line_number)
            if field in values:
                raise ParseError(f"duplicate key {column}", line=line_number, field=field)

            if field == "description":
                values[field] = self._unquote(raw_value.strip(), line_number)
            else:
                values[field] = raw_value.strip()
            lines[field] = line_number

        first_line = block[0][0]
        for column in EXPECTED_COLUMNS:
            field = COLUMN_NAMES[column]
            if field not in values:
                raise ParseError(f"missing key {column}", line=first_line, field=field)

        try:
            return TransactionRecord.from_fields(**values)
        except FieldError as exc:
            raise ParseError(
                f"{exc.reason} (got {exc.value!r})",
                line=lines.get(exc.field, first_line),
                field=exc.field,
            ) from exc

    @staticmethod
    def _unquote(raw: str, line_number: int) -> str:
        if len(raw) < 2 or not raw.startswith('"') or not raw.endswith('"'):
            raise ParseError(
                "DESCRIPTION must be enclosed in double quotes",
                line=line_number,
                field="description",
            )
        body = raw[1:-1]
        chars: list[str] = []
        position = 0
        while position < len(body):
            char = body[position]
            if char == "\\":
                if position + 1 >= len(body):
                    raise ParseError(
                        "dangling escape at end of DESCRIPTION",
                        line=line_number,
                        field="description",
                    )
                escaped = body[position + 1]
                if escaped not in _ESCAPES:
                    raise ParseError(
                        f"unsupported escape sequence \\{escaped}",
                        line=line_number,
                        field="description",
                    )
                chars.append(_ESCAPES[escaped])
                position += 2
                continue
            if char == '"':
                raise ParseError(
                    "unescaped quote inside DESCRIPTION",
                    line=line_number,
                    field="description",
                )
            chars.append(char)
            position += 1
        return "".join(chars)
