"""Delimited-text decoder for CSV transaction exports."""

from __future__ import annotations

import csv
import io
from typing import Dict, List, Sequence

from decoders.base import (
    COLUMN_NAMES,
    EXPECTED_COLUMNS,
    build_record,
    decode_text,
    is_blank,
    record_values,
)
from models.errors import ParseError
from models.records import TransactionRecord


class CsvDecoder:
    """Decode a headed CSV file with one transaction per row.

    The header names the nine canonical columns in any order. Quoting follows
    RFC 4180: quoted cells may hold commas or newlines and a literal quote is
    written as ``""``. Every cell except ``DESCRIPTION`` is stripped.
    """

    format_name = "csv"

    def decode(self, data: bytes) -> List[TransactionRecord]:
        text = decode_text(data)
        if is_blank(text):
            return []

        reader = csv.reader(io.StringIO(text, newline=""), strict=True)
        try:
            header = next(reader)
        except csv.Error as exc:
            raise ParseError(f"malformed CSV header: {exc}", line=1) from exc
        columns = self._resolve_header(header)

        records: list[TransactionRecord] = []
        row_start = reader.line_num + 1
        while True:
            try:
                row = next(reader)
            except StopIteration:
                break
            except csv.Error as exc:
                raise ParseError(f"malformed CSV row: {exc}", line=row_start) from exc

            if not row or (len(row) == 1 and is_blank(row[0])):
                row_start = reader.line_num + 1
                continue

            if len(row) != len(columns):
                raise ParseError(
                    f"expected {len(columns)} columns, found {len(row)}",
                    line=row_start,
                )

            values = {}
            for position, field in columns.items():
                cell = row[position]
                values[field] = cell if field == "description" else cell.strip()
            records.append(build_record(values, line=row_start))
            row_start = reader.line_num + 1

        return records

    def encode(self, records: Sequence[TransactionRecord]) -> bytes:
        buffer = io.StringIO(newline="")
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(EXPECTED_COLUMNS)
        for record in records:
            writer.writerow(record_values(record).values())
        return buffer.getvalue().encode("utf-8")

    @staticmethod
    def _resolve_header(header: List[str]) -> Dict[int, str]:
        normalized = [name.strip().upper() for name in header]
        unknown = sorted({name for name in normalized if name not in COLUMN_NAMES})
        if unknown:
            raise ParseError(f"CSV header has unknown columns: {', '.join(unknown)}", line=1)
        duplicates = sorted({name for name in normalized if normalized.count(name) > 1})
        if duplicates:
            raise ParseError(f"CSV header repeats columns: {', '.join(duplicates)}", line=1)
        missing = [name for name in EXPECTED_COLUMNS if name not in normalized]
        if missing:
            raise ParseError(
                f"CSV missing required columns: {', '.join(missing)}", line=1
            )
        return {position: COLUMN_NAMES[name] for position, name in enumerate(normalized)}
