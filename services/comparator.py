"""Positional comparison of two transaction sequences."""

from __future__ import annotations

from typing import Iterator, Sequence, Union

from models.outcomes import LengthMismatch, Match, Mismatch, Side
from models.records import TransactionRecord


class Comparator:
    """Pure, index-aligned comparison; no realignment of inserted or reordered records."""

    def compare(
        self,
        left: Sequence[TransactionRecord],
        right: Sequence[TransactionRecord],
    ) -> Union[Match, Mismatch, LengthMismatch]:
        first = next(self.iter_mismatches(left, right), None)
        if first is not None:
            return first

        if len(left) == len(right):
            return Match(record_count=len(left))

        if len(left) > len(right):
            longer, shorter, longer_side = left, right, Side.first
        else:
            longer, shorter, longer_side = right, left, Side.second
        return LengthMismatch(
            shorter_len=len(shorter),
            longer_len=len(longer),
            longer_side=longer_side,
            extra_records=tuple(longer[len(shorter):]),
        )

    def iter_mismatches(
        self,
        left: Sequence[TransactionRecord],
        right: Sequence[TransactionRecord],
    ) -> Iterator[Mismatch]:
        """Yield every differing index of the shared prefix, in order."""
        for index, (left_record, right_record) in enumerate(zip(left, right)):
            if left_record == right_record:
                continue
            yield Mismatch(
                index=index,
                left=left_record,
                right=right_record,
                differing_fields=left_record.differing_fields(right_record),
            )
