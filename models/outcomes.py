"""Result values produced by a comparison run."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Tuple, Union

from models.errors import ParseError, UnsupportedFormat
from models.records import TransactionRecord


class Side(str, Enum):
    """Which of the two inputs a value refers to."""

    first = "first"
    second = "second"


@dataclass(frozen=True)
class Match:
    record_count: int

    kind = "match"


@dataclass(frozen=True)
class Mismatch:
    """First (or one of all) positional divergences in the shared prefix."""

    index: int
    left: TransactionRecord
    right: TransactionRecord
    differing_fields: FrozenSet[str]

    kind = "mismatch"


@dataclass(frozen=True)
class LengthMismatch:
    """Shared prefix agrees but one side carries extra trailing records."""

    shorter_len: int
    longer_len: int
    longer_side: Side
    extra_records: Tuple[TransactionRecord, ...]

    kind = "length_mismatch"


@dataclass(frozen=True)
class DecodeFailure:
    side: Side
    error: Union[ParseError, UnsupportedFormat]

    kind = "decode_failure"


ComparisonOutcome = Union[Match, Mismatch, LengthMismatch, DecodeFailure]
