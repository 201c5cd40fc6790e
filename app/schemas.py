"""Pydantic schemas for the HTTP API and JSON report output."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field

from models.errors import ParseError
from models.outcomes import ComparisonOutcome, DecodeFailure, LengthMismatch, Match, Mismatch
from models.records import RECORD_FIELDS, TransactionRecord


class OutcomeStatus(str, Enum):
    """Comparison outcome kinds exposed via the API."""

    match = "match"
    mismatch = "mismatch"
    length_mismatch = "length_mismatch"
    decode_failure = "decode_failure"


class FormatsResponse(BaseModel):
    formats: List[str]


class RecordPayload(BaseModel):
    """Serialized transaction; amounts travel as strings to stay exact."""

    id: str
    tx_type: str
    from_user_id: str
    to_user_id: str
    amount: str
    currency: str
    timestamp: datetime
    status: str
    description: str

    @classmethod
    def from_record(cls, record: TransactionRecord) -> "RecordPayload":
        return cls(
            id=record.id,
            tx_type=record.tx_type.value,
            from_user_id=record.from_user_id,
            to_user_id=record.to_user_id,
            amount=str(record.amount),
            currency=record.currency,
            timestamp=record.timestamp,
            status=record.status.value,
            description=record.description,
        )


class MismatchDetail(BaseModel):
    index: int = Field(..., ge=0, description="Zero-based position of the diverging pair.")
    differing_fields: List[str]
    left: RecordPayload
    right: RecordPayload

    @classmethod
    def from_outcome(cls, mismatch: Mismatch) -> "MismatchDetail":
        return cls(
            index=mismatch.index,
            differing_fields=[name for name in RECORD_FIELDS if name in mismatch.differing_fields],
            left=RecordPayload.from_record(mismatch.left),
            right=RecordPayload.from_record(mismatch.right),
        )


class LengthMismatchDetail(BaseModel):
    shorter_len: int = Field(..., ge=0)
    longer_len: int = Field(..., ge=0)
    longer_side: str
    extra_records: List[RecordPayload] = Field(default_factory=list)


class DecodeErrorDetail(BaseModel):
    side: str
    kind: str = Field(..., description="Either 'parse_error' or 'unsupported_format'.")
    message: str
    line: Optional[int] = None
    offset: Optional[int] = None
    record: Optional[int] = None
    field: Optional[str] = None


class ComparisonReport(BaseModel):
    """Full, presentation-neutral description of a comparison outcome."""

    status: OutcomeStatus
    record_count: Optional[int] = Field(
        default=None, description="Number of records on each side when they match."
    )
    mismatch: Optional[MismatchDetail] = None
    mismatches: Optional[List[MismatchDetail]] = None
    length_mismatch: Optional[LengthMismatchDetail] = None
    error: Optional[DecodeErrorDetail] = None


def build_report(
    outcome: ComparisonOutcome,
    mismatches: Optional[Sequence[Mismatch]] = None,
) -> ComparisonReport:
    report = ComparisonReport(status=OutcomeStatus(outcome.kind))
    if isinstance(outcome, Match):
        report.record_count = outcome.record_count
    elif isinstance(outcome, Mismatch):
        report.mismatch = MismatchDetail.from_outcome(outcome)
    elif isinstance(outcome, LengthMismatch):
        report.length_mismatch = LengthMismatchDetail(
            shorter_len=outcome.shorter_len,
            longer_len=outcome.longer_len,
            longer_side=outcome.longer_side.value,
            extra_records=[RecordPayload.from_record(record) for record in outcome.extra_records],
        )
    elif isinstance(outcome, DecodeFailure):
        report.error = _error_detail(outcome)

    if mismatches is not None:
        report.mismatches = [MismatchDetail.from_outcome(item) for item in mismatches]
    return report


def _error_detail(failure: DecodeFailure) -> DecodeErrorDetail:
    error = failure.error
    if isinstance(error, ParseError):
        return DecodeErrorDetail(
            side=failure.side.value,
            kind="parse_error",
            message=error.message,
            line=error.line,
            offset=error.offset,
            record=error.record,
            field=error.field,
        )
    return DecodeErrorDetail(
        side=failure.side.value,
        kind="unsupported_format",
        message=str(error),
    )
