"""Unit tests for the positional comparison logic."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from models.outcomes import LengthMismatch, Match, Mismatch, Side
from models.records import TransactionRecord, TxStatus, TxType
from services.comparator import Comparator


def _record(tx_id: str, amount: str = "100", currency: str = "USD", **overrides) -> TransactionRecord:
    """Helper to build deterministic transaction records."""

    values = dict(
        id=tx_id,
        tx_type=TxType.transfer,
        from_user_id="1",
        to_user_id="2",
        amount=Decimal(amount),
        currency=currency,
        timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
        status=TxStatus.success,
        description=f"payment {tx_id}",
    )
    values.update(overrides)
    return TransactionRecord(**values)


def test_two_empty_sequences_match() -> None:
    assert Comparator().compare([], []) == Match(record_count=0)


def test_sequence_matches_itself() -> None:
    records = [_record("1"), _record("2"), _record("2")]

    assert Comparator().compare(records, list(records)) == Match(record_count=3)


def test_single_field_difference_is_localized() -> None:
    left = [_record("1", amount="100")]
    right = [_record("1", amount="101")]

    outcome = Comparator().compare(left, right)

    assert isinstance(outcome, Mismatch)
    assert outcome.index == 0
    assert outcome.differing_fields == {"amount"}
    assert outcome.left is left[0]
    assert outcome.right is right[0]


def test_currency_is_compared_with_amount() -> None:
    outcome = Comparator().compare([_record("1", currency="USD")], [_record("1", currency="EUR")])

    assert isinstance(outcome, Mismatch)
    assert outcome.differing_fields == {"currency"}


def test_first_difference_wins_over_later_ones() -> None:
    left = [_record("1"), _record("2"), _record("3")]
    right = [_record("1"), _record("2", description="changed"), _record("x")]

    outcome = Comparator().compare(left, right)

    assert isinstance(outcome, Mismatch)
    assert outcome.index == 1
    assert outcome.differing_fields == {"description"}


def test_mismatch_in_prefix_takes_precedence_over_length() -> None:
    left = [_record("1"), _record("2")]
    right = [_record("9"), _record("2"), _record("3")]

    outcome = Comparator().compare(left, right)

    assert isinstance(outcome, Mismatch)
    assert outcome.index == 0


def test_longer_second_sequence_reports_extra_tail() -> None:
    left = [_record("1"), _record("2")]
    right = [_record("1"), _record("2"), _record("3")]

    outcome = Comparator().compare(left, right)

    assert outcome == LengthMismatch(
        shorter_len=2,
        longer_len=3,
        longer_side=Side.second,
        extra_records=(right[2],),
    )


def test_longer_first_sequence_reports_extra_tail() -> None:
    left = [_record("1"), _record("2"), _record("3"), _record("4")]
    right = [_record("1")]

    outcome = Comparator().compare(left, right)

    assert isinstance(outcome, LengthMismatch)
    assert outcome.longer_side is Side.first
    assert (outcome.shorter_len, outcome.longer_len) == (1, 4)
    assert outcome.extra_records == tuple(left[1:])


def test_empty_against_non_empty_is_length_mismatch() -> None:
    outcome = Comparator().compare([], [_record("1")])

    assert isinstance(outcome, LengthMismatch)
    assert outcome.shorter_len == 0
    assert outcome.extra_records == (_record("1"),)


def test_iter_mismatches_lists_every_divergent_index() -> None:
    left = [_record("1"), _record("2"), _record("3"), _record("4")]
    right = [_record("1", status=TxStatus.failure), _record("2"), _record("3", amount="5"), _record("4")]

    mismatches = list(Comparator().iter_mismatches(left, right))

    assert [item.index for item in mismatches] == [0, 2]
    assert mismatches[0].differing_fields == {"status"}
    assert mismatches[1].differing_fields == {"amount"}
