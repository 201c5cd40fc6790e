"""Canonical transaction model shared by every decoder and the comparator."""

from __future__ import annotations

import re
from dataclasses import dataclass, fields
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, FrozenSet, Tuple, Union

from models.errors import FieldError


class TxType(str, Enum):
    """Kind of money movement."""

    deposit = "DEPOSIT"
    transfer = "TRANSFER"
    withdrawal = "WITHDRAWAL"


class TxStatus(str, Enum):
    """Settlement state of a transaction."""

    success = "SUCCESS"
    failure = "FAILURE"
    pending = "PENDING"


_AMOUNT_PATTERN = re.compile(r"[+-]?\d+(\.\d+)?")
_CURRENCY_PATTERN = re.compile(r"[A-Z]{3}")
_EPOCH_MILLIS_PATTERN = re.compile(r"\d+")


@dataclass(frozen=True, slots=True)
class TransactionRecord:
    """A single transaction in canonical, format-independent form."""

    id: str
    tx_type: TxType
    from_user_id: str
    to_user_id: str
    amount: Decimal
    currency: str
    timestamp: datetime
    status: TxStatus
    description: str

    def __post_init__(self) -> None:
        for name in ("id", "from_user_id", "to_user_id"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value:
                raise FieldError(name, value, "must be a non-empty string")
        if not isinstance(self.tx_type, TxType):
            raise FieldError("tx_type", self.tx_type, "must be a TxType")
        if not isinstance(self.amount, Decimal) or not self.amount.is_finite():
            raise FieldError("amount", self.amount, "must be a finite Decimal")
        if not isinstance(self.currency, str) or not _CURRENCY_PATTERN.fullmatch(self.currency):
            raise FieldError("currency", self.currency, "must be three upper-case letters")
        if not isinstance(self.timestamp, datetime) or self.timestamp.tzinfo is None:
            raise FieldError("timestamp", self.timestamp, "must be a timezone-aware datetime")
        if not isinstance(self.status, TxStatus):
            raise FieldError("status", self.status, "must be a TxStatus")
        if not isinstance(self.description, str):
            raise FieldError("description", self.description, "must be a string")

    @classmethod
    def from_fields(
        cls,
        *,
        id: Any,
        tx_type: Any,
        from_user_id: Any,
        to_user_id: Any,
        amount: Any,
        currency: Any,
        timestamp: Any,
        status: Any,
        description: Any,
    ) -> "TransactionRecord":
        """Canonicalize parsed primitive values into a record.

        Fields are validated in canonical order and the first failure raises
        :class:`FieldError` naming that field.
        """
        return cls(
            id=parse_identifier("id", id),
            tx_type=parse_enum("tx_type", tx_type, TxType),
            from_user_id=parse_identifier("from_user_id", from_user_id),
            to_user_id=parse_identifier("to_user_id", to_user_id),
            amount=parse_amount(amount),
            currency=parse_currency(currency),
            timestamp=parse_timestamp(timestamp),
            status=parse_enum("status", status, TxStatus),
            description=parse_description(description),
        )

    def differing_fields(self, other: "TransactionRecord") -> FrozenSet[str]:
        return frozenset(
            name for name in RECORD_FIELDS if getattr(self, name) != getattr(other, name)
        )


RECORD_FIELDS: Tuple[str, ...] = tuple(f.name for f in fields(TransactionRecord))


def parse_identifier(field: str, value: Any) -> str:
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise FieldError(field, value, "expected a string or integer identifier")
    if isinstance(value, int):
        if value < 0:
            raise FieldError(field, value, "identifier must not be negative")
        return str(value)
    candidate = value.strip()
    if not candidate:
        raise FieldError(field, value, "identifier is empty")
    return candidate


def parse_enum(field: str, value: Any, enum_type: type) -> Any:
    if isinstance(value, enum_type):
        return value
    if not isinstance(value, str):
        raise FieldError(field, value, f"expected one of {_choices(enum_type)}")
    try:
        return enum_type(value.strip().upper())
    except ValueError as exc:
        raise FieldError(field, value, f"expected one of {_choices(enum_type)}") from exc


def _choices(enum_type: type) -> str:
    return ", ".join(member.value for member in enum_type)


def parse_amount(value: Union[str, int, Decimal]) -> Decimal:
    """Parse a fixed-point amount without going through binary floats."""
    if isinstance(value, bool):
        raise FieldError("amount", value, "expected a decimal number")
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise FieldError("amount", value, "amount must be finite")
        if value.as_tuple().exponent > 0:
            raise FieldError("amount", value, "not a fixed-precision decimal number")
        return value
    if not isinstance(value, str):
        raise FieldError("amount", value, "expected a decimal number")
    candidate = value.strip()
    if not _AMOUNT_PATTERN.fullmatch(candidate):
        raise FieldError("amount", value, "not a fixed-precision decimal number")
    try:
        return Decimal(candidate)
    except InvalidOperation as exc:  # pragma: no cover - the pattern already guards this
        raise FieldError("amount", value, "not a fixed-precision decimal number") from exc


def parse_currency(value: Any) -> str:
    if not isinstance(value, str):
        raise FieldError("currency", value, "expected a three-letter currency code")
    candidate = value.strip().upper()
    if not _CURRENCY_PATTERN.fullmatch(candidate):
        raise FieldError("currency", value, "expected a three-letter currency code")
    return candidate


def parse_timestamp(value: Union[str, int, datetime]) -> datetime:
    """Accept ISO-8601 strings or integer epoch milliseconds, normalized to UTC.

    A string made only of digits is always read as epoch milliseconds, so the
    ISO basic date form (``20240101``) is not accepted as a date.
    """
    if isinstance(value, bool):
        raise FieldError("timestamp", value, "expected an ISO-8601 string or epoch milliseconds")
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, int):
        parsed = _from_epoch_millis(value)
    elif isinstance(value, str):
        candidate = value.strip()
        if not candidate:
            raise FieldError("timestamp", value, "timestamp is empty")
        if _EPOCH_MILLIS_PATTERN.fullmatch(candidate):
            try:
                millis = int(candidate)
            except ValueError as exc:
                raise FieldError("timestamp", value, "epoch milliseconds out of range") from exc
            parsed = _from_epoch_millis(millis)
        else:
            if candidate.endswith(("Z", "z")):
                candidate = candidate[:-1] + "+00:00"
            try:
                parsed = datetime.fromisoformat(candidate)
            except ValueError as exc:
                raise FieldError("timestamp", value, "invalid timestamp format") from exc
    else:
        raise FieldError("timestamp", value, "expected an ISO-8601 string or epoch milliseconds")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _from_epoch_millis(value: int) -> datetime:
    if value < 0:
        raise FieldError("timestamp", value, "epoch milliseconds must not be negative")
    seconds, millis = divmod(value, 1000)
    try:
        base = datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise FieldError("timestamp", value, "epoch milliseconds out of range") from exc
    return base.replace(microsecond=millis * 1000)


def parse_description(value: Any) -> str:
    if not isinstance(value, str):
        raise FieldError("description", value, "expected text")
    return value
