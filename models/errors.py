"""Error taxonomy raised by canonicalization, decoding and format lookup."""

from __future__ import annotations

from typing import Any, Optional


class TransactionCompareError(Exception):
    """Base class for all errors raised by the comparison core."""


class FieldError(TransactionCompareError):
    """A single field failed semantic validation."""

    def __init__(self, field: str, value: Any, reason: str) -> None:
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"{field}: {reason} (got {value!r})")


class ParseError(TransactionCompareError):
    """Structural or semantic malformation of an input stream.

    ``line`` is 1-based, ``offset`` is a 0-based byte/character offset and
    ``record`` is the 1-based ordinal of a record for formats that have no
    line structure. Any of them may be unknown.
    """

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        field: Optional[str] = None,
        offset: Optional[int] = None,
        record: Optional[int] = None,
    ) -> None:
        self.message = message
        self.line = line
        self.field = field
        self.offset = offset
        self.record = record
        super().__init__(self._render())

    @property
    def location(self) -> Optional[str]:
        if self.line is not None:
            return f"line {self.line}"
        if self.offset is not None:
            return f"byte {self.offset}"
        if self.record is not None:
            return f"record {self.record}"
        return None

    def _render(self) -> str:
        parts: list[str] = []
        if self.location:
            parts.append(self.location)
        if self.field:
            parts.append(f"field {self.field}")
        prefix = ", ".join(parts)
        return f"{prefix}: {self.message}" if prefix else self.message


class UnsupportedFormat(TransactionCompareError):
    """No decoder is registered for the requested format identifier."""

    def __init__(self, identifier: str) -> None:
        self.identifier = identifier
        super().__init__(f"Unsupported format: {identifier!r}")


class EncodeError(TransactionCompareError):
    """A record cannot be represented in the requested output format."""

    def __init__(self, message: str, record: Optional[int] = None, field: Optional[str] = None) -> None:
        self.message = message
        self.record = record
        self.field = field
        prefix = ", ".join(
            part
            for part in (
                f"record {record}" if record is not None else None,
                f"field {field}" if field else None,
            )
            if part
        )
        super().__init__(f"{prefix}: {message}" if prefix else message)
