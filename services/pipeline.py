"""Orchestration of the two decodes and the comparison."""

from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional, Tuple, Union

from decoders.registry import DecoderRegistry, build_default_registry
from models.errors import ParseError, UnsupportedFormat
from models.outcomes import ComparisonOutcome, DecodeFailure, Mismatch, Side
from models.records import TransactionRecord
from services.comparator import Comparator
from settings import get_settings

logger = logging.getLogger(__name__)

DecodeError = Union[ParseError, UnsupportedFormat]
DecodedPair = Tuple[List[TransactionRecord], List[TransactionRecord]]


@dataclass(frozen=True)
class StreamSource:
    """One side of a comparison as handed in by the caller."""

    data: bytes
    format_name: str
    label: Optional[str] = None


class ComparisonService:
    """Decodes both inputs, optionally in parallel, then runs the comparator."""

    def __init__(
        self,
        registry: DecoderRegistry,
        comparator: Comparator,
        workers: int = 2,
        parallel: bool = True,
    ) -> None:
        self.registry = registry
        self.comparator = comparator
        self.parallel = parallel
        self.executor: Optional[ThreadPoolExecutor] = (
            ThreadPoolExecutor(max_workers=workers, thread_name_prefix="decode") if parallel else None
        )

    def decode_side(self, side: Side, source: StreamSource) -> List[TransactionRecord]:
        """Decode one input; raises ``ParseError`` or ``UnsupportedFormat``."""
        decoder = self.registry.get(source.format_name)
        start_time = time.perf_counter()
        records = decoder.decode(source.data)
        decode_ms = int((time.perf_counter() - start_time) * 1000)
        logger.debug(
            "Decoded input",
            extra={
                "side": side.value,
                "format_name": decoder.format_name,
                "source": source.label,
                "record_count": len(records),
                "decode_ms": decode_ms,
            },
        )
        return records

    def decode_both(
        self, first: StreamSource, second: StreamSource
    ) -> Union[DecodedPair, DecodeFailure]:
        """Decode both sides; the first side's failure wins when both fail."""
        if self.executor is not None:
            futures = (
                self.executor.submit(self.decode_side, Side.first, first),
                self.executor.submit(self.decode_side, Side.second, second),
            )
            wait(futures)
            results = [self._await(future) for future in futures]
        else:
            results = [
                self._run(Side.first, first),
                self._run(Side.second, second),
            ]

        for side, result, source in zip(Side, results, (first, second)):
            if isinstance(result, (ParseError, UnsupportedFormat)):
                self._log_failure(side, source, result)
                return DecodeFailure(side=side, error=result)
        left, right = results
        return left, right  # type: ignore[return-value]

    def compare_streams(self, first: StreamSource, second: StreamSource) -> ComparisonOutcome:
        decoded = self.decode_both(first, second)
        if isinstance(decoded, DecodeFailure):
            return decoded
        left, right = decoded
        outcome = self.comparator.compare(left, right)
        logger.info(
            "Comparison finished",
            extra={
                "outcome": outcome.kind,
                "index": getattr(outcome, "index", None),
                "record_count": max(len(left), len(right)),
            },
        )
        return outcome

    def collect_mismatches(
        self, first: StreamSource, second: StreamSource
    ) -> Union[Tuple[ComparisonOutcome, List[Mismatch]], DecodeFailure]:
        """Like :meth:`compare_streams`, plus every positional mismatch."""
        decoded = self.decode_both(first, second)
        if isinstance(decoded, DecodeFailure):
            return decoded
        left, right = decoded
        outcome = self.comparator.compare(left, right)
        mismatches = list(self.comparator.iter_mismatches(left, right))
        logger.info(
            "Comparison finished",
            extra={"outcome": outcome.kind, "record_count": max(len(left), len(right))},
        )
        return outcome, mismatches

    def shutdown(self) -> None:
        if self.executor is not None:
            self.executor.shutdown(wait=False, cancel_futures=True)

    def _run(self, side: Side, source: StreamSource) -> Union[List[TransactionRecord], DecodeError]:
        try:
            return self.decode_side(side, source)
        except (ParseError, UnsupportedFormat) as exc:
            return exc

    @staticmethod
    def _await(
        future: "Future[List[TransactionRecord]]"
    ) -> Union[List[TransactionRecord], DecodeError]:
        try:
            return future.result()
        except (ParseError, UnsupportedFormat) as exc:
            return exc

    @staticmethod
    def _log_failure(side: Side, source: StreamSource, error: DecodeError) -> None:
        logger.warning(
            "Decode failed: %s",
            error,
            extra={
                "side": side.value,
                "format_name": source.format_name,
                "source": source.label,
                "line": getattr(error, "line", None),
                "field": getattr(error, "field", None),
            },
        )


@lru_cache
def build_default_service() -> ComparisonService:
    """Factory that wires the service from environment settings."""
    settings = get_settings()
    return ComparisonService(
        registry=build_default_registry(),
        comparator=Comparator(),
        workers=settings.decode_workers,
        parallel=settings.decode_parallel,
    )
