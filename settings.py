from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


_LOG_LEVEL_ENV = "LOG_LEVEL"
_WORKER_COUNT_ENV = "DECODE_WORKER_COUNT"
_PARALLEL_ENV = "DECODE_PARALLEL"
_MAX_INPUT_BYTES_ENV = "MAX_INPUT_BYTES"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    log_level: str
    decode_workers: int
    decode_parallel: bool
    max_input_bytes: int


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip().lower()
    if candidate in _TRUE_VALUES:
        return True
    if candidate in _FALSE_VALUES:
        return False
    return default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        log_level=_read_log_level("INFO"),
        decode_workers=_read_positive_int(_WORKER_COUNT_ENV, 2),
        decode_parallel=_read_bool(_PARALLEL_ENV, True),
        max_input_bytes=_read_positive_int(_MAX_INPUT_BYTES_ENV, 50 * 1024 * 1024),
    )
