"""Re-encoding a transaction log from one format into another."""

from __future__ import annotations

import logging
import time
from functools import lru_cache

from decoders.registry import DecoderRegistry, build_default_registry
from services.pipeline import StreamSource

logger = logging.getLogger(__name__)


class ConversionService:
    def __init__(self, registry: DecoderRegistry) -> None:
        self.registry = registry

    def convert(self, source: StreamSource, output_format: str) -> bytes:
        """Decode ``source`` and encode its records as ``output_format``.

        Both formats are resolved before any decoding, so an unknown output
        format fails without reading the input. Raises ``UnsupportedFormat``,
        ``ParseError`` or ``EncodeError``.
        """
        decoder = self.registry.get(source.format_name)
        encoder = self.registry.get(output_format)
        start_time = time.perf_counter()
        records = decoder.decode(source.data)
        payload = encoder.encode(records)
        logger.info(
            "Conversion finished",
            extra={
                "format_name": decoder.format_name,
                "target_format": encoder.format_name,
                "source": source.label,
                "record_count": len(records),
                "decode_ms": int((time.perf_counter() - start_time) * 1000),
            },
        )
        return payload


@lru_cache
def build_default_converter() -> ConversionService:
    return ConversionService(registry=build_default_registry())
