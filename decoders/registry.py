"""Lookup from format identifiers to decoder implementations."""

from __future__ import annotations

from functools import lru_cache
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional

from decoders.base import Decoder
from decoders.binary_decoder import BinaryDecoder
from decoders.csv_decoder import CsvDecoder
from decoders.json_decoder import JsonDecoder, JsonLinesDecoder
from decoders.text_decoder import TextDecoder
from models.errors import UnsupportedFormat

DEFAULT_ALIASES = {
    "txt": "text",
    "ndjson": "jsonl",
    "binary": "bin",
}


def _normalize(identifier: str) -> str:
    return identifier.strip().lower()


class DecoderRegistry:
    """Read-only, case-insensitive mapping of format identifiers to decoders."""

    def __init__(
        self,
        decoders: Iterable[Decoder],
        aliases: Optional[Mapping[str, str]] = None,
    ) -> None:
        entries: dict[str, Decoder] = {}
        canonical: list[str] = []
        for decoder in decoders:
            name = _normalize(decoder.format_name)
            if name in entries:
                raise ValueError(f"Format {name!r} is registered more than once.")
            entries[name] = decoder
            canonical.append(name)

        for alias, target in (aliases or {}).items():
            alias_name = _normalize(alias)
            target_name = _normalize(target)
            if alias_name in entries:
                raise ValueError(f"Format {alias_name!r} is registered more than once.")
            if target_name not in entries:
                raise ValueError(f"Alias {alias_name!r} points at unknown format {target_name!r}.")
            entries[alias_name] = entries[target_name]

        self._decoders: Mapping[str, Decoder] = MappingProxyType(entries)
        self._formats = tuple(sorted(canonical))

    def get(self, identifier: str) -> Decoder:
        decoder = self._decoders.get(_normalize(identifier))
        if decoder is None:
            raise UnsupportedFormat(identifier)
        return decoder

    def formats(self) -> List[str]:
        return list(self._formats)


@lru_cache
def build_default_registry() -> DecoderRegistry:
    """Registry with every built-in format; built once per process."""
    return DecoderRegistry(
        decoders=[
            CsvDecoder(),
            TextDecoder(),
            JsonDecoder(),
            JsonLinesDecoder(),
            BinaryDecoder(),
        ],
        aliases=DEFAULT_ALIASES,
    )
