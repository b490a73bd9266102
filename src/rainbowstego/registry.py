"""Catalog of carrier codecs keyed by technique and MIME type."""
from __future__ import annotations

from functools import lru_cache
from typing import Dict, Iterable, List, Optional, Tuple

from .codec import ALL_CODECS, CarrierCodec, Role
from .exceptions import ConfigurationError, UnknownTechnique, UnsupportedMimeType


def normalize_mime(mime_type: str) -> str:
    """Drop parameters such as ``; charset=utf-8`` and lower-case the type."""

    return mime_type.split(";", 1)[0].strip().lower()


class CodecRegistry:
    """Read-only set of codecs in a fixed priority order.

    The order given at construction is the order used for sniffing untagged
    packets and for picking the default codec of a MIME type.
    """

    def __init__(self, codecs: Iterable[CarrierCodec]) -> None:
        ordered: List[CarrierCodec] = []
        by_name: Dict[str, CarrierCodec] = {}
        for codec in codecs:
            if not codec.technique:
                raise ConfigurationError(f"{type(codec).__name__} has no technique name")
            if codec.technique in by_name:
                raise ConfigurationError(f"duplicate technique '{codec.technique}'")
            by_name[codec.technique] = codec
            ordered.append(codec)
        self._codecs: Tuple[CarrierCodec, ...] = tuple(ordered)
        self._by_name = by_name

    def __iter__(self):
        return iter(self._codecs)

    def __len__(self) -> int:
        return len(self._codecs)

    def __contains__(self, technique: object) -> bool:
        return technique in self._by_name

    def by_technique(self, technique: str) -> CarrierCodec:
        try:
            return self._by_name[technique]
        except KeyError:
            raise UnknownTechnique(f"unknown technique '{technique}'") from None

    def compatible_codecs(self, role: Role) -> Tuple[CarrierCodec, ...]:
        return tuple(codec for codec in self._codecs if codec.supports(role))

    def codecs_for_mime(self, mime_type: str, role: Role) -> Tuple[CarrierCodec, ...]:
        wanted = normalize_mime(mime_type)
        found = tuple(codec for codec in self.compatible_codecs(role) if codec.mime_type == wanted)
        if not found:
            raise UnsupportedMimeType(f"no codec serves '{wanted}' for {role.value} traffic")
        return found

    def by_mime(self, mime_type: str, role: Role) -> CarrierCodec:
        return self.codecs_for_mime(mime_type, role)[0]

    def capacity(self, technique: str, role: Role) -> int:
        return self.by_technique(technique).capacity(role)

    def techniques(self) -> Tuple[str, ...]:
        return tuple(codec.technique for codec in self._codecs)

    def mime_types(self, role: Optional[Role] = None) -> Tuple[str, ...]:
        codecs = self._codecs if role is None else self.compatible_codecs(role)
        seen: Dict[str, None] = {}
        for codec in codecs:
            seen.setdefault(codec.mime_type, None)
        return tuple(seen)

    def restricted(self, techniques: Iterable[str]) -> "CodecRegistry":
        """Return a registry holding only *techniques*, keeping priority order."""

        wanted = set(techniques)
        unknown = wanted - set(self._by_name)
        if unknown:
            raise ConfigurationError(f"unknown techniques: {', '.join(sorted(unknown))}")
        return CodecRegistry(codec for codec in self._codecs if codec.technique in wanted)

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"CodecRegistry({', '.join(self.techniques())})"


@lru_cache(maxsize=None)
def default_registry() -> CodecRegistry:
    """The full catalog, built once per process."""

    return CodecRegistry(codec_cls() for codec_cls in ALL_CODECS)


__all__ = ["CodecRegistry", "default_registry", "normalize_mime"]
