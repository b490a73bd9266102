"""Custom exception hierarchy for the rainbow steganography engine."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional


class RainbowError(Exception):
    """Base class for all rainbow-steganography errors."""


class ConfigurationError(RainbowError):
    """Raised when user-supplied configuration is invalid."""


class UnsupportedMimeType(RainbowError):
    """Raised when no registered codec serves a MIME type for the requested role."""


class CapacityExceeded(RainbowError):
    """Raised when a codec is asked to embed more bytes than it can carry.

    A correct packetizer never triggers this; seeing it means the chunk
    planning is broken.
    """


class UnknownTechnique(RainbowError):
    """Raised when a packet names a technique that is absent from the registry."""


class AmbiguousOrUndecodable(RainbowError):
    """Raised when no candidate codec validates an untagged packet."""


class CorruptPacket(RainbowError):
    """Raised when a packet fails structural or integrity validation."""

    def __init__(self, message: str, *, technique: Optional[str] = None) -> None:
        self.technique = technique
        if technique:
            message = f"[{technique}] {message}"
        super().__init__(message)


@dataclass
class MissingChunksError(RainbowError):
    missing_indices: List[int]
    partial_payload: bytes

    def __str__(self) -> str:  # pragma: no cover - trivial
        indices = ", ".join(str(i) for i in self.missing_indices)
        return f"Missing chunks at indices: {indices}"


__all__ = [
    "AmbiguousOrUndecodable",
    "CapacityExceeded",
    "ConfigurationError",
    "CorruptPacket",
    "MissingChunksError",
    "RainbowError",
    "UnknownTechnique",
    "UnsupportedMimeType",
]
