"""Hide arbitrary bytes inside realistic HTTP traffic."""

from .api import BandwidthStats, EncodeResult, Rainbow
from .codec import Role
from .config import EngineConfig
from .dispatch import DecodeResult
from .exceptions import (
    AmbiguousOrUndecodable,
    CapacityExceeded,
    ConfigurationError,
    CorruptPacket,
    MissingChunksError,
    RainbowError,
    UnknownTechnique,
    UnsupportedMimeType,
)
from .framing import Packet
from .registry import CodecRegistry, default_registry

__all__ = [
    "AmbiguousOrUndecodable",
    "BandwidthStats",
    "CapacityExceeded",
    "CodecRegistry",
    "ConfigurationError",
    "CorruptPacket",
    "DecodeResult",
    "EncodeResult",
    "EngineConfig",
    "MissingChunksError",
    "Packet",
    "Rainbow",
    "RainbowError",
    "Role",
    "UnknownTechnique",
    "UnsupportedMimeType",
    "default_registry",
]
