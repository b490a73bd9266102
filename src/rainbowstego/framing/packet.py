"""Packet values and the framing tag carried in a cookie."""

from __future__ import annotations

import base64
import binascii
import json
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Tuple

from ..codec import Role
from ..exceptions import CorruptPacket

SUPPORTED_VERSION = 1

# Cookie names that may carry the tag; decoy cookies never use these.
TAG_COOKIE_NAMES: Tuple[str, ...] = ("sessionId", "visitor", "track", "JSESSIONID", "cf_id")


@dataclass(frozen=True)
class PacketInfo:
    """Framing metadata for one packet."""

    index: int
    total: int
    length: int
    technique: str
    crc: int
    timestamp: int = field(default_factory=lambda: int(time.time()))
    version: int = SUPPORTED_VERSION

    def __post_init__(self) -> None:  # pragma: no cover - dataclass hook
        if self.version != SUPPORTED_VERSION:
            raise ValueError(f"Unsupported tag version: {self.version!r}")
        if self.index < 0:
            raise ValueError("'idx' must be non-negative")
        if self.total <= 0 or self.index >= self.total:
            raise ValueError("'total' must be positive and idx < total")
        if self.length < 0:
            raise ValueError("'len' must be non-negative")
        if not 0 <= self.crc <= 0xFFFFFFFF:
            raise ValueError("'crc' must be an unsigned 32-bit integer")
        if not self.technique:
            raise ValueError("'t' must name a technique")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "v": self.version,
            "ts": self.timestamp,
            "idx": self.index,
            "total": self.total,
            "len": self.length,
            "t": self.technique,
            "crc": self.crc,
        }

    def to_cookie(self) -> str:
        raw = json.dumps(self.to_dict(), separators=(",", ":"), sort_keys=True).encode("utf-8")
        return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")

    @classmethod
    def from_cookie(cls, value: str) -> "PacketInfo":
        try:
            padded = value + "=" * (-len(value) % 4)
            data = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8"))
        except (ValueError, binascii.Error) as exc:
            raise CorruptPacket("packet tag is not valid base64 JSON") from exc
        if not isinstance(data, dict):
            raise CorruptPacket("packet tag must decode to an object")
        for name in ("v", "ts", "idx", "total", "len", "crc"):
            number = data.get(name)
            if not isinstance(number, int) or isinstance(number, bool):
                raise CorruptPacket(f"packet tag field '{name}' must be an integer")
        if not isinstance(data.get("t"), str):
            raise CorruptPacket("packet tag field 't' must be a string")
        try:
            return cls(
                index=data["idx"],
                total=data["total"],
                length=data["len"],
                technique=data["t"],
                crc=data["crc"],
                timestamp=data["ts"],
                version=data["v"],
            )
        except ValueError as exc:
            raise CorruptPacket(f"invalid packet tag: {exc}") from exc


def find_tag(cookies: Iterable[Tuple[str, str]]) -> Optional[PacketInfo]:
    """Return the tag among *cookies*, or ``None`` for an untagged message.

    A cookie with a tag name that does not parse is a :class:`CorruptPacket`.
    """

    tags = [value for name, value in cookies if name in TAG_COOKIE_NAMES]
    if not tags:
        return None
    if len(tags) > 1:
        raise CorruptPacket(f"message carries {len(tags)} packet tags")
    return PacketInfo.from_cookie(tags[0])


@dataclass(frozen=True)
class Packet:
    """One complete HTTP message carrying an encoded chunk."""

    index: int
    total: int
    technique: str
    mime_type: str
    role: Role
    data: bytes

    def __len__(self) -> int:
        return len(self.data)

    @property
    def is_last(self) -> bool:
        return self.index + 1 >= self.total


__all__ = ["Packet", "PacketInfo", "SUPPORTED_VERSION", "TAG_COOKIE_NAMES", "find_tag"]
