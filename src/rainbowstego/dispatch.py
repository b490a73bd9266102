"""Identify the carrier of one packet and decode it."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from .codec import Role
from .exceptions import AmbiguousOrUndecodable, CorruptPacket
from .framing.crc import crc32_matches
from .framing.http import HttpMessage, parse_message
from .framing.packet import PacketInfo, find_tag
from .registry import CodecRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecodeResult:
    """The chunk recovered from one packet.

    ``total`` is ``None`` for untagged packets, in which case ``is_last``
    cannot be known and reports ``False``.
    """

    data: bytes
    index: int
    technique: str
    total: Optional[int] = None

    @property
    def is_last(self) -> bool:
        return self.total is not None and self.index + 1 >= self.total


class DecodeDispatcher:
    def __init__(self, registry: CodecRegistry, verify_crc: bool = True) -> None:
        self.registry = registry
        self.verify_crc = verify_crc

    def decode(self, packet: bytes, index: int, role: Role) -> DecodeResult:
        message = parse_message(packet)
        if role is Role.CLIENT and not message.is_request:
            raise CorruptPacket("expected a client request, got a response")
        if role is Role.SERVER and message.is_request:
            raise CorruptPacket("expected a server response, got a request")

        info = find_tag(message.cookies())
        if info is not None:
            return self._decode_tagged(message, info, index, role)
        return self._sniff(message, index, role)

    def _decode_tagged(self, message: HttpMessage, info: PacketInfo, index: int, role: Role) -> DecodeResult:
        codec = self.registry.by_technique(info.technique)
        if not codec.supports(role):
            raise CorruptPacket(f"technique '{codec.technique}' never carries {role.value} traffic")
        if message.content_type != codec.mime_type:
            raise CorruptPacket(
                f"Content-Type {message.content_type!r} does not match technique '{codec.technique}'"
            )
        data = codec.decode(message.body, role)
        if len(data) != info.length:
            raise CorruptPacket(
                f"decoded {len(data)} bytes, tag declares {info.length}", technique=codec.technique
            )
        if self.verify_crc and not crc32_matches(data, info.crc):
            raise CorruptPacket("CRC32 mismatch", technique=codec.technique)
        if info.index != index:
            logger.warning("packet declares index %d but was read as %d", info.index, index)
        logger.debug("decoded tagged %s packet %d/%d", codec.technique, info.index + 1, info.total)
        return DecodeResult(data=data, index=info.index, technique=codec.technique, total=info.total)

    def _sniff(self, message: HttpMessage, index: int, role: Role) -> DecodeResult:
        candidates = self.registry.compatible_codecs(role)
        content_type = message.content_type
        if content_type:
            candidates = tuple(codec for codec in candidates if codec.mime_type == content_type)
        failures: List[str] = []
        for codec in candidates:
            try:
                data = codec.decode(message.body, role)
            except CorruptPacket as exc:
                failures.append(str(exc))
                continue
            logger.debug("untagged packet %d sniffed as %s", index, codec.technique)
            return DecodeResult(data=data, index=index, technique=codec.technique)
        detail = "; ".join(failures) if failures else f"no codec handles {content_type!r}"
        raise AmbiguousOrUndecodable(f"untagged packet {index} matched no carrier: {detail}")


__all__ = ["DecodeDispatcher", "DecodeResult"]
