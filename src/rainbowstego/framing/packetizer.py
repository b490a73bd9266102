"""Split payloads into carrier-sized chunks and wrap each one."""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from ..codec import CarrierCodec, Role
from ..registry import CodecRegistry
from ..selector import MimeSelector
from .http import MessageSynthesizer
from .packet import Packet

logger = logging.getLogger(__name__)


class Packetizer:
    """Turn a payload into an ordered list of packets.

    Chunks are planned first so every packet can carry the final packet
    count. Indices are dense from zero in payload order and an empty payload
    still yields one packet with an empty chunk.
    """

    def __init__(
        self,
        registry: CodecRegistry,
        selector: MimeSelector,
        synthesizer: MessageSynthesizer,
        max_chunk_bytes: Optional[int] = None,
    ) -> None:
        if max_chunk_bytes is not None and max_chunk_bytes <= 0:
            raise ValueError("max_chunk_bytes must be positive")
        self.registry = registry
        self.selector = selector
        self.synthesizer = synthesizer
        self.max_chunk_bytes = max_chunk_bytes

    def plan(
        self, payload: bytes, role: Role, explicit_mime: Optional[str] = None
    ) -> List[Tuple[CarrierCodec, bytes]]:
        if explicit_mime:
            # Fail before any work when nothing serves the requested type.
            self.registry.codecs_for_mime(explicit_mime, role)
        chunks: List[Tuple[CarrierCodec, bytes]] = []
        offset = 0
        while True:
            codec = self.selector.select(explicit_mime, role)
            size = codec.capacity(role)
            if self.max_chunk_bytes is not None:
                size = min(size, self.max_chunk_bytes)
            chunk = payload[offset : offset + size]
            chunks.append((codec, chunk))
            offset += len(chunk)
            if offset >= len(payload):
                return chunks

    def packetize(
        self, payload: bytes, role: Role, explicit_mime: Optional[str] = None
    ) -> List[Packet]:
        payload = bytes(payload)
        chunks = self.plan(payload, role, explicit_mime)
        total = len(chunks)
        packets = []
        for index, (codec, chunk) in enumerate(chunks):
            body = codec.encode(chunk, role, self.synthesizer.rng)
            packets.append(
                self.synthesizer.wrap(body, codec.mime_type, role, codec.technique, index, total, chunk)
            )
        logger.debug(
            "packetized %d bytes into %d packets: %s",
            len(payload),
            total,
            ", ".join(codec.technique for codec, _ in chunks),
        )
        return packets


__all__ = ["Packetizer"]
