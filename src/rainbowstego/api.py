"""High level entry point for hiding payloads in HTTP traffic."""
from __future__ import annotations

import asyncio
import base64
import logging
import random
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from .codec import CarrierCodec, JsonMetadataCodec, Role
from .config import EngineConfig
from .dispatch import DecodeDispatcher, DecodeResult
from .exceptions import CorruptPacket, MissingChunksError
from .framing.http import MessageSynthesizer
from .framing.packet import Packet
from .framing.packetizer import Packetizer
from .registry import CodecRegistry, default_registry
from .selector import MimeSelector

logger = logging.getLogger(__name__)

CLIENT_RETURN_RANGE = (200, 8000)
SERVER_RETURN_RANGE = (100, 2000)
DEFAULT_BANDWIDTH_SIZES: Tuple[int, ...] = (100, 1000, 10000, 100 * 1024)
COVER_JSON_LIMIT = 1000
_PADDING_HEADER = "X-Padding"


@dataclass(frozen=True)
class EncodeResult:
    """Packets produced for one payload, in index order."""

    packets: Tuple[Packet, ...]
    total_len: int
    expected_return_lengths: Tuple[int, ...]

    @property
    def total(self) -> int:
        return len(self.packets)

    def __iter__(self):
        return iter(self.packets)

    def __len__(self) -> int:
        return len(self.packets)

    def __getitem__(self, index: int) -> Packet:
        return self.packets[index]


@dataclass(frozen=True)
class BandwidthStats:
    original_size: int
    packet_count: int
    total_packet_size: int
    expected_return_size: int
    overhead_ratio: float
    mime_type: Optional[str] = None


class Rainbow:
    """Encode payloads into HTTP packets and decode them again.

    The engine keeps no state between calls. A shared instance may be used
    from several threads; each call only draws from the injected ``rng``.
    """

    def __init__(
        self,
        registry: Optional[CodecRegistry] = None,
        config: Optional[EngineConfig] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.config = config or EngineConfig()
        registry = registry or default_registry()
        if self.config.techniques is not None:
            registry = registry.restricted(self.config.techniques)
        self.registry = registry
        self.rng = rng or random.Random()
        self.selector = MimeSelector(registry, self.rng, self.config.weights)
        self.synthesizer = MessageSynthesizer(self.rng, self.config.host)
        self.packetizer = Packetizer(registry, self.selector, self.synthesizer, self.config.max_chunk_bytes)
        self.dispatcher = DecodeDispatcher(registry, verify_crc=self.config.verify_crc)

    def encode_write(self, data: bytes, is_client: bool, mime_type: Optional[str] = None) -> EncodeResult:
        if not isinstance(data, (bytes, bytearray)):
            raise TypeError("data must be bytes")
        role = Role.from_flag(is_client)
        packets = self.packetizer.packetize(bytes(data), role, mime_type)
        low, high = CLIENT_RETURN_RANGE if is_client else SERVER_RETURN_RANGE
        lengths = tuple(self.rng.randint(low, high) for _ in packets)
        logger.info(
            "encoded %d bytes into %d %s packet(s)", len(data), len(packets), role.value
        )
        return EncodeResult(packets=tuple(packets), total_len=len(data), expected_return_lengths=lengths)

    def decrypt_single_read(self, packet: bytes, packet_index: int, is_client: bool) -> DecodeResult:
        if isinstance(packet, Packet):
            packet = packet.data
        return self.dispatcher.decode(packet, packet_index, Role.from_flag(is_client))

    async def encode_write_async(
        self, data: bytes, is_client: bool, mime_type: Optional[str] = None
    ) -> EncodeResult:
        return await asyncio.to_thread(self.encode_write, data, is_client, mime_type)

    async def decrypt_single_read_async(
        self, packet: bytes, packet_index: int, is_client: bool
    ) -> DecodeResult:
        return await asyncio.to_thread(self.decrypt_single_read, packet, packet_index, is_client)

    @staticmethod
    def reassemble(results: Iterable[DecodeResult]) -> bytes:
        """Concatenate decoded chunks in index order.

        Raises :class:`MissingChunksError` carrying the contiguous prefix when
        indices are missing, and :class:`CorruptPacket` on duplicates or
        disagreeing totals.
        """

        ordered = sorted(results, key=lambda result: result.index)
        if not ordered:
            return b""
        totals = {result.total for result in ordered if result.total is not None}
        if len(totals) > 1:
            raise CorruptPacket(f"packets disagree on the packet count: {sorted(totals)}")
        seen = set()
        for result in ordered:
            if result.index in seen:
                raise CorruptPacket(f"duplicate chunk index {result.index}")
            seen.add(result.index)
        expected = totals.pop() if totals else ordered[-1].index + 1
        missing = [index for index in range(expected) if index not in seen]
        if missing:
            partial = b"".join(result.data for result in ordered if result.index < missing[0])
            raise MissingChunksError(missing_indices=missing, partial_payload=partial)
        return b"".join(result.data for result in ordered)

    def analyze_bandwidth(
        self,
        sizes: Sequence[int] = DEFAULT_BANDWIDTH_SIZES,
        mime_type: Optional[str] = None,
        is_client: bool = False,
    ) -> List[BandwidthStats]:
        stats = []
        for size in sizes:
            result = self.encode_write(self.rng.randbytes(size), is_client, mime_type)
            packet_bytes = sum(len(packet) for packet in result)
            stats.append(
                BandwidthStats(
                    original_size=size,
                    packet_count=result.total,
                    total_packet_size=packet_bytes,
                    expected_return_size=sum(result.expected_return_lengths),
                    overhead_ratio=packet_bytes / max(size, 1),
                    mime_type=mime_type,
                )
            )
        return stats

    def generate_cover_packet(self, target_length: int, is_client: bool) -> bytes:
        """Build a decoy packet whose size is close to *target_length*.

        The random chunk length is found by binary search and any remaining
        gap is filled with a padding header. Small targets use the JSON
        carrier when it is enabled. Packets cannot shrink below the smallest
        carrier.
        """

        if target_length < 0:
            raise ValueError("target_length must be non-negative")
        role = Role.from_flag(is_client)
        mime_type = None
        json_technique = JsonMetadataCodec.technique
        if (
            target_length < COVER_JSON_LIMIT
            and json_technique in self.registry
            and self.registry.capacity(json_technique, role)
        ):
            mime_type = JsonMetadataCodec.mime_type
        codec = self.selector.select(mime_type, role)
        limit = codec.capacity(role)
        if self.config.max_chunk_bytes is not None:
            limit = min(limit, self.config.max_chunk_bytes)

        best = None
        low, high = 0, limit
        while low <= high:
            size = (low + high) // 2
            candidate = self._cover(codec, role, size)
            if len(candidate) <= target_length:
                best = candidate
                low = size + 1
            else:
                high = size - 1
        if best is None:
            return self._cover(codec, role, 0)
        return self._pad(best, target_length)

    def _cover(self, codec: CarrierCodec, role: Role, size: int) -> bytes:
        chunk = self.rng.randbytes(size)
        body = codec.encode(chunk, role, self.rng)
        return self.synthesizer.wrap(body, codec.mime_type, role, codec.technique, 0, 1, chunk).data

    def _pad(self, packet: bytes, target_length: int) -> bytes:
        # name, ": " and the CRLF, plus at least one value character
        overhead = len(_PADDING_HEADER) + 4
        gap = target_length - len(packet)
        if gap <= overhead:
            return packet
        value = base64.b64encode(self.rng.randbytes(gap)).decode("ascii")[: gap - overhead]
        head, _, body = packet.partition(b"\r\n\r\n")
        return head + f"\r\n{_PADDING_HEADER}: {value}".encode("ascii") + b"\r\n\r\n" + body


__all__ = ["BandwidthStats", "EncodeResult", "Rainbow"]
