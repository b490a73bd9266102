"""Shared interface for carrier codecs."""
from __future__ import annotations

import base64
import binascii
import enum
import logging
import random
from abc import ABC, abstractmethod
from typing import FrozenSet, Mapping, Optional

from ..exceptions import CapacityExceeded, CorruptPacket, UnsupportedMimeType

logger = logging.getLogger(__name__)


class Role(str, enum.Enum):
    """Which side of the HTTP exchange produced a carrier."""

    CLIENT = "client"
    SERVER = "server"

    @classmethod
    def from_flag(cls, is_client: bool) -> "Role":
        return cls.CLIENT if is_client else cls.SERVER


BOTH_ROLES: FrozenSet[Role] = frozenset({Role.CLIENT, Role.SERVER})
SERVER_ONLY: FrozenSet[Role] = frozenset({Role.SERVER})


class CarrierCodec(ABC):
    """Encode byte chunks into one carrier format and back.

    Subclasses set :attr:`technique`, :attr:`mime_type`, :attr:`roles` and the
    per-role :attr:`capacities`, then implement :meth:`_embed` and
    :meth:`_extract`. The public :meth:`encode` and :meth:`decode` wrappers
    enforce the capacity and role contract.
    """

    technique: str = ""
    mime_type: str = ""
    roles: FrozenSet[Role] = BOTH_ROLES
    capacities: Mapping[Role, int] = {}

    def capacity(self, role: Role) -> int:
        if role not in self.roles:
            return 0
        return int(self.capacities.get(role, 0))

    def supports(self, role: Role) -> bool:
        return role in self.roles

    def encode(self, chunk: bytes, role: Role, rng: Optional[random.Random] = None) -> bytes:
        if not isinstance(chunk, (bytes, bytearray)):
            raise TypeError("chunk must be bytes")
        if not self.supports(role):
            raise UnsupportedMimeType(
                f"technique '{self.technique}' cannot carry {role.value} traffic"
            )
        limit = self.capacity(role)
        if len(chunk) > limit:
            raise CapacityExceeded(
                f"{self.technique} carries at most {limit} bytes for {role.value}, got {len(chunk)}"
            )
        body = self._embed(bytes(chunk), role, rng or random.Random())
        logger.debug("%s embedded %d bytes into %d byte body", self.technique, len(chunk), len(body))
        return body

    def decode(self, body: bytes, role: Role) -> bytes:
        if not isinstance(body, (bytes, bytearray)):
            raise TypeError("body must be bytes")
        data = self._extract(bytes(body), role)
        if len(data) > self.capacity(role):
            raise self.corrupt(f"extracted {len(data)} bytes, beyond the carrier capacity")
        return data

    def corrupt(self, message: str) -> CorruptPacket:
        return CorruptPacket(message, technique=self.technique)

    def text(self, body: bytes) -> str:
        try:
            return body.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise self.corrupt("body is not valid UTF-8") from exc

    def b64decode(self, value: str) -> bytes:
        try:
            data = base64.b64decode(value.encode("ascii"), validate=True)
        except (ValueError, binascii.Error) as exc:
            raise self.corrupt("embedded text is not valid base64") from exc
        # Nonzero padding bits would give the same bytes a second spelling.
        if b64encode(data) != value:
            raise self.corrupt("embedded base64 is not in canonical form")
        return data

    @abstractmethod
    def _embed(self, chunk: bytes, role: Role, rng: random.Random) -> bytes:
        """Render *chunk* into a carrier body."""

    @abstractmethod
    def _extract(self, body: bytes, role: Role) -> bytes:
        """Validate *body* and return the embedded chunk."""

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<{type(self).__name__} technique={self.technique!r} mime={self.mime_type!r}>"


def b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def split_segments(text: str, size: int) -> list:
    return [text[i : i + size] for i in range(0, len(text), size)]


__all__ = [
    "BOTH_ROLES",
    "CarrierCodec",
    "Role",
    "SERVER_ONLY",
    "b64encode",
    "split_segments",
]
