"""CRC32 over decoded chunks, as recorded in the packet tag."""

from __future__ import annotations

import zlib

CRC32_INITIAL = 0


def crc32(data: bytes) -> int:
    """Unsigned CRC32 of *data* (the :func:`zlib.crc32` polynomial)."""

    return zlib.crc32(data, CRC32_INITIAL) & 0xFFFFFFFF


def crc32_matches(data: bytes, expected: int) -> bool:
    return crc32(data) == expected


__all__ = ["crc32", "crc32_matches"]
