"""PNG carrier: payload bits in the least significant bit of RGB channels."""
from __future__ import annotations

import io
import math
import random
import struct

import numpy as np
from PIL import Image

from .base import BOTH_ROLES, CarrierCodec, Role

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
CHANNELS = 3
LENGTH_BITS = 32
SPARE_PIXELS = 100
MAX_PIXELS = 1 << 15


class PngLsbCodec(CarrierCodec):
    """Random-noise RGB image, one payload bit per colour channel.

    Channel LSBs in row-major order hold the chunk length (32-bit
    little-endian) and then the chunk, most significant bit first.
    """

    technique = "png_lsb"
    mime_type = "image/png"
    roles = BOTH_ROLES
    capacities = {Role.CLIENT: 2048, Role.SERVER: 2048}

    def _embed(self, chunk: bytes, role: Role, rng: random.Random) -> bytes:
        header = struct.pack("<I", len(chunk))
        bits = np.unpackbits(np.frombuffer(header + chunk, dtype=np.uint8))
        pixels = math.ceil(bits.size / CHANNELS) + SPARE_PIXELS + rng.randint(0, 200)
        width = math.ceil(math.sqrt(pixels))
        height = math.ceil(pixels / width) + 2

        noise = np.random.default_rng(rng.getrandbits(32))
        flat = noise.integers(0, 256, size=width * height * CHANNELS, dtype=np.uint8)
        flat[: bits.size] = (flat[: bits.size] & 0xFE) | bits

        buffer = io.BytesIO()
        Image.fromarray(flat.reshape(height, width, CHANNELS)).save(
            buffer, format="PNG", compress_level=rng.randint(1, 9)
        )
        return buffer.getvalue()

    def _extract(self, body: bytes, role: Role) -> bytes:
        if not body.startswith(PNG_SIGNATURE):
            raise self.corrupt("body is not a PNG file")
        try:
            with Image.open(io.BytesIO(body)) as img:
                if img.format != "PNG" or img.mode != "RGB":
                    raise self.corrupt(f"expected an RGB PNG, got {img.format} {img.mode}")
                width, height = img.size
                if width * height > MAX_PIXELS:
                    raise self.corrupt(f"image of {width}x{height} pixels is too large")
                flat = np.asarray(img, dtype=np.uint8).reshape(-1)
        except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as exc:
            raise self.corrupt(f"unreadable PNG data: {exc}") from exc

        if flat.size < LENGTH_BITS:
            raise self.corrupt("too few channels for a length header")
        bits = flat & 1
        (length,) = struct.unpack("<I", np.packbits(bits[:LENGTH_BITS]).tobytes())
        if length > self.capacity(role) or LENGTH_BITS + 8 * length > flat.size:
            raise self.corrupt(f"declared length {length} is impossible for this carrier")
        return np.packbits(bits[LENGTH_BITS : LENGTH_BITS + 8 * length]).tobytes()


__all__ = ["PngLsbCodec"]
