"""WAV carrier: payload bits in the least significant bit of PCM samples."""
from __future__ import annotations

import io
import random
import struct
import wave

import numpy as np

from .base import BOTH_ROLES, CarrierCodec, Role

SAMPLE_RATE = 8000
SAMPLE_WIDTH = 2
CHANNELS = 1
LENGTH_BITS = 32
MIN_SAMPLES = 2000
_TONES = (440.0, 523.25, 587.33, 659.25, 880.0)


class WavAudioCodec(CarrierCodec):
    """Mono 16-bit PCM at 8 kHz.

    The first 32 sample LSBs hold the chunk length as a big-endian integer,
    followed by the chunk bits, most significant bit first. The remaining
    samples are an unmodified tone with a little noise.
    """

    technique = "wav_audio"
    mime_type = "audio/wav"
    roles = BOTH_ROLES
    capacities = {Role.CLIENT: 2048, Role.SERVER: 2048}

    def _embed(self, chunk: bytes, role: Role, rng: random.Random) -> bytes:
        header = struct.pack(">I", len(chunk))
        bits = np.unpackbits(np.frombuffer(header + chunk, dtype=np.uint8))
        count = max(MIN_SAMPLES, bits.size + rng.randint(0, 800))

        noise = np.random.default_rng(rng.getrandbits(32))
        t = np.arange(count) / SAMPLE_RATE
        signal = rng.uniform(0.2, 0.5) * np.sin(2 * np.pi * rng.choice(_TONES) * t)
        signal += noise.normal(0.0, 0.01, count)
        samples = np.clip(np.round(signal * 32767), -32768, 32767).astype("<i2")
        samples[: bits.size] = (samples[: bits.size] & np.int16(-2)) | bits.astype("<i2")

        buffer = io.BytesIO()
        with wave.open(buffer, "wb") as wav:
            wav.setnchannels(CHANNELS)
            wav.setsampwidth(SAMPLE_WIDTH)
            wav.setframerate(SAMPLE_RATE)
            wav.writeframes(samples.tobytes())
        return buffer.getvalue()

    def _extract(self, body: bytes, role: Role) -> bytes:
        if len(body) < 12 or body[:4] != b"RIFF" or body[8:12] != b"WAVE":
            raise self.corrupt("body is not a RIFF/WAVE file")
        (riff_size,) = struct.unpack("<I", body[4:8])
        if riff_size + 8 != len(body):
            raise self.corrupt(f"RIFF size {riff_size + 8} does not match body length {len(body)}")
        try:
            with wave.open(io.BytesIO(body), "rb") as wav:
                shape = (wav.getnchannels(), wav.getsampwidth(), wav.getframerate())
                if shape != (CHANNELS, SAMPLE_WIDTH, SAMPLE_RATE):
                    raise self.corrupt(f"unexpected audio format {shape}")
                expected = wav.getnframes()
                frames = wav.readframes(expected)
        except (wave.Error, EOFError) as exc:
            raise self.corrupt(f"unreadable WAV data: {exc}") from exc
        if len(frames) != expected * SAMPLE_WIDTH:
            raise self.corrupt("WAV data is truncated")

        samples = np.frombuffer(frames, dtype="<i2")
        if samples.size < LENGTH_BITS:
            raise self.corrupt("too few samples for a length header")
        bits = (samples & 1).astype(np.uint8)
        length = int.from_bytes(np.packbits(bits[:LENGTH_BITS]).tobytes(), "big")
        if length > self.capacity(role) or LENGTH_BITS + 8 * length > samples.size:
            raise self.corrupt(f"declared length {length} is impossible for this carrier")
        return np.packbits(bits[LENGTH_BITS : LENGTH_BITS + 8 * length]).tobytes()


__all__ = ["WavAudioCodec"]
