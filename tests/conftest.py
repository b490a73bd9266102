import random

import pytest

from rainbowstego import Rainbow


def _sample_bytes(length: int) -> bytes:
    data = bytearray((i * 37 + 11) % 256 for i in range(length))
    if length:
        data[0] = 0x00
        data[-1] = 0xFF
    return bytes(data)


@pytest.fixture
def sample_bytes():
    """Deterministic payload factory that hits both byte extremes."""

    return _sample_bytes


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def engine() -> Rainbow:
    return Rainbow(rng=random.Random(7))
