import io
import json
import random
import wave
import xml.etree.ElementTree as ET

import numpy as np
import pytest
from bs4 import BeautifulSoup
from PIL import Image

from rainbowstego.codec import (
    ALL_CODECS,
    CssAnimationCodec,
    CssPaintWorkletCodec,
    FontPropertyCodec,
    HtmlCommentCodec,
    HtmlNestedDivCodec,
    PngLsbCodec,
    Role,
    SvgPathCodec,
    WavAudioCodec,
)
from rainbowstego.codec.markup import check_html
from rainbowstego.codec.stylesheet import parse_stylesheet
from rainbowstego.exceptions import CapacityExceeded, UnsupportedMimeType

CASES = [
    pytest.param(codec_cls, role, id=f"{codec_cls.technique}-{role.value}")
    for codec_cls in ALL_CODECS
    for role in sorted(codec_cls.roles, key=lambda r: r.value)
]


@pytest.mark.parametrize("codec_cls, role", CASES)
def test_roundtrip_at_boundaries(codec_cls, role, sample_bytes):
    codec = codec_cls()
    capacity = codec.capacity(role)
    for length in (0, 1, 2, 3, capacity - 1, capacity):
        chunk = sample_bytes(length)
        body = codec.encode(chunk, role, random.Random(length))
        assert codec.decode(body, role) == chunk


@pytest.mark.parametrize("codec_cls, role", CASES)
def test_uniform_extreme_bytes(codec_cls, role):
    codec = codec_cls()
    for fill in (0x00, 0xFF):
        chunk = bytes([fill]) * 17
        assert codec.decode(codec.encode(chunk, role, random.Random(fill)), role) == chunk


@pytest.mark.parametrize("codec_cls, role", CASES)
def test_capacity_violation(codec_cls, role):
    codec = codec_cls()
    with pytest.raises(CapacityExceeded):
        codec.encode(bytes(codec.capacity(role) + 1), role)


@pytest.mark.parametrize("codec_cls", [cls for cls in ALL_CODECS if Role.CLIENT not in cls.roles])
def test_server_only_codecs_refuse_client_role(codec_cls):
    codec = codec_cls()
    assert codec.capacity(Role.CLIENT) == 0
    with pytest.raises(UnsupportedMimeType):
        codec.encode(b"x", Role.CLIENT)


@pytest.mark.parametrize("codec_cls, role", CASES)
def test_bodies_are_valid_for_their_mime_type(codec_cls, role, sample_bytes):
    codec = codec_cls()
    body = codec.encode(sample_bytes(40), role, random.Random(5))
    mime = codec.mime_type
    if mime == "text/html":
        check_html(body.decode("utf-8"))
    elif mime == "text/css":
        assert parse_stylesheet(body.decode("utf-8"))
    elif mime == "application/json":
        assert isinstance(json.loads(body), dict)
    elif mime in ("application/xml", "application/rss+xml", "image/svg+xml"):
        ET.fromstring(body)
    elif mime == "audio/wav":
        with wave.open(io.BytesIO(body), "rb") as wav:
            assert wav.getframerate() == 8000
            assert wav.getsampwidth() == 2
            assert wav.getnchannels() == 1
    elif mime == "image/png":
        with Image.open(io.BytesIO(body)) as img:
            assert img.format == "PNG"
            assert img.mode == "RGB"
            img.verify()
    else:  # pragma: no cover - new MIME types need a validity check here
        pytest.fail(f"no validity check for {mime}")


def test_nested_div_depth_stays_in_range():
    body = HtmlNestedDivCodec().encode(b"depth check", Role.SERVER, random.Random(3))
    soup = BeautifulSoup(body.decode("utf-8"), "html.parser")
    stack = soup.find("main", class_="stack")
    for column in stack.find_all("div", class_="l1", recursive=False):
        depth = 1 + len(column.find_all("div"))
        assert 3 <= depth <= 9


def test_html_comments_hold_base64_segments():
    body = HtmlCommentCodec().encode(bytes(200), Role.SERVER, random.Random(1)).decode("utf-8")
    assert body.count("<!-- rev:") == 4
    assert "<!-- rev:AAAA" in body


def test_svg_path_geometry_for_known_byte():
    body = SvgPathCodec().encode(b"\x2a", Role.CLIENT, random.Random(2)).decode("utf-8")
    assert 'd="M 100 20 Q 110 30 120 20"' in body


def test_font_axes_for_known_byte():
    body = FontPropertyCodec().encode(b"\xa7", Role.SERVER, random.Random(2)).decode("utf-8")
    assert "font-variation-settings: 'wght' 600, 'wdth' 85, 'slnt' -15;" in body


def test_animation_delays_follow_bits():
    body = CssAnimationCodec().encode(b"\x81", Role.SERVER, random.Random(4)).decode("utf-8")
    rules = parse_stylesheet(body)
    delays = [float(value.strip()[:-1]) for value in rules[2].get("animation-delay").split(",")]
    assert [delay < 0.5 for delay in delays] == [True] + [False] * 6 + [True]


def test_paint_worklet_channels_carry_bit_groups():
    codec = CssPaintWorkletCodec()
    rules = parse_stylesheet(codec.encode(b"\xb9", Role.SERVER, random.Random(9)).decode("utf-8"))
    prop = rules[0].prelude.split()[1]
    red, green, blue = (int(v) for v in rules[1].get(prop)[4:-1].split())
    assert (red >> 5, green >> 5, blue >> 6) == (0b101, 0b110, 0b01)


def test_wav_lsb_header_holds_length():
    body = WavAudioCodec().encode(b"abc", Role.CLIENT, random.Random(6))
    with wave.open(io.BytesIO(body), "rb") as wav:
        samples = np.frombuffer(wav.readframes(wav.getnframes()), dtype="<i2")
    header = np.packbits((samples[:32] & 1).astype(np.uint8)).tobytes()
    assert int.from_bytes(header, "big") == 3


def test_png_lsb_header_holds_length():
    body = PngLsbCodec().encode(b"abcd", Role.SERVER, random.Random(8))
    with Image.open(io.BytesIO(body)) as img:
        channels = np.asarray(img, dtype=np.uint8).reshape(-1)
    header = np.packbits(channels[:32] & 1).tobytes()
    assert int.from_bytes(header, "little") == 4
    assert np.packbits(channels[32:64] & 1).tobytes() == b"abcd"
