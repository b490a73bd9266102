import io
import json
import random

import pytest
from PIL import Image

from rainbowstego.codec import (
    CssGridCodec,
    FontPropertyCodec,
    HtmlCommentCodec,
    HtmlNestedDivCodec,
    JsonMetadataCodec,
    PngLsbCodec,
    Role,
    SvgPathCodec,
    WavAudioCodec,
    XmlConfigCodec,
    XmlRssCodec,
)
from rainbowstego.exceptions import CorruptPacket


def _encode(codec, chunk=b"validation", role=Role.SERVER, seed=11):
    return codec.encode(chunk, role, random.Random(seed))


def test_font_slant_mismatch_is_detected():
    codec = FontPropertyCodec()
    body = _encode(codec, b"\x01").decode("utf-8")
    tampered = body.replace("'slnt' -5", "'slnt' -10")
    with pytest.raises(CorruptPacket) as excinfo:
        codec.decode(tampered.encode("utf-8"), Role.SERVER)
    assert excinfo.value.technique == "font_property"


def test_svg_control_point_mismatch_is_detected():
    codec = SvgPathCodec()
    body = _encode(codec, b"\x00").decode("utf-8")
    tampered = body.replace("Q 10 10 20 0", "Q 10 10 30 0")
    with pytest.raises(CorruptPacket):
        codec.decode(tampered.encode("utf-8"), Role.SERVER)


def test_json_size_mismatch_is_detected():
    codec = JsonMetadataCodec()
    document = json.loads(_encode(codec))
    document["size"] += 1
    with pytest.raises(CorruptPacket):
        codec.decode(json.dumps(document).encode("utf-8"), Role.SERVER)


def test_json_rejects_invalid_text():
    with pytest.raises(CorruptPacket):
        JsonMetadataCodec().decode(b"{not json", Role.CLIENT)


def test_truncated_wav_is_detected():
    codec = WavAudioCodec()
    body = _encode(codec)
    with pytest.raises(CorruptPacket):
        codec.decode(body[:-100], Role.SERVER)


def test_wav_rejects_non_riff_body():
    with pytest.raises(CorruptPacket):
        WavAudioCodec().decode(b"ID3" + bytes(100), Role.SERVER)


def test_unbalanced_html_is_rejected():
    codec = HtmlCommentCodec()
    body = _encode(codec).decode("utf-8")
    tampered = body.replace("</section>", "", 1)
    with pytest.raises(CorruptPacket):
        codec.decode(tampered.encode("utf-8"), Role.SERVER)


def test_html_without_markers_is_rejected():
    page = b"<!DOCTYPE html><html><head><title>x</title></head><body><p>hi</p></body></html>"
    with pytest.raises(CorruptPacket):
        HtmlCommentCodec().decode(page, Role.SERVER)


def test_nested_div_rejects_shallow_stack():
    codec = HtmlNestedDivCodec()
    body = _encode(codec, b"").decode("utf-8")
    tampered = body.replace(
        '<main class="stack">', '<main class="stack"><div class="l1"><div class="l2">Q</div></div>'
    )
    with pytest.raises(CorruptPacket):
        codec.decode(tampered.encode("utf-8"), Role.SERVER)


def test_grid_rejects_out_of_order_rules():
    codec = CssGridCodec()
    body = _encode(codec, b"abcd").decode("utf-8")
    prefix = body.split(" ", 1)[0]
    tampered = body.replace(f"{prefix}-1 ", f"{prefix}-7 ")
    with pytest.raises(CorruptPacket):
        codec.decode(tampered.encode("utf-8"), Role.SERVER)


def test_grid_odd_length_uses_flex_rule():
    codec = CssGridCodec()
    body = _encode(codec, b"abc").decode("utf-8")
    assert "flex-grow: 99;" in body
    assert codec.decode(body.encode("utf-8"), Role.SERVER) == b"abc"


def test_xml_config_integrity_mismatch():
    codec = XmlConfigCodec()
    body = _encode(codec, b"four").decode("utf-8")
    tampered = body.replace('<integrity size="4"/>', '<integrity size="5"/>')
    with pytest.raises(CorruptPacket):
        codec.decode(tampered.encode("utf-8"), Role.SERVER)


def test_rss_requires_opaque_guids():
    codec = XmlRssCodec()
    body = _encode(codec, b"feed").decode("utf-8")
    tampered = body.replace('isPermaLink="false"', 'isPermaLink="true"')
    with pytest.raises(CorruptPacket):
        codec.decode(tampered.encode("utf-8"), Role.SERVER)


def test_malformed_xml_is_rejected():
    with pytest.raises(CorruptPacket):
        XmlConfigCodec().decode(b"<configuration><data>", Role.CLIENT)


def test_non_utf8_body_is_rejected():
    with pytest.raises(CorruptPacket):
        FontPropertyCodec().decode(b"\xff\xfe\x00", Role.SERVER)


def test_json_rejects_non_canonical_base64():
    codec = JsonMetadataCodec()
    document = json.loads(_encode(codec, b"A"))
    assert document["metadata"] == "QQ=="
    document["metadata"] = "QR=="
    with pytest.raises(CorruptPacket):
        codec.decode(json.dumps(document).encode("utf-8"), Role.SERVER)


def test_truncated_png_is_detected():
    codec = PngLsbCodec()
    body = _encode(codec)
    with pytest.raises(CorruptPacket) as excinfo:
        codec.decode(body[:-100], Role.SERVER)
    assert excinfo.value.technique == "png_lsb"


def test_png_with_alpha_channel_is_rejected():
    buffer = io.BytesIO()
    Image.new("RGBA", (40, 40), (10, 20, 30, 255)).save(buffer, format="PNG")
    with pytest.raises(CorruptPacket):
        PngLsbCodec().decode(buffer.getvalue(), Role.CLIENT)


def test_png_rejects_non_png_body():
    with pytest.raises(CorruptPacket):
        PngLsbCodec().decode(b"GIF89a" + bytes(100), Role.SERVER)
