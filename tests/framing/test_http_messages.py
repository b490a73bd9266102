import random

import pytest

from rainbowstego.codec import Role
from rainbowstego.exceptions import CorruptPacket
from rainbowstego.framing import TAG_COOKIE_NAMES, MessageSynthesizer, find_tag, parse_message

BODY = b'{"type": "metadata", "metadata": "", "size": 0}'


def _wrap(role, seed=0, host=None):
    synthesizer = MessageSynthesizer(random.Random(seed), host=host)
    return synthesizer.wrap(BODY, "application/json", role, "json_metadata", 1, 3, b"chunk")


def test_client_packet_is_a_request_with_cookie_tag():
    packet = _wrap(Role.CLIENT, host="api.example.test")
    message = parse_message(packet.data)
    assert message.is_request
    assert message.start_line.split()[0] in ("POST", "PUT")
    assert message.start_line.endswith(" HTTP/1.1")
    assert message.header("Host") == "api.example.test"
    assert message.header("Content-Type") == "application/json; charset=utf-8"
    assert message.content_type == "application/json"
    assert message.body == BODY
    assert message.header_values("Set-Cookie") == []
    info = find_tag(message.cookies())
    assert (info.index, info.total, info.length, info.technique) == (1, 3, 5, "json_metadata")
    assert "sid" in dict(message.cookies())


def test_server_packet_is_a_response_with_set_cookie_headers():
    for seed in range(10):
        packet = _wrap(Role.SERVER, seed)
        message = parse_message(packet.data)
        assert not message.is_request
        version, code, reason = message.start_line.split(" ", 2)
        assert version == "HTTP/1.1"
        assert code in ("200", "201", "202")
        assert reason in ("OK", "Created", "Accepted")
        assert message.header("Server") == "nginx/1.18.0"
        assert message.header("X-Content-Type-Options") == "nosniff"
        names = [name for name, _ in message.cookies()]
        assert len(message.header_values("Set-Cookie")) == len(names)
        assert sum(name in TAG_COOKIE_NAMES for name in names) == 1
        assert find_tag(message.cookies()).index == 1


def test_packet_metadata_matches_wrap_arguments():
    packet = _wrap(Role.SERVER)
    assert (packet.index, packet.total, packet.technique) == (1, 3, "json_metadata")
    assert packet.role is Role.SERVER
    assert not packet.is_last
    assert len(packet) == len(packet.data)


def test_binary_bodies_have_no_charset():
    synthesizer = MessageSynthesizer(random.Random(1))
    packet = synthesizer.wrap(b"RIFF", "audio/wav", Role.CLIENT, "wav_audio", 0, 1, b"")
    assert parse_message(packet.data).header("Content-Type") == "audio/wav"


@pytest.mark.parametrize(
    "data",
    [
        b"HTTP/1.1 200 OK\r\nContent-Length: 2\r\nab",
        b"HTTP/1.1 200 OK\r\nContent-Length: 3\r\n\r\nab",
        b"HTTP/1.1 200 OK\r\n\r\nab",
        b"HTTP/1.1 200 OK\r\nContent-Length: 2\r\nContent-Length: 3\r\n\r\nab",
        b"HTTP/1.1 200 OK\r\nContent-Length: two\r\n\r\nab",
        b"HELLO /x HTTP/1.1\r\nContent-Length: 2\r\n\r\nab",
        b"POST /x HTTP/1.1\r\nbad header\r\nContent-Length: 2\r\n\r\nab",
        b"POST /x HTTP/1.1\r\nX-Caf\xc3\xa9: 1\r\nContent-Length: 2\r\n\r\nab",
    ],
)
def test_malformed_messages_are_corrupt(data):
    with pytest.raises(CorruptPacket):
        parse_message(data)


def test_minimal_messages_parse():
    message = parse_message(b"PUT /upload HTTP/1.1\r\nContent-Length: 0\r\n\r\n")
    assert message.is_request
    assert message.body == b""
    assert message.content_type is None
