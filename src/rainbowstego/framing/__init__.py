"""HTTP framing: packet tags, message synthesis and packetization."""

from .crc import crc32, crc32_matches
from .http import HttpMessage, MessageSynthesizer, parse_message
from .packet import TAG_COOKIE_NAMES, Packet, PacketInfo, find_tag
from .packetizer import Packetizer

__all__ = [
    "HttpMessage",
    "MessageSynthesizer",
    "Packet",
    "PacketInfo",
    "Packetizer",
    "TAG_COOKIE_NAMES",
    "crc32",
    "crc32_matches",
    "find_tag",
    "parse_message",
]
