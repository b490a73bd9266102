"""Synthetic HTTP/1.1 messages around carrier bodies."""

from __future__ import annotations

import logging
import random
import re
import uuid
from dataclasses import dataclass
from email.utils import formatdate
from http import HTTPStatus
from typing import List, Optional, Tuple

from ..codec import Role, decoy
from ..exceptions import CorruptPacket
from ..registry import normalize_mime
from .crc import crc32
from .packet import TAG_COOKIE_NAMES, Packet, PacketInfo

logger = logging.getLogger(__name__)

POST_PATHS = ("/api/v1/data", "/api/v1/upload", "/api/v2/submit", "/upload", "/submit", "/process")
STATUS_CODES = ((200, 0.9), (201, 0.05), (202, 0.05))
USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
SERVER = "nginx/1.18.0"
_TEXT_TYPES = {
    "text/html",
    "text/css",
    "application/json",
    "application/xml",
    "application/rss+xml",
    "image/svg+xml",
}

_REQUEST_LINE = re.compile(r"^(GET|POST|PUT|PATCH|DELETE|HEAD|OPTIONS) (/[!-~]*) HTTP/1\.[01]$")
_STATUS_LINE = re.compile(r"^HTTP/1\.[01] ([1-5]\d\d) ([ -~]*)$")
_HEADER_NAME = re.compile(r"^[!#$%&'*+.^_`|~0-9A-Za-z-]+$")


@dataclass(frozen=True)
class HttpMessage:
    """A parsed request or response."""

    start_line: str
    headers: Tuple[Tuple[str, str], ...]
    body: bytes

    @property
    def is_request(self) -> bool:
        return not self.start_line.startswith("HTTP/")

    def header(self, name: str) -> Optional[str]:
        values = self.header_values(name)
        return values[0] if values else None

    def header_values(self, name: str) -> List[str]:
        wanted = name.lower()
        return [value for key, value in self.headers if key.lower() == wanted]

    @property
    def content_type(self) -> Optional[str]:
        value = self.header("Content-Type")
        return normalize_mime(value) if value else None

    def cookies(self) -> List[Tuple[str, str]]:
        """Name/value pairs from ``Cookie`` (requests) or ``Set-Cookie`` (responses)."""

        pairs: List[str] = []
        if self.is_request:
            for value in self.header_values("Cookie"):
                pairs.extend(value.split(";"))
        else:
            for value in self.header_values("Set-Cookie"):
                pairs.append(value.split(";", 1)[0])
        found = []
        for pair in pairs:
            name, sep, value = pair.strip().partition("=")
            if sep:
                found.append((name.strip(), value.strip()))
        return found


def parse_message(data: bytes) -> HttpMessage:
    """Split *data* into start line, headers and body.

    The start line must be a request or status line and ``Content-Length``
    must match the body exactly.
    """

    if not isinstance(data, (bytes, bytearray)):
        raise TypeError("packet must be bytes")
    head, sep, body = bytes(data).partition(b"\r\n\r\n")
    if not sep:
        raise CorruptPacket("message has no header terminator")
    try:
        lines = head.decode("ascii").split("\r\n")
    except UnicodeDecodeError as exc:
        raise CorruptPacket("message head is not ASCII") from exc

    start_line = lines[0]
    if not (_REQUEST_LINE.match(start_line) or _STATUS_LINE.match(start_line)):
        raise CorruptPacket(f"invalid start line {start_line!r}")

    headers = []
    for line in lines[1:]:
        name, colon, value = line.partition(":")
        if not colon or not _HEADER_NAME.match(name):
            raise CorruptPacket(f"invalid header line {line!r}")
        headers.append((name, value.strip()))
    message = HttpMessage(start_line, tuple(headers), body)

    lengths = set(message.header_values("Content-Length"))
    if len(lengths) != 1:
        raise CorruptPacket("message needs exactly one Content-Length")
    declared = lengths.pop()
    if not declared.isdigit() or int(declared) != len(body):
        raise CorruptPacket(f"Content-Length {declared} does not match body of {len(body)} bytes")
    return message


class MessageSynthesizer:
    """Wrap carrier bodies into realistic requests and responses."""

    def __init__(self, rng: Optional[random.Random] = None, host: Optional[str] = None) -> None:
        self.rng = rng or random.Random()
        self.host = host

    def wrap(
        self,
        body: bytes,
        mime_type: str,
        role: Role,
        technique: str,
        index: int,
        total: int,
        chunk: bytes,
    ) -> Packet:
        info = PacketInfo(
            index=index,
            total=total,
            length=len(chunk),
            technique=technique,
            crc=crc32(chunk),
        )
        if role is Role.CLIENT:
            start_line, headers = self._request_head(info)
        else:
            start_line, headers = self._response_head(info)
        content_type = mime_type
        if mime_type in _TEXT_TYPES:
            content_type += "; charset=utf-8"
        headers.append(("Content-Type", content_type))
        headers.append(("Content-Length", str(len(body))))

        head = "\r\n".join([start_line] + [f"{name}: {value}" for name, value in headers])
        data = head.encode("ascii") + b"\r\n\r\n" + body
        logger.debug("wrapped %s packet %d/%d (%d bytes)", technique, index + 1, total, len(data))
        return Packet(
            index=index,
            total=total,
            technique=technique,
            mime_type=mime_type,
            role=role,
            data=data,
        )

    def _cookies(self, info: PacketInfo) -> List[str]:
        rng = self.rng
        cookies = [
            f"{rng.choice(TAG_COOKIE_NAMES)}={info.to_cookie()}",
            f"sid={uuid.UUID(int=rng.getrandbits(128), version=4)}",
        ]
        if rng.random() < 0.5:
            cookies.append(f"_ga=GA1.2.{rng.getrandbits(32)}.{rng.getrandbits(32)}")
        if rng.random() < 0.5:
            cookies.append(f"_gid=GA1.2.{rng.getrandbits(32)}")
        if rng.random() < 0.5:
            cookies.append("theme=light")
        return cookies

    def _request_head(self, info: PacketInfo) -> Tuple[str, List[Tuple[str, str]]]:
        rng = self.rng
        method = rng.choice(("POST", "POST", "PUT"))
        headers = [
            ("Host", self.host or decoy.host(rng)),
            ("Date", formatdate(usegmt=True)),
            ("User-Agent", USER_AGENT),
            ("Accept", "application/json, text/plain, */*"),
            ("Accept-Language", "en-US,en;q=0.9"),
            ("Accept-Encoding", "gzip, deflate, br"),
        ]
        if rng.random() < 0.5:
            headers.append(("DNT", "1"))
        if rng.random() < 0.5:
            headers.append(("Cache-Control", "max-age=0"))
        headers.append(("Cookie", "; ".join(self._cookies(info))))
        return f"{method} {rng.choice(POST_PATHS)} HTTP/1.1", headers

    def _response_head(self, info: PacketInfo) -> Tuple[str, List[Tuple[str, str]]]:
        rng = self.rng
        codes = [code for code, _ in STATUS_CODES]
        code = rng.choices(codes, weights=[weight for _, weight in STATUS_CODES], k=1)[0]
        headers = [
            ("Date", formatdate(usegmt=True)),
            ("Server", SERVER),
            ("Cache-Control", rng.choice(("no-cache", "private, max-age=0", "public, max-age=3600"))),
            ("X-Frame-Options", "SAMEORIGIN"),
            ("X-Content-Type-Options", "nosniff"),
        ]
        if rng.random() < 0.5:
            headers.append(("Strict-Transport-Security", "max-age=31536000; includeSubDomains"))
        if rng.random() < 0.5:
            headers.append(("Content-Security-Policy", "default-src 'self'"))
        for cookie in self._cookies(info):
            headers.append(("Set-Cookie", f"{cookie}; Path=/; HttpOnly"))
        return f"HTTP/1.1 {code} {HTTPStatus(code).phrase}", headers


__all__ = ["HttpMessage", "MessageSynthesizer", "parse_message"]
