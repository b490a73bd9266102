"""XML document carriers: a configuration file and an RSS feed."""
from __future__ import annotations

import random
import time
import xml.etree.ElementTree as ET
from email.utils import formatdate
from typing import List
from xml.sax.saxutils import escape, quoteattr

from . import decoy
from .base import BOTH_ROLES, SERVER_ONLY, CarrierCodec, Role, b64encode, split_segments

GUID_CHARS = 48


class _XmlCodec(CarrierCodec):
    def root(self, body: bytes, tag: str) -> ET.Element:
        try:
            root = ET.fromstring(body)
        except ET.ParseError as exc:
            raise self.corrupt(f"malformed XML: {exc}") from exc
        if root.tag != tag:
            raise self.corrupt(f"root element is <{root.tag}>, expected <{tag}>")
        return root


class XmlConfigCodec(_XmlCodec):
    """A ``<configuration>`` file whose ``<data>`` CDATA holds the chunk."""

    technique = "xml_config"
    mime_type = "application/xml"
    roles = BOTH_ROLES
    capacities = {Role.CLIENT: 768, Role.SERVER: 1024}

    def _embed(self, chunk: bytes, role: Role, rng: random.Random) -> bytes:
        properties = [
            ("theme", rng.choice(("default", "dark", "light", "contrast"))),
            ("language", rng.choice(("en", "en-US", "en-GB"))),
            ("cache", str(rng.choice((60, 300, 900, 3600)))),
            (decoy.word(rng), decoy.word(rng)),
        ]
        lines = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            f'<configuration version="{rng.randint(1, 4)}" timestamp="{int(time.time())}">',
            "    <settings>",
        ]
        for name, value in properties:
            lines.append(f"        <property name={quoteattr(name)} value={quoteattr(value)}/>")
        lines.extend(
            [
                "    </settings>",
                f'    <integrity size="{len(chunk)}"/>',
                f"    <data><![CDATA[{b64encode(chunk)}]]></data>",
                "</configuration>",
                "",
            ]
        )
        return "\n".join(lines).encode("utf-8")

    def _extract(self, body: bytes, role: Role) -> bytes:
        root = self.root(body, "configuration")
        data = root.find("data")
        integrity = root.find("integrity")
        if data is None or integrity is None:
            raise self.corrupt("configuration has no data or integrity element")
        size = integrity.get("size", "")
        if not size.isdigit():
            raise self.corrupt(f"invalid integrity size {size!r}")
        payload = self.b64decode(data.text or "")
        if len(payload) != int(size):
            raise self.corrupt(f"data holds {len(payload)} bytes, integrity says {size}")
        return payload


class XmlRssCodec(_XmlCodec):
    """An RSS 2.0 feed; each item's opaque ``guid`` holds a base64 segment."""

    technique = "xml_rss"
    mime_type = "application/rss+xml"
    roles = SERVER_ONLY
    capacities = {Role.SERVER: 1024}

    def _embed(self, chunk: bytes, role: Role, rng: random.Random) -> bytes:
        site = decoy.host(rng)
        now = time.time()
        lines = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<rss version="2.0">',
            "    <channel>",
            f"        <title>{escape(decoy.title(rng))}</title>",
            f"        <link>https://{site}/</link>",
            f"        <description>{escape(decoy.sentence(rng))}</description>",
            f"        <lastBuildDate>{formatdate(now, usegmt=True)}</lastBuildDate>",
        ]
        for index, segment in enumerate(split_segments(b64encode(chunk), GUID_CHARS)):
            slug = "-".join(decoy.words(rng, 3))
            lines.extend(
                [
                    "        <item>",
                    f"            <title>{escape(decoy.title(rng, 4))}</title>",
                    f"            <link>https://{site}/posts/{slug}</link>",
                    f"            <description>{escape(decoy.sentence(rng))}</description>",
                    f'            <guid isPermaLink="false">{segment}</guid>',
                    f"            <pubDate>{formatdate(now - 3600 * (index + 1), usegmt=True)}</pubDate>",
                    "        </item>",
                ]
            )
        lines.extend(["    </channel>", "</rss>", ""])
        return "\n".join(lines).encode("utf-8")

    def _extract(self, body: bytes, role: Role) -> bytes:
        root = self.root(body, "rss")
        if root.get("version") != "2.0":
            raise self.corrupt("feed is not RSS 2.0")
        channel = root.find("channel")
        if channel is None:
            raise self.corrupt("feed has no channel")
        segments: List[str] = []
        for item in channel.findall("item"):
            guid = item.find("guid")
            if guid is None or guid.get("isPermaLink") != "false":
                raise self.corrupt("feed item has no opaque guid")
            segments.append(guid.text or "")
        return self.b64decode("".join(segments))


__all__ = ["XmlConfigCodec", "XmlRssCodec"]
