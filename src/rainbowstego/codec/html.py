"""HTML page carriers."""
from __future__ import annotations

import random
from typing import List

from bs4 import Comment, NavigableString, Tag

from . import decoy
from .audio import WavAudioCodec
from .base import SERVER_ONLY, CarrierCodec, Role, b64encode, split_segments
from .markup import MarkupError, parse_html
from ..exceptions import CorruptPacket

COMMENT_MARKER = "rev:"
SEGMENT_CHARS = 76
MIN_LAYERS = 3
MAX_LAYERS = 9
_BASE64_CHARS = frozenset("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/=")
_AUDIO_PREFIX = "data:audio/wav;base64,"

_HEAD = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <title>{title}</title>
</head>
<body>
    <header>
        <h1>{heading}</h1>
    </header>
"""

_TAIL = """    <footer>
        <p>{footer}</p>
    </footer>
</body>
</html>
"""


def _page(rng: random.Random, main: str) -> bytes:
    head = _HEAD.format(title=decoy.title(rng), heading=decoy.sentence(rng, 3, 6))
    tail = _TAIL.format(footer=decoy.sentence(rng))
    return (head + main + tail).encode("utf-8")


class _HtmlCodec(CarrierCodec):
    mime_type = "text/html"
    roles = SERVER_ONLY

    def soup(self, body: bytes):
        try:
            return parse_html(self.text(body))
        except MarkupError as exc:
            raise self.corrupt(str(exc)) from exc


class HtmlCommentCodec(_HtmlCodec):
    """Base64 text split across ``<!-- rev:... -->`` comments, one per section."""

    technique = "html_comment"
    capacities = {Role.SERVER: 1024}

    def _embed(self, chunk: bytes, role: Role, rng: random.Random) -> bytes:
        segments = split_segments(b64encode(chunk), SEGMENT_CHARS) or [""]
        sections: List[str] = []
        for segment in segments:
            sections.append(
                "        <section>\n"
                f"            <!-- {COMMENT_MARKER}{segment} -->\n"
                f"            <h2>{decoy.title(rng, 2)}</h2>\n"
                f"            <p>{decoy.paragraph(rng, rng.randint(1, 3))}</p>\n"
                "        </section>\n"
            )
        return _page(rng, "    <main>\n" + "".join(sections) + "    </main>\n")

    def _extract(self, body: bytes, role: Role) -> bytes:
        soup = self.soup(body)
        segments = []
        for node in soup.find_all(string=lambda text: isinstance(text, Comment)):
            text = str(node).strip()
            if text.startswith(COMMENT_MARKER):
                segments.append(text[len(COMMENT_MARKER) :])
        if not segments:
            raise self.corrupt("no revision comments found")
        return self.b64decode("".join(segments))


class HtmlNestedDivCodec(_HtmlCodec):
    """One base64 character per innermost ``div`` of a nested ``lN`` stack."""

    technique = "html_nested_div"
    capacities = {Role.SERVER: 128}

    def _embed(self, chunk: bytes, role: Role, rng: random.Random) -> bytes:
        lines = ['    <main class="stack">\n']
        for char in b64encode(chunk):
            layers = rng.randint(MIN_LAYERS, MAX_LAYERS)
            opening = "".join(f'<div class="l{depth}">' for depth in range(1, layers + 1))
            lines.append(f"        {opening}{char}{'</div>' * layers}\n")
        lines.append("    </main>\n")
        return _page(rng, "".join(lines))

    def _innermost_char(self, tag: Tag) -> str:
        depth = 1
        node = tag
        while True:
            if node.name != "div" or node.get("class") != [f"l{depth}"]:
                raise self.corrupt(f"unexpected element at layer {depth}")
            children = node.find_all(recursive=False)
            if not children:
                break
            if len(children) != 1 or node.find(string=True, recursive=False) is not None:
                raise self.corrupt(f"layer {depth} holds more than one child")
            node = children[0]
            depth += 1
        if not MIN_LAYERS <= depth <= MAX_LAYERS:
            raise self.corrupt(f"stack depth {depth} out of range")
        text = node.get_text()
        if len(text) != 1 or text not in _BASE64_CHARS:
            raise self.corrupt("innermost layer must hold a single base64 character")
        return text

    def _extract(self, body: bytes, role: Role) -> bytes:
        soup = self.soup(body)
        stacks = soup.find_all("main", class_="stack")
        if len(stacks) != 1:
            raise self.corrupt("expected exactly one stack container")
        chars = []
        for child in stacks[0].children:
            if isinstance(child, NavigableString):
                if str(child).strip():
                    raise self.corrupt("stray text inside the stack container")
                continue
            chars.append(self._innermost_char(child))
        return self.b64decode("".join(chars))


class HtmlAudioCodec(_HtmlCodec):
    """A page embedding the WAV carrier as an inline ``<audio>`` source."""

    technique = "html_audio"
    capacities = {Role.SERVER: 1024}

    def __init__(self) -> None:
        self.wav = WavAudioCodec()

    def _embed(self, chunk: bytes, role: Role, rng: random.Random) -> bytes:
        wav = self.wav.encode(chunk, role, rng)
        main = (
            "    <main>\n"
            "        <figure>\n"
            f"            <figcaption>{decoy.sentence(rng, 3, 7)}</figcaption>\n"
            f'            <audio controls preload="none" src="{_AUDIO_PREFIX}{b64encode(wav)}"></audio>\n'
            "        </figure>\n"
            "    </main>\n"
        )
        return _page(rng, main)

    def _extract(self, body: bytes, role: Role) -> bytes:
        soup = self.soup(body)
        players = soup.find_all("audio")
        if len(players) != 1:
            raise self.corrupt("expected exactly one audio element")
        source = players[0].get("src") or ""
        if not source.startswith(_AUDIO_PREFIX):
            raise self.corrupt("audio element has no inline WAV source")
        wav = self.b64decode(source[len(_AUDIO_PREFIX) :])
        try:
            return self.wav.decode(wav, role)
        except CorruptPacket as exc:
            raise self.corrupt(f"inline audio is damaged: {exc}") from exc


__all__ = ["HtmlAudioCodec", "HtmlCommentCodec", "HtmlNestedDivCodec"]
