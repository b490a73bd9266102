"""Stylesheet carriers."""
from __future__ import annotations

import random
import re
from typing import List

from bitarray import bitarray

from . import decoy
from .base import SERVER_ONLY, CarrierCodec, Role
from .stylesheet import Rule, StylesheetError, parse_stylesheet

_PX = re.compile(r"^(\d+)px$")
_INT = re.compile(r"^(\d+)$")
_COLUMNS = re.compile(r"^repeat\(auto-fill, minmax\((\d+)px, 1fr\)\)$")
_DELAY = re.compile(r"^(\d+(?:\.\d+)?)s$")
_RGB = re.compile(r"^rgb\((\d+) (\d+) (\d+)\)$")
_PAINT = re.compile(r"^paint\(([a-z][a-z0-9-]*)\)$")
_PROPERTY = re.compile(r"^@property (--[a-z][a-z0-9-]*)$")
_CLASS = re.compile(r"^\.([a-z][a-z0-9-]*)$")

COLUMN_BASE = 64
BITS_PER_BYTE = 8


class _CssCodec(CarrierCodec):
    mime_type = "text/css"
    roles = SERVER_ONLY

    def rules(self, body: bytes) -> List[Rule]:
        try:
            return parse_stylesheet(self.text(body))
        except StylesheetError as exc:
            raise self.corrupt(f"malformed stylesheet: {exc}") from exc

    def number(self, pattern: re.Pattern, value, what: str, limit: int = 255) -> int:
        match = pattern.match(value or "")
        if match is None:
            raise self.corrupt(f"invalid {what} {value!r}")
        number = int(match.group(1))
        if number > limit:
            raise self.corrupt(f"{what} {number} out of range")
        return number


class CssGridCodec(_CssCodec):
    """Two bytes per grid rule: the column minimum (offset by 64) and the gap.

    An odd trailing byte is carried by a flex rule's ``flex-grow``.
    """

    technique = "css_grid"
    capacities = {Role.SERVER: 512}

    def _embed(self, chunk: bytes, role: Role, rng: random.Random) -> bytes:
        prefix = f"grid-{decoy.identifier(rng)}"
        blocks = [
            f".{prefix} {{\n  display: grid;\n  grid-auto-flow: row dense;\n"
            f"  padding: {rng.randint(0, 24)}px;\n}}"
        ]
        for index, start in enumerate(range(0, len(chunk), 2)):
            pair = chunk[start : start + 2]
            if len(pair) == 2:
                blocks.append(
                    f".{prefix}-{index} {{\n  display: grid;\n"
                    f"  grid-template-columns: repeat(auto-fill, minmax({COLUMN_BASE + pair[0]}px, 1fr));\n"
                    f"  gap: {pair[1]}px;\n}}"
                )
            else:
                blocks.append(f".{prefix}-{index} {{\n  display: flex;\n  flex-grow: {pair[0]};\n}}")
        return ("\n\n".join(blocks) + "\n").encode("utf-8")

    def _extract(self, body: bytes, role: Role) -> bytes:
        rules = self.rules(body)
        if not rules:
            raise self.corrupt("empty stylesheet")
        match = _CLASS.match(rules[0].prelude)
        if (
            match is None
            or not match.group(1).startswith("grid-")
            or rules[0].get("display") != "grid"
            or rules[0].get("grid-auto-flow") != "row dense"
        ):
            raise self.corrupt("missing grid container rule")
        prefix = match.group(1)
        data = bytearray()
        for index, rule in enumerate(rules[1:]):
            if rule.prelude != f".{prefix}-{index}":
                raise self.corrupt(f"unexpected selector {rule.prelude!r}")
            display = rule.get("display")
            if display == "grid" and rule.names() == ["display", "grid-template-columns", "gap"]:
                columns = self.number(
                    _COLUMNS, rule.get("grid-template-columns"), "column width", COLUMN_BASE + 255
                )
                if columns < COLUMN_BASE:
                    raise self.corrupt(f"column width {columns} below {COLUMN_BASE}px")
                data.append(columns - COLUMN_BASE)
                data.append(self.number(_PX, rule.get("gap"), "gap"))
            elif display == "flex" and rule.names() == ["display", "flex-grow"] and index == len(rules) - 2:
                data.append(self.number(_INT, rule.get("flex-grow"), "flex-grow"))
            else:
                raise self.corrupt(f"rule {rule.prelude!r} is not a grid pair")
        return bytes(data)


class CssAnimationCodec(_CssCodec):
    """Eight ``animation-delay`` values per byte, most significant bit first.

    A delay below half a second is a one bit.
    """

    technique = "css_animation"
    capacities = {Role.SERVER: 256}

    def _embed(self, chunk: bytes, role: Role, rng: random.Random) -> bytes:
        prefix = decoy.identifier(rng)
        bits = bitarray(endian="big")
        bits.frombytes(chunk)
        one, zero = f"0.{rng.randint(1, 4)}s", f"0.{rng.randint(5, 9)}s"
        blocks = [f".{prefix} {{\n  animation-play-state: running;\n  will-change: opacity;\n}}"]
        for index in range(len(chunk)):
            name = f"{prefix}-fade-{index}"
            flags = bits[index * BITS_PER_BYTE : (index + 1) * BITS_PER_BYTE]
            delays = ", ".join(one if bit else zero for bit in flags)
            blocks.append(
                f"@keyframes {name} {{\n  0% {{ opacity: 1; }}\n"
                f"  100% {{ opacity: {rng.choice(('0.98', '0.99', '1'))}; }}\n}}"
            )
            blocks.append(
                f"#{prefix}-{index} {{\n  animation-name: {name};\n"
                f"  animation-duration: {rng.randint(1, 3)}s;\n  animation-delay: {delays};\n}}"
            )
        return ("\n\n".join(blocks) + "\n").encode("utf-8")

    def _extract(self, body: bytes, role: Role) -> bytes:
        rules = self.rules(body)
        if not rules:
            raise self.corrupt("empty stylesheet")
        match = _CLASS.match(rules[0].prelude)
        if match is None or rules[0].get("animation-play-state") != "running":
            raise self.corrupt("missing animation root rule")
        prefix = match.group(1)
        pairs = rules[1:]
        if len(pairs) % 2:
            raise self.corrupt("keyframes and element rules are unpaired")
        bits = bitarray(endian="big")
        for index in range(len(pairs) // 2):
            frames, element = pairs[2 * index], pairs[2 * index + 1]
            name = f"{prefix}-fade-{index}"
            if frames.prelude != f"@keyframes {name}" or element.prelude != f"#{prefix}-{index}":
                raise self.corrupt(f"unexpected rules for byte {index}")
            if element.get("animation-name") != name:
                raise self.corrupt(f"element {index} does not run {name}")
            delays = [value.strip() for value in (element.get("animation-delay") or "").split(",")]
            if len(delays) != BITS_PER_BYTE:
                raise self.corrupt(f"element {index} has {len(delays)} delays")
            for delay in delays:
                found = _DELAY.match(delay)
                if found is None:
                    raise self.corrupt(f"invalid delay {delay!r}")
                bits.append(float(found.group(1)) < 0.5)
        return bits.tobytes()


class CssPaintWorkletCodec(_CssCodec):
    """One ``rgb()`` colour per byte in a custom property fed to ``paint()``.

    Red carries the top three bits, green the middle three and blue the
    low two; the remaining low bits of each channel are noise.
    """

    technique = "css_paint_worklet"
    capacities = {Role.SERVER: 512}

    @staticmethod
    def colour(byte: int, rng: random.Random) -> str:
        red = (byte >> 5) << 5 | rng.getrandbits(5)
        green = ((byte >> 2) & 0x07) << 5 | rng.getrandbits(5)
        blue = (byte & 0x03) << 6 | rng.getrandbits(6)
        return f"rgb({red} {green} {blue})"

    def _embed(self, chunk: bytes, role: Role, rng: random.Random) -> bytes:
        prop = f"--{decoy.identifier(rng)}"
        worklet = decoy.identifier(rng)
        selector = decoy.identifier(rng)
        colours = [self.colour(byte, rng) for byte in chunk]
        lines = [
            f"/* CSS.paintWorklet.addModule('/worklets/{worklet}.js') */",
            f"@property {prop} {{",
            "  syntax: '<color>#';",
            "  inherits: false;",
            "  initial-value: transparent;",
            "}",
            "",
            f".{selector} {{",
        ]
        if colours:
            rows = [", ".join(colours[i : i + 6]) for i in range(0, len(colours), 6)]
            lines.append(f"  {prop}: " + ",\n    ".join(rows) + ";")
        lines.extend([f"  background-image: paint({worklet});", "}", ""])
        return "\n".join(lines).encode("utf-8")

    def _extract(self, body: bytes, role: Role) -> bytes:
        rules = self.rules(body)
        if len(rules) != 2:
            raise self.corrupt(f"expected a property and a painted rule, got {len(rules)} rules")
        declared, painted = rules
        match = _PROPERTY.match(declared.prelude)
        if match is None or declared.get("syntax") != "'<color>#'":
            raise self.corrupt("missing colour list @property")
        if _PAINT.match(painted.get("background-image") or "") is None:
            raise self.corrupt("painted rule has no paint() background")
        value = painted.get(match.group(1))
        if value is None:
            return b""
        data = bytearray()
        for item in value.split(","):
            found = _RGB.match(item.strip())
            if found is None:
                raise self.corrupt(f"invalid colour {item.strip()!r}")
            red, green, blue = (int(channel) for channel in found.groups())
            if max(red, green, blue) > 255:
                raise self.corrupt(f"colour channel out of range in {item.strip()!r}")
            data.append((red >> 5) << 5 | (green >> 5) << 2 | blue >> 6)
        return bytes(data)


__all__ = ["CssAnimationCodec", "CssGridCodec", "CssPaintWorkletCodec"]
