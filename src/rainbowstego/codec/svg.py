"""SVG carrier: one quadratic path per byte."""
from __future__ import annotations

import random
import re
import xml.etree.ElementTree as ET

from . import decoy
from .base import BOTH_ROLES, CarrierCodec, Role

SVG_NS = "http://www.w3.org/2000/svg"
_NS = {"svg": SVG_NS}
_PATH = re.compile(r"^M (\d+) (\d+) Q (\d+) (\d+) (\d+) (\d+)$")
_STEP = 10
_COLOURS = ("#333", "#1f6feb", "#8250df", "#2da44e", "#bf3989")


def _path_data(byte: int) -> str:
    x = _STEP * (byte & 0x0F)
    y = _STEP * (byte >> 4)
    return f"M {x} {y} Q {x + 10} {y + 10} {x + 20} {y}"


class SvgPathCodec(CarrierCodec):
    """Each byte becomes ``M x y Q x+10 y+10 x+20 y`` with ``x`` the low
    nibble and ``y`` the high nibble, both scaled by ten."""

    technique = "svg_path"
    mime_type = "image/svg+xml"
    roles = BOTH_ROLES
    capacities = {Role.CLIENT: 384, Role.SERVER: 512}

    def _embed(self, chunk: bytes, role: Role, rng: random.Random) -> bytes:
        group = decoy.identifier(rng)
        lines = [
            f'<svg xmlns="{SVG_NS}" version="1.1" width="180" height="180" viewBox="0 0 180 180">',
            "    <defs>",
            '        <filter id="soften"><feGaussianBlur stdDeviation="0.5"/></filter>',
            "    </defs>",
            f'    <g id="{group}" fill="none" stroke="{rng.choice(_COLOURS)}" '
            f'stroke-width="{rng.randint(1, 3)}">',
        ]
        for index, byte in enumerate(chunk):
            d = _path_data(byte)
            if rng.random() < 0.3:
                lines.append(
                    f'        <path id="{group}-{index}" d="{d}">'
                    f'<animate attributeName="stroke-opacity" values="1;0.6;1" '
                    f'dur="{rng.uniform(0.8, 2.5):.1f}s" repeatCount="indefinite"/></path>'
                )
            else:
                lines.append(f'        <path id="{group}-{index}" d="{d}"/>')
        lines.extend(["    </g>", "</svg>", ""])
        return "\n".join(lines).encode("utf-8")

    def _extract(self, body: bytes, role: Role) -> bytes:
        try:
            root = ET.fromstring(body)
        except ET.ParseError as exc:
            raise self.corrupt(f"malformed SVG: {exc}") from exc
        if root.tag != f"{{{SVG_NS}}}svg":
            raise self.corrupt("root element is not <svg>")
        groups = root.findall("svg:g", _NS)
        if len(groups) != 1:
            raise self.corrupt("expected exactly one path group")
        data = bytearray()
        for path in groups[0].findall("svg:path", _NS):
            match = _PATH.match(path.get("d", ""))
            if match is None:
                raise self.corrupt(f"unexpected path data {path.get('d')!r}")
            x, y, qx, qy, ex, ey = (int(value) for value in match.groups())
            if x % _STEP or y % _STEP or x > 150 or y > 150:
                raise self.corrupt(f"path origin ({x}, {y}) is off the grid")
            if (qx, qy, ex, ey) != (x + 10, y + 10, x + 20, y):
                raise self.corrupt(f"control points of path at ({x}, {y}) are inconsistent")
            data.append((y // _STEP) << 4 | (x // _STEP))
        return bytes(data)


__all__ = ["SvgPathCodec"]
