"""Variable font carrier."""
from __future__ import annotations

import random
import re

from . import decoy
from .base import Role
from .css import _CssCodec

_SETTINGS = re.compile(r"^'wght' (\d+), 'wdth' (\d+), 'slnt' (-?\d+)$")
_FIRST_CLASS = re.compile(r"^\.([a-z][a-z0-9-]*)-0$")


class FontPropertyCodec(_CssCodec):
    """One ``font-variation-settings`` declaration per byte.

    ``wght`` is ``100 + 50 * high_nibble``, ``wdth`` is ``50 + 5 * low_nibble``
    and ``slnt`` repeats the low two bits as ``-5 * (byte % 4)`` so damaged
    rules are caught on decode.
    """

    technique = "font_property"
    capacities = {Role.SERVER: 512}

    def _embed(self, chunk: bytes, role: Role, rng: random.Random) -> bytes:
        family = decoy.family(rng)
        prefix = decoy.identifier(rng)
        blocks = [
            "@font-face {\n"
            f"  font-family: '{family}';\n"
            f"  src: url('/fonts/{prefix}.woff2') format('woff2');\n"
            "  font-weight: 100 900;\n"
            "  font-stretch: 25% 151%;\n"
            "  font-style: oblique 0deg 15deg;\n"
            "  font-display: swap;\n"
            "}"
        ]
        for index, byte in enumerate(chunk):
            settings = f"'wght' {100 + 50 * (byte >> 4)}, 'wdth' {50 + 5 * (byte & 0x0F)}, 'slnt' {-5 * (byte % 4)}"
            blocks.append(
                f".{prefix}-{index} {{\n"
                f"  font-family: '{family}', sans-serif;\n"
                f"  font-variation-settings: {settings};\n"
                "}"
            )
        return ("\n\n".join(blocks) + "\n").encode("utf-8")

    def _extract(self, body: bytes, role: Role) -> bytes:
        rules = self.rules(body)
        if not rules or rules[0].prelude != "@font-face" or rules[0].get("font-family") is None:
            raise self.corrupt("missing @font-face rule")
        if len(rules) == 1:
            return b""
        match = _FIRST_CLASS.match(rules[1].prelude)
        if match is None:
            raise self.corrupt(f"unexpected selector {rules[1].prelude!r}")
        prefix = match.group(1)
        data = bytearray()
        for index, rule in enumerate(rules[1:]):
            if rule.prelude != f".{prefix}-{index}":
                raise self.corrupt(f"unexpected selector {rule.prelude!r}")
            found = _SETTINGS.match(rule.get("font-variation-settings") or "")
            if found is None:
                raise self.corrupt(f"rule {rule.prelude!r} has no variation settings")
            weight, width, slant = (int(value) for value in found.groups())
            high, weight_rest = divmod(weight - 100, 50)
            low, width_rest = divmod(width - 50, 5)
            if weight_rest or width_rest or not 0 <= high <= 15 or not 0 <= low <= 15:
                raise self.corrupt(f"variation axes out of range in {rule.prelude!r}")
            byte = high << 4 | low
            if slant != -5 * (byte % 4):
                raise self.corrupt(f"slant does not match the width in {rule.prelude!r}")
            data.append(byte)
        return bytes(data)


__all__ = ["FontPropertyCodec"]
