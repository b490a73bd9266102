"""A small strict CSS reader for the stylesheet carriers.

Only the subset the carriers emit is accepted: qualified rules with
declaration blocks, ``@keyframes``/``@media``/``@supports`` blocks holding
nested rules, descriptor at-rules such as ``@font-face`` and ``@property``,
and ``/* ... */`` comments. Anything else is a :class:`StylesheetError`.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

_NESTING_AT_RULES = ("@keyframes", "@media", "@supports")
_PROPERTY_NAME = re.compile(r"^-{0,2}[A-Za-z][A-Za-z0-9_-]*$")


class StylesheetError(ValueError):
    """Raised when CSS text does not parse."""


@dataclass
class Rule:
    prelude: str
    declarations: List[Tuple[str, str]] = field(default_factory=list)
    rules: List["Rule"] = field(default_factory=list)

    def get(self, name: str) -> Optional[str]:
        for key, value in self.declarations:
            if key == name:
                return value
        return None

    def names(self) -> List[str]:
        return [key for key, _ in self.declarations]


class _Reader:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def peek(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def skip_space(self) -> None:
        while not self.at_end():
            if self.text[self.pos].isspace():
                self.pos += 1
            elif self.text.startswith("/*", self.pos):
                end = self.text.find("*/", self.pos + 2)
                if end < 0:
                    raise StylesheetError("unterminated comment")
                self.pos = end + 2
            else:
                break

    def read_until(self, stops: str, forbidden: str) -> str:
        """Read up to the first top-level character in *stops*."""

        start = self.pos
        depth = 0
        quote = ""
        while not self.at_end():
            char = self.text[self.pos]
            if quote:
                if char == "\\":
                    self.pos += 1
                elif char == quote:
                    quote = ""
            elif char in "'\"":
                quote = char
            elif char == "(":
                depth += 1
            elif char == ")":
                depth -= 1
                if depth < 0:
                    raise StylesheetError(f"unbalanced ')' at offset {self.pos}")
            elif depth == 0 and char in stops:
                return self.text[start : self.pos]
            elif depth == 0 and char in forbidden:
                raise StylesheetError(f"unexpected {char!r} at offset {self.pos}")
            self.pos += 1
        raise StylesheetError("unexpected end of stylesheet")

    def expect(self, char: str) -> None:
        if self.peek() != char:
            raise StylesheetError(f"expected {char!r} at offset {self.pos}")
        self.pos += 1

    def rules(self, top: bool) -> List[Rule]:
        found: List[Rule] = []
        while True:
            self.skip_space()
            if self.at_end():
                if top:
                    return found
                raise StylesheetError("unterminated block")
            if self.peek() == "}":
                if top:
                    raise StylesheetError(f"stray '}}' at offset {self.pos}")
                return found
            prelude = self.read_until("{", ";}").strip()
            if not prelude:
                raise StylesheetError(f"empty selector at offset {self.pos}")
            self.expect("{")
            if prelude.lower().startswith(_NESTING_AT_RULES):
                rule = Rule(prelude, rules=self.rules(top=False))
            else:
                rule = Rule(prelude, declarations=self.declarations())
            self.expect("}")
            found.append(rule)

    def declarations(self) -> List[Tuple[str, str]]:
        found: List[Tuple[str, str]] = []
        while True:
            self.skip_space()
            if self.peek() == "}":
                return found
            name = self.read_until(":", "{};").strip()
            if not _PROPERTY_NAME.match(name):
                raise StylesheetError(f"invalid property name {name!r}")
            self.expect(":")
            value = self.read_until(";}", "{").strip()
            if not value:
                raise StylesheetError(f"empty value for {name!r}")
            found.append((name, value))
            if self.peek() == ";":
                self.pos += 1


def parse_stylesheet(text: str) -> List[Rule]:
    """Parse *text* into top level :class:`Rule` objects."""

    return _Reader(text).rules(top=True)


__all__ = ["Rule", "StylesheetError", "parse_stylesheet"]
