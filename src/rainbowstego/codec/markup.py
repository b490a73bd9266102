"""Well-formedness checks for generated HTML documents."""
from __future__ import annotations

from html.parser import HTMLParser
from typing import List

from bs4 import BeautifulSoup

VOID_ELEMENTS = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "param",
        "source",
        "track",
        "wbr",
    }
)


class MarkupError(ValueError):
    """Raised when a document is not a balanced HTML5 page."""


class _BalanceChecker(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.stack: List[str] = []
        self.doctype = False
        self.problems: List[str] = []

    def handle_decl(self, decl: str) -> None:
        if decl.lower().strip() == "doctype html":
            self.doctype = True

    def handle_starttag(self, tag, attrs) -> None:
        if tag not in VOID_ELEMENTS:
            self.stack.append(tag)

    def handle_endtag(self, tag) -> None:
        if tag in VOID_ELEMENTS:
            self.problems.append(f"end tag for void element <{tag}>")
        elif not self.stack or self.stack[-1] != tag:
            self.problems.append(f"unexpected </{tag}>")
        else:
            self.stack.pop()


def check_html(text: str) -> None:
    """Raise :class:`MarkupError` unless *text* is a balanced HTML5 document."""

    checker = _BalanceChecker()
    checker.feed(text)
    checker.close()
    if not checker.doctype:
        raise MarkupError("missing <!DOCTYPE html>")
    if checker.problems:
        raise MarkupError(checker.problems[0])
    if checker.stack:
        raise MarkupError(f"unclosed <{checker.stack[-1]}>")


def parse_html(text: str) -> BeautifulSoup:
    """Check *text* and return a soup with ``html``, ``head`` and ``body``."""

    check_html(text)
    soup = BeautifulSoup(text, "html.parser")
    for name in ("html", "head", "body"):
        if soup.find(name) is None:
            raise MarkupError(f"document has no <{name}> element")
    return soup


__all__ = ["MarkupError", "check_html", "parse_html"]
