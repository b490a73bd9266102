"""Cover text used to decorate carriers.

Words and names come from Faker's locale data; the choice is driven by the
caller's ``random.Random`` so the output is reproducible under a seeded
generator and safe to use from several threads.
"""
from __future__ import annotations

import random
from typing import List, Sequence

from faker.providers.lorem.en_US import Provider as LoremProvider
from faker.providers.person.en_US import Provider as PersonProvider


def _plain(values) -> Sequence[str]:
    return tuple(value.lower() for value in values if value.isascii() and value.isalpha())


_WORDS = _plain(LoremProvider.word_list)
_NAMES = _plain(PersonProvider.last_names)


def word(rng: random.Random) -> str:
    return rng.choice(_WORDS)


def words(rng: random.Random, count: int) -> List[str]:
    return [word(rng) for _ in range(count)]


def sentence(rng: random.Random, low: int = 6, high: int = 14) -> str:
    text = " ".join(words(rng, rng.randint(low, high)))
    return text[:1].upper() + text[1:] + "."


def paragraph(rng: random.Random, sentences: int = 3) -> str:
    return " ".join(sentence(rng) for _ in range(sentences))


def title(rng: random.Random, count: int = 3) -> str:
    return " ".join(w.capitalize() for w in words(rng, count))


def identifier(rng: random.Random) -> str:
    """A CSS/XML safe lowercase name such as ``miller-voluptas``."""

    return f"{rng.choice(_NAMES)}-{word(rng)}"


def family(rng: random.Random) -> str:
    return f"{rng.choice(_NAMES).capitalize()} Sans"


def host(rng: random.Random) -> str:
    return f"www.{rng.choice(_NAMES)}{rng.choice(('', 'labs', 'media', 'cloud'))}.com"


__all__ = ["family", "host", "identifier", "paragraph", "sentence", "title", "word", "words"]
