"""
Collation keys for ordering display text.

Python's str ordering is by code point, which puts accented letters after
'z'. Vocabulary lists are ordered the way a dictionary in the source
language would order them, so the partitioner sorts with a collator.
"""

from __future__ import annotations

import unicodedata
from typing import Callable

from src.core.errors import InvalidArgument

Collator = Callable[[str], tuple]

TURKISH_ALPHABET = "abcçdefgğhıijklmnoöprsştuüvyz"


def default_collator(text: str) -> tuple:
    """
    Case-insensitive, accent-folded key with the raw text as a tie-break.

    'Éclair' sorts next to 'eclair' rather than after 'zebra'.
    """
    folded = unicodedata.normalize("NFKD", text.casefold())
    base = "".join(ch for ch in folded if not unicodedata.combining(ch))
    return (base, text)


def alphabet_collator(alphabet: str, lower: Callable[[str], str] = str.lower) -> Collator:
    """
    Build a collator from an explicit alphabet.

    Letters in the alphabet sort by their position; anything else sorts
    after them by code point.
    """
    order = {ch: i for i, ch in enumerate(alphabet)}
    tail = len(alphabet)

    def key(text: str) -> tuple:
        lowered = lower(unicodedata.normalize("NFC", text))
        return (tuple((order.get(ch, tail), ord(ch)) for ch in lowered), text)

    return key


def _turkish_lower(text: str) -> str:
    # Dotted capital I lowers to i, plain I lowers to dotless ı
    return text.replace("I", "ı").replace("İ", "i").lower()


turkish_collator: Collator = alphabet_collator(TURKISH_ALPHABET, lower=_turkish_lower)

COLLATORS: dict[str, Collator] = {
    "default": default_collator,
    "turkish": turkish_collator,
}


def get_collator(name: str) -> Collator:
    try:
        return COLLATORS[name]
    except KeyError:
        raise InvalidArgument(
            f"Unknown collation '{name}' (expected one of {', '.join(COLLATORS)})"
        ) from None
