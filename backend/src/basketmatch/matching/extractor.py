"""Quantity and brand extraction from normalized grocery-list entries.

Order of operations:
1. quantity/size tokens ("2l", "500g", "2 pint", "dozen", "family pack")
2. brand tokens, multi-word brands first ("golden flow" before "flow")
3. whatever remains is the core phrase

A removal that would leave the core phrase empty is skipped, so "dozen" or
"heinz" on their own stay searchable.
"""

import re
from typing import FrozenSet, Iterable, List, Optional, Tuple

from .lexicon import BRAND_LEXICON
from .ports import ExtractedAttributes, Quantity
from .units import normalize_unit

# Size words reported as the quantity: phrase -> (amount, unit)
SIZE_WORDS = {
    "half dozen": (0.5, "DOZEN"),
    "dozen": (1.0, "DOZEN"),
    "family pack": (None, "PACK"),
    "family size": (None, None),
    "value pack": (None, "PACK"),
    "twin pack": (2.0, "PACK"),
    "multipack": (None, "PACK"),
    "pack": (None, "PACK"),
    "large": (None, None),
    "small": (None, None),
    "medium": (None, None),
    "big": (None, None),
    "mini": (None, None),
    "jumbo": (None, None),
    "xl": (None, None),
    "bottle": (1.0, "EACH"),
    "jar": (1.0, "EACH"),
    "tin": (1.0, "EACH"),
    "can": (1.0, "EACH"),
    "box": (1.0, "EACH"),
    "bag": (1.0, "EACH"),
    "carton": (1.0, "EACH"),
    "tub": (1.0, "EACH"),
    "bunch": (1.0, "EACH"),
    "punnet": (1.0, "EACH"),
}

# Descriptors stripped like size words but never reported as quantity
DESCRIPTOR_WORDS = frozenset({
    "fresh", "organic", "free range", "individual",
})

_NUMBER = re.compile(r"^\d+$")
_NUMBER_WITH_UNIT = re.compile(r"^(\d+)([a-z]+)$")


def _max_phrase_len(phrases: Iterable[str]) -> int:
    return max((len(p.split()) for p in phrases), default=1)


class AttributeExtractor:
    """Split a normalized query into core phrase, brand and quantity.

    Args:
        vocabulary: Tokens of catalog canonical names; size and descriptor
            words in this set are item words, not modifiers
        brands: Extra normalized brands (typically the catalog's known brands)
    """

    def __init__(self, vocabulary: Iterable[str] = (), brands: Iterable[str] = ()):
        self.vocabulary: FrozenSet[str] = frozenset(vocabulary)
        self.brands: FrozenSet[str] = BRAND_LEXICON | frozenset(b for b in brands if b)
        self._brand_max_len = _max_phrase_len(self.brands)
        self._modifiers = {**{w: None for w in DESCRIPTOR_WORDS}, **SIZE_WORDS}
        self._modifier_max_len = _max_phrase_len(self._modifiers)

    def extract(self, normalized_text: str) -> ExtractedAttributes:
        """Extract quantity and brand, returning the core phrase.

        Args:
            normalized_text: Output of normalize()

        Returns:
            ExtractedAttributes(core_phrase, brand, quantity)
        """
        tokens = normalized_text.split()
        if not tokens:
            return ExtractedAttributes(core_phrase="")

        remaining, quantity = self._strip_quantities(tokens)
        if not remaining:
            remaining, quantity = tokens, None

        core_tokens, brand = self._strip_brands(remaining)
        if not core_tokens:
            core_tokens, brand = remaining, None

        return ExtractedAttributes(
            core_phrase=" ".join(core_tokens),
            brand=brand,
            quantity=quantity,
        )

    def _is_vocabulary(self, phrase: str) -> bool:
        return all(token in self.vocabulary for token in phrase.split())

    def _strip_quantities(self, tokens: List[str]) -> Tuple[List[str], Optional[Quantity]]:
        kept: List[str] = []
        numeric: Optional[Quantity] = None
        sized: Optional[Quantity] = None
        i = 0

        while i < len(tokens):
            token = tokens[i]

            # "500g", "2l", "6pk"
            match = _NUMBER_WITH_UNIT.match(token)
            if match and normalize_unit(match.group(2)) and not self._is_vocabulary(token):
                if numeric is None:
                    numeric = Quantity(
                        text=token,
                        amount=float(match.group(1)),
                        unit=normalize_unit(match.group(2)),
                    )
                i += 1
                continue

            if _NUMBER.match(token) and not self._is_vocabulary(token):
                # "2 pint", "6 pack"
                next_token = tokens[i + 1] if i + 1 < len(tokens) else None
                unit = normalize_unit(next_token) if next_token else None
                if unit:
                    if numeric is None:
                        numeric = Quantity(
                            text=f"{token} {next_token}",
                            amount=float(token),
                            unit=unit,
                        )
                    i += 2
                    continue
                # bare count: "2 milk"
                if numeric is None:
                    numeric = Quantity(text=token, amount=float(token), unit=None)
                i += 1
                continue

            phrase_len = self._match_modifier(tokens, i)
            if phrase_len:
                phrase = " ".join(tokens[i:i + phrase_len])
                if phrase in SIZE_WORDS and sized is None:
                    amount, unit = SIZE_WORDS[phrase]
                    sized = Quantity(text=phrase, amount=amount, unit=unit)
                i += phrase_len
                continue

            kept.append(token)
            i += 1

        return kept, numeric or sized

    def _match_modifier(self, tokens: List[str], start: int) -> int:
        """Length of the longest size/descriptor phrase at start, else 0."""
        for length in range(min(self._modifier_max_len, len(tokens) - start), 0, -1):
            phrase = " ".join(tokens[start:start + length])
            if phrase in self._modifiers and not self._is_vocabulary(phrase):
                return length
        return 0

    def _strip_brands(self, tokens: List[str]) -> Tuple[List[str], Optional[str]]:
        kept: List[str] = []
        brand: Optional[str] = None
        i = 0

        while i < len(tokens):
            for length in range(min(self._brand_max_len, len(tokens) - i), 0, -1):
                phrase = " ".join(tokens[i:i + length])
                if phrase in self.brands:
                    if brand is None:
                        brand = phrase
                    i += length
                    break
            else:
                kept.append(tokens[i])
                i += 1

        return kept, brand
