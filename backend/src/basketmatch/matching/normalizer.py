"""Text normalization for grocery-list entries and catalog names.

Both sides of every comparison go through normalize(), so catalog keys and
shopper input always meet in the same canonical form:

- lowercase, trimmed, single spaces
- hyphens, slashes and underscores become spaces
- anything outside [a-z0-9 ] is stripped
- plural nouns are singularized, except plural-by-default grocery nouns

normalize() is idempotent: every rule that fires produces a word that no rule
fires on again.
"""

import re

# Distinguished empty value: "no match, no exception" downstream
EMPTY = ""

# Nouns the catalog keys on in plural form
PLURAL_BY_DEFAULT = frozenset({
    "eggs", "oats", "noodles", "cookies", "chips", "crisps", "grits",
    "greens", "sprouts", "crackers", "pretzels", "cornflakes", "flakes",
    "herbs", "spices", "sweets", "nuts", "peas", "lentils", "chickpeas",
    "beans", "brussels", "molasses", "scallions", "leftovers",
})

_SEPARATORS = re.compile(r"[-/_]+")
_DISALLOWED = re.compile(r"[^a-z0-9 ]+")
_WHITESPACE = re.compile(r"\s+")

# Suffixes that drop "es" rather than "s" (tomatoes, boxes, peaches, dishes, glasses)
_ES_SUFFIXES = ("oes", "xes", "ches", "shes", "sses")

# Endings that are not plural markers (glass, asparagus, tennis)
_NON_PLURAL_ENDINGS = ("ss", "us", "is")


def singularize(word: str) -> str:
    """Singularize one normalized word.

    Args:
        word: Lowercase token without punctuation

    Returns:
        Singular form, or the word unchanged when no rule applies
    """
    if len(word) <= 3 or word in PLURAL_BY_DEFAULT:
        return word
    if any(ch.isdigit() for ch in word):
        return word
    if not word.endswith("s") or word.endswith(_NON_PLURAL_ENDINGS):
        return word

    if word.endswith("ies") and len(word) > 4:
        return word[:-3] + "y"
    if word.endswith(_ES_SUFFIXES):
        return word[:-2]
    return word[:-1]


def normalize(text) -> str:
    """Canonicalize raw text for matching.

    Args:
        text: Raw shopper input or catalog string

    Returns:
        Normalized text, or EMPTY for empty, whitespace-only or non-string input
    """
    if not isinstance(text, str):
        return EMPTY

    lowered = _SEPARATORS.sub(" ", text.lower())
    cleaned = _DISALLOWED.sub("", lowered)
    words = _WHITESPACE.split(cleaned.strip())

    singular = [singularize(word) for word in words if word]
    if not singular:
        return EMPTY

    return " ".join(singular)


def is_empty(normalized: str) -> bool:
    """True when normalize() produced the distinguished empty value."""
    return normalized == EMPTY
