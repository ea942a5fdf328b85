"""Vocabulary-bounded typo correction."""

from typing import Iterable

from rapidfuzz import process
from rapidfuzz.distance import DamerauLevenshtein

MAX_DISTANCE = 2
SHORT_WORD_MAX_DISTANCE = 1
SHORT_WORD_LENGTH = 4
MIN_CORRECTABLE_LENGTH = 3


def max_distance_for(word: str) -> int:
    """Edit budget for a word: none for 1-2 chars, 1 for 3-4, 2 otherwise."""
    if len(word) < MIN_CORRECTABLE_LENGTH:
        return 0
    if len(word) <= SHORT_WORD_LENGTH:
        return SHORT_WORD_MAX_DISTANCE
    return MAX_DISTANCE


class TypoCorrector:
    """Correct each word of a core phrase to its closest vocabulary token.

    Vocabulary is kept sorted so equal distances resolve to the
    lexicographically smaller token.
    """

    def __init__(self, vocabulary: Iterable[str]):
        self._known = frozenset(token for token in vocabulary if token)
        self._vocab = sorted(self._known)

    def __len__(self) -> int:
        return len(self._vocab)

    def correct_word(self, word: str) -> str:
        if not word or word in self._known or any(c.isdigit() for c in word):
            return word

        budget = max_distance_for(word)
        if budget == 0 or not self._vocab:
            return word

        match = process.extractOne(
            word,
            self._vocab,
            scorer=DamerauLevenshtein.distance,
            score_cutoff=budget,
        )
        if match is None:
            return word
        return match[0]

    def correct(self, core_phrase: str) -> str:
        """Correct a normalized core phrase word by word.

        Args:
            core_phrase: Normalized phrase

        Returns:
            Phrase with misspelt words replaced; unchanged words stay as-is
        """
        if not core_phrase:
            return core_phrase
        return " ".join(self.correct_word(word) for word in core_phrase.split())
