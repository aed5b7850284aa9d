"""Lexical statistics derived from a tokenized book.

Every selector keeps the first candidate on ties, so reports are reproducible
for identical input. Empty input yields empty strings and an empty frequency table.
"""
from __future__ import annotations

from collections import Counter
from typing import List, Sequence, Tuple

from bookstats.models import BookStatistics, TokenSet


def longest_sentence(sentences: Sequence[str]) -> str:
    """Longest by character count."""
    if not sentences:
        return ""
    return max(sentences, key=len)


def shortest_sentence(sentences: Sequence[str]) -> str:
    """Shortest by word count (split on single spaces), not by characters."""
    if not sentences:
        return ""
    return min(sentences, key=lambda sentence: len(sentence.split(" ")))


def longest_word(words: Sequence[str]) -> str:
    if not words:
        return ""
    return max(words, key=len)


def most_common_letter(content: str) -> str:
    # Counter keeps first-seen order and most_common() sorts stably, so ties go to the earliest letter.
    counts = Counter(char for char in content if char.isalpha())
    if not counts:
        return ""
    return counts.most_common(1)[0][0]


def word_frequency(words: Sequence[str]) -> List[Tuple[str, int]]:
    return Counter(words).most_common()


def compute(tokens: TokenSet, content: str) -> BookStatistics:
    return BookStatistics(
        longest_sentence=longest_sentence(tokens.sentences),
        shortest_sentence=shortest_sentence(tokens.sentences),
        longest_word=longest_word(tokens.words),
        most_common_letter=most_common_letter(content),
        word_frequency=word_frequency(tokens.words),
        total_sentences=len(tokens.sentences),
        total_words=len(tokens.words),
        total_bytes=len(content.encode("utf-8", errors="replace")),
        punctuation=tuple(sorted(tokens.punctuation)),
    )
