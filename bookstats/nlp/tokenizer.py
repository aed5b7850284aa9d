"""Sentence, word and punctuation extraction for plain-text books."""
from __future__ import annotations

import re
import unicodedata
from typing import Iterable, List, Sequence

from bookstats.config import DEFAULT_SENTENCE_TERMINATORS, DEFAULT_SKIP_PATTERNS
from bookstats.models import TokenSet

_WORD_RE = re.compile(r"\b[\w']+(?:'\w+)?\b")


def extract_sentences(
    content: str,
    skip_patterns: Sequence[str] = DEFAULT_SKIP_PATTERNS,
    terminators: str = DEFAULT_SENTENCE_TERMINATORS,
) -> List[str]:
    """
    Group lines into sentences.

    Lines containing any skip pattern are dropped. Every other line is appended to
    a running buffer; a line holding a terminator closes the buffer as one sentence.
    Text left in the buffer when the content ends is discarded.
    """
    sentences: List[str] = []
    buffer: List[str] = []
    for line in content.split("\n"):
        if any(pattern in line for pattern in skip_patterns):
            continue
        if any(mark in line for mark in terminators):
            buffer.append(line.strip())
            sentences.append("".join(buffer).strip())
            buffer = []
        else:
            buffer.append(line.strip() + " ")
    return sentences


def extract_words(content: str) -> List[str]:
    return [match.group(0) for match in _WORD_RE.finditer(content) if match.group(0).strip()]


def extract_punctuation(content: str) -> set[str]:
    return {char for char in set(content) if unicodedata.category(char).startswith("P")}


def tokenize(
    content: str,
    skip_patterns: Iterable[str] = DEFAULT_SKIP_PATTERNS,
    terminators: str = DEFAULT_SENTENCE_TERMINATORS,
) -> TokenSet:
    return TokenSet(
        sentences=extract_sentences(content, tuple(skip_patterns), terminators),
        words=extract_words(content),
        punctuation=extract_punctuation(content),
    )
