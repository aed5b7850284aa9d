"""Text analysis helpers: tokenization and lexical statistics."""

from .statistics import compute
from .tokenizer import extract_punctuation, extract_sentences, extract_words, tokenize

__all__ = [
    "compute",
    "extract_punctuation",
    "extract_sentences",
    "extract_words",
    "tokenize",
]
