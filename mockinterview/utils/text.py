"""
Word tokenization and sentence segmentation shared by the text analyzers.
"""
import re
from typing import List, Tuple

WORD_PATTERN = re.compile(r"[A-Za-z0-9_]+(?:'[A-Za-z]+)?")
SENTENCE_BOUNDARY = re.compile(r"[.!?]+")


def tokenize_words(text: str) -> List[str]:
    """Split text into word tokens, dropping punctuation. Contractions stay whole."""
    if not text:
        return []
    return WORD_PATTERN.findall(text)


def split_sentences(text: str) -> List[str]:
    """Split text on terminal punctuation, returning trimmed non-empty sentences."""
    if not text:
        return []
    return [s.strip() for s in SENTENCE_BOUNDARY.split(text) if s.strip()]


def bigrams(words: List[str]) -> List[Tuple[str, str]]:
    """Consecutive word pairs."""
    return list(zip(words, words[1:]))
