"""Utility modules for logging and text handling."""

from .logging import setup_logging, evaluation_log_context, current_evaluation_id
from .text import tokenize_words, split_sentences, bigrams

__all__ = [
    "setup_logging", "evaluation_log_context", "current_evaluation_id",
    "tokenize_words", "split_sentences", "bigrams",
]
