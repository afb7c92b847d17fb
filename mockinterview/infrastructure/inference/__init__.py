"""Hosted model inference (classification, similarity, zero-shot)."""

from .client import HuggingFaceInferenceClient

__all__ = ["HuggingFaceInferenceClient"]
