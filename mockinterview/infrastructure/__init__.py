"""Infrastructure components for the evaluation pipeline.

This module contains the clients for the external capabilities the
analyzers depend on: hosted inference models, the generative model,
Praat, and speech recognition.
"""

# Audio infrastructure
from .audio import PraatRunner, SpeechRecognizer, temporary_wav, wav_duration_seconds

# Model clients
from .inference import HuggingFaceInferenceClient
from .llm import VertexRestClient

__all__ = [
    # Audio
    "PraatRunner", "SpeechRecognizer", "temporary_wav", "wav_duration_seconds",

    # Model clients
    "HuggingFaceInferenceClient", "VertexRestClient"
]
