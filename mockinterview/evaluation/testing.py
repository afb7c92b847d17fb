"""
Testing infrastructure with mock services for the evaluation pipeline.
"""
import io
import json
import wave
import threading
from typing import Dict, Any, List, Optional, Callable

import numpy as np

from .analyzers import (
    FluencyAnalyzer, GrammarAnalyzer, ToneAnalyzer, CoherenceAnalyzer,
    RubricContentAnalyzer, ReferenceAnswerAnalyzer, ProsodyAnalyzer, SimulatedEstimator,
)
from .pipeline import EvaluationPipeline
from ..infrastructure.audio import VoiceMeasurements


SAMPLE_RUBRIC: Dict[str, Any] = {
    "clarity": {"score": 8, "strengths": ["Direct answer"], "improvements": ["Define terms before using them"]},
    "structure": {
        "score": 7, "hasIntroduction": True, "hasMainPoints": True, "hasConclusion": False,
        "improvements": ["Finish with a one-sentence summary"],
    },
    "content": {"score": 8, "relevance": 9, "depth": 7, "keyPoints": ["caching"], "missingElements": []},
    "delivery": {"conciseness": 7, "articulationScore": 8, "improvements": []},
    "overall": {
        "score": 8, "summary": "Solid answer.", "topStrengths": ["Clear example"],
        "priorityImprovements": ["Quantify the impact of your work"],
    },
}

SAMPLE_TECHNICAL: Dict[str, Any] = {
    "accuracyScore": 85,
    "conceptsMentioned": ["cache invalidation"],
    "inaccuracies": [],
    "depth": "solid working knowledge",
}


def rubric_json(**overrides) -> str:
    """SAMPLE_RUBRIC as JSON with top-level sections replaced."""
    data = dict(SAMPLE_RUBRIC)
    data.update(overrides)
    return json.dumps(data)


class MockClassificationClient:
    """Mock text-classification client. Responses are keyed by model name."""

    def __init__(self, responses: Optional[Dict[str, List[Dict[str, Any]]]] = None,
                 default: Optional[List[Dict[str, Any]]] = None,
                 error: Optional[Exception] = None):
        self.responses = responses or {}
        self.default = default if default is not None else [
            {"label": "neutral", "score": 0.6},
            {"label": "optimism", "score": 0.3},
            {"label": "nervousness", "score": 0.1},
        ]
        self.error = error
        self.request_history = []
        self._lock = threading.Lock()

    def classify(self, text: str, model: str) -> List[Dict[str, Any]]:
        with self._lock:
            self.request_history.append({"text": text, "model": model})
        if self.error is not None:
            raise self.error
        return [dict(item) for item in self.responses.get(model, self.default)]


class MockSimilarityClient:
    """
    Mock sentence-similarity client. `score_fn(source, candidate)` decides the
    score; sources listed in `fail_sources` raise `error`.
    """

    def __init__(self, default: float = 0.9,
                 score_fn: Optional[Callable[[str, str], float]] = None,
                 fail_sources: Optional[List[str]] = None,
                 error: Optional[Exception] = None):
        self.default = default
        self.score_fn = score_fn
        self.fail_sources = set(fail_sources or [])
        self.error = error
        self.request_history = []
        self._lock = threading.Lock()

    def similarity(self, source: str, candidates: List[str], model: str) -> List[float]:
        with self._lock:
            self.request_history.append({"source": source, "candidates": list(candidates), "model": model})
        if self.error is not None and (not self.fail_sources or source in self.fail_sources):
            raise self.error
        if self.score_fn is not None:
            return [self.score_fn(source, c) for c in candidates]
        return [self.default for _ in candidates]


class MockZeroShotClient:
    """Mock zero-shot classifier returning a fixed top label."""

    def __init__(self, label: str = "correct", score: float = 0.8, error: Optional[Exception] = None):
        self.label = label
        self.score = score
        self.error = error
        self.request_history = []

    def zero_shot(self, text: str, labels: List[str], model: str) -> Dict[str, List[Any]]:
        self.request_history.append({"text": text, "labels": list(labels), "model": model})
        if self.error is not None:
            raise self.error
        others = [l for l in labels if l != self.label]
        rest = (1.0 - self.score) / len(others) if others else 0.0
        return {"labels": [self.label] + others, "scores": [self.score] + [rest] * len(others)}


class MockLLMClient:
    """
    Mock structured-completion client. Rubric and technical-accuracy prompts
    are told apart by their schema hint, since they run concurrently.
    """

    def __init__(self, rubric_response: Optional[str] = None,
                 technical_response: Optional[str] = None,
                 error: Optional[Exception] = None):
        self.rubric_response = rubric_response if rubric_response is not None else rubric_json()
        self.technical_response = technical_response if technical_response is not None \
            else json.dumps(SAMPLE_TECHNICAL)
        self.error = error
        self.request_history = []
        self._lock = threading.Lock()

    def complete(self, prompt: str, schema_hint: Dict[str, Any], temperature: float = 0.0) -> str:
        with self._lock:
            self.request_history.append({"prompt": prompt, "schema_hint": schema_hint, "temperature": temperature})
        if self.error is not None:
            raise self.error
        if "accuracyScore" in schema_hint:
            return self.technical_response
        return self.rubric_response


class MockSpeechRecognizer:
    """Mock speech recognizer returning a fixed transcript."""

    def __init__(self, transcript: str = "", error: Optional[Exception] = None):
        self.transcript = transcript
        self.error = error
        self.request_history = []

    def transcribe(self, audio: bytes, language: Optional[str] = None,
                   prompt: Optional[str] = None, engine: Optional[str] = None) -> str:
        self.request_history.append({"bytes": len(audio), "language": language, "prompt": prompt, "engine": engine})
        if self.error is not None:
            raise self.error
        return self.transcript


class FixedProsodyEstimator:
    """Prosody estimator double returning fixed measurements."""

    def __init__(self, measurements: Optional[VoiceMeasurements] = None, simulated: bool = False,
                 available: bool = True, error: Optional[Exception] = None, name: str = "fixed"):
        self.measurements = measurements or VoiceMeasurements(
            speech_rate=4.0, pitch_mean=150.0, pitch_min=100.0, pitch_max=220.0, pitch_stdev=25.0,
            jitter=0.01, shimmer=0.05, pause_count=4, pause_duration=2.4, pause_rate=0.25,
            intensity_mean=65.0, intensity_min=50.0, intensity_max=78.0,
        )
        self.simulated = simulated
        self.available = available
        self.error = error
        self.name = name
        self.calls = 0

    def is_available(self) -> bool:
        return self.available

    def estimate(self, audio: bytes) -> VoiceMeasurements:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.measurements


def make_wav_bytes(seconds: float = 1.0, sr: int = 16000, channels: int = 1, freq: float = 220.0) -> bytes:
    """A short PCM16 sine tone as WAV bytes."""
    t = np.arange(int(seconds * sr)) / sr
    tone = (0.3 * np.sin(2 * np.pi * freq * t) * 32767).astype(np.int16)
    if channels > 1:
        tone = np.repeat(tone[:, None], channels, axis=1)

    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(2)
        wf.setframerate(sr)
        wf.writeframes(tone.tobytes())
    return buffer.getvalue()


def create_mock_pipeline_setup(classifier: Optional[MockClassificationClient] = None,
                               similarity: Optional[MockSimilarityClient] = None,
                               zero_shot: Optional[MockZeroShotClient] = None,
                               llm: Optional[MockLLMClient] = None,
                               speech: Optional[MockSpeechRecognizer] = None,
                               prosody_primary=None,
                               prosody_seed: int = 7,
                               weighting_policy: str = "full_table",
                               service_timeout: float = 5.0) -> Dict[str, Any]:
    """Create a complete pipeline wired to mock services for testing."""
    classifier = classifier or MockClassificationClient()
    similarity = similarity or MockSimilarityClient()
    zero_shot = zero_shot or MockZeroShotClient()
    llm = llm or MockLLMClient()
    speech = speech or MockSpeechRecognizer("I would start by profiling the service.")

    pipeline = EvaluationPipeline(
        fluency=FluencyAnalyzer(),
        tone=ToneAnalyzer(classifier, timeout=service_timeout),
        coherence=CoherenceAnalyzer(similarity, timeout=service_timeout),
        content=RubricContentAnalyzer(llm, timeout=service_timeout),
        grammar=GrammarAnalyzer(classifier, timeout=service_timeout),
        reference=ReferenceAnswerAnalyzer(similarity, zero_shot, timeout=service_timeout),
        prosody=ProsodyAnalyzer(primary=prosody_primary, fallback=SimulatedEstimator(prosody_seed),
                                timeout=service_timeout),
        speech=speech,
        weighting_policy=weighting_policy,
        service_timeout=service_timeout,
    )

    return {
        "pipeline": pipeline,
        "classifier": classifier,
        "similarity": similarity,
        "zero_shot": zero_shot,
        "llm": llm,
        "speech": speech,
    }
