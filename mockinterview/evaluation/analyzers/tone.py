"""
Tone analysis: emotion classification and professional/confident marker words.
"""
import re
import logging
from typing import Dict, List, Any, Optional, Tuple

from .base import Analyzer, call_service, clamp
from ..models import AnalyzerKind, AnalyzerResult, ResultStatus, Utterance
from ...config import EMOTION_MODEL, SERVICE_TIMEOUT, NEUTRAL_SCORE
from ...errors import ServiceError

logger = logging.getLogger("tone_analyzer")

TONE_MARKERS = {
    "professional": ["therefore", "consequently", "furthermore", "moreover", "specifically"],
    "confident": ["definitely", "certainly", "absolutely", "clearly", "strongly"],
    "uncertain": ["maybe", "perhaps", "possibly", "might", "could be"],
    "enthusiastic": ["excited", "passionate", "love", "enjoy", "fantastic"],
}

# Emotion label sets (go_emotions names included)
CONFIDENCE_LABELS = {"confident", "neutral", "optimistic", "optimism", "pride"}
NERVOUS_LABELS = {"anxious", "nervous", "nervousness", "uncertain", "confusion", "fear"}
PROFESSIONAL_LABELS = {"neutral", "confident", "serious", "approval"}
UNPROFESSIONAL_LABELS = {"angry", "anger", "aggressive", "sarcastic", "annoyance", "disgust"}
PROFESSIONALISM_AREA_THRESHOLD = 0.3

_MARKER_PATTERNS = {
    tone: [re.compile(r"\b" + re.escape(marker) + r"\b") for marker in markers]
    for tone, markers in TONE_MARKERS.items()
}


def marker_densities(text: str) -> Dict[str, float]:
    """Occurrences of each category's markers divided by the size of the marker set."""
    lowered = (text or "").lower()
    return {
        tone: sum(len(p.findall(lowered)) for p in patterns) / len(patterns)
        for tone, patterns in _MARKER_PATTERNS.items()
    }


def _signed_score(emotions: List[Dict[str, Any]], positive: set, negative: set) -> float:
    pos = sum(e["score"] for e in emotions if e["label"].lower() in positive)
    neg = sum(e["score"] for e in emotions if e["label"].lower() in negative)
    return clamp((pos - neg + 1.0) / 2.0)


def confidence_score(emotions: List[Dict[str, Any]]) -> float:
    """Confidence in [0, 1]; 0.5 when no relevant emotions are present."""
    return _signed_score(emotions, CONFIDENCE_LABELS, NERVOUS_LABELS)


def professionalism_score(emotions: List[Dict[str, Any]]) -> Tuple[float, List[str]]:
    """Professionalism in [0, 1] plus the unprofessional emotions worth flagging."""
    areas = [
        e["label"] for e in emotions
        if e["label"].lower() in UNPROFESSIONAL_LABELS and e["score"] >= PROFESSIONALISM_AREA_THRESHOLD
    ]
    return _signed_score(emotions, PROFESSIONAL_LABELS, UNPROFESSIONAL_LABELS), areas


def overall_tone(emotions: List[Dict[str, Any]], markers: Dict[str, float]) -> str:
    tone, density = max(markers.items(), key=lambda kv: kv[1], default=("neutral", 0.0))
    if density > 0:
        return tone
    if emotions:
        return max(emotions, key=lambda e: e["score"])["label"]
    return "neutral"


class ToneAnalyzer(Analyzer):
    """
    Best-effort tone feedback. A failed or empty classification yields neutral
    0.5 scores with a degraded status instead of an error.
    """
    kind = AnalyzerKind.TONE

    def __init__(self, classifier, model: str = EMOTION_MODEL, timeout: float = SERVICE_TIMEOUT):
        self.classifier = classifier
        self.model = model
        self.timeout = timeout

    async def analyze(self, utterance: Utterance, audio: Optional[bytes] = None) -> AnalyzerResult:
        text = utterance.text
        markers = marker_densities(text)

        emotions: List[Dict[str, Any]] = []
        note = None
        if text.strip():
            try:
                emotions = await call_service(self.classifier.classify, text, self.model,
                                              timeout=self.timeout, service=self.model)
            except ServiceError as e:
                logger.warning("Emotion classification failed, using neutral tone: %s", e)
                note = f"Emotion model unavailable: {e}"
            else:
                if not emotions:
                    note = "Emotion model returned no labels"
        else:
            note = "Empty answer"

        if emotions:
            confidence = confidence_score(emotions)
            professionalism, areas = professionalism_score(emotions)
            status = ResultStatus.OK
        else:
            confidence, professionalism, areas = NEUTRAL_SCORE, NEUTRAL_SCORE, []
            status = ResultStatus.DEGRADED

        suggestions = []
        if markers["uncertain"] > 0.3:
            suggestions.append("Use more confident language and avoid tentative phrases")
        if areas:
            suggestions.append(f"Keep a composed tone; the answer came across as {', '.join(areas)}")

        return AnalyzerResult(
            kind=self.kind,
            score=(confidence + professionalism) / 2.0 * 100.0,
            details={
                "emotions": [{"emotion": e["label"], "intensity": e["score"]} for e in emotions],
                "confidenceScore": confidence,
                "professionalism": {"score": professionalism, "areas": areas},
                "markers": markers,
                "professionalTone": markers["professional"],
                "confidence": markers["confident"],
                "enthusiasm": markers["enthusiastic"],
                "uncertainty": markers["uncertain"],
                "overallTone": overall_tone(emotions, markers),
            },
            suggestions=suggestions,
            status=status,
            note=note,
        )
