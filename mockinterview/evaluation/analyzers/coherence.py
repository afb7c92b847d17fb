"""
Coherence analysis: similarity between adjacent sentences plus structural heuristics.
"""
import asyncio
import logging
from typing import Dict, List, Any, Optional

from .base import Analyzer, call_service, clamp
from ..models import AnalyzerKind, AnalyzerResult, ResultStatus, Utterance
from ...config import SIMILARITY_MODEL, SERVICE_TIMEOUT, NEUTRAL_SIMILARITY, COHERENCE_RECOMMENDATION_THRESHOLD
from ...errors import ServiceError
from ...utils.text import tokenize_words, split_sentences

logger = logging.getLogger("coherence_analyzer")

INTRO_MARKERS = (
    "first", "to begin", "to start", "in my experience", "i would", "i think",
    "i believe", "the answer", "let me", "great question", "when i",
)
CONCLUSION_MARKERS = (
    "in conclusion", "therefore", "to summarize", "in summary", "overall",
    "ultimately", "as a result",
)
INTRO_MIN_WORDS = 8


def has_marker(sentence: str, markers) -> bool:
    lowered = " " + " ".join(tokenize_words(sentence.lower())) + " "
    return any(f" {m} " in lowered for m in markers)


def analyze_structure(sentences: List[str]) -> Dict[str, Any]:
    """Sentence count, mean length, and introduction/conclusion detection."""
    lengths = [len(tokenize_words(s)) for s in sentences]
    avg = sum(lengths) / len(lengths) if lengths else 0.0

    has_intro = bool(sentences) and (has_marker(sentences[0], INTRO_MARKERS) or lengths[0] >= INTRO_MIN_WORDS)
    has_conclusion = len(sentences) > 1 and has_marker(sentences[-1], CONCLUSION_MARKERS)

    score = 0.0
    if has_intro:
        score += 0.3
    if has_conclusion:
        score += 0.3
    if len(sentences) >= 3:
        score += 0.2
    if 8 <= avg <= 25:
        score += 0.2

    return {
        "sentenceCount": len(sentences),
        "avgWordsPerSentence": avg,
        "hasIntroduction": has_intro,
        "hasConclusion": has_conclusion,
        "structureScore": score,
    }


class CoherenceAnalyzer(Analyzer):
    """
    Scores the flow between consecutive sentences. A failed pairwise call
    counts as neutral similarity for that pair only.
    """
    kind = AnalyzerKind.COHERENCE

    def __init__(self, similarity, model: str = SIMILARITY_MODEL, timeout: float = SERVICE_TIMEOUT):
        self.similarity = similarity
        self.model = model
        self.timeout = timeout

    async def _pair_similarity(self, previous: str, current: str) -> Optional[float]:
        try:
            scores = await call_service(self.similarity.similarity, previous, [current], self.model,
                                        timeout=self.timeout, service=self.model)
            return clamp(float(scores[0]))
        except ServiceError as e:
            logger.warning("Sentence similarity failed, using neutral score: %s", e)
            return None
        except Exception as e:
            logger.exception("Unexpected sentence similarity failure, using neutral score: %s", e)
            return None

    async def analyze(self, utterance: Utterance, audio: Optional[bytes] = None) -> AnalyzerResult:
        sentences = split_sentences(utterance.text)
        structure = analyze_structure(sentences)

        if not sentences:
            return AnalyzerResult(kind=self.kind, score=0.0, details={
                "overallCoherence": 0.0, "sentenceFlowScores": [], "structure": structure,
            })

        pairs = [(sentences[i - 1], sentences[i]) for i in range(1, len(sentences))]
        results = await asyncio.gather(*(self._pair_similarity(prev, cur) for prev, cur in pairs))

        failed = sum(1 for r in results if r is None)
        pair_scores = [NEUTRAL_SIMILARITY if r is None else r for r in results]
        overall = sum(pair_scores) / len(pair_scores) if pair_scores else 1.0

        suggestions = []
        if overall < COHERENCE_RECOMMENDATION_THRESHOLD:
            suggestions.append("Improve answer flow and coherence between points")
        if not structure["hasConclusion"] and len(sentences) > 2:
            suggestions.append("Close with a short summary of your main point")

        return AnalyzerResult(
            kind=self.kind,
            score=overall * 100.0,
            details={
                "overallCoherence": overall,
                "sentenceFlowScores": [1.0] + pair_scores,
                "failedPairs": failed,
                "structure": structure,
            },
            suggestions=suggestions,
            status=ResultStatus.DEGRADED if failed else ResultStatus.OK,
            note=f"{failed} of {len(pairs)} sentence comparisons used a neutral score" if failed else None,
        )
