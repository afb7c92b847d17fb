"""
Content and correctness analysis.

Two modes:
- Rubric: a generative model scores the answer against a fixed JSON rubric
  (plus a factual-accuracy estimate for technical questions).
- Reference: the answer is compared with an expected answer through
  semantic similarity, zero-shot correctness classification and key-point coverage.

Both modes are score-bearing: service and parse failures are raised as typed
errors rather than replaced with default scores.
"""
import asyncio
import logging
from typing import Dict, List, Any, Optional

from .base import Analyzer, call_service, clamp
from ..models import AnalyzerKind, AnalyzerResult, Utterance
from ..prompts import EvaluationPrompts, RUBRIC_SCHEMA_HINT, TECHNICAL_SCHEMA_HINT
from ..schemas import RubricEvaluation, TechnicalAccuracy, parse_structured_response
from ...config import (
    SERVICE_TIMEOUT, SIMILARITY_MODEL, ZERO_SHOT_MODEL, CORRECTNESS_LABELS,
    RUBRIC_TEMPERATURE, TECHNICAL_TEMPERATURE,
)
from ...errors import InputValidationError, MalformedResponseError

logger = logging.getLogger("content_analyzer")

KEY_POINT_MIN_CHARS = 10
CLASSIFICATION_VALUES = {"correct": 1.0, "partially correct": 0.5, "incorrect": 0.0}
REFERENCE_WEIGHTS = {"similarity": 0.4, "alignment": 0.3, "classification": 0.3}


class RubricContentAnalyzer(Analyzer):
    """Rubric-driven evaluation of free-form interview answers."""
    kind = AnalyzerKind.CONTENT

    def __init__(self, llm, timeout: float = SERVICE_TIMEOUT):
        self.llm = llm
        self.timeout = timeout

    async def _complete(self, prompt: str, schema_hint: Dict[str, Any], temperature: float, service: str) -> str:
        return await call_service(self.llm.complete, prompt, schema_hint, temperature=temperature,
                                  timeout=self.timeout, service=service)

    async def _rubric(self, utterance: Utterance) -> RubricEvaluation:
        prompt = EvaluationPrompts.rubric_evaluation(
            answer=utterance.text,
            question=utterance.question or "",
            question_type=utterance.question_type.value,
            role=utterance.role,
            level=utterance.level or "",
        )
        raw = await self._complete(prompt, RUBRIC_SCHEMA_HINT, RUBRIC_TEMPERATURE, "rubric")
        return parse_structured_response(raw, RubricEvaluation, service="rubric")

    async def _technical(self, utterance: Utterance) -> TechnicalAccuracy:
        prompt = EvaluationPrompts.technical_accuracy(
            answer=utterance.text,
            question=utterance.question or "",
            role=utterance.role,
        )
        raw = await self._complete(prompt, TECHNICAL_SCHEMA_HINT, TECHNICAL_TEMPERATURE, "technical_accuracy")
        return parse_structured_response(raw, TechnicalAccuracy, service="technical_accuracy")

    async def analyze(self, utterance: Utterance, audio: Optional[bytes] = None) -> AnalyzerResult:
        if not utterance.text.strip():
            return AnalyzerResult(kind=self.kind, score=0.0, details={
                "clarityScore": 0.0, "structureScore": 0.0, "contentScore": 0.0,
                "relevanceScore": 0.0, "overallScore": 0.0,
                "technicalAccuracy": 0.0 if utterance.is_technical else None,
                "priorityImprovements": [], "rubric": None, "technical": None,
            }, note="Empty answer")

        if utterance.is_technical:
            rubric, technical = await asyncio.gather(self._rubric(utterance), self._technical(utterance))
        else:
            rubric, technical = await self._rubric(utterance), None

        relevance = rubric.content.relevance if rubric.content.relevance is not None else rubric.content.score
        suggestions = list(rubric.clarity.improvements) + list(rubric.structure.improvements) \
            + list(rubric.delivery.improvements)

        logger.info("Rubric overall %.1f/10%s", rubric.overall.score,
                    f", technical accuracy {technical.accuracy_score:.0f}" if technical else "")

        return AnalyzerResult(
            kind=self.kind,
            score=rubric.overall.score * 10.0,
            details={
                "clarityScore": rubric.clarity.score * 10.0,
                "structureScore": rubric.structure.score * 10.0,
                "contentScore": rubric.content.score * 10.0,
                "relevanceScore": relevance * 10.0,
                "overallScore": rubric.overall.score * 10.0,
                "technicalAccuracy": technical.accuracy_score if technical else None,
                "priorityImprovements": list(rubric.overall.priority_improvements),
                "summary": rubric.overall.summary,
                "rubric": rubric.model_dump(by_alias=True),
                "technical": technical.model_dump(by_alias=True) if technical else None,
            },
            suggestions=suggestions,
        )


def extract_key_points(expected_answer: str) -> List[str]:
    """Sentences of the expected answer long enough to be a point of their own."""
    points = [p.strip() for p in expected_answer.replace("!", ".").replace("?", ".").split(".")]
    return [p for p in points if len(p) > KEY_POINT_MIN_CHARS]


def extract_key_phrases(point: str) -> List[str]:
    """Every 2- and 3-word window of the point."""
    words = point.split()
    phrases = []
    for i in range(len(words) - 1):
        phrases.append(f"{words[i]} {words[i + 1]}")
        if i < len(words) - 2:
            phrases.append(f"{words[i]} {words[i + 1]} {words[i + 2]}")
    return phrases


def find_included_points(answer: str, key_points: List[str]) -> List[str]:
    lowered = answer.lower()
    return [
        point for point in key_points
        if any(phrase.lower() in lowered for phrase in extract_key_phrases(point))
    ]


def coverage_suggestions(missing_points: List[str]) -> List[str]:
    if not missing_points:
        return ["Your answer covered all key points. Well done!"]
    return ["Consider including these points in your answer:"] + [f"- {p}" for p in missing_points]


class ReferenceAnswerAnalyzer(Analyzer):
    """Compares the answer with a reference answer. Requires `expected_answer`."""
    kind = AnalyzerKind.REFERENCE

    def __init__(self, similarity, zero_shot,
                 similarity_model: str = SIMILARITY_MODEL,
                 zero_shot_model: str = ZERO_SHOT_MODEL,
                 timeout: float = SERVICE_TIMEOUT):
        self.similarity = similarity
        self.zero_shot = zero_shot
        self.similarity_model = similarity_model
        self.zero_shot_model = zero_shot_model
        self.timeout = timeout

    async def _similarity(self, expected: str, answer: str) -> float:
        scores = await call_service(self.similarity.similarity, expected, [answer], self.similarity_model,
                                    timeout=self.timeout, service=self.similarity_model)
        if not scores:
            raise MalformedResponseError("Similarity returned no scores", service=self.similarity_model)
        return clamp(float(scores[0]))

    async def _classify(self, answer: str) -> Dict[str, Any]:
        result = await call_service(self.zero_shot.zero_shot, answer, list(CORRECTNESS_LABELS), self.zero_shot_model,
                                    timeout=self.timeout, service=self.zero_shot_model)
        labels, scores = result.get("labels") or [], result.get("scores") or []
        if not labels or not scores or labels[0] not in CLASSIFICATION_VALUES:
            raise MalformedResponseError("Unexpected correctness classification", service=self.zero_shot_model,
                                         raw=repr(result))
        return {"label": labels[0], "score": float(scores[0])}

    async def analyze(self, utterance: Utterance, audio: Optional[bytes] = None) -> AnalyzerResult:
        expected = (utterance.expected_answer or "").strip()
        if not expected:
            raise InputValidationError("Reference-answer evaluation requires an expected answer")

        key_points = extract_key_points(expected)
        answer = utterance.text

        if not answer.strip():
            return AnalyzerResult(kind=self.kind, score=0.0, details={
                "similarity": 0.0, "classification": None,
                "keyPoints": {"total": len(key_points), "included": [], "missing": key_points},
                "topicAlignment": 0.0 if key_points else None,
            }, suggestions=coverage_suggestions(key_points), note="Empty answer")

        similarity, classification = await asyncio.gather(
            self._similarity(expected, answer), self._classify(answer)
        )

        included = find_included_points(answer, key_points)
        missing = [p for p in key_points if p not in included]
        alignment = len(included) / len(key_points) * 100.0 if key_points else None

        # Without key points the alignment term follows the similarity
        alignment_term = alignment / 100.0 if alignment is not None else similarity
        score = 100.0 * (
            REFERENCE_WEIGHTS["similarity"] * similarity
            + REFERENCE_WEIGHTS["alignment"] * alignment_term
            + REFERENCE_WEIGHTS["classification"] * CLASSIFICATION_VALUES[classification["label"]]
        )

        return AnalyzerResult(
            kind=self.kind,
            score=score,
            details={
                "similarity": similarity,
                "classification": classification,
                "keyPoints": {"total": len(key_points), "included": included, "missing": missing},
                "missingPoints": missing,
                "topicAlignment": alignment,
            },
            suggestions=coverage_suggestions(missing),
        )
