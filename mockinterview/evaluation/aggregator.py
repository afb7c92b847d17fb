"""
Aggregation of analyzer results into weighted scores and prioritized recommendations.
Pure functions; no I/O.
"""
import logging
from typing import Dict, List, Mapping, Optional

from .models import (
    AnalyzerKind, AnalyzerResult, Utterance, WeightedScoreSet, Recommendation,
    Priority, EvaluationReport, QuickFeedback,
)
from ..config import (
    CRITERIA_WEIGHTS, COMBINED_WEIGHTS, DELIVERY_WEIGHTS, PACE_SCORE_OPTIMAL, PACE_SCORE_OTHER,
    COHERENCE_RECOMMENDATION_THRESHOLD, CONFIDENCE_RECOMMENDATION_THRESHOLD,
    UNCERTAINTY_RECOMMENDATION_THRESHOLD, FILLER_RATIO_RECOMMENDATION_THRESHOLD,
)
from ..errors import EvaluationFailedError

logger = logging.getLogger("aggregator")

REQUIRED_KINDS = (AnalyzerKind.FLUENCY, AnalyzerKind.TONE, AnalyzerKind.COHERENCE, AnalyzerKind.CONTENT)
CORRECTNESS_KINDS = (AnalyzerKind.CONTENT, AnalyzerKind.REFERENCE)
WEIGHTING_POLICIES = ("full_table", "renormalize")


def weighted_overall(scores: WeightedScoreSet,
                     weights: Mapping[str, float] = CRITERIA_WEIGHTS,
                     policy: str = "full_table") -> float:
    """
    Sum of weight x score over the criteria that have a score.

    With "full_table" the missing criteria simply contribute nothing, so an
    answer without, say, a correctness score is capped below the maximum.
    With "renormalize" the sum is divided by the weights that were applied.
    """
    if policy not in WEIGHTING_POLICIES:
        raise ValueError(f"Unknown weighting policy: {policy}")

    total, applied = 0.0, 0.0
    for criterion, weight in weights.items():
        value = scores.get(criterion)
        if value is None:
            continue
        total += weight * value
        applied += weight

    if policy == "renormalize":
        return total / applied if applied > 0 else 0.0
    return total


def pace_is_optimal(fluency: AnalyzerResult) -> bool:
    return fluency.details.get("pace", {}).get("paceCategory") == "optimal"


def delivery_score(fluency: AnalyzerResult, tone: AnalyzerResult) -> float:
    """Delivery on 0-100 from fluency, professional marker density, and pace."""
    professional = min(1.0, tone.details.get("professionalTone", 0.0)) * 100.0
    pace = PACE_SCORE_OPTIMAL if pace_is_optimal(fluency) else PACE_SCORE_OTHER
    return (
        fluency.score * DELIVERY_WEIGHTS["fluency"]
        + professional * DELIVERY_WEIGHTS["professional_tone"]
        + pace * DELIVERY_WEIGHTS["pace"]
    )


def sort_recommendations(recommendations: List[Recommendation]) -> List[Recommendation]:
    """High first; equal priorities keep their original order."""
    return sorted(recommendations, key=lambda r: r.priority.rank)


def delivery_recommendations(fluency: AnalyzerResult, tone: AnalyzerResult,
                             reference: Optional[AnalyzerResult] = None,
                             prosody: Optional[AnalyzerResult] = None) -> List[Recommendation]:
    """Recommendations about how the answer was spoken."""
    recs = []

    if tone.details.get("uncertainty", 0.0) > UNCERTAINTY_RECOMMENDATION_THRESHOLD:
        recs.append(Recommendation("Tone", "Use more confident language and avoid tentative phrases", Priority.HIGH))

    fillers = fluency.details.get("fillerWords", {})
    if fillers.get("ratio", 0.0) > FILLER_RATIO_RECOMMENDATION_THRESHOLD:
        recs.append(Recommendation(
            "Fluency", "Reduce filler words and practice more structured responses", Priority.HIGH,
            instances=tuple(fillers.get("instances", [])),
        ))

    pace = fluency.details.get("pace", {})
    if pace and pace.get("paceCategory") != "optimal":
        recs.append(Recommendation("Pace", pace["recommendation"], Priority.MEDIUM))

    if reference is not None and not reference.is_failed:
        missing = reference.details.get("keyPoints", {}).get("missing", [])
        if missing:
            recs.append(Recommendation(
                "Content", "Cover the key points your answer missed", Priority.MEDIUM, instances=tuple(missing),
            ))

    if prosody is not None and not prosody.is_failed:
        for improvement in prosody.details.get("assessment", {}).get("improvements", []):
            recs.append(Recommendation("Voice", improvement, Priority.LOW))

    return recs


def content_recommendations(content: AnalyzerResult, coherence: AnalyzerResult,
                            tone: AnalyzerResult) -> List[Recommendation]:
    """Threshold rules over coherence and confidence plus the rubric's priority improvements."""
    recs = []

    if coherence.details.get("overallCoherence", 1.0) < COHERENCE_RECOMMENDATION_THRESHOLD:
        recs.append(Recommendation("Structure", "Improve answer flow and coherence between points", Priority.HIGH))

    # Neutral defaults carry no information about the speaker
    if not tone.is_degraded and tone.details.get("confidenceScore", 1.0) < CONFIDENCE_RECOMMENDATION_THRESHOLD:
        recs.append(Recommendation("Delivery", "Work on projecting more confidence in responses", Priority.MEDIUM))

    for improvement in content.details.get("priorityImprovements", []):
        recs.append(Recommendation("Content", improvement, Priority.HIGH))

    return recs


def build_scores(results: Mapping[AnalyzerKind, AnalyzerResult], utterance: Utterance) -> WeightedScoreSet:
    content = results[AnalyzerKind.CONTENT]
    coherence = results[AnalyzerKind.COHERENCE]
    tone = results[AnalyzerKind.TONE]
    reference = results.get(AnalyzerKind.REFERENCE)

    technical = content.details.get("technicalAccuracy") if utterance.is_technical else None

    if technical is not None:
        correctness = technical
    elif reference is not None and not reference.is_failed:
        correctness = reference.score
    else:
        correctness = None

    # A coherence failure marker carries no score of its own
    if coherence.is_failed:
        structure = content.details["structureScore"]
    else:
        structure = (content.details["structureScore"] + coherence.score) / 2.0

    return WeightedScoreSet(
        clarity=content.details["clarityScore"],
        structure=structure,
        content=content.details["contentScore"],
        relevance=content.details["relevanceScore"],
        correctness=correctness,
        technical=technical,
        confidence=tone.details.get("confidenceScore", 0.5) * 100.0,
        overall=content.details["overallScore"],
    )


def aggregate(results: Mapping[AnalyzerKind, AnalyzerResult],
              utterance: Utterance,
              weights: Mapping[str, float] = CRITERIA_WEIGHTS,
              policy: str = "full_table",
              include_delivery: bool = False) -> EvaluationReport:
    """
    Merge settled analyzer results into an EvaluationReport.

    Raises:
        EvaluationFailedError: If a required analyzer result is missing or a
            correctness-bearing analyzer only produced a failure marker
    """
    for kind in REQUIRED_KINDS:
        if kind not in results:
            raise EvaluationFailedError(f"Required analyzer '{kind.value}' produced no result", kind=kind.value)
    for kind in CORRECTNESS_KINDS:
        result = results.get(kind)
        if result is not None and result.is_failed:
            raise EvaluationFailedError(f"Analyzer '{kind.value}' failed: {result.note}", kind=kind.value)

    fluency = results[AnalyzerKind.FLUENCY]
    tone = results[AnalyzerKind.TONE]

    scores = build_scores(results, utterance)
    scores.weighted_overall = weighted_overall(scores, weights, policy)

    if include_delivery:
        scores.delivery = delivery_score(fluency, tone)
        scores.combined_overall = (
            scores.weighted_overall * COMBINED_WEIGHTS["content"]
            + scores.delivery * COMBINED_WEIGHTS["delivery"]
        )

    recommendations = content_recommendations(results[AnalyzerKind.CONTENT], results[AnalyzerKind.COHERENCE], tone)
    recommendations += delivery_recommendations(
        fluency, tone, results.get(AnalyzerKind.REFERENCE), results.get(AnalyzerKind.PROSODY)
    )

    logger.info("Weighted overall %.1f (%s policy)", scores.weighted_overall, policy)

    return EvaluationReport(
        scores=scores,
        analysis=dict(results),
        recommendations=tuple(sort_recommendations(recommendations)),
        transcript=utterance.text,
    )


def quick_feedback(fluency: AnalyzerResult, tone: AnalyzerResult, transcript: str = "") -> QuickFeedback:
    """Delivery-only feedback for a segment of an answer still in progress."""
    return QuickFeedback(
        pace=dict(fluency.details.get("pace", {})),
        tone={
            "overallTone": tone.details.get("overallTone"),
            "confidenceScore": tone.details.get("confidenceScore"),
            "professionalTone": tone.details.get("professionalTone"),
            "uncertainty": tone.details.get("uncertainty"),
            "degraded": tone.is_degraded,
        },
        fluency={
            "score": fluency.details.get("fluencyScore", 0.0),
            "fillerWords": fluency.details.get("fillerWords", {}),
        },
        recommendations=tuple(sort_recommendations(delivery_recommendations(fluency, tone))),
        transcript=transcript,
    )
