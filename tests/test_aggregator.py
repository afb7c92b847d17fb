import numpy as np
import pytest

from mockinterview.config import CRITERIA_WEIGHTS
from mockinterview.errors import EvaluationFailedError
from mockinterview.evaluation.aggregator import (
    aggregate, weighted_overall, sort_recommendations, delivery_score,
)
from mockinterview.evaluation.models import (
    AnalyzerKind, AnalyzerResult, Utterance, QuestionType, WeightedScoreSet, Recommendation, Priority,
    ResultStatus,
)

from .conftest import make_result


def test_weighted_overall_stays_in_range():
    rng = np.random.default_rng(0)
    for _ in range(200):
        values = {c: (None if rng.random() < 0.2 else float(rng.uniform(0, 100))) for c in CRITERIA_WEIGHTS}
        scores = WeightedScoreSet(**values)
        for policy in ("full_table", "renormalize"):
            assert 0.0 <= weighted_overall(scores, policy=policy) <= 100.0 + 1e-9

    perfect = WeightedScoreSet(clarity=100, structure=100, relevance=100, correctness=100)
    assert weighted_overall(perfect) == pytest.approx(100.0)


def test_missing_correctness_caps_full_table_but_not_renormalize():
    without = WeightedScoreSet(clarity=80, structure=80, relevance=80)
    with_correctness = WeightedScoreSet(clarity=80, structure=80, relevance=80, correctness=80)

    assert weighted_overall(without, policy="full_table") == pytest.approx(52.0)
    assert weighted_overall(without, policy="renormalize") == pytest.approx(80.0)
    assert weighted_overall(with_correctness, policy="full_table") == pytest.approx(80.0)


def test_unknown_policy_is_rejected():
    with pytest.raises(ValueError):
        weighted_overall(WeightedScoreSet(), policy="average")


def test_sorting_puts_high_first_and_keeps_ties_in_order():
    priorities = [Priority.LOW, Priority.HIGH, Priority.MEDIUM, Priority.HIGH, Priority.LOW, Priority.MEDIUM]
    recs = [Recommendation(f"aspect{i}", "do better", p) for i, p in enumerate(priorities)]

    once = sort_recommendations(recs)
    assert sort_recommendations(once) == once
    assert [r.aspect for r in once] == ["aspect1", "aspect3", "aspect2", "aspect5", "aspect0", "aspect4"]

    seen_lower = False
    for rec in once:
        if rec.priority != Priority.HIGH:
            seen_lower = True
        assert not (seen_lower and rec.priority == Priority.HIGH)


def test_delivery_score(base_results):
    fluency = base_results[AnalyzerKind.FLUENCY]
    assert delivery_score(fluency, base_results[AnalyzerKind.TONE]) == pytest.approx(74.0)


def test_aggregate_text_only(base_results):
    report = aggregate(base_results, Utterance(text="An answer."))

    assert report.scores.structure == pytest.approx(80.0)
    assert report.scores.correctness is None
    assert report.scores.confidence == pytest.approx(90.0)
    assert report.scores.weighted_overall == pytest.approx(53.5)
    assert report.scores.delivery is None
    assert report.recommendations == ()


def test_aggregate_renormalized(base_results):
    report = aggregate(base_results, Utterance(text="An answer."), policy="renormalize")
    assert report.scores.weighted_overall == pytest.approx(53.5 / 0.65)


def test_aggregate_with_delivery(base_results):
    report = aggregate(base_results, Utterance(text="An answer."), include_delivery=True)
    assert report.scores.delivery == pytest.approx(74.0)
    assert report.scores.combined_overall == pytest.approx(0.6 * 53.5 + 0.4 * 74.0)


def test_technical_accuracy_takes_precedence_for_correctness(base_results):
    base_results[AnalyzerKind.CONTENT].details["technicalAccuracy"] = 85.0
    base_results[AnalyzerKind.REFERENCE] = make_result(AnalyzerKind.REFERENCE, 60.0, keyPoints={"missing": []})

    technical = aggregate(base_results, Utterance(text="x", question_type=QuestionType.TECHNICAL))
    general = aggregate(base_results, Utterance(text="x", question_type=QuestionType.GENERAL))

    assert technical.scores.correctness == pytest.approx(85.0)
    assert technical.scores.technical == pytest.approx(85.0)
    assert general.scores.correctness == pytest.approx(60.0)
    assert general.scores.technical is None


def test_threshold_recommendations(base_results):
    base_results[AnalyzerKind.COHERENCE].details["overallCoherence"] = 0.7
    base_results[AnalyzerKind.TONE].details["confidenceScore"] = 0.6
    base_results[AnalyzerKind.CONTENT].details["priorityImprovements"] = ["Add a concrete example"]

    report = aggregate(base_results, Utterance(text="x"))

    assert [(r.aspect, r.priority) for r in report.recommendations] == [
        ("Structure", Priority.HIGH),
        ("Content", Priority.HIGH),
        ("Delivery", Priority.MEDIUM),
    ]


def test_degraded_tone_gives_no_confidence_recommendation(base_results):
    tone = base_results[AnalyzerKind.TONE]
    tone.details["confidenceScore"] = 0.5
    tone.status = ResultStatus.DEGRADED

    report = aggregate(base_results, Utterance(text="x"))
    assert all(r.aspect != "Delivery" for r in report.recommendations)
    assert report.degraded == ["tone"]


def test_delivery_recommendations_from_fluency_and_tone(base_results):
    fluency = base_results[AnalyzerKind.FLUENCY]
    fluency.details["fillerWords"] = {"count": 3, "ratio": 0.3, "instances": [{"word": "um", "position": 0}]}
    fluency.details["pace"] = {"wordsPerMinute": 100.0, "paceCategory": "slow", "recommendation": "Speed up"}
    base_results[AnalyzerKind.TONE].details["uncertainty"] = 0.4

    report = aggregate(base_results, Utterance(text="x"))
    found = {(r.aspect, r.priority) for r in report.recommendations}

    assert ("Tone", Priority.HIGH) in found
    assert ("Fluency", Priority.HIGH) in found
    assert ("Pace", Priority.MEDIUM) in found
    fluency_rec = next(r for r in report.recommendations if r.aspect == "Fluency")
    assert fluency_rec.instances == ({"word": "um", "position": 0},)


def test_missing_required_result_fails(base_results):
    del base_results[AnalyzerKind.TONE]
    with pytest.raises(EvaluationFailedError) as exc_info:
        aggregate(base_results, Utterance(text="x"))
    assert exc_info.value.kind == "tone"


def test_failed_correctness_result_fails(base_results):
    base_results[AnalyzerKind.REFERENCE] = AnalyzerResult.failed(AnalyzerKind.REFERENCE, RuntimeError("down"))
    with pytest.raises(EvaluationFailedError):
        aggregate(base_results, Utterance(text="x"))


def test_failed_coherence_leaves_structure_to_rubric(base_results):
    base_results[AnalyzerKind.COHERENCE] = AnalyzerResult.failed(AnalyzerKind.COHERENCE, RuntimeError("boom"))
    report = aggregate(base_results, Utterance(text="An answer."))

    assert report.scores.structure == pytest.approx(70.0)
    assert "coherence" in report.degraded
