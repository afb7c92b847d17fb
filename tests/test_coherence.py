import pytest

from mockinterview.errors import TransientServiceError
from mockinterview.evaluation.analyzers.coherence import CoherenceAnalyzer, analyze_structure
from mockinterview.evaluation.models import Utterance, ResultStatus
from mockinterview.evaluation.testing import MockSimilarityClient

from .conftest import THREE_SENTENCE_ANSWER


async def test_single_sentence_is_fully_coherent_without_calls():
    similarity = MockSimilarityClient()
    result = await CoherenceAnalyzer(similarity).analyze(Utterance(text="I built the billing service."))

    assert result.details["overallCoherence"] == 1.0
    assert result.score == 100.0
    assert result.details["sentenceFlowScores"] == [1.0]
    assert similarity.request_history == []


async def test_empty_answer_has_zero_coherence():
    result = await CoherenceAnalyzer(MockSimilarityClient()).analyze(Utterance(text=""))
    assert result.details["overallCoherence"] == 0.0
    assert result.score == 0.0


async def test_overall_is_mean_of_consecutive_pairs():
    similarity = MockSimilarityClient(score_fn=lambda source, candidate: 0.6)
    result = await CoherenceAnalyzer(similarity).analyze(Utterance(text=THREE_SENTENCE_ANSWER))

    assert result.details["overallCoherence"] == pytest.approx(0.6)
    assert result.details["sentenceFlowScores"] == pytest.approx([1.0, 0.6, 0.6])
    assert len(similarity.request_history) == 2
    assert "Improve answer flow and coherence between points" in result.suggestions


async def test_failed_pair_counts_as_neutral():
    similarity = MockSimilarityClient(
        default=0.9,
        fail_sources=["I started by profiling the service"],
        error=TransientServiceError("unavailable", service="similarity"),
    )
    result = await CoherenceAnalyzer(similarity).analyze(Utterance(text=THREE_SENTENCE_ANSWER))

    assert result.details["sentenceFlowScores"] == pytest.approx([1.0, 0.5, 0.9])
    assert result.details["overallCoherence"] == pytest.approx(0.7)
    assert result.details["failedPairs"] == 1
    assert result.status == ResultStatus.DEGRADED


def test_structure_detects_introduction_and_conclusion():
    structure = analyze_structure(["First I would gather requirements", "Then build it", "In summary it worked"])
    assert structure["hasIntroduction"] is True
    assert structure["hasConclusion"] is True
    assert structure["sentenceCount"] == 3


def test_single_sentence_has_no_conclusion():
    assert analyze_structure(["Therefore yes"])["hasConclusion"] is False


async def test_unexpected_pair_error_counts_as_neutral():
    similarity = MockSimilarityClient(
        default=0.9,
        fail_sources=["Then I found the slow query"],
        error=RuntimeError("connection reset mid-body"),
    )
    result = await CoherenceAnalyzer(similarity).analyze(Utterance(text=THREE_SENTENCE_ANSWER))

    assert result.status == ResultStatus.DEGRADED
    assert result.details["sentenceFlowScores"] == pytest.approx([1.0, 0.9, 0.5])
    assert result.score == pytest.approx(70.0)
