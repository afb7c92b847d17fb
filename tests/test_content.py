import pytest

from mockinterview.errors import InputValidationError, MalformedResponseError, TransientServiceError
from mockinterview.evaluation.analyzers.content import (
    RubricContentAnalyzer, ReferenceAnswerAnalyzer, extract_key_points, extract_key_phrases,
)
from mockinterview.evaluation.models import Utterance, QuestionType
from mockinterview.evaluation.testing import (
    MockLLMClient, MockSimilarityClient, MockZeroShotClient, SAMPLE_RUBRIC, rubric_json,
)

EXPECTED = (
    "Caching stores frequently used data in memory. "
    "Invalidation keeps cached data consistent with the source. "
    "Eviction policies decide which entries to remove."
)
CANDIDATE = "Caching stores results in memory for speed, and eviction policies decide what to drop."


async def test_reference_answer_key_point_coverage():
    similarity, zero_shot = MockSimilarityClient(default=0.9), MockZeroShotClient(label="correct")
    analyzer = ReferenceAnswerAnalyzer(similarity, zero_shot)

    result = await analyzer.analyze(Utterance(text=CANDIDATE, expected_answer=EXPECTED))

    assert result.details["keyPoints"]["total"] == 3
    assert result.details["topicAlignment"] == pytest.approx(66.67, abs=0.01)
    assert result.details["missingPoints"] == ["Invalidation keeps cached data consistent with the source"]
    assert result.details["classification"]["label"] == "correct"
    assert result.score == pytest.approx(86.0)


async def test_reference_requires_expected_answer_before_any_call():
    similarity, zero_shot = MockSimilarityClient(), MockZeroShotClient()
    analyzer = ReferenceAnswerAnalyzer(similarity, zero_shot)

    with pytest.raises(InputValidationError):
        await analyzer.analyze(Utterance(text=CANDIDATE))

    assert similarity.request_history == []
    assert zero_shot.request_history == []


async def test_reference_propagates_service_errors():
    analyzer = ReferenceAnswerAnalyzer(
        MockSimilarityClient(error=TransientServiceError("down", service="similarity")), MockZeroShotClient()
    )
    with pytest.raises(TransientServiceError):
        await analyzer.analyze(Utterance(text=CANDIDATE, expected_answer=EXPECTED))


async def test_reference_without_key_points_uses_similarity_for_alignment():
    analyzer = ReferenceAnswerAnalyzer(MockSimilarityClient(default=0.5), MockZeroShotClient(label="incorrect"))
    result = await analyzer.analyze(Utterance(text="Yes.", expected_answer="A cache."))

    assert result.details["topicAlignment"] is None
    assert result.score == pytest.approx(100.0 * (0.4 * 0.5 + 0.3 * 0.5))


def test_key_points_skip_short_sentences():
    assert extract_key_points("Short. This sentence is long enough.") == ["This sentence is long enough"]


def test_key_phrases_are_two_and_three_word_windows():
    assert extract_key_phrases("a b c") == ["a b", "a b c", "b c"]


async def test_rubric_scores_are_rescaled():
    llm = MockLLMClient()
    result = await RubricContentAnalyzer(llm).analyze(Utterance(text=CANDIDATE, question="What is caching?"))

    assert result.score == pytest.approx(80.0)
    assert result.details["clarityScore"] == pytest.approx(80.0)
    assert result.details["structureScore"] == pytest.approx(70.0)
    assert result.details["relevanceScore"] == pytest.approx(90.0)
    assert result.details["technicalAccuracy"] is None
    assert result.details["priorityImprovements"] == ["Quantify the impact of your work"]
    assert len(llm.request_history) == 1


async def test_technical_question_adds_accuracy_estimate():
    llm = MockLLMClient()
    utterance = Utterance(text=CANDIDATE, question_type=QuestionType.TECHNICAL)
    result = await RubricContentAnalyzer(llm).analyze(utterance)

    assert result.details["technicalAccuracy"] == pytest.approx(85.0)
    assert len(llm.request_history) == 2


async def test_prose_rubric_raises_malformed_response():
    llm = MockLLMClient(rubric_response="I think the answer was pretty good overall.")
    with pytest.raises(MalformedResponseError):
        await RubricContentAnalyzer(llm).analyze(Utterance(text=CANDIDATE))


async def test_fenced_rubric_with_preamble_is_accepted():
    llm = MockLLMClient(rubric_response="Here you go:\n```json\n" + rubric_json() + "\n```")
    result = await RubricContentAnalyzer(llm).analyze(Utterance(text=CANDIDATE))
    assert result.score == pytest.approx(80.0)


async def test_fractional_string_scores_are_coerced():
    clarity = dict(SAMPLE_RUBRIC["clarity"], score="7/10")
    llm = MockLLMClient(rubric_response=rubric_json(clarity=clarity))
    result = await RubricContentAnalyzer(llm).analyze(Utterance(text=CANDIDATE))
    assert result.details["clarityScore"] == pytest.approx(70.0)


async def test_empty_answer_scores_zero_without_calls():
    llm = MockLLMClient()
    result = await RubricContentAnalyzer(llm).analyze(Utterance(text=""))
    assert result.score == 0.0
    assert llm.request_history == []
