import pytest

from mockinterview.errors import InputValidationError
from mockinterview.evaluation.models import (
    Utterance, QuestionType, AnalyzerKind, AnalyzerResult, ResultStatus, WeightedScoreSet,
)


def test_duration_is_estimated_from_word_count():
    assert Utterance(text=" ".join(["word"] * 300)).duration_seconds == pytest.approx(120.0)
    assert Utterance(text="").duration_seconds == 1.0


def test_non_positive_duration_is_rejected():
    with pytest.raises(InputValidationError):
        Utterance(text="hello", duration_seconds=0)


def test_utterance_is_immutable():
    utterance = Utterance(text="hello", question_type="technical", context={"role": "SRE"})
    assert utterance.question_type is QuestionType.TECHNICAL
    assert utterance.role == "SRE"
    with pytest.raises(TypeError):
        utterance.context["role"] = "Manager"


def test_failed_result_marker():
    result = AnalyzerResult.failed(AnalyzerKind.CONTENT, RuntimeError("boom"))
    assert result.status == ResultStatus.FAILED
    assert result.note == "RuntimeError: boom"
    assert result.to_dict()["status"] == "failed"


def test_display_scale_conversion():
    scaled = WeightedScoreSet(clarity=80.0, correctness=None, weighted_overall=53.5).scaled(0.1)
    assert scaled.clarity == pytest.approx(8.0)
    assert scaled.correctness is None
    assert scaled.weighted_overall == pytest.approx(5.35)
    assert WeightedScoreSet(weighted_overall=1.0).to_dict()["weightedOverall"] == 1.0
