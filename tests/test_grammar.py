import pytest

from mockinterview.config import GRAMMAR_MODEL
from mockinterview.errors import ServiceError
from mockinterview.evaluation.analyzers.grammar import (
    GrammarAnalyzer, detect_grammar_issues, assess_clarity, acceptability_from_labels,
)
from mockinterview.evaluation.models import Utterance, ResultStatus
from mockinterview.evaluation.testing import MockClassificationClient

ANSWER = "We migrated the the database to a managed cluster last year without downtime."


def test_repeated_words_and_fragments():
    issues = {i["type"]: i["instances"] for i in detect_grammar_issues(ANSWER + " Very fast.")}
    assert issues["repeatedWords"] == ["the the"]
    assert issues["possibleFragments"] == ["Very fast"]


@pytest.mark.parametrize("text,score", [
    ("Short one. Another.", 0.5),
    (" ".join(["word"] * 15) + ".", 0.9),
    (" ".join(["word"] * 30) + ".", 0.3),
    ("", 0.0),
])
def test_clarity_bands(text, score):
    assert assess_clarity(text)["score"] == score


def test_acceptability_labels():
    assert acceptability_from_labels([{"label": "LABEL_1", "score": 0.8}]) == 0.8
    assert acceptability_from_labels([{"label": "LABEL_0", "score": 0.8}]) == pytest.approx(0.2)
    assert acceptability_from_labels([{"label": "joy", "score": 0.8}]) == 0.5


async def test_grammar_score_combines_acceptability_and_clarity():
    classifier = MockClassificationClient(responses={
        GRAMMAR_MODEL: [{"label": "LABEL_1", "score": 0.9}, {"label": "LABEL_0", "score": 0.1}],
    })
    result = await GrammarAnalyzer(classifier).analyze(Utterance(text=ANSWER))

    assert result.details["grammarScore"] == pytest.approx(0.9)
    assert result.details["isGrammaticallyCorrect"] is True
    assert result.score == pytest.approx(90.0)
    assert any("the the" in s for s in result.suggestions)


async def test_classifier_failure_degrades_to_neutral():
    classifier = MockClassificationClient(error=ServiceError("bad token", service=GRAMMAR_MODEL))
    result = await GrammarAnalyzer(classifier).analyze(Utterance(text=ANSWER))

    assert result.status == ResultStatus.DEGRADED
    assert result.details["grammarScore"] == 0.5
    assert result.score == pytest.approx((0.5 * 0.6 + 0.9 * 0.4) * 100)
