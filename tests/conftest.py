import pytest

from mockinterview.evaluation.models import AnalyzerKind, AnalyzerResult, ResultStatus
from mockinterview.evaluation.testing import create_mock_pipeline_setup

SCENARIO_A = "Um, so, basically I think the answer is um correct."

THREE_SENTENCE_ANSWER = (
    "I started by profiling the service. "
    "Then I found the slow query. "
    "Therefore I added an index."
)


@pytest.fixture
def mock_setup():
    return create_mock_pipeline_setup()


def make_result(kind, score=0.0, status=ResultStatus.OK, **details):
    return AnalyzerResult(kind=kind, score=score, details=details, status=status)


@pytest.fixture
def base_results():
    """Settled results for the four required analyzers."""
    return {
        AnalyzerKind.FLUENCY: make_result(
            AnalyzerKind.FLUENCY, 80.0, fluencyScore=8.0,
            fillerWords={"count": 0, "ratio": 0.0, "instances": []},
            pace={"wordsPerMinute": 150.0, "paceCategory": "optimal", "recommendation": "ok"},
        ),
        AnalyzerKind.TONE: make_result(
            AnalyzerKind.TONE, 85.0, confidenceScore=0.9, professionalTone=0.4, uncertainty=0.0,
        ),
        AnalyzerKind.COHERENCE: make_result(AnalyzerKind.COHERENCE, 90.0, overallCoherence=0.9),
        AnalyzerKind.CONTENT: make_result(
            AnalyzerKind.CONTENT, 80.0,
            clarityScore=80.0, structureScore=70.0, contentScore=80.0, relevanceScore=90.0,
            overallScore=80.0, technicalAccuracy=None, priorityImprovements=[],
        ),
    }
