"""Answer evaluation: analyzers, aggregation, and the pipeline that runs them."""

from .models import (
    QuestionType, Priority, AnalyzerKind, ResultStatus, Utterance, AnalyzerResult,
    Recommendation, WeightedScoreSet, EvaluationReport, QuickFeedback,
)
from .aggregator import aggregate, weighted_overall, sort_recommendations
from .events import EvaluationEventBus, EventLogger, EvaluationMetrics, EventType
from .pipeline import EvaluationPipeline

__all__ = [
    # Data models
    "QuestionType", "Priority", "AnalyzerKind", "ResultStatus", "Utterance", "AnalyzerResult",
    "Recommendation", "WeightedScoreSet", "EvaluationReport", "QuickFeedback",

    # Aggregation
    "aggregate", "weighted_overall", "sort_recommendations",

    # Events
    "EvaluationEventBus", "EventLogger", "EvaluationMetrics", "EventType",

    # Pipeline
    "EvaluationPipeline",
]
