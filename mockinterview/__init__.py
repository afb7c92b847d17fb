"""
mockinterview: answer evaluation for AI-assisted mock interviews.

Scores a transcribed interview answer (and optionally its audio) with
independent analyzers for fluency, tone, coherence, content and prosody,
and merges them into a weighted report with prioritized recommendations.
"""

__version__ = "1.0.0"

# Main entry points
from .evaluation.pipeline import EvaluationPipeline
from .evaluation.models import Utterance, QuestionType, EvaluationReport

__all__ = ["EvaluationPipeline", "Utterance", "QuestionType", "EvaluationReport"]
