"""Independent analyzers, each producing one AnalyzerResult per utterance."""

from .base import Analyzer, call_service
from .fluency import FluencyAnalyzer
from .grammar import GrammarAnalyzer
from .tone import ToneAnalyzer
from .coherence import CoherenceAnalyzer
from .content import RubricContentAnalyzer, ReferenceAnswerAnalyzer
from .prosody import ProsodyAnalyzer, PraatEstimator, SimulatedEstimator

__all__ = [
    "Analyzer",
    "call_service",
    "FluencyAnalyzer",
    "GrammarAnalyzer",
    "ToneAnalyzer",
    "CoherenceAnalyzer",
    "RubricContentAnalyzer",
    "ReferenceAnswerAnalyzer",
    "ProsodyAnalyzer",
    "PraatEstimator",
    "SimulatedEstimator",
]
