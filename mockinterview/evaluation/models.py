"""
Data models for the evaluation pipeline.
"""
from dataclasses import dataclass, field, fields
from enum import Enum
from types import MappingProxyType
from typing import Optional, Dict, List, Any, Mapping, Tuple

from ..errors import InputValidationError
from ..config import ESTIMATED_WORDS_PER_MINUTE
from ..utils.text import tokenize_words


class QuestionType(str, Enum):
    """Kinds of interview question."""
    TECHNICAL = "technical"
    BEHAVIORAL = "behavioral"
    GENERAL = "general"


class Priority(str, Enum):
    """Recommendation priority, High first."""
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}


class AnalyzerKind(str, Enum):
    """Tags identifying which analyzer produced a result."""
    FLUENCY = "fluency"
    GRAMMAR = "grammar"
    TONE = "tone"
    COHERENCE = "coherence"
    CONTENT = "content"
    REFERENCE = "reference"
    PROSODY = "prosody"


class ResultStatus(str, Enum):
    OK = "ok"
    DEGRADED = "degraded"
    FAILED = "failed"


@dataclass(frozen=True)
class Utterance:
    """One transcribed candidate answer plus its metadata."""
    text: str
    duration_seconds: Optional[float] = None
    question_type: QuestionType = QuestionType.GENERAL
    question: Optional[str] = None
    expected_answer: Optional[str] = None
    context: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "text", self.text or "")
        object.__setattr__(self, "question_type", QuestionType(self.question_type))
        object.__setattr__(self, "context", MappingProxyType(dict(self.context or {})))

        if self.duration_seconds is None:
            object.__setattr__(self, "duration_seconds", self.estimate_duration(self.text))
        elif self.duration_seconds <= 0:
            raise InputValidationError(f"duration_seconds must be positive, got {self.duration_seconds}")

    @staticmethod
    def estimate_duration(text: str) -> float:
        """Estimate speaking time at a typical interview pace."""
        word_count = len(tokenize_words(text))
        return max(1.0, word_count / ESTIMATED_WORDS_PER_MINUTE * 60.0)

    @property
    def role(self) -> str:
        return self.context.get("role") or "the position"

    @property
    def level(self) -> Optional[str]:
        return self.context.get("level")

    @property
    def is_technical(self) -> bool:
        return self.question_type == QuestionType.TECHNICAL


@dataclass
class AnalyzerResult:
    """
    Output of one analyzer. `score` is on the canonical 0-100 scale;
    native-scale values live in `details`.
    """
    kind: AnalyzerKind
    score: float
    details: Dict[str, Any] = field(default_factory=dict)
    suggestions: List[str] = field(default_factory=list)
    status: ResultStatus = ResultStatus.OK
    note: Optional[str] = None
    error: Optional[BaseException] = field(default=None, repr=False, compare=False)

    @property
    def is_degraded(self) -> bool:
        return self.status == ResultStatus.DEGRADED

    @property
    def is_failed(self) -> bool:
        return self.status == ResultStatus.FAILED

    @classmethod
    def failed(cls, kind: AnalyzerKind, error: BaseException) -> 'AnalyzerResult':
        """Explicit failure marker for an analyzer that could not produce a result."""
        return cls(
            kind=kind,
            score=0.0,
            status=ResultStatus.FAILED,
            note=f"{type(error).__name__}: {error}",
            error=error,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "kind": self.kind.value,
            "score": round(self.score, 2),
            "status": self.status.value,
            "details": self.details,
            "suggestions": list(self.suggestions),
        }
        if self.note:
            data["note"] = self.note
        return data


@dataclass(frozen=True)
class Recommendation:
    """A single actionable recommendation."""
    aspect: str
    suggestion: str
    priority: Priority
    instances: Tuple[Any, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "aspect": self.aspect,
            "suggestion": self.suggestion,
            "priority": self.priority.value,
        }
        if self.instances:
            data["specificInstances"] = list(self.instances)
        return data


@dataclass
class WeightedScoreSet:
    """Per-criterion scores on the 0-100 scale. None marks an inapplicable criterion."""
    clarity: Optional[float] = None
    structure: Optional[float] = None
    content: Optional[float] = None
    relevance: Optional[float] = None
    correctness: Optional[float] = None
    technical: Optional[float] = None
    confidence: Optional[float] = None
    overall: Optional[float] = None
    weighted_overall: float = 0.0
    delivery: Optional[float] = None
    combined_overall: Optional[float] = None

    def get(self, criterion: str) -> Optional[float]:
        return getattr(self, criterion, None)

    def to_dict(self) -> Dict[str, Optional[float]]:
        return {_camel(f.name): _round(getattr(self, f.name)) for f in fields(self)}

    def scaled(self, factor: float) -> 'WeightedScoreSet':
        values = {}
        for f in fields(self):
            value = getattr(self, f.name)
            values[f.name] = value * factor if value is not None else None
        return WeightedScoreSet(**values)


@dataclass(frozen=True)
class EvaluationReport:
    """Top-level evaluation output."""
    scores: WeightedScoreSet
    analysis: Mapping[AnalyzerKind, AnalyzerResult]
    recommendations: Tuple[Recommendation, ...]
    transcript: str = ""

    @property
    def degraded(self) -> List[str]:
        """Kinds of analyzers whose output is neutral, simulated, or missing."""
        return [kind.value for kind, result in self.analysis.items() if result.is_degraded or result.is_failed]

    def to_display_scale(self) -> WeightedScoreSet:
        """Scores converted to the 0-10 presentation scale."""
        return self.scores.scaled(0.1)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transcript": self.transcript,
            "scores": self.scores.to_dict(),
            "analysis": {kind.value: result.to_dict() for kind, result in self.analysis.items()},
            "recommendations": [r.to_dict() for r in self.recommendations],
            "degraded": self.degraded,
        }


@dataclass(frozen=True)
class QuickFeedback:
    """Lightweight feedback for a non-terminal streaming segment."""
    pace: Dict[str, Any]
    tone: Dict[str, Any]
    fluency: Dict[str, Any]
    recommendations: Tuple[Recommendation, ...]
    transcript: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transcript": self.transcript,
            "pace": self.pace,
            "tone": self.tone,
            "fluency": self.fluency,
            "recommendations": [r.to_dict() for r in self.recommendations],
        }


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _round(value: Optional[float]) -> Optional[float]:
    return round(value, 2) if value is not None else None
