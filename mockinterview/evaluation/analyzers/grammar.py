"""
Grammar and clarity analysis: acceptability classification plus text heuristics.
"""
import re
import logging
from typing import Dict, List, Any, Optional

from .base import Analyzer, call_service, clamp
from ..models import AnalyzerKind, AnalyzerResult, ResultStatus, Utterance
from ...config import GRAMMAR_MODEL, SERVICE_TIMEOUT, NEUTRAL_SCORE
from ...errors import ServiceError
from ...utils.text import tokenize_words, split_sentences

logger = logging.getLogger("grammar_analyzer")

REPEATED_WORD = re.compile(r"\b(\w+)\s+\1\b", re.IGNORECASE)
FRAGMENT_MAX_CHARS = 15
ACCEPTABLE_LABELS = {"label_1", "acceptable"}
ACCEPTABILITY_THRESHOLD = 0.7


def detect_grammar_issues(text: str) -> List[Dict[str, Any]]:
    issues = []

    repeated = [m.group(0) for m in REPEATED_WORD.finditer(text)]
    if repeated:
        issues.append({"type": "repeatedWords", "instances": repeated})

    fragments = [s for s in split_sentences(text) if len(s) < FRAGMENT_MAX_CHARS]
    if fragments:
        issues.append({"type": "possibleFragments", "instances": fragments})

    return issues


def assess_clarity(text: str) -> Dict[str, Any]:
    """Clarity band from average words per sentence."""
    sentences = split_sentences(text)
    if not sentences:
        return {"score": 0.0, "level": "poor", "avgWordsPerSentence": 0.0}

    avg = len(tokenize_words(text)) / len(sentences)
    if avg < 10:
        score, level = 0.5, "somewhat clear, but potentially too simplistic"
    elif avg > 25:
        score, level = 0.3, "potentially unclear - sentences are quite long"
    else:
        score, level = 0.9, "good"
    return {"score": score, "level": level, "avgWordsPerSentence": avg}


def grammar_suggestions(issues: List[Dict[str, Any]]) -> List[str]:
    suggestions = []
    for issue in issues:
        if issue["type"] == "repeatedWords":
            suggestions.append("Avoid word repetition: " + ", ".join(issue["instances"]))
        elif issue["type"] == "possibleFragments":
            suggestions.append("Try to use complete sentences instead of fragments.")
    return suggestions


def acceptability_from_labels(labels: List[Dict[str, Any]]) -> float:
    for item in labels:
        if item["label"].lower() in ACCEPTABLE_LABELS:
            return clamp(item["score"])
    # Only the unacceptable label came back
    for item in labels:
        if item["label"].lower() in ("label_0", "unacceptable"):
            return clamp(1.0 - item["score"])
    return NEUTRAL_SCORE


class GrammarAnalyzer(Analyzer):
    """Advisory grammar check. Classification failures degrade to a neutral acceptability."""
    kind = AnalyzerKind.GRAMMAR

    def __init__(self, classifier, model: str = GRAMMAR_MODEL, timeout: float = SERVICE_TIMEOUT):
        self.classifier = classifier
        self.model = model
        self.timeout = timeout

    async def analyze(self, utterance: Utterance, audio: Optional[bytes] = None) -> AnalyzerResult:
        text = utterance.text
        if not text.strip():
            return AnalyzerResult(kind=self.kind, score=0.0, details={
                "grammarScore": 0.0, "isGrammaticallyCorrect": False,
                "clarity": assess_clarity(text), "errors": [],
            })

        status, note = ResultStatus.OK, None
        try:
            labels = await call_service(self.classifier.classify, text, self.model,
                                        timeout=self.timeout, service=self.model)
            acceptability = acceptability_from_labels(labels) if labels else NEUTRAL_SCORE
        except ServiceError as e:
            logger.warning("Grammar classification failed, using neutral score: %s", e)
            acceptability = NEUTRAL_SCORE
            status, note = ResultStatus.DEGRADED, f"Grammar model unavailable: {e}"

        clarity = assess_clarity(text)
        issues = detect_grammar_issues(text)
        suggestions = grammar_suggestions(issues)
        if not suggestions and status == ResultStatus.OK:
            suggestions.append("Your grammar appears to be good.")

        return AnalyzerResult(
            kind=self.kind,
            score=(acceptability * 0.6 + clarity["score"] * 0.4) * 100.0,
            details={
                "grammarScore": acceptability,
                "isGrammaticallyCorrect": acceptability > ACCEPTABILITY_THRESHOLD,
                "clarity": clarity,
                "errors": issues,
            },
            suggestions=suggestions,
            status=status,
            note=note,
        )
