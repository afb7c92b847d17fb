"""
Lexical fluency analysis: filler words, repetitions, sentence complexity, and pace.
Pure functions of the transcript; no external calls.
"""
import logging
from typing import Dict, List, Any, Optional

import numpy as np

from .base import Analyzer, clamp
from ..models import AnalyzerKind, AnalyzerResult, Utterance
from ...config import FLUENCY_WEIGHTS, SPEECH_RATE_BENCHMARKS, FILLER_RATIO_RECOMMENDATION_THRESHOLD
from ...utils.text import tokenize_words, split_sentences, bigrams

logger = logging.getLogger("fluency_analyzer")

FILLER_WORDS = frozenset({
    "um", "uh", "er", "ah", "like", "basically", "actually", "literally", "stuff", "things",
})

# Tokens that usually open a new clause
CLAUSE_CONNECTIVES = frozenset({
    "and", "but", "because", "which", "that", "although", "while", "when",
    "since", "so", "or", "if", "unless", "whereas",
})

DELIBERATE_PAUSE_MARKS = (",", ";", ":", " - ", "–", "—")

PACE_RECOMMENDATIONS = {
    "slow": "Try to speak a little faster to keep your answer engaging; aim for around 150 words per minute.",
    "optimal": "Your speaking pace is well balanced. Keep it up.",
    "fast": "Slow down slightly so each point lands; aim for around 150 words per minute.",
}


def count_filler_words(words: List[str]) -> Dict[str, Any]:
    """Filler count, ratio to total words, and each filler with its word position."""
    instances = [
        {"word": word, "position": idx}
        for idx, word in enumerate(words)
        if word.lower() in FILLER_WORDS
    ]
    count = len(instances)
    ratio = count / len(words) if words else 0.0
    return {"count": count, "ratio": ratio, "instances": instances}


def detect_repetitions(words: List[str]) -> List[Dict[str, Any]]:
    """
    Adjacent repeated words ("the the"), case-insensitive.
    Position is the index of the repeated (second) word.
    """
    repetitions = []
    for idx, (first, second) in enumerate(bigrams(words)):
        if first.lower() == second.lower():
            repetitions.append({"word": second, "position": idx + 1})
    return repetitions


def count_clauses(words: List[str]) -> int:
    return 1 + sum(1 for w in words if w.lower() in CLAUSE_CONNECTIVES)


def complexity_score(word_count: int, clause_count: int) -> float:
    """Monotone in both length and clause count, capped at 1."""
    return min(1.0, (word_count / 20.0) * 0.6 + (clause_count / 4.0) * 0.4)


def sentence_complexity(sentence: str) -> Dict[str, Any]:
    words = tokenize_words(sentence)
    clauses = count_clauses(words) if words else 0
    return {
        "length": len(words),
        "clauses": clauses,
        "complexity": complexity_score(len(words), clauses),
    }


def normalize_complexity(complexities: List[Dict[str, Any]]) -> float:
    if not complexities:
        return 0.0
    return clamp(float(np.mean([c["complexity"] for c in complexities])))


def fluency_score(filler_ratio: float, repetition_count: int, complexity: float) -> float:
    """Weighted fluency on the native 0-10 scale."""
    filler = max(0.0, 1.0 - filler_ratio * 2.0)
    repetition = max(0.0, 1.0 - repetition_count / 10.0)
    return (
        filler * FLUENCY_WEIGHTS["filler_words"]
        + repetition * FLUENCY_WEIGHTS["repetitions"]
        + clamp(complexity) * FLUENCY_WEIGHTS["complexity"]
    ) * 10.0


def sentence_variety(sentences: List[str]) -> Dict[str, Any]:
    """Coefficient of variation of sentence lengths."""
    lengths = [len(tokenize_words(s)) for s in sentences]
    if not lengths or sum(lengths) == 0:
        return {"averageLength": 0.0, "variation": 0.0, "level": "uniform"}

    mean = float(np.mean(lengths))
    variation = float(np.std(lengths)) / mean
    if variation < 0.2:
        level = "uniform"
    elif variation > 0.6:
        level = "highly_varied"
    else:
        level = "varied"
    return {"averageLength": mean, "variation": variation, "level": level}


def pause_patterns(sentences: List[str]) -> List[Dict[str, Any]]:
    """Deliberate pauses from punctuation and natural breaks at clause connectives."""
    patterns = []
    for sentence in sentences:
        words = tokenize_words(sentence)
        deliberate = sum(sentence.count(mark) for mark in DELIBERATE_PAUSE_MARKS)
        natural = sum(1 for w in words if w.lower() in CLAUSE_CONNECTIVES)

        if len(words) > 25 and deliberate + natural == 0:
            rhythm = "run_on"
        elif words and deliberate > len(words) / 4:
            rhythm = "choppy"
        else:
            rhythm = "natural"
        patterns.append({"deliberatePauses": deliberate, "naturalBreaks": natural, "rhythm": rhythm})
    return patterns


def categorize_pace(words_per_minute: float) -> str:
    if words_per_minute < SPEECH_RATE_BENCHMARKS["slow"]:
        return "slow"
    if words_per_minute > SPEECH_RATE_BENCHMARKS["fast"]:
        return "fast"
    return "optimal"


def analyze_pace(word_count: int, duration_seconds: float) -> Dict[str, Any]:
    wpm = word_count / duration_seconds * 60.0 if duration_seconds > 0 else 0.0
    category = categorize_pace(wpm)
    return {
        "wordsPerMinute": wpm,
        "paceCategory": category,
        "recommendation": PACE_RECOMMENDATIONS[category],
    }


class FluencyAnalyzer(Analyzer):
    """Scores delivery fluency from the transcript alone."""
    kind = AnalyzerKind.FLUENCY

    async def analyze(self, utterance: Utterance, audio: Optional[bytes] = None) -> AnalyzerResult:
        return self.analyze_text(utterance.text, utterance.duration_seconds)

    def analyze_text(self, text: str, duration_seconds: float) -> AnalyzerResult:
        words = tokenize_words(text)
        sentences = split_sentences(text)

        fillers = count_filler_words(words)
        repetitions = detect_repetitions(words)
        complexities = [sentence_complexity(s) for s in sentences]
        complexity = normalize_complexity(complexities)

        native = fluency_score(fillers["ratio"], len(repetitions), complexity) if words else 0.0
        pace = analyze_pace(len(words), duration_seconds)

        suggestions = []
        if fillers["ratio"] > FILLER_RATIO_RECOMMENDATION_THRESHOLD:
            suggestions.append("Reduce filler words and practice more structured responses")
        if repetitions:
            repeated = ", ".join(sorted({r["word"].lower() for r in repetitions}))
            suggestions.append(f"Avoid repeating words back to back: {repeated}")
        if pace["paceCategory"] != "optimal":
            suggestions.append(pace["recommendation"])

        logger.debug("Fluency %.2f/10 (fillers=%d, repetitions=%d, complexity=%.2f)",
                     native, fillers["count"], len(repetitions), complexity)

        return AnalyzerResult(
            kind=self.kind,
            score=native * 10.0,
            details={
                "fluencyScore": native,
                "wordCount": len(words),
                "sentenceCount": len(sentences),
                "fillerWords": fillers,
                "repetitions": {"count": len(repetitions), "instances": repetitions},
                "sentenceStructure": {
                    "complexity": complexities,
                    "normalizedComplexity": complexity,
                    "variety": sentence_variety(sentences),
                },
                "pausePatterns": pause_patterns(sentences),
                "pace": pace,
            },
            suggestions=suggestions,
        )
