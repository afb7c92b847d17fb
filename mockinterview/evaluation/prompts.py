"""
Evaluation prompt templates.

This module contains all the prompt templates sent to the generative-reasoning
service, keeping them separate from the analyzers for easier maintenance and editing.
"""

import json
from typing import Any, Dict


RUBRIC_SCHEMA_HINT: Dict[str, Any] = {
    "clarity": {
        "score": "1-10",
        "strengths": [],
        "improvements": []
    },
    "structure": {
        "score": "1-10",
        "hasIntroduction": "boolean",
        "hasMainPoints": "boolean",
        "hasConclusion": "boolean",
        "improvements": []
    },
    "content": {
        "score": "1-10",
        "relevance": "1-10",
        "depth": "1-10",
        "keyPoints": [],
        "missingElements": []
    },
    "delivery": {
        "conciseness": "1-10",
        "articulationScore": "1-10",
        "improvements": []
    },
    "overall": {
        "score": "1-10",
        "summary": "string",
        "topStrengths": [],
        "priorityImprovements": []
    }
}

TECHNICAL_SCHEMA_HINT: Dict[str, Any] = {
    "accuracyScore": "0-100",
    "conceptsMentioned": [],
    "inaccuracies": [],
    "depth": "string"
}


class EvaluationPrompts:
    """Collection of all evaluation prompts."""

    @staticmethod
    def rubric_evaluation(answer: str, question: str, question_type: str, role: str, level: str = "") -> str:
        """Prompt for the structured rubric evaluation of a free-form answer."""
        level_note = f" at {level} level" if level else ""
        return f"""
Analyze this {question_type} interview answer for the role of {role}{level_note}:

Question: {json.dumps(question, ensure_ascii=False)}
Answer: {json.dumps(answer, ensure_ascii=False)}

Score each section from 1 (poor) to 10 (excellent). List strengths and improvements
as short, specific sentences. "priorityImprovements" must contain the most important
changes the candidate should make, most important first.
        """.strip()

    @staticmethod
    def technical_accuracy(answer: str, question: str, role: str) -> str:
        """Prompt for the factual-correctness estimate of a technical answer."""
        return f"""
Evaluate the technical accuracy of this answer in the context of {role}.

Question: {json.dumps(question, ensure_ascii=False)}
Answer: {json.dumps(answer, ensure_ascii=False)}

Provide:
1. accuracyScore: factual correctness from 0 to 100
2. conceptsMentioned: technical concepts the answer uses
3. inaccuracies: any technical mistakes or misconceptions
4. depth: one phrase describing the depth of technical knowledge demonstrated
        """.strip()
