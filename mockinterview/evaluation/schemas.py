"""
Structured response schemas and defensive parsing for generative completions.
"""
import json
import logging
import re
from typing import List, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import MalformedResponseError

logger = logging.getLogger("schemas")

CODE_FENCE = re.compile(r"```(?:json|JSON)?")
LEADING_NUMBER = re.compile(r"[-+]?\d*\.?\d+")

ModelT = TypeVar("ModelT", bound=BaseModel)


def _coerce_score(value):
    """Accept numbers, numeric strings and forms like '7/10' or '8 out of 10'."""
    if isinstance(value, str):
        match = LEADING_NUMBER.search(value)
        if match is None:
            raise ValueError(f"score is not numeric: {value!r}")
        return float(match.group(0))
    return value


class _Section(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ClaritySection(_Section):
    score: float = Field(ge=0, le=10)
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)

    @field_validator("score", mode="before")
    @classmethod
    def coerce_scores(cls, value):
        return _coerce_score(value)


class StructureSection(_Section):
    score: float = Field(ge=0, le=10)
    has_introduction: bool = Field(default=False, alias="hasIntroduction")
    has_main_points: bool = Field(default=False, alias="hasMainPoints")
    has_conclusion: bool = Field(default=False, alias="hasConclusion")
    improvements: List[str] = Field(default_factory=list)

    @field_validator("score", mode="before")
    @classmethod
    def coerce_scores(cls, value):
        return _coerce_score(value)


class ContentSection(_Section):
    score: float = Field(ge=0, le=10)
    relevance: Optional[float] = Field(default=None, ge=0, le=10)
    depth: Optional[float] = Field(default=None, ge=0, le=10)
    key_points: List[str] = Field(default_factory=list, alias="keyPoints")
    missing_elements: List[str] = Field(default_factory=list, alias="missingElements")

    @field_validator("score", "relevance", "depth", mode="before")
    @classmethod
    def coerce_scores(cls, value):
        return _coerce_score(value)


class DeliverySection(_Section):
    conciseness: Optional[float] = Field(default=None, ge=0, le=10)
    articulation_score: Optional[float] = Field(default=None, ge=0, le=10, alias="articulationScore")
    improvements: List[str] = Field(default_factory=list)

    @field_validator("conciseness", "articulation_score", mode="before")
    @classmethod
    def coerce_scores(cls, value):
        return _coerce_score(value)


class OverallSection(_Section):
    score: float = Field(ge=0, le=10)
    summary: str = ""
    top_strengths: List[str] = Field(default_factory=list, alias="topStrengths")
    priority_improvements: List[str] = Field(default_factory=list, alias="priorityImprovements")

    @field_validator("score", mode="before")
    @classmethod
    def coerce_scores(cls, value):
        return _coerce_score(value)


class RubricEvaluation(_Section):
    """Rubric returned by the generative-reasoning service."""
    clarity: ClaritySection
    structure: StructureSection
    content: ContentSection
    delivery: DeliverySection
    overall: OverallSection


class TechnicalAccuracy(_Section):
    """Factual-correctness estimate for technical answers."""
    accuracy_score: float = Field(ge=0, le=100, alias="accuracyScore")
    concepts_mentioned: List[str] = Field(default_factory=list, alias="conceptsMentioned")
    inaccuracies: List[str] = Field(default_factory=list)
    depth: Optional[Union[str, float]] = None

    @field_validator("accuracy_score", mode="before")
    @classmethod
    def coerce_scores(cls, value):
        return _coerce_score(value)


def strip_wrapping(text: str) -> str:
    """Remove code fences and surrounding whitespace."""
    return CODE_FENCE.sub("", text or "").strip()


def extract_json_block(text: str) -> Optional[str]:
    """
    Return the first balanced {...} block in text, honouring braces inside
    JSON strings. None when no complete block exists.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for idx in range(start, len(text)):
            ch = text[idx]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start:idx + 1]
        # Unbalanced from this brace; try the next opening brace
        start = text.find("{", start + 1)
    return None


def parse_structured_response(raw_response: str, schema: Type[ModelT], service: str = "llm") -> ModelT:
    """
    Parse a generative completion into a validated schema instance.

    Args:
        raw_response: Raw text returned by the service
        schema: pydantic model the payload must satisfy
        service: Name used in error messages

    Returns:
        Validated schema instance

    Raises:
        MalformedResponseError: If no JSON object can be extracted or it fails validation
    """
    cleaned = strip_wrapping(raw_response)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        block = extract_json_block(cleaned)
        if block is None:
            raise MalformedResponseError(
                f"No JSON object found in {service} response", service=service, raw=raw_response
            )
        try:
            data = json.loads(block)
        except json.JSONDecodeError as e:
            raise MalformedResponseError(
                f"Could not parse JSON from {service} response: {e}", service=service, raw=raw_response
            ) from e

    if not isinstance(data, dict):
        raise MalformedResponseError(
            f"Expected a JSON object from {service}, got {type(data).__name__}", service=service, raw=raw_response
        )

    try:
        parsed = schema.model_validate(data)
    except ValidationError as e:
        raise MalformedResponseError(
            f"{service} response failed {schema.__name__} validation: {e.error_count()} error(s)",
            service=service, raw=raw_response,
        ) from e

    logger.debug("Parsed %s from %s response", schema.__name__, service)
    return parsed
