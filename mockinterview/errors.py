"""
Error taxonomy for the evaluation pipeline.
"""
from typing import Optional


class EvaluationError(Exception):
    """Base class for all evaluation errors."""


class ServiceError(EvaluationError):
    """An external capability failed in a way retrying will not fix."""

    def __init__(self, message: str, service: Optional[str] = None):
        super().__init__(message)
        self.service = service


class TransientServiceError(ServiceError):
    """An external capability timed out or returned a retryable status."""


class MalformedResponseError(ServiceError):
    """An external capability returned data that does not match the expected schema."""

    def __init__(self, message: str, service: Optional[str] = None, raw: Optional[str] = None):
        super().__init__(message, service)
        self.raw = raw


class InputValidationError(EvaluationError):
    """The utterance cannot be evaluated as given."""


class EvaluationFailedError(EvaluationError):
    """
    Pipeline-level failure: a correctness-relevant analyzer failed or a
    required analyzer produced no result. The caller should retry the evaluation.
    """

    def __init__(self, message: str, kind: Optional[str] = None):
        super().__init__(message)
        self.kind = kind
