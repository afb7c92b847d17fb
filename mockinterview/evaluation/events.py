"""
Event bus for observing evaluation progress.
"""
import logging
from abc import ABC
from typing import Dict, Any, List, Callable, Optional
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger("events")


class EventType(str, Enum):
    """Types of evaluation events."""
    EVALUATION_STARTED = "evaluation_started"
    ANALYZER_COMPLETED = "analyzer_completed"
    ANALYZER_DEGRADED = "analyzer_degraded"
    ANALYZER_FAILED = "analyzer_failed"
    EVALUATION_COMPLETED = "evaluation_completed"
    EVALUATION_FAILED = "evaluation_failed"


@dataclass
class EvaluationEvent(ABC):
    """Base class for all evaluation events."""
    event_type: EventType
    evaluation_id: str
    timestamp: float
    data: Dict[str, Any]


@dataclass
class EvaluationStartedEvent(EvaluationEvent):
    """Event fired when an evaluation begins."""
    def __init__(self, evaluation_id: str, timestamp: float, question_type: str,
                 analyzers: List[str], has_audio: bool):
        super().__init__(
            event_type=EventType.EVALUATION_STARTED,
            evaluation_id=evaluation_id,
            timestamp=timestamp,
            data={
                "question_type": question_type,
                "analyzers": analyzers,
                "has_audio": has_audio
            }
        )


@dataclass
class AnalyzerCompletedEvent(EvaluationEvent):
    """Event fired when an analyzer returns a full-confidence result."""
    def __init__(self, evaluation_id: str, timestamp: float, kind: str, score: float):
        super().__init__(
            event_type=EventType.ANALYZER_COMPLETED,
            evaluation_id=evaluation_id,
            timestamp=timestamp,
            data={"kind": kind, "score": score}
        )


@dataclass
class AnalyzerDegradedEvent(EvaluationEvent):
    """Event fired when an analyzer falls back to neutral or simulated values."""
    def __init__(self, evaluation_id: str, timestamp: float, kind: str, note: Optional[str]):
        super().__init__(
            event_type=EventType.ANALYZER_DEGRADED,
            evaluation_id=evaluation_id,
            timestamp=timestamp,
            data={"kind": kind, "note": note}
        )


@dataclass
class AnalyzerFailedEvent(EvaluationEvent):
    """Event fired when an analyzer produces only a failure marker."""
    def __init__(self, evaluation_id: str, timestamp: float, kind: str,
                 error_type: str, error_message: str):
        super().__init__(
            event_type=EventType.ANALYZER_FAILED,
            evaluation_id=evaluation_id,
            timestamp=timestamp,
            data={
                "kind": kind,
                "error_type": error_type,
                "error_message": error_message
            }
        )


@dataclass
class EvaluationCompletedEvent(EvaluationEvent):
    """Event fired when a report is produced."""
    def __init__(self, evaluation_id: str, timestamp: float, weighted_overall: float,
                 degraded: List[str], recommendation_count: int):
        super().__init__(
            event_type=EventType.EVALUATION_COMPLETED,
            evaluation_id=evaluation_id,
            timestamp=timestamp,
            data={
                "weighted_overall": weighted_overall,
                "degraded": degraded,
                "recommendation_count": recommendation_count
            }
        )


@dataclass
class EvaluationFailedEvent(EvaluationEvent):
    """Event fired when the evaluation is rejected."""
    def __init__(self, evaluation_id: str, timestamp: float, kind: Optional[str], error_message: str):
        super().__init__(
            event_type=EventType.EVALUATION_FAILED,
            evaluation_id=evaluation_id,
            timestamp=timestamp,
            data={"kind": kind, "error_message": error_message}
        )


EventHandler = Callable[[EvaluationEvent], None]


class EvaluationEventBus:
    """Event bus for evaluation observers."""

    def __init__(self):
        self._handlers: Dict[EventType, List[EventHandler]] = {}
        self._global_handlers: List[EventHandler] = []

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """
        Subscribe to specific event type.

        Args:
            event_type: Type of event to listen for
            handler: Function to call when event occurs
        """
        if event_type not in self._handlers:
            self._handlers[event_type] = []
        self._handlers[event_type].append(handler)
        logger.debug(f"Subscribed handler to {event_type}")

    def subscribe_all(self, handler: EventHandler) -> None:
        """Subscribe to all events."""
        self._global_handlers.append(handler)
        logger.debug("Subscribed global handler")

    def unsubscribe(self, event_type: EventType, handler: EventHandler) -> None:
        if event_type in self._handlers:
            try:
                self._handlers[event_type].remove(handler)
                logger.debug(f"Unsubscribed handler from {event_type}")
            except ValueError:
                logger.warning(f"Handler not found for {event_type}")

    def emit(self, event: EvaluationEvent) -> None:
        """
        Emit an event to all subscribers. Handler errors are logged, never raised.
        """
        logger.debug(f"Emitting event: {event.event_type} for evaluation {event.evaluation_id}")

        for handler in self._handlers.get(event.event_type, []):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in event handler for {event.event_type}: {e}")

        for handler in self._global_handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in global event handler: {e}")

    def clear_handlers(self) -> None:
        """Clear all event handlers."""
        self._handlers.clear()
        self._global_handlers.clear()
        logger.debug("Cleared all event handlers")


class EventLogger:
    """Logs all events for debugging and analysis."""

    def __init__(self, log_level: int = logging.INFO):
        self.logger = logging.getLogger("event_logger")
        self.logger.setLevel(log_level)

    def handle_event(self, event: EvaluationEvent) -> None:
        """Log event details."""
        level = logging.WARNING if event.event_type in (
            EventType.ANALYZER_DEGRADED, EventType.ANALYZER_FAILED
        ) else logging.INFO
        if event.event_type == EventType.EVALUATION_FAILED:
            level = logging.ERROR
        self.logger.log(level, f"Event: {event.event_type.value} | Evaluation: {event.evaluation_id} | Data: {event.data}")


class EvaluationMetrics:
    """Collects counts from evaluation events."""

    def __init__(self):
        self.reset()

    def handle_event(self, event: EvaluationEvent) -> None:
        """Update metrics based on event."""
        if event.event_type == EventType.EVALUATION_STARTED:
            self.evaluations_started += 1
        elif event.event_type == EventType.EVALUATION_COMPLETED:
            self.evaluations_completed += 1
        elif event.event_type == EventType.EVALUATION_FAILED:
            self.evaluations_failed += 1
        elif event.event_type == EventType.ANALYZER_COMPLETED:
            self.analyzers_completed += 1
        elif event.event_type == EventType.ANALYZER_DEGRADED:
            self.analyzers_degraded += 1
        elif event.event_type == EventType.ANALYZER_FAILED:
            self.analyzers_failed += 1

    def get_metrics(self) -> Dict[str, int]:
        """Get current metrics snapshot."""
        return {
            "evaluations_started": self.evaluations_started,
            "evaluations_completed": self.evaluations_completed,
            "evaluations_failed": self.evaluations_failed,
            "analyzers_completed": self.analyzers_completed,
            "analyzers_degraded": self.analyzers_degraded,
            "analyzers_failed": self.analyzers_failed
        }

    def reset(self) -> None:
        """Reset all metrics to zero."""
        self.evaluations_started = 0
        self.evaluations_completed = 0
        self.evaluations_failed = 0
        self.analyzers_completed = 0
        self.analyzers_degraded = 0
        self.analyzers_failed = 0
