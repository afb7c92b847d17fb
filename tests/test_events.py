from mockinterview.evaluation.events import (
    EvaluationEventBus, EvaluationMetrics, EventType,
    EvaluationStartedEvent, AnalyzerDegradedEvent, EvaluationFailedEvent,
)


def test_handler_errors_do_not_propagate():
    bus = EvaluationEventBus()
    received = []

    def broken(event):
        raise RuntimeError("handler bug")

    bus.subscribe(EventType.EVALUATION_STARTED, broken)
    bus.subscribe(EventType.EVALUATION_STARTED, received.append)

    bus.emit(EvaluationStartedEvent("abc", 0.0, "general", ["fluency"], False))

    assert len(received) == 1
    assert received[0].data["analyzers"] == ["fluency"]


def test_unsubscribe_and_typed_delivery():
    bus = EvaluationEventBus()
    received = []
    bus.subscribe(EventType.ANALYZER_DEGRADED, received.append)

    bus.emit(EvaluationStartedEvent("abc", 0.0, "general", [], False))
    bus.emit(AnalyzerDegradedEvent("abc", 0.0, "tone", "neutral scores"))
    bus.unsubscribe(EventType.ANALYZER_DEGRADED, received.append)
    bus.emit(AnalyzerDegradedEvent("abc", 0.0, "tone", "neutral scores"))

    assert [e.event_type for e in received] == [EventType.ANALYZER_DEGRADED]


def test_metrics_count_events():
    bus = EvaluationEventBus()
    metrics = EvaluationMetrics()
    bus.subscribe_all(metrics.handle_event)

    bus.emit(EvaluationStartedEvent("abc", 0.0, "general", [], False))
    bus.emit(AnalyzerDegradedEvent("abc", 0.0, "tone", None))
    bus.emit(EvaluationFailedEvent("abc", 0.0, "content", "malformed rubric"))

    counts = metrics.get_metrics()
    assert counts["evaluations_started"] == 1
    assert counts["analyzers_degraded"] == 1
    assert counts["evaluations_failed"] == 1

    metrics.reset()
    assert set(metrics.get_metrics().values()) == {0}
