"""
Answer evaluation pipeline.

Runs the analyzers for one utterance concurrently, waits for all of them to
settle, and aggregates the results into a single EvaluationReport.
"""
import time
import uuid
import asyncio
import logging
from typing import Optional, Dict, Any, List, Mapping, Union

from .models import AnalyzerKind, AnalyzerResult, Utterance, QuestionType, EvaluationReport, QuickFeedback
from .aggregator import aggregate, quick_feedback
from .analyzers import (
    Analyzer, call_service, FluencyAnalyzer, GrammarAnalyzer, ToneAnalyzer, CoherenceAnalyzer,
    RubricContentAnalyzer, ReferenceAnswerAnalyzer, ProsodyAnalyzer, PraatEstimator, SimulatedEstimator,
)
from .events import (
    EvaluationEventBus, EventLogger, EvaluationMetrics,
    EvaluationStartedEvent, AnalyzerCompletedEvent, AnalyzerDegradedEvent, AnalyzerFailedEvent,
    EvaluationCompletedEvent, EvaluationFailedEvent,
)
from ..config import Config, CRITERIA_WEIGHTS, LLM_TIMEOUT, SERVICE_TIMEOUT
from ..errors import EvaluationError, EvaluationFailedError, InputValidationError, ServiceError
from ..utils import evaluation_log_context
from ..infrastructure import (
    HuggingFaceInferenceClient, VertexRestClient, PraatRunner, SpeechRecognizer, wav_duration_seconds,
)

logger = logging.getLogger("pipeline")

CORRECTNESS_KINDS = (AnalyzerKind.CONTENT, AnalyzerKind.REFERENCE)


class EvaluationPipeline:
    """
    Evaluates interview answers with independent analyzers.

    Every external capability is injected, so tests can pass the doubles in
    `evaluation.testing` and production code uses `from_config`.
    """

    def __init__(self,
                 fluency: Analyzer,
                 tone: Analyzer,
                 coherence: Analyzer,
                 content: Analyzer,
                 grammar: Optional[Analyzer] = None,
                 reference: Optional[Analyzer] = None,
                 prosody: Optional[Analyzer] = None,
                 speech: Optional[SpeechRecognizer] = None,
                 weights: Optional[Mapping[str, float]] = None,
                 weighting_policy: str = "full_table",
                 service_timeout: float = SERVICE_TIMEOUT,
                 event_bus: Optional[EvaluationEventBus] = None):
        self.fluency = fluency
        self.tone = tone
        self.coherence = coherence
        self.content = content
        self.grammar = grammar
        self.reference = reference
        self.prosody = prosody
        self.speech = speech
        self.weights = dict(weights or CRITERIA_WEIGHTS)
        self.weighting_policy = weighting_policy
        self.service_timeout = service_timeout

        # Initialize event system
        self.event_bus = event_bus or EvaluationEventBus()
        self.event_logger = EventLogger()
        self.metrics = EvaluationMetrics()
        self.event_bus.subscribe_all(self.event_logger.handle_event)
        self.event_bus.subscribe_all(self.metrics.handle_event)

    @classmethod
    def from_config(cls, config: Config, **overrides) -> 'EvaluationPipeline':
        """Build a pipeline with real service clients from a Config."""
        hf = HuggingFaceInferenceClient(config.huggingface_api_key, timeout=config.service_timeout)
        llm = VertexRestClient(
            project=config.google_cloud_project,
            location=config.vertex_location,
            model=config.model_name,
            credentials_json=config.google_application_credentials,
        )
        timeout = config.service_timeout

        components: Dict[str, Any] = dict(
            fluency=FluencyAnalyzer(),
            tone=ToneAnalyzer(hf, timeout=timeout),
            coherence=CoherenceAnalyzer(hf, timeout=timeout),
            content=RubricContentAnalyzer(llm, timeout=max(timeout, LLM_TIMEOUT)),
            grammar=GrammarAnalyzer(hf, timeout=timeout),
            reference=ReferenceAnswerAnalyzer(hf, hf, timeout=timeout),
            prosody=ProsodyAnalyzer(
                primary=PraatEstimator(PraatRunner(config.praat_binary)),
                fallback=SimulatedEstimator(config.prosody_seed),
            ),
            speech=SpeechRecognizer(
                openai_api_key=config.openai_api_key,
                google_enabled=config.google_speech_enabled,
                language=config.language_code,
                timeout=timeout,
            ),
            weights=config.criteria_weights,
            weighting_policy=config.weighting_policy,
            service_timeout=timeout,
        )
        components.update(overrides)
        return cls(**components)

    def _analyzers_for(self, utterance: Utterance, audio: Optional[bytes]) -> List[Analyzer]:
        analyzers = [self.fluency, self.tone, self.coherence, self.content]
        if self.grammar is not None:
            analyzers.append(self.grammar)
        if utterance.expected_answer is not None and self.reference is not None:
            analyzers.append(self.reference)
        if audio and self.prosody is not None:
            analyzers.append(self.prosody)
        return analyzers

    async def _run(self, analyzer: Analyzer, utterance: Utterance, audio: Optional[bytes]) -> AnalyzerResult:
        """Run one analyzer, converting any failure into an explicit failure marker."""
        try:
            return await analyzer.analyze(utterance, audio)
        except EvaluationError as e:
            logger.warning("%s analyzer failed: %s", analyzer.kind.value, e)
            return AnalyzerResult.failed(analyzer.kind, e)
        except Exception as e:
            logger.exception("Unexpected error in %s analyzer: %s", analyzer.kind.value, e)
            return AnalyzerResult.failed(analyzer.kind, e)

    def _emit_result(self, evaluation_id: str, result: AnalyzerResult) -> None:
        now = time.time()
        if result.is_failed:
            self.event_bus.emit(AnalyzerFailedEvent(
                evaluation_id, now, result.kind.value, type(result.error).__name__, str(result.error)
            ))
        elif result.is_degraded:
            self.event_bus.emit(AnalyzerDegradedEvent(evaluation_id, now, result.kind.value, result.note))
        else:
            self.event_bus.emit(AnalyzerCompletedEvent(evaluation_id, now, result.kind.value, result.score))

    def _fail(self, evaluation_id: str, error: EvaluationFailedError) -> None:
        logger.error("Evaluation %s failed: %s", evaluation_id, error)
        self.event_bus.emit(EvaluationFailedEvent(evaluation_id, time.time(), error.kind, str(error)))

    async def evaluate(self, utterance: Utterance, audio: Optional[bytes] = None) -> EvaluationReport:
        """
        Evaluate one answer.

        Args:
            utterance: The transcribed answer and its metadata
            audio: Optional WAV bytes; enables prosody and the delivery/combined scores

        Returns:
            EvaluationReport with degraded analyzers listed under `degraded`

        Raises:
            InputValidationError: If the expected answer is present but blank
            EvaluationFailedError: If content/correctness analysis failed; retry the evaluation
        """
        if utterance.expected_answer is not None and not utterance.expected_answer.strip():
            raise InputValidationError("expected_answer is empty")

        evaluation_id = uuid.uuid4().hex[:12]
        with evaluation_log_context(evaluation_id):
            return await self._evaluate(evaluation_id, utterance, audio)

    async def _evaluate(self, evaluation_id: str, utterance: Utterance,
                        audio: Optional[bytes]) -> EvaluationReport:
        analyzers = self._analyzers_for(utterance, audio)

        self.event_bus.emit(EvaluationStartedEvent(
            evaluation_id, time.time(), utterance.question_type.value,
            [a.kind.value for a in analyzers], bool(audio),
        ))

        # All analyzers settle before anything is aggregated
        settled = await asyncio.gather(*(self._run(a, utterance, audio) for a in analyzers))
        results: Dict[AnalyzerKind, AnalyzerResult] = {r.kind: r for r in settled}

        for result in settled:
            self._emit_result(evaluation_id, result)

        for kind in CORRECTNESS_KINDS:
            result = results.get(kind)
            if result is not None and result.is_failed:
                error = EvaluationFailedError(
                    f"{kind.value} analysis failed, please retry the evaluation: {result.note}", kind=kind.value
                )
                self._fail(evaluation_id, error)
                raise error from result.error

        try:
            report = aggregate(
                results, utterance,
                weights=self.weights,
                policy=self.weighting_policy,
                include_delivery=bool(audio),
            )
        except EvaluationFailedError as e:
            self._fail(evaluation_id, e)
            raise

        self.event_bus.emit(EvaluationCompletedEvent(
            evaluation_id, time.time(), report.scores.weighted_overall,
            report.degraded, len(report.recommendations),
        ))
        return report

    async def evaluate_segment(self, utterance: Utterance, is_complete: bool,
                               audio: Optional[bytes] = None) -> Union[QuickFeedback, EvaluationReport]:
        """
        Streaming variant: quick delivery feedback for segments still in
        progress, the full report once the answer is complete.
        """
        if is_complete:
            return await self.evaluate(utterance, audio)

        fluency, tone = await asyncio.gather(
            self._run(self.fluency, utterance, None),
            self._run(self.tone, utterance, None),
        )
        return quick_feedback(fluency, tone, transcript=utterance.text)

    async def transcribe_and_evaluate(self,
                                      audio: bytes,
                                      question: Optional[str] = None,
                                      question_type: QuestionType = QuestionType.GENERAL,
                                      context: Optional[Mapping[str, Any]] = None,
                                      expected_answer: Optional[str] = None,
                                      language: Optional[str] = None,
                                      engine: Optional[str] = None,
                                      is_complete: bool = True) -> Union[QuickFeedback, EvaluationReport]:
        """Transcribe a WAV answer and evaluate it with the audio attached."""
        if self.speech is None:
            raise ServiceError("No speech recognizer configured", service="speech")

        duration = wav_duration_seconds(audio)
        try:
            transcript = await call_service(
                self.speech.transcribe, audio, language=language, prompt=question, engine=engine,
                timeout=max(self.service_timeout, LLM_TIMEOUT), service="speech",
            )
        except ServiceError as e:
            raise EvaluationFailedError(f"Transcription failed, please retry: {e}", kind="speech") from e

        logger.info("Transcript (%.1fs): %s", duration, transcript or "(empty)")

        utterance = Utterance(
            text=transcript,
            duration_seconds=duration if duration > 0 else None,
            question_type=question_type,
            question=question,
            expected_answer=expected_answer,
            context=context or {},
        )
        return await self.evaluate_segment(utterance, is_complete, audio=audio)

    def get_metrics(self) -> Dict[str, int]:
        return self.metrics.get_metrics()

    def reset_metrics(self):
        self.metrics.reset()
