"""
Speech-to-text using OpenAI Whisper with Google Cloud Speech as the secondary engine.
"""
import logging
from typing import Optional

import openai
from openai import OpenAI
from google.api_core import exceptions as google_exceptions
from google.cloud import speech

from ...config import LANGUAGE_CODE, WHISPER_MODEL, STT_SAMPLE_RATE
from ...errors import ServiceError, TransientServiceError
from .processing import to_pcm16_mono

logger = logging.getLogger("speech_stt")

ENGINES = ("whisper", "google")


class SpeechRecognizer:
    """
    Transcribes WAV audio. Whisper is used when an OpenAI key is configured,
    Google Cloud Speech otherwise; `engine=` forces either one. Google is only
    used when `google_enabled` is set, which `Config.google_speech_enabled` decides.
    """

    def __init__(self,
                 openai_api_key: Optional[str] = None,
                 language: str = LANGUAGE_CODE,
                 google_enabled: bool = False,
                 timeout: Optional[float] = None):
        self.language = language
        self.google_enabled = google_enabled
        self.timeout = timeout
        self._openai = OpenAI(api_key=openai_api_key, timeout=timeout) if openai_api_key else None
        self._google = None

    @property
    def engines(self):
        available = []
        if self._openai is not None:
            available.append("whisper")
        if self.google_enabled:
            available.append("google")
        return available

    def transcribe(self, audio: bytes, language: Optional[str] = None,
                   prompt: Optional[str] = None, engine: Optional[str] = None) -> str:
        """
        Transcribe WAV bytes to text.

        Args:
            audio: WAV file contents
            language: BCP-47 code, defaults to the recognizer language
            prompt: Optional vocabulary/context hint (Whisper only)
            engine: "whisper" or "google" to force an engine

        Raises:
            ServiceError: If no engine is configured or the engine fails
        """
        language = language or self.language

        if engine is not None:
            if engine not in ENGINES:
                raise ValueError(f"Unknown speech engine: {engine}")
            if engine not in self.engines:
                raise ServiceError(f"Speech engine '{engine}' is not configured", service="speech")
            return self._run(engine, audio, language, prompt)

        available = self.engines
        if not available:
            raise ServiceError("No speech recognition engine configured", service="speech")

        primary = available[0]
        try:
            return self._run(primary, audio, language, prompt)
        except ServiceError as e:
            if len(available) < 2:
                raise
            logger.warning("%s transcription failed (%s), falling back to %s", primary, e, available[1])
            return self._run(available[1], audio, language, prompt)

    def _run(self, engine: str, audio: bytes, language: str, prompt: Optional[str]) -> str:
        if engine == "whisper":
            return self._whisper(audio, language, prompt)
        return self._google_recognize(audio, language)

    def _whisper(self, audio: bytes, language: str, prompt: Optional[str]) -> str:
        # Whisper takes ISO-639-1 codes ("en", not "en-US")
        iso_language = language[:2] if language else "en"
        kwargs = {"model": WHISPER_MODEL, "file": ("answer.wav", audio), "language": iso_language}
        if prompt:
            kwargs["prompt"] = prompt

        try:
            result = self._openai.audio.transcriptions.create(**kwargs)
        except (openai.APITimeoutError, openai.APIConnectionError, openai.RateLimitError,
                openai.InternalServerError) as e:
            raise TransientServiceError(f"Whisper transcription failed: {e}", service="whisper") from e
        except openai.OpenAIError as e:
            raise ServiceError(f"Whisper transcription failed: {e}", service="whisper") from e

        text = (result.text or "").strip()
        logger.info("Whisper transcribed: %s...", text[:50])
        return text

    def _google_recognize(self, audio: bytes, language: str) -> str:
        pcm16_bytes, sr_hz = to_pcm16_mono(audio, STT_SAMPLE_RATE)

        if self._google is None:
            self._google = speech.SpeechClient()

        config = speech.RecognitionConfig(
            encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
            sample_rate_hertz=sr_hz,
            language_code=language,
            enable_automatic_punctuation=True,
        )

        try:
            resp = self._google.recognize(config=config, audio=speech.RecognitionAudio(content=pcm16_bytes),
                                          timeout=self.timeout)
        except (google_exceptions.DeadlineExceeded, google_exceptions.ServiceUnavailable,
                google_exceptions.TooManyRequests) as e:
            raise TransientServiceError(f"Google speech recognition failed: {e}", service="google_speech") from e
        except google_exceptions.GoogleAPIError as e:
            raise ServiceError(f"Google speech recognition failed: {e}", service="google_speech") from e

        texts = [r.alternatives[0].transcript for r in resp.results if r.alternatives]
        return " ".join(texts).strip()
