from unittest.mock import Mock

import pytest

from mockinterview.errors import ServiceError, TransientServiceError
from mockinterview.infrastructure.audio import SpeechRecognizer
from mockinterview.evaluation.testing import make_wav_bytes


def recognizer(openai_key="sk-test", google_enabled=True):
    rec = SpeechRecognizer(openai_api_key=openai_key, google_enabled=google_enabled)
    rec._whisper = Mock(return_value="from whisper")
    rec._google_recognize = Mock(return_value="from google")
    return rec


def test_engines_follow_configuration():
    assert recognizer().engines == ["whisper", "google"]
    assert recognizer(openai_key=None).engines == ["google"]
    assert recognizer(openai_key=None, google_enabled=False).engines == []


def test_whisper_is_primary():
    rec = recognizer()
    assert rec.transcribe(make_wav_bytes(0.2)) == "from whisper"
    rec._google_recognize.assert_not_called()


def test_falls_back_to_google_when_whisper_fails():
    rec = recognizer()
    rec._whisper.side_effect = TransientServiceError("timeout", service="whisper")

    assert rec.transcribe(make_wav_bytes(0.2), language="en-US") == "from google"
    rec._google_recognize.assert_called_once()


def test_single_engine_failure_propagates():
    rec = recognizer(google_enabled=False)
    rec._whisper.side_effect = ServiceError("bad key", service="whisper")
    with pytest.raises(ServiceError):
        rec.transcribe(make_wav_bytes(0.2))


def test_forced_engine():
    rec = recognizer()
    assert rec.transcribe(make_wav_bytes(0.2), engine="google") == "from google"
    rec._whisper.assert_not_called()

    with pytest.raises(ValueError):
        rec.transcribe(make_wav_bytes(0.2), engine="sphinx")
    with pytest.raises(ServiceError):
        recognizer(openai_key=None).transcribe(make_wav_bytes(0.2), engine="whisper")


def test_no_engine_configured():
    with pytest.raises(ServiceError):
        recognizer(openai_key=None, google_enabled=False).transcribe(make_wav_bytes(0.2))


def test_google_is_off_unless_enabled():
    assert SpeechRecognizer().engines == []
    assert SpeechRecognizer(google_enabled=True).engines == ["google"]
