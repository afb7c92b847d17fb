"""
Audio processing, voice measurement, and speech recognition.

- processing: WAV decoding, format conversion, and scoped temp files
- praat: Prosody measurements through the Praat command line
- speech: Whisper and Google Cloud Speech transcription
"""

from .processing import decode_wav, wav_duration_seconds, to_pcm16_mono, temporary_wav
from .praat import PraatRunner, VoiceMeasurements
from .speech import SpeechRecognizer

__all__ = [
    "decode_wav",
    "wav_duration_seconds",
    "to_pcm16_mono",
    "temporary_wav",
    "PraatRunner",
    "VoiceMeasurements",
    "SpeechRecognizer",
]
