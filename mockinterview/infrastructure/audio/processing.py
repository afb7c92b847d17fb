"""
Basic audio processing: WAV decoding, format conversions, and scoped temp files.
"""
import io
import os
import wave
import tempfile
from contextlib import contextmanager
from math import gcd
from typing import Iterator, Tuple

import numpy as np
from scipy.signal import resample_poly

from ...config import TARGET_RMS, STT_SAMPLE_RATE
from ...errors import InputValidationError

_SAMPLE_DTYPES = {1: np.uint8, 2: np.int16, 4: np.int32}


def decode_wav(data: bytes) -> Tuple[np.ndarray, int]:
    """
    Decode WAV bytes into float32 samples in [-1, 1].
    Returns (samples, sample_rate); samples are shaped (frames, channels).
    """
    try:
        with wave.open(io.BytesIO(data), "rb") as wf:
            channels = wf.getnchannels()
            width = wf.getsampwidth()
            sr = wf.getframerate()
            frames = wf.readframes(wf.getnframes())
    except (wave.Error, EOFError) as e:
        raise InputValidationError(f"Audio is not a readable WAV file: {e}") from e

    if width not in _SAMPLE_DTYPES:
        raise InputValidationError(f"Unsupported WAV sample width: {width} bytes")

    raw = np.frombuffer(frames, dtype=_SAMPLE_DTYPES[width]).astype(np.float32)
    if width == 1:
        # 8-bit WAV is unsigned
        raw = (raw - 128.0) / 128.0
    else:
        raw = raw / float(2 ** (8 * width - 1))

    return raw.reshape(-1, channels), sr


def wav_duration_seconds(data: bytes) -> float:
    """Duration of a WAV file from its header."""
    try:
        with wave.open(io.BytesIO(data), "rb") as wf:
            rate = wf.getframerate()
            return wf.getnframes() / float(rate) if rate else 0.0
    except (wave.Error, EOFError) as e:
        raise InputValidationError(f"Audio is not a readable WAV file: {e}") from e


def stereo_to_mono(x: np.ndarray) -> np.ndarray:
    """Convert multi-channel audio to mono by averaging channels."""
    if x.ndim == 1:
        return x
    return np.mean(x, axis=1)


def remove_dc(x: np.ndarray) -> np.ndarray:
    """Remove DC offset from audio signal."""
    if x.size == 0:
        return x
    return x - np.mean(x)


def resample(x: np.ndarray, sr_in: int, sr_out: int) -> np.ndarray:
    """Resample audio between arbitrary integer rates."""
    if sr_in == sr_out:
        return x.astype(np.float32)
    g = gcd(sr_in, sr_out)
    return resample_poly(x, up=sr_out // g, down=sr_in // g).astype(np.float32)


def normalize_audio(audio: np.ndarray, target_rms: float = TARGET_RMS) -> np.ndarray:
    """Normalize audio to target RMS level."""
    if audio.size == 0:
        return audio
    rms = float(np.sqrt(np.mean(audio**2)) + 1e-9)
    gain = min(20.0, target_rms / rms) if rms > 0 else 1.0
    return audio * gain


def to_pcm16(audio: np.ndarray) -> np.ndarray:
    """Convert float audio in [-1, 1] to int16 PCM."""
    return (np.clip(audio, -1.0, 1.0) * 32767.0).astype(np.int16)


def to_pcm16_mono(data: bytes, sr_out: int = STT_SAMPLE_RATE) -> Tuple[bytes, int]:
    """
    Prepare WAV bytes for a speech recognizer: mono, DC-free, resampled and
    normalized LINEAR16. Returns (pcm_bytes, sample_rate).
    """
    samples, sr = decode_wav(data)
    mono = remove_dc(stereo_to_mono(samples))
    mono = normalize_audio(resample(mono, sr, sr_out))
    return to_pcm16(mono).tobytes(), sr_out


@contextmanager
def temporary_wav(data: bytes, suffix: str = ".wav") -> Iterator[str]:
    """
    Write audio bytes to a temp file for the duration of the block.
    The file and its directory are removed on every exit path.
    """
    with tempfile.TemporaryDirectory(prefix="mockinterview_") as tmp_dir:
        path = os.path.join(tmp_dir, f"answer{suffix}")
        with open(path, "wb") as f:
            f.write(data)
        yield path
