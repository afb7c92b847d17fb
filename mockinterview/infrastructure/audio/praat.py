"""
Voice measurement extraction using Praat.
"""
import os
import subprocess
import logging
import tempfile
from dataclasses import dataclass, asdict
from typing import Dict

from ...config import PRAAT_BINARY, PRAAT_TIMEOUT, PRAAT_MIN_PITCH, PRAAT_MAX_PITCH, PRAAT_MIN_PAUSE_SECONDS
from ...errors import ServiceError, TransientServiceError, MalformedResponseError

logger = logging.getLogger("praat")

RESULT_FIELDS = (
    "speech_rate", "pitch_mean", "pitch_min", "pitch_max", "pitch_stdev",
    "jitter", "shimmer", "pause_count", "pause_duration", "pause_rate",
    "intensity_mean", "intensity_min", "intensity_max",
)

VOICE_SCRIPT = """
sound = Read from file: "{wav_path}"
duration = Get total duration

# Silences for pause statistics
To TextGrid (silences): 100, 0, -25, 0.1, 0.1, "silent", "sounding"
textgrid = selected("TextGrid")

# Loudness in dB, then a syllable estimate from intensity peaks
selectObject: sound
To Intensity: {min_pitch}, 0.0, "yes"
intensity = selected("Intensity")
meanIntensity = Get mean: 0, 0, "energy"
minIntensity = Get minimum: 0, 0, "Parabolic"
maxIntensity = Get maximum: 0, 0, "Parabolic"
selectObject: intensity
To IntensityTier (peaks)
numPeaks = Get number of points
speechRate = numPeaks / duration

# Fundamental frequency
selectObject: sound
To Pitch: 0.0, {min_pitch}, {max_pitch}
meanF0 = Get mean: 0, 0, "Hertz"
minF0 = Get minimum: 0, 0, "Hertz", "Parabolic"
maxF0 = Get maximum: 0, 0, "Hertz", "Parabolic"
stdevF0 = Get standard deviation: 0, 0, "Hertz"

# Voice quality
selectObject: sound
To PointProcess (periodic, cc): {min_pitch}, {max_pitch}
pointProcess = selected("PointProcess")
jitter = Get jitter (local): 0, 0, 0.0001, 0.02, 1.3
selectObject: sound, pointProcess
shimmer = Get shimmer (local): 0, 0, 0.0001, 0.02, 1.3, 1.6

# Pauses longer than the minimum pause length
selectObject: textgrid
numberOfIntervals = Get number of intervals: 1
numberOfPauses = 0
totalSilence = 0
for i from 1 to numberOfIntervals
    label$ = Get label of interval: 1, i
    if label$ = "silent"
        start = Get starting point: 1, i
        end = Get end point: 1, i
        if end - start > {min_pause}
            numberOfPauses = numberOfPauses + 1
            totalSilence = totalSilence + (end - start)
        endif
    endif
endfor
pauseRate = numberOfPauses / duration

writeFileLine: "{result_path}", speechRate, ",", meanF0, ",", minF0, ",", maxF0, ",", stdevF0, ",", jitter, ",", shimmer, ",", numberOfPauses, ",", totalSilence, ",", pauseRate, ",", meanIntensity, ",", minIntensity, ",", maxIntensity
"""


@dataclass(frozen=True)
class VoiceMeasurements:
    """Raw prosody measurements in the order Praat writes them."""
    speech_rate: float
    pitch_mean: float
    pitch_min: float
    pitch_max: float
    pitch_stdev: float
    jitter: float
    shimmer: float
    pause_count: int
    pause_duration: float
    pause_rate: float
    intensity_mean: float
    intensity_min: float
    intensity_max: float

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


def parse_praat_results(text: str) -> VoiceMeasurements:
    """
    Parse the comma-separated result line written by the voice script.
    Praat writes "--undefined--" when a measure cannot be computed.
    """
    values = [v.strip() for v in text.strip().split(",")]
    if len(values) != len(RESULT_FIELDS):
        raise MalformedResponseError(
            f"Expected {len(RESULT_FIELDS)} Praat values, got {len(values)}", service="praat", raw=text
        )

    parsed = {}
    for name, raw in zip(RESULT_FIELDS, values):
        if raw.lower() in ("--undefined--", "undefined", "nan", ""):
            raise MalformedResponseError(f"Praat could not compute {name}", service="praat", raw=text)
        try:
            parsed[name] = float(raw)
        except ValueError as e:
            raise MalformedResponseError(f"Non-numeric Praat value for {name}: {raw!r}", service="praat", raw=text) from e

    parsed["pause_count"] = int(round(parsed["pause_count"]))
    return VoiceMeasurements(**parsed)


class PraatRunner:
    """Runs the voice-measurement script through the Praat command line."""

    def __init__(self, binary: str = PRAAT_BINARY, timeout: int = PRAAT_TIMEOUT):
        self.binary = binary
        self.timeout = timeout

    def is_available(self) -> bool:
        """Liveness probe: True when `praat --version` runs successfully."""
        try:
            proc = subprocess.run([self.binary, "--version"], check=False, stdout=subprocess.PIPE,
                                  stderr=subprocess.PIPE, text=True, timeout=10)
        except (FileNotFoundError, PermissionError, subprocess.TimeoutExpired):
            logger.info("Praat not available at %s", self.binary)
            return False
        return proc.returncode == 0

    def analyze(self, wav_path: str) -> VoiceMeasurements:
        """
        Run the voice script on a WAV file and return its measurements.
        The script and its result file live in a temp directory removed on exit.
        """
        wav_abs = os.path.abspath(wav_path)
        if not os.path.isfile(wav_abs):
            raise ServiceError(f"Input WAV not found: {wav_abs}", service="praat")

        with tempfile.TemporaryDirectory(prefix="praat_") as tmp_dir:
            script_path = os.path.join(tmp_dir, "analyze_voice.praat")
            result_path = os.path.join(tmp_dir, "voice_results.txt")

            with open(script_path, "w", encoding="utf-8") as f:
                f.write(VOICE_SCRIPT.format(
                    wav_path=wav_abs,
                    result_path=result_path,
                    min_pitch=PRAAT_MIN_PITCH,
                    max_pitch=PRAAT_MAX_PITCH,
                    min_pause=PRAAT_MIN_PAUSE_SECONDS,
                ))

            cmd = [self.binary, "--run", script_path]
            logger.info("Running Praat: %s", " ".join(cmd))

            try:
                proc = subprocess.run(cmd, check=False, stdout=subprocess.PIPE,
                                      stderr=subprocess.PIPE, text=True, timeout=self.timeout)
            except FileNotFoundError as e:
                raise ServiceError("Praat not found. Install Praat or set PRAAT_BINARY.", service="praat") from e
            except subprocess.TimeoutExpired as e:
                raise TransientServiceError(f"Praat timed out ({self.timeout}s).", service="praat") from e

            if proc.returncode != 0 or not os.path.isfile(result_path):
                logger.error("Praat failed (returncode=%s): %s", proc.returncode, (proc.stderr or "")[:2000])
                raise ServiceError(f"Praat did not produce results (returncode {proc.returncode})", service="praat")

            with open(result_path, "r", encoding="utf-8", errors="replace") as f:
                content = f.read()

        logger.debug("Praat results: %s", content.strip())
        return parse_praat_results(content)
