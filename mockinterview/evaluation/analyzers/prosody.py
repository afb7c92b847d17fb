"""
Audio prosody analysis with interchangeable measurement backends.

Estimators produce VoiceMeasurements from WAV bytes:
- PraatEstimator: real measurements through the Praat command line
- SimulatedEstimator: seeded values drawn from ranges typical of interview speech

The interpretation of measurements is threshold-based and identical for both.
"""
import logging
from typing import Dict, Any, Optional

import numpy as np

from .base import Analyzer, call_service
from ..models import AnalyzerKind, AnalyzerResult, ResultStatus, Utterance
from ...config import (
    SIMULATED_PROSODY_RANGES, SIMULATED_PAUSE_SECONDS, SIMULATED_INTENSITY_SPREAD, PRAAT_TIMEOUT,
)
from ...errors import InputValidationError, ServiceError
from ...infrastructure.audio import PraatRunner, VoiceMeasurements, temporary_wav

logger = logging.getLogger("prosody_analyzer")

SIMULATED_NOTE = "Simulated value"
GOOD_LEVELS = {
    "speechRate": "optimal",
    "pitch": "expressive",
    "voiceQuality": "clear",
    "pauses": "balanced",
}


class PraatEstimator:
    """Measures prosody with Praat. Audio is written to a temp file for the call only."""
    simulated = False
    name = "praat"

    def __init__(self, runner: Optional[PraatRunner] = None):
        self.runner = runner or PraatRunner()

    def is_available(self) -> bool:
        return self.runner.is_available()

    def estimate(self, audio: bytes) -> VoiceMeasurements:
        with temporary_wav(audio) as wav_path:
            return self.runner.analyze(wav_path)


class SimulatedEstimator:
    """Plausible prosody values from a seedable generator, for when Praat is missing."""
    simulated = True
    name = "simulated"

    def __init__(self, seed: Optional[int] = None):
        self.rng = np.random.default_rng(seed)

    def is_available(self) -> bool:
        return True

    def _uniform(self, key: str) -> float:
        low, high = SIMULATED_PROSODY_RANGES[key]
        return float(self.rng.uniform(low, high))

    def estimate(self, audio: bytes) -> VoiceMeasurements:
        pitch_mean = self._uniform("pitch_mean")
        pitch_stdev = self._uniform("pitch_stdev")
        low, high = SIMULATED_PROSODY_RANGES["pause_count"]
        pause_count = int(self.rng.integers(low, high))
        intensity_mean = self._uniform("intensity_mean")

        return VoiceMeasurements(
            speech_rate=self._uniform("speech_rate"),
            pitch_mean=pitch_mean,
            pitch_min=max(0.0, pitch_mean - 2 * pitch_stdev),
            pitch_max=pitch_mean + 2 * pitch_stdev,
            pitch_stdev=pitch_stdev,
            jitter=self._uniform("jitter"),
            shimmer=self._uniform("shimmer"),
            pause_count=pause_count,
            pause_duration=pause_count * SIMULATED_PAUSE_SECONDS,
            pause_rate=self._uniform("pause_rate"),
            intensity_mean=intensity_mean,
            intensity_min=intensity_mean - SIMULATED_INTENSITY_SPREAD,
            intensity_max=intensity_mean + SIMULATED_INTENSITY_SPREAD,
        )


def simplified_measurements() -> VoiceMeasurements:
    """Midpoints of the simulated ranges, used when every estimator failed."""
    mid = {k: (low + high) / 2.0 for k, (low, high) in SIMULATED_PROSODY_RANGES.items()}
    pause_count = int(round(mid["pause_count"]))
    return VoiceMeasurements(
        speech_rate=mid["speech_rate"],
        pitch_mean=mid["pitch_mean"],
        pitch_min=mid["pitch_mean"] - 2 * mid["pitch_stdev"],
        pitch_max=mid["pitch_mean"] + 2 * mid["pitch_stdev"],
        pitch_stdev=mid["pitch_stdev"],
        jitter=mid["jitter"],
        shimmer=mid["shimmer"],
        pause_count=pause_count,
        pause_duration=pause_count * SIMULATED_PAUSE_SECONDS,
        pause_rate=mid["pause_rate"],
        intensity_mean=mid["intensity_mean"],
        intensity_min=mid["intensity_mean"] - SIMULATED_INTENSITY_SPREAD,
        intensity_max=mid["intensity_mean"] + SIMULATED_INTENSITY_SPREAD,
    )


def interpret_speech_rate(rate: float) -> Dict[str, str]:
    """Syllables per second."""
    if rate < 3.0:
        return {
            "level": "slow",
            "description": "Your speaking rate is slower than average, which may make you sound thoughtful "
                           "but could lose listener interest.",
            "suggestion": "Try to slightly increase your pace for more engagement while maintaining clarity.",
        }
    if rate <= 4.5:
        return {
            "level": "optimal",
            "description": "Your speaking rate is at an ideal pace, which is engaging and easy to follow.",
            "suggestion": "Continue with this balanced rate - it's neither too fast nor too slow.",
        }
    return {
        "level": "fast",
        "description": "Your speaking rate is faster than average, which conveys enthusiasm but might reduce clarity.",
        "suggestion": "Consider slowing down slightly to ensure your points are fully understood.",
    }


def interpret_pitch_variability(stdev: float) -> Dict[str, str]:
    """Standard deviation of F0 in Hz."""
    if stdev < 15:
        return {
            "level": "monotone",
            "description": "Your voice has limited pitch variation, which may sound monotonous.",
            "suggestion": "Try to add more vocal variety by emphasizing key words with higher or lower pitch.",
        }
    if stdev <= 40:
        return {
            "level": "expressive",
            "description": "Your voice has good pitch variation, making you sound engaged and expressive.",
            "suggestion": "Maintain this level of vocal variety as it keeps listeners engaged.",
        }
    return {
        "level": "highly_variable",
        "description": "Your voice has significant pitch variation, which shows enthusiasm but may seem exaggerated.",
        "suggestion": "Consider moderating extreme pitch changes for a more balanced delivery in professional settings.",
    }


def interpret_voice_quality(jitter: float, shimmer: float) -> Dict[str, str]:
    jitter_high = jitter > 0.02
    shimmer_high = shimmer > 0.08

    if jitter_high and shimmer_high:
        return {
            "level": "rough",
            "description": "Your voice exhibits some roughness or hoarseness.",
            "suggestion": "Consider vocal warm-ups before speaking, and ensure you're well-hydrated.",
        }
    if jitter_high or shimmer_high:
        return {
            "level": "slightly_rough",
            "description": "Your voice has slight instability that may indicate tension or tiredness.",
            "suggestion": "Take deep breaths before speaking and maintain good posture for clearer voice production.",
        }
    return {
        "level": "clear",
        "description": "Your voice quality is clear and stable, which conveys confidence and competence.",
        "suggestion": "Continue maintaining this clear vocal quality through proper breathing and posture.",
    }


def interpret_pauses(pause_rate: float) -> Dict[str, str]:
    """Pauses per second."""
    if pause_rate < 0.15:
        return {
            "level": "few",
            "description": "You use fewer pauses than typical, which can make your speech sound rushed.",
            "suggestion": "Consider adding strategic pauses after important points to let information sink in.",
        }
    if pause_rate <= 0.4:
        return {
            "level": "balanced",
            "description": "You use a good balance of pauses, which creates a natural rhythm in your speech.",
            "suggestion": "Continue using these well-timed pauses to emphasize key points and allow listeners "
                          "to process information.",
        }
    return {
        "level": "frequent",
        "description": "You use frequent pauses, which may indicate hesitation or thoughtfulness.",
        "suggestion": "Try to reduce unintentional pauses and focus on strategic pauses for emphasis.",
    }


def interpret_volume(intensity_mean: float) -> Dict[str, str]:
    """Mean intensity in dB."""
    if intensity_mean < 55:
        return {
            "level": "low",
            "description": "You speak quietly, which can read as hesitant.",
            "suggestion": "Consider speaking a bit louder to project confidence and ensure you are heard clearly.",
        }
    if intensity_mean < 70:
        return {
            "level": "moderate",
            "description": "Your speaking volume is comfortable to listen to.",
            "suggestion": "Keep this volume; it carries well without sounding forced.",
        }
    return {
        "level": "high",
        "description": "You speak loudly, which projects energy but can feel intense.",
        "suggestion": "Your volume is good, but you may want to lower it slightly in some segments.",
    }


PITCH_CONFIDENCE = {"monotone": 0.1, "expressive": 0.4, "highly_variable": 0.3}
VOLUME_CONFIDENCE = {"low": 0.1, "moderate": 0.4, "high": 0.5}
LOW_CONFIDENCE_SUGGESTION = ("Work on projecting more confidence by speaking at a moderate pace "
                             "with good volume and vocal variety.")


def assess_vocal_confidence(pitch_level: str, volume_level: str) -> Dict[str, Any]:
    """How confident the voice sounds, from pitch variety and loudness."""
    score = round(PITCH_CONFIDENCE[pitch_level] + VOLUME_CONFIDENCE[volume_level], 2)
    if score < 0.4:
        level = "low"
    elif score < 0.7:
        level = "moderate"
    else:
        level = "high"
    return {"score": score, "level": level}


STRENGTH_TEXT = {
    "speechRate": "Your speaking pace is excellent - engaging and easy to follow.",
    "pitch": "You use good vocal variety, which keeps listeners engaged.",
    "voiceQuality": "Your voice quality is clear and projects confidence.",
    "pauses": "You use well-timed pauses that create effective rhythm in your speech.",
}


def generate_assessment(interpretations: Dict[str, Dict[str, str]]) -> Dict[str, Any]:
    """Strengths where a dimension hit its good level, improvements elsewhere, and an impression tier."""
    strengths, improvements = [], []
    for dimension, good in GOOD_LEVELS.items():
        interpretation = interpretations[dimension]
        if interpretation["level"] == good:
            strengths.append(STRENGTH_TEXT[dimension])
        else:
            improvements.append(interpretation["suggestion"])

    count = len(strengths)
    if count >= 3:
        impression = ("Your vocal delivery is very effective, conveying confidence and engagement. "
                      "With minor adjustments, you can further enhance your speaking impact.")
    elif count >= 1:
        impression = ("Your vocal delivery has some strong elements, but could benefit from specific "
                      "improvements to maximize your impact and engagement.")
    else:
        impression = ("Your vocal delivery would benefit from focused practice to better engage listeners "
                      "and convey confidence.")

    return {
        "strengths": strengths,
        "improvements": improvements,
        "strengthCount": count,
        "overallImpression": impression,
    }


def build_prosody_report(m: VoiceMeasurements, simulated: bool = False) -> Dict[str, Any]:
    interpretations = {
        "speechRate": interpret_speech_rate(m.speech_rate),
        "pitch": interpret_pitch_variability(m.pitch_stdev),
        "voiceQuality": interpret_voice_quality(m.jitter, m.shimmer),
        "pauses": interpret_pauses(m.pause_rate),
    }
    volume = interpret_volume(m.intensity_mean)
    confidence = assess_vocal_confidence(interpretations["pitch"]["level"], volume["level"])

    assessment = generate_assessment(interpretations)
    if volume["level"] != "moderate":
        assessment["improvements"].append(volume["suggestion"])
    if confidence["level"] == "low":
        assessment["improvements"].append(LOW_CONFIDENCE_SUGGESTION)

    report = {
        "speechRate": {"value": m.speech_rate, "assessment": interpretations["speechRate"]},
        "pitch": {
            "mean": m.pitch_mean,
            "min": m.pitch_min,
            "max": m.pitch_max,
            "variation": m.pitch_stdev,
            "assessment": interpretations["pitch"],
        },
        "voiceQuality": {"jitter": m.jitter, "shimmer": m.shimmer, "assessment": interpretations["voiceQuality"]},
        "pauses": {
            "count": m.pause_count,
            "totalDuration": m.pause_duration,
            "rate": m.pause_rate,
            "assessment": interpretations["pauses"],
        },
        "volume": {
            "mean": m.intensity_mean,
            "min": m.intensity_min,
            "max": m.intensity_max,
            "assessment": volume,
        },
        "confidence": confidence,
        "assessment": assessment,
        "simulated": simulated,
    }

    if simulated:
        for section in ("speechRate", "pitch", "voiceQuality", "pauses", "volume"):
            report[section]["note"] = SIMULATED_NOTE
    return report


class ProsodyAnalyzer(Analyzer):
    """
    Vocal delivery from raw audio. Falls back from the primary estimator to the
    simulated one, and to a simplified report if both fail; never raises for
    backend failures.
    """
    kind = AnalyzerKind.PROSODY

    def __init__(self, primary=None, fallback=None, timeout: float = PRAAT_TIMEOUT):
        self.primary = primary
        self.fallback = fallback or SimulatedEstimator()
        self.timeout = timeout

    async def _measure(self, estimator, audio: bytes) -> VoiceMeasurements:
        available = await call_service(estimator.is_available, timeout=self.timeout, service=estimator.name)
        if not available:
            raise ServiceError(f"{estimator.name} is not available", service=estimator.name)
        return await call_service(estimator.estimate, audio, timeout=self.timeout, service=estimator.name)

    async def analyze(self, utterance: Utterance, audio: Optional[bytes] = None) -> AnalyzerResult:
        if not audio:
            raise InputValidationError("Prosody analysis requires audio")

        backend, note = None, None
        for estimator in (self.primary, self.fallback):
            if estimator is None:
                continue
            try:
                measurements = await self._measure(estimator, audio)
            except ServiceError as e:
                logger.warning("%s prosody estimator failed: %s", estimator.name, e)
                continue
            except Exception as e:
                logger.exception("Unexpected %s prosody estimator failure: %s", estimator.name, e)
                continue
            backend, simulated = estimator.name, estimator.simulated
            break
        else:
            measurements, backend, simulated = simplified_measurements(), "simplified", True
            note = "Simplified analysis; no prosody backend produced measurements"

        if simulated and note is None:
            note = "Prosody values are simulated; Praat was unavailable"

        report = build_prosody_report(measurements, simulated=simulated)
        report["backend"] = backend
        strengths = report["assessment"]["strengthCount"]

        return AnalyzerResult(
            kind=self.kind,
            score=strengths / len(GOOD_LEVELS) * 100.0,
            details=report,
            suggestions=list(report["assessment"]["improvements"]),
            status=ResultStatus.DEGRADED if simulated else ResultStatus.OK,
            note=note,
        )
