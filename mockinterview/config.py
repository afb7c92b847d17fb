"""
Mock Interview Configuration
============================

This file contains ALL configuration for the answer evaluation pipeline.
- User settings at the top (things users might want to change)
- Internal constants at the bottom (scoring weights, thresholds, model ids)
"""
import os
from dataclasses import dataclass, field
from typing import Dict, Optional


# =============================================================================
# USER SETTINGS - Edit these to customize the evaluation
# =============================================================================

# REQUIRED: HuggingFace token and Google Cloud project
HUGGINGFACE_API_KEY = None  # Or set HUGGINGFACE_API_KEY in the environment
GOOGLE_CLOUD_PROJECT = "your-project-id"  # Change this!
GOOGLE_APPLICATION_CREDENTIALS = None  # Optional: path to credentials JSON

# Optional: enables Whisper transcription (Google Cloud Speech otherwise)
OPENAI_API_KEY = None
GOOGLE_SPEECH_ENABLED = None  # None: enabled when Google credentials are configured

# Evaluation settings
SERVICE_TIMEOUT = 30.0
WEIGHTING_POLICY = "full_table"  # full_table | renormalize
PROSODY_SEED = None  # Set an int for reproducible simulated prosody

# Speech settings
LANGUAGE_CODE = "en-US"
PRAAT_BINARY = "praat"

# Logging
LOG_FILE = "./_evaluations/evaluation.log"
LOG_LEVEL = "INFO"


# =============================================================================
# INTERNAL CONSTANTS - Don't change these unless you know what you're doing
# =============================================================================

# Criteria weights for the answer-evaluation flow
CRITERIA_WEIGHTS = {
    "clarity": 0.25,
    "correctness": 0.35,
    "structure": 0.25,
    "relevance": 0.15,
}

# Content/delivery split for the audio-inclusive flow
COMBINED_WEIGHTS = {
    "content": 0.6,
    "delivery": 0.4,
}

# Delivery score components
DELIVERY_WEIGHTS = {
    "fluency": 0.4,
    "professional_tone": 0.3,
    "pace": 0.3,
}
PACE_SCORE_OPTIMAL = 100.0
PACE_SCORE_OTHER = 70.0

# Fluency score components
FLUENCY_WEIGHTS = {
    "filler_words": 0.3,
    "repetitions": 0.3,
    "complexity": 0.4,
}

# Recommendation thresholds
COHERENCE_RECOMMENDATION_THRESHOLD = 0.8
CONFIDENCE_RECOMMENDATION_THRESHOLD = 0.7
UNCERTAINTY_RECOMMENDATION_THRESHOLD = 0.3
FILLER_RATIO_RECOMMENDATION_THRESHOLD = 0.1

# Speaking pace benchmarks (words per minute)
SPEECH_RATE_BENCHMARKS = {
    "slow": 120,
    "optimal": 150,
    "fast": 180,
}
ESTIMATED_WORDS_PER_MINUTE = 150

# Neutral values used when an advisory analyzer degrades
NEUTRAL_SCORE = 0.5
NEUTRAL_SIMILARITY = 0.5

# HuggingFace inference
HUGGINGFACE_BASE_URL = "https://api-inference.huggingface.co/models"
EMOTION_MODEL = "SamLowe/roberta-base-go_emotions"
GRAMMAR_MODEL = "textattack/roberta-base-CoLA"
SIMILARITY_MODEL = "sentence-transformers/all-MiniLM-L6-v2"
ZERO_SHOT_MODEL = "facebook/bart-large-mnli"
CORRECTNESS_LABELS = ["correct", "partially correct", "incorrect"]

# LLM
VERTEX_LOCATION = "us-central1"
MODEL_NAME = "gemini-2.5-flash-lite"
LLM_TIMEOUT = 60
MAX_OUTPUT_TOKENS = 2048
RUBRIC_TEMPERATURE = 0.2
TECHNICAL_TEMPERATURE = 0.0

# Speech recognition
WHISPER_MODEL = "whisper-1"
STT_SAMPLE_RATE = 16000
TARGET_RMS = 0.06  # Gain target applied before transcription

# Praat
PRAAT_TIMEOUT = 60
PRAAT_MIN_PITCH = 75
PRAAT_MAX_PITCH = 600
PRAAT_MIN_PAUSE_SECONDS = 0.3

# Simulated prosody ranges (uniform low, high) calibrated to plausible speech
SIMULATED_PROSODY_RANGES = {
    "speech_rate": (3.5, 5.0),
    "pitch_mean": (120.0, 200.0),
    "pitch_stdev": (10.0, 50.0),
    "jitter": (0.01, 0.04),
    "shimmer": (0.05, 0.11),
    "pause_count": (2, 10),
    "pause_rate": (0.2, 0.5),
    "intensity_mean": (60.0, 75.0),
}
SIMULATED_PAUSE_SECONDS = 0.8
SIMULATED_INTENSITY_SPREAD = 10.0  # dB either side of the mean


# =============================================================================
# MAIN CONFIG OBJECT
# =============================================================================

@dataclass(frozen=True)
class Config:
    """Main configuration object, read-only after creation."""
    huggingface_api_key: str
    google_cloud_project: str
    google_application_credentials: Optional[str] = None
    openai_api_key: Optional[str] = None
    google_speech_enabled: bool = False
    service_timeout: float = SERVICE_TIMEOUT
    weighting_policy: str = WEIGHTING_POLICY
    prosody_seed: Optional[int] = PROSODY_SEED
    language_code: str = LANGUAGE_CODE
    praat_binary: str = PRAAT_BINARY
    vertex_location: str = VERTEX_LOCATION
    model_name: str = MODEL_NAME
    log_file: str = LOG_FILE
    log_level: str = LOG_LEVEL
    criteria_weights: Dict[str, float] = field(default_factory=lambda: dict(CRITERIA_WEIGHTS))


def get_config() -> Config:
    """Load configuration from the environment, falling back to the settings above."""
    hf_key = os.getenv("HUGGINGFACE_API_KEY") or HUGGINGFACE_API_KEY
    project = os.getenv("GOOGLE_CLOUD_PROJECT") or GOOGLE_CLOUD_PROJECT
    credentials = os.getenv("GOOGLE_APPLICATION_CREDENTIALS") or GOOGLE_APPLICATION_CREDENTIALS

    if not hf_key:
        raise ValueError("Please set HUGGINGFACE_API_KEY in config.py or as environment variable")
    if project == "your-project-id":
        raise ValueError("Please set GOOGLE_CLOUD_PROJECT in config.py or as environment variable")

    policy = os.getenv("MOCKINTERVIEW_WEIGHTING_POLICY", WEIGHTING_POLICY)
    if policy not in ("full_table", "renormalize"):
        raise ValueError(f"Unknown weighting policy: {policy}")

    seed = os.getenv("MOCKINTERVIEW_PROSODY_SEED")
    google_speech = os.getenv("MOCKINTERVIEW_GOOGLE_SPEECH")
    if google_speech is not None:
        google_speech_enabled = google_speech.strip().lower() in ("1", "true", "yes")
    elif GOOGLE_SPEECH_ENABLED is not None:
        google_speech_enabled = GOOGLE_SPEECH_ENABLED
    else:
        google_speech_enabled = bool(credentials)

    return Config(
        huggingface_api_key=hf_key,
        google_cloud_project=project,
        google_application_credentials=credentials,
        openai_api_key=os.getenv("OPENAI_API_KEY") or OPENAI_API_KEY,
        google_speech_enabled=google_speech_enabled,
        service_timeout=float(os.getenv("MOCKINTERVIEW_SERVICE_TIMEOUT", SERVICE_TIMEOUT)),
        weighting_policy=policy,
        prosody_seed=int(seed) if seed else PROSODY_SEED,
        praat_binary=os.getenv("PRAAT_BINARY", PRAAT_BINARY),
        log_file=os.getenv("MOCKINTERVIEW_LOG_FILE", LOG_FILE),
        log_level=os.getenv("MOCKINTERVIEW_LOG_LEVEL", LOG_LEVEL),
    )
