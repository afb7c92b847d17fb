#!/usr/bin/env python3
"""
Main entry point for the answer evaluation pipeline.
Allows running the package with: python -m mockinterview "<answer text>"
"""
import sys
import json
import asyncio
import dataclasses

from .config import get_config
from .errors import EvaluationError
from .evaluation import EvaluationPipeline, EvaluationReport, Utterance, QuestionType
from .utils import setup_logging

USAGE = (
    'Usage: python -m mockinterview "<answer text>" [--question=...] '
    "[--type=technical|behavioral|general] [--expected=...] [--role=...] [--level=...] "
    "[--audio=path.wav] [--duration=seconds] [--renormalize] [--json]"
)


def parse_args(argv):
    """Split argv into the answer text and --key=value options."""
    options = {}
    text_parts = []
    for arg in argv:
        if arg.startswith("--"):
            key, _, value = arg[2:].partition("=")
            options[key] = value if value else True
        else:
            text_parts.append(arg)
    return " ".join(text_parts).strip(), options


def display_report(report: EvaluationReport, log_file: str, metrics):
    """Print a human-readable summary on the 0-10 scale."""
    display = report.to_display_scale()

    print("\n" + "=" * 50)
    print("🎯 EVALUATION COMPLETE")
    print("=" * 50)
    print(f"🔢 Weighted Overall: {display.weighted_overall:.1f}/10")
    if display.combined_overall is not None:
        print(f"🎙️ With Delivery: {display.combined_overall:.1f}/10 (delivery {display.delivery:.1f})")

    for label, value in (("Clarity", display.clarity), ("Structure", display.structure),
                         ("Content", display.content), ("Relevance", display.relevance),
                         ("Correctness", display.correctness), ("Technical", display.technical),
                         ("Confidence", display.confidence)):
        shown = f"{value:.1f}" if value is not None else "n/a"
        print(f"   {label:<12} {shown}")

    if report.degraded:
        print(f"⚠️ Reduced confidence: {', '.join(report.degraded)}")

    if report.recommendations:
        print("\n📝 Recommendations:")
        for rec in report.recommendations:
            print(f"   [{rec.priority.value}] {rec.aspect}: {rec.suggestion}")

    print(f"\n📁 Full details logged to: {log_file}")
    print(f"📈 Session metrics: {metrics}")


def main():
    """Command-line interface for the evaluation pipeline."""
    text, options = parse_args(sys.argv[1:])

    if "help" in options or (not text and "audio" not in options):
        print(USAGE)
        sys.exit(0 if "help" in options else 1)

    # Load configuration from environment
    try:
        config = get_config()
    except ValueError as e:
        print(f"❌ Configuration Error: {e}")
        sys.exit(1)

    if "renormalize" in options:
        config = dataclasses.replace(config, weighting_policy="renormalize")

    log_file = setup_logging(config.log_file, config.log_level)

    try:
        question_type = QuestionType(options.get("type", QuestionType.GENERAL.value))
    except ValueError:
        print("❌ Invalid question type. Use --type=technical, --type=behavioral or --type=general")
        sys.exit(1)

    context = {k: options[k] for k in ("role", "level") if isinstance(options.get(k), str)}
    question = options.get("question") if isinstance(options.get("question"), str) else None
    expected = options.get("expected") if isinstance(options.get("expected"), str) else None

    audio = None
    if isinstance(options.get("audio"), str):
        try:
            with open(options["audio"], "rb") as f:
                audio = f.read()
        except OSError as e:
            print(f"❌ Could not read audio: {e}")
            sys.exit(1)

    pipeline = EvaluationPipeline.from_config(config)

    try:
        if text:
            duration = float(options["duration"]) if isinstance(options.get("duration"), str) else None
            utterance = Utterance(
                text=text,
                duration_seconds=duration,
                question_type=question_type,
                question=question,
                expected_answer=expected,
                context=context,
            )
            report = asyncio.run(pipeline.evaluate(utterance, audio=audio))
        else:
            print("🔍 Transcribing answer...")
            report = asyncio.run(pipeline.transcribe_and_evaluate(
                audio, question=question, question_type=question_type,
                context=context, expected_answer=expected,
            ))
    except ValueError as e:
        print(f"❌ Invalid value: {e}")
        sys.exit(1)
    except EvaluationError as e:
        print(f"❌ Evaluation failed: {e}")
        sys.exit(1)

    if "json" in options:
        print(json.dumps(report.to_dict(), indent=2, default=str))
    else:
        display_report(report, log_file, pipeline.get_metrics())


if __name__ == "__main__":
    main()
