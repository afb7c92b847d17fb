"""
Logging utilities for the evaluation pipeline.

Every record carries the id of the evaluation it was emitted under, so the
interleaved output of concurrent analyzers can be read back per answer.
"""
import os
import logging
import contextvars
from contextlib import contextmanager
from typing import Iterator

NO_EVALUATION = "-"
LOG_FORMAT = '%(asctime)s %(levelname)s [%(evaluation_id)s] %(name)s - %(message)s'

_current_evaluation = contextvars.ContextVar("evaluation_id", default=NO_EVALUATION)


def current_evaluation_id() -> str:
    return _current_evaluation.get()


@contextmanager
def evaluation_log_context(evaluation_id: str) -> Iterator[str]:
    """
    Tag log records emitted inside the block with `evaluation_id`.
    Tasks and worker threads started inside the block inherit the tag.
    """
    token = _current_evaluation.set(evaluation_id)
    try:
        yield evaluation_id
    finally:
        _current_evaluation.reset(token)


class EvaluationIdFilter(logging.Filter):
    """Adds `evaluation_id` to every record passing through a handler."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.evaluation_id = _current_evaluation.get()
        return True


def setup_logging(log_file_path: str, level: str = "DEBUG") -> str:
    """
    Set up logging to file with minimal console output.

    Args:
        log_file_path: Full path to the log file; evaluations from earlier runs are kept
        level: Level name for the file handler

    Returns:
        Path to the log file
    """
    log_dir = os.path.dirname(log_file_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    logging.getLogger().handlers.clear()

    file_handler = logging.FileHandler(log_file_path, mode='a')
    file_handler.setLevel(getattr(logging, level.upper(), logging.DEBUG))
    file_handler.addFilter(EvaluationIdFilter())
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    # Console shows critical messages only; the CLI prints its own summary
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.CRITICAL)
    console_handler.setFormatter(logging.Formatter('%(message)s'))

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    return log_file_path
