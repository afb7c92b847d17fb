import logging

import pytest

from mockinterview.evaluation.models import Utterance
from mockinterview.utils import setup_logging, evaluation_log_context, current_evaluation_id


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_records_are_tagged_with_the_evaluation(tmp_path, restore_root_logger):
    log_file = setup_logging(str(tmp_path / "logs" / "evaluation.log"), "INFO")
    log = logging.getLogger("pipeline")

    log.info("before")
    with evaluation_log_context("abc123"):
        assert current_evaluation_id() == "abc123"
        log.info("inside")
        log.debug("filtered by level")
    log.info("after")

    for handler in logging.getLogger().handlers:
        handler.flush()
    lines = (tmp_path / "logs" / "evaluation.log").read_text().splitlines()

    assert log_file.endswith("evaluation.log")
    assert len(lines) == 3
    assert "[-] pipeline - before" in lines[0]
    assert "[abc123] pipeline - inside" in lines[1]
    assert "[-] pipeline - after" in lines[2]


async def test_pipeline_tags_event_logs(mock_setup, restore_root_logger, tmp_path):
    setup_logging(str(tmp_path / "evaluation.log"))
    seen = []

    class Recorder(logging.Handler):
        def emit(self, record):
            seen.append(current_evaluation_id())

    recorder = Recorder()
    logging.getLogger("event_logger").addHandler(recorder)
    try:
        await mock_setup["pipeline"].evaluate(Utterance(text="I built a cache for the pricing service."))
    finally:
        logging.getLogger("event_logger").removeHandler(recorder)

    assert seen
    assert len(set(seen)) == 1
    assert seen[0] != "-"
    assert current_evaluation_id() == "-"
