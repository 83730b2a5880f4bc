from __future__ import annotations

import json

import pytest
import structlog

from hrpipeline.logging import bind_actor, configure_logging


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


def test_json_logs_go_to_stderr_with_actor(capsys: pytest.CaptureFixture[str]):
    configure_logging("INFO")
    bind_actor("Aparna", "HR")

    structlog.get_logger("hrpipeline.test").info("transition.applied", candidate_id="c1")

    captured = capsys.readouterr()
    assert captured.out == ""
    record = json.loads(captured.err.strip().splitlines()[-1])
    assert record["event"] == "transition.applied"
    assert record["actor"] == "Aparna"
    assert record["role"] == "HR"
    assert record["level"] == "info"


def test_level_filters_lower_events(capsys: pytest.CaptureFixture[str]):
    configure_logging("warning")

    logger = structlog.get_logger("hrpipeline.test")
    logger.info("fields.updated")
    logger.warning("transition.denied")

    lines = capsys.readouterr().err.strip().splitlines()
    assert [json.loads(line)["event"] for line in lines] == ["transition.denied"]
