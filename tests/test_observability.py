"""
Observability and logging setup tests
"""
import logging

import pytest

from context_core import logging_config
from context_core.observability import (
    clear_current_task,
    estimate_cost,
    get_current_task,
    set_current_task,
)


def test_task_binding():
    assert get_current_task() is None
    task = object()
    set_current_task(task)
    try:
        assert get_current_task() is task
    finally:
        clear_current_task()
    assert get_current_task() is None


def test_estimate_cost():
    assert estimate_cost("gemini-2.0-flash", 1_000_000, 0) == pytest.approx(0.10)
    assert estimate_cost("unknown-model", 10, 10) is None


@pytest.fixture
def fresh_logging(monkeypatch):
    monkeypatch.setattr(logging_config, "_logging_configured", False)
    parent = logging.getLogger("context_core")
    saved = list(parent.handlers)
    yield parent
    for handler in parent.handlers:
        if handler not in saved:
            handler.close()
    parent.handlers = saved


def test_setup_logging_writes_file(fresh_logging, tmp_path):
    log_file = tmp_path / "logs" / "contextcore.log"
    logging_config.setup_logging("DEBUG", str(log_file))

    logging.getLogger("context_core.context.trigger").debug("compaction check")
    for handler in fresh_logging.handlers:
        handler.flush()

    assert fresh_logging.level == logging.DEBUG
    assert "compaction check" in log_file.read_text(encoding="utf-8")


def test_setup_logging_console_only(fresh_logging):
    before = len(fresh_logging.handlers)
    logging_config.setup_logging("WARNING", "none")
    assert len(fresh_logging.handlers) == before + 1
    assert fresh_logging.level == logging.WARNING


def test_setup_logging_uses_configured_logs_dir(fresh_logging, tmp_path):
    logs_dir = tmp_path / "configured-logs"
    logging_config.setup_logging("INFO", None, logs_dir=str(logs_dir))

    logging.getLogger("context_core.memory.summaries").info("summary saved")
    for handler in fresh_logging.handlers:
        handler.flush()

    assert "summary saved" in (logs_dir / "contextcore.log").read_text(encoding="utf-8")
