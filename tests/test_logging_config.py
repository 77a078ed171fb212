import json
import logging

import pytest

from a2a_agents.logging_config import JsonFormatter, configure_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in list(root.handlers):
        root.removeHandler(handler)
        if handler not in handlers:
            handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def _record(**extra):
    record = logging.LogRecord("a2a_core.registry", logging.INFO, __file__, 1, "Processing %s", ("request",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_extra_fields():
    payload = json.loads(JsonFormatter().format(_record(method="greet", id=1)))

    assert payload["message"] == "Processing request"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "a2a_core.registry"
    assert payload["method"] == "greet"
    assert payload["id"] == 1
    assert "timestamp" in payload
    assert "args" not in payload


def test_json_formatter_reprs_unserializable_extras():
    payload = json.loads(JsonFormatter().format(_record(handler=object())))
    assert payload["handler"].startswith("<object object")


def test_json_formatter_static_fields_win_over_extras():
    formatter = JsonFormatter(static_fields={"agent": "Hello World Agent"})
    payload = json.loads(formatter.format(_record(agent="other")))

    assert payload["agent"] == "Hello World Agent"


def test_configure_logging_honours_level_and_file(monkeypatch, tmp_path, restore_root_logger):
    log_file = tmp_path / "logs" / "agent.log"
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("LOG_FILE", str(log_file))
    monkeypatch.delenv("LOG_FORMAT", raising=False)

    configure_logging(agent_name="Test Agent")
    logging.getLogger("a2a_core.test").debug("written", extra={"method": "greet"})
    for handler in restore_root_logger.handlers:
        handler.flush()

    assert restore_root_logger.level == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.WARNING
    line = json.loads(log_file.read_text().splitlines()[-1])
    assert line["message"] == "written"
    assert line["method"] == "greet"
    assert line["agent"] == "Test Agent"


def test_arguments_override_environment(monkeypatch, restore_root_logger):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.delenv("LOG_FILE", raising=False)

    configure_logging(level="warning", fmt="text")

    assert restore_root_logger.level == logging.WARNING
    assert len(restore_root_logger.handlers) == 1
    assert not isinstance(restore_root_logger.handlers[0].formatter, JsonFormatter)


def test_configure_logging_unknown_level_falls_back_to_info(monkeypatch, restore_root_logger):
    monkeypatch.setenv("LOG_LEVEL", "chatty")
    monkeypatch.delenv("LOG_FILE", raising=False)

    configure_logging()

    assert restore_root_logger.level == logging.INFO
