"""Unit tests for the logging module."""

import json
import logging
import os

import pytest

from world_migrator.utils.logging import (
    EnhancedFormatter,
    JsonFormatter,
    format_felt,
    get_logger,
    log_with_context,
    setup_logger,
    setup_main_log_file,
)


@pytest.fixture(autouse=True)
def _clean_logger():
    """Remove all handlers from the world_migrator logger before and after each test."""
    logger = logging.getLogger("world_migrator")
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    yield
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()


def _make_record(msg="test message", level=logging.INFO, name="world_migrator"):
    return logging.LogRecord(
        name=name,
        level=level,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )


class TestJsonFormatter:
    """Tests for JsonFormatter."""

    def test_basic_format_contains_required_keys(self):
        result = json.loads(JsonFormatter().format(_make_record()))
        assert result["level"] == "INFO"
        assert result["message"] == "test message"
        assert result["module"] == "test"
        assert "time" in result

    def test_excludes_standard_record_attributes(self):
        result = json.loads(JsonFormatter().format(_make_record()))
        for key in ("args", "exc_info", "lineno", "pathname", "funcName"):
            assert key not in result

    def test_includes_extra_attributes(self):
        record = _make_record()
        record.tag = "ns-actions"
        record.class_hash = "0x1"
        result = json.loads(JsonFormatter().format(record))
        assert result["tag"] == "ns-actions"
        assert result["class_hash"] == "0x1"


class TestEnhancedFormatter:
    """Tests for EnhancedFormatter."""

    def test_default_format(self):
        result = EnhancedFormatter().format(_make_record())
        assert "INFO" in result
        assert "test message" in result

    def test_verbose_format_includes_module_and_line(self):
        result = EnhancedFormatter(verbose=True).format(_make_record())
        assert "world_migrator" in result
        assert ":1]" in result

    def test_custom_fmt_used_when_not_verbose(self):
        formatter = EnhancedFormatter(fmt="%(levelname)s|%(message)s")
        assert formatter.format(_make_record()) == "INFO|test message"

    def test_context_not_included_by_default(self):
        record = _make_record()
        record.tag = "ns-actions"
        assert "ns-actions" not in EnhancedFormatter().format(record)

    def test_context_included_when_enabled(self):
        formatter = EnhancedFormatter(fmt="%(message)s", include_context=True)
        record = _make_record()
        record.tag = "ns-actions"
        record.entrypoint = "init_contract"
        assert formatter.format(record) == "test message [entrypoint=init_contract tag=ns-actions]"

    def test_no_context_no_suffix(self):
        formatter = EnhancedFormatter(fmt="%(message)s", include_context=True)
        assert formatter.format(_make_record()) == "test message"


class TestSetupLogger:
    """Tests for setup_logger() and setup_main_log_file()."""

    def test_console_level_follows_verbose(self):
        logger = setup_logger(verbose=False)
        assert logger.handlers[0].level == logging.INFO

        logger = setup_logger(verbose=True)
        assert len(logger.handlers) == 1
        assert logger.handlers[0].level == logging.DEBUG

    def test_log_file_is_created(self, tmp_path):
        setup_logger(output_dir=str(tmp_path))
        log_with_context(logging.DEBUG, "Declaring class.", tag="ns-actions")
        for handler in logging.getLogger("world_migrator").handlers:
            handler.flush()

        content = (tmp_path / "migration.log").read_text()
        assert "Main log file created" in content
        assert "Declaring class. [tag=ns-actions]" in content

    def test_json_log_file(self, tmp_path):
        handler = setup_main_log_file(str(tmp_path), json_format=True)
        log_with_context(logging.INFO, "World deployed.", address="0x1")
        handler.flush()

        lines = (tmp_path / "migration.log").read_text().splitlines()
        record = json.loads(lines[-1])
        assert record["message"] == "World deployed."
        assert record["address"] == "0x1"

    def test_log_file_directory_is_created(self, tmp_path):
        output_dir = str(tmp_path / "nested" / "run")
        setup_main_log_file(output_dir)
        assert os.path.exists(os.path.join(output_dir, "migration.log"))


class TestLogWithContext:
    def test_none_values_are_dropped(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="world_migrator"):
            log_with_context(logging.INFO, "hello", tag="ns-a", entrypoint=None)

        record = caplog.records[-1]
        assert record.tag == "ns-a"
        assert not hasattr(record, "entrypoint")

    def test_exc_info_is_forwarded(self, caplog):
        with caplog.at_level(logging.ERROR, logger="world_migrator"):
            try:
                raise RuntimeError("boom")
            except RuntimeError:
                log_with_context(logging.ERROR, "failed", exc_info=True)

        assert caplog.records[-1].exc_info is not None


def test_format_felt_is_padded():
    assert format_felt(0x1) == "0x" + "0" * 63 + "1"
    assert len(format_felt(0)) == 66


def test_get_logger_adds_default_handler():
    logger = get_logger()
    assert logger.name == "world_migrator"
    assert logger.handlers
