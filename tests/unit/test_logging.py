"""Tests for logging configuration and behavior."""

import logging

import pytest

from keynescope import Explorer
from keynescope.config import LoggingConfig
from keynescope.logging import (
    DEEP_DEBUG,
    ScopeLogger,
    configure,
    getLogger,
    level_value,
)


class TestScopeLogger:
    """Test custom ScopeLogger functionality."""

    def test_getlogger_returns_scope_logger(self):
        assert isinstance(getLogger("keynescope.test"), ScopeLogger)

    def test_deep_level_exists(self):
        assert DEEP_DEBUG == 5
        assert logging.getLevelName(DEEP_DEBUG) == "DEEP"

    def test_deep_logging_when_enabled(self, caplog):
        logger = getLogger("test.deep")
        logger.setLevel(DEEP_DEBUG)

        with caplog.at_level(DEEP_DEBUG, logger="test.deep"):
            logger.deep("Deep debug message")

        assert "Deep debug message" in caplog.text

    def test_deep_logging_when_disabled(self, caplog):
        logger = getLogger("test.deep_disabled")
        logger.setLevel(logging.INFO)

        with caplog.at_level(logging.INFO, logger="test.deep_disabled"):
            logger.deep("Should not appear")

        assert "Should not appear" not in caplog.text


class TestConfigure:
    def test_default_level(self):
        configure(LoggingConfig(default_level="WARNING"))

        assert logging.getLogger("keynescope").level == logging.WARNING

    def test_module_overrides(self):
        configure(LoggingConfig("INFO", {"session": "deep_debug"}))

        assert logging.getLogger("keynescope").level == logging.INFO
        assert logging.getLogger("keynescope.session").level == DEEP_DEBUG

    def test_explorer_applies_logging_section(self):
        explorer = Explorer.init("is_lm", logging={"default_level": "ERROR"})

        assert logging.getLogger("keynescope").level == logging.ERROR
        assert explorer.config.logging == LoggingConfig("ERROR", {})

    def test_explorer_rejects_bad_level(self):
        with pytest.raises(ValueError, match="Invalid log level"):
            Explorer.init("is_lm", logging={"default_level": "LOUD"})


class TestLoggingConfig:
    def test_from_mapping_defaults(self):
        cfg = LoggingConfig.from_mapping(None)

        assert cfg.default_level == "INFO"
        assert cfg.levels("keynescope") == {"keynescope": logging.INFO}

    def test_levels_are_relative_to_package(self):
        cfg = LoggingConfig.from_mapping(
            {"default_level": "debug", "modules": {"narrative": "WARNING"}}
        )

        assert cfg.levels("keynescope") == {
            "keynescope": logging.DEBUG,
            "keynescope.narrative": logging.WARNING,
        }

    @pytest.mark.parametrize("name", ["DEEP_DEBUG", "deep", "Deep_Debug"])
    def test_deep_aliases(self, name):
        assert level_value(name) == DEEP_DEBUG

    def test_unknown_level(self):
        with pytest.raises(ValueError, match="Unknown log level"):
            level_value("LOUD")


def test_edits_log_at_deep_debug(caplog, timers):
    explorer = Explorer.init("is_lm", call_later=timers.call_later)
    logging.getLogger("keynescope.session").setLevel(DEEP_DEBUG)

    with caplog.at_level(DEEP_DEBUG, logger="keynescope.session"):
        explorer.edit("G", 170.0)

    assert "G=170.0" in caplog.text
    logging.getLogger("keynescope.session").setLevel(logging.NOTSET)
