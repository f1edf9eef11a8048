"""Tests for file logging setup."""

import logging

import pytest

from kafka_eye.logs import parse_level, setup_logging


class TestParseLevel:
    @pytest.mark.parametrize("name,level", [("info", logging.INFO), (" DEBUG ", logging.DEBUG)])
    def test_known(self, name, level):
        assert parse_level(name) == level

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown log level"):
            parse_level("loud")


@pytest.mark.usefixtures("reset_logging")
class TestSetupLogging:
    """Records go to the configured file, never to the terminal."""

    def test_writes_to_file(self, tmp_path):
        path = setup_logging("info", tmp_path / "eye.log")
        logging.getLogger("kafka_eye.app").info("hello from test")
        logging.getLogger("kafka_eye.app").debug("hidden")
        text = path.read_text()
        assert "hello from test" in text
        assert "hidden" not in text

    def test_debug_overrides_level(self, tmp_path):
        setup_logging("error", tmp_path / "eye.log", debug=True)
        assert logging.getLogger("kafka_eye").level == logging.DEBUG
        assert logging.getLogger("aiokafka").level == logging.DEBUG

    def test_client_library_at_warning(self, tmp_path):
        setup_logging("debug", tmp_path / "eye.log")
        aiokafka = logging.getLogger("aiokafka")
        assert aiokafka.level == logging.WARNING
        assert not aiokafka.propagate

    def test_repeated_setup_replaces_handler(self, tmp_path):
        setup_logging("info", tmp_path / "a.log")
        setup_logging("info", tmp_path / "b.log")
        assert len(logging.getLogger("kafka_eye").handlers) == 1

    def test_invalid_level_opens_nothing(self, tmp_path):
        with pytest.raises(ValueError):
            setup_logging("loud", tmp_path / "eye.log")
        assert not (tmp_path / "eye.log").exists()
