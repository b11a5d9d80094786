"""Unit tests for utils/logging.py."""

import logging
from logging.handlers import RotatingFileHandler

import pytest

from dmsclient.utils.logging import setup_logger


@pytest.mark.unit
class TestSetupLogger:
    """Test setup_logger function."""

    @pytest.fixture(autouse=True)
    def cleanup_loggers(self):
        """Close handlers of loggers created by each test."""
        created = []
        yield created
        for name in created:
            lg = logging.getLogger(name)
            for h in list(lg.handlers):
                h.close()
                lg.removeHandler(h)

    def test_creates_log_directory(self, tmp_path, cleanup_loggers):
        log_dir = tmp_path / "new_logs" / "subdir"
        cleanup_loggers.append("test_dms_logger_dir")

        setup_logger("test_dms_logger_dir", str(log_dir / "test.log"))

        assert log_dir.exists()

    def test_default_level_and_handlers(self, tmp_path, cleanup_loggers):
        cleanup_loggers.append("test_dms_logger_default")

        logger = setup_logger("test_dms_logger_default", str(tmp_path / "test.log"))

        assert logger.name == "test_dms_logger_default"
        assert logger.level == logging.INFO
        file_handlers = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
        assert len(file_handlers) == 1
        assert file_handlers[0].maxBytes == 10 * 1024 * 1024
        assert file_handlers[0].backupCount == 3
        assert len(logger.handlers) == 2

    def test_console_only_when_no_file(self, cleanup_loggers):
        cleanup_loggers.append("test_dms_logger_console")

        logger = setup_logger("test_dms_logger_console", None, level=logging.DEBUG)

        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert not isinstance(logger.handlers[0], RotatingFileHandler)

    def test_no_duplicate_handlers(self, tmp_path, cleanup_loggers):
        cleanup_loggers.append("test_dms_logger_dup")
        log_file = str(tmp_path / "test.log")

        setup_logger("test_dms_logger_dup", log_file)
        logger = setup_logger("test_dms_logger_dup", log_file)

        assert len(logger.handlers) == 2

    def test_iso8601_format_written(self, tmp_path, cleanup_loggers):
        cleanup_loggers.append("test_dms_logger_fmt")
        log_file = tmp_path / "test.log"

        logger = setup_logger("test_dms_logger_fmt", str(log_file))
        logger.info("hello")
        for h in logger.handlers:
            h.flush()

        content = log_file.read_text(encoding="utf-8")
        assert "[INFO] test_dms_logger_fmt: hello" in content
        assert content[4] == "-" and content[10] == "T"

    def test_level_name_accepted(self, cleanup_loggers):
        cleanup_loggers.append("test_dms_logger_name")

        logger = setup_logger("test_dms_logger_name", None, level="debug")

        assert logger.level == logging.DEBUG
        assert logger.handlers[0].level == logging.DEBUG

    def test_unknown_level_name_rejected(self):
        with pytest.raises(ValueError, match="Unknown log level"):
            setup_logger("test_dms_logger_bad", None, level="LOUD")

    def test_second_call_adjusts_level(self, cleanup_loggers):
        cleanup_loggers.append("test_dms_logger_relevel")

        setup_logger("test_dms_logger_relevel", None)
        logger = setup_logger("test_dms_logger_relevel", None, level="ERROR")

        assert logger.level == logging.ERROR
        assert len(logger.handlers) == 1
