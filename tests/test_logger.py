"""
Tests for logger functionality.
"""

import pytest
from recordcompare.logger import StructuredLogger, get_logger, reset_logger


class TestStructuredLogger:
    """Test structured logging functionality."""

    def test_logger_creation(self, tmp_path):
        """Logger should be created with default settings."""
        logger = StructuredLogger(
            name="test",
            level="INFO",
            log_dir=tmp_path,
            enable_console=False,
        )

        assert logger.logger.name == "test"
        assert logger.metrics["runs"] == 0

    def test_log_methods(self, tmp_path):
        """All log level methods should work."""
        logger = StructuredLogger(
            name="test",
            log_dir=tmp_path,
            enable_console=False,
        )

        logger.debug("Debug message")
        logger.info("Info message")
        logger.warning("Warning message")
        logger.error("Error message")
        logger.critical("Critical message")

    def test_log_with_context(self, tmp_path):
        """Context is appended as JSON, non-JSON values as strings."""
        logger = StructuredLogger(
            name="test-context",
            log_dir=tmp_path,
            enable_console=False,
        )

        logger.info("Indexed records", side="first", key=("eu", 3), path=tmp_path)

        content = next(tmp_path.glob("*.log")).read_text()
        assert 'Indexed records | Context: {"side": "first", "key": ["eu", 3]' in content

    def test_fetch_metrics(self, tmp_path):
        """Fetch metrics should be tracked per side."""
        logger = StructuredLogger(
            name="test",
            log_dir=tmp_path,
            enable_console=False,
        )

        logger.record_run()
        logger.record_fetch_attempt("first")
        logger.record_fetch_success("first", records=10, duplicates=2)
        logger.record_fetch_attempt("second")
        logger.record_fetch_failure("second", "SourceUnavailable")

        metrics = logger.get_metrics()

        assert metrics["runs"] == 1
        assert metrics["fetches_attempted"] == 2
        assert metrics["fetches_successful"] == 1
        assert metrics["fetches_failed"] == 1
        assert metrics["records_fetched"] == {"first": 10, "second": 0}
        assert metrics["duplicate_keys"] == {"first": 2}
        assert metrics["errors_by_type"]["SourceUnavailable"] == 1
        assert metrics["fetch_success_rate"] == 0.5

    def test_result_metrics(self, tmp_path):
        logger = StructuredLogger(name="test", log_dir=tmp_path, enable_console=False)
        logger.record_result({"match": True, "only_in_first": 0})
        assert logger.get_metrics()["last_result"] == {"match": True, "only_in_first": 0}

    def test_metrics_summary(self, tmp_path):
        """Summary should be written to the log."""
        logger = StructuredLogger(name="test-summary", log_dir=tmp_path, enable_console=False)
        logger.record_fetch_attempt("first")
        logger.record_fetch_success("first", records=3)
        logger.log_metrics_summary()

        content = next(tmp_path.glob("*.log")).read_text()
        assert "Comparison Session Metrics" in content
        assert "first: 3 (duplicate keys: 0)" in content

    def test_log_file_creation(self, tmp_path):
        """Log file should be created in specified directory."""
        logger = StructuredLogger(
            name="test",
            log_dir=tmp_path,
            enable_console=False,
        )

        logger.info("Test message")

        log_files = list(tmp_path.glob("recordcompare_*.log"))
        assert len(log_files) == 1
        assert "Test message" in log_files[0].read_text()

    def test_no_file_when_disabled(self, tmp_path):
        logger = StructuredLogger(name="test", log_dir=tmp_path, enable_file=False, enable_console=False)
        logger.info("Nothing on disk")
        assert list(tmp_path.glob("*.log")) == []


class TestGlobalLogger:
    """Test global logger singleton."""

    def test_get_logger_singleton(self, tmp_path):
        """get_logger should return same instance."""
        reset_logger()

        logger1 = get_logger(log_dir=tmp_path, enable_console=False)
        logger2 = get_logger()

        assert logger1 is logger2

    def test_reset_logger(self, tmp_path):
        """reset_logger should create new instance."""
        reset_logger()

        logger1 = get_logger(log_dir=tmp_path, enable_console=False)
        logger1.record_run()

        reset_logger()

        logger2 = get_logger(log_dir=tmp_path, enable_console=False)

        assert logger2.metrics["runs"] == 0

    def test_settings_drive_defaults(self, tmp_path, monkeypatch):
        """Level and log directory come from the environment."""
        monkeypatch.setenv("RECORDCOMPARE_LOG_LEVEL", "warning")
        monkeypatch.setenv("RECORDCOMPARE_LOG_DIR", str(tmp_path / "logs"))
        reset_logger()

        logger = get_logger(enable_console=False)

        assert logger.logger.level == 30
        assert (tmp_path / "logs").is_dir()

    def test_no_file_logging_by_default(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        reset_logger()

        get_logger(enable_console=False).info("hello")

        assert not (tmp_path / "logs").exists()
