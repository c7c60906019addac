"""
Tests for the common module (error taxonomy, decorators, logging).
"""

import json
import logging
import pytest
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


class TestExceptions:
    """Tests for exception hierarchy."""

    def test_migration_error_basic(self):
        """Test basic MigrationError."""
        from common.exceptions import MigrationError

        error = MigrationError("Something failed")
        assert str(error) == "[MigrationError] Something failed"
        assert error.recoverable is False

    def test_migration_error_to_dict(self):
        """Test JSON serialization."""
        from common.exceptions import MigrationError

        error = MigrationError("Test", code="TEST", details={"key": 1})
        d = error.to_dict()

        assert d["error"] == "TEST"
        assert d["message"] == "Test"
        assert d["details"]["key"] == 1

    def test_taxonomy_shares_base(self):
        """All stage errors are MigrationErrors."""
        from common.exceptions import (
            MigrationError, ValidationError, StagingError, FilterError, ApplyError,
        )

        for error in (
            ValidationError("bad input"),
            StagingError("data.zip", "bad zip"),
            FilterError("include.txt"),
            ApplyError("import failed", exit_code=5),
        ):
            assert isinstance(error, MigrationError)

    def test_staging_error_names_archive(self):
        from common.exceptions import StagingError

        error = StagingError("data.zip", "not a valid zip archive", cause=OSError("io"))
        assert error.code == "STAGING_FAILED"
        assert "data.zip" in str(error)
        assert "caused by: io" in str(error)

    def test_apply_error_carries_exit_code(self):
        from common.exceptions import ApplyError

        error = ApplyError("Registry import failed", exit_code=1)
        assert error.details == {"exit_code": 1}

    def test_validation_error_path_detail(self):
        from common.exceptions import ValidationError

        assert ValidationError("missing", path="/x").details == {"path": "/x"}
        assert ValidationError("missing").details == {}


class TestDecorators:
    """Tests for error handling decorators."""

    def test_handle_errors_returns_default(self):
        """Test @handle_errors returns default on exception."""
        from common.decorators import handle_errors

        @handle_errors(OSError, default="fallback")
        def failing_func():
            raise OSError("test error")

        assert failing_func() == "fallback"

    def test_handle_errors_passes_through(self):
        """Test @handle_errors passes through on success."""
        from common.decorators import handle_errors

        @handle_errors(OSError, default="fallback")
        def working_func():
            return "success"

        assert working_func() == "success"

    def test_handle_errors_reraise(self):
        """Test @handle_errors can reraise."""
        from common.decorators import handle_errors

        @handle_errors(ValueError, reraise=True)
        def failing_func():
            raise ValueError("test")

        with pytest.raises(ValueError):
            failing_func()

    def test_handle_errors_ignores_other_types(self):
        from common.decorators import handle_errors

        @handle_errors(OSError, default=None)
        def failing_func():
            raise KeyError("not handled")

        with pytest.raises(KeyError):
            failing_func()

    def test_timed_decorator(self, caplog):
        """Test @timed logs execution time."""
        from common.decorators import timed

        @timed
        def quick_func():
            return "done"

        with caplog.at_level(logging.DEBUG, logger="common.decorators"):
            result = quick_func()

        assert result == "done"
        assert "quick_func completed in" in caplog.text


class TestLogging:
    """Tests for logging configuration."""

    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        for handler in root.handlers:
            if handler not in handlers:
                handler.close()
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_setup_logging_creates_handlers(self):
        """Test setup_logging configures handlers."""
        from common.logging_config import setup_logging

        assert setup_logging(level=logging.DEBUG) is None

        root = logging.getLogger()
        assert len(root.handlers) == 1

    def test_log_dir_adds_file_handler(self, tmp_path):
        from common.logging_config import setup_logging

        log_file = setup_logging(log_dir=tmp_path / "logs")

        assert log_file == tmp_path / "logs" / "profile-migration.log"
        assert len(logging.getLogger().handlers) == 2

    def test_json_logs_include_context(self, tmp_path):
        from common.logging_config import setup_logging, LogContext

        log_file = setup_logging(log_dir=tmp_path, json_logs=True)
        with LogContext(user="jdoe"):
            with LogContext(stage="LOCATED"):
                logging.getLogger("profile_migration.test").info("hello")

        for handler in logging.getLogger().handlers:
            handler.flush()
        record = json.loads(log_file.read_text().strip().splitlines()[-1])

        assert record["message"] == "hello"
        assert record["data"] == {"user": "jdoe", "stage": "LOCATED"}

    def test_log_context_restores_factory(self):
        from common.logging_config import LogContext

        before = logging.getLogRecordFactory()
        with LogContext(stage="DONE"):
            assert logging.getLogRecordFactory() is not before
        assert logging.getLogRecordFactory() is before
