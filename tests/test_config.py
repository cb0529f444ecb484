"""
Tests for runtime settings and logger setup.
"""
import logging
import logging.handlers

import pytest
from pydantic import ValidationError

from catalog_pipeline.core.config import BUNDLED_REGISTRY, Settings
from catalog_pipeline.core.logging_config import setup_logger


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("LOG_DIR", raising=False)
        monkeypatch.delenv("REGISTRY_FILE", raising=False)
        settings = Settings(_env_file=None)
        assert settings.REGISTRY_FILE == str(BUNDLED_REGISTRY)
        assert settings.LOG_DIR is None

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("REPORT_WORKERS", "4")
        settings = Settings(_env_file=None)
        assert settings.LOG_LEVEL == "DEBUG"
        assert settings.REPORT_WORKERS == 4

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, LOG_LEVEL="LOUD")

    def test_invalid_workers(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, REPORT_WORKERS=0)


class TestSetupLogger:
    def test_console_only_without_log_dir(self):
        logger = setup_logger("catalog_pipeline.tests.console", level="WARNING")
        assert logger.level == logging.WARNING
        assert not any(
            isinstance(h, logging.handlers.RotatingFileHandler) for h in logger.handlers
        )

    def test_file_handler_with_log_dir(self, tmp_path):
        logger = setup_logger("catalog_pipeline.tests.file", level="INFO", log_dir=str(tmp_path / "logs"))
        assert any(
            isinstance(h, logging.handlers.RotatingFileHandler) for h in logger.handlers
        )
        assert (tmp_path / "logs").is_dir()

    def test_handlers_added_once(self):
        name = "catalog_pipeline.tests.once"
        first = len(setup_logger(name).handlers)
        assert len(setup_logger(name).handlers) == first
