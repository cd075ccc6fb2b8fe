import logging

import pytest
import structlog

from opaque_pake.common import config


@pytest.fixture
def reset_structlog():
    yield
    structlog.reset_defaults()


def test_log_level_from_environment(monkeypatch):
    monkeypatch.setenv("OPAQUE_LOG_LEVEL", "debug")
    assert config.get_log_level() == logging.DEBUG
    monkeypatch.setenv("OPAQUE_LOG_LEVEL", "nonsense")
    assert config.get_log_level() == logging.INFO


def test_db_params_from_environment(monkeypatch):
    monkeypatch.setenv("DB_NAME", "credentials")
    monkeypatch.delenv("DB_PORT", raising=False)
    params = config.get_db_params()
    assert params["database"] == "credentials"
    assert params["port"] == 3306


def test_configure_logging_filters_below_level(capsys, reset_structlog):
    config.configure_logging(level=logging.WARNING, fmt="json")
    logger = structlog.get_logger("test")
    logger.info("hidden_event")
    logger.warning("shown_event", attempt=1)
    out = capsys.readouterr().out
    assert "hidden_event" not in out
    assert '"event": "shown_event"' in out
    assert '"level": "warning"' in out
