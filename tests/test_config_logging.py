import logging

import pytest

from dashmanager.config import Settings, load_settings, validate_settings
from dashmanager.errors import ConfigurationError
from dashmanager.logging_config import resolve_level, setup_logging


def test_load_settings(monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://abc.supabase.co/")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")
    monkeypatch.delenv("DASHMANAGER_DATA_PATH", raising=False)
    s = load_settings()
    assert s.supabase_url == "https://abc.supabase.co"
    assert s.supabase_key == "anon"
    assert s.remote_configured is True
    assert s.data_path == "dashmanager_data.json"

    # empty credentials select the local store
    monkeypatch.setenv("SUPABASE_URL", "")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "")
    assert load_settings().remote_configured is False


def test_numeric_settings_fall_back_on_garbage(monkeypatch):
    monkeypatch.setenv("DASHMANAGER_MAX_ENTITIES", "many")
    monkeypatch.setenv("DASHMANAGER_TIMEOUT", "0.1")
    s = load_settings()
    assert s.max_entities == 100
    assert s.timeout_seconds == 1.0


def test_validate_settings():
    validate_settings(Settings())
    validate_settings(Settings(supabase_url="https://x.supabase.co", supabase_key="k"))
    with pytest.raises(ConfigurationError):
        validate_settings(Settings(supabase_url="https://x.supabase.co"))
    with pytest.raises(ConfigurationError):
        validate_settings(Settings(supabase_key="k"))
    with pytest.raises(ConfigurationError):
        validate_settings(Settings(supabase_url="not a url", supabase_key="k"))


def test_setup_logging_idempotent():
    logger1 = setup_logging(logging.DEBUG)
    logger2 = setup_logging(logging.DEBUG)
    assert logger1 is logger2
    assert logger1.handlers  # at least one handler installed


def test_log_level_comes_from_environment(monkeypatch):
    monkeypatch.setenv("DASHMANAGER_LOG_LEVEL", "warning")
    logger = setup_logging()
    assert logger.level == logging.WARNING
    # unknown names fall back to INFO and no second handler is added
    handlers = list(logger.handlers)
    assert setup_logging("chatty").level == logging.INFO
    assert logger.handlers == handlers
    assert resolve_level(logging.ERROR) == logging.ERROR
