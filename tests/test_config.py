import logging

import pytest

from sql_genius.core.config import DEFAULT_HISTORY_PATH, configure_logging, get_settings


ENV_VARS = ["OPENAI_API_KEY", "LLM_MODEL", "LLM_TEMPERATURE", "SCHEMA_HISTORY_PATH", "TEST_DB_URI", "LOG_LEVEL"]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("sql_genius.core.config.load_dotenv", lambda: False)


def test_defaults(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    s = get_settings()
    assert s.llm_model == "gpt-4o-mini"
    assert s.temperature == 0.0
    assert s.history_path == str(DEFAULT_HISTORY_PATH)
    assert s.test_db_uri == "sqlite:///:memory:"
    assert s.log_level == "INFO"


def test_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("OPENAI_API_KEY", " sk-test ")
    monkeypatch.setenv("LLM_MODEL", "gpt-4o")
    monkeypatch.setenv("LLM_TEMPERATURE", "0.3")
    monkeypatch.setenv("SCHEMA_HISTORY_PATH", str(tmp_path / "h.json"))
    monkeypatch.setenv("LOG_LEVEL", "debug")
    s = get_settings()
    assert s.openai_api_key == "sk-test"
    assert s.llm_model == "gpt-4o"
    assert s.temperature == pytest.approx(0.3)
    assert s.history_path == str(tmp_path / "h.json")
    assert s.log_level == "DEBUG"


def test_missing_api_key():
    with pytest.raises(ValueError, match="OPENAI_API_KEY"):
        get_settings()


def test_bad_temperature(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("LLM_TEMPERATURE", "warm")
    with pytest.raises(ValueError, match="LLM_TEMPERATURE"):
        get_settings()


def test_configure_logging_accepts_names(monkeypatch):
    calls = {}
    monkeypatch.setattr(logging, "basicConfig", lambda **kw: calls.update(kw))
    configure_logging("warning")
    assert calls["level"] == logging.WARNING
