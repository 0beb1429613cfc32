"""
core/config.py

Settings for SQL Genius, read from the environment (a local .env is honoured).

Variables:
- OPENAI_API_KEY       required; the only secret
- LLM_MODEL            chat model name, default gpt-4o-mini
- LLM_TEMPERATURE      float, default 0.0
- SCHEMA_HISTORY_PATH  JSON file holding uploaded schemas, default ~/.sql_genius/schema_history.json
- TEST_DB_URI          pre-filled URI for the "Test query" panel
- LOG_LEVEL            root log level for the app entry points
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


DEFAULT_HISTORY_PATH = Path.home() / ".sql_genius" / "schema_history.json"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass(frozen=True)
class Settings:
    """Runtime settings used across the project."""
    openai_api_key: str
    llm_model: str
    temperature: float
    history_path: str
    test_db_uri: str
    log_level: str = "INFO"


def _read_temperature() -> float:
    raw = (os.getenv("LLM_TEMPERATURE") or "0.0").strip()
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"LLM_TEMPERATURE must be a number, got {raw!r}.") from e


def get_settings() -> Settings:
    """
    Build Settings for the current process.

    A .env file only fills variables that are not already exported, so the
    shell always wins. Raises ValueError when no OpenAI key is available or
    LLM_TEMPERATURE is not a number.
    """
    load_dotenv()

    openai_api_key = (os.getenv("OPENAI_API_KEY") or "").strip()
    if not openai_api_key:
        raise ValueError("OPENAI_API_KEY is required (set it in .env or environment).")

    llm_model = (os.getenv("LLM_MODEL") or "gpt-4o-mini").strip()
    history_path = (os.getenv("SCHEMA_HISTORY_PATH") or "").strip() or str(DEFAULT_HISTORY_PATH)

    # Only pre-fills the "Test query" panel; the default capability never connects.
    test_db_uri = (os.getenv("TEST_DB_URI") or "sqlite:///:memory:").strip()
    log_level = (os.getenv("LOG_LEVEL") or "INFO").strip().upper()

    return Settings(
        openai_api_key=openai_api_key,
        llm_model=llm_model,
        temperature=_read_temperature(),
        history_path=history_path,
        test_db_uri=test_db_uri,
        log_level=log_level,
    )


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once for an app entry point."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
