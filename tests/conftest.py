# tests/conftest.py
import pytest

from cleanread.config import load_config

CONFIG_VARS = (
    "LOG_LEVEL",
    "FETCH_TIMEOUT",
    "FETCH_MAX_REDIRECTS",
    "READABILITY_CHAR_THRESHOLD",
    "READABILITY_MIN_SCORE",
    "READABILITY_TOP_CANDIDATES",
    "WORDS_PER_MINUTE",
)


@pytest.fixture
def config(monkeypatch):
    """Default configuration, whatever the surrounding environment holds."""
    for name in CONFIG_VARS:
        monkeypatch.delenv(name, raising=False)
    return load_config()
