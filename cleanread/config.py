"""
Load pipeline configuration from environment variables.
Every value has a default, so the extractor runs without any setup; the
serving layer (``app.py``) and the CLI (``main.py``) share the same keys.
"""

import os


def _env_number(name: str, default: str, cast):
    """
    Read a numeric environment variable and make sure it is positive.
    Raises RuntimeError if the value is malformed.
    """
    raw = os.getenv(name, default)
    try:
        value = cast(raw)
    except ValueError:
        raise RuntimeError(f"{name} environment variable must be a number, got {raw!r}")
    if value <= 0:
        raise RuntimeError(f"{name} environment variable must be positive, got {raw!r}")
    return value


def load_config() -> dict:
    """
    Return a dictionary with all configuration values.
    Raises RuntimeError if any variable holds an invalid value.
    """
    cfg = {
        # Logging
        "log_level": os.getenv("LOG_LEVEL", "INFO"),

        # Fetcher
        "fetch_timeout": _env_number("FETCH_TIMEOUT", "30", float),
        "max_redirects": _env_number("FETCH_MAX_REDIRECTS", "5", int),

        # Readability thresholds
        "char_threshold": _env_number("READABILITY_CHAR_THRESHOLD", "500", int),
        "min_score": _env_number("READABILITY_MIN_SCORE", "5", float),
        "nb_top_candidates": _env_number("READABILITY_TOP_CANDIDATES", "5", int),

        # Post-processing
        "words_per_minute": _env_number("WORDS_PER_MINUTE", "200", int),
    }

    if cfg["log_level"].upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        raise RuntimeError(f"Unknown LOG_LEVEL: {cfg['log_level']}")

    return cfg
