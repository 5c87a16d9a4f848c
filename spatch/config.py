"""Settings read from the environment (and an optional ``.env`` file)."""

import codecs
import logging
import math
import os

from dotenv import load_dotenv

DEFAULT_ENCODING = "utf-8"
DEFAULT_HTTP_TIMEOUT = 30.0
DEFAULT_LOG_LEVEL = "WARNING"

_dotenv_loaded = False


def _ensure_dotenv() -> None:
    global _dotenv_loaded
    if not _dotenv_loaded:
        load_dotenv()
        _dotenv_loaded = True


def _get_timeout() -> float:
    raw = os.getenv("SPATCH_HTTP_TIMEOUT", str(DEFAULT_HTTP_TIMEOUT))
    try:
        timeout = float(raw)
    except (ValueError, TypeError):
        raise ValueError(f"SPATCH_HTTP_TIMEOUT must be a valid number (got {raw!r})")
    if not math.isfinite(timeout) or timeout <= 0:
        raise ValueError(
            f"SPATCH_HTTP_TIMEOUT must be a finite number > 0 (got {raw!r})"
        )
    return timeout


def _get_log_level() -> int:
    name = os.getenv("SPATCH_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        raise ValueError(f"Invalid SPATCH_LOG_LEVEL={name!r}")
    return level


def _get_encoding() -> str:
    name = os.getenv("SPATCH_ENCODING") or DEFAULT_ENCODING
    try:
        codecs.lookup(name)
    except LookupError:
        raise ValueError(f"Invalid SPATCH_ENCODING={name!r}")
    return name


def get_config() -> dict:
    """Return the effective settings.

    Raises:
        ValueError: If a variable is set to an unusable value.
    """
    _ensure_dotenv()
    return {
        "output_dir": os.getenv("SPATCH_OUTPUT_DIR") or None,
        "encoding": _get_encoding(),
        "http_timeout": _get_timeout(),
        "log_level": _get_log_level(),
    }
