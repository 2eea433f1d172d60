"""Configuration loading for ChartJournal.

Settings live in a TOML file under ``~/.config/chartjournal`` (override the
directory with ``CHARTJOURNAL_HOME``). Missing or unreadable files fall back
to defaults.
"""

import logging
import math
import os
from pathlib import Path
from typing import Any, Optional

import toml

logger = logging.getLogger(__name__)


DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"
DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_PRICE_API_URL = "https://api.coingecko.com/api/v3/simple/price"
DEFAULT_TIMEOUT = 30.0
DEFAULT_PRICE_TIMEOUT = 10.0
DEFAULT_LEVERAGE = 10.0
MIN_LEVERAGE = 1.0


def get_config_dir() -> Path:
    """Get the configuration directory."""
    home = os.environ.get("CHARTJOURNAL_HOME")
    if home:
        return Path(home)
    return Path.home() / ".config" / "chartjournal"


def get_config_path() -> Path:
    return get_config_dir() / "config.toml"


def load_config() -> dict[str, Any]:
    """Load configuration from disk.

    Returns:
        Config dict, empty if the file is missing or malformed.
    """
    config_path = get_config_path()

    if not config_path.exists():
        return {}

    try:
        return toml.load(config_path)
    except (toml.TomlDecodeError, UnicodeDecodeError, OSError) as e:
        logger.warning("Ignoring unreadable config %s: %s", config_path, e)
        return {}


def create_template_config() -> Path:
    """Create a template configuration file.

    Returns:
        Path of the written file.
    """
    config_path = get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    template = {
        "gemini": {
            "api_key": "",  # Leave empty to use GEMINI_API_KEY env var
            "model": DEFAULT_GEMINI_MODEL,
            "base_url": DEFAULT_GEMINI_BASE_URL,
            "timeout": DEFAULT_TIMEOUT,
        },
        "pricing": {
            "api_url": DEFAULT_PRICE_API_URL,
            "timeout": DEFAULT_PRICE_TIMEOUT,
        },
        "trading": {
            "leverage": DEFAULT_LEVERAGE,
        },
        "journal": {
            "db_path": "",  # Leave empty for <config dir>/journal.db
            "seed_demo": False,
        },
    }

    with open(config_path, "w") as f:
        toml.dump(template, f)

    return config_path


def get_section(config: Optional[dict], name: str) -> dict[str, Any]:
    """Get a config table, empty if it is missing or not a table."""
    config = load_config() if config is None else config
    section = config.get(name, {})
    if not isinstance(section, dict):
        logger.warning("Ignoring config [%s]: expected a table, got %r", name, section)
        return {}
    return section


def get_number(section: dict[str, Any], key: str, default: float, minimum: float = 0.0) -> float:
    """Read a numeric setting, falling back to ``default`` on bad values.

    Missing, empty, non-numeric, non-positive and values below ``minimum``
    yield the default; anything but a missing value is logged.
    """
    raw = section.get(key)
    if raw is None or raw == "":
        return default
    if isinstance(raw, bool):
        value = None
    else:
        try:
            value = float(raw)
        except (TypeError, ValueError, OverflowError):
            value = None
    if value is None or not math.isfinite(value) or value <= 0 or value < minimum:
        logger.warning("Ignoring invalid config value %s = %r, using %s", key, raw, default)
        return default
    return value


def _string(section: dict[str, Any], key: str, default: Optional[str]) -> Optional[str]:
    raw = section.get(key)
    if raw is None or raw == "":
        return default
    if not isinstance(raw, str):
        logger.warning("Ignoring invalid config value %s = %r", key, raw)
        return default
    return raw


def get_db_path(config: Optional[dict] = None) -> Path:
    """Get the journal database path."""
    configured = _string(get_section(config, "journal"), "db_path", None)
    if configured:
        return Path(configured).expanduser()
    return get_config_dir() / "journal.db"


def get_gemini_settings(config: Optional[dict] = None) -> dict[str, Any]:
    """Get Gemini client settings with defaults applied."""
    gemini = get_section(config, "gemini")
    return {
        "model": _string(gemini, "model", DEFAULT_GEMINI_MODEL),
        "base_url": _string(gemini, "base_url", DEFAULT_GEMINI_BASE_URL),
        "timeout": get_number(gemini, "timeout", DEFAULT_TIMEOUT),
    }


def get_pricing_settings(config: Optional[dict] = None) -> dict[str, Any]:
    """Get price API settings with defaults applied."""
    pricing = get_section(config, "pricing")
    return {
        "api_url": _string(pricing, "api_url", DEFAULT_PRICE_API_URL),
        "timeout": get_number(pricing, "timeout", DEFAULT_PRICE_TIMEOUT),
    }


def get_gemini_api_key(
    config: Optional[dict] = None,
    user_key: Optional[str] = None,
) -> Optional[str]:
    """Get the Gemini API key.

    Checks the GEMINI_API_KEY environment variable first, then the
    config file, then the key stored on the user record.
    """
    env_key = os.environ.get("GEMINI_API_KEY")
    if env_key:
        return env_key

    file_key = _string(get_section(config, "gemini"), "api_key", None)
    if file_key:
        return file_key

    return user_key or None


def get_leverage(config: Optional[dict] = None) -> float:
    return get_number(get_section(config, "trading"), "leverage", DEFAULT_LEVERAGE, minimum=MIN_LEVERAGE)


def open_journal_store(config: Optional[dict] = None):
    """Open the journal store at the configured path."""
    from chartjournal.db.store import JournalStore

    config = load_config() if config is None else config
    seed_demo = get_section(config, "journal").get("seed_demo", False) is True
    return JournalStore(get_db_path(config), seed_demo=seed_demo)
