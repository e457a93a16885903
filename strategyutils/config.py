"""Configuration loading for Strategy Utils.

Settings live in ``~/.config/strategyutils/config.toml`` (or the path in
``STRATEGYUTILS_CONFIG``) and are merged over the defaults below, so a
missing file or a partial file both work.
"""

import copy
import logging
import os
from pathlib import Path
from typing import Optional

import toml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "STRATEGYUTILS_CONFIG"
DEFAULT_CONFIG_PATH = Path.home() / ".config" / "strategyutils" / "config.toml"

# Predefined Strategy -> contract mapping (Ethereum)
DEFAULT_STRATEGIES = {
    "PunkStrategy": "0xc50673EDb3A7b94E8CAD8a7d4E0cD68864E33eDF",
    "BirbStrategy": "0x6bcba7cd81a5f12c10ca1bf9b36761cc382658e8",
    "DickStrategy": "0x8680acfacb3fed5408764343fc7e8358e8c85a4c",
    "ApeStrategy": "0x9ebf91b8d6ff68aa05545301a3d0984eaee54a03",
    "PudgyStrategy": "0xb3d6e9e142a785ea8a4f0050fee73bcc3438c5c5",
    "SquiggleStrategy": "0x742fd09cbbeb1ec4e3d6404dfc959a324deb50e6",
    "ToadzStrategy": "0x92cedfdbce6e87b595e4a529afa2905480368af4",
}

DEFAULTS = {
    "api": {
        "root": "https://api.geckoterminal.com/api/v2",
        "network": "eth",
        "rate_limit_per_min": 30,
        "timeout": 0,  # seconds; 0 waits until cancelled
    },
    "explorer": {
        "token_url": "https://etherscan.io/token/{address}",
    },
    "view": {
        "step": "1h",
        "rows": 100,
        "series": ["close", "mcap"],
        "hidden_columns": [],
        "chart_path": "strategy-chart.html",
    },
    "strategies": DEFAULT_STRATEGIES,
}


def get_config_path() -> Path:
    """Config file location, honouring the env var override."""
    override = os.environ.get(CONFIG_ENV_VAR)
    return Path(override).expanduser() if override else DEFAULT_CONFIG_PATH


def _merge(base: dict, override: dict) -> dict:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            # strategies replace wholesale so removed tokens stay removed
            merged[key] = dict(value) if key == "strategies" else _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path: Optional[Path] = None) -> dict:
    """Load the config file merged over defaults.

    Args:
        path: Explicit file; defaults to get_config_path().

    Returns:
        Config dictionary. Defaults only when the file is missing or unreadable.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        return copy.deepcopy(DEFAULTS)

    try:
        user_config = toml.load(config_path)
    except (toml.TomlDecodeError, OSError) as e:
        logger.warning("Ignoring unreadable config %s: %s", config_path, e)
        return copy.deepcopy(DEFAULTS)

    return _merge(DEFAULTS, user_config)


def create_template_config(path: Optional[Path] = None) -> Path:
    """Write the default configuration as a template file."""
    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w") as f:
        toml.dump(DEFAULTS, f)

    return config_path


def save_hidden_columns(columns: list[str], path: Optional[Path] = None) -> Path:
    """Persist the table column-visibility preference."""
    config_path = path or get_config_path()
    current = toml.load(config_path) if config_path.exists() else {}
    current.setdefault("view", {})["hidden_columns"] = list(columns)

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        toml.dump(current, f)

    return config_path


def resolve_token(name_or_address: str, config: dict) -> tuple[str, str]:
    """Map a strategy name (case-insensitive) or 0x address to ``(key, address)``.

    Raises:
        KeyError: If the name is not configured and is not an address.
    """
    strategies = config.get("strategies", {})
    wanted = name_or_address.strip()

    for key, address in strategies.items():
        if key.lower() == wanted.lower():
            return key, address
    for key, address in strategies.items():
        if address.lower() == wanted.lower():
            return key, address

    if wanted.lower().startswith("0x"):
        return wanted, wanted

    raise KeyError(wanted)
