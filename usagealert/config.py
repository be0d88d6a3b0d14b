import copy
import os
from pathlib import Path
from typing import Optional

import yaml


DEFAULT_FIVE_HOUR_THRESHOLDS = [75, 90, 95, 100]
DEFAULT_WEEKLY_THRESHOLDS = [50, 75, 90, 95, 100]

DEFAULT_CONFIG = {
    "credentials": {
        "keychain_service": "",
    },
    "telegram": {
        "bot_token": "",
        "chat_id": "",
        "topic_id": None,
    },
    "webhook": {
        "url": "",
    },
    "thresholds": {
        "five_hour": DEFAULT_FIVE_HOUR_THRESHOLDS,
        "weekly": DEFAULT_WEEKLY_THRESHOLDS,
    },
    "monitor": {
        "check_interval": 300,
        "timezone": "Europe/Madrid",
        "state_file": "~/.openclaw/control-center/usage-alerts.json",
    },
    "notify": {
        "timeout": 10,
    },
    "logging": {
        "dir": "~/.openclaw/control-center/logs",
    },
}

DEFAULT_KEYCHAIN_SERVICE = "Claude Code-credentials"

# Environment fallbacks, used only when the config value is empty
ENV_KEYCHAIN_SERVICE = "CLAUDE_USAGE_KEYCHAIN_SERVICE"
ENV_WEBHOOK_URL = "CLAWTROL_USAGE_WEBHOOK_URL"
ENV_BOT_TOKEN = "TELEGRAM_BOT_TOKEN"


def get_config_path() -> Path:
    """Get the path to the config file."""
    config_dir = Path.home() / ".config" / "claudeusagealert"
    return config_dir / "config.yaml"


def load_config(config_path: Optional[Path] = None) -> dict:
    """Load configuration from file, creating default if it doesn't exist."""
    config_path = config_path or get_config_path()

    if not config_path.exists():
        save_config(DEFAULT_CONFIG, config_path)
        return copy.deepcopy(DEFAULT_CONFIG)

    with open(config_path, "r") as f:
        config = yaml.safe_load(f) or {}

    # Merge with defaults for any missing keys
    merged = copy.deepcopy(DEFAULT_CONFIG)
    for section, values in config.items():
        if section in merged and isinstance(values, dict):
            merged[section].update(values)
        else:
            merged[section] = values

    return merged


def save_config(config: dict, config_path: Optional[Path] = None) -> None:
    """Save configuration to file."""
    config_path = config_path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w") as f:
        yaml.dump(config, f, default_flow_style=False)


def expand_path(path: str) -> str:
    """Expand ~ and environment variables in a path."""
    return os.path.expanduser(os.path.expandvars(path))


def _setting(value, env_name: str) -> str:
    if value:
        return str(value)
    return os.environ.get(env_name, "")


def keychain_service_name(config: dict) -> str:
    """Credential lookup key: config, then environment, then the CLI default."""
    value = _setting(config.get("credentials", {}).get("keychain_service"), ENV_KEYCHAIN_SERVICE)
    return value or DEFAULT_KEYCHAIN_SERVICE


def webhook_url(config: dict) -> str:
    return _setting(config.get("webhook", {}).get("url"), ENV_WEBHOOK_URL)


def telegram_bot_token(config: dict) -> str:
    return _setting(config.get("telegram", {}).get("bot_token"), ENV_BOT_TOKEN)


def normalize_thresholds(values) -> tuple:
    """Ascending thresholds with duplicates dropped."""
    return tuple(sorted(set(values or [])))
