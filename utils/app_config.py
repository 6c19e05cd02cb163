"""Pre-DB bootstrap configuration. Zero imports from the rest of the app.

Stores user preferences that must be known before opening the DB
(db_folder, active_profile, logging). Config lives in
~/.finance_desk/config.json to avoid a bootstrapping problem.
"""
import json
import os
from pathlib import Path

CONFIG_DIR = Path.home() / ".finance_desk"
CONFIG_FILE = CONFIG_DIR / "config.json"

DEFAULT_LOG_LEVEL = "INFO"


def load_config(config_file: Path | None = None) -> dict:
    """Returns {} on a missing or corrupt file. Never raises."""
    try:
        with open(config_file or CONFIG_FILE, "r", encoding="utf-8") as f:
            data = json.load(f)
        return data if isinstance(data, dict) else {}
    except Exception:
        return {}


def save_config(config: dict, config_file: Path | None = None) -> None:
    """Creates the config folder if needed; atomic write via .tmp + os.replace()."""
    target = Path(config_file or CONFIG_FILE)
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp = target.with_suffix(".tmp")
    try:
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=2)
        os.replace(tmp, target)
    except Exception:
        try:
            tmp.unlink(missing_ok=True)
        except Exception:
            pass


def _set_key(key: str, value, config_file: Path | None = None) -> None:
    config = load_config(config_file)
    if value is None:
        config.pop(key, None)
    else:
        config[key] = value
    save_config(config, config_file)


def get_db_folder(config_file: Path | None = None) -> str | None:
    """Return config["db_folder"] or None if not set."""
    return load_config(config_file).get("db_folder")


def set_db_folder(path: str | None, config_file: Path | None = None) -> None:
    _set_key("db_folder", path, config_file)


def get_active_profile(config_file: Path | None = None) -> str | None:
    return load_config(config_file).get("active_profile")


def set_active_profile(profile: str | None, config_file: Path | None = None) -> None:
    _set_key("active_profile", profile, config_file)


def get_log_level(config_file: Path | None = None) -> str:
    # FINANCE_DESK_LOG_LEVEL wins so a debug session needs no config edit
    env = os.environ.get("FINANCE_DESK_LOG_LEVEL")
    if env:
        return env.upper()
    return str(load_config(config_file).get("log_level") or DEFAULT_LOG_LEVEL).upper()


def get_log_file(config_file: Path | None = None) -> str | None:
    return load_config(config_file).get("log_file")
