from constants import *
import copy
import yaml
import os

import logging

# Retrieve main logger
logger = logging.getLogger("main")


# Cache variable
_cached_settings = None


def _merge_defaults(settings):
    """Deep merge with defaults so new keys are always present"""
    merged_settings = copy.deepcopy(DEFAULT_SETTINGS)
    for section, values in (settings or {}).items():
        if isinstance(values, dict) and section in merged_settings and isinstance(merged_settings[section], dict):
            merged_settings[section].update(values)
        else:
            merged_settings[section] = values
    return merged_settings


def _apply_env_overrides(settings):
    webhook_url = os.environ.get("DISCORD_WEBHOOK_URL")
    if webhook_url:
        settings["discord"]["webhook_url"] = webhook_url
    return settings


def _write_settings(settings):
    os.makedirs(os.path.dirname(CONFIG_FILE), exist_ok=True)
    with open(CONFIG_FILE, "w") as yaml_file:
        yaml.dump(settings, yaml_file)


def load_settings(force=False):
    global _cached_settings

    if _cached_settings and not force:
        return _cached_settings

    if os.path.exists(CONFIG_FILE):
        logger.debug(f"Reading configuration file: {CONFIG_FILE}")
        with open(CONFIG_FILE, "r") as yaml_file:
            settings = yaml.safe_load(yaml_file) or {}
        settings = _merge_defaults(settings)
    else:
        settings = copy.deepcopy(DEFAULT_SETTINGS)
        _write_settings(settings)

    _cached_settings = _apply_env_overrides(settings)
    return _cached_settings


def _load_stored_settings():
    """Settings as persisted on disk, without environment overrides"""
    if os.path.exists(CONFIG_FILE):
        with open(CONFIG_FILE, "r") as yaml_file:
            return _merge_defaults(yaml.safe_load(yaml_file) or {})
    return copy.deepcopy(DEFAULT_SETTINGS)


FREE_GAMES_INT_KEYS = ("check_interval_minutes", "retention_days", "verify_startup_delay_seconds")
FREE_GAMES_FLOAT_KEYS = ("verify_request_interval_seconds", "request_timeout_seconds")


def _to_bool(value):
    """Real bool for JSON/YAML booleans and their common string forms; None when unrecognised"""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes", "on"):
            return True
        if lowered in ("false", "0", "no", "off"):
            return False
    return None


def verify_settings(section, data):
    success = True
    errors = []
    if "enabled" in data and _to_bool(data["enabled"]) is None:
        success = False
        errors.append({"path": f"{section}/enabled", "error": "enabled must be a boolean."})

    if section == "discord":
        url = data.get("webhook_url")
        if url and not url.startswith(("http://", "https://")):
            success = False
            errors.append({"path": "discord/webhook_url", "error": "Webhook URL must start with http:// or https://."})
    elif section == "free_games":
        for key in FREE_GAMES_INT_KEYS:
            if key in data:
                try:
                    value = int(data[key])
                except (TypeError, ValueError):
                    success = False
                    errors.append({"path": f"free_games/{key}", "error": f"{key} must be an integer."})
                    continue
                if value < 1 and key != "verify_startup_delay_seconds":
                    success = False
                    errors.append({"path": f"free_games/{key}", "error": f"{key} must be at least 1."})
                elif value < 0:
                    success = False
                    errors.append({"path": f"free_games/{key}", "error": f"{key} must not be negative."})
        for key in FREE_GAMES_FLOAT_KEYS:
            if key in data:
                try:
                    if float(data[key]) < 0:
                        raise ValueError
                except (TypeError, ValueError):
                    success = False
                    errors.append({"path": f"free_games/{key}", "error": f"{key} must be a non-negative number."})
        rss_url = data.get("rss_url")
        if "rss_url" in data and not (isinstance(rss_url, str) and rss_url.startswith(("http://", "https://"))):
            success = False
            errors.append({"path": "free_games/rss_url", "error": "RSS URL must start with http:// or https://."})
    return success, errors


def set_discord_settings(data):
    success, errors = verify_settings("discord", data)
    if not success:
        return success, errors

    settings = _load_stored_settings()
    if "webhook_url" in data:
        settings["discord"]["webhook_url"] = data["webhook_url"] or ""
    if "enabled" in data:
        settings["discord"]["enabled"] = _to_bool(data["enabled"])
    _write_settings(settings)
    reload_conf()
    return success, errors


def set_free_games_settings(data):
    success, errors = verify_settings("free_games", data)
    if not success:
        return success, errors

    settings = _load_stored_settings()
    # Store converted values so the YAML never carries numbers as strings
    for key in FREE_GAMES_INT_KEYS:
        if key in data:
            settings["free_games"][key] = int(data[key])
    for key in FREE_GAMES_FLOAT_KEYS:
        if key in data:
            settings["free_games"][key] = float(data[key])
    if "enabled" in data:
        settings["free_games"]["enabled"] = _to_bool(data["enabled"])
    if "rss_url" in data:
        settings["free_games"]["rss_url"] = data["rss_url"]
    _write_settings(settings)
    reload_conf()
    return success, errors


def reload_conf():
    """Reload application settings cache"""
    global _cached_settings
    _cached_settings = None
    return load_settings(force=True)
