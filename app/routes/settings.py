"""
Settings Routes - configuration read/update and the Discord webhook test
"""

from flask import Blueprint, request, current_app
from api_responses import success_response, error_response, handle_api_errors, ErrorCode
from settings import reload_conf, load_settings, set_discord_settings, set_free_games_settings
from utils import sanitize_sensitive_data
import logging

logger = logging.getLogger("main")

settings_bp = Blueprint("settings", __name__, url_prefix="/api")


def _flatten(settings):
    flattened = {}
    for section, values in settings.items():
        if isinstance(values, dict):
            for key, value in values.items():
                flattened[f"{section}/{key}"] = value
        else:
            flattened[section] = values
    return flattened


@settings_bp.route("/settings")
@handle_api_errors
def get_settings_api():
    """Current settings, flattened as `section/key`, with the webhook URL masked"""
    reload_conf()
    settings = sanitize_sensitive_data(load_settings())
    return success_response(data=_flatten(settings))


@settings_bp.post("/settings/discord")
@handle_api_errors
def set_discord_settings_api():
    data = request.get_json(silent=True) or {}
    success, errors = set_discord_settings(data)
    if not success:
        return error_response(ErrorCode.VALIDATION_ERROR, details=errors, status_code=400)

    # Apply to the running notifier without a restart
    discord = load_settings()["discord"]
    notifier = current_app.discord_notifier
    notifier.webhook_url = discord["webhook_url"]
    notifier.enabled = discord["enabled"]
    logger.info(f"Discord settings updated (enabled={notifier.enabled}, configured={bool(notifier.webhook_url)})")
    return success_response(message="Discord settings saved")


@settings_bp.post("/settings/discord/test")
@handle_api_errors
def test_discord_webhook_api():
    success, error = current_app.discord_notifier.send_test_message()
    if not success:
        return error_response(ErrorCode.UPSTREAM_ERROR, message=error, status_code=502)
    return success_response(message="Test message sent")


@settings_bp.post("/settings/free-games")
@handle_api_errors
def set_free_games_settings_api():
    """Update free games settings; interval changes apply on the next start"""
    data = request.get_json(silent=True) or {}
    success, errors = set_free_games_settings(data)
    if not success:
        return error_response(ErrorCode.VALIDATION_ERROR, details=errors, status_code=400)

    free_games = load_settings()["free_games"]
    current_app.steam_verifier.request_interval = float(free_games["verify_request_interval_seconds"])
    return success_response(data=free_games, message="Free games settings saved")
