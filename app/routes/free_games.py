"""
Free Games Routes - listing, claim tracking, manual checks and Steam verification
"""

from flask import Blueprint, request, current_app
from api_responses import success_response, handle_api_errors, not_found_response
from constants import PLATFORMS, STATUS_ACTIVE, STATUS_EXPIRED, STATUS_UPCOMING
from exceptions import ValidationException
from rate_limits import limiter, UPSTREAM_LIMIT
from repositories.free_games_repository import FreeGamesRepository, filter_by_status
from settings import load_settings
from utils import now_utc, isoformat_utc
import logging

logger = logging.getLogger("main")

free_games_bp = Blueprint("free_games", __name__, url_prefix="/api/free-games")

STATUSES = (STATUS_ACTIVE, STATUS_EXPIRED, STATUS_UPCOMING)


def _parse_bool(value, name):
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return value
    lowered = str(value).strip().lower()
    if lowered in ("true", "1", "yes"):
        return True
    if lowered in ("false", "0", "no"):
        return False
    raise ValidationException(f"Invalid value for '{name}': {value}")


def _platform_arg():
    platform = request.args.get("platform")
    if platform in (None, "", "all"):
        return None
    if platform not in PLATFORMS:
        raise ValidationException(f"Unknown platform '{platform}'")
    return platform


@free_games_bp.route("")
@free_games_bp.route("/")
@handle_api_errors
def list_free_games():
    """List records with optional platform/status/claimed filters and per-status counts"""
    platform = _platform_arg()
    status = request.args.get("status")
    if status in ("", "all"):
        status = None
    if status is not None and status not in STATUSES:
        raise ValidationException(f"Unknown status '{status}'")
    claimed = _parse_bool(request.args.get("claimed"), "claimed")

    now = now_utc()
    games = FreeGamesRepository.get_all(platform=platform)

    counts = {"total": len(games), "claimed": 0, "unclaimed": 0}
    counts.update({s: 0 for s in STATUSES})
    for game in games:
        counts[game.get_status(now)] += 1
        counts["claimed" if game.is_claimed else "unclaimed"] += 1

    filtered = filter_by_status(games, status=status, claimed=claimed, now=now)
    return success_response(data=[g.to_dict(now) for g in filtered], counts=counts)


@free_games_bp.route("/current")
@handle_api_errors
def current_free_games():
    now = now_utc()
    games = FreeGamesRepository.get_current(platform=_platform_arg(), now=now)
    return success_response(data=[g.to_dict(now) for g in games])


@free_games_bp.route("/stats")
@handle_api_errors
def free_games_stats():
    return success_response(data=FreeGamesRepository.get_stats())


@free_games_bp.post("/refresh")
@limiter.limit(UPSTREAM_LIMIT)
@handle_api_errors
def refresh_free_games():
    """Run a feed check now instead of waiting for the next interval"""
    result = current_app.free_games_feed.manual_check()
    message = "Free games check completed"
    if result.get("skipped"):
        message = "Free games check already in progress"
    elif result.get("error"):
        message = f"Free games check failed: {result['error']}"
    return success_response(data=result, message=message)


@free_games_bp.put("/<int:game_id>/claim")
@handle_api_errors
def claim_free_game(game_id):
    """Set the claimed flag from the body, or toggle it when the body omits it"""
    data = request.get_json(silent=True) or {}
    is_claimed = _parse_bool(data.get("is_claimed"), "is_claimed")

    if is_claimed is None:
        game = FreeGamesRepository.toggle_claimed(game_id)
    else:
        game = FreeGamesRepository.set_claimed(game_id, is_claimed)

    if game is None:
        return not_found_response("Free game", game_id)

    logger.info(f"Free game {'claimed' if game.is_claimed else 'unclaimed'}: {game.title}")
    return success_response(data=game.to_dict())


@free_games_bp.route("/last-check")
@handle_api_errors
def last_check():
    feed = current_app.free_games_feed
    interval = load_settings()["free_games"]["check_interval_minutes"]
    return success_response(
        data={
            "lastCheckTime": isoformat_utc(feed.get_last_check_time()),
            "nextCheckTime": isoformat_utc(feed.get_next_check_time(interval)),
            "checkIntervalMinutes": interval,
        }
    )


@free_games_bp.post("/verify-all")
@limiter.limit(UPSTREAM_LIMIT)
@handle_api_errors
def verify_all_steam_games():
    summary = current_app.steam_verifier.verify_all()
    return success_response(data=summary.to_dict(), message="Steam free games verification completed")


@free_games_bp.post("/steam/<int:app_id>/verify")
@limiter.limit(UPSTREAM_LIMIT)
@handle_api_errors
def verify_steam_game(app_id):
    return success_response(data=current_app.steam_verifier.verify_single(app_id))


@free_games_bp.post("/cleanup")
@handle_api_errors
def cleanup_free_games():
    """Delete unclaimed records older than `days` (defaults to the retention setting)"""
    data = request.get_json(silent=True) or {}
    days = data.get("days", request.args.get("days"))
    if days is None:
        days = load_settings()["free_games"]["retention_days"]
    try:
        days = int(days)
    except (TypeError, ValueError):
        raise ValidationException(f"Invalid value for 'days': {days}")
    if days < 1:
        raise ValidationException("'days' must be at least 1")

    deleted = current_app.free_games_feed.cleanup(days)
    return success_response(data={"deleted": deleted, "days": days})
