"""
System Routes - health, background jobs and the activity log
"""

from flask import Blueprint, request, current_app
from sqlalchemy import text
from db import db
from api_responses import success_response, error_response, handle_api_errors, ErrorCode
from repositories.activitylog_repository import ActivityLogRepository
from repositories.free_games_repository import FreeGamesRepository
from constants import BUILD_VERSION
from utils import now_utc, isoformat_utc
import socket
import logging

logger = logging.getLogger("main")

system_bp = Blueprint("system", __name__, url_prefix="/api/system")


@system_bp.route("/health", methods=["GET"])
@handle_api_errors
def health_check_api():
    """
    Health check endpoint for monitoring.
    """
    overall_status = "healthy"
    checks = {
        "timestamp": now_utc().isoformat(),
        "version": BUILD_VERSION,
        "hostname": socket.gethostname(),
        "database": "unknown",
        "scheduler": "unknown",
    }

    try:
        db.session.execute(text("SELECT 1"))
        checks["database"] = "ok"
        checks["free_games"] = FreeGamesRepository.count()
    except Exception as e:
        checks["database"] = f"error: {str(e)}"
        overall_status = "unhealthy"

    scheduler = getattr(current_app, "job_scheduler", None)
    if scheduler is not None and scheduler.scheduler.running:
        checks["scheduler"] = "ok"
    else:
        checks["scheduler"] = "stopped"
        if overall_status == "healthy":
            overall_status = "degraded"

    feed = getattr(current_app, "free_games_feed", None)
    checks["last_feed_check"] = isoformat_utc(feed.get_last_check_time()) if feed else None
    checks["status"] = overall_status

    if overall_status == "unhealthy":
        return error_response(ErrorCode.INTERNAL_ERROR, message="Service unhealthy", details=checks, status_code=503)
    return success_response(data=checks)


@system_bp.route("/jobs")
@handle_api_errors
def list_jobs_api():
    return success_response(data=current_app.job_scheduler.get_jobs())


@system_bp.route("/activity")
@handle_api_errors
def activity_log_api():
    """Recent pipeline events; `free_game_id` narrows to one record"""
    free_game_id = request.args.get("free_game_id", type=int)
    if free_game_id is not None:
        logs = ActivityLogRepository.get_by_free_game(free_game_id)
    else:
        limit = min(request.args.get("limit", 50, type=int), 500)
        logs = ActivityLogRepository.get_recent(limit=limit, action_type=request.args.get("action_type"))
    return success_response(data=[log.to_dict() for log in logs])
