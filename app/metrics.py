from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST
from flask import Response, request
import logging
import time

logger = logging.getLogger("main")

# API Metrics
api_request_duration_seconds = Histogram(
    "steamsentinel_api_request_duration_seconds", "API request duration", ["endpoint", "method"]
)

api_requests_total = Counter(
    "steamsentinel_api_requests_total", "Total API requests", ["endpoint", "method", "status_code"]
)

# Free games pipeline metrics
feed_checks_total = Counter("steamsentinel_feed_checks_total", "Free games feed checks", ["status"])

feed_check_duration_seconds = Histogram("steamsentinel_feed_check_duration_seconds", "Free games feed check duration")

free_games_discovered_total = Counter(
    "steamsentinel_free_games_discovered_total", "New free game listings persisted", ["platform"]
)

notifications_total = Counter("steamsentinel_notifications_total", "Webhook notifications", ["status"])

verifications_total = Counter(
    "steamsentinel_verifications_total", "Steam store verification results", ["status"]
)

# Database Metrics
free_games_total = Gauge("steamsentinel_free_games_total", "Free game records", ["platform"])
free_games_active = Gauge("steamsentinel_free_games_active", "Currently active free game records", ["platform"])


def init_metrics(app):
    @app.route("/metrics")
    def metrics():
        update_db_metrics()
        return Response(generate_latest(), mimetype=CONTENT_TYPE_LATEST)

    @app.before_request
    def before_request():
        request.start_time = time.time()

    @app.after_request
    def after_request(response):
        duration = time.time() - getattr(request, "start_time", time.time())
        api_request_duration_seconds.labels(endpoint=request.endpoint or "unknown", method=request.method).observe(
            duration
        )
        api_requests_total.labels(
            endpoint=request.endpoint or "unknown", method=request.method, status_code=response.status_code
        ).inc()
        return response

    logger.info("Prometheus metrics initialized at /metrics")


def update_db_metrics():
    """Refresh record gauges from the database"""
    from repositories.free_games_repository import FreeGamesRepository
    from constants import PLATFORMS

    try:
        stats = FreeGamesRepository.get_stats()
    except Exception as e:
        logger.warning(f"Failed to collect database metrics: {e}")
        return

    for platform in PLATFORMS:
        free_games_total.labels(platform=platform).set(stats[platform]["total"])
        free_games_active.labels(platform=platform).set(stats[platform]["active"])
