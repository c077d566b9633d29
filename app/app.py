"""
SteamSentinel - Free games tracker
Application factory and logging setup
"""
import warnings
import os
import sys
import logging

# Suppress Flask-Limiter in-memory storage warning
warnings.filterwarnings("ignore", category=UserWarning, module="flask_limiter")

import flask.cli
flask.cli.show_server_banner = lambda *args: None

# Core Flask imports
from flask import Flask
import structlog

# Local imports
from constants import *
from settings import load_settings, reload_conf
from db import db, init_db, log_activity
from utils import ColoredFormatter, FilterRemoveDateFromWerkzeugLogs
from exceptions import register_exception_handlers
from metrics import init_metrics
from rate_limits import limiter

# Routes and services
from routes.free_games import free_games_bp
from routes.settings import settings_bp
from routes.system import system_bp
from repositories.free_games_repository import FreeGamesRepository
from services.steam_store import SteamStoreClient
from services.discord_notifier import DiscordNotifier
from services.free_games_feed import FreeGamesFeedService
from services.steam_verifier import SteamFreeGamesVerifier

# Jobs
from jobs.scheduler import JobScheduler

# Logging configuration
formatter = ColoredFormatter(
    '[%(asctime)s.%(msecs)03d] %(levelname)s (%(module)s) %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
)
handler = logging.StreamHandler(sys.stdout)
handler.setFormatter(formatter)

logging.basicConfig(
    level=logging.INFO,
    handlers=[handler]
)

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer() if os.environ.get('LOG_FORMAT') == 'json' else structlog.dev.ConsoleRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger('main')

# Apply filter to hide date from http access logs
logging.getLogger('werkzeug').addFilter(FilterRemoveDateFromWerkzeugLogs())
logging.getLogger('apscheduler').setLevel(logging.WARNING)


def init_services(app, settings):
    """Build the pipeline services and attach them to the app"""
    free_games = settings['free_games']
    steam = settings['steam']
    discord = settings['discord']

    app.store_client = SteamStoreClient(
        country_code=steam['country_code'],
        language=steam['language'],
        timeout=steam['timeout_seconds'],
    )
    app.discord_notifier = DiscordNotifier(
        webhook_url=discord['webhook_url'],
        enabled=discord['enabled'],
    )
    app.free_games_feed = FreeGamesFeedService(
        FreeGamesRepository,
        app.discord_notifier,
        rss_url=free_games['rss_url'],
        timeout=free_games['request_timeout_seconds'],
    )
    app.steam_verifier = SteamFreeGamesVerifier(
        FreeGamesRepository,
        app.store_client,
        request_interval=float(free_games['verify_request_interval_seconds']),
    )
    app.job_scheduler = JobScheduler(app, app.free_games_feed, app.steam_verifier, settings=free_games)


def create_app(test_config=None):
    """Application factory"""
    app = Flask(__name__)
    app.config["SQLALCHEMY_DATABASE_URI"] = STEAMSENTINEL_DB
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['SCHEDULER_ENABLED'] = True
    if test_config:
        app.config.update(test_config)

    # Initialize components
    db.init_app(app)
    limiter.init_app(app)

    # Register exception handlers
    register_exception_handlers(app)

    # Register blueprints
    app.register_blueprint(free_games_bp)
    app.register_blueprint(settings_bp)
    app.register_blueprint(system_bp)

    # Initialize metrics
    init_metrics(app)

    settings = reload_conf()
    init_db(app)
    init_services(app, settings)

    with app.app_context():
        log_activity('system_startup', version=BUILD_VERSION)

    if app.config['SCHEDULER_ENABLED'] and settings['free_games']['enabled']:
        app.job_scheduler.start()
    else:
        logger.info("Free games scheduler disabled")

    return app


if __name__ == '__main__':
    app = create_app()
    server = load_settings()['server']
    logger.info(f'Build Version: {BUILD_VERSION}')
    logger.info(f"Starting server on {server['host']}:{server['port']}...")
    app.run(debug=False, use_reloader=False, host=server['host'], port=server['port'])
