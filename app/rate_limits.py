"""
Flask-Limiter instance shared by the application factory and the blueprints
"""
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

limiter = Limiter(key_func=get_remote_address, default_limits=["300 per day", "100 per hour"])

# Endpoints that fan out to the RSS feed or the Steam store
UPSTREAM_LIMIT = "5 per minute"
