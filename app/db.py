from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event, inspect
import sqlite3
import logging

# Retrieve main logger
logger = logging.getLogger("main")

db = SQLAlchemy()


def init_db(app):
    with app.app_context():
        # WAL mode, busy timeout and foreign keys are set when a connection is opened
        @event.listens_for(db.engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            if not isinstance(dbapi_connection, sqlite3.Connection):
                return

            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL;")
            cursor.execute("PRAGMA synchronous=NORMAL;")
            cursor.execute("PRAGMA busy_timeout=30000;")
            cursor.execute("PRAGMA foreign_keys=ON;")
            cursor.close()

        # Models must be registered on the metadata before create_all
        import models  # noqa: F401

        inspector = inspect(db.engine)
        if not inspector.has_table("free_games"):
            logger.info("Initializing database tables...")
        db.create_all()


def log_activity(action_type, free_game_id=None, **details):
    """Utility function to log activity"""
    import json
    from flask import has_app_context
    from models.activitylog import ActivityLog

    if not has_app_context():
        logger.debug(f"Skipping log_activity (no app context): {action_type}")
        return

    try:
        log = ActivityLog(action_type=action_type, free_game_id=free_game_id, details=json.dumps(details, default=str))
        db.session.add(log)
        db.session.commit()
    except Exception as e:
        logger.error(f"Failed to log activity: {e}")
        db.session.rollback()
