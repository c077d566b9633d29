"""Activity log model.

This module intentionally only contains the SQLAlchemy model.
The `log_activity` helper lives in `app/db.py`.
"""

from db import db
from utils import now_utc


class ActivityLog(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    timestamp = db.Column(db.DateTime, default=now_utc, index=True)
    action_type = db.Column(db.String(50), index=True)  # 'free_game_discovered', 'feed_check_failed', ...
    free_game_id = db.Column(db.Integer, db.ForeignKey("free_games.id", ondelete="SET NULL"), nullable=True)
    details = db.Column(db.Text)  # Stored as JSON string

    __table_args__ = (db.Index("idx_activity_timestamp_action", "timestamp", "action_type"),)

    def to_dict(self):
        import json

        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "action_type": self.action_type,
            "free_game_id": self.free_game_id,
            "details": json.loads(self.details) if self.details else {},
        }
