"""
Repository for ActivityLog database operations
"""

from models.activitylog import ActivityLog


class ActivityLogRepository:
    """Repository for ActivityLog database operations"""

    @staticmethod
    def get_recent(limit=50, action_type=None):
        """Most recent pipeline events, newest first"""
        query = ActivityLog.query
        if action_type:
            query = query.filter_by(action_type=action_type)
        return query.order_by(ActivityLog.timestamp.desc(), ActivityLog.id.desc()).limit(limit).all()

    @staticmethod
    def get_by_free_game(free_game_id):
        return ActivityLog.query.filter_by(free_game_id=free_game_id).order_by(ActivityLog.id.asc()).all()
