"""
Models package

- free_game.py: FreeGame, one row per discovered promotional listing
- activitylog.py: ActivityLog, pipeline events (discoveries, sweeps, failures)
"""

from .free_game import FreeGame
from .activitylog import ActivityLog

__all__ = [
    "FreeGame",
    "ActivityLog",
]
