"""
Repositories package

Each repository encapsulates database operations for a model:
- free_games_repository.py
- activitylog_repository.py

Usage:
    from repositories.free_games_repository import FreeGamesRepository
    games = FreeGamesRepository.get_current()
"""
