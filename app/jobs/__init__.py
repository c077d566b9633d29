"""
Jobs package - background scheduling for the free games pipeline
"""
from .scheduler import JobScheduler

__all__ = ['JobScheduler']
