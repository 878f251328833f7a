"""Arrival bookkeeping"""
from .achievements import Achievement, AchievementTracker, ACHIEVEMENTS

__all__ = ['Achievement', 'AchievementTracker', 'ACHIEVEMENTS']
