"""
DartConnect 라이브 스코어 스크래퍼
"""
from .models import PlayerScore, ScoreboardSnapshot, PendingMatchResult, PendingResultStatus
from .detector import MatchCompletionDetector
from .watcher import MatchWatcher

__all__ = [
    'PlayerScore',
    'ScoreboardSnapshot',
    'PendingMatchResult',
    'PendingResultStatus',
    'MatchCompletionDetector',
    'MatchWatcher',
]
