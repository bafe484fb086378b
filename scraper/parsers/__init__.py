"""
파서 모듈
"""
from .scoreboard import ScoreboardParser, parse_match_format

__all__ = ['ScoreboardParser', 'parse_match_format']
