"""
스크랩 결과 매칭 및 승인
"""
from .matcher import ResultMatcher, MatchResolution, name_similarity, normalize_name
from .approval import (
    ResultApprovalService,
    ResultStateError,
    ScoreChangeType,
    apply_score,
    should_auto_accept,
)

__all__ = [
    "ResultMatcher",
    "MatchResolution",
    "name_similarity",
    "normalize_name",
    "ResultApprovalService",
    "ResultStateError",
    "ScoreChangeType",
    "apply_score",
    "should_auto_accept",
]
