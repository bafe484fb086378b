"""
다트 토너먼트 녹아웃 대진표 (시드 배정, 대진 생성, 승자 진출)
"""
from .seeding import (
    SEEDING_MAP,
    Seed,
    assign_seeds,
    advancers_by_group,
    check_bracket_size,
    is_power_of_two,
)
from .bracket import (
    Bracket,
    BracketError,
    BracketMatch,
    build_first_round,
    build_full_skeleton,
    generate_bracket,
    pair_seeds,
    round_label,
)
from .advancement import advance_winner

__all__ = [
    "SEEDING_MAP",
    "Seed",
    "assign_seeds",
    "advancers_by_group",
    "check_bracket_size",
    "is_power_of_two",
    "Bracket",
    "BracketError",
    "BracketMatch",
    "build_first_round",
    "build_full_skeleton",
    "generate_bracket",
    "pair_seeds",
    "round_label",
    "advance_winner",
]
