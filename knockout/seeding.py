"""
토너먼트 시드 배정

조별 순위 → 전체 시드 번호 (순위 우선, 조 이름 순)
시드 번호 → 대진표 구역(quadrant) 라벨은 고정 시딩 맵을 그대로 사용
"""
from dataclasses import dataclass, asdict
from typing import Dict, List, Optional, Sequence
from loguru import logger

from ranking.calculator import StandingRow
from tournament.models import Player
from tournament.round_robin import group_position


# 시드 번호 → 구역 라벨 (64시드까지, 변경 금지)
SEEDING_MAP: Dict[int, str] = {
    1: "A1", 2: "D1", 3: "C1", 4: "B1", 5: "B1", 6: "C1", 7: "D1", 8: "A1",
    9: "A1", 10: "D1", 11: "C1", 12: "B1", 13: "B1", 14: "C1", 15: "D1", 16: "A1",
    17: "A2", 18: "D2", 19: "C2", 20: "B2", 21: "C2", 22: "D2", 23: "A2", 24: "B2",
    25: "C2", 26: "B2", 27: "A2", 28: "D2", 29: "A2", 30: "B2", 31: "C2", 32: "D2",
    33: "C3", 34: "B3", 35: "A3", 36: "D3", 37: "D3", 38: "C3", 39: "B3", 40: "A3",
    41: "B3", 42: "A3", 43: "D3", 44: "C3", 45: "A3", 46: "D3", 47: "B3", 48: "A3",
    49: "C4", 50: "B4", 51: "A4", 52: "D4", 53: "A4", 54: "B4", 55: "C4", 56: "D4",
    57: "C4", 58: "D4", 59: "A4", 60: "B4", 61: "D4", 62: "C4", 63: "B4", 64: "A4",
}

SUPPORTED_BRACKET_SIZES = (4, 8, 16, 32, 64, 128)


@dataclass
class Seed:
    """시드가 배정된 진출 선수"""
    player: Player
    group_letter: str
    group_rank: int
    overall_seed: int
    quadrant: Optional[str] = None

    @property
    def player_id(self) -> str:
        return self.player.id

    @property
    def name(self) -> str:
        return self.player.name

    def to_dict(self) -> Dict:
        data = asdict(self)
        data["player"] = self.player.model_dump()
        return data


def is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


def check_bracket_size(total: int) -> Optional[str]:
    """진출 인원이 지원 대진표 크기가 아니면 운영자용 경고 메시지 반환"""
    if total in SUPPORTED_BRACKET_SIZES:
        return None
    return (
        f"진출 인원 {total}명은 지원되는 대진표 크기가 아닙니다 "
        f"({'/'.join(str(s) for s in SUPPORTED_BRACKET_SIZES)}). "
        f"조별 진출 인원을 조정하세요"
    )


def assign_seeds(
    per_group_ranked: Dict[str, Sequence[Player]],
    group_order: Optional[Sequence[str]] = None,
) -> List[Seed]:
    """
    전체 시드 배정

    Args:
        per_group_ranked: 조 이름 → 순위순 진출 선수 (진출 인원만큼 잘린 목록)
        group_order: 조 순서 (없으면 조 이름의 위치순: A..Z, Group 27, ...)

    Returns:
        시드 번호순 Seed 목록 (1위 전원 → 2위 전원 → ..., 같은 순위는 조 순서)
    """
    if group_order is not None:
        letters = [g for g in group_order if g in per_group_ranked]
        letters += sorted((g for g in per_group_ranked if g not in letters), key=group_position)
    else:
        letters = sorted(per_group_ranked, key=group_position)
    max_rank = max((len(per_group_ranked[g]) for g in letters), default=0)

    seeds: List[Seed] = []
    for rank_index in range(max_rank):
        for letter in letters:
            ranked = per_group_ranked[letter]
            if rank_index >= len(ranked):
                continue
            overall = len(seeds) + 1
            seeds.append(Seed(
                player=ranked[rank_index],
                group_letter=letter,
                group_rank=rank_index + 1,
                overall_seed=overall,
                quadrant=SEEDING_MAP.get(overall),
            ))

    warning = check_bracket_size(len(seeds))
    if warning and seeds:
        logger.warning(warning)

    return seeds


def advancers_by_group(
    standings_by_letter: Dict[str, Sequence[StandingRow]],
    advancement_counts: Dict[str, int],
) -> Dict[str, List[Player]]:
    """조 이름 → 순위표 상위 진출 인원만큼의 선수"""
    return {
        letter: [row.player for row in rows[:advancement_counts.get(letter, 0)]]
        for letter, rows in standings_by_letter.items()
    }
