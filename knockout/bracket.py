"""
토너먼트 대진표 생성

- 1라운드: 시드 i vs 시드 N+1-i
- 경기 번호는 표준 대진 순서 (8명: 1v8, 4v5, 2v7, 3v6) → 1, 2번 시드는 결승 전까지 만나지 않음
- 라운드 이름은 결승까지 남은 라운드 수로 결정
- 이후 라운드는 빈 경기로 미리 생성
"""
import copy
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple
from loguru import logger

from tournament.models import Match, MatchStatus, Player
from .seeding import Seed, is_power_of_two


class BracketError(ValueError):
    """대진표 구조 오류"""


# 결승까지 남은 라운드 수 → 라운드 이름
ROUND_NAMES_BY_DISTANCE = {
    0: "Final",
    1: "Semi-Final",
    2: "Quarter-Final",
    3: "Round of 16",
    4: "Round of 32",
    5: "Round of 64",
}


def match_key(round_number: int, match_number: int) -> str:
    return f"r{round_number}m{match_number}"


def next_slot(round_number: int, match_number: int) -> tuple:
    """(다음 라운드, 다음 경기 번호, 슬롯 'player1'|'player2')"""
    return round_number + 1, (match_number + 1) // 2, "player1" if match_number % 2 == 1 else "player2"


def total_rounds_for(total_players: int) -> int:
    """라운드 수 = ceil(log2(참가 인원))"""
    if total_players < 2:
        return 0
    return (total_players - 1).bit_length()


def round_label(round_number: int, total_rounds: int) -> str:
    """라운드 번호(1부터) → 표시 이름"""
    distance = total_rounds - round_number
    return ROUND_NAMES_BY_DISTANCE.get(distance, f"Round {round_number}")


def pair_seeds(total: int) -> List[Tuple[int, int]]:
    """시드 번호 쌍 [(1, N), (2, N-1), ...]"""
    return [(i, total + 1 - i) for i in range(1, total // 2 + 1)]


def bracket_order(size: int) -> List[int]:
    """
    표준 대진 순서

    8명: [1, 8, 4, 5, 2, 7, 3, 6] → 1v8, 4v5, 2v7, 3v6
    """
    if size <= 2:
        return [1, 2][:size]

    upper = bracket_order(size // 2)
    result = []
    for seed in upper:
        result.extend([seed, size + 1 - seed])
    return result


@dataclass
class BracketMatch:
    """대진표 경기 한 칸"""
    round_number: int
    match_number: int
    round_name: str
    player1: Optional[Seed] = None
    player2: Optional[Seed] = None
    completed: bool = False
    player1_score: Optional[int] = None
    player2_score: Optional[int] = None
    winner: Optional[Seed] = None
    match_id: Optional[str] = None

    @property
    def id(self) -> str:
        return match_key(self.round_number, self.match_number)

    @property
    def seed1(self) -> Optional[int]:
        return self.player1.overall_seed if self.player1 else None

    @property
    def seed2(self) -> Optional[int]:
        return self.player2.overall_seed if self.player2 else None

    def has_player(self, player_id: str) -> bool:
        return any(p is not None and p.player_id == player_id for p in (self.player1, self.player2))

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "round_number": self.round_number,
            "match_number": self.match_number,
            "round_name": self.round_name,
            "player1": self.player1.to_dict() if self.player1 else None,
            "player2": self.player2.to_dict() if self.player2 else None,
            "seed1": self.seed1,
            "seed2": self.seed2,
            "completed": self.completed,
            "player1_score": self.player1_score,
            "player2_score": self.player2_score,
            "winner": self.winner.player_id if self.winner else None,
            "match_id": self.match_id,
        }

    def to_record(self, tournament_id: str) -> Dict:
        """matches 테이블 행"""
        record = {
            "tournament_id": tournament_id,
            "group_id": None,
            "round_number": self.round_number,
            "match_number": self.match_number,
            "player1_id": self.player1.player_id if self.player1 else None,
            "player2_id": self.player2.player_id if self.player2 else None,
            "player1_legs": self.player1_score or 0,
            "player2_legs": self.player2_score or 0,
            "status": MatchStatus.COMPLETED.value if self.completed else MatchStatus.SCHEDULED.value,
            "winner_id": self.winner.player_id if self.winner else None,
        }
        if self.match_id:
            record["id"] = self.match_id
        return record


@dataclass
class Bracket:
    """대진표 (경기 ID → BracketMatch)"""
    matches: Dict[str, BracketMatch] = field(default_factory=dict)
    total_rounds: int = 0
    champion: Optional[Seed] = None

    def get(self, round_number: int, match_number: int) -> Optional[BracketMatch]:
        return self.matches.get(match_key(round_number, match_number))

    def round(self, round_number: int) -> List[BracketMatch]:
        return sorted(
            (m for m in self.matches.values() if m.round_number == round_number),
            key=lambda m: m.match_number,
        )

    def rounds(self) -> List[List[BracketMatch]]:
        return [self.round(r) for r in range(1, self.total_rounds + 1)]

    @property
    def final(self) -> Optional[BracketMatch]:
        return self.get(self.total_rounds, 1)

    @property
    def is_empty(self) -> bool:
        return not self.matches

    def copy(self) -> "Bracket":
        return copy.deepcopy(self)

    def find_by_match_id(self, match_id: str) -> Optional[BracketMatch]:
        for bracket_match in self.matches.values():
            if bracket_match.match_id == match_id:
                return bracket_match
        return None

    def restore_advancements(self) -> List[str]:
        """
        완료된 경기 승자가 빠진 다음 경기 슬롯 채우기 → 채운 경기 키

        승자 진출 저장이 중간에 실패한 행에서 대진표를 재구성할 때 사용
        """
        restored = []
        for node in sorted(self.matches.values(), key=lambda m: (m.round_number, m.match_number)):
            if not node.completed or node.winner is None or node.round_number >= self.total_rounds:
                continue

            next_round, next_number, slot = next_slot(node.round_number, node.match_number)
            target = self.get(next_round, next_number)
            if target is None:
                continue

            current = getattr(target, slot)
            if current is None:
                setattr(target, slot, node.winner)
                restored.append(target.id)
                logger.warning(f"누락된 승자 진출 복원: {node.winner.name} → {target.id} ({slot})")
            elif current.player_id != node.winner.player_id:
                logger.warning(
                    f"데이터 무결성 경고: {target.id} {slot}={current.player_id}, "
                    f"{node.id} 승자={node.winner.player_id}"
                )
        return restored

    def to_dict(self) -> Dict:
        return {
            "total_rounds": self.total_rounds,
            "champion": self.champion.player_id if self.champion else None,
            "rounds": [
                {
                    "round_number": i + 1,
                    "round_name": round_label(i + 1, self.total_rounds),
                    "matches": [m.to_dict() for m in matches],
                }
                for i, matches in enumerate(self.rounds())
            ],
        }

    @classmethod
    def from_records(cls, matches: Sequence[Match], seeds: Sequence[Seed]) -> "Bracket":
        """
        저장된 토너먼트 경기 행 → Bracket

        Raises:
            BracketError: 1라운드 경기 수가 2의 거듭제곱이 아닌 경우
        """
        knockout = [m for m in matches if m.is_knockout]
        if not knockout:
            return cls()

        first_round_count = sum(1 for m in knockout if m.round_number == 1)
        if not is_power_of_two(first_round_count):
            raise BracketError(f"1라운드 경기 수 {first_round_count}는 2의 거듭제곱이 아닙니다")

        total_rounds = first_round_count.bit_length()
        by_player = {s.player_id: s for s in seeds}

        def seed_for(player_id: Optional[str]) -> Optional[Seed]:
            if not player_id:
                return None
            seed = by_player.get(player_id)
            if seed is None:
                logger.warning(f"데이터 무결성 경고: 시드 정보 없는 토너먼트 선수 {player_id}")
                seed = Seed(
                    player=Player(id=player_id, name=player_id),
                    group_letter="",
                    group_rank=0,
                    overall_seed=0,
                )
                by_player[player_id] = seed
            return seed

        bracket = cls(total_rounds=total_rounds)
        ordered = sorted(knockout, key=lambda m: (m.round_number, m.match_number or 0))
        counters: Dict[int, int] = {}
        for record in ordered:
            counters[record.round_number] = counters.get(record.round_number, 0) + 1
            number = record.match_number or counters[record.round_number]

            completed = record.is_completed
            bracket_match = BracketMatch(
                round_number=record.round_number,
                match_number=number,
                round_name=round_label(record.round_number, total_rounds),
                player1=seed_for(record.player1_id),
                player2=seed_for(record.player2_id),
                completed=completed,
                player1_score=record.player1_legs if completed else None,
                player2_score=record.player2_legs if completed else None,
                winner=seed_for(record.winner_id) if completed else None,
                match_id=record.id,
            )
            bracket.matches[bracket_match.id] = bracket_match

        bracket.restore_advancements()

        final = bracket.final
        if final and final.completed:
            bracket.champion = final.winner
        return bracket


def build_first_round(seeds: Sequence[Seed]) -> List[BracketMatch]:
    """
    1라운드 경기 생성

    Raises:
        BracketError: 시드 수가 2의 거듭제곱이 아닌 경우
    """
    total = len(seeds)
    if total < 2 or not is_power_of_two(total):
        raise BracketError(f"시드 수 {total}는 2의 거듭제곱이 아닙니다")

    by_number = {s.overall_seed: s for s in seeds}
    if sorted(by_number) != list(range(1, total + 1)):
        raise BracketError("시드 번호는 1부터 연속이어야 합니다")

    total_rounds = total_rounds_for(total)
    name = round_label(1, total_rounds)
    order = bracket_order(total)

    matches = []
    for index in range(total // 2):
        matches.append(BracketMatch(
            round_number=1,
            match_number=index + 1,
            round_name=name,
            player1=by_number[order[2 * index]],
            player2=by_number[order[2 * index + 1]],
        ))
    return matches


def build_full_skeleton(first_round: Sequence[BracketMatch], total_players: int) -> Bracket:
    """
    전체 대진표 뼈대 생성 (2라운드 이후는 빈 경기)

    Raises:
        BracketError: 1라운드 경기 수가 2의 거듭제곱이 아니거나 참가 인원과 맞지 않는 경우
    """
    count = len(first_round)
    if not is_power_of_two(count):
        raise BracketError(f"1라운드 경기 수 {count}는 2의 거듭제곱이 아닙니다")

    total_rounds = total_rounds_for(total_players)
    if count * 2 != 2 ** total_rounds:
        raise BracketError(f"1라운드 경기 수 {count}가 참가 인원 {total_players}명과 맞지 않습니다")

    bracket = Bracket(total_rounds=total_rounds)
    for bracket_match in first_round:
        bracket.matches[bracket_match.id] = copy.deepcopy(bracket_match)

    matches_in_round = count
    for round_number in range(2, total_rounds + 1):
        matches_in_round //= 2
        name = round_label(round_number, total_rounds)
        for number in range(1, matches_in_round + 1):
            placeholder = BracketMatch(round_number=round_number, match_number=number, round_name=name)
            bracket.matches[placeholder.id] = placeholder

    logger.info(f"대진표 생성: {total_players}명, {total_rounds}라운드, {len(bracket.matches)}경기")
    return bracket


def generate_bracket(seeds: Sequence[Seed]) -> Bracket:
    """시드 → 전체 대진표"""
    return build_full_skeleton(build_first_round(seeds), len(seeds))
