"""
조별 리그(라운드 로빈) 대진 생성

- 조 편성: 인원 차이가 1명 이하가 되도록 균등 분배
- 대진: 서클 방식 고정 스케줄 (4~12명), 홀수 조는 다음 짝수 스케줄 사용 (가상 선수와의 경기 = 부전승)
- 그 외 인원은 서클 방식 로테이션으로 생성
"""
import random
import sys
from dataclasses import dataclass, asdict
from typing import Dict, List, Optional, Sequence, Tuple, TypeVar
from loguru import logger


T = TypeVar("T")


# 짝수 인원별 고정 스케줄: 라운드별 (선수번호, 선수번호) 목록 (1부터)
ROUND_ROBIN_SCHEDULES: Dict[int, List[List[Tuple[int, int]]]] = {
    4: [
        [(1, 4), (2, 3)],
        [(4, 3), (1, 2)],
        [(2, 4), (3, 1)],
    ],
    6: [
        [(1, 6), (2, 5), (3, 4)],
        [(6, 4), (5, 3), (1, 2)],
        [(2, 6), (3, 1), (4, 5)],
        [(6, 5), (1, 4), (2, 3)],
        [(3, 6), (4, 2), (5, 1)],
    ],
    8: [
        [(1, 8), (2, 7), (3, 6), (4, 5)],
        [(8, 5), (6, 4), (7, 3), (1, 2)],
        [(2, 8), (3, 1), (4, 7), (5, 6)],
        [(8, 6), (7, 5), (1, 4), (2, 3)],
        [(3, 8), (4, 2), (5, 1), (6, 7)],
        [(8, 7), (1, 6), (2, 5), (3, 4)],
        [(4, 8), (5, 3), (6, 2), (7, 1)],
    ],
    10: [
        [(1, 10), (2, 9), (3, 8), (4, 7), (5, 6)],
        [(10, 6), (7, 5), (8, 4), (9, 3), (1, 2)],
        [(2, 10), (3, 1), (4, 9), (5, 8), (6, 7)],
        [(10, 7), (8, 6), (9, 5), (1, 4), (2, 3)],
        [(3, 10), (4, 2), (5, 1), (6, 9), (7, 8)],
        [(10, 8), (9, 7), (1, 6), (2, 5), (3, 4)],
        [(4, 10), (5, 3), (6, 2), (7, 1), (8, 9)],
        [(10, 9), (1, 8), (2, 7), (3, 6), (4, 5)],
        [(5, 10), (6, 4), (7, 3), (8, 2), (9, 1)],
    ],
    12: [
        [(1, 12), (2, 11), (3, 10), (4, 9), (5, 8), (6, 7)],
        [(12, 7), (8, 6), (9, 5), (10, 4), (11, 3), (1, 2)],
        [(2, 12), (3, 1), (4, 11), (5, 10), (6, 9), (7, 8)],
        [(12, 8), (9, 7), (10, 6), (11, 5), (1, 4), (2, 3)],
        [(3, 12), (4, 2), (5, 1), (6, 11), (7, 10), (8, 9)],
        [(12, 9), (10, 8), (11, 7), (1, 6), (2, 5), (3, 4)],
        [(4, 12), (5, 3), (6, 2), (7, 1), (8, 11), (9, 10)],
        [(12, 10), (11, 9), (1, 8), (2, 7), (3, 6), (4, 5)],
        [(5, 12), (6, 4), (7, 3), (8, 2), (9, 1), (10, 11)],
        [(12, 11), (1, 10), (2, 9), (3, 8), (4, 7), (5, 6)],
        [(6, 12), (7, 5), (8, 4), (9, 3), (10, 2), (11, 1)],
    ],
}


@dataclass
class ScheduledMatch:
    """조별 리그 예정 경기"""
    round_number: int
    player1_id: str
    player2_id: str
    board_number: int

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class GroupDistribution:
    """조 편성 결과"""
    group_sizes: List[int]
    base_size: int
    larger_groups: int


def group_letter(index: int) -> str:
    """조 인덱스(0부터) → 조 이름 (A, B, ... 26번째 이후는 'Group 27')"""
    if 0 <= index < 26:
        return chr(ord("A") + index)
    return f"Group {index + 1}"


def group_position(label: str) -> Tuple[int, str]:
    """조 이름 → 정렬 키 (group_letter의 역순, 알 수 없는 이름은 맨 뒤)"""
    if len(label) == 1 and "A" <= label <= "Z":
        return ord(label) - ord("A"), label
    prefix, _, number = label.partition(" ")
    if prefix == "Group" and number.isdigit():
        return int(number) - 1, label
    return sys.maxsize, label


def calculate_group_distribution(total_players: int, total_groups: int) -> GroupDistribution:
    """균등 조 편성 크기 계산 (앞쪽 조부터 1명씩 추가)"""
    if total_groups <= 0:
        raise ValueError(f"조 수는 1 이상이어야 합니다: {total_groups}")

    base_size, remainder = divmod(total_players, total_groups)
    sizes = [base_size + 1 if i < remainder else base_size for i in range(total_groups)]
    return GroupDistribution(group_sizes=sizes, base_size=base_size, larger_groups=remainder)


def validate_group_distribution(group_sizes: Sequence[int]) -> bool:
    """조 인원 차이가 1명 이하인지 확인"""
    if not group_sizes:
        return True
    return max(group_sizes) - min(group_sizes) <= 1


def distribute_players_into_groups(
    players: Sequence[T],
    num_groups: int,
    shuffle: bool = True,
    rng: Optional[random.Random] = None,
) -> List[List[T]]:
    """선수를 조에 균등 분배"""
    player_list = list(players)
    if shuffle:
        (rng or random).shuffle(player_list)

    distribution = calculate_group_distribution(len(player_list), num_groups)

    groups: List[List[T]] = []
    index = 0
    for size in distribution.group_sizes:
        groups.append(player_list[index:index + size])
        index += size
    return groups


def _circle_rounds(size: int) -> List[List[Tuple[int, int]]]:
    """서클 방식 로테이션 (size는 짝수, 선수 번호 1부터)"""
    positions = list(range(1, size + 1))
    rounds = []
    for _ in range(size - 1):
        pairs = [(positions[i], positions[size - 1 - i]) for i in range(size // 2)]
        rounds.append(pairs)
        # 1번 고정, 나머지 시계방향 회전
        positions = [positions[0], positions[-1]] + positions[1:-1]
    return rounds


def generate_round_robin(player_ids: Sequence[str], total_boards: int = 2) -> List[ScheduledMatch]:
    """
    조별 리그 대진 생성

    Args:
        player_ids: 조 소속 선수 ID (순서 = 스케줄 선수 번호)
        total_boards: 조에 배정된 보드 수 (경기마다 1 → N 순환)

    Returns:
        모든 선수 쌍이 정확히 한 번씩 만나는 경기 목록
    """
    count = len(player_ids)
    if count < 2:
        return []

    schedule_size = count if count % 2 == 0 else count + 1
    schedule = ROUND_ROBIN_SCHEDULES.get(schedule_size)
    if schedule is None:
        logger.debug(f"{count}명 고정 스케줄 없음, 서클 방식으로 생성")
        schedule = _circle_rounds(schedule_size)

    boards = max(1, total_boards)
    seen = set()
    matches: List[ScheduledMatch] = []

    for round_index, pairs in enumerate(schedule, start=1):
        for p1, p2 in pairs:
            # 가상 선수 → 부전승
            if p1 > count or p2 > count:
                continue

            key = (min(p1, p2), max(p1, p2))
            if key in seen:
                logger.error(f"중복 대진 감지: {p1} vs {p2} (라운드 {round_index}), 건너뜀")
                continue
            seen.add(key)

            matches.append(ScheduledMatch(
                round_number=round_index,
                player1_id=player_ids[p1 - 1],
                player2_id=player_ids[p2 - 1],
                board_number=(len(matches) % boards) + 1,
            ))

    expected = count * (count - 1) // 2
    if len(matches) != expected:
        logger.warning(f"대진 수 불일치: 생성 {len(matches)}, 예상 {expected}")

    return matches
