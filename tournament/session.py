"""
토너먼트 세션

토너먼트 하나의 조/선수/경기 스냅샷을 들고 순위 → 시드 → 대진표 → 승자 진출을 처리한다.
모든 계산은 세션이 가진 스냅샷만 사용하므로 여러 토너먼트를 동시에 다룰 수 있다.
"""
from typing import Dict, List, Optional, Tuple
from loguru import logger

from knockout.advancement import advance_winner, next_slot
from knockout.bracket import Bracket, BracketError, generate_bracket
from knockout.seeding import Seed, advancers_by_group, assign_seeds, check_bracket_size
from ranking.calculator import StandingRow, compute_standings
from .models import Group, Match, Player, Tournament
from .round_robin import group_letter
from .scoring import score_match


class TournamentSession:
    """토너먼트 하나의 명시적 스냅샷"""

    def __init__(
        self,
        tournament: Tournament,
        groups: List[Group],
        players: List[Player],
        matches: List[Match],
    ):
        self.tournament = tournament
        self.groups = list(groups)
        self.players = list(players)
        self.matches = list(matches)
        self._bracket: Optional[Bracket] = None
        self.warnings: List[str] = []

    @classmethod
    async def load(cls, db, tournament_id: str) -> "TournamentSession":
        """DB에서 스냅샷 로드"""
        tournament = await db.get_tournament(tournament_id)
        if tournament is None:
            raise LookupError(f"토너먼트를 찾을 수 없습니다: {tournament_id}")

        groups = await db.get_groups(tournament_id)
        players = await db.get_players(tournament_id)
        matches = await db.get_matches(tournament_id)
        logger.debug(
            f"토너먼트 로드: {tournament.name} (조 {len(groups)}, 선수 {len(players)}, 경기 {len(matches)})"
        )
        return cls(tournament, groups, players, matches)

    # ==================== 조별 리그 ====================

    @property
    def players_by_id(self) -> Dict[str, Player]:
        return {p.id: p for p in self.players}

    @property
    def letters(self) -> Dict[str, str]:
        """조 ID → 조 이름 (목록 순서 A, B, ...)"""
        return {g.id: group_letter(i) for i, g in enumerate(self.groups)}

    def group_players(self, group: Group) -> List[Player]:
        by_id = self.players_by_id
        members = []
        for player_id in group.player_ids:
            player = by_id.get(player_id)
            if player is None:
                logger.warning(f"데이터 무결성 경고: 조 {group.name}의 선수 {player_id}를 찾을 수 없음")
                continue
            members.append(player)
        return members

    def group_matches(self, group: Group) -> List[Match]:
        return [m for m in self.matches if m.group_id == group.id]

    def advancement_count(self, group: Group) -> int:
        return group.effective_advancement_count(self.tournament.players_advancing_per_group)

    def standings(self) -> Dict[str, List[StandingRow]]:
        """조 이름 → 순위표"""
        letters = self.letters
        return {
            letters[g.id]: compute_standings(
                self.group_players(g),
                self.group_matches(g),
                self.advancement_count(g),
                self.tournament.group_stage_completed,
            )
            for g in self.groups
        }

    def seeds(self) -> List[Seed]:
        """전체 시드"""
        letters = self.letters
        counts = {letters[g.id]: self.advancement_count(g) for g in self.groups}
        return assign_seeds(
            advancers_by_group(self.standings(), counts),
            group_order=[letters[g.id] for g in self.groups],
        )

    # ==================== 토너먼트 ====================

    def generate_bracket(self) -> Tuple[Bracket, List[str]]:
        """
        시드 → 새 대진표 (저장하지 않음)

        대진표를 만들 수 없으면 빈 Bracket과 경고 메시지 반환
        """
        warnings = []
        if not self.tournament.group_stage_completed:
            warnings.append("조별 리그가 종료되지 않았습니다. 순위가 바뀔 수 있습니다")

        seeds = self.seeds()
        size_warning = check_bracket_size(len(seeds))
        if size_warning:
            warnings.append(size_warning)
            return Bracket(), warnings

        try:
            return generate_bracket(seeds), warnings
        except BracketError as e:
            logger.warning(f"대진표 생성 실패: {e}")
            warnings.append(str(e))
            return Bracket(), warnings

    @property
    def knockout_matches(self) -> List[Match]:
        return [m for m in self.matches if m.is_knockout]

    @property
    def bracket(self) -> Bracket:
        """저장된 토너먼트 경기로 재구성한 대진표 (구조 오류 시 빈 대진표)"""
        if self._bracket is None:
            try:
                self._bracket = Bracket.from_records(self.knockout_matches, self.seeds())
            except BracketError as e:
                logger.warning(f"대진표 재구성 실패: {e}")
                self.warnings.append(str(e))
                self._bracket = Bracket()
        return self._bracket

    @property
    def champion(self) -> Optional[Seed]:
        return self.bracket.champion

    async def create_knockout(self, db) -> Bracket:
        """
        대진표 생성 후 토너먼트 경기로 저장

        Raises:
            BracketError: 조별 리그 미완료, 진출 인원 오류 등으로 대진표를 만들 수 없는 경우
            PersistenceError: 저장 실패
        """
        if not self.tournament.group_stage_completed:
            raise BracketError("조별 리그를 먼저 종료해야 합니다")

        bracket, warnings = self.generate_bracket()
        if bracket.is_empty:
            raise BracketError("; ".join(warnings) or "대진표를 만들 수 없습니다")

        if self.knockout_matches:
            await db.delete_knockout_matches(self.tournament.id)

        records = [m.to_record(self.tournament.id) for m in sorted(
            bracket.matches.values(), key=lambda m: (m.round_number, m.match_number)
        )]
        saved = await db.save_knockout_matches(records)

        self.matches = [m for m in self.matches if not m.is_knockout] + saved
        self._bracket = None
        logger.info(f"토너먼트 경기 {len(saved)}개 저장")
        return self.bracket

    def record_result(
        self,
        match_id: str,
        player1_legs: int,
        player2_legs: int,
        player1_sets: Optional[int] = None,
        player2_sets: Optional[int] = None,
    ) -> Match:
        """점수 기록 (스냅샷만 변경, 토너먼트 경기면 승자 진출까지)"""
        index = next((i for i, m in enumerate(self.matches) if m.id == match_id), None)
        if index is None:
            raise LookupError(f"경기를 찾을 수 없습니다: {match_id}")

        original = self.matches[index]
        if original.is_knockout and original.is_completed:
            logger.debug(f"이미 완료된 토너먼트 경기: {match_id}")
            return original

        scored = score_match(original, player1_legs, player2_legs, player1_sets, player2_sets)
        if scored.is_knockout:
            self._bracket = self.bracket  # 결과 반영 전 대진표 확정
        self.matches[index] = scored
        if scored.is_knockout:
            self._advance(scored)
        return scored

    def _advance(self, scored: Match) -> Optional[str]:
        """토너먼트 경기 결과를 대진표에 반영 → 선수가 바뀐 다음 경기 ID"""
        bracket = self.bracket
        node = bracket.find_by_match_id(scored.id)
        if node is None:
            logger.warning(f"데이터 무결성 경고: 대진표에 없는 토너먼트 경기 {scored.id}")
            return None

        if scored.player1_sets is not None and scored.player2_sets is not None:
            scores = (scored.player1_sets, scored.player2_sets)
        else:
            scores = (scored.player1_legs, scored.player2_legs)
        self._bracket = advance_winner(bracket, node, scored.winner_id, *scores)

        if node.round_number >= self._bracket.total_rounds:
            return None

        next_round, next_number, _ = next_slot(node.round_number, node.match_number)
        target = self._bracket.get(next_round, next_number)
        if target is None or target.match_id is None:
            return None

        player1_id = target.player1.player_id if target.player1 else None
        player2_id = target.player2.player_id if target.player2 else None
        self.matches = [
            m.model_copy(update={"player1_id": player1_id, "player2_id": player2_id})
            if m.id == target.match_id else m
            for m in self.matches
        ]
        return target.match_id

    async def apply_knockout_result(self, db, scored: Match) -> None:
        """저장된 토너먼트 경기 결과 → 다음 경기 선수 배정 저장"""
        self._bracket = self.bracket  # 결과 반영 전 대진표 확정
        self.matches = [scored if m.id == scored.id else m for m in self.matches]
        next_match_id = self._advance(scored)
        if next_match_id is None:
            return

        target = next(m for m in self.matches if m.id == next_match_id)
        await db.update_match_players(target.id, target.player1_id, target.player2_id)

    async def sync_knockout_players(self, db) -> List[str]:
        """
        대진표와 선수 배정이 다른 미완료 토너먼트 경기 저장 → 저장한 경기 ID

        승자 진출 저장이 실패했던 경기를 다시 맞출 때 사용

        Raises:
            PersistenceError: 저장 실패
        """
        bracket = self.bracket
        synced = []
        for match in self.knockout_matches:
            if match.is_completed:
                continue
            node = bracket.find_by_match_id(match.id)
            if node is None:
                continue

            player1_id = node.player1.player_id if node.player1 else None
            player2_id = node.player2.player_id if node.player2 else None
            if (player1_id, player2_id) == (match.player1_id, match.player2_id):
                continue

            await db.update_match_players(match.id, player1_id, player2_id)
            self.matches = [
                m.model_copy(update={"player1_id": player1_id, "player2_id": player2_id})
                if m.id == match.id else m
                for m in self.matches
            ]
            synced.append(match.id)

        if synced:
            logger.info(f"토너먼트 경기 선수 배정 복구: {', '.join(synced)}")
        return synced

    def to_dict(self) -> Dict:
        return {
            "tournament_id": self.tournament.id,
            "standings": {
                letter: [row.to_dict() for row in rows]
                for letter, rows in self.standings().items()
            },
            "bracket": self.bracket.to_dict(),
            "warnings": list(self.warnings),
        }
