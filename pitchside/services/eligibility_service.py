"""
Eligibility queries for substitutions and swaps.

Every query is recomputed from the roster it is given and never mutates it.
Unrestricted players satisfy any category test in both directions.
"""
from dataclasses import dataclass
from typing import List, Optional

from ..models import Category, Player, find_player, on_bench, on_pitch


@dataclass(frozen=True)
class SubstitutionOption:
    """One way of bringing ``bench_player`` on for a selected pitch player.

    ``kind`` is ``"direct"`` or ``"swap"``; for swaps ``swap_player`` moves into
    the vacated category and the bench player takes the swap player's slot.
    """
    bench_player: Player
    kind: str
    swap_player: Optional[Player] = None

    def describe(self, required: Category) -> str:
        if self.kind == "direct":
            return f"{self.bench_player.label()} takes {required.value} position"
        swap = self.swap_player
        return (
            f"{swap.label()} moves to {required.value}, "
            f"{self.bench_player.label()} takes {swap.current_category.value}"
        )


class EligibilityMatcher:
    """Pure eligibility queries over a roster."""

    @staticmethod
    def _can_cover_by_move(mover: Player, incoming: Player, required: Category) -> bool:
        """``mover`` can vacate into ``required`` and ``incoming`` can take the mover's category."""
        return (
            mover.current_category is not None
            and mover.current_category != required
            and mover.can_play(required)
            and incoming.can_play(mover.current_category)
        )

    def valid_bench_candidates(self, players: List[Player], pitch_player_id: str) -> List[Player]:
        """
        Bench players who could replace ``pitch_player_id``.

        A candidate either fits the pitch player's category directly, or some
        other pitch player can move into that category while the candidate
        takes theirs. Injured players are never candidates.

        Returns:
            Candidates in roster order; empty for unknown or benched players
        """
        pitch_player = find_player(players, pitch_player_id)
        if pitch_player is None or not pitch_player.on_pitch:
            return []

        required = pitch_player.current_category
        others = [p for p in on_pitch(players) if p.id != pitch_player.id]
        candidates = []
        for bench_player in on_bench(players):
            if bench_player.is_injured:
                continue
            if bench_player.can_play(required):
                candidates.append(bench_player)
            elif any(self._can_cover_by_move(o, bench_player, required) for o in others):
                candidates.append(bench_player)
        return candidates

    def valid_swap_targets(self, players: List[Player], selected_pitch_id: str) -> List[Player]:
        """Pitch players who can trade categories with the selected pitch player."""
        selected = find_player(players, selected_pitch_id)
        if selected is None or not selected.on_pitch:
            return []

        return [
            other for other in on_pitch(players)
            if other.id != selected.id
            and selected.can_play(other.current_category)
            and other.can_play(selected.current_category)
        ]

    def movable_pitch_players(
        self,
        players: List[Player],
        bench_player_id: str,
        required_category: Optional[Category],
        replaced_player_id: Optional[str] = None,
    ) -> List[Player]:
        """
        Pitch players who could move into ``required_category`` so the bench
        player can come on in their place.

        Nobody needs to move when the bench player fits the category directly,
        so that case returns an empty list.
        """
        bench_player = find_player(players, bench_player_id)
        if bench_player is None or bench_player.on_pitch or required_category is None:
            return []
        if bench_player.can_play(required_category):
            return []

        return [
            other for other in on_pitch(players)
            if other.id != replaced_player_id
            and self._can_cover_by_move(other, bench_player, required_category)
        ]

    def substitution_options(self, players: List[Player], pitch_player_id: str) -> List[SubstitutionOption]:
        """Every direct and swap-enabled option for replacing a pitch player."""
        pitch_player = find_player(players, pitch_player_id)
        if pitch_player is None or not pitch_player.on_pitch:
            return []

        required = pitch_player.current_category
        others = [p for p in on_pitch(players) if p.id != pitch_player.id]
        options: List[SubstitutionOption] = []
        for bench_player in on_bench(players):
            if bench_player.is_injured:
                continue
            if bench_player.can_play(required):
                options.append(SubstitutionOption(bench_player, "direct"))
                continue
            for other in others:
                if self._can_cover_by_move(other, bench_player, required):
                    options.append(SubstitutionOption(bench_player, "swap", other))
        return options
