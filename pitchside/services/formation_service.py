"""
Formation assignment for the pitch board.

Seats a roster onto a formation's slots in three greedy passes (specialists,
multi-category players, unrestricted players). A placement is never revisited,
so the result depends on roster order.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Optional

from ..models import Category, FormationTemplate, Player, RestrictedTo, Slot, Unrestricted

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CategoryChange:
    """A pitch player whose category would change under a new formation."""
    player_id: str
    from_category: Category
    to_category: Category


class FormationService:
    """Maps rosters onto formation templates."""

    def assign_formation(self, players: List[Player], template: Optional[FormationTemplate]) -> List[Player]:
        """
        Seat ``players`` onto ``template``.

        Args:
            players: Roster in priority order
            template: Formation to fill; None or an empty template benches everyone

        Returns:
            New roster (copies, original order) with assigned players placed
            and everyone else benched
        """
        slots: List[Slot] = list(template.slots) if template else []
        taken: Dict[int, str] = {}  # slot index -> player id
        placed: Dict[str, Slot] = {}

        def claim(player: Player, predicate) -> None:
            for idx, slot in enumerate(slots):
                if idx not in taken and predicate(slot):
                    taken[idx] = player.id
                    placed[player.id] = slot
                    return

        # Pass 1: specialists go to the first open slot of their only category
        for player in players:
            if player.eligibility.is_specialist:
                (only,) = tuple(player.eligibility.categories)
                claim(player, lambda slot, c=only: slot.category == c)

        # Pass 2: multi-category players
        for player in players:
            eligibility = player.eligibility
            if player.id in placed or not isinstance(eligibility, RestrictedTo):
                continue
            if len(eligibility.categories) > 1:
                claim(player, lambda slot, e=eligibility: e.allows(slot.category))

        # Pass 3: unrestricted players fill whatever is left
        for player in players:
            if player.id not in placed and isinstance(player.eligibility, Unrestricted):
                claim(player, lambda slot: True)

        result: List[Player] = []
        for player in players:
            copy = replace(player)
            slot = placed.get(player.id)
            if slot is not None:
                copy.place(slot.coordinate, slot.category)
            else:
                copy.bench()
            result.append(copy)

        logger.debug(
            "Assigned %d of %d players to %s",
            len(placed), len(players), template.name if template else "no formation",
        )
        return result

    @staticmethod
    def _reseat_order(players: List[Player]) -> List[Player]:
        return [p for p in players if p.on_pitch] + [p for p in players if not p.on_pitch]

    def preview_formation_change(self, players: List[Player],
                                 template: FormationTemplate) -> List[CategoryChange]:
        """List the category changes ``apply_formation_change`` would cause."""
        changes: List[CategoryChange] = []
        for player, slot in zip(self._reseat_order(players), template.slots):
            if player.current_category and player.current_category != slot.category:
                changes.append(CategoryChange(player.id, player.current_category, slot.category))
        return changes

    def apply_formation_change(self, players: List[Player], template: FormationTemplate) -> List[Player]:
        """
        Switch formation mid-game by slot index.

        Current pitch players keep priority and take slots in order, then bench
        players fill any remaining slots. Eligibility is not checked here; the
        coach confirms the preview first.
        """
        order = self._reseat_order(players)
        seats = {player.id: slot for player, slot in zip(order, template.slots)}
        result = []
        for player in players:
            copy = replace(player)
            slot = seats.get(player.id)
            if slot is not None:
                copy.place(slot.coordinate, slot.category)
            else:
                copy.bench()
            result.append(copy)
        return result
