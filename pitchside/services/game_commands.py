"""
Command pattern implementation for roster mutations.

Every command that changes who is on the pitch, or where, runs through
``GameCommandManager`` so the pre-mutation roster is snapshotted first and
can be restored wholesale with ``undo``.
"""
import copy
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional

from ..config import HistoryConfig
from ..models import Player, SubstitutionEvent, find_player
from ..utils import now_ts

logger = logging.getLogger(__name__)


class Command(ABC):
    """Abstract base class for roster commands."""

    @abstractmethod
    def can_execute(self) -> bool:
        """Check the command against the live roster."""
        pass

    @abstractmethod
    def execute(self) -> bool:
        """
        Execute the command.

        Returns:
            True if the roster changed
        """
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Get human-readable description of the command."""
        pass


def _valid_swap_in(players: List[Player], player_out: Player, player_in: Player,
                   partner_id: Optional[str]) -> Optional[Player]:
    """Return the swap partner when ``player_in`` can come on through it."""
    partner = find_player(players, partner_id)
    if (partner is None or partner is player_out or not partner.on_pitch
            or partner.current_category == player_out.current_category):
        return None
    if partner.can_play(player_out.current_category) and player_in.can_play(partner.current_category):
        return partner
    return None


def _perform_substitution(player_out: Player, player_in: Player, partner: Optional[Player]) -> None:
    if partner is None:
        player_in.place(player_out.position, player_out.current_category)
    else:
        vacated_position, vacated_category = player_out.position, player_out.current_category
        player_in.place(partner.position, partner.current_category)
        partner.place(vacated_position, vacated_category)
    player_out.bench()


class SubstitutePlayerCommand(Command):
    """Bring a bench player on for a pitch player, optionally via a swap partner."""

    def __init__(self, players: List[Player], player_out_id: str, player_in_id: str,
                 swap_partner_id: Optional[str] = None):
        self.players = players
        self.player_out_id = player_out_id
        self.player_in_id = player_in_id
        self.swap_partner_id = swap_partner_id

    def _resolve(self):
        player_out = find_player(self.players, self.player_out_id)
        player_in = find_player(self.players, self.player_in_id)
        if player_out is None or player_in is None:
            return None
        if not player_out.on_pitch or player_in.on_pitch or player_in.is_injured:
            return None
        if self.swap_partner_id is None:
            if not player_in.can_play(player_out.current_category):
                return None
            return player_out, player_in, None
        partner = _valid_swap_in(self.players, player_out, player_in, self.swap_partner_id)
        if partner is None:
            return None
        return player_out, player_in, partner

    def can_execute(self) -> bool:
        return self._resolve() is not None

    def execute(self) -> bool:
        resolved = self._resolve()
        if resolved is None:
            return False
        _perform_substitution(*resolved)
        logger.info("Substitution: %s", self.description)
        return True

    @property
    def description(self) -> str:
        player_out = find_player(self.players, self.player_out_id)
        player_in = find_player(self.players, self.player_in_id)
        out_label = player_out.label() if player_out else self.player_out_id
        in_label = player_in.label() if player_in else self.player_in_id
        return f"Substitute {out_label} -> {in_label}"


class SwapPositionsCommand(Command):
    """Exchange the slots of two pitch players."""

    def __init__(self, players: List[Player], first_id: str, second_id: str):
        self.players = players
        self.first_id = first_id
        self.second_id = second_id

    def can_execute(self) -> bool:
        first = find_player(self.players, self.first_id)
        second = find_player(self.players, self.second_id)
        if first is None or second is None or first is second:
            return False
        if not first.on_pitch or not second.on_pitch:
            return False
        return first.can_play(second.current_category) and second.can_play(first.current_category)

    def execute(self) -> bool:
        if not self.can_execute():
            return False
        first = find_player(self.players, self.first_id)
        second = find_player(self.players, self.second_id)
        first_slot = (first.position, first.current_category)
        first.place(second.position, second.current_category)
        second.place(*first_slot)
        logger.info("Position swap: %s", self.description)
        return True

    @property
    def description(self) -> str:
        first = find_player(self.players, self.first_id)
        second = find_player(self.players, self.second_id)
        return (f"Swap {first.label() if first else self.first_id} <-> "
                f"{second.label() if second else self.second_id}")


class ExecuteAutoSubCommand(Command):
    """
    Apply a batch of due auto-substitution events.

    Each event is re-checked against the live roster because it may have
    drifted since planning. Only player state is checked (outgoing on the
    pitch, incoming fit and on the bench); the incoming player takes the slot
    even when the planner paired them across categories. A swap whose partner
    has left the pitch becomes a direct substitution. Events that no longer
    apply are skipped but still marked executed so they never fire again.
    """

    def __init__(self, players: List[Player], events: List[SubstitutionEvent]):
        self.players = players
        self.events = events
        self.applied: List[SubstitutionEvent] = []

    def _resolve(self, event: SubstitutionEvent):
        player_out = find_player(self.players, event.player_out_id)
        player_in = find_player(self.players, event.player_in_id)
        if player_out is None or player_in is None:
            return None
        if not player_out.on_pitch or player_in.on_pitch or player_in.is_injured:
            return None
        if event.position_swap is not None:
            partner = find_player(self.players, event.position_swap.player_id)
            if partner is not None and partner is not player_out and partner.on_pitch:
                return player_out, player_in, partner
        return player_out, player_in, None

    def can_execute(self) -> bool:
        return any(self._resolve(e) is not None for e in self.events if not e.executed)

    def execute(self) -> bool:
        self.applied = []
        for event in self.events:
            if event.executed:
                continue
            resolved = self._resolve(event)
            event.executed = True
            if resolved is None:
                logger.warning("Skipping stale auto-sub %s -> %s",
                               event.player_out_id, event.player_in_id)
                continue
            _perform_substitution(*resolved)
            self.applied.append(event)
        return bool(self.applied)

    @property
    def description(self) -> str:
        if len(self.events) == 1:
            event = self.events[0]
            return SubstitutePlayerCommand(self.players, event.player_out_id, event.player_in_id).description
        return f"Auto-sub ({len(self.events)} substitutions)"


@dataclass
class RosterSnapshot:
    """Deep copy of the roster taken before a mutation."""
    players: List[Player]
    description: str
    timestamp: float


class ActionHistory:
    """Bounded stack of roster snapshots."""

    def __init__(self, config: Optional[HistoryConfig] = None):
        self.config = config or HistoryConfig()
        self._stack: List[RosterSnapshot] = []
        self._last_push_ts: Optional[float] = None
        self.is_undoing = False

    def push(self, players: List[Player], description: str) -> None:
        """Record the roster as it is now, dropping the oldest entry when full."""
        timestamp = now_ts()
        self._stack.append(RosterSnapshot(copy.deepcopy(players), description, timestamp))
        if len(self._stack) > self.config.max_depth:
            self._stack.pop(0)
        self._last_push_ts = timestamp

    def undo(self, players: List[Player],
             on_restore: Optional[Callable[[List[Player]], None]] = None) -> Optional[str]:
        """
        Replace the contents of ``players`` with the latest snapshot.

        ``on_restore`` runs while ``is_undoing`` is set, so listeners can tell a
        restored roster from a fresh user action.

        Returns:
            The undone action's description, or None when there was nothing to undo
        """
        if not self._stack:
            return None
        snapshot = self._stack.pop()
        self.is_undoing = True
        try:
            players[:] = snapshot.players
            if on_restore is not None:
                on_restore(players)
        finally:
            self.is_undoing = False
        logger.info("Undid: %s", snapshot.description)
        return snapshot.description

    def undo_available(self, current_ts: Optional[float] = None) -> bool:
        """Whether the undo affordance should still be shown."""
        if not self._stack or self._last_push_ts is None:
            return False
        current = now_ts() if current_ts is None else current_ts
        return current - self._last_push_ts < self.config.affordance_seconds

    def can_undo(self) -> bool:
        return bool(self._stack)

    def descriptions(self) -> List[str]:
        return [s.description for s in self._stack]

    def clear(self) -> None:
        self._stack.clear()
        self._last_push_ts = None

    def __len__(self) -> int:
        return len(self._stack)


class GameCommandManager:
    """
    Runs roster commands and records undo snapshots for them.

    The snapshot is pushed only when the command is valid, and always before
    the roster is touched.
    """

    def __init__(self, players: List[Player], history: Optional[ActionHistory] = None):
        self.players = players
        self.history = history or ActionHistory()

    def execute_command(self, command: Command) -> bool:
        """
        Execute a command, snapshotting the roster first.

        Returns:
            True if the command changed the roster
        """
        if not command.can_execute():
            logger.debug("Rejected command: %s", command.description)
            return False
        self.history.push(self.players, command.description)
        return command.execute()

    def undo(self, on_restore: Optional[Callable[[List[Player]], None]] = None) -> Optional[str]:
        return self.history.undo(self.players, on_restore)

    def can_undo(self) -> bool:
        return self.history.can_undo()

    def get_command_history(self) -> List[str]:
        return self.history.descriptions()

    def clear_history(self) -> None:
        self.history.clear()
