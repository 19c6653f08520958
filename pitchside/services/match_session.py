"""
Match session orchestration.

``MatchSession`` owns one team's live pitch board and game clock and exposes
the operations the presentation layer calls: formation assignment,
eligibility queries, manual and automatic substitutions, the clock, undo,
goals, and the small board features around them. Engine services stay pure;
the session applies their results and persists after each transition.
"""
import functools
import logging
import uuid
from typing import List, Optional, Tuple

from ..config import BoardConfig, PitchSettings
from ..models import (
    Category, ClockState, FormationTemplates, GoalEvent, PitchBoardState, PitchCoordinate,
    Player, PlayerTimeForecast, RestrictedTo, SubstitutionEvent, Unrestricted, find_player,
    on_pitch,
)
from ..utils import DEFAULT_TEAM_SIZE, SUPPORTED_TEAM_SIZES, fmt_match_clock
from ..utils.constants import MOCK_PLAYER_NAMES
from .eligibility_service import EligibilityMatcher, SubstitutionOption
from .formation_service import CategoryChange, FormationService
from .game_commands import (
    ActionHistory, ExecuteAutoSubCommand, GameCommandManager, SubstitutePlayerCommand,
    SwapPositionsCommand,
)
from .notification_service import LoggingNotifier
from .persistence_service import PersistenceService
from .substitution_planner import AutoSubPlanner, due_events, due_message
from .timer_service import ClockEvent, GameClock

logger = logging.getLogger(__name__)


def _mutating(default=None):
    """Turn a session method into a no-op returning ``default`` in read-only mode."""
    def decorator(method):
        @functools.wraps(method)
        def wrapper(self, *args, **kwargs):
            if self.read_only:
                logger.debug("Ignoring %s on read-only board", method.__name__)
                return list(default) if isinstance(default, list) else default
            return method(self, *args, **kwargs)
        return wrapper
    return decorator


class MatchSession:
    """Live match-day state for one team."""

    def __init__(
        self,
        team_id: str = "default",
        players: Optional[List[Player]] = None,
        team_size: int = DEFAULT_TEAM_SIZE,
        settings: Optional[PitchSettings] = None,
        persistence: Optional[PersistenceService] = None,
        notifier=None,
        formation_service: Optional[FormationService] = None,
        matcher: Optional[EligibilityMatcher] = None,
        planner: Optional[AutoSubPlanner] = None,
        clock: Optional[GameClock] = None,
        history: Optional[ActionHistory] = None,
        board_config: Optional[BoardConfig] = None,
        read_only: bool = False,
    ):
        self.settings = settings or PitchSettings()
        self.board = PitchBoardState(team_id=team_id, players=list(players or []), team_size=team_size)
        self.persistence = persistence
        self.notifier = notifier or LoggingNotifier()
        self.formation_service = formation_service or FormationService()
        self.matcher = matcher or EligibilityMatcher()
        self.planner = planner or AutoSubPlanner()
        self.clock = clock or GameClock(ClockState(minutes_per_half=self.settings.minutes_per_half))
        self.commands = GameCommandManager(self.board.players, history)
        self.board_config = board_config or BoardConfig()
        self.read_only = read_only

        self.pending_events: List[SubstitutionEvent] = []
        self.selection_prompt: Optional[str] = None
        self._real_players: Optional[List[Player]] = None
        self._ticks_since_save = 0

    # ------------------------------------------------------------------
    # Convenience accessors
    # ------------------------------------------------------------------
    @property
    def players(self) -> List[Player]:
        return self.board.players

    @property
    def history(self) -> ActionHistory:
        return self.commands.history

    def _replace_roster(self, players: List[Player]) -> None:
        # The command manager holds this list, so it is replaced in place
        self.board.players[:] = players

    # ------------------------------------------------------------------
    # Roster and settings
    # ------------------------------------------------------------------
    @_mutating(default=[])
    def load_roster(self, players: List[Player], team_size: Optional[int] = None) -> List[Player]:
        """Replace the roster (e.g. from the squad loader) and seat it on the current formation."""
        if team_size in SUPPORTED_TEAM_SIZES:
            self.board.team_size = team_size
        self._replace_roster(list(players))
        self.history.clear()
        self.pending_events = []
        return self.assign_formation()

    @_mutating(default=None)
    def update_settings(self, settings: PitchSettings) -> PitchSettings:
        """
        Apply new pitch settings.

        Raises:
            SettingsError: If a value is out of range
        """
        settings.validate()
        minutes_changed = settings.minutes_per_half != self.clock.state.minutes_per_half
        self.settings = settings
        if minutes_changed:
            self.configure_minutes(settings.minutes_per_half)
        self.autosave()
        return self.settings

    # ------------------------------------------------------------------
    # Formation
    # ------------------------------------------------------------------
    @_mutating(default=[])
    def assign_formation(self, formation_index: Optional[int] = None) -> List[Player]:
        """Seat the roster onto the selected formation for the current team size."""
        if formation_index is not None:
            self.board.selected_formation_index = formation_index
        template = FormationTemplates.get(self.board.team_size, self.board.selected_formation_index)
        self._replace_roster(self.formation_service.assign_formation(self.players, template))
        self._refresh_selection_prompt()
        self.autosave()
        return self.players

    @_mutating(default=False)
    def set_team_size(self, team_size: int) -> bool:
        if team_size not in SUPPORTED_TEAM_SIZES:
            return False
        self.board.team_size = team_size
        self.board.selected_formation_index = 0
        self.assign_formation()
        return True

    def preview_formation_change(self, formation_index: int) -> List[CategoryChange]:
        template = FormationTemplates.get(self.board.team_size, formation_index)
        if template is None:
            return []
        return self.formation_service.preview_formation_change(self.players, template)

    @_mutating(default=False)
    def change_formation(self, formation_index: int) -> bool:
        """Switch formation mid-game, keeping pitch players on by slot order."""
        template = FormationTemplates.get(self.board.team_size, formation_index)
        if template is None:
            return False
        self._replace_roster(self.formation_service.apply_formation_change(self.players, template))
        self.board.selected_formation_index = formation_index
        self.autosave()
        return True

    # ------------------------------------------------------------------
    # Eligibility queries
    # ------------------------------------------------------------------
    def valid_bench_candidates(self, pitch_player_id: str) -> List[Player]:
        return self.matcher.valid_bench_candidates(self.players, pitch_player_id)

    def valid_swap_targets(self, pitch_player_id: str) -> List[Player]:
        return self.matcher.valid_swap_targets(self.players, pitch_player_id)

    def movable_pitch_players(self, bench_player_id: str, required_category: Optional[Category],
                              replaced_player_id: Optional[str] = None) -> List[Player]:
        return self.matcher.movable_pitch_players(
            self.players, bench_player_id, required_category, replaced_player_id
        )

    def substitution_options(self, pitch_player_id: str) -> List[SubstitutionOption]:
        return self.matcher.substitution_options(self.players, pitch_player_id)

    # ------------------------------------------------------------------
    # Manual roster changes
    # ------------------------------------------------------------------
    @_mutating(default=False)
    def substitute(self, player_out_id: str, player_in_id: str,
                   swap_partner_id: Optional[str] = None) -> bool:
        """Make a manual substitution; the pre-change roster goes on the undo stack."""
        command = SubstitutePlayerCommand(self.players, player_out_id, player_in_id, swap_partner_id)
        if not self.commands.execute_command(command):
            return False
        if self._has_unexecuted_plan():
            self.recalculate_plan()
        self._refresh_selection_prompt()
        self.autosave()
        return True

    @_mutating(default=False)
    def swap_positions(self, first_id: str, second_id: str) -> bool:
        if not self.commands.execute_command(SwapPositionsCommand(self.players, first_id, second_id)):
            return False
        self.autosave()
        return True

    @_mutating(default=None)
    def push_undo(self, description: str) -> None:
        """Snapshot the roster before a caller-driven change (e.g. a drag)."""
        self.history.push(self.players, description)

    @_mutating(default=None)
    def undo(self) -> Optional[str]:
        """Restore the roster as it was before the latest recorded change."""
        description = self.commands.undo(on_restore=lambda _players: self._refresh_selection_prompt())
        if description is not None:
            self.autosave()
        return description

    def undo_available(self, current_ts: Optional[float] = None) -> bool:
        return self.history.undo_available(current_ts)

    def _refresh_selection_prompt(self) -> None:
        """Point the selection prompt at an injured pitch player needing a replacement."""
        if self.history.is_undoing:
            return
        injured = next((p for p in on_pitch(self.players) if p.is_injured), None)
        self.selection_prompt = injured.id if injured else None

    # ------------------------------------------------------------------
    # Auto-substitution
    # ------------------------------------------------------------------
    def _has_unexecuted_plan(self) -> bool:
        return self.board.auto_sub_active and any(not e.executed for e in self.board.auto_sub_plan)

    @_mutating(default=[])
    def plan_auto_subs(self) -> List[SubstitutionEvent]:
        """Generate a fresh rotation plan and activate auto-subs."""
        plan = self.planner.plan_auto_subs(self.players, self.clock.state, self.settings)
        self.board.auto_sub_plan = plan
        self.board.auto_sub_active = bool(plan)
        self.board.auto_sub_paused = False
        self.pending_events = []
        self.autosave()
        return plan

    @_mutating(default=[])
    def recalculate_plan(self, skipped: Optional[SubstitutionEvent] = None) -> List[SubstitutionEvent]:
        """Discard unexecuted events and plan the rest of the match again."""
        executed = [e for e in self.board.auto_sub_plan if e.executed]
        fresh = self.planner.recalculate_plan(self.players, self.clock.state, self.settings, skipped)
        self.board.auto_sub_plan = executed + fresh
        self.pending_events = []
        self._deactivate_if_consumed()
        self.autosave()
        return fresh

    def forecast(self) -> List[PlayerTimeForecast]:
        return self.planner.forecast(self.players, self.board.auto_sub_plan, self.clock.state)

    @_mutating(default=False)
    def pause_auto_subs(self, paused: bool = True) -> bool:
        if not self.board.auto_sub_active:
            return False
        self.board.auto_sub_paused = paused
        self.autosave()
        return True

    @_mutating(default=None)
    def cancel_auto_subs(self) -> None:
        self.board.auto_sub_plan = []
        self.board.auto_sub_active = False
        self.board.auto_sub_paused = False
        self.pending_events = []
        self.autosave()

    def check_due_subs(self) -> List[SubstitutionEvent]:
        """Find the next due batch and notify about it once."""
        if not self.board.auto_sub_active or self.board.auto_sub_paused or self.pending_events:
            return self.pending_events
        due = due_events(self.board.auto_sub_plan, self.clock.state)
        if due:
            self.pending_events = due
            self.notifier.notify(due_message(due, self.players))
        return self.pending_events

    @_mutating(default=[])
    def confirm_pending(self) -> List[SubstitutionEvent]:
        """Execute the pending batch. Returns the events that actually changed the roster."""
        if not self.pending_events:
            return []
        command = ExecuteAutoSubCommand(self.players, self.pending_events)
        if command.can_execute():
            self.commands.execute_command(command)
        else:
            command.execute()
        self.board.executed_subs.extend(command.applied)
        self.pending_events = []
        self._deactivate_if_consumed()
        self._refresh_selection_prompt()
        self.autosave()
        return command.applied

    @_mutating(default=[])
    def skip_pending(self) -> List[SubstitutionEvent]:
        """Skip the pending batch and re-plan without the skipped pairing."""
        if not self.pending_events:
            return []
        skipped = self.pending_events[0]
        for event in self.pending_events:
            event.executed = True
        self.pending_events = []
        return self.recalculate_plan(skipped=skipped)

    def _deactivate_if_consumed(self) -> None:
        if not self.board.auto_sub_active or any(not e.executed for e in self.board.auto_sub_plan):
            return
        state = self.clock.state
        if state.half == 1 and not state.finished:
            # Second-half rotation is added at half time
            return
        self.board.auto_sub_active = False
        self.board.auto_sub_paused = False
        logger.info("Auto-sub plan complete")

    def _plan_second_half(self) -> None:
        if not self.board.auto_sub_active:
            return
        added = self.planner.plan_second_half(
            self.players, self.clock.state, self.board.auto_sub_plan, self.settings
        )
        if added:
            self.board.auto_sub_plan = sorted(
                self.board.auto_sub_plan + added, key=lambda e: (e.half, e.time)
            )
            logger.info("Planned %d second-half substitutions", len(added))
        self._deactivate_if_consumed()

    # ------------------------------------------------------------------
    # Plan editing
    # ------------------------------------------------------------------
    def _editable_event(self, index: int) -> Optional[SubstitutionEvent]:
        plan = self.board.auto_sub_plan
        if not 0 <= index < len(plan) or plan[index].executed:
            return None
        return plan[index]

    def _event_slot(self, half: int, time: int) -> Optional[Tuple[int, int]]:
        if half not in (1, 2):
            return None
        return half, max(0, min(int(time), self.clock.state.half_seconds))

    def _valid_pairing(self, player_out_id: str, player_in_id: str) -> bool:
        return (player_out_id != player_in_id
                and find_player(self.players, player_out_id) is not None
                and find_player(self.players, player_in_id) is not None)

    def _plan_edited(self, touched: List[SubstitutionEvent]) -> None:
        self.board.auto_sub_plan.sort(key=lambda e: (e.half, e.time))
        if any(p is t for p in self.pending_events for t in touched):
            self.pending_events = []
        self._deactivate_if_consumed()
        self.autosave()

    @_mutating(default=None)
    def add_plan_event(self, player_out_id: str, player_in_id: str, time: int,
                       half: int = 1) -> Optional[SubstitutionEvent]:
        """Schedule a hand-picked substitution; activates auto-subs if needed."""
        slot = self._event_slot(half, time)
        if slot is None or not self._valid_pairing(player_out_id, player_in_id):
            return None
        event = SubstitutionEvent(time=slot[1], half=slot[0],
                                  player_out_id=player_out_id, player_in_id=player_in_id)
        self.board.auto_sub_plan.append(event)
        self.board.auto_sub_active = True
        self._plan_edited([])
        return event

    @_mutating(default=False)
    def update_plan_event(self, index: int, time: Optional[int] = None, half: Optional[int] = None,
                          player_out_id: Optional[str] = None,
                          player_in_id: Optional[str] = None) -> bool:
        """
        Re-time or re-pair an unexecuted event.

        A new pairing drops the event's planned position swap.

        Returns:
            False if the event is executed or missing, or the new values are invalid
        """
        event = self._editable_event(index)
        if event is None:
            return False
        slot = self._event_slot(event.half if half is None else half,
                                event.time if time is None else time)
        out_id = player_out_id or event.player_out_id
        in_id = player_in_id or event.player_in_id
        if slot is None or not self._valid_pairing(out_id, in_id):
            return False
        if (out_id, in_id) != (event.player_out_id, event.player_in_id):
            event.player_out_id, event.player_in_id = out_id, in_id
            event.position_swap = None
        event.half, event.time = slot
        self._plan_edited([event])
        return True

    @_mutating(default=False)
    def delete_plan_event(self, index: int) -> bool:
        event = self._editable_event(index)
        if event is None:
            return False
        self.board.auto_sub_plan.pop(index)
        self._plan_edited([event])
        return True

    @_mutating(default=False)
    def move_plan_event(self, from_index: int, to_index: int) -> bool:
        """
        Reorder unexecuted events.

        The schedule's timestamps stay where they are; the moved event takes
        the slot at ``to_index`` and the events in between shift by one slot.
        """
        plan = self.board.auto_sub_plan
        open_indexes = [i for i, e in enumerate(plan) if not e.executed]
        if from_index not in open_indexes or to_index not in open_indexes:
            return False
        if from_index == to_index:
            return True
        slots = [(plan[i].half, plan[i].time) for i in open_indexes]
        events = [plan[i] for i in open_indexes]
        moved = events.pop(open_indexes.index(from_index))
        events.insert(open_indexes.index(to_index), moved)

        touched = []
        for event, (half, time) in zip(events, slots):
            if (event.half, event.time) != (half, time):
                event.half, event.time = half, time
                touched.append(event)
        for position, event in zip(open_indexes, events):
            plan[position] = event
        self._plan_edited(touched)
        return True

    # ------------------------------------------------------------------
    # Clock
    # ------------------------------------------------------------------
    @_mutating(default=ClockEvent.NONE)
    def tick(self) -> ClockEvent:
        """Process one second of the periodic tick."""
        was_running = self.clock.state.running
        event = self.clock.tick()
        if not was_running:
            return event

        for player in on_pitch(self.players):
            player.credit_seconds(1)
        self.board.last_timer_seconds = self.clock.total_elapsed_seconds()

        if event == ClockEvent.HALF_TIME:
            self._plan_second_half()
        self.check_due_subs()
        self._ticks_since_save += 1
        if event != ClockEvent.NONE or self._ticks_since_save >= self.board_config.autosave_every_ticks:
            self.autosave()
        return event

    @_mutating(default=False)
    def toggle(self) -> bool:
        running = self.clock.toggle()
        if self.board.last_timer_seconds is None:
            self.board.last_timer_seconds = self.clock.total_elapsed_seconds()
        self.autosave()
        return running

    @_mutating(default=None)
    def reset(self) -> None:
        """Start the match over: clock, plan, goals, undo history and playing time."""
        self.clock.reset()
        self.history.clear()
        self.board.auto_sub_plan = []
        self.board.auto_sub_active = False
        self.board.auto_sub_paused = False
        self.board.goals = []
        self.board.executed_subs = []
        self.board.last_timer_seconds = 0
        self.pending_events = []
        for player in self.players:
            player.minutes_played = 0
        self.autosave()

    @_mutating(default=None)
    def configure_minutes(self, minutes_per_half: int) -> int:
        """Change the half length; the match starts over."""
        self.reset()
        minutes = self.clock.configure(minutes_per_half)
        self.settings.minutes_per_half = minutes
        self.autosave()
        return minutes

    # ------------------------------------------------------------------
    # Goals
    # ------------------------------------------------------------------
    @_mutating(default=None)
    def record_goal(self, scorer_id: Optional[str] = None, is_opponent_goal: bool = False) -> GoalEvent:
        state = self.clock.state
        goal = GoalEvent(
            time=state.elapsed_seconds,
            half=state.half,
            is_opponent_goal=is_opponent_goal,
            scorer_id=None if is_opponent_goal else scorer_id,
        )
        self.board.goals.append(goal)
        self.autosave()
        return goal

    @_mutating(default=False)
    def remove_goal(self, goal_id: str) -> bool:
        remaining = [g for g in self.board.goals if g.id != goal_id]
        if len(remaining) == len(self.board.goals):
            return False
        self.board.goals = remaining
        self.autosave()
        return True

    def score(self) -> Tuple[int, int]:
        """(team goals, opponent goals)."""
        opponent = sum(1 for g in self.board.goals if g.is_opponent_goal)
        return len(self.board.goals) - opponent, opponent

    # ------------------------------------------------------------------
    # Injuries and fill-ins
    # ------------------------------------------------------------------
    @_mutating(default=False)
    def toggle_injury(self, player_id: str) -> bool:
        """Flip a player's injury flag. Returns the new flag."""
        player = find_player(self.players, player_id)
        if player is None:
            return False
        player.is_injured = not player.is_injured
        if player.is_injured and any(
            not e.executed and e.player_in_id == player.id for e in self.board.auto_sub_plan
        ):
            self.recalculate_plan()
        self._refresh_selection_prompt()
        self.autosave()
        return player.is_injured

    @_mutating(default=None)
    def add_fill_in(self, name: str, categories: Optional[List[Category]] = None,
                    number: Optional[int] = None) -> Player:
        """Add a temporary player to the bench for this match."""
        eligibility = RestrictedTo(frozenset(categories)) if categories else Unrestricted()
        player = Player(
            id=f"fill-in-{uuid.uuid4().hex[:8]}",
            name=name,
            number=number,
            eligibility=eligibility,
            is_fill_in=True,
        )
        self.players.append(player)
        self.autosave()
        return player

    @_mutating(default=False)
    def remove_fill_in(self, player_id: str) -> bool:
        player = find_player(self.players, player_id)
        if player is None or not player.is_fill_in or player.on_pitch:
            return False
        self.players.remove(player)
        self.autosave()
        return True

    # ------------------------------------------------------------------
    # Board extras
    # ------------------------------------------------------------------
    @_mutating(default=None)
    def move_ball(self, x: float, y: float) -> PitchCoordinate:
        low, high = self.board_config.ball_min, self.board_config.ball_max
        self.board.ball_position = PitchCoordinate(
            x=max(low, min(float(x), high)),
            y=max(low, min(float(y), high)),
        )
        self.autosave()
        return self.board.ball_position

    @_mutating(default=None)
    def enable_mock_mode(self, count: Optional[int] = None) -> List[Player]:
        """Swap in a generated roster for practice; the real roster is kept aside."""
        if not self.board.mock_mode:
            self._real_players = list(self.players)
        size = count if count is not None else self.board.team_size + 3
        mock = [
            Player(id=f"mock-{idx + 1}", name=MOCK_PLAYER_NAMES[idx % len(MOCK_PLAYER_NAMES)],
                   number=idx + 1)
            for idx in range(max(0, size))
        ]
        self._replace_roster(mock)
        self.board.mock_mode = True
        self.history.clear()
        return self.assign_formation()

    @_mutating(default=None)
    def disable_mock_mode(self) -> None:
        if not self.board.mock_mode:
            return
        self._replace_roster(self._real_players or [])
        self._real_players = None
        self.board.mock_mode = False
        self.history.clear()
        self.autosave()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def autosave(self) -> None:
        """Fire-and-forget save of board and clock."""
        self._ticks_since_save = 0
        if self.persistence is None or self.read_only:
            return
        self.persistence.save_board(self.board)
        self.persistence.save_clock(self.board.team_id, self.clock.state)

    def load(self, current_ts: Optional[float] = None) -> bool:
        """Restore saved state, reconciling time that passed while away."""
        if self.persistence is None:
            return False
        board, clock = self.persistence.restore(self.board.team_id, current_ts)
        if clock is not None:
            self.clock = clock
            self.settings.minutes_per_half = clock.state.minutes_per_half
        if board is None:
            return False
        players = board.players
        board.players = self.board.players
        self.board = board
        self._replace_roster(players)
        self.pending_events = []
        self.history.clear()
        self._refresh_selection_prompt()
        return True

    def to_dict(self) -> dict:
        """Snapshot for the presentation layer."""
        team, opponent = self.score()
        return {
            "board": self.board.to_json(),
            "clock": self.clock.state.to_json(),
            "phase": self.clock.state.phase.value,
            "clock_display": fmt_match_clock(
                self.clock.state.half, self.clock.state.elapsed_seconds, self.clock.state.half_seconds
            ),
            "settings": self.settings.to_dict(),
            "pending_events": [e.to_dict() for e in self.pending_events],
            "pending_message": due_message(self.pending_events, self.players),
            "undo_available": self.undo_available(),
            "selection_prompt": self.selection_prompt,
            "score": {"team": team, "opponent": opponent},
            "read_only": self.read_only,
        }
