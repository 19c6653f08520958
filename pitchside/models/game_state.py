"""
Game state models for the Pitchside match-day engine.

This module contains the ClockState dataclass tracked by the game clock and
the PitchBoardState blob that is handed to the storage collaborator.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .match_events import GoalEvent, SubstitutionEvent
from .player import PitchCoordinate, Player
from ..utils import DEFAULT_MINUTES_PER_HALF, DEFAULT_TEAM_SIZE


class ClockPhase(Enum):
    """States of the two-half game clock."""
    HALF1_RUNNING = "half1_running"
    HALF1_PAUSED = "half1_paused"
    HALF2_RUNNING = "half2_running"
    HALF2_PAUSED = "half2_paused"
    FINISHED = "finished"


@dataclass
class ClockState:
    """
    Represents the game clock.

    Attributes:
        minutes_per_half: Length of each half in minutes
        half: Active half (1 or 2)
        elapsed_seconds: Seconds elapsed in the active half
        running: Whether the clock is ticking
        finished: Set once the second half reaches full time
        last_timestamp: Wall-clock epoch seconds of the last transition/tick
    """
    minutes_per_half: int = DEFAULT_MINUTES_PER_HALF
    half: int = 1
    elapsed_seconds: int = 0
    running: bool = False
    finished: bool = False
    last_timestamp: Optional[float] = None

    @property
    def half_seconds(self) -> int:
        return self.minutes_per_half * 60

    @property
    def phase(self) -> ClockPhase:
        if self.finished:
            return ClockPhase.FINISHED
        if self.half == 1:
            return ClockPhase.HALF1_RUNNING if self.running else ClockPhase.HALF1_PAUSED
        return ClockPhase.HALF2_RUNNING if self.running else ClockPhase.HALF2_PAUSED

    def total_elapsed_seconds(self) -> int:
        """Seconds elapsed across the whole match."""
        if self.half == 2:
            return self.half_seconds + self.elapsed_seconds
        return self.elapsed_seconds

    def to_json(self) -> dict:
        return {
            "minutes_per_half": self.minutes_per_half,
            "half": self.half,
            "elapsed_seconds": self.elapsed_seconds,
            "running": self.running,
            "finished": self.finished,
            "last_timestamp": self.last_timestamp,
        }

    @staticmethod
    def from_json(data: dict) -> "ClockState":
        state = ClockState()
        state.minutes_per_half = max(1, int(data.get("minutes_per_half", DEFAULT_MINUTES_PER_HALF)))
        state.half = 2 if int(data.get("half", 1)) == 2 else 1
        state.elapsed_seconds = max(0, min(int(data.get("elapsed_seconds", 0)), state.half_seconds))
        state.running = bool(data.get("running", False))
        state.finished = bool(data.get("finished", False))
        if state.finished:
            state.running = False
        state.last_timestamp = data.get("last_timestamp")
        return state


@dataclass
class PitchBoardState:
    """
    Everything the pitch board persists between sessions.

    ``last_timer_seconds`` is the whole-match elapsed total that player minutes
    were last accounted up to; the loader credits on-pitch players with any
    positive difference to the current total.
    """
    team_id: str = ""
    players: List[Player] = field(default_factory=list)
    team_size: int = DEFAULT_TEAM_SIZE
    selected_formation_index: int = 0
    ball_position: PitchCoordinate = field(default_factory=lambda: PitchCoordinate(50.0, 50.0))
    auto_sub_plan: List[SubstitutionEvent] = field(default_factory=list)
    auto_sub_active: bool = False
    auto_sub_paused: bool = False
    mock_mode: bool = False
    linked_event_id: Optional[str] = None
    goals: List[GoalEvent] = field(default_factory=list)
    executed_subs: List[SubstitutionEvent] = field(default_factory=list)
    last_update_time: Optional[float] = None
    last_timer_seconds: Optional[int] = None

    def to_json(self) -> Dict:
        """
        Convert the board to a JSON-serializable dictionary.

        Returns:
            Dictionary representation suitable for JSON serialization
        """
        return {
            "team_id": self.team_id,
            "players": [p.to_dict() for p in self.players],
            "team_size": self.team_size,
            "selected_formation_index": self.selected_formation_index,
            "ball_position": self.ball_position.to_dict(),
            "auto_sub_plan": [e.to_dict() for e in self.auto_sub_plan],
            "auto_sub_active": self.auto_sub_active,
            "auto_sub_paused": self.auto_sub_paused,
            "mock_mode": self.mock_mode,
            "linked_event_id": self.linked_event_id,
            "goals": [g.to_dict() for g in self.goals],
            "executed_subs": [e.to_dict() for e in self.executed_subs],
            "last_update_time": self.last_update_time,
            "last_timer_seconds": self.last_timer_seconds,
        }

    @staticmethod
    def from_json(data: dict) -> "PitchBoardState":
        """
        Create a PitchBoardState from its JSON dictionary.

        Raises:
            KeyError, TypeError, ValueError: If a nested record is malformed
        """
        state = PitchBoardState()
        state.team_id = str(data.get("team_id", ""))
        state.players = [Player.from_dict(p) for p in data.get("players", []) or []]
        state.team_size = int(data.get("team_size", DEFAULT_TEAM_SIZE))
        state.selected_formation_index = int(data.get("selected_formation_index", 0))
        state.ball_position = (
            PitchCoordinate.from_dict(data.get("ball_position")) or PitchCoordinate(50.0, 50.0)
        )
        state.auto_sub_plan = [
            SubstitutionEvent.from_dict(e) for e in data.get("auto_sub_plan", []) or []
        ]
        state.auto_sub_active = bool(data.get("auto_sub_active", False))
        state.auto_sub_paused = bool(data.get("auto_sub_paused", False))
        state.mock_mode = bool(data.get("mock_mode", False))
        state.linked_event_id = data.get("linked_event_id")
        state.goals = [GoalEvent.from_dict(g) for g in data.get("goals", []) or []]
        state.executed_subs = [
            SubstitutionEvent.from_dict(e) for e in data.get("executed_subs", []) or []
        ]
        state.last_update_time = data.get("last_update_time")
        last_timer = data.get("last_timer_seconds")
        state.last_timer_seconds = int(last_timer) if last_timer is not None else None
        return state
