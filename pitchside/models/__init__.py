"""
Models package for the Pitchside match-day engine.

This package contains the core data models used throughout the application.
"""
from .player import (
    Category, Eligibility, Unrestricted, RestrictedTo,
    restricted_to, PitchCoordinate, Player, on_pitch, on_bench, find_player
)
from .formation import Slot, FormationTemplate, FormationTemplates, category_from_coords
from .match_events import PositionSwap, SubstitutionEvent, GoalEvent
from .game_state import ClockPhase, ClockState, PitchBoardState
from .match_report import PlayerTimeForecast

__all__ = [
    "Category", "Eligibility", "Unrestricted", "RestrictedTo",
    "restricted_to", "PitchCoordinate", "Player", "on_pitch", "on_bench", "find_player",
    "Slot", "FormationTemplate", "FormationTemplates", "category_from_coords",
    "PositionSwap", "SubstitutionEvent", "GoalEvent",
    "ClockPhase", "ClockState", "PitchBoardState", "PlayerTimeForecast",
]
