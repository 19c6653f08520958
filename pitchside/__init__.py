"""
Pitchside

Match-day substitution and game-clock engine for youth and amateur football:
formation assignment, eligibility-aware substitutions, fair auto-rotation
plans, a two-half game clock and undo history.

A Flask JSON API in ``pitchside.ui`` exposes the engine to a pitch-board UI.
"""
from .models import Player, Category, ClockState, PitchBoardState, SubstitutionEvent
from .services import MatchSession, AutoSubPlanner, GameClock, ServiceFactory
from .ui import create_app, run_web_app
from .utils import fmt_mmss, now_ts, APP_TITLE

__version__ = "1.0.0"

__all__ = [
    "Player", "Category", "ClockState", "PitchBoardState", "SubstitutionEvent",
    "MatchSession", "AutoSubPlanner", "GameClock", "ServiceFactory",
    "create_app", "run_web_app", "fmt_mmss", "now_ts", "APP_TITLE",
]
