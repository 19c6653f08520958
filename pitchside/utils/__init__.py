"""
Utilities package for the Pitchside match-day engine.

This package contains constants, time helpers and logging setup.
"""
from .time_utils import fmt_mmss, fmt_match_clock, now_ts
from .constants import (
    APP_TITLE, DEFAULT_MINUTES_PER_HALF, MIN_MINUTES_PER_HALF, MAX_MINUTES_PER_HALF,
    SUPPORTED_TEAM_SIZES, DEFAULT_TEAM_SIZE, MIN_SUB_INTERVAL_SECONDS,
    DEFAULT_ROTATION_SPEED, MAX_UNDO_HISTORY, UNDO_AFFORDANCE_SECONDS
)
from .logging_config import setup_logging

__all__ = [
    "fmt_mmss", "fmt_match_clock", "now_ts", "APP_TITLE", "DEFAULT_MINUTES_PER_HALF",
    "MIN_MINUTES_PER_HALF", "MAX_MINUTES_PER_HALF", "SUPPORTED_TEAM_SIZES",
    "DEFAULT_TEAM_SIZE", "MIN_SUB_INTERVAL_SECONDS", "DEFAULT_ROTATION_SPEED",
    "MAX_UNDO_HISTORY", "UNDO_AFFORDANCE_SECONDS", "setup_logging",
]
