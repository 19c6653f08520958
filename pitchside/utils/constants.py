"""
Constants for the Pitchside match-day engine.

This module contains configuration constants used throughout the application.
"""

# Application metadata
APP_TITLE = "Pitchside"

# Clock defaults
DEFAULT_MINUTES_PER_HALF = 45
MIN_MINUTES_PER_HALF = 1
MAX_MINUTES_PER_HALF = 60
HALF_COUNT = 2

# Team sizes supported by the formation table
SUPPORTED_TEAM_SIZES = [4, 7, 9, 11]
DEFAULT_TEAM_SIZE = 7

# Auto-substitution planning
MIN_SUB_INTERVAL_SECONDS = 120
ROTATION_SPEEDS = {
    1: "Slow",
    2: "Medium",
    3: "Fast",
}
DEFAULT_ROTATION_SPEED = 2

# Undo history
MAX_UNDO_HISTORY = 10
UNDO_AFFORDANCE_SECONDS = 30

# Ball marker is kept inside the pitch lines (percent)
BALL_MIN = 2.0
BALL_MAX = 98.0

MOCK_PLAYER_NAMES = [
    "Alex Smith", "Jordan Lee", "Casey Brown", "Taylor Wilson", "Morgan Davis",
    "Riley Johnson", "Quinn Anderson", "Avery Thomas", "Cameron White", "Drew Martinez",
    "Jamie Garcia", "Peyton Robinson", "Skyler Clark", "Dakota Lewis", "Reese Walker",
]
