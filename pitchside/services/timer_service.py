"""Game clock service for the Pitchside match-day engine."""

import logging
from enum import Enum
from typing import List, Optional

from ..config import ClockConfig
from ..models import ClockState, Player, on_pitch
from ..utils import now_ts

logger = logging.getLogger(__name__)


class ClockEvent(Enum):
    """Transitions reported by ``GameClock.tick``."""
    NONE = "none"
    HALF_TIME = "half_time"
    FULL_TIME = "full_time"


class GameClock:
    """Two-half clock with pause/resume and wall-clock catch-up."""

    def __init__(self, state: Optional[ClockState] = None, config: Optional[ClockConfig] = None):
        self.config = config or ClockConfig()
        self.state = state or ClockState(minutes_per_half=self.config.default_minutes_per_half)

    # ------------------------------------------------------------------
    # Configuration helpers
    # ------------------------------------------------------------------
    def configure(self, minutes_per_half: int) -> int:
        """Set the half length, clamped to the allowed range, and reset the clock.

        Returns:
            The minutes per half actually applied
        """
        minutes = max(self.config.min_minutes_per_half,
                      min(int(minutes_per_half), self.config.max_minutes_per_half))
        self.state = ClockState(minutes_per_half=minutes)
        logger.info("Clock configured for %d minutes per half", minutes)
        return minutes

    # ------------------------------------------------------------------
    # Core clock controls
    # ------------------------------------------------------------------
    def toggle(self) -> bool:
        """Start or pause the clock. Returns whether it is now running."""
        if self.state.finished:
            return False
        self.state.running = not self.state.running
        self.state.last_timestamp = now_ts()
        logger.debug("Clock %s in half %d at %ds",
                     "started" if self.state.running else "paused",
                     self.state.half, self.state.elapsed_seconds)
        return self.state.running

    def tick(self) -> ClockEvent:
        """Advance one second while running and report any half transition."""
        state = self.state
        if not state.running or state.finished:
            return ClockEvent.NONE

        state.elapsed_seconds += 1
        state.last_timestamp = now_ts()
        if state.elapsed_seconds < state.half_seconds:
            return ClockEvent.NONE

        if state.half == 1:
            state.half = 2
            state.elapsed_seconds = 0
            state.running = False
            logger.info("Half time reached")
            return ClockEvent.HALF_TIME

        state.elapsed_seconds = state.half_seconds
        state.running = False
        state.finished = True
        logger.info("Full time reached")
        return ClockEvent.FULL_TIME

    def reset(self) -> None:
        """Return to the start of the first half, keeping the half length."""
        self.state = ClockState(minutes_per_half=self.state.minutes_per_half)

    def catch_up(self, current_ts: Optional[float] = None) -> int:
        """
        Credit wall-clock time that passed while the app was suspended.

        Only a running clock catches up, and never past the end of the
        active half.

        Returns:
            Seconds added to the active half
        """
        state = self.state
        if not state.running or state.finished or state.last_timestamp is None:
            return 0
        current = now_ts() if current_ts is None else current_ts
        gap = int(current - state.last_timestamp)
        if gap <= 0:
            return 0
        added = min(gap, state.half_seconds - state.elapsed_seconds)
        state.elapsed_seconds += added
        state.last_timestamp = current
        if added:
            logger.info("Caught up %ds of suspended match time", added)
        return added

    # ------------------------------------------------------------------
    # Query helpers
    # ------------------------------------------------------------------
    def total_elapsed_seconds(self) -> int:
        return self.state.total_elapsed_seconds()

    def remaining_in_half(self) -> int:
        return max(0, self.state.half_seconds - self.state.elapsed_seconds)


def reconcile_minutes(players: List[Player], last_accounted: Optional[int], current_total: int) -> int:
    """Credit on-pitch players with match time not yet accounted for.

    Returns:
        The seconds credited to each on-pitch player (0 when nothing was owed)
    """
    if last_accounted is None:
        return 0
    delta = current_total - last_accounted
    if delta <= 0:
        return 0
    for player in on_pitch(players):
        player.credit_seconds(delta)
    logger.info("Credited %ds of playing time to on-pitch players", delta)
    return delta
