"""Central configuration for the match-day engine."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from .utils.constants import (
    BALL_MAX, BALL_MIN, DEFAULT_MINUTES_PER_HALF, DEFAULT_ROTATION_SPEED,
    MAX_MINUTES_PER_HALF, MAX_UNDO_HISTORY, MIN_MINUTES_PER_HALF,
    MIN_SUB_INTERVAL_SECONDS, ROTATION_SPEEDS, UNDO_AFFORDANCE_SECONDS,
)

logger = logging.getLogger(__name__)


class PitchsideError(Exception):
    """Base class for configuration and programming errors."""
    pass


class SettingsError(PitchsideError, ValueError):
    """Raised when pitch settings are outside their allowed range."""
    pass


# ---------------------------------------------------------------------------
# Engine constants
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class PlannerConfig:
    min_sub_interval_seconds: int = MIN_SUB_INTERVAL_SECONDS


@dataclass(frozen=True)
class ClockConfig:
    default_minutes_per_half: int = DEFAULT_MINUTES_PER_HALF
    min_minutes_per_half: int = MIN_MINUTES_PER_HALF
    max_minutes_per_half: int = MAX_MINUTES_PER_HALF


@dataclass(frozen=True)
class HistoryConfig:
    max_depth: int = MAX_UNDO_HISTORY
    affordance_seconds: int = UNDO_AFFORDANCE_SECONDS


@dataclass(frozen=True)
class BoardConfig:
    ball_min: float = BALL_MIN
    ball_max: float = BALL_MAX
    autosave_every_ticks: int = 10


# ---------------------------------------------------------------------------
# Per-team settings
# ---------------------------------------------------------------------------
@dataclass
class PitchSettings:
    """Coach-adjustable settings for a team's pitch board."""
    minutes_per_half: int = DEFAULT_MINUTES_PER_HALF
    rotation_speed: int = DEFAULT_ROTATION_SPEED
    disable_position_swaps: bool = False
    disable_batch_subs: bool = False

    def validate(self) -> None:
        """
        Check the settings are usable.

        Raises:
            SettingsError: If a value is out of range
        """
        if not MIN_MINUTES_PER_HALF <= self.minutes_per_half <= MAX_MINUTES_PER_HALF:
            raise SettingsError(
                f"minutes_per_half must be between {MIN_MINUTES_PER_HALF} and {MAX_MINUTES_PER_HALF}"
            )
        if self.rotation_speed not in ROTATION_SPEEDS:
            raise SettingsError("rotation_speed must be 1 (slow), 2 (medium) or 3 (fast)")

    def batch_size(self, bench_count: int) -> int:
        """How many substitutions may share one timestamp."""
        if self.disable_batch_subs or bench_count < 2:
            return 1
        return max(1, min(self.rotation_speed, bench_count))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "minutes_per_half": self.minutes_per_half,
            "rotation_speed": self.rotation_speed,
            "disable_position_swaps": self.disable_position_swaps,
            "disable_batch_subs": self.disable_batch_subs,
        }

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> PitchSettings:
        if not data:
            return cls()
        return cls(
            minutes_per_half=int(data.get("minutes_per_half", DEFAULT_MINUTES_PER_HALF)),
            rotation_speed=int(data.get("rotation_speed", DEFAULT_ROTATION_SPEED)),
            disable_position_swaps=bool(data.get("disable_position_swaps", False)),
            disable_batch_subs=bool(data.get("disable_batch_subs", False)),
        )


def _env_flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


def load_settings_from_env(environ: Optional[Mapping[str, str]] = None) -> PitchSettings:
    """Read ``PITCHSIDE_*`` variables; invalid values fall back to defaults."""
    env = os.environ if environ is None else environ
    settings = PitchSettings(
        disable_position_swaps=_env_flag(env.get("PITCHSIDE_DISABLE_POSITION_SWAPS")),
        disable_batch_subs=_env_flag(env.get("PITCHSIDE_DISABLE_BATCH_SUBS")),
    )
    for attr, key in (("minutes_per_half", "PITCHSIDE_MINUTES_PER_HALF"),
                      ("rotation_speed", "PITCHSIDE_ROTATION_SPEED")):
        raw = env.get(key)
        if raw is None:
            continue
        try:
            setattr(settings, attr, int(raw))
        except ValueError:
            logger.warning("Ignoring non-integer %s=%r", key, raw)
    try:
        settings.validate()
    except SettingsError as exc:
        logger.warning("Invalid pitch settings from environment (%s); using defaults", exc)
        return PitchSettings()
    return settings
