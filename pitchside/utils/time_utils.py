"""
Time helpers for the Pitchside match-day engine.

The engine reads the wall clock only through ``now_ts`` so tests can patch it.
"""
import time


def fmt_mmss(seconds: int) -> str:
    """
    Format seconds as MM:SS string.

    Example:
        >>> fmt_mmss(90)
        '01:30'
        >>> fmt_mmss(3661)
        '61:01'
    """
    seconds = max(0, int(seconds))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


def fmt_match_clock(half: int, elapsed_seconds: int, half_seconds: int) -> str:
    """Format the running match clock, counting on from the first half in half two."""
    if half == 2:
        return fmt_mmss(half_seconds + elapsed_seconds)
    return fmt_mmss(elapsed_seconds)


def now_ts() -> float:
    """Current wall-clock time in epoch seconds."""
    return time.time()
