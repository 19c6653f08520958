"""
Persistence service for the Pitchside match-day engine.

Board and clock state are stored as opaque key -> record blobs. Writes are
fire-and-forget: a failed save is logged and never interrupts the match.
"""
import json
import logging
import os
from typing import Dict, Optional, Tuple

from ..models import ClockState, PitchBoardState
from ..utils import now_ts
from .timer_service import GameClock, reconcile_minutes

logger = logging.getLogger(__name__)


class InMemoryStore:
    """Dictionary-backed store, used by tests and the web app's default session."""

    def __init__(self):
        self._records: Dict[str, dict] = {}

    def read(self, key: str) -> Optional[dict]:
        record = self._records.get(key)
        return json.loads(json.dumps(record)) if record is not None else None

    def write(self, key: str, record: dict) -> None:
        self._records[key] = json.loads(json.dumps(record))

    def delete(self, key: str) -> None:
        self._records.pop(key, None)


class JsonFileStore:
    """One JSON file per key inside ``directory``."""

    def __init__(self, directory: str):
        self.directory = directory

    def _path(self, key: str) -> str:
        safe = "".join(c if c.isalnum() or c in "-_" else "_" for c in key)
        return os.path.join(self.directory, f"{safe}.json")

    def read(self, key: str) -> Optional[dict]:
        """
        Read a record.

        Raises:
            json.JSONDecodeError: If the file contains invalid JSON
            OSError: If the file cannot be read
        """
        path = self._path(key)
        if not os.path.exists(path):
            return None
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    def write(self, key: str, record: dict) -> None:
        if self.directory and not os.path.exists(self.directory):
            os.makedirs(self.directory)
        with open(self._path(key), "w", encoding="utf-8") as f:
            json.dump(record, f, indent=2)

    def delete(self, key: str) -> None:
        path = self._path(key)
        if os.path.exists(path):
            os.remove(path)


class PersistenceService:
    """Save and restore a team's pitch board and clock."""

    def __init__(self, store=None):
        self.store = store if store is not None else InMemoryStore()

    @staticmethod
    def board_key(team_id: str) -> str:
        return f"pitch_board_{team_id}"

    @staticmethod
    def clock_key(team_id: str) -> str:
        return f"game_timer_{team_id}"

    def save_board(self, board: PitchBoardState) -> bool:
        """
        Write the board, stamping ``last_update_time``.

        Returns:
            True on success, False if the store rejected the write
        """
        board.last_update_time = now_ts()
        try:
            self.store.write(self.board_key(board.team_id), board.to_json())
            return True
        except (OSError, TypeError, ValueError) as exc:
            logger.warning("Could not save pitch board for %s: %s", board.team_id, exc)
            return False

    def save_clock(self, team_id: str, clock: ClockState) -> bool:
        try:
            self.store.write(self.clock_key(team_id), clock.to_json())
            return True
        except (OSError, TypeError, ValueError) as exc:
            logger.warning("Could not save clock for %s: %s", team_id, exc)
            return False

    def load_board(self, team_id: str) -> Optional[PitchBoardState]:
        """Load a board; a missing or corrupt record yields None."""
        try:
            data = self.store.read(self.board_key(team_id))
            if data is None:
                return None
            return PitchBoardState.from_json(data)
        except (OSError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Discarding unreadable pitch board for %s: %s", team_id, exc)
            return None

    def load_clock(self, team_id: str) -> Optional[ClockState]:
        try:
            data = self.store.read(self.clock_key(team_id))
            if data is None:
                return None
            return ClockState.from_json(data)
        except (OSError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Discarding unreadable clock for %s: %s", team_id, exc)
            return None

    def restore(self, team_id: str, current_ts: Optional[float] = None
                ) -> Tuple[Optional[PitchBoardState], Optional[GameClock]]:
        """
        Load board and clock and reconcile the time that passed while away.

        A running clock catches up to the present (never past the end of its
        half), then on-pitch players are credited with any match time beyond
        the board's ``last_timer_seconds`` marker.

        Either half of the result is None when nothing usable was saved.
        """
        saved_clock = self.load_clock(team_id)
        clock = GameClock(saved_clock) if saved_clock is not None else None
        if clock is not None:
            clock.catch_up(current_ts)
        board = self.load_board(team_id)
        if board is not None and clock is not None:
            total = clock.total_elapsed_seconds()
            reconcile_minutes(board.players, board.last_timer_seconds, total)
            board.last_timer_seconds = total
        return board, clock

    def clear(self, team_id: str) -> None:
        self.store.delete(self.board_key(team_id))
        self.store.delete(self.clock_key(team_id))
