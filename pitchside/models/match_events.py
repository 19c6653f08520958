"""Substitution and goal events recorded during a match."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import uuid

from .player import Category


@dataclass(frozen=True)
class PositionSwap:
    """A pitch player moving category so an incoming player fits elsewhere."""
    player_id: str
    from_category: Category
    to_category: Category

    def to_dict(self) -> Dict[str, Any]:
        return {
            "player_id": self.player_id,
            "from_category": self.from_category.value,
            "to_category": self.to_category.value,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["PositionSwap"]:
        if not data:
            return None
        from_category = Category.parse(data.get("from_category"))
        to_category = Category.parse(data.get("to_category"))
        if from_category is None or to_category is None:
            return None
        return cls(str(data["player_id"]), from_category, to_category)


@dataclass
class SubstitutionEvent:
    """
    A planned substitution.

    Attributes:
        time: Seconds into ``half`` at which the substitution is due
        half: 1 or 2
        player_out_id: Player expected on the pitch when the event fires
        player_in_id: Player expected on the bench when the event fires
        position_swap: Optional category move for another pitch player
        executed: True once consumed, whether or not the roster changed
    """
    time: int
    half: int
    player_out_id: str
    player_in_id: str
    position_swap: Optional[PositionSwap] = None
    executed: bool = False

    @property
    def key(self) -> str:
        """Identity used to match events across plan copies."""
        return f"{self.half}-{self.time}-{self.player_out_id}"

    def is_halftime_event(self) -> bool:
        return self.half == 2 and self.time == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "time": self.time,
            "half": self.half,
            "player_out_id": self.player_out_id,
            "player_in_id": self.player_in_id,
            "position_swap": self.position_swap.to_dict() if self.position_swap else None,
            "executed": self.executed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SubstitutionEvent":
        return cls(
            time=int(data["time"]),
            half=int(data.get("half", 1)),
            player_out_id=str(data["player_out_id"]),
            player_in_id=str(data["player_in_id"]),
            position_swap=PositionSwap.from_dict(data.get("position_swap")),
            executed=bool(data.get("executed", False)),
        )


@dataclass
class GoalEvent:
    """A goal for either side, stamped with the match clock."""
    time: int
    half: int
    is_opponent_goal: bool = False
    scorer_id: Optional[str] = None
    id: str = field(default_factory=lambda: f"goal-{uuid.uuid4().hex[:12]}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "scorer_id": self.scorer_id,
            "time": self.time,
            "half": self.half,
            "is_opponent_goal": self.is_opponent_goal,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GoalEvent":
        return cls(
            id=str(data.get("id") or f"goal-{uuid.uuid4().hex[:12]}"),
            scorer_id=data.get("scorer_id"),
            time=int(data.get("time", 0)),
            half=int(data.get("half", 1)),
            is_opponent_goal=bool(data.get("is_opponent_goal", False)),
        )
