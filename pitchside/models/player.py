"""
Player model for the Pitchside match-day engine.

This module contains the Player dataclass, the pitch Category enumeration and
the Eligibility variant describing which categories a player may occupy.
A player is on the pitch exactly when both ``position`` and
``current_category`` are set.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Optional


class Category(Enum):
    """Pitch categories a formation slot can require."""
    GOALKEEPER = "GK"
    DEFENDER = "DEF"
    MIDFIELDER = "MID"
    FORWARD = "FWD"

    @classmethod
    def parse(cls, value: Any) -> Optional["Category"]:
        """Parse a short code such as ``"MID"``; unknown values give None."""
        if isinstance(value, Category):
            return value
        if not value:
            return None
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return None


class Eligibility(ABC):
    """Base class for the two eligibility variants.

    Use :class:`Unrestricted` for players who may play anywhere and
    :class:`RestrictedTo` for players limited to a set of categories. An empty
    ``RestrictedTo`` means restricted to nothing, never "anywhere".
    """

    @abstractmethod
    def allows(self, category: Optional[Category]) -> bool:
        """True if the player may occupy ``category``."""
        pass

    @property
    @abstractmethod
    def categories(self) -> FrozenSet[Category]:
        """Categories the player may occupy."""
        pass

    @property
    def is_specialist(self) -> bool:
        return False

    @property
    def is_goalkeeper_only(self) -> bool:
        return False

    @abstractmethod
    def to_json(self) -> Any:
        """Persisted form, decoded by :meth:`from_json`."""
        pass

    @staticmethod
    def from_json(data: Any) -> "Eligibility":
        """Decode the persisted form.

        ``"any"``/``None`` and an empty list (the legacy "no assigned
        positions" encoding) decode to Unrestricted.
        """
        if data is None or data == "any" or data == []:
            return Unrestricted()
        if isinstance(data, str):
            data = [part for part in data.split(",") if part.strip()]
        parsed = [Category.parse(item) for item in data]
        return RestrictedTo(frozenset(c for c in parsed if c is not None))


@dataclass(frozen=True)
class Unrestricted(Eligibility):
    """Eligible for every category."""

    def allows(self, category: Optional[Category]) -> bool:
        return True

    @property
    def categories(self) -> FrozenSet[Category]:
        return frozenset(Category)

    def to_json(self) -> Any:
        return "any"


@dataclass(frozen=True)
class RestrictedTo(Eligibility):
    """Eligible only for the listed categories."""
    allowed: FrozenSet[Category] = frozenset()

    def allows(self, category: Optional[Category]) -> bool:
        return category is not None and category in self.allowed

    @property
    def categories(self) -> FrozenSet[Category]:
        return self.allowed

    @property
    def is_specialist(self) -> bool:
        return len(self.allowed) == 1

    @property
    def is_goalkeeper_only(self) -> bool:
        return self.allowed == frozenset({Category.GOALKEEPER})

    def to_json(self) -> Any:
        # Keep enum declaration order so saved files are stable
        return [c.value for c in Category if c in self.allowed]


def restricted_to(*categories: Category) -> RestrictedTo:
    """Shorthand for ``RestrictedTo(frozenset(categories))``."""
    return RestrictedTo(frozenset(categories))


@dataclass(frozen=True)
class PitchCoordinate:
    """A location on the pitch in percent (0-100), y grows towards own goal."""
    x: float
    y: float

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["PitchCoordinate"]:
        if not data:
            return None
        return cls(x=float(data["x"]), y=float(data["y"]))


@dataclass
class Player:
    """
    A squad member as seen by the match-day engine.

    Attributes:
        id: Stable unique identifier
        name: Display name
        number: Jersey number (optional)
        eligibility: Categories the player may occupy
        current_category: Category of the occupied slot, None while on the bench
        position: Pitch coordinate of the occupied slot, None while on the bench
        minutes_played: Accumulated seconds on the pitch (never decreases)
        is_injured: Injured players cannot be brought on
        is_fill_in: Temporary player added for this match only
    """
    id: str
    name: str
    number: Optional[int] = None
    eligibility: Eligibility = field(default_factory=Unrestricted)
    current_category: Optional[Category] = None
    position: Optional[PitchCoordinate] = None
    minutes_played: int = 0
    is_injured: bool = False
    is_fill_in: bool = False

    @property
    def on_pitch(self) -> bool:
        return self.position is not None

    def can_play(self, category: Optional[Category]) -> bool:
        """Return True when the player's eligibility admits ``category``."""
        return self.eligibility.allows(category)

    def place(self, coordinate: PitchCoordinate, category: Category) -> None:
        """Put the player into a pitch slot."""
        self.position = coordinate
        self.current_category = category

    def bench(self) -> None:
        """Send the player to the bench."""
        self.position = None
        self.current_category = None

    def credit_seconds(self, seconds: int) -> None:
        """Add playing time; only positive amounts for on-pitch players count."""
        if seconds > 0 and self.on_pitch:
            self.minutes_played += int(seconds)

    def label(self) -> str:
        """Name used in notifications, falling back to the jersey number."""
        if self.name:
            return self.name
        return f"#{self.number}" if self.number is not None else self.id

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert player to dictionary for JSON serialization.

        Returns:
            Dictionary representation of the player
        """
        return {
            "id": self.id,
            "name": self.name,
            "number": self.number,
            "eligibility": self.eligibility.to_json(),
            "current_category": self.current_category.value if self.current_category else None,
            "position": self.position.to_dict() if self.position else None,
            "minutes_played": self.minutes_played,
            "is_injured": self.is_injured,
            "is_fill_in": self.is_fill_in,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Player":
        """
        Create player from dictionary for JSON deserialization.

        Older saves stored eligibility as ``assigned_positions``; both keys
        are accepted. A coordinate without a category (or the reverse) is
        treated as benched so the on-pitch invariant always holds.

        Args:
            data: Dictionary representation of player

        Returns:
            Player instance
        """
        if "eligibility" in data:
            eligibility = Eligibility.from_json(data["eligibility"])
        else:
            eligibility = Eligibility.from_json(data.get("assigned_positions"))

        position = PitchCoordinate.from_dict(data.get("position"))
        category = Category.parse(data.get("current_category"))
        if position is None or category is None:
            position, category = None, None

        number = data.get("number")
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            number=int(number) if number not in (None, "") else None,
            eligibility=eligibility,
            current_category=category,
            position=position,
            minutes_played=max(0, int(data.get("minutes_played", 0) or 0)),
            is_injured=bool(data.get("is_injured", False)),
            is_fill_in=bool(data.get("is_fill_in", False)),
        )


def on_pitch(players: Iterable[Player]) -> List[Player]:
    """Players currently on the pitch, in roster order."""
    return [p for p in players if p.on_pitch]


def on_bench(players: Iterable[Player]) -> List[Player]:
    """Players currently on the bench, in roster order."""
    return [p for p in players if not p.on_pitch]


def find_player(players: Iterable[Player], player_id: Optional[str]) -> Optional[Player]:
    """Look up a player by id; unknown or missing ids give None."""
    if player_id is None:
        return None
    for player in players:
        if player.id == player_id:
            return player
    return None
