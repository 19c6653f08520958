"""Formation templates for the Pitchside match-day engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .player import Category, PitchCoordinate


def category_from_coords(y: float, team_size: int) -> Category:
    """Map a slot's depth on the pitch to its category.

    Four-a-side has no goalkeeper; every other size puts the keeper at the
    back (y > 80).
    """
    if team_size == 4:
        if y > 70:
            return Category.DEFENDER
        if y > 40:
            return Category.MIDFIELDER
        return Category.FORWARD
    if y > 80:
        return Category.GOALKEEPER
    if y > 60:
        return Category.DEFENDER
    if y > 30:
        return Category.MIDFIELDER
    return Category.FORWARD


@dataclass(frozen=True)
class Slot:
    """A formation-defined pitch location with a target category."""
    coordinate: PitchCoordinate
    category: Category

    def to_dict(self) -> Dict:
        return {"coordinate": self.coordinate.to_dict(), "category": self.category.value}


@dataclass
class FormationTemplate:
    """Ordered slots for one team size, e.g. 2-3-1 for seven-a-side."""
    name: str
    team_size: int
    slots: List[Slot] = field(default_factory=list)

    def get_formation_shape(self) -> Tuple[int, int, int, int]:
        """Count slots per category as (GK, DEF, MID, FWD)."""
        counts = {c: 0 for c in Category}
        for slot in self.slots:
            counts[slot.category] += 1
        return (
            counts[Category.GOALKEEPER],
            counts[Category.DEFENDER],
            counts[Category.MIDFIELDER],
            counts[Category.FORWARD],
        )

    def to_dict(self) -> Dict:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "team_size": self.team_size,
            "slots": [slot.to_dict() for slot in self.slots],
        }

    @classmethod
    def from_points(cls, name: str, team_size: int,
                    points: List[Tuple[float, float]]) -> FormationTemplate:
        """Build a template from (x, y) points, deriving each slot's category."""
        slots = [
            Slot(PitchCoordinate(x, y), category_from_coords(y, team_size))
            for x, y in points
        ]
        return cls(name=name, team_size=team_size, slots=slots)


_FORMATION_POINTS: Dict[int, List[Tuple[str, List[Tuple[float, float]]]]] = {
    4: [
        ("1-2-1", [(50, 85), (25, 55), (75, 55), (50, 25)]),
        ("2-1-1", [(35, 85), (65, 85), (50, 55), (50, 25)]),
        ("1-1-2", [(50, 85), (50, 55), (35, 25), (65, 25)]),
    ],
    7: [
        ("2-3-1", [(50, 90), (30, 70), (70, 70), (20, 45), (50, 45), (80, 45), (50, 20)]),
        ("3-2-1", [(50, 90), (25, 70), (50, 70), (75, 70), (35, 40), (65, 40), (50, 15)]),
        ("2-2-2", [(50, 90), (30, 70), (70, 70), (30, 40), (70, 40), (35, 15), (65, 15)]),
    ],
    9: [
        ("3-3-2", [(50, 90), (25, 72), (50, 72), (75, 72), (25, 48), (50, 48), (75, 48),
                   (35, 20), (65, 20)]),
        ("3-2-3", [(50, 90), (25, 72), (50, 72), (75, 72), (35, 48), (65, 48), (25, 20),
                   (50, 20), (75, 20)]),
        ("2-4-2", [(50, 90), (30, 72), (70, 72), (20, 48), (40, 48), (60, 48), (80, 48),
                   (35, 20), (65, 20)]),
    ],
    11: [
        ("4-4-2", [(50, 92), (20, 75), (40, 75), (60, 75), (80, 75), (20, 50), (40, 50),
                   (60, 50), (80, 50), (35, 22), (65, 22)]),
        ("4-3-3", [(50, 92), (20, 75), (40, 75), (60, 75), (80, 75), (30, 50), (50, 50),
                   (70, 50), (25, 22), (50, 22), (75, 22)]),
        ("3-5-2", [(50, 92), (25, 75), (50, 75), (75, 75), (15, 50), (35, 50), (50, 50),
                   (65, 50), (85, 50), (35, 22), (65, 22)]),
        ("4-2-3-1", [(50, 92), (20, 75), (40, 75), (60, 75), (80, 75), (35, 55), (65, 55),
                     (25, 35), (50, 35), (75, 35), (50, 15)]),
    ],
}


class FormationTemplates:
    """Pre-defined formation templates keyed by team size."""

    @staticmethod
    def supported_team_sizes() -> List[int]:
        return sorted(_FORMATION_POINTS)

    @staticmethod
    def for_team_size(team_size: int) -> List[FormationTemplate]:
        """All templates for a team size; unknown sizes give an empty list."""
        return [
            FormationTemplate.from_points(name, team_size, points)
            for name, points in _FORMATION_POINTS.get(team_size, [])
        ]

    @staticmethod
    def get(team_size: int, index: int) -> Optional[FormationTemplate]:
        templates = FormationTemplates.for_team_size(team_size)
        if 0 <= index < len(templates):
            return templates[index]
        return None

    @staticmethod
    def index_of(team_size: int, name: str) -> Optional[int]:
        for idx, (template_name, _) in enumerate(_FORMATION_POINTS.get(team_size, [])):
            if template_name == name:
                return idx
        return None
