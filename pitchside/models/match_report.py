"""Dataclasses describing projected playing time for a substitution plan."""

from dataclasses import dataclass


@dataclass
class PlayerTimeForecast:
    """Predicted playing time for one player if a plan runs to full time."""

    player_id: str
    name: str
    predicted_seconds: int
    predicted_minutes: int
    percentage_of_game: int
    starts_on_pitch: bool
