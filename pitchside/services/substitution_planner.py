"""
Auto-substitution planning.

The planner spreads rotations evenly over the remaining match time so playing
time evens out. Selection is greedy against a simulated pitch: each
timestamp takes the most-played outfield player off and brings on the
least-played eligible bench player, and later timestamps see the effect of
earlier ones. Goalkeepers are handled separately with at most one change at
the start of the second half.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from ..config import PitchSettings, PlannerConfig
from ..models import (
    Category, ClockState, Player, PlayerTimeForecast, PositionSwap,
    SubstitutionEvent, on_bench, on_pitch,
)

logger = logging.getLogger(__name__)


@dataclass
class _Window:
    """A planned substitution timestamp; ``slots`` is how many subs it carries."""
    half: int
    time: int
    slots: int

    def absolute(self, half_seconds: int) -> int:
        return (self.half - 1) * half_seconds + self.time


class _Simulation:
    """Running projection of who is on the pitch and how long each has played."""

    def __init__(self, outfield: List[Player]):
        self.order = {p.id: idx for idx, p in enumerate(outfield)}
        self.players = {p.id: p for p in outfield}
        self.seconds: Dict[str, int] = {p.id: p.minutes_played for p in outfield}
        self.pitch: Dict[str, Category] = {
            p.id: p.current_category for p in outfield if p.on_pitch
        }

    def advance(self, seconds: int) -> None:
        if seconds <= 0:
            return
        for player_id in self.pitch:
            self.seconds[player_id] += seconds

    def pitch_by_most_played(self) -> List[str]:
        return sorted(self.pitch, key=lambda pid: (-self.seconds[pid], self.order[pid]))

    def bench_by_least_played(self) -> List[str]:
        bench = [pid for pid in self.players if pid not in self.pitch]
        return sorted(bench, key=lambda pid: (self.seconds[pid], self.order[pid]))

    def apply(self, out_id: str, in_id: str, swap: Optional[PositionSwap]) -> None:
        vacated = self.pitch.pop(out_id)
        if swap is not None:
            self.pitch[swap.player_id] = swap.to_category
            self.pitch[in_id] = swap.from_category
        else:
            self.pitch[in_id] = vacated


def _is_outfield(player: Player) -> bool:
    if player.current_category == Category.GOALKEEPER:
        return False
    if player.eligibility.is_goalkeeper_only:
        return False
    if player.is_injured and not player.on_pitch:
        return False
    return True


class AutoSubPlanner:
    """Generates and recomputes fairness-based substitution schedules."""

    def __init__(self, config: Optional[PlannerConfig] = None):
        self.config = config or PlannerConfig()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def plan_auto_subs(
        self,
        players: List[Player],
        clock: ClockState,
        settings: Optional[PitchSettings] = None,
    ) -> List[SubstitutionEvent]:
        """
        Build the outfield rotation for the rest of the current half.

        The half receives ``min(bench_outfield, floor(half_remaining / interval))``
        substitutions spread evenly across it. In the first half the
        goalkeeper change for the start of the second half is added too; the
        second half's outfield rotation is planned at half time with
        :meth:`plan_second_half`.

        Args:
            players: Live roster
            clock: Current clock state (only read)
            settings: Rotation options; defaults when omitted

        Returns:
            Events ordered by half then time
        """
        settings = settings or PitchSettings()
        if clock.finished:
            return []

        outfield, outfield_bench = self._outfield(players)
        windows: List[_Window] = []
        if outfield_bench:
            half, start = clock.half, clock.elapsed_seconds
            remaining = max(0, clock.half_seconds - start)
            subs_needed = self._subs_needed(len(outfield_bench), remaining)
            windows = self._even_windows(
                subs_needed, settings.batch_size(len(outfield_bench)),
                remaining, lambda offset: (half, int(math.floor(start + offset))),
            )

        plan = self._fill_windows(players, outfield, windows, clock, settings, skipped=None)
        plan.extend(self._goalkeeper_change(players, clock))
        plan.sort(key=lambda e: (e.half, e.time))
        logger.info("Generated auto-sub plan with %d substitutions", len(plan))
        return plan

    def recalculate_plan(
        self,
        players: List[Player],
        clock: ClockState,
        settings: Optional[PitchSettings] = None,
        skipped: Optional[SubstitutionEvent] = None,
    ) -> List[SubstitutionEvent]:
        """
        Replace every unexecuted event with a fresh schedule from the live roster.

        The remaining window is treated as one stretch and split across the
        half boundary, each timestamp expressed on its own half's clock. The
        ``skipped`` pairing is not chosen again at the first new timestamp.
        """
        settings = settings or PitchSettings()
        if clock.finished:
            return []

        outfield, outfield_bench = self._outfield(players)
        windows: List[_Window] = []
        if outfield_bench:
            half_seconds = clock.half_seconds
            remaining_current = max(0, half_seconds - clock.elapsed_seconds)
            total_remaining = remaining_current + (half_seconds if clock.half == 1 else 0)
            subs_needed = self._subs_needed(len(outfield_bench), total_remaining)

            def locate(offset: float) -> Tuple[int, int]:
                if clock.half == 1 and clock.elapsed_seconds + offset <= half_seconds:
                    return 1, int(math.floor(clock.elapsed_seconds + offset))
                if clock.half == 1:
                    return 2, int(math.floor(offset - remaining_current))
                return 2, int(math.floor(clock.elapsed_seconds + offset))

            windows = self._even_windows(
                subs_needed, settings.batch_size(len(outfield_bench)), total_remaining, locate,
            )

        plan = self._fill_windows(players, outfield, windows, clock, settings, skipped=skipped)
        plan.extend(self._goalkeeper_change(players, clock))
        plan.sort(key=lambda e: (e.half, e.time))
        logger.info("Recalculated auto-sub plan: %d substitutions remain", len(plan))
        return plan

    def plan_second_half(
        self,
        players: List[Player],
        clock: ClockState,
        plan: Sequence[SubstitutionEvent],
        settings: Optional[PitchSettings] = None,
    ) -> List[SubstitutionEvent]:
        """
        Outfield rotation to add when the second half starts.

        Returns nothing outside the second half, or when ``plan`` already has
        unexecuted outfield events there (a recalculation spanning half time).
        """
        if clock.half != 2 or clock.finished:
            return []
        by_id = {p.id: p for p in players}
        for event in plan:
            player_out = by_id.get(event.player_out_id)
            if (not event.executed and event.half == 2
                    and player_out is not None and _is_outfield(player_out)):
                return []
        return self.plan_auto_subs(players, clock, settings)

    def forecast(
        self,
        players: List[Player],
        plan: Sequence[SubstitutionEvent],
        clock: ClockState,
    ) -> List[PlayerTimeForecast]:
        """Project each player's playing time at full time if ``plan`` runs as written."""
        half_seconds = clock.half_seconds
        match_seconds = half_seconds * 2
        seconds = {p.id: p.minutes_played for p in players}
        current = {p.id for p in players if p.on_pitch}
        starts = set(current)

        now = clock.total_elapsed_seconds()
        pending = sorted(
            (e for e in plan if not e.executed),
            key=lambda e: (e.half - 1) * half_seconds + e.time,
        )
        for event in pending:
            at = max(now, (event.half - 1) * half_seconds + event.time)
            for player_id in current:
                seconds[player_id] += at - now
            now = at
            if event.player_out_id in current and event.player_in_id in seconds:
                current.discard(event.player_out_id)
                current.add(event.player_in_id)
        for player_id in current:
            seconds[player_id] += max(0, match_seconds - now)

        forecasts = [
            PlayerTimeForecast(
                player_id=p.id,
                name=p.name,
                predicted_seconds=seconds[p.id],
                predicted_minutes=round(seconds[p.id] / 60),
                percentage_of_game=round(seconds[p.id] / match_seconds * 100) if match_seconds else 0,
                starts_on_pitch=p.id in starts,
            )
            for p in players
        ]
        forecasts.sort(key=lambda f: f.predicted_seconds, reverse=True)
        return forecasts

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _outfield(players: List[Player]) -> Tuple[List[Player], List[Player]]:
        outfield = [p for p in players if _is_outfield(p)]
        outfield_bench = [p for p in outfield if not p.on_pitch]
        return outfield, outfield_bench

    def _subs_needed(self, bench_count: int, remaining_seconds: int) -> int:
        interval = self.config.min_sub_interval_seconds
        return max(0, min(bench_count, int(remaining_seconds // interval)))

    @staticmethod
    def _even_windows(subs_needed: int, batch: int, span: float, locate) -> List[_Window]:
        """Spread ``subs_needed`` substitutions over ``span`` seconds in batches."""
        if subs_needed <= 0 or span <= 0:
            return []
        count = int(math.ceil(subs_needed / batch))
        interval = span / (count + 1)
        windows = []
        left = subs_needed
        for idx in range(1, count + 1):
            half, time = locate(idx * interval)
            take = min(batch, left)
            windows.append(_Window(half=half, time=time, slots=take))
            left -= take
        return windows

    def _fill_windows(
        self,
        players: List[Player],
        outfield: List[Player],
        windows: List[_Window],
        clock: ClockState,
        settings: PitchSettings,
        skipped: Optional[SubstitutionEvent],
    ) -> List[SubstitutionEvent]:
        sim = _Simulation(outfield)
        half_seconds = clock.half_seconds
        now = clock.total_elapsed_seconds()
        plan: List[SubstitutionEvent] = []
        skipped_pair = (skipped.player_out_id, skipped.player_in_id) if skipped else None

        for position, window in enumerate(sorted(windows, key=lambda w: w.absolute(half_seconds))):
            at = window.absolute(half_seconds)
            sim.advance(at - now)
            now = max(now, at)

            used_out: set = set()
            used_in: set = set()
            excluded = skipped_pair if position == 0 else None
            for _ in range(window.slots):
                choice = self._choose(sim, used_out, used_in, excluded,
                                      allow_swaps=not settings.disable_position_swaps)
                if choice is None:
                    break
                out_id, in_id, swap = choice
                plan.append(SubstitutionEvent(
                    time=window.time, half=window.half,
                    player_out_id=out_id, player_in_id=in_id, position_swap=swap,
                ))
                sim.apply(out_id, in_id, swap)
                used_out.add(out_id)
                used_in.add(in_id)
                if swap is not None:
                    used_out.add(swap.player_id)
        return plan

    @staticmethod
    def _choose(
        sim: _Simulation,
        used_out: set,
        used_in: set,
        excluded: Optional[Tuple[str, str]],
        allow_swaps: bool,
    ) -> Optional[Tuple[str, str, Optional[PositionSwap]]]:
        pitch_ids = [pid for pid in sim.pitch_by_most_played() if pid not in used_out]
        bench_ids = [pid for pid in sim.bench_by_least_played() if pid not in used_in]
        if not pitch_ids or not bench_ids:
            return None

        partners = sorted(
            (pid for pid in sim.pitch if pid not in used_out), key=lambda pid: sim.order[pid]
        )
        for in_id in bench_ids:
            incoming = sim.players[in_id]
            for out_id in pitch_ids:
                if excluded == (out_id, in_id):
                    continue
                vacated = sim.pitch[out_id]
                if incoming.can_play(vacated):
                    return out_id, in_id, None
                if not allow_swaps:
                    continue
                for partner_id in partners:
                    if partner_id == out_id:
                        continue
                    partner_category = sim.pitch[partner_id]
                    if (partner_category != vacated
                            and sim.players[partner_id].can_play(vacated)
                            and incoming.can_play(partner_category)):
                        return out_id, in_id, PositionSwap(partner_id, partner_category, vacated)

        # No eligible pairing: keep the plan moving with the plain fairness pick
        for in_id in bench_ids[:1]:
            for out_id in pitch_ids:
                if excluded != (out_id, in_id):
                    return out_id, in_id, None
        return None

    @staticmethod
    def _goalkeeper_change(players: List[Player], clock: ClockState) -> List[SubstitutionEvent]:
        if clock.half != 1 or clock.finished:
            return []
        keeper = next((p for p in on_pitch(players) if p.current_category == Category.GOALKEEPER), None)
        reserves = [
            p for p in on_bench(players)
            if p.eligibility.is_goalkeeper_only and not p.is_injured
        ]
        if keeper is None or len(reserves) != 1:
            return []
        return [SubstitutionEvent(time=0, half=2, player_out_id=keeper.id, player_in_id=reserves[0].id)]


def due_events(plan: Sequence[SubstitutionEvent], clock: ClockState) -> List[SubstitutionEvent]:
    """
    The earliest batch of unexecuted events whose time has come.

    Events left over from an earlier half count as due. Events sharing the
    earliest (half, time) form one batch.
    """
    if clock.finished:
        return []
    ready = [
        e for e in plan
        if not e.executed and (
            e.half < clock.half
            or (e.half == clock.half and e.time <= clock.elapsed_seconds)
        )
    ]
    if not ready:
        return []
    first = min((e.half, e.time) for e in ready)
    return [e for e in ready if (e.half, e.time) == first]


def due_message(events: Sequence[SubstitutionEvent], players: Sequence[Player]) -> str:
    """Human-readable notification text for a due batch."""
    if not events:
        return ""
    names = {p.id: p.label() for p in players}
    halftime = all(e.is_halftime_event() for e in events)
    if len(events) == 1:
        event = events[0]
        pair = (f"{names.get(event.player_out_id, event.player_out_id)} -> "
                f"{names.get(event.player_in_id, event.player_in_id)}")
        return f"Halftime sub: {pair}" if halftime else f"Time to sub: {pair}"
    if halftime:
        return f"Halftime: {len(events)} substitutions"
    return f"Time for {len(events)} substitutions"
