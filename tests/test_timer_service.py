import unittest
from unittest.mock import patch

from pitchside.models import Category, ClockPhase, ClockState, PitchCoordinate, Player
from pitchside.services import ClockEvent, GameClock, reconcile_minutes


class GameClockTests(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = GameClock(ClockState(minutes_per_half=10))

    def _run(self, ticks: int):
        events = [self.clock.tick() for _ in range(ticks)]
        return [e for e in events if e != ClockEvent.NONE]

    def test_full_match_without_pauses(self) -> None:
        self.clock.toggle()
        self.assertEqual(self.clock.state.phase, ClockPhase.HALF1_RUNNING)

        self.assertEqual(self._run(600), [ClockEvent.HALF_TIME])
        self.assertEqual(self.clock.state.phase, ClockPhase.HALF2_PAUSED)
        self.assertEqual(self.clock.state.elapsed_seconds, 0)

        self.clock.toggle()
        self.assertEqual(self._run(600), [ClockEvent.FULL_TIME])
        self.assertEqual(self.clock.state.phase, ClockPhase.FINISHED)
        self.assertEqual(self.clock.state.elapsed_seconds, 600)

        # No further ticks are processed once finished
        self.assertEqual(self.clock.tick(), ClockEvent.NONE)
        self.assertEqual(self.clock.state.elapsed_seconds, 600)
        self.assertFalse(self.clock.toggle())

    def test_paused_clock_ignores_ticks(self) -> None:
        self.assertEqual(self.clock.tick(), ClockEvent.NONE)
        self.assertEqual(self.clock.state.elapsed_seconds, 0)

        self.clock.toggle()
        self._run(5)
        self.clock.toggle()
        self._run(5)
        self.assertEqual(self.clock.state.elapsed_seconds, 5)
        self.assertEqual(self.clock.total_elapsed_seconds(), 5)

    def test_total_elapsed_spans_halves(self) -> None:
        self.clock.toggle()
        self._run(600)
        self.clock.toggle()
        self._run(30)
        self.assertEqual(self.clock.total_elapsed_seconds(), 630)
        self.assertEqual(self.clock.remaining_in_half(), 570)

    def test_catch_up_after_suspension(self) -> None:
        with patch("pitchside.services.timer_service.now_ts", return_value=1000):
            self.clock.toggle()
        self.assertEqual(self.clock.catch_up(1090), 90)
        self.assertEqual(self.clock.state.elapsed_seconds, 90)
        self.assertEqual(self.clock.state.last_timestamp, 1090)

    def test_catch_up_is_capped_at_the_half(self) -> None:
        self.clock.state.elapsed_seconds = 550
        with patch("pitchside.services.timer_service.now_ts", return_value=1000):
            self.clock.toggle()
        self.assertEqual(self.clock.catch_up(2000), 50)
        self.assertEqual(self.clock.state.half, 1)
        self.assertEqual(self.clock.state.elapsed_seconds, 600)

    def test_paused_clock_does_not_catch_up(self) -> None:
        self.clock.state.last_timestamp = 1000
        self.assertEqual(self.clock.catch_up(5000), 0)
        self.assertEqual(self.clock.state.elapsed_seconds, 0)

    def test_catch_up_uses_now_when_not_given(self) -> None:
        with patch("pitchside.services.timer_service.now_ts", return_value=1000):
            self.clock.toggle()
        with patch("pitchside.services.timer_service.now_ts", return_value=1012):
            self.assertEqual(self.clock.catch_up(), 12)

    def test_configure_clamps_and_resets(self) -> None:
        self.clock.toggle()
        self._run(20)
        self.assertEqual(self.clock.configure(0), 1)
        self.assertEqual(self.clock.configure(90), 60)
        self.assertEqual(self.clock.configure(25), 25)
        self.assertEqual(self.clock.state.elapsed_seconds, 0)
        self.assertFalse(self.clock.state.running)

    def test_reset_keeps_half_length(self) -> None:
        self.clock.toggle()
        self._run(700)
        self.clock.reset()
        self.assertEqual(self.clock.state, ClockState(minutes_per_half=10))

    def test_state_round_trip(self) -> None:
        self.clock.toggle()
        self._run(42)
        restored = ClockState.from_json(self.clock.state.to_json())
        self.assertEqual(restored, self.clock.state)


class ReconcileMinutesTests(unittest.TestCase):
    def setUp(self) -> None:
        self.on = Player(id="on", name="On", minutes_played=100)
        self.on.place(PitchCoordinate(50, 50), Category.MIDFIELDER)
        self.off = Player(id="off", name="Off", minutes_played=40)
        self.players = [self.on, self.off]

    def test_positive_delta_credited_to_pitch_players(self) -> None:
        self.assertEqual(reconcile_minutes(self.players, 300, 360), 60)
        self.assertEqual(self.on.minutes_played, 160)
        self.assertEqual(self.off.minutes_played, 40)

    def test_no_credit_without_marker_or_for_backwards_time(self) -> None:
        self.assertEqual(reconcile_minutes(self.players, None, 360), 0)
        self.assertEqual(reconcile_minutes(self.players, 400, 360), 0)
        self.assertEqual(self.on.minutes_played, 100)


if __name__ == "__main__":
    unittest.main()
