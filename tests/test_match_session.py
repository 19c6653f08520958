"""
Integration tests for MatchSession.

These drive the session the way the pitch-board UI does: seat a roster,
run the clock tick by tick, react to due substitutions and undo changes.
"""
import json
import unittest
from unittest.mock import MagicMock, patch

from pitchside.config import PitchSettings
from pitchside.models import (
    Category, PitchCoordinate, Player, PositionSwap, SubstitutionEvent, restricted_to,
)
from pitchside.services import ClockEvent, InMemoryStore, MatchSession, PersistenceService


def _squad(count):
    return [Player(id=f"u{i}", name=f"Player {i}") for i in range(1, count + 1)]


class MatchSessionTests(unittest.TestCase):
    def setUp(self) -> None:
        self.notifier = MagicMock()
        self.session = MatchSession(
            team_id="team-1",
            players=_squad(10),
            settings=PitchSettings(minutes_per_half=10, disable_batch_subs=True),
            notifier=self.notifier,
        )
        self.session.assign_formation(2)

    def _get(self, pid):
        return next(p for p in self.session.players if p.id == pid)

    def _ticks(self, count):
        return [self.session.tick() for _ in range(count)]

    def test_assign_formation_seats_team(self) -> None:
        self.assertEqual(len([p for p in self.session.players if p.on_pitch]), 7)
        self.assertEqual(self._get("u1").current_category, Category.GOALKEEPER)

    def test_tick_credits_pitch_players_only_while_running(self) -> None:
        self._ticks(3)
        self.assertEqual(self._get("u2").minutes_played, 0)

        self.session.toggle()
        self._ticks(5)
        self.assertEqual(self._get("u2").minutes_played, 5)
        self.assertEqual(self._get("u8").minutes_played, 0)
        self.assertEqual(self.session.board.last_timer_seconds, 5)

    def test_half_time_is_reported(self) -> None:
        self.session.toggle()
        events = self._ticks(600)
        self.assertEqual(events[-1], ClockEvent.HALF_TIME)
        self.assertEqual(self._get("u2").minutes_played, 600)
        self.assertEqual(self.session.board.last_timer_seconds, 600)

    def test_due_substitution_flow_with_undo(self) -> None:
        plan = self.session.plan_auto_subs()
        self.assertEqual([(e.half, e.time) for e in plan], [(1, 150), (1, 300), (1, 450)])
        self.assertTrue(self.session.board.auto_sub_active)

        self.session.toggle()
        self._ticks(149)
        self.assertEqual(self.session.pending_events, [])
        self._ticks(1)
        self.assertEqual(len(self.session.pending_events), 1)
        self.notifier.notify.assert_called_once_with("Time to sub: Player 2 -> Player 8")

        self._ticks(10)
        self.assertEqual(self.notifier.notify.call_count, 1)

        applied = self.session.confirm_pending()
        self.assertEqual(len(applied), 1)
        self.assertTrue(self._get("u8").on_pitch)
        self.assertFalse(self._get("u2").on_pitch)
        self.assertEqual(len(self.session.board.executed_subs), 1)
        self.assertTrue(self.session.undo_available())

        self.assertEqual(self.session.undo(), "Substitute Player 2 -> Player 8")
        self.assertTrue(self._get("u2").on_pitch)
        self.assertFalse(self._get("u8").on_pitch)

    def test_skip_replans_without_skipped_pairing(self) -> None:
        self.session.plan_auto_subs()
        self.session.toggle()
        self._ticks(150)
        skipped = self.session.pending_events[0]

        fresh = self.session.skip_pending()
        self.assertTrue(skipped.executed)
        self.assertEqual(self.session.pending_events, [])
        self.assertEqual((fresh[0].player_out_id, fresh[0].player_in_id), ("u3", "u8"))
        self.assertIn(skipped, self.session.board.auto_sub_plan)

    def test_paused_auto_subs_do_not_fire(self) -> None:
        self.session.plan_auto_subs()
        self.assertTrue(self.session.pause_auto_subs(True))
        self.session.toggle()
        self._ticks(200)
        self.assertEqual(self.session.pending_events, [])

        self.session.pause_auto_subs(False)
        self._ticks(1)
        self.assertEqual(len(self.session.pending_events), 1)

    def test_plan_deactivates_once_consumed_in_second_half(self) -> None:
        self.session.clock.state.half = 2
        self.session.board.auto_sub_plan = [
            SubstitutionEvent(time=0, half=2, player_out_id="u2", player_in_id="u8"),
        ]
        self.session.board.auto_sub_active = True
        self.session.toggle()
        self._ticks(1)
        self.session.confirm_pending()
        self.assertFalse(self.session.board.auto_sub_active)

    def test_consumed_first_half_plan_waits_for_half_time(self) -> None:
        self.session.board.auto_sub_plan = [
            SubstitutionEvent(time=0, half=1, player_out_id="u2", player_in_id="u8"),
        ]
        self.session.board.auto_sub_active = True
        self.session.toggle()
        self._ticks(1)
        self.session.confirm_pending()
        self.assertTrue(self.session.board.auto_sub_active)

        events = self._ticks(599)
        self.assertEqual(events[-1], ClockEvent.HALF_TIME)
        second_half = [e for e in self.session.board.auto_sub_plan if e.half == 2]
        self.assertEqual([e.time for e in second_half], [150, 300, 450])
        self.assertEqual(second_half[0].player_out_id, "u3")
        self.assertTrue(self.session.board.auto_sub_active)

    def test_second_half_rotation_is_planned_at_half_time(self) -> None:
        self.session.plan_auto_subs()
        self.session.toggle()
        events = self._ticks(600)
        self.assertEqual(events[-1], ClockEvent.HALF_TIME)

        plan = self.session.board.auto_sub_plan
        self.assertEqual([(e.half, e.time) for e in plan],
                         [(1, 150), (1, 300), (1, 450), (2, 150), (2, 300), (2, 450)])
        self.assertEqual(len(self.session.pending_events), 1)

    def test_cancelled_plan_is_not_extended_at_half_time(self) -> None:
        self.session.plan_auto_subs()
        self.session.cancel_auto_subs()
        self.session.toggle()
        self._ticks(600)
        self.assertEqual(self.session.board.auto_sub_plan, [])

    def test_cross_category_fallback_is_confirmed(self) -> None:
        keeper = Player(id="g", name="G", eligibility=restricted_to(Category.GOALKEEPER))
        keeper.place(PitchCoordinate(50, 90), Category.GOALKEEPER)
        back = Player(id="d", name="D", minutes_played=500,
                      eligibility=restricted_to(Category.DEFENDER))
        back.place(PitchCoordinate(30, 70), Category.DEFENDER)
        striker = Player(id="f", name="F", minutes_played=100,
                         eligibility=restricted_to(Category.FORWARD))
        striker.place(PitchCoordinate(50, 20), Category.FORWARD)
        mid = Player(id="m", name="M", eligibility=restricted_to(Category.MIDFIELDER))
        session = MatchSession(players=[keeper, back, striker, mid], team_size=4,
                               settings=PitchSettings(minutes_per_half=10), notifier=MagicMock())

        plan = session.plan_auto_subs()
        self.assertEqual((plan[0].player_out_id, plan[0].player_in_id), ("d", "m"))

        session.toggle()
        for _ in range(plan[0].time):
            session.tick()
        applied = session.confirm_pending()

        self.assertEqual(applied, [plan[0]])
        self.assertTrue(mid.on_pitch)
        self.assertEqual(mid.current_category, Category.DEFENDER)
        self.assertEqual(mid.position, PitchCoordinate(30, 70))
        self.assertFalse(back.on_pitch)

    def test_cancel_clears_plan(self) -> None:
        self.session.plan_auto_subs()
        self.session.cancel_auto_subs()
        self.assertEqual(self.session.board.auto_sub_plan, [])
        self.assertFalse(self.session.board.auto_sub_active)

    def test_injuring_a_scheduled_player_replans(self) -> None:
        plan = self.session.plan_auto_subs()
        self.assertIn("u8", [e.player_in_id for e in plan])

        self.assertTrue(self.session.toggle_injury("u8"))
        pending_in = [e.player_in_id for e in self.session.board.auto_sub_plan if not e.executed]
        self.assertNotIn("u8", pending_in)
        self.assertFalse(self.session.toggle_injury("u8"))

    def test_selection_prompt_suppressed_while_undoing(self) -> None:
        self.session.toggle_injury("u3")
        self.assertEqual(self.session.selection_prompt, "u3")

        self.assertTrue(self.session.substitute("u3", "u8"))
        self.assertIsNone(self.session.selection_prompt)

        self.session.undo()
        self.assertTrue(self._get("u3").on_pitch)
        self.assertIsNone(self.session.selection_prompt)

        self.session.toggle_injury("u4")
        self.assertEqual(self.session.selection_prompt, "u3")

    def test_swap_positions_is_undoable(self) -> None:
        before = [p.current_category for p in self.session.players]
        self.assertTrue(self.session.swap_positions("u2", "u7"))
        self.assertEqual(self._get("u2").current_category, Category.FORWARD)
        self.session.undo()
        self.assertEqual([p.current_category for p in self.session.players], before)

    def test_goals_and_score(self) -> None:
        ours = self.session.record_goal("u2")
        self.session.record_goal(is_opponent_goal=True)
        self.assertEqual(self.session.score(), (1, 1))
        self.assertEqual((ours.half, ours.scorer_id), (1, "u2"))

        self.assertTrue(self.session.remove_goal(ours.id))
        self.assertFalse(self.session.remove_goal("goal-missing"))
        self.assertEqual(self.session.score(), (0, 1))

    def test_ball_is_clamped(self) -> None:
        self.assertEqual(self.session.move_ball(-5, 150), PitchCoordinate(2.0, 98.0))

    def test_fill_in_players(self) -> None:
        guest = self.session.add_fill_in("Guest", [Category.DEFENDER], number=42)
        self.assertTrue(guest.is_fill_in)
        self.assertFalse(guest.on_pitch)
        self.assertTrue(guest.can_play(Category.DEFENDER))
        self.assertFalse(guest.can_play(Category.FORWARD))

        self.assertFalse(self.session.remove_fill_in("u9"))
        self.assertTrue(self.session.remove_fill_in(guest.id))
        self.assertNotIn(guest, self.session.players)

    def test_mock_mode_round_trip(self) -> None:
        mock = self.session.enable_mock_mode()
        self.assertEqual(len(mock), 10)
        self.assertTrue(all(p.id.startswith("mock-") for p in mock))
        self.assertTrue(self.session.board.mock_mode)

        self.session.disable_mock_mode()
        self.assertEqual([p.id for p in self.session.players], [f"u{i}" for i in range(1, 11)])
        self.assertFalse(self.session.board.mock_mode)

    def test_configure_minutes_clamps_and_resets(self) -> None:
        self.session.toggle()
        self._ticks(30)
        self.assertEqual(self.session.configure_minutes(90), 60)
        self.assertEqual(self.session.clock.state.elapsed_seconds, 0)
        self.assertEqual(self.session.settings.minutes_per_half, 60)
        self.assertEqual(self._get("u2").minutes_played, 0)

    def test_reset_clears_match_state(self) -> None:
        self.session.plan_auto_subs()
        self.session.record_goal("u2")
        self.session.substitute("u2", "u8")
        self.session.reset()
        self.assertEqual(self.session.board.goals, [])
        self.assertEqual(self.session.board.auto_sub_plan, [])
        self.assertFalse(self.session.history.can_undo())

    def test_read_only_board_ignores_mutations(self) -> None:
        self.session.read_only = True
        before = [p.to_dict() for p in self.session.players]

        self.assertFalse(self.session.toggle())
        self.assertEqual(self.session.tick(), ClockEvent.NONE)
        self.assertFalse(self.session.substitute("u2", "u8"))
        self.assertEqual(self.session.plan_auto_subs(), [])
        self.assertIsNone(self.session.record_goal("u2"))
        self.assertIsNone(self.session.undo())
        self.assertEqual([p.to_dict() for p in self.session.players], before)

        # Queries still answer
        self.assertEqual(len(self.session.valid_bench_candidates("u2")), 3)

    def test_to_dict_is_json_serializable(self) -> None:
        self.session.plan_auto_subs()
        payload = self.session.to_dict()
        json.dumps(payload)
        self.assertEqual(payload["phase"], "half1_paused")
        self.assertEqual(payload["score"], {"team": 0, "opponent": 0})


class PlanEditingTests(unittest.TestCase):
    def setUp(self) -> None:
        self.persistence = MagicMock()
        self.session = MatchSession(
            team_id="team-1",
            players=_squad(10),
            settings=PitchSettings(minutes_per_half=10, disable_batch_subs=True),
            persistence=self.persistence,
            notifier=MagicMock(),
        )
        self.session.assign_formation(2)

    def _slots(self):
        return [(e.half, e.time) for e in self.session.board.auto_sub_plan]

    def test_add_event_activates_plan_and_saves(self) -> None:
        self.persistence.reset_mock()
        event = self.session.add_plan_event("u2", "u8", 200)

        self.assertEqual((event.half, event.time), (1, 200))
        self.assertEqual(self.session.board.auto_sub_plan, [event])
        self.assertTrue(self.session.board.auto_sub_active)
        self.persistence.save_board.assert_called_once_with(self.session.board)

    def test_add_event_validates_pairing_and_clamps_time(self) -> None:
        self.assertIsNone(self.session.add_plan_event("u2", "u2", 100))
        self.assertIsNone(self.session.add_plan_event("u2", "nobody", 100))
        self.assertIsNone(self.session.add_plan_event("u2", "u8", 100, half=3))

        late = self.session.add_plan_event("u3", "u9", 9999, half=2)
        self.assertEqual((late.half, late.time), (2, 600))

    def test_added_events_are_kept_in_schedule_order(self) -> None:
        self.session.plan_auto_subs()
        added = self.session.add_plan_event("u4", "u10", 200)
        self.assertEqual(self._slots(), [(1, 150), (1, 200), (1, 300), (1, 450)])
        self.assertIs(self.session.board.auto_sub_plan[1], added)

    def test_retime_reorders_plan(self) -> None:
        first = self.session.plan_auto_subs()[0]
        self.assertTrue(self.session.update_plan_event(0, time=500))
        self.assertEqual(self._slots(), [(1, 300), (1, 450), (1, 500)])
        self.assertIs(self.session.board.auto_sub_plan[-1], first)

        self.assertTrue(self.session.update_plan_event(2, half=2))
        self.assertEqual((first.half, first.time), (2, 500))

    def test_repair_drops_position_swap(self) -> None:
        event = self.session.plan_auto_subs()[0]
        event.position_swap = PositionSwap("u7", Category.FORWARD, Category.DEFENDER)

        self.assertFalse(self.session.update_plan_event(0, player_in_id="missing"))
        self.assertIsNotNone(event.position_swap)

        self.assertTrue(self.session.update_plan_event(0, player_in_id="u10"))
        self.assertEqual((event.player_out_id, event.player_in_id), ("u2", "u10"))
        self.assertIsNone(event.position_swap)

    def test_retime_alone_keeps_position_swap(self) -> None:
        event = self.session.plan_auto_subs()[0]
        event.position_swap = PositionSwap("u7", Category.FORWARD, Category.DEFENDER)
        self.assertTrue(self.session.update_plan_event(0, time=100))
        self.assertIsNotNone(event.position_swap)

    def test_delete_event(self) -> None:
        plan = self.session.plan_auto_subs()
        middle = plan[1]
        self.assertTrue(self.session.delete_plan_event(1))
        self.assertNotIn(middle, self.session.board.auto_sub_plan)
        self.assertEqual(self._slots(), [(1, 150), (1, 450)])
        self.assertFalse(self.session.delete_plan_event(5))

    def test_move_keeps_timestamps_in_place(self) -> None:
        first, second, third = self.session.plan_auto_subs()
        self.assertTrue(self.session.move_plan_event(0, 2))

        self.assertEqual(self.session.board.auto_sub_plan, [second, third, first])
        self.assertEqual(self._slots(), [(1, 150), (1, 300), (1, 450)])
        self.assertEqual(first.time, 450)

        self.assertTrue(self.session.move_plan_event(1, 1))
        self.assertFalse(self.session.move_plan_event(0, 7))

    def test_executed_events_cannot_be_edited(self) -> None:
        plan = self.session.plan_auto_subs()
        plan[0].executed = True

        self.assertFalse(self.session.update_plan_event(0, time=500))
        self.assertFalse(self.session.delete_plan_event(0))
        self.assertFalse(self.session.move_plan_event(0, 2))
        self.assertFalse(self.session.move_plan_event(2, 0))
        self.assertEqual(plan[0].time, 150)

        self.assertTrue(self.session.move_plan_event(2, 1))
        self.assertEqual(self._slots(), [(1, 150), (1, 300), (1, 450)])

    def test_pending_batch_cleared_only_when_edited(self) -> None:
        self.session.plan_auto_subs()
        self.session.toggle()
        for _ in range(150):
            self.session.tick()
        self.assertEqual(len(self.session.pending_events), 1)

        self.assertTrue(self.session.delete_plan_event(2))
        self.assertEqual(len(self.session.pending_events), 1)

        self.assertTrue(self.session.update_plan_event(0, time=200))
        self.assertEqual(self.session.pending_events, [])

    def test_read_only_board_ignores_edits(self) -> None:
        self.session.plan_auto_subs()
        before = [e.to_dict() for e in self.session.board.auto_sub_plan]
        self.session.read_only = True

        self.assertIsNone(self.session.add_plan_event("u2", "u8", 100))
        self.assertFalse(self.session.update_plan_event(0, time=500))
        self.assertFalse(self.session.delete_plan_event(0))
        self.assertFalse(self.session.move_plan_event(0, 2))
        self.assertEqual([e.to_dict() for e in self.session.board.auto_sub_plan], before)


class MatchSessionPersistenceTests(unittest.TestCase):
    def test_reload_catches_up_clock_and_minutes(self) -> None:
        persistence = PersistenceService(InMemoryStore())
        settings = PitchSettings(minutes_per_half=10)
        session = MatchSession(team_id="team-1", players=_squad(9), settings=settings,
                               persistence=persistence, notifier=MagicMock())
        session.assign_formation(2)
        with patch("pitchside.services.timer_service.now_ts", return_value=1000.0):
            session.toggle()
            for _ in range(30):
                session.tick()
        session.autosave()

        restored = MatchSession(team_id="team-1", persistence=persistence, notifier=MagicMock())
        self.assertTrue(restored.load(current_ts=1020.0))
        self.assertEqual(restored.clock.state.elapsed_seconds, 50)
        self.assertEqual(restored.settings.minutes_per_half, 10)
        u2 = next(p for p in restored.players if p.id == "u2")
        self.assertEqual(u2.minutes_played, 50)
        self.assertIs(restored.players, restored.commands.players)

    def test_load_without_saved_state_keeps_defaults(self) -> None:
        session = MatchSession(team_id="fresh", settings=PitchSettings(minutes_per_half=12),
                               persistence=PersistenceService(InMemoryStore()))
        self.assertFalse(session.load())
        self.assertEqual(session.clock.state.minutes_per_half, 12)


if __name__ == "__main__":
    unittest.main()
