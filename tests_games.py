#!/usr/bin/env python3
"""
MOOD CASINO — Game Engine Test Suite

Run: python tests_games.py
     python tests_games.py TestCrashEngine

Test categories:
  TestRoundLifecycle  — can_play gating, one round at a time, bet sizing
  TestSlotEngine      — first matching row pays, no-match loses the bet
  TestWheelEngine     — rotation → segment mapping, accumulated rotation
  TestCrashEngine     — cash-out vs crash race, compounding ticks, stop()
  TestDropEngine      — clamped random walk, 9-column → 8-slot mapping
  TestHandMatchEngine — hand classification precedence and payouts
  TestRegistry        — get_game_engine lookups
  TestCasinoSession   — bootstrap + shared economy wiring
"""

import os
import sqlite3
import sys
import tempfile
import unittest
from pathlib import Path

# ── Ensure project root is on sys.path ──
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from config.database import MemoryStore
from config.settings import EconomyConfig
from casino_engine.games import (
    CrashEngine, DropEngine, HandMatchEngine, RoundPhase, SlotEngine, WheelEngine,
    get_game_engine,
)
from casino_engine.games.crash import CrashStatus, next_multiplier
from casino_engine.games.drop import next_column, slot_index_for_column
from casino_engine.games.hand_match import HandType, classify_hand
from casino_engine.games.slots import SlotSymbol, evaluate_grid
from casino_engine.games.wheel import (
    MAX_SPIN_DEGREES, MIN_SPIN_DEGREES, WHEEL_SEGMENTS, draw_spin_degrees,
    segment_index_for_rotation, spin_duration,
)
from casino_engine.mood import Mood
from casino_engine.scheduler import ManualScheduler
from casino_engine.session import CasinoSession
from testing_utils import FixedClock, ScriptedRandom, make_economy

C, L, S, SEVEN, BAR = (SlotSymbol.CHERRY, SlotSymbol.LEMON, SlotSymbol.STAR,
                       SlotSymbol.SEVEN, SlotSymbol.BAR)
NO_MATCH = [C, L, S, L, S, C, S, C, L]


class FailingStore(MemoryStore):
    """MemoryStore whose next batch write raises once."""

    fail_next = False

    def set_many(self, values):
        if self.fail_next:
            self.fail_next = False
            raise sqlite3.OperationalError("disk I/O error")
        super().set_many(values)


# ============================================================
# Round Lifecycle Tests
# ============================================================

class TestRoundLifecycle(unittest.TestCase):
    """Behaviour shared by every engine through BaseGameEngine."""

    def setUp(self):
        self.sched = ManualScheduler()
        self.economy = make_economy(balance=1000)

    def test_play_rejected_while_in_progress(self):
        engine = SlotEngine(self.economy, scheduler=self.sched, rng=ScriptedRandom(choices=NO_MATCH))
        self.assertTrue(engine.spin())
        self.assertTrue(engine.is_spinning)
        self.assertFalse(engine.can_spin)
        self.assertFalse(engine.spin())
        self.assertEqual(self.economy.balance, 990)   # only one bet taken

    def test_resolved_round_allows_next_play(self):
        engine = SlotEngine(self.economy, scheduler=self.sched, rng=ScriptedRandom(choices=NO_MATCH))
        engine.spin()
        self.sched.run_until_idle()
        self.assertEqual(engine.round.phase, RoundPhase.RESOLVED)
        self.assertTrue(engine.can_spin)
        self.assertTrue(engine.spin())

    def test_cannot_play_without_funds(self):
        economy = make_economy(balance=5)
        engine = HandMatchEngine(economy, scheduler=self.sched)
        self.assertFalse(engine.can_deal)
        self.assertFalse(engine.deal())
        self.assertEqual(economy.balance, 5)
        self.assertEqual(engine.round.phase, RoundPhase.IDLE)

    def test_exact_balance_can_play(self):
        economy = make_economy(balance=10)
        engine = DropEngine(economy, scheduler=self.sched)
        self.assertTrue(engine.drop())
        self.assertEqual(economy.balance, 0)

    def test_set_bet_clamps(self):
        engine = CrashEngine(self.economy, scheduler=self.sched)
        self.assertEqual(engine.bet_amount, 20)
        engine.set_bet(10_000)
        self.assertEqual(engine.bet_amount, 500)
        engine.set_bet(1)
        self.assertEqual(engine.bet_amount, 5)
        engine.step_bet(1)
        self.assertEqual(engine.bet_amount, 15)

    def test_set_bet_refused_mid_round(self):
        engine = WheelEngine(self.economy, scheduler=self.sched)
        engine.spin()
        self.assertFalse(engine.set_bet(100))
        self.assertEqual(engine.bet_amount, 25)

    def test_set_bet_snaps_to_step(self):
        slots = SlotEngine(self.economy, scheduler=self.sched)
        slots.set_bet(7)
        self.assertEqual(slots.bet_amount, 5)
        slots.set_bet(8)
        self.assertEqual(slots.bet_amount, 10)

        crash = CrashEngine(self.economy, scheduler=self.sched, bet=33)
        self.assertEqual(crash.bet_amount, 30)
        crash.step_bet(-1)
        self.assertEqual(crash.bet_amount, 20)

    def test_failed_save_still_resolves_round(self):
        store = FailingStore()
        economy = make_economy(balance=100, store=store)
        engine = HandMatchEngine(economy, scheduler=self.sched, rng=ScriptedRandom(randints=[7] * 5))
        engine.deal()

        store.fail_next = True
        with self.assertRaises(sqlite3.OperationalError):
            self.sched.run_until_idle()

        self.assertEqual(engine.round.phase, RoundPhase.RESOLVED)
        self.assertEqual(engine.round.outcome.hand_type, HandType.FIVE_KIND)
        self.assertAlmostEqual(engine.last_win, 120 - 10)
        self.assertEqual(self.sched.pending, 0)
        self.assertTrue(engine.can_deal)
        self.assertTrue(engine.deal())

    def test_default_scheduler_is_private(self):
        engine = get_game_engine("hand", self.economy)
        self.assertIsNot(engine.scheduler, self.sched)
        engine.deal()
        self.sched.run_until_idle()
        self.assertTrue(engine.is_dealing)
        engine.scheduler.run_until_idle()
        self.assertFalse(engine.is_dealing)

    def test_mood_read_at_settlement(self):
        """A boost bought after the bet still applies if it's active at settlement."""
        clock = FixedClock()
        economy = make_economy(balance=1000, mood=Mood.CHILL, clock=clock)
        engine = HandMatchEngine(economy, scheduler=self.sched, rng=ScriptedRandom(randints=[3, 3, 3, 3, 3]))
        engine.deal()
        economy.activate_mood_boost(60)
        self.sched.run_until_idle()
        self.assertAlmostEqual(economy.balance, 990 + 120 * 1.15)
        self.assertAlmostEqual(engine.last_win, 120 * 1.15 - 10)


# ============================================================
# Slot Engine Tests
# ============================================================

class TestSlotEngine(unittest.TestCase):

    def setUp(self):
        self.sched = ManualScheduler()
        self.economy = make_economy(balance=1000, mood=Mood.CHILL)

    def test_first_row_wins_and_stops(self):
        """Top row of sevens pays ×10 even though the bottom row is bars."""
        grid = [[SEVEN, SEVEN, SEVEN], [C, L, S], [BAR, BAR, BAR]]
        outcome = evaluate_grid(grid)
        self.assertEqual(outcome.winning_row, 0)
        self.assertEqual(outcome.symbol, SEVEN)

    def test_middle_row_match(self):
        outcome = evaluate_grid([[C, L, S], [L, L, L], [S, S, S]])
        self.assertEqual(outcome.winning_row, 1)
        self.assertEqual(outcome.symbol.payout, 3)

    def test_engine_credits_first_row_only(self):
        rng = ScriptedRandom(choices=[SEVEN] * 3 + [C, L, S] + [BAR] * 3)
        engine = SlotEngine(self.economy, scheduler=self.sched, rng=rng)
        engine.spin()
        self.assertEqual(self.economy.balance, 990)

        self.sched.advance(2.5)
        self.assertTrue(engine.is_spinning)
        self.sched.advance(0.2)
        self.assertFalse(engine.is_spinning)

        self.assertEqual(self.economy.balance, 990 + 100)
        self.assertEqual(self.economy.session_wins, 1)
        self.assertEqual(engine.last_win, 90)
        self.assertEqual(engine.round.outcome.winning_row, 0)

    def test_no_match_no_credit(self):
        engine = SlotEngine(self.economy, scheduler=self.sched, rng=ScriptedRandom(choices=NO_MATCH))
        engine.spin()
        self.sched.run_until_idle()
        self.assertEqual(self.economy.balance, 990)
        self.assertEqual(self.economy.session_wins, 0)
        self.assertEqual(engine.last_win, -10)
        self.assertFalse(engine.round.outcome.is_win)

    def test_hot_mood_bonus(self):
        economy = make_economy(balance=1000, mood=Mood.HOT)
        engine = SlotEngine(economy, scheduler=self.sched, rng=ScriptedRandom(choices=[BAR] * 9))
        engine.spin()
        self.sched.run_until_idle()
        self.assertAlmostEqual(economy.balance, 990 + 150 * 1.15)


# ============================================================
# Wheel Engine Tests
# ============================================================

class TestWheelEngine(unittest.TestCase):

    def setUp(self):
        self.sched = ManualScheduler()
        self.economy = make_economy(balance=1000, mood=Mood.CHILL)

    def test_segment_index_ignores_full_turns(self):
        for turns in range(4, 9):
            self.assertEqual(segment_index_for_rotation(360 * turns - 150), 3)

    def test_segment_index_edges(self):
        self.assertEqual(segment_index_for_rotation(0), 0)
        self.assertEqual(segment_index_for_rotation(1440), 0)
        self.assertEqual(segment_index_for_rotation(10), 7)
        self.assertEqual(segment_index_for_rotation(45), 7)
        self.assertEqual(segment_index_for_rotation(44.9), 7)
        self.assertEqual(segment_index_for_rotation(46), 6)

    def test_spin_settles_after_duration(self):
        engine = WheelEngine(self.economy, scheduler=self.sched, rng=ScriptedRandom(randoms=[0.140625]))
        engine.spin()
        self.assertEqual(self.economy.balance, 975)
        self.assertEqual(engine.round.progress["spin_degrees"], 1642.5)
        self.assertAlmostEqual(spin_duration(1642.5), 4.6875)

        self.sched.advance(4.6)
        self.assertTrue(engine.is_spinning)
        self.sched.advance(0.1)
        self.assertFalse(engine.is_spinning)

        self.assertEqual(engine.round.outcome.segment_index, 3)
        self.assertEqual(engine.round.outcome.segment, WHEEL_SEGMENTS[3])
        self.assertAlmostEqual(self.economy.balance, 975 + 25 * 0.8)
        self.assertAlmostEqual(engine.last_win, 20 - 25)

    def test_rotation_accumulates(self):
        engine = WheelEngine(self.economy, scheduler=self.sched,
                             rng=ScriptedRandom(randoms=[0.140625, 0.0]))
        engine.spin()
        self.sched.run_until_idle()
        engine.spin()
        self.sched.run_until_idle()
        self.assertEqual(engine.rotation_angle, 3082.5)
        self.assertEqual(engine.round.outcome.segment_index, 3)

    def test_spin_range_excludes_upper_bound(self):
        engine = WheelEngine(self.economy, scheduler=self.sched,
                             rng=ScriptedRandom(uniforms=[MAX_SPIN_DEGREES], randoms=[0.5]))
        engine.spin()
        self.assertEqual(engine.round.progress["spin_degrees"], 2160.0)

        self.assertEqual(draw_spin_degrees(ScriptedRandom(randoms=[0.0])), MIN_SPIN_DEGREES)
        self.assertLess(draw_spin_degrees(ScriptedRandom(randoms=[0.999999])), MAX_SPIN_DEGREES)

    def test_segment_titles(self):
        self.assertEqual(WHEEL_SEGMENTS[6].title, "x10.0")
        self.assertEqual(len(WHEEL_SEGMENTS), 8)


# ============================================================
# Crash Engine Tests
# ============================================================

class TestCrashEngine(unittest.TestCase):

    def setUp(self):
        self.sched = ManualScheduler()
        self.economy = make_economy(balance=1000, mood=Mood.CHILL)

    def test_growth_compounds(self):
        m1 = next_multiplier(1.0)
        m2 = next_multiplier(m1)
        m3 = next_multiplier(m2)
        self.assertAlmostEqual(m1, 1.02)
        self.assertGreater(m3 - m2, m2 - m1)

    def test_cash_out_at_two(self):
        engine = CrashEngine(self.economy, scheduler=self.sched, rng=ScriptedRandom(uniforms=[8.0]))
        engine.start()
        self.sched.advance(0.5)
        engine.multiplier = 2.0
        self.assertTrue(engine.cash_out())
        self.assertEqual(self.economy.balance, 980 + 40)
        self.assertEqual(engine.last_win, 20)
        self.assertEqual(engine.round.outcome.status, CrashStatus.CASHED_OUT)
        # ticking stopped
        self.sched.advance(5)
        self.assertEqual(engine.multiplier, 2.0)
        self.assertFalse(engine.cash_out())

    def test_cash_out_after_ticks(self):
        engine = CrashEngine(self.economy, scheduler=self.sched, rng=ScriptedRandom(uniforms=[8.0]))
        engine.start()
        while engine.multiplier < 2.0:
            self.sched.advance(0.05)
        self.assertEqual(engine.ticks, 41)
        m = engine.multiplier
        engine.cash_out()
        self.assertAlmostEqual(self.economy.balance, 980 + 20 * m)

    def test_crash_beats_queued_cash_out(self):
        """Threshold 1.5 with an auto cash-out at 1.5: the crash wins the race."""
        engine = CrashEngine(self.economy, scheduler=self.sched,
                             rng=ScriptedRandom(uniforms=[1.5]), auto_cash_out=1.5)
        engine.start()
        self.sched.run_until_idle()
        self.assertTrue(engine.is_crashed)
        self.assertFalse(engine.is_running)
        self.assertEqual(engine.round.outcome.status, CrashStatus.CRASHED)
        self.assertEqual(self.economy.balance, 980)
        self.assertEqual(self.economy.session_wins, 0)
        self.assertEqual(engine.last_win, -20)
        self.assertFalse(engine.cash_out())

    def test_auto_cash_out_below_crash(self):
        engine = CrashEngine(self.economy, scheduler=self.sched,
                             rng=ScriptedRandom(uniforms=[3.0]), auto_cash_out=1.5)
        engine.start()
        self.sched.run_until_idle()
        outcome = engine.round.outcome
        self.assertEqual(outcome.status, CrashStatus.CASHED_OUT)
        self.assertGreaterEqual(outcome.multiplier, 1.5)
        self.assertLess(outcome.multiplier, 1.6)
        self.assertAlmostEqual(self.economy.balance, 980 + 20 * outcome.multiplier)

    def test_stop_abandons_without_settling(self):
        engine = CrashEngine(self.economy, scheduler=self.sched, rng=ScriptedRandom(uniforms=[8.0]))
        engine.start()
        self.sched.advance(0.5)
        frozen = engine.multiplier
        engine.stop()
        self.sched.advance(5)
        self.assertEqual(engine.multiplier, frozen)
        self.assertEqual(self.economy.balance, 980)
        self.assertEqual(self.economy.session_wins, 0)
        self.assertEqual(engine.round.outcome.status, CrashStatus.ABANDONED)
        self.assertFalse(engine.can_cash_out)
        self.assertTrue(engine.can_start)

    def test_stop_when_idle_is_noop(self):
        engine = CrashEngine(self.economy, scheduler=self.sched)
        engine.stop()
        self.assertEqual(engine.round.phase, RoundPhase.IDLE)


# ============================================================
# Drop Engine Tests
# ============================================================

class TestDropEngine(unittest.TestCase):

    def setUp(self):
        self.sched = ManualScheduler()
        self.economy = make_economy(balance=1000, mood=Mood.CHILL)

    def test_column_mapping(self):
        self.assertEqual(slot_index_for_column(0), 0)
        self.assertEqual(slot_index_for_column(4), 4)
        self.assertEqual(slot_index_for_column(7), 7)
        self.assertEqual(slot_index_for_column(8), 7)

    def test_next_column_clamps(self):
        self.assertEqual(next_column(0, -1), 0)
        self.assertEqual(next_column(8, 1), 8)
        self.assertEqual(next_column(4, 1), 5)

    def test_rightmost_column_lands_in_last_slot(self):
        engine = DropEngine(self.economy, scheduler=self.sched, rng=ScriptedRandom(randints=[1] * 6))
        engine.drop()
        self.sched.advance(0.7)
        self.assertTrue(engine.is_dropping)
        self.sched.advance(0.05)
        self.assertFalse(engine.is_dropping)

        outcome = engine.round.outcome
        self.assertEqual(outcome.path, [4, 5, 6, 7, 8, 8, 8])
        self.assertEqual(outcome.column, 8)
        self.assertEqual(outcome.slot_index, 7)
        self.assertAlmostEqual(self.economy.balance, 990 + 10 * 0.8)

    def test_straight_down_hits_center(self):
        engine = DropEngine(self.economy, scheduler=self.sched, rng=ScriptedRandom(randints=[0] * 6))
        engine.drop()
        self.sched.run_until_idle()
        self.assertEqual(engine.round.outcome.multiplier, 3.0)
        self.assertEqual(self.economy.balance, 990 + 30)
        self.assertEqual(engine.last_win, 20)


# ============================================================
# Hand Match Engine Tests
# ============================================================

class TestHandMatchEngine(unittest.TestCase):

    def setUp(self):
        self.sched = ManualScheduler()
        self.economy = make_economy(balance=1000, mood=Mood.CHILL)

    def test_classification(self):
        cases = [
            ([3, 3, 3, 3, 3], HandType.FIVE_KIND),
            ([4, 4, 4, 4, 1], HandType.FOUR_KIND),
            ([1, 2, 2, 1, 1], HandType.FULL_HOUSE),
            ([1, 2, 3, 4, 5], HandType.STRAIGHT),
            ([5, 9, 7, 6, 8], HandType.STRAIGHT),
            ([7, 7, 7, 1, 2], HandType.THREE_KIND),
            ([2, 2, 3, 3, 4], HandType.TWO_PAIR),
            ([1, 1, 2, 3, 4], HandType.ONE_PAIR),
            ([1, 2, 3, 4, 6], HandType.HIGH_CARD),
        ]
        for digits, expected in cases:
            self.assertEqual(classify_hand(digits), expected, f"{digits}")

    def test_multipliers(self):
        self.assertEqual(HandType.FIVE_KIND.multiplier, 12.0)
        self.assertEqual(HandType.STRAIGHT.multiplier, 4.0)
        self.assertEqual(HandType.HIGH_CARD.multiplier, 0.2)

    def test_five_of_a_kind_pays_twelve(self):
        engine = HandMatchEngine(self.economy, scheduler=self.sched,
                                 rng=ScriptedRandom(randints=[3, 3, 3, 3, 3]))
        engine.deal()
        self.assertTrue(engine.is_dealing)
        self.sched.advance(0.3)
        self.assertFalse(engine.is_dealing)
        self.assertEqual(engine.hand_type, HandType.FIVE_KIND)
        self.assertEqual(self.economy.balance, 990 + 120)

    def test_high_card_still_credits(self):
        engine = HandMatchEngine(self.economy, scheduler=self.sched,
                                 rng=ScriptedRandom(randints=[1, 2, 3, 4, 6]))
        engine.deal()
        self.sched.run_until_idle()
        self.assertAlmostEqual(self.economy.balance, 992)
        self.assertEqual(self.economy.session_wins, 1)
        self.assertAlmostEqual(engine.last_win, -8)


# ============================================================
# Registry & Session Tests
# ============================================================

class TestRegistry(unittest.TestCase):

    def test_lookup(self):
        economy = make_economy()
        self.assertIsInstance(get_game_engine("CRASH", economy), CrashEngine)
        self.assertIsInstance(get_game_engine("hand", economy), HandMatchEngine)

    def test_unknown_game(self):
        with self.assertRaises(ValueError):
            get_game_engine("roulette", make_economy())


class TestCasinoSession(unittest.TestCase):

    def test_first_launch_and_shared_economy(self):
        store = MemoryStore()
        session = CasinoSession(store)
        self.assertTrue(session.first_launch)
        self.assertEqual(session.economy.balance, EconomyConfig.FIRST_LAUNCH_BALANCE)
        self.assertIs(session.game("slots"), session.game("Slots"))
        self.assertIs(session.game("wheel").economy, session.economy)
        self.assertEqual(len(session.games()), 5)

        session.game("drop").drop()
        self.assertTrue(session.busy)
        session.scheduler.run_until_idle()
        self.assertFalse(session.busy)

        again = CasinoSession(store)
        self.assertFalse(again.first_launch)
        self.assertEqual(again.economy.balance, session.economy.balance)

    def test_open_persists_to_sqlite(self):
        fd, path = tempfile.mkstemp(suffix=".db")
        os.close(fd)
        try:
            session = CasinoSession.open(path)
            session.economy.add_balance(250)
            session.store.close()

            reopened = CasinoSession.open(path)
            self.assertFalse(reopened.first_launch)
            self.assertEqual(reopened.economy.balance, EconomyConfig.FIRST_LAUNCH_BALANCE + 250)
            reopened.store.close()
        finally:
            os.remove(path)


if __name__ == "__main__":
    import logging
    logging.disable(logging.WARNING)

    unittest.main(verbosity=2)
