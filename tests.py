#!/usr/bin/env python3
"""
MOOD CASINO — Economy & Infrastructure Test Suite

Run: python tests.py
     python tests.py -v            # verbose
     python tests.py TestEconomy   # run specific class

Test categories:
  TestMoodSelector    — weighted roll boundaries and long-run frequencies
  TestEconomy         — debit/credit settlement, mood multiplier, win counter
  TestDailyBonus      — eligibility by balance and calendar day
  TestMoodBoost       — Hot override expiry, shop purchase
  TestPersistence     — save/load, zero-balance flag, corrupt data fallbacks
  TestSQLiteStore     — on-disk key-value round trips
  TestBootstrap       — one-time first-launch grant
  TestScheduler       — virtual clock and asyncio scheduling, cancellation
"""

import asyncio
import os
import random
import sys
import tempfile
import unittest
from collections import Counter
from datetime import datetime, timedelta
from pathlib import Path

# ── Ensure project root is on sys.path ──
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from config.database import MemoryStore, SQLiteStore
from config.settings import EconomyConfig, StorageConfig
from casino_engine.bootstrap import grant_initial_balance
from casino_engine.economy import EconomyEngine
from casino_engine.mood import Mood, select_mood
from casino_engine.scheduler import AsyncioScheduler, ManualScheduler
from testing_utils import FixedClock, ScriptedRandom, make_economy


# ============================================================
# Mood Selector Tests
# ============================================================

class TestMoodSelector(unittest.TestCase):
    """Weighted session-mood roll."""

    def test_cumulative_boundaries(self):
        """Draw is compared with cumulative weights 0.4 / 0.8 / 1.0 using <=."""
        cases = [
            (0.0, Mood.CHILL),
            (0.4, Mood.CHILL),
            (0.41, Mood.NEUTRAL),
            (0.8, Mood.NEUTRAL),
            (0.81, Mood.HOT),
            (0.999, Mood.HOT),
        ]
        for draw, expected in cases:
            rng = ScriptedRandom(randoms=[draw])
            self.assertEqual(select_mood(rng), expected, f"draw={draw}")

    def test_frequencies_converge(self):
        """Over 100k draws each mood lands within 1% of its weight."""
        rng = random.Random(1234)
        n = 100_000
        counts = Counter(select_mood(rng) for _ in range(n))
        for mood in Mood:
            self.assertAlmostEqual(counts[mood] / n, mood.weight, delta=0.01)

    def test_multipliers(self):
        self.assertEqual(Mood.CHILL.multiplier, 1.00)
        self.assertEqual(Mood.NEUTRAL.multiplier, 1.05)
        self.assertEqual(Mood.HOT.multiplier, 1.15)

    def test_unknown_tag_falls_back(self):
        self.assertEqual(Mood.from_tag("hot"), Mood.HOT)
        self.assertEqual(Mood.from_tag("grumpy"), Mood.NEUTRAL)
        self.assertEqual(Mood.from_tag(None, default=Mood.CHILL), Mood.CHILL)


# ============================================================
# Economy Tests
# ============================================================

class TestEconomy(unittest.TestCase):
    """Settlement through the economy engine."""

    def test_credit_is_additive_for_every_mood(self):
        """balance_after == before + base + base*(multiplier-1)."""
        for mood in Mood:
            economy = make_economy(balance=1000, mood=mood)
            before = economy.balance
            economy.credit(100)
            self.assertEqual(economy.balance, before + (100 + 100 * (mood.multiplier - 1)))
            self.assertEqual(economy.session_wins, 1)

    def test_debit_is_unchecked(self):
        """debit() never refuses; callers are expected to check can_afford()."""
        economy = make_economy(balance=10)
        self.assertFalse(economy.can_afford(50))
        economy.debit(50)
        self.assertEqual(economy.balance, -40)

    def test_can_afford_is_inclusive(self):
        economy = make_economy(balance=25)
        self.assertTrue(economy.can_afford(25))
        self.assertFalse(economy.can_afford(25.01))

    def test_add_balance_skips_mood_and_wins(self):
        economy = make_economy(balance=100, mood=Mood.HOT)
        economy.add_balance(50)
        self.assertEqual(economy.balance, 150)
        self.assertEqual(economy.session_wins, 0)

    def test_every_mutation_persists(self):
        store = MemoryStore()
        economy = make_economy(balance=1000, store=store)
        economy.debit(10)
        self.assertEqual(store.get(StorageConfig.BALANCE_KEY), 990)
        economy.credit(20)
        self.assertEqual(store.get(StorageConfig.BALANCE_KEY), 1010)
        self.assertEqual(store.get(StorageConfig.SESSION_WINS_KEY), 1)

    def test_reroll_on_start(self):
        """A fresh engine rolls its session mood from the injected RNG."""
        economy = EconomyEngine(store=MemoryStore(), rng=ScriptedRandom(randoms=[0.95]))
        self.assertEqual(economy.current_mood, Mood.HOT)

    def test_snapshot(self):
        economy = make_economy(balance=321, mood=Mood.NEUTRAL)
        state = economy.snapshot()
        self.assertEqual(state.balance, 321)
        self.assertEqual(state.effective_mood, Mood.NEUTRAL)
        self.assertEqual(state.to_dict()["current_mood"], "neutral")


# ============================================================
# Daily Bonus Tests
# ============================================================

class TestDailyBonus(unittest.TestCase):
    """+500 once per calendar day while balance < 100."""

    def setUp(self):
        self.clock = FixedClock(datetime(2026, 3, 10, 12, 0, 0))
        self.economy = make_economy(balance=50, clock=self.clock)

    def test_grant_then_same_day_noop(self):
        self.assertTrue(self.economy.grant_daily_bonus())
        self.assertEqual(self.economy.balance, 550)
        self.assertEqual(self.economy.last_daily_bonus, self.clock.current)

        self.economy.balance = 50
        self.clock.advance(hours=11, minutes=59)   # 23:59 same day
        self.assertFalse(self.economy.grant_daily_bonus())
        self.assertEqual(self.economy.balance, 50)

    def test_next_calendar_day_succeeds(self):
        self.assertTrue(self.economy.grant_daily_bonus())
        self.economy.balance = 50
        self.clock.advance(hours=12, minutes=1)    # 00:01 next day, < 24h later
        self.assertTrue(self.economy.can_take_daily_bonus)
        self.assertTrue(self.economy.grant_daily_bonus())
        self.assertEqual(self.economy.balance, 550)

    def test_balance_threshold(self):
        self.economy.balance = 100
        self.assertFalse(self.economy.can_take_daily_bonus)
        self.assertFalse(self.economy.grant_daily_bonus())
        self.assertEqual(self.economy.balance, 100)

    def test_bonus_does_not_count_as_win(self):
        self.economy.current_mood = Mood.HOT
        self.economy.grant_daily_bonus()
        self.assertEqual(self.economy.balance, 50 + EconomyConfig.DAILY_BONUS)
        self.assertEqual(self.economy.session_wins, 0)


# ============================================================
# Mood Boost Tests
# ============================================================

class TestMoodBoost(unittest.TestCase):
    """Hot Mood Booster override."""

    def setUp(self):
        self.clock = FixedClock()

    def test_boost_forces_hot_until_expiry(self):
        for mood in Mood:
            clock = FixedClock()
            economy = make_economy(mood=mood, clock=clock)
            economy.activate_mood_boost(1800)
            self.assertEqual(economy.effective_mood, Mood.HOT)
            clock.advance(seconds=1799)
            self.assertEqual(economy.effective_mood, Mood.HOT)
            clock.advance(seconds=1)
            self.assertEqual(economy.effective_mood, mood)
            self.assertEqual(economy.current_mood, mood)

    def test_boost_accepts_timedelta(self):
        economy = make_economy(mood=Mood.CHILL, clock=self.clock)
        economy.activate_mood_boost(timedelta(minutes=5))
        self.assertEqual(economy.boost_remaining, timedelta(minutes=5))

    def test_boosted_credit_uses_hot_multiplier(self):
        economy = make_economy(balance=0, mood=Mood.CHILL, clock=self.clock)
        economy.activate_mood_boost(60)
        economy.credit(100)
        self.assertAlmostEqual(economy.balance, 115.0)

    def test_reroll_does_not_clear_boost(self):
        economy = make_economy(mood=Mood.CHILL, clock=self.clock)
        economy.rng = ScriptedRandom(randoms=[0.1])
        economy.activate_mood_boost(60)
        economy.reroll_mood()
        self.assertEqual(economy.current_mood, Mood.CHILL)
        self.assertEqual(economy.effective_mood, Mood.HOT)

    def test_purchase(self):
        economy = make_economy(balance=150, mood=Mood.CHILL, clock=self.clock)
        self.assertTrue(economy.purchase_mood_boost())
        self.assertEqual(economy.balance, 50)
        self.assertTrue(economy.is_boost_active)
        self.assertEqual(economy.boost_remaining, timedelta(seconds=EconomyConfig.BOOST_SECONDS))

    def test_purchase_rejected_when_short(self):
        economy = make_economy(balance=99, mood=Mood.CHILL, clock=self.clock)
        self.assertFalse(economy.purchase_mood_boost())
        self.assertEqual(economy.balance, 99)
        self.assertFalse(economy.is_boost_active)


# ============================================================
# Persistence Tests
# ============================================================

class TestPersistence(unittest.TestCase):
    """Save/load through the key-value port."""

    def test_round_trip(self):
        clock = FixedClock()
        store = MemoryStore()
        economy = make_economy(balance=1000, mood=Mood.HOT, store=store, clock=clock)
        economy.credit(10)
        economy.balance = 60
        economy.grant_daily_bonus()

        reloaded = EconomyEngine(store=store, clock=clock, reroll_on_start=False)
        self.assertEqual(reloaded.balance, economy.balance)
        self.assertEqual(reloaded.current_mood, Mood.HOT)
        self.assertEqual(reloaded.session_wins, 1)
        self.assertEqual(reloaded.last_daily_bonus, clock.current)

    def test_missing_balance_defaults(self):
        economy = EconomyEngine(store=MemoryStore(), reroll_on_start=False)
        self.assertEqual(economy.balance, EconomyConfig.STARTING_BALANCE)
        self.assertEqual(economy.current_mood, Mood.NEUTRAL)

    def test_legacy_zero_balance_treated_as_absent(self):
        store = MemoryStore({StorageConfig.BALANCE_KEY: 0.0})
        economy = EconomyEngine(store=store, reroll_on_start=False)
        self.assertEqual(economy.balance, EconomyConfig.STARTING_BALANCE)

    def test_initialized_zero_balance_is_kept(self):
        store = MemoryStore({
            StorageConfig.BALANCE_KEY: 0.0,
            StorageConfig.BALANCE_INITIALIZED_KEY: True,
        })
        economy = EconomyEngine(store=store, reroll_on_start=False)
        self.assertEqual(economy.balance, 0.0)

    def test_saving_zero_survives_reload(self):
        store = MemoryStore()
        economy = make_economy(balance=20, store=store)
        economy.debit(20)
        reloaded = EconomyEngine(store=store, reroll_on_start=False)
        self.assertEqual(reloaded.balance, 0)

    def test_corrupt_values_fall_back(self):
        store = MemoryStore({
            StorageConfig.BALANCE_KEY: "lots",
            StorageConfig.CURRENT_MOOD_KEY: "grumpy",
            StorageConfig.SESSION_WINS_KEY: "many",
            StorageConfig.LAST_DAILY_BONUS_KEY: "yesterday",
        })
        economy = EconomyEngine(store=store, reroll_on_start=False)
        self.assertEqual(economy.balance, EconomyConfig.STARTING_BALANCE)
        self.assertEqual(economy.current_mood, Mood.NEUTRAL)
        self.assertEqual(economy.session_wins, 0)
        self.assertIsNone(economy.last_daily_bonus)

    def test_every_mood_tag_round_trips(self):
        for mood in Mood:
            store = MemoryStore({StorageConfig.CURRENT_MOOD_KEY: mood.value})
            economy = EconomyEngine(store=store, reroll_on_start=False)
            self.assertEqual(economy.current_mood, mood)

    def test_boost_is_not_persisted(self):
        store = MemoryStore()
        economy = make_economy(store=store)
        economy.activate_mood_boost(600)
        reloaded = EconomyEngine(store=store, reroll_on_start=False)
        self.assertIsNone(reloaded.boost_until)


# ============================================================
# SQLite Store Tests
# ============================================================

class TestSQLiteStore(unittest.TestCase):
    """On-disk key-value backend."""

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.path = os.path.join(self.tmpdir, "casino.db")

    def test_values_survive_reopen(self):
        with SQLiteStore(self.path) as store:
            store.set("balance", 1234.5)
            store.set("currentMood", "chill")
            store.set("didAddInitialCoins", True)
        with SQLiteStore(self.path) as store:
            self.assertEqual(store.get("balance"), 1234.5)
            self.assertEqual(store.get("currentMood"), "chill")
            self.assertTrue(store.get_bool("didAddInitialCoins"))
            self.assertIsNone(store.get("missing"))
            self.assertIn("balance", store)

    def test_delete(self):
        with SQLiteStore(self.path) as store:
            store.set("k", 1)
            store.delete("k")
            self.assertNotIn("k", store)

    def test_corrupt_row_returns_default(self):
        with SQLiteStore(self.path) as store:
            store._conn.execute("INSERT INTO kv (key, value) VALUES (?, ?)", ["balance", "{not json"])
            store._conn.commit()
            self.assertEqual(store.get("balance", 7), 7)

    def test_economy_on_sqlite(self):
        with SQLiteStore(self.path) as store:
            economy = make_economy(balance=500, mood=Mood.NEUTRAL, store=store)
            economy.debit(100)
        with SQLiteStore(self.path) as store:
            reloaded = EconomyEngine(store=store, reroll_on_start=False)
            self.assertEqual(reloaded.balance, 400)
            self.assertEqual(reloaded.current_mood, Mood.NEUTRAL)


# ============================================================
# Bootstrap Tests
# ============================================================

class TestBootstrap(unittest.TestCase):
    """First-launch grant."""

    def test_grant_once(self):
        store = MemoryStore()
        self.assertTrue(grant_initial_balance(store))
        self.assertEqual(store.get(StorageConfig.BALANCE_KEY), EconomyConfig.FIRST_LAUNCH_BALANCE)
        store.set(StorageConfig.BALANCE_KEY, 42.0)
        self.assertFalse(grant_initial_balance(store))
        self.assertEqual(store.get(StorageConfig.BALANCE_KEY), 42.0)

    def test_economy_loads_grant(self):
        store = MemoryStore()
        grant_initial_balance(store)
        economy = EconomyEngine(store=store, reroll_on_start=False)
        self.assertEqual(economy.balance, EconomyConfig.FIRST_LAUNCH_BALANCE)


# ============================================================
# Scheduler Tests
# ============================================================

class TestScheduler(unittest.TestCase):
    """Virtual-clock and asyncio scheduling."""

    def test_call_later_fires_in_due_order(self):
        sched = ManualScheduler()
        fired = []
        sched.call_later(0.3, lambda: fired.append("b"))
        sched.call_later(0.1, lambda: fired.append("a"))
        sched.advance(0.2)
        self.assertEqual(fired, ["a"])
        sched.advance(0.2)
        self.assertEqual(fired, ["a", "b"])
        self.assertAlmostEqual(sched.now(), 0.4)

    def test_cancel_prevents_fire(self):
        sched = ManualScheduler()
        fired = []
        task = sched.call_later(0.1, lambda: fired.append(1))
        task.cancel()
        task.cancel()
        sched.advance(1)
        self.assertEqual(fired, [])
        self.assertEqual(sched.pending, 0)

    def test_call_every(self):
        sched = ManualScheduler()
        fired = []
        task = sched.call_every(0.05, lambda: fired.append(sched.now()))
        sched.advance(1.0)
        self.assertEqual(len(fired), 20)
        task.cancel()
        sched.advance(1.0)
        self.assertEqual(len(fired), 20)

    def test_cancel_from_inside_callback(self):
        sched = ManualScheduler()
        holder = {}

        def tick():
            if holder["task"].fired >= 3:
                holder["task"].cancel()

        holder["task"] = sched.call_every(0.1, tick)
        sched.run_until_idle()
        self.assertEqual(holder["task"].fired, 3)

    def test_asyncio_scheduler(self):
        fired = []

        async def scenario():
            sched = AsyncioScheduler()
            sched.call_later(0.01, lambda: fired.append("once"))
            holder = {}

            def tick():
                fired.append("tick")
                if holder["task"].fired >= 3:
                    holder["task"].cancel()

            holder["task"] = sched.call_every(0.01, tick)
            await asyncio.sleep(0.2)

        asyncio.run(scenario())
        self.assertEqual(fired.count("once"), 1)
        self.assertEqual(fired.count("tick"), 3)


# ============================================================
# Main
# ============================================================

if __name__ == "__main__":
    # Configure logging to suppress noise during tests
    import logging
    logging.disable(logging.WARNING)

    unittest.main(verbosity=2)
