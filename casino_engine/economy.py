"""
MOOD CASINO — Economy Engine

Single source of truth for the player's coins. Owns the balance, the session
mood, the win counter, daily-bonus eligibility and the Hot Mood Booster
override. Every mutation is persisted through the key-value port right away.

Bet contract (check-then-act):
    if economy.can_afford(bet):
        economy.debit(bet)

debit() itself never refuses. Game engines gate every debit behind their
can_play check; the shop does the same before charging for a boost.

Usage:
    from casino_engine.economy import EconomyEngine
    economy = EconomyEngine(store=SQLiteStore())
    economy.credit(50)            # pays 50 × effective mood multiplier
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, asdict
from datetime import datetime, timedelta
from typing import Callable, Optional, Union

from config.casino_schema import PersistedEconomy
from config.database import KeyValueStore, MemoryStore
from config.settings import EconomyConfig, StorageConfig
from casino_engine.mood import Mood, select_mood

logger = logging.getLogger("moodcasino.economy")


@dataclass(frozen=True)
class EconomyState:
    """Read-only snapshot of the economy."""
    balance: float
    current_mood: Mood
    effective_mood: Mood
    boost_until: Optional[datetime]
    session_wins: int
    last_daily_bonus: Optional[datetime]

    def to_dict(self) -> dict:
        d = asdict(self)
        d["current_mood"] = self.current_mood.value
        d["effective_mood"] = self.effective_mood.value
        d["boost_until"] = self.boost_until.isoformat() if self.boost_until else None
        d["last_daily_bonus"] = self.last_daily_bonus.isoformat() if self.last_daily_bonus else None
        return d


class EconomyEngine:
    """Balance, mood and settlement for every game."""

    def __init__(self, store: Optional[KeyValueStore] = None,
                 rng: Optional[random.Random] = None,
                 clock: Optional[Callable[[], datetime]] = None,
                 reroll_on_start: bool = True):
        self.store = store if store is not None else MemoryStore()
        self.rng = rng or random.Random()
        self._clock = clock or datetime.now

        self.balance: float = EconomyConfig.STARTING_BALANCE
        self.current_mood: Mood = Mood.NEUTRAL
        self.session_wins: int = 0
        self.last_daily_bonus: Optional[datetime] = None
        self.boost_until: Optional[datetime] = None

        self._load()
        if reroll_on_start:
            self.reroll_mood()

    def now(self) -> datetime:
        return self._clock()

    # ── Mood ──────────────────────────────────────────────────

    @property
    def effective_mood(self) -> Mood:
        if self.is_boost_active:
            return Mood.HOT
        return self.current_mood

    @property
    def is_boost_active(self) -> bool:
        return self.boost_until is not None and self.now() < self.boost_until

    @property
    def boost_remaining(self) -> timedelta:
        if not self.is_boost_active:
            return timedelta(0)
        return self.boost_until - self.now()

    def reroll_mood(self) -> Mood:
        self.current_mood = select_mood(self.rng)
        logger.info(f"Session mood rolled: {self.current_mood.value} (x{self.current_mood.multiplier:.2f})")
        self._save()
        return self.current_mood

    def activate_mood_boost(self, duration: Union[float, timedelta]):
        """Force HOT as the effective mood for `duration` (seconds or timedelta)."""
        if not isinstance(duration, timedelta):
            duration = timedelta(seconds=duration)
        self.boost_until = self.now() + duration
        logger.info(f"Hot mood boost active until {self.boost_until.isoformat(timespec='seconds')}")
        self._save()

    def purchase_mood_boost(self) -> bool:
        """Shop: Hot Mood Booster. Returns False if the player can't afford it."""
        price = EconomyConfig.BOOST_PRICE
        if not self.can_afford(price):
            return False
        self.debit(price)
        self.activate_mood_boost(EconomyConfig.BOOST_SECONDS)
        return True

    # ── Balance ───────────────────────────────────────────────

    def can_afford(self, amount: float) -> bool:
        return self.balance >= amount

    def debit(self, amount: float):
        """Subtract `amount` unconditionally. Callers check can_afford() first."""
        self.balance -= amount
        self._save()

    def credit(self, base_amount: float):
        """Settle a win: base payout plus the effective mood bonus."""
        mood = self.effective_mood
        mood_bonus = base_amount * (mood.multiplier - 1)
        self.balance += base_amount + mood_bonus
        self.session_wins += 1
        logger.info(f"Win settled: base={base_amount:.2f} mood={mood.value} "
                    f"bonus={mood_bonus:.2f} balance={self.balance:.2f}")
        self._save()

    def add_balance(self, amount: float):
        """Top-up with no mood bonus and no win recorded."""
        self.balance += amount
        self._save()

    # ── Daily bonus ───────────────────────────────────────────

    @property
    def can_take_daily_bonus(self) -> bool:
        if self.balance >= EconomyConfig.DAILY_BONUS_THRESHOLD:
            return False
        if self.last_daily_bonus is None:
            return True
        return self.last_daily_bonus.date() < self.now().date()

    def grant_daily_bonus(self) -> bool:
        if not self.can_take_daily_bonus:
            return False
        self.add_balance(EconomyConfig.DAILY_BONUS)
        self.last_daily_bonus = self.now()
        logger.info(f"Daily bonus granted: +{EconomyConfig.DAILY_BONUS:.0f}")
        self._save()
        return True

    # ── Snapshot ──────────────────────────────────────────────

    def snapshot(self) -> EconomyState:
        return EconomyState(
            balance=self.balance,
            current_mood=self.current_mood,
            effective_mood=self.effective_mood,
            boost_until=self.boost_until,
            session_wins=self.session_wins,
            last_daily_bonus=self.last_daily_bonus,
        )

    # ── Persistence ───────────────────────────────────────────

    def _save(self):
        values = {
            StorageConfig.BALANCE_KEY: self.balance,
            StorageConfig.BALANCE_INITIALIZED_KEY: True,
            StorageConfig.CURRENT_MOOD_KEY: self.current_mood.value,
            StorageConfig.SESSION_WINS_KEY: self.session_wins,
        }
        if self.last_daily_bonus is not None:
            values[StorageConfig.LAST_DAILY_BONUS_KEY] = self.last_daily_bonus.timestamp()
        self.store.set_many(values)

    def _load(self):
        saved = PersistedEconomy.from_store(self.store)

        # Without the initialized flag a stored 0 is indistinguishable from "never saved"
        if saved.balance is not None:
            if saved.balance > 0 or (saved.balance_initialized and saved.balance == 0):
                self.balance = saved.balance

        if saved.current_mood is not None:
            self.current_mood = Mood.from_tag(saved.current_mood, default=Mood.NEUTRAL)
            if self.current_mood.value != saved.current_mood:
                logger.warning(f"Unknown saved mood '{saved.current_mood}', using {self.current_mood.value}")

        self.session_wins = saved.session_wins

        if saved.last_daily_bonus is not None and saved.last_daily_bonus > 0:
            try:
                self.last_daily_bonus = datetime.fromtimestamp(saved.last_daily_bonus)
            except (OverflowError, OSError, ValueError):
                logger.warning("Saved daily bonus timestamp out of range, ignoring")
