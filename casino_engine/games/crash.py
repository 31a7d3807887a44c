"""
Crash (Aviator): compounding multiplier racing a hidden crash point.

The multiplier starts at 1.0 and grows every 50 ms by 0.01 + 1% of itself,
so growth accelerates. Two endings race:

  • cash_out()  — player takes bet × current multiplier
  • crash       — multiplier reaches the hidden point, bet is lost

The crash check runs first on every tick, so an auto cash-out target that is
hit on the same tick as the crash point loses. stop() abandons the round:
ticking ends, nothing is credited, the bet stays spent.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from config.settings import TimingConfig
from casino_engine.games.base import BaseGameEngine, RoundPhase

logger = logging.getLogger("moodcasino.games.crash")

CRASH_POINT_MIN = 1.2
CRASH_POINT_MAX = 8.0
STEP_BASE = 0.01
STEP_GROWTH = 0.01
SIM_DEFAULT_TARGET = 2.0


def next_multiplier(multiplier: float) -> float:
    return multiplier + STEP_BASE + multiplier * STEP_GROWTH


class CrashStatus(str, Enum):
    CASHED_OUT = "cashed_out"
    CRASHED = "crashed"
    ABANDONED = "abandoned"


@dataclass
class CrashOutcome:
    status: CrashStatus
    multiplier: float
    crash_point: float
    ticks: int


class CrashEngine(BaseGameEngine):
    game_type = "crash"
    display_name = "Aviator"

    def __init__(self, *args, auto_cash_out: Optional[float] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.auto_cash_out = auto_cash_out
        self.multiplier = 1.0
        self.crash_point = 0.0
        self.is_running = False
        self.is_crashed = False
        self.ticks = 0
        self._ticker = None

    @property
    def can_start(self) -> bool:
        return self.can_play

    @property
    def can_cash_out(self) -> bool:
        return self.is_running and not self.is_crashed

    def start(self) -> bool:
        return self.play()

    def _begin_round(self):
        self.is_running = True
        self.is_crashed = False
        self.multiplier = 1.0
        self.ticks = 0
        self.crash_point = self.rng.uniform(CRASH_POINT_MIN, CRASH_POINT_MAX)
        self.round.progress.update(multiplier=self.multiplier, ticks=0)

        self._cancel_ticker()
        self._ticker = self.scheduler.call_every(TimingConfig.CRASH_TICK, self._tick)

    def _tick(self):
        if not self.is_running:
            return
        self.multiplier = next_multiplier(self.multiplier)
        self.ticks += 1
        self.round.progress.update(multiplier=self.multiplier, ticks=self.ticks)

        if self.multiplier >= self.crash_point:
            self._crash()
        elif self.auto_cash_out is not None and self.multiplier >= self.auto_cash_out:
            logger.debug(f"Auto cash-out at x{self.multiplier:.2f}")
            self.cash_out()

    def cash_out(self) -> bool:
        if not self.can_cash_out:
            return False
        self.is_running = False
        self._cancel_ticker()
        outcome = CrashOutcome(CrashStatus.CASHED_OUT, self.multiplier, self.crash_point, self.ticks)
        self._settle(outcome, self.round.bet * self.multiplier)
        return True

    def _crash(self):
        self.is_running = False
        self.is_crashed = True
        self._cancel_ticker()
        logger.debug(f"Crashed at x{self.multiplier:.2f} (point x{self.crash_point:.2f})")
        outcome = CrashOutcome(CrashStatus.CRASHED, self.multiplier, self.crash_point, self.ticks)
        self._settle(outcome, None)

    def stop(self):
        """Abandon the round (e.g. the screen was closed). No credit, no refund."""
        was_running = self.is_running
        self.is_running = False
        self._cancel_ticker()
        if was_running and self.round.in_progress:
            # Not a win and not a recorded loss: the economy is left untouched
            self.round.phase = RoundPhase.RESOLVED
            self.round.outcome = CrashOutcome(CrashStatus.ABANDONED, self.multiplier,
                                              self.crash_point, self.ticks)
            self.round.net_result = -self.round.bet
            logger.info(f"crash: round abandoned at x{self.multiplier:.2f}")

    def _cancel_ticker(self):
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    def simulate_round(self, rng) -> float:
        """Assumes a player cashing out at auto_cash_out (2.0× if unset)."""
        crash_point = rng.uniform(CRASH_POINT_MIN, CRASH_POINT_MAX)
        target = self.auto_cash_out or SIM_DEFAULT_TARGET
        m = 1.0
        while True:
            m = next_multiplier(m)
            if m >= crash_point:
                return 0.0
            if m >= target:
                return m
