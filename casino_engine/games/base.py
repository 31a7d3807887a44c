"""
MOOD CASINO — Base Game Engine

Shared round lifecycle for every mini-game:

    play()  → can_play gate → debit bet → IN_PROGRESS → _begin_round()
    ...scheduled callbacks...
    _settle(outcome, base_payout) → credit (mood applied) → RESOLVED

One round at a time per engine. A RESOLVED round counts as idle for the
next play(). The mood multiplier is read at settlement, never at bet time,
so a boost bought mid-round still applies.

Each engine also exposes a pure simulate_round(rng) for Monte Carlo RTP
checks that never touch the economy.
"""

from __future__ import annotations

import logging
import math
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from config.casino_schema import GAME_TABLES
from casino_engine.economy import EconomyEngine
from casino_engine.mood import Mood
from casino_engine.scheduler import ManualScheduler, Scheduler

logger = logging.getLogger("moodcasino.games")


class RoundPhase(str, Enum):
    IDLE = "idle"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"


@dataclass
class RoundState:
    """Where the current round is. Ephemeral, never persisted."""
    phase: RoundPhase = RoundPhase.IDLE
    started_at: Optional[float] = None
    bet: float = 0.0
    progress: dict = field(default_factory=dict)   # engine-specific, e.g. multiplier / row
    outcome: Any = None
    net_result: float = 0.0

    @property
    def in_progress(self) -> bool:
        return self.phase == RoundPhase.IN_PROGRESS

    @property
    def resolved(self) -> bool:
        return self.phase == RoundPhase.RESOLVED


@dataclass
class SimResult:
    """Monte Carlo results for one engine."""
    game_type: str
    rounds: int
    mood: str
    avg_multiplier: float
    max_multiplier_hit: float
    hit_rate: float  # % of rounds that credited anything
    total_wagered: float
    total_returned: float
    rtp: float
    house_edge: float
    confidence_95: tuple = (0.0, 0.0)
    distribution: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "game_type": self.game_type,
            "rounds": self.rounds,
            "mood": self.mood,
            "rtp": round(self.rtp, 4),
            "house_edge": round(self.house_edge, 6),
            "avg_multiplier": round(self.avg_multiplier, 4),
            "max_multiplier_hit": round(self.max_multiplier_hit, 2),
            "hit_rate": round(self.hit_rate, 4),
            "total_wagered": round(self.total_wagered, 2),
            "total_returned": round(self.total_returned, 2),
            "confidence_95": [round(x, 6) for x in self.confidence_95],
            "distribution": self.distribution,
        }


def _bucket(mult: float) -> str:
    if mult == 0:
        return "0x"
    elif mult < 1:
        return "0-1x"
    elif mult < 2:
        return "1-2x"
    elif mult < 5:
        return "2-5x"
    elif mult < 10:
        return "5-10x"
    return "10x+"


class BaseGameEngine(ABC):
    """Round state machine + settlement shared by all games.

    Without a scheduler the engine gets its own ManualScheduler; nothing
    advances it, so the caller must drive engine.scheduler for rounds to settle.
    """

    game_type: str = "base"
    display_name: str = "Base Game"

    def __init__(self, economy: EconomyEngine,
                 scheduler: Optional[Scheduler] = None,
                 rng: Optional[random.Random] = None,
                 bet: Optional[float] = None):
        self.economy = economy
        self.scheduler = scheduler or ManualScheduler()
        self.rng = rng or random.Random()
        self.table = GAME_TABLES[self.game_type]
        self.bet_amount: float = self.table.snap(bet) if bet is not None else self.table.default_bet
        self.round = RoundState()
        self.last_win: float = 0.0

    # ── Gating ────────────────────────────────────────────────

    @property
    def is_busy(self) -> bool:
        return self.round.in_progress

    @property
    def can_play(self) -> bool:
        return not self.is_busy and self.economy.can_afford(self.bet_amount)

    def set_bet(self, amount: float) -> bool:
        """Change the stake (snapped to the stepper grid and table limits). Refused mid-round."""
        if self.is_busy:
            return False
        self.bet_amount = self.table.snap(amount)
        return True

    def step_bet(self, steps: int = 1) -> bool:
        """Move the stake like the +/- stepper: by whole steps, stopping at the limits."""
        if self.is_busy:
            return False
        self.bet_amount = self.table.clamp(self.bet_amount + steps * self.table.bet_step)
        return True

    # ── Lifecycle ─────────────────────────────────────────────

    def play(self) -> bool:
        """Start a round. Returns False (and does nothing) if can_play is False."""
        if not self.can_play:
            logger.debug(f"{self.game_type}: play rejected (busy={self.is_busy}, "
                         f"balance={self.economy.balance:.2f}, bet={self.bet_amount:.2f})")
            return False
        self.economy.debit(self.bet_amount)
        self.last_win = 0.0
        self.round = RoundState(
            phase=RoundPhase.IN_PROGRESS,
            started_at=self.scheduler.now(),
            bet=self.bet_amount,
        )
        self._begin_round()
        return True

    @abstractmethod
    def _begin_round(self):
        """Draw the outcome and schedule whatever leads to _settle()."""
        ...

    def _settle(self, outcome: Any, base_payout: Optional[float]):
        """Close the round. base_payout=None means nothing is credited.

        The round is RESOLVED even if the credit (or its save) raises; the
        error still propagates to whoever drives the scheduler.
        """
        bet = self.round.bet
        net = -bet
        try:
            if base_payout is not None:
                net = base_payout * self.economy.effective_mood.multiplier - bet
                self.economy.credit(base_payout)
        finally:
            self.last_win = net
            self.round.phase = RoundPhase.RESOLVED
            self.round.outcome = outcome
            self.round.net_result = net
        logger.info(f"{self.game_type}: round resolved, net {net:+.2f}")

    # ── Simulation ────────────────────────────────────────────

    @abstractmethod
    def simulate_round(self, rng: random.Random) -> float:
        """One round with a unit bet. Returns the base payout multiplier (0 = no credit)."""
        ...

    def simulate(self, rounds: int = 100_000, seed: int = 42,
                 mood: Mood = Mood.CHILL) -> SimResult:
        """Run a Monte Carlo simulation with the given mood applied to every credit."""
        rng = random.Random(seed)

        total_returned = 0.0
        sum_sq = 0.0
        wins = 0
        max_mult = 0.0
        buckets = {}

        for _ in range(rounds):
            mult = self.simulate_round(rng) * mood.multiplier
            total_returned += mult
            sum_sq += mult * mult
            if mult > 0:
                wins += 1
            if mult > max_mult:
                max_mult = mult
            b = _bucket(mult)
            buckets[b] = buckets.get(b, 0) + 1

        total_wagered = float(rounds)
        rtp = total_returned / total_wagered if total_wagered > 0 else 0.0
        he = 1 - rtp
        avg_mult = total_returned / rounds if rounds else 0.0
        variance = (sum_sq / rounds - avg_mult ** 2) if rounds else 0.0
        std_err = math.sqrt(max(variance, 0.0) / rounds) if rounds else 0.0
        ci = (he - 1.96 * std_err, he + 1.96 * std_err)

        return SimResult(
            game_type=self.game_type,
            rounds=rounds,
            mood=mood.value,
            avg_multiplier=avg_mult,
            max_multiplier_hit=max_mult,
            hit_rate=wins / rounds if rounds else 0.0,
            total_wagered=total_wagered,
            total_returned=total_returned,
            rtp=rtp,
            house_edge=he,
            confidence_95=ci,
            distribution={k: round(v / rounds, 4) for k, v in sorted(buckets.items())},
        )
