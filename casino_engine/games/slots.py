"""Classic Slots: 3×3 uniform reels, first matching row pays."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from config.settings import TimingConfig
from casino_engine.games.base import BaseGameEngine

logger = logging.getLogger("moodcasino.games.slots")


class SlotSymbol(str, Enum):
    CHERRY = "cherry"
    LEMON = "lemon"
    STAR = "star"
    SEVEN = "seven"
    BAR = "bar"

    @property
    def payout(self) -> int:
        return SYMBOL_PAYOUTS[self]

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


SYMBOL_PAYOUTS = {
    SlotSymbol.CHERRY: 2,
    SlotSymbol.LEMON: 3,
    SlotSymbol.STAR: 5,
    SlotSymbol.SEVEN: 10,
    SlotSymbol.BAR: 15,
}

REEL_ROWS = 3
REEL_COLS = 3


@dataclass
class SlotOutcome:
    grid: list
    winning_row: Optional[int] = None
    symbol: Optional[SlotSymbol] = None

    @property
    def is_win(self) -> bool:
        return self.symbol is not None


def draw_grid(rng) -> list:
    symbols = list(SlotSymbol)
    return [[rng.choice(symbols) for _ in range(REEL_COLS)] for _ in range(REEL_ROWS)]


def evaluate_grid(grid: list) -> SlotOutcome:
    """Scan rows top to bottom; only the first full match counts."""
    for row, cells in enumerate(grid):
        if cells[0] == cells[1] == cells[2]:
            return SlotOutcome(grid=grid, winning_row=row, symbol=cells[0])
    return SlotOutcome(grid=grid)


class SlotEngine(BaseGameEngine):
    game_type = "slots"
    display_name = "Classic Slots"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.reels = [[SlotSymbol.CHERRY, SlotSymbol.LEMON, SlotSymbol.STAR] for _ in range(REEL_ROWS)]

    @property
    def is_spinning(self) -> bool:
        return self.is_busy

    @property
    def can_spin(self) -> bool:
        return self.can_play

    def spin(self) -> bool:
        return self.play()

    def _begin_round(self):
        self.reels = draw_grid(self.rng)
        self.round.progress["grid"] = self.reels
        self.scheduler.call_later(TimingConfig.SLOTS_SETTLE, self._check_win)

    def _check_win(self):
        outcome = evaluate_grid(self.reels)
        if outcome.is_win:
            logger.debug(f"Row {outcome.winning_row} matched {outcome.symbol.value}")
            self._settle(outcome, self.round.bet * outcome.symbol.payout)
        else:
            self._settle(outcome, None)

    def simulate_round(self, rng) -> float:
        outcome = evaluate_grid(draw_grid(rng))
        return float(outcome.symbol.payout) if outcome.is_win else 0.0
