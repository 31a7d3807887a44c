"""Ball Drop (Plinko): 6 random-walk steps over 9 columns into 8 slots."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from config.settings import TimingConfig
from casino_engine.games.base import BaseGameEngine

logger = logging.getLogger("moodcasino.games.drop")

DROP_ROWS = 6
DROP_COLS = 9
DROP_SLOTS = [0.5, 0.8, 1.0, 1.5, 3.0, 1.5, 1.0, 0.8]


def next_column(col: int, move: int, cols: int = DROP_COLS) -> int:
    return min(max(col + move, 0), cols - 1)


def slot_index_for_column(col: int, slot_count: int = len(DROP_SLOTS)) -> int:
    """9 columns land in 8 slots: the right-most column shares the last slot."""
    return max(0, min(col, slot_count - 1))


@dataclass
class DropOutcome:
    column: int
    slot_index: int
    multiplier: float
    path: list = field(default_factory=list)


class DropEngine(BaseGameEngine):
    game_type = "drop"
    display_name = "Plinko"

    def __init__(self, *args, rows: int = DROP_ROWS, cols: int = DROP_COLS,
                 slots: list = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.rows = rows
        self.cols = cols
        self.slots = list(slots or DROP_SLOTS)
        self.current_row: Optional[int] = None
        self.current_col: Optional[int] = None
        self.path: list = []

    @property
    def is_dropping(self) -> bool:
        return self.is_busy

    @property
    def can_drop(self) -> bool:
        return self.can_play

    def drop(self) -> bool:
        return self.play()

    def _begin_round(self):
        self.current_row = 0
        self.current_col = self.cols // 2
        self.path = [self.current_col]
        self._step()

    def _step(self):
        self.round.progress.update(row=self.current_row, col=self.current_col)
        if self.current_row >= self.rows:
            self._finish_drop()
            return
        self.scheduler.call_later(TimingConfig.DROP_STEP, self._advance)

    def _advance(self):
        move = self.rng.randint(-1, 1)
        self.current_col = next_column(self.current_col, move, self.cols)
        self.current_row += 1
        self.path.append(self.current_col)
        logger.debug(f"Ball at row {self.current_row}, col {self.current_col}")
        self._step()

    def _finish_drop(self):
        idx = slot_index_for_column(self.current_col, len(self.slots))
        multiplier = self.slots[idx]
        outcome = DropOutcome(self.current_col, idx, multiplier, list(self.path))
        self._settle(outcome, self.round.bet * multiplier)

    def simulate_round(self, rng) -> float:
        col = self.cols // 2
        for _ in range(self.rows):
            col = next_column(col, rng.randint(-1, 1), self.cols)
        return self.slots[slot_index_for_column(col, len(self.slots))]
