"""Number Match: five digits 1-9 ranked like a poker hand."""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from config.settings import TimingConfig
from casino_engine.games.base import BaseGameEngine

logger = logging.getLogger("moodcasino.games.hand")

HAND_SIZE = 5
DIGIT_MIN = 1
DIGIT_MAX = 9


class HandType(str, Enum):
    HIGH_CARD = "High Card"
    ONE_PAIR = "One Pair"
    TWO_PAIR = "Two Pair"
    THREE_KIND = "Three of a Kind"
    STRAIGHT = "Straight"
    FULL_HOUSE = "Full House"
    FOUR_KIND = "Four of a Kind"
    FIVE_KIND = "Five of a Kind"

    @property
    def multiplier(self) -> float:
        return HAND_MULTIPLIERS[self]


HAND_MULTIPLIERS = {
    HandType.HIGH_CARD: 0.2,
    HandType.ONE_PAIR: 1.0,
    HandType.TWO_PAIR: 2.0,
    HandType.THREE_KIND: 3.0,
    HandType.STRAIGHT: 4.0,
    HandType.FULL_HOUSE: 5.0,
    HandType.FOUR_KIND: 8.0,
    HandType.FIVE_KIND: 12.0,
}


def deal_digits(rng) -> list:
    return [rng.randint(DIGIT_MIN, DIGIT_MAX) for _ in range(HAND_SIZE)]


def is_straight(digits: list) -> bool:
    unique = sorted(set(digits))
    return len(unique) == HAND_SIZE and unique[-1] - unique[0] == HAND_SIZE - 1


def classify_hand(digits: list) -> HandType:
    """Rank a 5-digit hand. Straight sits between full house and three of a kind."""
    freq = sorted(Counter(digits).values(), reverse=True)

    if freq == [5]:
        return HandType.FIVE_KIND
    if freq == [4, 1]:
        return HandType.FOUR_KIND
    if freq == [3, 2]:
        return HandType.FULL_HOUSE
    if is_straight(digits):
        return HandType.STRAIGHT
    if freq == [3, 1, 1]:
        return HandType.THREE_KIND
    if freq == [2, 2, 1]:
        return HandType.TWO_PAIR
    if freq == [2, 1, 1, 1]:
        return HandType.ONE_PAIR
    return HandType.HIGH_CARD


@dataclass
class HandOutcome:
    numbers: list
    hand_type: HandType


class HandMatchEngine(BaseGameEngine):
    game_type = "hand"
    display_name = "Number Match"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.numbers: list = []
        self.hand_type: Optional[HandType] = None

    @property
    def is_dealing(self) -> bool:
        return self.is_busy

    @property
    def can_deal(self) -> bool:
        return self.can_play

    def deal(self) -> bool:
        return self.play()

    def _begin_round(self):
        self.hand_type = None
        self.numbers = deal_digits(self.rng)
        self.round.progress["numbers"] = list(self.numbers)
        self.scheduler.call_later(TimingConfig.HAND_SETTLE, self._evaluate)

    def _evaluate(self):
        self.hand_type = classify_hand(self.numbers)
        logger.debug(f"Dealt {self.numbers} → {self.hand_type.value}")
        outcome = HandOutcome(list(self.numbers), self.hand_type)
        self._settle(outcome, self.round.bet * self.hand_type.multiplier)

    def simulate_round(self, rng) -> float:
        return classify_hand(deal_digits(rng)).multiplier
