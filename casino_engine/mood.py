"""Casino mood: the global payout bias and its weighted session roll."""
from __future__ import annotations

import random
from enum import Enum
from typing import Optional


class Mood(str, Enum):
    CHILL = "chill"
    NEUTRAL = "neutral"
    HOT = "hot"

    @property
    def multiplier(self) -> float:
        return MOOD_MULTIPLIERS[self]

    @property
    def weight(self) -> float:
        return MOOD_WEIGHTS[self]

    @property
    def display_name(self) -> str:
        return {
            Mood.CHILL: "Chill ❄️",
            Mood.NEUTRAL: "Neutral ⚪",
            Mood.HOT: "Hot 🔥",
        }[self]

    @property
    def description(self) -> str:
        return {
            Mood.CHILL: "Casino is feeling relaxed today",
            Mood.NEUTRAL: "Business as usual",
            Mood.HOT: "The casino is on fire today! 🔥",
        }[self]

    @classmethod
    def from_tag(cls, tag, default: "Mood" = None) -> "Mood":
        """Parse a stored tag, falling back to `default` on anything unknown."""
        try:
            return cls(tag)
        except ValueError:
            return default if default is not None else cls.NEUTRAL


MOOD_MULTIPLIERS = {Mood.CHILL: 1.00, Mood.NEUTRAL: 1.05, Mood.HOT: 1.15}
MOOD_WEIGHTS = {Mood.CHILL: 0.4, Mood.NEUTRAL: 0.4, Mood.HOT: 0.2}


def select_mood(rng: Optional[random.Random] = None) -> Mood:
    """Weighted draw over CHILL, NEUTRAL, HOT (0.4 / 0.4 / 0.2)."""
    draw = (rng or random).random()
    cumulative = 0.0
    for mood in Mood:
        cumulative += mood.weight
        if draw <= cumulative:
            return mood
    # Float drift can leave cumulative a hair under 1.0
    return list(Mood)[-1]
