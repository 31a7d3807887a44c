"""Deterministic clocks and RNGs shared by the test suites."""

import random
from datetime import datetime, timedelta

from config.database import MemoryStore
from casino_engine.economy import EconomyEngine
from casino_engine.mood import Mood


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = datetime(2026, 3, 10, 12, 0, 0)):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs):
        self.current += timedelta(**kwargs)


class ScriptedRandom(random.Random):
    """random.Random that replays queued values before falling back to a seeded stream."""

    def __init__(self, choices=(), uniforms=(), randints=(), randoms=(), seed=0):
        super().__init__(seed)
        self._choices = list(choices)
        self._uniforms = list(uniforms)
        self._randints = list(randints)
        self._randoms = list(randoms)

    def choice(self, seq):
        if self._choices:
            return self._choices.pop(0)
        return super().choice(seq)

    def uniform(self, a, b):
        if self._uniforms:
            return self._uniforms.pop(0)
        return super().uniform(a, b)

    def randint(self, a, b):
        if self._randints:
            return self._randints.pop(0)
        return super().randint(a, b)

    def random(self):
        if self._randoms:
            return self._randoms.pop(0)
        return super().random()


def make_economy(balance: float = 1000.0, mood: Mood = Mood.CHILL,
                 store=None, clock=None) -> EconomyEngine:
    economy = EconomyEngine(store=store or MemoryStore(), clock=clock, reroll_on_start=False)
    economy.balance = balance
    economy.current_mood = mood
    return economy
