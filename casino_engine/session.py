"""
MOOD CASINO — Session Wiring

One CasinoSession owns the store, the scheduler and the single
EconomyEngine; every game engine gets a non-owning reference to that
economy. Hosts (a UI, a bot, a test) build one session and keep it.

Usage:
    session = CasinoSession.open()              # SQLite store, manual clock
    slots = session.game("slots")
    slots.spin()
    session.scheduler.advance(3)
"""

from __future__ import annotations

import logging
import random
from typing import Optional

from config.database import KeyValueStore, get_store
from casino_engine.bootstrap import grant_initial_balance
from casino_engine.economy import EconomyEngine
from casino_engine.games import GAME_TYPES, BaseGameEngine, get_game_engine
from casino_engine.scheduler import ManualScheduler, Scheduler

logger = logging.getLogger("moodcasino.session")


class CasinoSession:

    def __init__(self, store: KeyValueStore, scheduler: Optional[Scheduler] = None,
                 rng: Optional[random.Random] = None, clock=None):
        self.store = store
        self.scheduler = scheduler or ManualScheduler()
        self.rng = rng or random.Random()
        self.first_launch = grant_initial_balance(store)
        self.economy = EconomyEngine(store=store, rng=self.rng, clock=clock)
        self._games: dict[str, BaseGameEngine] = {}

    @classmethod
    def open(cls, db_path: Optional[str] = None, **kwargs) -> "CasinoSession":
        return cls(get_store(db_path), **kwargs)

    def game(self, game_type: str) -> BaseGameEngine:
        """Engine for a game type, created on first use and reused afterwards."""
        key = game_type.lower()
        if key not in self._games:
            self._games[key] = get_game_engine(key, self.economy,
                                               scheduler=self.scheduler, rng=self.rng)
        return self._games[key]

    def games(self) -> dict:
        return {gt: self.game(gt) for gt in GAME_TYPES}

    @property
    def busy(self) -> bool:
        return any(g.is_busy for g in self._games.values())
